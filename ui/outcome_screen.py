from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional

from config import TutorialSettings, tutorial_settings
from tutorial.engine import TutorialOutcome
from tutorial.feedback import TERMINATION_NOTICE

_HEADLINES = {
    TutorialOutcome.COMPLETED_NORMALLY: "Tutorial complete!",
    TutorialOutcome.FORCED_TERMINATION: TERMINATION_NOTICE.title,
    TutorialOutcome.SKIPPED: "Tutorial skipped",
}

_FALLBACK_SCREEN = "TitleScene"


@dataclass
class OutcomeRoute:
    outcome: TutorialOutcome
    screen: str
    headline: str
    payload: Dict[str, object] = field(default_factory=dict)


class TutorialOutcomeScreen:
    """Decides where the player goes once the tutorial is over."""

    def __init__(self, settings: Optional[TutorialSettings] = None) -> None:
        self.settings = settings or tutorial_settings()
        self.routes: Dict[TutorialOutcome, OutcomeRoute] = {
            outcome: self._build_route(outcome, self.settings.outcome_routes.get(outcome.value, {}))
            for outcome in TutorialOutcome
        }

    def _build_route(self, outcome: TutorialOutcome, raw: Mapping[str, object]) -> OutcomeRoute:
        return OutcomeRoute(
            outcome=outcome,
            screen=str(raw.get("screen") or _FALLBACK_SCREEN),
            headline=str(raw.get("headline") or _HEADLINES[outcome]),
            payload=dict(raw.get("payload", {})),
        )

    def route_for(self, outcome: TutorialOutcome) -> OutcomeRoute:
        return self.routes[outcome]

    def summary_lines(self, outcome: TutorialOutcome, steps_completed: int, total: int) -> Iterable[str]:
        route = self.route_for(outcome)
        yield route.headline
        if outcome is TutorialOutcome.FORCED_TERMINATION:
            yield from TERMINATION_NOTICE.body.split("\n\n")
            return
        yield f"Steps cleared: {steps_completed}/{total}"


__all__ = ["OutcomeRoute", "TutorialOutcomeScreen"]
