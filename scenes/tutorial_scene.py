"""Scene-side wiring for the guided tutorial.

Business screens never talk to the engine directly. Each one receives a
:class:`ScreenBinding` that remembers which controls it registered, and the
host owns a single :class:`TutorialSession` that builds the engine, hands out
bindings and routes the player onward once the tutorial ends.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from analytics import TutorialAnalytics
from tutorial.engine import EngineStatus, TutorialEngine, TutorialOutcome
from tutorial.registry import screen_name
from tutorial.steps import StepDescriptor
from ui.outcome_screen import OutcomeRoute, TutorialOutcomeScreen

logger = logging.getLogger(__name__)

Navigator = Callable[[str, Dict[str, object]], None]


class ScreenBinding:
    """The tutorial as seen from one business screen."""

    def __init__(self, engine: TutorialEngine, screen: Any) -> None:
        self.engine = engine
        self.screen = screen
        self.name = screen_name(screen)
        self.superseded = False
        self._controls: Dict[str, int] = {}

    @property
    def controls(self) -> List[str]:
        return list(self._controls)

    def register(self, name: str, control: Any) -> None:
        self.engine.register_control(name, control, self.name)
        if control is not None:
            self._controls[name] = id(control)

    def unregister(self, name: str) -> None:
        self._release(name)
        self._controls.pop(name, None)

    def ready(self) -> None:
        self.engine.notify_screen_ready(self.name)

    def emit(self, event: str, **payload: object) -> bool:
        return self.engine.report_event(event, payload or None)

    def wrong_selection(self, control_name: str) -> bool:
        return self.engine.report_wrong_selection(control_name)

    def raise_flag(self, name: str) -> None:
        self.engine.raise_flag(name)

    def expects(self, event: str) -> bool:
        return self.engine.expects(event)

    def next(self, step_id: Optional[str] = None) -> bool:
        return self.engine.acknowledge(step_id)

    def close(self) -> List[str]:
        for name in list(self._controls):
            self._release(name)
        self._controls.clear()
        if self.superseded:
            logger.debug("Late close of replaced %s binding", self.name)
            return []
        return self.engine.notify_screen_closed(self.name)

    def _release(self, name: str) -> bool:
        # Only drop the entry while it still points at the control this screen registered.
        current = self.engine.registry.resolve(name)
        if current is None or id(current) != self._controls.get(name):
            return False
        return self.engine.unregister_control(name)


@dataclass
class SessionState:
    """Serializable snapshot consumed by the host UI."""

    tutorial: Optional[str]
    status: str
    step: Optional[str]
    message: Optional[str]
    speaker: Optional[str]
    phase: Optional[str]
    progress: int
    mistakes: int
    completed: List[str] = field(default_factory=list)
    awaiting_feedback: bool = False
    outcome: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.status == EngineStatus.FINISHED.value


class TutorialSession:
    """Host-facing façade that owns the engine for one play session."""

    def __init__(
        self,
        engine: Optional[TutorialEngine] = None,
        *,
        outcome_screen: Optional[TutorialOutcomeScreen] = None,
        navigator: Optional[Navigator] = None,
    ) -> None:
        self.engine = engine or TutorialEngine()
        self.analytics: TutorialAnalytics = self.engine.analytics
        self.outcome_screen = outcome_screen or TutorialOutcomeScreen(self.engine.settings)
        self.navigator = navigator
        self.route: Optional[OutcomeRoute] = None
        self._bindings: Dict[str, ScreenBinding] = {}
        self._host_on_finish = self.engine.on_finish
        self.engine.on_finish = self._on_finish
        self.previously_completed = self.engine.is_previously_completed()

    def should_offer_tutorial(self) -> bool:
        return not self.previously_completed

    def start(self, from_index: int = 0) -> SessionState:
        self.route = None
        self.engine.start(from_index)
        return self.state()

    def binding_for(self, screen: Any) -> ScreenBinding:
        name = screen_name(screen)
        binding = self._bindings.get(name)
        by_object = binding is not None and not isinstance(screen, str) and not isinstance(binding.screen, str)
        if by_object and binding.screen is not screen:
            logger.debug("Screen %s was rebuilt; replacing its binding", name)
            binding.superseded = True
            binding = None
        if binding is None:
            binding = ScreenBinding(self.engine, screen)
            self._bindings[name] = binding
        return binding

    def state(self) -> SessionState:
        snapshot = self.engine.snapshot()
        step: Optional[StepDescriptor] = self.engine.current_step if self.engine.is_active else None
        return SessionState(
            tutorial=snapshot["tutorial"],
            status=snapshot["status"],
            step=snapshot["step"] if step else None,
            message=step.message if step else None,
            speaker=step.speaker if step else None,
            phase=snapshot["phase"] if step else None,
            progress=snapshot["progress"],
            mistakes=snapshot["mistakes"],
            completed=snapshot["completed"],
            awaiting_feedback=snapshot["awaitingFeedback"],
            outcome=snapshot["outcome"],
        )

    def end(self) -> Optional[OutcomeRoute]:
        """Tear the session down, skipping the tutorial if it is still running."""
        if self.engine.is_active:
            self.engine.skip()
        self._bindings.clear()
        return self.route

    def _on_finish(self, outcome: TutorialOutcome) -> None:
        self.previously_completed = self.previously_completed or outcome is TutorialOutcome.COMPLETED_NORMALLY
        self.route = self.outcome_screen.route_for(outcome)
        logger.info("Tutorial ended with %s; routing to %s", outcome.value, self.route.screen)
        if self._host_on_finish is not None:
            self._host_on_finish(outcome)
        if self.navigator is not None:
            self.navigator(self.route.screen, dict(self.route.payload))


__all__ = ["ScreenBinding", "SessionState", "TutorialSession"]
