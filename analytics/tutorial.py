"""Tutorial-specific wrappers around :class:`MetricsExporter`."""

from __future__ import annotations

from typing import Optional

from .metrics import MetricsExporter


class TutorialAnalytics:
    def __init__(self, exporter: Optional[MetricsExporter] = None) -> None:
        self._exporter = exporter or MetricsExporter()

    @property
    def exporter(self) -> MetricsExporter:
        return self._exporter

    def track_tutorial_start(self, tutorial_id: str, from_step: Optional[str] = None) -> None:
        self._exporter.record("tutorial_started", {"tutorial": tutorial_id, "fromStep": from_step})

    def track_step_engaged(self, tutorial_id: str, step_id: str, phase: int) -> None:
        self._exporter.record(
            "tutorial_step_engaged",
            {"tutorial": tutorial_id, "step": step_id, "phase": phase},
        )

    def track_step_completed(self, tutorial_id: str, step_id: str, mistakes: int = 0) -> None:
        self._exporter.record(
            "tutorial_step_completed",
            {"tutorial": tutorial_id, "step": step_id, "mistakes": mistakes},
        )

    def track_mistake(self, tutorial_id: str, step_id: str, event: str, count: int, tier: str) -> None:
        self._exporter.record(
            "tutorial_mistake",
            {"tutorial": tutorial_id, "step": step_id, "event": event, "count": count, "tier": tier},
        )

    def track_feedback_shown(self, tutorial_id: str, step_id: str, error_count: int) -> None:
        self._exporter.record(
            "tutorial_feedback_shown",
            {"tutorial": tutorial_id, "step": step_id, "errors": error_count},
        )

    def track_paused(self, tutorial_id: str, step_id: Optional[str]) -> None:
        self._exporter.record("tutorial_paused", {"tutorial": tutorial_id, "step": step_id})

    def track_resumed(self, tutorial_id: str, step_id: Optional[str]) -> None:
        self._exporter.record("tutorial_resumed", {"tutorial": tutorial_id, "step": step_id})

    def track_seek(self, tutorial_id: str, from_step: Optional[str], to_step: Optional[str]) -> None:
        self._exporter.record(
            "tutorial_seek",
            {"tutorial": tutorial_id, "from": from_step, "to": to_step},
        )

    def track_tutorial_finished(self, tutorial_id: str, outcome: str, steps_completed: int) -> None:
        self._exporter.record(
            "tutorial_finished",
            {"tutorial": tutorial_id, "outcome": outcome, "steps": steps_completed},
        )


__all__ = ["TutorialAnalytics"]
