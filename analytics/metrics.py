"""In-process event log for tutorial metrics."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricsEvent:
    """A named event with its payload and the time it was recorded."""

    name: str
    payload: Dict[str, object]
    recorded_at: float = field(default=0.0, compare=False)


class MetricsExporter:
    """Collects events and optionally forwards each one to a sink."""

    def __init__(
        self,
        emitter: Optional[Callable[[MetricsEvent], None]] = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._events: List[MetricsEvent] = []
        self._emitter = emitter
        self._clock = clock

    def record(self, name: str, payload: Optional[Dict[str, object]] = None) -> MetricsEvent:
        event = MetricsEvent(name=name, payload=dict(payload or {}), recorded_at=self._clock())
        self._events.append(event)
        logger.debug("metric %s %s", name, event.payload)
        if self._emitter is not None:
            self._emitter(event)
        return event

    @property
    def events(self) -> List[MetricsEvent]:
        return list(self._events)

    def named(self, name: str) -> List[MetricsEvent]:
        return [event for event in self._events if event.name == name]

    def export_counts(self) -> Dict[str, int]:
        """Counts per event name, split by tutorial id when the payload has one."""
        counts: Dict[str, int] = {}
        for event in self._events:
            tutorial = event.payload.get("tutorial")
            key = f"{event.name}:{tutorial}" if tutorial else event.name
            counts[key] = counts.get(key, 0) + 1
        return counts

    def clear(self) -> None:
        self._events.clear()


__all__ = ["MetricsEvent", "MetricsExporter"]
