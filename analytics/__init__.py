"""Analytics helpers for the tutorial engine."""

from .metrics import MetricsEvent, MetricsExporter
from .tutorial import TutorialAnalytics

__all__ = ["MetricsEvent", "MetricsExporter", "TutorialAnalytics"]
