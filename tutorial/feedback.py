"""Mistake escalation and the one-off feedback shown after error-prone steps."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Optional

GENERIC_RETRY = "Oops? Try that again!"
RETRY_AGAIN = "Not quite. Look where the arrow is pointing and try once more."
STERN = "Are you listening?\nPlease take this seriously."
SEVERE = "What are you even trying to do?"

DEFAULT_THRESHOLD = 6


class FeedbackTier(str, Enum):
    HINT = "hint"
    RETRY = "retry"
    RETRY_AGAIN = "retry_again"
    STERN = "stern"
    SEVERE = "severe"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class MistakeFeedback:
    """What the presenter should flash after a mismatch.

    ``emphasis`` grows with the tier (0 is a gentle hint, 3 the harshest
    message before termination); ``duration_ms`` and ``volume`` follow the
    same curve.
    """

    count: int
    tier: FeedbackTier
    message: str
    emphasis: int
    duration_ms: int
    volume: float

    @property
    def terminates(self) -> bool:
        return self.tier is FeedbackTier.TERMINATED


def escalate(
    count: int,
    wrong_answer_hint: Optional[str] = None,
    threshold: int = DEFAULT_THRESHOLD,
) -> MistakeFeedback:
    """Map the mistake count for the current step to a feedback tier."""
    if count < 1:
        raise ValueError("mistake count starts at 1")
    volume = round(min(1.0, 0.6 + 0.1 * count), 2)
    if count >= threshold:
        return MistakeFeedback(count, FeedbackTier.TERMINATED, TERMINATION_NOTICE.body, 4, 0, 0.8)
    if count == 1:
        if wrong_answer_hint:
            return MistakeFeedback(count, FeedbackTier.HINT, wrong_answer_hint, 0, 1500, volume)
        return MistakeFeedback(count, FeedbackTier.RETRY, GENERIC_RETRY, 1, 1500, volume)
    if count == 2:
        return MistakeFeedback(count, FeedbackTier.RETRY_AGAIN, RETRY_AGAIN, 1, 1500, volume)
    if count >= 5:
        return MistakeFeedback(count, FeedbackTier.SEVERE, SEVERE, 3, 2500, volume)
    return MistakeFeedback(count, FeedbackTier.STERN, STERN, 2, 2500, volume)


def wrong_selection_feedback() -> MistakeFeedback:
    """Uncounted nudge for pressing a control other than the target."""
    return MistakeFeedback(0, FeedbackTier.RETRY, GENERIC_RETRY, 1, 1500, 0.6)


def completion_feedback_message(kind: Optional[str], error_count: int) -> Optional[str]:
    """Message for a step completed with errors, or ``None`` when nothing applies."""
    if error_count <= 0:
        return None
    if kind == "typing":
        if error_count >= 3:
            return "Oh dear, that was a lot of typos...\nTake a careful look at the insurance card!"
        if error_count == 2:
            return "There were two input mistakes.\nCheck as you type!"
        return "There was one input mistake.\nBe careful next time!"
    if kind == "form":
        if error_count >= 2:
            return "The reception slip has several mistakes!\nFill it in more carefully."
        return "There was a mistake on the reception slip.\nCheck it before you finish next time!"
    return None


@dataclass(frozen=True)
class FeedbackPrompt:
    token: "FeedbackToken"
    step_id: str
    message: str
    speaker: Optional[str]
    error_count: int


_token_ids = itertools.count(1)


class FeedbackToken:
    """Cancellable continuation for a pending feedback acknowledgement."""

    __slots__ = ("id", "step_id", "_cancelled")

    def __init__(self, step_id: str) -> None:
        self.id = next(_token_ids)
        self.step_id = step_id
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "live"
        return f"FeedbackToken(id={self.id}, step={self.step_id!r}, {state})"


@dataclass(frozen=True)
class TerminationNotice:
    title: str
    body: str
    button: str


TERMINATION_NOTICE = TerminationNotice(
    title="Trial period over",
    body="I can't guide you any further...\n\nThis job doesn't seem to suit you.\n\nThank you for your time.",
    button="Back to title",
)


__all__ = [
    "FeedbackTier",
    "MistakeFeedback",
    "escalate",
    "wrong_selection_feedback",
    "completion_feedback_message",
    "FeedbackPrompt",
    "FeedbackToken",
    "TerminationNotice",
    "TERMINATION_NOTICE",
    "GENERIC_RETRY",
]
