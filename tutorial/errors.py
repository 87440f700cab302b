"""Exceptions raised by the tutorial package."""

from __future__ import annotations

from typing import Optional


class TutorialError(RuntimeError):
    """Base exception for tutorial engine errors."""


class ScriptValidationError(TutorialError, ValueError):
    """Raised when a tutorial script cannot be turned into a step catalog.

    Attributes:
        step_id: Identifier of the offending step, when the problem is local
            to one step.
    """

    def __init__(self, message: str, step_id: Optional[str] = None) -> None:
        if step_id:
            message = f"{message} (step '{step_id}')"
        super().__init__(message)
        self.step_id = step_id


__all__ = ["TutorialError", "ScriptValidationError"]
