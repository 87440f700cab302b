"""Turns the active step into something a rendering layer can draw.

The engine never touches pixels. It hands a :class:`StepView` to a
:class:`Presenter`; the host supplies the presenter that actually draws the
prompt panel and the pointer. :class:`RecordingPresenter` is a headless
stand-in used when no presenter is given.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, List, Optional, Tuple

from .geometry import Rect

if TYPE_CHECKING:  # pragma: no cover
    from config import TutorialSettings

    from .feedback import FeedbackPrompt, MistakeFeedback, TerminationNotice
    from .steps import MessagePosition, PointerHint, StepDescriptor

DEFAULT_GAP = 30


@dataclass(frozen=True)
class PointerPlacement:
    x: float
    y: float
    rotation: float
    direction: str


@dataclass(frozen=True)
class MessageAnchor:
    x: float
    y: float
    enters_from: str


@dataclass(frozen=True)
class StepView:
    step_id: str
    message: str
    speaker: str
    bounds: Optional[Rect]
    pointer: Optional[PointerPlacement]
    anchor: MessageAnchor
    show_message: bool
    blocks_background: bool
    advance_on_click: bool
    dismiss_on_interact: bool


def place_pointer(bounds: Rect, hint: Optional["PointerHint"] = None, gap: float = DEFAULT_GAP) -> PointerPlacement:
    """Position and rotation of a pointer aimed at ``bounds``.

    The direction names where the pointer points: ``down`` sits above the
    control pointing down at it, ``left`` sits to its right pointing back.
    """
    direction = hint.direction if hint else "down"
    dx = hint.offset_x if hint else 0.0
    dy = hint.offset_y if hint else 0.0
    cx, cy = bounds.center
    if direction == "down":
        return PointerPlacement(cx + dx, bounds.y - gap + dy, 0.0, "down")
    if direction == "up":
        return PointerPlacement(cx + dx, bounds.bottom + gap + dy, math.pi, "up")
    if direction == "left":
        return PointerPlacement(bounds.right + gap + dx, cy + dy, math.pi / 2, "left")
    if direction == "right":
        return PointerPlacement(bounds.x - gap + dx, cy + dy, -math.pi / 2, "right")
    # Unrecognised directions fall back to the plain default, offsets ignored.
    return PointerPlacement(cx, bounds.y - gap, 0.0, "down")


def resolve_message_anchor(
    position: Optional["MessagePosition"],
    canvas_width: float = 1920,
    canvas_height: float = 1080,
    default_y: float = 150,
    bottom_y: float = 950,
) -> MessageAnchor:
    x = canvas_width / 2
    y = default_y
    if position is not None:
        if position.anchor == "bottom":
            y = bottom_y
        elif position.anchor == "center":
            y = canvas_height / 2
        if position.y is not None:
            y = position.y
        if position.x is not None:
            x = position.x
    enters_from = "top" if y < canvas_height / 2 else "bottom"
    return MessageAnchor(x=x, y=y, enters_from=enters_from)


class Presenter:
    """Outbound interface to whatever draws the tutorial overlay."""

    def render(self, view: StepView) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def hide(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def dismiss_dialog(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def update_pointer(self, placement: PointerPlacement) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def show_mistake(self, feedback: "MistakeFeedback") -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def show_feedback(self, prompt: "FeedbackPrompt") -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def show_termination(self, notice: "TerminationNotice") -> None:  # pragma: no cover - interface
        raise NotImplementedError


class RecordingPresenter(Presenter):
    """Presenter that only remembers what it was asked to do."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, object]] = []
        self.visible = False
        self.dialog_visible = False

    def render(self, view: StepView) -> None:
        self.calls.append(("render", view))
        self.visible = True
        self.dialog_visible = view.show_message

    def hide(self) -> None:
        self.calls.append(("hide", None))
        self.visible = False
        self.dialog_visible = False

    def dismiss_dialog(self) -> None:
        self.calls.append(("dismiss_dialog", None))
        self.dialog_visible = False

    def update_pointer(self, placement: PointerPlacement) -> None:
        self.calls.append(("update_pointer", placement))

    def show_mistake(self, feedback: "MistakeFeedback") -> None:
        self.calls.append(("show_mistake", feedback))

    def show_feedback(self, prompt: "FeedbackPrompt") -> None:
        self.calls.append(("show_feedback", prompt))
        self.visible = True
        self.dialog_visible = True

    def show_termination(self, notice: "TerminationNotice") -> None:
        self.calls.append(("show_termination", notice))

    def of_kind(self, kind: str) -> List[object]:
        return [payload for name, payload in self.calls if name == kind]

    @property
    def last_view(self) -> Optional[StepView]:
        views = self.of_kind("render")
        return views[-1] if views else None  # type: ignore[return-value]


class PresentationAdapter:
    """Builds views for steps and keeps track of what is on screen."""

    def __init__(self, presenter: Presenter, settings: "TutorialSettings") -> None:
        self._presenter = presenter
        self._settings = settings
        self._view: Optional[StepView] = None
        self._visible = False
        self._dialog_dismissed = False

    @property
    def presenter(self) -> Presenter:
        return self._presenter

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def dialog_dismissed(self) -> bool:
        return self._dialog_dismissed

    @property
    def current_view(self) -> Optional[StepView]:
        return self._view if self._visible else None

    def build_view(self, step: "StepDescriptor", bounds: Optional[Rect]) -> StepView:
        settings = self._settings
        pointer = place_pointer(bounds, step.pointer_hint, settings.pointer_gap) if bounds else None
        return StepView(
            step_id=step.id,
            message=step.message or "",
            speaker=step.speaker or "",
            bounds=bounds,
            pointer=pointer,
            anchor=resolve_message_anchor(
                step.message_position,
                canvas_width=settings.canvas_width,
                canvas_height=settings.canvas_height,
                default_y=settings.message_default_y,
                bottom_y=settings.message_bottom_y,
            ),
            show_message=not step.hide_message,
            blocks_background=not step.is_click or step.hide_dialog_on_interact,
            advance_on_click=not step.is_click,
            dismiss_on_interact=step.hide_dialog_on_interact,
        )

    def show(self, step: "StepDescriptor", bounds: Optional[Rect]) -> StepView:
        view = self.build_view(step, bounds)
        self._view = view
        self._visible = True
        self._dialog_dismissed = False
        self._presenter.render(view)
        return view

    def hide(self) -> None:
        if not self._visible:
            return
        self._visible = False
        self._dialog_dismissed = False
        self._presenter.hide()

    def dismiss_dialog(self) -> bool:
        if not self._visible or self._dialog_dismissed:
            return False
        self._dialog_dismissed = True
        self._presenter.dismiss_dialog()
        return True

    def update_pointer(self, step: "StepDescriptor", bounds: Optional[Rect]) -> Optional[PointerPlacement]:
        if not self._visible or self._view is None or self._view.step_id != step.id or bounds is None:
            return None
        placement = place_pointer(bounds, step.pointer_hint, self._settings.pointer_gap)
        self._view = replace(self._view, bounds=bounds, pointer=placement)
        self._presenter.update_pointer(placement)
        return placement

    def show_mistake(self, feedback: "MistakeFeedback") -> None:
        self._presenter.show_mistake(feedback)

    def show_feedback(self, prompt: "FeedbackPrompt") -> None:
        self._view = None
        self._visible = True
        self._dialog_dismissed = False
        self._presenter.show_feedback(prompt)

    def show_termination(self, notice: "TerminationNotice") -> None:
        self.hide()
        self._presenter.show_termination(notice)


__all__ = [
    "PointerPlacement",
    "MessageAnchor",
    "StepView",
    "Presenter",
    "RecordingPresenter",
    "PresentationAdapter",
    "place_pointer",
    "resolve_message_anchor",
]
