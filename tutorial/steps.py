"""Step catalog model and the loaders that build it from JSON scripts."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from .errors import ScriptValidationError
from .gate import GatePolicy

SCRIPTS_PATH = Path(__file__).with_name("scripts")

POINTER_DIRECTIONS = frozenset({"down", "up", "left", "right", "top"})
FEEDBACK_KINDS = frozenset({"typing", "form"})


class StepAction(str, Enum):
    INFO = "info"
    CLICK = "click"
    WAIT = "wait"


@dataclass(frozen=True)
class PointerHint:
    """Direction the on-screen pointer comes from, plus a pixel offset."""

    direction: str = "down"
    offset_x: float = 0.0
    offset_y: float = 0.0


@dataclass(frozen=True)
class MessagePosition:
    """Placement override for the prompt panel.

    ``anchor`` is one of ``top``, ``bottom`` or ``center``; explicit ``x``
    and ``y`` win over the anchor when given.
    """

    anchor: str = "top"
    x: Optional[float] = None
    y: Optional[float] = None


@dataclass(frozen=True)
class StepDescriptor:
    """One authored tutorial step. Pure data, never mutated at runtime."""

    id: str
    phase: int
    screen: Optional[str]
    action: StepAction
    completion_event: str
    target_control: Optional[str] = None
    message: Optional[str] = None
    speaker: Optional[str] = None
    pointer_hint: Optional[PointerHint] = None
    message_position: Optional[MessagePosition] = None
    allow_free_operation: bool = False
    hide_dialog_on_interact: bool = False
    hide_message: bool = False
    wrong_answer_hint: Optional[str] = None
    ignore_completion_on: FrozenSet[str] = frozenset()
    completion_feedback: Optional[str] = None
    skip_if: Optional[str] = None

    @property
    def is_click(self) -> bool:
        return self.action is StepAction.CLICK


@dataclass(frozen=True)
class TutorialScript:
    """Parsed, ordered and immutable step catalog."""

    id: str
    title: str
    steps: Tuple[StepDescriptor, ...]
    phases: Mapping[int, str] = field(default_factory=dict)
    benign_events: FrozenSet[str] = frozenset()
    gating: GatePolicy = field(default_factory=GatePolicy)
    screen_controls: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.steps)

    def step_at(self, index: int) -> Optional[StepDescriptor]:
        if 0 <= index < len(self.steps):
            return self.steps[index]
        return None

    def step_index(self, step_id: str) -> Optional[int]:
        for index, step in enumerate(self.steps):
            if step.id == step_id:
                return index
        return None

    def step_ids(self) -> List[str]:
        return [step.id for step in self.steps]


class ScriptLoader:
    """Abstract loader for tutorial scripts."""

    def load(self, script_id: str) -> Dict[str, object]:  # pragma: no cover - interface
        raise NotImplementedError


class FileSystemScriptLoader(ScriptLoader):
    """Loads tutorial definitions from ``tutorial/scripts``."""

    def __init__(self, base_path: Path = SCRIPTS_PATH) -> None:
        self._base_path = base_path

    def load(self, script_id: str) -> Dict[str, object]:
        path = self._base_path / f"{script_id}.json"
        if not path.exists():
            raise FileNotFoundError(f"Tutorial script '{script_id}' not found at {path}")
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)


class DictScriptLoader(ScriptLoader):
    """Serves scripts already held in memory, keyed by id."""

    def __init__(self, scripts: Mapping[str, Dict[str, object]]) -> None:
        self._scripts = dict(scripts)

    def load(self, script_id: str) -> Dict[str, object]:
        try:
            return self._scripts[script_id]
        except KeyError:
            raise FileNotFoundError(f"Tutorial script '{script_id}' is not registered") from None


def parse_script(raw: Mapping[str, object]) -> TutorialScript:
    steps: List[StepDescriptor] = []
    seen: set[str] = set()
    for entry in raw.get("steps", []):
        step = _parse_step(entry)
        if step.id in seen:
            raise ScriptValidationError("Duplicate step id", step.id)
        seen.add(step.id)
        steps.append(step)
    phases = {int(key): str(name) for key, name in dict(raw.get("phases", {})).items()}
    screen_controls = {
        str(screen): tuple(names) for screen, names in dict(raw.get("screenControls", {})).items()
    }
    return TutorialScript(
        id=str(raw.get("id", "")),
        title=str(raw.get("title", "")),
        steps=tuple(steps),
        phases=phases,
        benign_events=frozenset(raw.get("benignEvents", [])),
        gating=GatePolicy.from_dict(raw.get("gating", {})),
        screen_controls=screen_controls,
    )


def _parse_step(raw: Mapping[str, object]) -> StepDescriptor:
    step_id = raw.get("id")
    if not isinstance(step_id, str) or not step_id:
        raise ScriptValidationError("Step is missing an id")
    try:
        action = StepAction(raw.get("action", "info"))
    except ValueError:
        raise ScriptValidationError(f"Unknown action {raw.get('action')!r}", step_id) from None
    completion_event = raw.get("completeOn")
    if not isinstance(completion_event, str) or not completion_event:
        raise ScriptValidationError("Step has no completion event", step_id)
    feedback = raw.get("completionFeedback")
    if feedback is not None and feedback not in FEEDBACK_KINDS:
        raise ScriptValidationError(f"Unknown completion feedback {feedback!r}", step_id)
    return StepDescriptor(
        id=step_id,
        phase=int(raw.get("phase", 0)),
        screen=raw.get("screen"),
        action=action,
        completion_event=completion_event,
        target_control=raw.get("target"),
        message=raw.get("message"),
        speaker=raw.get("speaker"),
        pointer_hint=_parse_pointer(raw.get("pointer"), step_id),
        message_position=_parse_message_position(raw.get("messagePosition"), step_id),
        allow_free_operation=bool(raw.get("allowFreeOperation", False)),
        hide_dialog_on_interact=bool(raw.get("hideDialogOnInteract", False)),
        hide_message=bool(raw.get("hideMessage", False)),
        wrong_answer_hint=raw.get("wrongAnswerHint"),
        ignore_completion_on=frozenset(raw.get("ignoreCompletionOn", [])),
        completion_feedback=feedback,
        skip_if=raw.get("skipIf"),
    )


def _parse_pointer(raw: object, step_id: str) -> Optional[PointerHint]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise ScriptValidationError("Pointer hint must be an object", step_id)
    direction = raw.get("direction", "down")
    if direction not in POINTER_DIRECTIONS:
        raise ScriptValidationError(f"Unknown pointer direction {direction!r}", step_id)
    offset = raw.get("offset", {})
    return PointerHint(
        direction=direction,
        offset_x=float(offset.get("x", 0)),
        offset_y=float(offset.get("y", 0)),
    )


def _parse_message_position(raw: object, step_id: str) -> Optional[MessagePosition]:
    if raw is None:
        return None
    if isinstance(raw, str):
        if raw not in ("top", "bottom", "center"):
            raise ScriptValidationError(f"Unknown message position {raw!r}", step_id)
        return MessagePosition(anchor=raw)
    if isinstance(raw, Mapping):
        return MessagePosition(anchor="top", x=raw.get("x"), y=raw.get("y"))
    raise ScriptValidationError("Message position must be a string or an object", step_id)


__all__ = [
    "StepAction",
    "PointerHint",
    "MessagePosition",
    "StepDescriptor",
    "TutorialScript",
    "ScriptLoader",
    "FileSystemScriptLoader",
    "DictScriptLoader",
    "parse_script",
]
