"""Tutorial package exposing the engine and its building blocks."""

from .completion_store import CompletionStore
from .engine import EngineState, EngineStatus, TutorialEngine, TutorialOutcome
from .errors import ScriptValidationError, TutorialError
from .gate import GatePolicy, apply_gate_for_step, decide
from .presentation import PresentationAdapter, Presenter, RecordingPresenter, StepView
from .registry import ControlRegistry
from .scheduling import ImmediateScheduler, ManualScheduler, Scheduler
from .steps import (
    DictScriptLoader,
    FileSystemScriptLoader,
    ScriptLoader,
    StepAction,
    StepDescriptor,
    TutorialScript,
    parse_script,
)

__all__ = [
    "CompletionStore",
    "ControlRegistry",
    "DictScriptLoader",
    "EngineState",
    "EngineStatus",
    "FileSystemScriptLoader",
    "GatePolicy",
    "ImmediateScheduler",
    "ManualScheduler",
    "PresentationAdapter",
    "Presenter",
    "RecordingPresenter",
    "Scheduler",
    "ScriptLoader",
    "ScriptValidationError",
    "StepAction",
    "StepDescriptor",
    "StepView",
    "TutorialEngine",
    "TutorialError",
    "TutorialOutcome",
    "TutorialScript",
    "apply_gate_for_step",
    "decide",
    "parse_script",
]
