"""Step engine: the state machine that walks a player through a tutorial script."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

from analytics import TutorialAnalytics
from config import TutorialSettings, tutorial_settings

from .completion_store import CompletionStore
from .feedback import (
    TERMINATION_NOTICE,
    FeedbackPrompt,
    FeedbackToken,
    completion_feedback_message,
    escalate,
    wrong_selection_feedback,
)
from .gate import decide
from .presentation import PointerPlacement, PresentationAdapter, Presenter, RecordingPresenter
from .registry import ControlRegistry, screen_name
from .scheduling import ImmediateScheduler, ScheduledCall, Scheduler
from .steps import FileSystemScriptLoader, ScriptLoader, StepAction, StepDescriptor, TutorialScript, parse_script

logger = logging.getLogger(__name__)


class EngineStatus(str, Enum):
    INACTIVE = "inactive"
    SHOWING_STEP = "showing_step"
    PAUSED = "paused"
    FINISHED = "finished"


class TutorialOutcome(str, Enum):
    COMPLETED_NORMALLY = "completed_normally"
    SKIPPED = "skipped"
    FORCED_TERMINATION = "forced_termination"


@dataclass
class EngineState:
    """Everything the engine mutates while a tutorial runs."""

    status: EngineStatus = EngineStatus.INACTIVE
    current_index: int = 0
    mistake_count: int = 0
    completed_steps: List[str] = field(default_factory=list)
    highlighted_control: Optional[str] = None
    outcome: Optional[TutorialOutcome] = None
    awaiting_feedback: bool = False
    feedback_message: Optional[str] = None
    feedback_errors: int = 0
    pending_feedback: Optional[FeedbackToken] = None
    last_completion_event: Optional[str] = None
    raised_flags: Set[str] = field(default_factory=set)
    live_screens: Set[str] = field(default_factory=set)
    render_generation: int = 0

    @property
    def active(self) -> bool:
        return self.status in (EngineStatus.SHOWING_STEP, EngineStatus.PAUSED)

    def copy(self) -> "EngineState":
        return replace(
            self,
            completed_steps=list(self.completed_steps),
            raised_flags=set(self.raised_flags),
            live_screens=set(self.live_screens),
        )


def _error_count(payload: Optional[Mapping[str, Any]]) -> int:
    if not payload:
        return 0
    for key in ("errorCount", "error_count"):
        value = payload.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return 0


def _set_input_enabled(control: Any, enabled: bool) -> None:
    setter = getattr(control, "set_input_enabled", None)
    if callable(setter):
        setter(enabled)
    else:
        control.input_enabled = enabled


class TutorialEngine:
    """Drives one tutorial session across independently built screens.

    Screens register their controls, announce when they are ready and report
    what the player did. The engine decides which step is current, which
    controls accept input, what the overlay shows and when the session ends.
    """

    def __init__(
        self,
        script_loader: Optional[ScriptLoader] = None,
        *,
        registry: Optional[ControlRegistry] = None,
        presenter: Optional[Presenter] = None,
        scheduler: Optional[Scheduler] = None,
        store: Optional[CompletionStore] = None,
        analytics: Optional[TutorialAnalytics] = None,
        settings: Optional[TutorialSettings] = None,
        on_finish: Optional[Callable[[TutorialOutcome], None]] = None,
    ) -> None:
        self._settings = settings or tutorial_settings()
        self._loader = script_loader or FileSystemScriptLoader()
        self._registry = registry or ControlRegistry()
        self._registry.on_register = self._on_control_registered
        self._presentation = PresentationAdapter(presenter or RecordingPresenter(), self._settings)
        self._scheduler = scheduler or ImmediateScheduler()
        self._store = store or CompletionStore(self._settings.storage_path, self._settings.storage_key)
        self._analytics = analytics or TutorialAnalytics()
        self.on_finish = on_finish
        self._script: Optional[TutorialScript] = None
        self._state = EngineState()
        self._pending_render: Optional[ScheduledCall] = None
        self._pending_settle: Optional[ScheduledCall] = None

    @property
    def analytics(self) -> TutorialAnalytics:
        return self._analytics

    @property
    def registry(self) -> ControlRegistry:
        return self._registry

    @property
    def presentation(self) -> PresentationAdapter:
        return self._presentation

    @property
    def settings(self) -> TutorialSettings:
        return self._settings

    @property
    def script(self) -> Optional[TutorialScript]:
        return self._script

    @property
    def state(self) -> EngineState:
        return self._state.copy()

    @property
    def current_step(self) -> Optional[StepDescriptor]:
        if self._script is None:
            return None
        return self._script.step_at(self._state.current_index)

    @property
    def is_active(self) -> bool:
        return self._state.active

    # -- lifecycle -------------------------------------------------------

    def load(self, script_id: Optional[str] = None) -> TutorialScript:
        raw = self._loader.load(script_id or self._settings.script_id)
        script = parse_script(raw)
        self._cancel_pending()
        self._script = script
        self._state = EngineState(live_screens=self._state.live_screens)
        return script

    def start(self, from_index: int = 0) -> None:
        if self._script is None:
            self.load()
        script = self._script
        self._cancel_pending()
        self._cancel_feedback()
        index = max(0, min(from_index, max(len(script) - 1, 0)))
        self._state = EngineState(
            status=EngineStatus.SHOWING_STEP,
            current_index=index,
            live_screens=self._state.live_screens,
        )
        step = self.current_step
        self._analytics.track_tutorial_start(script.id, step.id if step else None)
        self._enter_current_step()

    def pause(self) -> None:
        state = self._state
        if state.status is not EngineStatus.SHOWING_STEP:
            return
        state.status = EngineStatus.PAUSED
        self._cancel_pending()
        if state.pending_feedback is not None:
            state.pending_feedback.cancel()
            state.pending_feedback = None
        self._presentation.hide()
        self._analytics.track_paused(self._script_id(), self._current_step_id())

    def resume(self) -> None:
        state = self._state
        if state.status is not EngineStatus.PAUSED:
            return
        state.status = EngineStatus.SHOWING_STEP
        self._analytics.track_resumed(self._script_id(), self._current_step_id())
        step = self.current_step
        if state.awaiting_feedback:
            self._issue_feedback_prompt()
        elif step is not None and step.skip_if in state.raised_flags:
            logger.debug("Flag %s raised while paused; skipping %s", step.skip_if, step.id)
            self._enter_current_step()
        else:
            self._show_current_step()

    def skip(self) -> bool:
        if not self._state.active:
            return False
        self._finish(TutorialOutcome.SKIPPED)
        return True

    def force_complete(self) -> bool:
        if not self._state.active:
            return False
        self._finish(TutorialOutcome.COMPLETED_NORMALLY)
        return True

    # -- inbound from screens ---------------------------------------------

    def register_control(self, name: str, control: Any, screen: Optional[str] = None) -> None:
        if control is None:
            return
        self._registry.register(name, control, screen)

    def unregister_control(self, name: str) -> bool:
        return self._registry.unregister(name)

    def notify_screen_ready(self, screen: Any) -> None:
        name = screen_name(screen)
        if name is None:
            return
        state = self._state
        state.live_screens.add(name)
        if state.status is not EngineStatus.SHOWING_STEP:
            return
        step = self.current_step
        if step is None or step.screen != name:
            return
        if self._pending_settle is not None:
            self._pending_settle.cancel()
        index = state.current_index
        self._pending_settle = self._scheduler.call_later(
            self._settings.screen_settle_delay_ms,
            lambda: self._on_screen_settled(index),
        )

    def notify_screen_closed(self, screen: Any) -> List[str]:
        name = screen_name(screen)
        if name is None:
            return []
        state = self._state
        state.live_screens.discard(name)
        removed = self._registry.purge_screen(name)
        step = self.current_step
        if state.status is EngineStatus.SHOWING_STEP and step is not None and step.screen == name:
            self._cancel_pending()
            if not state.awaiting_feedback:
                self._presentation.hide()
        return removed

    def report_event(self, event: str, payload: Optional[Mapping[str, Any]] = None) -> bool:
        """Feed a player action into the engine. Returns ``True`` if it completed a step."""
        state = self._state
        if state.status is not EngineStatus.SHOWING_STEP:
            logger.debug("Ignoring %s while %s", event, state.status.value)
            return False
        if state.awaiting_feedback:
            logger.debug("Ignoring %s while feedback is awaiting acknowledgement", event)
            return False
        step = self.current_step
        if step is None:
            return False
        if event == step.completion_event:
            if event == self._settings.manual_advance_event and not self._is_presented(step):
                logger.debug("Advance ignored: %s has not been presented", step.id)
                return False
            self._complete_current_step(step, event, payload)
            return True
        if event == state.last_completion_event:
            logger.debug("Duplicate completion event %s absorbed", event)
            return False
        state.last_completion_event = None
        if step.action is not StepAction.CLICK:
            logger.debug("Event %s during %s step %s", event, step.action.value, step.id)
            return False
        if step.allow_free_operation:
            logger.debug("Event %s ignored during free operation on %s", event, step.id)
            return False
        if event in step.ignore_completion_on or event in self._script.benign_events:
            logger.debug("Benign event %s on %s", event, step.id)
            return False
        self._register_mistake(step, event)
        return False

    def report_wrong_selection(self, control_name: str) -> bool:
        """A screen saw the player press something other than the target."""
        state = self._state
        if state.status is not EngineStatus.SHOWING_STEP or state.awaiting_feedback:
            return False
        step = self.current_step
        if step is None or not step.target_control or step.allow_free_operation:
            return False
        if control_name == step.target_control:
            return False
        logger.info("Wrong control %s pressed on %s (expected %s)", control_name, step.id, step.target_control)
        self._presentation.show_mistake(wrong_selection_feedback())
        return True

    def acknowledge(self, step_id: Optional[str] = None) -> bool:
        """Manual "next": completes the step only if it waits for the advance sentinel.

        The step must be the one the overlay is presenting, or the one named
        by ``step_id`` when the caller knows which view it was pressed on. A
        second press that arrives after the first already advanced is dropped.
        """
        state = self._state
        if state.status is not EngineStatus.SHOWING_STEP:
            return False
        if state.awaiting_feedback:
            return self.acknowledge_feedback()
        step = self.current_step
        sentinel = self._settings.manual_advance_event
        if step is None or step.completion_event != sentinel:
            return False
        if step_id is not None and step_id != step.id:
            logger.debug("Stale advance for %s while %s is current", step_id, step.id)
            return False
        if step_id is None and not self._is_presented(step):
            logger.debug("Advance ignored: %s has not been presented", step.id)
            return False
        self._complete_current_step(step, sentinel, None)
        return True

    def overlay_clicked(self, step_id: Optional[str] = None) -> bool:
        state = self._state
        if state.status is not EngineStatus.SHOWING_STEP:
            return False
        if state.awaiting_feedback:
            return self.acknowledge_feedback()
        step = self.current_step
        if step is None:
            return False
        if step.hide_dialog_on_interact and not self._presentation.dialog_dismissed:
            return self._presentation.dismiss_dialog()
        if not step.is_click:
            return self.acknowledge(step_id)
        return False

    def raise_flag(self, name: str) -> None:
        state = self._state
        state.raised_flags.add(name)
        step = self.current_step
        if state.status is EngineStatus.SHOWING_STEP and not state.awaiting_feedback and step and step.skip_if == name:
            logger.debug("Flag %s skips current step %s", name, step.id)
            self._advance()

    def expects(self, event: str) -> bool:
        if not self._state.active:
            return True
        step = self.current_step
        if step is None:
            return True
        return step.completion_event == event

    def acknowledge_feedback(self, token: Optional[FeedbackToken] = None) -> bool:
        state = self._state
        pending = state.pending_feedback
        if state.status is not EngineStatus.SHOWING_STEP or not state.awaiting_feedback or pending is None:
            logger.debug("No feedback awaiting acknowledgement")
            return False
        if pending.cancelled or (token is not None and token is not pending):
            logger.debug("Stale feedback acknowledgement %r", token)
            return False
        pending.cancel()
        state.pending_feedback = None
        state.awaiting_feedback = False
        state.feedback_message = None
        state.feedback_errors = 0
        self._presentation.hide()
        self._advance()
        return True

    # -- navigation -------------------------------------------------------

    def seek(self, delta: Optional[int] = None, *, step_id: Optional[str] = None) -> bool:
        if not self._state.active:
            return False
        if step_id is not None:
            index = self._script.step_index(step_id)
            if index is None:
                logger.warning("Cannot seek to unknown step %s", step_id)
                return False
        elif delta is not None:
            index = max(0, min(self._state.current_index + delta, len(self._script) - 1))
        else:
            raise TypeError("seek() needs either a delta or a step_id")
        self._move_to(index)
        return True

    def next_step(self) -> bool:
        return self.seek(1)

    def previous_step(self) -> bool:
        return self.seek(-1)

    def jump_to(self, step_id: str) -> bool:
        return self.seek(step_id=step_id)

    def force_advance(self) -> bool:
        state = self._state
        if not state.active:
            return False
        step = self.current_step
        if step is None:
            self._finish(TutorialOutcome.COMPLETED_NORMALLY)
            return True
        self._cancel_feedback()
        self._mark_completed(step)
        self._advance()
        return True

    def refresh_pointer(self) -> Optional[PointerPlacement]:
        if self._state.status is not EngineStatus.SHOWING_STEP:
            return None
        step = self.current_step
        if step is None or not step.target_control:
            return None
        return self._presentation.update_pointer(step, self._registry.bounds_of(step.target_control))

    # -- queries ----------------------------------------------------------

    def progress(self) -> int:
        total = len(self._script) if self._script else 0
        if total == 0:
            return 100
        return int(min(self._state.current_index, total) / total * 100)

    def current_phase(self) -> Optional[str]:
        step = self.current_step
        if step is None:
            return None
        return self._script.phases.get(step.phase)

    def is_previously_completed(self) -> bool:
        return self._store.is_completed()

    def reset_completion(self) -> None:
        self._store.reset()

    def snapshot(self) -> Dict[str, object]:
        state = self._state
        step = self.current_step
        return {
            "tutorial": self._script.id if self._script else None,
            "status": state.status.value,
            "step": step.id if step else None,
            "index": state.current_index,
            "total": len(self._script) if self._script else 0,
            "phase": self.current_phase(),
            "progress": self.progress(),
            "mistakes": state.mistake_count,
            "completed": list(state.completed_steps),
            "awaitingFeedback": state.awaiting_feedback,
            "outcome": state.outcome.value if state.outcome else None,
        }

    # -- internals --------------------------------------------------------

    def _script_id(self) -> str:
        return self._script.id if self._script else ""

    def _current_step_id(self) -> Optional[str]:
        step = self.current_step
        return step.id if step else None

    def _is_presented(self, step: StepDescriptor) -> bool:
        view = self._presentation.current_view
        return view is not None and view.step_id == step.id

    def _cancel_pending(self) -> None:
        for call in (self._pending_render, self._pending_settle):
            if call is not None:
                call.cancel()
        self._pending_render = None
        self._pending_settle = None
        self._state.render_generation += 1

    def _cancel_feedback(self) -> None:
        state = self._state
        if state.pending_feedback is not None:
            state.pending_feedback.cancel()
        state.pending_feedback = None
        state.awaiting_feedback = False
        state.feedback_message = None
        state.feedback_errors = 0

    def _mark_completed(self, step: StepDescriptor) -> None:
        state = self._state
        if step.id not in state.completed_steps:
            state.completed_steps.append(step.id)
        self._analytics.track_step_completed(self._script_id(), step.id, state.mistake_count)
        state.mistake_count = 0
        state.highlighted_control = None

    def _complete_current_step(
        self,
        step: StepDescriptor,
        event: str,
        payload: Optional[Mapping[str, Any]],
    ) -> None:
        self._mark_completed(step)
        self._state.last_completion_event = event
        errors = _error_count(payload)
        message = completion_feedback_message(step.completion_feedback, errors)
        if message:
            self._begin_feedback(step, message, errors)
            return
        self._advance()

    def _begin_feedback(self, step: StepDescriptor, message: str, errors: int) -> None:
        state = self._state
        self._cancel_pending()
        state.awaiting_feedback = True
        state.feedback_message = message
        state.feedback_errors = errors
        self._analytics.track_feedback_shown(self._script_id(), step.id, errors)
        self._issue_feedback_prompt()

    def _issue_feedback_prompt(self) -> None:
        state = self._state
        step = self.current_step
        step_id = step.id if step else ""
        token = FeedbackToken(step_id)
        state.pending_feedback = token
        self._presentation.show_feedback(
            FeedbackPrompt(
                token=token,
                step_id=step_id,
                message=state.feedback_message or "",
                speaker=step.speaker if step else None,
                error_count=state.feedback_errors,
            )
        )

    def _register_mistake(self, step: StepDescriptor, event: str) -> None:
        state = self._state
        state.mistake_count += 1
        feedback = escalate(state.mistake_count, step.wrong_answer_hint, self._settings.termination_threshold)
        logger.info(
            "Mismatch on %s: got %s, expected %s (mistake %d)",
            step.id,
            event,
            step.completion_event,
            state.mistake_count,
        )
        self._analytics.track_mistake(self._script_id(), step.id, event, state.mistake_count, feedback.tier.value)
        if feedback.terminates:
            logger.warning("Tutorial terminated after %d mistakes on %s", state.mistake_count, step.id)
            self._presentation.show_termination(TERMINATION_NOTICE)
            self._finish(TutorialOutcome.FORCED_TERMINATION)
            return
        self._presentation.show_mistake(feedback)

    def _advance(self) -> None:
        state = self._state
        state.current_index += 1
        state.mistake_count = 0
        self._enter_current_step()

    def _enter_current_step(self) -> None:
        state = self._state
        script = self._script
        while True:
            step = self.current_step
            if step is None:
                self._finish(TutorialOutcome.COMPLETED_NORMALLY)
                return
            if step.skip_if and step.skip_if in state.raised_flags:
                logger.debug("Skipping %s because %s is raised", step.id, step.skip_if)
                state.current_index += 1
                continue
            break
        self._analytics.track_step_engaged(script.id, step.id, step.phase)
        self._show_current_step()

    def _move_to(self, index: int) -> None:
        state = self._state
        leaving = self.current_step
        self._cancel_pending()
        self._cancel_feedback()
        state.current_index = index
        state.mistake_count = 0
        state.highlighted_control = None
        state.last_completion_event = None
        step = self.current_step
        self._analytics.track_seek(self._script_id(), leaving.id if leaving else None, step.id if step else None)
        if state.status is EngineStatus.SHOWING_STEP and step is not None:
            self._analytics.track_step_engaged(self._script_id(), step.id, step.phase)
            self._show_current_step()

    def _show_current_step(self) -> None:
        state = self._state
        if state.status is not EngineStatus.SHOWING_STEP or state.awaiting_feedback:
            return
        step = self.current_step
        if step is None:
            return
        self._apply_gate(step)
        state.highlighted_control = step.target_control
        self._cancel_pending()
        if step.action is StepAction.WAIT:
            self._presentation.hide()
            return
        if step.screen and step.screen not in state.live_screens:
            logger.debug("Screen %s not ready for %s; waiting", step.screen, step.id)
            self._presentation.hide()
            return
        generation = state.render_generation
        self._pending_render = self._scheduler.call_later(
            self._settings.render_delay_ms,
            lambda: self._render(generation),
        )

    def _render(self, generation: int) -> None:
        state = self._state
        if generation != state.render_generation:
            logger.debug("Dropping stale render")
            return
        self._pending_render = None
        if state.status is not EngineStatus.SHOWING_STEP or state.awaiting_feedback:
            return
        step = self.current_step
        if step is None:
            return
        bounds = None
        if step.target_control:
            bounds = self._registry.bounds_of(step.target_control)
            if bounds is None:
                logger.debug("Target %s of %s is not available yet", step.target_control, step.id)
        self._presentation.show(step, bounds)

    def _on_screen_settled(self, index: int) -> None:
        self._pending_settle = None
        state = self._state
        if state.status is EngineStatus.SHOWING_STEP and state.current_index == index:
            self._show_current_step()

    def _on_control_registered(self, name: str) -> None:
        state = self._state
        if not state.active:
            return
        step = self.current_step
        control = self._registry.resolve(name)
        if step is None or control is None:
            return
        enabled = decide(step, name, self._registry.screen_of(name), self._script.gating)
        _set_input_enabled(control, enabled)
        if name == state.highlighted_control and state.status is EngineStatus.SHOWING_STEP:
            self._presentation.update_pointer(step, self._registry.bounds_of(name))

    def _apply_gate(self, step: StepDescriptor) -> None:
        policy = self._script.gating
        for name, screen in self._registry.live_items().items():
            control = self._registry.resolve(name)
            if control is not None:
                _set_input_enabled(control, decide(step, name, screen, policy))

    def _finish(self, outcome: TutorialOutcome) -> None:
        state = self._state
        if state.status is EngineStatus.FINISHED:
            return
        self._cancel_pending()
        self._cancel_feedback()
        state.status = EngineStatus.FINISHED
        state.outcome = outcome
        state.highlighted_control = None
        for _, control in self._registry.items():
            _set_input_enabled(control, True)
        self._registry.clear()
        self._presentation.hide()
        if outcome is TutorialOutcome.COMPLETED_NORMALLY:
            self._store.mark_completed()
        self._analytics.track_tutorial_finished(self._script_id(), outcome.value, len(state.completed_steps))
        logger.info("Tutorial %s finished: %s", self._script_id(), outcome.value)
        if self.on_finish is not None:
            self.on_finish(outcome)


__all__ = [
    "EngineStatus",
    "TutorialOutcome",
    "EngineState",
    "TutorialEngine",
]
