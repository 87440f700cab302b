from __future__ import annotations

import gc
import random
import tempfile
import unittest
from pathlib import Path

from analytics import MetricsExporter, TutorialAnalytics
from config import TutorialSettings
from tutorial import (
    CompletionStore,
    DictScriptLoader,
    EngineStatus,
    ManualScheduler,
    RecordingPresenter,
    TutorialEngine,
    TutorialOutcome,
)
from tutorial.feedback import FeedbackTier

SCRIPT = {
    "id": "front_desk",
    "title": "Front desk",
    "phases": {"1": "Basics", "2": "Checks", "3": "Wrap-up"},
    "benignEvents": ["TIMER_UPDATE"],
    "gating": {
        "screenTransitionControls": ["shelf_button", "back_button", "check_button"],
        "groups": [["triage_*"]],
        "alwaysOn": ["medicine_*"],
        "chromeScreens": ["HUDScene"],
    },
    "steps": [
        {"id": "intro", "phase": 1, "screen": "ReceptionScene", "action": "info", "completeOn": "NEXT_CLICK",
         "message": "Welcome", "speaker": "Guide"},
        {"id": "pick", "phase": 1, "screen": "ReceptionScene", "action": "click", "target": "patient_0",
         "completeOn": "PATIENT_CLICKED", "message": "Call the patient", "speaker": "Guide"},
        {"id": "triage", "phase": 1, "screen": "ReceptionScene", "action": "click", "target": "triage_urine_button",
         "completeOn": "TRIAGE_SELECTED", "wrongAnswerHint": "Over 70 counts as elderly", "speaker": "Guide"},
        {"id": "typing", "phase": 2, "screen": "TypingScene", "action": "wait", "completeOn": "TYPING_COMPLETED",
         "completionFeedback": "typing"},
        {"id": "hint_skip", "phase": 2, "screen": "ReceptionScene", "action": "info", "completeOn": "NEXT_CLICK",
         "skipIf": "ERROR_REPORTED"},
        {"id": "report", "phase": 2, "screen": "ReceptionScene", "action": "click", "target": "prescription_item_error",
         "completeOn": "PRESCRIPTION_ERROR_REPORTED", "skipIf": "ERROR_REPORTED"},
        {"id": "go_shelf", "phase": 2, "screen": "ReceptionScene", "action": "click", "target": "shelf_button",
         "completeOn": "SHELF_SCENE_ENTERED"},
        {"id": "free", "phase": 3, "screen": "PaymentScene", "action": "click", "target": "payment_ok_button",
         "completeOn": "PAYMENT_COMPLETED", "allowFreeOperation": True, "hideDialogOnInteract": True},
        {"id": "finish", "phase": 3, "screen": "ReceptionScene", "action": "info", "completeOn": "NEXT_CLICK"},
    ],
}

BRIEFING = {
    "id": "front_desk",
    "steps": [
        {"id": "briefing_1", "phase": 1, "screen": "ReceptionScene", "action": "info", "completeOn": "NEXT_CLICK",
         "message": "Welcome"},
        {"id": "briefing_2", "phase": 1, "screen": "ReceptionScene", "action": "info", "completeOn": "NEXT_CLICK",
         "message": "Patients queue on the left"},
        {"id": "pay", "phase": 1, "screen": "PaymentScene", "action": "click", "target": "payment_ok_button",
         "completeOn": "PAYMENT_COMPLETED"},
    ],
}

HAPPY_PATH = [
    "NEXT_CLICK",
    "PATIENT_CLICKED",
    "TRIAGE_SELECTED",
    "TYPING_COMPLETED",
    "NEXT_CLICK",
    "PRESCRIPTION_ERROR_REPORTED",
    "SHELF_SCENE_ENTERED",
    "PAYMENT_COMPLETED",
    "NEXT_CLICK",
]


class FakeScreen:
    def __init__(self, key: str) -> None:
        self.key = key
        self.is_live = True


class FakeControl:
    def __init__(self, screen: FakeScreen, x: float = 100, y: float = 200, width: float = 80, height: float = 40) -> None:
        self.screen = screen
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.input_enabled = True


class PlainButton:
    def __init__(self) -> None:
        self.input_enabled = True


class TutorialEngineTestCase(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.settings = TutorialSettings(script_id="front_desk", storage_path=Path(tmp.name) / "progress.json")
        self.store = CompletionStore(self.settings.storage_path)
        self.metrics = MetricsExporter()
        self.presenter = RecordingPresenter()
        self.outcomes = []
        self.engine = self._engine()
        self.reception = FakeScreen("ReceptionScene")
        self.hud = FakeScreen("HUDScene")

    def _engine(self, loader=None, **kwargs) -> TutorialEngine:
        kwargs.setdefault("presenter", self.presenter)
        engine = TutorialEngine(
            loader or DictScriptLoader({"front_desk": SCRIPT}),
            store=self.store,
            analytics=TutorialAnalytics(exporter=self.metrics),
            settings=self.settings,
            on_finish=self.outcomes.append,
            **kwargs,
        )
        for screen in ("ReceptionScene", "PaymentScene"):
            engine.notify_screen_ready(screen)
        return engine

    def _control(self, name: str, screen: FakeScreen = None, **geometry) -> FakeControl:
        screen = screen or self.reception
        control = FakeControl(screen, **geometry)
        self.engine.register_control(name, control, screen.key)
        return control

    def _mistake_tiers(self):
        return [feedback.tier for feedback in self.presenter.of_kind("show_mistake")]

    # -- progression -------------------------------------------------------

    def test_mismatch_on_click_step_then_advance(self) -> None:
        self.engine.start()
        self.assertEqual(self.engine.current_step.id, "intro")
        self.assertTrue(self.engine.acknowledge())
        self.assertEqual(self.engine.current_step.id, "pick")

        self.assertFalse(self.engine.report_event("WRONG_EVENT"))
        self.assertEqual(self.engine.state.mistake_count, 1)
        self.assertEqual(self._mistake_tiers(), [FeedbackTier.RETRY])

        self.assertTrue(self.engine.report_event("PATIENT_CLICKED"))
        state = self.engine.state
        self.assertEqual(state.current_index, 2)
        self.assertEqual(state.mistake_count, 0)
        self.assertEqual(state.completed_steps, ["intro", "pick"])

    def test_info_and_benign_events_are_not_mistakes(self) -> None:
        self.engine.start()
        self.engine.report_event("SOMETHING_ELSE")
        self.assertEqual(self.engine.state.mistake_count, 0)
        self.engine.acknowledge()
        self.engine.report_event("TIMER_UPDATE")
        self.assertEqual(self.engine.state.mistake_count, 0)
        self.assertEqual(self.presenter.of_kind("show_mistake"), [])

    def test_acknowledge_only_completes_manual_steps(self) -> None:
        self.engine.start(from_index=1)
        self.assertFalse(self.engine.acknowledge())
        self.assertEqual(self.engine.current_step.id, "pick")

    def test_full_walk_completes_and_persists(self) -> None:
        self.engine.start()
        for event in HAPPY_PATH:
            self.assertTrue(self.engine.report_event(event), event)
        state = self.engine.state
        self.assertEqual(state.status, EngineStatus.FINISHED)
        self.assertEqual(state.outcome, TutorialOutcome.COMPLETED_NORMALLY)
        self.assertEqual(len(state.completed_steps), len(HAPPY_PATH))
        self.assertEqual(self.outcomes, [TutorialOutcome.COMPLETED_NORMALLY])
        self.assertTrue(self.engine.is_previously_completed())
        self.assertEqual(self.engine.progress(), 100)

        counts = self.metrics.export_counts()
        self.assertEqual(counts["tutorial_started:front_desk"], 1)
        self.assertEqual(counts["tutorial_step_completed:front_desk"], len(HAPPY_PATH))
        self.assertEqual(counts["tutorial_finished:front_desk"], 1)

    def test_duplicate_completion_event_is_absorbed_once(self) -> None:
        self.engine.start(from_index=1)
        self.engine.report_event("PATIENT_CLICKED")
        self.assertEqual(self.engine.current_step.id, "triage")

        self.assertFalse(self.engine.report_event("PATIENT_CLICKED"))
        self.assertEqual(self.engine.state.mistake_count, 0)

        self.engine.report_event("UNRELATED")
        self.assertEqual(self.engine.state.mistake_count, 1)
        self.engine.report_event("PATIENT_CLICKED")
        self.assertEqual(self.engine.state.mistake_count, 2)

    def test_random_event_storm_never_moves_backwards(self) -> None:
        rng = random.Random(20240611)
        pool = sorted(set(HAPPY_PATH)) + ["NOISE_A", "NOISE_B", "TIMER_UPDATE"]
        self.engine.start()
        last_index = 0
        for _ in range(2000):
            if not self.engine.is_active:
                break
            if rng.random() < 0.05:
                self.engine.raise_flag("ERROR_REPORTED")
            else:
                self.engine.report_event(rng.choice(pool))
            state = self.engine.state
            self.assertGreaterEqual(state.current_index, last_index)
            if state.active:
                self.assertLess(state.mistake_count, self.settings.termination_threshold)
            last_index = state.current_index
        self.assertLessEqual(len(self.outcomes), 1)

    # -- escalation --------------------------------------------------------

    def test_escalation_then_forced_termination(self) -> None:
        self.engine.start(from_index=1)
        for _ in range(5):
            self.engine.report_event("WRONG")
        self.assertEqual(
            self._mistake_tiers(),
            [
                FeedbackTier.RETRY,
                FeedbackTier.RETRY_AGAIN,
                FeedbackTier.STERN,
                FeedbackTier.STERN,
                FeedbackTier.SEVERE,
            ],
        )
        self.assertTrue(self.engine.is_active)

        self.engine.report_event("WRONG")
        state = self.engine.state
        self.assertEqual(state.status, EngineStatus.FINISHED)
        self.assertEqual(state.outcome, TutorialOutcome.FORCED_TERMINATION)
        self.assertEqual(len(self.presenter.of_kind("show_termination")), 1)
        self.assertEqual(self.outcomes, [TutorialOutcome.FORCED_TERMINATION])
        self.assertFalse(self.engine.is_previously_completed())
        self.assertFalse(self.engine.report_event("PATIENT_CLICKED"))

    def test_first_mistake_uses_authored_hint(self) -> None:
        self.engine.start(from_index=2)
        self.engine.report_event("WRONG")
        feedback = self.presenter.of_kind("show_mistake")[0]
        self.assertEqual(feedback.tier, FeedbackTier.HINT)
        self.assertEqual(feedback.message, "Over 70 counts as elderly")

    def test_wrong_selection_is_an_uncounted_nudge(self) -> None:
        self.engine.start(from_index=1)
        self.assertTrue(self.engine.report_wrong_selection("patient_1"))
        self.assertFalse(self.engine.report_wrong_selection("patient_0"))
        self.assertEqual(self.engine.state.mistake_count, 0)
        self.assertEqual(self._mistake_tiers(), [FeedbackTier.RETRY])

    def test_free_operation_suppresses_mistakes_and_gating(self) -> None:
        self.engine.start(from_index=7)
        shelf = self._control("shelf_button")
        numpad = self._control("numpad_1", FakeScreen("PaymentScene"))
        self.engine.report_event("NUMPAD_PRESSED")
        self.assertEqual(self.engine.state.mistake_count, 0)
        self.assertFalse(shelf.input_enabled)
        self.assertTrue(numpad.input_enabled)

        self.assertTrue(self.engine.overlay_clicked())
        self.assertTrue(self.presenter.of_kind("dismiss_dialog"))
        self.assertFalse(self.engine.overlay_clicked())
        self.assertEqual(self.engine.current_step.id, "free")

    # -- gating and registry -----------------------------------------------

    def test_controls_registered_after_step_start_are_gated(self) -> None:
        self.engine.start(from_index=1)
        target = self._control("patient_0")
        other = self._control("patient_1")
        memo = self._control("hud_memo_button", self.hud)
        dictionary = self._control("medicine_list_button")
        shelf = self._control("shelf_button")
        self.assertTrue(target.input_enabled)
        self.assertFalse(other.input_enabled)
        self.assertTrue(memo.input_enabled)
        self.assertTrue(dictionary.input_enabled)
        self.assertFalse(shelf.input_enabled)

    def test_controls_without_screen_attribute_are_gated(self) -> None:
        self.engine.start(from_index=1)
        shelf = PlainButton()
        target = PlainButton()
        self.engine.register_control("shelf_button", shelf, "ReceptionScene")
        self.engine.register_control("patient_0", target, "ReceptionScene")
        self.assertFalse(shelf.input_enabled)
        self.assertTrue(target.input_enabled)
        self.assertIn("shelf_button", self.engine.registry)
        self.assertEqual(self.engine.registry.screen_of("shelf_button"), "ReceptionScene")

        self.engine.notify_screen_closed("ReceptionScene")
        self.assertNotIn("shelf_button", self.engine.registry)

    def test_transition_lock_and_group_siblings(self) -> None:
        shelf = self._control("shelf_button")
        back = self._control("back_button")
        urine = self._control("triage_urine_button")
        none = self._control("triage_none_button")
        self.engine.start(from_index=2)
        self.assertTrue(urine.input_enabled)
        self.assertTrue(none.input_enabled)
        self.assertFalse(shelf.input_enabled)

        self.engine.jump_to("go_shelf")
        self.assertTrue(shelf.input_enabled)
        self.assertFalse(back.input_enabled)
        self.assertFalse(urine.input_enabled)

    def test_finish_reenables_controls_and_clears_registry(self) -> None:
        self.engine.start(from_index=1)
        other = self._control("patient_1")
        self.assertFalse(other.input_enabled)
        self.assertTrue(self.engine.skip())
        self.assertTrue(other.input_enabled)
        self.assertEqual(len(self.engine.registry), 0)
        self.assertFalse(self.presenter.visible)

    def test_pointer_follows_target_bounds(self) -> None:
        target = self._control("patient_0")
        self.engine.start(from_index=1)
        view = self.presenter.last_view
        self.assertEqual(view.step_id, "pick")
        self.assertEqual((view.pointer.x, view.pointer.y), (100, 150))

        target.x = 300
        placement = self.engine.refresh_pointer()
        self.assertEqual(placement.x, 300)
        self.assertEqual(self.presenter.of_kind("update_pointer")[-1], placement)

    def test_late_target_registration_updates_pointer(self) -> None:
        self.engine.start(from_index=1)
        self.assertIsNone(self.presenter.last_view.pointer)
        self._control("patient_0")
        self.assertEqual(len(self.presenter.of_kind("update_pointer")), 1)

    def test_stale_controls_are_treated_as_absent(self) -> None:
        target = self._control("patient_0")
        self.engine.start(from_index=1)
        self.reception.is_live = False
        self.assertIsNone(self.engine.refresh_pointer())
        self.assertNotIn("patient_0", self.engine.registry)
        self.reception.is_live = True

        replacement = self._control("patient_0")
        del target, replacement
        gc.collect()
        self.assertNotIn("patient_0", self.engine.registry)
        self.engine.jump_to("pick")
        self.assertIsNone(self.presenter.last_view.pointer)

    def test_screen_closed_purges_its_controls(self) -> None:
        keep = self._control("hud_memo_button", self.hud)
        closing = [self._control("patient_0"), self._control("patient_1")]
        self.engine.start(from_index=1)
        self.assertTrue(self.presenter.visible)
        removed = self.engine.notify_screen_closed(self.reception)
        self.assertEqual(sorted(removed), ["patient_0", "patient_1"])
        self.assertEqual(self.engine.registry.names(), ["hud_memo_button"])
        self.assertFalse(self.presenter.visible)
        self.assertTrue(keep.input_enabled)

    # -- screens and deferred rendering --------------------------------------

    def test_step_waits_for_its_screen(self) -> None:
        engine = TutorialEngine(
            DictScriptLoader({"front_desk": SCRIPT}),
            presenter=self.presenter,
            store=self.store,
            settings=self.settings,
        )
        engine.start()
        self.assertEqual(self.presenter.of_kind("render"), [])
        engine.notify_screen_ready(self.reception)
        self.assertEqual(self.presenter.last_view.step_id, "intro")

    def test_wait_step_hides_overlay(self) -> None:
        self.engine.start()
        self.assertTrue(self.presenter.visible)
        self.engine.jump_to("typing")
        self.assertFalse(self.presenter.visible)

    def test_superseded_render_is_dropped(self) -> None:
        scheduler = ManualScheduler()
        engine = self._engine(scheduler=scheduler)
        engine.start()
        engine.acknowledge("intro")
        scheduler.advance(self.settings.render_delay_ms)
        self.assertEqual([view.step_id for view in self.presenter.of_kind("render")], ["pick"])

    def test_double_next_before_render_advances_once(self) -> None:
        scheduler = ManualScheduler()
        engine = self._engine(scheduler=scheduler, loader=DictScriptLoader({"front_desk": BRIEFING}))
        engine.start()
        scheduler.flush()
        self.assertTrue(engine.acknowledge())
        self.assertFalse(engine.acknowledge())
        self.assertFalse(engine.report_event("NEXT_CLICK"))
        scheduler.flush()
        self.assertEqual(engine.current_step.id, "briefing_2")
        self.assertEqual([view.step_id for view in self.presenter.of_kind("render")], ["briefing_1", "briefing_2"])

    def test_next_tagged_with_shown_step_is_not_replayed(self) -> None:
        engine = self._engine(loader=DictScriptLoader({"front_desk": BRIEFING}))
        engine.start()
        self.assertTrue(engine.acknowledge("briefing_1"))
        self.assertEqual(self.presenter.last_view.step_id, "briefing_2")
        self.assertFalse(engine.acknowledge("briefing_1"))
        self.assertFalse(engine.overlay_clicked("briefing_1"))
        self.assertEqual(engine.current_step.id, "briefing_2")
        self.assertTrue(engine.overlay_clicked("briefing_2"))
        self.assertEqual(engine.current_step.id, "pay")

    def test_screen_ready_waits_for_settle_delay(self) -> None:
        scheduler = ManualScheduler()
        engine = self._engine(scheduler=scheduler)
        engine.start(from_index=7)
        scheduler.flush()
        rendered = len(self.presenter.of_kind("render"))
        engine.notify_screen_ready("PaymentScene")
        scheduler.advance(self.settings.screen_settle_delay_ms - 1)
        self.assertEqual(len(self.presenter.of_kind("render")), rendered)
        scheduler.advance(1 + self.settings.render_delay_ms)
        self.assertEqual(len(self.presenter.of_kind("render")), rendered + 1)

    def test_overlay_click_advances_info_steps(self) -> None:
        self.engine.start()
        self.assertTrue(self.engine.overlay_clicked())
        self.assertEqual(self.engine.current_step.id, "pick")
        self.assertFalse(self.engine.overlay_clicked())

    # -- feedback ----------------------------------------------------------

    def test_completion_feedback_blocks_until_acknowledged(self) -> None:
        self.engine.start()
        self.engine.jump_to("typing")
        self.engine.report_event("TYPING_COMPLETED", {"errorCount": 2})
        state = self.engine.state
        self.assertTrue(state.awaiting_feedback)
        prompt = self.presenter.of_kind("show_feedback")[-1]
        self.assertIn("two input mistakes", prompt.message)
        self.assertFalse(self.engine.report_event("NEXT_CLICK"))

        self.engine.pause()
        self.assertTrue(prompt.token.cancelled)
        self.engine.resume()
        reissued = self.presenter.of_kind("show_feedback")[-1]
        self.assertIsNot(reissued.token, prompt.token)
        self.assertFalse(self.engine.acknowledge_feedback(prompt.token))

        self.assertTrue(self.engine.acknowledge_feedback(reissued.token))
        self.assertFalse(self.engine.state.awaiting_feedback)
        self.assertEqual(self.engine.current_step.id, "hint_skip")

    def test_clean_completion_skips_feedback(self) -> None:
        self.engine.start()
        self.engine.jump_to("typing")
        self.engine.report_event("TYPING_COMPLETED", {"errorCount": 0})
        self.assertEqual(self.presenter.of_kind("show_feedback"), [])
        self.assertEqual(self.engine.current_step.id, "hint_skip")

    def test_overlay_click_acknowledges_feedback(self) -> None:
        self.engine.start()
        self.engine.jump_to("typing")
        self.engine.report_event("TYPING_COMPLETED", {"error_count": 5})
        self.assertTrue(self.engine.overlay_clicked())
        self.assertEqual(self.engine.current_step.id, "hint_skip")

    # -- flags -------------------------------------------------------------

    def test_raised_flag_skips_steps_on_entry(self) -> None:
        self.engine.start()
        self.engine.jump_to("typing")
        self.engine.raise_flag("ERROR_REPORTED")
        self.engine.report_event("TYPING_COMPLETED")
        state = self.engine.state
        self.assertEqual(self.engine.current_step.id, "go_shelf")
        self.assertNotIn("hint_skip", state.completed_steps)
        self.assertNotIn("report", state.completed_steps)

    def test_raising_flag_on_current_step_moves_past_it(self) -> None:
        self.engine.start()
        self.engine.jump_to("hint_skip")
        self.engine.raise_flag("ERROR_REPORTED")
        self.assertEqual(self.engine.current_step.id, "go_shelf")

    def test_flag_raised_while_paused_skips_on_resume(self) -> None:
        self.engine.start()
        self.engine.jump_to("hint_skip")
        self.engine.pause()
        self.engine.raise_flag("ERROR_REPORTED")
        self.assertEqual(self.engine.current_step.id, "hint_skip")
        self.engine.resume()
        self.assertEqual(self.engine.current_step.id, "go_shelf")
        self.assertEqual(self.presenter.last_view.step_id, "go_shelf")
        self.assertNotIn("hint_skip", self.engine.state.completed_steps)

    def test_seek_lands_on_flagged_step(self) -> None:
        self.engine.start()
        self.engine.raise_flag("ERROR_REPORTED")
        self.engine.jump_to("report")
        self.assertEqual(self.engine.current_step.id, "report")

    # -- navigation and lifecycle -------------------------------------------

    def test_seek_clamps_and_reports_unknown_targets(self) -> None:
        self.assertFalse(self.engine.next_step())
        self.engine.start()
        self.assertTrue(self.engine.seek(3))
        self.assertEqual(self.engine.state.current_index, 3)
        self.engine.previous_step()
        self.assertEqual(self.engine.state.current_index, 2)
        self.engine.seek(-100)
        self.assertEqual(self.engine.state.current_index, 0)
        self.engine.seek(100)
        self.assertEqual(self.engine.current_step.id, "finish")
        with self.assertLogs("tutorial.engine", level="WARNING"):
            self.assertFalse(self.engine.jump_to("does_not_exist"))
        with self.assertRaises(TypeError):
            self.engine.seek()
        self.assertEqual(self.engine.state.completed_steps, [])

    def test_force_advance_marks_step_completed(self) -> None:
        self.engine.start(from_index=1)
        self.assertTrue(self.engine.force_advance())
        self.assertEqual(self.engine.state.completed_steps, ["pick"])
        self.assertEqual(self.engine.current_step.id, "triage")

    def test_skip_does_not_persist_completion(self) -> None:
        self.engine.start()
        self.assertTrue(self.engine.skip())
        self.assertFalse(self.engine.skip())
        self.assertEqual(self.engine.state.outcome, TutorialOutcome.SKIPPED)
        self.assertEqual(self.outcomes, [TutorialOutcome.SKIPPED])
        self.assertFalse(self.engine.is_previously_completed())

    def test_force_complete_persists_completion(self) -> None:
        self.engine.start()
        self.assertTrue(self.engine.force_complete())
        self.assertEqual(self.outcomes, [TutorialOutcome.COMPLETED_NORMALLY])
        self.assertTrue(CompletionStore(self.settings.storage_path).is_completed())
        self.engine.reset_completion()
        self.assertFalse(self.engine.is_previously_completed())

    def test_pause_blocks_events_until_resume(self) -> None:
        self.engine.start(from_index=1)
        self.engine.pause()
        self.assertFalse(self.presenter.visible)
        self.assertFalse(self.engine.report_event("PATIENT_CLICKED"))
        self.assertEqual(self.engine.state.status, EngineStatus.PAUSED)
        self.engine.resume()
        self.assertTrue(self.presenter.visible)
        self.assertTrue(self.engine.report_event("PATIENT_CLICKED"))

    def test_expects_and_snapshot(self) -> None:
        self.assertTrue(self.engine.expects("ANYTHING"))
        self.engine.start(from_index=3)
        self.assertTrue(self.engine.expects("TYPING_COMPLETED"))
        self.assertFalse(self.engine.expects("NEXT_CLICK"))
        snapshot = self.engine.snapshot()
        self.assertEqual(snapshot["tutorial"], "front_desk")
        self.assertEqual(snapshot["step"], "typing")
        self.assertEqual(snapshot["phase"], "Checks")
        self.assertEqual(snapshot["progress"], 33)
        self.assertEqual(snapshot["total"], len(SCRIPT["steps"]))
        self.assertEqual(snapshot["status"], "showing_step")
        self.assertIsNone(snapshot["outcome"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
