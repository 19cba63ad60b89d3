"""
End-to-end tests for per-turn processing.
"""

import json

import pytest

from case_intake.engine import InterviewGuide, TurnInput, process_turn
from case_intake.phase_machine import PhaseProgress
from case_intake.schemas.phases import Phase
from case_intake.tracker import initialize_tracker

FIRST_ANSWER = (
    "My landlord refused to give back my deposit after I moved out of the "
    "apartment, and he has stopped answering my calls."
)
SECOND_ANSWER = (
    "The apartment is in a building he owns downtown and I lived there for "
    "three years without any problems at all."
)


def guide_in_timeline() -> InterviewGuide:
    guide = InterviewGuide()
    guide.process_answer(FIRST_ANSWER, "Can you tell me what happened?")
    guide.process_answer(SECOND_ANSWER, "Can you tell me more?")
    guide.process_answer("No.", "Anything else?")
    guide.process_answer("Nothing more.", "Anything else at all?")
    return guide


# ═══════════════════════════════════════════════════════════════
# PHASE FLOW
# ═══════════════════════════════════════════════════════════════

class TestPhaseFlow:

    def test_opening_advances_after_short_answers(self):
        guide = InterviewGuide()
        results = [
            guide.process_answer(FIRST_ANSWER, "Can you tell me what happened?"),
            guide.process_answer(SECOND_ANSWER, "Can you tell me more?"),
            guide.process_answer("No.", "Anything else?"),
            guide.process_answer("Nothing more.", "Anything else at all?"),
        ]

        assert [r.phase_transitioned for r in results] == [False, False, False, True]
        assert results[-1].new_phase == Phase.TIMELINE
        assert results[-1].transition_reason == "No new information in latest answer"
        assert guide.current_phase == Phase.TIMELINE
        assert guide.progress.questions_in_phase == 0
        assert guide.progress.phase_history == [Phase.OPENING, Phase.TIMELINE]

    def test_gaps_refreshed_for_new_phase(self):
        guide = guide_in_timeline()
        assert "Start Date (timeline)" in guide.tracker.gaps.critical

    def test_date_answer_clears_critical_gap(self):
        guide = guide_in_timeline()
        result = guide.process_answer("March 2023", "When did this start?")

        assert result.tracker.get_topic(Phase.TIMELINE, "startDate").covered
        assert "Start Date (timeline)" not in result.tracker.gaps.critical
        assert not result.phase_transitioned

    def test_counter_before_minimum(self):
        result = process_turn(TurnInput(answer_text=FIRST_ANSWER))
        assert result.progress.questions_in_phase == 1
        assert result.progress.current_phase == Phase.OPENING
        assert result.new_phase is None

    def test_closing_is_terminal(self):
        progress = PhaseProgress(
            current_phase=Phase.CLOSING,
            questions_in_phase=10,
            phase_history=list(Phase),
        )
        result = process_turn(TurnInput(answer_text="ok", progress=progress))
        assert not result.phase_transitioned
        assert result.new_phase is None
        assert result.transition_reason is None
        assert result.progress.current_phase == Phase.CLOSING
        assert result.progress.questions_in_phase == 11

    def test_phase_mismatch_raises(self):
        with pytest.raises(ValueError):
            process_turn(TurnInput(answer_text="March 2023", current_phase=Phase.TIMELINE))

    def test_unknown_phase_raises(self):
        with pytest.raises(ValueError):
            process_turn(TurnInput(answer_text="ok", current_phase="negotiation"))


# ═══════════════════════════════════════════════════════════════
# FOLLOW-UPS
# ═══════════════════════════════════════════════════════════════

class TestFollowUpFlow:

    def test_weak_answer_asks_follow_up(self):
        result = process_turn(TurnInput(answer_text="ok"))
        assert result.should_ask_follow_up_now
        assert result.next_follow_up is result.follow_ups[0]
        assert result.consecutive_follow_ups == 1
        assert result.metrics.follow_ups_asked == 1

    def test_anti_loop_guard(self):
        guide = InterviewGuide()
        results = [guide.process_answer("ok", "What happened?") for _ in range(3)]

        assert [r.should_ask_follow_up_now for r in results] == [True, True, False]
        assert [r.consecutive_follow_ups for r in results] == [1, 2, 0]
        assert results[-1].next_follow_up is None
        assert results[-1].follow_ups

    def test_good_answer_resets_counter(self):
        result = process_turn(TurnInput(answer_text=FIRST_ANSWER, consecutive_follow_ups=1))
        assert not result.should_ask_follow_up_now
        assert result.consecutive_follow_ups == 0

    def test_metrics_accumulate(self):
        guide = guide_in_timeline()
        assert guide.metrics.total_answers == 4
        assert guide.metrics.follow_ups_asked == 1


# ═══════════════════════════════════════════════════════════════
# STATE HANDLING
# ═══════════════════════════════════════════════════════════════

class TestState:

    def test_inputs_are_not_mutated(self):
        tracker = initialize_tracker()
        turn = TurnInput(answer_text=FIRST_ANSWER, tracker=tracker)
        process_turn(turn)
        assert tracker.completeness == 0
        assert turn.progress.questions_in_phase == 0

    def test_persist_and_reload(self):
        guide = guide_in_timeline()
        guide.process_answer("March 2023", "When did this start?")

        restored = InterviewGuide.from_dict(json.loads(json.dumps(guide.to_dict())))

        assert restored.tracker.completeness == guide.tracker.completeness
        assert restored.tracker.gaps == guide.tracker.gaps
        assert restored.current_phase == guide.current_phase
        assert restored.consecutive_follow_ups == guide.consecutive_follow_ups

        after_original = guide.process_answer("Then it got worse", "What happened next?")
        after_restored = restored.process_answer("Then it got worse", "What happened next?")
        assert after_restored.tracker.gaps == after_original.tracker.gaps
        assert after_restored.progress.questions_in_phase == after_original.progress.questions_in_phase

    def test_summary(self):
        guide = guide_in_timeline()
        summary = guide.get_summary()
        assert summary["phase"]["phase"] == "Timeline"
        assert summary["completeness"] == guide.tracker.completeness
        assert "critical" in summary["gaps"]

    def test_reset(self):
        guide = guide_in_timeline()
        guide.reset()
        assert guide.current_phase == Phase.OPENING
        assert guide.tracker.completeness == 0
        assert guide.metrics.total_answers == 0

    def test_result_serializes(self):
        result = process_turn(TurnInput(answer_text="ok"))
        data = json.loads(json.dumps(result.to_dict()))
        assert data["assessment"]["quality"] == "poor"
        assert data["new_phase"] is None
