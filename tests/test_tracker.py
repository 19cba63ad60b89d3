"""
Tests for the information tracker: coverage, completeness and gaps.
"""

import json

import pytest

from case_intake.schemas.phases import PHASE_ORDER, TOPIC_SCHEMA, Phase
from case_intake.tracker import (
    Confidence,
    InformationTracker,
    calculate_completeness,
    confidence_for_length,
    identify_gaps,
    initialize_tracker,
    newly_covered,
    refresh_gaps,
    update_tracker,
)

TOTAL_TOPICS = sum(len(topics) for topics in TOPIC_SCHEMA.values())

LONG_OPENING = (
    "My landlord refused to return my deposit after I moved out of the apartment "
    "in June. I cleaned everything and handed over the keys on time, but he claims "
    "the floors were damaged. He has stopped answering my calls and the company that "
    "manages the building says it is not their problem."
)


# ═══════════════════════════════════════════════════════════════
# INITIALIZATION
# ═══════════════════════════════════════════════════════════════

class TestInitialize:

    def test_starts_empty(self):
        tracker = initialize_tracker()
        assert tracker.completeness == 0
        assert tracker.gaps.is_empty()

    def test_every_confidence_is_none(self):
        tracker = initialize_tracker()
        for records in tracker.topics.values():
            for record in records.values():
                assert record.confidence == Confidence.NONE
                assert not record.covered

    def test_full_schema_present(self):
        tracker = initialize_tracker()
        assert list(tracker.topics) == PHASE_ORDER
        for phase in PHASE_ORDER:
            assert list(tracker.topics[phase]) == [t.key for t in TOPIC_SCHEMA[phase]]

    def test_labels_are_readable(self):
        tracker = initialize_tracker()
        assert tracker.get_topic("details", "howItHappened").label == "How It Happened"
        assert tracker.get_topic("timeline", "startDate").label == "Start Date"


# ═══════════════════════════════════════════════════════════════
# UPDATES
# ═══════════════════════════════════════════════════════════════

class TestUpdate:

    def test_short_date_answer_covers_start_date(self):
        tracker = update_tracker(initialize_tracker(), Phase.TIMELINE, "March 2023")
        record = tracker.get_topic(Phase.TIMELINE, "startDate")
        assert record.covered
        assert record.confidence == Confidence.LOW

    def test_low_confidence_moves_gap_to_important(self):
        tracker = update_tracker(initialize_tracker(), Phase.TIMELINE, "March 2023")
        assert "Start Date (timeline)" not in tracker.gaps.critical
        assert "More details needed: Start Date (timeline)" in tracker.gaps.important

    def test_confidence_bands(self):
        assert confidence_for_length(250) == Confidence.HIGH
        assert confidence_for_length(150) == Confidence.MEDIUM
        assert confidence_for_length(20) == Confidence.LOW

    def test_long_answer_gets_high_confidence(self):
        assert len(LONG_OPENING) > 200
        tracker = update_tracker(initialize_tracker(), Phase.OPENING, LONG_OPENING)
        assert tracker.get_topic(Phase.OPENING, "involvedParties").confidence == Confidence.HIGH
        assert tracker.get_topic(Phase.OPENING, "mainIssue").confidence == Confidence.HIGH

    def test_latest_matching_answer_sets_confidence(self):
        tracker = update_tracker(initialize_tracker(), Phase.OPENING, LONG_OPENING)
        tracker = update_tracker(tracker, Phase.OPENING, "The landlord, yes.")
        record = tracker.get_topic(Phase.OPENING, "involvedParties")
        assert record.covered
        assert record.confidence == Confidence.LOW

    def test_coverage_is_never_removed(self):
        tracker = update_tracker(initialize_tracker(), Phase.OPENING, LONG_OPENING)
        tracker = update_tracker(tracker, Phase.OPENING, "ok")
        assert tracker.get_topic(Phase.OPENING, "mainIssue").covered

    def test_input_is_not_mutated(self):
        original = initialize_tracker()
        update_tracker(original, Phase.TIMELINE, "March 2023")
        assert original.completeness == 0
        assert not original.get_topic(Phase.TIMELINE, "startDate").covered

    def test_completeness_counts_all_topics(self):
        tracker = update_tracker(initialize_tracker(), Phase.TIMELINE, "March 2023")
        assert tracker.completeness == round(1 / TOTAL_TOPICS * 100)
        assert calculate_completeness(tracker) == tracker.completeness

    def test_completeness_is_non_decreasing(self):
        answers = [
            (Phase.OPENING, LONG_OPENING),
            (Phase.OPENING, "ok"),
            (Phase.TIMELINE, "It started in March 2023, then it got worse"),
            (Phase.TIMELINE, ""),
            (Phase.DETAILS, "I met Anna Berg at the office"),
            (Phase.LEGAL, "I signed a contract as a tenant"),
            (Phase.EVIDENCE, "no"),
        ]
        tracker = initialize_tracker()
        previous = tracker.completeness
        for phase, answer in answers:
            tracker = update_tracker(tracker, phase, answer)
            assert tracker.completeness >= previous
            assert 0 <= tracker.completeness <= 100
            previous = tracker.completeness

    def test_newly_covered(self):
        before = initialize_tracker()
        after = update_tracker(before, Phase.TIMELINE, "March 2023")
        assert newly_covered(before, after, Phase.TIMELINE) == {"startDate"}
        again = update_tracker(after, Phase.TIMELINE, "March 2023")
        assert newly_covered(after, again, Phase.TIMELINE) == set()


# ═══════════════════════════════════════════════════════════════
# GAPS
# ═══════════════════════════════════════════════════════════════

class TestGaps:

    def test_only_phases_reached_are_inspected(self):
        tracker = update_tracker(initialize_tracker(), Phase.OPENING, "ok")
        all_gaps = tracker.gaps.critical + tracker.gaps.important + tracker.gaps.optional
        assert all_gaps
        assert all("(opening)" in gap for gap in all_gaps)

    def test_severity_by_phase_and_requirement(self):
        gaps = identify_gaps(initialize_tracker(), Phase.LEGAL)
        assert "Main Issue (opening)" in gaps.critical
        assert "Start Date (timeline)" in gaps.critical
        assert "How It Happened (details)" in gaps.important
        assert "Legal Relationships (legal)" in gaps.important
        assert "Contracts (legal)" in gaps.optional
        assert "Deadlines (timeline)" in gaps.optional
        assert not any("(evidence)" in gap for gap in gaps.important)

    def test_covered_topics_leave_gaps(self):
        tracker = update_tracker(initialize_tracker(), Phase.OPENING, LONG_OPENING)
        assert not any("(opening)" in gap for gap in tracker.gaps.critical)
        assert not any("(opening)" in gap for gap in tracker.gaps.important)

    def test_refresh_for_new_phase(self):
        tracker = update_tracker(initialize_tracker(), Phase.OPENING, LONG_OPENING)
        assert "Start Date (timeline)" not in tracker.gaps.critical
        refreshed = refresh_gaps(tracker, Phase.TIMELINE)
        assert "Start Date (timeline)" in refreshed.gaps.critical
        assert refreshed.completeness == tracker.completeness


# ═══════════════════════════════════════════════════════════════
# SERIALIZATION
# ═══════════════════════════════════════════════════════════════

class TestSerialization:

    def test_round_trip_through_json(self):
        tracker = update_tracker(initialize_tracker(), Phase.OPENING, LONG_OPENING)
        tracker = update_tracker(tracker, Phase.TIMELINE, "March 2023")

        restored = InformationTracker.from_dict(json.loads(json.dumps(tracker.to_dict())))

        assert restored.completeness == tracker.completeness
        assert restored.gaps == tracker.gaps
        assert restored.topics == tracker.topics
        assert restored.last_updated == tracker.last_updated

    def test_missing_phase_rejected(self):
        data = initialize_tracker().to_dict()
        del data["topics"]["timeline"]
        with pytest.raises(ValueError, match="missing phases"):
            InformationTracker.from_dict(data)

    def test_unknown_topic_rejected(self):
        data = initialize_tracker().to_dict()
        data["topics"]["timeline"]["weather"] = {"label": "Weather", "covered": False, "confidence": "none"}
        with pytest.raises(ValueError, match="do not match the schema"):
            InformationTracker.from_dict(data)

    def test_missing_topic_rejected(self):
        data = initialize_tracker().to_dict()
        del data["topics"]["timeline"]["startDate"]
        with pytest.raises(ValueError, match="do not match the schema"):
            InformationTracker.from_dict(data)


class TestUnknownPhase:

    def test_update_rejects_unknown_phase(self):
        with pytest.raises(ValueError, match="Unknown interview phase"):
            update_tracker(initialize_tracker(), "negotiation", "March 2023")

    def test_gaps_reject_unknown_phase(self):
        with pytest.raises(ValueError):
            identify_gaps(initialize_tracker(), "negotiation")
