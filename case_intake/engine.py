"""
Interview Engine - per-turn decision logic for case intake conversations.

For every user answer the engine:
1. Assesses the answer's quality
2. Updates the information tracker (coverage, completeness, gaps)
3. Decides whether the current phase is finished
4. Proposes follow-up questions and whether to ask one right now

process_turn() is a pure function over the conversation state; InterviewGuide
wraps it for callers that keep one conversation in memory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from .branching.analyzer import (
    AnswerQualityAnalyzer,
    AnswerQualityAssessment,
    FollowUpQuestion,
    QualityMetrics,
    initialize_quality_metrics,
    update_quality_metrics,
)
from .config import DEFAULT_CONFIG, EngineConfig
from .phase_machine import PhaseProgress, advance, record_answer, start_progress, transition_reason
from .schemas.phases import Phase, required_topics
from .tracker import (
    InformationTracker,
    initialize_tracker,
    newly_covered,
    refresh_gaps,
    update_tracker,
)

logger = logging.getLogger(__name__)


@dataclass
class TurnInput:
    """Everything the engine needs to process one answer."""
    answer_text: str
    current_phase: Optional[Phase] = None   # Defaults to progress.current_phase
    preceding_question: str = ""
    tracker: InformationTracker = field(default_factory=initialize_tracker)
    progress: PhaseProgress = field(default_factory=start_progress)
    consecutive_follow_ups: int = 0
    metrics: QualityMetrics = field(default_factory=initialize_quality_metrics)


@dataclass
class TurnResult:
    """Updated conversation state and guidance after one answer."""
    tracker: InformationTracker
    progress: PhaseProgress
    assessment: AnswerQualityAssessment
    follow_ups: list[FollowUpQuestion]
    should_ask_follow_up_now: bool
    phase_transitioned: bool
    new_phase: Optional[Phase]
    consecutive_follow_ups: int
    metrics: QualityMetrics
    transition_reason: Optional[str] = None

    @property
    def next_follow_up(self) -> Optional[FollowUpQuestion]:
        """The follow-up to ask now, if any."""
        if self.should_ask_follow_up_now and self.follow_ups:
            return self.follow_ups[0]
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "tracker": self.tracker.to_dict(),
            "progress": self.progress.to_dict(),
            "assessment": self.assessment.to_dict(),
            "follow_ups": [f.to_dict() for f in self.follow_ups],
            "should_ask_follow_up_now": self.should_ask_follow_up_now,
            "phase_transitioned": self.phase_transitioned,
            "new_phase": self.new_phase.value if self.new_phase else None,
            "consecutive_follow_ups": self.consecutive_follow_ups,
            "metrics": self.metrics.to_dict(),
            "transition_reason": self.transition_reason,
        }


def _missing_required(tracker: InformationTracker, phase: Phase) -> list[str]:
    covered = {
        key for key, record in tracker.topics[phase].items()
        if record.is_counted
    }
    return [key for key in required_topics(phase) if key not in covered]


def process_turn(turn: TurnInput, config: Optional[EngineConfig] = None) -> TurnResult:
    """
    Process one user answer.

    Args:
        turn: The answer plus the conversation state before it
        config: Engine configuration (defaults to DEFAULT_CONFIG)

    Returns:
        TurnResult with fresh tracker, progress and metrics; the inputs are
        left untouched
    """
    config = config or DEFAULT_CONFIG
    analyzer = AnswerQualityAnalyzer(config)
    answer = turn.answer_text or ""

    phase = Phase.parse(turn.current_phase) if turn.current_phase is not None else turn.progress.current_phase
    if phase != turn.progress.current_phase:
        raise ValueError(
            f"Turn phase {phase.value!r} does not match progress phase "
            f"{turn.progress.current_phase.value!r}"
        )

    # 1. Quality
    assessment = analyzer.assess(answer, phase, turn.preceding_question)

    # 2. Coverage
    tracker = update_tracker(turn.tracker, phase, answer, config)
    new_topics = newly_covered(turn.tracker, tracker, phase)

    # 3. New information proxy
    has_new_information = bool(new_topics) or len(answer.strip()) > config.new_information_length

    # 4. Transition is judged on the count before this answer
    reason = transition_reason(turn.progress, len(answer.strip()), has_new_information, config)
    progress = record_answer(
        turn.progress,
        covered_topics=tracker.covered_topic_keys(phase),
        missing_info=_missing_required(tracker, phase),
    )

    # 5. Advance (closing is terminal)
    if progress.is_final_phase:
        reason = None
    phase_transitioned = False
    new_phase = None
    if reason is not None:
        progress = advance(progress, reason)
        phase_transitioned = True
        new_phase = progress.current_phase
        tracker = refresh_gaps(tracker, new_phase)
        progress = replace(
            progress,
            covered_topics=frozenset(tracker.covered_topic_keys(new_phase)),
            missing_info=_missing_required(tracker, new_phase),
        )

    # 6. Follow-ups for the phase the answer was given in
    follow_ups = analyzer.generate_follow_up_questions(assessment, phase, answer)
    ask_now = analyzer.should_ask_follow_up_now(assessment, turn.consecutive_follow_ups)
    follow_up_asked = ask_now and bool(follow_ups)
    consecutive = turn.consecutive_follow_ups + 1 if follow_up_asked else 0

    # 7. Metrics
    metrics = update_quality_metrics(turn.metrics, assessment, follow_up_asked)

    logger.debug(
        "Turn in %s: quality=%s new_topics=%s follow_up=%s transitioned=%s",
        phase.value, assessment.quality.value, sorted(new_topics), follow_up_asked, phase_transitioned,
    )

    return TurnResult(
        tracker=tracker,
        progress=progress,
        assessment=assessment,
        follow_ups=follow_ups,
        should_ask_follow_up_now=ask_now,
        phase_transitioned=phase_transitioned,
        new_phase=new_phase,
        consecutive_follow_ups=consecutive,
        metrics=metrics,
        transition_reason=reason,
    )


class InterviewGuide:
    """
    Holds one conversation's state and threads it through process_turn().

    Usage:
        guide = InterviewGuide()
        result = guide.process_answer("My landlord kept my deposit...", "What happened?")
        if result.next_follow_up:
            ask(result.next_follow_up.question)
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        tracker: Optional[InformationTracker] = None,
        progress: Optional[PhaseProgress] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.tracker = tracker or initialize_tracker()
        self.progress = progress or start_progress()
        self.consecutive_follow_ups = 0
        self.metrics = initialize_quality_metrics()
        self.last_result: Optional[TurnResult] = None

    @property
    def current_phase(self) -> Phase:
        return self.progress.current_phase

    def reset(self):
        """Reset state for a new conversation."""
        self.tracker = initialize_tracker()
        self.progress = start_progress()
        self.consecutive_follow_ups = 0
        self.metrics = initialize_quality_metrics()
        self.last_result = None

    def process_answer(self, answer_text: str, preceding_question: str = "") -> TurnResult:
        """Process a user answer given in the current phase."""
        result = process_turn(
            TurnInput(
                answer_text=answer_text,
                current_phase=self.current_phase,
                preceding_question=preceding_question,
                tracker=self.tracker,
                progress=self.progress,
                consecutive_follow_ups=self.consecutive_follow_ups,
                metrics=self.metrics,
            ),
            self.config,
        )
        self.tracker = result.tracker
        self.progress = result.progress
        self.consecutive_follow_ups = result.consecutive_follow_ups
        self.metrics = result.metrics
        self.last_result = result
        return result

    def get_summary(self) -> dict[str, Any]:
        """Get a summary of the conversation so far."""
        return {
            "phase": self.progress.get_progress(),
            "completeness": self.tracker.completeness,
            "gaps": self.tracker.gaps.to_dict(),
            "metrics": self.metrics.to_dict(),
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "tracker": self.tracker.to_dict(),
            "progress": self.progress.to_dict(),
            "consecutive_follow_ups": self.consecutive_follow_ups,
            "metrics": self.metrics.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], config: Optional[EngineConfig] = None) -> "InterviewGuide":
        """Restore a guide saved with to_dict()."""
        guide = cls(
            config=config,
            tracker=InformationTracker.from_dict(data["tracker"]),
            progress=PhaseProgress.from_dict(data["progress"]),
        )
        guide.consecutive_follow_ups = int(data.get("consecutive_follow_ups", 0))
        if "metrics" in data:
            guide.metrics = QualityMetrics.from_dict(data["metrics"])
        return guide
