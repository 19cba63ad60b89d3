"""
Answer quality analysis for case intake interviews.

Scores each answer 0-100 with rule-based deductions, classifies it into a
quality tier, and proposes a small number of clarifying follow-up questions.
Empty answers are never an error: they get the lowest verdict so the caller
can re-ask.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from ..config import DEFAULT_CONFIG, EngineConfig
from ..schemas.phases import Phase
from .topics import DATE_PATTERN, NAME_PAIR_PATTERN, word_pattern

logger = logging.getLogger(__name__)


class AnswerQuality(str, Enum):
    """Quality classification of an answer."""
    EXCELLENT = "excellent"
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    POOR = "poor"
    UNCLEAR = "unclear"

    @property
    def is_weak(self) -> bool:
        return self in (AnswerQuality.POOR, AnswerQuality.UNCLEAR)


class IssueType(str, Enum):
    TOO_SHORT = "too_short"
    TOO_VAGUE = "too_vague"
    MISSING_DETAILS = "missing_details"
    CONTRADICTORY = "contradictory"
    INCOMPLETE = "incomplete"


class IssueSeverity(str, Enum):
    CRITICAL = "critical"
    MODERATE = "moderate"
    MINOR = "minor"


class FollowUpPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    FollowUpPriority.HIGH: 0,
    FollowUpPriority.MEDIUM: 1,
    FollowUpPriority.LOW: 2,
}

_SEVERITY_PRIORITY = {
    IssueSeverity.CRITICAL: FollowUpPriority.HIGH,
    IssueSeverity.MODERATE: FollowUpPriority.MEDIUM,
}


@dataclass(frozen=True)
class QualityIssue:
    """A single problem found in an answer."""
    type: IssueType
    severity: IssueSeverity
    description: str
    suggested_follow_up: str

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "description": self.description,
            "suggested_follow_up": self.suggested_follow_up,
        }


@dataclass
class AnswerQualityAssessment:
    """Complete assessment of one answer."""
    quality: AnswerQuality
    score: int                      # 0-100
    issues: list[QualityIssue] = field(default_factory=list)
    needs_follow_up: bool = False
    confidence: int = 100           # 0-100, how much to trust this assessment

    @property
    def has_critical_issue(self) -> bool:
        return any(i.severity == IssueSeverity.CRITICAL for i in self.issues)

    def to_dict(self) -> dict[str, Any]:
        return {
            "quality": self.quality.value,
            "score": self.score,
            "issues": [i.to_dict() for i in self.issues],
            "needs_follow_up": self.needs_follow_up,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class FollowUpQuestion:
    """A clarifying question to ask before moving on."""
    question: str
    reason: str
    priority: FollowUpPriority
    target_topic: str

    def to_dict(self) -> dict[str, str]:
        return {
            "question": self.question,
            "reason": self.reason,
            "priority": self.priority.value,
            "target_topic": self.target_topic,
        }


@dataclass(frozen=True)
class DetailCheck:
    """
    Phase-specific check for a missing detail.

    Fires when the preceding question asks for the detail and the answer
    does not provide it.
    """
    id: str
    phase: Phase
    question_pattern: str
    is_missing: Callable[[str], bool]
    severity: IssueSeverity
    description: str
    suggested_follow_up: str

    def applies(self, answer: str, question: str) -> bool:
        if not re.search(self.question_pattern, question, re.IGNORECASE):
            return False
        return self.is_missing(answer)


# Token patterns used by the detail checks
LOCATION_PATTERN = word_pattern("at", "in", "on", "street", "building", "office", "address", "city", "town")
AGREEMENT_PATTERN = word_pattern("contract", "agreement", "signed", "terms", "clause", "written")
EVIDENCE_PATTERN = word_pattern(
    "document", "documents", "email", "emails", "text", "texts", "message", "messages",
    "photo", "photos", "video", "videos", "recording", "recordings", "receipt", "receipts",
    "letter", "letters",
)
AMOUNT_PATTERN = (
    r"[$€£]|\bkr\b|\d+\s*(?:dollar|euro|pound|kronor|sek|usd|eur)s?\b"
)
DENIAL_PATTERN = word_pattern("no", "none", "nothing", "don't have", "do not have", "never")


def _has(pattern: str, text: str, flags: int = re.IGNORECASE) -> bool:
    return re.search(pattern, text, flags) is not None


DETAIL_CHECKS: dict[Phase, list[DetailCheck]] = {
    Phase.TIMELINE: [
        DetailCheck(
            id="tl_missing_date",
            phase=Phase.TIMELINE,
            question_pattern=word_pattern("when", "date"),
            is_missing=lambda a: not _has(DATE_PATTERN, a),
            severity=IssueSeverity.CRITICAL,
            description="No specific date or timeframe provided",
            suggested_follow_up=(
                "Can you remember approximately when this happened? "
                "Even a rough timeframe would help."
            ),
        ),
    ],
    Phase.DETAILS: [
        DetailCheck(
            id="dt_missing_name",
            phase=Phase.DETAILS,
            question_pattern=word_pattern("who", "name"),
            is_missing=lambda a: not _has(NAME_PAIR_PATTERN, a, 0) and len(a.strip()) < 50,
            severity=IssueSeverity.MODERATE,
            description="No specific names mentioned",
            suggested_follow_up="Do you know the full name of the person involved?",
        ),
        DetailCheck(
            id="dt_missing_location",
            phase=Phase.DETAILS,
            question_pattern=word_pattern("where", "location"),
            is_missing=lambda a: not _has(LOCATION_PATTERN, a),
            severity=IssueSeverity.MODERATE,
            description="No specific location mentioned",
            suggested_follow_up="Where exactly did this take place?",
        ),
    ],
    Phase.LEGAL: [
        DetailCheck(
            id="lg_missing_agreement",
            phase=Phase.LEGAL,
            question_pattern=word_pattern("contract", "agreement"),
            is_missing=lambda a: not _has(AGREEMENT_PATTERN, a) and len(a.strip()) < 40,
            severity=IssueSeverity.CRITICAL,
            description="No details about legal agreements",
            suggested_follow_up="Was there any written agreement or contract? Even a verbal agreement?",
        ),
    ],
    Phase.EVIDENCE: [
        DetailCheck(
            id="ev_missing_evidence",
            phase=Phase.EVIDENCE,
            question_pattern=word_pattern("document", "documents", "evidence"),
            # Saying there is no evidence is an acceptable answer
            is_missing=lambda a: not _has(EVIDENCE_PATTERN, a) and not _has(DENIAL_PATTERN, a),
            severity=IssueSeverity.MODERATE,
            description="No specific evidence mentioned",
            suggested_follow_up="Do you have any emails, messages, or documents related to this?",
        ),
    ],
    Phase.IMPACT: [
        DetailCheck(
            id="im_missing_amount",
            phase=Phase.IMPACT,
            question_pattern=word_pattern("financial", "financially", "cost", "costs", "money"),
            is_missing=lambda a: not _has(AMOUNT_PATTERN, a) and not _has(DENIAL_PATTERN, a),
            severity=IssueSeverity.MODERATE,
            description="No specific financial amount mentioned",
            suggested_follow_up="Can you estimate the financial impact, even roughly?",
        ),
    ],
}


def _unify_apostrophes(text: str) -> str:
    return text.replace("’", "'")


def _normalize(text: str) -> str:
    """Lowercase and unify typographic apostrophes."""
    return _unify_apostrophes(text).lower()


class AnswerQualityAnalyzer:
    """
    Rule-based answer quality assessment.

    All thresholds and deductions come from an EngineConfig, so they can be
    tuned without touching the rules.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def assess(
        self,
        answer_text: str,
        phase: Union[Phase, str],
        preceding_question: str = "",
    ) -> AnswerQualityAssessment:
        """
        Assess how substantive an answer is.

        Args:
            answer_text: The user's answer
            phase: The phase the answer was given in
            preceding_question: The question that was asked

        Returns:
            AnswerQualityAssessment with tier, score, issues and confidence
        """
        phase = Phase.parse(phase)
        answer = (answer_text or "").strip()
        question = _normalize(preceding_question or "")
        word_count = len(answer.split())

        if not answer:
            return AnswerQualityAssessment(
                quality=AnswerQuality.UNCLEAR,
                score=0,
                issues=[QualityIssue(
                    type=IssueType.TOO_SHORT,
                    severity=IssueSeverity.CRITICAL,
                    description="No answer was given",
                    suggested_follow_up="Could you provide more details about that?",
                )],
                needs_follow_up=True,
                confidence=self._assessment_confidence(answer, word_count),
            )

        issues: list[QualityIssue] = []
        score = 100

        issues_found, deduction = self._check_length(answer)
        issues.extend(issues_found)
        score -= deduction

        issues_found, deduction = self._check_vagueness(_normalize(answer))
        issues.extend(issues_found)
        score -= deduction

        detail_issues = self._check_phase_details(answer, phase, question)
        issues.extend(detail_issues)
        score -= len(detail_issues) * self.config.missing_detail_penalty

        issues_found, deduction = self._check_consistency(answer)
        issues.extend(issues_found)
        score -= deduction

        score = max(0, min(100, score))
        quality = self._quality_tier(score)
        needs_follow_up = quality.is_weak or any(
            i.severity == IssueSeverity.CRITICAL for i in issues
        )

        assessment = AnswerQualityAssessment(
            quality=quality,
            score=score,
            issues=issues,
            needs_follow_up=needs_follow_up,
            confidence=self._assessment_confidence(answer, word_count),
        )
        logger.debug(
            "Answer quality in %s: %s (%d), %d issue(s)",
            phase.value, quality.value, score, len(issues),
        )
        return assessment

    def _check_length(self, answer: str) -> tuple[list[QualityIssue], int]:
        """Length checks; an answer under the short limit is also under the brief limit."""
        issues = []
        deduction = 0
        length = len(answer)

        if length < self.config.short_answer_length:
            issues.append(QualityIssue(
                type=IssueType.TOO_SHORT,
                severity=IssueSeverity.CRITICAL,
                description="Answer is too short to be meaningful",
                suggested_follow_up="Could you provide more details about that?",
            ))
            deduction += self.config.short_answer_penalty

        if length < self.config.brief_answer_length:
            issues.append(QualityIssue(
                type=IssueType.TOO_SHORT,
                severity=IssueSeverity.MODERATE,
                description="Answer lacks sufficient detail",
                suggested_follow_up="Can you tell me more about this?",
            ))
            deduction += self.config.brief_answer_penalty

        return issues, deduction

    def hedging_count(self, answer_lower: str) -> int:
        """Number of distinct hedging markers present."""
        return sum(
            1 for marker in self.config.hedging_markers
            if re.search(word_pattern(marker), answer_lower)
        )

    def _check_vagueness(self, answer_lower: str) -> tuple[list[QualityIssue], int]:
        count = self.hedging_count(answer_lower)

        if count >= self.config.very_vague_count:
            return [QualityIssue(
                type=IssueType.TOO_VAGUE,
                severity=IssueSeverity.MODERATE,
                description="Answer contains many uncertain expressions",
                suggested_follow_up="Can you be more specific about the details you do remember?",
            )], self.config.very_vague_penalty

        if count >= self.config.somewhat_vague_count:
            return [QualityIssue(
                type=IssueType.TOO_VAGUE,
                severity=IssueSeverity.MINOR,
                description="Answer shows some uncertainty",
                suggested_follow_up="What parts are you most certain about?",
            )], self.config.somewhat_vague_penalty

        return [], 0

    def _check_phase_details(self, answer: str, phase: Phase, question: str) -> list[QualityIssue]:
        issues = []
        # Keep case: name detection relies on capitalization
        answer = _unify_apostrophes(answer)
        for check in DETAIL_CHECKS.get(phase, []):
            if check.applies(answer, question):
                issues.append(QualityIssue(
                    type=IssueType.MISSING_DETAILS,
                    severity=check.severity,
                    description=check.description,
                    suggested_follow_up=check.suggested_follow_up,
                ))
        return issues

    def _check_consistency(self, answer: str) -> tuple[list[QualityIssue], int]:
        """Contradiction and trailing-off heuristics."""
        issues = []
        deduction = 0
        lower = _normalize(answer)

        if _has(r"\bbut\b", lower) and _has(r"\bhowever\b", lower):
            issues.append(QualityIssue(
                type=IssueType.CONTRADICTORY,
                severity=IssueSeverity.MINOR,
                description="Answer may contain contradictory information",
                suggested_follow_up="Just to clarify, which of these is correct?",
            ))
            deduction += self.config.contradiction_penalty

        if answer.endswith(("...", "…")) or _has(r"\betc\b", lower) or "and so on" in lower:
            issues.append(QualityIssue(
                type=IssueType.INCOMPLETE,
                severity=IssueSeverity.MINOR,
                description="Answer appears incomplete",
                suggested_follow_up="Can you complete that thought?",
            ))
            deduction += self.config.incomplete_penalty

        return issues, deduction

    def _quality_tier(self, score: int) -> AnswerQuality:
        if score >= self.config.excellent_score:
            return AnswerQuality.EXCELLENT
        if score >= self.config.good_score:
            return AnswerQuality.GOOD
        if score >= self.config.acceptable_score:
            return AnswerQuality.ACCEPTABLE
        if score >= self.config.poor_score:
            return AnswerQuality.POOR
        return AnswerQuality.UNCLEAR

    def _assessment_confidence(self, answer: str, word_count: int) -> int:
        """How much to trust the assessment itself."""
        confidence = 100

        if word_count < self.config.few_words:
            confidence -= self.config.few_words_penalty
        elif word_count < self.config.some_words:
            confidence -= self.config.some_words_penalty

        if word_count > self.config.many_words:
            confidence -= self.config.many_words_penalty

        # Mostly questions: the user is likely asking back rather than answering
        if answer.count("?") > self.config.max_question_marks:
            confidence -= self.config.question_marks_penalty

        return max(0, min(100, confidence))

    def generate_follow_up_questions(
        self,
        assessment: AnswerQualityAssessment,
        phase: Union[Phase, str],
        answer_text: str = "",
    ) -> list[FollowUpQuestion]:
        """
        Turn an assessment into at most `max_follow_ups` follow-up questions.

        Critical and moderate issues each propose their suggested follow-up;
        weak answers may add one phase-specific question. Results are ordered
        high -> medium -> low.
        """
        phase = Phase.parse(phase)
        follow_ups = []

        for issue in assessment.issues:
            priority = _SEVERITY_PRIORITY.get(issue.severity)
            if priority is None:
                continue
            follow_ups.append(FollowUpQuestion(
                question=issue.suggested_follow_up,
                reason=issue.description,
                priority=priority,
                target_topic=issue.type.value,
            ))

        if assessment.quality.is_weak:
            phase_follow_up = self._phase_follow_up(phase, answer_text or "")
            if phase_follow_up:
                follow_ups.append(phase_follow_up)

        follow_ups.sort(key=lambda f: f.priority.rank)
        return follow_ups[:self.config.max_follow_ups]

    def _phase_follow_up(self, phase: Phase, answer: str) -> Optional[FollowUpQuestion]:
        """Generic follow-up for a weak answer in a given phase."""
        length = len(answer.strip())

        if phase == Phase.OPENING and length < 50:
            return FollowUpQuestion(
                question=(
                    "Can you tell me more about what happened? "
                    "Take your time and share as much detail as you remember."
                ),
                reason="Initial answer too brief",
                priority=FollowUpPriority.HIGH,
                target_topic="main_issue",
            )

        if phase == Phase.TIMELINE and not re.search(r"\d", answer):
            return FollowUpQuestion(
                question=(
                    "Even if you don't remember the exact date, can you recall approximately "
                    "when this started? For example, was it this year, last year, or longer ago?"
                ),
                reason="No timeframe provided",
                priority=FollowUpPriority.HIGH,
                target_topic="dates",
            )

        if phase == Phase.DETAILS and length < 40:
            return FollowUpQuestion(
                question="Can you describe this in more detail? What exactly happened, and who was involved?",
                reason="Insufficient detail provided",
                priority=FollowUpPriority.MEDIUM,
                target_topic="specifics",
            )

        if phase == Phase.EVIDENCE and _has(DENIAL_PATTERN, _normalize(answer)):
            return FollowUpQuestion(
                question=(
                    "Are there any witnesses who saw what happened, "
                    "or anyone you told about this at the time?"
                ),
                reason="No documentation - checking for witnesses",
                priority=FollowUpPriority.MEDIUM,
                target_topic="witnesses",
            )

        return None

    def should_ask_follow_up_now(
        self,
        assessment: AnswerQualityAssessment,
        consecutive_follow_ups: int,
    ) -> bool:
        """Decide whether to interrupt the flow with a follow-up right away."""
        # Anti-loop guard
        if consecutive_follow_ups >= self.config.max_consecutive_follow_ups:
            return False
        if assessment.has_critical_issue:
            return True
        return assessment.quality.is_weak


# =============================================================================
# QUALITY METRICS
# =============================================================================

@dataclass
class QualityMetrics:
    """Running answer-quality statistics for one conversation."""
    average_score: float = 0.0
    total_answers: int = 0
    tier_counts: dict[AnswerQuality, int] = field(
        default_factory=lambda: {tier: 0 for tier in AnswerQuality}
    )
    follow_ups_asked: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "average_score": round(self.average_score, 2),
            "total_answers": self.total_answers,
            "tier_counts": {tier.value: count for tier, count in self.tier_counts.items()},
            "follow_ups_asked": self.follow_ups_asked,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QualityMetrics":
        counts = {tier: 0 for tier in AnswerQuality}
        for tier_value, count in data.get("tier_counts", {}).items():
            counts[AnswerQuality(tier_value)] = int(count)
        return cls(
            average_score=float(data.get("average_score", 0.0)),
            total_answers=int(data.get("total_answers", 0)),
            tier_counts=counts,
            follow_ups_asked=int(data.get("follow_ups_asked", 0)),
        )


def initialize_quality_metrics() -> QualityMetrics:
    return QualityMetrics()


def update_quality_metrics(
    metrics: QualityMetrics,
    assessment: AnswerQualityAssessment,
    follow_up_asked: bool,
) -> QualityMetrics:
    """Fold one more assessment into the running metrics (returns a new value)."""
    total = metrics.total_answers + 1
    counts = dict(metrics.tier_counts)
    counts[assessment.quality] = counts.get(assessment.quality, 0) + 1

    return QualityMetrics(
        average_score=(metrics.average_score * metrics.total_answers + assessment.score) / total,
        total_answers=total,
        tier_counts=counts,
        follow_ups_asked=metrics.follow_ups_asked + (1 if follow_up_asked else 0),
    )


# Module-level shortcuts using the default configuration
_default_analyzer = AnswerQualityAnalyzer()


def assess_answer_quality(
    answer_text: str,
    phase: Union[Phase, str],
    preceding_question: str = "",
) -> AnswerQualityAssessment:
    return _default_analyzer.assess(answer_text, phase, preceding_question)


def generate_follow_up_questions(
    assessment: AnswerQualityAssessment,
    phase: Union[Phase, str],
    answer_text: str = "",
) -> list[FollowUpQuestion]:
    return _default_analyzer.generate_follow_up_questions(assessment, phase, answer_text)


def should_ask_follow_up_now(assessment: AnswerQualityAssessment, consecutive_follow_ups: int) -> bool:
    return _default_analyzer.should_ask_follow_up_now(assessment, consecutive_follow_ups)
