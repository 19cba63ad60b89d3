"""
Information tracking for case intake interviews.

Keeps one coverage record per topic of every phase, and derives from them:
- A completeness percentage (covered topics / all topics)
- Information gaps, split into critical / important / optional

The tracker is treated as an immutable value: update_tracker() returns a new
tracker and never touches the one it was given.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from .branching.topics import classify
from .config import DEFAULT_CONFIG, EngineConfig
from .schemas.phases import (
    CRITICAL_GAP_PHASES,
    PHASE_ORDER,
    REQUIRED_TOPICS,
    TOPIC_SCHEMA,
    Phase,
    phase_index,
)

logger = logging.getLogger(__name__)


class Confidence(str, Enum):
    """How well a topic has been covered."""
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class TopicRecord:
    """Coverage record for a single topic."""
    topic_key: str
    label: str
    covered: bool = False
    confidence: Confidence = Confidence.NONE

    @property
    def is_counted(self) -> bool:
        """Whether the topic counts towards completeness."""
        return self.covered and self.confidence != Confidence.NONE


@dataclass
class InformationGaps:
    """Missing or weak information, by severity."""
    critical: list[str] = field(default_factory=list)   # Must have for a complete case
    important: list[str] = field(default_factory=list)  # Should have for a strong case
    optional: list[str] = field(default_factory=list)   # Nice to have for context

    def is_empty(self) -> bool:
        return not (self.critical or self.important or self.optional)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "critical": list(self.critical),
            "important": list(self.important),
            "optional": list(self.optional),
        }


@dataclass
class InformationTracker:
    """Per-conversation record of what has been learned."""
    topics: dict[Phase, dict[str, TopicRecord]]
    gaps: InformationGaps = field(default_factory=InformationGaps)
    completeness: int = 0  # 0-100
    last_updated: datetime = field(default_factory=datetime.now)

    def get_topic(self, phase: Union[Phase, str], topic_key: str) -> TopicRecord:
        return self.topics[Phase.parse(phase)][topic_key]

    def covered_topic_keys(self, phase: Union[Phase, str]) -> set[str]:
        return {
            key for key, record in self.topics[Phase.parse(phase)].items()
            if record.covered
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "topics": {
                phase.value: {
                    key: {
                        "label": record.label,
                        "covered": record.covered,
                        "confidence": record.confidence.value,
                    }
                    for key, record in records.items()
                }
                for phase, records in self.topics.items()
            },
            "gaps": self.gaps.to_dict(),
            "completeness": self.completeness,
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InformationTracker":
        """Create from dictionary (e.g., loaded from JSON)."""
        topics: dict[Phase, dict[str, TopicRecord]] = {}
        for phase_value, records in data["topics"].items():
            phase = Phase.parse(phase_value)
            topics[phase] = {
                key: TopicRecord(
                    topic_key=key,
                    label=record["label"],
                    covered=bool(record["covered"]),
                    confidence=Confidence(record["confidence"]),
                )
                for key, record in records.items()
            }

        if set(topics) != set(PHASE_ORDER):
            missing = sorted(p.value for p in set(PHASE_ORDER) - set(topics))
            raise ValueError(f"Tracker is missing phases: {missing}")
        for phase, records in topics.items():
            expected = {t.key for t in TOPIC_SCHEMA[phase]}
            if set(records) != expected:
                raise ValueError(
                    f"Tracker topics for {phase.value!r} do not match the schema: "
                    f"got {sorted(records)}, expected {sorted(expected)}"
                )

        gaps = data.get("gaps", {})
        return cls(
            topics=topics,
            gaps=InformationGaps(
                critical=list(gaps.get("critical", [])),
                important=list(gaps.get("important", [])),
                optional=list(gaps.get("optional", [])),
            ),
            completeness=int(data.get("completeness", 0)),
            last_updated=datetime.fromisoformat(data["last_updated"]),
        )


def initialize_tracker() -> InformationTracker:
    """Build a tracker with every topic of every phase unset."""
    topics = {
        phase: {
            topic.key: TopicRecord(topic_key=topic.key, label=topic.label)
            for topic in TOPIC_SCHEMA[phase]
        }
        for phase in PHASE_ORDER
    }
    return InformationTracker(topics=topics)


def confidence_for_length(answer_length: int, config: EngineConfig = DEFAULT_CONFIG) -> Confidence:
    """Confidence assigned to a matched topic from the answer's length."""
    if answer_length > config.high_confidence_length:
        return Confidence.HIGH
    if answer_length > config.medium_confidence_length:
        return Confidence.MEDIUM
    # A rule match is itself evidence, so matched topics never stay at NONE
    return Confidence.LOW


def calculate_completeness(tracker: InformationTracker) -> int:
    """Percentage of all tracked topics that are covered with some confidence."""
    total = 0
    covered = 0
    for records in tracker.topics.values():
        for record in records.values():
            total += 1
            if record.is_counted:
                covered += 1
    return round(covered / total * 100) if total else 0


def identify_gaps(tracker: InformationTracker, current_phase: Union[Phase, str]) -> InformationGaps:
    """
    Classify uncovered and weakly covered topics of every phase reached so far.

    Args:
        tracker: Current tracker state
        current_phase: The active phase; later phases are not inspected

    Returns:
        Freshly derived InformationGaps
    """
    gaps = InformationGaps()
    last = phase_index(current_phase)

    for phase in PHASE_ORDER[:last + 1]:
        records = tracker.topics[phase]
        required = REQUIRED_TOPICS[phase]

        for key, record in records.items():
            label = f"{record.label} ({phase.value})"
            if not record.is_counted:
                if key in required:
                    if phase in CRITICAL_GAP_PHASES:
                        gaps.critical.append(label)
                    else:
                        gaps.important.append(label)
                else:
                    gaps.optional.append(label)
            elif record.confidence == Confidence.LOW:
                gaps.important.append(f"More details needed: {label}")

    return gaps


def update_tracker(
    tracker: InformationTracker,
    phase: Union[Phase, str],
    answer_text: str,
    config: Optional[EngineConfig] = None,
) -> InformationTracker:
    """
    Record an answer given during a phase.

    Matched topics become covered, with a confidence taken from this answer's
    length (the latest matching answer wins). Coverage is never removed.

    Returns:
        A new tracker with completeness and gaps recomputed
    """
    config = config or DEFAULT_CONFIG
    phase = Phase.parse(phase)
    answer_text = answer_text or ""

    topics = {p: dict(records) for p, records in tracker.topics.items()}
    matched = classify(answer_text, phase)
    confidence = confidence_for_length(len(answer_text.strip()), config)

    phase_topics = topics[phase]
    for key in sorted(matched):
        phase_topics[key] = replace(phase_topics[key], covered=True, confidence=confidence)

    updated = InformationTracker(topics=topics, last_updated=datetime.now())
    updated.completeness = calculate_completeness(updated)
    updated.gaps = identify_gaps(updated, phase)

    logger.debug(
        "Tracker updated for %s: matched=%s completeness=%d%%",
        phase.value, sorted(matched), updated.completeness,
    )
    return updated


def refresh_gaps(tracker: InformationTracker, current_phase: Union[Phase, str]) -> InformationTracker:
    """Return a copy of the tracker with gaps derived for a (new) current phase."""
    return replace(
        tracker,
        topics={p: dict(records) for p, records in tracker.topics.items()},
        gaps=identify_gaps(tracker, current_phase),
    )


def newly_covered(
    before: InformationTracker,
    after: InformationTracker,
    phase: Union[Phase, str],
) -> set[str]:
    """Topic keys of a phase covered in `after` but not in `before`."""
    return after.covered_topic_keys(phase) - before.covered_topic_keys(phase)
