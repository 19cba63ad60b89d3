"""
Interview Phase Definitions for case intake conversations.

Defines the 7 fixed interview phases, each with:
- Phase description and objectives
- Minimum number of questions before moving on
- Completion criteria (human-readable)
- The topics the phase is meant to elicit, and which of them are required

The topic table below is the single source of truth for the phase
enumeration, the required-topics lookup, and the tracker initializer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class Phase(str, Enum):
    OPENING = "opening"
    TIMELINE = "timeline"
    DETAILS = "details"
    LEGAL = "legal"
    EVIDENCE = "evidence"
    IMPACT = "impact"
    CLOSING = "closing"

    @classmethod
    def parse(cls, value: Union["Phase", str]) -> "Phase":
        """Resolve a phase member or its string value; unknown phases raise ValueError."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown interview phase: {value!r}") from None


@dataclass(frozen=True)
class TopicDefinition:
    """A single fact category a phase is meant to elicit."""
    key: str
    required: bool = True

    @property
    def label(self) -> str:
        return format_topic_name(self.key)


@dataclass(frozen=True)
class PhaseInfo:
    """Complete definition of an interview phase."""
    phase: Phase
    name: str
    description: str
    objectives: tuple[str, ...]
    min_questions: int
    completion_criteria: tuple[str, ...]  # What we need to know before moving on
    topics: tuple[TopicDefinition, ...]

    @property
    def topic_keys(self) -> list[str]:
        return [t.key for t in self.topics]

    @property
    def required_topic_keys(self) -> list[str]:
        return [t.key for t in self.topics if t.required]


def format_topic_name(key: str) -> str:
    """Turn a camelCase topic key into a readable label ("howItHappened" -> "How It Happened")."""
    spaced = re.sub(r"([A-Z])", r" \1", key).strip()
    return spaced[:1].upper() + spaced[1:]


# =============================================================================
# PHASE 1: OPENING
# =============================================================================
OPENING = PhaseInfo(
    phase=Phase.OPENING,
    name="Opening",
    description="Let the user tell their story freely",
    objectives=(
        "Understand the general situation",
        "Identify the main issue",
        "Build rapport and trust",
        "Get an overview of what happened",
    ),
    min_questions=2,
    completion_criteria=(
        "User has described the main issue",
        "Basic context is established",
        "Key parties are mentioned",
    ),
    topics=(
        TopicDefinition("mainIssue"),
        TopicDefinition("involvedParties"),
        TopicDefinition("basicContext"),
    ),
)


# =============================================================================
# PHASE 2: TIMELINE
# =============================================================================
TIMELINE = PhaseInfo(
    phase=Phase.TIMELINE,
    name="Timeline",
    description="Build chronological understanding",
    objectives=(
        "Establish when events occurred",
        "Understand the sequence of events",
        "Identify key dates and deadlines",
        "Map the progression of the situation",
    ),
    min_questions=3,
    completion_criteria=(
        "Start date is known",
        "Key events are dated",
        "Sequence is clear",
    ),
    topics=(
        TopicDefinition("startDate"),
        TopicDefinition("keyEvents"),
        TopicDefinition("eventSequence"),
        TopicDefinition("deadlines", required=False),
    ),
)


# =============================================================================
# PHASE 3: DETAILS
# =============================================================================
DETAILS = PhaseInfo(
    phase=Phase.DETAILS,
    name="Details",
    description="Deep dive into specifics",
    objectives=(
        "Identify all parties involved",
        "Understand locations and settings",
        "Clarify how things happened",
        "Explore motivations and context",
    ),
    min_questions=4,
    completion_criteria=(
        "All parties are identified",
        "Locations are specified",
        "Methods and actions are clear",
    ),
    topics=(
        TopicDefinition("specificNames"),
        TopicDefinition("locations"),
        TopicDefinition("howItHappened"),
        TopicDefinition("motivations", required=False),
    ),
)


# =============================================================================
# PHASE 4: LEGAL ASPECTS
# =============================================================================
LEGAL = PhaseInfo(
    phase=Phase.LEGAL,
    name="Legal Aspects",
    description="Identify legal issues and frameworks",
    objectives=(
        "Identify contracts or agreements",
        "Understand legal obligations",
        "Recognize potential violations",
        "Determine applicable laws",
    ),
    min_questions=3,
    completion_criteria=(
        "Legal relationships are identified",
        "Relevant laws are mentioned",
        "Obligations are understood",
    ),
    topics=(
        TopicDefinition("contracts", required=False),
        TopicDefinition("legalRelationships"),
        TopicDefinition("obligations"),
        TopicDefinition("violations", required=False),
    ),
)


# =============================================================================
# PHASE 5: EVIDENCE
# =============================================================================
EVIDENCE = PhaseInfo(
    phase=Phase.EVIDENCE,
    name="Evidence",
    description="Gather documentation and witnesses",
    objectives=(
        "Identify written documentation",
        "Find witnesses",
        "Locate communication records",
        "Discover physical evidence",
    ),
    min_questions=3,
    completion_criteria=(
        "Documents are identified",
        "Witnesses are named",
        "Communication records are noted",
    ),
    topics=(
        TopicDefinition("documents"),
        TopicDefinition("witnesses"),
        TopicDefinition("communications"),
        TopicDefinition("physicalEvidence", required=False),
    ),
)


# =============================================================================
# PHASE 6: IMPACT & CONSEQUENCES
# =============================================================================
IMPACT = PhaseInfo(
    phase=Phase.IMPACT,
    name="Impact & Consequences",
    description="Assess damages and effects",
    objectives=(
        "Quantify financial losses",
        "Assess emotional impact",
        "Identify ongoing consequences",
        "Understand future implications",
    ),
    min_questions=2,
    completion_criteria=(
        "Damages are quantified",
        "Impact is described",
        "Consequences are clear",
    ),
    topics=(
        TopicDefinition("financialLoss"),
        TopicDefinition("emotionalImpact"),
        TopicDefinition("ongoingConsequences"),
        TopicDefinition("futureImplications", required=False),
    ),
)


# =============================================================================
# PHASE 7: CLOSING
# =============================================================================
CLOSING = PhaseInfo(
    phase=Phase.CLOSING,
    name="Closing",
    description="Fill gaps and summarize",
    objectives=(
        "Address any missing information",
        "Clarify ambiguities",
        "Confirm key facts",
        "Prepare for report generation",
    ),
    min_questions=1,
    completion_criteria=(
        "No major gaps remain",
        "User confirms understanding",
        "Ready for report",
    ),
    topics=(
        TopicDefinition("gapsFilled"),
        TopicDefinition("factsConfirmed"),
        TopicDefinition("readyForReport"),
    ),
)


# =============================================================================
# ALL PHASES IN ORDER
# =============================================================================
ALL_PHASES = [
    OPENING,
    TIMELINE,
    DETAILS,
    LEGAL,
    EVIDENCE,
    IMPACT,
    CLOSING,
]

PHASE_ORDER: list[Phase] = [p.phase for p in ALL_PHASES]

PHASE_INFO: dict[Phase, PhaseInfo] = {p.phase: p for p in ALL_PHASES}

TOPIC_SCHEMA: dict[Phase, tuple[TopicDefinition, ...]] = {p.phase: p.topics for p in ALL_PHASES}

REQUIRED_TOPICS: dict[Phase, list[str]] = {p.phase: p.required_topic_keys for p in ALL_PHASES}

# Missing required topics in these phases are reported as critical gaps
CRITICAL_GAP_PHASES = frozenset({Phase.OPENING, Phase.TIMELINE})


def get_phase_info(phase: Union[Phase, str]) -> PhaseInfo:
    """Get phase definition by enum or value."""
    return PHASE_INFO[Phase.parse(phase)]


def required_topics(phase: Union[Phase, str]) -> list[str]:
    """Get the required topic keys for a phase."""
    return list(REQUIRED_TOPICS[Phase.parse(phase)])


def phase_index(phase: Union[Phase, str]) -> int:
    """Position of a phase in the fixed sequence (0-6)."""
    return PHASE_ORDER.index(Phase.parse(phase))


def get_phase_by_index(index: int) -> Optional[PhaseInfo]:
    """Get phase definition by index, or None past the last phase."""
    if 0 <= index < len(ALL_PHASES):
        return ALL_PHASES[index]
    return None
