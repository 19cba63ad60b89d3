"""
Phase progression for case intake interviews.

The interview moves strictly forward through the fixed phase sequence
(opening -> timeline -> details -> legal -> evidence -> impact -> closing).
This module counts questions asked in the current phase and decides when the
conversation has learned enough to move on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Iterable, Optional, Union

from .config import DEFAULT_CONFIG, EngineConfig
from .schemas.phases import PHASE_ORDER, Phase, get_phase_info, phase_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhaseTransition:
    """Why and when the interview left a phase."""
    from_phase: Phase
    to_phase: Phase
    reason: str
    timestamp: datetime

    def to_dict(self) -> dict[str, str]:
        return {
            "from_phase": self.from_phase.value,
            "to_phase": self.to_phase.value,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class PhaseProgress:
    """Tracks interview progress through the phases."""
    current_phase: Phase = Phase.OPENING
    questions_in_phase: int = 0
    covered_topics: frozenset[str] = frozenset()
    missing_info: list[str] = field(default_factory=list)
    phase_history: list[Phase] = field(default_factory=lambda: [Phase.OPENING])
    transitions: list[PhaseTransition] = field(default_factory=list)

    @property
    def is_final_phase(self) -> bool:
        return get_next_phase(self.current_phase) is None

    def get_progress(self) -> dict[str, Any]:
        """Get progress info for UI."""
        info = get_phase_info(self.current_phase)
        return {
            "phase": info.name,
            "phase_number": phase_index(self.current_phase) + 1,
            "phase_total": len(PHASE_ORDER),
            "questions_in_phase": self.questions_in_phase,
            "min_questions": info.min_questions,
            "phases_completed": [p.value for p in self.phase_history[:-1]],
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "current_phase": self.current_phase.value,
            "questions_in_phase": self.questions_in_phase,
            "covered_topics": sorted(self.covered_topics),
            "missing_info": list(self.missing_info),
            "phase_history": [p.value for p in self.phase_history],
            "transitions": [t.to_dict() for t in self.transitions],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PhaseProgress":
        """Create from dictionary (e.g., loaded from JSON)."""
        history = [Phase.parse(p) for p in data.get("phase_history", [Phase.OPENING.value])]
        indexes = [phase_index(p) for p in history]
        # Phases are entered one at a time, starting at opening
        if not indexes or indexes != list(range(len(indexes))):
            raise ValueError(
                f"Phase history must start at opening and advance one phase at a time: "
                f"{[p.value for p in history]}"
            )

        current = Phase.parse(data["current_phase"])
        if history[-1] != current:
            raise ValueError(
                f"Current phase {current.value!r} does not match history end {history[-1].value!r}"
            )

        return cls(
            current_phase=current,
            questions_in_phase=int(data.get("questions_in_phase", 0)),
            covered_topics=frozenset(data.get("covered_topics", [])),
            missing_info=list(data.get("missing_info", [])),
            phase_history=history,
            transitions=[
                PhaseTransition(
                    from_phase=Phase.parse(t["from_phase"]),
                    to_phase=Phase.parse(t["to_phase"]),
                    reason=t.get("reason", ""),
                    timestamp=datetime.fromisoformat(t["timestamp"]),
                )
                for t in data.get("transitions", [])
            ],
        )


def start_progress() -> PhaseProgress:
    """Progress for a new conversation, in the opening phase."""
    return PhaseProgress()


def get_next_phase(current: Union[Phase, str]) -> Optional[Phase]:
    """Next phase in the fixed sequence, or None at the last phase."""
    index = phase_index(current)
    if index == len(PHASE_ORDER) - 1:
        return None
    return PHASE_ORDER[index + 1]


def transition_reason(
    progress: PhaseProgress,
    answer_length: int,
    has_new_information: bool,
    config: Optional[EngineConfig] = None,
) -> Optional[str]:
    """
    Decide whether the current phase is finished.

    Rules are checked in order against the phase's minimum question count:
    1. Minimum not reached -> stay
    2. Very short answer well past the minimum -> nothing more to add
    3. No new information past the minimum -> move on
    4. Hard ceiling of questions -> move on
    5. Otherwise stay

    Returns:
        The reason for moving on, or None to stay in the phase
    """
    config = config or DEFAULT_CONFIG
    min_questions = get_phase_info(progress.current_phase).min_questions
    asked = progress.questions_in_phase

    if asked < min_questions:
        return None

    if (answer_length < config.transition_short_answer_length
            and asked >= min_questions + config.short_answer_extra_questions):
        return "Short answer after minimum questions - user has nothing more to add"

    if not has_new_information and asked >= min_questions + config.no_new_info_extra_questions:
        return "No new information in latest answer"

    if asked >= min_questions + config.max_extra_questions:
        return "Maximum questions for phase reached"

    return None


def should_transition(
    progress: PhaseProgress,
    answer_length: int,
    has_new_information: bool,
    config: Optional[EngineConfig] = None,
) -> bool:
    """Check if the interview should move to the next phase."""
    return transition_reason(progress, answer_length, has_new_information, config) is not None


def advance(progress: PhaseProgress, reason: str = "", now: Optional[datetime] = None) -> PhaseProgress:
    """
    Move to the next phase: swap phase, reset the counter, extend the history.

    At the last phase the progress is returned unchanged.
    """
    next_phase = get_next_phase(progress.current_phase)
    if next_phase is None:
        return progress

    transition = PhaseTransition(
        from_phase=progress.current_phase,
        to_phase=next_phase,
        reason=reason,
        timestamp=now or datetime.now(),
    )
    logger.info("Phase transition: %s -> %s (%s)", progress.current_phase.value, next_phase.value, reason)

    return replace(
        progress,
        current_phase=next_phase,
        questions_in_phase=0,
        covered_topics=frozenset(),
        missing_info=[],
        phase_history=[*progress.phase_history, next_phase],
        transitions=[*progress.transitions, transition],
    )


def record_answer(
    progress: PhaseProgress,
    covered_topics: Iterable[str] = (),
    missing_info: Iterable[str] = (),
) -> PhaseProgress:
    """Count one more answer in the current phase and refresh what it has covered."""
    return replace(
        progress,
        questions_in_phase=progress.questions_in_phase + 1,
        covered_topics=frozenset(covered_topics),
        missing_info=list(missing_info),
        phase_history=list(progress.phase_history),
        transitions=list(progress.transitions),
    )
