"""
Interview guidance engine for conversational case intake.

Tracks what has been learned during a multi-turn conversation, decides when a
phase of questioning is finished, lists what is still missing, and judges
whether each answer needs a clarifying follow-up.
"""

from .config import DEFAULT_CONFIG, EngineConfig, load_config
from .engine import InterviewGuide, TurnInput, TurnResult, process_turn
from .phase_machine import (
    PhaseProgress,
    PhaseTransition,
    get_next_phase,
    should_transition,
    start_progress,
)
from .schemas.phases import (
    PHASE_INFO,
    PHASE_ORDER,
    REQUIRED_TOPICS,
    TOPIC_SCHEMA,
    Phase,
    get_phase_info,
    required_topics,
)
from .tracker import (
    Confidence,
    InformationGaps,
    InformationTracker,
    TopicRecord,
    identify_gaps,
    initialize_tracker,
    update_tracker,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_CONFIG",
    "EngineConfig",
    "load_config",
    "InterviewGuide",
    "TurnInput",
    "TurnResult",
    "process_turn",
    "PhaseProgress",
    "PhaseTransition",
    "get_next_phase",
    "should_transition",
    "start_progress",
    "PHASE_INFO",
    "PHASE_ORDER",
    "REQUIRED_TOPICS",
    "TOPIC_SCHEMA",
    "Phase",
    "get_phase_info",
    "required_topics",
    "Confidence",
    "InformationGaps",
    "InformationTracker",
    "TopicRecord",
    "identify_gaps",
    "initialize_tracker",
    "update_tracker",
]
