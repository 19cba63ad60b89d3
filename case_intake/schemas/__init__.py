"""
Schema definitions for the case intake interview engine.
"""

from .phases import (
    Phase,
    PhaseInfo,
    TopicDefinition,
    ALL_PHASES,
    PHASE_ORDER,
    PHASE_INFO,
    TOPIC_SCHEMA,
    REQUIRED_TOPICS,
    format_topic_name,
    get_phase_info,
    get_phase_by_index,
    phase_index,
    required_topics,
)

__all__ = [
    "Phase",
    "PhaseInfo",
    "TopicDefinition",
    "ALL_PHASES",
    "PHASE_ORDER",
    "PHASE_INFO",
    "TOPIC_SCHEMA",
    "REQUIRED_TOPICS",
    "format_topic_name",
    "get_phase_info",
    "get_phase_by_index",
    "phase_index",
    "required_topics",
]
