"""
Tunable constants for the interview engine.

Every threshold and deduction used by the tracker, the phase machine and the
answer analyzer lives here. The values are hand-tuned defaults; a deployment
can override any of them with a JSON file:

    {"brief_answer_length": 40, "hedging_markers": ["maybe", "i guess"]}

The file is taken from the explicit path, else from CASE_INTAKE_CONFIG.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CASE_INTAKE_CONFIG"


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for the interview engine."""

    # Topic confidence from answer length (chars)
    high_confidence_length: int = 200
    medium_confidence_length: int = 100

    # Answer length checks (chars, stripped)
    short_answer_length: int = 10
    short_answer_penalty: int = 40
    brief_answer_length: int = 30
    brief_answer_penalty: int = 25

    # Hedging / uncertainty markers, counted once each
    hedging_markers: tuple[str, ...] = (
        "i don't know",
        "not sure",
        "maybe",
        "i think",
        "probably",
        "i guess",
        "kind of",
        "sort of",
        "something like",
        "around",
        "approximately",
    )
    very_vague_count: int = 3
    very_vague_penalty: int = 20
    somewhat_vague_count: int = 2
    somewhat_vague_penalty: int = 10

    missing_detail_penalty: int = 15
    contradiction_penalty: int = 10
    incomplete_penalty: int = 10

    # Quality tier cut-offs (score >= value)
    excellent_score: int = 80
    good_score: int = 60
    acceptable_score: int = 40
    poor_score: int = 20

    # Assessment confidence penalties
    few_words: int = 5
    few_words_penalty: int = 30
    some_words: int = 10
    some_words_penalty: int = 15
    many_words: int = 200
    many_words_penalty: int = 10
    max_question_marks: int = 2
    question_marks_penalty: int = 20

    # Follow-ups
    max_follow_ups: int = 2
    max_consecutive_follow_ups: int = 2

    # Phase transitions (relative to the phase's min_questions)
    transition_short_answer_length: int = 20
    short_answer_extra_questions: int = 2
    no_new_info_extra_questions: int = 1
    max_extra_questions: int = 5

    # Answers longer than this count as new information
    new_information_length: int = 50

    def with_overrides(self, overrides: dict[str, Any]) -> "EngineConfig":
        """Return a copy with the given fields replaced, validating names and types."""
        known = {f.name: f for f in fields(self)}
        cleaned: dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in known:
                raise ValueError(f"Unknown config key: {key!r}")
            current = getattr(self, key)
            if isinstance(current, tuple):
                if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
                    raise ValueError(f"Config key {key!r} must be a list of strings")
                cleaned[key] = tuple(v.lower() for v in value)
            else:
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ValueError(f"Config key {key!r} must be an integer, got {value!r}")
                if value < 0:
                    raise ValueError(f"Config key {key!r} must not be negative")
                cleaned[key] = value
        return replace(self, **cleaned)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            data[f.name] = list(value) if isinstance(value, tuple) else value
        return data


DEFAULT_CONFIG = EngineConfig()


def load_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """Load engine configuration.

    Resolution order: explicit path, then the CASE_INTAKE_CONFIG environment
    variable, then built-in defaults.

    Raises FileNotFoundError if a configured file is missing, and ValueError
    if it is not a JSON object of known keys.
    """
    if path is None:
        path = os.getenv(CONFIG_ENV_VAR) or None
    if path is None:
        return DEFAULT_CONFIG

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a JSON object")

    config = DEFAULT_CONFIG.with_overrides(data)
    logger.info("Loaded engine config from %s (%d overrides)", config_path, len(data))
    return config
