"""
Tests for engine configuration loading and overrides.
"""

import json

import pytest

from case_intake.branching.analyzer import AnswerQualityAnalyzer, IssueSeverity, IssueType
from case_intake.config import CONFIG_ENV_VAR, DEFAULT_CONFIG, EngineConfig, load_config
from case_intake.schemas.phases import Phase


class TestDefaults:

    def test_default_values(self):
        config = EngineConfig()
        assert config.high_confidence_length == 200
        assert config.short_answer_length == 10
        assert config.max_follow_ups == 2
        assert config.max_consecutive_follow_ups == 2
        assert config.new_information_length == 50
        assert "approximately" in config.hedging_markers

    def test_to_dict_is_json_friendly(self):
        data = json.loads(json.dumps(DEFAULT_CONFIG.to_dict()))
        assert data["hedging_markers"][0] == "i don't know"
        assert EngineConfig().with_overrides(data) == DEFAULT_CONFIG


class TestOverrides:

    def test_override_replaces_fields(self):
        config = DEFAULT_CONFIG.with_overrides({"brief_answer_length": 40})
        assert config.brief_answer_length == 40
        assert DEFAULT_CONFIG.brief_answer_length == 30

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown config key"):
            DEFAULT_CONFIG.with_overrides({"max_followups": 3})

    def test_wrong_types(self):
        with pytest.raises(ValueError):
            DEFAULT_CONFIG.with_overrides({"max_follow_ups": "3"})
        with pytest.raises(ValueError):
            DEFAULT_CONFIG.with_overrides({"max_follow_ups": True})
        with pytest.raises(ValueError):
            DEFAULT_CONFIG.with_overrides({"max_follow_ups": -1})
        with pytest.raises(ValueError):
            DEFAULT_CONFIG.with_overrides({"hedging_markers": "maybe"})

    def test_custom_hedging_markers(self):
        config = DEFAULT_CONFIG.with_overrides({"hedging_markers": ["Basically", "honestly"]})
        assert config.hedging_markers == ("basically", "honestly")

        assessment = AnswerQualityAnalyzer(config).assess(
            "Basically, honestly it was the neighbour's fault all along", Phase.OPENING
        )
        assert [(i.type, i.severity) for i in assessment.issues] == [
            (IssueType.TOO_VAGUE, IssueSeverity.MINOR)
        ]


# ═══════════════════════════════════════════════════════════════
# LOADING
# ═══════════════════════════════════════════════════════════════

class TestLoadConfig:

    def test_defaults_without_file(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert load_config() is DEFAULT_CONFIG

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "engine.json"
        path.write_text(json.dumps({"max_follow_ups": 3}))
        assert load_config(path).max_follow_ups == 3

    def test_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "engine.json"
        path.write_text(json.dumps({"good_score": 65}))
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_config().good_score == 65

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "engine.json"
        path.write_text("{not json")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_config(path)

    def test_non_object(self, tmp_path):
        path = tmp_path / "engine.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError, match="JSON object"):
            load_config(path)
