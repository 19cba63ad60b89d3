"""
Tests for the case-intake command line.
"""

import json

import pytest

from case_intake.cli import build_parser, main


class TestAssessCommand:

    def test_assess_prints_json(self, capsys):
        exit_code = main(["assess", "--phase", "opening", "--question", "What happened?", "ok"])
        assert exit_code == 0

        output = json.loads(capsys.readouterr().out)
        assert output["assessment"]["quality"] == "poor"
        assert output["assessment"]["score"] == 35
        assert output["ask_now"] is True
        assert len(output["follow_ups"]) == 2

    def test_unknown_phase_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["assess", "--phase", "negotiation", "ok"])

    def test_bad_config_file(self, tmp_path, capsys):
        exit_code = main(["--config", str(tmp_path / "missing.json"), "assess", "ok"])
        assert exit_code == 2
        assert "Config file not found" in capsys.readouterr().err


class TestSessionCommand:

    def test_session_runs_until_done(self, monkeypatch, capsys):
        answers = iter([
            "My landlord refused to give back my deposit after I moved out of the apartment.",
            "status",
            "ok",
            "done",
        ])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))

        assert main(["session"]) == 0

        out = capsys.readouterr().out
        assert "Case Intake Interview" in out
        assert "Completeness:" in out
        assert "--- Status ---" in out
        assert "Follow-up (high): Could you provide more details about that?" in out
        assert "Interview Summary" in out

    def test_session_stops_at_end_of_input(self, monkeypatch, capsys):
        def raise_eof(prompt=""):
            raise EOFError

        monkeypatch.setattr("builtins.input", raise_eof)
        assert main(["session"]) == 0
        assert "End of input." in capsys.readouterr().out
