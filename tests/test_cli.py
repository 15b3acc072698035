"""Tests for the command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from interview_conductor import __version__
from interview_conductor.cli import main
from interview_conductor.domain.entities import Plan
from interview_conductor.infrastructure.serialization import plan_to_dict


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as info:
        main(argv)
    return info.value.code


@pytest.fixture
def replay_files(tmp_path: Path, plan: Plan) -> tuple[Path, Path, Path]:
    plan_path = tmp_path / "plan.json"
    plan_path.write_text(json.dumps(plan_to_dict(plan)), encoding="utf-8")

    script_path = tmp_path / "script.json"
    script_path.write_text(
        json.dumps(
            {
                "cycles": [
                    {
                        "elapsed_seconds": 30,
                        "utterances": [{"speaker": "user", "text": "I started as an angel."}],
                    },
                    {
                        "elapsed_seconds": 320,
                        "utterances": [{"speaker": "user", "text": "Our worst deal was in 2015."}],
                    },
                ]
            }
        ),
        encoding="utf-8",
    )

    responses_path = tmp_path / "responses.json"
    responses_path.write_text(
        json.dumps(
            {
                "NoteTakerOutput": [{"key_ideas": [{"text": "Angels learn by losing"}]}],
                "TopicIdentificationOutput": [{"topics_to_research": []}],
                "OrchestratorOutput": [
                    {
                        "phase": "opening",
                        "next_question": {"text": "How did you start?", "source_question_id": "q1"},
                    },
                    {
                        "phase": "deep_dive",
                        "next_question": {"text": "Biggest mistake?", "source_question_id": "q3"},
                    },
                ],
            }
        ),
        encoding="utf-8",
    )
    return plan_path, script_path, responses_path


class TestCli:
    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["--version"]) == 0
        assert __version__ in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run([]) == 0
        assert "replay" in capsys.readouterr().out

    def test_info(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["info"]) == 0
        out = capsys.readouterr().out
        assert "[installed] mock" in out
        assert "Orchestrator" in out

    def test_replay_instructions(
        self, replay_files: tuple[Path, Path, Path], capsys: pytest.CaptureFixture[str]
    ) -> None:
        plan_path, script_path, responses_path = replay_files
        code = _run(["replay", str(plan_path), str(script_path), "--responses", str(responses_path)])
        assert code == 0
        captured = capsys.readouterr()
        assert "=== Cycle 1 (1 new) ===" in captured.out
        assert "## Ask Next\nHow did you start?" in captured.out
        assert "## Ask Next\nBiggest mistake?" in captured.out
        assert "Asked 2/4 questions" in captured.err
        assert "final phase deep_dive" in captured.err

    def test_replay_json(
        self, replay_files: tuple[Path, Path, Path], capsys: pytest.CaptureFixture[str]
    ) -> None:
        plan_path, script_path, responses_path = replay_files
        code = _run(
            ["replay", str(plan_path), str(script_path), "--responses", str(responses_path), "--json"]
        )
        assert code == 0
        lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        assert [d["next_question"]["source_question_id"] for d in lines] == ["q1", "q3"]
        assert [d["phase"] for d in lines] == ["opening", "deep_dive"]

    def test_replay_without_responses_falls_back(
        self, replay_files: tuple[Path, Path, Path], capsys: pytest.CaptureFixture[str]
    ) -> None:
        plan_path, script_path, _ = replay_files
        assert _run(["replay", str(plan_path), str(script_path), "--json"]) == 0
        lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        assert all(d["used_fallback"] for d in lines)
        assert [d["next_question"]["source_question_id"] for d in lines] == ["q1", "q3"]

    def test_missing_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["replay", str(tmp_path / "nope.json"), str(tmp_path / "s.json")]) == 1
        assert "file not found" in capsys.readouterr().err
