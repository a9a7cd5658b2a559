"""Tests for the toolrelay-rules CLI."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from toolrelay.scripts import inspect_rules


def test_rules_prints_default_table(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = inspect_rules.main(["rules"])

    output = capsys.readouterr().out.splitlines()
    assert exit_code == 0
    assert output[0].split() == ["source", "backend", "operation", "family"]
    assert output[1].split() == ["edit_file", "filesystem", "write_file", "write"]
    assert len(output) == 11


def test_rules_reports_bad_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = tmp_path / "rules.yaml"
    config.write_text("redirections: nope\n", encoding="utf-8")

    exit_code = inspect_rules.main(["rules", "--config", str(config)])

    assert exit_code == 1
    assert "configuration_error" in capsys.readouterr().err


def test_diff_prints_rendered_lines_and_summary(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    original = tmp_path / "a.txt"
    proposed = tmp_path / "b.txt"
    original.write_text("a\nb\nc\n", encoding="utf-8")
    proposed.write_text("a\nx\nc\n", encoding="utf-8")

    exit_code = inspect_rules.main(["diff", str(original), str(proposed)])

    assert exit_code == 0
    assert capsys.readouterr().out.splitlines() == [" a", "-b", "+x", " c", "diff: +1 -1 =2"]


def test_diff_reports_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = inspect_rules.main(["diff", str(tmp_path / "nope"), str(tmp_path / "nope2")])

    assert exit_code == 1
    assert "Unable to read input" in capsys.readouterr().err


def test_debug_flag_writes_log_file(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], restore_root_logging
) -> None:
    exit_code = inspect_rules.main(["--debug", "--log-dir", str(tmp_path), "rules"])

    for handler in logging.getLogger().handlers:
        handler.flush()
    assert exit_code == 0
    assert "Loaded 10 rule(s) from built-in defaults" in (tmp_path / "toolrelay.log").read_text(encoding="utf-8")
    assert "Loaded 10 rule(s)" in capsys.readouterr().err
