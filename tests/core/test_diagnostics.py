"""Unit tests for core.diagnostics: append-only gsql log file."""

import logging
from pathlib import Path

import pytest

from gsql.core import diagnostics


def test_format_record() -> None:
    assert diagnostics.format_record("query", "boom") == "[gsql][query] : boom"


def test_ensure_log_file_creates_empty(log_file: Path) -> None:
    assert not log_file.exists()
    diagnostics.ensure_log_file()
    assert log_file.exists()
    assert log_file.read_text() == ""


def test_ensure_log_file_never_truncates(log_file: Path) -> None:
    log_file.write_text("[gsql][new] : earlier\n")
    diagnostics.ensure_log_file()
    assert log_file.read_text() == "[gsql][new] : earlier\n"


def test_log_appends_lines(log_file: Path) -> None:
    diagnostics.log("query", "first")
    diagnostics.log("execute", "second")
    assert log_file.read_text().splitlines() == [
        "[gsql][query] : first",
        "[gsql][execute] : second",
    ]


def test_log_creates_parent_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    target = tmp_path / "nested" / "logs.txt"
    monkeypatch.setattr(diagnostics.settings, "LOG_FILE", str(target))
    diagnostics.log("delete", "x")
    assert target.read_text() == "[gsql][delete] : x\n"


def test_log_mirrors_to_logging(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="gsql.core.diagnostics"):
        diagnostics.log("prepare", "bad sql")
    assert "[gsql][prepare] : bad sql" in caplog.text
