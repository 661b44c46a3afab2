from __future__ import annotations

from pathlib import Path

import pytest

from jobsift import logging_conf


def test_log_dir_follows_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JOBSIFT_HOME", str(tmp_path))
    assert logging_conf.log_dir() == tmp_path.resolve() / "logs"


def test_tail_log_returns_last_lines(tmp_path: Path) -> None:
    path = tmp_path / "sample.log"
    path.write_text("".join(f"line {index}\n" for index in range(10)), encoding="utf-8")
    assert logging_conf.tail_log(path, 3) == ["line 7\n", "line 8\n", "line 9\n"]
    assert logging_conf.tail_log(tmp_path / "missing.log") == []


def test_available_logs_lists_log_files(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JOBSIFT_HOME", str(tmp_path))
    logs = tmp_path / "logs"
    logs.mkdir()
    (logs / "jobsift.log").write_text("", encoding="utf-8")
    (logs / "error.log").write_text("", encoding="utf-8")
    (logs / "notes.txt").write_text("", encoding="utf-8")
    assert [path.name for path in logging_conf.available_logs()] == ["error.log", "jobsift.log"]


def test_get_logger_binds_component() -> None:
    logger = logging_conf.get_logger("dedup")
    assert logger._context["component"] == "dedup"  # type: ignore[attr-defined]
