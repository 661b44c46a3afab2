from __future__ import annotations

import threading
from io import StringIO

import pytest
from rich.console import Console

from jobsift.ui import ProgressReporter


def test_progress_reporter_counts_across_threads() -> None:
    reporter = ProgressReporter(enabled=False)
    reporter.start(40)

    def _work(index: int) -> None:
        reporter.advance(success=index % 4 != 0, label=f"task-{index}")

    threads = [threading.Thread(target=_work, args=(index,)) for index in range(40)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    reporter.close()

    assert reporter.summary() == {"success": 30, "failed": 10}


def test_progress_reporter_requires_start() -> None:
    with pytest.raises(RuntimeError):
        ProgressReporter(enabled=False).advance(success=True)


def test_progress_reporter_falls_back_on_non_terminal_console() -> None:
    reporter = ProgressReporter(enabled=True, console=Console(file=StringIO(), force_terminal=False))
    reporter.start(2)
    reporter.advance(success=True, label="x" * 80)
    reporter.close()
    assert reporter.enabled is False
    assert reporter.state is not None
    assert reporter.state.current == "x" * 57 + "..."

