"""Terminal progress helpers with Rich-based rendering."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)


@dataclass
class ProgressState:
    total: int
    success: int = 0
    failed: int = 0
    current: str | None = None


class ProgressReporter:
    """Render scrape task progress and keep counters for the summary.

    ``advance`` is called from worker threads, so updates go through a lock.
    Non-terminal consoles fall back to silent counting.
    """

    def __init__(self, enabled: bool = True, console: Console | None = None, label: str = "scrape tasks") -> None:
        self.enabled = enabled
        self._console = console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self._lock = Lock()
        self._label = label
        self.state: ProgressState | None = None

    def start(self, total: int) -> None:
        self.state = ProgressState(total=total)
        if not self.enabled:
            return
        if self._console is None:
            self._console = Console()
        if not self._console.is_terminal:
            self.enabled = False
            return
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            TextColumn("[bold blue]{task.fields[source]:<14}", justify="left"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green"),
            TaskProgressColumn(show_speed=False),
            TimeElapsedColumn(),
            TextColumn("[green]✓{task.fields[success]:>3}", justify="right"),
            TextColumn("[red]✗{task.fields[failed]:>3}", justify="right"),
            TextColumn("[dim]{task.fields[current]}", justify="left"),
            console=self._console,
            transient=True,
            refresh_per_second=12,
            expand=True,
        )
        try:
            self._progress.start()
        except LiveError:
            # another live display already owns the console
            self.enabled = False
            self._progress = None
            return
        self._task_id = self._progress.add_task(
            "fetch", total=total, source=self._label, success=0, failed=0, current="waiting…"
        )

    def advance(self, *, success: bool, label: str | None = None) -> None:
        if not self.state:
            raise RuntimeError("ProgressReporter.start must be called before advance")
        with self._lock:
            if success:
                self.state.success += 1
            else:
                self.state.failed += 1
            if label:
                self.state.current = label if len(label) <= 60 else label[:57] + "..."
            if self._progress is not None and self._task_id is not None:
                self._progress.update(
                    self._task_id,
                    advance=1,
                    success=self.state.success,
                    failed=self.state.failed,
                    current=self.state.current or "",
                )

    def close(self) -> None:
        with self._lock:
            if self._progress is not None:
                self._progress.stop()
                self._progress = None
            self._task_id = None

    def summary(self) -> dict[str, int]:
        if not self.state:
            return {"success": 0, "failed": 0}
        return {"success": self.state.success, "failed": self.state.failed}


__all__ = ["ProgressReporter", "ProgressState"]
