"""Rich progress display for build runs."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from .events import Phase, ProgressEvent


class RichProgressSink:
    """Shows a "Build All" bar plus one line per target.

    Finished target lines stay on screen so the whole run can be reviewed
    after it ends.
    """

    def __init__(self, console: Optional[Console] = None, transient: bool = False):
        self.console = console or Console()
        self.transient = transient
        self._progress: Optional[Progress] = None
        self._overall: Optional[TaskID] = None
        self._current: Optional[TaskID] = None
        self._current_name = ""

    def _start(self, total: int) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=self.transient,
        )
        self._progress.start()
        self._overall = self._progress.add_task("Build All", total=total)

    def _stop(self, status: str) -> None:
        if self._progress is None:
            return
        if self._overall is not None:
            self._progress.update(self._overall, description=f"Build All [{status}]")
        self._progress.stop()
        self._progress = None
        self._overall = None
        self._current = None

    def __call__(self, event: ProgressEvent) -> None:
        if event.phase == Phase.START_ALL:
            self._start(event.total or 0)
            return

        progress = self._progress
        if progress is None:
            return

        if event.phase == Phase.START_TARGET and event.target is not None:
            self._current_name = event.target.value
            self._current = progress.add_task(f"Build {self._current_name}", total=1)
        elif event.phase == Phase.TARGET_SUCCEEDED:
            if self._current is not None:
                progress.update(
                    self._current,
                    completed=1,
                    description=f"[green]✓ Build {self._current_name} ({event.elapsed_seconds or 0:.0f}s)[/green]",
                )
            if self._overall is not None:
                progress.advance(self._overall)
        elif event.phase == Phase.TARGET_FAILED:
            if self._current is not None:
                progress.update(
                    self._current,
                    description=f"[red]✗ Build {self._current_name}[/red]",
                )
                progress.stop_task(self._current)
        elif event.phase == Phase.ALL_SUCCEEDED:
            self._stop("[green]succeeded[/green]")
        elif event.phase == Phase.ALL_FAILED:
            self._stop("[red]failed[/red]")
        elif event.phase == Phase.ALL_CANCELLED:
            self._stop("[yellow]cancelled[/yellow]")
