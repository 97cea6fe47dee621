"""Progress bar adapter around ``rich.progress``."""

import threading

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


class ProbeProgress:
    """Counts completed probes on a rich progress bar written to stderr.

    A disabled instance accepts the same calls and does nothing, so callers
    never need to branch on whether a bar is shown.
    """

    def __init__(self, *, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self.completed = 0
        self.total = 0
        self._lock = threading.Lock()
        self._task: TaskID | None = None
        self._progress: Progress | None = None
        if enabled:
            self._progress = Progress(
                TextColumn("probing"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=console or Console(stderr=True),
            )

    def __enter__(self) -> "ProbeProgress":
        if self._progress is not None:
            self._progress.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._progress is not None:
            self._progress.stop()

    def start(self, total: int) -> None:
        """Reset the bar to expect *total* ticks."""
        self.total = total
        self.completed = 0
        if self._progress is not None:
            self._task = self._progress.add_task("probing", total=total)

    def advance(self) -> None:
        """Record one finished probe."""
        with self._lock:
            self.completed += 1
        if self._progress is not None and self._task is not None:
            self._progress.advance(self._task)
