"""Rich progress bars for long-running batch commands."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskID, TextColumn, TimeElapsedColumn

from icns.output import OutputFormat


class BatchProgress:
    """Callbacks that drive one progress task from worker threads."""

    def __init__(self, progress: Progress | None, task: TaskID | None) -> None:
        self.progress = progress
        self.task = task

    def set_total(self, total: int) -> None:
        if self.progress is not None and self.task is not None:
            self.progress.update(self.task, total=total)

    def advance(self, _item: Any = None) -> None:
        if self.progress is not None and self.task is not None:
            self.progress.advance(self.task)


def progress_enabled(output_format: OutputFormat) -> bool:
    return output_format is OutputFormat.PLAIN and sys.stderr.isatty()


@contextmanager
def batch_progress(description: str, enabled: bool) -> Iterator[BatchProgress]:
    """Show a progress bar on stderr, or hand out no-op callbacks."""
    if not enabled:
        yield BatchProgress(None, None)
        return

    console = Console(stderr=True)
    with Progress(
        TextColumn("[bold green]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(description, total=None)
        yield BatchProgress(progress, task)
