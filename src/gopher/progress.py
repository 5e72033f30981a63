"""Progress reporters for install operations."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

__all__ = ["NullReporter", "SpinnerReporter"]


class NullReporter:
    """Reporter that ignores all notifications."""

    def extraction_started(self, version: str, source: Path) -> None:
        pass

    def extraction_finished(self, version: str, success: bool) -> None:
        pass

    def metadata_started(self, version: str) -> None:
        pass

    def metadata_finished(self, version: str, success: bool) -> None:
        pass


class SpinnerReporter:
    """Shows a spinner on a rich console while each install step runs."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize reporter.

        Args:
            console: Console to render on. Defaults to a new Console.
        """
        self.console = console or Console()
        self._progress: Progress | None = None

    def _start(self, description: str) -> None:
        self._stop()
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )
        self._progress.start()
        self._progress.add_task(description, total=None)

    def _stop(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None

    def _finish(self, label: str, success: bool) -> None:
        self._stop()
        if success:
            self.console.print(f"[green]✓[/green] {label}")
        else:
            self.console.print(f"[red]✗[/red] {label}")

    def extraction_started(self, version: str, source: Path) -> None:
        self._start(f"Extracting {source.name} for go {version}...")

    def extraction_finished(self, version: str, success: bool) -> None:
        self._finish(f"Extracted go {version}", success)

    def metadata_started(self, version: str) -> None:
        self._start("Creating version metadata...")

    def metadata_finished(self, version: str, success: bool) -> None:
        self._finish(f"Recorded metadata for go {version}", success)
