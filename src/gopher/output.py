"""Console output for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from gopher.config import Config


class ConsoleOutput:
    """Rich rendering of command results."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize output.

        Args:
            console: Console to render on. Defaults to a new Console.
        """
        self.console = console or Console()

    def show_success(self, message: str) -> None:
        """Show success message.

        Args:
            message: Success message.
        """
        self.console.print(f"[green]✓[/green] {message}")

    def show_error(self, message: str) -> None:
        """Show error message.

        Args:
            message: Error message.
        """
        self.console.print(f"[red]✗[/red] {message}")

    def show_warning(self, message: str) -> None:
        """Show warning message.

        Args:
            message: Warning message.
        """
        self.console.print(f"[yellow]![/yellow] {message}")

    def show_versions(self, rows: list[tuple[str, str, str]]) -> None:
        """Display installed versions table.

        Args:
            rows: (version, platform, installed_at) tuples.
        """
        if not rows:
            self.console.print("[yellow]No Go versions installed[/yellow]")
            return

        table = Table(title="Installed Go Versions")
        table.add_column("Version", style="cyan")
        table.add_column("Platform")
        table.add_column("Installed")

        for version, platform, installed_at in rows:
            table.add_row(version, platform, installed_at)

        self.console.print(table)

    def show_metadata(self, version: str, metadata: dict[str, str]) -> None:
        """Display the metadata of one installed version."""
        self.console.print(f"\n[bold]Go {version}[/bold]")
        for key, value in metadata.items():
            self.console.print(f"  {key}: {value}")

    def show_config(self, config: Config) -> None:
        """Display the effective configuration."""
        self.console.print("\n[bold]Configuration[/bold]")
        self.console.print(f"  Install directory: {config.install_dir}")
        self.console.print(f"  Download directory: {config.download_dir}")
        self.console.print(f"  Max file size: {config.max_file_size} bytes")
        self.console.print(f"  Target platform: {config.target_os}/{config.target_arch}")
