"""CLI commands using Typer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

if TYPE_CHECKING:
    from gopher.context import AppContext

import typer
from rich.console import Console
from rich.logging import RichHandler

from gopher import __version__
from gopher.context import create_context
from gopher.errors import GopherError, MetadataError, SecurityError, VersionNotInstalledError
from gopher.output import ConsoleOutput
from gopher.progress import SpinnerReporter

app = typer.Typer(
    name="gopher",
    help="Install and manage Go toolchain versions",
    no_args_is_help=True,
)

config_app = typer.Typer(help="Configuration commands")

app.add_typer(config_app, name="config")

console = Console()
output = ConsoleOutput(console)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"gopher v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Route package logs to the console when verbose."""
    logger = logging.getLogger("gopher")
    if not verbose:
        return
    logger.setLevel(logging.DEBUG)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show debug logging")
    ] = False,
) -> None:
    """Install and manage Go toolchain versions."""
    _configure_logging(verbose)


def _fail(message: str) -> typer.Exit:
    output.show_error(message)
    return typer.Exit(1)


def _load_context(context: AppContext | None, **kwargs) -> AppContext:
    """Return the injected context or build the production one."""
    if context is not None:
        return context
    try:
        return create_context(**kwargs)
    except GopherError as e:
        raise _fail(str(e)) from e


# ============================================================================
# Install Commands
# ============================================================================


@app.command()
def install(
    version: Annotated[str, typer.Argument(help="Version to install (e.g. 1.21.0)")],
    archive: Annotated[Path, typer.Argument(help="Downloaded Go archive (.tar.gz or .zip)")],
    _context=None,
) -> None:
    """Install a Go version from a downloaded archive."""
    ctx = _load_context(_context, reporter=SpinnerReporter(console))

    try:
        ctx.config.ensure_directories()
        result = ctx.installer.install(version, archive)
    except GopherError as e:
        raise _fail(str(e)) from e

    output.show_success(f"Installed go {result.version} to {result.install_path}")
    output.show_success(f"Extracted {result.files_extracted} files")


@app.command()
def uninstall(
    version: Annotated[str, typer.Argument(help="Version to uninstall")],
    _context=None,
) -> None:
    """Uninstall a Go version."""
    ctx = _load_context(_context)

    try:
        ctx.installer.uninstall(version)
    except VersionNotInstalledError as e:
        output.show_warning(str(e))
        raise typer.Exit(1) from e
    except GopherError as e:
        raise _fail(str(e)) from e

    output.show_success(f"Uninstalled go {version}")


# ============================================================================
# Query Commands
# ============================================================================


def _version_row(ctx: AppContext, version: str) -> tuple[str, str, str]:
    """Summarise one installed version, tolerating a missing sidecar."""
    try:
        metadata = ctx.installer.get_version_metadata(version)
    except (MetadataError, SecurityError):
        return version, "unknown", "unknown"
    platform = f"{metadata.get('os', '?')}/{metadata.get('arch', '?')}"
    return version, platform, metadata.get("installed_at", "unknown")


@app.command("list")
def list_versions(
    _context=None,
) -> None:
    """List installed Go versions."""
    ctx = _load_context(_context)

    try:
        versions = ctx.installer.list_installed()
    except GopherError as e:
        raise _fail(str(e)) from e

    output.show_versions([_version_row(ctx, v) for v in sorted(versions)])


@app.command()
def info(
    version: Annotated[str, typer.Argument(help="Installed version")],
    _context=None,
) -> None:
    """Show metadata for an installed Go version."""
    ctx = _load_context(_context)

    try:
        metadata = ctx.installer.get_version_metadata(version)
    except GopherError as e:
        raise _fail(str(e)) from e

    output.show_metadata(version, metadata)


@app.command()
def which(
    version: Annotated[str, typer.Argument(help="Installed version")],
    _context=None,
) -> None:
    """Print the path of the go binary for an installed version."""
    ctx = _load_context(_context)

    try:
        binary = ctx.installer.get_go_binary_path(version)
    except GopherError as e:
        raise _fail(str(e)) from e

    console.print(str(binary), highlight=False, soft_wrap=True)


# ============================================================================
# Config Commands
# ============================================================================


@config_app.command("show")
def config_show(
    _context=None,
) -> None:
    """Show current configuration."""
    ctx = _load_context(_context)
    output.show_config(ctx.config)
    if not ctx.filesystem.exists(ctx.config.install_dir):
        output.show_warning(f"Install directory does not exist yet: {ctx.config.install_dir}")


if __name__ == "__main__":
    app()
