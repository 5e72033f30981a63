"""Application context for dependency injection.

This module separates object creation from object use, enabling testability
and reducing coupling in CLI commands.

Dependencies are typed using Protocols (abstract interfaces) rather than
concrete implementations, so test doubles can be injected without
inheritance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from gopher.config import Config
from gopher.protocols import FileSystem, ProgressReporter, VersionInstaller


def _default_filesystem() -> FileSystem:
    """Create the default filesystem implementation."""
    from gopher.filesystem import RealFileSystem
    return RealFileSystem()


@dataclass
class AppContext:
    """Container for application dependencies.

    Provides a single injection point for all services used by CLI commands.
    """

    config: Config
    installer: VersionInstaller
    filesystem: FileSystem = field(default_factory=_default_filesystem)


def create_context(
    config_path: Path | None = None,
    install_dir: Path | None = None,
    reporter: ProgressReporter | None = None,
) -> AppContext:
    """Factory for application dependencies.

    Creates all services with proper wiring. Use this in production code.
    For tests, construct AppContext directly with test doubles.

    Args:
        config_path: Override config file location (for testing).
        install_dir: Override installation root (for testing).
        reporter: Progress reporter for installs.

    Returns:
        Configured AppContext with all dependencies.
    """
    from gopher.config import load_config
    from gopher.filesystem import RealFileSystem
    from gopher.install import Installer

    config = load_config(config_path)
    if install_dir is not None:
        config = config.model_copy(update={"install_dir": install_dir})

    filesystem = RealFileSystem()
    installer = Installer.create(
        install_dir=config.install_dir,
        platform=config.platform,
        max_file_size=config.max_file_size,
        filesystem=filesystem,
        reporter=reporter,
    )

    return AppContext(config=config, installer=installer, filesystem=filesystem)
