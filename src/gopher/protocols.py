"""Protocol definitions for core abstractions.

This module defines abstract interfaces (Protocols) for the services the
installation pipeline collaborates with. Designing to interfaces enables:
- Loose coupling between components
- Easy substitution of test doubles
- Clear contracts for implementations

All concrete implementations satisfy these protocols structurally (duck typing).
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from gopher.types import InstallResult


@runtime_checkable
class FileSystem(Protocol):
    """Protocol for the directory-level filesystem operations of an install.

    File content is written by the extractor and the metadata layer, which
    go through path confinement instead.
    """

    def exists(self, path: Path) -> bool:
        """Check if a path exists.

        Args:
            path: Path to check.

        Returns:
            True if path exists, False otherwise.
        """
        ...

    def is_dir(self, path: Path) -> bool:
        """Check if a path is a directory.

        Args:
            path: Path to check.

        Returns:
            True if path is a directory, False otherwise.
        """
        ...

    def mkdir(self, path: Path, parents: bool = False, exist_ok: bool = False) -> None:
        """Create a directory.

        Args:
            path: Path to create.
            parents: Create parent directories if needed.
            exist_ok: Don't raise if directory exists.
        """
        ...

    def rmtree(self, path: Path) -> None:
        """Remove a directory tree.

        Args:
            path: Path to remove.
        """
        ...

    def rename(self, src: Path, dst: Path) -> None:
        """Rename a file or directory.

        Args:
            src: Existing path.
            dst: New path. Must not exist.
        """
        ...

    def list_dirs(self, path: Path) -> list[str]:
        """List names of immediate subdirectories.

        Args:
            path: Directory to enumerate.

        Returns:
            Subdirectory names in enumeration order.
        """
        ...


@runtime_checkable
class ProgressReporter(Protocol):
    """Protocol for install progress notifications.

    Notifications are informational only and never affect the outcome of
    an install.
    """

    def extraction_started(self, version: str, source: Path) -> None:
        """Called before an archive is extracted."""
        ...

    def extraction_finished(self, version: str, success: bool) -> None:
        """Called after extraction completes or fails."""
        ...

    def metadata_started(self, version: str) -> None:
        """Called before the metadata sidecar is written."""
        ...

    def metadata_finished(self, version: str, success: bool) -> None:
        """Called after the metadata sidecar is written or fails."""
        ...


@runtime_checkable
class VersionInstaller(Protocol):
    """Protocol for the install/uninstall/query surface."""

    install_dir: Path

    def install(self, version: str, source_file: Path) -> InstallResult:
        """Install a version from a downloaded archive.

        Args:
            version: Version identifier.
            source_file: Archive file.

        Returns:
            InstallResult describing the installation.
        """
        ...

    def uninstall(self, version: str) -> None:
        """Remove an installed version.

        Args:
            version: Version identifier.
        """
        ...

    def is_installed(self, version: str) -> bool:
        """Check whether a version directory exists.

        Args:
            version: Version identifier.

        Returns:
            True if installed, False otherwise.
        """
        ...

    def list_installed(self) -> list[str]:
        """List installed versions.

        Returns:
            Version identifiers in filesystem enumeration order.
        """
        ...

    def get_version_metadata(self, version: str) -> dict[str, str]:
        """Read the metadata sidecar of an installed version.

        Args:
            version: Version identifier.

        Returns:
            Mapping of metadata keys to values.
        """
        ...

    def get_go_binary_path(self, version: str) -> Path:
        """Locate the go binary of an installed version.

        Args:
            version: Version identifier.

        Returns:
            Path to the binary.
        """
        ...
