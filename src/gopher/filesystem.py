"""Filesystem abstraction for testability.

This module provides a filesystem abstraction that enables testing the
install orchestration without real I/O operations. The RealFileSystem
implementation wraps standard library operations.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path


class RealFileSystem:
    """Production filesystem implementation.

    Wraps standard library Path, os and shutil operations.
    Satisfies the FileSystem protocol structurally.
    """

    def exists(self, path: Path) -> bool:
        """Check if a path exists."""
        return path.exists()

    def is_dir(self, path: Path) -> bool:
        """Check if a path is a directory."""
        return path.is_dir()

    def mkdir(self, path: Path, parents: bool = False, exist_ok: bool = False) -> None:
        """Create a directory."""
        path.mkdir(parents=parents, exist_ok=exist_ok)

    def rmtree(self, path: Path) -> None:
        """Remove a directory tree."""
        shutil.rmtree(path)

    def rename(self, src: Path, dst: Path) -> None:
        """Rename a file or directory."""
        os.rename(src, dst)

    def list_dirs(self, path: Path) -> list[str]:
        """List names of immediate subdirectories."""
        with os.scandir(path) as entries:
            return [entry.name for entry in entries if entry.is_dir(follow_symlinks=False)]
