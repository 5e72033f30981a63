"""Shared data types for gopher."""

from __future__ import annotations

import platform as _platform
import sys
from dataclasses import dataclass
from pathlib import Path

__all__ = ["InstallResult", "TargetPlatform"]

# Python machine names mapped to Go GOARCH values
_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv6l": "armv6l",
    "armv7l": "armv6l",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
}


@dataclass(frozen=True)
class TargetPlatform:
    """Operating system and architecture a toolchain is installed for.

    Attributes:
        os: Go-style OS name (linux, darwin, windows, ...).
        arch: Go-style architecture name (amd64, arm64, ...).
    """

    os: str
    arch: str

    @classmethod
    def current(cls) -> TargetPlatform:
        """Describe the platform the interpreter is running on."""
        if sys.platform.startswith("win"):
            os_name = "windows"
        elif sys.platform == "darwin":
            os_name = "darwin"
        elif sys.platform.startswith("freebsd"):
            os_name = "freebsd"
        else:
            os_name = "linux"
        machine = _platform.machine().lower()
        return cls(os=os_name, arch=_ARCH_ALIASES.get(machine, machine))

    @property
    def binary_name(self) -> str:
        """File name of the go binary on this platform."""
        return "go.exe" if self.os == "windows" else "go"

    @property
    def binary_relpath(self) -> str:
        """Slash-separated location of the go binary inside an installation."""
        return f"bin/{self.binary_name}"


@dataclass
class InstallResult:
    """Result of a successful installation.

    Attributes:
        version: Installed version identifier.
        install_path: Final installation directory.
        binary_path: Path to the go binary inside the installation.
        files_extracted: Number of regular files written.
    """

    version: str
    install_path: Path
    binary_path: Path
    files_extracted: int = 0

    def __post_init__(self) -> None:
        """Validate invariants."""
        if not self.version:
            raise ValueError("version cannot be empty")
        if self.files_extracted < 0:
            raise ValueError("files_extracted cannot be negative")
        if self.install_path not in self.binary_path.parents:
            raise ValueError("binary_path must be inside install_path")
