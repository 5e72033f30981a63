"""Installation metadata sidecar.

Each installed version carries a small plain-text file recording what was
installed, for which platform, and when. The format is one ``key=value``
pair per line.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from gopher.errors import MetadataError
from gopher.security import safe_read_text, safe_write_text

__all__ = [
    "METADATA_FILENAME",
    "VersionMetadata",
    "parse_sidecar",
    "read_metadata",
    "write_metadata",
]

METADATA_FILENAME = ".gopher-metadata"

# Order keys are written in
SIDECAR_KEYS = ("version", "os", "arch", "installed_at", "install_dir")


class VersionMetadata(BaseModel):
    """Facts recorded for one installed version."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(min_length=1)
    os: str
    arch: str
    installed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    install_dir: str

    def to_sidecar(self) -> str:
        """Render as ``key=value`` lines."""
        values = {
            "version": self.version,
            "os": self.os,
            "arch": self.arch,
            "installed_at": self.installed_at.isoformat(timespec="seconds"),
            "install_dir": self.install_dir,
        }
        return "".join(f"{key}={values[key]}\n" for key in SIDECAR_KEYS)

    @classmethod
    def from_sidecar(cls, text: str) -> VersionMetadata:
        """Build from sidecar text.

        Raises:
            pydantic.ValidationError: If required keys are missing or invalid.
        """
        return cls.model_validate(parse_sidecar(text))


def parse_sidecar(text: str) -> dict[str, str]:
    """Parse ``key=value`` lines into a mapping.

    Values may contain '=' and spaces; only the first '=' separates. Blank
    lines and lines without '=' are ignored.

    Example:
        >>> parse_sidecar("version=1.21.0\\nos=linux\\n")
        {'version': '1.21.0', 'os': 'linux'}
    """
    metadata: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        metadata[key] = value.strip()
    return metadata


def write_metadata(metadata: VersionMetadata, directory: str | os.PathLike[str]) -> Path:
    """Write the sidecar into an installation directory.

    Args:
        metadata: Metadata to record.
        directory: Installation (or staging) directory.

    Returns:
        Path of the written sidecar.

    Raises:
        SecurityError: If the sidecar path escapes the directory.
        MetadataError: If the file cannot be written.
    """
    path = Path(directory) / METADATA_FILENAME
    try:
        return safe_write_text(path, directory, metadata.to_sidecar())
    except OSError as e:
        raise MetadataError(f"failed to write metadata {path}: {e}") from e


def read_metadata(directory: str | os.PathLike[str]) -> dict[str, str]:
    """Read the sidecar from an installation directory.

    Raises:
        SecurityError: If the sidecar path escapes the directory.
        MetadataError: If the file is missing or unreadable.
    """
    path = Path(directory) / METADATA_FILENAME
    try:
        text = safe_read_text(path, directory)
    except (OSError, UnicodeDecodeError) as e:
        raise MetadataError(f"failed to read metadata {path}: {e}") from e
    return parse_sidecar(text)
