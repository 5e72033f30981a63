"""Shared test fixtures."""

from __future__ import annotations

import io
import stat
import tarfile
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import Union
from unittest.mock import MagicMock

import pytest

from gopher.archive import ArchiveExtractor
from gopher.filesystem import RealFileSystem
from gopher.install import Installer
from gopher.progress import NullReporter
from gopher.types import TargetPlatform

# (name, content) for a file, (name, None) for a directory; optional third
# element is the mode
Entry = Union[tuple[str, Union[bytes, None]], tuple[str, Union[bytes, None], int]]

LINUX = TargetPlatform(os="linux", arch="amd64")
WINDOWS = TargetPlatform(os="windows", arch="amd64")

GO_TREE: list[Entry] = [
    ("go/", None, 0o755),
    ("go/bin/", None, 0o755),
    ("go/bin/go", b"#!/bin/sh\necho go\n", 0o755),
    ("go/VERSION", b"go1.21.0\n", 0o644),
    ("go/src/fmt/print.go", b"package fmt\n", 0o644),
]


def _unpack(entry: Entry) -> tuple[str, bytes | None, int]:
    name, content, *rest = entry
    default = 0o755 if content is None else 0o644
    return name, content, rest[0] if rest else default


def write_tar_gz(path: Path, entries: list[Entry]) -> Path:
    """Write a gzip-compressed tar archive."""
    with tarfile.open(path, mode="w:gz") as archive:
        for entry in entries:
            name, content, mode = _unpack(entry)
            info = tarfile.TarInfo(name)
            info.mode = mode
            if content is None:
                info.type = tarfile.DIRTYPE
                archive.addfile(info)
            else:
                info.size = len(content)
                archive.addfile(info, io.BytesIO(content))
    return path


def write_zip(path: Path, entries: list[Entry], unix_modes: bool = True) -> Path:
    """Write a zip archive, optionally recording unix permission bits."""
    with zipfile.ZipFile(path, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        for entry in entries:
            name, content, mode = _unpack(entry)
            info = zipfile.ZipInfo(name)
            if content is None:
                if unix_modes:
                    info.external_attr = (stat.S_IFDIR | mode) << 16
                info.external_attr |= 0x10
                archive.writestr(info, b"")
            else:
                if unix_modes:
                    info.external_attr = (stat.S_IFREG | mode) << 16
                info.compress_type = zipfile.ZIP_DEFLATED
                archive.writestr(info, content)
    return path


@pytest.fixture
def temp_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Override home directory for testing."""
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    return tmp_path


@pytest.fixture
def install_root(tmp_path: Path) -> Path:
    """Installation root that does not exist yet."""
    return tmp_path / "versions"


@pytest.fixture
def make_tar_gz(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing tar.gz archives into tmp_path."""

    def _make(entries: list[Entry] = GO_TREE, name: str = "go.tar.gz") -> Path:
        return write_tar_gz(tmp_path / name, entries)

    return _make


@pytest.fixture
def make_zip(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing zip archives into tmp_path."""

    def _make(
        entries: list[Entry] = GO_TREE, name: str = "go.zip", unix_modes: bool = True
    ) -> Path:
        return write_zip(tmp_path / name, entries, unix_modes=unix_modes)

    return _make


@pytest.fixture
def go_tar_gz(make_tar_gz: Callable[..., Path]) -> Path:
    """Structurally valid linux distribution archive."""
    return make_tar_gz()


@pytest.fixture
def extractor() -> ArchiveExtractor:
    """Extractor targeting linux/amd64."""
    return ArchiveExtractor(platform=LINUX)


@pytest.fixture
def installer(install_root: Path) -> Installer:
    """Installer with real collaborators targeting linux/amd64."""
    return Installer(
        install_dir=install_root,
        extractor=ArchiveExtractor(platform=LINUX),
        filesystem=RealFileSystem(),
        platform=LINUX,
        reporter=NullReporter(),
    )


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_filesystem() -> MagicMock:
    """Create a mock FileSystem for testing.

    Returns a MagicMock configured with the FileSystem protocol methods.
    Default behavior: paths don't exist, operations succeed.
    """
    fs = MagicMock()
    fs.exists.return_value = False
    fs.is_dir.return_value = False
    fs.list_dirs.return_value = []
    return fs


@pytest.fixture
def mock_reporter() -> MagicMock:
    """Create a mock ProgressReporter."""
    return MagicMock()
