"""Secure extraction of Go distribution archives.

Archive entry names, declared sizes and declared modes are untrusted. Every
derived path is confined to the extraction directory, every regular file is
checked against a size ceiling before any content is copied, and the copy
itself never reads past the declared size.
"""

from __future__ import annotations

import gzip
import logging
import os
import stat
import tarfile
import zipfile
import zlib
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO

from gopher.errors import (
    ArchiveNotImplementedError,
    EntryTooLargeError,
    ExtractionError,
    MissingBinaryError,
    MissingPrefixError,
    TruncatedEntryError,
    UnsupportedArchiveError,
    UnsupportedEntryError,
)
from gopher.security import validate_path_within_root
from gopher.types import TargetPlatform

logger = logging.getLogger(__name__)

__all__ = [
    "ARCHIVE_PREFIX",
    "MAX_FILE_SIZE",
    "ArchiveEntry",
    "ArchiveExtractor",
    "ArchiveKind",
    "EntryKind",
    "ExtractionReport",
    "detect_archive_kind",
    "permission_bits",
]

# Go distributions are well under 500MB; no single file may exceed 1GB
MAX_FILE_SIZE = 1 << 30

# Top-level wrapper directory of every official Go archive
ARCHIVE_PREFIX = "go/"

_COPY_CHUNK_SIZE = 1 << 20

_GZIP_MAGIC = b"\x1f\x8b"
_ZIP_MAGICS = (b"PK\x03\x04", b"PK\x05\x06")
_OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

_DEFAULT_DIR_MODE = 0o755
_DEFAULT_FILE_MODE = 0o644


class ArchiveKind(str, Enum):
    """Container formats recognised by the extractor."""

    TAR_GZ = "tar.gz"
    ZIP = "zip"
    MSI = "msi"
    UNSUPPORTED = "unsupported"


class EntryKind(str, Enum):
    """Kind of a single archive member."""

    DIRECTORY = "directory"
    FILE = "regular file"
    SYMLINK = "symlink"
    HARDLINK = "hard link"
    DEVICE = "device"
    FIFO = "fifo"
    OTHER = "special"


@dataclass(frozen=True)
class ArchiveEntry:
    """One member as declared by the archive header.

    Attributes:
        name: Slash-separated member name, untrusted.
        kind: Member kind.
        size: Declared uncompressed size in bytes.
        mode: Declared permission bits, unmasked.
    """

    name: str
    kind: EntryKind
    size: int
    mode: int


@dataclass
class ExtractionReport:
    """Structural facts gathered while extracting an archive.

    The post-extraction check is ``validate()``, which looks only at this
    structure.
    """

    prefix: str
    binary: str
    saw_prefix: bool = False
    saw_binary: bool = False
    files: int = 0
    directories: int = 0
    bytes_written: int = 0

    @property
    def is_valid(self) -> bool:
        """True when both structural invariants hold."""
        return self.saw_prefix and self.saw_binary

    def validate(self) -> None:
        """Raise if the extracted tree is not a usable installation.

        Raises:
            MissingPrefixError: No entry was under the wrapper directory.
            MissingBinaryError: The go binary was never extracted.
        """
        if not self.saw_prefix:
            raise MissingPrefixError(self.prefix)
        if not self.saw_binary:
            raise MissingBinaryError(self.binary)


def permission_bits(mode: int) -> int:
    """Mask a declared archive mode down to the permission bits."""
    return int(mode) & 0o777


def detect_archive_kind(path: str | os.PathLike[str]) -> ArchiveKind:
    """Determine the container format of an archive.

    The file extension decides when it is recognised; otherwise the first
    bytes of the file are inspected.

    Args:
        path: Path to the archive.

    Returns:
        The detected ArchiveKind, UNSUPPORTED when nothing matches.
    """
    name = Path(path).name.lower()
    if name.endswith((".tar.gz", ".tgz")):
        return ArchiveKind.TAR_GZ
    if name.endswith(".zip"):
        return ArchiveKind.ZIP
    if name.endswith(".msi"):
        return ArchiveKind.MSI
    if name.endswith(".gz"):
        # Plain gzip of a single file, not a distribution
        return ArchiveKind.UNSUPPORTED
    return _sniff_archive_kind(Path(path))


def _sniff_archive_kind(path: Path) -> ArchiveKind:
    """Detect the container format from magic bytes."""
    try:
        with path.open("rb") as fh:
            head = fh.read(len(_OLE_MAGIC))
    except OSError:
        return ArchiveKind.UNSUPPORTED

    if head.startswith(_GZIP_MAGIC):
        return ArchiveKind.TAR_GZ
    if head.startswith(_ZIP_MAGICS):
        return ArchiveKind.ZIP
    if head.startswith(_OLE_MAGIC):
        return ArchiveKind.MSI
    return ArchiveKind.UNSUPPORTED


def _copy_bounded(src: IO[bytes], dst: IO[bytes], size: int) -> int:
    """Copy at most ``size`` bytes and return the number copied."""
    remaining = size
    written = 0
    while remaining > 0:
        chunk = src.read(min(_COPY_CHUNK_SIZE, remaining))
        if not chunk:
            break
        dst.write(chunk)
        remaining -= len(chunk)
        written += len(chunk)
    return written


def _tar_entry(member: tarfile.TarInfo) -> ArchiveEntry:
    """Describe a tar member."""
    if member.isdir():
        kind = EntryKind.DIRECTORY
    elif member.isfile():
        kind = EntryKind.FILE
    elif member.issym():
        kind = EntryKind.SYMLINK
    elif member.islnk():
        kind = EntryKind.HARDLINK
    elif member.ischr() or member.isblk():
        kind = EntryKind.DEVICE
    elif member.isfifo():
        kind = EntryKind.FIFO
    else:
        kind = EntryKind.OTHER
    return ArchiveEntry(name=member.name, kind=kind, size=member.size, mode=member.mode)


def _zip_entry(info: zipfile.ZipInfo) -> ArchiveEntry:
    """Describe a zip member.

    Zips written without unix attributes carry no mode; those fall back to
    conventional defaults.
    """
    unix_mode = (info.external_attr >> 16) & 0xFFFF
    if info.is_dir():
        kind = EntryKind.DIRECTORY
    elif stat.S_ISLNK(unix_mode):
        kind = EntryKind.SYMLINK
    else:
        kind = EntryKind.FILE

    mode = permission_bits(unix_mode)
    if not mode:
        mode = _DEFAULT_DIR_MODE if kind is EntryKind.DIRECTORY else _DEFAULT_FILE_MODE
    return ArchiveEntry(name=info.filename, kind=kind, size=info.file_size, mode=mode)


class ArchiveExtractor:
    """Extracts Go distribution archives into a directory.

    The target platform is injected so the expected binary name does not
    depend on the machine running the extraction.
    """

    def __init__(
        self,
        platform: TargetPlatform,
        max_file_size: int = MAX_FILE_SIZE,
        prefix: str = ARCHIVE_PREFIX,
    ) -> None:
        """Initialize extractor.

        Args:
            platform: Platform the archive is expected to target.
            max_file_size: Per-file ceiling on declared size, in bytes.
            prefix: Required wrapper directory, with trailing slash.
        """
        if max_file_size <= 0:
            raise ValueError("max_file_size must be positive")
        if not prefix.endswith("/"):
            raise ValueError("prefix must end with '/'")
        self.platform = platform
        self.max_file_size = max_file_size
        self.prefix = prefix

    @classmethod
    def create(
        cls,
        platform: TargetPlatform | None = None,
        max_file_size: int | None = None,
    ) -> ArchiveExtractor:
        """Factory method with defaults for the running platform.

        Args:
            platform: Target platform (current platform if not provided).
            max_file_size: Per-file ceiling (1GB if not provided).

        Returns:
            Configured ArchiveExtractor.
        """
        return cls(
            platform=platform or TargetPlatform.current(),
            max_file_size=max_file_size or MAX_FILE_SIZE,
        )

    def check_format(self, source: str | os.PathLike[str]) -> ArchiveKind:
        """Confirm an archive can be extracted, without touching the target.

        Args:
            source: Archive file.

        Returns:
            The detected ArchiveKind (TAR_GZ or ZIP).

        Raises:
            ArchiveNotImplementedError: For installer packages.
            UnsupportedArchiveError: For unrecognised formats.
        """
        kind = detect_archive_kind(source)
        if kind is ArchiveKind.MSI:
            raise ArchiveNotImplementedError(f"MSI extraction is not implemented: {source}")
        if kind is ArchiveKind.UNSUPPORTED:
            raise UnsupportedArchiveError(f"unsupported archive format: {source}")
        return kind

    def extract(
        self, source: str | os.PathLike[str], target: str | os.PathLike[str]
    ) -> ExtractionReport:
        """Extract an archive and verify the resulting tree.

        Args:
            source: Archive file.
            target: Directory to extract into. Created if missing.

        Returns:
            ExtractionReport for the completed extraction.

        Raises:
            ArchiveNotImplementedError: For installer packages.
            UnsupportedArchiveError: For unrecognised formats.
            SecurityError: If any entry escapes the target directory.
            ExtractionError: For oversized, truncated or unsupported entries,
                unreadable archives, filesystem failures, and missing
                structural invariants.
        """
        source_path = Path(source)
        kind = self.check_format(source_path)

        target_dir = Path(os.path.abspath(target))
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExtractionError(f"failed to create directory {target_dir}: {e}") from e

        report = ExtractionReport(prefix=self.prefix, binary=self.platform.binary_relpath)
        dir_modes: dict[Path, int] = {}

        logger.debug("Extracting %s archive %s into %s", kind.value, source_path, target_dir)
        try:
            if kind is ArchiveKind.TAR_GZ:
                self._extract_tar(source_path, target_dir, report, dir_modes)
            else:
                self._extract_zip(source_path, target_dir, report, dir_modes)
        except (
            tarfile.TarError,
            zipfile.BadZipFile,
            gzip.BadGzipFile,
            zlib.error,
            EOFError,
            NotImplementedError,
        ) as e:
            raise ExtractionError(f"failed to read archive {source_path}: {e}") from e
        except OSError as e:
            raise ExtractionError(f"failed to open archive {source_path}: {e}") from e

        self._apply_dir_modes(dir_modes)
        logger.debug(
            "Extracted %d files and %d directories (%d bytes)",
            report.files,
            report.directories,
            report.bytes_written,
        )

        report.validate()
        return report

    def _extract_tar(
        self,
        source: Path,
        target: Path,
        report: ExtractionReport,
        dir_modes: dict[Path, int],
    ) -> None:
        """Extract a gzip-compressed tar archive."""
        with tarfile.open(source, mode="r:gz") as archive:
            for member in archive:
                entry = _tar_entry(member)
                self._extract_entry(
                    entry,
                    lambda member=member: archive.extractfile(member),
                    target,
                    report,
                    dir_modes,
                )

    def _extract_zip(
        self,
        source: Path,
        target: Path,
        report: ExtractionReport,
        dir_modes: dict[Path, int],
    ) -> None:
        """Extract a zip archive.

        The declared size is read from the central directory, so the
        ceiling is enforced before the member stream is opened.
        """
        with zipfile.ZipFile(source) as archive:
            for info in archive.infolist():
                entry = _zip_entry(info)
                self._extract_entry(
                    entry,
                    lambda info=info: archive.open(info),
                    target,
                    report,
                    dir_modes,
                )

    def _extract_entry(
        self,
        entry: ArchiveEntry,
        open_stream: Callable[[], IO[bytes] | None],
        target: Path,
        report: ExtractionReport,
        dir_modes: dict[Path, int],
    ) -> None:
        """Confine, classify and write a single entry."""
        name = entry.name.replace("\\", "/")
        if entry.kind is EntryKind.DIRECTORY and name.rstrip("/") == self.prefix.rstrip("/"):
            # tarfile drops the trailing slash, so the wrapper arrives as "go"
            report.saw_prefix = True
            relative = ""
        elif name.startswith(self.prefix):
            report.saw_prefix = True
            relative = name[len(self.prefix) :]
        else:
            relative = name

        dest = validate_path_within_root(os.path.join(target, relative), target)

        if entry.kind is EntryKind.DIRECTORY:
            self._make_dir(dest)
            dir_modes[dest] = permission_bits(entry.mode)
            report.directories += 1
            return

        if entry.kind is not EntryKind.FILE:
            raise UnsupportedEntryError(entry.name, entry.kind.value)

        report.bytes_written += self._write_file(entry, open_stream, dest)
        report.files += 1
        if relative == report.binary:
            report.saw_binary = True

    def _make_dir(self, path: Path, mode: int = _DEFAULT_DIR_MODE) -> None:
        """Create a directory and its ancestors."""
        try:
            path.mkdir(mode=mode, parents=True, exist_ok=True)
        except OSError as e:
            raise ExtractionError(f"failed to create directory {path}: {e}") from e

    def _write_file(
        self,
        entry: ArchiveEntry,
        open_stream: Callable[[], IO[bytes] | None],
        dest: Path,
    ) -> int:
        """Copy one regular file, bounded by its declared size."""
        if entry.size > self.max_file_size:
            raise EntryTooLargeError(entry.name, self.max_file_size, entry.size)

        self._make_dir(dest.parent)

        stream = open_stream()
        if stream is None:
            raise ExtractionError(f"failed to open archive member {entry.name}")

        try:
            with stream as src, dest.open("wb") as dst:
                written = _copy_bounded(src, dst, entry.size)
        except OSError as e:
            raise ExtractionError(f"failed to write {dest}: {e}") from e

        if written != entry.size:
            raise TruncatedEntryError(entry.name, entry.size, written)

        try:
            os.chmod(dest, permission_bits(entry.mode))
        except OSError as e:
            raise ExtractionError(f"failed to set file permissions on {dest}: {e}") from e

        logger.debug("Extracted %s (%d bytes)", entry.name, written)
        return written

    def _apply_dir_modes(self, dir_modes: dict[Path, int]) -> None:
        """Apply directory permissions, deepest first.

        Deferred until all entries are written so that a read-only
        directory does not block extraction of its own children.
        """
        for path in sorted(dir_modes, key=lambda p: len(p.parts), reverse=True):
            try:
                os.chmod(path, dir_modes[path])
            except OSError as e:
                raise ExtractionError(
                    f"failed to set directory permissions on {path}: {e}"
                ) from e
