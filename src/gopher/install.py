"""Installation operations for Go versions."""

from __future__ import annotations

import logging
import os
import tempfile
import uuid
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from pathlib import Path

from filelock import FileLock

from gopher.archive import ArchiveExtractor, ExtractionReport
from gopher.errors import (
    BinaryNotFoundError,
    GopherError,
    InstallationError,
    InvalidPathError,
    SecurityError,
    UninstallationError,
    VersionNotInstalledError,
)
from gopher.filesystem import RealFileSystem
from gopher.metadata import VersionMetadata, read_metadata, write_metadata
from gopher.progress import NullReporter
from gopher.protocols import FileSystem, ProgressReporter
from gopher.security import (
    validate_directory_path,
    validate_path,
    validate_path_within_root,
)
from gopher.types import InstallResult, TargetPlatform

logger = logging.getLogger(__name__)

# Mode of a version directory whose archive has no wrapper entry
VERSION_DIR_MODE = 0o755


@contextmanager
def _install_step(version: str, step: str) -> Iterator[None]:
    """Convert failures inside an install step into InstallationError."""
    try:
        yield
    except (GopherError, OSError) as e:
        logger.exception("Installation of go %s failed: %s", version, step)
        raise InstallationError(version, step, str(e)) from e


class Installer:
    """Installs, removes and inspects Go versions under an install root.

    Follows Separate Use from Creation: constructor requires all dependencies.
    Use factory method `create()` for production instantiation with defaults.

    An install extracts into a hidden staging directory next to the final
    location and renames it into place only once extraction and metadata
    have both succeeded, so a failed or interrupted install never leaves a
    partial tree at ``<install_dir>/<version>``. Installs and uninstalls of
    the same version are serialised with an advisory file lock.
    """

    def __init__(
        self,
        install_dir: Path,
        extractor: ArchiveExtractor,
        filesystem: FileSystem,
        platform: TargetPlatform,
        reporter: ProgressReporter,
        lock_timeout: float = -1,
    ) -> None:
        """Initialize installer with required dependencies.

        Args:
            install_dir: Root directory holding one subdirectory per version.
            extractor: Archive extractor (required).
            filesystem: Filesystem abstraction (required).
            platform: Platform recorded in metadata and used for binary lookup.
            reporter: Progress reporter (required).
            lock_timeout: Seconds to wait for the per-version lock; negative
                waits indefinitely.

        Note:
            Use factory method `create()` for production code.
            Direct construction is for testing with explicit dependencies.
        """
        self.install_dir = Path(os.path.abspath(install_dir))
        self.extractor = extractor
        self.fs = filesystem
        self.platform = platform
        self.reporter = reporter
        self.lock_timeout = lock_timeout

    @classmethod
    def create(
        cls,
        install_dir: Path,
        platform: TargetPlatform | None = None,
        max_file_size: int | None = None,
        filesystem: FileSystem | None = None,
        reporter: ProgressReporter | None = None,
    ) -> Installer:
        """Factory method for production instantiation.

        Args:
            install_dir: Root directory for installed versions.
            platform: Target platform (current platform if not provided).
            max_file_size: Per-file extraction ceiling (1GB if not provided).
            filesystem: Optional filesystem abstraction (created if not provided).
            reporter: Optional progress reporter (silent if not provided).

        Returns:
            Configured Installer instance.
        """
        platform = platform or TargetPlatform.current()
        return cls(
            install_dir=install_dir,
            extractor=ArchiveExtractor.create(platform=platform, max_file_size=max_file_size),
            filesystem=filesystem or RealFileSystem(),
            platform=platform,
            reporter=reporter or NullReporter(),
        )

    # ========================================================================
    # Install / Uninstall
    # ========================================================================

    def install(self, version: str, source_file: Path) -> InstallResult:
        """Install a Go version from a downloaded archive.

        Any existing installation of the same version is replaced, but only
        after the new tree has been fully extracted and validated.

        Args:
            version: Version identifier, used as the directory name.
            source_file: Downloaded tar.gz or zip archive.

        Returns:
            InstallResult for the new installation.

        Raises:
            InstallationError: If any step fails. The underlying error is
                chained as ``__cause__``.
        """
        source = Path(source_file)

        with _install_step(version, "invalid version"):
            self._validate_version(version)
        with _install_step(version, "invalid file path"):
            validate_path(source)
        with _install_step(version, "invalid install directory"):
            validate_directory_path(self.install_dir)

        if not source.is_file():
            raise InstallationError(version, "open archive", f"archive not found: {source}")

        with _install_step(version, "unsupported archive"):
            self.extractor.check_format(source)

        with _install_step(version, "create install directory"):
            self.fs.mkdir(self.install_dir, parents=True, exist_ok=True)
            target = self._version_dir(version)

        logger.info("Installing go %s from %s", version, source)

        with ExitStack() as stack:
            with _install_step(version, "acquire install lock"):
                stack.enter_context(self._lock(version))
            with _install_step(version, "create staging directory"):
                staging = Path(
                    tempfile.mkdtemp(prefix=f".{version}.staging-", dir=self.install_dir)
                )
            try:
                with _install_step(version, "create staging directory"):
                    os.chmod(staging, VERSION_DIR_MODE)
                with _install_step(version, "extract archive"):
                    report = self._extract(version, source, staging)
                with _install_step(version, "create version metadata"):
                    self._write_metadata(version, staging, target)
                with _install_step(version, "move installation into place"):
                    self._swap_into_place(staging, target)
            except InstallationError:
                self._discard(staging)
                raise

        logger.info("Installed go %s into %s", version, target)
        return InstallResult(
            version=version,
            install_path=target,
            binary_path=target / "bin" / self.platform.binary_name,
            files_extracted=report.files,
        )

    def uninstall(self, version: str) -> None:
        """Remove an installed Go version.

        Args:
            version: Version identifier.

        Raises:
            SecurityError: If the version is not a safe path component.
            VersionNotInstalledError: If the version is not installed.
            UninstallationError: If the version cannot be locked or removed.
        """
        self._validate_version(version)
        target = self._version_dir(version)

        if not self.fs.exists(target):
            raise VersionNotInstalledError(version)

        with ExitStack() as stack:
            try:
                stack.enter_context(self._lock(version))
            except OSError as e:
                logger.exception("Could not lock go %s for uninstallation", version)
                raise UninstallationError(
                    f"failed to uninstall version {version}: {e}"
                ) from e
            if not self.fs.exists(target):
                raise VersionNotInstalledError(version)
            try:
                self.fs.rmtree(target)
            except OSError as e:
                logger.exception("Uninstallation failed for go %s", version)
                raise UninstallationError(
                    f"failed to uninstall version {version}: {e}"
                ) from e

        self._remove_lock_file(version)
        logger.info("Uninstalled go %s", version)

    # ========================================================================
    # Queries
    # ========================================================================

    def is_installed(self, version: str) -> bool:
        """Check whether a version directory exists.

        Does not validate the structure of the installation.
        """
        try:
            self._validate_version(version)
            target = self._version_dir(version)
        except SecurityError:
            return False
        return self.fs.exists(target)

    def list_installed(self) -> list[str]:
        """List installed versions.

        Returns:
            Names of the install root's subdirectories, in enumeration order.
            Hidden staging directories are skipped.

        Raises:
            GopherError: If the install root cannot be read.
        """
        if not self.fs.exists(self.install_dir):
            return []
        try:
            names = self.fs.list_dirs(self.install_dir)
        except OSError as e:
            raise GopherError(f"failed to read install directory {self.install_dir}: {e}") from e
        return [name for name in names if not name.startswith(".")]

    def get_version_metadata(self, version: str) -> dict[str, str]:
        """Read the metadata sidecar of an installed version.

        Args:
            version: Version identifier.

        Returns:
            Mapping of metadata keys to values.

        Raises:
            SecurityError: If the version is not a safe path component.
            VersionNotInstalledError: If the version is not installed.
            MetadataError: If the sidecar is missing or unreadable.
        """
        self._validate_version(version)
        target = self._version_dir(version)
        if not self.fs.exists(target):
            raise VersionNotInstalledError(version)
        return read_metadata(target)

    def get_go_binary_path(self, version: str) -> Path:
        """Locate the go binary of an installed version.

        Args:
            version: Version identifier.

        Returns:
            Path to the go binary.

        Raises:
            SecurityError: If the version is not a safe path component.
            VersionNotInstalledError: If there is no version directory.
            BinaryNotFoundError: If the directory exists but has no binary.
        """
        self._validate_version(version)
        target = self._version_dir(version)
        if not self.fs.is_dir(target):
            raise VersionNotInstalledError(version)

        binary = validate_path_within_root(target / "bin" / self.platform.binary_name, target)
        if not self.fs.exists(binary):
            raise BinaryNotFoundError(version, str(binary))
        return binary

    # ========================================================================
    # Helpers
    # ========================================================================

    def _validate_version(self, version: str) -> None:
        """Ensure a version is usable as a single path component.

        Raises:
            SecurityError: If the version fails path validation, contains a
                separator, or starts with '.'.
        """
        validate_path(version)
        if "/" in version or "\\" in version or version.startswith("."):
            raise InvalidPathError(version)

    def _version_dir(self, version: str) -> Path:
        """Return the confined installation directory of a version."""
        return validate_path_within_root(self.install_dir / version, self.install_dir)

    def _lock_path(self, version: str) -> Path:
        return self.install_dir / f".{version}.lock"

    @contextmanager
    def _lock(self, version: str) -> Iterator[None]:
        """Hold the advisory lock for one version."""
        with FileLock(str(self._lock_path(version)), timeout=self.lock_timeout):
            yield

    def _remove_lock_file(self, version: str) -> None:
        """Delete the lock file of a version that is no longer installed."""
        try:
            self._lock_path(version).unlink(missing_ok=True)
        except OSError:
            logger.warning("Failed to remove lock file for go %s", version, exc_info=True)

    def _extract(self, version: str, source: Path, staging: Path) -> ExtractionReport:
        """Extract the archive into the staging directory."""
        self.reporter.extraction_started(version, source)
        try:
            report = self.extractor.extract(source, staging)
        except Exception:
            self.reporter.extraction_finished(version, False)
            raise
        self.reporter.extraction_finished(version, True)
        return report

    def _write_metadata(self, version: str, staging: Path, target: Path) -> None:
        """Record metadata in the staging tree, pointing at the final location."""
        self.reporter.metadata_started(version)
        try:
            metadata = VersionMetadata(
                version=version,
                os=self.platform.os,
                arch=self.platform.arch,
                install_dir=str(target),
            )
            write_metadata(metadata, staging)
        except Exception:
            self.reporter.metadata_finished(version, False)
            raise
        self.reporter.metadata_finished(version, True)

    def _swap_into_place(self, staging: Path, target: Path) -> None:
        """Replace any existing installation with the staged tree.

        The previous installation is moved aside first and restored if the
        final rename fails.
        """
        backup: Path | None = None
        if self.fs.exists(target):
            backup = target.with_name(f".{target.name}.old-{uuid.uuid4().hex[:8]}")
            self.fs.rename(target, backup)

        try:
            self.fs.rename(staging, target)
        except OSError:
            if backup is not None:
                self.fs.rename(backup, target)
            raise

        if backup is not None:
            self._discard(backup)

    def _discard(self, path: Path) -> None:
        """Remove a leftover staging or backup directory."""
        if not self.fs.exists(path):
            return
        try:
            self.fs.rmtree(path)
        except OSError:
            logger.warning("Failed to remove %s", path, exc_info=True)
