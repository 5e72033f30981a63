"""Error types for gopher.

Every error raised by the installation pipeline derives from GopherError and
carries a short machine-readable ``code`` so callers can branch on the kind
of failure without parsing messages.
"""

from __future__ import annotations

__all__ = [
    "ArchiveNotImplementedError",
    "BinaryNotFoundError",
    "ConfigError",
    "EntryTooLargeError",
    "ExtractionError",
    "GopherError",
    "InstallationError",
    "InvalidPathError",
    "MetadataError",
    "MissingBinaryError",
    "MissingPrefixError",
    "PathTraversalError",
    "SecurityError",
    "TruncatedEntryError",
    "UnsafePathError",
    "UninstallationError",
    "UnsupportedArchiveError",
    "UnsupportedEntryError",
    "VersionNotInstalledError",
]


class GopherError(Exception):
    """Base class for all gopher errors."""

    code = "UNKNOWN_ERROR"


# ============================================================================
# Security Errors
# ============================================================================


class SecurityError(GopherError):
    """A path failed security validation.

    Attributes:
        path: The offending input, kept verbatim for diagnostics.
    """

    message = "security check failed"

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"{self.message}: {path}" if path else self.message)


class PathTraversalError(SecurityError):
    """Path escapes its root or contains a parent-directory segment."""

    code = "PATH_TRAVERSAL"
    message = "path traversal detected"


class InvalidPathError(SecurityError):
    """Path is empty or otherwise unusable."""

    code = "INVALID_PATH"
    message = "invalid path"


class UnsafePathError(SecurityError):
    """Path contains shell metacharacters or raw traversal sequences."""

    code = "UNSAFE_PATH"
    message = "unsafe path detected"


# ============================================================================
# Structural Errors
# ============================================================================


class ExtractionError(GopherError):
    """Archive extraction failed."""

    code = "EXTRACTION_FAILED"


class UnsupportedArchiveError(ExtractionError):
    """Archive container format is not supported."""

    code = "UNSUPPORTED_FORMAT"


class ArchiveNotImplementedError(UnsupportedArchiveError):
    """Archive format is recognised but deliberately not implemented.

    Raised for Windows installer packages. Callers are expected to detect
    this and route the archive to a different install path.
    """

    code = "NOT_IMPLEMENTED"


class EntryTooLargeError(ExtractionError):
    """An entry declares a size above the per-file ceiling."""

    def __init__(self, entry: str, limit: int, size: int) -> None:
        self.entry = entry
        self.limit = limit
        self.size = size
        super().__init__(
            f"file {entry} exceeds maximum size (limit: {limit} bytes, got: {size} bytes)"
        )


class TruncatedEntryError(ExtractionError):
    """An entry's content ended before its declared size."""

    def __init__(self, entry: str, expected: int, actual: int) -> None:
        self.entry = entry
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"file {entry} is truncated (declared: {expected} bytes, read: {actual} bytes)"
        )


class UnsupportedEntryError(ExtractionError):
    """An entry is a link, device or other non-regular member."""

    def __init__(self, entry: str, kind: str) -> None:
        self.entry = entry
        self.kind = kind
        super().__init__(f"unsupported {kind} entry in archive: {entry}")


class MissingPrefixError(ExtractionError):
    """No entry carried the required top-level wrapper directory."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        super().__init__(f"archive does not have required '{prefix}' prefix")


class MissingBinaryError(ExtractionError):
    """The runnable binary was never seen at its expected location."""

    def __init__(self, binary: str) -> None:
        self.binary = binary
        super().__init__(f"archive does not contain go binary ({binary})")


# ============================================================================
# State Errors
# ============================================================================


class VersionNotInstalledError(GopherError):
    """Requested version has no installation directory."""

    code = "VERSION_NOT_INSTALLED"

    def __init__(self, version: str) -> None:
        self.version = version
        super().__init__(
            f"version {version} is not installed "
            "(use 'gopher list' to see installed versions)"
        )


class BinaryNotFoundError(GopherError):
    """Installation directory exists but the go binary is missing."""

    code = "BINARY_NOT_FOUND"

    def __init__(self, version: str, path: str) -> None:
        self.version = version
        self.path = path
        super().__init__(
            f"go binary not found for version {version} at {path} "
            "(installation may be corrupted)"
        )


class UninstallationError(GopherError):
    """An installed version could not be removed."""

    code = "UNINSTALLATION_FAILED"


class MetadataError(GopherError):
    """Metadata sidecar could not be written or read."""

    code = "METADATA_FAILED"


class InstallationError(GopherError):
    """An install step failed.

    The underlying error is chained as ``__cause__``.

    Attributes:
        version: Version being installed.
        step: Short name of the failing step.
    """

    code = "INSTALLATION_FAILED"

    def __init__(self, version: str, step: str, reason: str) -> None:
        self.version = version
        self.step = step
        super().__init__(f"failed to install go {version}: {step}: {reason}")


class ConfigError(GopherError):
    """Configuration could not be loaded, saved or validated."""

    code = "CONFIG_FAILED"
