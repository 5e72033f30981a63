"""Path validation and confinement.

Every path that reaches a filesystem call during installation passes
through this module first. The checks are purely lexical: paths are
normalised with ``os.path.normpath``/``os.path.abspath`` and symlinks are
not resolved.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from gopher.errors import InvalidPathError, PathTraversalError, UnsafePathError

__all__ = [
    "get_safe_path",
    "is_safe_path",
    "safe_read_text",
    "safe_write_text",
    "sanitize_path",
    "validate_directory_path",
    "validate_path",
    "validate_path_within_root",
]

# Checked against the raw input of relative paths only
SUSPICIOUS_PATTERNS = ("..", "~", "$", "`", "|", "&", ";", "(", ")", "<", ">")

_SUSPICIOUS_CHARS = ("$", "`", "|", "&", ";", "(", ")", "<", ">")
_SEPARATORS = re.compile(r"[\\/]")


def _has_parent_segment(path: str) -> bool:
    """Return True if any separator-delimited segment is '..'."""
    return ".." in _SEPARATORS.split(path)


def validate_path(path: str | os.PathLike[str]) -> None:
    """Validate a path for traversal and shell-injection patterns.

    Args:
        path: Path to validate.

    Raises:
        InvalidPathError: If the path is empty or contains a NUL byte.
        PathTraversalError: If the normalised path has a '..' segment.
        UnsafePathError: If a relative path contains a suspicious pattern.

    Example:
        >>> validate_path("go1.21.0")
        >>> validate_path("../go1.21.0")
        Traceback (most recent call last):
        ...
        gopher.errors.PathTraversalError: path traversal detected: ../go1.21.0
    """
    raw = os.fspath(path)
    if not raw:
        raise InvalidPathError("empty path")
    if "\x00" in raw:
        raise InvalidPathError(raw)

    clean = os.path.normpath(raw)
    if _has_parent_segment(clean):
        raise PathTraversalError(raw)

    # Absolute paths carry no further restriction here; callers that need
    # confinement use validate_path_within_root.
    if os.path.isabs(clean):
        return

    for pattern in SUSPICIOUS_PATTERNS:
        if pattern in raw:
            raise UnsafePathError(raw)


def validate_directory_path(path: str | os.PathLike[str]) -> None:
    """Validate a directory path. Trailing separators are tolerated."""
    validate_path(path)


def is_safe_path(path: str | os.PathLike[str]) -> bool:
    """Check whether a path passes validate_path."""
    try:
        validate_path(path)
    except (InvalidPathError, PathTraversalError, UnsafePathError):
        return False
    return True


def get_safe_path(path: str | os.PathLike[str]) -> str:
    """Validate a path and return its normalised form."""
    validate_path(path)
    return os.path.normpath(os.fspath(path))


def validate_path_within_root(
    path: str | os.PathLike[str], root: str | os.PathLike[str]
) -> Path:
    """Ensure a path resolves inside a root directory.

    Both paths are made absolute and lexically normalised, then the path
    relative to the root is computed. A relative path that climbs out of
    the root is rejected.

    Args:
        path: Candidate path, absolute or relative to the working directory.
        root: Directory the path must stay inside.

    Returns:
        The absolute, normalised path.

    Raises:
        InvalidPathError: If either argument is empty.
        PathTraversalError: If the path resolves outside the root.
        UnsafePathError: If a relative path contains a suspicious pattern.
    """
    validate_path(path)
    root_str = os.fspath(root)
    if not root_str:
        raise InvalidPathError("empty root")

    abs_path = os.path.abspath(os.fspath(path))
    abs_root = os.path.abspath(root_str)

    try:
        rel = os.path.relpath(abs_path, abs_root)
    except ValueError:
        # Different drives on Windows
        raise PathTraversalError(os.fspath(path)) from None

    if rel == os.pardir or rel.startswith(os.pardir + os.sep):
        raise PathTraversalError(os.fspath(path))

    return Path(abs_path)


def sanitize_path(path: str) -> str:
    """Strip dangerous components from a path for display purposes.

    This is not a security boundary. Writes must still go through
    validate_path_within_root.

    Args:
        path: Path to sanitize.

    Returns:
        Cleaned path with '..', '~' and shell metacharacters removed.
    """
    sanitized = path.replace("..", "").replace("~", "")
    for char in _SUSPICIOUS_CHARS:
        sanitized = sanitized.replace(char, "")

    clean = os.path.normpath(sanitized)
    if not os.path.isabs(path):
        clean = clean.lstrip("/\\")
    return clean


def safe_read_text(path: str | os.PathLike[str], root: str | os.PathLike[str]) -> str:
    """Read a text file after confirming it lies inside root."""
    safe_path = validate_path_within_root(path, root)
    return safe_path.read_text(encoding="utf-8")


def safe_write_text(
    path: str | os.PathLike[str], root: str | os.PathLike[str], content: str
) -> Path:
    """Write a text file after confirming it lies inside root.

    Returns:
        The validated path that was written.
    """
    safe_path = validate_path_within_root(path, root)
    safe_path.write_text(content, encoding="utf-8")
    return safe_path
