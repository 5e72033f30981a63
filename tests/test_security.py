"""Tests for the security module."""

from __future__ import annotations

from pathlib import Path

import pytest

from gopher.errors import InvalidPathError, PathTraversalError, UnsafePathError
from gopher.security import (
    get_safe_path,
    is_safe_path,
    safe_read_text,
    safe_write_text,
    sanitize_path,
    validate_directory_path,
    validate_path,
    validate_path_within_root,
)


class TestValidatePath:
    """Tests for validate_path function."""

    def test_valid_relative_path(self) -> None:
        """Accepts a plain relative name."""
        validate_path("go1.21.0")

    def test_valid_nested_path(self) -> None:
        """Accepts a nested relative path."""
        validate_path("versions/go1.21.0")

    def test_valid_absolute_path(self) -> None:
        """Accepts an absolute path."""
        validate_path("/tmp/go1.21.0")

    def test_accepts_path_object(self) -> None:
        """Accepts os.PathLike input."""
        validate_path(Path("versions") / "go1.21.0")

    def test_empty_path(self) -> None:
        """Rejects an empty path as invalid."""
        with pytest.raises(InvalidPathError) as exc_info:
            validate_path("")
        assert exc_info.value.code == "INVALID_PATH"

    def test_nul_byte(self) -> None:
        """Rejects a path containing a NUL byte."""
        with pytest.raises(InvalidPathError):
            validate_path("go1.21.0\x00evil")

    def test_parent_segment(self) -> None:
        """Rejects a leading parent-directory segment."""
        with pytest.raises(PathTraversalError) as exc_info:
            validate_path("../go1.21.0")
        assert exc_info.value.code == "PATH_TRAVERSAL"
        assert exc_info.value.path == "../go1.21.0"

    def test_multiple_parent_segments(self) -> None:
        """Rejects several parent-directory segments."""
        with pytest.raises(PathTraversalError):
            validate_path("../../go1.21.0")

    def test_parent_segment_with_backslash(self) -> None:
        """Rejects parent-directory segments separated by backslashes."""
        with pytest.raises(PathTraversalError):
            validate_path("..\\go1.21.0")

    def test_parent_segment_surviving_normalisation(self) -> None:
        """Rejects a relative path that still climbs after normalisation."""
        with pytest.raises(PathTraversalError):
            validate_path("versions/../../go1.21.0")

    def test_absolute_path_collapses_parent_segments(self) -> None:
        """Absolute paths are normalised before the segment check."""
        validate_path("/tmp/versions/../go1.21.0")

    @pytest.mark.parametrize(
        "path",
        [
            "~/go1.21.0",
            "$HOME/go1.21.0",
            "`go1.21.0`",
            "go1.21.0|rm",
            "go1.21.0&rm",
            "go1.21.0;rm",
            "go1.21.0(rm)",
            "go1.21.0<rm",
            "go1.21.0>rm",
        ],
    )
    def test_shell_metacharacters(self, path: str) -> None:
        """Rejects relative paths containing shell metacharacters."""
        with pytest.raises(UnsafePathError) as exc_info:
            validate_path(path)
        assert exc_info.value.code == "UNSAFE_PATH"

    def test_literal_dots_inside_name(self) -> None:
        """Rejects a raw '..' sequence even when it is not a segment."""
        with pytest.raises(UnsafePathError):
            validate_path("go..1")

    def test_error_message_includes_path(self) -> None:
        """Error message names the offending path."""
        with pytest.raises(UnsafePathError, match=r"unsafe path detected: go1\.21\.0;rm"):
            validate_path("go1.21.0;rm")


class TestValidateDirectoryPath:
    """Tests for validate_directory_path function."""

    def test_valid_directory(self) -> None:
        """Accepts a plain directory name."""
        validate_directory_path("versions")

    def test_valid_absolute_directory(self) -> None:
        """Accepts an absolute directory."""
        validate_directory_path("/tmp/versions")

    def test_trailing_slash(self) -> None:
        """Tolerates a trailing slash."""
        validate_directory_path("versions/")

    def test_trailing_backslash(self) -> None:
        """Tolerates a trailing backslash."""
        validate_directory_path("versions\\")

    def test_empty_directory(self) -> None:
        """Rejects an empty directory path."""
        with pytest.raises(InvalidPathError):
            validate_directory_path("")

    def test_traversal(self) -> None:
        """Rejects a directory above the current one."""
        with pytest.raises(PathTraversalError):
            validate_directory_path("../versions")

    def test_suspicious_characters(self) -> None:
        """Rejects shell metacharacters."""
        with pytest.raises(UnsafePathError):
            validate_directory_path("versions$")


class TestIsSafePath:
    """Tests for is_safe_path function."""

    def test_safe_paths(self) -> None:
        """Returns True for accepted paths."""
        assert is_safe_path("go1.21.0") is True
        assert is_safe_path("versions/go1.21.0") is True

    def test_unsafe_paths(self) -> None:
        """Returns False instead of raising."""
        assert is_safe_path("../go1.21.0") is False
        assert is_safe_path("go1.21.0$") is False
        assert is_safe_path("") is False


class TestGetSafePath:
    """Tests for get_safe_path function."""

    def test_returns_normalised_path(self) -> None:
        """Strips redundant current-directory segments."""
        assert get_safe_path("./go1.21.0") == "go1.21.0"
        assert get_safe_path("versions/go1.21.0") == "versions/go1.21.0"

    def test_rejects_traversal(self) -> None:
        """Raises for unsafe input."""
        with pytest.raises(PathTraversalError):
            get_safe_path("../go1.21.0")


class TestValidatePathWithinRoot:
    """Tests for validate_path_within_root function."""

    def test_path_inside_root(self, tmp_path: Path) -> None:
        """Returns the absolute path for a path inside root."""
        result = validate_path_within_root(tmp_path / "go" / "bin" / "go", tmp_path)
        assert result == tmp_path / "go" / "bin" / "go"
        assert result.is_absolute()

    def test_root_itself(self, tmp_path: Path) -> None:
        """The root is contained in itself."""
        assert validate_path_within_root(tmp_path, tmp_path) == tmp_path

    def test_escape_through_parent_segments(self, tmp_path: Path) -> None:
        """Rejects a path that climbs out of root after normalisation."""
        with pytest.raises(PathTraversalError):
            validate_path_within_root(f"{tmp_path}/a/../../etc/passwd", tmp_path)

    def test_sibling_with_common_prefix(self, tmp_path: Path) -> None:
        """Rejects a sibling whose name starts with the root's name."""
        root = tmp_path / "root"
        with pytest.raises(PathTraversalError):
            validate_path_within_root(tmp_path / "root-evil" / "file", root)

    def test_absolute_path_outside_root(self, tmp_path: Path) -> None:
        """Rejects an unrelated absolute path."""
        with pytest.raises(PathTraversalError):
            validate_path_within_root("/etc/passwd", tmp_path)

    def test_parent_segment_rejected_for_any_root(self, tmp_path: Path) -> None:
        """Relative names with parent segments fail whatever the root is."""
        for root in (tmp_path, tmp_path / "deep" / "er", Path("/")):
            with pytest.raises(PathTraversalError):
                validate_path_within_root("../outside", root)

    def test_empty_root(self, tmp_path: Path) -> None:
        """Rejects an empty root."""
        with pytest.raises(InvalidPathError):
            validate_path_within_root(tmp_path / "file", "")

    def test_empty_path(self, tmp_path: Path) -> None:
        """Rejects an empty path."""
        with pytest.raises(InvalidPathError):
            validate_path_within_root("", tmp_path)


class TestSanitizePath:
    """Tests for sanitize_path function."""

    def test_clean_path_unchanged(self) -> None:
        """Leaves a clean path alone."""
        assert sanitize_path("go1.21.0") == "go1.21.0"

    def test_strips_parent_segments(self) -> None:
        """Removes leading parent-directory segments."""
        assert sanitize_path("../go1.21.0") == "go1.21.0"
        assert sanitize_path("../../go1.21.0") == "go1.21.0"
        assert sanitize_path("..\\go1.21.0") == "go1.21.0"

    def test_strips_tilde(self) -> None:
        """Removes home-directory shorthand."""
        assert sanitize_path("~/go1.21.0") == "go1.21.0"

    def test_strips_metacharacters(self) -> None:
        """Removes shell metacharacters."""
        assert sanitize_path("$HOME/go1.21.0") == "HOME/go1.21.0"
        assert sanitize_path("`go1.21.0`") == "go1.21.0"
        assert sanitize_path("go1.21.0|rm") == "go1.21.0rm"
        assert sanitize_path("go1.21.0&rm") == "go1.21.0rm"
        assert sanitize_path("go1.21.0;rm") == "go1.21.0rm"
        assert sanitize_path("go1.21.0(rm)") == "go1.21.0rm"
        assert sanitize_path("go1.21.0<rm") == "go1.21.0rm"


class TestSafeTextIO:
    """Tests for safe_write_text and safe_read_text."""

    def test_round_trip_inside_root(self, tmp_path: Path) -> None:
        """Writes and reads back a file inside root."""
        written = safe_write_text(tmp_path / "note.txt", tmp_path, "hello")
        assert written == tmp_path / "note.txt"
        assert safe_read_text(tmp_path / "note.txt", tmp_path) == "hello"

    def test_write_outside_root_is_refused(self, tmp_path: Path) -> None:
        """Nothing is written when the path escapes root."""
        root = tmp_path / "root"
        root.mkdir()
        with pytest.raises(PathTraversalError):
            safe_write_text(root / ".." / "escaped.txt", root, "nope")
        assert not (tmp_path / "escaped.txt").exists()
