"""Path utilities, MIME guessing and content hashing."""

from __future__ import annotations

import hashlib
import mimetypes

from .exceptions import InvalidPathError

DEFAULT_MIME_TYPE = "application/octet-stream"
MAX_PATH_LENGTH = 4096
MAX_NAME_LENGTH = 255


# =============================================================================
# Path Utilities
# =============================================================================


def normalize_path(path: str) -> str:
    """Normalize a virtual storage path.

    - Strips surrounding whitespace and slashes
    - Drops . segments
    - Removes double slashes
    - Leaves .. segments alone; validate_path rejects them
    - The root is the empty string

    Examples:
        normalize_path("/foo.txt") -> "foo.txt"
        normalize_path("foo//bar.txt") -> "foo/bar.txt"
        normalize_path("./foo/./bar.txt") -> "foo/bar.txt"
        normalize_path("foo/") -> "foo"
        normalize_path("") -> ""
    """
    if not path:
        return ""

    return "/".join(part for part in path.strip().split("/") if part not in ("", "."))


def split_path(path: str) -> tuple[str, str]:
    """Split path into (parent_dir, name).

    Examples:
        split_path("foo/bar.txt") -> ("foo", "bar.txt")
        split_path("foo.txt") -> ("", "foo.txt")
        split_path("") -> ("", "")
    """
    path = normalize_path(path)
    parent, _, name = path.rpartition("/")
    return parent, name


def parent_path(path: str) -> str:
    """Return the parent directory of *path* ("" for top-level entries)."""
    return split_path(path)[0]


def ancestors(path: str) -> list[str]:
    """Every directory prefix of *path*, root first, excluding *path* itself.

    Examples:
        ancestors("a/b/c.txt") -> ["", "a", "a/b"]
        ancestors("") -> []
    """
    path = normalize_path(path)
    if not path:
        return []
    parts = path.split("/")
    return [""] + ["/".join(parts[:i]) for i in range(1, len(parts))]


def is_descendant(path: str, ancestor: str) -> bool:
    """True if *ancestor* is a proper ancestor directory of *path*."""
    if path == ancestor:
        return False
    if not ancestor:
        return bool(path)
    return path.startswith(ancestor + "/")


def validate_path(path: str) -> tuple[bool, str]:
    """Validate a path for safety and compatibility issues.

    Returns:
        (is_valid, error_message) - error_message is empty if valid
    """
    if "\x00" in path:
        return False, "Path contains null bytes"

    for ch in path:
        code = ord(ch)
        if 0x01 <= code <= 0x1F or code == 0x7F:
            return False, f"Path contains control character: 0x{code:02x}"

    if len(path) > MAX_PATH_LENGTH:
        return False, f"Path too long (max {MAX_PATH_LENGTH} characters)"

    if ".." in path.strip().split("/"):
        return False, "Path contains a '..' segment"

    _, name = split_path(path)
    if len(name) > MAX_NAME_LENGTH:
        return False, f"Filename too long (max {MAX_NAME_LENGTH} characters)"

    return True, ""


def check_path(path: str) -> str:
    """Validate and normalize *path*, raising InvalidPathError on failure."""
    valid, error = validate_path(path)
    if not valid:
        raise InvalidPathError(f"{error}: {path!r}")
    return normalize_path(path)


def check_file_path(path: str) -> str:
    """Like check_path, but the root is rejected since it cannot be a file."""
    path = check_path(path)
    if not path:
        raise InvalidPathError("The root directory cannot be used as a file path")
    return path


# =============================================================================
# Content Helpers
# =============================================================================


def to_bytes(content: bytes | bytearray | memoryview | str) -> bytes:
    """Coerce write payloads to bytes; text is encoded as UTF-8."""
    if isinstance(content, str):
        return content.encode("utf-8")
    return bytes(content)


def guess_mime_type(path: str) -> str:
    """Guess the MIME type of a file from its name alone."""
    mime_type, _ = mimetypes.guess_type(split_path(path)[1])
    return mime_type or DEFAULT_MIME_TYPE


def content_hash(data: bytes) -> str:
    """SHA-256 hex digest used as the checksum of local and memory files."""
    return hashlib.sha256(data).hexdigest()
