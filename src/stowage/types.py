"""Visibility and resource kinds, plus their POSIX permission mapping."""

from __future__ import annotations

from enum import Enum


class Visibility(str, Enum):
    """Two-state simplification of a backend's permission model."""

    PUBLIC = "public"
    PRIVATE = "private"


class Resource(str, Enum):
    """Kind of resource a permission applies to."""

    FILE = "file"
    DIRECTORY = "directory"


_MODES: dict[tuple[Resource, Visibility], int] = {
    (Resource.FILE, Visibility.PUBLIC): 0o644,
    (Resource.FILE, Visibility.PRIVATE): 0o600,
    (Resource.DIRECTORY, Visibility.PUBLIC): 0o755,
    (Resource.DIRECTORY, Visibility.PRIVATE): 0o700,
}


def visibility_to_mode(resource: Resource, visibility: Visibility) -> int:
    """Return the canonical permission bits for *visibility* on *resource*."""
    return _MODES[(resource, visibility)]


def mode_to_visibility(resource: Resource, mode: int) -> Visibility:
    """Collapse permission bits into a visibility.

    Only the canonical private pattern maps to PRIVATE; every other mode is
    reported as PUBLIC.  File-type bits from ``st_mode`` are ignored.
    """
    if mode & 0o777 == _MODES[(resource, Visibility.PRIVATE)]:
        return Visibility.PRIVATE
    return Visibility.PUBLIC
