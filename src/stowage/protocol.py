"""Adapter protocol — runtime-checkable interfaces.

Split into the core contract every backend implements and opt-in
capability protocols for URL generation, so that backends which cannot
serve content directly are not forced to stub those methods.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime, timedelta

    from .contents import Contents
    from .types import Visibility


@runtime_checkable
class Adapter(Protocol):
    """Core interface every backend must implement.

    Paths are virtual, slash-separated strings relative to the adapter's
    root.  Failures surface as ``StowageError`` subclasses; nothing is
    retried internally.
    """

    # ------------------------------------------------------------------
    # Existence
    # ------------------------------------------------------------------

    async def file_exists(self, path: str) -> bool: ...

    async def directory_exists(self, path: str) -> bool: ...

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    async def write(self, path: str, content: bytes | str) -> None:
        """Create or replace the file, creating missing ancestors."""
        ...

    async def read(self, path: str) -> Contents: ...

    async def delete(self, path: str) -> None: ...

    async def delete_directory(self, path: str) -> None:
        """Remove a directory and everything nested under it."""
        ...

    async def create_directory(self, path: str) -> None:
        """Idempotent; also materializes every ancestor."""
        ...

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    async def set_visibility(self, path: str, visibility: Visibility) -> None: ...

    async def visibility(self, path: str) -> Visibility: ...

    async def mime_type(self, path: str) -> str: ...

    async def last_modified(self, path: str) -> datetime: ...

    async def file_size(self, path: str) -> int: ...

    async def checksum(self, path: str) -> str: ...

    # ------------------------------------------------------------------
    # Listing / relocation
    # ------------------------------------------------------------------

    async def list_contents(self, path: str, deep: bool = False) -> list[str]:
        """Files under *path*; direct children only unless *deep*."""
        ...

    async def move(self, source: str, destination: str) -> None:
        """Copy then delete.  Not transactional."""
        ...

    async def copy(self, source: str, destination: str) -> None: ...


@runtime_checkable
class SupportsPublicUrl(Protocol):
    """Opt-in: permanent URL for publicly readable files."""

    async def public_url(self, path: str) -> str: ...


@runtime_checkable
class SupportsTemporaryUrl(Protocol):
    """Opt-in: signed, time-limited read URL."""

    async def temporary_url(self, path: str, expires_in: timedelta | int) -> str: ...
