"""MemoryAdapter — in-process reference implementation of the contract."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .contents import Contents
from .exceptions import InvalidPathError, PathNotFoundError
from .types import Visibility
from .utils import (
    ancestors,
    check_file_path,
    check_path,
    content_hash,
    guess_mime_type,
    is_descendant,
    parent_path,
    to_bytes,
)

if TYPE_CHECKING:
    from .config import MemoryConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _File:
    content: bytes
    visibility: Visibility
    last_modified: datetime


class MemoryAdapter:
    """Keeps files in a dict and fabricates directories with an index.

    ``_files`` maps file paths to records.  ``_directories`` maps every
    existing directory to the ordered list of files directly inside it;
    sub-directories are never listed as children.  The root ``""`` always
    exists.  Mutations are serialized by an ``asyncio.Lock``.
    """

    def __init__(self) -> None:
        self._files: dict[str, _File] = {}
        self._directories: dict[str, list[str]] = {"": []}
        self._lock = asyncio.Lock()

    @classmethod
    async def from_config(cls, config: MemoryConfig | None = None) -> MemoryAdapter:
        return cls()

    async def close(self) -> None:
        pass

    async def __aenter__(self) -> MemoryAdapter:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    # =========================================================================
    # Index maintenance (caller holds the lock)
    # =========================================================================

    def _get_file(self, path: str) -> _File:
        try:
            return self._files[path]
        except KeyError:
            raise PathNotFoundError(f"File not found: {path}") from None

    def _ensure_directory(self, path: str) -> None:
        for prefix in [*ancestors(path), path]:
            self._directories.setdefault(prefix, [])

    def _put_file(self, path: str, record: _File) -> None:
        if path in self._directories:
            raise InvalidPathError(f"Path is a directory: {path}")
        parent = parent_path(path)
        self._ensure_directory(parent)
        self._files[path] = record
        children = self._directories[parent]
        if path not in children:
            children.append(path)

    def _remove_file(self, path: str) -> None:
        self._get_file(path)
        del self._files[path]
        children = self._directories.get(parent_path(path))
        if children is not None and path in children:
            children.remove(path)

    def _copy_file(self, source: str, destination: str) -> None:
        record = self._get_file(source)
        self._put_file(destination, replace(record, last_modified=datetime.now(UTC)))

    # =========================================================================
    # Existence
    # =========================================================================

    async def file_exists(self, path: str) -> bool:
        return check_path(path) in self._files

    async def directory_exists(self, path: str) -> bool:
        return check_path(path) in self._directories

    # =========================================================================
    # Content
    # =========================================================================

    async def write(self, path: str, content: bytes | str) -> None:
        path = check_file_path(path)
        data = to_bytes(content)
        async with self._lock:
            self._put_file(
                path,
                _File(
                    content=data,
                    visibility=Visibility.PUBLIC,
                    last_modified=datetime.now(UTC),
                ),
            )
        logger.debug("memory write: %s (%d bytes)", path, len(data))

    async def read(self, path: str) -> Contents:
        return Contents(self._get_file(check_path(path)).content)

    async def delete(self, path: str) -> None:
        path = check_path(path)
        async with self._lock:
            self._remove_file(path)
        logger.debug("memory delete: %s", path)

    async def delete_directory(self, path: str) -> None:
        path = check_path(path)
        async with self._lock:
            if path not in self._directories:
                raise PathNotFoundError(f"Directory not found: {path}")

            self._directories = {
                directory: children
                for directory, children in self._directories.items()
                if directory != path and not is_descendant(directory, path)
            }
            self._files = {
                file_path: record
                for file_path, record in self._files.items()
                if not is_descendant(file_path, path)
            }
            # The root cannot disappear, only be emptied
            self._directories.setdefault("", [])
        logger.debug("memory delete_directory: %s", path or "/")

    async def create_directory(self, path: str) -> None:
        path = check_path(path)
        async with self._lock:
            self._ensure_directory(path)

    # =========================================================================
    # Metadata
    # =========================================================================

    async def set_visibility(self, path: str, visibility: Visibility) -> None:
        path = check_path(path)
        async with self._lock:
            record = self._get_file(path)
            self._files[path] = replace(record, visibility=Visibility(visibility))

    async def visibility(self, path: str) -> Visibility:
        return self._get_file(check_path(path)).visibility

    async def mime_type(self, path: str) -> str:
        return guess_mime_type(check_path(path))

    async def last_modified(self, path: str) -> datetime:
        return self._get_file(check_path(path)).last_modified

    async def file_size(self, path: str) -> int:
        return len(self._get_file(check_path(path)).content)

    async def checksum(self, path: str) -> str:
        return content_hash(self._get_file(check_path(path)).content)

    # =========================================================================
    # Listing / relocation
    # =========================================================================

    async def list_contents(self, path: str, deep: bool = False) -> list[str]:
        """List files under *path*.

        Direct children come first, then (when *deep*) the direct children
        of every nested directory in index order.
        """
        path = check_path(path)
        try:
            contents = list(self._directories[path])
        except KeyError:
            raise PathNotFoundError(f"Directory not found: {path}") from None

        if deep:
            for directory, children in self._directories.items():
                if is_descendant(directory, path):
                    contents.extend(children)

        return contents

    async def move(self, source: str, destination: str) -> None:
        source = check_path(source)
        destination = check_file_path(destination)
        async with self._lock:
            if source == destination:
                self._get_file(source)
                return
            self._copy_file(source, destination)
            self._remove_file(source)
        logger.debug("memory move: %s -> %s", source, destination)

    async def copy(self, source: str, destination: str) -> None:
        source = check_path(source)
        destination = check_file_path(destination)
        async with self._lock:
            if source == destination:
                self._get_file(source)
                return
            self._copy_file(source, destination)
        logger.debug("memory copy: %s -> %s", source, destination)
