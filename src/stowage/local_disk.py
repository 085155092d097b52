"""LocalDiskAdapter — direct disk access rooted at a host directory."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import shutil
import stat
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

from .contents import Contents
from .exceptions import InvalidPathError, PathNotFoundError, StorageError
from .types import Resource, Visibility, mode_to_visibility, visibility_to_mode
from .utils import check_file_path, check_path, content_hash, guess_mime_type, to_bytes

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from .config import LocalConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


@contextlib.contextmanager
def _os_errors(path: str) -> Iterator[None]:
    """Translate OSError into the stowage error taxonomy."""
    try:
        yield
    except (FileNotFoundError, NotADirectoryError) as e:
        raise PathNotFoundError(f"Not found: {path}") from e
    except IsADirectoryError as e:
        raise InvalidPathError(f"Is a directory: {path}") from e
    except OSError as e:
        raise StorageError(f"Disk operation failed for {path}: {e}") from e


class LocalDiskAdapter:
    """Maps the adapter contract onto the host filesystem.

    Visibility is stored as POSIX permission bits (see ``stowage.types``).
    Blocking syscalls run in worker threads.

    Security: _resolve_path() ensures all paths stay within the root,
    preventing path traversal through symlinks.
    """

    def __init__(self, location: Path | str, lazy_root_creation: bool = False) -> None:
        self.location = Path(location).resolve()
        self.lazy_root_creation = lazy_root_creation
        self._root_ready = False

        if self.location.exists():
            if not self.location.is_dir():
                raise InvalidPathError(f"Root path is not a directory: {self.location}")
            self._root_ready = True
        elif not lazy_root_creation:
            raise PathNotFoundError(
                f"The root at {self.location} does not exist. "
                "Create it manually or enable lazy root creation."
            )

    @classmethod
    async def from_config(cls, config: LocalConfig) -> LocalDiskAdapter:
        return cls(config.location, lazy_root_creation=config.lazy_root_creation)

    async def close(self) -> None:
        pass

    async def __aenter__(self) -> LocalDiskAdapter:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    # =========================================================================
    # Path Resolution & Security
    # =========================================================================

    def _ensure_root(self) -> None:
        if self._root_ready:
            return
        with _os_errors(str(self.location)):
            self.location.mkdir(parents=True, exist_ok=True)
        logger.debug("Created storage root %s", self.location)
        self._root_ready = True

    def _resolve_path(self, virtual_path: str) -> Path:
        """Resolve a normalized virtual path to a physical path on disk.

        Validates that the resolved path stays within the root.  Touches the
        disk, so callers run it in a worker thread.
        """
        self._ensure_root()
        if not virtual_path:
            return self.location

        resolved = (self.location / virtual_path).resolve()
        try:
            resolved.relative_to(self.location)
        except ValueError:
            raise InvalidPathError(
                f"Path traversal detected: {virtual_path} resolves outside the root"
            ) from None
        return resolved

    def _to_virtual_path(self, physical_path: Path) -> str:
        return physical_path.relative_to(self.location).as_posix()

    def _scan(self, directory: Path, deep: bool) -> list[str]:
        paths: list[str] = []
        with os.scandir(directory) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    if deep:
                        paths.extend(self._scan(Path(entry.path), deep))
                elif entry.is_file():
                    paths.append(self._to_virtual_path(Path(entry.path)))
        return paths

    def _file(self, path: str) -> Path:
        """Resolve *path* and require it to be an existing regular file."""
        resolved = self._resolve_path(path)
        if not resolved.is_file():
            raise PathNotFoundError(f"File not found: {path}")
        return resolved

    def _directory(self, path: str) -> Path:
        resolved = self._resolve_path(path)
        if not resolved.is_dir():
            raise PathNotFoundError(f"Directory not found: {path}")
        return resolved

    def _resource(self, path: str) -> tuple[Path, Resource]:
        resolved = self._resolve_path(path)
        if resolved.is_file():
            return resolved, Resource.FILE
        if resolved.is_dir():
            return resolved, Resource.DIRECTORY
        raise PathNotFoundError(f"Not found: {path}")

    def _destination(self, destination: str) -> Path:
        """Resolve a move/copy target, which must not be a directory."""
        resolved = self._resolve_path(destination)
        if resolved.is_dir():
            raise InvalidPathError(f"Destination is a directory: {destination}")
        resolved.parent.mkdir(parents=True, exist_ok=True)
        return resolved

    async def _run(self, path: str, func: Callable[..., T], *args: Any) -> T:
        """Run blocking disk work in a worker thread, translating OS errors."""
        with _os_errors(path):
            return await asyncio.to_thread(func, *args)

    # =========================================================================
    # Existence
    # =========================================================================

    async def file_exists(self, path: str) -> bool:
        path = check_path(path)
        return await self._run(path, lambda: self._resolve_path(path).is_file())

    async def directory_exists(self, path: str) -> bool:
        path = check_path(path)
        return await self._run(path, lambda: self._resolve_path(path).is_dir())

    # =========================================================================
    # Content
    # =========================================================================

    async def write(self, path: str, content: bytes | str) -> None:
        """Write content to a file on disk. Atomic via tempfile + replace."""
        path = check_file_path(path)
        data = to_bytes(content)

        def _write() -> None:
            resolved = self._resolve_path(path)
            if resolved.is_dir():
                raise InvalidPathError(f"Cannot write over a directory: {path}")
            resolved.parent.mkdir(parents=True, exist_ok=True)
            try:
                mode = stat.S_IMODE(resolved.stat().st_mode)
            except FileNotFoundError:
                mode = visibility_to_mode(Resource.FILE, Visibility.PUBLIC)
            fd, tmp_path = tempfile.mkstemp(dir=str(resolved.parent), suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.chmod(tmp_path, mode)
                Path(tmp_path).replace(resolved)
            except Exception:
                with contextlib.suppress(OSError):
                    Path(tmp_path).unlink()
                raise

        await self._run(path, _write)
        logger.debug("disk write: %s (%d bytes)", path, len(data))

    async def read(self, path: str) -> Contents:
        path = check_path(path)
        return Contents(await self._run(path, lambda: self._file(path).read_bytes()))

    async def delete(self, path: str) -> None:
        path = check_path(path)
        await self._run(path, lambda: self._file(path).unlink())
        logger.debug("disk delete: %s", path)

    async def delete_directory(self, path: str) -> None:
        path = check_path(path)

        def _delete() -> None:
            resolved = self._directory(path)
            if resolved != self.location:
                shutil.rmtree(resolved)
                return
            # The root is emptied, never removed
            for entry in list(resolved.iterdir()):
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()

        await self._run(path, _delete)
        logger.debug("disk delete_directory: %s", path or "/")

    async def create_directory(self, path: str) -> None:
        path = check_path(path)
        await self._run(
            path, lambda: self._resolve_path(path).mkdir(parents=True, exist_ok=True)
        )

    # =========================================================================
    # Metadata
    # =========================================================================

    async def set_visibility(self, path: str, visibility: Visibility) -> None:
        path = check_path(path)
        visibility = Visibility(visibility)

        def _chmod() -> None:
            resolved, resource = self._resource(path)
            os.chmod(resolved, visibility_to_mode(resource, visibility))

        await self._run(path, _chmod)

    async def visibility(self, path: str) -> Visibility:
        path = check_path(path)

        def _visibility() -> Visibility:
            resolved, resource = self._resource(path)
            return mode_to_visibility(resource, resolved.stat().st_mode)

        return await self._run(path, _visibility)

    async def mime_type(self, path: str) -> str:
        return guess_mime_type(check_path(path))

    async def last_modified(self, path: str) -> datetime:
        path = check_path(path)
        st = await self._run(path, lambda: self._file(path).stat())
        return datetime.fromtimestamp(st.st_mtime, tz=UTC)

    async def file_size(self, path: str) -> int:
        path = check_path(path)
        st = await self._run(path, lambda: self._file(path).stat())
        return st.st_size

    async def checksum(self, path: str) -> str:
        return content_hash((await self.read(path)).data)

    # =========================================================================
    # Listing / relocation
    # =========================================================================

    async def list_contents(self, path: str, deep: bool = False) -> list[str]:
        """List files under *path* in filesystem iteration order."""
        path = check_path(path)
        return await self._run(path, lambda: self._scan(self._directory(path), deep))

    async def move(self, source: str, destination: str) -> None:
        """Rename *source* to exactly *destination*, creating its parents."""
        source = check_path(source)
        destination = check_file_path(destination)

        def _move() -> None:
            src_resolved = self._file(source)
            if self._resolve_path(destination) == src_resolved:
                return
            os.replace(src_resolved, self._destination(destination))

        await self._run(f"{source} -> {destination}", _move)
        logger.debug("disk move: %s -> %s", source, destination)

    async def copy(self, source: str, destination: str) -> None:
        """Copy content and permission bits; the copy's mtime is now."""
        source = check_path(source)
        destination = check_file_path(destination)

        def _copy() -> None:
            src_resolved = self._file(source)
            if self._resolve_path(destination) == src_resolved:
                return
            dest_resolved = self._destination(destination)
            shutil.copyfile(src_resolved, dest_resolved)
            shutil.copymode(src_resolved, dest_resolved)

        await self._run(f"{source} -> {destination}", _copy)
        logger.debug("disk copy: %s -> %s", source, destination)
