"""Filesystem — the facade callers use, wrapping exactly one adapter."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, TypeVar

from .exceptions import CapabilityNotSupportedError, PathNotFoundError
from .protocol import Adapter, SupportsPublicUrl, SupportsTemporaryUrl

if TYPE_CHECKING:
    from datetime import datetime, timedelta

    from .contents import Contents
    from .types import Visibility

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Filesystem:
    """Forwards every contract call to the adapter chosen at construction.

    Swapping storage backends means swapping the adapter; callers keep
    talking to the same ``Filesystem`` API::

        fs = await Filesystem.new(S3Adapter, S3Config.from_env())
        await fs.write("my-first-file.txt", "Hello, world!")
    """

    def __init__(self, adapter: Adapter) -> None:
        if not isinstance(adapter, Adapter):
            raise TypeError(f"{type(adapter).__name__} does not implement the Adapter protocol")
        self._adapter = adapter

    @classmethod
    def from_adapter(cls, adapter: Adapter) -> Filesystem:
        return cls(adapter)

    @classmethod
    async def new(cls, adapter_cls: type[Any], config: Any = None) -> Filesystem:
        """Build the adapter from its config and wrap it."""
        return cls(await adapter_cls.from_config(config))

    @property
    def adapter(self) -> Adapter:
        return self._adapter

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        if hasattr(self._adapter, "close"):
            try:
                await self._adapter.close()
            except Exception:
                logger.warning("Adapter close failed for %r", self._adapter, exc_info=True)

    async def __aenter__(self) -> Filesystem:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Capability discovery
    # ------------------------------------------------------------------

    def supports(self, protocol: type[Any]) -> bool:
        return isinstance(self._adapter, protocol)

    def _get_capability(self, protocol: type[T]) -> T:
        if isinstance(self._adapter, protocol):
            return self._adapter
        raise CapabilityNotSupportedError(
            f"{type(self._adapter).__name__} does not support {protocol.__name__}"
        )

    # ------------------------------------------------------------------
    # Existence
    # ------------------------------------------------------------------

    async def file_exists(self, path: str) -> bool:
        return await self._adapter.file_exists(path)

    async def directory_exists(self, path: str) -> bool:
        return await self._adapter.directory_exists(path)

    async def has(self, path: str) -> bool:
        """True if *path* is a file or a directory.

        Both checks run concurrently.  A not-found answer from either side
        counts as ``False``; any other failure is raised.
        """
        results = await asyncio.gather(
            self._adapter.file_exists(path),
            self._adapter.directory_exists(path),
            return_exceptions=True,
        )
        found = False
        for result in results:
            if isinstance(result, PathNotFoundError):
                continue
            if isinstance(result, BaseException):
                raise result
            found = found or result
        return found

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    async def write(self, path: str, content: bytes | str) -> None:
        await self._adapter.write(path, content)

    async def read(self, path: str) -> Contents:
        return await self._adapter.read(path)

    async def read_bytes(self, path: str) -> bytes:
        return bytes(await self._adapter.read(path))

    async def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """Read and decode a file; raises DecodeError on invalid data."""
        return (await self._adapter.read(path)).text(encoding)

    async def delete(self, path: str) -> None:
        await self._adapter.delete(path)

    async def delete_directory(self, path: str) -> None:
        await self._adapter.delete_directory(path)

    async def create_directory(self, path: str) -> None:
        await self._adapter.create_directory(path)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    async def set_visibility(self, path: str, visibility: Visibility) -> None:
        await self._adapter.set_visibility(path, visibility)

    async def visibility(self, path: str) -> Visibility:
        return await self._adapter.visibility(path)

    async def mime_type(self, path: str) -> str:
        return await self._adapter.mime_type(path)

    async def last_modified(self, path: str) -> datetime:
        return await self._adapter.last_modified(path)

    async def file_size(self, path: str) -> int:
        return await self._adapter.file_size(path)

    async def checksum(self, path: str) -> str:
        return await self._adapter.checksum(path)

    # ------------------------------------------------------------------
    # Listing / relocation
    # ------------------------------------------------------------------

    async def list_contents(self, path: str, deep: bool = False) -> list[str]:
        return await self._adapter.list_contents(path, deep)

    async def move(self, source: str, destination: str) -> None:
        await self._adapter.move(source, destination)

    async def copy(self, source: str, destination: str) -> None:
        await self._adapter.copy(source, destination)

    # ------------------------------------------------------------------
    # Optional capabilities
    # ------------------------------------------------------------------

    async def public_url(self, path: str) -> str:
        return await self._get_capability(SupportsPublicUrl).public_url(path)

    async def temporary_url(self, path: str, expires_in: timedelta | int) -> str:
        return await self._get_capability(SupportsTemporaryUrl).temporary_url(path, expires_in)
