"""stowage: one storage contract over local disk, memory and object storage."""

__version__ = "0.1.0"

from stowage.config import LocalConfig, MemoryConfig, S3Config
from stowage.contents import Contents
from stowage.exceptions import (
    CapabilityNotSupportedError,
    DecodeError,
    InvalidPathError,
    MetadataMissingError,
    PathNotFoundError,
    SigningError,
    StorageError,
    StowageError,
)
from stowage.filesystem import Filesystem
from stowage.local_disk import LocalDiskAdapter
from stowage.memory import MemoryAdapter
from stowage.protocol import Adapter, SupportsPublicUrl, SupportsTemporaryUrl
from stowage.s3 import S3Adapter
from stowage.types import Resource, Visibility

__all__ = [
    "Adapter",
    "CapabilityNotSupportedError",
    "Contents",
    "DecodeError",
    "Filesystem",
    "InvalidPathError",
    "LocalConfig",
    "LocalDiskAdapter",
    "MemoryAdapter",
    "MemoryConfig",
    "MetadataMissingError",
    "PathNotFoundError",
    "Resource",
    "S3Adapter",
    "S3Config",
    "SigningError",
    "StorageError",
    "StowageError",
    "SupportsPublicUrl",
    "SupportsTemporaryUrl",
    "Visibility",
]
