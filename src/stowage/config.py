"""Construction-time configuration for each backend."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .types import Visibility


@dataclass
class MemoryConfig:
    """The memory backend takes no options."""


@dataclass
class LocalConfig:
    """Configuration for the local-disk backend."""

    location: Path | str
    """Root directory every virtual path is resolved against."""

    lazy_root_creation: bool = False
    """Create a missing root on first use instead of failing at construction."""

    def __post_init__(self) -> None:
        self.location = Path(self.location)


@dataclass
class S3Config:
    """Configuration for the S3-compatible object-storage backend."""

    bucket: str

    region: str | None = None
    """Region name; boto3's default resolution applies when unset."""

    endpoint: str | None = None
    """Custom endpoint for MinIO and other compatible providers."""

    access_key: str | None = None
    secret_key: str | None = None

    prefix: str = ""
    """Key prefix the adapter is rooted at inside the bucket."""

    default_visibility: Visibility | None = None
    """Canned ACL sent on every write.  ``None`` keeps the bucket default."""

    def __post_init__(self) -> None:
        self.prefix = self.prefix.strip("/")
        if isinstance(self.default_visibility, str):
            self.default_visibility = Visibility(self.default_visibility)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> S3Config:
        """Build a config from ``S3_*`` environment variables.

        ``S3_BUCKET`` is required; ``S3_REGION``, ``S3_ENDPOINT``,
        ``S3_ACCESS_KEY``, ``S3_SECRET_KEY`` and ``S3_PREFIX`` are optional.
        """
        env = os.environ if environ is None else environ
        try:
            bucket = env["S3_BUCKET"]
        except KeyError:
            raise ValueError("S3_BUCKET must be set") from None
        return cls(
            bucket=bucket,
            region=env.get("S3_REGION") or None,
            endpoint=env.get("S3_ENDPOINT") or None,
            access_key=env.get("S3_ACCESS_KEY") or None,
            secret_key=env.get("S3_SECRET_KEY") or None,
            prefix=env.get("S3_PREFIX", ""),
        )
