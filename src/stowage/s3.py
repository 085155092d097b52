"""S3Adapter — object storage over the S3 API (AWS, MinIO and compatibles).

Object stores have no directories.  A directory "exists" when at least
one key starts with ``path/``; creating one writes a zero-length marker
object at ``path/``.  Visibility is read from and written to object ACLs.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .contents import Contents
from .exceptions import (
    CapabilityNotSupportedError,
    InvalidPathError,
    MetadataMissingError,
    PathNotFoundError,
    SigningError,
    StorageError,
)
from .types import Visibility
from .utils import check_file_path, check_path, guess_mime_type, to_bytes

if TYPE_CHECKING:
    from datetime import datetime

    from .config import S3Config

logger = logging.getLogger(__name__)

ALL_USERS_URI = "http://acs.amazonaws.com/groups/global/AllUsers"
NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
UNSUPPORTED_CODES = {"NotImplemented", "AccessControlListNotSupported", "XNotImplemented"}
CANNED_ACLS = {Visibility.PUBLIC: "public-read", Visibility.PRIVATE: "private"}
MAX_KEY_BYTES = 1024
MAX_DELETE_BATCH = 1000
MAX_PRESIGN_SECONDS = 7 * 24 * 60 * 60


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def acl_to_visibility(grants: list[dict[str, Any]]) -> Visibility:
    """Public iff the AllUsers group holds a READ grant."""
    for grant in grants:
        grantee = grant.get("Grantee") or {}
        if grantee.get("URI") == ALL_USERS_URI and grant.get("Permission") == "READ":
            return Visibility.PUBLIC
    return Visibility.PRIVATE


class S3Adapter:
    """Maps the adapter contract onto an S3 bucket.

    Documented deviations from the general contract:

    - ``delete`` of a missing key succeeds (native S3 behavior).
    - ``list_contents`` of a missing prefix returns ``[]``.
    - ``checksum`` is the object's ETag, not a SHA-256 of the content.
    - ``copy`` does not carry ACLs over; the copy gets the bucket default.
    - Providers without per-object ACLs raise CapabilityNotSupportedError
      from the visibility methods.
    """

    def __init__(
        self,
        bucket: str,
        *,
        client: Any | None = None,
        region: str | None = None,
        endpoint: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        prefix: str = "",
        default_visibility: Visibility | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            bucket: Bucket name.
            client: Pre-built boto3 S3 client; built from the other
                arguments when omitted.
            region: Region name (boto3 default resolution when unset).
            endpoint: Custom endpoint for MinIO/compatible storage.
            access_key: Access key id.
            secret_key: Secret access key.
            prefix: Key prefix the adapter is rooted at.
            default_visibility: Canned ACL to send on every write.
        """
        if client is None:
            kwargs: dict[str, Any] = {
                "config": BotoConfig(s3={"addressing_style": "path"}),
            }
            if region:
                kwargs["region_name"] = region
            if endpoint:
                kwargs["endpoint_url"] = endpoint
            if access_key and secret_key:
                kwargs["aws_access_key_id"] = access_key
                kwargs["aws_secret_access_key"] = secret_key
            client = boto3.client("s3", **kwargs)

        self._s3 = client
        self.bucket = bucket
        self.region = region
        self.endpoint = endpoint
        self.prefix = prefix.strip("/")
        self.default_visibility = default_visibility

    @classmethod
    async def from_config(cls, config: S3Config) -> S3Adapter:
        return cls(
            config.bucket,
            region=config.region,
            endpoint=config.endpoint,
            access_key=config.access_key,
            secret_key=config.secret_key,
            prefix=config.prefix,
            default_visibility=config.default_visibility,
        )

    async def close(self) -> None:
        close = getattr(self._s3, "close", None)
        if close is not None:
            await asyncio.to_thread(close)

    async def __aenter__(self) -> S3Adapter:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    # =========================================================================
    # Keys
    # =========================================================================

    def _key(self, path: str) -> str:
        """Map a normalized virtual path to an object key."""
        key = f"{self.prefix}/{path}" if self.prefix and path else (self.prefix or path)
        try:
            encoded = key.encode("utf-8")
        except UnicodeEncodeError:
            raise InvalidPathError(f"Path is not valid UTF-8: {path!r}") from None
        if len(encoded) > MAX_KEY_BYTES:
            raise InvalidPathError(f"Object key too long (max {MAX_KEY_BYTES} bytes): {path}")
        return key

    def _dir_prefix(self, path: str) -> str:
        key = self._key(path)
        return f"{key}/" if key else ""

    def _to_virtual_path(self, key: str) -> str:
        if self.prefix:
            return key[len(self.prefix) + 1 :]
        return key

    # =========================================================================
    # Client calls
    # =========================================================================

    async def _call(self, operation: str, path: str, **params: Any) -> Any:
        """Run a blocking client call in a thread and translate its errors."""
        method = getattr(self._s3, operation)
        try:
            return await asyncio.to_thread(method, **params)
        except ClientError as e:
            code = _error_code(e)
            if code in NOT_FOUND_CODES:
                raise PathNotFoundError(f"Not found: {path}") from e
            if code in UNSUPPORTED_CODES:
                raise CapabilityNotSupportedError(
                    f"{operation} is not supported by this provider: {e}"
                ) from e
            raise StorageError(f"S3 {operation} failed for {path}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"S3 {operation} failed for {path}: {e}") from e

    async def _head(self, path: str) -> dict[str, Any]:
        path = check_file_path(path)
        return await self._call("head_object", path, Bucket=self.bucket, Key=self._key(path))

    @staticmethod
    def _header(response: dict[str, Any], name: str, path: str) -> Any:
        value = response.get(name)
        if value is None:
            raise MetadataMissingError(f"S3 did not return {name} for {path}")
        return value

    # =========================================================================
    # Existence
    # =========================================================================

    async def file_exists(self, path: str) -> bool:
        if not check_path(path):
            return False
        try:
            await self._head(path)
        except PathNotFoundError:
            return False
        return True

    async def directory_exists(self, path: str) -> bool:
        path = check_path(path)
        if not path and not self.prefix:
            return True
        response = await self._call(
            "list_objects_v2",
            path,
            Bucket=self.bucket,
            Prefix=self._dir_prefix(path),
            Delimiter="/",
            MaxKeys=1,
        )
        return bool(response.get("Contents") or response.get("CommonPrefixes"))

    # =========================================================================
    # Content
    # =========================================================================

    async def write(self, path: str, content: bytes | str) -> None:
        path = check_file_path(path)
        body = to_bytes(content)
        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": self._key(path),
            "Body": body,
            "ContentType": guess_mime_type(path),
        }
        if self.default_visibility is not None:
            params["ACL"] = CANNED_ACLS[Visibility(self.default_visibility)]
        await self._call("put_object", path, **params)
        logger.debug("S3 write: s3://%s/%s (%d bytes)", self.bucket, params["Key"], len(body))

    async def read(self, path: str) -> Contents:
        path = check_file_path(path)
        response = await self._call(
            "get_object", path, Bucket=self.bucket, Key=self._key(path)
        )
        body = response["Body"]
        try:
            data = await asyncio.to_thread(body.read)
        except BotoCoreError as e:
            raise StorageError(f"S3 download failed for {path}: {e}") from e
        finally:
            body.close()
        return Contents(data)

    async def delete(self, path: str) -> None:
        """Delete an object.  Succeeds even when the key does not exist."""
        path = check_file_path(path)
        await self._call("delete_object", path, Bucket=self.bucket, Key=self._key(path))
        logger.debug("S3 delete: s3://%s/%s", self.bucket, self._key(path))

    async def delete_directory(self, path: str) -> None:
        path = check_path(path)
        keys = await self._list_keys(path, deep=True, include_markers=True)

        for start in range(0, len(keys), MAX_DELETE_BATCH):
            batch = keys[start : start + MAX_DELETE_BATCH]
            response = await self._call(
                "delete_objects",
                path,
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
            )
            errors = response.get("Errors") or []
            if errors:
                failed = ", ".join(f"{e.get('Key')} ({e.get('Code')})" for e in errors)
                raise StorageError(f"S3 failed to delete objects under {path}: {failed}")
        logger.debug("S3 delete_directory: %s (%d objects)", path or "/", len(keys))

    async def create_directory(self, path: str) -> None:
        path = check_path(path)
        marker = self._dir_prefix(path)
        if not marker:
            return
        await self._call("put_object", path, Bucket=self.bucket, Key=marker, Body=b"")

    # =========================================================================
    # Metadata
    # =========================================================================

    async def set_visibility(self, path: str, visibility: Visibility) -> None:
        """Apply a canned ACL.  Some providers (like MinIO) lack object ACLs."""
        path = check_file_path(path)
        await self._call(
            "put_object_acl",
            path,
            Bucket=self.bucket,
            Key=self._key(path),
            ACL=CANNED_ACLS[Visibility(visibility)],
        )

    async def visibility(self, path: str) -> Visibility:
        path = check_file_path(path)
        response = await self._call(
            "get_object_acl", path, Bucket=self.bucket, Key=self._key(path)
        )
        return acl_to_visibility(response.get("Grants") or [])

    async def mime_type(self, path: str) -> str:
        response = await self._head(path)
        return self._header(response, "ContentType", path)

    async def last_modified(self, path: str) -> datetime:
        response = await self._head(path)
        return self._header(response, "LastModified", path)

    async def file_size(self, path: str) -> int:
        response = await self._head(path)
        return int(self._header(response, "ContentLength", path))

    async def checksum(self, path: str) -> str:
        """Return the object's ETag (quotes stripped)."""
        response = await self._head(path)
        return str(self._header(response, "ETag", path)).strip('"')

    # =========================================================================
    # Listing / relocation
    # =========================================================================

    async def _list_keys(self, path: str, *, deep: bool, include_markers: bool = False) -> list[str]:
        prefix = self._dir_prefix(path)
        params: dict[str, Any] = {"Bucket": self.bucket, "Prefix": prefix}
        if not deep:
            params["Delimiter"] = "/"

        def _collect() -> list[str]:
            keys: list[str] = []
            paginator = self._s3.get_paginator("list_objects_v2")
            try:
                for page in paginator.paginate(**params):
                    for obj in page.get("Contents") or []:
                        key = obj["Key"]
                        if not include_markers and (key == prefix or key.endswith("/")):
                            continue
                        keys.append(key)
            except ClientError as e:
                if _error_code(e) != "NoSuchKey":
                    raise
            return keys

        try:
            return await asyncio.to_thread(_collect)
        except ClientError as e:
            raise StorageError(f"S3 listing failed for {path}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"S3 listing failed for {path}: {e}") from e

    async def list_contents(self, path: str, deep: bool = False) -> list[str]:
        """List object paths under *path*.  A missing prefix yields ``[]``."""
        path = check_path(path)
        keys = await self._list_keys(path, deep=deep)
        return [self._to_virtual_path(key) for key in keys]

    async def move(self, source: str, destination: str) -> None:
        source = check_file_path(source)
        destination = check_file_path(destination)
        if source == destination:
            await self._head(source)
            return
        await self.copy(source, destination)
        await self.delete(source)

    async def copy(self, source: str, destination: str) -> None:
        """Server-side copy.  ACLs are not copied by S3."""
        source = check_file_path(source)
        destination = check_file_path(destination)
        if source == destination:
            # S3 refuses an in-place copy that changes nothing
            await self._head(source)
            return
        await self._call(
            "copy_object",
            source,
            Bucket=self.bucket,
            CopySource={"Bucket": self.bucket, "Key": self._key(source)},
            Key=self._key(destination),
        )
        logger.debug("S3 copy: %s -> %s", source, destination)

    # =========================================================================
    # URL generation
    # =========================================================================

    async def public_url(self, path: str) -> str:
        """Unsigned URL; only readable if the object is public."""
        key = quote(self._key(check_file_path(path)))
        if self.endpoint:
            return f"{self.endpoint.rstrip('/')}/{self.bucket}/{key}"
        region = self.region or "us-east-1"
        return f"https://{self.bucket}.s3.{region}.amazonaws.com/{key}"

    async def temporary_url(self, path: str, expires_in: timedelta | int) -> str:
        """Presigned GET URL valid for *expires_in* (at most seven days)."""
        path = check_file_path(path)
        seconds = (
            int(expires_in.total_seconds())
            if isinstance(expires_in, timedelta)
            else int(expires_in)
        )
        if not 0 < seconds <= MAX_PRESIGN_SECONDS:
            raise SigningError(
                f"Expiry must be between 1 and {MAX_PRESIGN_SECONDS} seconds, got {seconds}"
            )

        try:
            return await asyncio.to_thread(
                self._s3.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": self._key(path)},
                ExpiresIn=seconds,
            )
        except (BotoCoreError, ClientError) as e:
            raise SigningError(f"Could not presign URL for {path}: {e}") from e
