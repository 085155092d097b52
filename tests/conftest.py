"""Shared fixtures for stowage tests."""

from __future__ import annotations

import hashlib
import io
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import pytest
from botocore.exceptions import ClientError

from stowage.local_disk import LocalDiskAdapter
from stowage.memory import MemoryAdapter
from stowage.s3 import ALL_USERS_URI, S3Adapter
from stowage.types import Visibility

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


# =========================================================================
# FakeS3Client — in-process stand-in for a boto3 S3 client
# =========================================================================


def client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakePaginator:
    def __init__(self, client: FakeS3Client) -> None:
        self._client = client

    def paginate(self, **params: Any) -> Iterator[dict[str, Any]]:
        token: str | None = None
        while True:
            page = self._client.list_objects_v2(
                MaxKeys=self._client.page_size, ContinuationToken=token, **params
            )
            yield page
            if not page.get("IsTruncated"):
                return
            token = page["NextContinuationToken"]


class FakeS3Client:
    """Dict-backed S3 client raising real botocore ClientErrors.

    Objects are stored without ACL unless one is sent, in which case the
    canned ACL is recorded.  ``acl_supported=False`` mimics providers such
    as MinIO that reject object ACL calls.
    """

    def __init__(self, *, acl_supported: bool = True, page_size: int = 1000) -> None:
        self.objects: dict[str, dict[str, Any]] = {}
        self.acl_supported = acl_supported
        self.page_size = page_size
        self.closed = False

    # -- objects -----------------------------------------------------------

    def _get(self, key: str, operation: str, code: str = "NoSuchKey") -> dict[str, Any]:
        if key not in self.objects:
            raise client_error(code, operation)
        return self.objects[key]

    def put_object(
        self,
        Bucket: str,
        Key: str,
        Body: bytes = b"",
        ContentType: str | None = None,
        ACL: str | None = None,
    ) -> dict[str, Any]:
        etag = f'"{hashlib.md5(Body).hexdigest()}"'
        self.objects[Key] = {
            "Body": bytes(Body),
            "ContentType": ContentType or "binary/octet-stream",
            "LastModified": datetime.now(UTC),
            "ETag": etag,
            "ACL": ACL or "private",
        }
        return {"ETag": etag}

    def get_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        obj = self._get(Key, "GetObject")
        return {"Body": io.BytesIO(obj["Body"]), "ContentType": obj["ContentType"]}

    def head_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        obj = self._get(Key, "HeadObject", code="404")
        return {
            "ContentType": obj["ContentType"],
            "ContentLength": len(obj["Body"]),
            "LastModified": obj["LastModified"],
            "ETag": obj["ETag"],
        }

    def delete_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        self.objects.pop(Key, None)
        return {}

    def delete_objects(self, Bucket: str, Delete: dict[str, Any]) -> dict[str, Any]:
        deleted = []
        for item in Delete["Objects"]:
            self.objects.pop(item["Key"], None)
            deleted.append({"Key": item["Key"]})
        return {"Deleted": deleted}

    def copy_object(self, Bucket: str, CopySource: dict[str, str], Key: str) -> dict[str, Any]:
        source = self._get(CopySource["Key"], "CopyObject")
        self.objects[Key] = {**source, "LastModified": datetime.now(UTC), "ACL": "private"}
        return {}

    # -- listing -----------------------------------------------------------

    def list_objects_v2(
        self,
        Bucket: str,
        Prefix: str = "",
        Delimiter: str | None = None,
        MaxKeys: int = 1000,
        ContinuationToken: str | None = None,
    ) -> dict[str, Any]:
        entries: list[tuple[str, bool]] = []
        seen_prefixes: set[str] = set()
        for key in sorted(self.objects):
            if not key.startswith(Prefix):
                continue
            rest = key[len(Prefix) :]
            if Delimiter and Delimiter in rest:
                common = Prefix + rest.split(Delimiter)[0] + Delimiter
                if common not in seen_prefixes:
                    seen_prefixes.add(common)
                    entries.append((common, True))
            else:
                entries.append((key, False))

        start = int(ContinuationToken or 0)
        window = entries[start : start + MaxKeys]
        page: dict[str, Any] = {"KeyCount": len(window), "IsTruncated": False}
        contents = [{"Key": k, "Size": len(self.objects[k]["Body"])} for k, p in window if not p]
        prefixes = [{"Prefix": k} for k, p in window if p]
        if contents:
            page["Contents"] = contents
        if prefixes:
            page["CommonPrefixes"] = prefixes
        if start + MaxKeys < len(entries):
            page["IsTruncated"] = True
            page["NextContinuationToken"] = str(start + MaxKeys)
        return page

    def get_paginator(self, operation_name: str) -> FakePaginator:
        assert operation_name == "list_objects_v2"
        return FakePaginator(self)

    # -- ACLs --------------------------------------------------------------

    def get_object_acl(self, Bucket: str, Key: str) -> dict[str, Any]:
        if not self.acl_supported:
            raise client_error("NotImplemented", "GetObjectAcl")
        obj = self._get(Key, "GetObjectAcl")
        grants: list[dict[str, Any]] = [
            {"Grantee": {"Type": "CanonicalUser", "ID": "owner"}, "Permission": "FULL_CONTROL"}
        ]
        if obj["ACL"] == "public-read":
            grants.append({"Grantee": {"Type": "Group", "URI": ALL_USERS_URI}, "Permission": "READ"})
        return {"Grants": grants}

    def put_object_acl(self, Bucket: str, Key: str, ACL: str) -> dict[str, Any]:
        if not self.acl_supported:
            raise client_error("NotImplemented", "PutObjectAcl")
        self._get(Key, "PutObjectAcl")["ACL"] = ACL
        return {}

    # -- misc --------------------------------------------------------------

    def generate_presigned_url(
        self, ClientMethod: str, Params: dict[str, str], ExpiresIn: int = 3600
    ) -> str:
        return (
            f"https://s3.example.test/{Params['Bucket']}/{Params['Key']}"
            f"?X-Amz-Expires={ExpiresIn}&X-Amz-Signature=fake"
        )

    def close(self) -> None:
        self.closed = True


# =========================================================================
# Adapter fixtures
# =========================================================================


@pytest.fixture
def memory() -> MemoryAdapter:
    return MemoryAdapter()


@pytest.fixture
def disk(tmp_path: Path) -> LocalDiskAdapter:
    """LocalDiskAdapter rooted at a temporary directory."""
    return LocalDiskAdapter(tmp_path / "root", lazy_root_creation=True)


@pytest.fixture
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def s3(s3_client: FakeS3Client) -> S3Adapter:
    """S3Adapter over the fake client, writing objects public by default."""
    return S3Adapter(
        "test-bucket",
        client=s3_client,
        endpoint="https://s3.example.test",
        default_visibility=Visibility.PUBLIC,
    )


@pytest.fixture(params=["memory", "disk", "s3"])
def adapter(request: pytest.FixtureRequest) -> Any:
    """Each backend in turn, for contract conformance tests."""
    return request.getfixturevalue(request.param)
