"""S3 blob store for tenant fragments and published documents.

Layout: schemas/{marker}/fragment and schemas/{marker}/document. Writing a
fragment key is what triggers the schema sync notification.
"""

from __future__ import annotations

import asyncio
from typing import Any

from botocore.exceptions import ClientError

from tablefed.infrastructure.aws.clients import AWS_ERRORS, error_code, transient

SCHEMA_PREFIX = "schemas/"
FRAGMENT_NAME = "fragment"
DOCUMENT_NAME = "document"

_MISSING_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


def fragment_key(tenant_marker: str) -> str:
    return f"{SCHEMA_PREFIX}{tenant_marker}/{FRAGMENT_NAME}"


def document_key(tenant_marker: str) -> str:
    return f"{SCHEMA_PREFIX}{tenant_marker}/{DOCUMENT_NAME}"


def marker_from_fragment_key(key: str) -> str | None:
    """Tenant marker of a schemas/{marker}/fragment key, else None."""
    parts = key.split("/")
    if len(parts) == 3 and f"{parts[0]}/" == SCHEMA_PREFIX and parts[2] == FRAGMENT_NAME:
        return parts[1] or None
    return None


class S3FragmentStore:
    """IFragmentStore over an S3 bucket (server-side encrypted objects)."""

    def __init__(self, client: Any, bucket: str) -> None:
        self._client = client
        self.bucket = bucket

    async def _put(self, key: str, body: str, content_type: str) -> None:
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=body.encode("utf-8"),
                ContentType=content_type,
                ServerSideEncryption="AES256",
            )
        except AWS_ERRORS as e:
            raise transient(f"put {key}", e) from e

    async def _get(self, key: str) -> str | None:
        def _read() -> str | None:
            try:
                resp = self._client.get_object(Bucket=self.bucket, Key=key)
            except ClientError as e:
                if error_code(e) in _MISSING_CODES:
                    return None
                raise
            return resp["Body"].read().decode("utf-8")

        try:
            return await asyncio.to_thread(_read)
        except AWS_ERRORS as e:
            raise transient(f"get {key}", e) from e

    async def put_fragment(self, tenant_marker: str, body: str) -> None:
        await self._put(fragment_key(tenant_marker), body, "application/json")

    async def get_fragment(self, tenant_marker: str) -> str | None:
        return await self._get(fragment_key(tenant_marker))

    async def put_document(self, tenant_marker: str, text: str) -> None:
        await self._put(document_key(tenant_marker), text, "application/graphql")

    async def get_document(self, tenant_marker: str) -> str | None:
        return await self._get(document_key(tenant_marker))

    async def list_tenant_markers(self) -> list[str]:
        def _list() -> list[str]:
            markers: list[str] = []
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(
                Bucket=self.bucket, Prefix=SCHEMA_PREFIX, Delimiter="/"
            ):
                for prefix in page.get("CommonPrefixes", []):
                    marker = prefix["Prefix"][len(SCHEMA_PREFIX):].rstrip("/")
                    if marker:
                        markers.append(marker)
            return markers

        try:
            return await asyncio.to_thread(_list)
        except AWS_ERRORS as e:
            raise transient("list tenant fragments", e) from e

    async def delete_tenant(self, tenant_marker: str) -> None:
        # delete_object succeeds for missing keys.
        for key in (fragment_key(tenant_marker), document_key(tenant_marker)):
            try:
                await asyncio.to_thread(self._client.delete_object, Bucket=self.bucket, Key=key)
            except AWS_ERRORS as e:
                raise transient(f"delete {key}", e) from e
