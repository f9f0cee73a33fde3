"""AppSync adapter for the managed GraphQL engine port.

AppSync has no document revision token, so supports_revisions is False and
publication relies on full-replace submission; a submission while another
one is running surfaces as PublicationConflictException.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from botocore.exceptions import ClientError

from tablefed.application.dtos.engine import EngineSchemaStatus, RenderedMapping
from tablefed.domain.exceptions import PublicationConflictException
from tablefed.infrastructure.aws.clients import (
    AWS_ERRORS,
    error_code,
    error_message,
    transient,
)

logger = logging.getLogger(__name__)


def _already_exists(error: ClientError) -> bool:
    code = error_code(error)
    if code == "ConflictException":
        return True
    message = error_message(error)
    return code == "BadRequestException" and (
        "already exists" in message or "Only one resolver" in message
    )


class AppSyncEngine:
    """IManagedEngine over one AppSync API."""

    supports_revisions = False

    def __init__(
        self,
        client: Any,
        api_id: str,
        service_role_arn: str,
        region: str = "us-east-1",
    ) -> None:
        self._client = client
        self.api_id = api_id
        self.service_role_arn = service_role_arn
        self.region = region

    async def current_revision(self) -> str | None:
        return None

    async def start_schema_creation(
        self, definition: str, if_revision: str | None = None
    ) -> str:
        if if_revision is not None:
            logger.debug("AppSync ignores revision %s", if_revision)
        try:
            resp = await asyncio.to_thread(
                self._client.start_schema_creation,
                apiId=self.api_id,
                definition=definition.encode("utf-8"),
            )
        except ClientError as e:
            if error_code(e) == "ConcurrentModificationException":
                raise PublicationConflictException(if_revision, None) from e
            raise transient("start schema creation", e) from e
        except AWS_ERRORS as e:
            raise transient("start schema creation", e) from e
        return resp.get("status", "PROCESSING")

    async def get_schema_creation_status(self) -> EngineSchemaStatus:
        try:
            resp = await asyncio.to_thread(
                self._client.get_schema_creation_status, apiId=self.api_id
            )
        except AWS_ERRORS as e:
            raise transient("get schema creation status", e) from e
        return EngineSchemaStatus(status=resp.get("status", ""), details=resp.get("details"))

    async def _create_data_source(self, name: str, **params: Any) -> bool:
        try:
            await asyncio.to_thread(
                self._client.create_data_source, apiId=self.api_id, name=name, **params
            )
        except ClientError as e:
            if _already_exists(e):
                return False
            raise transient(f"create data source {name}", e) from e
        except AWS_ERRORS as e:
            raise transient(f"create data source {name}", e) from e
        logger.info("Created data source %s", name)
        return True

    async def ensure_dynamodb_data_source(self, name: str, physical_table_name: str) -> bool:
        return await self._create_data_source(
            name,
            type="AMAZON_DYNAMODB",
            serviceRoleArn=self.service_role_arn,
            dynamodbConfig={"tableName": physical_table_name, "awsRegion": self.region},
        )

    async def ensure_none_data_source(self, name: str) -> bool:
        return await self._create_data_source(name, type="NONE")

    async def upsert_resolver(
        self,
        parent_type: str,
        field_name: str,
        data_source_name: str,
        mapping: RenderedMapping,
    ) -> None:
        params = {
            "apiId": self.api_id,
            "typeName": parent_type,
            "fieldName": field_name,
            "dataSourceName": data_source_name,
            "requestMappingTemplate": mapping.request,
            "responseMappingTemplate": mapping.response,
        }
        try:
            await asyncio.to_thread(self._client.create_resolver, kind="UNIT", **params)
            return
        except ClientError as e:
            if not _already_exists(e):
                raise transient(f"create resolver {parent_type}.{field_name}", e) from e
        except AWS_ERRORS as e:
            raise transient(f"create resolver {parent_type}.{field_name}", e) from e

        try:
            await asyncio.to_thread(self._client.update_resolver, kind="UNIT", **params)
        except AWS_ERRORS as e:
            raise transient(f"update resolver {parent_type}.{field_name}", e) from e

    async def delete_resolver(self, parent_type: str, field_name: str) -> bool:
        try:
            await asyncio.to_thread(
                self._client.delete_resolver,
                apiId=self.api_id,
                typeName=parent_type,
                fieldName=field_name,
            )
        except ClientError as e:
            if error_code(e) == "NotFoundException":
                return False
            raise transient(f"delete resolver {parent_type}.{field_name}", e) from e
        except AWS_ERRORS as e:
            raise transient(f"delete resolver {parent_type}.{field_name}", e) from e
        return True

    async def delete_data_source(self, name: str) -> bool:
        try:
            await asyncio.to_thread(
                self._client.delete_data_source, apiId=self.api_id, name=name
            )
        except ClientError as e:
            if error_code(e) == "NotFoundException":
                return False
            raise transient(f"delete data source {name}", e) from e
        except AWS_ERRORS as e:
            raise transient(f"delete data source {name}", e) from e
        return True
