"""DynamoDB table metadata repository.

Records live in one table keyed by tenantMarker (HASH) and tableName (RANGE);
the item attributes are the camelCase dict of TableDefinition.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import ClientError

from tablefed.domain.entities import TableDefinition
from tablefed.domain.exceptions import ValidationException
from tablefed.infrastructure.aws.clients import AWS_ERRORS, error_code, transient

logger = logging.getLogger(__name__)

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def _to_item(table: TableDefinition) -> dict[str, Any]:
    return {k: _serializer.serialize(v) for k, v in table.to_dict().items()}


def _from_item(item: dict[str, Any]) -> TableDefinition:
    return TableDefinition.from_dict({k: _deserializer.deserialize(v) for k, v in item.items()})


def _key(tenant_marker: str, table_name: str) -> dict[str, Any]:
    return {"tenantMarker": {"S": tenant_marker}, "tableName": {"S": table_name}}


class DynamoDBTableMetadataRepository:
    """ITableMetadataRepository over a DynamoDB table."""

    def __init__(self, client: Any, table_name: str) -> None:
        self._client = client
        self.table_name = table_name

    async def list_for_tenant(self, tenant_marker: str) -> list[TableDefinition]:
        def _query() -> list[dict[str, Any]]:
            items: list[dict[str, Any]] = []
            kwargs: dict[str, Any] = {
                "TableName": self.table_name,
                "KeyConditionExpression": "tenantMarker = :m",
                "ExpressionAttributeValues": {":m": {"S": tenant_marker}},
            }
            while True:
                resp = self._client.query(**kwargs)
                items.extend(resp.get("Items", []))
                last = resp.get("LastEvaluatedKey")
                if not last:
                    return items
                kwargs["ExclusiveStartKey"] = last

        try:
            items = await asyncio.to_thread(_query)
        except AWS_ERRORS as e:
            raise transient("list table metadata", e) from e

        tables: list[TableDefinition] = []
        for item in items:
            try:
                tables.append(_from_item(item))
            except ValidationException as e:
                logger.warning(
                    "Skipping invalid metadata record %s/%s: %s",
                    tenant_marker,
                    item.get("tableName", {}).get("S"),
                    e.message,
                )
        return tables

    async def get(self, tenant_marker: str, table_name: str) -> TableDefinition | None:
        try:
            resp = await asyncio.to_thread(
                self._client.get_item,
                TableName=self.table_name,
                Key=_key(tenant_marker, table_name),
                ConsistentRead=True,
            )
        except AWS_ERRORS as e:
            raise transient("get table metadata", e) from e
        item = resp.get("Item")
        return _from_item(item) if item else None

    async def put_if_absent(self, table: TableDefinition) -> bool:
        try:
            await asyncio.to_thread(
                self._client.put_item,
                TableName=self.table_name,
                Item=_to_item(table),
                ConditionExpression="attribute_not_exists(tenantMarker) AND attribute_not_exists(tableName)",
            )
        except ClientError as e:
            if error_code(e) == "ConditionalCheckFailedException":
                return False
            raise transient("put table metadata", e) from e
        except AWS_ERRORS as e:
            raise transient("put table metadata", e) from e
        return True

    async def save(self, table: TableDefinition) -> TableDefinition:
        try:
            await asyncio.to_thread(
                self._client.put_item,
                TableName=self.table_name,
                Item=_to_item(table),
            )
        except AWS_ERRORS as e:
            raise transient("save table metadata", e) from e
        return table

    async def delete(self, tenant_marker: str, table_name: str) -> bool:
        try:
            resp = await asyncio.to_thread(
                self._client.delete_item,
                TableName=self.table_name,
                Key=_key(tenant_marker, table_name),
                ReturnValues="ALL_OLD",
            )
        except AWS_ERRORS as e:
            raise transient("delete table metadata", e) from e
        return bool(resp.get("Attributes"))
