"""Physical DynamoDB table provisioning for tenant tables.

One on-demand table per logical table, hash key on the primary field and one
global secondary index ({field}-index, all attributes projected) per indexed
field.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from botocore.exceptions import ClientError

from tablefed.application.services.mapping_templates import index_name
from tablefed.domain.entities import FieldDefinition, TableDefinition
from tablefed.infrastructure.aws.clients import AWS_ERRORS, error_code, transient

logger = logging.getLogger(__name__)


def _index_spec(field: FieldDefinition) -> dict[str, Any]:
    return {
        "IndexName": index_name(field.name),
        "KeySchema": [{"AttributeName": field.name, "KeyType": "HASH"}],
        "Projection": {"ProjectionType": "ALL"},
    }


def _attribute(field: FieldDefinition) -> dict[str, str]:
    return {"AttributeName": field.name, "AttributeType": field.type.attribute_type}


class DynamoDBStorageProvisioner:
    """IStorageProvisioner backed by DynamoDB CreateTable/UpdateTable/DeleteTable."""

    def __init__(self, client: Any, table_prefix: str = "tablefed-data-") -> None:
        self._client = client
        self.table_prefix = table_prefix

    def physical_table_name(self, table_id: str) -> str:
        return f"{self.table_prefix}{table_id}"

    async def create_table(self, table: TableDefinition) -> bool:
        pk = table.primary_field
        indexed = list(table.indexed_fields)
        params: dict[str, Any] = {
            "TableName": self.physical_table_name(table.table_id),
            "KeySchema": [{"AttributeName": pk.name, "KeyType": "HASH"}],
            "AttributeDefinitions": [_attribute(pk)] + [_attribute(f) for f in indexed],
            "BillingMode": "PAY_PER_REQUEST",
            "StreamSpecification": {
                "StreamEnabled": True,
                "StreamViewType": "NEW_AND_OLD_IMAGES",
            },
            "Tags": [
                {"Key": "tablefed:tenant", "Value": table.tenant_marker},
                {"Key": "tablefed:table", "Value": table.table_name},
            ],
        }
        if indexed:
            params["GlobalSecondaryIndexes"] = [_index_spec(f) for f in indexed]

        try:
            await asyncio.to_thread(self._client.create_table, **params)
        except ClientError as e:
            if error_code(e) == "ResourceInUseException":
                logger.info("Physical table %s already exists", params["TableName"])
                return False
            raise transient("create physical table", e) from e
        except AWS_ERRORS as e:
            raise transient("create physical table", e) from e
        logger.info(
            "Created physical table %s (%d index(es))",
            params["TableName"],
            len(indexed),
        )
        return True

    async def add_indexes(
        self, table: TableDefinition, fields: list[FieldDefinition]
    ) -> list[str]:
        """Add one index per UpdateTable call; an index that already exists is skipped."""
        name = self.physical_table_name(table.table_id)
        created: list[str] = []
        for field in fields:
            try:
                await asyncio.to_thread(
                    self._client.update_table,
                    TableName=name,
                    AttributeDefinitions=[_attribute(field)],
                    GlobalSecondaryIndexUpdates=[{"Create": _index_spec(field)}],
                )
            except ClientError as e:
                if error_code(e) == "ValidationException" and "already exists" in str(e):
                    logger.info("Index %s already exists on %s", index_name(field.name), name)
                    continue
                raise transient(f"add index {index_name(field.name)}", e) from e
            except AWS_ERRORS as e:
                raise transient(f"add index {index_name(field.name)}", e) from e
            created.append(index_name(field.name))
            logger.info("Adding index %s on %s", index_name(field.name), name)
        return created

    async def delete_table(self, table_id: str) -> bool:
        name = self.physical_table_name(table_id)
        try:
            await asyncio.to_thread(self._client.delete_table, TableName=name)
        except ClientError as e:
            if error_code(e) == "ResourceNotFoundException":
                logger.info("Physical table %s not found, skipping", name)
                return False
            raise transient("delete physical table", e) from e
        except AWS_ERRORS as e:
            raise transient("delete physical table", e) from e
        logger.info("Deleted physical table %s", name)
        return True
