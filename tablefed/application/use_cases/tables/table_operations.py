"""Table lifecycle operations: create, batch create, update, read, delete intent.

Create is synchronous: metadata under a uniqueness guard, physical table,
then the tenant fragment and (inline mode) the schema pipeline. Delete only
records the intent and enqueues a DecommissionTask; the worker does the rest.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from tablefed.application.dtos.table import (
    BatchCreateError,
    BatchCreateResult,
    CreateTableResult,
    TableCreate,
    TableUpdate,
)
from tablefed.application.interfaces.repositories import ITableMetadataRepository
from tablefed.application.interfaces.services import (
    IDecommissionQueue,
    IStorageProvisioner,
)
from tablefed.application.services.mapping_templates import (
    CREATED_AT_FIELD,
    UPDATED_AT_FIELD,
)
from tablefed.application.use_cases.tables.fragment_writer import FragmentWriter
from tablefed.domain.entities import (
    DecommissionTask,
    FieldDefinition,
    TableDefinition,
    assign_primary,
)
from tablefed.domain.enums import TableStatus
from tablefed.domain.exceptions import (
    ResourceNotFoundException,
    TableConflictException,
    TableFedException,
    TransientIOException,
    ValidationException,
)
from tablefed.shared.utils import generate_cuid, utc_now_iso

logger = logging.getLogger(__name__)


class TableLifecycleService:
    """Tenant-scoped table lifecycle (all methods take the tenant marker first)."""

    def __init__(
        self,
        metadata_repo: ITableMetadataRepository,
        storage: IStorageProvisioner,
        fragment_writer: FragmentWriter,
        queue: IDecommissionQueue,
    ) -> None:
        self.metadata_repo = metadata_repo
        self.storage = storage
        self.fragment_writer = fragment_writer
        self.queue = queue

    def _build_definition(
        self, tenant_marker: str, data: TableCreate, now: str
    ) -> TableDefinition:
        """Validate a create request into a candidate definition (new table id)."""
        return TableDefinition(
            tenant_marker=tenant_marker,
            table_name=data.table_name,
            table_id=generate_cuid(),
            fields=assign_primary(data.fields),
            subscription_specs=tuple(data.subscription_specs),
            description=data.description,
            created_at=now,
            updated_at=now,
        )

    async def _create_one(self, candidate: TableDefinition) -> CreateTableResult:
        """Metadata first, then physical storage. Replays converge on the stored record."""
        created = await self.metadata_repo.put_if_absent(candidate)
        table = candidate
        if not created:
            existing = await self.metadata_repo.get(candidate.tenant_marker, candidate.table_name)
            if existing is None:
                raise TransientIOException(
                    "create table", "metadata record vanished during create; retry"
                )
            if existing.is_decommissioning:
                raise TableConflictException(
                    candidate.table_name, "Table is being decommissioned"
                )
            if existing.definition_fingerprint() != candidate.definition_fingerprint():
                raise TableConflictException(candidate.table_name)
            table = existing
            logger.info(
                "Create replay for %s; reusing table id %s", table.table_name, table.table_id
            )

        if not await self.storage.create_table(table):
            logger.info("Physical table for %s already exists", table.table_name)
        return CreateTableResult(table=table, created=created)

    async def create_table(self, tenant_marker: str, data: TableCreate) -> CreateTableResult:
        """Create one table (idempotent for an identical definition).

        Raises:
            ValidationException: Invalid definition.
            TableConflictException: Name taken by a different definition.
            PublicationFailureException / PublicationTimeoutException /
            PublicationConflictException: Inline schema sync failed.
        """
        candidate = self._build_definition(tenant_marker, data, utc_now_iso())
        result = await self._create_one(candidate)
        await self.fragment_writer.write_and_sync(tenant_marker)
        return result

    async def batch_create_tables(
        self, tenant_marker: str, items: list[TableCreate]
    ) -> BatchCreateResult:
        """Create many tables; the fragment is written and synced once.

        Every entry is validated before anything is written; an invalid entry
        fails the whole batch. Creation errors after that are per table.
        """
        if not items:
            raise ValidationException("tables must be a non-empty array", field="tables")
        names = [item.table_name for item in items]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValidationException(
                f"Duplicate table name in batch: {', '.join(duplicates)}", field="tables"
            )
        now = utc_now_iso()
        candidates = [self._build_definition(tenant_marker, item, now) for item in items]

        result = BatchCreateResult()
        for candidate in candidates:
            try:
                result.results.append(await self._create_one(candidate))
            except TableFedException as e:
                logger.warning("Batch create of %s failed: %s", candidate.table_name, e.message)
                result.errors.append(BatchCreateError(candidate.table_name, e.message))

        if result.results:
            await self.fragment_writer.write_and_sync(tenant_marker)
        return result

    async def _get_existing(self, tenant_marker: str, table_name: str) -> TableDefinition:
        table = await self.metadata_repo.get(tenant_marker, table_name)
        if table is None:
            raise ResourceNotFoundException("table", table_name)
        return table

    @staticmethod
    def _keep_primary(
        existing: TableDefinition, fields: tuple[FieldDefinition, ...]
    ) -> tuple[FieldDefinition, ...]:
        """Mark the current primary field when the update marks none."""
        if any(f.primary for f in fields):
            return fields
        pk_name = existing.primary_field.name
        return tuple(replace(f, primary=True) if f.name == pk_name else f for f in fields)

    async def update_table(
        self, tenant_marker: str, table_name: str, data: TableUpdate
    ) -> TableDefinition:
        """Partially update a table; new indexed fields get secondary indexes.

        Raises:
            ResourceNotFoundException: Unknown table.
            TableConflictException: Table is being decommissioned.
            ValidationException: Invalid fields or an attempt to change the primary field.
        """
        existing = await self._get_existing(tenant_marker, table_name)
        if existing.is_decommissioning:
            raise TableConflictException(table_name, "Table is being decommissioned")

        changes: dict = {"updated_at": utc_now_iso()}
        if data.fields is not None:
            fields = assign_primary(self._keep_primary(existing, tuple(data.fields)))
            new_pk = next(f for f in fields if f.primary)
            old_pk = existing.primary_field
            if (new_pk.name, new_pk.type) != (old_pk.name, old_pk.type):
                raise ValidationException(
                    f"Primary field cannot change (currently {old_pk.name}: {old_pk.type.value})",
                    field="fields",
                )
            changes["fields"] = fields
        if data.subscription_specs is not None:
            changes["subscription_specs"] = tuple(data.subscription_specs)
        if data.description is not None:
            changes["description"] = data.description

        updated = existing.with_changes(**changes)
        known = {f.name for f in existing.indexed_fields}
        new_indexes = [f for f in updated.indexed_fields if f.name not in known]
        if new_indexes:
            await self.storage.add_indexes(updated, new_indexes)

        await self.metadata_repo.save(updated)
        await self.fragment_writer.write_and_sync(tenant_marker)
        logger.info("Updated table %s for tenant %s", table_name, tenant_marker)
        return updated

    async def list_tables(self, tenant_marker: str) -> list[TableDefinition]:
        return await self.metadata_repo.list_for_tenant(tenant_marker)

    async def get_table(self, tenant_marker: str, table_name: str) -> TableDefinition:
        return await self._get_existing(tenant_marker, table_name)

    async def get_table_schema(self, tenant_marker: str, table_name: str) -> dict[str, str]:
        """Field name -> GraphQL type, including the auto-managed timestamps."""
        table = await self._get_existing(tenant_marker, table_name)
        schema = {f.name: f.type.graphql_type for f in table.fields}
        schema[CREATED_AT_FIELD] = "String"
        schema[UPDATED_AT_FIELD] = "String"
        return schema

    async def request_decommission(
        self, tenant_marker: str, table_name: str
    ) -> DecommissionTask:
        """Record the delete intent and enqueue the teardown. Repeat calls re-enqueue."""
        table = await self._get_existing(tenant_marker, table_name)
        if not table.is_decommissioning:
            table = await self.metadata_repo.save(
                table.with_changes(status=TableStatus.DECOMMISSIONING, updated_at=utc_now_iso())
            )
            await self.fragment_writer.write(tenant_marker)
        task = DecommissionTask(
            tenant_marker=tenant_marker,
            table_name=table.table_name,
            table_id=table.table_id,
        )
        message_id = await self.queue.send(task)
        logger.info(
            "Decommission of %s (%s) enqueued as %s", table_name, table.table_id, message_id
        )
        return task
