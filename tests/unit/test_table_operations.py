"""Tests for TableLifecycleService against the in-memory backend."""

from dataclasses import replace

import pytest

from tablefed.application.dtos.table import TableCreate, TableUpdate
from tablefed.domain.entities import DecommissionTask, FieldDefinition
from tablefed.domain.enums import FieldType, TableStatus
from tablefed.domain.exceptions import (
    PublicationFailureException,
    ResourceNotFoundException,
    TableConflictException,
    TransientIOException,
    ValidationException,
)
from tablefed.infrastructure.factory import Services


class TestCreateTable:
    async def test_create_provisions_everything(
        self, services: Services, marker: str, orders_create: TableCreate
    ) -> None:
        result = await services.tables.create_table(marker, orders_create)

        assert result.created is True
        table = result.table
        backend = services.backend
        physical = backend.storage.tables[f"tablefed-data-{table.table_id}"]
        assert physical.partition_key == "orderId"
        assert physical.indexes == ["status-index", "customerId-index"]
        assert marker in backend.fragment_store.fragments
        assert table.generated_type_name in backend.engine.active_document
        assert len(backend.engine.resolvers_for(table.generated_type_name)) == 6
        assert marker in backend.fragment_store.documents

    async def test_identical_replay_reuses_table(
        self, services: Services, marker: str, orders_create: TableCreate
    ) -> None:
        first = await services.tables.create_table(marker, orders_create)
        second = await services.tables.create_table(marker, orders_create)

        assert second.created is False
        assert second.table.table_id == first.table.table_id
        assert len(services.backend.storage.tables) == 1

    async def test_different_definition_conflicts(
        self, services: Services, marker: str, orders_create: TableCreate
    ) -> None:
        await services.tables.create_table(marker, orders_create)
        with pytest.raises(TableConflictException):
            await services.tables.create_table(
                marker, replace(orders_create, description="something else")
            )

    async def test_first_field_becomes_primary(self, services: Services, marker: str) -> None:
        result = await services.tables.create_table(
            marker,
            TableCreate("notes", (FieldDefinition("noteId"), FieldDefinition("body"))),
        )
        assert result.table.primary_field.name == "noteId"

    async def test_invalid_definition_writes_nothing(self, services: Services, marker: str) -> None:
        with pytest.raises(ValidationException):
            await services.tables.create_table(
                marker, TableCreate("bad-name", (FieldDefinition("id"),))
            )
        assert services.backend.storage.tables == {}
        assert services.backend.fragment_store.fragments == {}

    async def test_same_name_for_two_tenants(
        self, services: Services, orders_create: TableCreate
    ) -> None:
        a = await services.tables.create_table("aaaaaaaaaaaaaaaa", orders_create)
        b = await services.tables.create_table("bbbbbbbbbbbbbbbb", orders_create)
        document = services.backend.engine.active_document
        assert a.table.generated_type_name in document
        assert b.table.generated_type_name in document
        assert a.table.table_id != b.table.table_id

    async def test_rejected_document_surfaces_failure(
        self, services: Services, marker: str, orders_create: TableCreate
    ) -> None:
        services.backend.engine.validate_document = lambda _doc: "Syntax Error: boom"
        with pytest.raises(PublicationFailureException):
            await services.tables.create_table(marker, orders_create)
        # The metadata and storage are in place; a replay converges once publication works.
        assert await services.tables.get_table(marker, "orders")


class TestBatchCreate:
    async def test_batch_syncs_once(self, services: Services, marker: str, orders_create: TableCreate) -> None:
        items = [
            orders_create,
            TableCreate("customers", (FieldDefinition("customerId"),)),
        ]
        result = await services.tables.batch_create_tables(marker, items)

        assert [t.table_name for t in result.tables] == ["orders", "customers"]
        assert result.errors == []
        assert len(services.backend.engine.submissions) == 1

    async def test_batch_reports_per_table_conflicts(
        self, services: Services, marker: str, orders_create: TableCreate
    ) -> None:
        await services.tables.create_table(marker, orders_create)
        result = await services.tables.batch_create_tables(
            marker,
            [
                replace(orders_create, description="different"),
                TableCreate("customers", (FieldDefinition("customerId"),)),
            ],
        )
        assert [e.table_name for e in result.errors] == ["orders"]
        assert [t.table_name for t in result.tables] == ["customers"]

    async def test_invalid_entry_fails_whole_batch(self, services: Services, marker: str) -> None:
        with pytest.raises(ValidationException):
            await services.tables.batch_create_tables(
                marker,
                [
                    TableCreate("customers", (FieldDefinition("customerId"),)),
                    TableCreate("9bad", (FieldDefinition("id"),)),
                ],
            )
        assert await services.tables.list_tables(marker) == []

    async def test_duplicate_names_rejected(self, services: Services, marker: str) -> None:
        item = TableCreate("customers", (FieldDefinition("customerId"),))
        with pytest.raises(ValidationException, match="Duplicate table name"):
            await services.tables.batch_create_tables(marker, [item, item])


class TestUpdateTable:
    async def test_new_indexed_field_gets_index(
        self, services: Services, marker: str, orders_create: TableCreate
    ) -> None:
        created = (await services.tables.create_table(marker, orders_create)).table
        fields = tuple(f for f in created.fields if f.name != "orderId") + (
            FieldDefinition("orderId"),
            FieldDefinition("region", FieldType.STRING, indexed=True),
        )

        updated = await services.tables.update_table(marker, "orders", TableUpdate(fields=fields))

        assert updated.primary_field.name == "orderId"
        assert updated.table_id == created.table_id
        physical = services.backend.storage.tables[f"tablefed-data-{created.table_id}"]
        assert "region-index" in physical.indexes
        assert "region: String" in services.backend.engine.active_document

    async def test_missing_physical_table_is_transient(
        self, services: Services, marker: str, orders_create: TableCreate
    ) -> None:
        """A record whose physical table is gone surfaces as a retryable I/O error."""
        created = (await services.tables.create_table(marker, orders_create)).table
        await services.backend.storage.delete_table(created.table_id)
        fields = created.fields + (FieldDefinition("region", FieldType.STRING, indexed=True),)

        with pytest.raises(TransientIOException) as exc_info:
            await services.tables.update_table(marker, "orders", TableUpdate(fields=fields))

        assert exc_info.value.details["retryable"] is True

    async def test_primary_cannot_change(
        self, services: Services, marker: str, orders_create: TableCreate
    ) -> None:
        await services.tables.create_table(marker, orders_create)
        with pytest.raises(ValidationException, match="Primary field cannot change"):
            await services.tables.update_table(
                marker,
                "orders",
                TableUpdate(fields=(FieldDefinition("other", primary=True),)),
            )

    async def test_description_only(
        self, services: Services, marker: str, orders_create: TableCreate
    ) -> None:
        await services.tables.create_table(marker, orders_create)
        updated = await services.tables.update_table(
            marker, "orders", TableUpdate(description="v2")
        )
        assert updated.description == "v2"
        assert updated.fields == (await services.tables.get_table(marker, "orders")).fields

    async def test_unknown_table(self, services: Services, marker: str) -> None:
        with pytest.raises(ResourceNotFoundException):
            await services.tables.update_table(marker, "missing", TableUpdate(description="x"))


class TestReads:
    async def test_schema_includes_timestamps(
        self, services: Services, marker: str, orders_create: TableCreate
    ) -> None:
        await services.tables.create_table(marker, orders_create)
        schema = await services.tables.get_table_schema(marker, "orders")
        assert schema == {
            "orderId": "String",
            "status": "String",
            "customerId": "String",
            "total": "Float",
            "tags": "[String]",
            "createdAt": "String",
            "updatedAt": "String",
        }

    async def test_tables_are_tenant_scoped(
        self, services: Services, marker: str, orders_create: TableCreate
    ) -> None:
        await services.tables.create_table(marker, orders_create)
        assert [t.table_name for t in await services.tables.list_tables(marker)] == ["orders"]
        assert await services.tables.list_tables("0000000000000000") == []
        with pytest.raises(ResourceNotFoundException):
            await services.tables.get_table("0000000000000000", "orders")


class TestRequestDecommission:
    async def test_marks_and_enqueues(
        self, services: Services, marker: str, orders_create: TableCreate
    ) -> None:
        created = (await services.tables.create_table(marker, orders_create)).table

        task = await services.tables.request_decommission(marker, "orders")

        assert task == DecommissionTask(marker, "orders", created.table_id)
        stored = await services.tables.get_table(marker, "orders")
        assert stored.status is TableStatus.DECOMMISSIONING
        assert services.backend.queue.bodies == [task.to_json()]

    async def test_repeat_request_re_enqueues(
        self, services: Services, marker: str, orders_create: TableCreate
    ) -> None:
        await services.tables.create_table(marker, orders_create)
        await services.tables.request_decommission(marker, "orders")
        await services.tables.request_decommission(marker, "orders")
        assert len(services.backend.queue) == 2

    async def test_create_and_update_blocked_while_decommissioning(
        self, services: Services, marker: str, orders_create: TableCreate
    ) -> None:
        await services.tables.create_table(marker, orders_create)
        await services.tables.request_decommission(marker, "orders")
        with pytest.raises(TableConflictException, match="decommissioned"):
            await services.tables.create_table(marker, orders_create)
        with pytest.raises(TableConflictException):
            await services.tables.update_table(marker, "orders", TableUpdate(description="x"))

    async def test_unknown_table(self, services: Services, marker: str) -> None:
        with pytest.raises(ResourceNotFoundException):
            await services.tables.request_decommission(marker, "missing")
