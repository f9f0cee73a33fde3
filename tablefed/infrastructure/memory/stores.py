"""In-process metadata repository, storage provisioner and blob store.

Used by the "memory" backend (local runs, tests). State lives in plain dicts
guarded by an asyncio.Lock so the uniqueness guard is atomic per loop.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from tablefed.application.services.mapping_templates import index_name
from tablefed.domain.entities import FieldDefinition, TableDefinition
from tablefed.domain.exceptions import TransientIOException

logger = logging.getLogger(__name__)


class InMemoryTableMetadataRepository:
    """ITableMetadataRepository keyed by (tenant_marker, table_name)."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], TableDefinition] = {}
        self._lock = asyncio.Lock()

    async def list_for_tenant(self, tenant_marker: str) -> list[TableDefinition]:
        return [
            table
            for (marker, _), table in sorted(self._records.items())
            if marker == tenant_marker
        ]

    async def get(self, tenant_marker: str, table_name: str) -> TableDefinition | None:
        return self._records.get((tenant_marker, table_name))

    async def put_if_absent(self, table: TableDefinition) -> bool:
        key = (table.tenant_marker, table.table_name)
        async with self._lock:
            if key in self._records:
                return False
            self._records[key] = table
            return True

    async def save(self, table: TableDefinition) -> TableDefinition:
        async with self._lock:
            self._records[(table.tenant_marker, table.table_name)] = table
        return table

    async def delete(self, tenant_marker: str, table_name: str) -> bool:
        async with self._lock:
            return self._records.pop((tenant_marker, table_name), None) is not None


@dataclass
class PhysicalTable:
    """What the in-memory provisioner knows about one physical table."""

    name: str
    partition_key: str
    indexes: list[str] = field(default_factory=list)
    stream_enabled: bool = True


class InMemoryStorageProvisioner:
    """IStorageProvisioner recording physical tables by name."""

    def __init__(self, table_prefix: str = "tablefed-data-") -> None:
        self.table_prefix = table_prefix
        self.tables: dict[str, PhysicalTable] = {}

    def physical_table_name(self, table_id: str) -> str:
        return f"{self.table_prefix}{table_id}"

    async def create_table(self, table: TableDefinition) -> bool:
        name = self.physical_table_name(table.table_id)
        if name in self.tables:
            return False
        self.tables[name] = PhysicalTable(
            name=name,
            partition_key=table.primary_field.name,
            indexes=[index_name(f.name) for f in table.indexed_fields],
        )
        logger.info("Created physical table %s", name)
        return True

    async def add_indexes(
        self, table: TableDefinition, fields: list[FieldDefinition]
    ) -> list[str]:
        name = self.physical_table_name(table.table_id)
        physical = self.tables.get(name)
        if physical is None:
            raise TransientIOException("add indexes", f"physical table {name} not found")
        created = []
        for f in fields:
            index = index_name(f.name)
            if index not in physical.indexes:
                physical.indexes.append(index)
                created.append(index)
        return created

    async def delete_table(self, table_id: str) -> bool:
        return self.tables.pop(self.physical_table_name(table_id), None) is not None


class InMemoryFragmentStore:
    """IFragmentStore with fragment and document blobs per tenant marker."""

    def __init__(self) -> None:
        self.fragments: dict[str, str] = {}
        self.documents: dict[str, str] = {}

    async def put_fragment(self, tenant_marker: str, body: str) -> None:
        self.fragments[tenant_marker] = body

    async def get_fragment(self, tenant_marker: str) -> str | None:
        return self.fragments.get(tenant_marker)

    async def list_tenant_markers(self) -> list[str]:
        return sorted(set(self.fragments) | set(self.documents))

    async def put_document(self, tenant_marker: str, text: str) -> None:
        self.documents[tenant_marker] = text

    async def get_document(self, tenant_marker: str) -> str | None:
        return self.documents.get(tenant_marker)

    async def delete_tenant(self, tenant_marker: str) -> None:
        self.fragments.pop(tenant_marker, None)
        self.documents.pop(tenant_marker, None)
