"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from tablefed.domain.entities import TableDefinition


# Table metadata repository interface
class ITableMetadataRepository(Protocol):
    """Protocol for the metadata store keyed by (tenant_marker, table_name)."""

    async def list_for_tenant(self, tenant_marker: str) -> list[TableDefinition]:
        """Return all table definitions of a tenant (ordered by table name)."""

    async def get(self, tenant_marker: str, table_name: str) -> TableDefinition | None:
        """Return one table definition or None."""

    async def put_if_absent(self, table: TableDefinition) -> bool:
        """Insert under a uniqueness guard. Return False if the key already exists."""

    async def save(self, table: TableDefinition) -> TableDefinition:
        """Replace the stored record (updates, status changes)."""

    async def delete(self, tenant_marker: str, table_name: str) -> bool:
        """Delete the record. Return False if it did not exist."""
