"""Service interfaces (ports) for the application layer.

Protocols for every external collaborator of the schema pipeline: the
physical storage provisioner, the blob store, the managed GraphQL engine,
the decommission queue and its dead-letter sink, and the mapping renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from tablefed.application.dtos.engine import EngineSchemaStatus, RenderedMapping
    from tablefed.application.dtos.queue import QueueMessage
    from tablefed.application.services.mapping_templates import MappingDescriptor
    from tablefed.domain.entities import DecommissionTask, FieldDefinition, TableDefinition


# Physical storage provisioner interface (one implementation per storage engine)
class IStorageProvisioner(Protocol):
    """Protocol for creating and deleting a table's physical key-value storage."""

    def physical_table_name(self, table_id: str) -> str:
        """Name of the physical table for a table id."""

    async def create_table(self, table: TableDefinition) -> bool:
        """Create storage keyed by the primary field, one index per indexed field.

        Return False when the physical table already exists.
        """

    async def add_indexes(
        self, table: TableDefinition, fields: list[FieldDefinition]
    ) -> list[str]:
        """Add secondary indexes for newly indexed fields; return created index names."""

    async def delete_table(self, table_id: str) -> bool:
        """Delete physical storage. Return False if it did not exist."""


# Blob store interface (fragments and published documents)
class IFragmentStore(Protocol):
    """Protocol for the blob store holding schemas/{marker}/fragment and /document."""

    async def put_fragment(self, tenant_marker: str, body: str) -> None:
        """Write the tenant fragment blob (triggers the sync notification)."""

    async def get_fragment(self, tenant_marker: str) -> str | None:
        """Return the fragment blob text or None if missing."""

    async def list_tenant_markers(self) -> list[str]:
        """Return markers of all tenants that have a schemas/{marker}/ prefix."""

    async def put_document(self, tenant_marker: str, text: str) -> None:
        """Store the tenant's last successfully published document text."""

    async def get_document(self, tenant_marker: str) -> str | None:
        """Return the tenant's last published document text or None."""

    async def delete_tenant(self, tenant_marker: str) -> None:
        """Delete fragment and document blobs; missing blobs are ignored."""


# Managed GraphQL engine interface
class IManagedEngine(Protocol):
    """Protocol for the managed real-time GraphQL engine (AppSync)."""

    supports_revisions: bool

    async def current_revision(self) -> str | None:
        """Return the optimistic-concurrency token of the active document, if supported."""

    async def start_schema_creation(
        self, definition: str, if_revision: str | None = None
    ) -> str:
        """Submit a full-replace document; return the engine status string."""

    async def get_schema_creation_status(self) -> EngineSchemaStatus:
        """Return the status of the last submission."""

    async def ensure_dynamodb_data_source(self, name: str, physical_table_name: str) -> bool:
        """Create a storage data source; return False if it already existed."""

    async def ensure_none_data_source(self, name: str) -> bool:
        """Create a pass-through data source; return False if it already existed."""

    async def upsert_resolver(
        self,
        parent_type: str,
        field_name: str,
        data_source_name: str,
        mapping: RenderedMapping,
    ) -> None:
        """Create or replace a resolver with the given request/response mapping."""

    async def delete_resolver(self, parent_type: str, field_name: str) -> bool:
        """Delete a resolver. Return False if it did not exist."""

    async def delete_data_source(self, name: str) -> bool:
        """Delete a data source. Return False if it did not exist."""


# Mapping renderer interface (engine-specific expression of the mapping IR)
class IMappingRenderer(Protocol):
    """Protocol for rendering a MappingDescriptor into engine mapping text."""

    def render(self, descriptor: MappingDescriptor) -> RenderedMapping:
        """Return request/response mapping text for the descriptor."""


# Decommission queue interface
class IDecommissionQueue(Protocol):
    """Protocol for the decommission task queue (batch size 1)."""

    async def send(self, task: DecommissionTask) -> str:
        """Enqueue a task; return the message id."""

    async def receive(self, wait_seconds: int = 0) -> QueueMessage | None:
        """Receive at most one message, or None when the queue is empty."""

    async def acknowledge(self, message: QueueMessage) -> None:
        """Delete a processed message."""

    async def reschedule(self, message: QueueMessage, delay_seconds: int) -> None:
        """Make a failed message visible again after delay_seconds."""


class IDeadLetterSink(Protocol):
    """Protocol for the sink receiving tasks that exhausted their deliveries."""

    async def put(self, message: QueueMessage, reason: str) -> None:
        """Store the message for manual handling."""
