"""Table lifecycle use cases."""

from tablefed.application.use_cases.tables.decommission_table import (
    DecommissionService,
    DecommissionWorker,
    DeliveryOutcome,
)
from tablefed.application.use_cases.tables.fragment_writer import FragmentWriter
from tablefed.application.use_cases.tables.schema_sync import (
    SchemaSyncService,
    SyncResult,
)
from tablefed.application.use_cases.tables.table_operations import (
    TableLifecycleService,
)

__all__ = [
    "DecommissionService",
    "DecommissionWorker",
    "DeliveryOutcome",
    "FragmentWriter",
    "SchemaSyncService",
    "SyncResult",
    "TableLifecycleService",
]
