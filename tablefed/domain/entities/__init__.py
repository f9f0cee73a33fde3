"""Domain entities."""

from tablefed.domain.entities.table import (
    DecommissionTask,
    FieldDefinition,
    SubscriptionFilter,
    SubscriptionSpec,
    TableDefinition,
    TenantFragment,
    assign_primary,
)

__all__ = [
    "DecommissionTask",
    "FieldDefinition",
    "SubscriptionFilter",
    "SubscriptionSpec",
    "TableDefinition",
    "TenantFragment",
    "assign_primary",
]
