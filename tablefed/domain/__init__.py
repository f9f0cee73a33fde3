"""Domain layer: entities, value objects, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from tablefed.domain.entities import (
    DecommissionTask,
    FieldDefinition,
    SubscriptionFilter,
    SubscriptionSpec,
    TableDefinition,
    TenantFragment,
)
from tablefed.domain.enums import (
    FieldType,
    OperationKind,
    PublicationState,
    TableStatus,
)
from tablefed.domain.exceptions import (
    AuthenticationException,
    PublicationConflictException,
    PublicationFailureException,
    PublicationTimeoutException,
    ResourceNotFoundException,
    TableConflictException,
    TableFedException,
    TransientIOException,
    ValidationException,
)
from tablefed.domain.value_objects import TenantMarker

__all__ = [
    # Entities
    "DecommissionTask",
    "FieldDefinition",
    "SubscriptionFilter",
    "SubscriptionSpec",
    "TableDefinition",
    "TenantFragment",
    # Enums
    "FieldType",
    "OperationKind",
    "PublicationState",
    "TableStatus",
    # Exceptions
    "AuthenticationException",
    "PublicationConflictException",
    "PublicationFailureException",
    "PublicationTimeoutException",
    "ResourceNotFoundException",
    "TableConflictException",
    "TableFedException",
    "TransientIOException",
    "ValidationException",
    # Value objects
    "TenantMarker",
]
