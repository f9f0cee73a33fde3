"""Domain value objects and naming rules for generated identifiers.

Every identifier that reaches the managed engine (type names, field names,
data source names) is derived here so the grammar rules live in one place:
GraphQL names match ``[_A-Za-z][_0-9A-Za-z]*`` and must not start with a digit.
"""

import hashlib
import re
from dataclasses import dataclass

from tablefed.domain.exceptions import ValidationException

_MARKER_RE = re.compile(r"^[0-9a-f]{8,64}$")
_TABLE_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]{0,63}$")
_FIELD_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,127}$")

# Set on every record by the generated mappings; not declarable by tenants.
RESERVED_FIELD_NAMES = frozenset({"createdAt", "updatedAt"})


@dataclass(frozen=True)
class TenantMarker:
    """One-way hash of a tenant credential, used in identifiers and blob paths.

    Fixed-length lowercase hex with no underscore, so ``T{marker}_{table}``
    can never collide across tenants.
    """

    value: str

    def __post_init__(self) -> None:
        if not _MARKER_RE.match(self.value):
            raise ValidationException(
                "Tenant marker must be 8-64 lowercase hex characters",
                field="tenant_marker",
            )

    @classmethod
    def from_credential(cls, credential: str, length: int = 16) -> "TenantMarker":
        """Derive the marker from a raw credential (SHA-256, truncated)."""
        if not credential:
            raise ValidationException("Credential must be non-empty", field="credential")
        digest = hashlib.sha256(credential.encode("utf-8")).hexdigest()
        return cls(digest[:length])

    def __str__(self) -> str:
        return self.value


def validate_table_name(name: str) -> None:
    """Raise ValidationException unless name is a valid table name."""
    if not name or not _TABLE_NAME_RE.match(name):
        raise ValidationException(
            "Table name must start with a letter and contain only letters, digits "
            "and underscores (max 64 characters)",
            field="tableName",
        )


def validate_field_name(name: str) -> None:
    """Raise ValidationException unless name is a valid, non-reserved field name."""
    if not name or not _FIELD_NAME_RE.match(name):
        raise ValidationException(
            f"Invalid field name: {name!r}",
            field="fields",
        )
    if name in RESERVED_FIELD_NAMES:
        raise ValidationException(
            f"Field name is reserved: {name}",
            field="fields",
        )


def generated_type_name(tenant_marker: str, table_name: str) -> str:
    """GraphQL type name for a tenant's table. Always starts with 'T'."""
    return f"T{tenant_marker}_{table_name}"


def data_source_name(tenant_marker: str, table_name: str) -> str:
    """Name of the engine data source bound to a tenant's physical table."""
    return f"ds_{tenant_marker}_{table_name}"
