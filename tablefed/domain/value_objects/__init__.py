"""Domain value objects (immutable, self-validating)."""

from tablefed.domain.value_objects.core import (
    TenantMarker,
    data_source_name,
    generated_type_name,
    validate_field_name,
    validate_table_name,
)

__all__ = [
    "TenantMarker",
    "data_source_name",
    "generated_type_name",
    "validate_field_name",
    "validate_table_name",
]
