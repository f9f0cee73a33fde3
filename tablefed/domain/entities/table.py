"""Table definition domain entities.

A TableDefinition is the tenant-declared shape of one logical table. It is
serialized with camelCase keys because the same dicts are stored in the
metadata table and in the tenant fragment blob.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from tablefed.domain.enums import FieldType, TableStatus
from tablefed.domain.exceptions import ValidationException
from tablefed.domain.value_objects.core import (
    generated_type_name,
    validate_field_name,
    validate_table_name,
)


def _parse_type(value: Any, field_name: str) -> FieldType:
    try:
        return FieldType.parse(value)
    except ValueError as e:
        raise ValidationException(str(e), field=field_name) from e


@dataclass(frozen=True)
class FieldDefinition:
    """One declared field of a table."""

    name: str
    type: FieldType = FieldType.STRING
    required: bool = False
    indexed: bool = False
    primary: bool = False

    def __post_init__(self) -> None:
        validate_field_name(self.name)
        if not isinstance(self.type, FieldType):
            object.__setattr__(self, "type", _parse_type(self.type, "fields"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "required": self.required,
            "indexed": self.indexed,
            "primary": self.primary,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FieldDefinition:
        return cls(
            name=data.get("name", ""),
            type=_parse_type(data.get("type") or "String", "fields"),
            required=bool(data.get("required", False)),
            indexed=bool(data.get("indexed", False)),
            primary=bool(data.get("primary", False)),
        )


@dataclass(frozen=True)
class SubscriptionFilter:
    """A field a subscription can be filtered on."""

    name: str
    type: FieldType = FieldType.STRING

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SubscriptionFilter:
        # Older fragments used "field" for the filter name.
        name = data.get("name") or data.get("field") or ""
        return cls(name=name, type=_parse_type(data.get("type") or "String", "subscriptions"))


@dataclass(frozen=True)
class SubscriptionSpec:
    """Subscription configuration: the filter arguments of onCreate/onUpdate/onDelete."""

    filter_fields: tuple[SubscriptionFilter, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"filterFields": [f.to_dict() for f in self.filter_fields]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SubscriptionSpec:
        raw = data.get("filterFields")
        if raw is None:
            raw = data.get("filters") or []
        return cls(filter_fields=tuple(SubscriptionFilter.from_dict(f) for f in raw))


def assign_primary(fields: Iterable[FieldDefinition]) -> tuple[FieldDefinition, ...]:
    """Return fields with exactly one primary; the first field when none is marked.

    Raises:
        ValidationException: Empty field list or more than one primary field.
    """
    result = tuple(fields)
    if not result:
        raise ValidationException("fields must be a non-empty array", field="fields")
    primaries = [f for f in result if f.primary]
    if len(primaries) > 1:
        raise ValidationException(
            "Exactly one field may be primary; got "
            + ", ".join(f.name for f in primaries),
            field="fields",
        )
    if not primaries:
        result = (replace(result[0], primary=True),) + result[1:]
    return result


@dataclass(frozen=True)
class TableDefinition:
    """Immutable domain entity for a tenant table (validated on construction).

    tableId is opaque and assigned once; generatedTypeName is always derived
    from tenantMarker + tableName.
    """

    tenant_marker: str
    table_name: str
    table_id: str
    fields: tuple[FieldDefinition, ...]
    subscription_specs: tuple[SubscriptionSpec, ...] = ()
    description: str = ""
    created_at: str = ""
    updated_at: str = ""
    status: TableStatus = TableStatus.ACTIVE
    generated_type_name: str = field(default="")

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "generated_type_name",
            generated_type_name(self.tenant_marker, self.table_name),
        )
        self.validate()

    def validate(self) -> None:
        """Validate table business rules. Raises ValidationException if invalid."""
        validate_table_name(self.table_name)
        if not self.table_id:
            raise ValidationException("Table ID is required", field="tableId")
        if not self.fields:
            raise ValidationException("fields must be a non-empty array", field="fields")
        names = [f.name for f in self.fields]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValidationException(
                f"Duplicate field name: {', '.join(duplicates)}", field="fields"
            )
        primaries = [f for f in self.fields if f.primary]
        if len(primaries) != 1:
            raise ValidationException("Exactly one field must be primary", field="fields")
        if not primaries[0].type.is_key_capable:
            raise ValidationException(
                f"Primary field {primaries[0].name} must be String, Int or Float",
                field="fields",
            )
        for f in self.fields:
            if f.indexed and not f.primary and not f.type.is_key_capable:
                raise ValidationException(
                    f"Indexed field {f.name} must be String, Int or Float",
                    field="fields",
                )
        declared = set(names)
        for spec in self.subscription_specs:
            for flt in spec.filter_fields:
                if flt.name not in declared:
                    raise ValidationException(
                        f"Subscription filter references unknown field: {flt.name}",
                        field="subscriptions",
                    )

    @property
    def primary_field(self) -> FieldDefinition:
        return next(f for f in self.fields if f.primary)

    @property
    def indexed_fields(self) -> tuple[FieldDefinition, ...]:
        """Secondary-indexed fields in declaration order (the primary is never one)."""
        return tuple(f for f in self.fields if f.indexed and not f.primary)

    @property
    def filter_fields(self) -> tuple[SubscriptionFilter, ...]:
        """Subscription filter arguments: all specs' filters in order, first wins per name."""
        seen: dict[str, SubscriptionFilter] = {}
        for spec in self.subscription_specs:
            for flt in spec.filter_fields:
                seen.setdefault(flt.name, flt)
        return tuple(seen.values())

    @property
    def is_decommissioning(self) -> bool:
        return self.status is TableStatus.DECOMMISSIONING

    def definition_fingerprint(self) -> str:
        """Canonical JSON of the tenant-declared parts (fields, subscriptions, description).

        Two create requests are the same definition iff fingerprints are equal.
        """
        return json.dumps(
            {
                "fields": [f.to_dict() for f in self.fields],
                "subscriptions": [s.to_dict() for s in self.subscription_specs],
                "description": self.description,
            },
            sort_keys=True,
            separators=(",", ":"),
        )

    def with_changes(self, **changes: Any) -> TableDefinition:
        """Return a validated copy with the given attributes replaced."""
        changes.pop("generated_type_name", None)
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tenantMarker": self.tenant_marker,
            "tableName": self.table_name,
            "tableId": self.table_id,
            "fields": [f.to_dict() for f in self.fields],
            "subscriptions": [s.to_dict() for s in self.subscription_specs],
            "description": self.description,
            "generatedTypeName": self.generated_type_name,
            "status": self.status.value,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TableDefinition:
        """Build from a stored record. Raises ValidationException on bad data."""
        try:
            status = TableStatus(data.get("status") or TableStatus.ACTIVE.value)
        except ValueError as e:
            raise ValidationException(str(e), field="status") from e
        return cls(
            tenant_marker=data.get("tenantMarker", ""),
            table_name=data.get("tableName", ""),
            table_id=data.get("tableId", ""),
            fields=tuple(FieldDefinition.from_dict(f) for f in data.get("fields") or []),
            subscription_specs=tuple(
                SubscriptionSpec.from_dict(s) for s in data.get("subscriptions") or []
            ),
            description=data.get("description") or "",
            created_at=data.get("createdAt") or "",
            updated_at=data.get("updatedAt") or "",
            status=status,
        )


@dataclass(frozen=True)
class DecommissionTask:
    """Queue message for the asynchronous teardown of one table."""

    tenant_marker: str
    table_name: str
    table_id: str

    def to_dict(self) -> dict[str, str]:
        return {
            "tenantMarker": self.tenant_marker,
            "tableName": self.table_name,
            "tableId": self.table_id,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_json(cls, body: str) -> DecommissionTask:
        """Parse a queue message body. Raises ValidationException if malformed."""
        try:
            data = json.loads(body)
        except (TypeError, json.JSONDecodeError) as e:
            raise ValidationException(f"Malformed decommission message: {e}") from e
        if not isinstance(data, dict):
            raise ValidationException("Malformed decommission message: not an object")
        missing = [k for k in ("tenantMarker", "tableName", "tableId") if not data.get(k)]
        if missing:
            raise ValidationException(
                f"Decommission message missing: {', '.join(missing)}"
            )
        return cls(
            tenant_marker=data["tenantMarker"],
            table_name=data["tableName"],
            table_id=data["tableId"],
        )


@dataclass(frozen=True)
class TenantFragment:
    """The full set of one tenant's table definitions, persisted as one blob."""

    tenant_marker: str
    tables: tuple[TableDefinition, ...] = ()
    generated_at: str = ""

    def table_names(self) -> list[str]:
        return [t.table_name for t in self.tables]
