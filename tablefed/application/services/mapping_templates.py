"""Typed intermediate representation of resolver field mappings.

Each OperationKind produces a MappingDescriptor: a structured request
descriptor saying what the operation does against storage, plus the shape of
its response. Descriptors are built only from the operation kind, the primary
key field and the indexed field names, never authored per table.

Engine renderers (e.g. tablefed.infrastructure.aws.vtl_renderer) turn
descriptors into engine-specific mapping text. The portable semantics
(list resolution policy, update write instruction) are implemented here as
plain methods so they can be tested and reused without an engine.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from tablefed.domain.entities import TableDefinition
from tablefed.domain.enums import OperationKind

CREATED_AT_FIELD = "createdAt"
UPDATED_AT_FIELD = "updatedAt"


def index_name(field_name: str) -> str:
    """Secondary index name for an indexed field."""
    return f"{field_name}-index"


class ResponseShape(str, Enum):
    """How the engine result is returned to the caller."""

    ITEM = "item"
    CONNECTION = "connection"
    PASS_THROUGH = "pass_through"


@dataclass(frozen=True)
class IndexLookup:
    """List plan: query one secondary index for an exact value."""

    field: str
    index: str
    value: Any
    limit: int | None = None
    next_token: str | None = None


@dataclass(frozen=True)
class Scan:
    """List plan: full unordered scan."""

    limit: int | None = None
    next_token: str | None = None


@dataclass(frozen=True)
class ConditionGuard:
    """Write guard: every key attribute must already exist on the target row."""

    key_fields: tuple[str, ...]

    @property
    def placeholders(self) -> dict[str, str]:
        return {f"#tfKey{i}": name for i, name in enumerate(self.key_fields)}

    @property
    def expression(self) -> str:
        return " AND ".join(f"attribute_exists({p})" for p in self.placeholders)


@dataclass(frozen=True)
class WriteInstruction:
    """A fully resolved write: key, SET expression over present attributes, guard."""

    key: dict[str, Any]
    expression: str
    expression_names: dict[str, str]
    expression_values: dict[str, Any]
    condition: ConditionGuard | None = None


@dataclass(frozen=True)
class GetItemRequest:
    key_field: str


@dataclass(frozen=True)
class ListRequest:
    """List with index lookup on the first supplied indexed field, else scan.

    Later supplied indexed fields are ignored; this is never an intersection.
    """

    indexed_fields: tuple[str, ...] = ()

    def index_for(self, field_name: str) -> str:
        return index_name(field_name)

    def plan(self, args: Mapping[str, Any]) -> IndexLookup | Scan:
        limit = args.get("limit")
        next_token = args.get("nextToken")
        for name in self.indexed_fields:
            value = args.get(name)
            if value is not None:
                return IndexLookup(
                    field=name,
                    index=self.index_for(name),
                    value=value,
                    limit=limit,
                    next_token=next_token,
                )
        return Scan(limit=limit, next_token=next_token)


@dataclass(frozen=True)
class PutItemRequest:
    """Create: key from input, remaining input as attributes, both timestamps set."""

    key_field: str
    timestamp_fields: tuple[str, ...] = (CREATED_AT_FIELD, UPDATED_AT_FIELD)

    def build(self, args: Mapping[str, Any], now: str) -> tuple[dict[str, Any], dict[str, Any]]:
        """Return (key, attributes) for the caller-supplied input."""
        attrs = dict(args.get("input") or {})
        key = {self.key_field: attrs.pop(self.key_field, None)}
        for name in self.timestamp_fields:
            attrs[name] = now
        return key, attrs


@dataclass(frozen=True)
class UpdateItemRequest:
    """Update: merge auto-set updatedAt into whatever attributes are present.

    Key attributes are removed from the SET list and used as the write guard,
    so the update fails if the row does not already exist.
    """

    key_fields: tuple[str, ...]
    timestamp_field: str = UPDATED_AT_FIELD

    @property
    def guard(self) -> ConditionGuard:
        return ConditionGuard(self.key_fields)

    def build(self, args: Mapping[str, Any], now: str) -> WriteInstruction:
        key = {name: args.get(name) for name in self.key_fields}
        attrs = dict(args.get("input") or {})
        for name in self.key_fields:
            attrs.pop(name, None)
        attrs[self.timestamp_field] = now
        return WriteInstruction(
            key=key,
            expression="SET " + ", ".join(f"#{name} = :{name}" for name in attrs),
            expression_names={f"#{name}": name for name in attrs},
            expression_values={f":{name}": value for name, value in attrs.items()},
            condition=self.guard,
        )


@dataclass(frozen=True)
class DeleteItemRequest:
    key_field: str


@dataclass(frozen=True)
class PassThroughRequest:
    """Publish: echo the input back without touching storage."""

    payload_arg: str = "input"


RequestDescriptor = Union[
    GetItemRequest,
    ListRequest,
    PutItemRequest,
    UpdateItemRequest,
    DeleteItemRequest,
    PassThroughRequest,
]


@dataclass(frozen=True)
class MappingDescriptor:
    """Portable description of one resolver's request and response mapping."""

    kind: OperationKind
    request: RequestDescriptor
    response: ResponseShape
    metadata: dict[str, Any] = field(default_factory=dict)


def build_mapping(
    kind: OperationKind,
    primary_key: str,
    indexed_fields: tuple[str, ...] = (),
) -> MappingDescriptor:
    """Build the descriptor for one operation kind."""
    if kind is OperationKind.GET:
        return MappingDescriptor(kind, GetItemRequest(primary_key), ResponseShape.ITEM)
    if kind is OperationKind.LIST:
        return MappingDescriptor(
            kind, ListRequest(tuple(indexed_fields)), ResponseShape.CONNECTION
        )
    if kind is OperationKind.CREATE:
        return MappingDescriptor(kind, PutItemRequest(primary_key), ResponseShape.ITEM)
    if kind is OperationKind.UPDATE:
        return MappingDescriptor(
            kind, UpdateItemRequest((primary_key,)), ResponseShape.ITEM
        )
    if kind is OperationKind.DELETE:
        return MappingDescriptor(kind, DeleteItemRequest(primary_key), ResponseShape.ITEM)
    if kind is OperationKind.PUBLISH:
        return MappingDescriptor(kind, PassThroughRequest(), ResponseShape.PASS_THROUGH)
    raise ValueError(f"Unsupported operation kind: {kind}")


def build_table_mappings(table: TableDefinition) -> dict[OperationKind, MappingDescriptor]:
    """Descriptors for every operation of a table, in OperationKind order."""
    pk = table.primary_field.name
    indexed = tuple(f.name for f in table.indexed_fields)
    return {kind: build_mapping(kind, pk, indexed) for kind in OperationKind}
