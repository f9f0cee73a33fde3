"""Schema synthesizer: renders tenant fragments into one GraphQL document.

Per table the document gets an object type, a connection type, create and
update inputs, get/list queries, create/update/delete/publish mutations and
onCreate/onUpdate/onDelete subscriptions. The publish mutation never touches
storage; onUpdate also fires on it, giving a broadcast-only path.

Merging enumerates every tenant fragment and concatenates declarations into
single Query/Mutation/Subscription types. A missing or unreadable fragment is
skipped with a warning so one bad tenant cannot take the whole API down.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tablefed.domain.entities import TableDefinition, TenantFragment
from tablefed.domain.enums import OperationKind
from tablefed.domain.exceptions import ValidationException

if TYPE_CHECKING:
    from tablefed.application.interfaces.services import IFragmentStore

logger = logging.getLogger(__name__)

DOCUMENT_HEADER = "# tablefed federated GraphQL schema\n# Auto-generated from all tenant fragments"


@dataclass
class SchemaParts:
    """Rendered declarations, kept separate so they can be merged across tenants."""

    types: list[str] = field(default_factory=list)
    inputs: list[str] = field(default_factory=list)
    queries: list[str] = field(default_factory=list)
    mutations: list[str] = field(default_factory=list)
    subscriptions: list[str] = field(default_factory=list)

    def extend(self, other: SchemaParts) -> None:
        self.types.extend(other.types)
        self.inputs.extend(other.inputs)
        self.queries.extend(other.queries)
        self.mutations.extend(other.mutations)
        self.subscriptions.extend(other.subscriptions)


@dataclass(frozen=True)
class MergedDocument:
    """Result of a merge: the document text and what went into it."""

    text: str
    tenant_markers: tuple[str, ...]
    type_names: tuple[str, ...]
    skipped_tenants: tuple[str, ...] = ()


def _arg_list(args: Iterable[str]) -> str:
    joined = ", ".join(args)
    return f"({joined})" if joined else ""


def render_table_parts(table: TableDefinition) -> SchemaParts:
    """Render the declarations of one table."""
    type_name = table.generated_type_name
    connection = f"{type_name}Connection"
    pk = table.primary_field
    pk_arg = f"{pk.name}: {pk.type.graphql_type}!"

    object_fields = [
        f"  {f.name}: {f.type.graphql_type}{'!' if f.required or f.primary else ''}"
        for f in table.fields
    ]
    object_fields += ["  createdAt: String", "  updatedAt: String"]
    create_fields = [
        f"  {f.name}: {f.type.graphql_type}{'!' if f.required or f.primary else ''}"
        for f in table.fields
    ]
    update_fields = [f"  {f.name}: {f.type.graphql_type}" for f in table.fields]

    parts = SchemaParts()
    parts.types.append(f"type {type_name} {{\n" + "\n".join(object_fields) + "\n}")
    parts.types.append(
        f"type {connection} {{\n  items: [{type_name}]\n  nextToken: String\n}}"
    )
    parts.inputs.append(f"input {type_name}Input {{\n" + "\n".join(create_fields) + "\n}")
    parts.inputs.append(
        f"input {type_name}UpdateInput {{\n" + "\n".join(update_fields) + "\n}"
    )

    list_args = [f"{f.name}: {f.type.graphql_type}" for f in table.indexed_fields]
    list_args += ["limit: Int", "nextToken: String"]
    parts.queries.append(f"{OperationKind.GET.field_name(type_name)}({pk_arg}): {type_name}")
    parts.queries.append(
        f"{OperationKind.LIST.field_name(type_name)}{_arg_list(list_args)}: {connection}"
    )

    create = OperationKind.CREATE.field_name(type_name)
    update = OperationKind.UPDATE.field_name(type_name)
    delete = OperationKind.DELETE.field_name(type_name)
    publish = OperationKind.PUBLISH.field_name(type_name)
    parts.mutations.append(f"{create}(input: {type_name}Input!): {type_name}")
    parts.mutations.append(
        f"{update}({pk_arg}, input: {type_name}UpdateInput!): {type_name}"
    )
    parts.mutations.append(f"{delete}({pk_arg}): {type_name}")
    parts.mutations.append(f"{publish}(input: {type_name}Input!): {type_name}")

    filters = _arg_list(f"{f.name}: {f.type.graphql_type}" for f in table.filter_fields)
    for event, mutations in (
        ("Create", [create]),
        ("Update", [update, publish]),
        ("Delete", [delete]),
    ):
        bound = ", ".join(f'"{m}"' for m in mutations)
        parts.subscriptions.append(
            f"on{type_name}{event}{filters}: {type_name}\n"
            f"    @aws_subscribe(mutations: [{bound}])"
        )
    return parts


def assemble_document(parts: SchemaParts, header: str = DOCUMENT_HEADER) -> str:
    """Assemble parts into a document with single container types.

    Each container keeps a placeholder field so an empty federation is valid.
    """

    def container(name: str, entries: list[str]) -> str:
        body = "\n".join(f"  {e}" for e in ["placeholder: String", *entries])
        return f"type {name} {{\n{body}\n}}"

    sections = [header]
    if parts.types:
        sections.append("\n\n".join(parts.types))
    if parts.inputs:
        sections.append("\n\n".join(parts.inputs))
    sections.append(container("Query", parts.queries))
    sections.append(container("Mutation", parts.mutations))
    sections.append(container("Subscription", parts.subscriptions))
    return "\n\n".join(sections) + "\n"


def render_tenant_document(fragment: TenantFragment) -> str:
    """Render a standalone document for one tenant's fragment."""
    parts = SchemaParts()
    for table in fragment.tables:
        parts.extend(render_table_parts(table))
    return assemble_document(
        parts, header=f"# tablefed schema fragment for tenant {fragment.tenant_marker}"
    )


def render_subscription_operations(table: TableDefinition) -> dict[str, str]:
    """Client subscription operations (onCreate/onUpdate/onDelete) for a table."""
    type_name = table.generated_type_name
    filters = table.filter_fields
    variables = _arg_list(f"${f.name}: {f.type.graphql_type}" for f in filters)
    arguments = _arg_list(f"{f.name}: ${f.name}" for f in filters)
    selection = "\n".join(
        f"    {name}" for name in [*(f.name for f in table.fields), "createdAt", "updatedAt"]
    )
    operations: dict[str, str] = {}
    for event in ("Create", "Update", "Delete"):
        name = f"on{type_name}{event}"
        operations[name] = (
            f"subscription {name}{variables} {{\n"
            f"  {name}{arguments} {{\n{selection}\n  }}\n}}"
        )
    return operations


class SchemaSynthesizer:
    """Builds the merged document from every fragment in the blob store."""

    def __init__(self, fragment_store: IFragmentStore) -> None:
        self.fragment_store = fragment_store

    async def load_fragments(self) -> tuple[list[TenantFragment], list[str]]:
        """Read all tenant fragments; return (fragments, skipped tenant markers).

        Missing or invalid fragments are skipped with a warning. Store errors
        while listing propagate, since nothing can be merged without the list.
        """
        from tablefed.application.services.fragment_codec import decode_fragment

        fragments: list[TenantFragment] = []
        skipped: list[str] = []
        for marker in sorted(await self.fragment_store.list_tenant_markers()):
            try:
                body = await self.fragment_store.get_fragment(marker)
                if body is None:
                    logger.warning("Fragment missing for tenant %s; skipping", marker)
                    skipped.append(marker)
                    continue
                fragments.append(decode_fragment(marker, body))
            except ValidationException as e:
                logger.warning("Fragment for tenant %s unreadable: %s; skipping", marker, e.message)
                skipped.append(marker)
            except Exception as e:
                logger.warning("Failed to read fragment for tenant %s: %s; skipping", marker, e)
                skipped.append(marker)
        return fragments, skipped

    def merge(
        self, fragments: Iterable[TenantFragment], skipped: Iterable[str] = ()
    ) -> MergedDocument:
        """Merge fragments into one document (pure; no I/O)."""
        parts = SchemaParts()
        markers: list[str] = []
        type_names: list[str] = []
        seen_ids: set[str] = set()
        for fragment in fragments:
            markers.append(fragment.tenant_marker)
            for table in fragment.tables:
                if table.table_id in seen_ids or table.generated_type_name in type_names:
                    logger.warning(
                        "Duplicate table %s (%s) in fragment %s; skipping",
                        table.table_name,
                        table.table_id,
                        fragment.tenant_marker,
                    )
                    continue
                seen_ids.add(table.table_id)
                type_names.append(table.generated_type_name)
                parts.extend(render_table_parts(table))
        return MergedDocument(
            text=assemble_document(parts),
            tenant_markers=tuple(markers),
            type_names=tuple(type_names),
            skipped_tenants=tuple(skipped),
        )

    async def build_merged_document(self) -> MergedDocument:
        """Load every fragment and merge them."""
        fragments, skipped = await self.load_fragments()
        merged = self.merge(fragments, skipped)
        logger.info(
            "Synthesized document: %d tenant(s), %d table(s), %d skipped",
            len(merged.tenant_markers),
            len(merged.type_names),
            len(merged.skipped_tenants),
        )
        return merged
