"""In-process managed engine.

Mimics AppSync's asynchronous schema creation: a submitted document stays
PROCESSING for ``processing_checks`` status polls, then becomes ACTIVE or
FAILED after a light structural validation. Unlike AppSync it keeps a
revision counter that advances on every accepted submission, so concurrent
publishers get a conflict instead of a silent overwrite.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from tablefed.application.dtos.engine import EngineSchemaStatus, RenderedMapping
from tablefed.domain.exceptions import PublicationConflictException

logger = logging.getLogger(__name__)

_DEFINITION_RE = re.compile(r"^(type|input)\s+([A-Za-z_][A-Za-z0-9_]*)", re.MULTILINE)


@dataclass(frozen=True)
class DataSource:
    name: str
    kind: str
    table_name: str | None = None


@dataclass(frozen=True)
class Resolver:
    parent_type: str
    field_name: str
    data_source_name: str
    mapping: RenderedMapping


class InMemoryEngine:
    """IManagedEngine holding one active document, data sources and resolvers."""

    supports_revisions = True

    def __init__(self, processing_checks: int = 0) -> None:
        self.processing_checks = processing_checks
        self.active_document: str | None = None
        self.revision = 0
        self.submissions: list[str] = []
        self.data_sources: dict[str, DataSource] = {}
        self.resolvers: dict[tuple[str, str], Resolver] = {}
        self._pending: str | None = None
        self._remaining_checks = 0
        self._status = EngineSchemaStatus(status="NOT_APPLICABLE")

    def validate_document(self, definition: str) -> str | None:
        """Return a diagnostic for an invalid document, None when it is valid."""
        depth = 0
        for char in definition:
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth < 0:
                    return "Syntax Error: unexpected '}'"
        if depth:
            return "Syntax Error: unbalanced braces"
        seen: set[str] = set()
        for _, name in _DEFINITION_RE.findall(definition):
            if name in seen:
                return f"There can be only one type named '{name}'."
            seen.add(name)
        return None

    async def current_revision(self) -> str | None:
        return str(self.revision)

    async def start_schema_creation(
        self, definition: str, if_revision: str | None = None
    ) -> str:
        if if_revision is not None and if_revision != str(self.revision):
            raise PublicationConflictException(if_revision, str(self.revision))
        # The token moves on submit so a merge read before this one is stale
        # even while the submission is still processing.
        self.revision += 1
        self.submissions.append(definition)
        self._pending = definition
        self._remaining_checks = self.processing_checks
        self._status = EngineSchemaStatus(status="PROCESSING")
        return self._status.status

    async def get_schema_creation_status(self) -> EngineSchemaStatus:
        if self._pending is None:
            return self._status
        if self._remaining_checks > 0:
            self._remaining_checks -= 1
            return self._status
        diagnostic = self.validate_document(self._pending)
        if diagnostic:
            self._status = EngineSchemaStatus(status="FAILED", details=diagnostic)
        else:
            self.active_document = self._pending
            self._status = EngineSchemaStatus(status="SUCCESS")
        self._pending = None
        return self._status

    async def ensure_dynamodb_data_source(self, name: str, physical_table_name: str) -> bool:
        if name in self.data_sources:
            return False
        self.data_sources[name] = DataSource(name, "AMAZON_DYNAMODB", physical_table_name)
        return True

    async def ensure_none_data_source(self, name: str) -> bool:
        if name in self.data_sources:
            return False
        self.data_sources[name] = DataSource(name, "NONE")
        return True

    async def upsert_resolver(
        self,
        parent_type: str,
        field_name: str,
        data_source_name: str,
        mapping: RenderedMapping,
    ) -> None:
        if data_source_name not in self.data_sources:
            raise LookupError(f"Data source not found: {data_source_name}")
        self.resolvers[(parent_type, field_name)] = Resolver(
            parent_type, field_name, data_source_name, mapping
        )

    async def delete_resolver(self, parent_type: str, field_name: str) -> bool:
        return self.resolvers.pop((parent_type, field_name), None) is not None

    async def delete_data_source(self, name: str) -> bool:
        return self.data_sources.pop(name, None) is not None

    def resolvers_for(self, type_name: str) -> list[Resolver]:
        """Resolvers whose field belongs to a generated type."""
        return [r for r in self.resolvers.values() if type_name in r.field_name]
