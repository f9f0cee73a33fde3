"""DTOs for table lifecycle use cases."""

from dataclasses import dataclass, field

from tablefed.domain.entities import FieldDefinition, SubscriptionSpec, TableDefinition


@dataclass(frozen=True)
class TableCreate:
    """Input for creating one table."""

    table_name: str
    fields: tuple[FieldDefinition, ...]
    subscription_specs: tuple[SubscriptionSpec, ...] = ()
    description: str = ""


@dataclass(frozen=True)
class TableUpdate:
    """Partial update; None means leave unchanged."""

    fields: tuple[FieldDefinition, ...] | None = None
    subscription_specs: tuple[SubscriptionSpec, ...] | None = None
    description: str | None = None


@dataclass(frozen=True)
class CreateTableResult:
    """Result of a create; created is False for an idempotent replay."""

    table: TableDefinition
    created: bool


@dataclass(frozen=True)
class BatchCreateError:
    table_name: str
    error: str


@dataclass(frozen=True)
class BatchCreateResult:
    """Result of a batch create (schema pipeline runs once for the batch)."""

    results: list[CreateTableResult] = field(default_factory=list)
    errors: list[BatchCreateError] = field(default_factory=list)

    @property
    def tables(self) -> list[TableDefinition]:
        return [r.table for r in self.results]
