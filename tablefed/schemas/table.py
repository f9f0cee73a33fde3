"""Table definition API schemas (camelCase on the wire)."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tablefed.application.dtos.table import TableCreate, TableUpdate
from tablefed.domain.entities import (
    FieldDefinition,
    SubscriptionSpec,
    TableDefinition,
)


class FieldSchema(BaseModel):
    """One declared field. Type names are validated by the domain (400 on error)."""

    name: str
    type: str = Field(default="String", description="String, Int, Float, Boolean or Array")
    required: bool = False
    indexed: bool = False
    primary: bool = False

    def to_domain(self) -> FieldDefinition:
        return FieldDefinition.from_dict(self.model_dump())


class SubscriptionFilterSchema(BaseModel):
    name: str
    type: str = "String"


class SubscriptionSchema(BaseModel):
    """Subscription filter arguments for onCreate/onUpdate/onDelete."""

    model_config = ConfigDict(populate_by_name=True)

    filter_fields: list[SubscriptionFilterSchema] = Field(
        default_factory=list, alias="filterFields"
    )

    def to_domain(self) -> SubscriptionSpec:
        return SubscriptionSpec.from_dict(self.model_dump(by_alias=True))


class TableCreateRequest(BaseModel):
    """Request body for POST /tables."""

    model_config = ConfigDict(populate_by_name=True)

    table_name: str = Field(..., alias="tableName")
    fields: list[FieldSchema]
    subscriptions: list[SubscriptionSchema] = Field(default_factory=list)
    description: str = Field(default="", max_length=2000)

    def to_dto(self) -> TableCreate:
        return TableCreate(
            table_name=self.table_name,
            fields=tuple(f.to_domain() for f in self.fields),
            subscription_specs=tuple(s.to_domain() for s in self.subscriptions),
            description=self.description,
        )


class BatchTableCreateRequest(BaseModel):
    """Request body for POST /tables/batch."""

    tables: list[TableCreateRequest] = Field(..., min_length=1, max_length=25)


class TableUpdateRequest(BaseModel):
    """Request body for PUT /tables/{name}. Omitted members stay unchanged."""

    fields: list[FieldSchema] | None = None
    subscriptions: list[SubscriptionSchema] | None = None
    description: str | None = Field(default=None, max_length=2000)

    def to_dto(self) -> TableUpdate:
        return TableUpdate(
            fields=None if self.fields is None else tuple(f.to_domain() for f in self.fields),
            subscription_specs=(
                None
                if self.subscriptions is None
                else tuple(s.to_domain() for s in self.subscriptions)
            ),
            description=self.description,
        )


class TableResponse(BaseModel):
    """A stored table definition."""

    model_config = ConfigDict(populate_by_name=True)

    tenant_marker: str = Field(..., alias="tenantMarker")
    table_name: str = Field(..., alias="tableName")
    table_id: str = Field(..., alias="tableId")
    fields: list[FieldSchema]
    subscriptions: list[SubscriptionSchema] = Field(default_factory=list)
    description: str = ""
    generated_type_name: str = Field(..., alias="generatedTypeName")
    status: str
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")

    @classmethod
    def from_definition(cls, table: TableDefinition) -> "TableResponse":
        return cls.model_validate(table.to_dict())


class TableWriteResponse(BaseModel):
    message: str
    table: TableResponse


class TableListResponse(BaseModel):
    tables: list[TableResponse]
    count: int


class BatchErrorItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    table_name: str = Field(..., alias="tableName")
    error: str


class BatchCreateResponse(BaseModel):
    """Response for POST /tables/batch (201 when anything was created or replayed)."""

    message: str
    created: int
    failed: int
    tables: list[TableResponse]
    errors: list[BatchErrorItem] | None = None


class TableSchemaResponse(BaseModel):
    """Field name -> GraphQL type of a table, timestamps included."""

    model_config = ConfigDict(populate_by_name=True)

    table_name: str = Field(..., alias="tableName")
    generated_type_name: str = Field(..., alias="generatedTypeName")
    schema_definition: dict[str, Any] = Field(..., alias="schema")


class DecommissionResponse(BaseModel):
    """Response for DELETE /tables/{name} (202 Accepted)."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    table_name: str = Field(..., alias="tableName")
    table_id: str = Field(..., alias="tableId")
    status: str
