"""Table definition API: thin routes delegating to TableLifecycleService."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from tablefed.api.v1.dependencies import get_table_service, get_tenant_marker
from tablefed.application.use_cases.tables import TableLifecycleService
from tablefed.core.limiter import limit_writes
from tablefed.schemas.table import (
    BatchCreateResponse,
    BatchErrorItem,
    BatchTableCreateRequest,
    DecommissionResponse,
    TableCreateRequest,
    TableListResponse,
    TableResponse,
    TableSchemaResponse,
    TableUpdateRequest,
    TableWriteResponse,
)

router = APIRouter()

TenantMarkerDep = Annotated[str, Depends(get_tenant_marker)]
TableServiceDep = Annotated[TableLifecycleService, Depends(get_table_service)]


@router.post("", response_model=TableWriteResponse, status_code=201)
@limit_writes
async def create_table(
    request: Request,
    response: Response,
    body: TableCreateRequest,
    tenant_marker: TenantMarkerDep,
    service: TableServiceDep,
):
    """Create a table. 201 when new, 200 when an identical definition is replayed."""
    result = await service.create_table(tenant_marker, body.to_dto())
    if not result.created:
        response.status_code = 200
    return TableWriteResponse(
        message="Table created successfully" if result.created else "Table already exists",
        table=TableResponse.from_definition(result.table),
    )


@router.post("/batch", response_model=BatchCreateResponse, status_code=201)
@limit_writes
async def batch_create_tables(
    request: Request,
    response: Response,
    body: BatchTableCreateRequest,
    tenant_marker: TenantMarkerDep,
    service: TableServiceDep,
):
    """Create several tables; the schema is regenerated once for the batch."""
    result = await service.batch_create_tables(
        tenant_marker, [item.to_dto() for item in body.tables]
    )
    if not result.results:
        response.status_code = 400
    return BatchCreateResponse(
        message="Batch table creation completed",
        created=sum(1 for r in result.results if r.created),
        failed=len(result.errors),
        tables=[TableResponse.from_definition(t) for t in result.tables],
        errors=[BatchErrorItem(table_name=e.table_name, error=e.error) for e in result.errors]
        or None,
    )


@router.get("", response_model=TableListResponse)
async def list_tables(tenant_marker: TenantMarkerDep, service: TableServiceDep):
    """List the tenant's tables."""
    tables = await service.list_tables(tenant_marker)
    return TableListResponse(
        tables=[TableResponse.from_definition(t) for t in tables],
        count=len(tables),
    )


@router.get("/{table_name}", response_model=TableResponse)
async def get_table(
    table_name: str, tenant_marker: TenantMarkerDep, service: TableServiceDep
):
    """Get one table definition."""
    return TableResponse.from_definition(await service.get_table(tenant_marker, table_name))


@router.get("/{table_name}/schema", response_model=TableSchemaResponse)
async def get_table_schema(
    table_name: str, tenant_marker: TenantMarkerDep, service: TableServiceDep
):
    """Field name -> GraphQL type map of a table."""
    table = await service.get_table(tenant_marker, table_name)
    schema = await service.get_table_schema(tenant_marker, table_name)
    return TableSchemaResponse(
        table_name=table.table_name,
        generated_type_name=table.generated_type_name,
        schema_definition=schema,
    )


@router.put("/{table_name}", response_model=TableWriteResponse)
@limit_writes
async def update_table(
    request: Request,
    table_name: str,
    body: TableUpdateRequest,
    tenant_marker: TenantMarkerDep,
    service: TableServiceDep,
):
    """Partially update fields, subscriptions or description."""
    table = await service.update_table(tenant_marker, table_name, body.to_dto())
    return TableWriteResponse(
        message="Table updated successfully",
        table=TableResponse.from_definition(table),
    )


@router.delete("/{table_name}", response_model=DecommissionResponse, status_code=202)
@limit_writes
async def delete_table(
    request: Request,
    table_name: str,
    tenant_marker: TenantMarkerDep,
    service: TableServiceDep,
):
    """Accept a table for asynchronous decommission."""
    task = await service.request_decommission(tenant_marker, table_name)
    return DecommissionResponse(
        message="Table deletion initiated",
        table_name=task.table_name,
        table_id=task.table_id,
        status="decommissioning",
    )
