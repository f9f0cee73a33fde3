"""Pytest configuration and fixtures for tablefed.

Every test runs against the in-memory backend: services are built fresh per
test and injected into app.state so HTTP tests and service tests share the
same object graph. Rate limiting is disabled so write-heavy tests are not
throttled.
"""

import os

os.environ["BACKEND"] = "memory"
os.environ["SCHEMA_SYNC_MODE"] = "inline"

import pytest
from httpx import ASGITransport, AsyncClient

from tablefed.application.dtos.table import TableCreate
from tablefed.core.config import get_settings
from tablefed.core.limiter import limiter
from tablefed.domain.entities import FieldDefinition, SubscriptionFilter, SubscriptionSpec
from tablefed.domain.enums import FieldType
from tablefed.domain.value_objects import TenantMarker
from tablefed.infrastructure.factory import BackendFactory, Services
from tablefed.main import app

get_settings.cache_clear()
limiter.enabled = False

TEST_API_KEY = "tenant-one-api-key"


async def _no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def services() -> Services:
    """Fresh in-memory services; schema status polls never sleep."""
    built = BackendFactory.create_services(get_settings())
    built.publisher._sleep = _no_sleep
    return built


@pytest.fixture
def marker() -> str:
    """Tenant marker derived from TEST_API_KEY."""
    return TenantMarker.from_credential(TEST_API_KEY, get_settings().tenant_marker_length).value


@pytest.fixture
def api_headers() -> dict[str, str]:
    return {get_settings().api_key_header_name: TEST_API_KEY}


@pytest.fixture
async def client(services: Services) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI) with injected services."""
    app.state.services = services
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.state.services = None


@pytest.fixture
def orders_create() -> TableCreate:
    """The 'orders' table: orderId primary, status and customerId indexed."""
    return TableCreate(
        table_name="orders",
        fields=(
            FieldDefinition("orderId", FieldType.STRING, required=True, primary=True),
            FieldDefinition("status", FieldType.STRING, indexed=True),
            FieldDefinition("customerId", FieldType.STRING, indexed=True),
            FieldDefinition("total", FieldType.FLOAT),
            FieldDefinition("tags", FieldType.ARRAY),
        ),
        subscription_specs=(
            SubscriptionSpec(filter_fields=(SubscriptionFilter("status"),)),
        ),
        description="Customer orders",
    )


@pytest.fixture
def orders_payload() -> dict:
    """Request body equivalent of orders_create."""
    return {
        "tableName": "orders",
        "fields": [
            {"name": "orderId", "type": "String", "required": True, "primary": True},
            {"name": "status", "type": "String", "indexed": True},
            {"name": "customerId", "type": "String", "indexed": True},
            {"name": "total", "type": "Float"},
            {"name": "tags", "type": "Array"},
        ],
        "subscriptions": [{"filterFields": [{"name": "status", "type": "String"}]}],
        "description": "Customer orders",
    }
