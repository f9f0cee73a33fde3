"""API tests for /api/v1/tables (in-memory backend, inline schema sync)."""

import asyncio

from httpx import AsyncClient

from tablefed.core.lifespan import create_lifespan
from tablefed.infrastructure.factory import Services
from tablefed.main import app

BASE = "/api/v1/tables"


async def test_create_replay_conflict(
    client: AsyncClient, api_headers: dict, orders_payload: dict, marker: str
) -> None:
    """201 on create, 200 on identical replay, 409 for a different definition."""
    created = await client.post(BASE, json=orders_payload, headers=api_headers)
    assert created.status_code == 201
    table = created.json()["table"]
    assert table["tableName"] == "orders"
    assert table["generatedTypeName"] == f"T{marker}_orders"
    assert table["status"] == "active"
    assert table["fields"][0]["primary"] is True

    replay = await client.post(BASE, json=orders_payload, headers=api_headers)
    assert replay.status_code == 200
    assert replay.json()["table"]["tableId"] == table["tableId"]

    conflict = await client.post(
        BASE, json={**orders_payload, "description": "other"}, headers=api_headers
    )
    assert conflict.status_code == 409
    assert conflict.json()["error"] == "TABLE_CONFLICT"


async def test_missing_credential_is_401(client: AsyncClient, orders_payload: dict) -> None:
    response = await client.post(BASE, json=orders_payload)
    assert response.status_code == 401
    assert response.json()["error"] == "AUTHENTICATION_ERROR"
    assert (await client.get(BASE)).status_code == 401


async def test_invalid_definitions_are_400(
    client: AsyncClient, api_headers: dict, orders_payload: dict
) -> None:
    bad_name = await client.post(
        BASE, json={**orders_payload, "tableName": "my-orders"}, headers=api_headers
    )
    assert bad_name.status_code == 400
    assert bad_name.json()["details"] == {"field": "tableName"}

    bad_type = {**orders_payload, "fields": [{"name": "id", "type": "Date"}]}
    assert (await client.post(BASE, json=bad_type, headers=api_headers)).status_code == 400

    empty = {**orders_payload, "fields": [], "subscriptions": []}
    assert (await client.post(BASE, json=empty, headers=api_headers)).status_code == 400

    reserved = {**orders_payload, "fields": [{"name": "createdAt"}], "subscriptions": []}
    assert (await client.post(BASE, json=reserved, headers=api_headers)).status_code == 400


async def test_missing_body_member_is_422(client: AsyncClient, api_headers: dict) -> None:
    response = await client.post(BASE, json={"fields": []}, headers=api_headers)
    assert response.status_code == 422


async def test_read_endpoints(client: AsyncClient, api_headers: dict, orders_payload: dict) -> None:
    await client.post(BASE, json=orders_payload, headers=api_headers)

    listed = await client.get(BASE, headers=api_headers)
    assert listed.status_code == 200
    assert listed.json()["count"] == 1

    one = await client.get(f"{BASE}/orders", headers=api_headers)
    assert one.status_code == 200
    assert one.json()["description"] == "Customer orders"

    schema = await client.get(f"{BASE}/orders/schema", headers=api_headers)
    assert schema.status_code == 200
    assert schema.json()["schema"]["tags"] == "[String]"
    assert schema.json()["schema"]["updatedAt"] == "String"

    missing = await client.get(f"{BASE}/nope", headers=api_headers)
    assert missing.status_code == 404
    assert missing.json()["error"] == "RESOURCE_NOT_FOUND"


async def test_tenants_are_isolated(
    client: AsyncClient, api_headers: dict, orders_payload: dict
) -> None:
    await client.post(BASE, json=orders_payload, headers=api_headers)
    other = {"X-Api-Key": "tenant-two-api-key"}

    assert (await client.get(f"{BASE}/orders", headers=other)).status_code == 404
    created = await client.post(BASE, json=orders_payload, headers=other)
    assert created.status_code == 201


async def test_update_adds_field(
    client: AsyncClient, api_headers: dict, orders_payload: dict, services: Services
) -> None:
    await client.post(BASE, json=orders_payload, headers=api_headers)
    fields = orders_payload["fields"] + [{"name": "region", "type": "String", "indexed": True}]

    response = await client.put(f"{BASE}/orders", json={"fields": fields}, headers=api_headers)

    assert response.status_code == 200
    names = [f["name"] for f in response.json()["table"]["fields"]]
    assert names[-1] == "region"
    assert "region: String" in services.backend.engine.active_document


async def test_update_primary_change_is_400(
    client: AsyncClient, api_headers: dict, orders_payload: dict
) -> None:
    await client.post(BASE, json=orders_payload, headers=api_headers)
    response = await client.put(
        f"{BASE}/orders",
        json={"fields": [{"name": "other", "primary": True}], "subscriptions": []},
        headers=api_headers,
    )
    assert response.status_code == 400


async def test_delete_is_accepted_then_worker_removes(
    client: AsyncClient, api_headers: dict, orders_payload: dict, services: Services
) -> None:
    await client.post(BASE, json=orders_payload, headers=api_headers)

    response = await client.delete(f"{BASE}/orders", headers=api_headers)
    assert response.status_code == 202
    body = response.json()
    assert body["status"] == "decommissioning"
    assert body["tableName"] == "orders"

    stored = await client.get(f"{BASE}/orders", headers=api_headers)
    assert stored.json()["status"] == "decommissioning"
    blocked = await client.put(f"{BASE}/orders", json={"description": "x"}, headers=api_headers)
    assert blocked.status_code == 409

    await services.worker.run_once()
    assert (await client.get(f"{BASE}/orders", headers=api_headers)).status_code == 404
    assert (await client.delete(f"{BASE}/orders", headers=api_headers)).status_code == 404


async def test_delete_is_completed_by_in_process_worker(
    client: AsyncClient, api_headers: dict, orders_payload: dict, services: Services
) -> None:
    """With the memory backend the app lifespan consumes the decommission queue."""
    await client.post(BASE, json=orders_payload, headers=api_headers)

    async with create_lifespan(app):
        response = await client.delete(f"{BASE}/orders", headers=api_headers)
        assert response.status_code == 202
        status = response.status_code
        for _ in range(50):
            status = (await client.get(f"{BASE}/orders", headers=api_headers)).status_code
            if status == 404:
                break
            await asyncio.sleep(0.1)

    assert status == 404
    assert services.backend.storage.tables == {}
    assert len(services.backend.queue) == 0


async def test_batch_create(client: AsyncClient, api_headers: dict, orders_payload: dict) -> None:
    customers = {"tableName": "customers", "fields": [{"name": "customerId"}]}
    response = await client.post(
        f"{BASE}/batch", json={"tables": [orders_payload, customers]}, headers=api_headers
    )
    assert response.status_code == 201
    body = response.json()
    assert body["created"] == 2
    assert body["failed"] == 0
    assert [t["tableName"] for t in body["tables"]] == ["orders", "customers"]


async def test_batch_partial_and_total_failure(
    client: AsyncClient, api_headers: dict, orders_payload: dict
) -> None:
    await client.post(BASE, json=orders_payload, headers=api_headers)
    conflicting = {**orders_payload, "description": "other"}
    customers = {"tableName": "customers", "fields": [{"name": "customerId"}]}

    partial = await client.post(
        f"{BASE}/batch", json={"tables": [conflicting, customers]}, headers=api_headers
    )
    assert partial.status_code == 201
    assert partial.json()["failed"] == 1
    assert partial.json()["errors"][0]["tableName"] == "orders"

    total = await client.post(f"{BASE}/batch", json={"tables": [conflicting]}, headers=api_headers)
    assert total.status_code == 400
    assert total.json()["created"] == 0


async def test_batch_with_invalid_entry_is_400(
    client: AsyncClient, api_headers: dict, orders_payload: dict
) -> None:
    bad = {"tableName": "9bad", "fields": [{"name": "id"}]}
    response = await client.post(
        f"{BASE}/batch", json={"tables": [orders_payload, bad]}, headers=api_headers
    )
    assert response.status_code == 400
    assert (await client.get(BASE, headers=api_headers)).json()["count"] == 0


async def test_publication_failure_maps_to_422(
    client: AsyncClient, api_headers: dict, orders_payload: dict, services: Services
) -> None:
    services.backend.engine.validate_document = lambda _doc: "Syntax Error: boom"
    response = await client.post(BASE, json=orders_payload, headers=api_headers)
    assert response.status_code == 422
    assert response.json()["error"] == "PUBLICATION_FAILED"


async def test_publication_timeout_maps_to_504_with_retry_after(
    client: AsyncClient, api_headers: dict, orders_payload: dict, services: Services
) -> None:
    services.backend.engine.processing_checks = 100
    services.publisher.max_attempts = 2
    response = await client.post(BASE, json=orders_payload, headers=api_headers)
    assert response.status_code == 504
    assert response.headers["Retry-After"] == "5"
