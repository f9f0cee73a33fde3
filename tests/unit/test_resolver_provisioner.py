"""Tests for the resolver and data source provisioner."""

from unittest.mock import AsyncMock

from tablefed.application.services.resolver_provisioner import (
    NONE_DATA_SOURCE,
    ResolverProvisioner,
)
from tablefed.domain.entities import FieldDefinition, TableDefinition
from tablefed.domain.enums import OperationKind, TableStatus
from tablefed.infrastructure.aws.vtl_renderer import VtlMappingRenderer
from tablefed.infrastructure.memory import InMemoryEngine, InMemoryStorageProvisioner

MARKER = "abcdef0123456789"


def _table(name: str = "orders", table_id: str = "t1", **overrides) -> TableDefinition:
    return TableDefinition(
        tenant_marker=MARKER,
        table_name=name,
        table_id=table_id,
        fields=(
            FieldDefinition("id", primary=True),
            FieldDefinition("status", indexed=True),
        ),
        **overrides,
    )


def _provisioner(engine: InMemoryEngine | None = None) -> ResolverProvisioner:
    return ResolverProvisioner(
        engine or InMemoryEngine(),
        InMemoryStorageProvisioner("data-"),
        VtlMappingRenderer(),
    )


async def test_provision_binds_every_operation() -> None:
    provisioner = _provisioner()
    engine = provisioner.engine

    report = await provisioner.provision_tables([_table()])

    assert report.ok
    assert report.provisioned == ["orders"]
    type_name = f"T{MARKER}_orders"
    ds = f"ds_{MARKER}_orders"
    assert engine.data_sources[ds].table_name == "data-t1"
    assert engine.data_sources[NONE_DATA_SOURCE].kind == "NONE"
    for kind in OperationKind:
        resolver = engine.resolvers[(kind.parent_type, kind.field_name(type_name))]
        expected = NONE_DATA_SOURCE if kind is OperationKind.PUBLISH else ds
        assert resolver.data_source_name == expected


async def test_provisioning_is_idempotent() -> None:
    provisioner = _provisioner()
    await provisioner.provision_tables([_table()])
    await provisioner.provision_tables([_table()])
    assert len(provisioner.engine.resolvers) == len(OperationKind)
    assert len(provisioner.engine.data_sources) == 2


async def test_decommissioning_table_skipped() -> None:
    provisioner = _provisioner()
    report = await provisioner.provision_tables(
        [_table(status=TableStatus.DECOMMISSIONING)]
    )
    assert report.skipped == ["orders"]
    assert provisioner.engine.resolvers == {}


async def test_one_table_failing_does_not_stop_others() -> None:
    engine = InMemoryEngine()
    original = engine.ensure_dynamodb_data_source

    async def flaky(name: str, physical: str) -> bool:
        if name.endswith("_broken"):
            raise RuntimeError("throttled")
        return await original(name, physical)

    engine.ensure_dynamodb_data_source = flaky
    provisioner = _provisioner(engine)

    report = await provisioner.provision_tables(
        [_table("broken", "t1"), _table("orders", "t2")]
    )

    assert report.failed == {"broken": "throttled"}
    assert report.provisioned == ["orders"]
    assert not report.ok


async def test_none_data_source_failure_is_not_fatal() -> None:
    engine = InMemoryEngine()
    engine.ensure_none_data_source = AsyncMock(side_effect=RuntimeError("down"))
    provisioner = _provisioner(engine)

    report = await provisioner.provision_tables([_table()])

    # The publish resolver needs NONE_DS, so the table is reported as failed.
    assert "orders" in report.failed


async def test_remove_resolvers_and_data_source_tolerate_missing() -> None:
    provisioner = _provisioner()
    await provisioner.provision_tables([_table()])

    removed = await provisioner.remove_resolvers(MARKER, "orders")
    assert len(removed) == len(OperationKind)
    assert await provisioner.remove_data_source(MARKER, "orders") is True

    assert await provisioner.remove_resolvers(MARKER, "orders") == []
    assert await provisioner.remove_data_source(MARKER, "orders") is False
    assert NONE_DATA_SOURCE in provisioner.engine.data_sources
