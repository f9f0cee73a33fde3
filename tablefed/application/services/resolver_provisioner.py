"""Resolver and data source provisioner.

For each table of a (re)published fragment: ensure the table's data source,
create-or-replace the get/list/create/update/delete resolvers on it, and the
publish resolver on the shared pass-through data source. Provisioning is
table by table; one table failing is logged and reported, the rest continue.

Also removes a table's resolvers and data source for decommission, where a
missing resolver or data source counts as already removed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from tablefed.application.interfaces.services import (
    IManagedEngine,
    IMappingRenderer,
    IStorageProvisioner,
)
from tablefed.application.services.mapping_templates import build_table_mappings
from tablefed.domain.entities import TableDefinition
from tablefed.domain.enums import OperationKind
from tablefed.domain.value_objects import data_source_name, generated_type_name

logger = logging.getLogger(__name__)

NONE_DATA_SOURCE = "NONE_DS"


@dataclass
class ProvisioningReport:
    """Outcome of one provisioning cycle."""

    provisioned: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class ResolverProvisioner:
    """Keeps data sources and resolvers consistent with the published document."""

    def __init__(
        self,
        engine: IManagedEngine,
        storage: IStorageProvisioner,
        renderer: IMappingRenderer,
    ) -> None:
        self.engine = engine
        self.storage = storage
        self.renderer = renderer

    async def provision_table(self, table: TableDefinition) -> None:
        """Ensure the data source and every resolver of one table."""
        ds_name = data_source_name(table.tenant_marker, table.table_name)
        created = await self.engine.ensure_dynamodb_data_source(
            ds_name, self.storage.physical_table_name(table.table_id)
        )
        logger.debug("Data source %s %s", ds_name, "created" if created else "exists")

        for kind, descriptor in build_table_mappings(table).items():
            target = NONE_DATA_SOURCE if kind is OperationKind.PUBLISH else ds_name
            await self.engine.upsert_resolver(
                kind.parent_type,
                kind.field_name(table.generated_type_name),
                target,
                self.renderer.render(descriptor),
            )
        logger.info(
            "Provisioned resolvers for %s (%s)",
            table.table_name,
            table.generated_type_name,
        )

    async def provision_tables(self, tables: list[TableDefinition]) -> ProvisioningReport:
        """Provision every table; failures are collected, not raised."""
        report = ProvisioningReport()
        try:
            await self.engine.ensure_none_data_source(NONE_DATA_SOURCE)
        except Exception as e:
            # Publish resolvers fail per table below and are reported there.
            logger.error("Failed to ensure %s data source: %s", NONE_DATA_SOURCE, e)

        for table in tables:
            if table.is_decommissioning:
                logger.info("Skipping %s: decommission pending", table.table_name)
                report.skipped.append(table.table_name)
                continue
            try:
                await self.provision_table(table)
                report.provisioned.append(table.table_name)
            except Exception as e:
                logger.exception(
                    "Failed to provision resolvers for %s (%s)",
                    table.table_name,
                    table.tenant_marker,
                )
                report.failed[table.table_name] = str(e)
        return report

    async def remove_resolvers(self, tenant_marker: str, table_name: str) -> list[str]:
        """Delete every resolver of a table; return the field names actually removed."""
        type_name = generated_type_name(tenant_marker, table_name)
        removed: list[str] = []
        for kind in OperationKind:
            field_name = kind.field_name(type_name)
            if await self.engine.delete_resolver(kind.parent_type, field_name):
                removed.append(field_name)
                logger.info("Deleted resolver %s.%s", kind.parent_type, field_name)
            else:
                logger.info(
                    "Resolver %s.%s not found, skipping", kind.parent_type, field_name
                )
        return removed

    async def remove_data_source(self, tenant_marker: str, table_name: str) -> bool:
        """Delete a table's data source. Return False if it was already gone."""
        name = data_source_name(tenant_marker, table_name)
        removed = await self.engine.delete_data_source(name)
        if removed:
            logger.info("Deleted data source %s", name)
        else:
            logger.info("Data source %s not found, skipping", name)
        return removed
