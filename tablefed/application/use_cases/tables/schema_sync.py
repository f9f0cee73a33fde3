"""Schema sync pipeline: synthesize, publish, then provision resolvers.

Runs for one tenant (a fragment write or removal) or for the whole federation.
The merged document always covers every tenant; provisioning only touches the
tables of the tenant that changed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tablefed.application.interfaces.services import IFragmentStore
from tablefed.application.services.resolver_provisioner import (
    ProvisioningReport,
    ResolverProvisioner,
)
from tablefed.application.services.schema_publisher import (
    SchemaPublication,
    SchemaPublisher,
)
from tablefed.application.services.schema_synthesizer import (
    MergedDocument,
    SchemaSynthesizer,
    render_tenant_document,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one pipeline run."""

    publication: SchemaPublication
    document: MergedDocument
    provisioning: ProvisioningReport | None = None


class SchemaSyncService:
    """Drives synthesizer -> publisher -> provisioner."""

    def __init__(
        self,
        synthesizer: SchemaSynthesizer,
        publisher: SchemaPublisher,
        provisioner: ResolverProvisioner,
        fragment_store: IFragmentStore,
    ) -> None:
        self.synthesizer = synthesizer
        self.publisher = publisher
        self.provisioner = provisioner
        self.fragment_store = fragment_store

    async def sync_tenant(self, tenant_marker: str) -> SyncResult:
        """Republish the merged document, then provision the tenant's tables.

        Nothing is provisioned unless the publication became ACTIVE; publisher
        errors propagate and the previously active document stays in place.
        """
        revision = await self.publisher.read_revision()
        fragments, skipped = await self.synthesizer.load_fragments()
        document = self.synthesizer.merge(fragments, skipped)
        publication = await self.publisher.publish(document.text, expected_revision=revision)

        fragment = next((f for f in fragments if f.tenant_marker == tenant_marker), None)
        if fragment is None:
            logger.info("No fragment for tenant %s; published without provisioning", tenant_marker)
            return SyncResult(publication=publication, document=document)

        await self.fragment_store.put_document(tenant_marker, render_tenant_document(fragment))
        report = await self.provisioner.provision_tables(list(fragment.tables))
        if report.failed:
            logger.warning(
                "Provisioning for tenant %s: %d ok, %d failed (%s)",
                tenant_marker,
                len(report.provisioned),
                len(report.failed),
                ", ".join(sorted(report.failed)),
            )
        else:
            logger.info(
                "Provisioning for tenant %s: %d table(s) ok",
                tenant_marker,
                len(report.provisioned),
            )
        return SyncResult(publication=publication, document=document, provisioning=report)

    async def republish(self) -> SyncResult:
        """Republish the merged document without provisioning anything."""
        revision = await self.publisher.read_revision()
        document = await self.synthesizer.build_merged_document()
        publication = await self.publisher.publish(document.text, expected_revision=revision)
        return SyncResult(publication=publication, document=document)
