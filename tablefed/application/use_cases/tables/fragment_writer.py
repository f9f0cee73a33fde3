"""Rewrites a tenant fragment from the metadata store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tablefed.application.interfaces.repositories import ITableMetadataRepository
from tablefed.application.interfaces.services import IFragmentStore
from tablefed.application.services.fragment_codec import encode_fragment
from tablefed.domain.entities import TenantFragment
from tablefed.shared.utils import utc_now_iso

if TYPE_CHECKING:
    from tablefed.application.use_cases.tables.schema_sync import (
        SchemaSyncService,
        SyncResult,
    )

logger = logging.getLogger(__name__)


class FragmentWriter:
    """Writes schemas/{marker}/fragment from the tenant's current metadata.

    The metadata store is the source of truth; the fragment is always the
    full set of the tenant's tables. With no tables left the tenant's
    fragment and document blobs are deleted.
    """

    def __init__(
        self,
        metadata_repo: ITableMetadataRepository,
        fragment_store: IFragmentStore,
        sync_service: SchemaSyncService | None = None,
        inline_sync: bool = False,
    ) -> None:
        self.metadata_repo = metadata_repo
        self.fragment_store = fragment_store
        self.sync_service = sync_service
        self.inline_sync = inline_sync

    async def write(self, tenant_marker: str) -> int:
        """Rewrite the fragment; return the number of tables in it."""
        tables = await self.metadata_repo.list_for_tenant(tenant_marker)
        if not tables:
            await self.fragment_store.delete_tenant(tenant_marker)
            logger.info("Tenant %s has no tables; fragment removed", tenant_marker)
            return 0
        fragment = TenantFragment(
            tenant_marker=tenant_marker,
            tables=tuple(tables),
            generated_at=utc_now_iso(),
        )
        await self.fragment_store.put_fragment(tenant_marker, encode_fragment(fragment))
        logger.info("Wrote fragment for tenant %s (%d table(s))", tenant_marker, len(tables))
        return len(tables)

    async def write_and_sync(self, tenant_marker: str) -> SyncResult | None:
        """Rewrite the fragment, then run the pipeline when sync is inline.

        In notification mode the fragment write itself triggers the pipeline
        and None is returned.
        """
        count = await self.write(tenant_marker)
        if not self.inline_sync or self.sync_service is None:
            return None
        if count:
            return await self.sync_service.sync_tenant(tenant_marker)
        return await self.sync_service.republish()
