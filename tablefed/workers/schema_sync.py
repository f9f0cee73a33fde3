"""Blob-store notification handler for the schema sync pipeline.

Accepts S3 event notifications (``Records[].s3.object.key``) and EventBridge
S3 events (``detail.object.key``). Only ``schemas/{marker}/fragment`` keys are
acted on: a write syncs that tenant, a removal republishes the merged
document. Failures propagate so the invoker retries.
"""

from __future__ import annotations

import asyncio
from typing import Any
from urllib.parse import unquote_plus

from tablefed.core.config import get_settings
from tablefed.infrastructure.aws.s3_fragment_store import marker_from_fragment_key
from tablefed.infrastructure.factory import BackendFactory, Services
from tablefed.shared.telemetry import get_logger, setup_logging

logger = get_logger(__name__)

_services: Services | None = None


def _get_services() -> Services:
    global _services
    if _services is None:
        setup_logging()
        _services = BackendFactory.create_services(get_settings())
    return _services


def extract_fragment_changes(event: dict[str, Any]) -> list[tuple[str, bool]]:
    """Return (tenant_marker, removed) for every fragment key in the event."""
    changes: list[tuple[str, bool]] = []
    if "Records" in event:
        entries = [
            (
                (record.get("s3") or {}).get("object", {}).get("key", ""),
                record.get("eventName", ""),
            )
            for record in event["Records"]
        ]
    elif "detail" in event:
        entries = [
            (
                (event["detail"].get("object") or {}).get("key", ""),
                event.get("detail-type", ""),
            )
        ]
    else:
        entries = []

    for raw_key, event_name in entries:
        key = unquote_plus(raw_key)
        marker = marker_from_fragment_key(key)
        if marker is None:
            logger.debug("Ignoring non-fragment key %s", key)
            continue
        removed = "Removed" in event_name or "Deleted" in event_name
        changes.append((marker, removed))
    return changes


async def process_event(event: dict[str, Any], services: Services | None = None) -> dict[str, Any]:
    """Run the pipeline for each fragment change in the event."""
    services = services or _get_services()
    synced: list[str] = []
    republished = False
    for marker, removed in extract_fragment_changes(event):
        if removed:
            if not republished:
                await services.sync.republish()
                republished = True
            continue
        result = await services.sync.sync_tenant(marker)
        synced.append(marker)
        if result.provisioning and result.provisioning.failed:
            logger.warning(
                "Tenant %s provisioned with failures: %s",
                marker,
                result.provisioning.failed,
            )
    return {"synced": synced, "republished": republished}


def handle_event(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Synchronous entry point (Lambda-style)."""
    return asyncio.run(process_event(event))
