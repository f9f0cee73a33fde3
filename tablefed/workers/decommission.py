"""Decommission worker entry points.

``handle_sqs_event`` processes an SQS batch (configured with batch size 1)
and returns partial batch failures; ``run_worker`` long-polls the queue until
interrupted.
"""

from __future__ import annotations

import asyncio
import signal
from typing import Any

from tablefed.application.dtos.queue import QueueMessage
from tablefed.application.use_cases.tables import DeliveryOutcome
from tablefed.core.config import get_settings
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


def message_from_record(record: dict[str, Any]) -> QueueMessage:
    """Build a QueueMessage from one SQS event record."""
    return QueueMessage(
        message_id=record.get("messageId", ""),
        receipt_handle=record.get("receiptHandle", ""),
        body=record.get("body", ""),
        receive_count=int(record.get("attributes", {}).get("ApproximateReceiveCount", 1)),
    )


async def process_sqs_event(
    event: dict[str, Any], services: Services | None = None
) -> dict[str, Any]:
    """Handle each record; records left for retry are reported as batch item failures."""
    services = services or _get_services()
    failures: list[dict[str, str]] = []
    for record in event.get("Records", []):
        message = message_from_record(record)
        outcome = await services.worker.handle(message)
        logger.info("Message %s: %s", message.message_id, outcome.value)
        if outcome is DeliveryOutcome.RETRY_SCHEDULED:
            failures.append({"itemIdentifier": message.message_id})
    return {"batchItemFailures": failures}


def handle_sqs_event(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Synchronous entry point (Lambda-style)."""
    return asyncio.run(process_sqs_event(event))


async def run_worker(services: Services | None = None) -> None:
    """Long-poll the decommission queue until SIGINT/SIGTERM."""
    services = services or _get_services()
    settings = get_settings()
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Signal handlers are unavailable on some platforms (e.g. Windows).
            pass
    await services.worker.run_forever(stop, wait_seconds=settings.queue_wait_seconds)
