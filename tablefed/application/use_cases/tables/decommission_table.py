"""Asynchronous table decommission: the teardown steps and the queue worker.

Steps, each idempotent and tolerant of "not found":
remove resolvers -> remove data source -> delete physical table ->
delete metadata -> rewrite tenant fragment -> republish merged document
(inline sync only; otherwise the fragment notification republishes).
Any failure propagates so the queue redelivers the task.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from tablefed.application.dtos.queue import QueueMessage
from tablefed.application.interfaces.repositories import ITableMetadataRepository
from tablefed.application.interfaces.services import (
    IDeadLetterSink,
    IDecommissionQueue,
    IStorageProvisioner,
)
from tablefed.application.services.resolver_provisioner import ResolverProvisioner
from tablefed.application.services.retry_policy import RetryPolicy
from tablefed.application.use_cases.tables.fragment_writer import FragmentWriter
from tablefed.application.use_cases.tables.schema_sync import SchemaSyncService
from tablefed.domain.entities import DecommissionTask
from tablefed.domain.exceptions import ValidationException

logger = logging.getLogger(__name__)


class DeliveryOutcome(str, Enum):
    """What the worker did with one delivered message."""

    COMPLETED = "completed"
    RETRY_SCHEDULED = "retry_scheduled"
    DEAD_LETTERED = "dead_lettered"


class DecommissionService:
    """Runs the teardown steps for one DecommissionTask."""

    def __init__(
        self,
        metadata_repo: ITableMetadataRepository,
        storage: IStorageProvisioner,
        provisioner: ResolverProvisioner,
        fragment_writer: FragmentWriter,
        sync_service: SchemaSyncService,
    ) -> None:
        self.metadata_repo = metadata_repo
        self.storage = storage
        self.provisioner = provisioner
        self.fragment_writer = fragment_writer
        self.sync_service = sync_service

    async def decommission(self, task: DecommissionTask) -> None:
        """Tear the table down; safe to replay after a partial failure."""
        current = await self.metadata_repo.get(task.tenant_marker, task.table_name)
        # The name may already belong to a newer table; its bindings and record stay.
        superseded = current is not None and current.table_id != task.table_id
        if superseded:
            logger.warning(
                "Table %s was re-created as %s; only removing storage of %s",
                task.table_name,
                current.table_id,
                task.table_id,
            )
        else:
            await self.provisioner.remove_resolvers(task.tenant_marker, task.table_name)
            await self.provisioner.remove_data_source(task.tenant_marker, task.table_name)

        await self.storage.delete_table(task.table_id)

        if not superseded:
            if await self.metadata_repo.delete(task.tenant_marker, task.table_name):
                logger.info("Deleted metadata for %s/%s", task.tenant_marker, task.table_name)
            await self.fragment_writer.write(task.tenant_marker)
            # In notification mode the fragment write or removal drives the republish.
            if self.fragment_writer.inline_sync:
                await self.sync_service.republish()
        logger.info(
            "Decommissioned %s (%s) for tenant %s",
            task.table_name,
            task.table_id,
            task.tenant_marker,
        )


class DecommissionWorker:
    """Consumes decommission tasks one message at a time.

    The queue's receive count is the only delivery counter; RetryPolicy
    decides between rescheduling and dead-lettering a failed delivery.
    """

    def __init__(
        self,
        queue: IDecommissionQueue,
        service: DecommissionService,
        policy: RetryPolicy,
        dead_letter: IDeadLetterSink | None = None,
    ) -> None:
        self.queue = queue
        self.service = service
        self.policy = policy
        self.dead_letter = dead_letter

    async def _dead_letter(self, message: QueueMessage, reason: str) -> DeliveryOutcome:
        if self.dead_letter is not None:
            await self.dead_letter.put(message, reason)
        else:
            logger.error(
                "Dropping message %s (no dead-letter sink configured): %s",
                message.message_id,
                reason,
            )
        await self.queue.acknowledge(message)
        return DeliveryOutcome.DEAD_LETTERED

    async def handle(self, message: QueueMessage) -> DeliveryOutcome:
        """Process one delivery and settle it with the queue."""
        try:
            task = DecommissionTask.from_json(message.body)
        except ValidationException as e:
            logger.error("Malformed decommission message %s: %s", message.message_id, e.message)
            return await self._dead_letter(message, e.message)

        try:
            await self.service.decommission(task)
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"
            if self.policy.should_dead_letter(message.receive_count):
                logger.exception(
                    "Decommission of %s failed on receive %d; giving up",
                    task.table_name,
                    message.receive_count,
                )
                return await self._dead_letter(message, reason)
            delay = self.policy.backoff_seconds(message.receive_count)
            logger.warning(
                "Decommission of %s failed on receive %d (%s); retrying in %ds",
                task.table_name,
                message.receive_count,
                reason,
                delay,
            )
            await self.queue.reschedule(message, delay)
            return DeliveryOutcome.RETRY_SCHEDULED

        await self.queue.acknowledge(message)
        return DeliveryOutcome.COMPLETED

    async def run_once(self, wait_seconds: int = 0) -> DeliveryOutcome | None:
        """Receive and handle at most one message; None when the queue was empty."""
        message = await self.queue.receive(wait_seconds=wait_seconds)
        if message is None:
            return None
        return await self.handle(message)

    async def run_forever(
        self, stop: asyncio.Event | None = None, wait_seconds: int = 20
    ) -> None:
        """Long-poll until stop is set. Queue I/O errors are logged and retried."""
        stop = stop or asyncio.Event()
        logger.info("Decommission worker started")
        while not stop.is_set():
            try:
                await self.run_once(wait_seconds=wait_seconds)
            except Exception:
                logger.exception("Decommission worker poll failed")
                await asyncio.sleep(1)
        logger.info("Decommission worker stopped")
