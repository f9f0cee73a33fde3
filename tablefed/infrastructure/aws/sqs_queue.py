"""SQS decommission queue and dead-letter sink.

Messages are received one at a time. A failed message is made visible again
by changing its visibility timeout, so SQS's ApproximateReceiveCount remains
the single delivery counter.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from tablefed.application.dtos.queue import QueueMessage
from tablefed.domain.entities import DecommissionTask
from tablefed.infrastructure.aws.clients import AWS_ERRORS, transient

logger = logging.getLogger(__name__)

# SQS maximum visibility timeout (12 hours).
MAX_VISIBILITY_SECONDS = 43200


class SQSDecommissionQueue:
    """IDecommissionQueue over an SQS queue."""

    def __init__(self, client: Any, queue_url: str) -> None:
        self._client = client
        self.queue_url = queue_url

    async def send(self, task: DecommissionTask) -> str:
        try:
            resp = await asyncio.to_thread(
                self._client.send_message,
                QueueUrl=self.queue_url,
                MessageBody=task.to_json(),
            )
        except AWS_ERRORS as e:
            raise transient("enqueue decommission task", e) from e
        return resp["MessageId"]

    async def receive(self, wait_seconds: int = 0) -> QueueMessage | None:
        try:
            resp = await asyncio.to_thread(
                self._client.receive_message,
                QueueUrl=self.queue_url,
                MaxNumberOfMessages=1,
                WaitTimeSeconds=wait_seconds,
                AttributeNames=["ApproximateReceiveCount"],
            )
        except AWS_ERRORS as e:
            raise transient("receive decommission task", e) from e
        messages = resp.get("Messages") or []
        if not messages:
            return None
        raw = messages[0]
        return QueueMessage(
            message_id=raw["MessageId"],
            receipt_handle=raw["ReceiptHandle"],
            body=raw.get("Body", ""),
            receive_count=int(raw.get("Attributes", {}).get("ApproximateReceiveCount", 1)),
        )

    async def acknowledge(self, message: QueueMessage) -> None:
        try:
            await asyncio.to_thread(
                self._client.delete_message,
                QueueUrl=self.queue_url,
                ReceiptHandle=message.receipt_handle,
            )
        except AWS_ERRORS as e:
            raise transient("acknowledge decommission task", e) from e

    async def reschedule(self, message: QueueMessage, delay_seconds: int) -> None:
        try:
            await asyncio.to_thread(
                self._client.change_message_visibility,
                QueueUrl=self.queue_url,
                ReceiptHandle=message.receipt_handle,
                VisibilityTimeout=min(max(delay_seconds, 0), MAX_VISIBILITY_SECONDS),
            )
        except AWS_ERRORS as e:
            raise transient("reschedule decommission task", e) from e


class SQSDeadLetterSink:
    """IDeadLetterSink writing exhausted tasks to a dead-letter queue."""

    def __init__(self, client: Any, queue_url: str) -> None:
        self._client = client
        self.queue_url = queue_url

    async def put(self, message: QueueMessage, reason: str) -> None:
        body = json.dumps(
            {
                "messageId": message.message_id,
                "receiveCount": message.receive_count,
                "reason": reason,
                "body": message.body,
            }
        )
        try:
            await asyncio.to_thread(
                self._client.send_message, QueueUrl=self.queue_url, MessageBody=body
            )
        except AWS_ERRORS as e:
            raise transient("dead-letter decommission task", e) from e
        logger.error(
            "Dead-lettered message %s after %d receive(s): %s",
            message.message_id,
            message.receive_count,
            reason,
        )
