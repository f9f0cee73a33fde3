"""In-process decommission queue and dead-letter sink.

Behaves like an SQS standard queue for one consumer: a received message is
invisible until acknowledged or until its visibility timeout expires, and
each receive increments the message's receive count.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass

from tablefed.application.dtos.queue import QueueMessage
from tablefed.domain.entities import DecommissionTask
from tablefed.shared.utils import generate_cuid


@dataclass
class _Entry:
    message_id: str
    body: str
    receive_count: int = 0
    visible_at: float = 0.0
    receipt_handle: str = ""


class InMemoryDecommissionQueue:
    """IDecommissionQueue with visibility timeouts driven by an injectable clock."""

    def __init__(
        self,
        visibility_timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.visibility_timeout = visibility_timeout
        self._clock = clock
        self._entries: list[_Entry] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def bodies(self) -> list[str]:
        return [e.body for e in self._entries]

    async def send(self, task: DecommissionTask) -> str:
        entry = _Entry(message_id=generate_cuid(), body=task.to_json())
        self._entries.append(entry)
        return entry.message_id

    async def receive(self, wait_seconds: int = 0) -> QueueMessage | None:
        now = self._clock()
        for entry in self._entries:
            if entry.visible_at <= now:
                entry.receive_count += 1
                entry.visible_at = now + self.visibility_timeout
                entry.receipt_handle = generate_cuid()
                return QueueMessage(
                    message_id=entry.message_id,
                    receipt_handle=entry.receipt_handle,
                    body=entry.body,
                    receive_count=entry.receive_count,
                )
        if wait_seconds > 0:
            await asyncio.sleep(min(wait_seconds, 1))
        return None

    def _find(self, message: QueueMessage) -> _Entry | None:
        return next(
            (e for e in self._entries if e.receipt_handle == message.receipt_handle),
            None,
        )

    async def acknowledge(self, message: QueueMessage) -> None:
        entry = self._find(message)
        if entry is not None:
            self._entries.remove(entry)

    async def reschedule(self, message: QueueMessage, delay_seconds: int) -> None:
        entry = self._find(message)
        if entry is not None:
            entry.visible_at = self._clock() + delay_seconds


class InMemoryDeadLetterSink:
    """IDeadLetterSink keeping (message, reason) pairs."""

    def __init__(self) -> None:
        self.messages: list[tuple[QueueMessage, str]] = []

    async def put(self, message: QueueMessage, reason: str) -> None:
        self.messages.append((message, reason))
