"""DTOs for queue messages."""

from dataclasses import dataclass


@dataclass(frozen=True)
class QueueMessage:
    """One received queue message.

    receive_count is the queue's own delivery counter (1 on first delivery);
    the worker keeps no counter of its own.
    """

    message_id: str
    receipt_handle: str
    body: str
    receive_count: int = 1
