"""Redelivery policy for decommission tasks.

The queue owns the delivery counter; the policy only decides, for a failed
delivery and its receive count, whether to reschedule the message or move it
to the dead-letter sink.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """Max receives and capped exponential backoff between redeliveries."""

    max_receives: int = 5
    backoff_base_seconds: int = 30
    backoff_max_seconds: int = 900

    def __post_init__(self) -> None:
        if self.max_receives < 1:
            raise ValueError("max_receives must be at least 1")
        if self.backoff_base_seconds < 0 or self.backoff_max_seconds < 0:
            raise ValueError("backoff must not be negative")

    def should_dead_letter(self, receive_count: int) -> bool:
        """True when the failed delivery was the last one allowed."""
        return receive_count >= self.max_receives

    def backoff_seconds(self, receive_count: int) -> int:
        """Delay before the next delivery after the receive_count-th failure."""
        exponent = max(receive_count, 1) - 1
        return min(self.backoff_max_seconds, self.backoff_base_seconds * 2**exponent)
