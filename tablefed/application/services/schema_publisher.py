"""Schema publication state machine.

DRAFTED -> SUBMITTED -> {ACTIVE, FAILED, TIMED_OUT}. The merged document is
submitted as a full replace and the engine validates it asynchronously; the
publisher polls the engine status at a fixed interval up to a bounded number
of attempts, sleeping between polls. Only the whole document is ever pending,
active or failed.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from tablefed.application.interfaces.services import IManagedEngine
from tablefed.domain.enums import PublicationState
from tablefed.domain.exceptions import (
    PublicationFailureException,
    PublicationTimeoutException,
)

logger = logging.getLogger(__name__)

# Engine status strings (AppSync SchemaStatus) grouped by outcome.
ENGINE_SUCCESS_STATUSES = frozenset({"SUCCESS", "ACTIVE"})
ENGINE_FAILURE_STATUSES = frozenset({"FAILED"})

_ALLOWED_TRANSITIONS: dict[PublicationState, frozenset[PublicationState]] = {
    PublicationState.DRAFTED: frozenset({PublicationState.SUBMITTED}),
    PublicationState.SUBMITTED: frozenset(
        {PublicationState.ACTIVE, PublicationState.FAILED, PublicationState.TIMED_OUT}
    ),
    PublicationState.ACTIVE: frozenset(),
    PublicationState.FAILED: frozenset(),
    PublicationState.TIMED_OUT: frozenset(),
}


@dataclass
class SchemaPublication:
    """One publication attempt of a merged document."""

    document_digest: str
    state: PublicationState = PublicationState.DRAFTED
    attempts: int = 0
    diagnostic: str | None = None
    expected_revision: str | None = None
    history: list[PublicationState] = field(
        default_factory=lambda: [PublicationState.DRAFTED]
    )

    def transition(self, new_state: PublicationState) -> None:
        """Move to new_state. Raises ValueError on an illegal transition."""
        if new_state not in _ALLOWED_TRANSITIONS[self.state]:
            raise ValueError(
                f"Illegal publication transition {self.state.value} -> {new_state.value}"
            )
        self.state = new_state
        self.history.append(new_state)


def document_digest(document: str) -> str:
    """SHA-256 of the document text (identifies a publication in logs)."""
    return hashlib.sha256(document.encode("utf-8")).hexdigest()


class SchemaPublisher:
    """Submits documents to the managed engine and polls to a terminal state."""

    def __init__(
        self,
        engine: IManagedEngine,
        poll_interval_seconds: float = 2.0,
        max_attempts: int = 30,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.engine = engine
        self.poll_interval_seconds = poll_interval_seconds
        self.max_attempts = max_attempts
        self._sleep = sleep
        self.last_publication: SchemaPublication | None = None

    async def read_revision(self) -> str | None:
        """Revision token of the active document, when the engine supports one.

        Read it before synthesizing so publish() can reject a stale merge.
        """
        if not getattr(self.engine, "supports_revisions", False):
            return None
        return await self.engine.current_revision()

    async def publish(
        self, document: str, expected_revision: str | None = None
    ) -> SchemaPublication:
        """Publish document; return the ACTIVE publication.

        Raises:
            PublicationFailureException: Engine rejected the document.
            PublicationTimeoutException: Poll budget exhausted (retryable).
            PublicationConflictException: Revision token was stale (retryable).
        """
        publication = SchemaPublication(
            document_digest=document_digest(document),
            expected_revision=expected_revision,
        )
        self.last_publication = publication
        status = await self.engine.start_schema_creation(
            document, if_revision=expected_revision
        )
        publication.transition(PublicationState.SUBMITTED)
        logger.info(
            "Schema %s submitted (engine status %s)",
            publication.document_digest[:12],
            status,
        )

        for attempt in range(1, self.max_attempts + 1):
            publication.attempts = attempt
            result = await self.engine.get_schema_creation_status()
            logger.debug(
                "Schema creation status (%d/%d): %s",
                attempt,
                self.max_attempts,
                result.status,
            )
            if result.status in ENGINE_SUCCESS_STATUSES:
                publication.transition(PublicationState.ACTIVE)
                logger.info(
                    "Schema %s active after %d check(s)",
                    publication.document_digest[:12],
                    attempt,
                )
                return publication
            if result.status in ENGINE_FAILURE_STATUSES:
                publication.diagnostic = result.details or "no diagnostic returned"
                publication.transition(PublicationState.FAILED)
                logger.error(
                    "Schema %s rejected: %s",
                    publication.document_digest[:12],
                    publication.diagnostic,
                )
                raise PublicationFailureException(publication.diagnostic, attempt)
            if attempt < self.max_attempts:
                await self._sleep(self.poll_interval_seconds)

        publication.transition(PublicationState.TIMED_OUT)
        logger.warning(
            "Schema %s still pending after %d check(s)",
            publication.document_digest[:12],
            self.max_attempts,
        )
        raise PublicationTimeoutException(self.max_attempts, self.poll_interval_seconds)
