"""Application lifespan: startup and shutdown.

Wires the backend and application services into app.state; no business
logic here. Tests may pre-populate app.state.services to inject their own
backend, in which case startup leaves it in place.

With the in-memory backend the decommission queue lives in this process, so
the lifespan also runs the decommission worker as a background task.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from tablefed.core.config import get_settings
from tablefed.infrastructure.factory import BackendFactory

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build services on startup, drop them on shutdown."""
    settings = get_settings()

    # ---- Startup ----
    if getattr(app.state, "services", None) is None:
        app.state.services = BackendFactory.create_services(settings)
        app.state.owns_services = True
        logger.info(
            "Services ready (backend=%s, schema_sync_mode=%s)",
            settings.backend,
            settings.schema_sync_mode,
        )
    else:
        app.state.owns_services = False

    stop_worker = asyncio.Event()
    worker_task: asyncio.Task | None = None
    if settings.backend == "memory":
        worker_task = asyncio.create_task(
            app.state.services.worker.run_forever(
                stop_worker, wait_seconds=settings.queue_wait_seconds
            )
        )

    yield

    # ---- Shutdown ----
    if worker_task is not None:
        stop_worker.set()
        await worker_task
    if getattr(app.state, "owns_services", False):
        app.state.services = None
        logger.info("Services released")
