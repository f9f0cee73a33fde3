"""Run the decommission worker: long-poll the queue and tear tables down.

Usage:
    uv run python -m scripts.run_decommission_worker

Requires: BACKEND=aws, DECOMMISSION_QUEUE_URL and the other AWS names (see
tablefed.core.config). Stops on SIGINT/SIGTERM after the message in hand
is settled.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

from tablefed.core.config import get_settings
from tablefed.shared.telemetry import setup_logging
from tablefed.workers.decommission import run_worker


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


def _load_env() -> None:
    """Load .env from project root so get_settings() sees the AWS names when run as script."""
    load_dotenv(_project_root() / ".env", override=True)


async def main() -> None:
    _load_env()
    get_settings.cache_clear()
    settings = get_settings()
    if settings.backend != "aws":
        print(
            "The in-memory queue is consumed by the API process itself; set BACKEND=aws",
            file=sys.stderr,
        )
        sys.exit(1)
    setup_logging()
    await run_worker()


if __name__ == "__main__":
    asyncio.run(main())
