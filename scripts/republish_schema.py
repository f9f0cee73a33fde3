"""Republish the merged schema document, optionally re-provisioning one tenant.

Usage:
    uv run python -m scripts.republish_schema [tenant_marker]

Without a marker the merged document is republished and nothing is
provisioned. Exits 1 when the engine rejects the document or the status
poll times out.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

from tablefed.core.config import get_settings
from tablefed.domain.exceptions import TableFedException
from tablefed.infrastructure.factory import BackendFactory
from tablefed.shared.telemetry import setup_logging


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


async def main() -> None:
    """Run the schema pipeline once and print the outcome."""
    load_dotenv(_project_root() / ".env", override=True)
    get_settings.cache_clear()
    setup_logging()
    services = BackendFactory.create_services(get_settings())
    marker = sys.argv[1] if len(sys.argv) > 1 else None
    try:
        if marker:
            result = await services.sync.sync_tenant(marker)
        else:
            result = await services.sync.republish()
    except TableFedException as e:
        print(f"{e.error_code}: {e.message}", file=sys.stderr)
        sys.exit(1)

    print(
        f"Published {result.publication.document_digest[:12]} "
        f"({len(result.document.type_names)} table(s), "
        f"{len(result.document.skipped_tenants)} tenant(s) skipped)"
    )
    if result.provisioning is not None:
        print(
            f"Provisioned {len(result.provisioning.provisioned)}, "
            f"failed {len(result.provisioning.failed)}"
        )
        for name, error in sorted(result.provisioning.failed.items()):
            print(f"  {name}: {error}")


if __name__ == "__main__":
    asyncio.run(main())
