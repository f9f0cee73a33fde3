"""Shared utilities: telemetry (logging) and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from tablefed.shared.utils import generate_cuid, utc_now, utc_now_iso

__all__ = ["generate_cuid", "utc_now", "utc_now_iso"]
