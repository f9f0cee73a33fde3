"""Shared utilities: datetime and generators."""

from tablefed.shared.utils.datetime import utc_now, utc_now_iso
from tablefed.shared.utils.generators import generate_cuid

__all__ = ["generate_cuid", "utc_now", "utc_now_iso"]
