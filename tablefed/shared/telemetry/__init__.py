"""Telemetry: logging setup."""

from tablefed.shared.telemetry.logging import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
