"""
Observability module.

Provides structured logging and correlation ID tracking.
"""

from tutordesk.observability.correlation import (
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from tutordesk.observability.logger import configure_logging, get_logger

__all__ = [
    "clear_correlation_id",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
]
