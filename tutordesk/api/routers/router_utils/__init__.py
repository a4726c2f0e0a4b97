"""Shared router helpers."""

from tutordesk.api.routers.router_utils.error_handling import handle_service_errors, status_for
from tutordesk.api.routers.router_utils.snapshots import first_snapshot

__all__ = ["first_snapshot", "handle_service_errors", "status_for"]
