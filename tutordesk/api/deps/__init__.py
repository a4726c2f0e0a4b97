"""FastAPI dependencies."""

from tutordesk.api.deps.dependencies import (
    get_container,
    get_current_actor,
    get_file_service,
    get_service_cache,
    get_session_service,
    get_user_service,
    resolve_actor,
)

__all__ = [
    "get_container",
    "get_current_actor",
    "get_file_service",
    "get_service_cache",
    "get_session_service",
    "get_user_service",
    "resolve_actor",
]
