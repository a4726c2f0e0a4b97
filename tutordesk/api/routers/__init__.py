"""API routers."""

from .files import router as files_router
from .health import router as health_router
from .sessions import router as sessions_router
from .streams import router as streams_router
from .users import router as users_router

__all__ = [
    "files_router",
    "health_router",
    "sessions_router",
    "streams_router",
    "users_router",
]
