"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: fastapi, tutordesk.configs, tutordesk.application
System role: DI container for service injection
"""

from fastapi import Depends, Header, HTTPException, status

from tutordesk.application.container import ServiceContainer
from tutordesk.application.services import FileService, SessionService, UserService
from tutordesk.configs import get_settings
from tutordesk.core.exceptions import UserNotFoundError
from tutordesk.models.user import Actor

USER_ID_HEADER = "X-User-Id"


class ServiceCache:
    """Holds the process-wide service container."""

    def __init__(self) -> None:
        self._container: ServiceContainer | None = None

    @property
    def container(self) -> ServiceContainer:
        """Get cached container, building it from settings on first use."""
        if self._container is None:
            self._container = ServiceContainer(get_settings())
        return self._container

    def clear(self) -> None:
        """Drop the cached container."""
        self._container = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


def get_container() -> ServiceContainer:
    """Get the shared service container."""
    return _service_cache.container


def get_session_service(
    container: ServiceContainer = Depends(get_container),
) -> SessionService:
    """Get session service instance."""
    return container.session_service


def get_file_service(
    container: ServiceContainer = Depends(get_container),
) -> FileService:
    """Get file service instance."""
    return container.file_service


def get_user_service(
    container: ServiceContainer = Depends(get_container),
) -> UserService:
    """Get user service instance."""
    return container.user_service


async def resolve_actor(user_id: str | None, user_service: UserService) -> Actor:
    """
    Resolve the caller identified by the identity gateway.

    Raises:
        HTTPException(401): Missing header or unknown user
    """
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {USER_ID_HEADER} header",
        )
    try:
        return await user_service.get_actor(user_id)
    except UserNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user",
        )


async def get_current_actor(
    x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
    user_service: UserService = Depends(get_user_service),
) -> Actor:
    """
    Get the acting principal for a request.

    Args:
        x_user_id: Stable user id set by the upstream identity gateway
        user_service: Injected UserService

    Returns:
        Actor: Resolved actor with role
    """
    return await resolve_actor(x_user_id, user_service)
