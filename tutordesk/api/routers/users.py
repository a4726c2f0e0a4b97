"""
User directory API endpoints.

Routes:
- POST /users/sync - Create or refresh the user from identity claims
- GET /users/me - Current user
- PUT /users/{id}/role - Change role (staff)
- PUT /users/{id}/plan - Change plan (staff)

Dependencies: tutordesk.application.services.user_service, tutordesk.models
System role: User management HTTP API
"""

from fastapi import APIRouter, Depends

from tutordesk.api.deps import get_current_actor, get_user_service
from tutordesk.api.routers.router_utils import handle_service_errors
from tutordesk.application.services.user_service import UserService
from tutordesk.models.user import Actor, ChangePlanRequest, ChangeRoleRequest, Identity, User

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/sync", response_model=User)
@handle_service_errors
async def sync_user(
    identity: Identity,
    user_service: UserService = Depends(get_user_service),
) -> User:
    """
    Record a successful sign-in.

    Called by the identity gateway with the provider's claims; creates the
    user on first sign-in.
    """
    return await user_service.ensure_user(identity)


@router.get("/me", response_model=User)
@handle_service_errors
async def get_me(
    actor: Actor = Depends(get_current_actor),
    user_service: UserService = Depends(get_user_service),
) -> User:
    """Get the caller's user record."""
    return await user_service.get_user(actor.id)


@router.put("/{user_id}/role", response_model=User)
@handle_service_errors
async def change_role(
    user_id: str,
    request: ChangeRoleRequest,
    actor: Actor = Depends(get_current_actor),
    user_service: UserService = Depends(get_user_service),
) -> User:
    """Change a user's role (staff only)."""
    return await user_service.change_role(actor, user_id, request.role)


@router.put("/{user_id}/plan", response_model=User)
@handle_service_errors
async def set_plan(
    user_id: str,
    request: ChangePlanRequest,
    actor: Actor = Depends(get_current_actor),
    user_service: UserService = Depends(get_user_service),
) -> User:
    """Change a user's plan (staff only)."""
    return await user_service.set_plan(actor, user_id, request.plan)
