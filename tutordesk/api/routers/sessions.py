"""
Session API endpoints.

Routes:
- POST /sessions - Create new session
- GET /sessions - List the caller's sessions
- GET /sessions/console - Staff console query over the mirror
- GET /sessions/console/summary - Staff console counts
- GET /sessions/{id} - Get session
- POST /sessions/{id}/messages - Post message
- GET /sessions/{id}/messages - List messages
- POST /sessions/{id}/close - Close session (staff)
- DELETE /sessions/{id} - Delete session with messages and files (staff)
- PATCH /sessions/{id}/visibility - Hide or un-hide (owner)

`owner_id` query parameters default to the caller.

Dependencies: tutordesk.application.services.session_service, tutordesk.models
System role: Session management HTTP API
"""

import logging

from fastapi import APIRouter, Depends, Query, Response, status

from tutordesk.api.deps import get_current_actor, get_session_service
from tutordesk.api.routers.router_utils import first_snapshot, handle_service_errors
from tutordesk.application.services.session_service import SessionService
from tutordesk.models.enums import SessionStatus
from tutordesk.models.message import AddMessageRequest, Message
from tutordesk.models.session import (
    ConsoleSummary,
    CreateSessionRequest,
    MirrorSession,
    Session,
    VisibilityRequest,
)
from tutordesk.models.user import Actor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", response_model=Session, status_code=status.HTTP_201_CREATED)
@handle_service_errors
async def create_session(
    request: CreateSessionRequest,
    actor: Actor = Depends(get_current_actor),
    session_service: SessionService = Depends(get_session_service),
) -> Session:
    """
    Create a session in the caller's partition.

    Raises:
        HTTPException(400): Blank subject
        HTTPException(503): Owner record could not be written
    """
    return await session_service.create_session(
        actor, request.subject, context=request.context, mode=request.mode
    )


@router.get("", response_model=list[Session])
@handle_service_errors
async def list_sessions(
    include_hidden: bool = False,
    actor: Actor = Depends(get_current_actor),
    session_service: SessionService = Depends(get_session_service),
) -> list[Session]:
    """List the caller's sessions, newest first."""
    return await first_snapshot(
        await session_service.list_sessions(actor, include_hidden=include_hidden)
    )


@router.get("/console", response_model=list[MirrorSession])
@handle_service_errors
async def list_console_sessions(
    status_filter: SessionStatus | None = Query(default=None, alias="status"),
    actor: Actor = Depends(get_current_actor),
    session_service: SessionService = Depends(get_session_service),
) -> list[MirrorSession]:
    """Mirror query: every session for staff, own sessions for students."""
    return await first_snapshot(
        await session_service.list_console_sessions(actor, status=status_filter)
    )


@router.get("/console/summary", response_model=ConsoleSummary)
@handle_service_errors
async def console_summary(
    actor: Actor = Depends(get_current_actor),
    session_service: SessionService = Depends(get_session_service),
) -> ConsoleSummary:
    """Per-status session counts (staff only)."""
    return await session_service.console_summary(actor)


@router.get("/{session_id}", response_model=Session)
@handle_service_errors
async def get_session(
    session_id: str,
    owner_id: str | None = None,
    actor: Actor = Depends(get_current_actor),
    session_service: SessionService = Depends(get_session_service),
) -> Session:
    """Get a session from its owner's partition."""
    return await session_service.get_session(actor, session_id, owner_id or actor.id)


@router.post(
    "/{session_id}/messages",
    response_model=Message,
    status_code=status.HTTP_201_CREATED,
)
@handle_service_errors
async def add_message(
    session_id: str,
    request: AddMessageRequest,
    owner_id: str | None = None,
    actor: Actor = Depends(get_current_actor),
    session_service: SessionService = Depends(get_session_service),
) -> Message:
    """
    Post a message into a session.

    Raises:
        HTTPException(403): Student writing into a Closed session, or a
            student writing into someone else's session
        HTTPException(404): Session not found
    """
    return await session_service.add_message(
        actor, session_id, request.content, owner_id=owner_id
    )


@router.get("/{session_id}/messages", response_model=list[Message])
@handle_service_errors
async def list_messages(
    session_id: str,
    owner_id: str | None = None,
    actor: Actor = Depends(get_current_actor),
    session_service: SessionService = Depends(get_session_service),
) -> list[Message]:
    """List a session's messages, oldest first."""
    return await first_snapshot(
        await session_service.list_messages(actor, session_id, owner_id or actor.id)
    )


@router.post("/{session_id}/close", response_model=Session)
@handle_service_errors
async def close_session(
    session_id: str,
    owner_id: str,
    actor: Actor = Depends(get_current_actor),
    session_service: SessionService = Depends(get_session_service),
) -> Session:
    """Close a session (staff only)."""
    return await session_service.close_session(actor, session_id, owner_id)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
@handle_service_errors
async def delete_session(
    session_id: str,
    owner_id: str,
    actor: Actor = Depends(get_current_actor),
    session_service: SessionService = Depends(get_session_service),
) -> Response:
    """
    Delete a session with all messages and files (staff only).

    Raises:
        HTTPException(500): Deletion stopped part way; the body names the
            completed steps and the failed step, and repeating the call
            resumes it
    """
    await session_service.delete_session(actor, session_id, owner_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{session_id}/visibility", response_model=Session)
@handle_service_errors
async def toggle_visibility(
    session_id: str,
    request: VisibilityRequest,
    actor: Actor = Depends(get_current_actor),
    session_service: SessionService = Depends(get_session_service),
) -> Session:
    """Hide or un-hide one of the caller's sessions."""
    return await session_service.toggle_visibility(actor, session_id, actor.id, request.hidden)
