"""
WebSocket snapshot streams.

Each endpoint pushes the full, ordered snapshot of one subscription every
time it changes. The caller is identified by the `X-User-Id` header or,
for browsers that cannot set WebSocket headers, a `user_id` query
parameter.

Routes:
- WS /ws/sessions - Caller's session list
- WS /ws/console - Mirror query (`status` filter optional)
- WS /ws/sessions/{id}/messages - Session messages
- WS /ws/sessions/{id}/files - Session files
- WS /ws/files/general - General files

Server sends:
    {"event": "connected", "data": {"stream": "..."}}
    {"event": "snapshot", "data": {"items": [...]}}
    {"event": "error", "data": {"code": 403, "message": "..."}}

Dependencies: fastapi, tutordesk.application
System role: Live stream HTTP API
"""

import asyncio
import logging
from typing import Awaitable, Callable

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status

from tutordesk.api.deps import get_container, resolve_actor
from tutordesk.api.deps.dependencies import USER_ID_HEADER
from tutordesk.api.routers.router_utils import status_for
from tutordesk.application.container import ServiceContainer
from tutordesk.application.services.subscription_service import Subscription
from tutordesk.core.exceptions import TutorDeskException
from tutordesk.models.enums import SessionStatus
from tutordesk.models.streaming import StreamEvent, StreamEventType
from tutordesk.models.user import Actor
from tutordesk.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ws", tags=["streaming"])

Opener = Callable[[Actor], Awaitable[Subscription]]


async def _send_error(websocket: WebSocket, code: int, message: str) -> None:
    await websocket.send_json(
        StreamEvent(event=StreamEventType.ERROR, data={"code": code, "message": message}).to_dict()
    )
    await websocket.close(code=status.WS_1008_POLICY_VIOLATION if code < 500 else status.WS_1011_INTERNAL_ERROR)


async def _pump(websocket: WebSocket, subscription: Subscription) -> None:
    try:
        async for snapshot in subscription:
            items = [item.model_dump(mode="json") for item in snapshot]
            await websocket.send_json(
                StreamEvent(event=StreamEventType.SNAPSHOT, data={"items": items}).to_dict()
            )
    except WebSocketDisconnect:
        return
    except Exception as e:
        log_exception_with_context(logger, "Snapshot stream failed", e, stream=subscription.name)
        await _send_error(websocket, status.HTTP_500_INTERNAL_SERVER_ERROR, "Stream failed")


async def _stream(websocket: WebSocket, container: ServiceContainer, opener: Opener) -> None:
    """Accept, open the subscription, push snapshots until the client leaves."""
    await websocket.accept()
    user_id = websocket.headers.get(USER_ID_HEADER) or websocket.query_params.get("user_id")
    try:
        actor = await resolve_actor(user_id, container.user_service)
        subscription = await opener(actor)
    except HTTPException as e:
        await _send_error(websocket, e.status_code, str(e.detail))
        return
    except TutorDeskException as e:
        await _send_error(websocket, status_for(e), e.message)
        return

    logger.info(
        "WebSocket stream opened",
        extra={"stream": subscription.name, "user_id": actor.id},
    )
    await websocket.send_json(
        StreamEvent(event=StreamEventType.CONNECTED, data={"stream": subscription.name}).to_dict()
    )

    sender = asyncio.create_task(_pump(websocket, subscription))
    try:
        while True:
            # Client messages are only keep-alives.
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected", extra={"stream": subscription.name})
    finally:
        subscription.unsubscribe()
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        except Exception as e:
            log_exception_with_context(
                logger,
                "Snapshot sender ended with an error",
                e,
                level=logging.WARNING,
                stream=subscription.name,
            )


@router.websocket("/sessions")
async def stream_sessions(
    websocket: WebSocket,
    include_hidden: bool = False,
    container: ServiceContainer = Depends(get_container),
) -> None:
    await _stream(
        websocket,
        container,
        lambda actor: container.session_service.list_sessions(actor, include_hidden=include_hidden),
    )


@router.websocket("/console")
async def stream_console(
    websocket: WebSocket,
    status_filter: SessionStatus | None = None,
    container: ServiceContainer = Depends(get_container),
) -> None:
    """Mirror query stream; `status_filter` narrows to one status."""
    await _stream(
        websocket,
        container,
        lambda actor: container.session_service.list_console_sessions(actor, status=status_filter),
    )


@router.websocket("/sessions/{session_id}/messages")
async def stream_messages(
    websocket: WebSocket,
    session_id: str,
    owner_id: str | None = None,
    container: ServiceContainer = Depends(get_container),
) -> None:
    await _stream(
        websocket,
        container,
        lambda actor: container.session_service.list_messages(
            actor, session_id, owner_id or actor.id
        ),
    )


@router.websocket("/sessions/{session_id}/files")
async def stream_session_files(
    websocket: WebSocket,
    session_id: str,
    owner_id: str | None = None,
    container: ServiceContainer = Depends(get_container),
) -> None:
    await _stream(
        websocket,
        container,
        lambda actor: container.file_service.list_files(actor, session_id, owner_id or actor.id),
    )


@router.websocket("/files/general")
async def stream_general_files(
    websocket: WebSocket,
    owner_id: str | None = None,
    container: ServiceContainer = Depends(get_container),
) -> None:
    await _stream(
        websocket,
        container,
        lambda actor: container.file_service.list_general_files(actor, owner_id or actor.id),
    )
