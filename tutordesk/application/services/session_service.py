"""
Session service orchestrator.

Entry points for the session lifecycle: creation, messaging, closure,
deletion, visibility and the live session/message streams. Every call
checks the access control resolver before touching the store and routes
writes through the consistency manager.

Dependencies: tutordesk.application.services, tutordesk.boundary.db.CRUD, tutordesk.core
System role: Session use case orchestration
"""

import logging
from uuid import uuid4

from tutordesk.application.services.consistency_manager import ConsistencyManager
from tutordesk.application.services.subscription_service import Subscription, SubscriptionHub
from tutordesk.boundary.db.CRUD import message_crud, mirror_session_crud, owner_session_crud
from tutordesk.core.access_control import Operation, Resource, can_perform, require
from tutordesk.core.exceptions import SessionNotFoundError, ValidationError
from tutordesk.core.lifecycle import ensure_transition, status_after_message
from tutordesk.core.partitioning import MIRROR_COLLECTION, messages_path, user_sessions_path
from tutordesk.models.enums import SenderRole, SessionMode, SessionStatus
from tutordesk.models.message import Message
from tutordesk.models.session import ConsoleSummary, MirrorSession, Session
from tutordesk.models.user import Actor

logger = logging.getLogger(__name__)

CHANNEL_NAMES = {
    SessionMode.INTERACTIVE: "Interactive Guide",
    SessionMode.FULL_SOLUTION: "Full Solutions",
}


def welcome_message(mode: SessionMode) -> str:
    """System message text written when a session opens."""
    return (
        f"Welcome to VarsiVault. You are connected to the {CHANNEL_NAMES[mode]} "
        "channel. An expert will be with you shortly."
    )


class SessionService:
    """Session service orchestrator."""

    def __init__(self, manager: ConsistencyManager, hub: SubscriptionHub) -> None:
        """
        Initialize session service.

        Args:
            manager: Consistency manager for all session writes
            hub: Subscription hub for live streams
        """
        self._manager = manager
        self._store = manager.store
        self._hub = hub

    async def _load(self, owner_id: str, session_id: str) -> Session:
        async def _get(db):
            row = await owner_session_crud.get(db, owner_id, session_id)
            return Session.model_validate(row) if row else None

        session = await self._store.execute("get_owner_session", _get)
        if session is None:
            raise SessionNotFoundError(session_id, owner_id)
        return session

    async def create_session(
        self,
        actor: Actor,
        subject: str,
        context: str = "",
        mode: SessionMode = SessionMode.INTERACTIVE,
    ) -> Session:
        """
        Open a new session in the actor's own partition.

        Args:
            actor: Session owner
            subject: Course or topic
            context: What the student needs help with
            mode: Interactive guidance or full solutions

        Returns:
            Session: Created session (status Active)

        Raises:
            PermissionDenied: Never for a well-formed actor (own partition)
            ValidationError: If subject is blank
            TransientStoreFailure: If the owner record could not be written
        """
        require(actor, Operation.CREATE_SESSION, Resource.partition(actor.id))
        subject = subject.strip()
        if not subject:
            raise ValidationError("Subject is required", field="subject")

        now = self._manager.now()
        session = Session(
            id=uuid4().hex,
            owner_id=actor.id,
            owner_email=actor.email,
            subject=subject,
            context=context.strip(),
            mode=mode,
            status=SessionStatus.ACTIVE,
            hidden=False,
            auto_deleted=False,
            version=1,
            created_at=now,
            updated_at=now,
            last_active_at=now,
            closed_at=None,
        )
        return await self._manager.create_session(session, welcome_message(mode))

    async def get_session(self, actor: Actor, session_id: str, owner_id: str) -> Session:
        """
        Read a session from its owner's partition.

        Raises:
            PermissionDenied: If a student asks for someone else's session
            SessionNotFoundError: If the session does not exist
        """
        require(actor, Operation.READ_SESSION, Resource.session(owner_id))
        return await self._load(owner_id, session_id)

    async def add_message(
        self,
        actor: Actor,
        session_id: str,
        content: str,
        owner_id: str | None = None,
    ) -> Message:
        """
        Post a message and move the session's status accordingly.

        Args:
            actor: Student owner or staff member
            session_id: Target session
            content: Message text
            owner_id: Session owner (defaults to the actor)

        Returns:
            Message: Stored message with server timestamp

        Raises:
            PermissionDenied: If the actor may not write into the session
            SessionNotFoundError: If the session does not exist
            ValidationError: If content is blank
        """
        owner_id = owner_id or actor.id
        content = content.strip()
        if not content:
            raise ValidationError("Message content is required", field="content")

        # Ownership first so a missing session is not revealed to strangers.
        require(actor, Operation.POST_MESSAGE, Resource.session(owner_id))
        session = await self._load(owner_id, session_id)
        require(actor, Operation.POST_MESSAGE, Resource.session(owner_id, session.status))

        sender_role = SenderRole.STAFF if actor.is_staff else SenderRole.STUDENT
        message = Message(
            id=uuid4().hex,
            session_id=session_id,
            owner_id=owner_id,
            sender_id=actor.id,
            sender_role=sender_role,
            sender_name=actor.display_name or actor.email,
            content=content,
            created_at=self._manager.now(),
        )

        def _patch(current: Session, at):
            return {
                "status": status_after_message(current.status, sender_role),
                "updated_at": at,
                "last_active_at": at,
            }

        stored, updated = await self._manager.append_message(message, _patch)
        logger.info(
            f"Message added to session {session_id}",
            extra={
                "session_id": session_id,
                "sender_role": sender_role.value,
                "status": updated.status.value,
            },
        )
        return stored

    async def list_sessions(
        self,
        actor: Actor,
        include_hidden: bool = False,
    ) -> Subscription[list[Session]]:
        """Live list of the actor's own sessions, newest first."""
        require(actor, Operation.READ_SESSION, Resource.session(actor.id))

        async def _load(db):
            rows = await owner_session_crud.list_for_owner(db, actor.id, include_hidden)
            return [Session.model_validate(row) for row in rows]

        return self._hub.subscribe(
            f"sessions:{actor.id}", (user_sessions_path(actor.id),), _load
        )

    async def list_console_sessions(
        self,
        actor: Actor,
        status: SessionStatus | None = None,
    ) -> Subscription[list[MirrorSession]]:
        """
        Live mirror query, newest first.

        Staff see every session; students only see their own projections.
        """
        owner_filter = None
        if not can_perform(actor, Operation.QUERY_MIRROR, Resource.mirror()):
            owner_filter = actor.id

        async def _load(db):
            rows = await mirror_session_crud.query(db, status=status, owner_id=owner_filter)
            return [MirrorSession.model_validate(row) for row in rows]

        name = f"console:{owner_filter or 'all'}:{status.value if status else 'any'}"
        return self._hub.subscribe(name, (MIRROR_COLLECTION,), _load)

    async def list_messages(
        self,
        actor: Actor,
        session_id: str,
        owner_id: str,
    ) -> Subscription[list[Message]]:
        """
        Live message list of a session, oldest first.

        Raises:
            PermissionDenied: If the actor is neither owner nor staff
            SessionNotFoundError: If the session does not exist
        """
        require(actor, Operation.READ_MESSAGES, Resource.session(owner_id))
        await self._load(owner_id, session_id)

        async def _load(db):
            rows = await message_crud.list_for_session(db, owner_id, session_id)
            return [Message.model_validate(row) for row in rows]

        return self._hub.subscribe(
            f"messages:{session_id}", (messages_path(owner_id, session_id),), _load
        )

    async def close_session(self, actor: Actor, session_id: str, owner_id: str) -> Session:
        """
        Close a session (staff only). Closing a Closed session is a no-op.

        Raises:
            PermissionDenied: If the actor is not staff
            SessionNotFoundError: If the session does not exist
            InvalidTransitionError: If the session is Completed or Deleted
        """
        require(actor, Operation.CLOSE_SESSION, Resource.session(owner_id))
        session = await self._load(owner_id, session_id)
        if session.status == SessionStatus.CLOSED:
            return session
        ensure_transition(session.status, SessionStatus.CLOSED)

        now = self._manager.now()

        def _patch(current: Session):
            ensure_transition(current.status, SessionStatus.CLOSED)
            return {"status": SessionStatus.CLOSED, "closed_at": now, "updated_at": now}

        closed = await self._manager.write_session(owner_id, session_id, _patch)
        logger.info(f"Session closed: {session_id}", extra={"closed_by": actor.id})
        return closed

    async def delete_session(self, actor: Actor, session_id: str, owner_id: str) -> None:
        """
        Delete a session with all its messages and files (staff only).

        Safe to call again after a PartialDeletionFailure or on a session
        that is already gone.

        Raises:
            PermissionDenied: If the actor is not staff
            PartialDeletionFailure: If a step failed; calling again resumes
        """
        require(actor, Operation.DELETE_SESSION, Resource.session(owner_id))
        await self._manager.delete_session(owner_id, session_id)

    async def toggle_visibility(
        self,
        actor: Actor,
        session_id: str,
        owner_id: str,
        hidden: bool,
    ) -> Session:
        """
        Hide or un-hide a session on the owner's own list.

        The mirror carries no visibility flag, so only the owner record is
        written.
        """
        require(actor, Operation.TOGGLE_VISIBILITY, Resource.session(owner_id))
        await self._load(owner_id, session_id)
        return await self._manager.write_session(owner_id, session_id, {"hidden": hidden})

    async def console_summary(self, actor: Actor) -> ConsoleSummary:
        """Per-status counts over the mirror (staff only, Deleted excluded)."""
        require(actor, Operation.QUERY_MIRROR, Resource.mirror())
        counts = await self._store.execute("count_mirror_sessions", mirror_session_crud.count_by_status)
        counts.pop(SessionStatus.DELETED, None)
        return ConsoleSummary(
            total=sum(counts.values()),
            active=counts.get(SessionStatus.ACTIVE, 0),
            waiting_for_staff=counts.get(SessionStatus.WAITING_FOR_STAFF, 0),
            closed=counts.get(SessionStatus.CLOSED, 0),
            completed=counts.get(SessionStatus.COMPLETED, 0),
        )
