"""
Session lifecycle state machine.

Holds the allowed status transitions and the status a session moves to
when a message is appended.

Dependencies: tutordesk.models.enums, tutordesk.core.exceptions
System role: Single source of truth for session status changes
"""

from tutordesk.core.exceptions import InvalidTransitionError
from tutordesk.models.enums import SenderRole, SessionStatus

# Statuses in which students may no longer write messages or touch files.
STUDENT_LOCKED_STATUSES = frozenset(
    {SessionStatus.CLOSED, SessionStatus.COMPLETED, SessionStatus.DELETED}
)

TERMINAL_STATUSES = frozenset({SessionStatus.COMPLETED, SessionStatus.DELETED})

ALLOWED_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.ACTIVE: frozenset(
        {
            SessionStatus.ACTIVE,
            SessionStatus.WAITING_FOR_STAFF,
            SessionStatus.CLOSED,
            SessionStatus.DELETED,
        }
    ),
    SessionStatus.WAITING_FOR_STAFF: frozenset(
        {
            SessionStatus.ACTIVE,
            SessionStatus.WAITING_FOR_STAFF,
            SessionStatus.CLOSED,
            SessionStatus.DELETED,
        }
    ),
    # Closing twice is a no-op.
    SessionStatus.CLOSED: frozenset({SessionStatus.CLOSED, SessionStatus.DELETED}),
    SessionStatus.COMPLETED: frozenset({SessionStatus.DELETED}),
    SessionStatus.DELETED: frozenset(),
}


def can_transition(current: SessionStatus, target: SessionStatus) -> bool:
    """Return True when `current -> target` is an allowed transition."""
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: SessionStatus, target: SessionStatus) -> None:
    """
    Validate a status change.

    Raises:
        InvalidTransitionError: If the transition is not allowed
    """
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)


def status_after_message(current: SessionStatus, sender_role: SenderRole) -> SessionStatus:
    """
    Compute the status a session takes after a message is appended.

    Student messages hand the turn to staff, staff messages hand it back.
    Closed and Completed sessions keep their status (only staff can still
    write there). System messages never change status.

    Args:
        current: Status before the message
        sender_role: Author of the message

    Returns:
        SessionStatus: Status to persist with the message

    Raises:
        InvalidTransitionError: If the session is Deleted
    """
    if current == SessionStatus.DELETED:
        raise InvalidTransitionError(current.value, "message")
    if current in (SessionStatus.CLOSED, SessionStatus.COMPLETED):
        return current
    if sender_role == SenderRole.STUDENT:
        return SessionStatus.WAITING_FOR_STAFF
    if sender_role == SenderRole.STAFF:
        return SessionStatus.ACTIVE
    return current


def is_student_locked(status: SessionStatus) -> bool:
    """True when student message and file writes are rejected in `status`."""
    return status in STUDENT_LOCKED_STATUSES
