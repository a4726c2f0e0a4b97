"""
Shared enumerations for users, sessions and messages.

Dependencies: None
System role: Vocabulary shared by the domain, boundary and API layers
"""

import enum


class UserRole(str, enum.Enum):
    """Roles a human actor can hold."""

    STUDENT = "STUDENT"
    STAFF = "STAFF"


class SenderRole(str, enum.Enum):
    """
    Author of a message.

    SYSTEM is used for the welcome message written at session creation.
    """

    STUDENT = "STUDENT"
    STAFF = "STAFF"
    SYSTEM = "SYSTEM"


class UserPlan(str, enum.Enum):
    """Subscription plan of a user."""

    FREE = "FREE"
    PREMIUM = "PREMIUM"


class SessionMode(str, enum.Enum):
    """How staff are expected to help in a session."""

    INTERACTIVE = "INTERACTIVE"
    FULL_SOLUTION = "FULL_SOLUTION"


class SessionStatus(str, enum.Enum):
    """
    Session lifecycle states.

    ACTIVE: Staff replied last (or session just opened)
    WAITING_FOR_STAFF: Student wrote last and awaits a reply
    CLOSED: Locked by staff; read-only for the student
    COMPLETED: Reserved terminal state
    DELETED: Removed by staff or swept for inactivity
    """

    ACTIVE = "ACTIVE"
    WAITING_FOR_STAFF = "WAITING_FOR_STAFF"
    CLOSED = "CLOSED"
    COMPLETED = "COMPLETED"
    DELETED = "DELETED"
