"""Domain models and API schemas."""

from tutordesk.models.enums import (
    SenderRole,
    SessionMode,
    SessionStatus,
    UserPlan,
    UserRole,
)
from tutordesk.models.file import FileRecord
from tutordesk.models.message import Message
from tutordesk.models.session import ConsoleSummary, MirrorSession, Session
from tutordesk.models.user import Actor, Identity, User

__all__ = [
    "Actor",
    "ConsoleSummary",
    "FileRecord",
    "Identity",
    "Message",
    "MirrorSession",
    "SenderRole",
    "Session",
    "SessionMode",
    "SessionStatus",
    "User",
    "UserPlan",
    "UserRole",
]
