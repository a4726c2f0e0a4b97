"""
Session domain models and schemas.

Owner-partition record, mirror projection, and request/response schemas
for session operations.

Dependencies: pydantic
System role: Session contracts shared by services, streams and the API
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from tutordesk.models.enums import SessionMode, SessionStatus


class Session(BaseModel):
    """Authoritative session record from the owner partition."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    owner_email: str
    subject: str
    context: str
    mode: SessionMode
    status: SessionStatus
    hidden: bool = False
    auto_deleted: bool = False
    version: int
    created_at: datetime
    updated_at: datetime
    last_active_at: datetime
    closed_at: datetime | None = None


class MirrorSession(BaseModel):
    """Staff-wide projection of a session (no private children, no hidden flag)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    owner_email: str
    subject: str
    context: str
    mode: SessionMode
    status: SessionStatus
    auto_deleted: bool = False
    source_version: int
    created_at: datetime
    updated_at: datetime
    last_active_at: datetime
    closed_at: datetime | None = None


class ConsoleSummary(BaseModel):
    """Session counts shown on the staff console."""

    total: int = 0
    active: int = 0
    waiting_for_staff: int = 0
    closed: int = 0
    completed: int = 0


class CreateSessionRequest(BaseModel):
    """Request schema for creating a new session."""

    subject: str = Field(min_length=1, max_length=200, description="Course or topic")
    context: str = Field(default="", max_length=10_000, description="What the student needs")
    mode: SessionMode = Field(default=SessionMode.INTERACTIVE)


class VisibilityRequest(BaseModel):
    """Request schema for hiding or un-hiding a session."""

    hidden: bool
