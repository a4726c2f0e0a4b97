"""
Global mirror session ORM model.

Flat projection of session metadata under `sessions/{id}`, used for
staff-wide queries and the retention sweep. Never holds messages or files.

Dependencies: sqlalchemy, tutordesk.boundary.db.base
System role: Mirror persistence
"""

from datetime import datetime

from sqlalchemy import Boolean, Enum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tutordesk.boundary.db.base import Base, UTCDateTime
from tutordesk.models.enums import SessionMode, SessionStatus


class MirrorSessionModel(Base):
    """Mirror copy of a session, guarded by `source_version`."""

    __tablename__ = "session_mirror"
    __table_args__ = (
        Index("ix_session_mirror_status_updated", "status", "updated_at"),
        Index("ix_session_mirror_created", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    owner_email: Mapped[str] = mapped_column(String(320), nullable=False, default="")
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    context: Mapped[str] = mapped_column(Text, nullable=False, default="")
    mode: Mapped[SessionMode] = mapped_column(
        Enum(SessionMode, native_enum=False, length=32), nullable=False
    )
    status: Mapped[SessionStatus] = mapped_column(
        Enum(SessionStatus, native_enum=False, length=32), nullable=False
    )
    auto_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    source_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    last_active_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    closed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
