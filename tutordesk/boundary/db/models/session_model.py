"""
Owner-partition session ORM model.

The authoritative copy of a session, keyed by (owner_id, id) so every
lookup goes through the owning user's partition.

Dependencies: sqlalchemy, tutordesk.boundary.db.base
System role: Owner-partition session persistence
"""

from datetime import datetime

from sqlalchemy import Boolean, Enum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tutordesk.boundary.db.base import Base, UTCDateTime
from tutordesk.models.enums import SessionMode, SessionStatus


class OwnerSessionModel(Base):
    """
    Session record under `users/{owner_id}/sessions/{id}`.

    Timestamps are written explicitly by the consistency manager so the
    owner and mirror copies carry identical values.

    Attributes:
        version: Incremented on every write; the mirror stores the version
            it was projected from and ignores older projections
        hidden: Owner-controlled visibility on the owner's own list
        auto_deleted: Set when the retention sweeper marked the session Deleted
    """

    __tablename__ = "owner_sessions"
    __table_args__ = (
        Index("ix_owner_sessions_owner_created", "owner_id", "created_at"),
    )

    owner_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    owner_email: Mapped[str] = mapped_column(String(320), nullable=False, default="")
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    context: Mapped[str] = mapped_column(Text, nullable=False, default="")
    mode: Mapped[SessionMode] = mapped_column(
        Enum(SessionMode, native_enum=False, length=32), nullable=False
    )
    status: Mapped[SessionStatus] = mapped_column(
        Enum(SessionStatus, native_enum=False, length=32), nullable=False
    )
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    auto_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    last_active_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    closed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
