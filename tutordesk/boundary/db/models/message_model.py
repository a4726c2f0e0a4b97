"""
Message ORM model.

Messages live only in the owner partition:
`users/{owner_id}/sessions/{session_id}/messages/{id}`.

Dependencies: sqlalchemy, tutordesk.boundary.db.base
System role: Message persistence
"""

from datetime import datetime

from sqlalchemy import Enum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tutordesk.boundary.db.base import Base, UTCDateTime
from tutordesk.models.enums import SenderRole


class MessageModel(Base):
    """Immutable chat message; ordered by server-assigned `created_at`, then `seq`."""

    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_partition", "owner_id", "session_id", "created_at"),
    )

    # Insertion counter; breaks created_at ties in commit order.
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False)
    session_id: Mapped[str] = mapped_column(String(64), nullable=False)
    sender_id: Mapped[str] = mapped_column(String(128), nullable=False)
    sender_role: Mapped[SenderRole] = mapped_column(
        Enum(SenderRole, native_enum=False, length=16), nullable=False
    )
    sender_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
