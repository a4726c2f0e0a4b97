"""
File metadata ORM model.

Stored under the partition owner's tree; `session_id` is NULL for general
files. The blob itself lives in the blob store at `storage_path`.

Dependencies: sqlalchemy, tutordesk.boundary.db.base
System role: File metadata persistence
"""

from datetime import datetime

from sqlalchemy import BigInteger, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from tutordesk.boundary.db.base import Base, UTCDateTime


class FileModel(Base):
    """
    File metadata record.

    Attributes:
        owner_id: Uploader of the file
        partition_owner_id: User whose partition holds the record
    """

    __tablename__ = "files"
    __table_args__ = (
        Index("ix_files_partition", "partition_owner_id", "session_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    session_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False)
    partition_owner_id: Mapped[str] = mapped_column(String(128), nullable=False)
    name: Mapped[str] = mapped_column(String(512), nullable=False)
    storage_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    content_type: Mapped[str] = mapped_column(
        String(255), nullable=False, default="application/octet-stream"
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
