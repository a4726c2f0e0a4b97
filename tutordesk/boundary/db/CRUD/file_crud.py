"""
File metadata CRUD operations.

Dependencies: sqlalchemy, tutordesk.boundary.db.models
System role: File metadata persistence operations
"""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tutordesk.boundary.db.CRUD.base_crud import BaseCRUD
from tutordesk.boundary.db.models.file_model import FileModel


class FileCRUD(BaseCRUD[FileModel]):
    """
    CRUD operations for FileModel.

    Extends BaseCRUD with partition-scoped listings.
    """

    def __init__(self) -> None:
        """Initialize FileCRUD with FileModel."""
        super().__init__(FileModel)

    async def list_for_session(
        self,
        session: AsyncSession,
        partition_owner_id: str,
        session_id: str,
    ) -> Sequence[FileModel]:
        """
        List a session's files, newest first.

        Args:
            session: Async database session
            partition_owner_id: Session owner
            session_id: Parent session id

        Returns:
            Sequence of FileModels
        """
        stmt = (
            select(FileModel)
            .where(
                FileModel.partition_owner_id == partition_owner_id,
                FileModel.session_id == session_id,
            )
            .order_by(FileModel.created_at.desc(), FileModel.id)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_general(
        self,
        session: AsyncSession,
        partition_owner_id: str,
    ) -> Sequence[FileModel]:
        """List a user's general (session-less) files, newest first."""
        stmt = (
            select(FileModel)
            .where(
                FileModel.partition_owner_id == partition_owner_id,
                FileModel.session_id.is_(None),
            )
            .order_by(FileModel.created_at.desc(), FileModel.id)
        )
        result = await session.execute(stmt)
        return result.scalars().all()


file_crud = FileCRUD()
