"""
Message CRUD operations.

Dependencies: sqlalchemy, tutordesk.boundary.db.models
System role: Message persistence operations
"""

from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tutordesk.boundary.db.CRUD.base_crud import BaseCRUD
from tutordesk.boundary.db.models.message_model import MessageModel


class MessageCRUD(BaseCRUD[MessageModel]):
    """
    CRUD operations for MessageModel.

    Messages are append-only: there is no update path.
    """

    def __init__(self) -> None:
        """Initialize MessageCRUD with MessageModel."""
        super().__init__(MessageModel)

    async def list_for_session(
        self,
        session: AsyncSession,
        owner_id: str,
        session_id: str,
    ) -> Sequence[MessageModel]:
        """
        List a session's messages in commit order (oldest first).

        Args:
            session: Async database session
            owner_id: Partition owner
            session_id: Parent session id

        Returns:
            Sequence of MessageModels
        """
        stmt = (
            select(MessageModel)
            .where(
                MessageModel.owner_id == owner_id,
                MessageModel.session_id == session_id,
            )
            .order_by(MessageModel.created_at, MessageModel.seq)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def delete_for_session(
        self,
        session: AsyncSession,
        owner_id: str,
        session_id: str,
    ) -> int:
        """
        Bulk-delete a session's messages.

        Returns:
            Number of rows removed (0 when already gone)
        """
        stmt = delete(MessageModel).where(
            MessageModel.owner_id == owner_id,
            MessageModel.session_id == session_id,
        )
        result = await session.execute(stmt)
        return result.rowcount


message_crud = MessageCRUD()
