"""
Owner-partition session CRUD operations.

Every lookup is scoped by (owner_id, session_id): a session is only
reachable through its owner's partition.

Dependencies: sqlalchemy, tutordesk.boundary.db.models
System role: Owner-partition session persistence operations
"""

from typing import Any, Sequence

from sqlalchemy import delete, select, tuple_, update
from sqlalchemy.ext.asyncio import AsyncSession

from tutordesk.boundary.db.CRUD.base_crud import BaseCRUD
from tutordesk.boundary.db.models.session_model import OwnerSessionModel


class OwnerSessionCRUD(BaseCRUD[OwnerSessionModel]):
    """
    CRUD operations for OwnerSessionModel.

    Extends BaseCRUD with partition-scoped reads and a versioned
    single-statement update.
    """

    def __init__(self) -> None:
        """Initialize OwnerSessionCRUD with OwnerSessionModel."""
        super().__init__(OwnerSessionModel)

    async def get(
        self,
        session: AsyncSession,
        owner_id: str,
        session_id: str,
        for_update: bool = False,
    ) -> OwnerSessionModel | None:
        """
        Retrieve a session from its owner's partition.

        Args:
            session: Async database session
            owner_id: Partition owner
            session_id: Session id
            for_update: Lock the row for a read-modify-write

        Returns:
            OwnerSessionModel if found, None otherwise
        """
        stmt = select(OwnerSessionModel).where(
            OwnerSessionModel.owner_id == owner_id,
            OwnerSessionModel.id == session_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def apply_patch(
        self,
        session: AsyncSession,
        owner_id: str,
        session_id: str,
        patch: dict[str, Any],
    ) -> OwnerSessionModel | None:
        """
        Apply a field patch and bump `version` in one statement.

        Args:
            session: Async database session
            owner_id: Partition owner
            session_id: Session id
            patch: Column values to set

        Returns:
            Updated OwnerSessionModel, None when the session is absent
        """
        stmt = (
            update(OwnerSessionModel)
            .where(
                OwnerSessionModel.owner_id == owner_id,
                OwnerSessionModel.id == session_id,
            )
            .values(**patch, version=OwnerSessionModel.version + 1)
            .returning(OwnerSessionModel)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete(self, session: AsyncSession, owner_id: str, session_id: str) -> bool:
        """
        Delete a session document. Absent documents are a no-op.

        Returns:
            True if a row was removed
        """
        stmt = delete(OwnerSessionModel).where(
            OwnerSessionModel.owner_id == owner_id,
            OwnerSessionModel.id == session_id,
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def list_for_owner(
        self,
        session: AsyncSession,
        owner_id: str,
        include_hidden: bool = False,
    ) -> Sequence[OwnerSessionModel]:
        """
        List a user's sessions, newest first.

        Args:
            session: Async database session
            owner_id: Partition owner
            include_hidden: Include sessions the owner hid

        Returns:
            Sequence of OwnerSessionModels ordered by created_at descending
        """
        stmt = select(OwnerSessionModel).where(OwnerSessionModel.owner_id == owner_id)
        if not include_hidden:
            stmt = stmt.where(OwnerSessionModel.hidden.is_(False))
        stmt = stmt.order_by(OwnerSessionModel.created_at.desc(), OwnerSessionModel.id)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def page(
        self,
        session: AsyncSession,
        after: tuple[str, str] | None,
        limit: int,
    ) -> Sequence[OwnerSessionModel]:
        """
        Keyset page across every partition, ordered by (owner_id, id).

        Args:
            session: Async database session
            after: Last (owner_id, id) of the previous page, None for the first
            limit: Page size

        Returns:
            Sequence of OwnerSessionModels
        """
        stmt = select(OwnerSessionModel)
        if after is not None:
            stmt = stmt.where(
                tuple_(OwnerSessionModel.owner_id, OwnerSessionModel.id) > tuple_(*after)
            )
        stmt = stmt.order_by(OwnerSessionModel.owner_id, OwnerSessionModel.id).limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def existing_keys(
        self,
        session: AsyncSession,
        session_ids: Sequence[str],
    ) -> set[tuple[str, str]]:
        """Return the (owner_id, id) pairs present among `session_ids`."""
        if not session_ids:
            return set()
        stmt = select(OwnerSessionModel.owner_id, OwnerSessionModel.id).where(
            OwnerSessionModel.id.in_(list(session_ids))
        )
        result = await session.execute(stmt)
        return {(owner_id, session_id) for owner_id, session_id in result.all()}


owner_session_crud = OwnerSessionCRUD()
