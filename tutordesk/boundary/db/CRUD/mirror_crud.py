"""
Mirror session CRUD operations.

Provides the version-guarded upsert used by every dual write, staff-wide
queries, and the stale-record scan used by the retention sweeper.

Dependencies: sqlalchemy, tutordesk.boundary.db.models
System role: Global mirror persistence operations
"""

from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tutordesk.boundary.db.CRUD.base_crud import BaseCRUD
from tutordesk.boundary.db.models.mirror_model import MirrorSessionModel
from tutordesk.models.enums import SessionStatus


def _dialect_insert(session: AsyncSession):
    """Pick the INSERT construct that supports ON CONFLICT for the bound dialect."""
    if session.get_bind().dialect.name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    else:
        from sqlalchemy.dialects.sqlite import insert
    return insert


class MirrorSessionCRUD(BaseCRUD[MirrorSessionModel]):
    """CRUD operations for MirrorSessionModel."""

    def __init__(self) -> None:
        """Initialize MirrorSessionCRUD with MirrorSessionModel."""
        super().__init__(MirrorSessionModel)

    async def upsert_projection(
        self,
        session: AsyncSession,
        projection: dict[str, Any],
    ) -> bool:
        """
        Insert or refresh a mirror record from an owner-record projection.

        The update only applies when the incoming `source_version` is newer
        than the stored one, so replays and out-of-order writes converge on
        the latest owner state.

        Args:
            session: Async database session
            projection: Column values including `id` and `source_version`

        Returns:
            True if a row was inserted or updated
        """
        insert = _dialect_insert(session)
        stmt = insert(MirrorSessionModel).values(**projection)
        stmt = stmt.on_conflict_do_update(
            index_elements=[MirrorSessionModel.id],
            set_={key: stmt.excluded[key] for key in projection if key != "id"},
            where=MirrorSessionModel.source_version < stmt.excluded.source_version,
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def mark_deleted(
        self,
        session: AsyncSession,
        session_id: str,
        at: datetime,
        auto_deleted: bool = True,
    ) -> bool:
        """
        Mark a mirror record Deleted without touching its owner copy.

        Used only for orphaned mirror records. Keeps `source_version` so a
        later owner projection still wins.
        """
        stmt = (
            update(MirrorSessionModel)
            .where(MirrorSessionModel.id == session_id)
            .values(status=SessionStatus.DELETED, auto_deleted=auto_deleted, updated_at=at)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def query(
        self,
        session: AsyncSession,
        status: SessionStatus | None = None,
        owner_id: str | None = None,
        limit: int | None = None,
    ) -> Sequence[MirrorSessionModel]:
        """
        Staff console query, newest first.

        Args:
            session: Async database session
            status: Optional status filter
            owner_id: Restrict to one owner (student self-queries)
            limit: Maximum number of records

        Returns:
            Sequence of MirrorSessionModels ordered by created_at descending
        """
        stmt = select(MirrorSessionModel)
        if status is not None:
            stmt = stmt.where(MirrorSessionModel.status == status)
        if owner_id is not None:
            stmt = stmt.where(MirrorSessionModel.owner_id == owner_id)
        stmt = stmt.order_by(MirrorSessionModel.created_at.desc(), MirrorSessionModel.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def find_stale(
        self,
        session: AsyncSession,
        cutoff: datetime,
        limit: int,
        after: tuple[datetime, str] | None = None,
    ) -> Sequence[MirrorSessionModel]:
        """
        Find non-deleted records last updated before `cutoff`.

        Args:
            session: Async database session
            cutoff: Records with updated_at strictly older than this match
            limit: Page size
            after: Keyset cursor `(updated_at, id)` of the last record seen

        Returns:
            Sequence of MirrorSessionModels, oldest first
        """
        stmt = select(MirrorSessionModel).where(
            MirrorSessionModel.status != SessionStatus.DELETED,
            MirrorSessionModel.updated_at < cutoff,
        )
        if after is not None:
            after_at, after_id = after
            stmt = stmt.where(
                or_(
                    MirrorSessionModel.updated_at > after_at,
                    and_(
                        MirrorSessionModel.updated_at == after_at,
                        MirrorSessionModel.id > after_id,
                    ),
                )
            )
        stmt = stmt.order_by(MirrorSessionModel.updated_at, MirrorSessionModel.id).limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count_by_status(self, session: AsyncSession) -> dict[SessionStatus, int]:
        """
        Count mirror records per status.

        Returns:
            Mapping of status to record count (statuses with no rows omitted)
        """
        stmt = select(MirrorSessionModel.status, func.count()).group_by(
            MirrorSessionModel.status
        )
        result = await session.execute(stmt)
        return {status: count for status, count in result.all()}

    async def page(
        self,
        session: AsyncSession,
        after_id: str | None,
        limit: int,
    ) -> Sequence[MirrorSessionModel]:
        """Keyset page over the mirror ordered by id."""
        stmt = select(MirrorSessionModel)
        if after_id is not None:
            stmt = stmt.where(MirrorSessionModel.id > after_id)
        stmt = stmt.order_by(MirrorSessionModel.id).limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def versions_for(
        self,
        session: AsyncSession,
        session_ids: Sequence[str],
    ) -> dict[str, int]:
        """Map each existing mirror id in `session_ids` to its source_version."""
        if not session_ids:
            return {}
        stmt = select(MirrorSessionModel.id, MirrorSessionModel.source_version).where(
            MirrorSessionModel.id.in_(list(session_ids))
        )
        result = await session.execute(stmt)
        return {session_id: version for session_id, version in result.all()}


mirror_session_crud = MirrorSessionCRUD()
