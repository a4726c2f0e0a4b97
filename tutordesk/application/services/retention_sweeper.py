"""
Retention sweeper.

Scheduled soft deletion of inactive sessions. Scans the mirror for
sessions whose last update is older than the inactivity threshold and
marks them Deleted (with `auto_deleted`) through the consistency
manager's dual-write path. Runs as a system job: no actor, no permission
check.

Dependencies: tutordesk.application.services, tutordesk.boundary.db.CRUD
System role: Scheduled inactivity cleanup
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError

from tutordesk.application.services.consistency_manager import ConsistencyManager
from tutordesk.boundary.db.CRUD import mirror_session_crud, owner_session_crud
from tutordesk.core.exceptions import (
    OrphanedReference,
    SessionNotFoundError,
    TransientStoreFailure,
)
from tutordesk.core.partitioning import mirror_topics
from tutordesk.models.enums import SessionStatus
from tutordesk.models.session import MirrorSession, Session
from tutordesk.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """Marks long-inactive sessions Deleted in both partitions."""

    def __init__(
        self,
        manager: ConsistencyManager,
        inactivity_hours: float = 24.0,
        batch_size: int = 100,
    ) -> None:
        """
        Initialize retention sweeper.

        Args:
            manager: Consistency manager used for the dual write
            inactivity_hours: Idle time after which a session is swept
            batch_size: Mirror records fetched per page
        """
        self._manager = manager
        self._store = manager.store
        self._threshold = timedelta(hours=inactivity_hours)
        self._batch_size = batch_size

    async def sweep_inactive_sessions(self, now: datetime | None = None) -> int:
        """
        Sweep every session idle for longer than the threshold.

        Resumable and idempotent: swept sessions are Deleted and no longer
        match the scan. Orphaned mirror records and per-session store
        failures are logged and skipped.

        Args:
            now: Reference time (defaults to the manager's clock)

        Returns:
            int: Number of sessions marked Deleted through the dual write
        """
        now = now or self._manager.now()
        cutoff = now - self._threshold
        cursor: tuple[datetime, str] | None = None
        scanned = 0
        swept = 0

        while True:
            batch = await self._store.execute(
                "find_stale_sessions",
                lambda db: self._find_stale(db, cutoff, cursor),
            )
            if not batch:
                break
            for record in batch:
                scanned += 1
                if await self._sweep_one(record, cutoff, now):
                    swept += 1
            # Failed records keep their position; the cursor moves past them.
            cursor = (batch[-1].updated_at, batch[-1].id)

        logger.info(
            f"Retention sweep finished: {swept} sessions marked deleted",
            extra={"swept": swept, "scanned": scanned, "cutoff": cutoff.isoformat()},
        )
        return swept

    async def _find_stale(
        self, db, cutoff: datetime, after: tuple[datetime, str] | None
    ) -> list[MirrorSession]:
        rows = await mirror_session_crud.find_stale(db, cutoff, self._batch_size, after)
        return [MirrorSession.model_validate(row) for row in rows]

    async def _sweep_one(self, record: MirrorSession, cutoff: datetime, now: datetime) -> bool:
        try:
            owner = await self._load_owner(record)
            if owner is None:
                raise OrphanedReference(
                    "Mirror session has no owner-partition record",
                    session_id=record.id,
                    details={"owner_id": record.owner_id},
                )
            if owner.status != SessionStatus.DELETED and owner.updated_at >= cutoff:
                # Mirror lagged behind a recent owner write; refresh it instead.
                await self._manager.sync_mirror(owner)
                return False
            await self._manager.write_session(
                record.owner_id,
                record.id,
                {"status": SessionStatus.DELETED, "auto_deleted": True, "updated_at": now},
            )
            return True
        except (OrphanedReference, SessionNotFoundError) as e:
            log_exception_with_context(
                logger,
                "Orphaned mirror session skipped by sweeper",
                e,
                level=logging.WARNING,
                session_id=record.id,
                owner_id=record.owner_id,
            )
            await self._retire_orphan(record, now)
        except TransientStoreFailure as e:
            log_exception_with_context(
                logger,
                "Sweep of session failed, continuing with batch",
                e,
                session_id=record.id,
                owner_id=record.owner_id,
            )
        return False

    async def _load_owner(self, record: MirrorSession) -> Session | None:
        async def _get(db):
            row = await owner_session_crud.get(db, record.owner_id, record.id)
            return Session.model_validate(row) if row else None

        return await self._store.execute("get_owner_session", _get)

    async def _retire_orphan(self, record: MirrorSession, now: datetime) -> None:
        try:
            await self._store.execute(
                "mark_mirror_deleted",
                lambda db: mirror_session_crud.mark_deleted(db, record.id, now),
                topics=mirror_topics(record.id),
            )
        except (TransientStoreFailure, SQLAlchemyError) as e:
            log_exception_with_context(
                logger,
                "Could not mark orphaned mirror session deleted",
                e,
                level=logging.WARNING,
                session_id=record.id,
            )
