"""
Mirror reconciler.

Periodic convergence job for the global mirror. Re-projects owner
sessions whose mirror copy is missing or behind, and removes mirror copies
whose owner record no longer exists.

Dependencies: tutordesk.application.services, tutordesk.boundary.db.CRUD
System role: Scheduled repair of swallowed mirror-write failures
"""

import logging
from dataclasses import dataclass

from tutordesk.application.services.consistency_manager import ConsistencyManager
from tutordesk.boundary.db.CRUD import mirror_session_crud, owner_session_crud
from tutordesk.core.exceptions import OrphanedReference
from tutordesk.core.partitioning import mirror_topics
from tutordesk.models.session import MirrorSession, Session
from tutordesk.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    """Counters from one reconciliation run."""

    owner_scanned: int = 0
    mirror_upserted: int = 0
    mirror_scanned: int = 0
    orphans_removed: int = 0


class MirrorReconciler:
    """Brings the mirror back in line with the owner partitions."""

    def __init__(self, manager: ConsistencyManager, batch_size: int = 200) -> None:
        self._manager = manager
        self._store = manager.store
        self._batch_size = batch_size

    async def reconcile(self) -> ReconcileReport:
        """
        Run both passes over the full data set.

        Returns:
            ReconcileReport: What was scanned and repaired
        """
        report = ReconcileReport()
        await self._repair_missing(report)
        await self._remove_orphans(report)
        logger.info(
            "Mirror reconciliation finished",
            extra={
                "owner_scanned": report.owner_scanned,
                "mirror_upserted": report.mirror_upserted,
                "mirror_scanned": report.mirror_scanned,
                "orphans_removed": report.orphans_removed,
            },
        )
        return report

    async def _repair_missing(self, report: ReconcileReport) -> None:
        after: tuple[str, str] | None = None
        while True:
            page, versions = await self._store.execute(
                "page_owner_sessions", lambda db: self._owner_page(db, after)
            )
            if not page:
                return
            report.owner_scanned += len(page)
            for session in page:
                if versions.get(session.id, 0) < session.version:
                    if await self._manager.sync_mirror(session):
                        report.mirror_upserted += 1
            after = (page[-1].owner_id, page[-1].id)

    async def _owner_page(self, db, after):
        rows = await owner_session_crud.page(db, after, self._batch_size)
        page = [Session.model_validate(row) for row in rows]
        versions = await mirror_session_crud.versions_for(db, [s.id for s in page])
        return page, versions

    async def _remove_orphans(self, report: ReconcileReport) -> None:
        after: str | None = None
        while True:
            page, existing = await self._store.execute(
                "page_mirror_sessions", lambda db: self._mirror_page(db, after)
            )
            if not page:
                return
            report.mirror_scanned += len(page)
            for record in page:
                if (record.owner_id, record.id) in existing:
                    continue
                log_exception_with_context(
                    logger,
                    "Removing orphaned mirror session",
                    OrphanedReference(
                        "Mirror session has no owner-partition record",
                        session_id=record.id,
                        details={"owner_id": record.owner_id},
                    ),
                    level=logging.WARNING,
                    session_id=record.id,
                )
                removed = await self._store.execute(
                    "delete_mirror_session",
                    lambda db, session_id=record.id: mirror_session_crud.delete_by_id(db, session_id),
                    topics=mirror_topics(record.id),
                )
                if removed:
                    report.orphans_removed += 1
            after = page[-1].id

    async def _mirror_page(self, db, after):
        rows = await mirror_session_crud.page(db, after, self._batch_size)
        page = [MirrorSession.model_validate(row) for row in rows]
        existing = await owner_session_crud.existing_keys(db, [r.id for r in page])
        return page, existing
