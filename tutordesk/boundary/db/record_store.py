"""
Record store.

Runs one unit of document work per transaction under a timeout, maps
driver failures to TransientStoreFailure, and publishes change
notifications for the touched topics once the transaction has committed.

Dependencies: sqlalchemy, tutordesk.boundary.events, tutordesk.configs
System role: Single entry point to the database for every service
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tutordesk.boundary.db.connection import get_async_engine, get_async_session_factory
from tutordesk.boundary.events.change_feed import ChangeFeed
from tutordesk.configs.settings import Settings
from tutordesk.core.exceptions import TransientStoreFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")

Work = Callable[[AsyncSession], Awaitable[T]]


class RecordStore:
    """
    Transactional executor over an async session factory.

    Each `execute` call is one atomic read-modify-write: the work function
    receives a session inside an open transaction, and its changes are
    committed together or not at all.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        change_feed: ChangeFeed | None = None,
        op_timeout: float = 10.0,
        engine: AsyncEngine | None = None,
    ) -> None:
        """
        Initialize record store.

        Args:
            session_factory: Async session factory bound to the database
            change_feed: Feed receiving post-commit notifications
            op_timeout: Seconds before a single operation counts as failed
            engine: Engine behind the factory, disposed on shutdown
        """
        self._session_factory = session_factory
        self.engine = engine
        self._change_feed = change_feed or ChangeFeed()
        self._op_timeout = op_timeout

    @property
    def change_feed(self) -> ChangeFeed:
        return self._change_feed

    async def dispose(self) -> None:
        """Close pooled connections."""
        if self.engine is not None:
            await self.engine.dispose()

    async def execute(
        self,
        operation: str,
        work: Work[T],
        topics: Iterable[str] = (),
    ) -> T:
        """
        Run `work` in its own transaction.

        Args:
            operation: Name used in logs and failure details
            work: Coroutine function receiving the transactional session
            topics: Change-feed topics notified after a successful commit

        Returns:
            Whatever `work` returns

        Raises:
            TransientStoreFailure: On timeout or connection-level errors
        """
        try:
            return await asyncio.wait_for(self._run(work, tuple(topics)), self._op_timeout)
        except asyncio.TimeoutError as e:
            logger.warning(
                f"Store operation timed out: {operation}",
                extra={"operation": operation, "timeout_seconds": self._op_timeout},
            )
            raise TransientStoreFailure(
                f"Store operation timed out: {operation}",
                operation=operation,
                details={"timeout_seconds": self._op_timeout},
            ) from e
        except (OperationalError, InterfaceError) as e:
            logger.warning(
                f"Store operation failed: {operation}",
                extra={"operation": operation, "error": str(e.orig or e)},
            )
            raise TransientStoreFailure(
                f"Store operation failed: {operation}",
                operation=operation,
                details={"error": str(e.orig or e)},
            ) from e

    async def _run(self, work: Work[T], topics: tuple[str, ...]) -> T:
        async with self._session_factory() as db:
            async with db.begin():
                result = await work(db)
        if topics:
            self._change_feed.publish(topics)
        return result


def create_record_store(
    settings: Settings,
    change_feed: ChangeFeed | None = None,
) -> RecordStore:
    """
    Build a record store from application settings.

    Args:
        settings: Application settings
        change_feed: Optional shared feed (a new one is created otherwise)

    Returns:
        RecordStore: Store bound to a fresh engine
    """
    engine = get_async_engine(settings.database)
    return RecordStore(
        get_async_session_factory(engine),
        change_feed=change_feed,
        op_timeout=settings.replication.store_op_timeout_seconds,
        engine=engine,
    )
