"""
Subscription fan-out.

Turns change-feed notifications into live streams of full, ordered
snapshots. Each subscription owns one worker task that reloads its query
after every relevant commit; bursts of commits collapse into a single
reload, and reloads run one at a time so deliveries follow commit order.

Consumers either iterate (`async for snapshot in subscription`) or pass a
callback. `unsubscribe()` can be called any number of times.

Dependencies: tenacity, tutordesk.boundary.db, tutordesk.boundary.events
System role: Live snapshot streams for session lists, messages and files
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Generic, Iterable, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tutordesk.boundary.db.record_store import RecordStore
from tutordesk.boundary.events.change_feed import WatchHandle
from tutordesk.core.exceptions import TransientStoreFailure, TutorDeskException

logger = logging.getLogger(__name__)

T = TypeVar("T")

Loader = Callable[[AsyncSession], Awaitable[T]]
SnapshotCallback = Callable[[T], Any]

_END = object()


class Subscription(Generic[T]):
    """
    A live stream of snapshots.

    Attributes:
        name: Stream name used in logs
        delivered: Number of snapshots handed to the consumer so far
    """

    def __init__(
        self,
        hub: "SubscriptionHub",
        name: str,
        topics: tuple[str, ...],
        loader: Loader[T],
        callback: SnapshotCallback | None = None,
    ) -> None:
        self.name = name
        self.delivered = 0
        self._hub = hub
        self._topics = topics
        self._loader = loader
        self._callback = callback
        self._queue: asyncio.Queue = asyncio.Queue()
        self._dirty = asyncio.Event()
        self._handles: list[WatchHandle] = []
        self._task: asyncio.Task | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _start(self) -> None:
        feed = self._hub.store.change_feed
        # Watch before the first load so no commit slips between them.
        self._handles = [feed.watch(topic, self._on_change) for topic in self._topics]
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"subscription:{self.name}"
        )

    def _on_change(self, topic: str, sequence: int) -> None:
        if not self._closed:
            self._dirty.set()

    async def _run(self) -> None:
        while not self._closed:
            self._dirty.clear()
            try:
                snapshot = await self._hub.load(self.name, self._loader)
            except (TutorDeskException, SQLAlchemyError) as e:
                logger.error(
                    f"Snapshot load failed for {self.name}, waiting for next change: {e}",
                    extra={"subscription": self.name, "error_type": type(e).__name__},
                )
            except Exception as e:
                # Loader bugs (bad rows, schema drift) must not end the stream.
                logger.exception(
                    f"Unexpected snapshot error for {self.name}, waiting for next change",
                    extra={"subscription": self.name, "error_type": type(e).__name__},
                )
            else:
                await self._deliver(snapshot)
            await self._dirty.wait()

    async def _deliver(self, snapshot: T) -> None:
        if self._closed:
            return
        self.delivered += 1
        if self._callback is None:
            self._queue.put_nowait(snapshot)
            return
        try:
            result = self._callback(snapshot)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(
                f"Subscription callback failed for {self.name}: {e}",
                extra={"subscription": self.name},
            )

    def unsubscribe(self) -> None:
        """Stop deliveries, release the feed watches and end iteration."""
        if self._closed:
            return
        self._closed = True
        feed = self._hub.store.change_feed
        for handle in self._handles:
            feed.unwatch(handle)
        self._handles = []
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._queue.put_nowait(_END)
        logger.debug(f"Unsubscribed {self.name}")

    async def receive(self, timeout: float | None = None) -> T:
        """
        Wait for the next snapshot.

        Raises:
            StopAsyncIteration: If the subscription has ended
            asyncio.TimeoutError: If nothing arrives within `timeout`
        """
        item = await asyncio.wait_for(self._queue.get(), timeout)
        if item is _END:
            # Keep the marker for any other waiter.
            self._queue.put_nowait(_END)
            raise StopAsyncIteration
        return item

    def __aiter__(self) -> "Subscription[T]":
        return self

    async def __anext__(self) -> T:
        return await self.receive()

    async def __aenter__(self) -> "Subscription[T]":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()


class SubscriptionHub:
    """Creates subscriptions bound to one record store and its change feed."""

    def __init__(
        self,
        store: RecordStore,
        retry_attempts: int = 3,
        retry_backoff_seconds: float = 0.5,
    ) -> None:
        """
        Initialize subscription hub.

        Args:
            store: Record store whose change feed drives reloads
            retry_attempts: Tries per snapshot load
            retry_backoff_seconds: Base delay between those tries
        """
        self.store = store
        self._attempts = max(1, retry_attempts)
        self._backoff = retry_backoff_seconds

    def subscribe(
        self,
        name: str,
        topics: Iterable[str],
        loader: Loader[T],
        callback: SnapshotCallback | None = None,
    ) -> Subscription[T]:
        """
        Start a stream. The first delivery is the current snapshot.

        Args:
            name: Stream name for logs
            topics: Change-feed topics that invalidate the snapshot
            loader: Query producing the snapshot inside a read transaction
            callback: Receives each snapshot instead of the iterator

        Returns:
            Subscription: Running subscription
        """
        subscription = Subscription(self, name, tuple(topics), loader, callback)
        subscription._start()
        return subscription

    async def load(self, name: str, loader: Loader[T]) -> T:
        """Run a snapshot query, retrying transient failures."""
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(TransientStoreFailure),
            stop=stop_after_attempt(self._attempts),
            wait=wait_exponential(multiplier=self._backoff, max=5),
            before_sleep=lambda retry_state: logger.warning(
                f"{__name__}:{name} - Retry {retry_state.attempt_number}/{self._attempts}"
            ),
            reraise=True,
        ):
            with attempt:
                return await self.store.execute(f"load_{name}", loader)
