"""
In-process change feed.

Topics are partition paths (`users/{owner}/sessions`, `sessions/{id}`,
...). The record store publishes the topics a transaction touched after
commit, stamped with a monotonically increasing sequence number; watchers
are plain callables invoked synchronously on the event loop thread.

Dependencies: None
System role: Commit notifications feeding the subscription hub
"""

import itertools
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Iterable

logger = logging.getLogger(__name__)

# TODO: bridge publish() over Postgres LISTEN/NOTIFY so API replicas see
# each other's commits.

Watcher = Callable[[str, int], None]


@dataclass(frozen=True)
class WatchHandle:
    """Token returned by `watch`, passed back to `unwatch`."""

    topic: str
    key: int


class ChangeFeed:
    """Topic-based commit notification fan-out."""

    def __init__(self) -> None:
        self._watchers: dict[str, dict[int, Watcher]] = defaultdict(dict)
        self._keys = itertools.count(1)
        self._sequence = 0

    @property
    def sequence(self) -> int:
        """Sequence number of the last published commit."""
        return self._sequence

    def watch(self, topic: str, callback: Watcher) -> WatchHandle:
        """
        Register `callback(topic, sequence)` for commits touching `topic`.

        Returns:
            WatchHandle: Handle for `unwatch`
        """
        key = next(self._keys)
        self._watchers[topic][key] = callback
        return WatchHandle(topic=topic, key=key)

    def unwatch(self, handle: WatchHandle) -> None:
        """Remove a watcher. Unknown or already-removed handles are ignored."""
        watchers = self._watchers.get(handle.topic)
        if not watchers:
            return
        watchers.pop(handle.key, None)
        if not watchers:
            del self._watchers[handle.topic]

    def watcher_count(self, topic: str) -> int:
        return len(self._watchers.get(topic, {}))

    def publish(self, topics: Iterable[str]) -> int:
        """
        Notify watchers of every topic touched by one commit.

        Args:
            topics: Topics written in the committed transaction

        Returns:
            int: Sequence number assigned to the commit
        """
        self._sequence += 1
        sequence = self._sequence
        for topic in dict.fromkeys(topics):
            for callback in list(self._watchers.get(topic, {}).values()):
                try:
                    callback(topic, sequence)
                except Exception as e:
                    logger.error(
                        f"Change feed watcher failed for {topic}: {e}",
                        extra={"topic": topic, "sequence": sequence},
                    )
        return sequence
