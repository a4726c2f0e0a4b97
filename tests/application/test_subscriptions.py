"""
Test suite for SubscriptionHub and Subscription.

Covers the initial snapshot, refreshes after commits, callback delivery,
idempotent unsubscribe and change-feed fan-out.

System role: Verification of live snapshot streams
"""

import asyncio

import pytest

from tutordesk.boundary.events.change_feed import ChangeFeed
from tutordesk.core.partitioning import messages_path, user_sessions_path


class TestChangeFeed:
    def test_publish_reaches_topic_watchers_once(self) -> None:
        feed = ChangeFeed()
        seen: list[tuple[str, int]] = []
        feed.watch("a", lambda topic, seq: seen.append((topic, seq)))
        feed.watch("b", lambda topic, seq: seen.append((topic, seq)))

        sequence = feed.publish(["a", "a", "c"])

        assert sequence == 1
        assert seen == [("a", 1)]

    def test_failing_watcher_does_not_block_others(self) -> None:
        feed = ChangeFeed()
        seen: list[int] = []

        def broken(topic, seq):
            raise RuntimeError("boom")

        feed.watch("a", broken)
        feed.watch("a", lambda topic, seq: seen.append(seq))

        feed.publish(["a"])

        assert seen == [1]

    def test_unwatch_twice_is_harmless(self) -> None:
        feed = ChangeFeed()
        handle = feed.watch("a", lambda topic, seq: None)

        feed.unwatch(handle)
        feed.unwatch(handle)

        assert feed.watcher_count("a") == 0


class TestSessionStream:
    async def test_initial_snapshot_then_updates(
        self, session_service, student, wait_for_snapshot
    ) -> None:
        subscription = await session_service.list_sessions(student)
        try:
            initial = await subscription.receive(timeout=3.0)
            assert initial == []

            created = await session_service.create_session(student, "Calc I")

            latest = await wait_for_snapshot(subscription, lambda snapshot: len(snapshot) == 1)
            assert latest[0].id == created.id
        finally:
            subscription.unsubscribe()

    async def test_message_stream_follows_commits(
        self, session_service, student, staff, wait_for_snapshot
    ) -> None:
        session = await session_service.create_session(student, "Calc I")

        async with await session_service.list_messages(staff, session.id, student.id) as stream:
            await wait_for_snapshot(stream, lambda snapshot: len(snapshot) == 1)
            await session_service.add_message(student, session.id, "first")
            await session_service.add_message(student, session.id, "second")

            latest = await wait_for_snapshot(stream, lambda snapshot: len(snapshot) == 3)

        assert [m.content for m in latest[1:]] == ["first", "second"]


class TestUnsubscribe:
    async def test_unsubscribe_is_idempotent_and_releases_watches(
        self, session_service, record_store, student
    ) -> None:
        feed = record_store.change_feed
        topic = user_sessions_path(student.id)
        subscription = await session_service.list_sessions(student)
        assert feed.watcher_count(topic) == 1

        subscription.unsubscribe()
        subscription.unsubscribe()

        assert subscription.closed is True
        assert feed.watcher_count(topic) == 0

    async def test_iteration_ends_after_unsubscribe(self, session_service, student) -> None:
        subscription = await session_service.list_sessions(student)
        await subscription.receive(timeout=3.0)

        subscription.unsubscribe()
        collected = [snapshot async for snapshot in subscription]

        assert collected == []

    async def test_no_deliveries_after_unsubscribe(self, session_service, student) -> None:
        subscription = await session_service.list_sessions(student)
        await subscription.receive(timeout=3.0)
        delivered = subscription.delivered

        subscription.unsubscribe()
        await session_service.create_session(student, "Calc I")
        await asyncio.sleep(0.05)

        assert subscription.delivered == delivered


class TestCallbackMode:
    async def test_callback_receives_snapshots(self, hub, session_service, student) -> None:
        session = await session_service.create_session(student, "Calc I")
        received: list[int] = []
        done = asyncio.Event()

        async def on_snapshot(snapshot):
            received.append(len(snapshot))
            if len(snapshot) == 2:
                done.set()

        async def load(db):
            from tutordesk.boundary.db.CRUD import message_crud

            return list(await message_crud.list_for_session(db, student.id, session.id))

        subscription = hub.subscribe(
            "test-messages", (messages_path(student.id, session.id),), load, on_snapshot
        )
        try:
            await session_service.add_message(student, session.id, "ping")
            await asyncio.wait_for(done.wait(), 3.0)
        finally:
            subscription.unsubscribe()

        assert received[0] in (1, 2)
        assert received[-1] == 2

    async def test_unexpected_loader_error_keeps_stream_alive(
        self, hub, session_service, student, caplog
    ) -> None:
        # Arrange: the first load blows up with a non-store error
        calls = 0

        async def load(db):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise ValueError("row failed validation")
            return calls

        subscription = hub.subscribe("test-sessions", (user_sessions_path(student.id),), load)
        try:
            # Act: a commit on the watched topic triggers a reload
            await asyncio.sleep(0)
            await session_service.create_session(student, "Calc I")
            snapshot = await subscription.receive(timeout=3.0)
        finally:
            subscription.unsubscribe()

        # Assert
        assert snapshot >= 2
        assert "Unexpected snapshot error for test-sessions" in caplog.text

    async def test_receive_times_out_without_changes(self, hub, session_service, student) -> None:
        subscription = await session_service.list_sessions(student)
        try:
            await subscription.receive(timeout=3.0)
            with pytest.raises(asyncio.TimeoutError):
                await subscription.receive(timeout=0.05)
        finally:
            subscription.unsubscribe()
