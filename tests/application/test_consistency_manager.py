"""
Test suite for ConsistencyManager.

Covers owner-first dual writes, swallowed mirror failures, the single
retry of authoritative writes, version-guarded mirror upserts, the file
pair ordering and resumable cascading deletion. Runs against a real
SQLite store; failures are injected by patching CRUD singletons.

System role: Verification of replication and deletion sequences
"""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from tutordesk.boundary.db.CRUD import (
    file_crud,
    message_crud,
    mirror_session_crud,
    owner_session_crud,
)
from tutordesk.core.exceptions import (
    PartialDeletionFailure,
    SessionNotFoundError,
    TransientStoreFailure,
)
from tutordesk.core.partitioning import mirror_projection
from tutordesk.models.enums import SenderRole, SessionMode, SessionStatus
from tutordesk.models.message import Message


def _db_error() -> OperationalError:
    return OperationalError("UPDATE", {}, Exception("connection reset"))


async def _owner(store, owner_id, session_id):
    return await store.execute("t_owner", lambda db: owner_session_crud.get(db, owner_id, session_id))


async def _mirror(store, session_id):
    return await store.execute("t_mirror", lambda db: mirror_session_crud.get_by_id(db, session_id))


class TestCreateSession:
    async def test_creates_owner_mirror_and_welcome_message(
        self, session_service, record_store, student
    ) -> None:
        # Act
        session = await session_service.create_session(
            student, "Calc I", "Limits", SessionMode.FULL_SOLUTION
        )

        # Assert
        owner = await _owner(record_store, student.id, session.id)
        mirror = await _mirror(record_store, session.id)
        messages = await record_store.execute(
            "t_messages", lambda db: message_crud.list_for_session(db, student.id, session.id)
        )
        assert owner.status == SessionStatus.ACTIVE
        assert owner.version == 1
        assert mirror.subject == "Calc I"
        assert mirror.source_version == 1
        assert mirror.created_at == owner.created_at
        assert len(messages) == 1
        assert messages[0].sender_role == SenderRole.SYSTEM
        assert "Full Solutions channel" in messages[0].content

    async def test_mirror_failure_does_not_fail_creation(
        self, session_service, record_store, student
    ) -> None:
        # Arrange
        with patch.object(mirror_session_crud, "upsert_projection", side_effect=_db_error()):
            # Act
            session = await session_service.create_session(student, "Physics", "Vectors")

        # Assert
        assert await _owner(record_store, student.id, session.id) is not None
        assert await _mirror(record_store, session.id) is None


class TestMessageOrdering:
    async def test_messages_follow_commit_order_under_frozen_clock(
        self, session_service, record_store, student
    ) -> None:
        # Arrange: the clock never moves, so every write sees the same instant
        session = await session_service.create_session(student, "Calc I")

        # Act
        await session_service.add_message(student, session.id, "first")
        await session_service.add_message(student, session.id, "second")

        # Assert
        messages = await record_store.execute(
            "t_messages", lambda db: message_crud.list_for_session(db, student.id, session.id)
        )
        assert [m.sender_role for m in messages] == [
            SenderRole.SYSTEM,
            SenderRole.STUDENT,
            SenderRole.STUDENT,
        ]
        assert [m.content for m in messages[1:]] == ["first", "second"]
        stamps = [m.created_at for m in messages]
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == 3

    async def test_equal_timestamps_fall_back_to_insertion_order(
        self, manager, session_service, record_store, student, clock
    ) -> None:
        # Arrange
        session = await session_service.create_session(student, "Calc I")
        base = {
            "session_id": session.id,
            "owner_id": student.id,
            "sender_id": student.id,
            "sender_role": SenderRole.STUDENT,
            "sender_name": "Ada",
            "created_at": clock(),
        }

        # Act: ids chosen so that sorting by id would reverse them
        await manager.insert_message(Message(id="zzz", content="older", **base))
        await manager.insert_message(Message(id="aaa", content="newer", **base))

        # Assert
        messages = await record_store.execute(
            "t_messages", lambda db: message_crud.list_for_session(db, student.id, session.id)
        )
        assert [m.content for m in messages if m.sender_role == SenderRole.STUDENT] == [
            "older",
            "newer",
        ]


class TestWriteSession:
    async def test_patch_reaches_both_copies_with_bumped_version(
        self, manager, session_service, record_store, student, clock
    ) -> None:
        # Arrange
        session = await session_service.create_session(student, "Calc I", "Limits")
        later = clock.advance(minutes=5)

        # Act
        updated = await manager.write_session(
            student.id, session.id, {"status": SessionStatus.CLOSED, "updated_at": later}
        )

        # Assert
        mirror = await _mirror(record_store, session.id)
        assert updated.version == 2
        assert mirror.status == SessionStatus.CLOSED
        assert mirror.updated_at == later
        assert mirror.source_version == 2

    async def test_mirror_failure_is_swallowed(
        self, manager, session_service, record_store, student
    ) -> None:
        # Arrange
        session = await session_service.create_session(student, "Calc I", "Limits")

        # Act
        with patch.object(mirror_session_crud, "upsert_projection", side_effect=_db_error()):
            updated = await manager.write_session(
                student.id, session.id, {"status": SessionStatus.WAITING_FOR_STAFF}
            )

        # Assert
        mirror = await _mirror(record_store, session.id)
        assert updated.status == SessionStatus.WAITING_FOR_STAFF
        assert mirror.status == SessionStatus.ACTIVE

    async def test_owner_write_retried_once(
        self, manager, session_service, student
    ) -> None:
        # Arrange
        session = await session_service.create_session(student, "Calc I", "Limits")
        original = owner_session_crud.apply_patch
        calls = 0

        async def flaky(db, *args):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise _db_error()
            return await original(db, *args)

        # Act
        with patch.object(owner_session_crud, "apply_patch", side_effect=flaky):
            updated = await manager.write_session(
                student.id, session.id, {"status": SessionStatus.CLOSED}
            )

        # Assert
        assert calls == 2
        assert updated.status == SessionStatus.CLOSED

    async def test_owner_failure_surfaces_after_retry(
        self, manager, session_service, record_store, student
    ) -> None:
        # Arrange
        session = await session_service.create_session(student, "Calc I", "Limits")

        # Act / Assert
        with patch.object(owner_session_crud, "apply_patch", side_effect=_db_error()) as mocked:
            with pytest.raises(TransientStoreFailure) as exc_info:
                await manager.write_session(student.id, session.id, {"status": SessionStatus.CLOSED})

        assert mocked.call_count == 2
        assert exc_info.value.operation == "update_owner_session"
        assert (await _mirror(record_store, session.id)).status == SessionStatus.ACTIVE

    async def test_missing_owner_record_raises_not_found(self, manager, student) -> None:
        with pytest.raises(SessionNotFoundError):
            await manager.write_session(student.id, "missing", {"status": SessionStatus.CLOSED})

    async def test_hidden_flag_skips_mirror(
        self, manager, session_service, record_store, student
    ) -> None:
        # Arrange
        session = await session_service.create_session(student, "Calc I", "Limits")

        # Act
        with patch.object(mirror_session_crud, "upsert_projection") as upsert:
            await manager.write_session(student.id, session.id, {"hidden": True})

        # Assert
        upsert.assert_not_called()
        assert (await _owner(record_store, student.id, session.id)).hidden is True


class TestMirrorVersionGuard:
    async def test_older_projection_is_ignored(
        self, manager, session_service, record_store, student
    ) -> None:
        # Arrange
        session = await session_service.create_session(student, "Calc I", "Limits")
        stale = await manager.write_session(student.id, session.id, {"subject": "Calc II"})
        await manager.write_session(student.id, session.id, {"subject": "Calc III"})

        # Act: replay the version-2 projection after version 3 landed
        applied = await record_store.execute(
            "t_upsert",
            lambda db: mirror_session_crud.upsert_projection(db, mirror_projection(stale)),
        )

        # Assert
        mirror = await _mirror(record_store, session.id)
        assert applied is False
        assert mirror.subject == "Calc III"
        assert mirror.source_version == 3

    async def test_replaying_same_projection_is_idempotent(
        self, manager, session_service, record_store, student
    ) -> None:
        # Arrange
        session = await session_service.create_session(student, "Calc I", "Limits")

        # Act
        first = await manager.sync_mirror(session)
        second = await manager.sync_mirror(session)

        # Assert
        assert first is True and second is True
        assert (await _mirror(record_store, session.id)).source_version == 1


class TestFilePairs:
    async def test_metadata_failure_removes_uploaded_object(
        self, file_service, session_service, blob_store, student
    ) -> None:
        # Arrange
        session = await session_service.create_session(student, "Calc I", "Limits")

        # Act
        with patch.object(file_crud, "create", side_effect=_db_error()):
            with pytest.raises(TransientStoreFailure):
                await file_service.upload_file(student, session.id, student.id, b"x", "a.txt")

        # Assert
        assert blob_store.objects == {}

    async def test_blob_failure_writes_no_metadata(
        self, file_service, session_service, blob_store, record_store, student
    ) -> None:
        # Arrange
        session = await session_service.create_session(student, "Calc I", "Limits")
        blob_store.fail_put = True

        # Act
        with pytest.raises(TransientStoreFailure):
            await file_service.upload_file(student, session.id, student.id, b"x", "a.txt")

        # Assert
        rows = await record_store.execute(
            "t_files", lambda db: file_crud.list_for_session(db, student.id, session.id)
        )
        assert list(rows) == []


class TestDeleteSession:
    async def _seed(self, session_service, file_service, student):
        session = await session_service.create_session(student, "Calc I", "Limits")
        await session_service.add_message(student, session.id, "Help with limits")
        await file_service.upload_file(student, session.id, student.id, b"%PDF", "hw.pdf")
        return session

    async def _counts(self, record_store, owner_id, session_id):
        messages = await record_store.execute(
            "t_messages", lambda db: message_crud.list_for_session(db, owner_id, session_id)
        )
        files = await record_store.execute(
            "t_files", lambda db: file_crud.list_for_session(db, owner_id, session_id)
        )
        return len(messages), len(files)

    async def test_removes_everything_in_order(
        self, manager, session_service, file_service, record_store, blob_store, student
    ) -> None:
        # Arrange
        session = await self._seed(session_service, file_service, student)

        # Act
        completed = await manager.delete_session(student.id, session.id)

        # Assert
        assert completed == ["files", "messages", "owner_session", "mirror_session"]
        assert await self._counts(record_store, student.id, session.id) == (0, 0)
        assert await _owner(record_store, student.id, session.id) is None
        assert await _mirror(record_store, session.id) is None
        assert blob_store.objects == {}

    async def test_failure_aborts_and_rerun_resumes(
        self, manager, session_service, file_service, record_store, student
    ) -> None:
        # Arrange
        session = await self._seed(session_service, file_service, student)

        # Act
        with patch.object(message_crud, "delete_for_session", side_effect=_db_error()):
            with pytest.raises(PartialDeletionFailure) as exc_info:
                await manager.delete_session(student.id, session.id)

        # Assert: files gone, later steps untouched
        failure = exc_info.value
        assert failure.failed_step == "messages"
        assert failure.completed_steps == ["files"]
        assert failure.details["session_id"] == session.id
        assert await self._counts(record_store, student.id, session.id) == (2, 0)
        assert await _owner(record_store, student.id, session.id) is not None

        # Act: resume
        await manager.delete_session(student.id, session.id)

        # Assert
        assert await self._counts(record_store, student.id, session.id) == (0, 0)
        assert await _mirror(record_store, session.id) is None

    async def test_deleting_twice_does_not_raise(
        self, manager, session_service, file_service, student
    ) -> None:
        # Arrange
        session = await self._seed(session_service, file_service, student)
        await manager.delete_session(student.id, session.id)

        # Act
        completed = await manager.delete_session(student.id, session.id)

        # Assert
        assert completed[-1] == "mirror_session"

    async def test_orphan_blob_tolerated_when_object_delete_fails(
        self, manager, session_service, file_service, record_store, blob_store, student
    ) -> None:
        # Arrange
        session = await self._seed(session_service, file_service, student)
        blob_store.fail_delete = True

        # Act
        with pytest.raises(PartialDeletionFailure) as exc_info:
            await manager.delete_session(student.id, session.id)

        # Assert: metadata already gone, object left behind
        assert exc_info.value.failed_step == "files"
        assert await self._counts(record_store, student.id, session.id) == (2, 0)
        assert len(blob_store.objects) == 1
