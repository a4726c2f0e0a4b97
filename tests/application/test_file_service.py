"""
Test suite for FileService.

Covers uploads into sessions and general files, progress reporting,
blob placement in the partition owner's folder, the uploader-only delete
rule and the staff bulk delete.

System role: Verification of file use cases
"""

import pytest

from tutordesk.core.exceptions import (
    FileRecordNotFoundError,
    PermissionDenied,
    SessionNotFoundError,
    ValidationError,
)


@pytest.fixture
async def calc_session(session_service, student):
    return await session_service.create_session(student, "Calc I", "Limits")


class TestUpload:
    async def test_upload_reports_progress_and_stores_pair(
        self, file_service, calc_session, blob_store, student
    ) -> None:
        # Arrange
        progress: list[float] = []

        # Act
        record = await file_service.upload_file(
            student, calc_session.id, student.id, b"%PDF-1.7", "homework.pdf",
            on_progress=progress.append,
        )

        # Assert
        assert progress == [50.0, 100.0]
        assert record.content_type == "application/pdf"
        assert record.size == 8
        assert record.partition_owner_id == student.id
        assert blob_store.objects[record.storage_path] == b"%PDF-1.7"
        assert record.storage_path.startswith(f"user_uploads/{student.id}/{calc_session.id}/")
        assert record.storage_path.endswith("-homework.pdf")

    async def test_staff_upload_lands_in_student_folder(
        self, file_service, calc_session, student, staff
    ) -> None:
        record = await file_service.upload_file(
            staff, calc_session.id, student.id, b"answer", "solution.txt"
        )

        assert record.owner_id == staff.id
        assert record.partition_owner_id == student.id
        assert record.storage_path.startswith(f"user_uploads/{student.id}/")

    async def test_same_name_uploads_keep_separate_objects(
        self, file_service, calc_session, blob_store, student, staff
    ) -> None:
        # Arrange: frozen clock, so both uploads share one millisecond
        first = await file_service.upload_file(
            student, calc_session.id, student.id, b"draft", "hw.pdf"
        )
        second = await file_service.upload_file(
            staff, calc_session.id, student.id, b"marked", "hw.pdf"
        )

        # Act
        await file_service.delete_file(student, first)

        # Assert
        assert first.storage_path != second.storage_path
        _, data = await file_service.read_file(student, second.id)
        assert data == b"marked"
        assert first.storage_path not in blob_store.objects

    async def test_unknown_extension_falls_back(self, file_service, calc_session, student) -> None:
        record = await file_service.upload_file(student, calc_session.id, student.id, b"x", "notes.zzz")

        assert record.content_type == "application/octet-stream"

    async def test_general_file(self, file_service, student, wait_for_snapshot) -> None:
        record = await file_service.upload_file(student, None, student.id, b"cv", "cv.txt")

        async with await file_service.list_general_files(student, student.id) as stream:
            files = await wait_for_snapshot(stream, lambda snapshot: True)

        assert record.session_id is None
        assert "/general/" in record.storage_path
        assert [f.id for f in files] == [record.id]

    async def test_other_student_cannot_upload(
        self, file_service, calc_session, student, other_student
    ) -> None:
        with pytest.raises(PermissionDenied):
            await file_service.upload_file(other_student, calc_session.id, student.id, b"x", "a.txt")

    async def test_closed_session_rejects_student_upload(
        self, file_service, session_service, calc_session, student, staff
    ) -> None:
        await session_service.close_session(staff, calc_session.id, student.id)

        with pytest.raises(PermissionDenied):
            await file_service.upload_file(student, calc_session.id, student.id, b"x", "late.txt")

    async def test_missing_session(self, file_service, student) -> None:
        with pytest.raises(SessionNotFoundError):
            await file_service.upload_file(student, "missing", student.id, b"x", "a.txt")

    async def test_blank_name(self, file_service, calc_session, student) -> None:
        with pytest.raises(ValidationError):
            await file_service.upload_file(student, calc_session.id, student.id, b"x", "  ")


class TestRead:
    async def test_read_file_returns_contents(
        self, file_service, calc_session, student, staff
    ) -> None:
        record = await file_service.upload_file(student, calc_session.id, student.id, b"data", "a.txt")

        stored, data = await file_service.read_file(staff, record.id)

        assert stored.id == record.id
        assert data == b"data"

    async def test_other_student_cannot_read(
        self, file_service, calc_session, student, other_student
    ) -> None:
        record = await file_service.upload_file(student, calc_session.id, student.id, b"data", "a.txt")

        with pytest.raises(PermissionDenied):
            await file_service.get_file(other_student, record.id)

    async def test_missing_file(self, file_service, student) -> None:
        with pytest.raises(FileRecordNotFoundError):
            await file_service.get_file(student, "nope")


class TestDelete:
    async def test_uploader_deletes_pair(
        self, file_service, calc_session, blob_store, student
    ) -> None:
        record = await file_service.upload_file(student, calc_session.id, student.id, b"x", "a.txt")

        await file_service.delete_file(student, record)

        assert blob_store.objects == {}
        with pytest.raises(FileRecordNotFoundError):
            await file_service.get_file(student, record.id)

    async def test_staff_cannot_delete_student_upload(
        self, file_service, calc_session, student, staff
    ) -> None:
        record = await file_service.upload_file(student, calc_session.id, student.id, b"x", "a.txt")

        with pytest.raises(PermissionDenied):
            await file_service.delete_file(staff, record)

    async def test_student_cannot_delete_staff_upload(
        self, file_service, calc_session, student, staff
    ) -> None:
        record = await file_service.upload_file(staff, calc_session.id, student.id, b"x", "key.txt")

        with pytest.raises(PermissionDenied):
            await file_service.delete_file(student, record)

    async def test_staff_deletes_own_upload(
        self, file_service, calc_session, student, staff
    ) -> None:
        record = await file_service.upload_file(staff, calc_session.id, student.id, b"x", "key.txt")

        await file_service.delete_file(staff, record)

        with pytest.raises(FileRecordNotFoundError):
            await file_service.get_file(staff, record.id)

    async def test_uploader_field_on_request_is_ignored(
        self, file_service, calc_session, student, staff
    ) -> None:
        record = await file_service.upload_file(student, calc_session.id, student.id, b"x", "a.txt")
        forged = record.model_copy(update={"owner_id": staff.id})

        with pytest.raises(PermissionDenied):
            await file_service.delete_file(staff, forged)

    async def test_student_locked_out_after_close(
        self, file_service, session_service, calc_session, student, staff
    ) -> None:
        record = await file_service.upload_file(student, calc_session.id, student.id, b"x", "a.txt")
        await session_service.close_session(staff, calc_session.id, student.id)

        with pytest.raises(PermissionDenied):
            await file_service.delete_file(student, record)

    async def test_delete_all_is_staff_only(
        self, file_service, calc_session, blob_store, student, staff, wait_for_snapshot
    ) -> None:
        await file_service.upload_file(student, calc_session.id, student.id, b"1", "a.txt")
        await file_service.upload_file(staff, calc_session.id, student.id, b"2", "b.txt")

        with pytest.raises(PermissionDenied):
            await file_service.delete_all_files(student, calc_session.id, student.id)
        deleted = await file_service.delete_all_files(staff, calc_session.id, student.id)

        async with await file_service.list_files(student, calc_session.id, student.id) as stream:
            remaining = await wait_for_snapshot(stream, lambda snapshot: True)
        assert deleted == 2
        assert remaining == []
        assert blob_store.objects == {}
