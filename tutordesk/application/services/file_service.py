"""
File service orchestrator.

Uploads, deletions and live listings of session files and general files.
Storage objects and metadata records are written and removed as pairs by
the consistency manager.

Dependencies: tutordesk.application.services, tutordesk.boundary, tutordesk.core
System role: File use case orchestration
"""

import logging
import mimetypes
from uuid import uuid4

from tutordesk.application.services.consistency_manager import ConsistencyManager
from tutordesk.application.services.subscription_service import Subscription, SubscriptionHub
from tutordesk.boundary.aws.s3_blob_store import ProgressCallback
from tutordesk.boundary.db.CRUD import file_crud, owner_session_crud
from tutordesk.core.access_control import Operation, Resource, require
from tutordesk.core.exceptions import FileRecordNotFoundError, SessionNotFoundError, ValidationError
from tutordesk.core.partitioning import files_path, general_files_path, storage_path
from tutordesk.models.enums import SessionStatus
from tutordesk.models.file import FileRecord
from tutordesk.models.user import Actor

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class FileService:
    """File service orchestrator."""

    def __init__(
        self,
        manager: ConsistencyManager,
        hub: SubscriptionHub,
        upload_prefix: str = "user_uploads",
    ) -> None:
        """
        Initialize file service.

        Args:
            manager: Consistency manager owning file pair writes
            hub: Subscription hub for live file lists
            upload_prefix: Blob key prefix for every upload
        """
        self._manager = manager
        self._store = manager.store
        self._hub = hub
        self._upload_prefix = upload_prefix

    async def _session_status(
        self,
        owner_id: str,
        session_id: str,
        required: bool = True,
    ) -> SessionStatus | None:
        async def _get(db):
            row = await owner_session_crud.get(db, owner_id, session_id)
            return row.status if row else None

        status = await self._store.execute("get_session_status", _get)
        if status is None and required:
            raise SessionNotFoundError(session_id, owner_id)
        return status

    async def get_file(self, actor: Actor, file_id: str) -> FileRecord:
        """
        Load file metadata by id.

        Raises:
            FileRecordNotFoundError: If no such file exists
            PermissionDenied: If the actor may not read the owning partition
        """

        async def _get(db):
            row = await file_crud.get_by_id(db, file_id)
            return FileRecord.model_validate(row) if row else None

        record = await self._store.execute("get_file_metadata", _get)
        if record is None:
            raise FileRecordNotFoundError(file_id)
        require(actor, Operation.READ_FILES, Resource.partition(record.partition_owner_id))
        return record

    async def read_file(self, actor: Actor, file_id: str) -> tuple[FileRecord, bytes]:
        """Load file metadata and its storage object contents."""
        record = await self.get_file(actor, file_id)
        data = await self._manager.blob_store.get(record.storage_path)
        return record, data

    async def upload_file(
        self,
        actor: Actor,
        session_id: str | None,
        owner_id: str,
        data: bytes,
        file_name: str,
        content_type: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> FileRecord:
        """
        Upload a file into a session or into a user's general files.

        Args:
            actor: Uploader (session owner, general-files owner or staff)
            session_id: Target session, None for a general file
            owner_id: Owner of the partition receiving the metadata
            data: File contents
            file_name: Original file name
            content_type: MIME type (guessed from the name when omitted)
            on_progress: Receives upload percentage (0-100)

        Returns:
            FileRecord: Stored metadata

        Raises:
            PermissionDenied: If the actor may not upload here
            SessionNotFoundError: If the target session does not exist
            ValidationError: If the file name is blank
            TransientStoreFailure: If the object or metadata write failed
        """
        file_name = file_name.strip()
        if not file_name:
            raise ValidationError("File name is required", field="file_name")

        if session_id is None:
            require(actor, Operation.UPLOAD_FILE, Resource.partition(owner_id))
        else:
            status = await self._session_status(owner_id, session_id)
            require(actor, Operation.UPLOAD_FILE, Resource.session(owner_id, status))

        now = self._manager.now()
        file_id = uuid4().hex
        record = FileRecord(
            id=file_id,
            session_id=session_id,
            owner_id=actor.id,
            partition_owner_id=owner_id,
            name=file_name,
            storage_path=storage_path(
                self._upload_prefix, owner_id, session_id, file_id, file_name, now
            ),
            size=len(data),
            content_type=content_type or mimetypes.guess_type(file_name)[0] or DEFAULT_CONTENT_TYPE,
            created_at=now,
        )
        stored = await self._manager.create_file(record, data, on_progress)
        logger.info(
            f"File uploaded: {stored.name}",
            extra={
                "file_id": stored.id,
                "session_id": session_id,
                "uploader_id": actor.id,
                "size": stored.size,
            },
        )
        return stored

    async def delete_file(self, actor: Actor, file: FileRecord) -> None:
        """
        Delete a single file (uploader only).

        The stored metadata decides the uploader, not the record passed in.

        Raises:
            FileRecordNotFoundError: If the metadata is already gone
            PermissionDenied: If the actor did not upload the file, or is a
                student and the session is Closed, Completed or Deleted
        """

        async def _get(db):
            row = await file_crud.get_by_id(db, file.id)
            return FileRecord.model_validate(row) if row else None

        stored = await self._store.execute("get_file_metadata", _get)
        if stored is None:
            raise FileRecordNotFoundError(file.id)

        status = None
        if stored.session_id is not None:
            status = await self._session_status(
                stored.partition_owner_id, stored.session_id, required=False
            )
        require(
            actor,
            Operation.DELETE_FILE,
            Resource.file(stored.partition_owner_id, stored.owner_id, status),
        )
        await self._manager.delete_file(stored)
        logger.info(f"File deleted: {stored.id}", extra={"deleted_by": actor.id})

    async def delete_all_files(self, actor: Actor, session_id: str, owner_id: str) -> int:
        """
        Delete every file of a session (staff only).

        Returns:
            int: Number of files removed
        """
        require(actor, Operation.DELETE_ALL_FILES, Resource.session(owner_id))
        deleted = await self._manager.delete_session_files(owner_id, session_id)
        logger.info(
            f"Deleted {deleted} files from session {session_id}",
            extra={"session_id": session_id, "deleted_by": actor.id},
        )
        return deleted

    async def list_files(
        self,
        actor: Actor,
        session_id: str,
        owner_id: str,
    ) -> Subscription[list[FileRecord]]:
        """Live file list of a session, newest first."""
        require(actor, Operation.READ_FILES, Resource.session(owner_id))
        await self._session_status(owner_id, session_id)

        async def _load(db):
            rows = await file_crud.list_for_session(db, owner_id, session_id)
            return [FileRecord.model_validate(row) for row in rows]

        return self._hub.subscribe(
            f"files:{session_id}", (files_path(owner_id, session_id),), _load
        )

    async def list_general_files(
        self,
        actor: Actor,
        owner_id: str,
    ) -> Subscription[list[FileRecord]]:
        """Live list of a user's general files, newest first."""
        require(actor, Operation.READ_FILES, Resource.partition(owner_id))

        async def _load(db):
            rows = await file_crud.list_general(db, owner_id)
            return [FileRecord.model_validate(row) for row in rows]

        return self._hub.subscribe(
            f"general_files:{owner_id}", (general_files_path(owner_id),), _load
        )
