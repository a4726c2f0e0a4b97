"""
Consistency manager.

Keeps the owner-partition copy of a session and its global mirror in step
without cross-document transactions:

- the owner record is authoritative: its writes are retried once on
  transient failure and otherwise surface to the caller
- the mirror is secondary: after every owner write the manager upserts a
  projection of the resulting owner record, guarded by the owner's version,
  and only logs when that fails
- deletion runs as an ordered sequence of idempotent steps that can be
  resumed by calling it again

Dependencies: tenacity, sqlalchemy, tutordesk.boundary, tutordesk.core
System role: Dual-write and cascading-delete orchestration
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Union

from sqlalchemy.exc import SQLAlchemyError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tutordesk.boundary.aws.s3_blob_store import BlobStore, ProgressCallback
from tutordesk.boundary.db.base import utc_now
from tutordesk.boundary.db.CRUD import (
    file_crud,
    message_crud,
    mirror_session_crud,
    owner_session_crud,
)
from tutordesk.boundary.db.record_store import RecordStore
from tutordesk.core.exceptions import (
    PartialDeletionFailure,
    SessionNotFoundError,
    TransientStoreFailure,
    TutorDeskException,
)
from tutordesk.core.partitioning import (
    files_path,
    messages_path,
    mirror_patch,
    mirror_projection,
    mirror_topics,
    session_topics,
)
from tutordesk.models.enums import SenderRole
from tutordesk.models.file import FileRecord
from tutordesk.models.message import Message
from tutordesk.models.session import Session
from tutordesk.observability.log_utils import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)

SessionPatch = Union[dict[str, Any], Callable[[Session], dict[str, Any]]]

DELETION_STEPS = ("files", "messages", "owner_session", "mirror_session")


class ConsistencyManager:
    """Owner-first dual writes, creation sequence and ordered deletion."""

    def __init__(
        self,
        store: RecordStore,
        blob_store: BlobStore,
        authoritative_attempts: int = 2,
        retry_backoff_seconds: float = 0.5,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize consistency manager.

        Args:
            store: Record store for both partitions
            blob_store: Storage for file objects
            authoritative_attempts: Tries for owner-partition writes
            retry_backoff_seconds: Base delay between those tries
            clock: Source of server timestamps
        """
        self._store = store
        self._blob_store = blob_store
        self._attempts = max(1, authoritative_attempts)
        self._backoff = retry_backoff_seconds
        self._clock = clock
        self._last_message_at: datetime | None = None

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def blob_store(self) -> BlobStore:
        return self._blob_store

    def now(self) -> datetime:
        return self._clock()

    async def _authoritative(self, operation: str, work, topics=()):
        """Run an owner-partition operation, retrying transient failures."""
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(TransientStoreFailure),
            stop=stop_after_attempt(self._attempts),
            wait=wait_exponential(multiplier=self._backoff, max=5),
            before_sleep=lambda retry_state: logger.warning(
                f"{__name__}:{operation} - Retry {retry_state.attempt_number}/{self._attempts}"
            ),
            reraise=True,
        ):
            with attempt:
                return await self._store.execute(operation, work, topics=topics)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def write_session(
        self,
        owner_id: str,
        session_id: str,
        patch: SessionPatch,
    ) -> Session:
        """
        Apply a patch to the owner record, then refresh the mirror.

        Args:
            owner_id: Partition owner
            session_id: Session id
            patch: Field values, or a function computing them from the
                current record inside the owner transaction

        Returns:
            Session: Owner record after the write

        Raises:
            SessionNotFoundError: If the owner record does not exist
            TransientStoreFailure: If the owner write failed on every attempt
        """

        async def _work(db):
            if callable(patch):
                current = await owner_session_crud.get(db, owner_id, session_id, for_update=True)
                if current is None:
                    raise SessionNotFoundError(session_id, owner_id)
                values = patch(Session.model_validate(current))
                db.expunge(current)
            else:
                values = patch
            row = await owner_session_crud.apply_patch(db, owner_id, session_id, values)
            if row is None:
                raise SessionNotFoundError(session_id, owner_id)
            return Session.model_validate(row), values

        updated, values = await self._authoritative(
            "update_owner_session", _work, topics=session_topics(owner_id, session_id)
        )
        if mirror_patch(values):
            await self.sync_mirror(updated)
        return updated

    async def sync_mirror(self, session: Session) -> bool:
        """
        Upsert the mirror projection of `session`.

        Failures are logged and swallowed; the reconciler repairs them.

        Returns:
            bool: True if the mirror write went through
        """
        projection = mirror_projection(session)
        try:
            await self._store.execute(
                "upsert_mirror_session",
                lambda db: mirror_session_crud.upsert_projection(db, projection),
                topics=mirror_topics(session.id),
            )
            return True
        except (TransientStoreFailure, SQLAlchemyError) as e:
            log_exception_with_context(
                logger,
                "Mirror write failed; owner record kept",
                e,
                level=logging.WARNING,
                session_id=session.id,
                owner_id=session.owner_id,
                version=session.version,
            )
            return False

    async def create_session(self, session: Session, welcome_text: str) -> Session:
        """
        Creation sequence: owner record, mirror projection, welcome message.

        Args:
            session: Fully populated session (version 1)
            welcome_text: System message appended after creation

        Returns:
            Session: Stored owner record
        """
        fields = session.model_dump()

        async def _insert(db):
            existing = await owner_session_crud.get(db, session.owner_id, session.id)
            if existing is None:
                existing = await owner_session_crud.create(db, **fields)
            return Session.model_validate(existing)

        created = await self._authoritative(
            "create_owner_session",
            _insert,
            topics=session_topics(session.owner_id, session.id),
        )
        await self.sync_mirror(created)
        await self.insert_message(
            Message(
                id=f"{created.id}-welcome",
                session_id=created.id,
                owner_id=created.owner_id,
                sender_id="system",
                sender_role=SenderRole.SYSTEM,
                sender_name="VarsiVault",
                content=welcome_text,
                created_at=self._message_timestamp(),
            )
        )
        log_with_context(
            logger,
            logging.INFO,
            "Session created",
            session_id=created.id,
            owner_id=created.owner_id,
            mode=created.mode,
        )
        return created

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def _message_timestamp(self) -> datetime:
        # Strictly increasing within this process so commit order sorts stably.
        now = self._clock()
        if self._last_message_at is not None and now <= self._last_message_at:
            now = self._last_message_at + timedelta(microseconds=1)
        self._last_message_at = now
        return now

    async def insert_message(self, message: Message) -> Message:
        """
        Insert a message under the owner partition (idempotent on id).

        `created_at` on `message` is kept as given; callers stamp it with
        `_message_timestamp` so messages sort in commit order.
        """
        fields = message.model_dump()

        async def _insert(db):
            existing = await message_crud.get_by_id(db, message.id)
            if existing is None:
                existing = await message_crud.create(db, **fields)
            return Message.model_validate(existing)

        return await self._authoritative(
            "insert_message",
            _insert,
            topics=(messages_path(message.owner_id, message.session_id),),
        )

    async def append_message(
        self,
        message: Message,
        session_patch: Callable[[Session, datetime], dict[str, Any]],
    ) -> tuple[Message, Session]:
        """
        Insert a message, then update its session through `write_session`.

        Args:
            message: Message to store; its created_at is replaced by the
                server timestamp
            session_patch: Computes the session patch from the current
                record and the message timestamp

        Returns:
            tuple[Message, Session]: Stored message and updated session
        """
        created_at = self._message_timestamp()
        stored = await self.insert_message(message.model_copy(update={"created_at": created_at}))
        session = await self.write_session(
            message.owner_id,
            message.session_id,
            lambda current: session_patch(current, stored.created_at),
        )
        return stored, session

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    async def create_file(
        self,
        record: FileRecord,
        data: bytes,
        on_progress: ProgressCallback | None = None,
    ) -> FileRecord:
        """
        Store a file pair: storage object first, metadata second.

        If the metadata write fails the object is removed (best effort) so
        an orphan object is the worst case, never orphan metadata.
        """
        await self._blob_store.put(record.storage_path, data, record.content_type, on_progress)
        fields = record.model_dump()
        try:
            return await self._authoritative(
                "insert_file_metadata",
                lambda db: self._insert_file(db, fields),
                topics=(files_path(record.partition_owner_id, record.session_id),),
            )
        except (TutorDeskException, SQLAlchemyError) as e:
            try:
                await self._blob_store.delete(record.storage_path)
            except TutorDeskException as cleanup_error:
                log_exception_with_context(
                    logger,
                    "Orphan storage object left after metadata failure",
                    cleanup_error,
                    level=logging.WARNING,
                    storage_path=record.storage_path,
                )
            raise

    @staticmethod
    async def _insert_file(db, fields: dict[str, Any]) -> FileRecord:
        return FileRecord.model_validate(await file_crud.create(db, **fields))

    async def delete_file(self, record: FileRecord) -> None:
        """
        Delete a file pair: metadata first, storage object second.

        Both halves are no-ops when already absent.
        """
        await self._authoritative(
            "delete_file_metadata",
            lambda db: file_crud.delete_by_id(db, record.id),
            topics=(files_path(record.partition_owner_id, record.session_id),),
        )
        await self._blob_store.delete(record.storage_path)

    async def delete_session_files(self, owner_id: str, session_id: str) -> int:
        """Delete every file pair of a session. Returns the number removed."""
        records = await self._store.execute(
            "list_session_files",
            lambda db: self._load_files(db, owner_id, session_id),
        )
        for record in records:
            await self.delete_file(record)
        return len(records)

    @staticmethod
    async def _load_files(db, owner_id: str, session_id: str) -> list[FileRecord]:
        rows = await file_crud.list_for_session(db, owner_id, session_id)
        return [FileRecord.model_validate(row) for row in rows]

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def delete_session(self, owner_id: str, session_id: str) -> list[str]:
        """
        Ordered cascading delete: files, messages, owner record, mirror.

        Each step is idempotent, so a failed deletion is resumed by calling
        this again with the same ids.

        Returns:
            list[str]: Completed steps

        Raises:
            PartialDeletionFailure: If a step fails; later steps are not run
        """
        steps = {
            "files": lambda: self.delete_session_files(owner_id, session_id),
            "messages": lambda: self._authoritative(
                "delete_messages",
                lambda db: message_crud.delete_for_session(db, owner_id, session_id),
                topics=(messages_path(owner_id, session_id),),
            ),
            "owner_session": lambda: self._authoritative(
                "delete_owner_session",
                lambda db: owner_session_crud.delete(db, owner_id, session_id),
                topics=session_topics(owner_id, session_id),
            ),
            "mirror_session": lambda: self._store.execute(
                "delete_mirror_session",
                lambda db: mirror_session_crud.delete_by_id(db, session_id),
                topics=mirror_topics(session_id),
            ),
        }

        completed: list[str] = []
        for name in DELETION_STEPS:
            try:
                await steps[name]()
            except (TutorDeskException, SQLAlchemyError) as e:
                failure = PartialDeletionFailure(session_id, owner_id, name, completed)
                log_exception_with_context(
                    logger,
                    "Session deletion stopped part way",
                    e,
                    session_id=session_id,
                    owner_id=owner_id,
                    failed_step=name,
                    completed_steps=", ".join(completed) or "none",
                )
                raise failure from e
            completed.append(name)

        log_with_context(
            logger,
            logging.INFO,
            "Session deleted",
            session_id=session_id,
            owner_id=owner_id,
        )
        return completed
