"""
Service container.

Builds the record store, blob store, consistency manager, subscription
hub and services once per process and hands out shared instances. Used by
the API dependencies and the Celery maintenance tasks.

Dependencies: tutordesk.configs, tutordesk.boundary, tutordesk.application.services
System role: Object graph assembly
"""

from datetime import datetime
from typing import Callable

from tutordesk.application.services import (
    ConsistencyManager,
    FileService,
    MirrorReconciler,
    RetentionSweeper,
    SessionService,
    SubscriptionHub,
    UserService,
)
from tutordesk.boundary.aws.s3_blob_store import BlobStore, S3BlobStore
from tutordesk.boundary.db.base import utc_now
from tutordesk.boundary.db.record_store import RecordStore, create_record_store
from tutordesk.configs.settings import Settings


class ServiceContainer:
    """Lazily built, cached service instances."""

    def __init__(
        self,
        settings: Settings,
        store: RecordStore | None = None,
        blob_store: BlobStore | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize service container.

        Args:
            settings: Application settings
            store: Record store (built from settings when omitted)
            blob_store: Blob store (S3 from settings when omitted)
            clock: Server time source shared by every service
        """
        self.settings = settings
        self._store = store
        self._blob_store = blob_store
        self._clock = clock
        self._manager: ConsistencyManager | None = None
        self._hub: SubscriptionHub | None = None
        self._session_service: SessionService | None = None
        self._file_service: FileService | None = None
        self._user_service: UserService | None = None

    @property
    def store(self) -> RecordStore:
        if self._store is None:
            self._store = create_record_store(self.settings)
        return self._store

    @property
    def blob_store(self) -> BlobStore:
        if self._blob_store is None:
            self._blob_store = S3BlobStore(self.settings.blob_store)
        return self._blob_store

    @property
    def manager(self) -> ConsistencyManager:
        if self._manager is None:
            replication = self.settings.replication
            self._manager = ConsistencyManager(
                self.store,
                self.blob_store,
                authoritative_attempts=replication.authoritative_write_attempts,
                retry_backoff_seconds=replication.retry_backoff_seconds,
                clock=self._clock,
            )
        return self._manager

    @property
    def hub(self) -> SubscriptionHub:
        if self._hub is None:
            replication = self.settings.replication
            self._hub = SubscriptionHub(
                self.store,
                retry_attempts=replication.subscription_retry_attempts,
                retry_backoff_seconds=replication.retry_backoff_seconds,
            )
        return self._hub

    @property
    def session_service(self) -> SessionService:
        if self._session_service is None:
            self._session_service = SessionService(self.manager, self.hub)
        return self._session_service

    @property
    def file_service(self) -> FileService:
        if self._file_service is None:
            self._file_service = FileService(
                self.manager,
                self.hub,
                upload_prefix=self.settings.blob_store.upload_prefix,
            )
        return self._file_service

    @property
    def user_service(self) -> UserService:
        if self._user_service is None:
            self._user_service = UserService(self.store)
        return self._user_service

    def retention_sweeper(self) -> RetentionSweeper:
        replication = self.settings.replication
        return RetentionSweeper(
            self.manager,
            inactivity_hours=replication.retention_inactivity_hours,
            batch_size=replication.sweep_batch_size,
        )

    def mirror_reconciler(self) -> MirrorReconciler:
        return MirrorReconciler(self.manager, batch_size=self.settings.replication.reconcile_batch_size)
