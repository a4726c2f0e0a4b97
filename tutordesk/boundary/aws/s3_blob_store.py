"""
S3 blob store for uploaded session files.

Wraps the synchronous boto3 client in worker threads so uploads, downloads
and deletes can be awaited from the services. Upload progress is reported
as a percentage through boto3's transfer callback.

Dependencies: boto3, botocore
System role: Storage objects behind file metadata records
"""

import asyncio
import io
import logging
from typing import Callable, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from tutordesk.configs.blob_store import BlobStoreSettings
from tutordesk.core.exceptions import FileRecordNotFoundError, TransientStoreFailure

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


class BlobStore(Protocol):
    """Storage operations the file service depends on."""

    async def put(
        self,
        path: str,
        data: bytes,
        content_type: str,
        on_progress: ProgressCallback | None = None,
    ) -> None: ...

    async def get(self, path: str) -> bytes: ...

    async def delete(self, path: str) -> None: ...


class _ProgressTracker:
    """Turns boto3's byte-count callbacks into a running percentage."""

    def __init__(self, total: int, on_progress: ProgressCallback) -> None:
        self._total = total
        self._sent = 0
        self._on_progress = on_progress

    def __call__(self, bytes_amount: int) -> None:
        self._sent += bytes_amount
        percent = 100.0 if self._total == 0 else min(100.0, self._sent * 100.0 / self._total)
        self._on_progress(percent)


class S3BlobStore:
    """S3-backed BlobStore."""

    def __init__(self, settings: BlobStoreSettings) -> None:
        """
        Initialize S3 client for the upload bucket.

        Args:
            settings: Bucket, region, endpoint and timeout settings
        """
        self._bucket = settings.bucket
        self._s3_client = boto3.client(
            "s3",
            region_name=settings.region,
            endpoint_url=settings.endpoint_url,
            config=Config(
                connect_timeout=settings.connect_timeout,
                read_timeout=settings.read_timeout,
                retries={"max_attempts": settings.max_attempts, "mode": "standard"},
            ),
        )

    async def put(
        self,
        path: str,
        data: bytes,
        content_type: str,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """
        Upload an object.

        Args:
            path: Object key
            data: File contents
            content_type: MIME type stored with the object
            on_progress: Receives upload percentage (0-100)

        Raises:
            TransientStoreFailure: If S3 rejects or times out the upload
        """
        callback = _ProgressTracker(len(data), on_progress) if on_progress else None

        def _upload() -> None:
            self._s3_client.upload_fileobj(
                io.BytesIO(data),
                self._bucket,
                path,
                ExtraArgs={"ContentType": content_type},
                Callback=callback,
            )

        await self._call("put_object", path, _upload)
        if on_progress and not data:
            on_progress(100.0)

    async def get(self, path: str) -> bytes:
        """
        Download an object.

        Raises:
            FileRecordNotFoundError: If the key does not exist
            TransientStoreFailure: On any other S3 failure
        """

        def _download() -> bytes:
            response = self._s3_client.get_object(Bucket=self._bucket, Key=path)
            return response["Body"].read()

        return await self._call("get_object", path, _download)

    async def delete(self, path: str) -> None:
        """Delete an object. Missing keys are not an error."""

        def _delete() -> None:
            self._s3_client.delete_object(Bucket=self._bucket, Key=path)

        try:
            await self._call("delete_object", path, _delete)
        except FileRecordNotFoundError:
            logger.debug(f"Blob already absent: {path}")

    async def _call(self, operation: str, path: str, fn):
        try:
            return await asyncio.to_thread(fn)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in _MISSING_CODES:
                raise FileRecordNotFoundError(path, details={"storage_path": path}) from e
            logger.warning(
                f"S3 {operation} failed: {code}",
                extra={"bucket": self._bucket, "key": path, "error_code": code},
            )
            raise TransientStoreFailure(
                f"Blob store {operation} failed",
                operation=operation,
                details={"storage_path": path, "error_code": code},
            ) from e
        except BotoCoreError as e:
            logger.warning(
                f"S3 {operation} failed: {e}",
                extra={"bucket": self._bucket, "key": path},
            )
            raise TransientStoreFailure(
                f"Blob store {operation} failed",
                operation=operation,
                details={"storage_path": path, "error": str(e)},
            ) from e
