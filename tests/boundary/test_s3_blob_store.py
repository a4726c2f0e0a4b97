"""
Test suite for S3BlobStore.

The boto3 client is replaced with a MagicMock so no network calls are made;
errors are real botocore exceptions.

System role: Verification of blob storage error mapping and progress
"""

import io
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from tutordesk.boundary.aws.s3_blob_store import S3BlobStore
from tutordesk.configs.blob_store import BlobStoreSettings
from tutordesk.core.exceptions import FileRecordNotFoundError, TransientStoreFailure


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def s3_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def blob_store(s3_client) -> S3BlobStore:
    store = S3BlobStore(BlobStoreSettings(bucket="test-bucket", region="us-east-1"))
    store._s3_client = s3_client
    return store


class TestPut:
    async def test_progress_reported_as_percentage(self, blob_store, s3_client) -> None:
        def upload(fileobj, bucket, key, ExtraArgs, Callback):
            Callback(4)
            Callback(4)

        s3_client.upload_fileobj.side_effect = upload
        progress: list[float] = []

        await blob_store.put("user_uploads/u/s/1-a.txt", b"12345678", "text/plain", progress.append)

        assert progress == [50.0, 100.0]
        args = s3_client.upload_fileobj.call_args
        assert args.args[1:] == ("test-bucket", "user_uploads/u/s/1-a.txt")
        assert args.kwargs["ExtraArgs"] == {"ContentType": "text/plain"}

    async def test_empty_upload_completes_progress(self, blob_store) -> None:
        progress: list[float] = []

        await blob_store.put("k", b"", "text/plain", progress.append)

        assert progress == [100.0]

    async def test_connection_failure_is_transient(self, blob_store, s3_client) -> None:
        s3_client.upload_fileobj.side_effect = EndpointConnectionError(endpoint_url="http://s3")

        with pytest.raises(TransientStoreFailure) as exc_info:
            await blob_store.put("k", b"x", "text/plain")

        assert exc_info.value.operation == "put_object"


class TestGet:
    async def test_returns_body(self, blob_store, s3_client) -> None:
        s3_client.get_object.return_value = {"Body": io.BytesIO(b"data")}

        assert await blob_store.get("k") == b"data"

    async def test_missing_key(self, blob_store, s3_client) -> None:
        s3_client.get_object.side_effect = _client_error("NoSuchKey", "GetObject")

        with pytest.raises(FileRecordNotFoundError):
            await blob_store.get("k")

    async def test_access_denied_is_transient(self, blob_store, s3_client) -> None:
        s3_client.get_object.side_effect = _client_error("AccessDenied", "GetObject")

        with pytest.raises(TransientStoreFailure):
            await blob_store.get("k")


class TestDelete:
    async def test_missing_key_is_not_an_error(self, blob_store, s3_client) -> None:
        s3_client.delete_object.side_effect = _client_error("NoSuchKey", "DeleteObject")

        await blob_store.delete("k")

        s3_client.delete_object.assert_called_once_with(Bucket="test-bucket", Key="k")

    async def test_throttling_is_transient(self, blob_store, s3_client) -> None:
        s3_client.delete_object.side_effect = _client_error("SlowDown", "DeleteObject")

        with pytest.raises(TransientStoreFailure):
            await blob_store.delete("k")
