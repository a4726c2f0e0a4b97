"""AWS boundary: S3 blob storage."""

from tutordesk.boundary.aws.s3_blob_store import BlobStore, ProgressCallback, S3BlobStore

__all__ = ["BlobStore", "ProgressCallback", "S3BlobStore"]
