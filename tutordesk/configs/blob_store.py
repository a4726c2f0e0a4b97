"""
Blob store configuration.

Settings for the S3 bucket holding uploaded session files.

Dependencies: pydantic_settings
System role: Blob storage configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BlobStoreSettings(BaseSettings):
    """Settings for S3 blob store operations."""

    model_config = SettingsConfigDict(
        env_prefix="BLOB_STORE_",
        case_sensitive=False,
        extra="ignore",
    )

    bucket: str = Field(
        default="tutordesk-dev-uploads",
        description="S3 bucket for uploaded files",
    )
    region: str = Field(
        default="ap-southeast-2",
        description="AWS region for S3 bucket",
    )
    endpoint_url: str | None = Field(
        default=None,
        description="Custom S3 endpoint (MinIO, LocalStack)",
    )
    upload_prefix: str = Field(
        default="user_uploads",
        description="Key prefix for every uploaded object",
    )
    connect_timeout: float = Field(default=5.0, description="Connect timeout in seconds")
    read_timeout: float = Field(default=30.0, description="Read timeout in seconds")
    max_attempts: int = Field(default=2, description="botocore retry attempts per call")
