"""
Replication and retention settings.

Timeouts and retry budget for store operations, retention threshold and
batch sizes for the scheduled sweeper and reconciler.

Dependencies: pydantic_settings
System role: Consistency manager and maintenance job configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReplicationSettings(BaseSettings):
    """Settings for dual writes, live streams and maintenance jobs."""

    model_config = SettingsConfigDict(
        env_prefix="REPLICATION_",
        case_sensitive=False,
        extra="ignore",
    )

    store_op_timeout_seconds: float = Field(
        default=10.0,
        description="A single store operation taking longer than this is treated as failed",
    )
    authoritative_write_attempts: int = Field(
        default=2,
        description="Attempts for owner-partition writes (1 try + 1 retry)",
    )
    retry_backoff_seconds: float = Field(
        default=0.5,
        description="Base delay between retries of a failed store operation",
    )
    retention_inactivity_hours: float = Field(
        default=24.0,
        description="Sessions idle longer than this are swept to Deleted",
    )
    sweep_batch_size: int = Field(default=100, description="Mirror records per sweep page")
    sweep_interval_seconds: int = Field(default=3600, description="Sweeper schedule")
    reconcile_batch_size: int = Field(default=200, description="Records per reconcile page")
    reconcile_interval_seconds: int = Field(default=21600, description="Reconciler schedule")
    subscription_retry_attempts: int = Field(
        default=3,
        description="Snapshot reload attempts before a delivery is skipped",
    )
