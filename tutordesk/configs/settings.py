"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI and the workers.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from tutordesk.configs.base import BaseSettings
from tutordesk.configs.blob_store import BlobStoreSettings
from tutordesk.configs.celery_config import CelerySettings
from tutordesk.configs.database import DatabaseSettings
from tutordesk.configs.replication import ReplicationSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    database: DatabaseSettings = DatabaseSettings()
    blob_store: BlobStoreSettings = BlobStoreSettings()
    replication: ReplicationSettings = ReplicationSettings()
    celery: CelerySettings = CelerySettings()


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from tutordesk.configs import get_settings
        settings = get_settings()
    """
    return Settings()
