"""
Maintenance Celery tasks.

Tasks: sweep_inactive_sessions(), reconcile_mirror()
Flow: new event loop -> build container -> run job -> dispose engine

Each run gets its own correlation id so every log line of one sweep can
be grouped.

Dependencies: celery, tutordesk.application, tutordesk.workers
System role: Scheduled entry points for the sweeper and reconciler
"""

import asyncio
import logging
from dataclasses import asdict
from datetime import datetime
from typing import Awaitable, Callable, TypeVar

from tutordesk.application.container import ServiceContainer
from tutordesk.configs import get_settings
from tutordesk.core.exceptions import TransientStoreFailure
from tutordesk.observability.correlation import clear_correlation_id, set_correlation_id
from tutordesk.workers import celery_app

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_sweep(container: ServiceContainer, now: datetime | None = None) -> int:
    """Run one retention sweep. Returns the number of sessions marked Deleted."""
    return await container.retention_sweeper().sweep_inactive_sessions(now)


async def run_reconcile(container: ServiceContainer) -> dict:
    """Run one mirror reconciliation. Returns the report as a dict."""
    report = await container.mirror_reconciler().reconcile()
    return asdict(report)


async def _with_container(job: Callable[[ServiceContainer], Awaitable[T]]) -> T:
    container = ServiceContainer(get_settings())
    try:
        return await job(container)
    finally:
        await container.store.dispose()


def _run_job(name: str, job: Callable[[ServiceContainer], Awaitable[T]]) -> T:
    set_correlation_id()
    logger.info(f"{name} started", extra={"job": name})
    try:
        return asyncio.run(_with_container(job))
    finally:
        clear_correlation_id()


@celery_app.task(
    bind=True,
    max_retries=3,
    autoretry_for=(TransientStoreFailure,),
    retry_backoff=60,
    retry_backoff_max=600,
)
def sweep_inactive_sessions(self) -> dict:
    """
    Mark sessions idle past the retention threshold as Deleted.

    Returns:
        dict: {"swept": count}
    """
    swept = _run_job("sweep_inactive_sessions", run_sweep)
    return {"swept": swept}


@celery_app.task(
    bind=True,
    max_retries=3,
    autoretry_for=(TransientStoreFailure,),
    retry_backoff=60,
    retry_backoff_max=600,
)
def reconcile_mirror(self) -> dict:
    """
    Repair missing, stale and orphaned mirror records.

    Returns:
        dict: Reconcile report counters
    """
    return _run_job("reconcile_mirror", run_reconcile)
