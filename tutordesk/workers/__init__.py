"""
Celery workers module.

Scheduled maintenance jobs: retention sweep and mirror reconciliation.

Dependencies: celery, tutordesk.configs
System role: Background task processing and beat schedule
"""

from celery import Celery

from tutordesk.configs import get_settings

settings = get_settings()
celery_config = settings.celery
replication = settings.replication

celery_app = Celery(
    "tutordesk",
    broker=celery_config.broker_url,
    backend=celery_config.result_backend_url,
    include=["tutordesk.workers.tasks.maintenance"],
)

celery_app.conf.update(
    task_serializer=celery_config.task_serializer,
    result_serializer=celery_config.result_serializer,
    accept_content=celery_config.accept_content,
    timezone=celery_config.timezone,
    task_max_retries=celery_config.task_max_retries,
    beat_schedule={
        "sweep-inactive-sessions": {
            "task": "tutordesk.workers.tasks.maintenance.sweep_inactive_sessions",
            "schedule": float(replication.sweep_interval_seconds),
        },
        "reconcile-mirror": {
            "task": "tutordesk.workers.tasks.maintenance.reconcile_mirror",
            "schedule": float(replication.reconcile_interval_seconds),
        },
    },
)
