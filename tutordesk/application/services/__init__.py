"""Application services: consistency, subscriptions and use case orchestration."""

from tutordesk.application.services.consistency_manager import ConsistencyManager
from tutordesk.application.services.file_service import FileService
from tutordesk.application.services.mirror_reconciler import MirrorReconciler, ReconcileReport
from tutordesk.application.services.retention_sweeper import RetentionSweeper
from tutordesk.application.services.session_service import SessionService, welcome_message
from tutordesk.application.services.subscription_service import Subscription, SubscriptionHub
from tutordesk.application.services.user_service import UserService

__all__ = [
    "ConsistencyManager",
    "FileService",
    "MirrorReconciler",
    "ReconcileReport",
    "RetentionSweeper",
    "SessionService",
    "Subscription",
    "SubscriptionHub",
    "UserService",
    "welcome_message",
]
