"""
Core domain rules: exceptions, partition scheme, lifecycle and access control.

Pure modules with no I/O, testable in isolation from storage.
"""

from tutordesk.core.access_control import (
    Operation,
    Resource,
    ResourceKind,
    can_perform,
    require,
)
from tutordesk.core.exceptions import (
    FileRecordNotFoundError,
    InvalidTransitionError,
    NotFoundError,
    OrphanedReference,
    PartialDeletionFailure,
    PermissionDenied,
    SessionNotFoundError,
    TransientStoreFailure,
    TutorDeskException,
    UserNotFoundError,
    ValidationError,
)

__all__ = [
    "FileRecordNotFoundError",
    "InvalidTransitionError",
    "NotFoundError",
    "Operation",
    "OrphanedReference",
    "PartialDeletionFailure",
    "PermissionDenied",
    "Resource",
    "ResourceKind",
    "SessionNotFoundError",
    "TransientStoreFailure",
    "TutorDeskException",
    "UserNotFoundError",
    "ValidationError",
    "can_perform",
    "require",
]
