"""
Exception hierarchy for the tutoring workspace core.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class TutorDeskException(Exception):
    """Base exception for all tutordesk errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging

        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(TutorDeskException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class PermissionDenied(TutorDeskException):
    """Raised when the access control resolver rejects an operation."""

    def __init__(
        self,
        actor_id: str,
        operation: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize permission error.

        Args:
            actor_id: ID of the rejected actor
            operation: Operation that was attempted
            details: Additional context (resource kind, owner, status)
        """
        details = details or {}
        details["actor_id"] = actor_id
        details["operation"] = operation
        self.actor_id = actor_id
        self.operation = operation
        super().__init__(f"Permission denied: {operation}", details)


class NotFoundError(TutorDeskException):
    """Raised when a referenced record is absent."""


class SessionNotFoundError(NotFoundError):
    """Raised when a session cannot be found."""

    def __init__(
        self,
        session_id: str,
        owner_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize session not found error.

        Args:
            session_id: ID of the missing session
            owner_id: Partition owner that was searched
            details: Additional context
        """
        details = details or {}
        details["session_id"] = session_id
        if owner_id:
            details["owner_id"] = owner_id
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}", details)


class FileRecordNotFoundError(NotFoundError):
    """Raised when file metadata or its storage object cannot be found."""

    def __init__(self, file_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["file_id"] = file_id
        super().__init__(f"File not found: {file_id}", details)


class UserNotFoundError(NotFoundError):
    """Raised when a user record cannot be found."""

    def __init__(self, user_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["user_id"] = user_id
        super().__init__(f"User not found: {user_id}", details)


class InvalidTransitionError(ValidationError):
    """Raised when a session status transition is not allowed."""

    def __init__(
        self,
        current: str,
        target: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["current"] = current
        details["target"] = target
        super().__init__(f"Cannot move session from {current} to {target}", details=details)


class TransientStoreFailure(TutorDeskException):
    """Raised when a single store or blob operation fails or times out."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize transient store failure.

        Args:
            message: Error message
            operation: Store operation that failed (e.g. update_owner_session)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        self.operation = operation
        super().__init__(message, details)


class PartialDeletionFailure(TutorDeskException):
    """
    Raised when a multi-step deletion stops part way.

    Carries the completed steps and the failed step. Calling the same
    deletion again resumes it, as every step is idempotent.
    """

    def __init__(
        self,
        session_id: str,
        owner_id: str,
        failed_step: str,
        completed_steps: list[str],
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details.update(
            {
                "session_id": session_id,
                "owner_id": owner_id,
                "failed_step": failed_step,
                "completed_steps": list(completed_steps),
            }
        )
        self.session_id = session_id
        self.owner_id = owner_id
        self.failed_step = failed_step
        self.completed_steps = list(completed_steps)
        super().__init__(
            f"Deletion of session {session_id} stopped at step '{failed_step}'",
            details,
        )


class OrphanedReference(TutorDeskException):
    """
    A mirror or metadata record points at a missing counterpart.

    Logged and skipped by sweepers and tolerant read paths, never fatal.
    """

    def __init__(
        self,
        message: str,
        session_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if session_id:
            details["session_id"] = session_id
        super().__init__(message, details)
