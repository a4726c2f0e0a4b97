"""
Access control resolver.

One decision table keyed by (operation, resource kind) answers whether an
actor may perform an operation on a resource. The table is pure: it never
touches the store, so callers load the resource facts (owner, uploader,
session status) first and pass them in.

Dependencies: tutordesk.core.lifecycle, tutordesk.models
System role: Central permission check for every service entry point
"""

import enum
from dataclasses import dataclass
from typing import Callable

from tutordesk.core.exceptions import PermissionDenied
from tutordesk.core.lifecycle import is_student_locked
from tutordesk.models.enums import SessionStatus
from tutordesk.models.user import Actor


class Operation(str, enum.Enum):
    """Operations guarded by the resolver."""

    CREATE_SESSION = "create_session"
    READ_SESSION = "read_session"
    QUERY_MIRROR = "query_mirror"
    READ_MESSAGES = "read_messages"
    READ_FILES = "read_files"
    POST_MESSAGE = "post_message"
    UPLOAD_FILE = "upload_file"
    DELETE_FILE = "delete_file"
    CLOSE_SESSION = "close_session"
    DELETE_SESSION = "delete_session"
    DELETE_ALL_FILES = "delete_all_files"
    TOGGLE_VISIBILITY = "toggle_visibility"
    MANAGE_USER = "manage_user"


class ResourceKind(str, enum.Enum):
    """
    Kinds of resource a rule can apply to.

    SESSION: A single session (owner partition or mirror copy)
    FILE: A single file metadata record
    PARTITION: A user's partition (general files, new sessions, user record)
    MIRROR: The global mirror collection as a whole
    """

    SESSION = "session"
    FILE = "file"
    PARTITION = "partition"
    MIRROR = "mirror"


@dataclass(frozen=True)
class Resource:
    """
    Facts about the target of an operation.

    Attributes:
        kind: Resource kind used to pick the rule
        owner_id: Session owner, partition owner or target user
        uploader_id: Uploader of a file (FILE only)
        status: Status of the session the resource belongs to, if any
    """

    kind: ResourceKind
    owner_id: str | None = None
    uploader_id: str | None = None
    status: SessionStatus | None = None

    @classmethod
    def session(cls, owner_id: str, status: SessionStatus | None = None) -> "Resource":
        return cls(ResourceKind.SESSION, owner_id=owner_id, status=status)

    @classmethod
    def file(
        cls,
        owner_id: str,
        uploader_id: str,
        status: SessionStatus | None = None,
    ) -> "Resource":
        return cls(ResourceKind.FILE, owner_id=owner_id, uploader_id=uploader_id, status=status)

    @classmethod
    def partition(cls, owner_id: str) -> "Resource":
        return cls(ResourceKind.PARTITION, owner_id=owner_id)

    @classmethod
    def mirror(cls) -> "Resource":
        return cls(ResourceKind.MIRROR)


Rule = Callable[[Actor, Resource], bool]


def _is_owner(actor: Actor, resource: Resource) -> bool:
    return resource.owner_id is not None and actor.id == resource.owner_id


def _owner_or_staff(actor: Actor, resource: Resource) -> bool:
    return actor.is_staff or _is_owner(actor, resource)


def _staff_only(actor: Actor, resource: Resource) -> bool:
    return actor.is_staff


def _owner_only(actor: Actor, resource: Resource) -> bool:
    return _is_owner(actor, resource)


def _write_into_session(actor: Actor, resource: Resource) -> bool:
    if resource.status == SessionStatus.DELETED:
        return False
    if not _owner_or_staff(actor, resource):
        return False
    if actor.is_staff:
        return True
    return resource.status is None or not is_student_locked(resource.status)


def _uploader_only(actor: Actor, resource: Resource) -> bool:
    # Staff keep read-only access to files they did not upload.
    if resource.uploader_id is None or actor.id != resource.uploader_id:
        return False
    if actor.is_staff or resource.status is None:
        return True
    return not is_student_locked(resource.status)


DECISION_TABLE: dict[tuple[Operation, ResourceKind], Rule] = {
    (Operation.READ_SESSION, ResourceKind.SESSION): _owner_or_staff,
    (Operation.QUERY_MIRROR, ResourceKind.MIRROR): _staff_only,
    (Operation.READ_MESSAGES, ResourceKind.SESSION): _owner_or_staff,
    (Operation.READ_FILES, ResourceKind.SESSION): _owner_or_staff,
    (Operation.READ_FILES, ResourceKind.PARTITION): _owner_or_staff,
    (Operation.CLOSE_SESSION, ResourceKind.SESSION): _staff_only,
    (Operation.DELETE_SESSION, ResourceKind.SESSION): _staff_only,
    (Operation.DELETE_ALL_FILES, ResourceKind.SESSION): _staff_only,
    (Operation.DELETE_FILE, ResourceKind.FILE): _uploader_only,
    (Operation.POST_MESSAGE, ResourceKind.SESSION): _write_into_session,
    (Operation.UPLOAD_FILE, ResourceKind.SESSION): _write_into_session,
    (Operation.UPLOAD_FILE, ResourceKind.PARTITION): _owner_or_staff,
    (Operation.TOGGLE_VISIBILITY, ResourceKind.SESSION): _owner_only,
    (Operation.CREATE_SESSION, ResourceKind.PARTITION): _owner_only,
    (Operation.MANAGE_USER, ResourceKind.PARTITION): _staff_only,
}


def can_perform(actor: Actor, operation: Operation, resource: Resource) -> bool:
    """
    Decide whether `actor` may perform `operation` on `resource`.

    Total and deterministic: pairs missing from the decision table deny.

    Args:
        actor: Acting principal
        operation: Requested operation
        resource: Facts about the target

    Returns:
        bool: True when permitted
    """
    rule = DECISION_TABLE.get((operation, resource.kind))
    if rule is None:
        return False
    return rule(actor, resource)


def require(actor: Actor, operation: Operation, resource: Resource) -> None:
    """
    Enforce `can_perform`.

    Raises:
        PermissionDenied: If the operation is not permitted
    """
    if not can_perform(actor, operation, resource):
        raise PermissionDenied(
            actor.id,
            operation.value,
            details={
                "resource_kind": resource.kind.value,
                "owner_id": resource.owner_id,
                "status": resource.status.value if resource.status else None,
            },
        )
