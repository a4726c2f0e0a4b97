"""
Partition scheme.

Maps a logical session onto its two physical locations and names the
change-feed topics and blob keys derived from them:

    users/{owner_id}/sessions/{session_id}             owner partition (authoritative)
    users/{owner_id}/sessions/{session_id}/messages    private children
    users/{owner_id}/sessions/{session_id}/files
    users/{owner_id}/files                             general files
    sessions/{session_id}                              global mirror (projection)

Dependencies: None
System role: Path, topic and projection rules shared by store and services
"""

from datetime import datetime
from typing import Any

MIRROR_COLLECTION = "sessions"
GENERAL_FILES_SEGMENT = "general"

# Owner-record fields copied to the mirror projection.
MIRROR_FIELDS = frozenset(
    {
        "owner_id",
        "owner_email",
        "subject",
        "context",
        "mode",
        "status",
        "created_at",
        "updated_at",
        "last_active_at",
        "closed_at",
        "auto_deleted",
    }
)


def user_sessions_path(owner_id: str) -> str:
    return f"users/{owner_id}/sessions"


def owner_session_path(owner_id: str, session_id: str) -> str:
    return f"{user_sessions_path(owner_id)}/{session_id}"


def messages_path(owner_id: str, session_id: str) -> str:
    return f"{owner_session_path(owner_id, session_id)}/messages"


def session_files_path(owner_id: str, session_id: str) -> str:
    return f"{owner_session_path(owner_id, session_id)}/files"


def general_files_path(owner_id: str) -> str:
    return f"users/{owner_id}/files"


def files_path(owner_id: str, session_id: str | None) -> str:
    """Collection holding file metadata for a session, or general files when None."""
    if session_id is None:
        return general_files_path(owner_id)
    return session_files_path(owner_id, session_id)


def mirror_session_path(session_id: str) -> str:
    return f"{MIRROR_COLLECTION}/{session_id}"


def session_topics(owner_id: str, session_id: str) -> tuple[str, ...]:
    """Topics touched by a write to the session document itself."""
    return (user_sessions_path(owner_id), owner_session_path(owner_id, session_id))


def mirror_topics(session_id: str) -> tuple[str, ...]:
    """Topics touched by a write to the mirror copy."""
    return (MIRROR_COLLECTION, mirror_session_path(session_id))


def mirror_patch(patch: dict[str, Any]) -> dict[str, Any]:
    """Keep only the fields of `patch` that the mirror projection carries."""
    return {key: value for key, value in patch.items() if key in MIRROR_FIELDS}


def storage_path(
    prefix: str,
    owner_id: str,
    session_id: str | None,
    file_id: str,
    file_name: str,
    uploaded_at: datetime,
) -> str:
    """
    Build the blob key for an upload.

    Files always land in the partition owner's folder, even when staff
    upload on a student's behalf. The file id keeps keys unique when two
    uploads share a name and a millisecond.
    """
    folder = session_id or GENERAL_FILES_SEGMENT
    millis = int(uploaded_at.timestamp() * 1000)
    safe_name = file_name.replace("/", "_").strip() or "upload"
    return f"{prefix}/{owner_id}/{folder}/{millis}-{file_id}-{safe_name}"


def mirror_projection(record: Any) -> dict[str, Any]:
    """
    Project an owner-partition session onto the mirror columns.

    `record` is anything exposing the session fields as attributes (ORM row
    or domain model). The owner's `version` becomes `source_version`.
    """
    projection = {field: getattr(record, field) for field in MIRROR_FIELDS}
    projection["id"] = record.id
    projection["source_version"] = record.version
    return projection
