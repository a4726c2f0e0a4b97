"""
File metadata domain models.

Dependencies: pydantic
System role: File contracts
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class FileRecord(BaseModel):
    """
    Metadata for an uploaded file.

    Attributes:
        owner_id: The uploader (may be staff uploading into a student's session)
        partition_owner_id: User whose partition stores the record
        session_id: None for general files not attached to a session
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: str | None = None
    owner_id: str
    partition_owner_id: str
    name: str
    storage_path: str
    size: int
    content_type: str
    created_at: datetime


class DeleteAllFilesResponse(BaseModel):
    """Response schema for bulk file deletion."""

    deleted: int
