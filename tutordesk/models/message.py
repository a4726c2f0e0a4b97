"""
Message domain models and schemas.

Dependencies: pydantic
System role: Message contracts
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from tutordesk.models.enums import SenderRole


class Message(BaseModel):
    """Immutable message stored under the owner partition."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: str
    owner_id: str
    sender_id: str
    sender_role: SenderRole
    sender_name: str
    content: str
    created_at: datetime


class AddMessageRequest(BaseModel):
    """Request schema for posting a message."""

    content: str = Field(min_length=1, max_length=20_000)
