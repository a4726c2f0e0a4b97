"""
User domain models and schemas.

Dependencies: pydantic
System role: User directory contracts and the acting principal
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from tutordesk.models.enums import UserPlan, UserRole


class Actor(BaseModel):
    """
    The principal performing an operation.

    Built from a stored user (see `User.as_actor`) or directly in tests.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    role: UserRole
    display_name: str = ""
    email: str = ""

    @property
    def is_staff(self) -> bool:
        return self.role == UserRole.STAFF


class Identity(BaseModel):
    """Claims handed over by the identity provider after authentication."""

    user_id: str
    email: str
    email_verified: bool = False
    display_name: str | None = None


class User(BaseModel):
    """Stored user record."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    display_name: str
    email: str
    role: UserRole
    plan: UserPlan
    email_verified: bool
    created_at: datetime
    updated_at: datetime

    def as_actor(self) -> Actor:
        return Actor(
            id=self.id,
            role=self.role,
            display_name=self.display_name,
            email=self.email,
        )


class ChangeRoleRequest(BaseModel):
    """Request schema for changing a user's role."""

    role: UserRole


class ChangePlanRequest(BaseModel):
    """Request schema for changing a user's plan."""

    plan: UserPlan = Field(description="New subscription plan")
