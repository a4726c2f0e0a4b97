"""
User ORM model.

Dependencies: sqlalchemy, tutordesk.boundary.db.base
System role: User directory persistence
"""

from sqlalchemy import Boolean, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from tutordesk.boundary.db.base import Base, TimestampMixin
from tutordesk.models.enums import UserPlan, UserRole


class UserModel(Base, TimestampMixin):
    """
    User record keyed by the identity provider's stable id.

    Created on first authentication, mutated by role and plan changes,
    never hard-deleted.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, native_enum=False, length=16),
        nullable=False,
        default=UserRole.STUDENT,
    )
    plan: Mapped[UserPlan] = mapped_column(
        Enum(UserPlan, native_enum=False, length=16),
        nullable=False,
        default=UserPlan.FREE,
    )
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
