"""
User directory service.

Creates users on first authentication, resolves actors for incoming
requests and applies staff-only role and plan changes.

Dependencies: tutordesk.boundary.db, tutordesk.core
System role: User directory use cases
"""

import logging

from tutordesk.boundary.db.CRUD import user_crud
from tutordesk.boundary.db.record_store import RecordStore
from tutordesk.core.access_control import Operation, Resource, require
from tutordesk.core.exceptions import UserNotFoundError
from tutordesk.models.enums import UserPlan, UserRole
from tutordesk.models.user import Actor, Identity, User

logger = logging.getLogger(__name__)


class UserService:
    """User directory orchestrator."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def ensure_user(self, identity: Identity) -> User:
        """
        Create the user on first sign-in, refresh identity claims afterwards.

        New users start as Student on the Free plan.

        Args:
            identity: Claims from the identity provider

        Returns:
            User: Stored user record
        """

        async def _upsert(db):
            row = await user_crud.get_by_id(db, identity.user_id)
            if row is None:
                row = await user_crud.create(
                    db,
                    id=identity.user_id,
                    email=identity.email,
                    email_verified=identity.email_verified,
                    display_name=identity.display_name or identity.email.split("@")[0],
                    role=UserRole.STUDENT,
                    plan=UserPlan.FREE,
                )
                logger.info(f"User created: {identity.user_id}")
                return User.model_validate(row)

            changes = {}
            if row.email != identity.email:
                changes["email"] = identity.email
            if row.email_verified != identity.email_verified:
                changes["email_verified"] = identity.email_verified
            if identity.display_name and row.display_name != identity.display_name:
                changes["display_name"] = identity.display_name
            if changes:
                for field, value in changes.items():
                    setattr(row, field, value)
                await db.flush()
                await db.refresh(row)
            return User.model_validate(row)

        return await self._store.execute("ensure_user", _upsert)

    async def get_user(self, user_id: str) -> User:
        """
        Load a user.

        Raises:
            UserNotFoundError: If the user does not exist
        """

        async def _get(db):
            row = await user_crud.get_by_id(db, user_id)
            return User.model_validate(row) if row else None

        user = await self._store.execute("get_user", _get)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def get_actor(self, user_id: str) -> Actor:
        """Resolve the acting principal for a user id."""
        return (await self.get_user(user_id)).as_actor()

    async def _update(self, actor: Actor, user_id: str, operation: str, **changes) -> User:
        require(actor, Operation.MANAGE_USER, Resource.partition(user_id))

        async def _apply(db):
            row = await user_crud.update_by_id(db, user_id, **changes)
            return User.model_validate(row) if row else None

        user = await self._store.execute(operation, _apply)
        if user is None:
            raise UserNotFoundError(user_id)
        logger.info(
            f"User {user_id} updated by {actor.id}",
            extra={"user_id": user_id, "changed_by": actor.id, "fields": sorted(changes)},
        )
        return user

    async def change_role(self, actor: Actor, user_id: str, role: UserRole) -> User:
        """Change a user's role (staff only)."""
        return await self._update(actor, user_id, "change_user_role", role=role)

    async def set_plan(self, actor: Actor, user_id: str, plan: UserPlan) -> User:
        """Change a user's subscription plan (staff only)."""
        return await self._update(actor, user_id, "set_user_plan", plan=plan)
