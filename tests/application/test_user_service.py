"""
Test suite for UserService.

System role: Verification of the user directory
"""

import pytest

from tutordesk.core.exceptions import PermissionDenied, UserNotFoundError
from tutordesk.models.enums import UserPlan, UserRole
from tutordesk.models.user import Identity


class TestEnsureUser:
    async def test_first_sign_in_creates_free_student(self, user_service) -> None:
        user = await user_service.ensure_user(
            Identity(user_id="u-1", email="kim@example.edu", email_verified=True)
        )

        assert user.role == UserRole.STUDENT
        assert user.plan == UserPlan.FREE
        assert user.display_name == "kim"

    async def test_second_sign_in_refreshes_claims(self, user_service) -> None:
        await user_service.ensure_user(Identity(user_id="u-1", email="kim@example.edu"))

        user = await user_service.ensure_user(
            Identity(
                user_id="u-1",
                email="kim@uni.example",
                email_verified=True,
                display_name="Kim Lee",
            )
        )

        assert user.email == "kim@uni.example"
        assert user.email_verified is True
        assert user.display_name == "Kim Lee"
        assert user.role == UserRole.STUDENT

    async def test_actor_resolution(self, user_service) -> None:
        await user_service.ensure_user(Identity(user_id="u-1", email="kim@example.edu"))

        actor = await user_service.get_actor("u-1")

        assert actor.id == "u-1"
        assert actor.is_staff is False

    async def test_unknown_user(self, user_service) -> None:
        with pytest.raises(UserNotFoundError):
            await user_service.get_user("ghost")


class TestManageUser:
    async def test_staff_promotes_and_upgrades(self, user_service, staff) -> None:
        await user_service.ensure_user(Identity(user_id="u-1", email="kim@example.edu"))

        await user_service.change_role(staff, "u-1", UserRole.STAFF)
        user = await user_service.set_plan(staff, "u-1", UserPlan.PREMIUM)

        assert user.role == UserRole.STAFF
        assert user.plan == UserPlan.PREMIUM
        assert (await user_service.get_actor("u-1")).is_staff

    async def test_student_cannot_promote_self(self, user_service, student) -> None:
        await user_service.ensure_user(Identity(user_id=student.id, email=student.email))

        with pytest.raises(PermissionDenied):
            await user_service.change_role(student, student.id, UserRole.STAFF)

    async def test_unknown_target(self, user_service, staff) -> None:
        with pytest.raises(UserNotFoundError):
            await user_service.set_plan(staff, "ghost", UserPlan.PREMIUM)
