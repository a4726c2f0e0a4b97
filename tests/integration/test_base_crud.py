"""
Test suite for BaseCRUD generic database operations.

Tests create, get_by_id, update_by_id and delete_by_id through the
user CRUD singleton. Uses a mocked AsyncSession to verify query behavior.

System role: Verification of generic database layer foundation
"""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from tutordesk.boundary.db.CRUD.base_crud import BaseCRUD
from tutordesk.boundary.db.CRUD.user_crud import UserCRUD
from tutordesk.boundary.db.models.user_model import UserModel


@pytest.fixture
def crud() -> UserCRUD:
    """Provide UserCRUD instance for testing."""
    return UserCRUD()


@pytest.fixture
def mock_session() -> AsyncSession:
    """Provide mock async database session."""
    return AsyncMock(spec=AsyncSession)


def _result(scalar: Any = None, rowcount: int = 0) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none = MagicMock(return_value=scalar)
    result.rowcount = rowcount
    return result


class TestBaseCRUDInit:
    def test_user_crud_targets_user_model(self, crud: UserCRUD) -> None:
        assert isinstance(crud, BaseCRUD)
        assert crud.model is UserModel


class TestBaseCRUDCreate:
    async def test_create_should_flush_before_refresh(
        self, crud: UserCRUD, mock_session: AsyncSession
    ) -> None:
        """Flush runs before refresh so server defaults are loaded."""
        # Arrange
        call_order = []

        async def flush_effect() -> None:
            call_order.append("flush")

        async def refresh_effect(obj: Any) -> None:
            call_order.append("refresh")

        mock_session.flush = AsyncMock(side_effect=flush_effect)
        mock_session.refresh = AsyncMock(side_effect=refresh_effect)

        # Act
        instance = await crud.create(mock_session, id="u-1", email="kim@example.edu")

        # Assert
        assert call_order == ["flush", "refresh"]
        assert instance.email == "kim@example.edu"
        mock_session.add.assert_called_once_with(instance)


class TestBaseCRUDReads:
    async def test_get_by_id_returns_instance(self, crud: UserCRUD, mock_session: AsyncSession) -> None:
        # Arrange
        instance = MagicMock()
        mock_session.execute = AsyncMock(return_value=_result(instance))

        # Act
        found = await crud.get_by_id(mock_session, "u-1")

        # Assert
        assert found is instance
        mock_session.execute.assert_awaited_once()


class TestBaseCRUDWrites:
    async def test_update_returns_none_when_missing(
        self, crud: UserCRUD, mock_session: AsyncSession
    ) -> None:
        mock_session.execute = AsyncMock(return_value=_result(None))

        assert await crud.update_by_id(mock_session, "ghost", display_name="x") is None

    @pytest.mark.parametrize(("rowcount", "expected"), [(1, True), (0, False)])
    async def test_delete_reports_rowcount(
        self, crud: UserCRUD, mock_session: AsyncSession, rowcount: int, expected: bool
    ) -> None:
        mock_session.execute = AsyncMock(return_value=_result(rowcount=rowcount))

        assert await crud.delete_by_id(mock_session, "u-1") is expected
