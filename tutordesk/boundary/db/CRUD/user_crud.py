"""
User CRUD operations.

Dependencies: sqlalchemy, tutordesk.boundary.db.models
System role: User directory persistence operations
"""

from tutordesk.boundary.db.CRUD.base_crud import BaseCRUD
from tutordesk.boundary.db.models.user_model import UserModel


class UserCRUD(BaseCRUD[UserModel]):
    """CRUD operations for UserModel."""

    def __init__(self) -> None:
        """Initialize UserCRUD with UserModel."""
        super().__init__(UserModel)


user_crud = UserCRUD()
