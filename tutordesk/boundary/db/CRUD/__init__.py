"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from tutordesk.boundary.db.CRUD import owner_session_crud, message_crud

    session = await owner_session_crud.get(db, owner_id, session_id)
"""

from tutordesk.boundary.db.CRUD.base_crud import BaseCRUD
from tutordesk.boundary.db.CRUD.file_crud import FileCRUD, file_crud
from tutordesk.boundary.db.CRUD.message_crud import MessageCRUD, message_crud
from tutordesk.boundary.db.CRUD.mirror_crud import MirrorSessionCRUD, mirror_session_crud
from tutordesk.boundary.db.CRUD.session_crud import OwnerSessionCRUD, owner_session_crud
from tutordesk.boundary.db.CRUD.user_crud import UserCRUD, user_crud

__all__ = [
    "BaseCRUD",
    "FileCRUD",
    "file_crud",
    "MessageCRUD",
    "message_crud",
    "MirrorSessionCRUD",
    "mirror_session_crud",
    "OwnerSessionCRUD",
    "owner_session_crud",
    "UserCRUD",
    "user_crud",
]
