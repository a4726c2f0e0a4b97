"""ORM models for both partitions and the user directory."""

from tutordesk.boundary.db.models.file_model import FileModel
from tutordesk.boundary.db.models.message_model import MessageModel
from tutordesk.boundary.db.models.mirror_model import MirrorSessionModel
from tutordesk.boundary.db.models.session_model import OwnerSessionModel
from tutordesk.boundary.db.models.user_model import UserModel

__all__ = [
    "FileModel",
    "MessageModel",
    "MirrorSessionModel",
    "OwnerSessionModel",
    "UserModel",
]
