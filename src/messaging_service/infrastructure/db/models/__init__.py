"""Import all models so Base.metadata knows every table."""
from messaging_service.infrastructure.db.models.message import MessageModel
from messaging_service.infrastructure.db.models.user import UserModel

__all__ = [
    "MessageModel",
    "UserModel",
]
