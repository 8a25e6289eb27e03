from __future__ import annotations

from messaging_service.application.exceptions import NotFoundError
from messaging_service.application.uow import UnitOfWork
from messaging_service.domain.entities.user import UserProfile


async def get_user(user_id: int, uow: UnitOfWork) -> UserProfile:
    user = await uow.users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user
