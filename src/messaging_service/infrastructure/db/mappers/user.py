from __future__ import annotations

from messaging_service.domain.entities.user import UserProfile
from messaging_service.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> UserProfile:
    return UserProfile(
        id=model.id,
        username=model.username,
        full_name=model.full_name,
        user_type=model.user_type,
        avatar_url=model.avatar_url,
    )
