from __future__ import annotations

from fastapi import APIRouter

from messaging_service.api.deps import CurrentPrincipal, UoWDep
from messaging_service.api.v1.schemas.user import UserResponse
from messaging_service.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    _principal: CurrentPrincipal,
    uow: UoWDep,
) -> UserResponse:
    user = await user_service.get_user(user_id, uow)
    return UserResponse.model_validate(user, from_attributes=True)
