from __future__ import annotations

from pydantic import BaseModel


class UserResponse(BaseModel):
    id: int
    username: str
    full_name: str | None
    user_type: str
    avatar_url: str | None

    model_config = {"from_attributes": True}
