from __future__ import annotations

from pydantic import BaseModel

from messaging_service.api.v1.schemas.message import MessageResponse
from messaging_service.api.v1.schemas.user import UserResponse


class ConversationSummaryResponse(BaseModel):
    partner: UserResponse
    last_message: MessageResponse
    unread_count: int

    model_config = {"from_attributes": True}
