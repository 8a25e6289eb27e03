from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SendMessageRequest(BaseModel):
    # id, created_at and read are assigned by the store.
    model_config = ConfigDict(extra="forbid")

    receiver_id: int
    content: str


class MarkReadRequest(BaseModel):
    message_ids: list[int] = Field(min_length=1, max_length=500)


class MessageResponse(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    content: str
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}
