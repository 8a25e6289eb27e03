from __future__ import annotations

from fastapi import APIRouter

from messaging_service.api.deps import CurrentPrincipal, DeliveryDep, UoWDep
from messaging_service.api.v1.schemas.message import (
    MarkReadRequest,
    MessageResponse,
    SendMessageRequest,
)
from messaging_service.config import settings
from messaging_service.services import message_service

router = APIRouter(prefix="/api/v1/messages", tags=["messages"])


@router.get("/{other_user_id}", response_model=list[MessageResponse])
async def list_history(
    other_user_id: int,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[MessageResponse]:
    messages = await message_service.list_history(principal, other_user_id, uow)
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]


@router.post("", response_model=MessageResponse, status_code=201)
async def send_message(
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    delivery: DeliveryDep,
) -> MessageResponse:
    msg = await message_service.send_message(
        principal,
        body.receiver_id,
        body.content,
        uow,
        delivery,
        max_length=settings.MESSAGE_MAX_LENGTH,
    )
    return MessageResponse.model_validate(msg, from_attributes=True)


@router.post("/read", response_model=list[MessageResponse])
async def mark_read(
    body: MarkReadRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[MessageResponse]:
    messages = await message_service.mark_read(principal, body.message_ids, uow)
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]


@router.post("/{message_id}/read", response_model=MessageResponse)
async def mark_one_read(
    message_id: int,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> MessageResponse:
    [msg] = await message_service.mark_read(principal, [message_id], uow)
    return MessageResponse.model_validate(msg, from_attributes=True)
