from __future__ import annotations

from fastapi import APIRouter

from messaging_service.api.deps import CurrentPrincipal, UoWDep
from messaging_service.api.v1.schemas.conversation import ConversationSummaryResponse
from messaging_service.services import conversation_service

router = APIRouter(prefix="/api/v1/conversations", tags=["conversations"])


@router.get("", response_model=list[ConversationSummaryResponse])
async def list_conversations(
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[ConversationSummaryResponse]:
    summaries = await conversation_service.summarize(principal.user_id, uow)
    return [
        ConversationSummaryResponse.model_validate(s, from_attributes=True)
        for s in summaries
    ]
