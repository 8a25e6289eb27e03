from __future__ import annotations

from messaging_service.application.dto.conversation import ConversationSummary
from messaging_service.application.uow import UnitOfWork


async def list_partners(user_id: int, uow: UnitOfWork) -> list[int]:
    return await uow.messages.list_conversation_partners(user_id)


async def summarize(user_id: int, uow: UnitOfWork) -> list[ConversationSummary]:
    """Build the conversation list for ``user_id``, most recent first.

    Partners whose user record can no longer be found are left out.
    """
    partner_ids = await list_partners(user_id, uow)
    profiles = await uow.users.get_many(partner_ids)

    summaries: list[ConversationSummary] = []
    for partner_id in partner_ids:
        partner = profiles.get(partner_id)
        if partner is None:
            continue

        history = await uow.messages.list_between(user_id, partner_id)
        if not history:
            continue

        last_message = max(history, key=lambda m: (m.created_at, m.id))
        unread_count = sum(
            1 for m in history if m.receiver_id == user_id and not m.read
        )
        summaries.append(
            ConversationSummary(
                partner=partner,
                last_message=last_message,
                unread_count=unread_count,
            )
        )

    summaries.sort(
        key=lambda s: (s.last_message.created_at, s.last_message.id),
        reverse=True,
    )
    return summaries
