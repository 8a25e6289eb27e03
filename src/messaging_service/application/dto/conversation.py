from __future__ import annotations

from dataclasses import dataclass

from messaging_service.domain.entities.message import Message
from messaging_service.domain.entities.user import UserProfile


@dataclass(frozen=True, slots=True)
class ConversationSummary:
    partner: UserProfile
    last_message: Message
    unread_count: int
