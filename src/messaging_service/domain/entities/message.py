from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Message:
    id: int
    sender_id: int
    receiver_id: int
    content: str
    read: bool
    created_at: datetime

    def involves(self, user_id: int) -> bool:
        return user_id in (self.sender_id, self.receiver_id)

    def partner_of(self, user_id: int) -> int:
        """Return the other side of the conversation from ``user_id``'s point of view."""
        return self.receiver_id if self.sender_id == user_id else self.sender_id
