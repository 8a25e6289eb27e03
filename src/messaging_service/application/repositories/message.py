from __future__ import annotations

from typing import Protocol

from messaging_service.domain.entities.message import Message


class MessageReader(Protocol):
    async def get_by_id(self, message_id: int) -> Message | None: ...

    async def list_between(self, user_a: int, user_b: int) -> list[Message]:
        """All messages exchanged by the pair, ordered by (created_at, id)."""
        ...

    async def list_conversation_partners(self, user_id: int) -> list[int]: ...


class MessageWriter(Protocol):
    async def append(self, sender_id: int, receiver_id: int, content: str) -> Message:
        """Insert a message. The store assigns id and created_at."""
        ...

    async def mark_read(self, message_id: int) -> Message | None:
        """Flip the read flag. Return None if the message does not exist."""
        ...
