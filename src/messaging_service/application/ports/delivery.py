from __future__ import annotations

from typing import Protocol

from messaging_service.domain.entities.message import Message


class MessageDelivery(Protocol):
    def deliver(self, message: Message) -> None:
        """Best-effort push of a committed message. Must not block or raise."""
        ...
