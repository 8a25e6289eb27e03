from __future__ import annotations

from messaging_service.application.dto.principal import Principal
from messaging_service.application.exceptions import ForbiddenError, NotFoundError
from messaging_service.domain.entities.message import Message


def assert_can_mark_read(principal: Principal, message: Message | None) -> Message:
    """Raise if the message doesn't exist or wasn't addressed to the principal."""
    if message is None:
        raise NotFoundError("Message not found")

    if message.receiver_id != principal.user_id:
        raise ForbiddenError("Only the receiver can mark a message as read")

    return message


def assert_sender_matches(principal: Principal, claimed_sender_id: int | None) -> None:
    if claimed_sender_id is not None and claimed_sender_id != principal.user_id:
        raise ForbiddenError("Sender does not match the authenticated identity")
