from __future__ import annotations

import logging

from messaging_service.application.dto.principal import Principal
from messaging_service.application.exceptions import UnknownIdentityError, ValidationError
from messaging_service.application.policies.permissions import (
    assert_can_mark_read,
    assert_sender_matches,
)
from messaging_service.application.ports.delivery import MessageDelivery
from messaging_service.application.uow import UnitOfWork
from messaging_service.domain.entities.message import Message

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONTENT_LENGTH = 5000


def validate_content(content: str | None, max_length: int = DEFAULT_MAX_CONTENT_LENGTH) -> str:
    if content is None or not content.strip():
        raise ValidationError("Message content must not be empty")
    if len(content) > max_length:
        raise ValidationError(f"Message content exceeds {max_length} characters")
    return content


async def append_message(
    sender_id: int,
    receiver_id: int | None,
    content: str | None,
    uow: UnitOfWork,
    *,
    max_length: int = DEFAULT_MAX_CONTENT_LENGTH,
) -> Message:
    """Validate and durably store a message.

    Nothing is written unless both identities resolve and the content is
    valid. The returned record carries the store-assigned id and timestamp.
    """
    if receiver_id is None:
        raise ValidationError("Message receiver is required")
    content = validate_content(content, max_length)

    known = await uow.users.get_many([sender_id, receiver_id])
    for user_id in (sender_id, receiver_id):
        if user_id not in known:
            raise UnknownIdentityError(f"Unknown user {user_id}")

    msg = await uow.messages_w.append(sender_id, receiver_id, content)
    await uow.commit()
    return msg


async def send_message(
    principal: Principal,
    receiver_id: int | None,
    content: str | None,
    uow: UnitOfWork,
    delivery: MessageDelivery,
    *,
    claimed_sender_id: int | None = None,
    max_length: int = DEFAULT_MAX_CONTENT_LENGTH,
) -> Message:
    """Persist a message from ``principal`` and hand it to live delivery.

    Delivery happens after the commit and its outcome never reaches the
    caller: once this returns, the message is stored.
    """
    assert_sender_matches(principal, claimed_sender_id)

    msg = await append_message(
        principal.user_id, receiver_id, content, uow, max_length=max_length,
    )
    logger.info("Message %d stored: %d -> %d", msg.id, msg.sender_id, msg.receiver_id)

    delivery.deliver(msg)
    return msg


async def list_history(
    principal: Principal,
    other_user_id: int,
    uow: UnitOfWork,
) -> list[Message]:
    return await uow.messages.list_between(principal.user_id, other_user_id)


async def mark_read(
    principal: Principal,
    message_ids: list[int],
    uow: UnitOfWork,
) -> list[Message]:
    """Mark messages addressed to ``principal`` as read.

    Already-read messages are returned unchanged. Any unknown id or a message
    addressed to someone else aborts the whole batch.
    """
    result: list[Message] = []
    for message_id in message_ids:
        msg = assert_can_mark_read(principal, await uow.messages.get_by_id(message_id))
        if not msg.read:
            updated = await uow.messages_w.mark_read(message_id)
            msg = assert_can_mark_read(principal, updated)
        result.append(msg)

    await uow.commit()
    return result
