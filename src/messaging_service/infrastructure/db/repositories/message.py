from __future__ import annotations

from sqlalchemy import and_, case, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from messaging_service.application.ports.clock import Clock, MonotonicClock
from messaging_service.domain.entities.message import Message
from messaging_service.infrastructure.db.mappers import message as mapper
from messaging_service.infrastructure.db.models.message import MessageModel

# One clock per process so created_at never goes backwards between inserts.
STORE_CLOCK = MonotonicClock()


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, message_id: int) -> Message | None:
        model = await self._session.get(MessageModel, message_id)
        return mapper.model_to_entity(model) if model else None

    async def list_between(self, user_a: int, user_b: int) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(
                or_(
                    and_(MessageModel.sender_id == user_a, MessageModel.receiver_id == user_b),
                    and_(MessageModel.sender_id == user_b, MessageModel.receiver_id == user_a),
                )
            )
            .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_conversation_partners(self, user_id: int) -> list[int]:
        partner = case(
            (MessageModel.sender_id == user_id, MessageModel.receiver_id),
            else_=MessageModel.sender_id,
        )
        stmt = (
            select(partner)
            .where(
                or_(MessageModel.sender_id == user_id, MessageModel.receiver_id == user_id)
            )
            .distinct()
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())


class MessageWriterRepo:
    def __init__(self, session: AsyncSession, clock: Clock = STORE_CLOCK) -> None:
        self._session = session
        self._clock = clock

    async def append(self, sender_id: int, receiver_id: int, content: str) -> Message:
        model = MessageModel(
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            read=False,
            created_at=self._clock.now(),
        )
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def mark_read(self, message_id: int) -> Message | None:
        stmt = (
            update(MessageModel)
            .where(MessageModel.id == message_id)
            .values(read=True)
        )
        await self._session.execute(stmt)
        model = await self._session.get(MessageModel, message_id, populate_existing=True)
        return mapper.model_to_entity(model) if model else None
