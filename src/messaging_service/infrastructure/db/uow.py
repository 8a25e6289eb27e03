from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from messaging_service.application.ports.clock import Clock
from messaging_service.application.uow import UoWFactory
from messaging_service.infrastructure.db.repositories.message import (
    STORE_CLOCK,
    MessageReaderRepo,
    MessageWriterRepo,
)
from messaging_service.infrastructure.db.repositories.user import UserReaderRepo


class SqlAlchemyUoW:
    """Repositories sharing one AsyncSession, committed or rolled back together."""

    def __init__(self, session: AsyncSession, clock: Clock = STORE_CLOCK) -> None:
        self._session = session
        self.users = UserReaderRepo(session)
        self.messages = MessageReaderRepo(session)
        self.messages_w = MessageWriterRepo(session, clock)

    async def flush(self) -> None:
        await self._session.flush()

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()


def make_uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
    clock: Clock = STORE_CLOCK,
) -> UoWFactory:
    """Return a callable opening one unit of work per request or frame.

    Anything not committed when the block raises is rolled back.
    """

    @asynccontextmanager
    async def _open() -> AsyncIterator[SqlAlchemyUoW]:
        async with session_factory() as session:
            uow = SqlAlchemyUoW(session, clock)
            try:
                yield uow
            except BaseException:
                await uow.rollback()
                raise

    return _open
