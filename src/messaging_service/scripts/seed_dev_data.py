"""Seed development data: creates tables, demo users and a few conversations."""
from __future__ import annotations

import asyncio
import logging

from sqlalchemy import select

from messaging_service.config import settings
from messaging_service.domain.value_objects.enums import UserType
from messaging_service.infrastructure.db import models
from messaging_service.infrastructure.db.base import Base
from messaging_service.infrastructure.db.session import create_engine, create_session_factory
from messaging_service.infrastructure.db.uow import SqlAlchemyUoW
from messaging_service.log_config import configure_logging
from messaging_service.services import message_service

logger = logging.getLogger(__name__)

DEMO_USERS = [
    (3, "client_anna", "Anna Client", UserType.CLIENT),
    (4, "vendor_bloom", "Bloom Decorations", UserType.VENDOR),
    (7, "admin", "Marketplace Admin", UserType.ADMIN),
]

DEMO_MESSAGES = [
    (7, 3, "Hello, how can I help you with your event planning?"),
    (3, 7, "I need help with planning my wedding"),
    (7, 3, "Sure, we have several packages available. When is your wedding date?"),
    (3, 7, "We are planning for November 15th next year"),
    (7, 3, "Perfect! I will prepare some options for you"),
    (7, 4, "We have a new client looking for event planning services"),
    (4, 7, "Great! What kind of event?"),
]


async def seed(database_url: str | None = None) -> int:
    """Create tables and demo data on an empty database. Return messages written."""
    engine = create_engine(database_url)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        async with create_session_factory(engine)() as session:
            existing = (await session.execute(select(models.UserModel.id))).scalars().all()
            if existing:
                logger.info("Database already has %d users, nothing to seed", len(existing))
                return 0

            session.add_all([
                models.UserModel(id=user_id, username=username, full_name=full_name, user_type=user_type)
                for user_id, username, full_name, user_type in DEMO_USERS
            ])
            await session.commit()

            uow = SqlAlchemyUoW(session)
            for sender_id, receiver_id, content in DEMO_MESSAGES:
                await message_service.append_message(
                    sender_id, receiver_id, content, uow, max_length=settings.MESSAGE_MAX_LENGTH,
                )
    finally:
        await engine.dispose()

    logger.info("Seeded %d users and %d messages", len(DEMO_USERS), len(DEMO_MESSAGES))
    return len(DEMO_MESSAGES)


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
