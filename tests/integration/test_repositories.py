"""Repository and unit-of-work tests on a throwaway SQLite database."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from messaging_service.application.exceptions import UnknownIdentityError
from messaging_service.application.ports.clock import MonotonicClock
from messaging_service.infrastructure.db.base import Base
from messaging_service.infrastructure.db.models import UserModel
from messaging_service.infrastructure.db.session import create_engine, create_session_factory
from messaging_service.infrastructure.db.uow import SqlAlchemyUoW, make_uow_factory
from messaging_service.scripts import seed_dev_data
from messaging_service.services import message_service
from tests.conftest import ADMIN, ANNA, BLOOM, OUTSIDER


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'messages.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = create_session_factory(engine)
    async with factory() as session:
        session.add_all([
            UserModel(id=ANNA, username="client_anna", user_type="client"),
            UserModel(id=BLOOM, username="vendor_bloom", user_type="vendor"),
            UserModel(id=ADMIN, username="admin", user_type="admin"),
        ])
        await session.commit()

    yield factory
    await engine.dispose()


@pytest.fixture
def uow_factory(session_factory):
    return make_uow_factory(session_factory)


@pytest.mark.asyncio
async def test_append_assigns_increasing_ids(uow_factory):
    async with uow_factory() as uow:
        first = await message_service.append_message(ANNA, BLOOM, "one", uow)
        second = await message_service.append_message(BLOOM, ANNA, "two", uow)

    assert second.id > first.id
    assert second.created_at >= first.created_at
    assert first.created_at.tzinfo == timezone.utc
    assert first.read is False


@pytest.mark.asyncio
async def test_stored_message_survives_new_session(uow_factory):
    async with uow_factory() as uow:
        sent = await message_service.append_message(ANNA, BLOOM, "persisted", uow)

    async with uow_factory() as uow:
        loaded = await uow.messages.get_by_id(sent.id)

    assert loaded == sent


@pytest.mark.asyncio
async def test_list_between_orders_both_directions(uow_factory):
    async with uow_factory() as uow:
        for sender, receiver, content in [
            (ANNA, BLOOM, "a"),
            (BLOOM, ANNA, "b"),
            (ANNA, ADMIN, "elsewhere"),
            (ANNA, BLOOM, "c"),
        ]:
            await message_service.append_message(sender, receiver, content, uow)

    async with uow_factory() as uow:
        from_anna = await uow.messages.list_between(ANNA, BLOOM)
        from_bloom = await uow.messages.list_between(BLOOM, ANNA)

    assert [m.content for m in from_anna] == ["a", "b", "c"]
    assert from_bloom == from_anna


@pytest.mark.asyncio
async def test_timestamps_never_regress(session_factory):
    t = datetime(2024, 1, 1, tzinfo=timezone.utc)
    readings = iter([t, t - timedelta(minutes=10), t + timedelta(seconds=1)])

    class _Skewed:
        def now(self) -> datetime:
            return next(readings)

    async with session_factory() as session:
        uow = SqlAlchemyUoW(session, clock=MonotonicClock(_Skewed()))
        stored = [await uow.messages_w.append(ANNA, BLOOM, str(i)) for i in range(3)]
        await uow.commit()

    assert [m.created_at for m in stored] == [t, t, t + timedelta(seconds=1)]


@pytest.mark.asyncio
async def test_mark_read(uow_factory):
    async with uow_factory() as uow:
        sent = await message_service.append_message(ANNA, BLOOM, "read me", uow)

    async with uow_factory() as uow:
        updated = await uow.messages_w.mark_read(sent.id)
        missing = await uow.messages_w.mark_read(404)
        await uow.commit()

    async with uow_factory() as uow:
        reloaded = await uow.messages.get_by_id(sent.id)

    assert updated.read is True
    assert missing is None
    assert reloaded.read is True


@pytest.mark.asyncio
async def test_conversation_partners_are_distinct(uow_factory):
    async with uow_factory() as uow:
        await message_service.append_message(ANNA, BLOOM, "1", uow)
        await message_service.append_message(BLOOM, ANNA, "2", uow)
        await message_service.append_message(ADMIN, ANNA, "3", uow)

    async with uow_factory() as uow:
        partners = await uow.messages.list_conversation_partners(ANNA)

    assert sorted(partners) == [BLOOM, ADMIN]


@pytest.mark.asyncio
async def test_unknown_identity_stores_nothing(uow_factory):
    async with uow_factory() as uow:
        with pytest.raises(UnknownIdentityError):
            await message_service.append_message(ANNA, OUTSIDER, "void", uow)

    async with uow_factory() as uow:
        assert await uow.messages.list_conversation_partners(ANNA) == []


@pytest.mark.asyncio
async def test_failed_unit_of_work_rolls_back(uow_factory):
    with pytest.raises(RuntimeError):
        async with uow_factory() as uow:
            await uow.messages_w.append(ANNA, BLOOM, "half-done")
            raise RuntimeError("boom")

    async with uow_factory() as uow:
        assert await uow.messages.list_between(ANNA, BLOOM) == []


@pytest.mark.asyncio
async def test_users_get_many(uow_factory):
    async with uow_factory() as uow:
        found = await uow.users.get_many([ANNA, OUTSIDER, BLOOM])
        empty = await uow.users.get_many([])

    assert set(found) == {ANNA, BLOOM}
    assert found[BLOOM].username == "vendor_bloom"
    assert empty == {}


@pytest.mark.asyncio
async def test_seed_is_a_one_off(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'seed.db'}"

    first = await seed_dev_data.seed(url)
    second = await seed_dev_data.seed(url)

    engine = create_engine(url)
    async with create_session_factory(engine)() as session:
        uow = SqlAlchemyUoW(session)
        partners = await uow.messages.list_conversation_partners(ADMIN)
    await engine.dispose()

    assert first == len(seed_dev_data.DEMO_MESSAGES)
    assert second == 0
    assert sorted(partners) == [ANNA, BLOOM]
