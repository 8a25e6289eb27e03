"""Shared test fixtures."""
from __future__ import annotations

import dataclasses
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator

import jwt
import pytest

from messaging_service.application.dto.principal import Principal
from messaging_service.application.exceptions import TransportFailureError
from messaging_service.application.ports.clock import Clock, MonotonicClock
from messaging_service.config import settings
from messaging_service.domain.entities.message import Message
from messaging_service.domain.entities.user import UserProfile
from messaging_service.domain.value_objects.enums import UserType

ANNA = 3
BLOOM = 4
ADMIN = 7
OUTSIDER = 9

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def anna() -> Principal:
    return Principal(user_id=ANNA, user_type=UserType.CLIENT)


@pytest.fixture
def bloom() -> Principal:
    return Principal(user_id=BLOOM, user_type=UserType.VENDOR)


def make_token(sub: int, user_type: str = "client") -> str:
    return jwt.encode(
        {"sub": str(sub), "user_type": user_type},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def make_user(user_id: int, user_type: str = UserType.CLIENT) -> UserProfile:
    return UserProfile(
        id=user_id,
        username=f"user{user_id}",
        full_name=None,
        user_type=user_type,
        avatar_url=None,
    )


def make_message(
    message_id: int,
    sender_id: int = ANNA,
    receiver_id: int = BLOOM,
    *,
    content: str = "hello",
    read: bool = False,
    minutes: int = 0,
) -> Message:
    return Message(
        id=message_id,
        sender_id=sender_id,
        receiver_id=receiver_id,
        content=content,
        read=read,
        created_at=T0 + timedelta(minutes=minutes),
    )


class StepClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start: datetime = T0) -> None:
        self._next = start

    def now(self) -> datetime:
        current = self._next
        self._next += timedelta(seconds=1)
        return current


@dataclass
class FakeUserReader:
    _users: dict[int, UserProfile] = field(default_factory=dict)

    def add(self, *user_ids: int) -> None:
        for user_id in user_ids:
            self._users[user_id] = make_user(user_id)

    async def get_by_id(self, user_id: int) -> UserProfile | None:
        return self._users.get(user_id)

    async def get_many(self, user_ids: list[int]) -> dict[int, UserProfile]:
        return {uid: self._users[uid] for uid in user_ids if uid in self._users}


@dataclass
class FakeMessageReader:
    _messages: list[Message] = field(default_factory=list)

    async def get_by_id(self, message_id: int) -> Message | None:
        for m in self._messages:
            if m.id == message_id:
                return m
        return None

    async def list_between(self, user_a: int, user_b: int) -> list[Message]:
        pair = {user_a, user_b}
        found = [m for m in self._messages if {m.sender_id, m.receiver_id} == pair]
        return sorted(found, key=lambda m: (m.created_at, m.id))

    async def list_conversation_partners(self, user_id: int) -> list[int]:
        partners: list[int] = []
        for m in self._messages:
            if m.involves(user_id) and m.partner_of(user_id) not in partners:
                partners.append(m.partner_of(user_id))
        return partners


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader
    clock: Clock = field(default_factory=lambda: MonotonicClock(StepClock()))

    async def append(self, sender_id: int, receiver_id: int, content: str) -> Message:
        next_id = max((m.id for m in self._reader._messages), default=0) + 1
        msg = Message(
            id=next_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            read=False,
            created_at=self.clock.now(),
        )
        self._reader._messages.append(msg)
        return msg

    async def mark_read(self, message_id: int) -> Message | None:
        for i, m in enumerate(self._reader._messages):
            if m.id == message_id:
                self._reader._messages[i] = dataclasses.replace(m, read=True)
                return self._reader._messages[i]
        return None


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    users: FakeUserReader = field(default_factory=FakeUserReader)
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    commits: int = 0
    rollbacks: int = 0

    def __post_init__(self) -> None:
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1


def fake_uow_factory(uow: FakeUoW):
    """Stand-in for ``app.state.uow_factory`` that always hands out ``uow``."""

    @asynccontextmanager
    async def _open() -> AsyncIterator[FakeUoW]:
        try:
            yield uow
        except Exception:
            await uow.rollback()
            raise

    return _open


@pytest.fixture
def uow() -> FakeUoW:
    uow = FakeUoW()
    uow.users.add(ANNA, BLOOM, ADMIN)
    return uow


@dataclass
class RecordingDelivery:
    delivered: list[Message] = field(default_factory=list)

    def deliver(self, message: Message) -> None:
        self.delivered.append(message)


@dataclass(eq=False)
class FakeConnection:
    user_id: int
    is_open: bool = True
    fail: bool = False
    sent: list[str] = field(default_factory=list)
    closed_with: int | None = None

    async def send_text(self, raw: str) -> None:
        if self.fail:
            raise TransportFailureError(f"socket of user {self.user_id} is gone")
        self.sent.append(raw)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed_with = code
        self.is_open = False
