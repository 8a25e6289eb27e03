"""Merge REST history with live WebSocket deliveries into one timeline.

Messages are keyed by store id. Messages without an id (optimistic local
echoes) are keyed by a synthetic ``local:`` key that can never equal an id
key, so they render immediately and coexist with their stored copy until the
next history refresh.
"""
from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from messaging_service.api.v1.schemas.message import MessageResponse
from messaging_service.infrastructure.ws.protocol import MessageFrame

MergeKey = tuple[str, int | str]

_NO_TIMESTAMP = datetime.max.replace(tzinfo=timezone.utc)


def new_local_key() -> str:
    return f"local:{time.time_ns()}:{secrets.token_hex(4)}"


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """Client-side message. ``id`` and ``created_at`` are unset until stored."""

    sender_id: int
    receiver_id: int
    content: str
    id: int | None = None
    created_at: datetime | None = None
    read: bool = False
    local_key: str | None = None

    @property
    def is_stored(self) -> bool:
        return self.id is not None

    @classmethod
    def local_echo(cls, sender_id: int, receiver_id: int, content: str) -> ChatMessage:
        return cls(
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            created_at=datetime.now(timezone.utc),
            local_key=new_local_key(),
        )

    @classmethod
    def from_response(cls, resp: MessageResponse) -> ChatMessage:
        return cls(
            id=resp.id,
            sender_id=resp.sender_id,
            receiver_id=resp.receiver_id,
            content=resp.content,
            read=resp.read,
            created_at=resp.created_at,
        )

    @classmethod
    def from_frame(cls, frame: MessageFrame) -> ChatMessage:
        return cls(
            id=frame.id,
            sender_id=frame.sender_id,
            receiver_id=frame.receiver_id,
            content=frame.content,
            read=frame.read,
            created_at=frame.created_at,
        )


def merge_key(msg: ChatMessage, fallback: str) -> MergeKey:
    if msg.id is not None:
        return ("id", msg.id)
    return ("local", msg.local_key or fallback)


def _sort_key(msg: ChatMessage, seq: int) -> tuple[datetime, bool, int, int]:
    ts = msg.created_at or _NO_TIMESTAMP
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return (ts, msg.id is None, msg.id or 0, seq)


def merge(history: Iterable[ChatMessage], live: Iterable[ChatMessage]) -> list[ChatMessage]:
    """Return history and live messages as one de-duplicated, time-ordered list.

    History wins over live for the same id. Merging the same inputs always
    yields the same list.
    """
    merged: dict[MergeKey, ChatMessage] = {}

    for position, msg in enumerate(history):
        merged[merge_key(msg, f"history:{position}")] = msg

    for position, msg in enumerate(live):
        key = merge_key(msg, f"live:{position}")
        if key in merged:
            continue
        merged[key] = msg

    ordered = sorted(enumerate(merged.values()), key=lambda p: _sort_key(p[1], p[0]))
    return [msg for _, msg in ordered]
