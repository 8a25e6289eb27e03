"""In-process registry of live WebSocket connections, one per identity."""
from __future__ import annotations

import logging
import threading
from typing import Protocol

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from messaging_service.application.exceptions import TransportFailureError

logger = logging.getLogger(__name__)

DEFAULT_LOCK_STRIPES = 64


class ConnectionHandle(Protocol):
    user_id: int

    @property
    def is_open(self) -> bool: ...

    async def send_text(self, raw: str) -> None: ...

    async def close(self, code: int = 1000, reason: str = "") -> None: ...


class LiveConnection:
    """A registered WebSocket owned by one authenticated user."""

    __slots__ = ("user_id", "_ws")

    def __init__(self, user_id: int, ws: WebSocket) -> None:
        self.user_id = user_id
        self._ws = ws

    @property
    def is_open(self) -> bool:
        return (
            self._ws.client_state == WebSocketState.CONNECTED
            and self._ws.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, raw: str) -> None:
        try:
            await self._ws.send_text(raw)
        except Exception as exc:
            raise TransportFailureError(f"send to user {self.user_id} failed: {exc!r}") from exc

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if not self.is_open:
            return
        try:
            await self._ws.close(code=code, reason=reason)
        except Exception:
            logger.debug("Closing WS of user %d failed", self.user_id, exc_info=True)

    def __repr__(self) -> str:
        return f"LiveConnection(user_id={self.user_id}, id=0x{id(self):x})"


class ConnectionRegistry:
    """Maps a user id to at most one live connection.

    Each operation holds the lock stripe of its identity, so register and
    unregister for one user are linearizable while different users almost
    never contend.
    """

    def __init__(self, stripes: int = DEFAULT_LOCK_STRIPES) -> None:
        self._connections: dict[int, ConnectionHandle] = {}
        self._locks = [threading.Lock() for _ in range(stripes)]

    def _lock_for(self, user_id: int) -> threading.Lock:
        return self._locks[hash(user_id) % len(self._locks)]

    def register(self, user_id: int, conn: ConnectionHandle) -> ConnectionHandle | None:
        """Point ``user_id`` at ``conn``. Return the handle it superseded, if any.

        The superseded handle is not closed here.
        """
        with self._lock_for(user_id):
            previous = self._connections.get(user_id)
            self._connections[user_id] = conn

        if previous is conn:
            return None
        logger.debug(
            "WS registered: user=%d superseded=%s (total=%d)",
            user_id, previous is not None, len(self),
        )
        return previous

    def unregister(self, user_id: int, conn: ConnectionHandle) -> bool:
        """Remove the entry only if it still points at this exact ``conn``."""
        with self._lock_for(user_id):
            if self._connections.get(user_id) is not conn:
                return False
            del self._connections[user_id]

        logger.debug("WS unregistered: user=%d (total=%d)", user_id, len(self))
        return True

    def lookup(self, user_id: int) -> ConnectionHandle | None:
        with self._lock_for(user_id):
            return self._connections.get(user_id)

    def online_user_ids(self) -> list[int]:
        return sorted(self._connections.copy())

    def __len__(self) -> int:
        return len(self._connections)
