"""Live (WebSocket) side of a chat client."""
from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Self

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import WebSocketException

from messaging_service.application.exceptions import ForbiddenError, TransportFailureError
from messaging_service.infrastructure.ws.protocol import (
    ErrorFrame,
    FrameError,
    HandshakeFrame,
    HandshakeOkFrame,
    MessageFrame,
    SendFrame,
    parse_outbound,
)

logger = logging.getLogger(__name__)

Connector = Callable[[str], Awaitable[Any]]


class LiveChannel:
    """One authenticated socket to ``/ws/chat``.

    ``frames()`` yields every decoded server frame, including ``error``
    frames answering a rejected send.
    """

    def __init__(self, url: str, token: str, *, connect: Connector = ws_connect) -> None:
        self._url = url
        self._token = token
        self._connect = connect
        self._ws: Any = None
        self.user_id: int | None = None

    async def __aenter__(self) -> Self:
        await self.open()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def open(self) -> int:
        try:
            self._ws = await self._connect(self._url)
            await self._ws.send(HandshakeFrame(token=self._token).model_dump_json())
            frame = parse_outbound(await self._ws.recv())
        except (OSError, WebSocketException) as exc:
            raise TransportFailureError(f"connecting to {self._url}: {exc!r}") from exc

        if isinstance(frame, HandshakeOkFrame):
            self.user_id = frame.user_id
            logger.debug("Live channel open for user %d", frame.user_id)
            return frame.user_id

        await self.close()
        if isinstance(frame, ErrorFrame):
            raise ForbiddenError(frame.detail or frame.code)
        raise TransportFailureError(f"unexpected {frame.type!r} frame during handshake")

    async def send(self, receiver_id: int, content: str) -> None:
        if self._ws is None:
            raise TransportFailureError("live channel is not open")
        frame = SendFrame(receiver_id=receiver_id, content=content)
        try:
            await self._ws.send(frame.model_dump_json(exclude_none=True))
        except WebSocketException as exc:
            raise TransportFailureError(f"send failed: {exc!r}") from exc

    async def frames(self) -> AsyncIterator[HandshakeOkFrame | MessageFrame | ErrorFrame]:
        if self._ws is None:
            raise TransportFailureError("live channel is not open")
        try:
            async for raw in self._ws:
                try:
                    yield parse_outbound(raw)
                except FrameError as exc:
                    logger.warning("Dropping undecodable frame (%s): %s", exc.code, exc.detail)
        except WebSocketException as exc:
            raise TransportFailureError(f"live channel dropped: {exc!r}") from exc

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
