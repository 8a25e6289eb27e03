from __future__ import annotations

import asyncio
import logging
from typing import assert_never

import jwt
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from sqlalchemy.exc import SQLAlchemyError

from messaging_service.application.dto.principal import Principal
from messaging_service.application.exceptions import AppError
from messaging_service.application.ports.auth import TokenVerifier
from messaging_service.config import settings
from messaging_service.infrastructure.ws.protocol import (
    FrameError,
    HandshakeFrame,
    HandshakeOkFrame,
    SendFrame,
    error_frame,
    parse_inbound,
)
from messaging_service.infrastructure.ws.registry import ConnectionRegistry, LiveConnection
from messaging_service.services import message_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

CLOSE_SUPERSEDED = 4000
CLOSE_UNAUTHENTICATED = 4001


async def _authenticate(ws: WebSocket, token: str) -> Principal | None:
    verifier: TokenVerifier = ws.app.state.verifier
    try:
        return await verifier.verify(token)
    except jwt.PyJWTError:
        logger.debug("WS auth failed", exc_info=True)
        return None


@router.websocket("/ws/chat")
async def ws_chat(websocket: WebSocket) -> None:
    registry: ConnectionRegistry = websocket.app.state.registry
    await websocket.accept()

    try:
        principal = await asyncio.wait_for(
            _await_handshake(websocket), settings.WS_HANDSHAKE_TIMEOUT_SECONDS,
        )
    except TimeoutError:
        await websocket.close(code=CLOSE_UNAUTHENTICATED, reason="Handshake timeout")
        return
    except WebSocketDisconnect:
        return

    if principal is None:
        await websocket.close(code=CLOSE_UNAUTHENTICATED, reason="Authentication failed")
        return

    conn = LiveConnection(principal.user_id, websocket)
    superseded = registry.register(principal.user_id, conn)
    if superseded is not None:
        logger.info("User %d reconnected, closing previous WS", principal.user_id)
        await superseded.close(code=CLOSE_SUPERSEDED, reason="Superseded by a newer connection")

    try:
        await websocket.send_text(HandshakeOkFrame(user_id=principal.user_id).model_dump_json())
        await _read_loop(websocket, principal)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for user %d", principal.user_id)
    finally:
        registry.unregister(principal.user_id, conn)


async def _receive_raw(ws: WebSocket) -> str | bytes:
    """Next frame payload, text or binary. Raises WebSocketDisconnect on close."""
    message = await ws.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
    if message.get("text") is not None:
        return message["text"]
    return message.get("bytes") or b""


async def _await_handshake(ws: WebSocket) -> Principal | None:
    """Read frames until a handshake arrives. Sends before it are refused."""
    while True:
        raw = await _receive_raw(ws)
        try:
            frame = parse_inbound(raw)
        except FrameError as exc:
            await ws.send_text(error_frame(exc.code, exc.detail))
            continue

        if isinstance(frame, HandshakeFrame):
            principal = await _authenticate(ws, frame.token)
            if principal is None:
                await ws.send_text(error_frame("unauthenticated", "Invalid token"))
            return principal
        elif isinstance(frame, SendFrame):
            await ws.send_text(
                error_frame("not_authenticated", "Send a handshake frame first")
            )
        else:
            assert_never(frame)


async def _read_loop(ws: WebSocket, principal: Principal) -> None:
    while True:
        raw = await _receive_raw(ws)
        try:
            frame = parse_inbound(raw)
        except FrameError as exc:
            await ws.send_text(error_frame(exc.code, exc.detail))
            continue

        if isinstance(frame, SendFrame):
            await _handle_send(ws, principal, frame)
        elif isinstance(frame, HandshakeFrame):
            await ws.send_text(
                error_frame("already_authenticated", "Connection is already authenticated")
            )
        else:
            assert_never(frame)


async def _handle_send(ws: WebSocket, principal: Principal, frame: SendFrame) -> None:
    try:
        async with ws.app.state.uow_factory() as uow:
            await message_service.send_message(
                principal,
                frame.receiver_id,
                frame.content,
                uow,
                ws.app.state.fanout,
                claimed_sender_id=frame.sender_id,
                max_length=settings.MESSAGE_MAX_LENGTH,
            )
    except AppError as exc:
        await ws.send_text(error_frame(exc.code, exc.detail))
    except SQLAlchemyError as exc:
        logger.exception("Storing WS message from user %d failed", principal.user_id)
        await ws.send_text(error_frame("send_failed", str(exc)))
