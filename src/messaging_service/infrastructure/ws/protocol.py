"""WebSocket frame models.

Every frame is a JSON object tagged by ``type``. Inbound and outbound frames
are closed unions: anything with an unknown tag is rejected, never ignored.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from messaging_service.application.exceptions import ValidationError
from messaging_service.domain.entities.message import Message


class _Frame(BaseModel):
    model_config = ConfigDict(extra="forbid")


# Client → Server


class HandshakeFrame(_Frame):
    type: Literal["handshake"] = "handshake"
    token: str = Field(min_length=1)


class SendFrame(_Frame):
    """A client send. ``id``, ``created_at`` and ``read`` belong to the store."""

    type: Literal["message.send"] = "message.send"
    receiver_id: int
    content: str
    sender_id: int | None = None


InboundFrame = Annotated[Union[HandshakeFrame, SendFrame], Field(discriminator="type")]


# Server → Client


class HandshakeOkFrame(_Frame):
    type: Literal["handshake.ok"] = "handshake.ok"
    user_id: int


class MessageFrame(_Frame):
    type: Literal["message"] = "message"
    id: int
    sender_id: int
    receiver_id: int
    content: str
    read: bool = False
    created_at: datetime

    @classmethod
    def from_entity(cls, message: Message) -> MessageFrame:
        return cls(
            id=message.id,
            sender_id=message.sender_id,
            receiver_id=message.receiver_id,
            content=message.content,
            read=message.read,
            created_at=message.created_at,
        )


class ErrorFrame(_Frame):
    type: Literal["error"] = "error"
    code: str
    detail: str = ""


OutboundFrame = Annotated[
    Union[HandshakeOkFrame, MessageFrame, ErrorFrame], Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[HandshakeFrame | SendFrame] = TypeAdapter(InboundFrame)
_outbound_adapter: TypeAdapter[HandshakeOkFrame | MessageFrame | ErrorFrame] = TypeAdapter(
    OutboundFrame
)


class FrameError(ValidationError):
    """A frame that could not be decoded into one of the known variants."""

    def __init__(self, code: str, detail: str = "") -> None:
        super().__init__(detail)
        self.code = code


def _decode(adapter: TypeAdapter, raw: str | bytes):  # type: ignore[type-arg]
    try:
        return adapter.validate_json(raw)
    except PydanticValidationError as exc:
        errors = exc.errors()
        if any(e["type"] == "union_tag_invalid" for e in errors):
            raise FrameError("unknown_type", errors[0]["msg"]) from exc
        raise FrameError("invalid_payload", str(exc)) from exc


def parse_inbound(raw: str | bytes) -> HandshakeFrame | SendFrame:
    return _decode(_inbound_adapter, raw)


def parse_outbound(raw: str | bytes) -> HandshakeOkFrame | MessageFrame | ErrorFrame:
    return _decode(_outbound_adapter, raw)


def error_frame(code: str, detail: str = "") -> str:
    return ErrorFrame(code=code, detail=detail).model_dump_json()
