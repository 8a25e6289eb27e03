"""HTTP client for the messaging REST API."""
from __future__ import annotations

import logging
from functools import partial
from typing import Any, Self, TypeVar

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from messaging_service.api.v1.schemas.conversation import ConversationSummaryResponse
from messaging_service.api.v1.schemas.message import MessageResponse
from messaging_service.api.v1.schemas.user import UserResponse
from messaging_service.application.exceptions import (
    ERRORS_BY_CODE,
    AppError,
    ForbiddenError,
    NotFoundError,
    TransportFailureError,
    ValidationError,
)
from messaging_service.client.conversation import HistoryFetcher
from messaging_service.client.reconciler import ChatMessage

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MESSAGE = TypeAdapter(MessageResponse)
_MESSAGES = TypeAdapter(list[MessageResponse])
_CONVERSATIONS = TypeAdapter(list[ConversationSummaryResponse])
_USER = TypeAdapter(UserResponse)


def _error_from_response(resp: httpx.Response) -> AppError:
    try:
        body = resp.json()
    except ValueError:
        body = {}
    detail = body.get("detail", resp.text) if isinstance(body, dict) else resp.text
    code = body.get("code") if isinstance(body, dict) else None

    if code in ERRORS_BY_CODE:
        return ERRORS_BY_CODE[code](str(detail))
    if resp.status_code == 422:
        return ValidationError(str(detail))
    if resp.status_code == 404:
        return NotFoundError(str(detail))
    if resp.status_code in (401, 403):
        return ForbiddenError(str(detail))
    return AppError(f"HTTP {resp.status_code}: {detail}")


class MessagingClient:
    """Request/response side of a chat client, authenticated with a bearer token."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportFailureError(f"{method} {path}: {exc!r}") from exc

        if resp.is_error:
            err = _error_from_response(resp)
            logger.debug("%s %s -> %d %s", method, path, resp.status_code, err.code)
            raise err

        try:
            return resp.json()
        except ValueError as exc:
            raise TransportFailureError(f"{method} {path}: response is not JSON") from exc

    async def _fetch(self, adapter: TypeAdapter[T], method: str, path: str, **kwargs: Any) -> T:
        data = await self._request(method, path, **kwargs)
        try:
            return adapter.validate_python(data)
        except PydanticValidationError as exc:
            raise TransportFailureError(f"{method} {path}: unexpected response shape") from exc

    async def fetch_history(self, other_user_id: int) -> list[ChatMessage]:
        messages = await self._fetch(_MESSAGES, "GET", f"/api/v1/messages/{other_user_id}")
        return [ChatMessage.from_response(m) for m in messages]

    def history_fetcher(self, other_user_id: int) -> HistoryFetcher:
        return partial(self.fetch_history, other_user_id)

    async def send_message(self, receiver_id: int, content: str) -> ChatMessage:
        stored = await self._fetch(
            _MESSAGE, "POST", "/api/v1/messages",
            json={"receiver_id": receiver_id, "content": content},
        )
        return ChatMessage.from_response(stored)

    async def mark_read(self, message_ids: list[int]) -> list[ChatMessage]:
        updated = await self._fetch(
            _MESSAGES, "POST", "/api/v1/messages/read", json={"message_ids": message_ids},
        )
        return [ChatMessage.from_response(m) for m in updated]

    async def list_conversations(self) -> list[ConversationSummaryResponse]:
        return await self._fetch(_CONVERSATIONS, "GET", "/api/v1/conversations")

    async def get_user(self, user_id: int) -> UserResponse:
        return await self._fetch(_USER, "GET", f"/api/v1/users/{user_id}")
