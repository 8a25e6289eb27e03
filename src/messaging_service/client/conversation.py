"""Per-conversation client state feeding the reconciler."""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Awaitable, Callable, Sequence

from messaging_service.application.exceptions import AppError
from messaging_service.client.reconciler import ChatMessage, merge

logger = logging.getLogger(__name__)

HistoryFetcher = Callable[[], Awaitable[Sequence[ChatMessage]]]

# Tolerated difference between this client's clock and the store clock.
DEFAULT_CLOCK_SKEW = timedelta(minutes=1)


class ConversationView:
    """What one user sees of their conversation with ``partner_id``.

    Holds the last good history snapshot, live deliveries observed since,
    and optimistic echoes of the user's own unsent-yet messages. An echo
    stays until it is confirmed, discarded, or a history snapshot contains
    its stored copy.
    """

    def __init__(
        self,
        user_id: int,
        partner_id: int,
        fetch_history: HistoryFetcher,
        *,
        clock_skew: timedelta = DEFAULT_CLOCK_SKEW,
    ) -> None:
        self.user_id = user_id
        self.partner_id = partner_id
        self._fetch_history = fetch_history
        self._clock_skew = clock_skew
        self._history: list[ChatMessage] = []
        self._live: list[ChatMessage] = []
        self._echoes: list[ChatMessage] = []

    def belongs(self, msg: ChatMessage) -> bool:
        return {msg.sender_id, msg.receiver_id} == {self.user_id, self.partner_id}

    async def refresh(self) -> bool:
        """Refetch history. Return whether a new snapshot was taken.

        A failed fetch is not rendered as an empty history: the view keeps
        the previous snapshot (empty before the first success), so messages
        already shown do not vanish while the server is unreachable.
        """
        try:
            history = list(await self._fetch_history())
        except AppError as exc:
            logger.warning(
                "History fetch %d<->%d failed: %s",
                self.user_id, self.partner_id, exc.detail or exc.code,
            )
            return False

        self._history = history
        stored_ids = {m.id for m in history if m.id is not None}
        self._live = [m for m in self._live if m.id not in stored_ids]
        self._echoes = self._unreconciled_echoes(history)
        return True

    def _unreconciled_echoes(self, history: list[ChatMessage]) -> list[ChatMessage]:
        """Echoes with no stored copy in ``history``. Each stored message settles one echo."""
        candidates = [
            m for m in history
            if m.id is not None and m.sender_id == self.user_id and m.created_at is not None
        ]
        settled: set[int] = set()
        kept: list[ChatMessage] = []
        for echo in self._echoes:
            earliest = echo.created_at - self._clock_skew if echo.created_at else None
            match = next(
                (
                    m for m in candidates
                    if m.id not in settled
                    and m.content == echo.content
                    and (earliest is None or m.created_at >= earliest)
                ),
                None,
            )
            if match is None:
                kept.append(echo)
            else:
                settled.add(match.id)
        return kept

    def observe(self, msg: ChatMessage) -> bool:
        """Record a live delivery. Messages of other conversations are ignored."""
        if not self.belongs(msg):
            return False
        self._live.append(msg)
        return True

    def add_local_echo(self, content: str) -> ChatMessage:
        echo = ChatMessage.local_echo(self.user_id, self.partner_id, content)
        self._echoes.append(echo)
        return echo

    def confirm(self, echo: ChatMessage, stored: ChatMessage) -> None:
        """Swap an echo for the stored message returned by a request/response send."""
        self.discard(echo)
        self._live.append(stored)

    def discard(self, echo: ChatMessage) -> None:
        self._echoes = [e for e in self._echoes if e.local_key != echo.local_key]

    def messages(self) -> list[ChatMessage]:
        return merge(self._history, [*self._live, *self._echoes])

    def unread_ids(self) -> list[int]:
        return [
            m.id
            for m in self.messages()
            if m.id is not None and m.receiver_id == self.user_id and not m.read
        ]
