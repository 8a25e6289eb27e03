"""Best-effort push of stored messages to the receiver's live connection."""
from __future__ import annotations

import asyncio
import logging

from messaging_service.application.exceptions import TransportFailureError
from messaging_service.domain.entities.message import Message
from messaging_service.infrastructure.ws.protocol import MessageFrame
from messaging_service.infrastructure.ws.registry import ConnectionHandle, ConnectionRegistry

logger = logging.getLogger(__name__)


class DeliveryFanout:
    """Implements application.ports.delivery.MessageDelivery.

    ``deliver`` only schedules the push. No retry, no queue: a receiver who
    misses the push sees the message on the next history fetch.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry
        self._tasks: set[asyncio.Task[None]] = set()

    def deliver(self, message: Message) -> None:
        conn = self._registry.lookup(message.receiver_id)
        if conn is None or not conn.is_open:
            logger.debug(
                "User %d not connected, message %d left for next fetch",
                message.receiver_id, message.id,
            )
            return

        raw = MessageFrame.from_entity(message).model_dump_json()
        task = asyncio.create_task(
            self._push(conn, message.id, raw), name=f"ws-push-{message.id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    async def _push(self, conn: ConnectionHandle, message_id: int, raw: str) -> None:
        try:
            await conn.send_text(raw)
        except TransportFailureError as exc:
            logger.warning(
                "Live push of message %d to user %d failed: %s",
                message_id, conn.user_id, exc.detail,
            )
            self._registry.unregister(conn.user_id, conn)
            return
        logger.debug("Message %d pushed to user %d", message_id, conn.user_id)

    def _on_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Push task %s crashed", task.get_name(), exc_info=exc)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every in-flight push to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
