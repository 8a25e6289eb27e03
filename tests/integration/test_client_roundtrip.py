"""The client SDK driven against the real app over ASGI."""
from __future__ import annotations

import httpx
import pytest

from messaging_service.app import create_app
from messaging_service.application.exceptions import UnknownIdentityError
from messaging_service.client.api import MessagingClient
from messaging_service.client.conversation import ConversationView
from tests.conftest import ANNA, BLOOM, OUTSIDER, fake_uow_factory, make_token


@pytest.fixture
def app(uow):
    app = create_app()
    app.state.uow_factory = fake_uow_factory(uow)
    return app


def sdk(app, user_id: int) -> MessagingClient:
    return MessagingClient(
        "http://testserver", make_token(user_id), transport=httpx.ASGITransport(app=app),
    )


@pytest.mark.asyncio
async def test_optimistic_send_then_read_on_the_other_side(app):
    async with sdk(app, ANNA) as anna, sdk(app, BLOOM) as bloom:
        anna_view = ConversationView(ANNA, BLOOM, anna.history_fetcher(BLOOM))
        echo = anna_view.add_local_echo("Do you deliver on Sundays?")
        stored = await anna.send_message(BLOOM, "Do you deliver on Sundays?")
        anna_view.confirm(echo, stored)

        bloom_view = ConversationView(BLOOM, ANNA, bloom.history_fetcher(ANNA))
        assert await bloom_view.refresh() is True
        unread = bloom_view.unread_ids()
        await bloom.mark_read(unread)
        [summary] = await bloom.list_conversations()

    assert [m.id for m in anna_view.messages()] == [stored.id]
    assert unread == [stored.id]
    assert summary.partner.id == ANNA
    assert summary.unread_count == 0


@pytest.mark.asyncio
async def test_rejected_send_surfaces_error_code(app):
    async with sdk(app, ANNA) as anna:
        view = ConversationView(ANNA, OUTSIDER, anna.history_fetcher(OUTSIDER))
        echo = view.add_local_echo("hello?")

        with pytest.raises(UnknownIdentityError):
            await anna.send_message(OUTSIDER, "hello?")
        view.discard(echo)

    assert view.messages() == []
