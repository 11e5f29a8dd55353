from __future__ import annotations

from types import SimpleNamespace

import anyio
import discord

from core.dispatcher import DeliveryFailure
from services.discord.delivery import DiscordDelivery


def _response(status: int, reason: str):
    return SimpleNamespace(status=status, reason=reason)


class FakeUser:
    def __init__(self, error=None):
        self.error = error
        self.sent = []

    async def send(self, message):
        if self.error is not None:
            raise self.error
        self.sent.append(message)


class FakeBot:
    def __init__(self, user, ready=True, cached=True):
        self.user = user
        self.ready = ready
        self.cached = cached
        self.fetched = []

    def is_ready(self):
        return self.ready

    def get_user(self, user_id):
        return self.user if self.cached else None

    async def fetch_user(self, user_id):
        self.fetched.append(user_id)
        return self.user


def test_delivers_to_uncached_user():
    user = FakeUser()
    bot = FakeBot(user, cached=False)

    result = anyio.run(DiscordDelivery(lambda: bot).deliver, 1, "hi")

    assert result.ok
    assert bot.fetched == [1]
    assert user.sent == ["hi"]


def test_closed_dms_are_unreachable():
    user = FakeUser(discord.Forbidden(_response(403, "Forbidden"), "Cannot send messages to this user"))

    result = anyio.run(DiscordDelivery(lambda: FakeBot(user)).deliver, 1, "hi")

    assert not result.ok
    assert result.failure is DeliveryFailure.UNREACHABLE


def test_other_http_errors_are_plain_failures():
    user = FakeUser(discord.HTTPException(_response(500, "Server Error"), "oops"))

    result = anyio.run(DiscordDelivery(lambda: FakeBot(user)).deliver, 1, "hi")

    assert result.failure is DeliveryFailure.OTHER


def test_not_connected_is_a_failure():
    result = anyio.run(DiscordDelivery(lambda: None).deliver, 1, "hi")
    assert result.failure is DeliveryFailure.OTHER

    not_ready = FakeBot(FakeUser(), ready=False)
    result = anyio.run(DiscordDelivery(lambda: not_ready).deliver, 1, "hi")
    assert result.failure is DeliveryFailure.OTHER
