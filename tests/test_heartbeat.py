from __future__ import annotations

from datetime import datetime, timedelta, timezone

from services.discord.heartbeat import DiscordHeartbeat, GatewayHealth

T0 = datetime(2026, 10, 16, 23, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)

    def __call__(self) -> datetime:
        return self.now


def test_connection_drops_are_counted():
    clock = FakeClock()
    heartbeat = DiscordHeartbeat(clock=clock)

    heartbeat.set_connected(True)
    heartbeat.set_connected(True)
    clock.advance(90)
    heartbeat.set_connected(False)
    heartbeat.set_connected(False)
    clock.advance(5)
    heartbeat.set_connected(True)

    health = heartbeat.state()
    assert health.connected
    assert health.disconnects == 1
    assert health.last_disconnect_at == T0 + timedelta(seconds=90)
    assert health.connected_since == T0 + timedelta(seconds=95)


def test_session_length_only_while_connected():
    clock = FakeClock()
    heartbeat = DiscordHeartbeat(clock=clock)

    heartbeat.set_connected(True)
    clock.advance(120)
    assert heartbeat.state().session_seconds(clock()) == 120

    heartbeat.set_connected(False)
    assert heartbeat.state().session_seconds(clock()) is None


def test_staleness_follows_ticks():
    clock = FakeClock()
    heartbeat = DiscordHeartbeat(clock=clock)

    assert not heartbeat.state().is_stale(clock(), 60)

    heartbeat.start()
    assert heartbeat.state().is_stale(clock(), 60)

    heartbeat.tick()
    clock.advance(30)
    assert not heartbeat.state().is_stale(clock(), 60)

    clock.advance(31)
    assert heartbeat.state().is_stale(clock(), 60)


def test_start_keeps_the_first_timestamp():
    clock = FakeClock()
    heartbeat = DiscordHeartbeat(clock=clock)

    heartbeat.start()
    clock.advance(10)
    heartbeat.start()

    assert heartbeat.state().started_at == T0


def test_snapshot_is_json_friendly():
    clock = FakeClock()
    heartbeat = DiscordHeartbeat(clock=clock)
    heartbeat.start()
    heartbeat.set_connected(True)
    clock.advance(15)
    heartbeat.tick()

    snap = heartbeat.state().snapshot(clock())

    assert snap == {
        "started_at": T0.isoformat(),
        "last_tick_at": (T0 + timedelta(seconds=15)).isoformat(),
        "connected": True,
        "connected_since": T0.isoformat(),
        "session_seconds": 15,
        "last_disconnect_at": None,
        "disconnects": 0,
    }


def test_empty_health_snapshot():
    snap = GatewayHealth().snapshot(T0)

    assert snap["connected"] is False
    assert snap["session_seconds"] is None
    assert snap["disconnects"] == 0
