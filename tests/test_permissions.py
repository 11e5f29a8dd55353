from __future__ import annotations

from services.discord.permissions import CooldownTracker, DiscordPermissionResolver


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_cooldown_window_is_not_extended_by_denials():
    clock = FakeClock()
    tracker = CooldownTracker(5, clock=clock)

    assert tracker.check(1)
    clock.now += 3
    assert not tracker.check(1)
    assert tracker.remaining(1) == 2
    clock.now += 2
    assert tracker.check(1)


def test_cooldowns_are_per_user():
    tracker = CooldownTracker(5, clock=FakeClock())

    assert tracker.check(1)
    assert tracker.check(2)
    assert tracker.remaining(3) == 0


def test_public_denial_reports_wait():
    clock = FakeClock()
    resolver = DiscordPermissionResolver(clock=clock)

    assert resolver.check_public(1)
    clock.now += 1.5
    denied = resolver.check_public(1)

    assert not denied
    assert denied.reason == "⏱️ Please wait 4s before checking again."
    assert denied.metadata["cooldown"] == 4


def test_admin_gate():
    clock = FakeClock()
    resolver = DiscordPermissionResolver([7], clock=clock)

    assert resolver.admin_count == 1
    assert not resolver.require_admin(8)
    assert "restricted" in resolver.require_admin(8).reason

    assert resolver.require_admin(7)
    assert "rate limited" in resolver.require_admin(7).reason
    clock.now += 2
    assert resolver.require_admin(7)
