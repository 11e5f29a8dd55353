"""
User-facing message rendering (Discord markdown).

Every piece of remote or user-controlled text goes through _escape() before
it is embedded. Notification bodies are truncated to Discord's message
limit by the caller via truncate_message().
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from discord.utils import escape_markdown, format_dt

from services.whenplane.models.status import (
    PLATFORM_ORDER,
    IsThereWan,
    LiveStatus,
    NotablePeopleStatus,
    NotablePerson,
)
from shared.schedule.nominal import TimeUntil
from shared.storage.subscriptions import Preferences

MAX_MESSAGE_LENGTH = 2000

PLATFORM_LABELS = {
    "youtube": "YouTube",
    "floatplane": "Floatplane",
    "twitch": "Twitch",
}

PLATFORM_LINKS = {
    "youtube": "https://www.youtube.com/@LinusTechTips",
    "floatplane": "https://www.floatplane.com/channel/linustechtips",
    "twitch": "https://www.twitch.tv/linustech",
}


def _escape(text: Optional[str]) -> str:
    if not text:
        return ""
    return escape_markdown(text)


def _link(label: str, url: str) -> str:
    # Angle brackets suppress Discord's link preview embeds
    return f"[{label}](<{url}>)"


def _platform_link(platform: str) -> str:
    return _link(PLATFORM_LABELS.get(platform, platform), PLATFORM_LINKS[platform])


def _twitch_link(channel: str) -> str:
    safe = _escape(channel)
    return _link(f"twitch.tv/{safe}", f"https://twitch.tv/{channel}")


def truncate_message(message: str, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    if len(message) <= max_length:
        return message
    return message[: max_length - 3] + "..."


# ------------------------------------------------------------
# Notifications
# ------------------------------------------------------------

def render_event_live(
    status: LiveStatus,
    lateness: str,
    detected: Optional[str] = None,
) -> str:
    detected = detected or status.platforms.first_live()
    platform = PLATFORM_LABELS[detected] if detected else "a platform"

    lines = [
        "🔴 **WAN Show is NOW LIVE!** 🔴",
        "",
        f"Started {lateness} • Detected on {platform}",
    ]
    if status.title:
        lines += ["", f"📺 {_escape(status.title)}"]

    lines += ["", "Watch now:"]
    lines += [f"• {_platform_link(p)}" for p in PLATFORM_ORDER]
    lines += ["", "Enjoy the show! 🎉"]
    return "\n".join(lines)


def render_event_on_platform(platform: str, status: LiveStatus, lateness: str) -> str:
    label = PLATFORM_LABELS.get(platform, platform)

    lines = [
        f"📺 **WAN Show is on {label}!** 📺",
        "",
        f"Started {lateness}",
    ]
    if status.title:
        lines.append(f"📺 {_escape(status.title)}")

    lines += ["", "Watch now:"]
    if platform in PLATFORM_LINKS:
        lines.append(f"▶️ {_platform_link(platform)}")
    lines += ["", "Enjoy the show! 🎉"]
    return "\n".join(lines)


def render_entity_live(entity_id: str, person: NotablePerson) -> str:
    lines = [f"🌟 **{_escape(person.display_name(entity_id))} is LIVE!**", ""]
    if person.title:
        lines.append(f"📺 {_escape(person.title)}")
    if person.game:
        lines.append(f"🎮 {_escape(person.game)}")
    lines.append(f"▶️ {_twitch_link(person.channel_name(entity_id))}")
    return "\n".join(lines)


def render_test_notification(lateness: str) -> str:
    return "\n".join(
        [
            "🔔 **TEST: WAN Show is LIVE!** 🔔",
            "",
            "This is what the notification looks like:",
            "",
            render_event_live(
                LiveStatus(is_live=True, is_event=True),
                lateness,
                detected="youtube",
            ),
        ]
    )


# ------------------------------------------------------------
# Status commands
# ------------------------------------------------------------

def render_status(
    status: LiveStatus,
    until: TimeUntil,
    is_there_wan: Optional[IsThereWan] = None,
) -> str:
    if is_there_wan is not None and is_there_wan.text:
        return f"📢 **Update from WhenPlane**\n\n{_escape(is_there_wan.text)}"

    lines = ["📊 **WAN Show Status**", "", "**Platform Status:**"]
    for platform in PLATFORM_ORDER:
        state = "🟢 LIVE" if status.platforms.get(platform) else "⚪ Offline"
        lines.append(f"• {_platform_link(platform)}: {state}")
    lines.append("")

    if status.is_live and status.is_event:
        lines.append("🔴 **WAN Show is LIVE NOW!**")
        if status.title:
            lines += ["", f"📺 {_escape(status.title)}"]
    elif status.is_live:
        lines.append("🟡 **LTT is streaming (not WAN)**")
        if status.title:
            lines += ["", f"📺 {_escape(status.title)}"]
    else:
        if until.late:
            lines.append(f"⏰ WAN was supposed to start {until.text} ago")
        else:
            lines.append(f"⏰ Next WAN in {until.text}")

        if status.is_thumbnail_fresh:
            lines += ["", "📸 **New thumbnail detected!** Getting close..."]

    return "\n".join(lines)


def render_live_check(status: LiveStatus, until: TimeUntil) -> str:
    if status.is_live and status.is_event:
        lines = ["🔴 **WAN Show is LIVE NOW!** 🔴", ""]
        if status.title:
            lines += [f"📺 {_escape(status.title)}", ""]
        lines.append("Watch here:")
        lines += [f"▶️ {_platform_link(p)}" for p in PLATFORM_ORDER]
        return "\n".join(lines)

    if status.is_live:
        return "🟡 LTT is streaming, but it's not WAN Show.\n\nUse /status for details."

    return f"⏰ Not live yet. Next WAN in {until.text} (±45min typical, ±6h extreme!)"


def render_notable_status(notable: NotablePeopleStatus) -> str:
    if not notable.has_any_live:
        return (
            "🌟 **Notable People**\n\nNo one is currently streaming.\n\n"
            "Check back later or enable notifications with /settings"
        )

    lines = ["🌟 **Notable People Live**", ""]
    for entity_id, person in notable.live_people().items():
        lines.append(f"🔴 **{_escape(person.display_name(entity_id))}**")
        if person.title:
            lines.append(f"📺 {_escape(person.title)}")
        if person.game:
            lines.append(f"🎮 {_escape(person.game)}")
        lines += [f"▶️ {_twitch_link(person.channel_name(entity_id))}", ""]

    return "\n".join(lines).strip()


def render_next(nominal: datetime, until: TimeUntil) -> str:
    when = f"📅 {format_dt(nominal, 'F')}"

    if until.late:
        return "\n".join(
            [
                "🔴 WAN was supposed to start:",
                when,
                "",
                f"⏰ Currently **{until.text}** \"late\" (but who's counting?)",
                "",
                "They'll be live when they're live 😅",
            ]
        )

    return "\n".join(
        [
            "📅 Next WAN Show scheduled:",
            when,
            "",
            f"⏰ In: **{until.text}** ({format_dt(nominal, 'R')})",
            "",
            "💡 Pro tip: This is just a suggestion. Use /status to see if they're actually live!",
        ]
    )


def render_debug(
    *,
    subscriber_count: int,
    checker_running: bool,
    status: LiveStatus,
    notable_text: str,
) -> str:
    def _flag(value: bool) -> str:
        return "✅" if value else "❌"

    lines = [
        "🛠️ **Debug**",
        "",
        f"Subscribers: {subscriber_count}",
        f"Live Checker: {_flag(checker_running)}",
        "",
        "Current Status:",
        f"• isLive: {_flag(status.is_live)}",
        f"• isWAN: {_flag(status.is_event)}",
    ]
    for platform in PLATFORM_ORDER:
        state = "🟢 Live" if status.platforms.get(platform) else "⚪ Offline"
        lines.append(f"• {PLATFORM_LABELS[platform]}: {state}")
    lines += [
        f"• Thumbnail New: {'✅ Yes' if status.is_thumbnail_fresh else '❌ No'}",
        "",
        "Notable People:",
        notable_text or "  No data available",
    ]
    return "\n".join(lines)


# ------------------------------------------------------------
# Subscription commands
# ------------------------------------------------------------

def render_preferences(prefs: Preferences) -> str:
    event = "🟢" if prefs.event else "⚪"
    notable = "🟢" if prefs.notable else "⚪"
    return f"{event} WAN Show | {notable} Notable People"


def render_subscribed(prefs: Preferences, is_new: bool) -> str:
    greeting = "🎉 Welcome to WANWatch! 🎉" if is_new else "✅ **Subscribed!**"
    return "\n".join(
        [
            greeting,
            "",
            "You'll get a DM when the WAN Show goes **actually live**.",
            "",
            render_preferences(prefs),
            "",
            "Want more notifications? Use /settings to enable Notable People alerts!",
        ]
    )


def render_unsubscribed() -> str:
    return (
        "👋 **Unsubscribed**\n\nYou won't receive any notifications.\n\n"
        "Use /subscribe if you change your mind!"
    )


def render_settings(prefs: Preferences, note: Optional[str] = None) -> str:
    lines = ["⚙️ **Notification Settings**", "", render_preferences(prefs), ""]

    if note:
        lines.append(note)
    else:
        lines += [
            "**WAN Show** (default: ON)",
            "The main Friday show with Linus and Luke.",
            "",
            "**Notable People** (default: OFF)",
            "Other LTT-related creators (opt-in).",
            "",
            "Use the buttons below to toggle:",
        ]

    return "\n".join(lines)


def render_help(prefs: Optional[Preferences]) -> str:
    current = render_preferences(prefs) if prefs else "Not subscribed"
    return "\n".join(
        [
            "📱 **WANWatch Commands**",
            "",
            "**Info:**",
            "/next - Countdown to next scheduled WAN",
            "/status - Real-time live status check",
            "/live - Quick yes/no live check",
            "/notable - Check notable people status",
            "",
            "**Notifications:**",
            "/subscribe - Get a DM when WAN goes live",
            "/unsubscribe - Stop all notifications",
            "/settings - Toggle notification preferences",
            f"Current: {current}",
            "",
            "**About:**",
            "WAN Show is never on time, so every platform is watched 24/7. "
            "You'll get notified the moment they actually go live!",
        ]
    )
