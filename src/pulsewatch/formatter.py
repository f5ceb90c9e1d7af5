# ABOUTME: Renders status cards and status reports as Telegram HTML messages
# ABOUTME: Builds markdown and converts it to Telegram's HTML subset with mistune

from dataclasses import dataclass
from datetime import datetime
from typing import Any

import mistune
from mistune.renderers.html import HTMLRenderer
from mistune.util import escape as escape_text

from .monitor.timefmt import format_next_expected, format_overdue, format_time_ago
from .monitor.tracker import StatusSnapshot

# Telegram message limit
MAX_MESSAGE_LENGTH = 4096

ONLINE_ICON = "🟢"
OFFLINE_ICON = "🔴"


@dataclass
class FormattedMessage:
    """A formatted message ready for Telegram."""

    text: str
    parse_mode: str | None = "HTML"


@dataclass
class StatusCard:
    """
    Descriptor of the shared status message.

    The only rule imposed on rendering is the state mapping:
    online is green and "operational", offline is red and "offline".
    """

    service_name: str
    online: bool
    timestamp: datetime

    @property
    def title(self) -> str:
        return f"{self.service_name} Status"


class TelegramHTMLRenderer(HTMLRenderer):
    """Custom mistune renderer that outputs Telegram-compatible HTML.

    Telegram supports a limited subset of HTML tags:
    <b>, <i>, <u>, <s>, <code>, <pre>, <a>, <blockquote>, <tg-spoiler>
    """

    def __init__(self) -> None:
        super().__init__(escape=True)

    def emphasis(self, text: str) -> str:
        return "<i>" + text + "</i>"

    def strong(self, text: str) -> str:
        return "<b>" + text + "</b>"

    def codespan(self, text: str) -> str:
        return "<code>" + escape_text(text) + "</code>"

    def link(self, text: str, url: str, title: str | None = None) -> str:
        return '<a href="' + self.safe_url(url) + '">' + text + "</a>"

    def linebreak(self) -> str:
        return "\n"

    def softbreak(self) -> str:
        return "\n"

    def inline_html(self, html: str) -> str:
        return escape_text(html)

    def paragraph(self, text: str) -> str:
        return text + "\n\n"

    def heading(self, text: str, level: int, **attrs: Any) -> str:
        return "<b>" + text + "</b>\n\n"

    def thematic_break(self) -> str:
        return "———\n\n"

    def block_quote(self, text: str) -> str:
        return "<blockquote>" + text.strip() + "</blockquote>\n\n"

    def block_html(self, html: str) -> str:
        return escape_text(html.strip()) + "\n\n"

    def blank_line(self) -> str:
        return ""

    def block_text(self, text: str) -> str:
        return text


def markdown_to_telegram_html(text: str) -> str:
    """Convert markdown to Telegram-compatible HTML."""
    md = mistune.create_markdown(renderer=TelegramHTMLRenderer())
    return md(text).strip()


def format_markdown(text: str) -> FormattedMessage:
    """
    Convert markdown into a single Telegram message.

    Falls back to the raw text without a parse mode if conversion fails
    or produces something too long to send.
    """
    try:
        converted = markdown_to_telegram_html(text)
    except Exception:
        return FormattedMessage(text=text[:MAX_MESSAGE_LENGTH], parse_mode=None)

    if len(converted) > MAX_MESSAGE_LENGTH:
        return FormattedMessage(text=text[:MAX_MESSAGE_LENGTH], parse_mode=None)
    return FormattedMessage(text=converted, parse_mode="HTML")


def format_clock(moment: datetime) -> str:
    """12-hour wall clock time, e.g. '3:04 PM'."""
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d} {suffix}"


def render_status_card(card: StatusCard) -> FormattedMessage:
    """Render the shared status message."""
    if card.online:
        icon, description = ONLINE_ICON, "System is operational"
    else:
        icon, description = OFFLINE_ICON, "System is offline"

    footer = f"{card.service_name} | Today at {format_clock(card.timestamp)} UTC"
    return format_markdown(f"{icon} **{card.title}**\n\n{description}\n\n_{footer}_")


def render_status_report(snapshot: StatusSnapshot, service_name: str) -> FormattedMessage:
    """Render the private reply to a status query."""
    lines: list[str] = []

    if not snapshot.has_heartbeat:
        icon = OFFLINE_ICON
        lines.append("**Current Status:** ❌ **Offline** (No heartbeat detected yet)")
        lines.append("**Last Heartbeat:** Never")
    elif snapshot.is_online:
        icon = ONLINE_ICON
        lines.append("**Current Status:** ✅ **Online**")
        lines.append(f"**Last Heartbeat:** {format_time_ago(snapshot.time_since)}")
        lines.append(f"**Next Expected:** {format_next_expected(snapshot.next_expected)}")
    else:
        icon = OFFLINE_ICON
        lines.append("**Current Status:** ❌ **Offline**")
        lines.append(f"**Last Heartbeat:** {format_time_ago(snapshot.time_since)}")
        lines.append(f"**Next Expected:** {format_overdue(snapshot.offline_threshold)}")

    body = "\n".join(lines)
    return format_markdown(
        f"{icon} **{service_name} Monitor Status**\n\n{body}\n\n_{service_name} Monitoring Bot_"
    )


def format_error(error: str) -> FormattedMessage:
    """Format an error message for Telegram."""
    # Use plain text for errors to avoid escaping issues
    return FormattedMessage(
        text=f"❌ Error: {error}",
        parse_mode=None,
    )
