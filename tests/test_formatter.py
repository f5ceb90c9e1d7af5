# ABOUTME: Tests for status message rendering and markdown to Telegram HTML conversion
# ABOUTME: Verifies the online/offline mapping, report fields, and HTML escaping

from datetime import datetime, timedelta, timezone

from pulsewatch.formatter import (
    FormattedMessage,
    StatusCard,
    format_clock,
    format_error,
    format_markdown,
    markdown_to_telegram_html,
    render_status_card,
    render_status_report,
)
from pulsewatch.monitor.tracker import StatusSnapshot

NOW = datetime(2026, 1, 1, 15, 4, tzinfo=timezone.utc)


def snapshot(**overrides) -> StatusSnapshot:
    values = dict(
        now=NOW,
        is_online=True,
        last_heartbeat_at=NOW - timedelta(minutes=5),
        time_since=timedelta(minutes=5),
        next_expected=timedelta(minutes=3),
        offline_threshold=timedelta(minutes=10),
    )
    values.update(overrides)
    return StatusSnapshot(**values)


class TestMarkdownConversion:
    """Tests for markdown_to_telegram_html."""

    def test_bold(self):
        assert markdown_to_telegram_html("**hi**") == "<b>hi</b>"

    def test_italic(self):
        assert markdown_to_telegram_html("_hi_") == "<i>hi</i>"

    def test_escapes_html(self):
        assert "&lt;script&gt;" in markdown_to_telegram_html("<script>")

    def test_softbreak_kept_as_newline(self):
        assert markdown_to_telegram_html("a\nb") == "a\nb"

    def test_format_markdown_uses_html(self):
        message = format_markdown("**x**")
        assert message == FormattedMessage(text="<b>x</b>", parse_mode="HTML")

    def test_format_markdown_too_long_falls_back(self):
        message = format_markdown("a" * 5000)
        assert message.parse_mode is None
        assert len(message.text) == 4096


class TestFormatClock:
    """Tests for 12-hour clock rendering."""

    def test_afternoon(self):
        assert format_clock(NOW) == "3:04 PM"

    def test_midnight(self):
        assert format_clock(datetime(2026, 1, 1, 0, 5)) == "12:05 AM"

    def test_noon(self):
        assert format_clock(datetime(2026, 1, 1, 12, 0)) == "12:00 PM"


class TestStatusCard:
    """Tests for the shared status message."""

    def test_online_card(self):
        message = render_status_card(StatusCard(service_name="EverLink", online=True, timestamp=NOW))
        assert "🟢" in message.text
        assert "<b>EverLink Status</b>" in message.text
        assert "System is operational" in message.text
        assert "EverLink | Today at 3:04 PM UTC" in message.text
        assert message.parse_mode == "HTML"

    def test_offline_card(self):
        message = render_status_card(StatusCard(service_name="EverLink", online=False, timestamp=NOW))
        assert "🔴" in message.text
        assert "System is offline" in message.text

    def test_title(self):
        assert StatusCard(service_name="Acme", online=True, timestamp=NOW).title == "Acme Status"


class TestStatusReport:
    """Tests for the private query reply."""

    def test_never_seen(self):
        report = render_status_report(
            snapshot(is_online=False, last_heartbeat_at=None, time_since=None, next_expected=None),
            "EverLink",
        )
        assert "Offline" in report.text
        assert "No heartbeat detected yet" in report.text
        assert "Never" in report.text
        assert "Next Expected" not in report.text

    def test_online(self):
        report = render_status_report(snapshot(), "EverLink")
        assert "EverLink Monitor Status" in report.text
        assert "✅" in report.text
        assert "5 minutes ago" in report.text
        assert "in 3 minutes" in report.text

    def test_offline_uses_configured_threshold(self):
        report = render_status_report(
            snapshot(is_online=False, time_since=timedelta(minutes=12), next_expected=None),
            "EverLink",
        )
        assert "❌" in report.text
        assert "12 minutes ago" in report.text
        assert "overdue (10+ min)" in report.text
        assert "15+" not in report.text


def test_format_error():
    message = format_error("boom")
    assert message.text == "❌ Error: boom"
    assert message.parse_mode is None
