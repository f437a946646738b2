"""Tests for delivery.email and delivery.telegram modules."""

import asyncio
import json

import httpx
import pytest

from techdigest.delivery.email import EmailSender
from techdigest.delivery.telegram import TelegramNotifier, escape_markdown, format_article, importance_marker
from techdigest.processors.composer import Newsletter

from conftest import FakeResend, make_article


def newsletter(**overrides) -> Newsletter:
    fields = {
        "subject": "Daily",
        "intro": "Hello <readers>",
        "top_story_highlight": "",
        "tldr": "Short",
        "top_stories": [make_article("Top story")],
    }
    fields.update(overrides)
    return Newsletter(**fields)


class TestEmailSender:
    def test_daily_digest_counts_per_recipient(self) -> None:
        client = FakeResend(fail_for={"bad@example.com"})
        sender = EmailSender(api_key="re_test", recipients=["a@example.com", "bad@example.com"], client=client)

        result = sender.send_daily_digest(newsletter())

        assert (result.sent_count, result.fail_count) == (1, 1)
        sent = client.Emails.sent[0]
        assert sent["to"] == ["a@example.com"]
        assert sent["subject"] == "Daily"
        assert "Top story" in sent["html"]
        assert "Hello &lt;readers&gt;" in sent["html"]

    def test_unconfigured_is_noop(self) -> None:
        client = FakeResend()
        sender = EmailSender(api_key="", recipients=["a@example.com"], client=client)
        result = sender.send_daily_digest(newsletter())
        assert (result.sent_count, result.fail_count) == (0, 0)
        assert sender.send_error_alert("boom") is None
        assert client.Emails.sent == []

    def test_breaking_alerts_only_above_threshold(self) -> None:
        client = FakeResend()
        sender = EmailSender(api_key="re_test", recipients=["a@example.com", "b@example.com"], client=client)
        articles = [
            make_article("Huge news", ai_importance=9),
            make_article("Regular news", ai_importance=8),
            make_article("Bigger news", ai_importance=10),
        ]

        result = sender.send_breaking_alerts(articles, threshold=9)

        assert result.sent == 4
        assert result.articles == ["Huge news", "Bigger news"]
        assert client.Emails.sent[0]["subject"] == "Breaking: Huge news"

    def test_error_alert_goes_to_first_recipient(self) -> None:
        client = FakeResend()
        sender = EmailSender(api_key="re_test", recipients=["ops@example.com", "b@example.com"], client=client)
        assert sender.send_error_alert("database locked", context="mode=full") == "email-1"
        message = client.Emails.sent[0]
        assert message["to"] == ["ops@example.com"]
        assert "database locked" in message["html"]

    def test_error_alert_failure_propagates(self) -> None:
        sender = EmailSender(api_key="re_test", recipients=["ops@example.com"], client=FakeResend({"ops@example.com"}))
        with pytest.raises(RuntimeError):
            sender.send_error_alert("boom")


class TestTelegramFormatting:
    def test_escape_markdown(self) -> None:
        assert escape_markdown("v1.2 (beta)!") == "v1\\.2 \\(beta\\)\\!"

    def test_importance_marker(self) -> None:
        assert importance_marker(9) == "🔥"
        assert importance_marker(6) == "⭐"
        assert importance_marker(3) == "📌"

    def test_format_article(self) -> None:
        article = make_article("Launch day", "https://a.com/x_(1)", ai_importance=8, ai_tags=["open-source", "ai"])
        article.ai_summary = "It shipped."
        text = format_article(article)
        assert text.startswith("🔥 *Launch day*")
        assert "It shipped\\." in text
        assert "\\#open\\_source" in text
        assert text.endswith("[Read more](https://a.com/x_(1\\))")


class TestTelegramNotifier:
    def test_sends_header_and_top_stories(self) -> None:
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(json.loads(request.content))
            return httpx.Response(200, json={"ok": True})

        notifier = TelegramNotifier(token="123:abc", chat_id="@channel", transport=httpx.MockTransport(handler))
        articles = [make_article(f"Story {i}", ai_importance=i) for i in range(1, 8)]

        sent = asyncio.run(notifier.send_top_stories(articles))

        assert sent == 6
        assert all(r["chat_id"] == "@channel" and r["parse_mode"] == "MarkdownV2" for r in requests)
        assert "Story 7" in requests[1]["text"]

    def test_failed_message_is_not_counted(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(400 if len(calls) == 2 else 200, json={})

        notifier = TelegramNotifier(token="t", chat_id="c", transport=httpx.MockTransport(handler))
        assert asyncio.run(notifier.send_top_stories([make_article("a"), make_article("b")])) == 2

    def test_missing_configuration(self) -> None:
        notifier = TelegramNotifier(token="", chat_id="c")
        assert notifier.configured is False
        assert asyncio.run(notifier.send_top_stories([make_article("a")])) == 0
