"""Shared fixtures for the test suite."""

import itertools
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from techdigest.collectors.base import Article

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)

_ids = itertools.count(1)


def make_article(title: str = "Example headline", link: str | None = None, **overrides) -> Article:
    """Build an Article with sensible defaults; any field can be overridden."""
    fields = {
        "title": title,
        "link": link or f"https://example.com/articles/{next(_ids)}",
        "source": "Example Feed",
        "published_at": NOW - timedelta(hours=1),
        "description": f"Description of {title}",
    }
    fields.update(overrides)
    return Article(**fields)


class FakeMessages:
    """Stand-in for AsyncAnthropic().messages, replying from a callable."""

    def __init__(self, reply):
        self.reply = reply
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        text = self.reply(kwargs)
        if isinstance(text, Exception):
            raise text
        return SimpleNamespace(content=[SimpleNamespace(text=text)])


class FakeAnthropic:
    def __init__(self, reply):
        self.messages = FakeMessages(reply)


class FakeEmails:
    """Stand-in for the resend module's Emails API."""

    def __init__(self, fail_for: set[str] | None = None):
        self.sent: list[dict] = []
        self.fail_for = fail_for or set()

    def send(self, params: dict) -> dict:
        if params["to"][0] in self.fail_for:
            raise RuntimeError("rejected")
        self.sent.append(params)
        return {"id": f"email-{len(self.sent)}"}


class FakeResend:
    def __init__(self, fail_for: set[str] | None = None):
        self.Emails = FakeEmails(fail_for)


@pytest.fixture
def now() -> datetime:
    return NOW
