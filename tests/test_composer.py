"""Tests for processors.composer module."""

import asyncio
import json

from techdigest.collectors.base import TrendingRepo
from techdigest.config import NEWSLETTER_NAME
from techdigest.processors.composer import Composer, collect_data_points, estimate_read_time

from conftest import FakeAnthropic, make_article


def enriched(title: str, importance: int, category: str, **overrides):
    article = make_article(title, **overrides)
    article.ai_importance = importance
    article.ai_category = category
    article.ai_summary = f"Summary of {title}"
    return article


class TestComposer:
    def test_structure(self) -> None:
        articles = [
            enriched("top1", 10, "ai_breakthrough"),
            enriched("top2", 9, "tech_news"),
            enriched("top3", 8, "cybersecurity"),
            enriched("ai story", 7, "ai_tool"),
            enriched("sec story", 6, "cybersecurity"),
            enriched("misc", 5, "unknown"),
        ]
        repos = [TrendingRepo("a/b", "https://github.com/a/b")]
        newsletter = asyncio.run(Composer(use_llm=False).compose(
            articles, {"community_pulse": repos, "unavailable_sources": ["Feed X"]}
        ))

        assert [a.title for a in newsletter.top_stories] == ["top1", "top2", "top3"]
        assert [a.title for a in newsletter.sections["AI"]] == ["ai story"]
        assert [a.title for a in newsletter.sections["Security"]] == ["sec story"]
        assert [a.title for a in newsletter.speed_read] == ["misc"]
        assert newsletter.top_story_highlight == "Summary of top1"
        assert newsletter.community_pulse == repos
        assert newsletter.unavailable_sources == ["Feed X"]
        assert newsletter.article_count == 6
        assert newsletter.weekly is False
        json.dumps(newsletter.to_dict())

    def test_weekly(self) -> None:
        newsletter = asyncio.run(Composer(use_llm=False).compose_weekly([enriched("x", 5, "ai")]))
        assert newsletter.weekly is True
        assert "Weekly" in newsletter.subject

    def test_llm_text_overrides_template(self) -> None:
        reply = json.dumps({"subject_line": "Big day", "intro": "Hi", "top_story_highlight": "H", "tldr": "T"})
        composer = Composer(client=FakeAnthropic(lambda kwargs: reply), use_llm=True)
        newsletter = asyncio.run(composer.compose([enriched("x", 8, "ai")]))
        assert newsletter.subject == "Big day"
        assert newsletter.tldr == "T"

    def test_llm_failure_keeps_template(self) -> None:
        composer = Composer(client=FakeAnthropic(lambda kwargs: RuntimeError("down")), use_llm=True)
        newsletter = asyncio.run(composer.compose([enriched("x", 8, "ai")]))
        assert newsletter.subject.startswith(NEWSLETTER_NAME)


class TestHelpers:
    def test_collect_data_points(self) -> None:
        a = make_article("a", data_points=["$1B raised", "x", "3x faster"])
        b = make_article("b", data_points=["10M users", "99% uptime"])
        points = collect_data_points([a, b], limit=3)
        assert [p["stat"] for p in points] == ["$1B raised", "3x faster", "10M users"]
        assert points[0]["context"] == "a"

    def test_estimate_read_time(self) -> None:
        assert estimate_read_time([]) == 1
        article = make_article("a", description="word " * 1000)
        assert estimate_read_time([article]) == 5
