"""Tests for processors.enricher module."""

import asyncio
import json

from techdigest.processors.enricher import Enricher, Enrichment, parse_analysis
from techdigest.processors.ratelimit import RateLimiter

from conftest import FakeAnthropic, make_article

VALID = {
    "summary": "A new model was released.",
    "category": "ai_breakthrough",
    "tags": ["LLM", "OpenAI", "reasoning", "benchmarks", "extra"],
    "importance": 8,
    "sentiment": "positive",
    "key_takeaway": "Models keep getting better.",
    "why_it_matters": "Developers get cheaper reasoning.",
    "data_points": ["$2.5B raised", "50M users", "3x faster", "ignored"],
}


def unlimited() -> RateLimiter:
    return RateLimiter(600_000, burst=1000)


class TestParseAnalysis:
    def test_parses_json_inside_prose(self) -> None:
        text = f"Sure! Here it is:\n```json\n{json.dumps(VALID)}\n```"
        result = parse_analysis(text)
        assert result is not None
        assert result.summary == "A new model was released."
        assert result.category == "ai_breakthrough"
        assert result.tags == ["llm", "openai", "reasoning", "benchmarks"]
        assert result.importance == 8
        assert result.data_points == ["$2.5B raised", "50M users", "3x faster"]

    def test_clamps_importance(self) -> None:
        assert parse_analysis(json.dumps({**VALID, "importance": 42})).importance == 10
        assert parse_analysis(json.dumps({**VALID, "importance": -3})).importance == 1
        assert parse_analysis(json.dumps({**VALID, "importance": "high"})).importance == 5

    def test_unknown_category_and_sentiment(self) -> None:
        result = parse_analysis(json.dumps({**VALID, "category": "sports", "sentiment": "angry"}))
        assert result.category is None
        assert result.sentiment == "neutral"

    def test_accepts_so_what_alias(self) -> None:
        data = {k: v for k, v in VALID.items() if k != "why_it_matters"}
        data["so_what"] = "Legacy field name."
        assert parse_analysis(json.dumps(data)).why_it_matters == "Legacy field name."

    def test_unusable_output(self) -> None:
        assert parse_analysis("no json here") is None
        assert parse_analysis("{not valid json}") is None
        assert parse_analysis(json.dumps({**VALID, "summary": ""})) is None
        assert parse_analysis("") is None


class TestEnrichment:
    def test_fallback_uses_description(self) -> None:
        article = make_article("t", description="x" * 300, category="ai")
        fallback = Enrichment.fallback(article)
        assert fallback.summary == "x" * 200
        assert fallback.importance == 5
        assert fallback.category == "ai"

    def test_fallback_without_description(self) -> None:
        article = make_article("t", description="")
        assert Enrichment.fallback(article).summary == "No summary available."

    def test_apply_sets_fields_and_processed(self) -> None:
        article = make_article("t", category="tech")
        Enrichment(summary="s", tags=["a"], importance=7).apply(article)
        assert article.processed is True
        assert article.ai_summary == "s"
        assert article.ai_category == "tech"
        assert article.ai_importance == 7
        assert article.ai_tags == ["a"]


class TestEnricher:
    def test_enriches_every_article(self) -> None:
        client = FakeAnthropic(lambda kwargs: json.dumps(VALID))
        enricher = Enricher(client=client, workers=2, limiter=unlimited())
        articles = [make_article(f"story {i}") for i in range(3)]

        result = asyncio.run(enricher.enrich_articles(articles))

        assert result is articles
        assert all(a.processed and a.ai_importance == 8 for a in articles)
        assert len(client.messages.calls) == 3
        assert client.messages.calls[0]["timeout"] == enricher.timeout

    def test_single_failure_gets_fallback(self) -> None:
        def reply(kwargs):
            if "story 1" in kwargs["messages"][0]["content"]:
                return RuntimeError("timeout")
            return json.dumps(VALID)

        enricher = Enricher(client=FakeAnthropic(reply), workers=2, limiter=unlimited())
        articles = [make_article(f"story {i}", description=f"desc {i}") for i in range(3)]

        asyncio.run(enricher.enrich_articles(articles))

        assert [a.ai_importance for a in articles] == [8, 5, 8]
        assert articles[1].ai_summary == "desc 1"
        assert all(a.processed for a in articles)

    def test_unparseable_reply_gets_fallback(self) -> None:
        enricher = Enricher(client=FakeAnthropic(lambda kwargs: "I cannot help"), limiter=unlimited())
        article = make_article("story", description="short desc")
        asyncio.run(enricher.enrich_articles([article]))
        assert article.ai_summary == "short desc"
        assert article.ai_importance == 5

    def test_without_client_uses_fallback(self) -> None:
        enricher = Enricher(client=None, limiter=unlimited())
        enricher.client = None
        articles = [make_article("story", description="d")]
        asyncio.run(enricher.enrich_articles(articles))
        assert articles[0].processed is True
        assert articles[0].ai_summary == "d"

    def test_empty_input(self) -> None:
        enricher = Enricher(client=FakeAnthropic(lambda kwargs: "{}"), limiter=unlimited())
        assert asyncio.run(enricher.enrich_articles([])) == []

    def test_shared_limiter_survives_separate_runs(self) -> None:
        client = FakeAnthropic(lambda kwargs: json.dumps(VALID))
        enricher = Enricher(client=client, workers=2, limiter=RateLimiter(6000))

        first = [make_article(f"first {i}") for i in range(4)]
        second = [make_article(f"second {i}") for i in range(4)]
        asyncio.run(enricher.enrich_articles(first))
        asyncio.run(enricher.enrich_articles(second))

        assert [a.ai_importance for a in first] == [8, 8, 8, 8]
        assert [a.ai_importance for a in second] == [8, 8, 8, 8]
        assert len(client.messages.calls) == 8
