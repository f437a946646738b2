"""Tests for processors.deduper module."""

import pytest

from techdigest.processors.deduper import Deduper
from techdigest.processors.ranking import rank_articles

from conftest import make_article


class TestNormalizeUrl:
    def test_drops_scheme_trailing_slash_and_case(self) -> None:
        deduper = Deduper()
        assert deduper.normalize_url("https://Example.com/Path/") == "example.com/path"
        assert deduper.normalize_url("http://example.com/path") == "example.com/path"

    def test_strips_tracking_parameters(self) -> None:
        deduper = Deduper()
        url = "https://example.com/a?utm_source=x&utm_medium=y&ref=hn&fbclid=1&gclid=2&via=t&source=rss"
        assert deduper.normalize_url(url) == "example.com/a"

    def test_keeps_identifying_query_parameters(self) -> None:
        deduper = Deduper()
        first = deduper.normalize_url("https://news.ycombinator.com/item?id=1")
        second = deduper.normalize_url("https://news.ycombinator.com/item?id=2")
        assert first != second

    def test_query_order_does_not_matter(self) -> None:
        deduper = Deduper()
        assert deduper.normalize_url("https://x.com/a?b=2&a=1") == deduper.normalize_url(
            "https://x.com/a?a=1&b=2&utm_campaign=z"
        )

    def test_unparseable_url_is_lowercased(self) -> None:
        assert Deduper().normalize_url("Not A URL") == "not a url"


class TestTitleSimilarity:
    def test_identical_titles(self) -> None:
        assert Deduper().title_similarity("OpenAI ships GPT", "openai ships gpt!") == 1.0

    def test_empty_titles(self) -> None:
        assert Deduper().title_similarity("", "!!!") == 0.0

    def test_partial_overlap(self) -> None:
        # {a,b,c,d} vs {a,b,c,e}: 3 / 5
        assert Deduper().title_similarity("a b c d", "a b c e") == 0.6


class TestDedupeByUrl:
    def test_first_seen_wins_without_priority(self) -> None:
        first = make_article("One", "https://example.com/story?utm_source=a", source="A")
        second = make_article("Two", "http://example.com/story/", source="B")
        assert Deduper().dedupe_by_url([first, second]) == [first]

    def test_high_priority_replaces_earlier_duplicate(self) -> None:
        first = make_article("One", "https://example.com/story")
        second = make_article("Two", "https://example.com/story/", priority="high")
        result = Deduper().dedupe_by_url([first, second])
        assert len(result) == 1
        assert result[0] is second


class TestDedupeByTitle:
    def test_merges_above_threshold(self) -> None:
        # 8 shared words of 10 total -> 0.8
        a = make_article("Apple announces new M5 chip for MacBook Pro laptops")
        b = make_article("Apple announces new M5 chip for MacBook Pro today")
        assert len(Deduper().dedupe_by_title([a, b])) == 1

    def test_keeps_at_threshold(self) -> None:
        # 7 shared of 10 total -> exactly 0.7, not strictly above
        a = make_article("w1 w2 w3 w4 w5 w6 w7 a1 a2 a3")
        b = make_article("w1 w2 w3 w4 w5 w6 w7")
        assert len(Deduper().dedupe_by_title([a, b])) == 2

    def test_prefers_high_priority(self) -> None:
        a = make_article("Big launch of the new model today", ai_importance=9)
        b = make_article("Big launch of the new model today!", priority="high", ai_importance=5)
        assert Deduper().dedupe_by_title([a, b]) == [b]

    def test_prefers_higher_importance_when_priority_ties(self) -> None:
        a = make_article("Big launch of the new model today", ai_importance=5)
        b = make_article("Big launch of the new model today!", ai_importance=8)
        assert Deduper().dedupe_by_title([a, b]) == [b]

    def test_full_tie_keeps_first(self) -> None:
        a = make_article("Big launch of the new model today")
        b = make_article("big launch of the new model today")
        assert Deduper().dedupe_by_title([a, b]) == [a]

    def test_chained_matches_form_one_cluster(self) -> None:
        a = make_article("one two three four five six seven eight nine ten")
        b = make_article("one two three four five six seven eight nine eleven")
        c = make_article("one two three four five six seven eight twelve eleven")
        deduper = Deduper()
        assert deduper.title_similarity(a.title, c.title) <= 0.7
        assert deduper.dedupe_by_title([a, b, c]) == [a]


class TestDeduplicate:
    def test_example_scenario(self) -> None:
        a = make_article(
            "OpenAI releases GPT-5 with reasoning",
            "https://techcrunch.com/gpt5?utm_source=x",
            source="TechCrunch",
        )
        b = make_article(
            "OpenAI Releases GPT-5 With Reasoning",
            "https://www.theverge.com/gpt5",
            source="The Verge",
            priority="high",
        )
        c = make_article("Rust 2.0 announced", "https://blog.rust-lang.org/2", source="Rust Blog")
        assert Deduper().deduplicate([a, b, c]) == [b, c]

    def test_idempotent(self) -> None:
        articles = [
            make_article("one two three four five six seven eight nine ten"),
            make_article("one two three four five six seven eight nine eleven"),
            make_article("one two three four five six seven eight twelve eleven"),
            make_article("Completely different story about databases"),
            make_article("Duplicate link", "https://example.com/dup"),
            make_article("Another duplicate link", "https://example.com/dup/"),
        ]
        deduper = Deduper()
        once = deduper.deduplicate(articles)
        assert deduper.deduplicate(once) == once

    def test_output_is_subset_in_input_order(self) -> None:
        articles = [make_article(f"Unique story number {word}") for word in ("alpha", "beta", "gamma")]
        assert Deduper().deduplicate(articles) == articles

    def test_empty(self) -> None:
        assert Deduper().deduplicate([]) == []


class TestDeduplicateThenRank:
    def test_near_duplicate_headlines_merge(self) -> None:
        deduper = Deduper()
        a = "OpenAI Announces GPT-5 With Video Understanding"
        b = "OpenAI Announces GPT-5 With Video Support"
        # 5 shared words of 7 total
        assert deduper.title_similarity(a, b) == pytest.approx(5 / 7)
        assert len(deduper.dedupe_by_title([make_article(a), make_article(b)])) == 1

    def test_unrelated_headlines_stay_apart(self) -> None:
        deduper = Deduper()
        a = make_article("OpenAI Announces GPT-5")
        b = make_article("Google Releases Gemini 3")
        assert deduper.title_similarity(a.title, b.title) == 0.0
        assert deduper.dedupe_by_title([a, b]) == [a, b]

    def test_high_priority_survivor_ranks_first(self) -> None:
        medium = make_article(
            "OpenAI Announces GPT-5 With Video Support",
            "https://www.theverge.com/openai-gpt5",
            priority="medium",
            ai_importance=6,
        )
        high = make_article(
            "OpenAI Announces GPT-5 With Video Understanding",
            "https://techcrunch.com/openai-gpt5",
            priority="high",
            ai_importance=8,
        )
        unrelated = make_article("Google Releases Gemini 3", "https://blog.google/gemini-3", ai_importance=7)

        unique = Deduper().deduplicate([medium, high, unrelated])
        ranked = rank_articles(unique)

        assert len(unique) == 2
        assert ranked == [high, unrelated]
        assert ranked[0].ai_importance == 8
