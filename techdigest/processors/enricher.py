"""Per-article AI enrichment: summary, category, importance and friends."""

import asyncio
import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from ..collectors.base import Article, clamp_importance
from ..config import (
    ANTHROPIC_API_KEY,
    CLAUDE_MODEL,
    ENRICH_MAX_TOKENS,
    ENRICH_REQUESTS_PER_MINUTE,
    ENRICH_TIMEOUT,
    ENRICH_WORKERS,
)
from ..utils import get_logger
from .ratelimit import RateLimiter

logger = get_logger(__name__)

CATEGORIES = (
    "ai_breakthrough", "ai_tool", "ai_research", "tech_news", "startup",
    "cybersecurity", "cloud", "devops", "dev_community", "gadgets",
    "software", "business", "science",
)
SENTIMENTS = ("positive", "negative", "neutral")

JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)

PROMPT = """You are a senior tech news analyst. Analyze this article and return ONLY valid JSON (no markdown, no code blocks).

ARTICLE:
Title: {title}
Source: {source}
Content: {excerpt}

Return this exact JSON structure:
{{
  "summary": "2-3 sentence concise summary of the key points",
  "category": "one of: {categories}",
  "tags": ["tag1", "tag2", "tag3"],
  "importance": 7,
  "sentiment": "positive",
  "key_takeaway": "One line key insight for busy readers",
  "why_it_matters": "Who is affected and what they should do about it. 1-2 sentences.",
  "data_points": ["$2.5B raised", "50M users"]
}}

Rules:
- importance: 1-10 scale (10 = industry-changing launch, 1 = minor blog post)
- sentiment: "positive", "negative", or "neutral"
- tags: 2-4 specific, lowercase tags
- summary: factual and concise, no opinions
- data_points: 0-3 concrete numbers, stats, amounts, benchmarks or dates from the article; empty array if none"""


@dataclass
class Enrichment:
    """Structured output of one article analysis."""

    summary: str
    category: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    importance: int = 5
    sentiment: str = "neutral"
    key_takeaway: str = ""
    why_it_matters: str = ""
    data_points: list[str] = field(default_factory=list)

    @classmethod
    def fallback(cls, article: Article) -> "Enrichment":
        """Default record used when analysis fails."""
        return cls(
            summary=(article.description or "")[:200] or "No summary available.",
            category=article.category,
        )

    def apply(self, article: Article) -> Article:
        """Write the enrichment fields onto the article and mark it processed."""
        article.ai_summary = self.summary
        article.ai_category = self.category or article.category
        article.ai_tags = list(self.tags)
        article.ai_importance = clamp_importance(self.importance)
        article.ai_sentiment = self.sentiment
        article.key_takeaway = self.key_takeaway
        article.why_it_matters = self.why_it_matters
        article.data_points = list(self.data_points)
        article.processed = True
        return article


def _string_list(value: Any, limit: int) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()][:limit]


def parse_analysis(text: str) -> Optional[Enrichment]:
    """Parse model output into an Enrichment, or None if it is unusable."""
    match = JSON_OBJECT_RE.search(text or "")
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    summary = data.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        return None

    category = data.get("category")
    sentiment = str(data.get("sentiment", "neutral")).lower()

    return Enrichment(
        summary=summary.strip(),
        category=category if category in CATEGORIES else None,
        tags=[t.lower() for t in _string_list(data.get("tags"), 4)],
        importance=clamp_importance(data.get("importance", 5)),
        sentiment=sentiment if sentiment in SENTIMENTS else "neutral",
        key_takeaway=str(data.get("key_takeaway") or ""),
        why_it_matters=str(data.get("why_it_matters") or data.get("so_what") or ""),
        data_points=_string_list(data.get("data_points"), 3),
    )


class Enricher:
    """Enrich articles with Claude through a small rate-limited worker pool."""

    def __init__(
        self,
        client=None,
        model: str = CLAUDE_MODEL,
        workers: int = ENRICH_WORKERS,
        requests_per_minute: float = ENRICH_REQUESTS_PER_MINUTE,
        timeout: float = ENRICH_TIMEOUT,
        limiter: Optional[RateLimiter] = None,
    ):
        if client is None and ANTHROPIC_API_KEY:
            from anthropic import AsyncAnthropic
            client = AsyncAnthropic(api_key=ANTHROPIC_API_KEY)
        self.client = client
        self.model = model
        self.workers = max(1, workers)
        self.timeout = timeout
        self.limiter = limiter or RateLimiter(requests_per_minute)

    async def analyze(self, article: Article) -> Optional[Enrichment]:
        """Run one analysis call. Returns None on any failure."""
        prompt = PROMPT.format(
            title=article.title,
            source=article.source,
            excerpt=(article.description or article.content or "")[:2000],
            categories=", ".join(CATEGORIES),
        )
        try:
            await self.limiter.acquire()
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=ENRICH_MAX_TOKENS,
                temperature=0.3,
                messages=[{"role": "user", "content": prompt}],
                timeout=self.timeout,
            )
            enrichment = parse_analysis(response.content[0].text)
            if enrichment is None:
                logger.warning(f"No usable JSON in analysis for: {article.title[:60]}")
            return enrichment
        except Exception as e:
            logger.error(f"AI analysis failed for '{article.title[:60]}': {e}")
            return None

    async def enrich_articles(self, articles: list[Article]) -> list[Article]:
        """Enrich every article in place; failures get the fallback record."""
        if not articles:
            return []

        if self.client is None:
            logger.warning("ANTHROPIC_API_KEY not set, using fallback enrichment")
            return [Enrichment.fallback(a).apply(a) for a in articles]

        logger.info(f"Processing {len(articles)} articles with {self.workers} workers...")
        queue: asyncio.Queue[tuple[int, Article]] = asyncio.Queue()
        for item in enumerate(articles):
            queue.put_nowait(item)
        fallbacks: list[int] = []

        async def worker() -> None:
            while True:
                try:
                    index, article = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                logger.info(f"Processing {index + 1}/{len(articles)}: {article.title[:60]}")
                enrichment = await self.analyze(article)
                if enrichment is None:
                    fallbacks.append(index)
                    enrichment = Enrichment.fallback(article)
                enrichment.apply(article)

        await asyncio.gather(*(worker() for _ in range(min(self.workers, len(articles)))))

        logger.info(
            f"AI processing complete: {len(articles)} articles processed, "
            f"{len(fallbacks)} with fallback"
        )
        return articles
