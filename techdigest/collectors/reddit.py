"""Reddit collector using the public JSON listing."""

import asyncio
from datetime import datetime, timezone
from typing import Optional

import httpx

from ..config import REDDIT_SUBREDDITS
from ..utils import get_logger
from .base import Article, Collector, utc_now

logger = get_logger(__name__)


def score_to_importance(score: int) -> int:
    if score > 1000:
        return 7
    if score > 300:
        return 6
    return 5


class RedditCollector(Collector):
    """Collector for hot posts across a fixed list of subreddits."""

    BASE_URL = "https://www.reddit.com"

    def __init__(
        self,
        subreddits: Optional[list[str]] = None,
        min_score: int = 20,
        high_priority_score: int = 500,
        request_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        self.subreddits = subreddits if subreddits is not None else REDDIT_SUBREDDITS
        self.min_score = min_score
        self.high_priority_score = high_priority_score
        self.request_delay = request_delay
        self.transport = transport

    @property
    def name(self) -> str:
        return "Reddit"

    async def collect(self, subreddits: Optional[list[str]] = None) -> list[Article]:
        """Fetch hot posts one subreddit at a time."""
        self.failures = []
        articles: list[Article] = []
        subreddits = subreddits if subreddits is not None else self.subreddits

        async with httpx.AsyncClient(
            timeout=10.0,
            headers={"User-Agent": "AITechDigestBot/1.0 (news aggregator)"},
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            for index, subreddit in enumerate(subreddits):
                articles.extend(await self._fetch_subreddit(client, subreddit))

                # Stay under Reddit's unauthenticated rate limit
                if self.request_delay and index < len(subreddits) - 1:
                    await asyncio.sleep(self.request_delay)

        logger.info(f"[{self.name}] {len(articles)} posts collected")
        return articles

    async def _fetch_subreddit(self, client: httpx.AsyncClient, subreddit: str) -> list[Article]:
        url = f"{self.BASE_URL}/r/{subreddit}/hot.json"
        try:
            response = await client.get(url, params={"limit": 20})
            if response.status_code != 200:
                logger.warning(f"[r/{subreddit}] HTTP {response.status_code}")
                self.failures.append(f"r/{subreddit}")
                return []

            now = utc_now()
            posts = response.json().get("data", {}).get("children", [])
            articles = []
            for post in posts:
                article = self._parse_post(post.get("data", {}), subreddit, now)
                if article:
                    articles.append(article)

            logger.info(f"[r/{subreddit}] {len(articles)} posts")
            return articles

        except Exception as e:
            logger.warning(f"[r/{subreddit}] Failed to collect: {e}")
            self.failures.append(f"r/{subreddit}")
            return []

    def _parse_post(self, post: dict, subreddit: str, now: datetime) -> Optional[Article]:
        """Map a listing child to an Article, dropping low-score posts."""
        score = post.get("score", 0)
        if score < self.min_score or not post.get("title"):
            return None

        if post.get("is_self"):
            link = f"https://reddit.com/r/{subreddit}/comments/{post.get('id')}"
        else:
            link = post.get("url", "")

        selftext = post.get("selftext") or ""
        thumbnail = post.get("thumbnail") or ""

        try:
            return Article(
                title=post["title"],
                link=link,
                description=selftext[:500],
                content=selftext,
                published_at=datetime.fromtimestamp(post.get("created_utc", 0), tz=timezone.utc),
                source=f"Reddit r/{subreddit}",
                category="ai",
                priority="high" if score > self.high_priority_score else "medium",
                guid=f"reddit-{post.get('id')}",
                author=post.get("author", ""),
                image_url=thumbnail if thumbnail.startswith("http") else None,
                collected_at=now,
                ai_importance=score_to_importance(score),
            )
        except ValueError as e:
            logger.debug(f"[r/{subreddit}] Skipping post {post.get('id')}: {e}")
            return None
