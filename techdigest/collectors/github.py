"""Trending GitHub repositories via the search API."""

from datetime import timedelta
from typing import Optional

import httpx

from ..config import GITHUB_TOKEN, USER_AGENT
from ..utils import get_logger
from .base import TrendingRepo, utc_now

logger = get_logger(__name__)


class GitHubTrendingCollector:
    """Most-starred repositories created in the last week.

    Unlike the article collectors this one raises on failure; the
    pipeline treats it as a best-effort step.
    """

    SEARCH_URL = "https://api.github.com/search/repositories"

    def __init__(
        self,
        limit: int = 6,
        days: int = 7,
        token: str = GITHUB_TOKEN,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.limit = limit
        self.days = days
        self.token = token
        self.transport = transport

    async def collect(self) -> list[TrendingRepo]:
        since = (utc_now() - timedelta(days=self.days)).date().isoformat()
        headers = {"User-Agent": USER_AGENT, "Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        async with httpx.AsyncClient(
            timeout=10.0, headers=headers, transport=self.transport
        ) as client:
            response = await client.get(
                self.SEARCH_URL,
                params={
                    "q": f"created:>{since}",
                    "sort": "stars",
                    "order": "desc",
                    "per_page": self.limit,
                },
            )
            response.raise_for_status()
            items = response.json().get("items", [])

        repos = [
            TrendingRepo(
                name=item["full_name"],
                url=item["html_url"],
                description=item.get("description") or "",
                language=item.get("language") or "",
                stars=item.get("stargazers_count", 0),
            )
            for item in items[:self.limit]
        ]
        logger.info(f"GitHub trending: {len(repos)} repos")
        return repos
