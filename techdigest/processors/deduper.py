"""Content deduplication using URL normalization and title similarity."""

import re
from urllib.parse import urlencode, urlparse, parse_qsl

from ..collectors.base import Article
from ..config import TITLE_SIMILARITY_THRESHOLD
from ..utils import get_logger

logger = get_logger(__name__)

NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")


class Deduper:
    """Collapse near-duplicate articles into one representative each.

    Pass 1 groups by normalized URL, pass 2 clusters by title word overlap
    (Jaccard index). The survivor of a cluster is the `high` priority
    candidate if there is one, otherwise the one with the highest
    ai_importance; ties keep the first seen.
    """

    # URL parameters to strip (tracking, referral)
    STRIP_PARAMS = {"ref", "source", "via", "fbclid", "gclid"}
    STRIP_PREFIXES = ("utm_",)

    TITLE_SIMILARITY_THRESHOLD = TITLE_SIMILARITY_THRESHOLD

    def normalize_url(self, url: str) -> str:
        """Reduce a URL to host+path (+ non-tracking query), without protocol."""
        try:
            parsed = urlparse(url)
            if not parsed.netloc:
                return url.lower()

            query_params = [
                (k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True)
                if k.lower() not in self.STRIP_PARAMS
                and not k.lower().startswith(self.STRIP_PREFIXES)
            ]

            normalized = f"{parsed.netloc}{parsed.path}".lower().rstrip("/")
            if query_params:
                normalized += "?" + urlencode(sorted(query_params))
            return normalized
        except ValueError:
            return url.lower()

    def title_tokens(self, title: str) -> set[str]:
        """Lowercased, punctuation-free word set of a title."""
        return set(NON_ALNUM_RE.sub("", title.lower()).split())

    def title_similarity(self, title1: str, title2: str) -> float:
        """Jaccard similarity between two titles (0.0 - 1.0)."""
        return self._jaccard(self.title_tokens(title1), self.title_tokens(title2))

    @staticmethod
    def _jaccard(words1: set[str], words2: set[str]) -> float:
        union = words1 | words2
        if not union:
            return 0.0
        return len(words1 & words2) / len(union)

    @staticmethod
    def _prefer(candidate: Article, current: Article) -> bool:
        """True if candidate should replace current as cluster survivor."""
        candidate_high = candidate.priority == "high"
        current_high = current.priority == "high"
        if candidate_high != current_high:
            return candidate_high
        return candidate.ai_importance > current.ai_importance

    def dedupe_by_url(self, articles: list[Article]) -> list[Article]:
        """Keep one article per normalized URL, upgrading to a `high` variant."""
        url_map: dict[str, Article] = {}
        for article in articles:
            key = self.normalize_url(article.link)
            existing = url_map.get(key)
            if existing is None:
                url_map[key] = article
            elif article.priority == "high" and existing.priority != "high":
                url_map[key] = article
        return list(url_map.values())

    def dedupe_by_title(self, articles: list[Article]) -> list[Article]:
        """Cluster by title similarity, left to right, and keep one per cluster."""
        tokens = [self.title_tokens(a.title) for a in articles]
        consumed = [False] * len(articles)
        survivors = []

        for i, article in enumerate(articles):
            if consumed[i]:
                continue
            consumed[i] = True
            best = article
            cluster = [i]

            # Grow the cluster: later articles join when they match any member
            k = 0
            while k < len(cluster):
                member = cluster[k]
                for j in range(i + 1, len(articles)):
                    if consumed[j]:
                        continue
                    if self._jaccard(tokens[member], tokens[j]) > self.TITLE_SIMILARITY_THRESHOLD:
                        consumed[j] = True
                        cluster.append(j)
                        if self._prefer(articles[j], best):
                            best = articles[j]
                k += 1

            if len(cluster) > 1:
                logger.debug(f"Merged {len(cluster)} duplicates: {best.title[:60]}")
            survivors.append(best)

        return survivors

    def deduplicate(self, articles: list[Article]) -> list[Article]:
        """Remove duplicate articles from a list, preserving first-seen order."""
        logger.info(f"Deduplicating {len(articles)} articles...")

        url_deduped = self.dedupe_by_url(articles)
        logger.info(f"After URL dedup: {len(url_deduped)} articles")

        unique = self.dedupe_by_title(url_deduped)
        logger.info(f"Deduplication complete: {len(articles)} -> {len(unique)} articles")
        return unique
