"""Base collector interface and Article dataclass."""

import json
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urlparse

PRIORITIES = ("high", "medium", "low")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def clamp_importance(value: Any, default: int = 5) -> int:
    """Coerce an importance score into the 1-10 range."""
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        return default
    return max(1, min(10, score))


@dataclass
class Article:
    """Unified article representation from any source.

    Enrichment fields are always present and stay None until the
    enrichment stage fills them in.
    """

    title: str
    link: str
    source: str
    published_at: datetime
    description: str = ""
    content: str = ""
    category: str = "tech"
    priority: str = "medium"
    guid: str = ""
    author: str = ""
    image_url: Optional[str] = None
    collected_at: datetime = field(default_factory=utc_now)
    processed: bool = False
    ai_summary: Optional[str] = None
    ai_category: Optional[str] = None
    ai_tags: Optional[list[str]] = None
    ai_importance: int = 5
    ai_sentiment: Optional[str] = None
    key_takeaway: Optional[str] = None
    why_it_matters: Optional[str] = None
    data_points: Optional[list[str]] = None
    included_in_email: bool = False

    def __post_init__(self):
        parsed = urlparse(self.link or "")
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"Article link must be an absolute URL: {self.link!r}")
        if self.priority not in PRIORITIES:
            self.priority = "medium"
        self.title = self.title.strip()
        self.guid = self.guid or self.link
        self.published_at = as_utc(self.published_at)
        self.collected_at = as_utc(self.collected_at)
        self.ai_importance = clamp_importance(self.ai_importance)

    def __hash__(self):
        return hash(self.guid)

    def __eq__(self, other):
        if not isinstance(other, Article):
            return False
        return self.guid == other.guid

    def to_record(self) -> dict[str, Any]:
        """Flatten to a storage row: ISO timestamps, JSON lists."""
        record = asdict(self)
        record["published_at"] = self.published_at.isoformat()
        record["collected_at"] = self.collected_at.isoformat()
        record["ai_tags"] = json.dumps(self.ai_tags) if self.ai_tags is not None else None
        record["data_points"] = (
            json.dumps(self.data_points) if self.data_points is not None else None
        )
        return record

    @classmethod
    def from_record(cls, row: dict[str, Any]) -> "Article":
        """Inverse of to_record. Unknown keys (row ids etc.) are ignored."""
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in dict(row).items() if k in known}
        for key in ("published_at", "collected_at"):
            if isinstance(data.get(key), str):
                data[key] = datetime.fromisoformat(data[key])
        for key in ("ai_tags", "data_points"):
            if isinstance(data.get(key), str):
                data[key] = json.loads(data[key])
        for key in ("processed", "included_in_email"):
            if key in data:
                data[key] = bool(data[key])
        return cls(**data)


@dataclass
class TrendingRepo:
    """A repository from the trending fetch."""

    name: str
    url: str
    description: str = ""
    language: str = ""
    stars: int = 0


class Collector(ABC):
    """Abstract base class for content collectors.

    collect() never raises: failing sources are logged and their names
    are left in `failures` for the caller.
    """

    def __init__(self):
        self.failures: list[str] = []

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the collector/source name."""
        pass

    @abstractmethod
    async def collect(self) -> list[Article]:
        """Collect articles from the source."""
        pass
