"""Newsletter composition - template text by default, Claude-written intro if enabled."""

import json
import re
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..collectors.base import Article, TrendingRepo, utc_now
from ..config import ANTHROPIC_API_KEY, CLAUDE_MODEL, ENRICH_TIMEOUT, NEWSLETTER_NAME, USE_LLM
from ..utils import get_logger

logger = get_logger(__name__)

# Section title -> ai_category values routed into it
SECTIONS = {
    "AI": ("ai_breakthrough", "ai_tool", "ai_research", "ai", "ai_tools"),
    "Tech": ("tech_news", "tech", "software", "gadgets", "dev_community", "startup", "business", "science", "products"),
    "Security": ("cybersecurity",),
    "Cloud & DevOps": ("cloud", "devops"),
}


@dataclass
class Newsletter:
    """Everything delivery needs to render one issue."""

    subject: str
    intro: str
    top_story_highlight: str
    tldr: str
    top_stories: list[Article] = field(default_factory=list)
    sections: dict[str, list[Article]] = field(default_factory=dict)
    speed_read: list[Article] = field(default_factory=list)
    data_points: list[dict[str, str]] = field(default_factory=list)
    community_pulse: list[TrendingRepo] = field(default_factory=list)
    unavailable_sources: list[str] = field(default_factory=list)
    read_time_minutes: int = 1
    weekly: bool = False
    generated_at: datetime = field(default_factory=utc_now)

    @property
    def article_count(self) -> int:
        return (
            len(self.top_stories)
            + sum(len(items) for items in self.sections.values())
            + len(self.speed_read)
        )

    def to_dict(self) -> dict[str, Any]:
        def brief(article: Article) -> dict[str, Any]:
            return {
                "title": article.title,
                "link": article.link,
                "source": article.source,
                "summary": article.ai_summary,
                "importance": article.ai_importance,
            }

        return {
            "subject": self.subject,
            "intro": self.intro,
            "top_story_highlight": self.top_story_highlight,
            "tldr": self.tldr,
            "top_stories": [brief(a) for a in self.top_stories],
            "sections": {name: [brief(a) for a in items] for name, items in self.sections.items()},
            "speed_read": [brief(a) for a in self.speed_read],
            "data_points": self.data_points,
            "community_pulse": [asdict(repo) for repo in self.community_pulse],
            "unavailable_sources": self.unavailable_sources,
            "read_time_minutes": self.read_time_minutes,
            "weekly": self.weekly,
            "generated_at": self.generated_at.isoformat(),
        }


def collect_data_points(articles: list[Article], limit: int = 4) -> list[dict[str, str]]:
    points = []
    for article in articles:
        for stat in article.data_points or []:
            if 2 < len(stat) < 120:
                points.append({"stat": stat, "context": article.title, "source": article.source, "link": article.link})
        if len(points) >= limit:
            break
    return points[:limit]


def estimate_read_time(articles: list[Article]) -> int:
    words = sum(len((a.ai_summary or a.description or "").split()) for a in articles)
    return max(1, round(words / 200))


class Composer:
    """Build the newsletter structure from ranked, enriched articles."""

    TOP_STORIES = 3
    SECTION_SIZE = 5
    SPEED_READ_SIZE = 5

    def __init__(self, client=None, use_llm: bool = USE_LLM):
        self.use_llm = use_llm and (client is not None or bool(ANTHROPIC_API_KEY))
        self.client = client
        if self.use_llm and self.client is None:
            from anthropic import AsyncAnthropic
            self.client = AsyncAnthropic(api_key=ANTHROPIC_API_KEY)
        self.model = CLAUDE_MODEL

    async def compose(self, articles: list[Article], options: Optional[dict] = None) -> Newsletter:
        """Create today's newsletter."""
        options = options or {}
        today = utc_now().strftime("%A, %B %d, %Y")
        newsletter = self._build(articles, options)
        newsletter.subject = f"{NEWSLETTER_NAME} - {today}"
        newsletter.intro = (
            "Good morning! Here's your curated roundup of the most important "
            "AI and tech stories from the past 24 hours."
        )
        newsletter.tldr = "Another busy day in tech - here are the stories that matter."

        if self.use_llm and newsletter.top_stories:
            await self._write_with_llm(newsletter, today, "daily")

        logger.info(f"Newsletter composed: {newsletter.subject}")
        return newsletter

    async def compose_weekly(self, articles: list[Article], options: Optional[dict] = None) -> Newsletter:
        """Create the weekly roundup."""
        options = options or {}
        week_of = utc_now().strftime("%B %d, %Y")
        newsletter = self._build(articles, options)
        newsletter.weekly = True
        newsletter.subject = f"{NEWSLETTER_NAME} Weekly - week of {week_of}"
        newsletter.intro = "The stories that defined the week in AI and tech, in one place."
        newsletter.tldr = "A week of launches, research and security news, ranked by impact."

        if self.use_llm and newsletter.top_stories:
            await self._write_with_llm(newsletter, week_of, "weekly")

        logger.info(f"Weekly newsletter composed: {newsletter.subject}")
        return newsletter

    def _build(self, articles: list[Article], options: dict) -> Newsletter:
        ranked = sorted(articles, key=lambda a: a.ai_importance, reverse=True)
        top_stories = ranked[:self.TOP_STORIES]
        used = {a.guid for a in top_stories}

        sections: dict[str, list[Article]] = {}
        for title, categories in SECTIONS.items():
            picked = [
                a for a in ranked
                if a.guid not in used and (a.ai_category or a.category) in categories
            ][:self.SECTION_SIZE]
            used.update(a.guid for a in picked)
            if picked:
                sections[title] = picked

        speed_read = [a for a in ranked if a.guid not in used][:self.SPEED_READ_SIZE]

        return Newsletter(
            subject="",
            intro="",
            top_story_highlight=(top_stories[0].ai_summary or "") if top_stories else "",
            tldr="",
            top_stories=top_stories,
            sections=sections,
            speed_read=speed_read,
            data_points=collect_data_points(ranked),
            community_pulse=list(options.get("community_pulse") or []),
            unavailable_sources=list(options.get("unavailable_sources") or []),
            read_time_minutes=estimate_read_time(ranked[:20]),
        )

    async def _write_with_llm(self, newsletter: Newsletter, date_str: str, edition: str) -> None:
        """Ask Claude for subject/intro/tldr/highlight; keep template text on failure."""
        context = "\n\n".join(
            f"Title: {a.title}\nSummary: {a.ai_summary or a.description}\n"
            f"Category: {a.ai_category}\nSource: {a.source}\nImportance: {a.ai_importance}/10"
            for a in newsletter.top_stories + [a for items in newsletter.sections.values() for a in items]
        )
        prompt = f"""You are the editor of "{NEWSLETTER_NAME}", a {edition} newsletter for tech professionals.
Based on these stories, return ONLY valid JSON.

Date: {date_str}
Stories:
{context}

Return this JSON:
{{
  "subject_line": "A catchy email subject (under 60 chars)",
  "intro": "2-3 sentence greeting mentioning what's big in tech. Conversational, smart tone.",
  "top_story_highlight": "2-3 sentences about the biggest story and why it matters.",
  "tldr": "One punchy sentence summarizing the {edition} edition."
}}

Do NOT use markdown in any of the values."""

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=800,
                temperature=0.7,
                messages=[{"role": "user", "content": prompt}],
                timeout=ENRICH_TIMEOUT,
            )
            match = re.search(r"\{.*\}", response.content[0].text, re.DOTALL)
            if not match:
                logger.warning("No JSON in newsletter composition response")
                return
            data = json.loads(match.group(0))
            newsletter.subject = data.get("subject_line") or newsletter.subject
            newsletter.intro = data.get("intro") or newsletter.intro
            newsletter.top_story_highlight = data.get("top_story_highlight") or newsletter.top_story_highlight
            newsletter.tldr = data.get("tldr") or newsletter.tldr
        except Exception as e:
            logger.error(f"Newsletter composition failed, using template text: {e}")
