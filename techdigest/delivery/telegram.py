"""Telegram channel notifications via the Bot API."""

import re
from datetime import datetime
from typing import Optional

import httpx

from ..collectors.base import Article
from ..config import NEWSLETTER_NAME, TELEGRAM_BOT_TOKEN, TELEGRAM_CHAT_ID
from ..utils import get_logger

logger = get_logger(__name__)

MARKDOWN_SPECIAL_RE = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")


def escape_markdown(text: str) -> str:
    """Escape text for MarkdownV2."""
    return MARKDOWN_SPECIAL_RE.sub(r"\\\1", text)


def importance_marker(importance: int) -> str:
    if importance >= 8:
        return "🔥"
    if importance >= 6:
        return "⭐"
    return "📌"


def format_article(article: Article) -> str:
    link = article.link.replace("\\", "\\\\").replace(")", "\\)")
    tags = " ".join(f"#{t.replace('-', '_').replace(' ', '_')}" for t in (article.ai_tags or [])[:3])
    lines = [
        f"{importance_marker(article.ai_importance)} *{escape_markdown(article.title)}*",
        "",
        escape_markdown(article.ai_summary or article.description[:200]),
    ]
    if tags:
        lines += ["", escape_markdown(tags)]
    lines += [
        "",
        f"{escape_markdown(article.source)} · {article.ai_importance}/10 · [Read more]({link})",
    ]
    return "\n".join(lines)


class TelegramNotifier:
    """Post the day's top stories to a Telegram chat or channel."""

    API_URL = "https://api.telegram.org"
    TOP_N = 5

    def __init__(
        self,
        token: str = TELEGRAM_BOT_TOKEN,
        chat_id: str = TELEGRAM_CHAT_ID,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.chat_id = chat_id
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.token and self.chat_id)

    async def send_top_stories(self, articles: list[Article], chat_id: Optional[str] = None) -> int:
        """Send a header plus the top stories. Returns the number of messages sent."""
        target = chat_id or self.chat_id
        if not self.token or not target:
            logger.warning("TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID not set, skipping Telegram")
            return 0

        top = sorted(articles, key=lambda a: a.ai_importance, reverse=True)[:self.TOP_N]
        today = datetime.now().strftime("%B %d, %Y")
        messages = [f"*{escape_markdown(f'{NEWSLETTER_NAME} - {today}')}*\n\nTop stories from today:"]
        messages += [format_article(a) for a in top]

        sent = 0
        async with httpx.AsyncClient(timeout=10.0, transport=self.transport) as client:
            for text in messages:
                try:
                    response = await client.post(
                        f"{self.API_URL}/bot{self.token}/sendMessage",
                        json={
                            "chat_id": target,
                            "text": text,
                            "parse_mode": "MarkdownV2",
                            "disable_web_page_preview": False,
                        },
                    )
                    response.raise_for_status()
                    sent += 1
                except httpx.HTTPError as e:
                    logger.error(f"Telegram message failed: {e}")

        logger.info(f"Telegram: {sent} messages sent")
        return sent
