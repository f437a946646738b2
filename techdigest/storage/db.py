"""SQLite database operations."""

import sqlite3
from datetime import timedelta
from pathlib import Path
from typing import Optional

from ..collectors.base import Article, utc_now
from ..utils import get_logger

logger = get_logger(__name__)

ARTICLE_COLUMNS = (
    "title", "link", "description", "content", "published_at", "source",
    "category", "priority", "guid", "author", "image_url", "collected_at",
    "processed", "ai_summary", "ai_category", "ai_tags", "ai_importance",
    "ai_sentiment", "key_takeaway", "why_it_matters", "data_points",
    "included_in_email",
)


class Database:
    """SQLite database for articles, newsletters and source health."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._get_conn() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS articles (
                    id INTEGER PRIMARY KEY,
                    guid TEXT UNIQUE NOT NULL,
                    link TEXT UNIQUE NOT NULL,
                    title TEXT,
                    description TEXT,
                    content TEXT,
                    published_at TEXT,
                    source TEXT,
                    category TEXT,
                    priority TEXT,
                    author TEXT,
                    image_url TEXT,
                    collected_at TEXT,
                    processed INTEGER DEFAULT 0,
                    ai_summary TEXT,
                    ai_category TEXT,
                    ai_tags TEXT,
                    ai_importance INTEGER DEFAULT 5,
                    ai_sentiment TEXT,
                    key_takeaway TEXT,
                    why_it_matters TEXT,
                    data_points TEXT,
                    included_in_email INTEGER DEFAULT 0,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS newsletters (
                    id INTEGER PRIMARY KEY,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    subject TEXT,
                    content_json TEXT,
                    html_content TEXT,
                    sent_at TIMESTAMP,
                    status TEXT DEFAULT 'pending',
                    error_message TEXT
                );

                CREATE TABLE IF NOT EXISTS source_health (
                    id INTEGER PRIMARY KEY,
                    source_name TEXT,
                    checked_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    status TEXT,
                    error_message TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_articles_published ON articles(published_at);
                CREATE INDEX IF NOT EXISTS idx_articles_collected ON articles(collected_at);
            """)
        logger.info(f"Database initialized at {self.db_path}")

    def save_articles_batch(self, articles: list[Article]) -> int:
        """Insert articles, skipping any whose guid or link is already stored.

        Returns the number of newly inserted rows.
        """
        placeholders = ", ".join("?" for _ in ARTICLE_COLUMNS)
        sql = f"INSERT OR IGNORE INTO articles ({', '.join(ARTICLE_COLUMNS)}) VALUES ({placeholders})"

        saved = 0
        with self._get_conn() as conn:
            for article in articles:
                record = article.to_record()
                cursor = conn.execute(sql, tuple(record[c] for c in ARTICLE_COLUMNS))
                saved += cursor.rowcount
        logger.info(f"Saved {saved} new articles (of {len(articles)})")
        return saved

    def get_recent_articles(self, hours_ago: float = 24, limit: int = 100) -> list[Article]:
        """Processed articles from the window, newest `limit`, ranked by importance."""
        since = (utc_now() - timedelta(hours=hours_ago)).isoformat()
        with self._get_conn() as conn:
            rows = conn.execute(
                """
                SELECT * FROM articles
                WHERE processed = 1 AND published_at >= ?
                ORDER BY published_at DESC
                LIMIT ?
                """,
                (since, limit),
            ).fetchall()

        articles = [Article.from_record(dict(row)) for row in rows]
        return sorted(articles, key=lambda a: a.ai_importance, reverse=True)

    def clear_articles(self) -> int:
        """Delete all stored articles. Returns the number removed."""
        with self._get_conn() as conn:
            return conn.execute("DELETE FROM articles").rowcount

    def delete_articles_older_than(self, days: int = 30) -> int:
        """Remove articles collected more than `days` ago."""
        cutoff = (utc_now() - timedelta(days=days)).isoformat()
        with self._get_conn() as conn:
            count = conn.execute(
                "DELETE FROM articles WHERE collected_at < ?", (cutoff,)
            ).rowcount
        logger.info(f"Cleaned up {count} articles older than {days} days")
        return count

    def create_newsletter(self, subject: str, content_json: str, html_content: str) -> int:
        """Create a new newsletter record."""
        with self._get_conn() as conn:
            cursor = conn.execute(
                """
                INSERT INTO newsletters (subject, content_json, html_content, status)
                VALUES (?, ?, ?, 'created')
                """,
                (subject, content_json, html_content),
            )
            return cursor.lastrowid or 0

    def mark_newsletter_sent(self, newsletter_id: int) -> None:
        """Mark a newsletter as sent."""
        with self._get_conn() as conn:
            conn.execute(
                """
                UPDATE newsletters
                SET sent_at = CURRENT_TIMESTAMP, status = 'sent'
                WHERE id = ?
                """,
                (newsletter_id,),
            )

    def mark_newsletter_failed(self, newsletter_id: int, error: str) -> None:
        """Mark a newsletter as failed."""
        with self._get_conn() as conn:
            conn.execute(
                """
                UPDATE newsletters
                SET status = 'failed', error_message = ?
                WHERE id = ?
                """,
                (error, newsletter_id),
            )

    def get_newsletter(self, newsletter_id: int) -> Optional[dict]:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT * FROM newsletters WHERE id = ?", (newsletter_id,)
            ).fetchone()
            return dict(row) if row else None

    def log_source_health(
        self, source_name: str, status: str, error_message: Optional[str] = None
    ) -> None:
        """Log source health check result."""
        with self._get_conn() as conn:
            conn.execute(
                """
                INSERT INTO source_health (source_name, status, error_message)
                VALUES (?, ?, ?)
                """,
                (source_name, status, error_message),
            )

    def get_failed_sources_today(self) -> list[str]:
        """Get sources that failed today."""
        with self._get_conn() as conn:
            rows = conn.execute(
                """
                SELECT DISTINCT source_name FROM source_health
                WHERE status != 'ok'
                AND date(checked_at) = date('now')
                """
            ).fetchall()
            return [row["source_name"] for row in rows]
