"""Configuration and constants for the tech digest pipeline."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", PROJECT_ROOT / "data"))
DATA_DIR.mkdir(parents=True, exist_ok=True)
DB_PATH = Path(os.getenv("DB_PATH", DATA_DIR / "digest.db"))

# API Keys
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN", "")

# Email (comma-separated recipient list)
EMAIL_TO = os.getenv("EMAIL_TO", "")
EMAIL_FROM = os.getenv("EMAIL_FROM", "AI & Tech Daily <digest@example.com>")
NEWSLETTER_NAME = os.getenv("NEWSLETTER_NAME", "AI & Tech Daily")

# Telegram
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
TELEGRAM_CHAT_ID = os.getenv("TELEGRAM_CHAT_ID", "")

# Runtime options
DRY_RUN = os.getenv("DRY_RUN", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
USE_LLM = os.getenv("USE_LLM", "false").lower() == "true"  # Claude writes the newsletter intro

# Pipeline tuning
TITLE_SIMILARITY_THRESHOLD = 0.7
RECENT_HOURS = 24
WEEKLY_HOURS = 168
ENRICH_LIMIT = 30
BREAKING_THRESHOLD = 9
ENRICH_REQUESTS_PER_MINUTE = int(os.getenv("ENRICH_REQUESTS_PER_MINUTE", "24"))
ENRICH_WORKERS = int(os.getenv("ENRICH_WORKERS", "2"))
ENRICH_TIMEOUT = 15.0

# Claude settings
CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-sonnet-4-20250514")
ENRICH_MAX_TOKENS = 500

USER_AGENT = "AITechDigest/1.0"

# RSS Sources, grouped by beat
RSS_SOURCES = {
    "ai_news": [
        {"name": "TechCrunch AI", "url": "https://techcrunch.com/category/artificial-intelligence/feed/", "category": "ai", "priority": "high"},
        {"name": "The Verge AI", "url": "https://www.theverge.com/rss/ai-artificial-intelligence/index.xml", "category": "ai", "priority": "high"},
        {"name": "VentureBeat AI", "url": "https://venturebeat.com/category/ai/feed/", "category": "ai", "priority": "high"},
        {"name": "The Decoder", "url": "https://the-decoder.com/feed/", "category": "ai", "priority": "medium"},
        {"name": "AI News", "url": "https://www.artificialintelligence-news.com/feed/", "category": "ai", "priority": "medium"},
        {"name": "OpenAI Blog", "url": "https://openai.com/blog/rss/", "category": "ai_research", "priority": "high"},
        {"name": "Google AI Blog", "url": "https://blog.google/technology/ai/rss/", "category": "ai_research", "priority": "high"},
        {"name": "Hugging Face Blog", "url": "https://huggingface.co/blog/feed.xml", "category": "ai_tools", "priority": "medium"},
        {"name": "Unite.AI", "url": "https://www.unite.ai/feed/", "category": "ai", "priority": "medium"},
        {"name": "Anthropic Blog", "url": "https://www.anthropic.com/blog/rss", "category": "ai_research", "priority": "high"},
        {"name": "Meta AI Blog", "url": "https://ai.meta.com/blog/rss/", "category": "ai_research", "priority": "high"},
        {"name": "DeepMind Blog", "url": "https://deepmind.google/blog/rss.xml", "category": "ai_research", "priority": "high"},
    ],
    "general_tech": [
        {"name": "TechCrunch", "url": "https://techcrunch.com/feed/", "category": "tech", "priority": "high"},
        {"name": "The Verge", "url": "https://www.theverge.com/rss/index.xml", "category": "tech", "priority": "high"},
        {"name": "Ars Technica", "url": "https://feeds.arstechnica.com/arstechnica/index", "category": "tech", "priority": "medium"},
        {"name": "Wired", "url": "https://www.wired.com/feed/rss", "category": "tech", "priority": "medium"},
        {"name": "Hacker News Best", "url": "https://hnrss.org/best", "category": "tech", "priority": "high"},
        {"name": "InfoQ", "url": "https://feed.infoq.com/", "category": "tech", "priority": "medium"},
    ],
    "cybersecurity": [
        {"name": "The Hacker News (Security)", "url": "https://feeds.feedburner.com/TheHackersNews", "category": "cybersecurity", "priority": "high"},
        {"name": "Krebs on Security", "url": "https://krebsonsecurity.com/feed/", "category": "cybersecurity", "priority": "high"},
        {"name": "Dark Reading", "url": "https://www.darkreading.com/rss.xml", "category": "cybersecurity", "priority": "medium"},
        {"name": "Schneier on Security", "url": "https://www.schneier.com/feed/", "category": "cybersecurity", "priority": "medium"},
        {"name": "BleepingComputer", "url": "https://www.bleepingcomputer.com/feed/", "category": "cybersecurity", "priority": "medium"},
    ],
    "cloud_devops": [
        {"name": "AWS What's New", "url": "https://aws.amazon.com/about-aws/whats-new/recent/feed/", "category": "cloud", "priority": "high"},
        {"name": "Google Cloud Blog", "url": "https://cloud.google.com/blog/rss", "category": "cloud", "priority": "medium"},
        {"name": "The New Stack", "url": "https://thenewstack.io/feed", "category": "cloud", "priority": "medium"},
        {"name": "CNCF Blog", "url": "https://www.cncf.io/blog/feed/", "category": "cloud", "priority": "medium"},
    ],
    "dev_community": [
        {"name": "DEV.to", "url": "https://dev.to/feed", "category": "dev_community", "priority": "medium"},
        {"name": "Lobsters", "url": "https://lobste.rs/rss", "category": "dev_community", "priority": "medium"},
        {"name": "YC Blog", "url": "https://www.ycombinator.com/blog/rss/", "category": "startup", "priority": "high"},
        {"name": "a16z Blog", "url": "https://a16z.com/feed/", "category": "startup", "priority": "high"},
    ],
    "product_launches": [
        {"name": "Product Hunt", "url": "https://www.producthunt.com/feed", "category": "products", "priority": "medium"},
    ],
    "research": [
        {"name": "arXiv CS.AI", "url": "https://arxiv.org/rss/cs.AI", "category": "ai_research", "priority": "medium"},
        {"name": "arXiv CS.LG", "url": "https://arxiv.org/rss/cs.LG", "category": "ai_research", "priority": "medium"},
        {"name": "arXiv CS.CL", "url": "https://arxiv.org/rss/cs.CL", "category": "ai_research", "priority": "medium"},
    ],
}

# Reddit communities to monitor
REDDIT_SUBREDDITS = [
    "artificial",
    "MachineLearning",
    "technology",
    "singularity",
    "netsec",
    "devops",
    "programming",
]

# Hacker News settings
HN_CONFIG = {
    "top_stories_limit": 30,
    "collect_limit": 20,  # smaller pull for collect-only runs
    "min_score": 50,
    "high_priority_score": 200,
}


def get_enabled_rss_sources() -> list[dict]:
    """Return enabled RSS sources across all beats."""
    return [
        s for sources in RSS_SOURCES.values() for s in sources
        if s.get("enabled", True)
    ]


def get_email_recipients() -> list[str]:
    """Return the configured recipient addresses."""
    return [addr.strip() for addr in EMAIL_TO.split(",") if addr.strip()]
