"""AI and tech news digest: collect, dedupe, enrich, compose and deliver."""

__version__ = "0.1.0"
