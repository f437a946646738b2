"""Main entry point for the news digest pipeline."""

import argparse
import asyncio
import json
import sys

from .config import DB_PATH, DRY_RUN, LOG_LEVEL
from .delivery import EmailSender
from .pipeline import Pipeline
from .storage import Database
from .utils import get_logger, setup_logging

logger = get_logger(__name__)


async def run(mode: str, dry_run: bool, db: Database) -> dict:
    """Run one pipeline mode and return its result as a dict."""
    pipeline = Pipeline(db=db, dry_run=dry_run)
    if mode == "collect":
        result = await pipeline.run_collection_pipeline()
    elif mode == "weekly":
        result = await pipeline.run_weekly_pipeline()
    else:
        result = await pipeline.run_full_pipeline()
    return result.to_dict()


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="AI & tech news digest pipeline")
    parser.add_argument(
        "--mode",
        default="full",
        choices=["full", "collect", "weekly"],
        help="full: collect, enrich and send; collect: gather and store only; weekly: send the weekly roundup",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=DRY_RUN,
        help="Run everything but skip email and Telegram sends",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Clear stored articles before running",
    )
    parser.add_argument(
        "--cleanup",
        type=int,
        metavar="DAYS",
        help="Delete articles collected more than DAYS ago, then exit",
    )
    parser.add_argument(
        "--log-level",
        default=LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level",
    )

    args = parser.parse_args()
    setup_logging(args.log_level)

    db = Database(DB_PATH)

    if args.cleanup is not None:
        count = db.delete_articles_older_than(args.cleanup)
        print(f"Deleted {count} articles older than {args.cleanup} days.")
        return

    if args.reset:
        logger.info("Clearing stored articles...")
        count = db.clear_articles()
        print(f"Cleared {count} articles. Running fresh collection...")

    result = asyncio.run(run(args.mode, args.dry_run, db))
    print(json.dumps(result, indent=2))

    if not result["success"]:
        # Send error alert (but not in dry-run mode)
        if not args.dry_run:
            try:
                EmailSender().send_error_alert(result["error"], context=f"mode={args.mode}")
            except Exception as alert_err:
                logger.error(f"Failed to send error alert: {alert_err}")
        sys.exit(1)


if __name__ == "__main__":
    main()
