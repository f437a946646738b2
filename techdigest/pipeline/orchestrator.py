"""Pipeline orchestration for the collect, full and weekly runs."""

import asyncio
import json
import time
from typing import Any, Awaitable, Callable, Optional

from ..collectors import (
    Article,
    GitHubTrendingCollector,
    HackerNewsCollector,
    RedditCollector,
    RSSCollector,
)
from ..config import (
    BREAKING_THRESHOLD,
    DB_PATH,
    ENRICH_LIMIT,
    HN_CONFIG,
    RECENT_HOURS,
    WEEKLY_HOURS,
    get_enabled_rss_sources,
)
from ..delivery import BreakingResult, DeliveryResult, EmailSender, TelegramNotifier
from ..processors import (
    Composer,
    Deduper,
    Enricher,
    filter_recent_articles,
    newest_first,
    rank_articles,
)
from ..storage import Database
from ..utils import get_logger
from .progress import ProgressTracker
from .results import CollectionResult, Outcome, PipelineResult, WeeklyResult

logger = get_logger(__name__)

COMPOSE_POOL_SIZE = 50
WEEKLY_POOL_SIZE = 200


class PipelineBusyError(RuntimeError):
    """Raised when a run is triggered while another is still executing."""


def _elapsed(start: float) -> str:
    return f"{time.monotonic() - start:.1f}s"


class Pipeline:
    """Wires collectors, processors, storage and delivery into runs.

    Every collaborator can be injected; anything left out is built from
    config. Only one run executes at a time per instance.
    """

    def __init__(
        self,
        rss=None,
        hn=None,
        reddit=None,
        github=None,
        deduper: Optional[Deduper] = None,
        enricher: Optional[Enricher] = None,
        db: Optional[Database] = None,
        composer: Optional[Composer] = None,
        email_sender: Optional[EmailSender] = None,
        notifier: Optional[TelegramNotifier] = None,
        tracker: Optional[ProgressTracker] = None,
        dry_run: bool = False,
        recent_hours: float = RECENT_HOURS,
        enrich_limit: int = ENRICH_LIMIT,
        breaking_threshold: int = BREAKING_THRESHOLD,
    ):
        self.rss = rss or RSSCollector(get_enabled_rss_sources())
        self.hn = hn or HackerNewsCollector()
        self.reddit = reddit or RedditCollector()
        self.github = github or GitHubTrendingCollector()
        self.deduper = deduper or Deduper()
        self.enricher = enricher or Enricher()
        self.db = db or Database(DB_PATH)
        self.composer = composer or Composer()
        self.email_sender = email_sender or EmailSender()
        self.notifier = notifier or TelegramNotifier()
        self.tracker = tracker or ProgressTracker()
        self.dry_run = dry_run
        self.recent_hours = recent_hours
        self.enrich_limit = enrich_limit
        self.breaking_threshold = breaking_threshold

        self._running = False
        self._unavailable: list[str] = []
        self._skipped: dict[str, str] = {}

    # Progress delegation

    def subscribe(self, observer):
        return self.tracker.subscribe(observer)

    def get_progress(self):
        return self.tracker.get_progress()

    def stream(self):
        return self.tracker.stream()

    @property
    def is_running(self) -> bool:
        return self._running

    def _claim(self) -> None:
        if self._running:
            raise PipelineBusyError("A pipeline run is already in progress")
        self._running = True
        self._unavailable = []
        self._skipped = {}

    def _log_health(self, source: str, status: str, error: Optional[str] = None) -> None:
        try:
            self.db.log_source_health(source, status, error)
        except Exception as e:
            logger.warning(f"Could not record health for {source}: {e}")

    async def _collect(self, step_id: str, collector, detail: str, **kwargs) -> list[Article]:
        """Run one collector as a step. A failing collector yields no articles."""
        with self.tracker.step(step_id, detail) as step:
            try:
                articles = await collector.collect(**kwargs)
            except Exception as e:
                logger.warning(f"[{collector.name}] Collection failed: {e}")
                self._unavailable.append(collector.name)
                self._log_health(collector.name, "error", str(e))
                step.fail(str(e))
                return []

            failures = list(getattr(collector, "failures", []))
            for source in failures:
                self._log_health(source, "error")
            self._unavailable.extend(failures)
            self._log_health(collector.name, "ok" if articles or not failures else "error")

            step.detail = f"{len(articles)} articles"
            if failures:
                step.detail += f" ({len(failures)} sources unavailable)"
            return articles

    async def _best_effort(
        self,
        step_id: str,
        detail: str,
        action: Callable[[], Awaitable[Any]],
        default: Any,
        describe: Callable[[Any], str],
        skip_reason: Optional[str] = None,
        mark_error: bool = True,
    ) -> Outcome:
        """Run a step whose failure must not stop the run.

        A failure marks the step error (or done with a "skipped" detail
        when mark_error is False) and yields `default`.
        """
        with self.tracker.step(step_id, detail) as step:
            if skip_reason:
                step.detail = f"skipped ({skip_reason})"
                outcome = Outcome.skip(default, skip_reason)
            else:
                try:
                    outcome = Outcome.ok(await action())
                    step.detail = describe(outcome.value)
                except Exception as e:
                    logger.warning(f"Step '{step_id}' failed, continuing: {e}")
                    outcome = Outcome.skip(default, str(e))
                    if mark_error:
                        step.fail(str(e))
                    else:
                        step.detail = f"skipped ({e})"

        if outcome.skipped:
            self._skipped[step_id] = outcome.reason
        return outcome

    async def run_collection_pipeline(self) -> CollectionResult:
        """Collect RSS and Hacker News, dedupe and store. No enrichment or delivery."""
        self._claim()
        logger.info("===== COLLECTION PIPELINE STARTED =====")
        self.tracker.start("collect")

        try:
            rss_articles = await self._collect("collect_rss", self.rss, "Fetching RSS feeds...")
            hn_articles = await self._collect(
                "collect_hn", self.hn, "Fetching top stories...",
                limit=HN_CONFIG["collect_limit"],
            )
            collected = rss_articles + hn_articles

            with self.tracker.step("dedup", f"Processing {len(collected)} articles...") as step:
                unique = self.deduper.deduplicate(collected)
                step.detail = f"{len(collected)} -> {len(unique)}"

            with self.tracker.step("save", "Writing to database...") as step:
                saved = self.db.save_articles_batch(unique)
                step.detail = f"{saved} new articles"

            self.tracker.finish()
            logger.info(f"===== COLLECTION DONE: {len(collected)} collected, {saved} saved =====")
            return CollectionResult(success=True, collected=len(collected), saved=saved)

        except Exception as e:
            logger.exception(f"Collection pipeline failed: {e}")
            self.tracker.finish(str(e))
            return CollectionResult(success=False, error=str(e))

        finally:
            self._running = False

    async def run_full_pipeline(self) -> PipelineResult:
        """Collect, process, compose and deliver today's newsletter."""
        self._claim()
        start = time.monotonic()
        logger.info("===== FULL PIPELINE STARTED =====")
        self.tracker.start("full")
        result = PipelineResult()

        try:
            # 1. Collect from every source
            rss_articles = await self._collect("collect_rss", self.rss, "Fetching RSS feeds...")
            hn_articles = await self._collect("collect_hn", self.hn, "Fetching top stories...")
            reddit_articles = await self._collect(
                "collect_reddit", self.reddit, "Fetching subreddits..."
            )
            collected = rss_articles + hn_articles + reddit_articles
            result.articles_collected = len(collected)
            logger.info(
                f"Collected: {len(rss_articles)} RSS, {len(hn_articles)} HN, "
                f"{len(reddit_articles)} Reddit"
            )

            # 2. Deduplicate
            with self.tracker.step("dedup", f"Processing {len(collected)} articles...") as step:
                unique = self.deduper.deduplicate(collected)
                step.detail = f"{len(collected)} -> {len(unique)}"
            result.articles_after_dedup = len(unique)

            # 3. Recency window
            with self.tracker.step("filter", f"Last {self.recent_hours:g} hours only...") as step:
                recent = filter_recent_articles(unique, self.recent_hours)
                step.detail = f"{len(recent)} recent articles"

            # 4. Enrich the newest slice, then rank
            to_process = newest_first(recent, self.enrich_limit)
            with self.tracker.step("enrich", f"Analyzing {len(to_process)} articles with AI...") as step:
                processed = await self.enricher.enrich_articles(to_process)
                ranked = rank_articles(processed)
                step.detail = f"{len(processed)} articles processed"
            result.articles_processed = len(processed)

            # 5. Breaking alerts
            breaking = await self._best_effort(
                "breaking",
                f"Checking importance >= {self.breaking_threshold}...",
                lambda: asyncio.to_thread(
                    self.email_sender.send_breaking_alerts, ranked, self.breaking_threshold
                ),
                BreakingResult(),
                lambda r: f"{len(r.articles)} alerts, {r.sent} emails",
                skip_reason="dry run" if self.dry_run else None,
            )
            result.breaking_alerts_sent = breaking.value.sent

            # 6. Persist
            with self.tracker.step("save", "Writing to database...") as step:
                result.articles_saved = self.db.save_articles_batch(ranked)
                step.detail = f"{result.articles_saved} new articles"

            # 7. GitHub trending
            trending = await self._best_effort(
                "github",
                "Fetching trending repositories...",
                self.github.collect,
                [],
                lambda repos: f"{len(repos)} repos",
            )

            # 8. Compose
            with self.tracker.step("compose", "Building newsletter...") as step:
                pool = self.db.get_recent_articles(self.recent_hours, COMPOSE_POOL_SIZE) or ranked
                # This run's failures first, then anything else that failed earlier today
                unavailable = list(dict.fromkeys(self._unavailable + self.db.get_failed_sources_today()))
                newsletter = await self.composer.compose(pool, {
                    "community_pulse": trending.value,
                    "unavailable_sources": unavailable,
                })
                html = self.email_sender.render_newsletter(newsletter)
                newsletter_id = self.db.create_newsletter(
                    newsletter.subject, json.dumps(newsletter.to_dict()), html
                )
                step.detail = f"{newsletter.article_count} articles"
            result.subject = newsletter.subject

            # 9. Email
            with self.tracker.step("email", "Sending daily digest...") as step:
                if self.dry_run:
                    delivery = DeliveryResult()
                    step.detail = "skipped (dry run)"
                    self._skipped["email"] = "dry run"
                else:
                    delivery = await asyncio.to_thread(
                        self.email_sender.send_daily_digest, newsletter
                    )
                    step.detail = f"{delivery.sent_count} sent, {delivery.fail_count} failed"
                    if delivery.sent_count:
                        self.db.mark_newsletter_sent(newsletter_id)
                    elif delivery.fail_count:
                        self.db.mark_newsletter_failed(
                            newsletter_id, f"{delivery.fail_count} sends failed"
                        )
            result.emails_sent = delivery.sent_count
            result.emails_failed = delivery.fail_count

            # 10. Telegram
            if self.dry_run:
                telegram_skip = "dry run"
            elif not self.notifier.configured:
                telegram_skip = "not configured"
            else:
                telegram_skip = None
            telegram = await self._best_effort(
                "telegram",
                "Posting top stories...",
                lambda: self.notifier.send_top_stories(pool),
                0,
                lambda sent: f"{sent} messages",
                skip_reason=telegram_skip,
                mark_error=False,
            )
            result.telegram_sent = telegram.value

            result.duration = _elapsed(start)
            result.skipped = dict(self._skipped)
            self.tracker.finish()
            logger.info(
                f"===== FULL PIPELINE DONE in {result.duration}: "
                f"{result.articles_processed} processed, {result.emails_sent} emails =====")
            return result

        except Exception as e:
            logger.exception(f"PIPELINE FAILED: {e}")
            self.tracker.finish(str(e))
            return PipelineResult(success=False, duration=_elapsed(start), error=str(e))

        finally:
            self._running = False

    async def run_weekly_pipeline(self) -> WeeklyResult:
        """Compose and send the weekly roundup from stored articles.

        Weekly runs do not publish progress.
        """
        self._claim()
        start = time.monotonic()
        logger.info("===== WEEKLY PIPELINE STARTED =====")

        try:
            articles = self.db.get_recent_articles(WEEKLY_HOURS, WEEKLY_POOL_SIZE)
            if not articles:
                logger.warning("No articles from the past week, nothing to send")
                return WeeklyResult(success=True, duration=_elapsed(start))

            newsletter = await self.composer.compose_weekly(articles)
            if self.dry_run:
                logger.info("DRY RUN - weekly digest not sent")
                delivery = DeliveryResult()
            else:
                delivery = await asyncio.to_thread(self.email_sender.send_weekly_digest, newsletter)

            result = WeeklyResult(
                success=True,
                emails_sent=delivery.sent_count,
                emails_failed=delivery.fail_count,
                articles_count=len(articles),
                duration=_elapsed(start),
            )
            logger.info(f"===== WEEKLY PIPELINE DONE in {result.duration} =====")
            return result

        except Exception as e:
            logger.exception(f"Weekly pipeline failed: {e}")
            return WeeklyResult(success=False, duration=_elapsed(start), error=str(e))

        finally:
            self._running = False
