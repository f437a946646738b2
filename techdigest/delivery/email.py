"""Email delivery via Resend."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

import resend
from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..collectors.base import Article
from ..config import (
    BREAKING_THRESHOLD,
    EMAIL_FROM,
    NEWSLETTER_NAME,
    RESEND_API_KEY,
    get_email_recipients,
)
from ..processors.composer import Newsletter
from ..utils import get_logger

logger = get_logger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"


@dataclass
class DeliveryResult:
    sent_count: int = 0
    fail_count: int = 0


@dataclass
class BreakingResult:
    sent: int = 0
    articles: list[str] = field(default_factory=list)


class EmailSender:
    """Send digest, breaking-news and alert emails via Resend.

    Delivery is optional: without an API key or recipients every send
    is a logged no-op returning zero counts.
    """

    def __init__(
        self,
        api_key: str = RESEND_API_KEY,
        recipients: Optional[list[str]] = None,
        sender: str = EMAIL_FROM,
        client=None,
    ):
        self.api_key = api_key
        self.recipients = recipients if recipients is not None else get_email_recipients()
        self.sender = sender
        # Anything with an Emails.send(params) method; tests pass a fake
        self.client = client or resend
        if api_key:
            resend.api_key = api_key
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATES_DIR),
            autoescape=select_autoescape(["html"]),
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.recipients)

    def render_newsletter(self, newsletter: Newsletter) -> str:
        """Render the newsletter HTML."""
        template = self.env.get_template("newsletter.html")
        return template.render(
            name=NEWSLETTER_NAME,
            date=newsletter.generated_at.strftime("%A, %B %d, %Y"),
            newsletter=newsletter,
        )

    def render_breaking(self, article: Article) -> str:
        template = self.env.get_template("breaking.html")
        return template.render(name=NEWSLETTER_NAME, article=article, threshold=BREAKING_THRESHOLD)

    def _send(self, to: str, subject: str, html: str) -> str:
        response = self.client.Emails.send({
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html,
        })
        return response.get("id", "unknown")

    def _send_to_all(self, subject: str, html: str) -> DeliveryResult:
        result = DeliveryResult()
        for recipient in self.recipients:
            try:
                email_id = self._send(recipient, subject, html)
                result.sent_count += 1
                logger.debug(f"Email sent to {recipient}: {email_id}")
            except Exception as e:
                result.fail_count += 1
                logger.error(f"Failed to send email to {recipient}: {e}")
        return result

    def send_daily_digest(self, newsletter: Newsletter) -> DeliveryResult:
        """Send the daily newsletter to every recipient."""
        if not self.configured:
            logger.warning("Email not configured (RESEND_API_KEY / EMAIL_TO). Skipping send.")
            return DeliveryResult()

        logger.info(f"Sending daily digest to {len(self.recipients)} recipients...")
        result = self._send_to_all(newsletter.subject, self.render_newsletter(newsletter))
        logger.info(f"Daily digest: {result.sent_count} sent, {result.fail_count} failed")
        return result

    def send_weekly_digest(self, newsletter: Newsletter) -> DeliveryResult:
        """Send the weekly roundup to every recipient."""
        if not self.configured:
            logger.warning("Email not configured (RESEND_API_KEY / EMAIL_TO). Skipping send.")
            return DeliveryResult()

        logger.info(f"Sending weekly digest to {len(self.recipients)} recipients...")
        result = self._send_to_all(newsletter.subject, self.render_newsletter(newsletter))
        logger.info(f"Weekly digest: {result.sent_count} sent, {result.fail_count} failed")
        return result

    def send_breaking_alerts(
        self, articles: list[Article], threshold: int = BREAKING_THRESHOLD
    ) -> BreakingResult:
        """Email a standalone alert for every article scoring >= threshold."""
        breaking = [a for a in articles if a.ai_importance >= threshold]
        if not breaking:
            return BreakingResult()

        logger.info(f"Found {len(breaking)} breaking articles (importance >= {threshold})")
        if not self.configured:
            logger.warning("Email not configured, breaking alerts not sent")
            return BreakingResult()

        result = BreakingResult()
        for article in breaking:
            outcome = self._send_to_all(
                f"Breaking: {article.title[:60]}", self.render_breaking(article)
            )
            result.sent += outcome.sent_count
            result.articles.append(article.title)

        logger.info(f"Breaking alerts: {result.sent} emails for {len(breaking)} articles")
        return result

    def send_error_alert(self, error: str, context: str = "") -> Optional[str]:
        """Send an error alert email when the pipeline fails."""
        if not self.configured:
            logger.warning("Email not configured, error alert not sent")
            return None

        date_str = datetime.now().strftime("%B %d, %Y at %H:%M")
        html = self.env.get_template("error_alert.html").render(
            name=NEWSLETTER_NAME, date=date_str, error=error, context=context
        )

        try:
            email_id = self._send(
                self.recipients[0], f"[ALERT] {NEWSLETTER_NAME} pipeline failed - {date_str}", html
            )
            logger.info(f"Error alert sent: {email_id}")
            return email_id
        except Exception as e:
            logger.error(f"Failed to send error alert: {e}")
            raise
