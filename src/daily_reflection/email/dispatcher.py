# ABOUTME: Newsletter dispatcher: sends one message per recipient through a pluggable transport.
# ABOUTME: Per-recipient failures and timeouts are recorded in the summary without aborting the batch.

import asyncio
from collections.abc import Iterable

import structlog

from daily_reflection.config import Settings, get_settings
from daily_reflection.email.rendering import NewsletterRenderer
from daily_reflection.email.transport import HttpApiTransport, Transport, build_transport
from daily_reflection.errors import BadRequest, NoRecipients
from daily_reflection.models import DispatchOutcome, DispatchSummary
from daily_reflection.services.subscriber_service import normalize_email

log = structlog.get_logger()


class NewsletterDispatcher:
    """Sends a newsletter to a set of addresses, one at a time."""

    def __init__(
        self,
        transport: Transport,
        renderer: NewsletterRenderer,
        timeout: float | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            transport: Delivers a single message.
            renderer: Turns subject and body into HTML and text parts.
            timeout: Seconds to wait for each send. None waits as long as the transport does.
        """
        self.transport = transport
        self.renderer = renderer
        self.timeout = timeout

    async def send(self, subject: str, body: str, recipients: Iterable[str]) -> DispatchSummary:
        """Send the newsletter to every recipient.

        Args:
            subject: Message subject, must not be blank.
            body: Plain-text body, must not be blank.
            recipients: Email addresses; normalized and de-duplicated before sending.

        Returns:
            Summary with sent/failed counts and one outcome per address.

        Raises:
            BadRequest: If subject or body is blank.
            NoRecipients: If there is nobody to send to.
        """
        subject = (subject or "").strip()
        if not subject or not body or not body.strip():
            raise BadRequest("Subject and body are required")

        addresses = sorted({normalize_email(r) for r in recipients if r and r.strip()})
        if not addresses:
            raise NoRecipients("No recipients to send the newsletter to")

        html_body, text_body = self.renderer.render(subject, body)

        log.info("sending_newsletter", subject=subject, recipient_count=len(addresses))

        summary = DispatchSummary()
        for address in addresses:
            summary.record(await self._send_to(address, subject, html_body, text_body))

        log.info(
            "newsletter_sent",
            sent=summary.sent_count,
            failed=summary.failed_count,
        )
        return summary

    async def _send_to(
        self, address: str, subject: str, html_body: str, text_body: str
    ) -> DispatchOutcome:
        try:
            await asyncio.wait_for(
                self.transport.send_one(address, subject, html_body, text_body),
                timeout=self.timeout,
            )
        except TimeoutError:
            log.warning("newsletter_send_timeout", recipient=address, timeout=self.timeout)
            detail = "Timed out" if self.timeout is None else f"Timed out after {self.timeout:g}s"
            return DispatchOutcome(address=address, success=False, error_detail=detail)
        except Exception as e:
            log.warning("newsletter_send_failed", recipient=address, error=str(e))
            return DispatchOutcome(address=address, success=False, error_detail=str(e))

        log.debug("newsletter_sent_to", recipient=address)
        return DispatchOutcome(address=address, success=True)


def build_dispatcher(settings: Settings | None = None) -> NewsletterDispatcher:
    """Create a dispatcher with the configured transport.

    The SMTP transport gets the dispatcher timeout; the HTTP API transport relies
    on its client's own timeout.
    """
    settings = settings or get_settings()
    transport = build_transport(settings)
    timeout = None if isinstance(transport, HttpApiTransport) else settings.smtp_timeout
    return NewsletterDispatcher(transport, NewsletterRenderer(settings), timeout=timeout)
