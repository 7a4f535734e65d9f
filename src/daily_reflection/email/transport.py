# ABOUTME: Mail transports used by the newsletter dispatcher: SMTP and an HTTP email API.
# ABOUTME: Each transport sends exactly one message per call and raises TransportFailure on error.

import asyncio
import smtplib
from email.message import EmailMessage
from typing import Protocol

import httpx
import structlog

from daily_reflection.config import Settings, get_settings
from daily_reflection.errors import TransportFailure

log = structlog.get_logger()


class Transport(Protocol):
    """Sends one message to one address."""

    async def send_one(self, address: str, subject: str, html_body: str, text_body: str) -> None:
        """Deliver a message or raise TransportFailure."""
        ...


def _from_header(settings: Settings) -> str:
    return f"{settings.sender_name} <{settings.sender_email}>"


class SmtpTransport:
    """Sends messages over SMTP with STARTTLS, one connection per message."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def build_message(
        self, address: str, subject: str, html_body: str, text_body: str
    ) -> EmailMessage:
        """Build a multipart message with a plain-text part and an HTML alternative."""
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = _from_header(self.settings)
        message["To"] = address
        if self.settings.bounce_email:
            message.add_header("Return-Path", self.settings.bounce_email)

        message.set_content(text_body)
        message.add_alternative(html_body, subtype="html")
        return message

    async def send_one(self, address: str, subject: str, html_body: str, text_body: str) -> None:
        message = self.build_message(address, subject, html_body, text_body)
        # smtplib blocks; a timed-out caller stops waiting but the thread runs to completion
        await asyncio.to_thread(self._send_smtp, message, address)

    def _send_smtp(self, message: EmailMessage, recipient: str) -> None:
        """Send email via SMTP."""
        if not self.settings.smtp_user or not self.settings.smtp_password:
            raise TransportFailure(
                "SMTP credentials not configured. Set SMTP_USER and SMTP_PASSWORD."
            )

        log.debug(
            "connecting_smtp",
            host=self.settings.smtp_host,
            port=self.settings.smtp_port,
        )

        try:
            server = smtplib.SMTP(
                self.settings.smtp_host,
                self.settings.smtp_port,
                timeout=self.settings.smtp_timeout,
            )
        except (OSError, smtplib.SMTPException) as e:
            raise TransportFailure(f"SMTP connection failed: {e}") from e

        try:
            server.ehlo()
            server.starttls()
            server.ehlo()
            server.login(
                self.settings.smtp_user.get_secret_value(),
                self.settings.smtp_password.get_secret_value(),
            )
            server.sendmail(message["From"], recipient, message.as_string())
        except (OSError, smtplib.SMTPException) as e:
            raise TransportFailure(f"SMTP send failed: {e}") from e
        finally:
            try:
                server.quit()
            except (OSError, smtplib.SMTPException):
                log.debug("smtp_quit_failed", recipient=recipient)


class HttpApiTransport:
    """Sends messages through a JSON email API (Resend-compatible payload)."""

    def __init__(
        self, settings: Settings | None = None, client: httpx.AsyncClient | None = None
    ) -> None:
        self.settings = settings or get_settings()
        if not self.settings.mail_api_key:
            raise ValueError("MAIL_API_KEY is required for the HTTP mail transport")
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-initialized HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.mail_api_timeout)
        return self._client

    async def send_one(self, address: str, subject: str, html_body: str, text_body: str) -> None:
        payload = {
            "from": _from_header(self.settings),
            "to": [address],
            "subject": subject,
            "html": html_body,
            "text": text_body,
        }
        headers = {"Authorization": f"Bearer {self.settings.mail_api_key.get_secret_value()}"}
        try:
            response = await self.client.post(
                self.settings.mail_api_url, json=payload, headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportFailure(
                f"Mail API returned {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportFailure(f"Mail API request failed: {e}") from e

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def build_transport(settings: Settings | None = None) -> SmtpTransport | HttpApiTransport:
    """Pick the HTTP API transport when an API key is configured, SMTP otherwise."""
    settings = settings or get_settings()
    if settings.mail_api_key:
        log.info("mail_transport_selected", transport="http_api", url=settings.mail_api_url)
        return HttpApiTransport(settings)
    log.info("mail_transport_selected", transport="smtp", host=settings.smtp_host)
    return SmtpTransport(settings)
