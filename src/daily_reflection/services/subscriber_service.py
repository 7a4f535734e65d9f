# ABOUTME: Service for managing newsletter subscriptions.
# ABOUTME: Handles signup with email normalization and uniqueness, deletion and the selected flag.

import re
from datetime import UTC, datetime

import structlog

from daily_reflection.errors import BadRequest, DuplicateSubscriber, NotFound
from daily_reflection.models import Subscriber
from daily_reflection.storage.base import SubscriberStore

log = structlog.get_logger()

# Characters an address may not contain
_FORBIDDEN = r"\s@'\"<>()\[\]\\,;:`"
EMAIL_PATTERN = re.compile(rf"^[^{_FORBIDDEN}]+@[^{_FORBIDDEN}]+\.[^{_FORBIDDEN}]+$")


def normalize_email(email: str) -> str:
    """Trim and lowercase an email address."""
    return email.strip().lower()


class SubscriberService:
    """Service for managing newsletter subscriptions."""

    def __init__(self, store: SubscriberStore) -> None:
        self.store = store

    async def subscribe(self, email: str | None) -> Subscriber:
        """Create a new subscriber.

        Args:
            email: Email address to subscribe. Case and surrounding spaces are ignored.

        Returns:
            The stored subscriber, not selected.

        Raises:
            BadRequest: If the email is missing or malformed.
            DuplicateSubscriber: If the normalized email is already subscribed.
        """
        if not email or not email.strip():
            raise BadRequest("Email is required")

        email = normalize_email(email)
        if not EMAIL_PATTERN.match(email):
            raise BadRequest(f"Invalid email address: {email}")

        if await self.store.find_by_id(email):
            log.warning("already_subscribed", email=email)
            raise DuplicateSubscriber(f"Email {email} is already subscribed")

        subscriber = Subscriber(
            email=email,
            date=datetime.now(tz=UTC).isoformat(),
            selected=False,
        )
        saved = await self.store.create(subscriber)
        log.info("subscriber_created", email=email)
        return saved

    async def list_subscribers(self) -> list[Subscriber]:
        """Get all subscribers."""
        return await self.store.find_all()

    async def delete(self, email: str) -> None:
        """Remove a subscriber.

        Raises:
            NotFound: If the email is not subscribed.
        """
        email = normalize_email(email)
        if not await self.store.delete_by_id(email):
            raise NotFound(f"Subscriber {email} not found")
        log.info("subscriber_deleted", email=email)

    async def set_selected(self, email: str, selected: bool) -> Subscriber:
        """Flag or unflag one subscriber as a newsletter recipient.

        Raises:
            NotFound: If the email is not subscribed.
        """
        email = normalize_email(email)
        updated = await self.store.update_by_id(email, {"selected": selected})
        if updated is None:
            raise NotFound(f"Subscriber {email} not found")
        log.info("subscriber_selection_changed", email=email, selected=selected)
        return updated

    async def select_many(self, selected: bool, emails: list[str] | None = None) -> int:
        """Set the selected flag on several subscribers, or on all of them.

        Args:
            selected: New value of the flag.
            emails: Addresses to update. None means every subscriber.

        Returns:
            Number of subscribers updated.

        Raises:
            NotFound: If an explicitly listed address is not subscribed.
        """
        if emails is None:
            targets = [s.email for s in await self.store.find_all()]
        else:
            targets = list(dict.fromkeys(normalize_email(e) for e in emails))
            known = {s.email for s in await self.store.find_all()}
            unknown = [e for e in targets if e not in known]
            if unknown:
                raise NotFound(f"Subscribers not found: {', '.join(unknown)}")

        for email in targets:
            await self.store.update_by_id(email, {"selected": selected})

        log.info("subscribers_bulk_selected", count=len(targets), selected=selected)
        return len(targets)

    async def selected_emails(self) -> list[str]:
        """Get email addresses of the subscribers flagged as recipients."""
        subscribers = await self.store.find_all()
        return [s.email for s in subscribers if s.selected]
