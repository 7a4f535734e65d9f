# ABOUTME: Pydantic models for reflections, subscribers, admin sessions and dispatch results.
# ABOUTME: Shared by both store backends, the services and the HTTP layer.

from datetime import datetime

from pydantic import BaseModel, ConfigDict, StrictBool


class ReflectionEntry(BaseModel):
    """A stored daily reflection."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    body: str
    date: str


class ReflectionInput(BaseModel):
    """Payload for creating or replacing a reflection.

    Fields are optional here so the service can name every missing field.
    """

    title: str | None = None
    body: str | None = None
    date: str | None = None


class Subscriber(BaseModel):
    """A newsletter subscriber, keyed by normalized email."""

    model_config = ConfigDict(from_attributes=True)

    email: str
    date: str
    selected: bool = False


class SubscribeRequest(BaseModel):
    """Payload for a newsletter signup."""

    email: str | None = None


class SelectRequest(BaseModel):
    """Payload for toggling the selected flag of one subscriber."""

    selected: StrictBool


class BulkSelectRequest(BaseModel):
    """Payload for toggling the selected flag of many (or all) subscribers."""

    selected: StrictBool
    emails: list[str] | None = None


class LoginRequest(BaseModel):
    """Admin login payload."""

    password: str = ""


class AdminSession(BaseModel):
    """An issued admin bearer token."""

    token: str
    expires_at: datetime


class NewsletterRequest(BaseModel):
    """Payload for sending a newsletter."""

    subject: str = ""
    body: str = ""


class DispatchOutcome(BaseModel):
    """Result of sending to one address."""

    address: str
    success: bool
    error_detail: str | None = None


class DispatchSummary(BaseModel):
    """Aggregated result of a newsletter send."""

    sent_count: int = 0
    failed_count: int = 0
    results: list[DispatchOutcome] = []

    def record(self, outcome: DispatchOutcome) -> None:
        """Add one outcome and update the counters."""
        self.results.append(outcome)
        if outcome.success:
            self.sent_count += 1
        else:
            self.failed_count += 1
