# ABOUTME: Admin API routes: login, session checks, subscriber management and newsletter sending.
# ABOUTME: Every route except login requires a valid bearer token.

from datetime import datetime

import structlog
from fastapi import APIRouter
from pydantic import BaseModel

from daily_reflection.models import (
    BulkSelectRequest,
    DispatchSummary,
    LoginRequest,
    NewsletterRequest,
    SelectRequest,
    Subscriber,
)
from daily_reflection.web.dependencies import Dispatcher, Sessions, SubscriberSvc
from daily_reflection.web.middleware.admin_auth import AdminToken

router = APIRouter(prefix="/api/admin", tags=["admin"])
log = structlog.get_logger()


class LoginResponse(BaseModel):
    """Issued admin token."""

    token: str
    expires_at: datetime


class VerifyResponse(BaseModel):
    """Token check result."""

    valid: bool


class SuccessResponse(BaseModel):
    """Response carrying only a success flag."""

    success: bool = True


class BulkSelectResponse(BaseModel):
    """Result of a bulk selection change."""

    success: bool = True
    updated: int


@router.post("/login", response_model=LoginResponse)
async def login(data: LoginRequest, sessions: Sessions):
    """Exchange the admin password for a session token."""
    session = sessions.authenticate(data.password)
    return LoginResponse(token=session.token, expires_at=session.expires_at)


@router.get("/verify", response_model=VerifyResponse)
async def verify(_token: AdminToken):
    """Confirm the caller's token is still valid."""
    return VerifyResponse(valid=True)


@router.post("/logout", response_model=SuccessResponse)
async def logout(token: AdminToken, sessions: Sessions):
    """Revoke the caller's token."""
    sessions.revoke(token)
    return SuccessResponse()


@router.get("/subscribers", response_model=list[Subscriber])
async def list_subscribers(_token: AdminToken, service: SubscriberSvc):
    """All subscribers."""
    return await service.list_subscribers()


@router.post("/subscribers/select", response_model=BulkSelectResponse)
async def select_subscribers(
    _token: AdminToken, data: BulkSelectRequest, service: SubscriberSvc
):
    """Set the selected flag on the listed subscribers, or on everyone."""
    updated = await service.select_many(data.selected, data.emails)
    return BulkSelectResponse(updated=updated)


@router.patch("/subscribers/{email}", response_model=Subscriber)
async def select_subscriber(
    _token: AdminToken, email: str, data: SelectRequest, service: SubscriberSvc
):
    """Set the selected flag on one subscriber."""
    return await service.set_selected(email, data.selected)


@router.delete("/subscribers/{email}", response_model=SuccessResponse)
async def delete_subscriber(_token: AdminToken, email: str, service: SubscriberSvc):
    """Remove a subscriber."""
    await service.delete(email)
    return SuccessResponse()


@router.post("/newsletter", response_model=DispatchSummary)
async def send_newsletter(
    _token: AdminToken,
    data: NewsletterRequest,
    service: SubscriberSvc,
    dispatcher: Dispatcher,
):
    """Send a newsletter to every selected subscriber."""
    recipients = await service.selected_emails()
    summary = await dispatcher.send(data.subject, data.body, recipients)
    log.info(
        "admin_newsletter_sent",
        subject=data.subject,
        sent=summary.sent_count,
        failed=summary.failed_count,
    )
    return summary
