# ABOUTME: Public newsletter signup route.
# ABOUTME: Validates and stores a subscription through SubscriberService.

import structlog
from fastapi import APIRouter
from pydantic import BaseModel

from daily_reflection.models import SubscribeRequest, Subscriber
from daily_reflection.web.dependencies import SubscriberSvc

router = APIRouter(prefix="/api", tags=["subscribe"])
log = structlog.get_logger()


class SubscribeResponse(BaseModel):
    """Response for a successful signup."""

    success: bool = True
    subscriber: Subscriber


@router.post("/subscribe", response_model=SubscribeResponse, status_code=201)
async def subscribe(data: SubscribeRequest, service: SubscriberSvc):
    """Handle newsletter subscription request."""
    subscriber = await service.subscribe(data.email)
    log.info("subscription_created", email=subscriber.email)
    return SubscribeResponse(subscriber=subscriber)
