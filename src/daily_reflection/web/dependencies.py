# ABOUTME: FastAPI dependency injection for settings, stores and services.
# ABOUTME: Picks the JSON file or SQL store backend per request according to settings.

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from fastapi.templating import Jinja2Templates

from daily_reflection.config import Settings
from daily_reflection.db.repository import ReflectionRepository, SubscriberRepository
from daily_reflection.db.session import get_session
from daily_reflection.email.dispatcher import NewsletterDispatcher
from daily_reflection.services.admin_sessions import AdminSessionManager
from daily_reflection.services.reflection_service import ReflectionService
from daily_reflection.services.subscriber_service import SubscriberService
from daily_reflection.storage.base import ReflectionStore, SubscriberStore


def get_app_settings(request: Request) -> Settings:
    """Get the settings the app was created with."""
    return request.app.state.settings


AppSettings = Annotated[Settings, Depends(get_app_settings)]


def get_templates(request: Request) -> Jinja2Templates:
    """Get Jinja2 templates from app state."""
    return request.app.state.templates


Templates = Annotated[Jinja2Templates, Depends(get_templates)]


def get_session_manager(request: Request) -> AdminSessionManager:
    """Get the admin session manager created at startup."""
    return request.app.state.sessions


Sessions = Annotated[AdminSessionManager, Depends(get_session_manager)]


def get_dispatcher(request: Request) -> NewsletterDispatcher:
    """Get the newsletter dispatcher created at startup."""
    return request.app.state.dispatcher


Dispatcher = Annotated[NewsletterDispatcher, Depends(get_dispatcher)]


async def get_reflection_store(
    request: Request, settings: AppSettings
) -> AsyncGenerator[ReflectionStore]:
    """Get the reflection store for the configured backend."""
    if settings.store_backend == "sql":
        async with get_session() as session:
            yield ReflectionRepository(session)
    else:
        yield request.app.state.json_store.reflections


async def get_subscriber_store(
    request: Request, settings: AppSettings
) -> AsyncGenerator[SubscriberStore]:
    """Get the subscriber store for the configured backend."""
    if settings.store_backend == "sql":
        async with get_session() as session:
            yield SubscriberRepository(session)
    else:
        yield request.app.state.json_store.subscribers


def get_reflection_service(
    store: Annotated[ReflectionStore, Depends(get_reflection_store)],
) -> ReflectionService:
    """Get reflection service bound to the request's store."""
    return ReflectionService(store)


ReflectionSvc = Annotated[ReflectionService, Depends(get_reflection_service)]


def get_subscriber_service(
    store: Annotated[SubscriberStore, Depends(get_subscriber_store)],
) -> SubscriberService:
    """Get subscriber service bound to the request's store."""
    return SubscriberService(store)


SubscriberSvc = Annotated[SubscriberService, Depends(get_subscriber_service)]
