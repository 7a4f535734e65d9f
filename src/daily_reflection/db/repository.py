# ABOUTME: Repository classes implementing the store protocols on top of SQLAlchemy.
# ABOUTME: Provides ReflectionRepository and SubscriberRepository; database errors surface as StoreFailure.

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from daily_reflection.db.models import Reflection, Subscriber
from daily_reflection.errors import StoreFailure
from daily_reflection.models import ReflectionEntry
from daily_reflection.models import Subscriber as SubscriberRecord

log = structlog.get_logger()


@asynccontextmanager
async def _wrap_errors(operation: str) -> AsyncGenerator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        log.error("db_operation_failed", operation=operation, error=str(e))
        raise StoreFailure(f"Database error during {operation}") from e


class ReflectionRepository:
    """Repository for Reflection CRUD operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entry: ReflectionEntry) -> ReflectionEntry:
        """Insert a new reflection."""
        async with _wrap_errors("reflection_create"):
            row = Reflection(id=entry.id, title=entry.title, body=entry.body, date=entry.date)
            self.session.add(row)
            await self.session.flush()
            return ReflectionEntry.model_validate(row)

    async def find_by_id(self, entry_id: str) -> ReflectionEntry | None:
        """Get reflection by ID."""
        async with _wrap_errors("reflection_find"):
            row = await self.session.get(Reflection, entry_id)
            return ReflectionEntry.model_validate(row) if row else None

    async def find_all(self) -> list[ReflectionEntry]:
        """List all reflections, newest insert first."""
        async with _wrap_errors("reflection_list"):
            result = await self.session.execute(
                select(Reflection).order_by(Reflection.created_at.desc())
            )
            return [ReflectionEntry.model_validate(row) for row in result.scalars().all()]

    async def update_by_id(self, entry_id: str, fields: dict[str, Any]) -> ReflectionEntry | None:
        """Overwrite the given fields of a reflection; the id never changes."""
        async with _wrap_errors("reflection_update"):
            row = await self.session.get(Reflection, entry_id)
            if row is None:
                return None
            for name, value in fields.items():
                if name != "id":
                    setattr(row, name, value)
            await self.session.flush()
            return ReflectionEntry.model_validate(row)

    async def delete_by_id(self, entry_id: str) -> bool:
        """Delete a reflection. Returns False if it did not exist."""
        async with _wrap_errors("reflection_delete"):
            row = await self.session.get(Reflection, entry_id)
            if row is None:
                return False
            await self.session.delete(row)
            await self.session.flush()
            return True


class SubscriberRepository:
    """Repository for Subscriber CRUD operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, subscriber: SubscriberRecord) -> SubscriberRecord:
        """Insert a new subscriber."""
        async with _wrap_errors("subscriber_create"):
            row = Subscriber(
                email=subscriber.email, date=subscriber.date, selected=subscriber.selected
            )
            self.session.add(row)
            await self.session.flush()
            return SubscriberRecord.model_validate(row)

    async def find_by_id(self, email: str) -> SubscriberRecord | None:
        """Get subscriber by email address."""
        async with _wrap_errors("subscriber_find"):
            row = await self.session.get(Subscriber, email)
            return SubscriberRecord.model_validate(row) if row else None

    async def find_all(self) -> list[SubscriberRecord]:
        """List all subscribers in subscription order."""
        async with _wrap_errors("subscriber_list"):
            result = await self.session.execute(select(Subscriber).order_by(Subscriber.date))
            return [SubscriberRecord.model_validate(row) for row in result.scalars().all()]

    async def update_by_id(self, email: str, fields: dict[str, Any]) -> SubscriberRecord | None:
        """Overwrite the given fields of a subscriber; the email never changes."""
        async with _wrap_errors("subscriber_update"):
            row = await self.session.get(Subscriber, email)
            if row is None:
                return None
            for name, value in fields.items():
                if name != "email":
                    setattr(row, name, value)
            await self.session.flush()
            return SubscriberRecord.model_validate(row)

    async def delete_by_id(self, email: str) -> bool:
        """Delete a subscriber. Returns False if it did not exist."""
        async with _wrap_errors("subscriber_delete"):
            row = await self.session.get(Subscriber, email)
            if row is None:
                return False
            await self.session.delete(row)
            await self.session.flush()
            return True
