# ABOUTME: Store interfaces implemented by the JSON file store and the SQL repositories.
# ABOUTME: Services depend only on these protocols, never on a concrete backend.

from typing import Any, Protocol

from daily_reflection.models import ReflectionEntry, Subscriber


class ReflectionStore(Protocol):
    """Durable CRUD for reflections keyed by id."""

    async def create(self, entry: ReflectionEntry) -> ReflectionEntry: ...

    async def find_by_id(self, entry_id: str) -> ReflectionEntry | None: ...

    async def find_all(self) -> list[ReflectionEntry]: ...

    async def update_by_id(
        self, entry_id: str, fields: dict[str, Any]
    ) -> ReflectionEntry | None: ...

    async def delete_by_id(self, entry_id: str) -> bool: ...


class SubscriberStore(Protocol):
    """Durable CRUD for subscribers keyed by normalized email."""

    async def create(self, subscriber: Subscriber) -> Subscriber: ...

    async def find_by_id(self, email: str) -> Subscriber | None: ...

    async def find_all(self) -> list[Subscriber]: ...

    async def update_by_id(self, email: str, fields: dict[str, Any]) -> Subscriber | None: ...

    async def delete_by_id(self, email: str) -> bool: ...
