# ABOUTME: Whole-file JSON store holding reflections and subscribers in one document.
# ABOUTME: Every operation reads the file, mutates it in memory and writes it back (last write wins).

import asyncio
import contextlib
import json
import os
from pathlib import Path
from typing import Any
from uuid import uuid4

import structlog

from daily_reflection.errors import StoreFailure
from daily_reflection.models import ReflectionEntry, Subscriber

log = structlog.get_logger()

REFLECTIONS_KEY = "reflections"
SUBSCRIBERS_KEY = "subscribers"
REQUIRED_REFLECTION_FIELDS = ("title", "body", "date")
REQUIRED_SUBSCRIBER_FIELDS = ("email", "date")


def _empty_document() -> dict[str, list]:
    return {REFLECTIONS_KEY: [], SUBSCRIBERS_KEY: []}


def new_record_id() -> str:
    """Generate an opaque unique record id."""
    return uuid4().hex


class JsonFileStore:
    """A single JSON document on disk.

    The document has the shape ``{"reflections": [...], "subscribers": [...]}``.
    A missing file reads as an empty document.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.reflections = JsonReflectionStore(self)
        self.subscribers = JsonSubscriberStore(self)

    async def initialize(self) -> None:
        """Create the data file with empty collections if it does not exist."""
        if self.path.exists():
            return
        await self.write(_empty_document())
        log.info("data_file_created", path=str(self.path))

    async def read(self) -> dict[str, list]:
        """Load the whole document."""
        return await asyncio.to_thread(self._read_sync)

    async def write(self, data: dict[str, list]) -> None:
        """Replace the whole document."""
        await asyncio.to_thread(self._write_sync, data)

    def _read_sync(self) -> dict[str, list]:
        if not self.path.exists():
            return _empty_document()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            log.error("data_file_read_failed", path=str(self.path), error=str(e))
            raise StoreFailure(f"Could not read {self.path}") from e
        if not isinstance(data, dict):
            raise StoreFailure(f"Unexpected document in {self.path}")
        data.setdefault(REFLECTIONS_KEY, [])
        data.setdefault(SUBSCRIBERS_KEY, [])
        return data

    def _write_sync(self, data: dict[str, list]) -> None:
        # Readers only ever see a complete document: write aside, then rename over
        tmp_path = self.path.with_name(f".{self.path.name}.{uuid4().hex}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            log.error("data_file_write_failed", path=str(self.path), error=str(e))
            raise StoreFailure(f"Could not write {self.path}") from e


def _is_complete(
    record: dict[str, Any], fields: tuple[str, ...] = REQUIRED_REFLECTION_FIELDS
) -> bool:
    return all(isinstance(record.get(field), str) and record[field] for field in fields)


class JsonReflectionStore:
    """Reflection collection inside a JsonFileStore."""

    def __init__(self, store: JsonFileStore) -> None:
        self.store = store

    async def create(self, entry: ReflectionEntry) -> ReflectionEntry:
        data = await self.store.read()
        # Newest first in the file; listing sorts by date anyway.
        data[REFLECTIONS_KEY].insert(0, entry.model_dump())
        await self.store.write(data)
        return entry

    async def find_by_id(self, entry_id: str) -> ReflectionEntry | None:
        data = await self.store.read()
        for record in data[REFLECTIONS_KEY]:
            if record.get("id") == entry_id and _is_complete(record):
                return ReflectionEntry.model_validate(record)
        return None

    async def find_all(self) -> list[ReflectionEntry]:
        """Return every complete reflection in file order.

        Older files may hold records without an id; those get one assigned and
        the file is rewritten. Records missing a required field are skipped.
        """
        data = await self.store.read()
        backfilled = 0
        entries = []
        for record in data[REFLECTIONS_KEY]:
            if not _is_complete(record):
                continue
            if not record.get("id"):
                record["id"] = new_record_id()
                backfilled += 1
            entries.append(ReflectionEntry.model_validate(record))

        if backfilled:
            log.info("reflection_ids_backfilled", count=backfilled)
            await self.store.write(data)
        return entries

    async def update_by_id(self, entry_id: str, fields: dict[str, Any]) -> ReflectionEntry | None:
        data = await self.store.read()
        records = data[REFLECTIONS_KEY]
        for index, record in enumerate(records):
            if record.get("id") == entry_id:
                updated = {**record, **fields, "id": entry_id}
                records[index] = updated
                await self.store.write(data)
                return ReflectionEntry.model_validate(updated)
        return None

    async def delete_by_id(self, entry_id: str) -> bool:
        data = await self.store.read()
        before = len(data[REFLECTIONS_KEY])
        data[REFLECTIONS_KEY] = [r for r in data[REFLECTIONS_KEY] if r.get("id") != entry_id]
        if len(data[REFLECTIONS_KEY]) == before:
            return False
        await self.store.write(data)
        return True


class JsonSubscriberStore:
    """Subscriber collection inside a JsonFileStore."""

    def __init__(self, store: JsonFileStore) -> None:
        self.store = store

    async def create(self, subscriber: Subscriber) -> Subscriber:
        data = await self.store.read()
        data[SUBSCRIBERS_KEY].append(subscriber.model_dump())
        await self.store.write(data)
        return subscriber

    async def find_by_id(self, email: str) -> Subscriber | None:
        data = await self.store.read()
        for record in data[SUBSCRIBERS_KEY]:
            if record.get("email") == email and _is_complete(record, REQUIRED_SUBSCRIBER_FIELDS):
                return Subscriber.model_validate(record)
        return None

    async def find_all(self) -> list[Subscriber]:
        """Return every complete subscriber in file order; incomplete records are skipped."""
        data = await self.store.read()
        return [
            Subscriber.model_validate(r)
            for r in data[SUBSCRIBERS_KEY]
            if _is_complete(r, REQUIRED_SUBSCRIBER_FIELDS)
        ]

    async def update_by_id(self, email: str, fields: dict[str, Any]) -> Subscriber | None:
        data = await self.store.read()
        records = data[SUBSCRIBERS_KEY]
        for index, record in enumerate(records):
            if record.get("email") == email:
                updated = {**record, **fields, "email": email}
                records[index] = updated
                await self.store.write(data)
                return Subscriber.model_validate(updated)
        return None

    async def delete_by_id(self, email: str) -> bool:
        data = await self.store.read()
        before = len(data[SUBSCRIBERS_KEY])
        data[SUBSCRIBERS_KEY] = [r for r in data[SUBSCRIBERS_KEY] if r.get("email") != email]
        if len(data[SUBSCRIBERS_KEY]) == before:
            return False
        await self.store.write(data)
        return True
