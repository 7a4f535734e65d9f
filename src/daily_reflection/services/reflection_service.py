# ABOUTME: Service for creating, listing, editing and deleting daily reflections.
# ABOUTME: Validates required fields, generates ids and orders listings by date.

from datetime import UTC, datetime

import structlog

from daily_reflection.errors import BadRequest, NotFound
from daily_reflection.models import ReflectionEntry, ReflectionInput
from daily_reflection.storage.base import ReflectionStore
from daily_reflection.storage.json_file import new_record_id

log = structlog.get_logger()

REQUIRED_FIELDS = ("title", "body", "date")


def parse_entry_date(value: str) -> datetime | None:
    """Parse an ISO date or datetime string into a naive UTC datetime.

    Returns None when the value is not a recognizable date.
    """
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


def _sort_key(entry: ReflectionEntry) -> tuple[int, datetime]:
    parsed = parse_entry_date(entry.date)
    if parsed is None:
        return (0, datetime.min)
    return (1, parsed)


def sort_by_date_desc(entries: list[ReflectionEntry]) -> list[ReflectionEntry]:
    """Sort most recent first; equal dates keep their original relative order.

    Entries with unparseable dates go last.
    """
    # sorted() stays stable with reverse=True
    return sorted(entries, key=_sort_key, reverse=True)


def _validated_fields(data: ReflectionInput) -> dict[str, str]:
    """Trim the payload and make sure every required field is present."""
    fields = {}
    missing = []
    for name in REQUIRED_FIELDS:
        value = getattr(data, name)
        value = value.strip() if isinstance(value, str) else ""
        if not value:
            missing.append(name)
        fields[name] = value

    if missing:
        raise BadRequest(f"Missing required fields: {', '.join(missing)}")
    return fields


class ReflectionService:
    """Service for managing reflection entries."""

    def __init__(self, store: ReflectionStore) -> None:
        self.store = store

    async def list_reflections(self) -> list[ReflectionEntry]:
        """Get all reflections, most recent date first."""
        entries = await self.store.find_all()
        return sort_by_date_desc(entries)

    async def get(self, entry_id: str) -> ReflectionEntry:
        """Get one reflection.

        Raises:
            NotFound: If no reflection has this id.
        """
        entry = await self.store.find_by_id(entry_id)
        if entry is None:
            raise NotFound("Reflection not found")
        return entry

    async def create(self, data: ReflectionInput) -> ReflectionEntry:
        """Validate and store a new reflection under a fresh id.

        Raises:
            BadRequest: If title, body or date is missing or blank.
        """
        fields = _validated_fields(data)
        entry = ReflectionEntry(id=new_record_id(), **fields)
        saved = await self.store.create(entry)
        log.info("reflection_created", id=saved.id, date=saved.date)
        return saved

    async def update(self, entry_id: str, data: ReflectionInput) -> ReflectionEntry:
        """Replace every field of an existing reflection, keeping its id.

        Raises:
            BadRequest: If title, body or date is missing or blank.
            NotFound: If no reflection has this id.
        """
        fields = _validated_fields(data)
        updated = await self.store.update_by_id(entry_id, fields)
        if updated is None:
            log.warning("reflection_update_not_found", id=entry_id)
            raise NotFound("Reflection not found")
        log.info("reflection_updated", id=entry_id)
        return updated

    async def delete(self, entry_id: str) -> None:
        """Delete a reflection.

        Raises:
            NotFound: If no reflection has this id.
        """
        deleted = await self.store.delete_by_id(entry_id)
        if not deleted:
            log.warning("reflection_delete_not_found", id=entry_id)
            raise NotFound("Reflection not found")
        log.info("reflection_deleted", id=entry_id)
