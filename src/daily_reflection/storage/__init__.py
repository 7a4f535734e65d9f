# ABOUTME: Storage package: store protocols and the JSON file backend.
# ABOUTME: The SQL backend lives in daily_reflection.db.

from daily_reflection.storage.base import ReflectionStore, SubscriberStore
from daily_reflection.storage.json_file import JsonFileStore

__all__ = ["JsonFileStore", "ReflectionStore", "SubscriberStore"]
