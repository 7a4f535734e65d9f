# ABOUTME: Main package for the daily reflection blog backend.
# ABOUTME: Exports settings access and the core record models.

from daily_reflection.config import get_settings
from daily_reflection.models import DispatchSummary, ReflectionEntry, Subscriber

__version__ = "0.1.0"

__all__ = [
    "get_settings",
    "DispatchSummary",
    "ReflectionEntry",
    "Subscriber",
]
