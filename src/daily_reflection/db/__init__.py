# ABOUTME: SQL store backend package.
# ABOUTME: Exports ORM models, repositories and session helpers.

from daily_reflection.db.models import Base, Reflection, Subscriber
from daily_reflection.db.repository import ReflectionRepository, SubscriberRepository
from daily_reflection.db.session import close_db, configure_db, get_session, init_db

__all__ = [
    "Base",
    "Reflection",
    "ReflectionRepository",
    "Subscriber",
    "SubscriberRepository",
    "close_db",
    "configure_db",
    "get_session",
    "init_db",
]
