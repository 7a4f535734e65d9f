# ABOUTME: Service layer package.
# ABOUTME: Exports reflection, subscriber and admin session services.

from daily_reflection.services.admin_sessions import AdminSessionManager
from daily_reflection.services.reflection_service import ReflectionService
from daily_reflection.services.subscriber_service import SubscriberService

__all__ = ["AdminSessionManager", "ReflectionService", "SubscriberService"]
