# ABOUTME: Request authentication helpers for the web layer.
# ABOUTME: Exports the admin bearer-token dependency.

from daily_reflection.web.middleware.admin_auth import AdminToken, require_admin

__all__ = ["AdminToken", "require_admin"]
