# ABOUTME: Routes module initialization.
# ABOUTME: Exports all route modules for FastAPI app.

from daily_reflection.web.routes import admin, api, pages, reflections, subscribe

__all__ = ["admin", "api", "pages", "reflections", "subscribe"]
