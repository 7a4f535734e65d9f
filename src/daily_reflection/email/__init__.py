# ABOUTME: Email package: newsletter rendering, mail transports and the dispatcher.
# ABOUTME: Templates live in the templates/ directory next to this file.

from daily_reflection.email.dispatcher import NewsletterDispatcher, build_dispatcher
from daily_reflection.email.transport import HttpApiTransport, SmtpTransport, Transport

__all__ = [
    "HttpApiTransport",
    "NewsletterDispatcher",
    "SmtpTransport",
    "Transport",
    "build_dispatcher",
]
