# ABOUTME: Exception hierarchy shared by services, stores, transports and the web layer.
# ABOUTME: Each error carries the HTTP status the web layer answers with.


class ReflectionBlogError(Exception):
    """Base class for application errors."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequest(ReflectionBlogError):
    """Missing or invalid input."""

    status_code = 400


class DuplicateSubscriber(BadRequest):
    """An email address is already subscribed."""


class NoRecipients(BadRequest):
    """A newsletter was requested with nobody to send it to."""


class Unauthorized(ReflectionBlogError):
    """Wrong admin password or missing/expired session token."""

    status_code = 401


class NotFound(ReflectionBlogError):
    """The targeted reflection or subscriber does not exist."""

    status_code = 404


class StoreFailure(ReflectionBlogError):
    """Reading or writing persistent storage failed."""


class TransportFailure(ReflectionBlogError):
    """A single message could not be delivered."""
