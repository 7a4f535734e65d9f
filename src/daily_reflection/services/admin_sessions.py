# ABOUTME: In-memory admin session manager for the shared-password admin panel.
# ABOUTME: Issues random bearer tokens on login and expires them passively after a fixed TTL.

import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog
from pydantic import SecretStr

from daily_reflection.errors import Unauthorized
from daily_reflection.models import AdminSession

log = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class AdminSessionManager:
    """Authenticates the single admin identity and tracks issued tokens.

    Tokens live only in this object; restarting the process logs everyone out.
    Any valid token authorizes every admin action.
    """

    def __init__(
        self,
        password: SecretStr | str | None,
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if isinstance(password, SecretStr):
            password = password.get_secret_value()
        self._password = password or None
        self.ttl = ttl
        self._clock = clock
        self._sessions: dict[str, datetime] = {}

    def authenticate(self, password: str) -> AdminSession:
        """Check the admin password and issue a new session token.

        Raises:
            Unauthorized: If the password is wrong or no password is configured.
        """
        if self._password is None:
            log.warning("admin_login_disabled")
            raise Unauthorized("Admin login is not configured")

        if not secrets.compare_digest(password.encode(), self._password.encode()):
            log.warning("admin_login_failed")
            raise Unauthorized("Invalid password")

        token = secrets.token_urlsafe(32)
        expires_at = self._clock() + self.ttl
        self._sessions[token] = expires_at
        log.info("admin_login", expires_at=expires_at.isoformat())
        return AdminSession(token=token, expires_at=expires_at)

    def is_valid(self, token: str | None) -> bool:
        """True if the token was issued here and has not expired yet."""
        if not token:
            return False
        expires_at = self._sessions.get(token)
        if expires_at is None:
            return False
        if self._clock() >= expires_at:
            del self._sessions[token]
            return False
        return True

    def require(self, token: str | None) -> None:
        """Raise Unauthorized unless the token is valid."""
        if not self.is_valid(token):
            raise Unauthorized("Invalid or expired session")

    def revoke(self, token: str) -> None:
        """Forget a token (logout). Unknown tokens are ignored."""
        if self._sessions.pop(token, None) is not None:
            log.info("admin_logout")

    def revoke_expired(self) -> int:
        """Drop every expired token and return how many were removed."""
        now = self._clock()
        expired = [token for token, expires_at in self._sessions.items() if now >= expires_at]
        for token in expired:
            del self._sessions[token]
        if expired:
            log.debug("admin_sessions_expired", count=len(expired))
        return len(expired)

    @property
    def active_count(self) -> int:
        """Number of tokens currently tracked (expired ones may linger until checked)."""
        return len(self._sessions)
