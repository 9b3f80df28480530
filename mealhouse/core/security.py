"""Password hashing and JWT issuing/verification for authentication."""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from mealhouse.core.config import Settings
from mealhouse.core.errors import InvalidToken
from mealhouse.domain.enums import Role
from mealhouse.schemas.auth import Identity

logger = logging.getLogger(__name__)

# Min/max lengths for email and password validation.
EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

# Claims every accepted token must carry.
REQUIRED_CLAIMS = ("sub", "role", "exp", "iat")


def hash_password(plain_password: str, rounds: int = 12) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


class TokenVerifier:
    """
    Issues and verifies HMAC-signed access tokens.

    Built once from Settings; holds the signing key for the app's lifetime.
    verify() is pure and collapses every failure into InvalidToken so callers
    cannot tell which check rejected the token.
    """

    def __init__(self, secret: str, algorithm: str, expire_minutes: int) -> None:
        if not secret:
            raise ValueError("signing secret must be non-empty")
        self._secret = secret
        self._algorithm = algorithm
        self._expire = timedelta(minutes=expire_minutes)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenVerifier":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            expire_minutes=settings.JWT_EXPIRE_MINUTES,
        )

    def issue(self, subject_id: str, role: Role, now: datetime | None = None) -> str:
        """Create a signed token with sub, role, iat and exp."""
        issued_at = now or datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": str(subject_id),
            "role": Role(role).value,
            "iat": issued_at,
            "exp": issued_at + self._expire,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str | None) -> Identity:
        """Decode and validate a token. Raises InvalidToken on any failure."""
        if not token or not token.strip():
            raise InvalidToken()
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": list(REQUIRED_CLAIMS)},
            )
        except jwt.PyJWTError as e:
            logger.warning("Token rejected: %s", type(e).__name__)
            raise InvalidToken() from None

        sub = payload.get("sub")
        if not isinstance(sub, str) or not sub.strip():
            logger.warning("Token rejected: empty subject")
            raise InvalidToken()
        try:
            role = Role(payload.get("role"))
        except ValueError:
            logger.warning("Token rejected: unknown role")
            raise InvalidToken() from None
        return Identity(subject_id=sub, role=role)
