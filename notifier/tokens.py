"""Session token issuing and verification.

Tokens are HS256 JWTs carrying a single ``userId`` claim plus ``iat`` and
``exp``. Expiry is checked against an injectable clock so tests can move
time forward without sleeping.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from jose import JWTError, jwt

from .core import TOKEN_LIFETIME_HOURS
from .errors import ConfigurationError, InvalidToken

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenClaims:
    """Verified content of a session token."""

    user_id: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """Issue and verify signed, time-limited identity tokens.

    Args:
        secret (str | None): Signing secret. Required.
        algorithm (str): JWT signing algorithm.
        clock (Callable[[], datetime]): Source of the current UTC time.
        lifetime (timedelta): Token lifetime, one day by default.

    Raises:
        ConfigurationError: If no signing secret is configured.
    """

    def __init__(
        self,
        secret: str | None,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = utcnow,
        lifetime: timedelta = timedelta(hours=TOKEN_LIFETIME_HOURS),
    ):
        if not secret:
            raise ConfigurationError(
                "JWT_SECRET environment variable is required and must not be empty."
            )
        self._secret = secret
        self.algorithm = algorithm
        self.clock = clock
        self.lifetime = lifetime

    def __repr__(self) -> str:
        return f"TokenService(algorithm={self.algorithm!r})"

    def issue(self, user_id: str) -> str:
        """Create a signed token asserting ``user_id`` for one lifetime."""
        issued = self.clock()
        claims = {
            "userId": user_id,
            "iat": int(issued.timestamp()),
            "exp": int((issued + self.lifetime).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Verify a token's signature, structure and expiry.

        Args:
            token (str): Encoded token. Callers check for absence first.

        Raises:
            InvalidToken: On any signature, format or expiry failure.

        Returns:
            TokenClaims: Verified claims.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_iat": False},
            )
        except JWTError as exc:
            raise InvalidToken("Invalid or expired token") from exc

        user_id = payload.get("userId")
        issued_at = payload.get("iat")
        expires_at = payload.get("exp")
        if not isinstance(user_id, str) or not user_id:
            raise InvalidToken("Invalid or expired token")
        if not _is_timestamp(issued_at) or not _is_timestamp(expires_at):
            raise InvalidToken("Invalid or expired token")

        expires = datetime.fromtimestamp(expires_at, tz=timezone.utc)
        if self.clock() >= expires:
            raise InvalidToken("Invalid or expired token")
        return TokenClaims(
            user_id=user_id,
            issued_at=datetime.fromtimestamp(issued_at, tz=timezone.utc),
            expires_at=expires,
        )


def _is_timestamp(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
