"""Resolve the authenticated identity behind an inbound request.

Precedence is fixed: an ``Authorization: Bearer`` header wins, otherwise
the session cookie is used. Invalid and absent credentials both resolve
to ``None`` so callers cannot tell them apart.
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, Request
from starlette.requests import HTTPConnection

from .core import get_settings
from .errors import InvalidToken, Unauthorized
from .tokens import TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The user a request acts on behalf of."""

    user_id: str


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def _cookie_name(connection: HTTPConnection) -> str:
    settings = getattr(connection.app.state, "settings", None) or get_settings()
    return settings.AUTH_COOKIE_NAME


def bearer_token(authorization: str | None) -> str | None:
    """Return the token from a well-formed ``Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        return None
    return token


def extract_token(connection: HTTPConnection) -> str | None:
    """Pick the candidate token: bearer header first, then the cookie."""
    token = bearer_token(connection.headers.get("authorization"))
    if token:
        return token
    return connection.cookies.get(_cookie_name(connection)) or None


def resolve_from_request(
    connection: HTTPConnection, tokens: TokenService
) -> Identity | None:
    """
    Resolve the request's identity.

    Args:
        connection: Incoming request (or any Starlette HTTP connection).
        tokens (TokenService): Verifier for the candidate token.

    Returns:
        Identity | None: The identity, or ``None`` for absent or invalid
        credentials.
    """
    token = extract_token(connection)
    if token is None:
        return None
    try:
        claims = tokens.verify(token)
    except InvalidToken:
        logger.debug("Rejected session token on %s", connection.url.path)
        return None
    return Identity(user_id=claims.user_id)


def get_optional_identity(
    request: Request, tokens: TokenService = Depends(get_token_service)
) -> Identity | None:
    """Dependency returning the identity or ``None``."""
    return resolve_from_request(request, tokens)


def get_current_identity(
    identity: Identity | None = Depends(get_optional_identity),
) -> Identity:
    """Dependency that requires an authenticated identity."""
    if identity is None:
        raise Unauthorized(headers={"WWW-Authenticate": "Bearer"})
    return identity
