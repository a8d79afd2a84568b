"""Edge access gate.

A single route classification table decides whether a path is public,
a protected API or a protected page. The gate is a coarse pre-filter:
handlers still resolve the identity and check ownership themselves.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from fastapi import status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .errors import error_response
from .session import resolve_from_request

logger = logging.getLogger(__name__)


class RouteAccess(str, Enum):
    PUBLIC = "public"
    API = "api"
    PAGE = "page"


@dataclass(frozen=True)
class RouteRule:
    prefix: str
    access: RouteAccess

    def matches(self, path: str) -> bool:
        if self.prefix == path:
            return True
        return path.startswith(self.prefix.rstrip("/") + "/")


ROUTE_TABLE: tuple[RouteRule, ...] = (
    RouteRule("/auth", RouteAccess.PUBLIC),
    RouteRule("/docs", RouteAccess.PUBLIC),
    RouteRule("/redoc", RouteAccess.PUBLIC),
    RouteRule("/openapi.json", RouteAccess.PUBLIC),
    RouteRule("/static", RouteAccess.PUBLIC),
    RouteRule("/favicon.ico", RouteAccess.PUBLIC),
    RouteRule("/login", RouteAccess.PUBLIC),
    RouteRule("/register", RouteAccess.PUBLIC),
    RouteRule("/contacts", RouteAccess.API),
    RouteRule("/settings", RouteAccess.API),
    RouteRule("/users", RouteAccess.API),
    RouteRule("/dashboard", RouteAccess.PAGE),
)
"""Ordered rules; the first match wins and unmatched paths are public."""


def classify(path: str, table: tuple[RouteRule, ...] = ROUTE_TABLE) -> RouteAccess:
    """Return how ``path`` is protected according to ``table``."""
    for rule in table:
        if rule.matches(path):
            return rule.access
    return RouteAccess.PUBLIC


class AccessGateMiddleware(BaseHTTPMiddleware):
    """Reject unauthenticated requests to protected API paths with 401.

    Protected page paths pass through without a session; the client-side
    guard takes over there.
    """

    def __init__(self, app, table: tuple[RouteRule, ...] = ROUTE_TABLE):
        super().__init__(app)
        self.table = table

    async def dispatch(self, request: Request, call_next):
        access = classify(request.url.path, self.table)
        if access is RouteAccess.PUBLIC or request.method == "OPTIONS":
            return await call_next(request)

        identity = resolve_from_request(request, request.app.state.tokens)
        if identity is None and access is RouteAccess.API:
            logger.info(
                "Denied unauthenticated %s %s", request.method, request.url.path
            )
            return error_response(status.HTTP_401_UNAUTHORIZED, "Unauthorized")
        return await call_next(request)
