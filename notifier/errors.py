"""Error taxonomy shared by the token service, handlers and the app.

Every HTTP-facing error is an ``HTTPException`` so FastAPI routes can raise
them directly; the handlers registered in :mod:`notifier.application`
render them as ``{"error": <message>}``.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal server error"

_SHAPE_ERRORS = {"list_type", "model_type", "model_attributes_type", "dict_type"}


def _is_branch_tag(part) -> bool:
    # union branches show up in the location as e.g. "ContactCreate"
    # or "list[ContactCreate]"
    if not isinstance(part, str):
        return False
    return part.startswith("list[") or (part[:1].isupper() and not part.isupper())


class ConfigurationError(RuntimeError):
    """Raised at startup when required configuration is missing."""


class InvalidToken(Exception):
    """Raised when a session token fails verification."""


class NotifierError(HTTPException):
    """Base class for errors that map onto an HTTP status code."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = GENERIC_ERROR_MESSAGE

    def __init__(self, message: str | None = None, headers: dict | None = None):
        super().__init__(
            status_code=self.status_code,
            detail=message or self.default_message,
            headers=headers,
        )


class ValidationError(NotifierError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class Unauthorized(NotifierError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class Forbidden(NotifierError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFound(NotifierError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(NotifierError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class InternalError(NotifierError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = GENERIC_ERROR_MESSAGE


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    """Build the JSON body every error response uses."""
    return JSONResponse(
        status_code=status_code, content={"error": message}, headers=headers
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render any ``HTTPException`` as ``{"error": ...}``."""
    message = exc.detail if isinstance(exc.detail, str) else GENERIC_ERROR_MESSAGE
    return error_response(exc.status_code, message, getattr(exc, "headers", None))


def _first_relevant(errors):
    # a body accepting one object or a list reports a shape mismatch for
    # the branch that did not apply; the other branch explains the failure
    for error in errors:
        if error.get("type") not in _SHAPE_ERRORS:
            return error
    return errors[0]


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Turn body/query validation failures into a 400 with a short message."""
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = _first_relevant(errors)
        field = ".".join(
            str(part)
            for part in first.get("loc", ())
            if part != "body" and not _is_branch_tag(part)
        )
        message = first.get("msg", message)
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        if field:
            message = f"{field}: {message}"
    return error_response(status.HTTP_400_BAD_REQUEST, message)


def _internal_error() -> JSONResponse:
    error = InternalError()
    return error_response(error.status_code, error.detail)


async def store_error_handler(request: Request, exc: SQLAlchemyError):
    """Log store failures with detail and hide them from the client."""
    logger.exception("Store failure on %s %s", request.method, request.url.path)
    return _internal_error()


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _internal_error()
