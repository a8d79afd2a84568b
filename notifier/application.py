"""Application factory.

Builds the FastAPI app with its store provider, token service, error
handlers, access gate and routers. The store provider and token service
are created once here and shared read-only by every request.
"""

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import contacts, errors, user_settings
from .access import AccessGateMiddleware
from .auth import router as auth_router
from .core import Settings, configure_logging, get_settings
from .database import Database
from .tokens import TokenService
from .users import router as users_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    tokens: TokenService | None = None,
) -> FastAPI:
    """
    Create the Network Notifier application.

    Args:
        settings (Settings | None): Configuration; read from the
            environment when omitted.
        database (Database | None): Store provider; built from
            ``settings.DATABASE_URL`` when omitted.
        tokens (TokenService | None): Token service; built from
            ``settings.JWT_SECRET`` when omitted.

    Raises:
        ConfigurationError: If no token signing secret is configured.

    Returns:
        FastAPI: The configured application.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    tokens = tokens or TokenService(settings.JWT_SECRET, settings.JWT_ALGORITHM)
    if database is None:
        database = Database(settings.DATABASE_URL)
        # Create tables (for development only)
        database.create_all()

    app = FastAPI(title="Network Notifier API")
    app.state.settings = settings
    app.state.database = database
    app.state.tokens = tokens

    app.add_exception_handler(StarletteHTTPException, errors.http_exception_handler)
    app.add_exception_handler(RequestValidationError, errors.request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, errors.store_error_handler)
    app.add_exception_handler(Exception, errors.unhandled_error_handler)

    app.add_middleware(AccessGateMiddleware)
    # Configure CORS middleware (outermost, so preflights never hit the gate)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(contacts.router)
    app.include_router(user_settings.router)

    @app.get("/")
    def root():
        """Root endpoint pointing at the Swagger UI."""
        return {"msg": "Network Notifier API. Visit /docs for Swagger UI"}

    logger.info("Application created for environment %s", settings.ENVIRONMENT)
    return app
