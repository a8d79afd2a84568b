"""Database configuration and session management.

This module defines the declarative base and the :class:`Database`
connection provider. One provider is built by the application factory,
stored on ``app.state`` and handed to route handlers through the
:func:`get_db` dependency, so tests can inject their own engine.
"""

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from sqlalchemy.pool import StaticPool


Base = declarative_base()
"""Declarative base class for SQLAlchemy models."""


class Database:
    """Owns the SQLAlchemy engine and session factory for one process.

    Args:
        url (str): Database connection string.
        engine: Optional pre-built engine, mostly for tests.
    """

    def __init__(self, url: str, engine=None):
        self.url = url
        self.engine = engine or create_engine(url, future=True, **_engine_kwargs(url))
        self.session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            future=True,
        )

    def create_all(self) -> None:
        """Create missing tables (development and tests only)."""
        # models must be imported so their tables are registered on Base
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def dispose(self) -> None:
        self.engine.dispose()


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return kwargs


def get_database(request: Request) -> Database:
    """Return the provider the application factory attached to the app."""
    return request.app.state.database


def get_db(request: Request):
    """
    Provide a SQLAlchemy database session.

    This function is used as a FastAPI dependency.
    It yields a database session and ensures it is
    properly closed after the request is completed.
    """

    db = get_database(request).session()
    try:
        yield db
    finally:
        db.close()
