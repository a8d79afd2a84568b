"""Database models for the Network Notifier API.

This module defines SQLAlchemy ORM models used by the application.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .database import Base

DEFAULT_PRIORITY_FREQUENCIES = {"L1": 7, "L2": 14, "L3": 30}

DEFAULT_PING_TEMPLATES = [
    "Hey {name}, it's been a while! How have you been?",
    "Thinking of you, {name}. Hope all is well!",
    "Hi {name}, would love to catch up soon.",
]


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    SQLAlchemy model representing an application user.

    A user owns contacts and carries their own settings: theme,
    per-priority contact frequencies and ping templates.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    #: Stored lower-cased; lookups are case-insensitive
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False, default="")
    theme = Column(String(10), nullable=False, default="dark")
    priority_frequencies = Column(
        JSON, nullable=False, default=lambda: dict(DEFAULT_PRIORITY_FREQUENCIES)
    )
    ping_templates = Column(
        JSON, nullable=False, default=lambda: list(DEFAULT_PING_TEMPLATES)
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    #: List of contacts owned by the user
    contacts = relationship(
        "Contact",
        back_populates="owner",
        cascade="all, delete",
    )


class Contact(Base):
    """
    SQLAlchemy model representing a contact entry.

    Each contact belongs to exactly one user. ``frequency_days`` is a copy
    of the owner's frequency for the contact's priority at the time it was
    set, not a live reference.
    """

    __tablename__ = "contacts"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    last_interaction = Column(Text, nullable=False, default="")
    profile_link = Column(String(2048), nullable=False, default="")
    phone_number = Column(String(32), nullable=False, default="")
    priority = Column(String(2), nullable=False, index=True)
    frequency_days = Column(Integer, nullable=False)
    last_contacted_days = Column(Integer, nullable=False, default=0)
    ping_template = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True
    )
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    #: Identifier of the owning user
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    #: Reference to the owning User object
    owner = relationship("User", back_populates="contacts")
