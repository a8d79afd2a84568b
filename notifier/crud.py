"""CRUD operations for users and contacts.

This module contains database interaction logic for user and contact
entities, isolated from FastAPI route handlers. Writes roll the session
back on failure and re-raise so the application's store error handler
can answer with an opaque 500.
"""

import logging
from contextlib import contextmanager

from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models, schemas
from .errors import Conflict

logger = logging.getLogger(__name__)


@contextmanager
def _committing(db: Session):
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise


def normalize_email(email: str) -> str:
    return email.strip().lower()


def create_user(
    db: Session, user_in: schemas.UserCreate, password_hash: str
) -> models.User:
    """
    Create and persist a new user with default settings.

    Args:
        db (Session): SQLAlchemy database session.
        user_in (UserCreate): Incoming user data.
        password_hash (str): Salted password hash.

    Raises:
        Conflict: If a user with the same email already exists.

    Returns:
        User: Newly created user instance.
    """
    email = normalize_email(user_in.email)
    if get_user_by_email(db, email) is not None:
        raise Conflict("A user with this email already exists")

    user = models.User(
        email=email,
        name=user_in.name,
        password_hash=password_hash,
    )
    try:
        with _committing(db):
            db.add(user)
    except IntegrityError:
        # lost a race with a concurrent signup for the same email
        raise Conflict("A user with this email already exists")
    db.refresh(user)
    logger.info("Created user %s", user.id)
    return user


def get_user_by_email(db: Session, email: str) -> models.User | None:
    """
    Retrieve a user by email address, ignoring case.

    Args:
        db (Session): Database session.
        email (str): User email.

    Returns:
        User | None: User if found, otherwise ``None``.
    """
    return db.execute(
        select(models.User).where(models.User.email == normalize_email(email))
    ).scalar_one_or_none()


def get_user_by_id(db: Session, user_id: str) -> models.User | None:
    return db.get(models.User, user_id)


def update_user_password(
    db: Session, user: models.User, password_hash: str
) -> models.User:
    """Replace a user's password hash."""
    with _committing(db):
        user.password_hash = password_hash
        db.add(user)
    db.refresh(user)
    return user


def update_user_settings(db: Session, user: models.User, changes: dict) -> models.User:
    """
    Apply a partial settings update.

    Args:
        db (Session): Database session.
        user (User): Settings owner.
        changes (dict): Any of ``theme``, ``priority_frequencies``,
            ``ping_templates``.

    Returns:
        User: Updated user instance.
    """
    with _committing(db):
        if "theme" in changes:
            user.theme = changes["theme"]
        if "priority_frequencies" in changes:
            user.priority_frequencies = dict(changes["priority_frequencies"])
        if "ping_templates" in changes:
            user.ping_templates = list(changes["ping_templates"])
        db.add(user)
    db.refresh(user)
    return user


def frequency_for(user: models.User, priority: str) -> int:
    """Current frequency in days for ``priority`` in the user's settings."""
    frequencies = user.priority_frequencies or models.DEFAULT_PRIORITY_FREQUENCIES
    return int(
        frequencies.get(priority, models.DEFAULT_PRIORITY_FREQUENCIES[priority])
    )


def _build_contact(contact_in: schemas.ContactCreate, user: models.User) -> models.Contact:
    data = contact_in.model_dump(mode="json")
    return models.Contact(
        **data,
        user_id=user.id,
        frequency_days=frequency_for(user, data["priority"]),
    )


def create_contact(
    db: Session, contact_in: schemas.ContactCreate, user: models.User
) -> models.Contact:
    """
    Create a new contact owned by the given user.

    The contact's frequency is copied from the owner's settings for its
    priority.

    Returns:
        Contact: Newly created contact.
    """
    contact = _build_contact(contact_in, user)
    with _committing(db):
        db.add(contact)
    db.refresh(contact)
    return contact


def create_contacts(
    db: Session, contacts_in: list[schemas.ContactCreate], user: models.User
) -> list[models.Contact]:
    """Insert several contacts for ``user`` in one commit: all or none."""
    contacts = [_build_contact(item, user) for item in contacts_in]
    with _committing(db):
        db.add_all(contacts)
    for contact in contacts:
        db.refresh(contact)
    return contacts


def get_contact_by_id(db: Session, contact_id: str) -> models.Contact | None:
    """Load a contact regardless of owner; callers check ownership."""
    return db.get(models.Contact, contact_id)


def get_contacts(
    db: Session,
    user_id: str,
    q: str | None = None,
    priority: str | None = None,
):
    """
    Retrieve the user's contacts, newest first.

    Supports optional case-insensitive search over the text fields and a
    priority filter.

    Args:
        db (Session): Database session.
        user_id (str): Contact owner.
        q (str | None): Optional search query.
        priority (str | None): Optional priority tier.

    Returns:
        list[Contact]: List of contacts.
    """
    stmt = select(models.Contact).where(models.Contact.user_id == user_id)
    if priority:
        stmt = stmt.where(models.Contact.priority == priority)
    if q:
        like_q = f"%{q.strip()}%"
        stmt = stmt.where(
            or_(
                models.Contact.name.ilike(like_q),
                models.Contact.ping_template.ilike(like_q),
                models.Contact.description.ilike(like_q),
                models.Contact.last_interaction.ilike(like_q),
                models.Contact.phone_number.ilike(like_q),
                models.Contact.profile_link.ilike(like_q),
            )
        )
    stmt = stmt.order_by(models.Contact.created_at.desc(), models.Contact.id)
    return db.scalars(stmt).all()


def update_contact(
    db: Session, contact: models.Contact, changes: dict, owner: models.User
) -> models.Contact:
    """
    Update mutable fields of a contact.

    Changing the priority copies the owner's current frequency for the new
    tier onto the contact.

    Args:
        db (Session): Database session.
        contact (Contact): Contact instance.
        changes (dict): Fields to update.
        owner (User): The contact's owner.

    Returns:
        Contact: Updated contact.
    """
    with _committing(db):
        for key, value in changes.items():
            setattr(contact, key, value)
        if "priority" in changes:
            contact.frequency_days = frequency_for(owner, contact.priority)
        db.add(contact)
    db.refresh(contact)
    return contact


def mark_contacted(db: Session, contact: models.Contact) -> models.Contact:
    """Persist ``last_contacted_days = 0``. Idempotent, and not reversible."""
    if contact.last_contacted_days == 0:
        return contact
    with _committing(db):
        contact.last_contacted_days = 0
        db.add(contact)
    db.refresh(contact)
    return contact


def delete_contact(db: Session, contact: models.Contact):
    """
    Delete a contact from the database.

    Args:
        db (Session): Database session.
        contact (Contact): Contact to delete.
    """
    with _committing(db):
        db.delete(contact)
    return None
