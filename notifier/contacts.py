"""Contact management routes.

Every single-contact operation resolves the caller, loads the contact by
id and only then compares owners, so a missing contact is a 404 and
someone else's contact is a 403.
"""

import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.orm import Session

from . import schemas, crud
from .auth import get_current_user
from .database import get_db
from .errors import Forbidden, NotFound, ValidationError
from .models import Contact, User
from .session import Identity, get_current_identity
from .timing import (
    StatusFilter,
    contact_status,
    matches_status_filter,
    recent_ids,
    render_ping,
    resolve_ping_template,
    toggle_recently_contacted,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contacts", tags=["contacts"])

# Columns that may not be cleared through a partial update.
_REQUIRED_FIELDS = ("name", "priority", "last_contacted_days")


def present(contact: Contact, recently_marked: bool = False) -> schemas.ContactOut:
    """Serialize a contact with its status derived at read time."""
    out = schemas.ContactOut.model_validate(contact)
    out.status = contact_status(contact, recently_marked)
    out.recently_contacted = recently_marked
    return out


def get_owned_contact(
    contact_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> Contact:
    """
    Load a contact and make sure the caller owns it.

    Raises:
        NotFound: If no contact has this id.
        Forbidden: If the contact belongs to another user.

    Returns:
        Contact: The caller's contact.
    """
    contact = crud.get_contact_by_id(db, contact_id)
    if contact is None:
        raise NotFound("Contact not found")
    if contact.user_id != identity.user_id:
        logger.warning(
            "User %s tried to access contact %s of another user",
            identity.user_id,
            contact_id,
        )
        raise Forbidden()
    return contact


@router.get("", response_model=List[schemas.ContactOut])
def list_contacts(
    q: Optional[str] = Query(None),
    priority: Optional[schemas.Priority] = Query(None),
    status_filter: StatusFilter = Query(StatusFilter.ALL, alias="status"),
    recent: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """
    Retrieve the current user's contacts, newest first.

    Args:
        q (str | None): Case-insensitive search over the text fields.
        priority (Priority | None): Only contacts in this tier.
        status_filter (StatusFilter): Only contacts with this derived status.
        recent (list[str] | None): Ids the client marked as contacted
            during this session; they derive as CONTACTED.

    Returns:
        list[ContactOut]: Contacts with derived status.
    """
    marked = recent_ids(recent)
    contacts = crud.get_contacts(
        db,
        user_id=identity.user_id,
        q=q,
        priority=priority.value if priority else None,
    )
    result = []
    for contact in contacts:
        out = present(contact, contact.id in marked)
        if matches_status_filter(out.status, status_filter):
            result.append(out)
    return result


@router.post(
    "",
    response_model=Union[List[schemas.ContactOut], schemas.ContactOut],
)
def create_contacts(
    payload: Union[List[schemas.ContactCreate], schemas.ContactCreate] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Create one contact, or a list of contacts in a single commit.

    Each contact is owned by the current user and copies its frequency
    from the user's settings.
    """
    if isinstance(payload, list):
        contacts = crud.create_contacts(db, payload, current_user)
        logger.info("User %s added %d contacts", current_user.id, len(contacts))
        return [present(contact) for contact in contacts]
    return present(crud.create_contact(db, payload, current_user))


@router.get("/{contact_id}", response_model=schemas.ContactOut)
def get_contact(contact: Contact = Depends(get_owned_contact)):
    """Retrieve a single contact owned by the current user."""
    return present(contact)


@router.put("/{contact_id}", response_model=schemas.ContactOut)
def update_contact(
    changes: schemas.ContactUpdate,
    contact: Contact = Depends(get_owned_contact),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Partially update a contact.

    Only fields present in the request are changed. The contact must still
    have a phone number or a profile link afterwards.

    Raises:
        ValidationError: If the update would leave no way to reach the
            contact.
    """
    data = changes.model_dump(exclude_unset=True, mode="json")
    data = {
        key: value
        for key, value in data.items()
        if value is not None or key not in _REQUIRED_FIELDS
    }
    phone = data.get("phone_number", contact.phone_number)
    profile = data.get("profile_link", contact.profile_link)
    if not phone and not profile:
        raise ValidationError("Enter either a phone number or a profile link")
    return present(crud.update_contact(db, contact, data, current_user))


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_contact(
    contact: Contact = Depends(get_owned_contact),
    db: Session = Depends(get_db),
):
    """Delete a contact owned by the current user."""
    crud.delete_contact(db, contact)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{contact_id}/contacted", response_model=schemas.ContactOut)
def mark_contacted(
    recent: Optional[List[str]] = Query(None),
    contact: Contact = Depends(get_owned_contact),
    db: Session = Depends(get_db),
):
    """
    Toggle the "recently contacted" mark on a contact.

    ``recent`` carries the ids the client currently holds as marked. The
    contact's mark is flipped against that set and ``lastContactedDays``
    is set to 0 either way: the previous count is not kept, so unmarking
    cannot restore it from the server.
    """
    marked = toggle_recently_contacted(recent_ids(recent), contact.id)
    return present(crud.mark_contacted(db, contact), recently_marked=marked)


@router.get("/{contact_id}/ping", response_model=schemas.PingOut)
def ping_contact(
    template: Optional[int] = Query(None, ge=0),
    contact: Contact = Depends(get_owned_contact),
    current_user: User = Depends(get_current_user),
):
    """
    Render the ping message for a contact.

    The contact's own template wins, then the template at index
    ``template`` of the user's settings, then the first one.
    """
    chosen = resolve_ping_template(
        contact.ping_template, current_user.ping_templates or [], template
    )
    if chosen is None:
        raise ValidationError("No ping template configured")
    return schemas.PingOut(
        contact_id=contact.id,
        template=chosen,
        message=render_ping(chosen, contact.name),
    )
