"""User-related routes for the Network Notifier API."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from . import schemas, crud
from .database import get_db
from .errors import NotFound
from .session import Identity, get_current_identity

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=schemas.UserOut)
def read_me(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """
    Retrieve details of the currently authenticated user.

    Args:
        db (Session): Database session.
        identity (Identity): Caller resolved from the session token.

    Raises:
        NotFound: If the token refers to a user that no longer exists.

    Returns:
        UserOut: User profile information, without the password hash.
    """
    user = crud.get_user_by_id(db, identity.user_id)
    if user is None:
        raise NotFound("User not found")
    return user
