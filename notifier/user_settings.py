"""Routes for the signed-in user's settings (theme, cadence, templates)."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from . import schemas, crud
from .database import get_db
from .errors import NotFound
from .models import User
from .auth import get_current_user
from .session import Identity, get_current_identity

router = APIRouter(prefix="/settings", tags=["settings"])


def _settings_of(user: User) -> schemas.SettingsOut:
    return schemas.SettingsOut(
        theme=user.theme,
        priority_frequencies=user.priority_frequencies,
        ping_templates=user.ping_templates,
    )


@router.get("", response_model=schemas.SettingsOut)
def read_settings(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """
    Return the current user's settings.

    Raises:
        NotFound: If the token refers to a user that no longer exists.
    """
    user = crud.get_user_by_id(db, identity.user_id)
    if user is None:
        raise NotFound("User not found")
    return _settings_of(user)


@router.put("", response_model=schemas.SettingsOut)
def update_settings(
    changes: schemas.SettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Update any of theme, priority frequencies and ping templates.

    Existing contacts keep their copied frequency until their priority is
    edited.
    """
    data = changes.model_dump(exclude_unset=True, exclude_none=True)
    return _settings_of(crud.update_user_settings(db, current_user, data))
