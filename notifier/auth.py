"""Authentication routes and credential helpers."""

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from . import schemas, crud
from .core import TOKEN_LIFETIME_HOURS, Settings, get_settings
from .database import get_db
from .errors import Unauthorized
from .models import User
from .session import Identity, get_current_identity, get_token_service
from .tokens import TokenService

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
router = APIRouter(prefix="/auth", tags=["auth"])

INVALID_CREDENTIALS = "Incorrect email/password"


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Compare a plain password with its hashed value."""
    return pwd_context.verify(plain_password, password_hash)


def get_password_hash(password: str) -> str:
    """Generate a salted password hash using the configured context."""
    return pwd_context.hash(password)


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """
    Look up a user by email and check the password.

    Unknown emails still spend a hash verification so both failure modes
    take comparable time.

    Returns:
        User | None: The user when the credentials match.
    """
    user = crud.get_user_by_email(db, email)
    if user is None:
        pwd_context.dummy_verify()
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def set_auth_cookie(response: Response, token: str, settings: Settings) -> None:
    """Attach the session token as an HTTP-only cookie valid for one day."""
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=60 * 60 * TOKEN_LIFETIME_HOURS,
        path="/",
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
    )


def clear_auth_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
    )


@router.post(
    "/signup",
    response_model=schemas.SignupResponse,
    status_code=status.HTTP_201_CREATED,
)
def signup(
    user_in: schemas.UserCreate,
    response: Response,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_app_settings),
):
    """Register a new user and start a session for them."""

    password_hash = get_password_hash(user_in.password)
    user = crud.create_user(db, user_in, password_hash)
    set_auth_cookie(response, tokens.issue(user.id), settings)
    return schemas.SignupResponse(
        message="Account created successfully. You can now Login!",
        user=schemas.UserOut.model_validate(user),
    )


@router.post("/login", response_model=schemas.LoginResponse)
def login(
    credentials: schemas.LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_app_settings),
):
    """Authenticate a user and return a session token (also set as cookie)."""

    user = authenticate_user(db, credentials.email, credentials.password)
    if user is None:
        raise Unauthorized(INVALID_CREDENTIALS)
    token = tokens.issue(user.id)
    set_auth_cookie(response, token, settings)
    logger.info("User %s logged in", user.id)
    return schemas.LoginResponse(
        message="Login successful",
        token=token,
        user=schemas.UserOut.model_validate(user),
    )


@router.post("/logout", response_model=schemas.SuccessResponse)
def logout(response: Response, settings: Settings = Depends(get_app_settings)):
    """Delete the session cookie. Issued tokens stay valid until they expire."""

    clear_auth_cookie(response, settings)
    return schemas.SuccessResponse()


@router.post("/reset-password", response_model=schemas.SuccessResponse)
def reset_password(
    payload: schemas.PasswordReset,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Set a new password for the signed-in user."""

    user = crud.get_user_by_id(db, identity.user_id)
    if user is None:
        raise Unauthorized()
    crud.update_user_password(db, user, get_password_hash(payload.password))
    logger.info("Password updated for user %s", user.id)
    return schemas.SuccessResponse()


def get_current_user(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> User:
    """Dependency returning the signed-in user's record.

    A valid token whose user no longer exists is treated as no session.
    """
    user = crud.get_user_by_id(db, identity.user_id)
    if user is None:
        raise Unauthorized()
    return user
