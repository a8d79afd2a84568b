import re
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional
from urllib.parse import urlsplit, urlunsplit

from pydantic import (
    BaseModel,
    EmailStr,
    Field,
    PositiveInt,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .timing import TimingStatus

_E164_RE = re.compile(r"^\+[1-9]\d{6,14}$")
_PHONE_SEPARATORS_RE = re.compile(r"[\s().-]")
_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def normalize_phone_number(raw: str) -> str:
    """Return the E.164 form of ``raw`` or ``""`` when blank.

    Spaces, dots, dashes and parentheses are tolerated as separators.

    Raises:
        ValueError: If the number is not E.164 compatible.
    """
    value = (raw or "").strip()
    if not value:
        return ""
    compact = _PHONE_SEPARATORS_RE.sub("", value)
    if not _E164_RE.match(compact):
        raise ValueError("Enter a valid phone number")
    return compact


def normalize_profile_link(raw: str) -> str:
    """Return a normalized http(s) profile URL or ``""`` when blank.

    A missing scheme defaults to ``https://``. The host must be
    ``localhost`` or contain a dot.

    Raises:
        ValueError: If the link is not a usable http(s) URL.
    """
    value = (raw or "").strip()
    if not value:
        return ""
    if re.search(r"\s", value):
        raise ValueError("Enter a valid profile link")
    if not _SCHEME_RE.match(value):
        value = f"https://{value}"
    try:
        parts = urlsplit(value)
        host = parts.hostname
        port = parts.port
    except ValueError as exc:
        raise ValueError("Enter a valid profile link") from exc
    scheme = parts.scheme.lower()
    if scheme not in ("http", "https") or not host:
        raise ValueError("Enter a valid profile link")
    if host != "localhost" and "." not in host:
        raise ValueError("Enter a valid profile link")
    netloc = host if port is None else f"{host}:{port}"
    if parts.username:
        userinfo = parts.username
        if parts.password:
            userinfo = f"{userinfo}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"
    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, parts.fragment))


class CamelModel(BaseModel):
    """Base schema exposing snake_case fields as camelCase JSON."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class Priority(str, Enum):
    """Priority tiers a contact can be assigned to."""

    L1 = "L1"
    L2 = "L2"
    L3 = "L3"


class _ContactFields(CamelModel):
    """Field normalization shared by create and update payloads."""

    @field_validator(
        "description", "last_interaction", "profile_link", "phone_number",
        mode="before", check_fields=False,
    )
    @classmethod
    def _none_to_blank(cls, value):
        return "" if value is None else value

    @field_validator("name", check_fields=False)
    @classmethod
    def _name_required(cls, value):
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value

    @field_validator("phone_number", check_fields=False)
    @classmethod
    def _phone(cls, value):
        return normalize_phone_number(value)

    @field_validator("profile_link", check_fields=False)
    @classmethod
    def _profile(cls, value):
        return normalize_profile_link(value)

    @field_validator("ping_template", check_fields=False)
    @classmethod
    def _template(cls, value):
        if value is None or not value.strip():
            return None
        return value


class ContactCreate(_ContactFields):
    """Schema for creating a new contact."""

    name: str
    description: str = ""
    last_interaction: str = ""
    profile_link: str = ""
    phone_number: str = ""
    priority: Priority
    last_contacted_days: int = Field(0, ge=0)
    ping_template: Optional[str] = None

    @model_validator(mode="after")
    def _reachable(self):
        if not self.phone_number and not self.profile_link:
            raise ValueError("Enter either a phone number or a profile link")
        return self


class ContactUpdate(_ContactFields):
    """Schema for updating a contact (all fields optional)."""

    name: Optional[str] = None
    description: Optional[str] = None
    last_interaction: Optional[str] = None
    profile_link: Optional[str] = None
    phone_number: Optional[str] = None
    priority: Optional[Priority] = None
    last_contacted_days: Optional[int] = Field(None, ge=0)
    ping_template: Optional[str] = None


class ContactOut(CamelModel):
    """Schema for returning a contact together with its derived status."""

    id: str
    user_id: str
    name: str
    description: str
    last_interaction: str
    profile_link: str
    phone_number: str
    priority: Priority
    frequency_days: int
    last_contacted_days: int
    ping_template: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    status: Optional[TimingStatus] = None
    recently_contacted: bool = False


class PingOut(CamelModel):
    """Rendered ping message for a contact."""

    contact_id: str
    template: str
    message: str


class PriorityFrequencies(BaseModel):
    """Contact frequency in days for each priority tier."""

    L1: PositiveInt
    L2: PositiveInt
    L3: PositiveInt


class SettingsOut(CamelModel):
    """User settings as returned by the API."""

    theme: Literal["dark", "light"]
    priority_frequencies: PriorityFrequencies
    ping_templates: List[str]


class SettingsUpdate(CamelModel):
    """Partial settings update."""

    theme: Optional[Literal["dark", "light"]] = None
    priority_frequencies: Optional[PriorityFrequencies] = None
    ping_templates: Optional[List[str]] = None

    @field_validator("ping_templates")
    @classmethod
    def _templates(cls, value):
        if value is None:
            return value
        cleaned = [template.strip() for template in value]
        if not cleaned:
            raise ValueError("At least one ping template is required")
        if any(not template for template in cleaned):
            raise ValueError("Ping templates cannot be blank")
        return cleaned


class UserCreate(BaseModel):
    """Payload for creating a new user."""

    name: str
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def _name_required(cls, value):
        value = value.strip()
        if not value:
            raise ValueError("All fields are required")
        return value


class LoginRequest(BaseModel):
    """Credentials posted to the login endpoint."""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class PasswordReset(BaseModel):
    """New password for the signed-in user."""

    password: str

    @field_validator("password")
    @classmethod
    def _long_enough(cls, value):
        if len(value) < 6:
            raise ValueError("Password must be at least 6 characters")
        return value


class UserOut(CamelModel):
    """Response schema for user data. Never carries the password hash."""

    id: str
    email: str
    name: str
    theme: str = "dark"
    created_at: Optional[datetime] = None


class SignupResponse(BaseModel):
    success: bool = True
    message: str
    user: UserOut


class LoginResponse(BaseModel):
    """Session token issued at login, also set as a cookie."""

    message: str
    token: str
    token_type: str = "bearer"
    user: UserOut


class SuccessResponse(BaseModel):
    success: bool = True
