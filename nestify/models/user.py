"""User account data models"""

import re
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .listing import GeoPoint, ListingView

PHONE_PATTERN = re.compile(r"^(\+216)?[2459]\d{7}$")
PASSWORD_SPECIALS = "@$!%*?&"
PASSWORD_MIN_LENGTH = 8


def normalize_phone(value: str) -> str:
    """
    Validate a Tunisian phone number and return it as +216XXXXXXXX.

    Spaces are ignored. Raises ValueError if the number does not match.
    """
    compact = re.sub(r"\s+", "", value or "")
    if not PHONE_PATTERN.match(compact):
        raise ValueError("Invalid Tunisian phone number")
    if compact.startswith("+216"):
        return compact
    return f"+216{compact}"


def check_password_strength(value: str) -> str:
    """Raise ValueError unless the password has upper, lower, digit and special characters."""
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if not re.search(r"[a-z]", value) or not re.search(r"[A-Z]", value):
        raise ValueError("Password must contain upper and lower case letters")
    if not re.search(r"\d", value):
        raise ValueError("Password must contain a digit")
    if not any(ch in PASSWORD_SPECIALS for ch in value):
        raise ValueError(f"Password must contain one of {PASSWORD_SPECIALS}")
    return value


class UserRole(str, Enum):
    """Account role"""
    USER = "user"
    AGENT = "agent"
    ADMIN = "admin"


class NumericRange(BaseModel):
    """Inclusive min/max pair where either side may be open"""
    min: Optional[float] = Field(None, ge=0)
    max: Optional[float] = Field(None, ge=0)

    @model_validator(mode="after")
    def _ordered(self):
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("min must not exceed max")
        return self


class NotificationSettings(BaseModel):
    email: bool = True
    sms: bool = False
    push: bool = True
    new_properties: bool = True
    price_drops: bool = True


class UserPreferences(BaseModel):
    """Saved search preferences"""
    property_types: List[str] = []
    regions: List[str] = []
    price_range: NumericRange = Field(default_factory=NumericRange)
    surface_range: NumericRange = Field(default_factory=NumericRange)
    features: List[str] = []
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)


class SearchHistoryEntry(BaseModel):
    """One recorded search"""
    query: Dict[str, Any]
    results_count: int = 0
    searched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class User(BaseModel):
    """User account row"""
    id: str
    name: str
    email: str
    phone: str
    password_hash: str
    role: UserRole = UserRole.USER
    verified: bool = False
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    coordinates: Optional[GeoPoint] = None
    favorites: List[str] = []
    search_history: List[SearchHistoryEntry] = []
    last_login: Optional[datetime] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("created_at", "updated_at", "last_login")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def public(self) -> "PublicUser":
        return PublicUser(**self.model_dump(exclude={"password_hash", "search_history"}))


class PublicUser(BaseModel):
    """User fields safe to return to clients"""
    id: str
    name: str
    email: str
    phone: str
    role: UserRole
    verified: bool
    preferences: UserPreferences
    coordinates: Optional[GeoPoint] = None
    favorites: List[str] = []
    last_login: Optional[datetime] = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class RegisterRequest(BaseModel):
    """New account payload"""
    name: str = Field(min_length=2, max_length=100)
    email: str
    phone: str
    password: str
    coordinates: Optional[GeoPoint] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Name must be at least 2 characters")
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not re.match(r"^[^@\s]+@[^@\s]+\.[^@\s]+$", value):
            raise ValueError("Invalid email address")
        return value

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: str) -> str:
        return normalize_phone(value)

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: str) -> str:
        return check_password_strength(value)


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: Optional[str]) -> Optional[str]:
        return normalize_phone(value) if value is not None else None


class PreferencesUpdate(BaseModel):
    """Partial preferences; omitted fields keep their current value"""
    property_types: Optional[List[str]] = None
    regions: Optional[List[str]] = None
    price_range: Optional[NumericRange] = None
    surface_range: Optional[NumericRange] = None
    features: Optional[List[str]] = None
    notifications: Optional[NotificationSettings] = None


class LocationUpdate(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class PasswordChange(BaseModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def _check_password(cls, value: str) -> str:
        return check_password_strength(value)


class DeactivateRequest(BaseModel):
    password: str


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResponse(BaseModel):
    user: PublicUser
    tokens: TokenPair


class UserStats(BaseModel):
    total_favorites: int
    account_age_days: int
    last_login: Optional[datetime] = None


class ProfileResponse(BaseModel):
    user: PublicUser
    favorites: List[ListingView] = []
