"""
Account manager - registration, login and profile maintenance.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as SchemaError

from nestify.config import SearchConfig
from nestify.error_handling import AuthenticationError, ConflictError, ValidationError
from nestify.models import (
    AuthResponse,
    DeactivateRequest,
    GeoPoint,
    LocationUpdate,
    LoginRequest,
    PasswordChange,
    PreferencesUpdate,
    ProfileResponse,
    ProfileUpdate,
    RegisterRequest,
    SearchHistoryEntry,
    TokenPair,
    User,
    UserPreferences,
    UserStats,
)
from nestify.services.auth import REFRESH, TokenService

logger = logging.getLogger(__name__)

PROFILE_FAVORITES = 10


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AccountService:
    """Manage user accounts and their per-user state"""

    def __init__(self, users, tokens: TokenService, favorites=None, settings: Optional[SearchConfig] = None):
        self.users = users
        self.tokens = tokens
        self.favorites = favorites
        self.settings = settings or SearchConfig()

    async def register(self, request: RegisterRequest) -> AuthResponse:
        """
        Create an account.

        Raises ConflictError when the email or phone number is taken.
        """
        if await self.users.find_by_email(request.email) is not None:
            raise ConflictError("Email already registered")
        if await self.users.find_by_phone(request.phone) is not None:
            raise ConflictError("Phone number already registered")

        user = User(
            id=str(uuid.uuid4()),
            name=request.name,
            email=request.email,
            phone=request.phone,
            password_hash=self.tokens.hash_password(request.password),
            coordinates=request.coordinates,
        )
        await self.users.create(user)
        logger.info(f"Registered user {user.id}")
        return AuthResponse(user=user.public(), tokens=self.tokens.issue_pair(user.id))

    async def login(self, request: LoginRequest) -> AuthResponse:
        user = await self.users.find_by_email(request.email.strip().lower())
        if user is None or not self.tokens.verify_password(request.password, user.password_hash):
            raise AuthenticationError("Invalid email or password", code="AUTH_INVALID_CREDENTIALS")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        user.last_login = _now()
        await self.users.save(user)
        logger.info(f"User {user.id} logged in")
        return AuthResponse(user=user.public(), tokens=self.tokens.issue_pair(user.id))

    async def refresh(self, refresh_token: str) -> TokenPair:
        user_id = self.tokens.decode(refresh_token, REFRESH)
        user = await self.users.find_by_id(user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("Account not found or deactivated")
        return self.tokens.issue_pair(user.id)

    async def authenticate(self, access_token: str) -> User:
        """Resolve an access token to an active user."""
        user_id = self.tokens.decode(access_token)
        user = await self.users.find_by_id(user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("Account not found or deactivated")
        return user

    async def profile(self, user: User) -> ProfileResponse:
        favorites = []
        if self.favorites is not None:
            page = await self.favorites.list_favorites(user, 1, PROFILE_FAVORITES)
            favorites = page.properties
        return ProfileResponse(user=user.public(), favorites=favorites)

    async def update_profile(self, user: User, changes: ProfileUpdate) -> User:
        if changes.phone is not None and changes.phone != user.phone:
            other = await self.users.find_by_phone(changes.phone)
            if other is not None and other.id != user.id:
                raise ConflictError("Phone number already registered")
            user.phone = changes.phone
        if changes.name is not None:
            user.name = changes.name.strip()
        user.updated_at = _now()
        return await self.users.save(user)

    async def update_preferences(self, user: User, changes: PreferencesUpdate) -> UserPreferences:
        """Merge partial preferences; range bounds are merged field by field."""
        merged = user.preferences.model_dump()
        for key, value in changes.model_dump(exclude_none=True).items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = {**merged[key], **{k: v for k, v in value.items() if v is not None}}
            else:
                merged[key] = value
        try:
            user.preferences = UserPreferences.model_validate(merged)
        except SchemaError as e:
            raise ValidationError(f"Invalid preferences: {e.errors()[0]['msg']}") from e
        user.updated_at = _now()
        await self.users.save(user)
        return user.preferences

    async def update_location(self, user: User, location: LocationUpdate) -> User:
        user.coordinates = GeoPoint(lat=location.lat, lng=location.lng)
        user.updated_at = _now()
        return await self.users.save(user)

    async def change_password(self, user: User, change: PasswordChange) -> None:
        if not self.tokens.verify_password(change.current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect", code="AUTH_INVALID_CREDENTIALS")
        user.password_hash = self.tokens.hash_password(change.new_password)
        user.updated_at = _now()
        await self.users.save(user)
        logger.info(f"User {user.id} changed password")

    async def deactivate(self, user: User, request: DeactivateRequest) -> None:
        """Soft delete; the email is rewritten so the address can be registered again."""
        if not self.tokens.verify_password(request.password, user.password_hash):
            raise AuthenticationError("Password is incorrect", code="AUTH_INVALID_CREDENTIALS")
        stamp = int(_now().timestamp() * 1000)
        user.is_active = False
        user.email = f"deleted_{stamp}_{user.email}"
        user.updated_at = _now()
        await self.users.save(user)
        logger.info(f"User {user.id} deactivated")

    def stats(self, user: User) -> UserStats:
        return UserStats(
            total_favorites=len(user.favorites),
            account_age_days=max(0, (_now() - user.created_at).days),
            last_login=user.last_login,
        )

    async def record_search(self, user: User, query: Dict[str, Any], results_count: int) -> None:
        """Prepend a search to the history, dropping an equal earlier query and the overflow."""
        history = [entry for entry in user.search_history if entry.query != query]
        history.insert(0, SearchHistoryEntry(query=query, results_count=results_count))
        user.search_history = history[:self.settings.search_history_size]
        await self.users.save(user)

    def search_history(self, user: User) -> List[SearchHistoryEntry]:
        return list(user.search_history)
