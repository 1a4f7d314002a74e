"""
FastAPI dependencies wiring stores and services into request handlers.

Tests replace the store getters through ``app.dependency_overrides``.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from nestify import db
from nestify.config import AppSettings, get_settings
from nestify.error_handling import AuthenticationError, PermissionDenied
from nestify.models import User
from nestify.services.accounts import AccountService
from nestify.services.auth import TokenService
from nestify.services.favorites import FavoritesService
from nestify.services.listings import ListingService
from nestify.services.promoters import PromoterService
from nestify.services.search import ListingSearch
from nestify.services.similarity import SimilarityService
from nestify.services.statistics import StatisticsService

_settings: Optional[AppSettings] = None
bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings() -> AppSettings:
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings


def get_listings():
    return db.get_listing_store()


def get_promoters():
    return db.get_promoter_store()


def get_users():
    return db.get_user_store()


def get_stats_cache():
    return db.get_redis()


def get_token_service(settings: AppSettings = Depends(get_app_settings)) -> TokenService:
    return TokenService(settings.auth)


def get_favorites_service(
    users=Depends(get_users),
    listings=Depends(get_listings),
    promoters=Depends(get_promoters),
    settings: AppSettings = Depends(get_app_settings),
) -> FavoritesService:
    return FavoritesService(users, listings, promoters, settings.search)


def get_account_service(
    users=Depends(get_users),
    tokens: TokenService = Depends(get_token_service),
    favorites: FavoritesService = Depends(get_favorites_service),
    settings: AppSettings = Depends(get_app_settings),
) -> AccountService:
    return AccountService(users, tokens, favorites, settings.search)


def get_listing_search(
    listings=Depends(get_listings),
    promoters=Depends(get_promoters),
    accounts: AccountService = Depends(get_account_service),
    settings: AppSettings = Depends(get_app_settings),
) -> ListingSearch:
    return ListingSearch(listings, promoters, accounts, settings.search)


def get_listing_service(
    listings=Depends(get_listings),
    promoters=Depends(get_promoters),
    settings: AppSettings = Depends(get_app_settings),
) -> ListingService:
    return ListingService(listings, promoters, settings.search)


def get_similarity_service(
    listings=Depends(get_listings),
    promoters=Depends(get_promoters),
    settings: AppSettings = Depends(get_app_settings),
) -> SimilarityService:
    return SimilarityService(listings, promoters, settings.search)


def get_statistics_service(
    listings=Depends(get_listings),
    cache=Depends(get_stats_cache),
    settings: AppSettings = Depends(get_app_settings),
) -> StatisticsService:
    return StatisticsService(listings, cache, settings.cache.stats_ttl_seconds)


def get_promoter_service(
    promoters=Depends(get_promoters),
    listings=Depends(get_listings),
    settings: AppSettings = Depends(get_app_settings),
) -> PromoterService:
    return PromoterService(promoters, listings, settings.search)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    accounts: AccountService = Depends(get_account_service),
) -> Optional[User]:
    """Authenticated caller, or None for anonymous requests and unusable tokens."""
    if credentials is None:
        return None
    try:
        return await accounts.authenticate(credentials.credentials)
    except AuthenticationError:
        return None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    accounts: AccountService = Depends(get_account_service),
) -> User:
    if credentials is None:
        raise AuthenticationError("Authentication required", code="AUTH_NO_TOKEN")
    return await accounts.authenticate(credentials.credentials)


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise PermissionDenied("Administrator access required")
    return user
