"""
User account routes. Every route requires an authenticated user.
"""

from typing import List

from fastapi import APIRouter, Depends

from nestify.dependencies import get_account_service, get_current_user
from nestify.models import (
    DeactivateRequest,
    LocationUpdate,
    MessageResponse,
    PasswordChange,
    PreferencesUpdate,
    ProfileResponse,
    ProfileUpdate,
    PublicUser,
    SearchHistoryEntry,
    User,
    UserPreferences,
    UserStats,
)
from nestify.services.accounts import AccountService

router = APIRouter()


@router.get("/users/profile", response_model=ProfileResponse)
async def get_profile(user: User = Depends(get_current_user), accounts: AccountService = Depends(get_account_service)):
    """Public profile with the first saved favorites"""
    return await accounts.profile(user)


@router.put("/users/profile", response_model=PublicUser)
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    updated = await accounts.update_profile(user, body)
    return updated.public()


@router.put("/users/preferences", response_model=UserPreferences)
async def update_preferences(
    body: PreferencesUpdate,
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    return await accounts.update_preferences(user, body)


@router.put("/users/location", response_model=PublicUser)
async def update_location(
    body: LocationUpdate,
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    updated = await accounts.update_location(user, body)
    return updated.public()


@router.put("/users/password", response_model=MessageResponse)
async def change_password(
    body: PasswordChange,
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    await accounts.change_password(user, body)
    return MessageResponse(message="Password updated")


@router.get("/users/stats", response_model=UserStats)
async def user_stats(user: User = Depends(get_current_user), accounts: AccountService = Depends(get_account_service)):
    return accounts.stats(user)


@router.get("/users/search-history", response_model=List[SearchHistoryEntry])
async def search_history(
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    return accounts.search_history(user)


@router.delete("/users/account", response_model=MessageResponse)
async def delete_account(
    body: DeactivateRequest,
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    await accounts.deactivate(user, body)
    return MessageResponse(message="Account deactivated")
