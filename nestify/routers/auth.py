"""
Authentication routes.
"""

from fastapi import APIRouter, Depends

from nestify.dependencies import get_account_service, get_current_user
from nestify.models import AuthResponse, LoginRequest, PublicUser, RefreshRequest, RegisterRequest, TokenPair, User
from nestify.services.accounts import AccountService

router = APIRouter()


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
async def register(body: RegisterRequest, accounts: AccountService = Depends(get_account_service)):
    return await accounts.register(body)


@router.post("/auth/login", response_model=AuthResponse)
async def login(body: LoginRequest, accounts: AccountService = Depends(get_account_service)):
    return await accounts.login(body)


@router.post("/auth/refresh", response_model=TokenPair)
async def refresh(body: RefreshRequest, accounts: AccountService = Depends(get_account_service)):
    return await accounts.refresh(body.refresh_token)


@router.get("/auth/me", response_model=PublicUser)
async def me(user: User = Depends(get_current_user)):
    return user.public()
