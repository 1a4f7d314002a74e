"""
Favorites routes. Every route requires an authenticated user.
"""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Response

from nestify.dependencies import get_current_user, get_favorites_service
from nestify.error_handling import NestifyError, StoreError
from nestify.models import (
    FavoritesCheck,
    FavoritesCheckRequest,
    FavoritesExport,
    FavoritesStats,
    FavoriteToggle,
    ListingPage,
    User,
)
from nestify.services.favorites import FavoritesService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/favorites", response_model=ListingPage)
async def list_favorites(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    user: User = Depends(get_current_user),
    service: FavoritesService = Depends(get_favorites_service),
):
    """Favorites in the order they were added; total counts every saved id"""
    try:
        return await service.list_favorites(user, page, limit)
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Failed to load favorites for user {user.id}: {e}")
        raise StoreError("Failed to load favorites") from e


@router.post("/favorites/check", response_model=FavoritesCheck)
async def check_favorites(
    body: FavoritesCheckRequest,
    user: User = Depends(get_current_user),
    service: FavoritesService = Depends(get_favorites_service),
):
    return FavoritesCheck(favorites=service.check(user, body.property_ids))


@router.get("/favorites/stats", response_model=FavoritesStats)
async def favorite_statistics(
    user: User = Depends(get_current_user),
    service: FavoritesService = Depends(get_favorites_service),
):
    try:
        return await service.stats(user)
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Failed to compute favorite stats for user {user.id}: {e}")
        raise StoreError("Failed to compute favorite statistics") from e


@router.get("/favorites/export", response_model=FavoritesExport)
async def export_favorites(
    response: Response,
    user: User = Depends(get_current_user),
    service: FavoritesService = Depends(get_favorites_service),
):
    try:
        export = await service.export(user)
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Failed to export favorites for user {user.id}: {e}")
        raise StoreError("Failed to export favorites") from e

    filename = f"nestify-favorites-{int(time.time() * 1000)}.json"
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return export


@router.post("/favorites/{property_id}", response_model=FavoriteToggle)
async def add_favorite(
    property_id: str,
    user: User = Depends(get_current_user),
    service: FavoritesService = Depends(get_favorites_service),
):
    try:
        return await service.add(user, property_id)
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Failed to add favorite {property_id} for user {user.id}: {e}")
        raise StoreError("Failed to add favorite") from e


@router.delete("/favorites/{property_id}", response_model=FavoriteToggle)
async def remove_favorite(
    property_id: str,
    user: User = Depends(get_current_user),
    service: FavoritesService = Depends(get_favorites_service),
):
    try:
        return await service.remove(user, property_id)
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Failed to remove favorite {property_id} for user {user.id}: {e}")
        raise StoreError("Failed to remove favorite") from e
