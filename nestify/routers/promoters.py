"""
Promoter routes.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from nestify.dependencies import get_optional_user, get_promoter_service, require_admin
from nestify.error_handling import NestifyError, StoreError
from nestify.models import ListingPage, Promoter, PromoterPage, User
from nestify.services.promoters import PromoterService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/promoters", response_model=PromoterPage)
async def list_promoters(
    q: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    service: PromoterService = Depends(get_promoter_service),
):
    """Verified promoters by rating, or a name/phone/email search when q is given"""
    try:
        if q and q.strip():
            return await service.search(q, limit)
        return await service.list_verified(page, limit)
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Failed to list promoters: {e}")
        raise StoreError("Failed to list promoters") from e


@router.get("/promoters/{promoter_id}", response_model=Promoter)
async def get_promoter(promoter_id: str, service: PromoterService = Depends(get_promoter_service)):
    try:
        return await service.get(promoter_id)
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Failed to load promoter {promoter_id}: {e}")
        raise StoreError("Failed to load promoter") from e


@router.get("/promoters/{promoter_id}/properties", response_model=ListingPage)
async def promoter_properties(
    promoter_id: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    user: Optional[User] = Depends(get_optional_user),
    service: PromoterService = Depends(get_promoter_service),
):
    try:
        return await service.listings_of(promoter_id, page, limit, user)
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Failed to load listings of promoter {promoter_id}: {e}")
        raise StoreError("Failed to load promoter listings") from e


@router.post("/promoters/{promoter_id}/statistics", response_model=Promoter)
async def recompute_statistics(
    promoter_id: str,
    admin: User = Depends(require_admin),
    service: PromoterService = Depends(get_promoter_service),
):
    try:
        return await service.recompute_statistics(promoter_id)
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Failed to recompute statistics for promoter {promoter_id}: {e}")
        raise StoreError("Failed to recompute statistics") from e
