"""
Listing routes: search, featured, statistics, detail, related and views.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request

from nestify.dependencies import (
    get_listing_search,
    get_listing_service,
    get_optional_user,
    get_similarity_service,
    get_statistics_service,
    require_admin,
)
from nestify.error_handling import NestifyError, StoreError
from nestify.models import (
    ListingList,
    ListingPage,
    ListingUpdate,
    ListingView,
    StatisticsReport,
    User,
    ViewCount,
)
from nestify.services.listings import ListingService
from nestify.services.search import ListingSearch
from nestify.services.similarity import SimilarityService
from nestify.services.statistics import StatisticsService

logger = logging.getLogger(__name__)

router = APIRouter()


def query_params(request: Request) -> Dict[str, Any]:
    """Request parameters with repeated keys kept as lists"""
    return {key: request.query_params.getlist(key) for key in request.query_params.keys()}


@router.get("/properties", response_model=ListingPage)
async def list_properties(
    request: Request,
    user: Optional[User] = Depends(get_optional_user),
    search: ListingSearch = Depends(get_listing_search),
):
    """
    List validated listings.

    Filters: city, type, priceMin, priceMax, surfaceMin, surfaceMax, rooms,
    features, isVefa, deliveryDateBefore, q, lat, lng, radius. Ordering:
    sort (newest, price_asc, price_desc, surface_asc, surface_desc, views).
    Malformed filter values are ignored.
    """
    try:
        return await search.search(query_params(request), user)
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Listing search failed: {e}")
        raise StoreError("Listing search failed") from e


@router.get("/properties/search", response_model=ListingPage)
async def search_properties(
    request: Request,
    user: Optional[User] = Depends(get_optional_user),
    search: ListingSearch = Depends(get_listing_search),
):
    """Free-text search (q) combined with the listing filters; ranked by relevance."""
    try:
        return await search.search(query_params(request), user)
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Text search failed: {e}")
        raise StoreError("Listing search failed") from e


@router.get("/properties/featured", response_model=ListingList)
async def featured_properties(
    limit: Optional[str] = None,
    user: Optional[User] = Depends(get_optional_user),
    service: ListingService = Depends(get_listing_service),
):
    """Most viewed listings from verified promoters"""
    try:
        return ListingList(properties=await service.featured(limit, user))
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Failed to load featured listings: {e}")
        raise StoreError("Failed to load featured listings") from e


@router.get("/properties/stats", response_model=StatisticsReport)
async def property_statistics(service: StatisticsService = Depends(get_statistics_service)):
    try:
        return await service.get_report()
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Failed to compute statistics: {e}")
        raise StoreError("Failed to compute statistics") from e


@router.get("/properties/cities/{city}", response_model=ListingPage)
async def properties_by_city(
    city: str,
    request: Request,
    user: Optional[User] = Depends(get_optional_user),
    search: ListingSearch = Depends(get_listing_search),
):
    try:
        return await search.search(query_params(request), user, city=city)
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"City search for {city} failed: {e}")
        raise StoreError("Listing search failed") from e


@router.get("/properties/{property_id}", response_model=ListingView)
async def get_property(
    property_id: str,
    user: Optional[User] = Depends(get_optional_user),
    service: ListingService = Depends(get_listing_service),
):
    try:
        return await service.get_detail(property_id, user)
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Failed to load listing {property_id}: {e}")
        raise StoreError("Failed to load listing") from e


@router.get("/properties/{property_id}/related", response_model=ListingList)
async def related_properties(
    property_id: str,
    limit: Optional[str] = None,
    user: Optional[User] = Depends(get_optional_user),
    similarity: SimilarityService = Depends(get_similarity_service),
):
    """Same type and city, price and surface within 20%, most viewed first"""
    try:
        return ListingList(properties=await similarity.related(property_id, limit, user))
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Failed to load related listings for {property_id}: {e}")
        raise StoreError("Failed to load related listings") from e


@router.post("/properties/{property_id}/view", response_model=ViewCount)
async def increment_views(property_id: str, service: ListingService = Depends(get_listing_service)):
    try:
        return ViewCount(views=await service.increment_views(property_id))
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Failed to record view for {property_id}: {e}")
        raise StoreError("Failed to record view") from e


@router.patch("/properties/{property_id}", response_model=ListingView)
async def update_property(
    property_id: str,
    changes: ListingUpdate,
    admin: User = Depends(require_admin),
    service: ListingService = Depends(get_listing_service),
):
    try:
        return await service.update(property_id, changes)
    except NestifyError:
        raise
    except Exception as e:
        logger.error(f"Failed to update listing {property_id}: {e}")
        raise StoreError("Failed to update listing") from e
