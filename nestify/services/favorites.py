"""
Favorites - ordered listing ids kept on the user account, resolved against
the listing store.

The id list is the source of truth for order and total. Ids that no longer
resolve to a validated listing are dropped from resolved results but stay in
the list.
"""

import logging
import math
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from nestify.config import SearchConfig
from nestify.error_handling import PropertyNotFound, ValidationError
from nestify.models import (
    FavoriteExportRecord,
    FavoritesExport,
    FavoritesStats,
    FavoriteToggle,
    Listing,
    ListingPage,
    User,
    ValueRange,
)
from nestify.services.listings import annotate_listings
from nestify.filtering.sorting import build_pagination, compose_page

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _value_range(values: List[float]) -> ValueRange:
    if not values:
        return ValueRange()
    return ValueRange(min=min(values), max=max(values), avg=_round_half_up(sum(values) / len(values)))


class FavoritesService:
    """Add, remove, list and summarize a user's favorite listings"""

    RESOLVE_CHUNK_SIZE = 100

    def __init__(self, users, listings, promoters, settings: Optional[SearchConfig] = None):
        self.users = users
        self.listings = listings
        self.promoters = promoters
        self.settings = settings or SearchConfig()

    async def resolve(self, listing_ids: Sequence[str]) -> List[Listing]:
        """Fetch validated listings for exactly these ids, in id order, dropping dangling ids."""
        if not listing_ids:
            return []
        found = {listing.id: listing for listing in await self.listings.find_by_ids(list(listing_ids))}
        return [found[listing_id] for listing_id in listing_ids if listing_id in found]

    async def resolve_all(self, listing_ids: Sequence[str]) -> List[Listing]:
        resolved = []
        for start in range(0, len(listing_ids), self.RESOLVE_CHUNK_SIZE):
            resolved.extend(await self.resolve(listing_ids[start:start + self.RESOLVE_CHUNK_SIZE]))
        return resolved

    async def list_favorites(self, user: User, page=None, limit=None) -> ListingPage:
        """
        One page of favorites in insertion order.

        The id list is sliced before resolution, so a page can hold fewer
        listings than the limit when some ids dangle. The total is the length
        of the id list.
        """
        request = compose_page(
            page,
            limit,
            default_limit=self.settings.default_page_limit,
            max_limit=self.settings.max_page_limit,
        )
        window = user.favorites[request.offset:request.offset + request.limit]
        resolved = await self.resolve(window)
        properties = await annotate_listings(resolved, self.promoters, user)
        return ListingPage(properties=properties, pagination=build_pagination(len(user.favorites), request))

    async def add(self, user: User, listing_id: str) -> FavoriteToggle:
        listing_id = (listing_id or "").strip()
        if not listing_id:
            raise ValidationError("Property id is required")

        listing = await self.listings.find_by_id(listing_id)
        if listing is None or not listing.validated:
            raise PropertyNotFound(listing_id)

        if listing_id in user.favorites:
            return FavoriteToggle(property_id=listing_id, status="already_favorited",
                                  total_favorites=len(user.favorites))

        user.favorites.append(listing_id)
        user.updated_at = datetime.now(timezone.utc)
        await self.users.save(user)
        logger.info(f"User {user.id} added favorite {listing_id}")
        return FavoriteToggle(property_id=listing_id, status="added", total_favorites=len(user.favorites))

    async def remove(self, user: User, listing_id: str) -> FavoriteToggle:
        listing_id = (listing_id or "").strip()
        if not listing_id:
            raise ValidationError("Property id is required")

        if listing_id not in user.favorites:
            return FavoriteToggle(property_id=listing_id, status="not_favorited",
                                  total_favorites=len(user.favorites))

        user.favorites = [fav for fav in user.favorites if fav != listing_id]
        user.updated_at = datetime.now(timezone.utc)
        await self.users.save(user)
        logger.info(f"User {user.id} removed favorite {listing_id}")
        return FavoriteToggle(property_id=listing_id, status="removed", total_favorites=len(user.favorites))

    def check(self, user: User, listing_ids: Optional[Sequence[str]]) -> Dict[str, bool]:
        if not listing_ids:
            raise ValidationError("A non-empty list of property ids is required")
        favorites = set(user.favorites)
        return {listing_id: listing_id in favorites for listing_id in listing_ids}

    async def stats(self, user: User) -> FavoritesStats:
        """Breakdown of the user's resolvable favorites."""
        resolved = await self.resolve_all(user.favorites)

        by_type = Counter(listing.property_type for listing in resolved)
        by_city = Counter(listing.location.city for listing in resolved)
        by_rooms = Counter(
            f"{listing.apartment.rooms} pièces"
            for listing in resolved
            if listing.apartment is not None and listing.apartment.rooms
        )
        return FavoritesStats(
            total=len(resolved),
            by_type=dict(by_type),
            by_city=dict(by_city),
            by_rooms=dict(by_rooms),
            price_range=_value_range([listing.price for listing in resolved if listing.price > 0]),
            surface_range=_value_range([listing.surface for listing in resolved if listing.surface > 0]),
        )

    async def export(self, user: User) -> FavoritesExport:
        resolved = await self.resolve_all(user.favorites)
        promoter_ids = sorted({listing.promoter_id for listing in resolved})
        promoters = {}
        if promoter_ids:
            promoters = {pr.id: pr for pr in await self.promoters.find_by_ids(promoter_ids)}

        records = []
        for listing in resolved:
            promoter = promoters.get(listing.promoter_id)
            details = None
            if listing.apartment is not None:
                details = {
                    "rooms": listing.apartment.rooms,
                    "bedrooms": listing.apartment.bedrooms,
                    "bathrooms": listing.apartment.bathrooms,
                    "features": list(listing.apartment.features),
                }
            records.append(FavoriteExportRecord(
                id=listing.id,
                title=listing.title,
                price=listing.price,
                surface=listing.surface,
                type=listing.property_type,
                location={
                    "city": listing.location.city,
                    "district": listing.location.district,
                    "address": listing.location.address,
                },
                details=details,
                promoter_name=promoter.name if promoter else None,
                promoter_phone=promoter.contact.phone if promoter else None,
                promoter_email=promoter.contact.email if promoter else None,
                url=listing.url,
            ))

        logger.info(f"User {user.id} exported {len(records)} favorites")
        return FavoritesExport(
            user_name=user.name,
            user_email=user.email,
            export_date=datetime.now(timezone.utc),
            total=len(records),
            favorites=records,
        )
