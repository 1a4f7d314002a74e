"""
Listing reads and admin updates.
"""

import logging
from typing import List, Optional, Sequence

from nestify.config import SearchConfig
from nestify.error_handling import PropertyNotFound, ValidationError
from nestify.filtering import predicate as p
from nestify.filtering.criteria import parse_int
from nestify.models import Listing, ListingUpdate, ListingView, PromoterSummary, User
from nestify.filtering.sorting import SortKey

logger = logging.getLogger(__name__)

FEATURED_ORDER = (SortKey(p.VIEWS, descending=True), SortKey(p.CREATED_AT, descending=True))


def bounded_limit(value, default: int, cap: int) -> int:
    """Parse a result limit; missing, malformed or non-positive values use the default."""
    limit = parse_int(value)
    if limit is None or limit < 1:
        limit = default
    return min(limit, cap)


async def annotate_listings(
    listings: Sequence[Listing],
    promoters,
    user: Optional[User] = None,
) -> List[ListingView]:
    """
    Attach promoter summaries and favorited flags.

    Promoters are fetched in one batch. ``is_favorited`` is only set for an
    authenticated caller.
    """
    promoter_ids = sorted({listing.promoter_id for listing in listings})
    by_id = {}
    if promoter_ids:
        by_id = {pr.id: pr for pr in await promoters.find_by_ids(promoter_ids)}
    favorites = set(user.favorites) if user is not None else None

    views = []
    for listing in listings:
        promoter = by_id.get(listing.promoter_id)
        summary = None
        if promoter is not None:
            summary = PromoterSummary(
                id=promoter.id,
                name=promoter.name,
                verified=promoter.verified,
                phone=promoter.contact.phone,
            )
        views.append(ListingView.model_validate({
            **listing.model_dump(),
            "promoter": summary,
            "is_favorited": listing.id in favorites if favorites is not None else None,
        }))
    return views


class ListingService:
    """Single-listing reads, view counting, featured listings and admin updates"""

    def __init__(self, listings, promoters, settings: Optional[SearchConfig] = None):
        self.listings = listings
        self.promoters = promoters
        self.settings = settings or SearchConfig()

    async def get_detail(self, listing_id: str, user: Optional[User] = None) -> ListingView:
        listing = await self.listings.find_by_id(listing_id)
        if listing is None or not listing.validated:
            raise PropertyNotFound(listing_id)
        views = await annotate_listings([listing], self.promoters, user)
        return views[0]

    async def increment_views(self, listing_id: str) -> int:
        views = await self.listings.increment_views(listing_id)
        if views is None:
            raise PropertyNotFound(listing_id)
        logger.info(f"Listing {listing_id} viewed ({views} views)")
        return views

    async def featured(self, limit=None, user: Optional[User] = None) -> List[ListingView]:
        """Most viewed validated listings from verified promoters."""
        limit = bounded_limit(limit, self.settings.featured_default_limit, self.settings.featured_max_limit)
        verified = await self.promoters.verified_ids()
        if not verified:
            return []
        predicate = p.And((p.Equals(p.VALIDATED, True), p.In(p.PROMOTER, tuple(verified))))
        found = await self.listings.find(predicate, FEATURED_ORDER, 0, limit)
        return await annotate_listings(found, self.promoters, user)

    async def update(self, listing_id: str, changes: ListingUpdate) -> ListingView:
        """Apply admin changes; the price per area follows price and surface."""
        fields = changes.model_dump(exclude_none=True)
        if not fields:
            raise ValidationError("No changes provided")
        listing = await self.listings.find_by_id(listing_id)
        if listing is None:
            raise PropertyNotFound(listing_id)

        for name, value in fields.items():
            setattr(listing, name, value)
        stored = {**fields, "pricePerM2": listing.price_per_area}
        if not await self.listings.update_fields(listing_id, stored):
            raise PropertyNotFound(listing_id)

        logger.info(f"Listing {listing_id} updated: {', '.join(sorted(fields))}")
        views = await annotate_listings([listing], self.promoters)
        return views[0]
