"""
Promoter profiles and their listings.
"""

import logging
from typing import Optional

from nestify.config import SearchConfig
from nestify.error_handling import PromoterNotFound
from nestify.filtering import predicate as p
from nestify.models import ListingPage, Promoter, PromoterPage, PromoterStatistics, User
from nestify.services.listings import annotate_listings
from nestify.filtering.sorting import build_pagination, compose_page, resolve_sort

logger = logging.getLogger(__name__)


class PromoterService:
    """Read promoters and maintain their listing statistics"""

    def __init__(self, promoters, listings, settings: Optional[SearchConfig] = None):
        self.promoters = promoters
        self.listings = listings
        self.settings = settings or SearchConfig()

    async def list_verified(self, page=None, limit=None) -> PromoterPage:
        request = compose_page(page, limit, self.settings.default_page_limit, self.settings.max_page_limit)
        total = await self.promoters.count_verified()
        found = []
        if request.offset < total:
            found = await self.promoters.find_verified(request.offset, request.limit)
        return PromoterPage(promoters=found, total=total)

    async def search(self, text: str, limit=None) -> PromoterPage:
        """Case-insensitive substring match on name, phone or email."""
        request = compose_page(1, limit, self.settings.default_page_limit, self.settings.max_page_limit)
        found = await self.promoters.search(text.strip(), request.limit)
        return PromoterPage(promoters=found, total=len(found))

    async def get(self, promoter_id: str) -> Promoter:
        promoter = await self.promoters.find_by_id(promoter_id)
        if promoter is None:
            raise PromoterNotFound(promoter_id)
        return promoter

    async def listings_of(self, promoter_id: str, page=None, limit=None, user: Optional[User] = None) -> ListingPage:
        """Validated listings of one promoter, newest first."""
        await self.get(promoter_id)
        predicate = p.And((p.Equals(p.VALIDATED, True), p.Equals(p.PROMOTER, promoter_id)))
        request = compose_page(page, limit, self.settings.default_page_limit, self.settings.max_page_limit)
        total = await self.listings.count(predicate)
        found = []
        if request.offset < total:
            found = await self.listings.find(predicate, resolve_sort("newest"), request.offset, request.limit)
        properties = await annotate_listings(found, self.promoters, user)
        return ListingPage(properties=properties, pagination=build_pagination(total, request))

    async def recompute_statistics(self, promoter_id: str) -> Promoter:
        """
        Recount owned listings and persist the result.

        Total counts every owned listing, active only validated ones; the sold
        count is kept as stored.
        """
        promoter = await self.get(promoter_id)
        owned = p.Equals(p.PROMOTER, promoter_id)
        total = await self.listings.count(owned)
        active = await self.listings.count(p.And((owned, p.Equals(p.VALIDATED, True))))

        promoter.statistics = PromoterStatistics(
            total_properties=total,
            sold_properties=promoter.statistics.sold_properties,
            active_properties=active,
        )
        await self.promoters.save(promoter)
        logger.info(f"Promoter {promoter_id} statistics recomputed: {total} total, {active} active")
        return promoter
