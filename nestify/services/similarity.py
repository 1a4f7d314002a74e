"""
Related listings.
"""

from typing import List, Optional

from nestify.config import SearchConfig
from nestify.filtering import build_similar_predicate
from nestify.filtering import predicate as p
from nestify.models import Listing, ListingView, User
from nestify.services.listings import annotate_listings, bounded_limit
from nestify.filtering.sorting import SortKey

BY_VIEWS = SortKey(p.VIEWS, descending=True)


class SimilarityService:
    """Find listings comparable to a given one"""

    def __init__(self, listings, promoters=None, settings: Optional[SearchConfig] = None):
        self.listings = listings
        self.promoters = promoters
        self.settings = settings or SearchConfig()

    async def find_similar(self, listing_id: str, limit=None) -> List[Listing]:
        """
        Validated listings of the same type and city with price and surface
        within 20% of the source, most viewed first.

        Returns an empty list when the source listing does not exist.
        """
        limit = bounded_limit(limit, self.settings.similar_default_limit, self.settings.similar_max_limit)
        source = await self.listings.find_by_id(listing_id)
        if source is None:
            return []
        return await self.listings.find(build_similar_predicate(source), BY_VIEWS, 0, limit)

    async def related(self, listing_id: str, limit=None, user: Optional[User] = None) -> List[ListingView]:
        """Similar listings with promoter summaries and favorited flags."""
        return await annotate_listings(await self.find_similar(listing_id, limit), self.promoters, user)
