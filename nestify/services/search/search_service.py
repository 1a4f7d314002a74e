"""
Listing search - coordinates predicate building, ordering, pagination and annotation.
"""

import logging
from dataclasses import replace
from typing import Any, Mapping, Optional

from nestify.config import SearchConfig
from nestify.error_handling import StoreError
from nestify.filtering import SearchCriteria, build_predicate
from nestify.filtering.criteria import first_value
from nestify.models import ListingPage, User
from nestify.services.listings import annotate_listings
from nestify.filtering.sorting import build_pagination, compose_page, resolve_sort, DEFAULT_SORT, SORT_OPTIONS

logger = logging.getLogger(__name__)


class ListingSearch:
    """Run listing searches for the HTTP layer"""

    def __init__(self, listings, promoters, accounts=None, settings: Optional[SearchConfig] = None):
        self.listings = listings
        self.promoters = promoters
        self.accounts = accounts
        self.settings = settings or SearchConfig()

    async def search(
        self,
        params: Mapping[str, Any],
        user: Optional[User] = None,
        city: Optional[str] = None,
    ) -> ListingPage:
        """
        Search validated listings.

        Args:
            params: Raw request parameters (filters, sort, page, limit)
            user: Authenticated caller, if any
            city: Fixed city filter overriding the ``city`` parameter

        Returns:
            ListingPage with annotated listings and pagination metadata
        """
        criteria = SearchCriteria.from_params(params)
        if city is not None:
            criteria = replace(criteria, city=city)
        predicate = build_predicate(criteria)

        keyword = first_value(params.get("sort"))
        sort = resolve_sort(keyword)
        page = compose_page(
            params.get("page"),
            params.get("limit"),
            default_limit=self.settings.default_page_limit,
            max_limit=self.settings.max_page_limit,
        )

        total = await self.listings.count(predicate)
        found = []
        if page.offset < total:
            found = await self.listings.find(predicate, sort, page.offset, page.limit)
        logger.debug(f"Search matched {total} listings, returning {len(found)}")

        properties = await annotate_listings(found, self.promoters, user)

        query = criteria.to_query()
        if user is not None and self.accounts is not None and query:
            query["sort"] = keyword.lower() if keyword and keyword.lower() in SORT_OPTIONS else DEFAULT_SORT
            try:
                await self.accounts.record_search(user, query, total)
            except StoreError as e:
                logger.warning(f"Failed to record search for user {user.id}: {e.message}")

        return ListingPage(properties=properties, pagination=build_pagination(total, page))
