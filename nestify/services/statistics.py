"""
Listing statistics - a single pass over validated listings, cached in Redis.
"""

import json
import logging
from collections import Counter
from typing import Optional

from nestify.filtering import predicate as p
from nestify.models import CountEntry, StatisticsReport

logger = logging.getLogger(__name__)

TOP_CITIES = 10
CACHE_KEY = "nestify:stats:properties"


class StatisticsFold:
    """Accumulates the report one listing at a time"""

    def __init__(self):
        self.count = 0
        self.price_sum = 0.0
        self.surface_sum = 0.0
        self.views = 0
        self.types = Counter()
        self.cities = Counter()

    def add(self, listing) -> None:
        self.count += 1
        self.price_sum += listing.price
        self.surface_sum += listing.surface
        self.views += listing.views
        self.types[listing.property_type] += 1
        self.cities[listing.location.city] += 1

    def report(self) -> StatisticsReport:
        if self.count == 0:
            return StatisticsReport()
        return StatisticsReport(
            total_properties=self.count,
            avg_price=self.price_sum / self.count,
            avg_surface=self.surface_sum / self.count,
            total_views=self.views,
            property_types=[CountEntry(name=name, count=n) for name, n in self.types.most_common()],
            top_cities=[CountEntry(name=name, count=n) for name, n in self.cities.most_common(TOP_CITIES)],
        )


class StatisticsService:
    """Compute the listing report, reading through an optional Redis cache"""

    def __init__(self, listings, redis_client=None, ttl_seconds: int = 300):
        self.listings = listings
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds

    async def compute(self) -> StatisticsReport:
        fold = StatisticsFold()
        async for listing in self.listings.scan(p.Equals(p.VALIDATED, True)):
            fold.add(listing)
        logger.info(f"Statistics recomputed over {fold.count} listings")
        return fold.report()

    async def get_report(self) -> StatisticsReport:
        cached = await self.check_cache()
        if cached is not None:
            return cached
        report = await self.compute()
        await self.cache_report(report)
        return report

    async def check_cache(self) -> Optional[StatisticsReport]:
        if self.redis is None:
            return None
        try:
            cached_data = await self.redis.get(CACHE_KEY)
            if cached_data:
                return StatisticsReport(**json.loads(cached_data))
            return None
        except Exception as e:
            # Cache failures fall through to computation
            logger.warning(f"Statistics cache read failed: {e}")
            return None

    async def cache_report(self, report: StatisticsReport) -> None:
        if self.redis is None:
            return
        try:
            await self.redis.setex(CACHE_KEY, self.ttl_seconds, json.dumps(report.model_dump()))
        except Exception as e:
            logger.warning(f"Statistics cache write failed: {e}")
