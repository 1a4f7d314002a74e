"""
Tests for the listing statistics report and its Redis cache.
"""

import json
from unittest.mock import AsyncMock

import pytest

from nestify.models import StatisticsReport
from nestify.services.statistics import CACHE_KEY, StatisticsFold, StatisticsService
from nestify.stores import MemoryListingStore
from helpers import make_listing


def catalog():
    return [
        make_listing("a", city="Tunis", price=100000, surface=50, views=10),
        make_listing("b", city="Tunis", type="Villa", price=500000, surface=300, views=5),
        make_listing("c", city="Sousse", price=300000, surface=100, views=1),
        make_listing("hidden", city="Sfax", price=9_000_000, surface=10, views=1000, validated=False),
    ]


@pytest.mark.asyncio
async def test_report_covers_validated_listings_only():
    report = await StatisticsService(MemoryListingStore(catalog())).compute()

    assert report.total_properties == 3
    assert report.avg_price == pytest.approx(300000)
    assert report.avg_surface == pytest.approx(150)
    assert report.total_views == 16
    assert [(e.name, e.count) for e in report.property_types] == [("Appartement", 2), ("Villa", 1)]
    assert [(e.name, e.count) for e in report.top_cities] == [("Tunis", 2), ("Sousse", 1)]


@pytest.mark.asyncio
async def test_empty_report_is_zeroed():
    report = await StatisticsService(MemoryListingStore()).compute()

    assert report == StatisticsReport()
    assert report.avg_price == 0
    assert report.top_cities == []


def test_top_cities_are_capped_at_ten():
    fold = StatisticsFold()
    for i in range(15):
        for _ in range(i + 1):
            fold.add(make_listing(f"c{i}", city=f"City {i}"))

    report = fold.report()

    assert len(report.top_cities) == 10
    assert report.top_cities[0].name == "City 14"
    assert report.top_cities[0].count == 15


@pytest.mark.asyncio
async def test_cache_hit_skips_computation():
    cached = StatisticsReport(total_properties=42)
    redis = AsyncMock()
    redis.get.return_value = json.dumps(cached.model_dump())
    service = StatisticsService(MemoryListingStore(catalog()), redis_client=redis)

    report = await service.get_report()

    assert report.total_properties == 42
    redis.get.assert_awaited_once_with(CACHE_KEY)
    redis.setex.assert_not_awaited()


@pytest.mark.asyncio
async def test_cache_miss_stores_report_with_ttl():
    redis = AsyncMock()
    redis.get.return_value = None
    service = StatisticsService(MemoryListingStore(catalog()), redis_client=redis, ttl_seconds=60)

    report = await service.get_report()

    assert report.total_properties == 3
    key, ttl, payload = redis.setex.await_args.args
    assert (key, ttl) == (CACHE_KEY, 60)
    assert StatisticsReport(**json.loads(payload)) == report


@pytest.mark.asyncio
async def test_cache_failures_fall_back_to_computation():
    redis = AsyncMock()
    redis.get.side_effect = ConnectionError("redis down")
    redis.setex.side_effect = ConnectionError("redis down")
    service = StatisticsService(MemoryListingStore(catalog()), redis_client=redis)

    report = await service.get_report()

    assert report.total_properties == 3
