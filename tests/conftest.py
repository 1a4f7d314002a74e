"""Shared fixtures: in-memory stores and an HTTP client wired to them."""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from nestify.dependencies import get_app_settings, get_listings, get_promoters, get_stats_cache, get_users
from nestify.main import app
from nestify.stores import MemoryListingStore, MemoryPromoterStore, MemoryUserStore

from helpers import TEST_SETTINGS


@pytest.fixture
def stores():
    return SimpleNamespace(
        listings=MemoryListingStore(),
        promoters=MemoryPromoterStore(),
        users=MemoryUserStore(),
    )


@pytest.fixture
def client(stores):
    """TestClient without lifespan, so no database connections are opened."""
    app.dependency_overrides[get_listings] = lambda: stores.listings
    app.dependency_overrides[get_promoters] = lambda: stores.promoters
    app.dependency_overrides[get_users] = lambda: stores.users
    app.dependency_overrides[get_stats_cache] = lambda: None
    app.dependency_overrides[get_app_settings] = lambda: TEST_SETTINGS
    yield TestClient(app)
    app.dependency_overrides.clear()
