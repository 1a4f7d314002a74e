"""Builders shared by the test modules."""

import uuid
from datetime import datetime, timedelta, timezone

from nestify.config import AppSettings, AuthConfig
from nestify.models import Listing, Promoter, User
from nestify.services.auth import TokenService

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)
PASSWORD = "Secret@123"

TEST_SETTINGS = AppSettings(
    store_backend="memory",
    auth=AuthConfig(jwt_secret="test-secret", bcrypt_rounds=4),
)
TOKENS = TokenService(TEST_SETTINGS.auth)


def make_listing(listing_id="p1", **overrides) -> Listing:
    """Validated apartment in Tunis unless overridden."""
    city = overrides.pop("city", "Tunis")
    coordinates = overrides.pop("coordinates", None)
    rooms = overrides.pop("rooms", None)
    features = overrides.pop("features", None)
    delivery_date = overrides.pop("delivery_date", None)
    age_days = overrides.pop("age_days", 0)

    data = {
        "_id": listing_id,
        "url": f"https://nestify.tn/p/{listing_id}",
        "title": f"Listing {listing_id}",
        "description": "Bel appartement lumineux",
        "price": 200000,
        "surface": 100,
        "type": "Appartement",
        "location_id": {"city": city, "coordinates": coordinates},
        "views": 0,
        "validated": True,
        "created_at": BASE_TIME + timedelta(days=age_days),
        "promoter_id": "pr1",
    }
    if rooms is not None or features is not None:
        data["apartment_details_id"] = {"rooms": rooms, "features": features or []}
    if delivery_date is not None:
        data["VEFA_details_id"] = {"is_vefa": True, "delivery_date": delivery_date}
    data.update(overrides)
    return Listing.model_validate(data)


def make_promoter(promoter_id="pr1", **overrides) -> Promoter:
    data = {
        "_id": promoter_id,
        "name": f"Promoteur {promoter_id}",
        "contact": {"phone": "+21671000000", "email": f"{promoter_id}@promo.tn"},
        "verified": True,
        "rating": 4,
    }
    data.update(overrides)
    return Promoter.model_validate(data)


def make_user(user_id=None, **overrides) -> User:
    user_id = user_id or str(uuid.uuid4())
    data = {
        "id": user_id,
        "name": "Amira Ben Salah",
        "email": f"{user_id[:8]}@example.tn",
        "phone": "+21620" + str(abs(hash(user_id)) % 1000000).zfill(6),
        "password_hash": TOKENS.hash_password(PASSWORD),
    }
    data.update(overrides)
    return User.model_validate(data)


def auth_header(user: User) -> dict:
    return {"Authorization": f"Bearer {TOKENS.issue_pair(user.id).access_token}"}
