"""
Property-based tests for criteria parsing, predicate construction and
in-memory predicate evaluation.
"""

import pytest
from hypothesis import given, settings, strategies as st

from nestify.filtering import ListingFilter, SearchCriteria, build_predicate, haversine_km, parse_month
from nestify.filtering import predicate as p
from nestify.filtering.delivery import month_spellings
from nestify.models import PropertyFeature
from helpers import make_listing

FEATURES = [feature.value for feature in PropertyFeature]

feature_sets = st.lists(st.sampled_from(FEATURES), unique=True, max_size=6)
listing_features = st.lists(feature_sets, min_size=1, max_size=25)


def documents_with_features(feature_lists):
    return [
        make_listing(f"p{i}", rooms=3, features=features).to_document()
        for i, features in enumerate(feature_lists)
    ]


@given(catalog=listing_features, required=feature_sets, extra=st.sampled_from(FEATURES))
@settings(max_examples=100)
def test_feature_filter_monotonicity(catalog, required, extra):
    """
    **Property: feature filter monotonicity**

    Adding a required feature never grows the result set, and every result
    contains all required features.
    """
    documents = documents_with_features(catalog)
    engine = ListingFilter()

    base = engine.filter(documents, build_predicate(SearchCriteria(features=required)))
    narrowed_features = required + [extra] if extra not in required else required
    narrowed = engine.filter(documents, build_predicate(SearchCriteria(features=narrowed_features)))

    assert {d["_id"] for d in narrowed} <= {d["_id"] for d in base}
    for document in narrowed:
        assert set(narrowed_features) <= set(document["apartment_details_id"]["features"])


@given(
    prices=st.lists(st.integers(min_value=0, max_value=1_000_000), min_size=1, max_size=30),
    low=st.one_of(st.none(), st.integers(min_value=0, max_value=1_000_000)),
    high=st.one_of(st.none(), st.integers(min_value=0, max_value=1_000_000)),
)
@settings(max_examples=100)
def test_price_range_is_inclusive(prices, low, high):
    """
    **Property: inclusive ranges**

    A listing matches the price filter exactly when its price lies within
    the given bounds, bounds included; an absent bound is unconstrained.
    """
    documents = [make_listing(f"p{i}", price=price).to_document() for i, price in enumerate(prices)]
    criteria = SearchCriteria(price_min=low, price_max=high)
    matched = {d["_id"] for d in ListingFilter().filter(documents, build_predicate(criteria))}

    for document in documents:
        inside = (low is None or document["price"] >= low) and (high is None or document["price"] <= high)
        assert (document["_id"] in matched) == inside


@given(
    lat1=st.floats(min_value=-90, max_value=90),
    lng1=st.floats(min_value=-180, max_value=180),
    lat2=st.floats(min_value=-90, max_value=90),
    lng2=st.floats(min_value=-180, max_value=180),
)
@settings(max_examples=100)
def test_haversine_symmetric_and_bounded(lat1, lng1, lat2, lng2):
    """
    **Property: haversine distance**

    Distance is symmetric, non-negative and never exceeds half the
    circumference of the earth.
    """
    d1 = haversine_km(lat1, lng1, lat2, lng2)
    d2 = haversine_km(lat2, lng2, lat1, lng1)

    assert d1 == pytest.approx(d2, abs=1e-6)
    assert 0 <= d1 <= 3.1416 * 6371


def test_haversine_known_distance():
    # Tunis to Sousse, roughly 115 km
    assert haversine_km(36.8065, 10.1815, 35.8256, 10.6084) == pytest.approx(115, abs=5)


def test_criteria_treat_malformed_values_as_absent():
    criteria = SearchCriteria.from_params({
        "priceMin": "abc",
        "priceMax": "NaN",
        "surfaceMin": "",
        "rooms": "three",
        "isVefa": "maybe",
        "type": "castle",
        "deliveryDateBefore": "soon",
        "lat": "36.8",
        "lng": "10.1",
        "radius": "-5",
    })

    assert criteria.price_min is None
    assert criteria.price_max is None
    assert criteria.surface_min is None
    assert criteria.rooms is None
    assert criteria.is_vefa is None
    assert criteria.property_type is None
    assert criteria.delivery_before is None
    assert not criteria.has_geo
    assert criteria.lat is None and criteria.lng is None and criteria.radius_km is None
    assert build_predicate(criteria) == p.And((p.Equals(p.VALIDATED, True),))


def test_criteria_parse_features_from_commas_and_repeats():
    criteria = SearchCriteria.from_params({"features": ["Garage, Piscine", "Garage", "Jardin"]})

    assert criteria.features == ["Garage", "Piscine", "Jardin"]


def test_geo_filter_requires_coordinates_in_range():
    assert not SearchCriteria.from_params({"lat": "95", "lng": "10", "radius": "5"}).has_geo
    assert not SearchCriteria.from_params({"lat": "36", "lng": "10"}).has_geo
    assert SearchCriteria.from_params({"lat": "36", "lng": "10", "radius": "5"}).has_geo


def test_build_predicate_covers_every_filter():
    criteria = SearchCriteria.from_params({
        "city": "tun",
        "type": "villa",
        "priceMin": "100000",
        "surfaceMax": "300",
        "rooms": "4",
        "features": "Piscine",
        "isVefa": "true",
        "deliveryDateBefore": "2025-06",
        "q": "vue mer",
        "lat": "36.8",
        "lng": "10.2",
        "radius": "10",
    })

    assert build_predicate(criteria) == p.And((
        p.Equals(p.VALIDATED, True),
        p.Substring(p.CITY, "tun"),
        p.Equals(p.TYPE, "Villa"),
        p.Range(p.PRICE, 100000.0, None),
        p.Range(p.SURFACE, None, 300.0),
        p.Equals(p.ROOMS, 4),
        p.ContainsAll(p.FEATURES, ("Piscine",)),
        p.Equals(p.IS_VEFA, True),
        p.DeliveryBefore(p.DELIVERY_DATE, 2025, 6),
        p.GeoRadius(p.COORDINATES, 36.8, 10.2, 10.0),
        p.TextSearch("vue mer"),
    ))


def test_validated_is_always_required():
    documents = [
        make_listing("shown").to_document(),
        make_listing("hidden", validated=False).to_document(),
    ]
    matched = ListingFilter().filter(documents, build_predicate(SearchCriteria()))

    assert [d["_id"] for d in matched] == ["shown"]


def test_city_match_is_case_insensitive_literal_substring():
    documents = [
        make_listing("a", city="La Marsa").to_document(),
        make_listing("b", city="Tunis").to_document(),
        make_listing("c", city="Sidi Bou Said (Nord)").to_document(),
    ]
    engine = ListingFilter()

    marsa = engine.filter(documents, build_predicate(SearchCriteria(city="MARSA")))
    paren = engine.filter(documents, build_predicate(SearchCriteria(city="(nord)")))

    assert [d["_id"] for d in marsa] == ["a"]
    assert [d["_id"] for d in paren] == ["c"]


def test_geo_filter_excludes_listings_without_coordinates():
    documents = [
        make_listing("near", coordinates={"lat": 36.81, "lng": 10.18}).to_document(),
        make_listing("far", coordinates={"lat": 35.83, "lng": 10.61}).to_document(),
        make_listing("unknown").to_document(),
    ]
    criteria = SearchCriteria.from_params({"lat": "36.8065", "lng": "10.1815", "radius": "20"})
    matched = ListingFilter().filter(documents, build_predicate(criteria))

    assert [d["_id"] for d in matched] == ["near"]


def test_delivery_filter_compares_months():
    documents = [
        make_listing("early", delivery_date="avril 2025").to_document(),
        make_listing("same", delivery_date="Juin 2025").to_document(),
        make_listing("late", delivery_date="décembre 2025").to_document(),
        make_listing("garbled", delivery_date="bientôt").to_document(),
        make_listing("none").to_document(),
    ]
    criteria = SearchCriteria.from_params({"deliveryDateBefore": "juin 2025"})
    matched = ListingFilter().filter(documents, build_predicate(criteria))

    assert [d["_id"] for d in matched] == ["early", "same"]


@pytest.mark.parametrize("raw,expected", [
    ("2025-04", (2025, 4)),
    ("2025-4", (2025, 4)),
    ("avril 2025", (2025, 4)),
    ("Février 2026", (2026, 2)),
    ("fevrier 2026", (2026, 2)),
    ("AOÛT 2024", (2024, 8)),
    ("2025-13", None),
    ("printemps 2025", None),
    ("", None),
])
def test_parse_month(raw, expected):
    assert parse_month(raw) == expected


def test_month_spellings_cover_accents_and_ascii_lowercasing():
    spellings = dict(month_spellings())

    assert spellings["février"] == spellings["fevrier"] == spellings["fÉvrier"] == 2
    assert spellings["aoÛt"] == spellings["aout"] == 8
    assert sorted(set(spellings.values())) == list(range(1, 13))


def test_text_search_matches_title_or_description():
    documents = [
        make_listing("a", title="Villa vue mer", description="Piscine").to_document(),
        make_listing("b", title="Studio", description="Proche de la mer").to_document(),
        make_listing("c", title="Bureau", description="Centre ville").to_document(),
    ]
    search = p.TextSearch("mer")
    engine = ListingFilter()

    assert [d["_id"] for d in engine.filter(documents, search)] == ["a", "b"]
    assert engine.text_score(documents[2], search) == 0
