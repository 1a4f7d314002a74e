"""
Property-based tests for related-listing lookup.
"""

import asyncio

from hypothesis import given, settings, strategies as st

from nestify.services.similarity import SimilarityService
from nestify.stores import MemoryListingStore, MemoryPromoterStore
from helpers import make_listing, make_promoter, make_user


def similar_ids(listings, listing_id, limit=None):
    service = SimilarityService(MemoryListingStore(listings))
    return [listing.id for listing in asyncio.run(service.find_similar(listing_id, limit))]


def test_similar_villas_in_same_city():
    listings = [
        make_listing("A", type="Villa", city="Tunis", price=300000, surface=200),
        make_listing("B", type="Villa", city="Tunis", price=330000, surface=210, views=50),
        make_listing("C", type="Villa", city="Sousse", price=300000, surface=200),
    ]

    assert similar_ids(listings, "A") == ["B"]


def test_similarity_bounds_are_inclusive():
    listings = [
        make_listing("src", price=100000, surface=100),
        make_listing("edge", price=120000, surface=80),
        make_listing("over", price=120001, surface=100),
        make_listing("other-type", type="Maison", price=100000, surface=100),
        make_listing("hidden", price=100000, surface=100, validated=False),
    ]

    assert similar_ids(listings, "src") == ["edge"]


def test_city_must_match_exactly():
    listings = [
        make_listing("src", city="Tunis"),
        make_listing("prefix", city="Tunis Nord"),
        make_listing("case", city="tunis"),
        make_listing("same", city="Tunis"),
    ]

    assert similar_ids(listings, "src") == ["same"]


def test_missing_source_returns_empty():
    assert similar_ids([make_listing("p1")], "nope") == []


def test_limit_defaults_and_caps():
    listings = [make_listing(f"p{i}", views=i) for i in range(30)]

    assert len(similar_ids(listings, "p0")) == 6
    assert len(similar_ids(listings, "p0", "0")) == 6
    assert len(similar_ids(listings, "p0", "50")) == 20
    assert similar_ids(listings, "p0", "3") == ["p29", "p28", "p27"]


@given(
    specs=st.lists(
        st.tuples(
            st.sampled_from(["Villa", "Appartement"]),
            st.sampled_from(["Tunis", "Sousse"]),
            st.integers(min_value=1, max_value=1000),
            st.integers(min_value=1, max_value=500),
            st.integers(min_value=0, max_value=100),
        ),
        min_size=1,
        max_size=25,
    ),
)
@settings(max_examples=100)
def test_similar_never_includes_source(specs):
    """
    **Property: similarity excludes the source**

    Related listings never include the source listing, share its type and
    city, lie within the tolerance band and come most viewed first.
    """
    listings = [
        make_listing(f"p{i}", type=kind, city=city, price=price, surface=surface, views=views)
        for i, (kind, city, price, surface, views) in enumerate(specs)
    ]
    source = listings[0]
    service = SimilarityService(MemoryListingStore(listings))

    related = asyncio.run(service.find_similar(source.id, "20"))

    assert source.id not in [listing.id for listing in related]
    for listing in related:
        assert listing.property_type == source.property_type
        assert listing.location.city == source.location.city
        assert source.price * 0.8 <= listing.price <= source.price * 1.2
        assert source.surface * 0.8 <= listing.surface <= source.surface * 1.2
    views = [listing.views for listing in related]
    assert views == sorted(views, reverse=True)


def test_related_views_carry_promoter_and_favorites():
    listings = [
        make_listing("A", type="Villa", price=300000, surface=200),
        make_listing("B", type="Villa", price=330000, surface=210, views=50),
        make_listing("C", type="Villa", price=310000, surface=190, views=10),
    ]
    service = SimilarityService(MemoryListingStore(listings), MemoryPromoterStore([make_promoter()]))

    related = asyncio.run(service.related("A", user=make_user(favorites=["C"])))

    assert [view.id for view in related] == ["B", "C"]
    assert related[0].promoter.name == "Promoteur pr1"
    assert [view.is_favorited for view in related] == [False, True]
