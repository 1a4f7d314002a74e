"""
Property-based tests for listing search over the in-memory stores.
"""

import asyncio

import pytest
from hypothesis import given, settings, strategies as st

from nestify.filtering import ListingFilter, SearchCriteria, build_predicate
from nestify.filtering.sorting import MAX_PAGE
from nestify.services.accounts import AccountService
from nestify.services.search import ListingSearch
from nestify.stores import MemoryListingStore, MemoryPromoterStore, MemoryUserStore
from helpers import TEST_SETTINGS, TOKENS, make_listing, make_promoter, make_user

CITIES = ["Tunis", "Sousse", "La Marsa", "Sfax"]

listing_specs = st.lists(
    st.tuples(
        st.sampled_from(CITIES),
        st.integers(min_value=50_000, max_value=900_000),
        st.integers(min_value=30, max_value=400),
        st.booleans(),
        st.integers(min_value=0, max_value=500),
    ),
    max_size=40,
)


def build_catalog(specs):
    return [
        make_listing(
            f"p{i}",
            city=city,
            price=price,
            surface=surface,
            validated=validated,
            views=views,
            age_days=i,
        )
        for i, (city, price, surface, validated, views) in enumerate(specs)
    ]


def make_search(listings=(), promoters=(make_promoter(),), users=None):
    accounts = None
    if users is not None:
        accounts = AccountService(users, TOKENS, settings=TEST_SETTINGS.search)
    return ListingSearch(
        MemoryListingStore(listings),
        MemoryPromoterStore(promoters),
        accounts=accounts,
        settings=TEST_SETTINGS.search,
    )


@given(
    specs=listing_specs,
    city=st.one_of(st.none(), st.sampled_from(["tun", "SOUSSE", "marsa"])),
    price_max=st.one_of(st.none(), st.integers(min_value=50_000, max_value=900_000)),
    sort=st.sampled_from(["newest", "price_asc", "price_desc", "surface_asc", "surface_desc", "views"]),
    limit=st.integers(min_value=1, max_value=7),
)
@settings(max_examples=100)
def test_pages_partition_the_matching_set(specs, city, price_max, sort, limit):
    """
    **Property: search pages are disjoint and complete**

    Walking every page of a search yields each matching listing exactly
    once, every returned listing satisfies the filters, and the reported
    total equals the number of matches.
    """
    catalog = build_catalog(specs)
    search = make_search(catalog)
    params = {"sort": sort, "limit": str(limit)}
    if city is not None:
        params["city"] = city
    if price_max is not None:
        params["priceMax"] = str(price_max)

    predicate = build_predicate(SearchCriteria.from_params(params))
    expected = {d["_id"] for d in ListingFilter().filter([l.to_document() for l in catalog], predicate)}

    async def walk():
        seen = []
        first = await search.search({**params, "page": "1"})
        total_pages = first.pagination.total_pages
        assert first.pagination.total_items == len(expected)
        for page in range(1, total_pages + 1):
            result = await search.search({**params, "page": str(page)})
            assert len(result.properties) <= limit
            seen.extend(view.id for view in result.properties)
        return seen

    seen = asyncio.run(walk())

    assert len(seen) == len(set(seen))
    assert set(seen) == expected


@given(specs=listing_specs)
@settings(max_examples=50)
def test_price_sort_is_ordered(specs):
    """
    **Property: sort order**

    With price_asc every page is in non-decreasing price order.
    """
    search = make_search(build_catalog(specs))

    result = asyncio.run(search.search({"sort": "price_asc", "limit": "100"}))
    prices = [view.price for view in result.properties]

    assert prices == sorted(prices)


def test_search_annotates_promoter_and_favorites():
    user = make_user(favorites=["p2"])
    search = make_search([make_listing("p1", age_days=1), make_listing("p2")])

    result = asyncio.run(search.search({}, user=user))

    assert [view.id for view in result.properties] == ["p1", "p2"]
    assert result.properties[0].promoter.name == "Promoteur pr1"
    assert result.properties[0].promoter.phone == "+21671000000"
    assert [view.is_favorited for view in result.properties] == [False, True]


def test_anonymous_search_leaves_favorited_unset():
    search = make_search([make_listing("p1")])

    result = asyncio.run(search.search({}))

    assert result.properties[0].is_favorited is None


def test_fixed_city_overrides_parameter():
    search = make_search([make_listing("a", city="Sousse"), make_listing("b", city="Tunis")])

    result = asyncio.run(search.search({"city": "Tunis"}, city="Sousse"))

    assert [view.id for view in result.properties] == ["a"]


def test_text_search_orders_by_relevance():
    search = make_search([
        make_listing("once", title="Appartement vue mer", description="Calme", age_days=2),
        make_listing("twice", title="Villa mer", description="Accès direct à la mer"),
        make_listing("none", title="Bureau", description="Centre ville", age_days=3),
    ])

    result = asyncio.run(search.search({"q": "mer"}))

    assert [view.id for view in result.properties] == ["twice", "once"]


@pytest.mark.asyncio
async def test_authenticated_search_records_history():
    users = MemoryUserStore()
    user = make_user()
    await users.create(user)
    search = make_search([make_listing("p1", city="Tunis")], users=users)

    await search.search({"city": "Tunis", "sort": "PRICE_ASC", "page": "2"}, user=user)
    await search.search({}, user=user)

    stored = await users.find_by_id(user.id)
    assert len(stored.search_history) == 1
    entry = stored.search_history[0]
    assert entry.query == {"city": "Tunis", "sort": "price_asc"}
    assert entry.results_count == 1


@pytest.mark.asyncio
async def test_repeated_search_moves_to_front_of_history():
    users = MemoryUserStore()
    user = make_user()
    await users.create(user)
    search = make_search([], users=users)

    await search.search({"city": "Tunis"}, user=user)
    await search.search({"city": "Sousse"}, user=user)
    await search.search({"city": "Tunis"}, user=user)

    stored = await users.find_by_id(user.id)
    assert [entry.query["city"] for entry in stored.search_history] == ["Tunis", "Sousse"]


class OffsetCheckingStore(MemoryListingStore):
    """Rejects skips wider than a signed 64-bit integer and records the rest."""

    def __init__(self, listings=()):
        super().__init__(listings)
        self.skips = []

    async def find(self, predicate, sort=None, skip=0, limit=None):
        if skip >= 2 ** 63:
            raise OverflowError("MongoDB can only handle up to 8-byte ints")
        self.skips.append(skip)
        return await super().find(predicate, sort, skip, limit)


@pytest.mark.asyncio
async def test_huge_page_returns_empty_page():
    store = OffsetCheckingStore([make_listing("p1"), make_listing("p2")])
    search = ListingSearch(store, MemoryPromoterStore([make_promoter()]), settings=TEST_SETTINGS.search)

    result = await search.search({"page": "1e300"})

    assert result.properties == []
    assert result.pagination.total_items == 2
    assert result.pagination.current_page == MAX_PAGE
    assert not result.pagination.has_next
    assert store.skips == []


@pytest.mark.asyncio
async def test_page_past_the_end_skips_the_query():
    store = OffsetCheckingStore([make_listing("p1", age_days=1), make_listing("p2")])
    search = ListingSearch(store, MemoryPromoterStore([make_promoter()]), settings=TEST_SETTINGS.search)

    last = await search.search({"page": "2", "limit": "1"})
    beyond = await search.search({"page": "3", "limit": "1"})

    assert [view.id for view in last.properties] == ["p2"]
    assert beyond.properties == []
    assert store.skips == [1]
