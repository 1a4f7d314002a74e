"""
Tagged predicate structure for listing queries.

A predicate is a tree of immutable clauses. Leaves name a dotted document
field (the stored layout, e.g. ``location_id.city``) and carry their operands;
``And`` combines them. Store adapters compile the tree to their own query
language and the in-memory ListingFilter evaluates it directly.
"""

from dataclasses import dataclass
from typing import Any, Iterator, Optional, Tuple, Union

# Document field paths
ID = "_id"
VALIDATED = "validated"
TYPE = "type"
PRICE = "price"
SURFACE = "surface"
VIEWS = "views"
CREATED_AT = "created_at"
PROMOTER = "promoter_id"
CITY = "location_id.city"
COORDINATES = "location_id.coordinates"
ROOMS = "apartment_details_id.rooms"
FEATURES = "apartment_details_id.features"
IS_VEFA = "VEFA_details_id.is_vefa"
DELIVERY_DATE = "VEFA_details_id.delivery_date"
TEXT_FIELDS = ("title", "description")


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any


@dataclass(frozen=True)
class NotEquals:
    field: str
    value: Any


@dataclass(frozen=True)
class In:
    field: str
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class Range:
    """Inclusive bounds; a None bound is open."""
    field: str
    min: Optional[float] = None
    max: Optional[float] = None


@dataclass(frozen=True)
class Substring:
    """Case-insensitive literal substring match."""
    field: str
    text: str


@dataclass(frozen=True)
class ContainsAll:
    field: str
    values: Tuple[str, ...]


@dataclass(frozen=True)
class GeoRadius:
    field: str
    lat: float
    lng: float
    radius_km: float


@dataclass(frozen=True)
class TextSearch:
    text: str
    fields: Tuple[str, ...] = TEXT_FIELDS


@dataclass(frozen=True)
class DeliveryBefore:
    """Delivery month on or before (year, month)."""
    field: str
    year: int
    month: int


@dataclass(frozen=True)
class And:
    clauses: Tuple["Predicate", ...]


Predicate = Union[Equals, NotEquals, In, Range, Substring, ContainsAll,
                  GeoRadius, TextSearch, DeliveryBefore, And]


def iter_leaves(predicate: Predicate) -> Iterator[Predicate]:
    if isinstance(predicate, And):
        for clause in predicate.clauses:
            yield from iter_leaves(clause)
    else:
        yield predicate


def find_clause(predicate: Predicate, kind: type) -> Optional[Predicate]:
    """First leaf of the given clause type, or None."""
    for leaf in iter_leaves(predicate):
        if isinstance(leaf, kind):
            return leaf
    return None
