"""
Predicate construction.

Pure functions from normalized criteria (or a source listing) to the tagged
predicate tree. Every predicate built here requires ``validated == true``.
"""

from typing import Optional

from nestify.models.listing import Listing
from .criteria import SearchCriteria
from . import predicate as p

SIMILARITY_TOLERANCE = 0.2


def _range(field: str, low: Optional[float], high: Optional[float]) -> Optional[p.Range]:
    if low is None and high is None:
        return None
    return p.Range(field, low, high)


def build_predicate(criteria: SearchCriteria) -> p.And:
    """Build the listing predicate for a set of search criteria."""
    clauses = [p.Equals(p.VALIDATED, True)]

    if criteria.city:
        clauses.append(p.Substring(p.CITY, criteria.city))
    if criteria.property_type is not None:
        clauses.append(p.Equals(p.TYPE, criteria.property_type.value))

    for clause in (
        _range(p.PRICE, criteria.price_min, criteria.price_max),
        _range(p.SURFACE, criteria.surface_min, criteria.surface_max),
    ):
        if clause is not None:
            clauses.append(clause)

    if criteria.rooms is not None:
        clauses.append(p.Equals(p.ROOMS, criteria.rooms))
    if criteria.features:
        clauses.append(p.ContainsAll(p.FEATURES, tuple(criteria.features)))
    if criteria.is_vefa is not None:
        clauses.append(p.Equals(p.IS_VEFA, criteria.is_vefa))
    if criteria.delivery_before is not None:
        year, month = criteria.delivery_before
        clauses.append(p.DeliveryBefore(p.DELIVERY_DATE, year, month))
    if criteria.has_geo:
        clauses.append(p.GeoRadius(p.COORDINATES, criteria.lat, criteria.lng, criteria.radius_km))
    if criteria.q:
        clauses.append(p.TextSearch(criteria.q))

    return p.And(tuple(clauses))


def build_similar_predicate(source: Listing, tolerance: float = SIMILARITY_TOLERANCE) -> p.And:
    """
    Listings comparable to source: same type and city, price and surface
    within the tolerance band, excluding the source itself.
    """
    low, high = 1 - tolerance, 1 + tolerance
    return p.And((
        p.Equals(p.VALIDATED, True),
        p.NotEquals(p.ID, source.id),
        p.Equals(p.TYPE, source.property_type),
        p.Equals(p.CITY, source.location.city),
        p.Range(p.PRICE, source.price * low, source.price * high),
        p.Range(p.SURFACE, source.surface * low, source.surface * high),
    ))
