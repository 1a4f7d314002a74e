"""Listing filtering: criteria parsing, predicate construction and evaluation."""

from .criteria import SearchCriteria
from .builder import build_predicate, build_similar_predicate
from .listing_filter import ListingFilter
from .geo import haversine_km
from .delivery import parse_month

__all__ = [
    'SearchCriteria',
    'build_predicate',
    'build_similar_predicate',
    'ListingFilter',
    'haversine_km',
    'parse_month',
]
