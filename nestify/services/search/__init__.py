"""Search services"""

from .search_service import ListingSearch

__all__ = [
    "ListingSearch",
]
