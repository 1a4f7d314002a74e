"""
Listing, promoter and user-account stores.

Every listing store offers ``find(predicate, sort, skip, limit)``,
``count(predicate)``, ``find_by_id``, ``find_by_ids``, ``increment_views``,
``scan(predicate)``, ``save`` and ``update_fields``. Promoter stores offer
``find_by_id``, ``find_by_ids``, ``find_verified``, ``count_verified``,
``verified_ids``, ``search`` and ``save``. User stores offer ``find_by_id``,
``find_by_email``, ``find_by_phone``, ``create`` and ``save``.
"""

from .memory import MemoryListingStore, MemoryPromoterStore, MemoryUserStore
from .mongo import MongoListingStore, MongoPromoterStore, compile_predicate
from .postgres import PostgresUserStore

__all__ = [
    'MemoryListingStore',
    'MemoryPromoterStore',
    'MemoryUserStore',
    'MongoListingStore',
    'MongoPromoterStore',
    'PostgresUserStore',
    'compile_predicate',
]
