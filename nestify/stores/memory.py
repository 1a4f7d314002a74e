"""
In-process stores.

Used by the test suite and by ``STORE_BACKEND=memory`` for local runs. They
keep insertion order as their native order and hand out copies so callers
never mutate stored state in place.
"""

import copy
import logging
from typing import AsyncIterator, Dict, Iterable, List, Optional, Sequence, Union

from nestify.error_handling import ConflictError
from nestify.filtering import ListingFilter
from nestify.filtering import predicate as p
from nestify.filtering.listing_filter import get_path
from nestify.models import Listing, Promoter, User
from nestify.filtering.sorting import SortKey

logger = logging.getLogger(__name__)


def _sort_keys(sort: Union[SortKey, Sequence[SortKey], None]) -> List[SortKey]:
    if sort is None:
        return []
    if isinstance(sort, SortKey):
        return [sort]
    return list(sort)


class MemoryListingStore:
    """Listing store backed by a dict of stored-layout documents"""

    def __init__(self, listings: Iterable[Listing] = ()):
        self._documents: Dict[str, dict] = {}
        self._filter = ListingFilter()
        for listing in listings:
            self._documents[listing.id] = listing.to_document()

    def _ordered(self, documents: List[dict], predicate: p.Predicate, sort) -> List[dict]:
        search = p.find_clause(predicate, p.TextSearch)
        if search is not None:
            return sorted(documents, key=lambda d: self._filter.text_score(d, search), reverse=True)
        # Stable sorts applied from the last key to the first
        for key in reversed(_sort_keys(sort)):
            documents = sorted(
                documents,
                key=lambda d: (get_path(d, key.field) is not None, get_path(d, key.field)),
                reverse=key.descending,
            )
        return documents

    async def find(
        self,
        predicate: p.Predicate,
        sort: Union[SortKey, Sequence[SortKey], None] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Listing]:
        matched = self._filter.filter(self._documents.values(), predicate)
        ordered = self._ordered(matched, predicate, sort)
        end = None if limit is None else skip + limit
        return [Listing.model_validate(copy.deepcopy(doc)) for doc in ordered[skip:end]]

    async def count(self, predicate: p.Predicate) -> int:
        return len(self._filter.filter(self._documents.values(), predicate))

    async def find_by_id(self, listing_id: str) -> Optional[Listing]:
        document = self._documents.get(listing_id)
        return Listing.model_validate(copy.deepcopy(document)) if document else None

    async def find_by_ids(self, listing_ids: Sequence[str], validated_only: bool = True) -> List[Listing]:
        wanted = set(listing_ids)
        found = []
        for listing_id, document in self._documents.items():
            if listing_id in wanted and (document.get(p.VALIDATED) or not validated_only):
                found.append(Listing.model_validate(copy.deepcopy(document)))
        return found

    async def increment_views(self, listing_id: str) -> Optional[int]:
        document = self._documents.get(listing_id)
        if document is None or not document.get(p.VALIDATED):
            return None
        document[p.VIEWS] = document.get(p.VIEWS, 0) + 1
        return document[p.VIEWS]

    async def scan(self, predicate: p.Predicate) -> AsyncIterator[Listing]:
        for document in self._filter.filter(list(self._documents.values()), predicate):
            yield Listing.model_validate(copy.deepcopy(document))

    async def save(self, listing: Listing) -> Listing:
        self._documents[listing.id] = listing.to_document()
        return listing

    async def update_fields(self, listing_id: str, fields: dict) -> bool:
        document = self._documents.get(listing_id)
        if document is None:
            return False
        document.update(copy.deepcopy(fields))
        return True


class MemoryPromoterStore:
    """Promoter store backed by a dict"""

    def __init__(self, promoters: Iterable[Promoter] = ()):
        self._promoters: Dict[str, Promoter] = {}
        for promoter in promoters:
            self._promoters[promoter.id] = promoter.model_copy(deep=True)

    async def find_by_id(self, promoter_id: str) -> Optional[Promoter]:
        promoter = self._promoters.get(promoter_id)
        return promoter.model_copy(deep=True) if promoter else None

    async def find_by_ids(self, promoter_ids: Sequence[str]) -> List[Promoter]:
        wanted = set(promoter_ids)
        return [pr.model_copy(deep=True) for pid, pr in self._promoters.items() if pid in wanted]

    async def find_verified(self, skip: int = 0, limit: Optional[int] = None) -> List[Promoter]:
        verified = [pr for pr in self._promoters.values() if pr.verified]
        verified.sort(key=lambda pr: pr.rating, reverse=True)
        end = None if limit is None else skip + limit
        return [pr.model_copy(deep=True) for pr in verified[skip:end]]

    async def count_verified(self) -> int:
        return sum(1 for pr in self._promoters.values() if pr.verified)

    async def verified_ids(self) -> List[str]:
        return [pid for pid, pr in self._promoters.items() if pr.verified]

    async def search(self, text: str, limit: Optional[int] = None) -> List[Promoter]:
        needle = text.lower()
        found = [
            pr.model_copy(deep=True)
            for pr in self._promoters.values()
            if needle in pr.name.lower()
            or needle in pr.contact.phone.lower()
            or (pr.contact.email and needle in pr.contact.email.lower())
        ]
        return found if limit is None else found[:limit]

    async def save(self, promoter: Promoter) -> Promoter:
        self._promoters[promoter.id] = promoter.model_copy(deep=True)
        return promoter


class MemoryUserStore:
    """User store with the same uniqueness rules as the users table"""

    def __init__(self, users: Iterable[User] = ()):
        self._users: Dict[str, User] = {}
        for user in users:
            self._users[user.id] = user.model_copy(deep=True)

    def _check_unique(self, user: User) -> None:
        for other in self._users.values():
            if other.id == user.id:
                continue
            if other.email == user.email:
                raise ConflictError("Email already registered")
            if other.phone == user.phone:
                raise ConflictError("Phone number already registered")

    async def find_by_id(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def find_by_email(self, email: str) -> Optional[User]:
        for user in self._users.values():
            if user.email == email:
                return user.model_copy(deep=True)
        return None

    async def find_by_phone(self, phone: str) -> Optional[User]:
        for user in self._users.values():
            if user.phone == phone:
                return user.model_copy(deep=True)
        return None

    async def create(self, user: User) -> User:
        self._check_unique(user)
        self._users[user.id] = user.model_copy(deep=True)
        logger.debug(f"Stored user {user.id}")
        return user

    async def save(self, user: User) -> User:
        self._check_unique(user)
        self._users[user.id] = user.model_copy(deep=True)
        return user
