"""
In-process evaluation of listing predicates.

This module applies the tagged predicate structure to listing documents held
in memory, using the same semantics the document store applies to compiled
queries. Documents use the stored layout (``_id``, ``location_id`` ...).
"""

import re
import unicodedata
from typing import Any, Dict, Iterable, List, Optional

from . import predicate as p
from .delivery import parse_month
from .geo import haversine_km

_WORD = re.compile(r"\w+", re.UNICODE)
_MISSING = object()


def get_path(document: Dict[str, Any], path: str, default: Any = None) -> Any:
    """Resolve a dotted path in a nested document."""
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def _terms(text: Optional[str]) -> List[str]:
    if not text:
        return []
    decomposed = unicodedata.normalize("NFKD", text.lower())
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WORD.findall(folded)


class ListingFilter:
    """Filters listing documents against a predicate.

    Each clause type has a matching method; And requires all of its clauses.
    Listings lacking the field a clause inspects never match that clause.
    """

    def matches(self, document: Dict[str, Any], predicate: p.Predicate) -> bool:
        """Check whether a document satisfies the predicate.

        Args:
            document: Listing document in stored layout
            predicate: Predicate tree to evaluate

        Returns:
            True if every clause holds
        """
        if isinstance(predicate, p.And):
            return all(self.matches(document, clause) for clause in predicate.clauses)
        if isinstance(predicate, p.TextSearch):
            return self.text_score(document, predicate) > 0

        value = get_path(document, predicate.field, _MISSING)

        if isinstance(predicate, p.Equals):
            return value is not _MISSING and value == predicate.value
        if isinstance(predicate, p.NotEquals):
            return value is _MISSING or value != predicate.value
        if isinstance(predicate, p.In):
            return value is not _MISSING and value in predicate.values
        if isinstance(predicate, p.Range):
            return self._in_range(value, predicate.min, predicate.max)
        if isinstance(predicate, p.Substring):
            return isinstance(value, str) and predicate.text.lower() in value.lower()
        if isinstance(predicate, p.ContainsAll):
            return isinstance(value, list) and all(v in value for v in predicate.values)
        if isinstance(predicate, p.GeoRadius):
            return self._within_radius(value, predicate)
        if isinstance(predicate, p.DeliveryBefore):
            delivery = parse_month(value) if isinstance(value, str) else None
            return delivery is not None and delivery <= (predicate.year, predicate.month)

        raise TypeError(f"Unsupported predicate clause: {type(predicate).__name__}")

    def filter(self, documents: Iterable[Dict[str, Any]], predicate: p.Predicate) -> List[Dict[str, Any]]:
        """Keep the documents satisfying the predicate, in input order."""
        return [doc for doc in documents if self.matches(doc, predicate)]

    def text_score(self, document: Dict[str, Any], search: p.TextSearch) -> int:
        """Relevance of a document for a free-text search.

        Counts occurrences of the query terms in the searched fields, ignoring
        case and accents. Zero means no match.
        """
        wanted = set(_terms(search.text))
        if not wanted:
            return 0
        score = 0
        for field in search.fields:
            for term in _terms(get_path(document, field)):
                if term in wanted:
                    score += 1
        return score

    def _in_range(self, value: Any, low: Optional[float], high: Optional[float]) -> bool:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if low is not None and value < low:
            return False
        if high is not None and value > high:
            return False
        return True

    def _within_radius(self, coordinates: Any, geo: p.GeoRadius) -> bool:
        if not isinstance(coordinates, dict):
            return False
        lat, lng = coordinates.get("lat"), coordinates.get("lng")
        if lat is None or lng is None:
            return False
        return haversine_km(geo.lat, geo.lng, lat, lng) <= geo.radius_km
