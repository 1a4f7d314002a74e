"""
Search criteria parsed from flat query parameters.

Parsing is permissive: a malformed number, boolean, date or property type
leaves the corresponding criterion unset instead of failing the request.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from nestify.models.listing import PropertyType
from .delivery import parse_month, month_label


def first_value(value: Any) -> Optional[str]:
    """Single value from a scalar or repeated parameter."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_float(value: Any) -> Optional[float]:
    text = first_value(value)
    if text is None:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_int(value: Any) -> Optional[int]:
    text = first_value(value)
    if text is None:
        return None
    try:
        return int(text)
    except ValueError:
        number = parse_float(text)
        if number is not None and number.is_integer():
            return int(number)
        return None


def parse_bool(value: Any) -> Optional[bool]:
    text = first_value(value)
    if text is None:
        return None
    text = text.lower()
    if text in ("true", "1", "yes", "on"):
        return True
    if text in ("false", "0", "no", "off"):
        return False
    return None


def parse_list(value: Any) -> List[str]:
    """Comma-separated and/or repeated values, trimmed, deduplicated in order."""
    if value is None:
        return []
    raw = value if isinstance(value, (list, tuple)) else [value]
    items = []
    for chunk in raw:
        if chunk is None:
            continue
        for part in str(chunk).split(","):
            part = part.strip()
            if part and part not in items:
                items.append(part)
    return items


@dataclass
class SearchCriteria:
    """Normalized listing filters"""
    city: Optional[str] = None
    property_type: Optional[PropertyType] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    surface_min: Optional[float] = None
    surface_max: Optional[float] = None
    rooms: Optional[int] = None
    features: List[str] = field(default_factory=list)
    is_vefa: Optional[bool] = None
    delivery_before: Optional[Tuple[int, int]] = None
    q: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    radius_km: Optional[float] = None

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "SearchCriteria":
        """
        Build criteria from request parameters.

        Values may be strings or lists of strings (repeated parameters).
        """
        criteria = cls(
            city=first_value(params.get("city")),
            property_type=PropertyType.parse(first_value(params.get("type"))),
            price_min=parse_float(params.get("priceMin")),
            price_max=parse_float(params.get("priceMax")),
            surface_min=parse_float(params.get("surfaceMin")),
            surface_max=parse_float(params.get("surfaceMax")),
            rooms=parse_int(params.get("rooms")),
            features=parse_list(params.get("features")),
            is_vefa=parse_bool(params.get("isVefa")),
            delivery_before=parse_month(first_value(params.get("deliveryDateBefore"))),
            q=first_value(params.get("q")),
            lat=parse_float(params.get("lat")),
            lng=parse_float(params.get("lng")),
            radius_km=parse_float(params.get("radius")),
        )
        if not criteria.has_geo:
            criteria.lat = criteria.lng = criteria.radius_km = None
        return criteria

    @property
    def has_geo(self) -> bool:
        """True when lat, lng and radius are all present and in range."""
        return (
            self.lat is not None and -90 <= self.lat <= 90
            and self.lng is not None and -180 <= self.lng <= 180
            and self.radius_km is not None and self.radius_km > 0
        )

    def to_query(self) -> Dict[str, Any]:
        """Normalized parameters that are set, keyed like the request."""
        query = {
            "city": self.city,
            "type": self.property_type.value if self.property_type else None,
            "priceMin": self.price_min,
            "priceMax": self.price_max,
            "surfaceMin": self.surface_min,
            "surfaceMax": self.surface_max,
            "rooms": self.rooms,
            "features": list(self.features) or None,
            "isVefa": self.is_vefa,
            "deliveryDateBefore": month_label(*self.delivery_before) if self.delivery_before else None,
            "q": self.q,
            "lat": self.lat,
            "lng": self.lng,
            "radius": self.radius_km,
        }
        return {key: value for key, value in query.items() if value is not None}
