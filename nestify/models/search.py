"""Search, favorites and statistics response models"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .listing import ListingView


class PaginationMeta(BaseModel):
    """Pagination metadata for a bounded result page"""
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next: bool
    has_prev: bool


class ListingPage(BaseModel):
    """Search results with metadata"""
    properties: List[ListingView]
    pagination: PaginationMeta


class FavoriteToggle(BaseModel):
    """Outcome of adding or removing a favorite"""
    property_id: str
    status: str  # added, already_favorited, removed, not_favorited
    total_favorites: int


class CountEntry(BaseModel):
    name: str
    count: int


class ValueRange(BaseModel):
    min: float = 0
    max: float = 0
    avg: int = 0


class FavoritesStats(BaseModel):
    total: int
    by_type: Dict[str, int] = {}
    by_city: Dict[str, int] = {}
    by_rooms: Dict[str, int] = {}
    price_range: ValueRange = ValueRange()
    surface_range: ValueRange = ValueRange()


class FavoriteExportRecord(BaseModel):
    id: str
    title: str
    price: float
    surface: float
    type: str
    location: Dict[str, Any]
    details: Optional[Dict[str, Any]] = None
    promoter_name: Optional[str] = None
    promoter_phone: Optional[str] = None
    promoter_email: Optional[str] = None
    url: str


class FavoritesExport(BaseModel):
    user_name: str
    user_email: str
    export_date: datetime
    total: int
    favorites: List[FavoriteExportRecord]


class StatisticsReport(BaseModel):
    """Aggregate figures over validated listings"""
    total_properties: int = 0
    avg_price: float = 0
    avg_surface: float = 0
    total_views: int = 0
    property_types: List[CountEntry] = []
    top_cities: List[CountEntry] = []


class ListingList(BaseModel):
    properties: List[ListingView]


class ViewCount(BaseModel):
    views: int


class FavoritesCheckRequest(BaseModel):
    property_ids: Optional[List[str]] = Field(None, alias="propertyIds")

    class Config:
        populate_by_name = True


class FavoritesCheck(BaseModel):
    favorites: Dict[str, bool]


class MessageResponse(BaseModel):
    message: str
