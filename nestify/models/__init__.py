"""Data models for the Nestify API"""

from .listing import (
    Listing,
    ListingView,
    ListingUpdate,
    Location,
    GeoPoint,
    VefaDetails,
    ApartmentDetails,
    PaymentInstallment,
    PromoterSummary,
    PropertyType,
    PropertyFeature,
    ConstructionProgress,
    price_per_area,
)
from .promoter import Promoter, PromoterContact, PromoterStatistics, PromoterPage
from .user import (
    User,
    UserRole,
    PublicUser,
    UserPreferences,
    NumericRange,
    SearchHistoryEntry,
    RegisterRequest,
    LoginRequest,
    RefreshRequest,
    ProfileUpdate,
    PreferencesUpdate,
    LocationUpdate,
    PasswordChange,
    DeactivateRequest,
    TokenPair,
    AuthResponse,
    UserStats,
    ProfileResponse,
    normalize_phone,
)
from .search import (
    PaginationMeta,
    ListingPage,
    FavoriteToggle,
    CountEntry,
    ValueRange,
    FavoritesStats,
    FavoriteExportRecord,
    FavoritesExport,
    StatisticsReport,
    ListingList,
    ViewCount,
    FavoritesCheckRequest,
    FavoritesCheck,
    MessageResponse,
)

__all__ = [
    "Listing",
    "ListingView",
    "ListingUpdate",
    "Location",
    "GeoPoint",
    "VefaDetails",
    "ApartmentDetails",
    "PaymentInstallment",
    "PromoterSummary",
    "PropertyType",
    "PropertyFeature",
    "ConstructionProgress",
    "price_per_area",
    "Promoter",
    "PromoterContact",
    "PromoterStatistics",
    "PromoterPage",
    "User",
    "UserRole",
    "PublicUser",
    "UserPreferences",
    "NumericRange",
    "SearchHistoryEntry",
    "RegisterRequest",
    "LoginRequest",
    "RefreshRequest",
    "ProfileUpdate",
    "PreferencesUpdate",
    "LocationUpdate",
    "PasswordChange",
    "DeactivateRequest",
    "TokenPair",
    "AuthResponse",
    "UserStats",
    "ProfileResponse",
    "normalize_phone",
    "PaginationMeta",
    "ListingPage",
    "FavoriteToggle",
    "CountEntry",
    "ValueRange",
    "FavoritesStats",
    "FavoriteExportRecord",
    "FavoritesExport",
    "StatisticsReport",
    "ListingList",
    "ViewCount",
    "FavoritesCheckRequest",
    "FavoritesCheck",
    "MessageResponse",
]
