"""Listing data models"""

import math
from pydantic import BaseModel, Field, computed_field, field_validator
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional


class PropertyType(str, Enum):
    """Property type as stored in the listing collection"""
    APARTMENT = "Appartement"
    HOUSE = "Maison"
    VILLA = "Villa"
    LAND = "Terrain"
    COMMERCIAL = "Commercial"
    OFFICE = "Bureau"

    @classmethod
    def parse(cls, value) -> Optional["PropertyType"]:
        """Match an enum name or stored label, case-insensitively. None if unknown."""
        if value is None:
            return None
        text = str(value).strip().lower()
        for member in cls:
            if text in (member.name.lower(), member.value.lower()):
                return member
        return None


class ConstructionProgress(str, Enum):
    """Off-plan construction progress"""
    PLANNING = "En planification"
    CONSTRUCTION = "En cours de construction"
    FINISHING = "En finition"
    DELIVERED = "Livré"


class PropertyFeature(str, Enum):
    """Apartment feature vocabulary"""
    GARAGE = "Garage"
    ELEVATOR = "Ascenseur"
    POOL = "Piscine"
    AIR_CONDITIONING = "Climatisation"
    CENTRAL_HEATING = "Chauffage central"
    SECURITY = "Sécurité"
    EQUIPPED_KITCHEN = "Cuisine équipée"
    BALCONY = "Balcon"
    TERRACE = "Terrasse"
    GARDEN = "Jardin"
    CELLAR = "Cave"
    VISITOR_PARKING = "Parking visiteurs"
    CONCIERGE = "Concierge"
    INTERCOM = "Interphone"
    DOUBLE_GLAZING = "Double vitrage"
    ARMORED_DOOR = "Porte blindée"
    CUPBOARDS = "Placards"
    DRESSING = "Dressing"
    FIREPLACE = "Cheminée"
    LAUNDRY = "Buanderie"


def price_per_area(price: float, surface: float) -> Optional[int]:
    """
    Derived price per square meter.

    Rounds half-up; unset when the surface is not positive.
    """
    if surface is None or surface <= 0:
        return None
    return int(math.floor(price / surface + 0.5))


class GeoPoint(BaseModel):
    """Coordinates, matched by field name"""
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class Location(BaseModel):
    """Listing location"""
    address: Optional[str] = None
    city: str
    district: Optional[str] = None
    region: Optional[str] = None
    country: str = "Tunisie"
    coordinates: Optional[GeoPoint] = None


class PaymentInstallment(BaseModel):
    """One step of an off-plan payment schedule"""
    percentage: float
    description: Optional[str] = None
    due_date: Optional[str] = Field(None, alias="dueDate")

    class Config:
        populate_by_name = True


class VefaDetails(BaseModel):
    """Off-plan sale (VEFA) details"""
    is_vefa: bool = False
    delivery_date: Optional[str] = None  # e.g. "avril 2025"
    construction_progress: Optional[ConstructionProgress] = None
    payment_schedule: List[PaymentInstallment] = []
    guarantees: List[str] = []

    class Config:
        use_enum_values = True


class ApartmentDetails(BaseModel):
    """Apartment layout and amenities"""
    rooms: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    floor: Optional[int] = None
    total_floors: Optional[int] = None
    parking: Optional[bool] = None
    elevator: Optional[bool] = None
    terrace: Optional[bool] = None
    garden: Optional[bool] = None
    features: List[PropertyFeature] = []

    class Config:
        use_enum_values = True


class Listing(BaseModel):
    """Complete listing document"""
    id: str = Field(alias="_id")
    url: str
    title: str
    description: str
    price: float = Field(ge=0)
    surface: float = Field(ge=0)
    property_type: PropertyType = Field(alias="type")
    location: Location = Field(alias="location_id")
    vefa: Optional[VefaDetails] = Field(None, alias="VEFA_details_id")
    apartment: Optional[ApartmentDetails] = Field(None, alias="apartment_details_id")
    images: List[str] = []
    views: int = Field(0, ge=0)
    validated: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    promoter_id: str

    class Config:
        populate_by_name = True
        validate_assignment = True
        use_enum_values = True

    @field_validator("id", "promoter_id", mode="before")
    @classmethod
    def _stringify_reference(cls, value):
        # Identifiers may come back from the store as ObjectId
        return value if isinstance(value, str) else str(value)

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @computed_field(alias="pricePerM2")
    @property
    def price_per_area(self) -> Optional[int]:
        return price_per_area(self.price, self.surface)

    def to_document(self) -> dict:
        """Serialize to the stored document layout."""
        return self.model_dump(by_alias=True, mode="python")


class PromoterSummary(BaseModel):
    """Promoter fields embedded in listing responses"""
    id: str
    name: str
    verified: bool = False
    phone: Optional[str] = None


class ListingView(Listing):
    """API response model for listings"""
    promoter: Optional[PromoterSummary] = None
    is_favorited: Optional[bool] = None


class ListingUpdate(BaseModel):
    """Admin changes to a listing"""
    price: Optional[float] = Field(None, ge=0)
    surface: Optional[float] = Field(None, ge=0)
    validated: Optional[bool] = None
