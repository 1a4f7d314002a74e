"""Promoter data models"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional


class PromoterContact(BaseModel):
    """Promoter contact details"""
    phone: str
    email: Optional[str] = None
    website: Optional[str] = None
    addresses: List[str] = []
    additional_phones: List[str] = []


class PromoterStatistics(BaseModel):
    """Listing counts, recomputed on demand from owned listings"""
    total_properties: int = Field(0, alias="totalProperties")
    sold_properties: int = Field(0, alias="soldProperties")
    active_properties: int = Field(0, alias="activeProperties")

    class Config:
        populate_by_name = True


class Promoter(BaseModel):
    """Real-estate developer or agency"""
    id: str = Field(alias="_id")
    name: str
    contact: PromoterContact
    verified: bool = False
    rating: float = Field(0, ge=0, le=5)
    total_projects: int = Field(0, alias="totalProjects")
    description: Optional[str] = None
    logo: Optional[str] = None
    established_year: Optional[int] = Field(None, alias="establishedYear")
    statistics: PromoterStatistics = Field(default_factory=PromoterStatistics)

    class Config:
        populate_by_name = True

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        return value if isinstance(value, str) else str(value)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class PromoterPage(BaseModel):
    """Verified promoters listing"""
    promoters: List[Promoter]
    total: int
