"""
Master data schemas.
"""
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class PartyCreate(BaseModel):
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    landmark: Optional[str] = None


class PartyUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    landmark: Optional[str] = None


class PartyResponse(PartyCreate):
    id: str
    address: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductTypeCreate(BaseModel):
    name: str
    approx_quantity: int = 1
    has_stems: bool = False
    rate: float = 0.0
    category: str = ""
    genus_species_name: str = ""
    plant_family_name: str = ""
    specials: Optional[str] = None
    country_of_origin: str = ""


class ProductTypeUpdate(BaseModel):
    name: Optional[str] = None
    approx_quantity: Optional[int] = None
    has_stems: Optional[bool] = None
    rate: Optional[float] = None
    category: Optional[str] = None
    genus_species_name: Optional[str] = None
    plant_family_name: Optional[str] = None
    specials: Optional[str] = None
    country_of_origin: Optional[str] = None


class ProductTypeResponse(ProductTypeCreate):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FlowerTypeCreate(BaseModel):
    name: str
    description: str = ""


class FlowerTypeUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class FlowerTypeResponse(FlowerTypeCreate):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
