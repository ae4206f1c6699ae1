"""
Master data models - reference lists for dropdowns.

Shipments and products refer to these by name, not by foreign key.
"""
from sqlalchemy import Column, String, DateTime, Float, Integer, Boolean
import uuid
from datetime import datetime
from invoicer.db.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def normalize_master_name(value) -> str:
    """Natural key form of a master data name: trimmed, casefolded."""
    return str(value or "").strip().casefold()


def format_address(
    phone=None,
    address_line1=None,
    address_line2=None,
    city=None,
    state=None,
    pincode=None,
    landmark=None,
) -> str:
    """Build the single-line address stored alongside the structured parts."""
    parts = []
    if phone:
        parts.append(f"Ph: {phone}")
    for value in (address_line1, address_line2, city, state, pincode):
        if value:
            parts.append(value)
    if landmark:
        parts.append(f"({landmark})")
    return ", ".join(parts)


class _PartyMixin:
    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String, nullable=False, unique=True, index=True)
    address = Column(String, nullable=False, default="")
    phone = Column(String, nullable=True)
    address_line1 = Column(String, nullable=True)
    address_line2 = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    pincode = Column(String, nullable=True)
    landmark = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Shipper(_PartyMixin, Base):
    __tablename__ = "master_shippers"


class Consignee(_PartyMixin, Base):
    __tablename__ = "master_consignees"


class ProductType(Base):
    __tablename__ = "master_product_types"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String, nullable=False, unique=True, index=True)
    approx_quantity = Column(Integer, nullable=False, default=1)  # pieces per kg
    has_stems = Column(Boolean, nullable=False, default=False)
    rate = Column(Float, nullable=False, default=0.0)
    category = Column(String, nullable=False, default="")
    genus_species_name = Column(String, nullable=False, default="")
    plant_family_name = Column(String, nullable=False, default="")
    specials = Column(String, nullable=True)
    country_of_origin = Column(String, nullable=False, default="")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class FlowerType(Base):
    __tablename__ = "master_flower_types"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String, nullable=False, unique=True, index=True)
    description = Column(String, nullable=False, default="")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
