"""
Shipment model - published invoice header with its boxes and products.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Float, Integer, Boolean, Date, Enum as SQLEnum
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
from invoicer.db.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def normalize_invoice_number(value) -> str:
    """Natural key form of an invoice number: trimmed, upper case."""
    return str(value or "").strip().upper()


class ShipmentStatus(str, enum.Enum):
    PENDING = "pending"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Shipment(Base):
    __tablename__ = "shipments"

    id = Column(String(36), primary_key=True, default=_new_id)
    invoice_number = Column(String, nullable=False, unique=True, index=True)  # always normalized
    invoice_title = Column(String, nullable=False, default="")
    status = Column(
        SQLEnum(
            ShipmentStatus,
            native_enum=False,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            validate_strings=True,
        ),
        default=ShipmentStatus.PENDING.value,
        nullable=False,
    )

    # Parties, referenced by master-data name
    shipper = Column(String, nullable=False)
    shipper_address = Column(String, nullable=False, default="")
    consignee = Column(String, nullable=False)
    consignee_address = Column(String, nullable=False, default="")
    client_ref = Column(String, nullable=False, default="")

    # Air waybill and flight details
    awb = Column(String, nullable=False, default="")
    master_awb = Column(String, nullable=False, default="")
    house_awb = Column(String, nullable=False, default="")
    flight_no = Column(String, nullable=False, default="")
    flight_date = Column(Date, nullable=True)
    discharge_airport = Column(String, nullable=False, default="")
    origin = Column(String, nullable=False, default="")
    destination = Column(String, nullable=False, default="")
    eta = Column(Date, nullable=True)

    invoice_date = Column(Date, nullable=True)
    date_of_issue = Column(Date, nullable=True)
    place_of_receipt = Column(String, nullable=False, default="")
    sgst_no = Column(String, nullable=False, default="")
    iec_code = Column(String, nullable=False, default="")
    freight_terms = Column(String, nullable=False, default="")
    gross_weight = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    boxes = relationship(
        "ShipmentBox",
        back_populates="shipment",
        cascade="all, delete-orphan",
        order_by="ShipmentBox.box_number",
    )


class ShipmentBox(Base):
    __tablename__ = "shipment_boxes"

    id = Column(String(36), primary_key=True, default=_new_id)
    shipment_id = Column(String(36), ForeignKey("shipments.id"), nullable=False, index=True)
    box_number = Column(Integer, nullable=False)  # derived, 1..N in display order
    length = Column(Float, nullable=False, default=0.0)
    width = Column(Float, nullable=False, default=0.0)
    height = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    shipment = relationship("Shipment", back_populates="boxes")
    products = relationship(
        "ShipmentProduct",
        back_populates="box",
        cascade="all, delete-orphan",
        order_by="ShipmentProduct.position",
    )

    @property
    def label(self) -> str:
        return f"Box No {self.box_number}"


class ShipmentProduct(Base):
    __tablename__ = "shipment_products"

    id = Column(String(36), primary_key=True, default=_new_id)
    box_id = Column(String(36), ForeignKey("shipment_boxes.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    type = Column(String, nullable=False, default="")
    description = Column(String, nullable=False, default="")
    flower_type = Column(String, nullable=False, default="LOOSE FLOWERS")
    has_stems = Column(Boolean, nullable=False, default=False)
    weight = Column(Float, nullable=False, default=0.0)  # kg
    rate = Column(Float, nullable=False, default=0.0)  # per kg
    approx_quantity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    box = relationship("ShipmentBox", back_populates="products")
