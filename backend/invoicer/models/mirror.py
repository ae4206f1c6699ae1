"""
Remote mirror tables.

Each synchronized entity class is stored as one document per natural key,
the way the cloud backup keeps them. Shipment documents embed their boxes
and products.
"""
from sqlalchemy import Column, String, DateTime, JSON
from datetime import datetime
from invoicer.db.database import MirrorBase


class _MirrorDocument:
    natural_key = Column(String, primary_key=True)
    payload = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class MirrorShipper(_MirrorDocument, MirrorBase):
    __tablename__ = "mirror_shippers"


class MirrorConsignee(_MirrorDocument, MirrorBase):
    __tablename__ = "mirror_consignees"


class MirrorProductType(_MirrorDocument, MirrorBase):
    __tablename__ = "mirror_product_types"


class MirrorFlowerType(_MirrorDocument, MirrorBase):
    __tablename__ = "mirror_flower_types"


class MirrorShipment(_MirrorDocument, MirrorBase):
    __tablename__ = "mirror_shipments"
