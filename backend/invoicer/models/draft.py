"""
Draft model - unpublished snapshot of an in-progress shipment form.
"""
from sqlalchemy import Column, String, DateTime, JSON
import uuid
from datetime import datetime
from invoicer.db.database import Base


class Draft(Base):
    __tablename__ = "drafts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Denormalized from draft_data for listing without parsing the snapshot
    invoice_number = Column(String, nullable=False, default="")
    shipper_name = Column(String, nullable=False, default="")
    consignee_name = Column(String, nullable=False, default="")

    draft_data = Column(JSON, nullable=False, default=dict)  # header + boxes + products + UI step state
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
