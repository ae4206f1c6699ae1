"""
Draft schemas.
"""
from pydantic import BaseModel
from datetime import datetime
from typing import Optional, Dict, Any


class DraftSummary(BaseModel):
    id: str
    invoice_number: str = ""
    shipper_name: str = ""
    consignee_name: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DraftResponse(DraftSummary):
    draft_data: Dict[str, Any] = {}


class DraftSaved(BaseModel):
    id: str
