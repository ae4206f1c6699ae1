"""
Shipment schemas.

FormState is the typed form of the ad hoc draft/form dictionaries: header
fields, boxes with products, and the UI step state. `FormState.from_legacy`
is the single place where external data (old drafts, camelCase payloads,
partially filled forms) is normalized into it.
"""
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from invoicer.config.invoice_settings import get_default_flower_type, get_default_freight_terms
from invoicer.models.shipment import ShipmentStatus, normalize_invoice_number

REQUIRED_HEADER_FIELDS = ("invoice_number", "shipper", "consignee")

# Form keys that describe the editor, not the shipment
UI_STATE_KEYS = (
    "showShipmentSummary",
    "isBasicInfoExpanded",
    "isFlightDetailsExpanded",
    "isItemsExpanded",
    "isPricingExpanded",
)


def _blank_to_zero(value):
    if value is None:
        return 0
    if isinstance(value, str):
        value = value.strip()
        return value or 0
    return value


def _coerce_date(value) -> Optional[date]:
    """Accept dates, datetimes, ISO strings and epoch milliseconds; unparsable values become None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        return datetime.utcfromtimestamp(value / 1000).date()
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


class ProductData(BaseModel):
    id: Optional[str] = None
    type: str = ""
    description: str = ""
    flower_type: str = Field(default_factory=get_default_flower_type)
    has_stems: bool = False
    weight: float = 0.0
    rate: float = 0.0
    approx_quantity: int = 0

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

    @field_validator("weight", "rate", mode="before")
    @classmethod
    def _numbers(cls, v):
        return _blank_to_zero(v)

    @field_validator("approx_quantity", mode="before")
    @classmethod
    def _quantity(cls, v):
        return int(float(_blank_to_zero(v)))

    @field_validator("type", "description", mode="before")
    @classmethod
    def _text(cls, v):
        return "" if v is None else str(v).strip()

    @field_validator("flower_type", mode="before")
    @classmethod
    def _flower_type(cls, v):
        text = "" if v is None else str(v).strip()
        return text or get_default_flower_type()


class BoxData(BaseModel):
    id: Optional[str] = None
    box_number: int = 0
    length: float = 0.0
    width: float = 0.0
    height: float = 0.0
    products: List[ProductData] = []

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

    @field_validator("length", "width", "height", mode="before")
    @classmethod
    def _numbers(cls, v):
        return _blank_to_zero(v)

    @field_validator("box_number", mode="before")
    @classmethod
    def _box_number(cls, v):
        # Legacy drafts store labels such as "Box No 3"
        if isinstance(v, str):
            digits = re.findall(r"\d+", v)
            return int(digits[-1]) if digits else 0
        return v or 0

    @property
    def label(self) -> str:
        return f"Box No {self.box_number}"


class ShipmentHeader(BaseModel):
    invoice_number: str = ""
    invoice_title: str = ""
    status: ShipmentStatus = ShipmentStatus.PENDING
    shipper: str = ""
    shipper_address: str = ""
    consignee: str = ""
    consignee_address: str = ""
    client_ref: str = ""
    awb: str = ""
    master_awb: str = ""
    house_awb: str = ""
    flight_no: str = ""
    flight_date: Optional[date] = None
    discharge_airport: str = ""
    origin: str = ""
    destination: str = ""
    eta: Optional[date] = None
    invoice_date: Optional[date] = None
    date_of_issue: Optional[date] = None
    place_of_receipt: str = ""
    sgst_no: str = ""
    iec_code: str = ""
    freight_terms: str = Field(default_factory=get_default_freight_terms)
    gross_weight: float = 0.0

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

    @field_validator(
        "invoice_title", "shipper", "shipper_address", "consignee", "consignee_address",
        "client_ref", "flight_no", "discharge_airport", "origin", "destination",
        "place_of_receipt", "sgst_no", "iec_code", "freight_terms",
        mode="before",
    )
    @classmethod
    def _text(cls, v):
        return "" if v is None else str(v).strip()

    @field_validator("invoice_number", "awb", "master_awb", "house_awb", mode="before")
    @classmethod
    def _upper(cls, v):
        return normalize_invoice_number(v)

    @field_validator("flight_date", "eta", "invoice_date", "date_of_issue", mode="before")
    @classmethod
    def _dates(cls, v):
        return _coerce_date(v)

    @field_validator("gross_weight", mode="before")
    @classmethod
    def _gross_weight(cls, v):
        return _blank_to_zero(v)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        return v or ShipmentStatus.PENDING

    def missing_required_fields(self) -> List[str]:
        return [name for name in REQUIRED_HEADER_FIELDS if not getattr(self, name)]


class FormState(ShipmentHeader):
    """In-progress edit of one shipment, as held by the presentation layer."""

    boxes: List[BoxData] = []
    draft_id: Optional[str] = None
    # Invoice number of the shipment being edited, when editing a published one
    original_invoice_number: Optional[str] = None
    current_step: int = 0
    ui_state: Dict[str, Any] = {}

    @field_validator("original_invoice_number", mode="before")
    @classmethod
    def _original(cls, v):
        return normalize_invoice_number(v) or None

    @classmethod
    def from_legacy(cls, data: Dict[str, Any]) -> "FormState":
        """Normalize a loose form/draft dictionary into a FormState."""
        if isinstance(data.get("draftData"), dict):
            outer = data
            data = dict(data["draftData"])
            data.setdefault("draftId", outer.get("id"))
        else:
            data = dict(data)

        if "AWB" in data and not data.get("awb"):
            data["awb"] = data.pop("AWB")

        ui_state: Dict[str, Any] = {}
        for key in ("uiState", "ui_state"):
            ui_state.update(data.pop(key, None) or {})
        for key in UI_STATE_KEYS:
            if key in data:
                ui_state[key] = data.pop(key)
        data["ui_state"] = ui_state

        return cls.model_validate(data)

    def header(self) -> ShipmentHeader:
        return ShipmentHeader.model_validate(self.model_dump(include=set(ShipmentHeader.model_fields)))

    def to_draft_data(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude={"draft_id"})


class ProductResponse(ProductData):
    id: str


class BoxResponse(BoxData):
    id: str
    products: List[ProductResponse] = []


class ShipmentResponse(ShipmentHeader):
    id: str
    boxes: List[BoxResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ShipmentStatusUpdate(BaseModel):
    status: ShipmentStatus


class ShipmentStats(BaseModel):
    total: int = 0
    by_status: Dict[str, int] = {}
