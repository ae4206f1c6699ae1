from .shipment import (
    ProductData,
    BoxData,
    ShipmentHeader,
    FormState,
    ShipmentResponse,
    ShipmentStatusUpdate,
    ShipmentStats,
)
from .draft import DraftSummary, DraftResponse, DraftSaved
from .totals import Totals
from .master_data import (
    PartyCreate,
    PartyUpdate,
    PartyResponse,
    ProductTypeCreate,
    ProductTypeUpdate,
    ProductTypeResponse,
    FlowerTypeCreate,
    FlowerTypeUpdate,
    FlowerTypeResponse,
)
from .sync import SyncEntity, EntityCounts, MigrationStatus, SyncFailure, SyncResult

__all__ = [
    "ProductData",
    "BoxData",
    "ShipmentHeader",
    "FormState",
    "ShipmentResponse",
    "ShipmentStatusUpdate",
    "ShipmentStats",
    "DraftSummary",
    "DraftResponse",
    "DraftSaved",
    "Totals",
    "PartyCreate",
    "PartyUpdate",
    "PartyResponse",
    "ProductTypeCreate",
    "ProductTypeUpdate",
    "ProductTypeResponse",
    "FlowerTypeCreate",
    "FlowerTypeUpdate",
    "FlowerTypeResponse",
    "SyncEntity",
    "EntityCounts",
    "MigrationStatus",
    "SyncFailure",
    "SyncResult",
]
