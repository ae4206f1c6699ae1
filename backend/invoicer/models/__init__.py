from .shipment import Shipment, ShipmentBox, ShipmentProduct, ShipmentStatus
from .draft import Draft
from .master_data import Shipper, Consignee, ProductType, FlowerType
from .setting import Setting
from .mirror import (
    MirrorShipper,
    MirrorConsignee,
    MirrorProductType,
    MirrorFlowerType,
    MirrorShipment,
)

__all__ = [
    "Shipment",
    "ShipmentBox",
    "ShipmentProduct",
    "ShipmentStatus",
    "Draft",
    "Shipper",
    "Consignee",
    "ProductType",
    "FlowerType",
    "Setting",
    "MirrorShipper",
    "MirrorConsignee",
    "MirrorProductType",
    "MirrorFlowerType",
    "MirrorShipment",
]
