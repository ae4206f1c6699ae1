"""
Box list operations for the shipment editor.

Box numbers are derived from list position; every structural change ends
with renumber_boxes so they always read 1..N.
"""
from __future__ import annotations

import uuid
from typing import List, Optional

from invoicer.config.invoice_settings import get_default_box_dimensions
from invoicer.schemas.shipment import BoxData, ProductData


def new_id() -> str:
    return str(uuid.uuid4())


def renumber_boxes(boxes: List[BoxData]) -> List[BoxData]:
    for index, box in enumerate(boxes, start=1):
        box.box_number = index
    return boxes


def add_box(
    boxes: List[BoxData],
    length: Optional[float] = None,
    width: Optional[float] = None,
    height: Optional[float] = None,
    products: Optional[List[ProductData]] = None,
) -> BoxData:
    """Append a new box with default dimensions where none are given."""
    dims = get_default_box_dimensions()
    box = BoxData(
        id=new_id(),
        length=dims["length"] if length is None else length,
        width=dims["width"] if width is None else width,
        height=dims["height"] if height is None else height,
        products=list(products or []),
    )
    boxes.append(box)
    renumber_boxes(boxes)
    return box


def remove_box(boxes: List[BoxData], index: int) -> BoxData:
    if index < 0 or index >= len(boxes):
        raise IndexError(f"No box at position {index}")
    removed = boxes.pop(index)
    renumber_boxes(boxes)
    return removed


def assign_missing_ids(boxes: List[BoxData]) -> List[BoxData]:
    """Give a stable id to every box and product that lacks one."""
    for box in boxes:
        if not box.id:
            box.id = new_id()
        for product in box.products:
            if not product.id:
                product.id = new_id()
    return boxes


def suggest_approx_quantity(weight: float, per_kg_quantity: Optional[int]) -> int:
    """Approximate piece count for a product line from its product type."""
    if not weight or not per_kg_quantity:
        return 0
    return int(round(weight * per_kg_quantity))
