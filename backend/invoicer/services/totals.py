"""
Totals calculator - derives invoice money figures from box/product data.

Totals are never stored; callers recompute them whenever boxes change.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional

from invoicer.config.invoice_settings import get_discount, get_tax_rate
from invoicer.schemas.totals import Totals


def _to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _products_of(box):
    products = box.get("products") if isinstance(box, dict) else getattr(box, "products", None)
    return products or []


def _field(product, name: str):
    if isinstance(product, dict):
        return product.get(name)
    return getattr(product, name, None)


def compute_totals(
    boxes: Iterable,
    tax_rate: Optional[Decimal] = None,
    discount: Optional[Decimal] = None,
) -> Totals:
    """
    Compute subtotal, tax, discount and total for a list of boxes.

    Boxes may be BoxData schemas, ORM ShipmentBox rows or plain dicts with a
    ``products`` list; products need ``weight`` and ``rate``.
    subtotal = sum(weight * rate), tax = subtotal * tax_rate,
    total = subtotal + tax - discount.
    """
    rate = _to_decimal(tax_rate) if tax_rate is not None else get_tax_rate()
    discount_amount = _to_decimal(discount) if discount is not None else get_discount()

    subtotal = Decimal("0")
    total_weight = Decimal("0")
    total_items = 0
    for box in boxes:
        for product in _products_of(box):
            weight = _to_decimal(_field(product, "weight"))
            subtotal += weight * _to_decimal(_field(product, "rate"))
            total_weight += weight
            total_items += 1

    tax = subtotal * rate
    return Totals(
        subtotal=subtotal,
        tax=tax,
        discount=discount_amount,
        total=subtotal + tax - discount_amount,
        total_weight=total_weight,
        total_items=total_items,
    )
