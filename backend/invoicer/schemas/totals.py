"""
Totals schema.
"""
from decimal import Decimal
from pydantic import BaseModel


class Totals(BaseModel):
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    total_weight: Decimal
    total_items: int
