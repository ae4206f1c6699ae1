"""
Unit Tests for the totals calculator
Run: pytest backend/tests/test_totals.py -v
"""
from decimal import Decimal

import pytest

from invoicer.schemas.shipment import BoxData, ProductData
from invoicer.services.totals import compute_totals


class TestComputeTotals:

    def test_worked_example(self, sample_boxes):
        totals = compute_totals(sample_boxes)
        assert totals.subtotal == Decimal("632.5")
        assert totals.tax == Decimal("63.25")
        assert totals.discount == Decimal("0")
        assert totals.total == Decimal("695.75")
        assert totals.total_weight == Decimal("45.5")
        assert totals.total_items == 2

    def test_empty_boxes(self):
        totals = compute_totals([])
        assert totals.subtotal == 0
        assert totals.total == 0
        assert totals.total_items == 0

    def test_box_without_products(self):
        totals = compute_totals([BoxData(box_number=1)])
        assert totals.total_items == 0
        assert totals.total_weight == 0

    def test_products_across_boxes(self):
        boxes = [
            BoxData(products=[ProductData(weight=1.1, rate=3.3)]),
            BoxData(products=[ProductData(weight=2.2, rate=0.1), ProductData(weight=0.7, rate=10)]),
        ]
        totals = compute_totals(boxes)
        assert totals.subtotal == Decimal("1.1") * Decimal("3.3") + Decimal("2.2") * Decimal("0.1") + Decimal("0.7") * Decimal("10")
        assert totals.total_items == 3

    def test_accepts_plain_dicts(self):
        boxes = [{"products": [{"weight": 25.5, "rate": 15.0}, {"weight": 20, "rate": 12.5}]}]
        assert compute_totals(boxes).total == Decimal("695.75")

    def test_is_pure(self, sample_boxes):
        before = [box.model_dump() for box in sample_boxes]
        first = compute_totals(sample_boxes)
        second = compute_totals(sample_boxes)
        assert first == second
        assert [box.model_dump() for box in sample_boxes] == before

    @pytest.mark.parametrize("discount", ["0", "5", "12.34"])
    def test_total_identity_holds_exactly(self, sample_boxes, discount):
        totals = compute_totals(sample_boxes, discount=Decimal(discount))
        assert totals.total == totals.subtotal + totals.tax - totals.discount

    def test_custom_tax_rate(self, sample_boxes):
        totals = compute_totals(sample_boxes, tax_rate=Decimal("0.05"))
        assert totals.tax == Decimal("31.625")
        assert totals.total == Decimal("664.125")
