"""
Unit Tests for form/draft normalization
Run: pytest backend/tests/test_schemas.py -v
"""
from datetime import date

from invoicer.schemas.shipment import FormState


class TestFromLegacy:

    def test_camel_case_payload(self):
        form = FormState.from_legacy({
            "invoiceNumber": " ks1001 ",
            "shipper": "Sample Flower Exports",
            "consignee": "Sample Flower Imports",
            "flightDate": "2024-03-05T00:00:00.000",
            "boxes": [{"boxNumber": "Box No 2", "length": "", "products": [{"weight": "2.5", "rate": None}]}],
        })
        assert form.invoice_number == "KS1001"
        assert form.flight_date == date(2024, 3, 5)
        box = form.boxes[0]
        assert box.box_number == 2
        assert box.length == 0
        assert box.products[0].weight == 2.5
        assert box.products[0].rate == 0
        assert box.products[0].flower_type == "LOOSE FLOWERS"

    def test_unwraps_draft_record(self):
        form = FormState.from_legacy({
            "id": "draft-1",
            "draftData": {"invoiceNumber": "KS7", "AWB": "176-1"},
        })
        assert form.draft_id == "draft-1"
        assert form.invoice_number == "KS7"
        assert form.awb == "176-1"

    def test_ui_keys_move_to_ui_state(self):
        form = FormState.from_legacy({"invoiceNumber": "KS8", "isItemsExpanded": True, "currentStep": 2})
        assert form.ui_state == {"isItemsExpanded": True}
        assert form.current_step == 2

    def test_ui_keys_merge_with_camel_case_ui_state(self):
        form = FormState.from_legacy({"invoiceNumber": "ks1", "uiState": {"a": 1}, "isItemsExpanded": True})
        assert form.ui_state == {"a": 1, "isItemsExpanded": True}

    def test_unparsable_date_becomes_none(self):
        form = FormState.from_legacy({"eta": "next tuesday"})
        assert form.eta is None

    def test_epoch_millis_date(self):
        form = FormState.from_legacy({"invoiceDate": 1709596800000})
        assert form.invoice_date == date(2024, 3, 5)

    def test_missing_required_fields(self):
        form = FormState.from_legacy({"shipper": "  "})
        assert form.missing_required_fields() == ["invoice_number", "shipper", "consignee"]


class TestDraftData:

    def test_round_trips_through_draft_data(self, make_form):
        form = make_form(draft_id="abc", ui_state={"showShipmentSummary": False})
        data = form.to_draft_data()
        assert "draft_id" not in data
        restored = FormState.from_legacy(data)
        assert restored.invoice_number == form.invoice_number
        assert restored.ui_state == {"showShipmentSummary": False}
        assert len(restored.boxes[0].products) == 2
