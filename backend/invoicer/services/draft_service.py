"""
Draft/publish lifecycle for shipments.

An edit moves from ephemeral form state (EDITING) to a persisted Draft
(SAVED) and finally to a canonical Shipment (PUBLISHED), or is thrown away
(DISCARDED). Publishing is an upsert keyed by the normalized invoice number,
so the same path serves new shipments, edits, and retries of a publish that
failed half-way.
"""
from __future__ import annotations

import enum
import logging
from typing import List, Optional, Union

from invoicer.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from invoicer.models import Shipment
from invoicer.models.shipment import normalize_invoice_number
from invoicer.schemas.shipment import BoxData, FormState
from invoicer.schemas.totals import Totals
from invoicer.services import boxes as box_ops
from invoicer.services.broadcaster import MasterDataBroadcaster, MasterDataCallback
from invoicer.services.local_store import LocalStore
from invoicer.services.totals import compute_totals

logger = logging.getLogger(__name__)


class EditState(str, enum.Enum):
    EDITING = "editing"
    SAVED = "saved"
    PUBLISHED = "published"
    DISCARDED = "discarded"


def _box_errors(boxes: List[BoxData]) -> List[str]:
    errors = []
    for i, box in enumerate(boxes):
        for dim in ("length", "width", "height"):
            if getattr(box, dim) < 0:
                errors.append(f"boxes[{i}].{dim}")
        for j, product in enumerate(box.products):
            for field in ("weight", "rate"):
                if getattr(product, field) < 0:
                    errors.append(f"boxes[{i}].products[{j}].{field}")
            if product.approx_quantity < 0:
                errors.append(f"boxes[{i}].products[{j}].approx_quantity")
    return errors


def validate_for_publish(form: FormState) -> None:
    errors = form.missing_required_fields() + _box_errors(form.boxes)
    if errors:
        raise ValidationError(errors)


def save_draft(store: LocalStore, form: FormState) -> str:
    """Upsert the Draft for this form; the first save generates its id."""
    with store.transaction("save draft"):
        draft = store.upsert_draft(form.draft_id, form.to_draft_data())
    form.draft_id = draft.id
    logger.info(f"Draft {draft.id} saved (invoice '{draft.invoice_number}')")
    return draft.id


def load_draft(store: LocalStore, draft_id: str) -> FormState:
    draft = store.get_draft(draft_id)
    if draft is None:
        raise NotFoundError(f"Draft {draft_id} not found")
    form = FormState.from_legacy(draft.draft_data or {})
    form.draft_id = draft.id
    return form


def form_from_shipment(shipment: Shipment) -> FormState:
    """Open a published shipment for editing."""
    form = FormState.model_validate(shipment)
    form.original_invoice_number = shipment.invoice_number
    return form


def _write_shipment(store: LocalStore, form: FormState, create_only: bool) -> Shipment:
    validate_for_publish(form)
    box_ops.assign_missing_ids(form.boxes)
    box_ops.renumber_boxes(form.boxes)

    target = normalize_invoice_number(form.invoice_number)
    original = form.original_invoice_number

    with store.transaction("publish shipment"):
        existing = store.get_shipment(target)
        if existing is not None and create_only:
            raise ConflictError(target, f"Shipment with invoice number '{target}' already exists")
        if original and original != target:
            # Renaming an edited shipment onto another shipment's number
            if existing is not None:
                raise ConflictError(
                    target, f"Cannot rename {original} to {target}: invoice number already in use"
                )
            existing = store.get_shipment(original)

        action = "updated" if existing is not None else "created"
        shipment = store.write_shipment(form.header(), form.boxes, existing)

        if form.draft_id:
            draft = store.get_draft(form.draft_id)
            if draft is not None:
                store.delete_draft(draft)

    logger.info(
        f"Shipment {shipment.invoice_number} {action} with {len(form.boxes)} boxes"
        + (f" from draft {form.draft_id}" if form.draft_id else "")
    )
    return shipment


def publish(store: LocalStore, source: Union[str, FormState]) -> Shipment:
    """
    Publish a draft (by id) or a form state as a Shipment.

    Creates the shipment, or updates it in place when one with the same
    normalized invoice number exists, then deletes the source draft in the
    same transaction.
    """
    form = load_draft(store, source) if isinstance(source, str) else source
    return _write_shipment(store, form, create_only=False)


def create_shipment(store: LocalStore, form: FormState) -> Shipment:
    """Insert a new shipment; fails with ConflictError if the invoice number is taken."""
    return _write_shipment(store, form, create_only=True)


def discard_draft(store: LocalStore, draft_id: str) -> None:
    with store.transaction("discard draft"):
        draft = store.get_draft(draft_id)
        if draft is None:
            raise NotFoundError(f"Draft {draft_id} not found")
        store.delete_draft(draft)
    logger.info(f"Draft {draft_id} discarded")


class ShipmentEditor:
    """
    One edit session over a shipment form.

    Subscribes to master data changes for its lifetime when a broadcaster is
    given; call close() (or use it as a context manager) to unsubscribe.
    """

    def __init__(
        self,
        store: LocalStore,
        form: Optional[FormState] = None,
        broadcaster: Optional[MasterDataBroadcaster] = None,
        on_master_data_changed: Optional[MasterDataCallback] = None,
    ):
        self.store = store
        self.form = form or FormState()
        self.state = EditState.SAVED if self.form.draft_id else EditState.EDITING
        self.shipment: Optional[Shipment] = None
        self._broadcaster = broadcaster
        self._callback = on_master_data_changed
        if broadcaster is not None and on_master_data_changed is not None:
            broadcaster.subscribe(on_master_data_changed)

    @classmethod
    def open_draft(cls, store: LocalStore, draft_id: str, **kwargs) -> "ShipmentEditor":
        return cls(store, load_draft(store, draft_id), **kwargs)

    @classmethod
    def open_shipment(cls, store: LocalStore, invoice_number: str, **kwargs) -> "ShipmentEditor":
        shipment = store.get_shipment(invoice_number)
        if shipment is None:
            raise NotFoundError(f"Shipment {invoice_number} not found")
        return cls(store, form_from_shipment(shipment), **kwargs)

    def _require_open(self, action: str) -> None:
        if self.state in (EditState.PUBLISHED, EditState.DISCARDED):
            raise InvalidStateError(f"Cannot {action} a {self.state.value} shipment edit")

    def add_box(self, **dimensions) -> BoxData:
        self._require_open("add a box to")
        return box_ops.add_box(self.form.boxes, **dimensions)

    def remove_box(self, index: int) -> BoxData:
        self._require_open("remove a box from")
        return box_ops.remove_box(self.form.boxes, index)

    def totals(self) -> Totals:
        return compute_totals(self.form.boxes)

    def save(self) -> str:
        self._require_open("save")
        draft_id = save_draft(self.store, self.form)
        self.state = EditState.SAVED
        return draft_id

    def publish(self) -> Shipment:
        self._require_open("publish")
        self.shipment = publish(self.store, self.form)
        self.state = EditState.PUBLISHED
        return self.shipment

    def discard(self) -> None:
        self._require_open("discard")
        if self.form.draft_id:
            discard_draft(self.store, self.form.draft_id)
        self.state = EditState.DISCARDED

    def close(self) -> None:
        if self._broadcaster is not None and self._callback is not None:
            self._broadcaster.unsubscribe(self._callback)
            self._callback = None

    def __enter__(self) -> "ShipmentEditor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
