"""
Local store - authoritative persistence for shipments, drafts and master data.

Mutating methods only stage changes on the session; callers group them in
`transaction()` so that a failed step leaves nothing half-written.
"""
from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Set, Type

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from invoicer.exceptions import StorageError
from invoicer.models import (
    Consignee,
    Draft,
    FlowerType,
    ProductType,
    Setting,
    Shipment,
    ShipmentBox,
    ShipmentProduct,
    ShipmentStatus,
    Shipper,
)
from invoicer.models.master_data import normalize_master_name
from invoicer.models.shipment import normalize_invoice_number
from invoicer.schemas.shipment import BoxData, ShipmentHeader
from invoicer.schemas.sync import SyncEntity

logger = logging.getLogger(__name__)

MASTER_MODELS: Dict[SyncEntity, Type] = {
    SyncEntity.SHIPPERS: Shipper,
    SyncEntity.CONSIGNEES: Consignee,
    SyncEntity.PRODUCT_TYPES: ProductType,
    SyncEntity.FLOWER_TYPES: FlowerType,
}


class LocalStore:
    def __init__(self, db: Session):
        self.db = db

    # ---------- transactions ----------

    @contextmanager
    def transaction(self, action: str) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Local store failure during {action}: {e}")
            raise StorageError(f"Failed to {action}: {e}") from e
        except Exception:
            self.db.rollback()
            raise

    @contextmanager
    def _reading(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"Local store read failure during {action}: {e}")
            raise StorageError(f"Failed to {action}: {e}") from e

    # ---------- shipments ----------

    def _shipment_query(self):
        return self.db.query(Shipment).options(
            selectinload(Shipment.boxes).selectinload(ShipmentBox.products)
        )

    def get_shipment(self, invoice_number: str) -> Optional[Shipment]:
        key = normalize_invoice_number(invoice_number)
        if not key:
            return None
        with self._reading("load shipment"):
            return self._shipment_query().filter(Shipment.invoice_number == key).first()

    def list_shipments(self, status: Optional[str] = None, limit: Optional[int] = 50) -> List[Shipment]:
        with self._reading("list shipments"):
            query = self._shipment_query()
            if status:
                query = query.filter(Shipment.status == ShipmentStatus(status))
            query = query.order_by(Shipment.created_at.desc())
            if limit:
                query = query.limit(limit)
            return query.all()

    def search_shipments(self, text: str) -> List[Shipment]:
        pattern = f"%{text.strip()}%"
        with self._reading("search shipments"):
            return (
                self._shipment_query()
                .filter(
                    or_(
                        Shipment.shipper.ilike(pattern),
                        Shipment.consignee.ilike(pattern),
                        Shipment.awb.ilike(pattern),
                        Shipment.invoice_title.ilike(pattern),
                        Shipment.invoice_number.ilike(pattern),
                    )
                )
                .order_by(Shipment.created_at.desc())
                .all()
            )

    def shipment_stats(self) -> Dict[str, object]:
        with self._reading("compute shipment stats"):
            rows = self.db.query(Shipment.status, func.count(Shipment.id)).group_by(Shipment.status).all()
        by_status = {status.value: 0 for status in ShipmentStatus}
        for status, count in rows:
            by_status[ShipmentStatus(status).value] = count
        return {"total": sum(by_status.values()), "by_status": by_status}

    def write_shipment(
        self,
        header: ShipmentHeader,
        boxes: List[BoxData],
        existing: Optional[Shipment] = None,
    ) -> Shipment:
        """Stage an insert or in-place update of a shipment, replacing its boxes wholesale."""
        values = header.model_dump()
        values["invoice_number"] = normalize_invoice_number(values["invoice_number"])
        values["status"] = ShipmentStatus(values["status"])

        if existing is None:
            shipment = Shipment(**values)
            self.db.add(shipment)
        else:
            shipment = existing
            for key, value in values.items():
                setattr(shipment, key, value)
            # Old rows must be gone before reinserting boxes that keep their ids
            shipment.boxes.clear()
            self.db.flush()

        for box in boxes:
            box_row = ShipmentBox(
                id=box.id,
                box_number=box.box_number,
                length=box.length,
                width=box.width,
                height=box.height,
            )
            for position, product in enumerate(box.products):
                box_row.products.append(
                    ShipmentProduct(
                        id=product.id,
                        position=position,
                        type=product.type,
                        description=product.description,
                        flower_type=product.flower_type,
                        has_stems=product.has_stems,
                        weight=product.weight,
                        rate=product.rate,
                        approx_quantity=product.approx_quantity,
                    )
                )
            shipment.boxes.append(box_row)
        self.db.flush()
        return shipment

    def set_shipment_status(self, shipment: Shipment, status: ShipmentStatus) -> None:
        shipment.status = ShipmentStatus(status)

    def delete_shipment(self, shipment: Shipment) -> None:
        self.db.delete(shipment)

    def next_invoice_number(self, prefix: str, width: int) -> str:
        prefix = prefix.upper()
        with self._reading("compute next invoice number"):
            rows = (
                self.db.query(Shipment.invoice_number)
                .filter(Shipment.invoice_number.like(f"{prefix}%"))
                .all()
            )
        highest = 0
        for (number,) in rows:
            match = re.fullmatch(rf"{re.escape(prefix)}(\d+)", number)
            if match:
                highest = max(highest, int(match.group(1)))
        return f"{prefix}{str(highest + 1).zfill(width)}"

    # ---------- drafts ----------

    def get_draft(self, draft_id: str) -> Optional[Draft]:
        with self._reading("load draft"):
            return self.db.query(Draft).filter(Draft.id == draft_id).first()

    def list_drafts(self) -> List[Draft]:
        with self._reading("list drafts"):
            return self.db.query(Draft).order_by(Draft.updated_at.desc()).all()

    def upsert_draft(self, draft_id: Optional[str], draft_data: dict) -> Draft:
        draft = self.get_draft(draft_id) if draft_id else None
        if draft is None:
            draft = Draft(id=draft_id) if draft_id else Draft()
            self.db.add(draft)
        draft.invoice_number = draft_data.get("invoice_number") or ""
        draft.shipper_name = draft_data.get("shipper") or ""
        draft.consignee_name = draft_data.get("consignee") or ""
        draft.draft_data = draft_data
        self.db.flush()
        return draft

    def delete_draft(self, draft: Draft) -> None:
        self.db.delete(draft)

    # ---------- master data ----------

    def list_master(self, model: Type) -> List:
        with self._reading(f"list {model.__tablename__}"):
            return self.db.query(model).order_by(model.name).all()

    def get_master(self, model: Type, record_id: str):
        with self._reading(f"load {model.__tablename__}"):
            return self.db.query(model).filter(model.id == record_id).first()

    def get_master_by_name(self, model: Type, name: str):
        """Case-insensitive lookup; matches the sync natural key, so non-ASCII case folds too."""
        key = normalize_master_name(name)
        with self._reading(f"load {model.__tablename__}"):
            records = self.db.query(model).all()
        return next((r for r in records if normalize_master_name(r.name) == key), None)

    def add(self, record) -> None:
        self.db.add(record)
        self.db.flush()

    def delete(self, record) -> None:
        self.db.delete(record)

    # ---------- sync support ----------

    def count(self, kind: SyncEntity) -> int:
        model = Shipment if kind == SyncEntity.SHIPMENTS else MASTER_MODELS[kind]
        with self._reading(f"count {kind.value}"):
            return self.db.query(func.count(model.id)).scalar() or 0

    def shipment_keys(self) -> Set[str]:
        """Invoice numbers of all shipments, without loading boxes or products."""
        with self._reading("list shipment keys"):
            return {number for (number,) in self.db.query(Shipment.invoice_number).all()}

    def records_for(self, kind: SyncEntity) -> List:
        """All committed records of one synchronized class."""
        if kind == SyncEntity.SHIPMENTS:
            return self.list_shipments(limit=None)
        return self.list_master(MASTER_MODELS[kind])

    # ---------- settings ----------

    def get_setting(self, key: str) -> Optional[str]:
        with self._reading("load setting"):
            row = self.db.query(Setting).filter(Setting.key == key).first()
        return row.value if row else None

    def set_setting(self, key: str, value: str) -> None:
        row = self.db.query(Setting).filter(Setting.key == key).first()
        if row is None:
            self.db.add(Setting(key=key, value=value))
        else:
            row.value = value
