"""
Remote mirror client - the backup/multi-device copy of the local store.

The contract is small: count documents of a class, list their
natural keys, and upsert documents by natural key. Upserts are idempotent,
so re-sending a record that already exists updates it in place.
"""
from __future__ import annotations

import logging
from typing import Dict, Set, Type

from sqlalchemy import func, inspect, text
from sqlalchemy.orm import sessionmaker

from invoicer.db.database import MirrorBase
from invoicer.models import (
    MirrorConsignee,
    MirrorFlowerType,
    MirrorProductType,
    MirrorShipment,
    MirrorShipper,
)
from invoicer.models.master_data import normalize_master_name
from invoicer.models.shipment import normalize_invoice_number
from invoicer.schemas.master_data import FlowerTypeResponse, PartyResponse, ProductTypeResponse
from invoicer.schemas.shipment import ShipmentResponse
from invoicer.schemas.sync import SyncEntity

logger = logging.getLogger(__name__)

MIRROR_MODELS: Dict[SyncEntity, Type] = {
    SyncEntity.SHIPPERS: MirrorShipper,
    SyncEntity.CONSIGNEES: MirrorConsignee,
    SyncEntity.PRODUCT_TYPES: MirrorProductType,
    SyncEntity.FLOWER_TYPES: MirrorFlowerType,
    SyncEntity.SHIPMENTS: MirrorShipment,
}

_DOCUMENT_SCHEMAS = {
    SyncEntity.SHIPPERS: PartyResponse,
    SyncEntity.CONSIGNEES: PartyResponse,
    SyncEntity.PRODUCT_TYPES: ProductTypeResponse,
    SyncEntity.FLOWER_TYPES: FlowerTypeResponse,
    SyncEntity.SHIPMENTS: ShipmentResponse,
}


def natural_key(kind: SyncEntity, record) -> str:
    """Business identifier used to match a local record with its remote copy."""
    if kind == SyncEntity.SHIPMENTS:
        return normalize_invoice_number(record.invoice_number)
    return normalize_master_name(record.name)


def to_document(kind: SyncEntity, record) -> dict:
    """Serialize a local record; shipment documents embed boxes and products."""
    return _DOCUMENT_SCHEMAS[kind].model_validate(record).model_dump(mode="json")


class RemoteMirror:
    """Interface of a remote mirror; see SqlRemoteMirror for the SQL-backed one."""

    def ping(self) -> bool:
        raise NotImplementedError

    def ensure_schema(self) -> None:
        """Prepare the remote for writes; called by sync before the first upload."""

    def count(self, kind: SyncEntity) -> int:
        raise NotImplementedError

    def existing_keys(self, kind: SyncEntity) -> Set[str]:
        raise NotImplementedError

    def upsert_many(self, kind: SyncEntity, documents: Dict[str, dict]) -> int:
        raise NotImplementedError


class SqlRemoteMirror(RemoteMirror):
    """Remote mirror stored in a SQL database reached through SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self._schema_ready = False

    def ping(self) -> bool:
        db = self.session_factory()
        try:
            db.execute(text("SELECT 1"))
            return True
        finally:
            db.close()

    def ensure_schema(self) -> None:
        if self._schema_ready:
            return
        db = self.session_factory()
        try:
            MirrorBase.metadata.create_all(bind=db.get_bind())
            self._schema_ready = True
        finally:
            db.close()

    def _has_table(self, db, model) -> bool:
        # Reads never create tables; a mirror nobody has synced to is empty
        return self._schema_ready or inspect(db.get_bind()).has_table(model.__tablename__)

    def count(self, kind: SyncEntity) -> int:
        model = MIRROR_MODELS[kind]
        db = self.session_factory()
        try:
            if not self._has_table(db, model):
                return 0
            return db.query(func.count(model.natural_key)).scalar() or 0
        finally:
            db.close()

    def existing_keys(self, kind: SyncEntity) -> Set[str]:
        model = MIRROR_MODELS[kind]
        db = self.session_factory()
        try:
            if not self._has_table(db, model):
                return set()
            return {key for (key,) in db.query(model.natural_key).all()}
        finally:
            db.close()

    def upsert_many(self, kind: SyncEntity, documents: Dict[str, dict]) -> int:
        """Write one batch in a single remote transaction."""
        self.ensure_schema()
        model = MIRROR_MODELS[kind]
        db = self.session_factory()
        try:
            for key, payload in documents.items():
                db.merge(model(natural_key=key, payload=payload))
            db.commit()
            logger.debug(f"Upserted {len(documents)} {kind.value} documents to remote mirror")
            return len(documents)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
