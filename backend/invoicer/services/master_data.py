"""
Master data service - shippers, consignees, product types and flower types.

Every successful change is announced through the broadcaster so open edit
sessions can refresh their dropdowns.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Type

from pydantic import BaseModel

from invoicer.exceptions import ConflictError, NotFoundError, ValidationError
from invoicer.models.master_data import format_address, normalize_master_name
from invoicer.schemas.sync import SyncEntity
from invoicer.services.boxes import suggest_approx_quantity
from invoicer.services.broadcaster import MasterDataBroadcaster, MasterDataChange
from invoicer.services.local_store import MASTER_MODELS, LocalStore

logger = logging.getLogger(__name__)

_ADDRESS_PARTS = ("phone", "address_line1", "address_line2", "city", "state", "pincode", "landmark")


class MasterDataService:
    def __init__(self, store: LocalStore, broadcaster: Optional[MasterDataBroadcaster] = None):
        self.store = store
        self.broadcaster = broadcaster

    @staticmethod
    def _model(kind: SyncEntity) -> Type:
        if kind not in MASTER_MODELS:
            raise ValueError(f"{kind.value} is not a master data class")
        return MASTER_MODELS[kind]

    def _announce(self, kind: SyncEntity, action: str, record_id: str, name: str) -> None:
        if self.broadcaster is not None:
            self.broadcaster.notify(MasterDataChange(kind=kind, action=action, record_id=record_id, name=name))

    @staticmethod
    def _prepare(kind: SyncEntity, values: Dict, current=None) -> Dict:
        if "name" in values:
            values["name"] = (values["name"] or "").strip()
            if not values["name"]:
                raise ValidationError(["name"])
        if kind in (SyncEntity.SHIPPERS, SyncEntity.CONSIGNEES) and not values.get("address"):
            parts = {
                part: values.get(part, getattr(current, part, None) if current else None)
                for part in _ADDRESS_PARTS
            }
            formatted = format_address(**parts)
            if formatted or current is None:
                values["address"] = formatted
            else:
                values.pop("address", None)
        return values

    def list(self, kind: SyncEntity) -> List:
        return self.store.list_master(self._model(kind))

    def get(self, kind: SyncEntity, record_id: str):
        record = self.store.get_master(self._model(kind), record_id)
        if record is None:
            raise NotFoundError(f"{kind.value} record {record_id} not found")
        return record

    def create(self, kind: SyncEntity, data: BaseModel):
        model = self._model(kind)
        values = self._prepare(kind, data.model_dump())
        if self.store.get_master_by_name(model, values["name"]) is not None:
            raise ConflictError(values["name"], f"{kind.value} entry '{values['name']}' already exists")

        record = model(**values)
        with self.store.transaction(f"create {kind.value} entry"):
            self.store.add(record)
        logger.info(f"Created {kind.value} entry '{record.name}'")
        self._announce(kind, "created", record.id, record.name)
        return record

    def update(self, kind: SyncEntity, record_id: str, data: BaseModel):
        model = self._model(kind)
        record = self.get(kind, record_id)
        values = self._prepare(kind, data.model_dump(exclude_unset=True), current=record)
        new_name = values.get("name")
        if new_name and normalize_master_name(new_name) != normalize_master_name(record.name):
            clash = self.store.get_master_by_name(model, new_name)
            if clash is not None and clash.id != record.id:
                raise ConflictError(new_name, f"{kind.value} entry '{new_name}' already exists")

        with self.store.transaction(f"update {kind.value} entry"):
            for key, value in values.items():
                setattr(record, key, value)
        logger.info(f"Updated {kind.value} entry '{record.name}'")
        self._announce(kind, "updated", record.id, record.name)
        return record

    def delete(self, kind: SyncEntity, record_id: str) -> None:
        record = self.get(kind, record_id)
        name = record.name
        with self.store.transaction(f"delete {kind.value} entry"):
            self.store.delete(record)
        logger.info(f"Deleted {kind.value} entry '{name}'")
        self._announce(kind, "deleted", record_id, name)

    def approx_quantity_for(self, product_type_name: str, weight: float) -> int:
        """Approximate piece count for a product line of the given type and weight."""
        product_type = self.store.get_master_by_name(self._model(SyncEntity.PRODUCT_TYPES), product_type_name)
        if product_type is None:
            return 0
        return suggest_approx_quantity(weight, product_type.approx_quantity)
