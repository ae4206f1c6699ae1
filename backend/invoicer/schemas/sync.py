"""
Sync schemas - migration status and sync results.
"""
from __future__ import annotations

import enum
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from invoicer.exceptions import PartialSyncError


class SyncEntity(str, enum.Enum):
    """Synchronized entity classes, in upload order (dependencies first)."""

    SHIPPERS = "shippers"
    CONSIGNEES = "consignees"
    PRODUCT_TYPES = "product_types"
    FLOWER_TYPES = "flower_types"
    SHIPMENTS = "shipments"


SYNC_ORDER = list(SyncEntity)


class EntityCounts(BaseModel):
    shippers: int = 0
    consignees: int = 0
    product_types: int = 0
    flower_types: int = 0
    shipments: int = 0

    def get(self, kind: SyncEntity) -> int:
        return getattr(self, kind.value)

    def add(self, kind: SyncEntity, amount: int = 1) -> None:
        setattr(self, kind.value, self.get(kind) + amount)


class MigrationStatus(BaseModel):
    has_migrated: bool
    needs_migration: bool
    local_only_shipments: int = 0
    local: EntityCounts
    remote: EntityCounts
    remote_available: bool = True
    # set once a sync has completed with no failures
    data_migrated: bool = False
    last_synced_at: Optional[datetime] = None


class SyncFailure(BaseModel):
    kind: SyncEntity
    natural_key: str
    error: str


class SyncResult(BaseModel):
    uploaded: EntityCounts = Field(default_factory=EntityCounts)
    failed: EntityCounts = Field(default_factory=EntityCounts)
    errors: List[SyncFailure] = []
    skipped: bool = False  # nothing local to sync, remote never contacted
    cancelled: bool = False
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @classmethod
    def noop(cls) -> "SyncResult":
        now = datetime.utcnow()
        return cls(skipped=True, started_at=now, finished_at=now)

    @property
    def has_failures(self) -> bool:
        return any(self.failed.get(kind) for kind in SyncEntity)

    def failed_kinds(self) -> List[SyncEntity]:
        return [kind for kind in SYNC_ORDER if self.failed.get(kind)]

    def succeeded_kinds(self) -> List[SyncEntity]:
        return [kind for kind in SYNC_ORDER if not self.failed.get(kind)]

    def partial_error(self) -> Optional[PartialSyncError]:
        if not self.has_failures:
            return None
        return PartialSyncError(
            failed={kind.value: self.failed.get(kind) for kind in self.failed_kinds()},
            succeeded=[kind.value for kind in self.succeeded_kinds()],
        )
