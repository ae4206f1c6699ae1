"""
Sync engine - one-directional reconciliation of the local store into the remote mirror.

Sync only runs when the user asks for it. Records are matched by natural key
(invoice number for shipments, name for master data) and uploaded with
idempotent upserts, master data first so that shipments never reference
names the remote has not seen yet. A failure in one class is recorded and
the next class is still processed.
"""
from __future__ import annotations

import logging
import time
from datetime import datetime
from threading import Event
from typing import Dict, Iterable, List, Optional, Tuple

from invoicer.db.database import settings
from invoicer.exceptions import OfflineError
from invoicer.schemas.sync import (
    SYNC_ORDER,
    EntityCounts,
    MigrationStatus,
    SyncEntity,
    SyncFailure,
    SyncResult,
)
from invoicer.services.connectivity import ConnectivityProbe
from invoicer.services.local_store import LocalStore
from invoicer.services.remote_mirror import RemoteMirror, natural_key, to_document

logger = logging.getLogger(__name__)

DATA_MIGRATED_KEY = "data_migrated"
LAST_SYNCED_AT_KEY = "last_synced_at"


def chunked(items: List[Tuple[str, dict]], size: int) -> Iterable[List[Tuple[str, dict]]]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


class SyncEngine:
    def __init__(
        self,
        store: LocalStore,
        mirror: Optional[RemoteMirror],
        probe: ConnectivityProbe,
        batch_size: Optional[int] = None,
    ):
        self.store = store
        self.mirror = mirror
        self.probe = probe
        self.batch_size = max(1, batch_size or settings.sync_batch_size)

    def _local_counts(self) -> EntityCounts:
        counts = EntityCounts()
        for kind in SYNC_ORDER:
            counts.add(kind, self.store.count(kind))
        return counts

    def _last_synced_at(self) -> Optional[datetime]:
        value = self.store.get_setting(LAST_SYNCED_AT_KEY)
        return datetime.fromisoformat(value) if value else None

    def compute_migration_status(self) -> MigrationStatus:
        """
        Compare local and remote record counts.

        has_migrated is true only when no local shipment is missing from the
        remote. When the remote cannot be reached every local shipment is
        treated as unverified.
        """
        local = self._local_counts()
        remote = EntityCounts()
        remote_available = False
        local_only = local.shipments

        if self.mirror is not None and self.probe.is_online():
            try:
                for kind in SYNC_ORDER:
                    remote.add(kind, self.mirror.count(kind))
                remote_keys = self.mirror.existing_keys(SyncEntity.SHIPMENTS)
                local_only = len(self.store.shipment_keys() - remote_keys)
                remote_available = True
            except Exception as e:
                logger.warning(f"Could not read remote mirror counts: {e}")
                remote = EntityCounts()
                local_only = local.shipments

        has_migrated = local_only == 0
        return MigrationStatus(
            has_migrated=has_migrated,
            needs_migration=not has_migrated,
            local_only_shipments=local_only,
            local=local,
            remote=remote,
            remote_available=remote_available,
            data_migrated=self.store.get_setting(DATA_MIGRATED_KEY) == "true",
            last_synced_at=self._last_synced_at(),
        )

    def _documents_to_upload(self, kind: SyncEntity, result: SyncResult) -> List[Tuple[str, dict]]:
        remote_keys = self.mirror.existing_keys(kind)
        pending: Dict[str, dict] = {}
        seen = set()
        for record in self.store.records_for(kind):
            key = natural_key(kind, record)
            if key in seen:
                logger.warning(f"Skipping duplicate {kind.value} record with key '{key}'")
                result.failed.add(kind)
                result.errors.append(
                    SyncFailure(kind=kind, natural_key=key, error="duplicate natural key in local store")
                )
                continue
            seen.add(key)
            if key in remote_keys:
                continue
            try:
                pending[key] = to_document(kind, record)
            except Exception as e:
                logger.warning(f"Failed to serialize {kind.value} '{key}': {e}")
                result.failed.add(kind)
                result.errors.append(SyncFailure(kind=kind, natural_key=key, error=str(e)))
        return list(pending.items())

    def _upload_batch(self, kind: SyncEntity, batch: List[Tuple[str, dict]], result: SyncResult) -> None:
        try:
            result.uploaded.add(kind, self.mirror.upsert_many(kind, dict(batch)))
            return
        except Exception as e:
            logger.warning(f"Batch of {len(batch)} {kind.value} failed ({e}), retrying one by one")

        for key, document in batch:
            try:
                result.uploaded.add(kind, self.mirror.upsert_many(kind, {key: document}))
            except Exception as e:
                logger.warning(f"Failed to sync {kind.value} '{key}': {e}")
                result.failed.add(kind)
                result.errors.append(SyncFailure(kind=kind, natural_key=key, error=str(e)))

    def _sync_kind(self, kind: SyncEntity, result: SyncResult, cancel: Optional[Event]) -> bool:
        """Upload one entity class; returns False when cancelled mid-way."""
        try:
            documents = self._documents_to_upload(kind, result)
        except Exception as e:
            pending = self.store.count(kind)
            logger.warning(f"Could not prepare {kind.value} for sync: {e}")
            result.failed.add(kind, max(pending, 1))
            result.errors.append(SyncFailure(kind=kind, natural_key="*", error=str(e)))
            return True

        for batch in chunked(documents, self.batch_size):
            if cancel is not None and cancel.is_set():
                return False
            self._upload_batch(kind, batch, result)

        logger.info(
            f"Synced {kind.value}: {result.uploaded.get(kind)} uploaded, "
            f"{result.failed.get(kind)} failed"
        )
        return True

    def sync(self, cancel: Optional[Event] = None) -> SyncResult:
        """
        Upload local records missing from the remote mirror.

        Raises OfflineError before touching anything when offline. Per-record
        failures are returned in the result, never raised.
        """
        if self.mirror is None or not self.probe.is_online():
            raise OfflineError()

        if self.store.count(SyncEntity.SHIPMENTS) == 0:
            logger.info("No local shipments to sync")
            return SyncResult.noop()

        try:
            self.mirror.ensure_schema()
        except Exception as e:
            logger.warning(f"Remote mirror unavailable: {e}")
            raise OfflineError(f"Remote mirror unavailable: {e}") from e

        start = time.perf_counter()
        result = SyncResult(started_at=datetime.utcnow())
        for kind in SYNC_ORDER:
            if cancel is not None and cancel.is_set():
                result.cancelled = True
                break
            if not self._sync_kind(kind, result, cancel):
                result.cancelled = True
                break
        result.finished_at = datetime.utcnow()

        if not result.has_failures and not result.cancelled:
            with self.store.transaction("record sync completion"):
                self.store.set_setting(DATA_MIGRATED_KEY, "true")
                self.store.set_setting(LAST_SYNCED_AT_KEY, result.finished_at.isoformat())

        logger.info(
            f"Sync finished in {round(time.perf_counter() - start, 3)}s: "
            f"uploaded={result.uploaded.model_dump()} failed={result.failed.model_dump()}"
            + (" (cancelled)" if result.cancelled else "")
        )
        return result
