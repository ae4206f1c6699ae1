"""
Application context - the single object the presentation layer talks to.

Owns the master data broadcaster, the local session factory, the remote
mirror (when one is configured) and the connectivity probe. Each operation
opens its own local session, so results are returned as schemas rather
than live ORM rows.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from threading import Event
from typing import Iterable, Iterator, Optional, Union

from sqlalchemy.orm import sessionmaker

from invoicer.db.database import RemoteSessionLocal, SessionLocal, settings
from invoicer.schemas.shipment import FormState, ShipmentResponse
from invoicer.schemas.sync import MigrationStatus, SyncResult
from invoicer.schemas.totals import Totals
from invoicer.services import draft_service
from invoicer.services.broadcaster import MasterDataBroadcaster, MasterDataCallback
from invoicer.services.connectivity import ConnectivityProbe
from invoicer.services.draft_service import ShipmentEditor
from invoicer.services.local_store import LocalStore
from invoicer.services.master_data import MasterDataService
from invoicer.services.remote_mirror import RemoteMirror, SqlRemoteMirror
from invoicer.services.sync_engine import SyncEngine
from invoicer.services.totals import compute_totals

logger = logging.getLogger(__name__)


class AppContext:
    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        mirror: Optional[RemoteMirror] = None,
        probe: Optional[ConnectivityProbe] = None,
        broadcaster: Optional[MasterDataBroadcaster] = None,
        batch_size: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.mirror = mirror
        self.probe = probe or ConnectivityProbe(
            check=mirror.ping if mirror is not None else None,
            force_offline=settings.force_offline,
        )
        self.broadcaster = broadcaster or MasterDataBroadcaster()
        self.batch_size = batch_size

    @classmethod
    def from_settings(cls) -> "AppContext":
        mirror = SqlRemoteMirror(RemoteSessionLocal) if RemoteSessionLocal is not None else None
        if mirror is None:
            logger.info("No remote mirror configured; sync is unavailable")
        return cls(mirror=mirror)

    @contextmanager
    def store(self) -> Iterator[LocalStore]:
        db = self.session_factory()
        try:
            yield LocalStore(db)
        finally:
            db.close()

    def master_data(self, store: LocalStore) -> MasterDataService:
        return MasterDataService(store, self.broadcaster)

    def sync_engine(self, store: LocalStore) -> SyncEngine:
        return SyncEngine(store, self.mirror, self.probe, batch_size=self.batch_size)

    # ---------- draft / publish ----------

    def save_draft(self, form: FormState) -> str:
        with self.store() as store:
            return draft_service.save_draft(store, form)

    def publish(self, source: Union[str, FormState]) -> ShipmentResponse:
        with self.store() as store:
            shipment = draft_service.publish(store, source)
            return ShipmentResponse.model_validate(shipment)

    def discard_draft(self, draft_id: str) -> None:
        with self.store() as store:
            draft_service.discard_draft(store, draft_id)

    @contextmanager
    def edit_session(
        self,
        draft_id: Optional[str] = None,
        invoice_number: Optional[str] = None,
        on_master_data_changed: Optional[MasterDataCallback] = None,
    ) -> Iterator[ShipmentEditor]:
        """Open an editor over a new form, a saved draft or a published shipment."""
        with self.store() as store:
            kwargs = {"broadcaster": self.broadcaster, "on_master_data_changed": on_master_data_changed}
            if draft_id:
                editor = ShipmentEditor.open_draft(store, draft_id, **kwargs)
            elif invoice_number:
                editor = ShipmentEditor.open_shipment(store, invoice_number, **kwargs)
            else:
                editor = ShipmentEditor(store, **kwargs)
            with editor:
                yield editor

    def compute_totals(self, boxes: Iterable) -> Totals:
        return compute_totals(boxes)

    # ---------- sync ----------

    def set_force_offline(self, value: bool) -> None:
        self.probe.set_force_offline(value)
        logger.info(f"Force offline {'enabled' if value else 'disabled'}")

    def compute_migration_status(self) -> MigrationStatus:
        with self.store() as store:
            return self.sync_engine(store).compute_migration_status()

    def sync(self, cancel: Optional[Event] = None) -> SyncResult:
        with self.store() as store:
            return self.sync_engine(store).sync(cancel)

    # ---------- master data notifications ----------

    def on_master_data_changed(self, callback: MasterDataCallback) -> MasterDataCallback:
        return self.broadcaster.subscribe(callback)

    def off_master_data_changed(self, callback: MasterDataCallback) -> bool:
        return self.broadcaster.unsubscribe(callback)
