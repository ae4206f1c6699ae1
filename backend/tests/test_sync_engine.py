"""
Unit Tests for the sync engine
Run: pytest backend/tests/test_sync_engine.py -v
"""
from threading import Event
from unittest.mock import Mock, patch

import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from invoicer.exceptions import OfflineError, PartialSyncError
from invoicer.models import Shipper
from invoicer.schemas.master_data import FlowerTypeCreate, PartyCreate, ProductTypeCreate
from invoicer.schemas.sync import SyncEntity
from invoicer.services import draft_service
from invoicer.services.connectivity import ConnectivityProbe
from invoicer.services.master_data import MasterDataService
from invoicer.services.remote_mirror import SqlRemoteMirror
from invoicer.services.sync_engine import DATA_MIGRATED_KEY, LAST_SYNCED_AT_KEY, SyncEngine


@pytest.fixture
def publish_shipments(store, make_form):
    def _publish(count=5):
        for i in range(1, count + 1):
            draft_service.publish(store, make_form(f"KS{1000 + i}"))
    return _publish


@pytest.fixture
def seed_master_data(store):
    service = MasterDataService(store)
    service.create(SyncEntity.SHIPPERS, PartyCreate(name="Sample Flower Exports", city="Bengaluru"))
    service.create(SyncEntity.CONSIGNEES, PartyCreate(name="Sample Flower Imports", city="Dubai"))
    service.create(SyncEntity.PRODUCT_TYPES, ProductTypeCreate(name="Rose", approx_quantity=40))
    service.create(SyncEntity.FLOWER_TYPES, FlowerTypeCreate(name="LOOSE FLOWERS"))


@pytest.fixture
def spy_mirror(mirror):
    """Mirror wrapped in a Mock so calls can be inspected"""
    return Mock(wraps=mirror)


# ============================================================
# MIGRATION STATUS
# ============================================================

class TestMigrationStatus:

    def test_five_local_shipments_then_sync(self, store, mirror, online_probe, publish_shipments):
        publish_shipments(5)
        engine = SyncEngine(store, mirror, online_probe)

        status = engine.compute_migration_status()
        assert status.has_migrated is False
        assert status.needs_migration is True
        assert status.local.shipments == 5
        assert status.remote.shipments == 0
        assert status.local_only_shipments == 5
        assert status.data_migrated is False

        result = engine.sync()
        assert result.uploaded.shipments == 5

        status = engine.compute_migration_status()
        assert status.has_migrated is True
        assert status.remote.shipments == 5
        assert status.local_only_shipments == 0
        assert status.last_synced_at is not None
        assert status.data_migrated is True

    def test_empty_store_counts_as_migrated(self, store, mirror, online_probe):
        status = SyncEngine(store, mirror, online_probe).compute_migration_status()
        assert status.has_migrated is True
        assert status.remote_available is True

    def test_offline_treats_local_shipments_as_unverified(self, store, mirror, offline_probe, publish_shipments):
        publish_shipments(2)
        status = SyncEngine(store, mirror, offline_probe).compute_migration_status()
        assert status.remote_available is False
        assert status.has_migrated is False
        assert status.local_only_shipments == 2

    def test_status_reads_invoice_numbers_only(self, store, mirror, online_probe, publish_shipments):
        publish_shipments(2)
        with patch.object(store, "records_for", side_effect=AssertionError("full shipment rows loaded")):
            status = SyncEngine(store, mirror, online_probe).compute_migration_status()
        assert status.remote_available is True
        assert status.local_only_shipments == 2
        assert store.shipment_keys() == {"KS1001", "KS1002"}

    def test_remote_errors_are_reported_as_unavailable(self, store, online_probe, publish_shipments):
        publish_shipments(1)
        broken = Mock()
        broken.count.side_effect = ConnectionError("remote unreachable")
        status = SyncEngine(store, broken, online_probe).compute_migration_status()
        assert status.remote_available is False
        assert status.has_migrated is False


# ============================================================
# SYNC
# ============================================================

class TestSync:

    def test_no_local_shipments_is_noop(self, store, spy_mirror, online_probe, seed_master_data):
        result = SyncEngine(store, spy_mirror, online_probe).sync()
        assert result.skipped is True
        assert result.uploaded.model_dump() == {kind.value: 0 for kind in SyncEntity}
        spy_mirror.upsert_many.assert_not_called()

    def test_offline_raises_and_leaves_store_untouched(self, store, db, spy_mirror, offline_probe, publish_shipments):
        publish_shipments(3)
        with pytest.raises(OfflineError):
            SyncEngine(store, spy_mirror, offline_probe).sync()
        spy_mirror.upsert_many.assert_not_called()
        spy_mirror.existing_keys.assert_not_called()
        assert store.get_setting(DATA_MIGRATED_KEY) is None
        assert store.count(SyncEntity.SHIPMENTS) == 3
        assert not db.dirty and not db.new

    def test_no_remote_configured_is_offline(self, store, online_probe, publish_shipments):
        publish_shipments(1)
        with pytest.raises(OfflineError):
            SyncEngine(store, None, online_probe).sync()

    def test_failed_probe_is_offline(self, store, mirror, publish_shipments):
        publish_shipments(1)
        probe = ConnectivityProbe(check=Mock(side_effect=TimeoutError("no route")))
        with pytest.raises(OfflineError):
            SyncEngine(store, mirror, probe).sync()

    def test_master_data_uploaded_before_shipments(self, store, spy_mirror, online_probe,
                                                    seed_master_data, publish_shipments):
        publish_shipments(2)
        result = SyncEngine(store, spy_mirror, online_probe).sync()
        kinds = [c.args[0] for c in spy_mirror.upsert_many.call_args_list]
        assert kinds == [
            SyncEntity.SHIPPERS,
            SyncEntity.CONSIGNEES,
            SyncEntity.PRODUCT_TYPES,
            SyncEntity.FLOWER_TYPES,
            SyncEntity.SHIPMENTS,
        ]
        assert result.uploaded.model_dump() == {
            "shippers": 1, "consignees": 1, "product_types": 1, "flower_types": 1, "shipments": 2,
        }
        assert store.get_setting(DATA_MIGRATED_KEY) == "true"
        assert store.get_setting(LAST_SYNCED_AT_KEY)

    def test_shipment_documents_embed_boxes(self, store, mirror, mirror_session_factory,
                                            online_probe, publish_shipments):
        from invoicer.models import MirrorShipment

        publish_shipments(1)
        SyncEngine(store, mirror, online_probe).sync()
        session = mirror_session_factory()
        try:
            document = session.query(MirrorShipment).filter_by(natural_key="KS1001").one().payload
        finally:
            session.close()
        assert document["invoice_number"] == "KS1001"
        assert len(document["boxes"]) == 1
        assert len(document["boxes"][0]["products"]) == 2

    def test_rerun_converges_without_duplicates(self, store, mirror, online_probe, publish_shipments):
        publish_shipments(5)
        engine = SyncEngine(store, mirror, online_probe)
        engine.sync()
        second = engine.sync()
        assert second.uploaded.shipments == 0
        assert mirror.count(SyncEntity.SHIPMENTS) == 5

    def test_only_new_records_are_uploaded(self, store, mirror, online_probe, publish_shipments, make_form):
        publish_shipments(3)
        engine = SyncEngine(store, mirror, online_probe)
        engine.sync()
        draft_service.publish(store, make_form("KS2000"))
        result = engine.sync()
        assert result.uploaded.shipments == 1
        assert mirror.count(SyncEntity.SHIPMENTS) == 4

    def test_batches_respect_batch_size(self, store, spy_mirror, online_probe, publish_shipments):
        publish_shipments(5)
        SyncEngine(store, spy_mirror, online_probe, batch_size=2).sync()
        sizes = [len(c.args[1]) for c in spy_mirror.upsert_many.call_args_list]
        assert sizes == [2, 2, 1]


# ============================================================
# FAILURES
# ============================================================

class TestPartialFailure:

    def test_failed_record_is_reported_and_rerun_converges(self, store, mirror, spy_mirror,
                                                           online_probe, seed_master_data, publish_shipments):
        publish_shipments(5)

        def flaky(kind, documents):
            if kind == SyncEntity.SHIPMENTS and "KS1003" in documents:
                raise ConnectionError("remote write rejected")
            return mirror.upsert_many(kind, documents)

        spy_mirror.upsert_many.side_effect = flaky
        result = SyncEngine(store, spy_mirror, online_probe).sync()

        assert result.has_failures
        assert result.failed.shipments == 1
        assert result.uploaded.shipments == 4
        assert result.uploaded.shippers == 1
        assert [e.natural_key for e in result.errors] == ["KS1003"]
        assert result.failed_kinds() == [SyncEntity.SHIPMENTS]
        assert SyncEntity.SHIPPERS in result.succeeded_kinds()
        assert store.get_setting(DATA_MIGRATED_KEY) is None
        assert SyncEngine(store, mirror, online_probe).compute_migration_status().data_migrated is False

        partial = result.partial_error()
        assert isinstance(partial, PartialSyncError)
        assert partial.failed == {"shipments": 1}

        retry = SyncEngine(store, mirror, online_probe).sync()
        assert not retry.has_failures
        assert retry.uploaded.shipments == 1
        assert mirror.count(SyncEntity.SHIPMENTS) == 5
        assert SyncEngine(store, mirror, online_probe).compute_migration_status().has_migrated

    def test_failing_class_does_not_stop_later_classes(self, store, mirror, spy_mirror,
                                                       online_probe, seed_master_data, publish_shipments):
        publish_shipments(2)

        def no_consignees(kind):
            if kind == SyncEntity.CONSIGNEES:
                raise ConnectionError("collection unavailable")
            return mirror.existing_keys(kind)

        spy_mirror.existing_keys.side_effect = no_consignees
        result = SyncEngine(store, spy_mirror, online_probe).sync()
        assert result.failed.consignees == 1
        assert result.errors[0].natural_key == "*"
        assert result.uploaded.shipments == 2
        assert result.uploaded.flower_types == 1

    def test_batch_failure_retries_records_individually(self, store, mirror, spy_mirror,
                                                         online_probe, publish_shipments):
        publish_shipments(3)

        def single_only(kind, documents):
            if len(documents) > 1:
                raise ConnectionError("payload too large")
            return mirror.upsert_many(kind, documents)

        spy_mirror.upsert_many.side_effect = single_only
        result = SyncEngine(store, spy_mirror, online_probe).sync()
        assert not result.has_failures
        assert result.uploaded.shipments == 3


# ============================================================
# CANCELLATION
# ============================================================

class TestCancel:

    def test_cancel_before_start_uploads_nothing(self, store, spy_mirror, online_probe, publish_shipments):
        publish_shipments(2)
        cancel = Event()
        cancel.set()
        result = SyncEngine(store, spy_mirror, online_probe).sync(cancel)
        assert result.cancelled is True
        spy_mirror.upsert_many.assert_not_called()
        assert store.get_setting(DATA_MIGRATED_KEY) is None

    def test_cancel_between_batches_then_resume(self, store, mirror, spy_mirror, online_probe, publish_shipments):
        publish_shipments(5)
        cancel = Event()

        def cancel_after_first(kind, documents):
            cancel.set()
            return mirror.upsert_many(kind, documents)

        spy_mirror.upsert_many.side_effect = cancel_after_first
        result = SyncEngine(store, spy_mirror, online_probe, batch_size=2).sync(cancel)
        assert result.cancelled is True
        assert result.uploaded.shipments == 2

        resumed = SyncEngine(store, mirror, online_probe, batch_size=2).sync()
        assert resumed.uploaded.shipments == 3
        assert mirror.count(SyncEntity.SHIPMENTS) == 5


# ============================================================
# NATURAL KEY COLLISIONS
# ============================================================

class TestDuplicateKeys:

    def test_local_records_sharing_a_key_are_reported(self, store, db, mirror, online_probe, publish_shipments):
        # Inserted directly; the service would reject the second name
        store.add(Shipper(name="Straße Exports"))
        store.add(Shipper(name="STRASSE EXPORTS"))
        db.commit()
        publish_shipments(1)

        result = SyncEngine(store, mirror, online_probe).sync()
        assert result.uploaded.shippers + result.failed.shippers == 2
        assert result.failed.shippers == 1
        assert [e.natural_key for e in result.errors] == ["strasse exports"]
        assert result.has_failures
        assert result.uploaded.shipments == 1
        assert mirror.count(SyncEntity.SHIPPERS) == 1
        assert store.get_setting(DATA_MIGRATED_KEY) is None


# ============================================================
# REMOTE SCHEMA
# ============================================================

@pytest.fixture
def bare_remote():
    """Reachable remote database with no mirror tables yet"""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    yield engine
    engine.dispose()


@pytest.fixture
def bare_mirror(bare_remote):
    return SqlRemoteMirror(sessionmaker(autocommit=False, autoflush=False, bind=bare_remote))


class TestRemoteSchema:

    def test_noop_sync_creates_no_tables(self, store, bare_remote, bare_mirror):
        probe = ConnectivityProbe(check=bare_mirror.ping)
        result = SyncEngine(store, bare_mirror, probe).sync()
        assert result.skipped is True
        assert inspect(bare_remote).get_table_names() == []

    def test_status_of_unsynced_remote_reads_as_empty(self, store, bare_remote, bare_mirror, publish_shipments):
        publish_shipments(1)
        status = SyncEngine(store, bare_mirror, ConnectivityProbe(check=bare_mirror.ping)).compute_migration_status()
        assert status.remote_available is True
        assert status.remote.shipments == 0
        assert status.local_only_shipments == 1
        assert inspect(bare_remote).get_table_names() == []

    def test_first_upload_creates_tables(self, store, bare_remote, bare_mirror, publish_shipments):
        publish_shipments(1)
        result = SyncEngine(store, bare_mirror, ConnectivityProbe(check=bare_mirror.ping)).sync()
        assert result.uploaded.shipments == 1
        assert inspect(bare_remote).has_table("mirror_shipments")
        assert bare_mirror.count(SyncEntity.SHIPMENTS) == 1
