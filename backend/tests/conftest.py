"""
Pytest Configuration and Shared Fixtures
"""
import os

# Keep the module-level engine off the developer's database file
os.environ.setdefault("LOCAL_DATABASE_URL", "sqlite://")
os.environ.pop("REMOTE_DATABASE_URL", None)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from invoicer import models  # noqa: F401
from invoicer.db.database import Base, MirrorBase
from invoicer.schemas.shipment import BoxData, FormState, ProductData
from invoicer.services.broadcaster import MasterDataBroadcaster
from invoicer.services.connectivity import ConnectivityProbe
from invoicer.services.local_store import LocalStore
from invoicer.services.remote_mirror import SqlRemoteMirror


def _memory_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


# ============================================================
# LOCAL STORE
# ============================================================

@pytest.fixture
def session_factory():
    """Session factory over a fresh in-memory local database"""
    engine = _memory_engine()
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return LocalStore(db)


# ============================================================
# REMOTE MIRROR
# ============================================================

@pytest.fixture
def mirror_session_factory():
    """Session factory over a fresh in-memory mirror database"""
    engine = _memory_engine()
    MirrorBase.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def mirror(mirror_session_factory):
    return SqlRemoteMirror(mirror_session_factory)


@pytest.fixture
def online_probe():
    return ConnectivityProbe(check=lambda: True)


@pytest.fixture
def offline_probe():
    return ConnectivityProbe(check=lambda: True, force_offline=True)


@pytest.fixture
def broadcaster():
    return MasterDataBroadcaster()


# ============================================================
# SAMPLE DATA
# ============================================================

@pytest.fixture
def sample_boxes():
    """One box holding the two product lines of the worked totals example"""
    return [
        BoxData(
            box_number=1,
            length=30,
            width=20,
            height=15,
            products=[
                ProductData(type="Rose", weight=25.5, rate=15.00),
                ProductData(type="Jasmine", weight=20.0, rate=12.50),
            ],
        )
    ]


@pytest.fixture
def make_form(sample_boxes):
    """Build a publishable form; keyword arguments override header fields"""
    def _create(invoice_number="KS1001", **overrides):
        values = {
            "invoice_number": invoice_number,
            "invoice_title": "Fresh flowers",
            "shipper": "Sample Flower Exports",
            "consignee": "Sample Flower Imports",
            "awb": "176-12345678",
            "origin": "BLR",
            "destination": "DXB",
            "boxes": [box.model_copy(deep=True) for box in sample_boxes],
        }
        values.update(overrides)
        return FormState(**values)
    return _create
