"""
Script to seed flower types and a sample shipper/consignee into the local store.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from invoicer.config.invoice_settings import get_flower_type_names
from invoicer.db.database import Base, SessionLocal, engine
from invoicer.exceptions import ConflictError
from invoicer.schemas.master_data import FlowerTypeCreate, PartyCreate
from invoicer.schemas.sync import SyncEntity
from invoicer.services.local_store import LocalStore
from invoicer.services.master_data import MasterDataService

SAMPLE_SHIPPER = PartyCreate(
    name="Sample Flower Exports",
    address_line1="12 Market Road",
    city="Bengaluru",
    state="Karnataka",
    pincode="560001",
    phone="+91 80 0000 0000",
)
SAMPLE_CONSIGNEE = PartyCreate(
    name="Sample Flower Imports",
    address_line1="1 Airport Way",
    city="Dubai",
)


def _create(service, kind, data):
    try:
        record = service.create(kind, data)
        print(f"Created {kind.value}: {record.name}")
    except ConflictError:
        print(f"{kind.value} '{data.name}' already exists")


def seed_master_data():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        service = MasterDataService(LocalStore(db))
        for name in get_flower_type_names():
            _create(service, SyncEntity.FLOWER_TYPES, FlowerTypeCreate(name=name))
        _create(service, SyncEntity.SHIPPERS, SAMPLE_SHIPPER)
        _create(service, SyncEntity.CONSIGNEES, SAMPLE_CONSIGNEE)
    finally:
        db.close()

if __name__ == "__main__":
    seed_master_data()
