"""
Operations on published shipments outside the draft/publish flow.
"""
from __future__ import annotations

import logging

from invoicer.config.invoice_settings import get_invoice_number_format
from invoicer.exceptions import NotFoundError
from invoicer.models import Shipment, ShipmentStatus
from invoicer.services.local_store import LocalStore

logger = logging.getLogger(__name__)


def get_shipment(store: LocalStore, invoice_number: str) -> Shipment:
    shipment = store.get_shipment(invoice_number)
    if shipment is None:
        raise NotFoundError(f"Shipment {invoice_number} not found")
    return shipment


def update_status(store: LocalStore, invoice_number: str, status: ShipmentStatus) -> Shipment:
    shipment = get_shipment(store, invoice_number)
    with store.transaction("update shipment status"):
        store.set_shipment_status(shipment, status)
    logger.info(f"Shipment {shipment.invoice_number} marked {ShipmentStatus(status).value}")
    return shipment


def delete_shipment(store: LocalStore, invoice_number: str) -> None:
    shipment = get_shipment(store, invoice_number)
    key = shipment.invoice_number
    with store.transaction("delete shipment"):
        store.delete_shipment(shipment)
    logger.info(f"Shipment {key} deleted")


def next_invoice_number(store: LocalStore) -> str:
    prefix, width = get_invoice_number_format()
    return store.next_invoice_number(prefix, width)
