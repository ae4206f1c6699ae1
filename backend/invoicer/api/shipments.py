"""
Shipment API endpoints.
"""
import logging
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
from invoicer.api.deps import get_store, http_error
from invoicer.exceptions import InvoicerError
from invoicer.models import ShipmentStatus
from invoicer.schemas.shipment import (
    BoxData,
    FormState,
    ShipmentResponse,
    ShipmentStats,
    ShipmentStatusUpdate,
)
from invoicer.schemas.totals import Totals
from invoicer.services import draft_service, shipments
from invoicer.services.local_store import LocalStore
from invoicer.services.totals import compute_totals

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ShipmentResponse, status_code=status.HTTP_201_CREATED)
async def create_shipment(
    form: FormState,
    store: LocalStore = Depends(get_store)
):
    """Create a new shipment; the invoice number must not be in use."""
    try:
        return draft_service.create_shipment(store, form)
    except InvoicerError as e:
        raise http_error(e)


@router.get("/", response_model=List[ShipmentResponse])
async def list_shipments(
    status_filter: Optional[ShipmentStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=1000),
    store: LocalStore = Depends(get_store)
):
    """List shipments, newest first."""
    try:
        return store.list_shipments(status=status_filter, limit=limit)
    except InvoicerError as e:
        raise http_error(e)


@router.get("/search", response_model=List[ShipmentResponse])
async def search_shipments(
    q: str = Query(..., min_length=1),
    store: LocalStore = Depends(get_store)
):
    """Search shipments by shipper, consignee, AWB, title or invoice number."""
    try:
        return store.search_shipments(q)
    except InvoicerError as e:
        raise http_error(e)


@router.get("/stats", response_model=ShipmentStats)
async def shipment_stats(
    store: LocalStore = Depends(get_store)
):
    """Shipment counts by status."""
    try:
        return store.shipment_stats()
    except InvoicerError as e:
        raise http_error(e)


@router.get("/next-invoice-number")
async def next_invoice_number(
    store: LocalStore = Depends(get_store)
):
    """Suggest the next free invoice number."""
    try:
        return {"invoice_number": shipments.next_invoice_number(store)}
    except InvoicerError as e:
        raise http_error(e)


@router.post("/totals", response_model=Totals)
async def preview_totals(boxes: List[BoxData]):
    """Compute totals for unsaved boxes."""
    return compute_totals(boxes)


@router.get("/{invoice_number}", response_model=ShipmentResponse)
async def get_shipment(
    invoice_number: str,
    store: LocalStore = Depends(get_store)
):
    """Get a shipment by invoice number (case-insensitive)."""
    try:
        return shipments.get_shipment(store, invoice_number)
    except InvoicerError as e:
        raise http_error(e)


@router.put("/{invoice_number}", response_model=ShipmentResponse)
async def update_shipment(
    invoice_number: str,
    form: FormState,
    store: LocalStore = Depends(get_store)
):
    """Publish edits to an existing shipment, possibly under a new invoice number."""
    try:
        shipments.get_shipment(store, invoice_number)
        form.original_invoice_number = invoice_number
        return draft_service.publish(store, form)
    except InvoicerError as e:
        raise http_error(e)


@router.get("/{invoice_number}/totals", response_model=Totals)
async def get_shipment_totals(
    invoice_number: str,
    store: LocalStore = Depends(get_store)
):
    """Totals derived from the shipment's boxes."""
    try:
        shipment = shipments.get_shipment(store, invoice_number)
    except InvoicerError as e:
        raise http_error(e)
    return compute_totals(shipment.boxes)


@router.patch("/{invoice_number}/status", response_model=ShipmentResponse)
async def update_shipment_status(
    invoice_number: str,
    update: ShipmentStatusUpdate,
    store: LocalStore = Depends(get_store)
):
    """Change a shipment's status."""
    try:
        return shipments.update_status(store, invoice_number, update.status)
    except InvoicerError as e:
        raise http_error(e)


@router.delete("/{invoice_number}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shipment(
    invoice_number: str,
    store: LocalStore = Depends(get_store)
):
    """Delete a shipment with its boxes and products."""
    try:
        shipments.delete_shipment(store, invoice_number)
    except InvoicerError as e:
        raise http_error(e)
