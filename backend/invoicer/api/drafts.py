"""
Draft API endpoints.
"""
import logging
from fastapi import APIRouter, Depends, status
from typing import List
from invoicer.api.deps import get_store, http_error
from invoicer.exceptions import InvoicerError
from invoicer.schemas.draft import DraftResponse, DraftSaved, DraftSummary
from invoicer.schemas.shipment import FormState, ShipmentResponse
from invoicer.services import draft_service
from invoicer.services.local_store import LocalStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=DraftSaved, status_code=status.HTTP_201_CREATED)
async def save_draft(
    form: FormState,
    store: LocalStore = Depends(get_store)
):
    """Save form state as a draft; a draft_id in the body updates that draft."""
    try:
        return DraftSaved(id=draft_service.save_draft(store, form))
    except InvoicerError as e:
        raise http_error(e)


@router.put("/{draft_id}", response_model=DraftSaved)
async def update_draft(
    draft_id: str,
    form: FormState,
    store: LocalStore = Depends(get_store)
):
    """Overwrite an existing draft (or create it under this id)."""
    form.draft_id = draft_id
    try:
        return DraftSaved(id=draft_service.save_draft(store, form))
    except InvoicerError as e:
        raise http_error(e)


@router.get("/", response_model=List[DraftSummary])
async def list_drafts(
    store: LocalStore = Depends(get_store)
):
    """List drafts, most recently updated first."""
    try:
        return store.list_drafts()
    except InvoicerError as e:
        raise http_error(e)


@router.get("/{draft_id}", response_model=DraftResponse)
async def get_draft(
    draft_id: str,
    store: LocalStore = Depends(get_store)
):
    """Get a draft with its normalized form data."""
    try:
        form = draft_service.load_draft(store, draft_id)
        draft = store.get_draft(draft_id)
    except InvoicerError as e:
        raise http_error(e)
    response = DraftResponse.model_validate(draft)
    response.draft_data = form.to_draft_data()
    return response


@router.post("/{draft_id}/publish", response_model=ShipmentResponse)
async def publish_draft(
    draft_id: str,
    store: LocalStore = Depends(get_store)
):
    """Publish a draft as a shipment and delete the draft."""
    try:
        logger.info(f"Publishing draft {draft_id}")
        return draft_service.publish(store, draft_id)
    except InvoicerError as e:
        raise http_error(e)


@router.delete("/{draft_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_draft(
    draft_id: str,
    store: LocalStore = Depends(get_store)
):
    """Discard a draft."""
    try:
        draft_service.discard_draft(store, draft_id)
    except InvoicerError as e:
        raise http_error(e)
