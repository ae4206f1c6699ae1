"""
Sync API endpoints - migration status, manual sync and the offline toggle.
"""
import logging
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from invoicer.api.deps import get_context, get_store, http_error
from invoicer.context import AppContext
from invoicer.exceptions import InvoicerError
from invoicer.schemas.sync import MigrationStatus, SyncResult
from invoicer.services.local_store import LocalStore

logger = logging.getLogger(__name__)
router = APIRouter()


class OfflineToggle(BaseModel):
    force_offline: bool


@router.get("/status", response_model=MigrationStatus)
async def migration_status(
    store: LocalStore = Depends(get_store),
    context: AppContext = Depends(get_context)
):
    """Compare local and remote record counts."""
    try:
        return context.sync_engine(store).compute_migration_status()
    except InvoicerError as e:
        raise http_error(e)


@router.post("/run", response_model=SyncResult)
async def run_sync(
    store: LocalStore = Depends(get_store),
    context: AppContext = Depends(get_context)
):
    """Upload local records missing from the remote mirror."""
    try:
        logger.info("Manual sync requested")
        result = context.sync_engine(store).sync()
    except InvoicerError as e:
        raise http_error(e)
    partial = result.partial_error()
    if partial is not None:
        logger.warning(str(partial))
    return result


@router.get("/connectivity")
async def connectivity(
    context: AppContext = Depends(get_context)
):
    """Whether the remote mirror is currently reachable."""
    return {
        "online": context.probe.is_online(),
        "force_offline": context.probe.force_offline,
        "remote_configured": context.mirror is not None,
    }


@router.put("/offline")
async def set_offline(
    toggle: OfflineToggle,
    context: AppContext = Depends(get_context)
):
    """Force the app offline (or back online)."""
    context.set_force_offline(toggle.force_offline)
    return {"force_offline": context.probe.force_offline}
