"""
Shared API dependencies and the service error to HTTP status mapping.
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from invoicer.context import AppContext
from invoicer.db.database import get_db
from invoicer.exceptions import (
    ConflictError,
    InvalidStateError,
    InvoicerError,
    NotFoundError,
    OfflineError,
    StorageError,
    ValidationError,
)
from invoicer.services.local_store import LocalStore

logger = logging.getLogger(__name__)

_context: Optional[AppContext] = None

_STATUS_CODES = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    InvalidStateError: status.HTTP_409_CONFLICT,
    OfflineError: status.HTTP_503_SERVICE_UNAVAILABLE,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_context() -> AppContext:
    """Dependency for the process-wide application context."""
    global _context
    if _context is None:
        _context = AppContext.from_settings()
    return _context


def get_store(db: Session = Depends(get_db)) -> LocalStore:
    return LocalStore(db)


def http_error(e: InvoicerError) -> HTTPException:
    code = _STATUS_CODES.get(type(e), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if code >= 500:
        logger.error(f"{type(e).__name__}: {e}")
    detail = str(e)
    if isinstance(e, ValidationError):
        detail = {"message": str(e), "fields": e.fields}
    return HTTPException(status_code=code, detail=detail)
