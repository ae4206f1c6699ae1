"""
Error types raised by the draft/publish and sync services.
"""
from typing import Dict, List, Optional


class InvoicerError(Exception):
    """Base class for all service-level errors."""


class ValidationError(InvoicerError):
    def __init__(self, fields: List[str], message: Optional[str] = None):
        self.fields = list(fields)
        super().__init__(message or f"Missing or invalid fields: {', '.join(self.fields)}")


class ConflictError(InvoicerError):
    def __init__(self, key: str, message: Optional[str] = None):
        self.key = key
        super().__init__(message or f"'{key}' already exists")


class NotFoundError(InvoicerError):
    pass


class OfflineError(InvoicerError):
    def __init__(self, message: str = "Cannot sync while offline. Check your internet connection and try again."):
        super().__init__(message)


class StorageError(InvoicerError):
    pass


class PartialSyncError(InvoicerError):
    """
    Aggregate of per-class upload failures.

    Built from a SyncResult for callers that want an exception object;
    sync() itself returns the result and never raises this.
    """

    def __init__(self, failed: Dict[str, int], succeeded: List[str]):
        self.failed = dict(failed)
        self.succeeded = list(succeeded)
        failed_desc = ", ".join(f"{kind} ({count})" for kind, count in self.failed.items())
        super().__init__(f"Sync incomplete. Failed: {failed_desc}")


class InvalidStateError(InvoicerError):
    """Operation not allowed in the edit session's current state."""
