"""
In-process fan-out of master data changes to open edit sessions.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Iterator, List

from invoicer.schemas.sync import SyncEntity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MasterDataChange:
    kind: SyncEntity
    action: str  # "created", "updated" or "deleted"
    record_id: str
    name: str


MasterDataCallback = Callable[[MasterDataChange], None]


class MasterDataBroadcaster:
    """
    Registry of callbacks interested in master data changes.

    Lives as long as the application context; sessions subscribe when they
    open and unsubscribe when they close. Nothing is persisted.
    """

    def __init__(self):
        self._callbacks: List[MasterDataCallback] = []
        self._lock = Lock()

    def subscribe(self, callback: MasterDataCallback) -> MasterDataCallback:
        with self._lock:
            if callback not in self._callbacks:
                self._callbacks.append(callback)
        return callback

    def unsubscribe(self, callback: MasterDataCallback) -> bool:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)
                return True
        return False

    @contextmanager
    def subscription(self, callback: MasterDataCallback) -> Iterator[MasterDataCallback]:
        self.subscribe(callback)
        try:
            yield callback
        finally:
            self.unsubscribe(callback)

    def notify(self, change: MasterDataChange) -> int:
        """Invoke every registered callback; returns how many were called."""
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback(change)
            except Exception:
                # Remaining sessions still get the change
                logger.exception(f"Master data listener failed for {change.kind.value} '{change.name}'")
        return len(callbacks)

    def __len__(self) -> int:
        with self._lock:
            return len(self._callbacks)
