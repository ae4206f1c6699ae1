"""
Connectivity probe used to gate sync.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ConnectivityProbe:
    """
    Reports whether the remote mirror can be reached.

    `force_offline` overrides the reachability check, the same way the
    offline toggle in the app does.
    """

    def __init__(self, check: Optional[Callable[[], bool]] = None, force_offline: bool = False):
        self._check = check
        self.force_offline = force_offline

    def set_force_offline(self, value: bool) -> None:
        self.force_offline = bool(value)

    def is_online(self) -> bool:
        if self.force_offline or self._check is None:
            return False
        try:
            return bool(self._check())
        except Exception as e:
            logger.warning(f"Connectivity check failed: {e}")
            return False
