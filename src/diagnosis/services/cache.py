"""Process-wide cache of the trees currently served to technicians."""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from diagnosis.config import ACTIVE_TREE_CACHE_TTL
from diagnosis.repositories.tree_repository import TreeRecord

logger = logging.getLogger(__name__)


class ActiveTreeCache:
    """
    Holds the active, error-free tree records for ``ttl_seconds``.

    Entries expire after the TTL and are dropped immediately by
    ``invalidate()``, which the tree service calls after every successful
    upload or activation change.
    """

    def __init__(self, ttl_seconds: float = ACTIVE_TREE_CACHE_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._records: Optional[List[TreeRecord]] = None
        self._loaded_at = 0.0

    def get(self) -> Optional[List[TreeRecord]]:
        if self._records is None:
            return None
        if self._clock() - self._loaded_at >= self.ttl_seconds:
            logger.debug("Active tree cache expired")
            self._records = None
            return None
        return list(self._records)

    def put(self, records: List[TreeRecord]) -> None:
        self._records = list(records)
        self._loaded_at = self._clock()

    def invalidate(self) -> None:
        self._records = None


__all__ = ["ActiveTreeCache"]
