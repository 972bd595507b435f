"""In-memory dispatch backend keeping the most recent observations."""

from __future__ import annotations

import collections
import threading
from typing import Any, List, Optional

from .base import BaseDispatcher, MetricObservation
from .types_db import TypesDB


class MemoryDispatcher(BaseDispatcher):
    """Keep observations in a bounded deque.

    Inputs (constructor):
        capacity: Maximum number of observations retained (oldest dropped).
        types_db: TypesDB used for schema lookups.

    Outputs:
        MemoryDispatcher instance; observations() returns a snapshot list.
    """

    aliases = ("memory", "mem")

    def __init__(
        self, capacity: int = 10000, types_db: Optional[TypesDB] = None, **_: Any
    ) -> None:
        super().__init__(types_db)
        self._lock = threading.Lock()
        self._items: "collections.deque[MetricObservation]" = collections.deque(
            maxlen=max(1, int(capacity))
        )

    def dispatch(self, observation: MetricObservation) -> None:
        with self._lock:
            self._items.append(observation)

    def observations(self) -> List[MetricObservation]:
        with self._lock:
            return list(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
