from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import replace

from dlmm_sponsor.modules.sponsorship.types import UsageRecord


class InMemoryUsageRepository:
    """Process-local usage store keyed by user identifier.

    Records are handed out as copies; writes go through ``update`` so that a
    read-modify-write for one user happens under the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, UsageRecord] = {}

    def get(self, user_id: str) -> UsageRecord | None:
        with self._lock:
            record = self._records.get(user_id)
            return replace(record) if record is not None else None

    def update(
        self,
        user_id: str,
        mutate: Callable[[UsageRecord | None], UsageRecord],
    ) -> UsageRecord:
        with self._lock:
            current = self._records.get(user_id)
            updated = mutate(replace(current) if current is not None else None)
            self._records[user_id] = updated
            return replace(updated)

    def list_records(self) -> list[UsageRecord]:
        with self._lock:
            return [replace(record) for record in self._records.values()]

    def count(self) -> int:
        with self._lock:
            return len(self._records)
