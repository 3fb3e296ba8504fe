"""
In-memory plan store.

Reference adapter for persisting daily plans:
- one lock per (user_id, date), so two regenerations for the same key
  never interleave
- regeneration replaces the stored plan (never merges)
- every write bumps the stored plan's version

Different keys build in parallel. A key's lock lives only while some thread
holds or waits on it, so the lock table stays as small as the number of
builds in flight. The table itself is guarded by a short-lived store lock.
"""

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date

from nextmove.models import DailyPlan

logger = logging.getLogger(__name__)

PlanKey = tuple[str, date]


@dataclass
class StoredPlan:
    plan: DailyPlan
    version: int

    def to_dict(self) -> dict:
        data = self.plan.to_dict()
        data["version"] = self.version
        return data


@dataclass
class _KeyLock:
    lock: threading.Lock
    users: int = 0


class InMemoryPlanStore:
    def __init__(self):
        self._plans: dict[PlanKey, StoredPlan] = {}
        self._key_locks: dict[PlanKey, _KeyLock] = {}
        self._lock = threading.Lock()

    @contextmanager
    def _locked(self, key: PlanKey) -> Iterator[None]:
        with self._lock:
            entry = self._key_locks.get(key)
            if entry is None:
                entry = self._key_locks[key] = _KeyLock(threading.Lock())
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._lock:
                entry.users -= 1
                if entry.users == 0:
                    del self._key_locks[key]

    def regenerate(self, user_id: str, day: date, build: Callable[[], DailyPlan]) -> StoredPlan:
        """
        Build and store the plan for (user_id, day) under the key's lock.

        `build` runs while the lock is held. If it raises, the previous plan
        stays in place and the error propagates.
        """
        key = (user_id, day)
        with self._locked(key):
            plan = build()
            with self._lock:
                previous = self._plans.get(key)
                version = previous.version + 1 if previous else 1
                stored = StoredPlan(plan=plan, version=version)
                self._plans[key] = stored
        logger.info("Stored plan for %s on %s (version %d, %d actions)", user_id, day, version, len(plan.all_actions))
        return stored

    def get(self, user_id: str, day: date) -> StoredPlan | None:
        with self._lock:
            return self._plans.get((user_id, day))

    def delete(self, user_id: str, day: date) -> bool:
        """Drop the stored plan. A later regeneration starts again at version 1."""
        with self._lock:
            return self._plans.pop((user_id, day), None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._plans)
