"""Per-resource lock table.

Every check-and-mutate on a shared counter (account balance, product stock,
event pool, admin budget) runs while holding the lock keyed by that entity's
id. Keys are always acquired in one global order so that operations touching
several resources cannot deadlock each other, and acquisition is bounded by a
timeout: a caller never waits indefinitely, it gets a ``ConflictError`` and may
retry.

The table only serializes threads of one process. Across processes the same
reads are issued with ``SELECT ... FOR UPDATE`` (see ``lock_row``), which gives
the database row lock the same scope.
"""

from __future__ import annotations

import logging
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass

from reward_points import config
from reward_points.services.errors import ConflictError


logger = logging.getLogger(__name__)


# Lower rank is acquired first.
RESOURCE_ORDER = {
    "budget": 0,
    "event": 1,
    "account": 2,
    "product": 3,
    "redemption": 4,
}


@dataclass(frozen=True)
class ResourceKey:
    kind: str
    id: str

    def sort_key(self) -> tuple[int, str]:
        return RESOURCE_ORDER[self.kind], self.id


def account_key(user_id) -> ResourceKey:
    return ResourceKey("account", str(user_id))


def product_key(product_id) -> ResourceKey:
    return ResourceKey("product", str(product_id))


def event_key(event_id) -> ResourceKey:
    return ResourceKey("event", str(event_id))


def budget_key(admin_id) -> ResourceKey:
    return ResourceKey("budget", str(admin_id))


def redemption_key(redemption_id) -> ResourceKey:
    return ResourceKey("redemption", str(redemption_id))


class ResourceLocks:
    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        self._guard = threading.Lock()
        # Entries disappear once no thread references the lock any more.
        self._locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()

    def _lock_for(self, key: ResourceKey):
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *keys: ResourceKey):
        """Hold every lock in ``keys`` for the duration of the block.

        Locks are re-entrant, so a service that already holds a key may call
        another service that asks for it again.
        """
        ordered = sorted(set(keys), key=ResourceKey.sort_key)
        acquired = []
        try:
            for key in ordered:
                lock = self._lock_for(key)
                if not lock.acquire(timeout=self.timeout_seconds):
                    logger.warning(
                        "resource lock timeout",
                        extra={"resource": key.kind, "resource_id": key.id, "timeout": self.timeout_seconds},
                    )
                    raise ConflictError(
                        f"{key.kind} {key.id} is being modified concurrently, retry the operation",
                        resource=key.kind,
                        id=key.id,
                    )
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


resource_locks = ResourceLocks(timeout_seconds=config.LOCK_TIMEOUT_SECONDS)


def lock_row(query):
    """Re-read rows with a row lock, refreshing anything already in the session."""
    return query.populate_existing().with_for_update()
