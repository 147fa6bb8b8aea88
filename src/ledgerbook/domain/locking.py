"""Per-account serialization of mutations and aggregate recomputes."""

import threading
from contextlib import contextmanager
from typing import Iterator


class AccountLocks:
    """Registry of re-entrant locks keyed by account ID.

    Holding an account's lock guarantees that no other thread is writing
    that account's transactions or rescanning its aggregates. Locks are
    re-entrant so an import can trigger its own end-of-batch recompute.
    """

    def __init__(self):
        self._registry_lock = threading.Lock()
        self._locks: dict[int, threading.RLock] = {}

    def lock_for(self, account_id: int) -> threading.RLock:
        """Return the lock for an account, creating it on first use."""
        with self._registry_lock:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[account_id] = lock
            return lock

    @contextmanager
    def hold(self, *account_ids: int) -> Iterator[None]:
        """Hold the locks of one or more accounts.

        Locks are taken in ascending ID order so two callers holding
        overlapping sets cannot deadlock.
        """
        locks = [self.lock_for(account_id) for account_id in sorted(set(account_ids))]
        for lock in locks:
            lock.acquire()
        try:
            yield
        finally:
            for lock in reversed(locks):
                lock.release()


default_account_locks = AccountLocks()
