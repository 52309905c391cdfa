"""Per-document in-process locks.

State-changing content operations hold a lock keyed by
(collection, document_id, locale) so that two requests handled by the
same process never interleave a read-modify-write of the same variant
pair.  Locks are reference-counted and dropped when the last holder
releases them, so memory stays bounded by the number of in-flight keys.

Cross-process writers are not covered here; they are caught by the
row-level ``version`` check and the unique constraints.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Hashable, Iterator, Optional

from ..exceptions import ConflictError

logger = logging.getLogger(__name__)


class KeyedLock:
    """A registry of mutexes created on demand per key."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        self._guard = threading.Lock()
        # key -> [lock, holders-or-waiters]
        self._locks: dict[Hashable, list] = {}

    def _acquire_entry(self, key: Hashable) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _release_entry(self, key: Hashable) -> None:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                return
            entry[1] -= 1
            if entry[1] <= 0:
                del self._locks[key]

    @contextmanager
    def hold(self, *key_parts: Hashable, timeout: Optional[float] = None) -> Iterator[None]:
        """Hold the lock for *key_parts* for the duration of the block.

        Raises:
            ConflictError: If the lock cannot be acquired within the timeout.
        """
        key = tuple(key_parts)
        wait = self.timeout if timeout is None else timeout
        lock = self._acquire_entry(key)
        acquired = lock.acquire(timeout=wait) if wait is not None else lock.acquire()
        if not acquired:
            self._release_entry(key)
            logger.warning("Timed out waiting for document lock", extra={"lock_key": str(key)})
            raise ConflictError("Document is locked by another operation", lock_key=list(map(str, key)))
        try:
            yield
        finally:
            lock.release()
            self._release_entry(key)

    def active_keys(self) -> int:
        """Number of keys currently held or waited on."""
        with self._guard:
            return len(self._locks)
