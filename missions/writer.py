"""
Snapshot writers: hand a committed snapshot to the store without the caller
waiting on the outcome.

InlineWriter saves on the calling thread (CLI, tests). BackgroundWriter keeps
a single pending snapshot and saves it on a daemon thread; a newer snapshot
replaces an older one that has not been written yet. Neither raises.
"""
import logging
import threading
from typing import Optional
from .schema import Collection
from .store import SnapshotStore

logger = logging.getLogger(__name__)


class InlineWriter:
    """Save immediately on the caller's thread."""

    def __init__(self, store: SnapshotStore):
        self.store = store
        self.last_result: Optional[bool] = None

    def submit(self, collection: Collection) -> None:
        self.last_result = self.store.save(collection)
        if not self.last_result:
            logger.warning(f"Snapshot write to {self.store.slot} did not complete")

    def flush(self, timeout: Optional[float] = None) -> bool:
        return True

    def close(self) -> None:
        pass


class BackgroundWriter:
    """Latest-wins write-behind queue of depth one."""

    def __init__(self, store: SnapshotStore):
        self.store = store
        self._pending: Optional[Collection] = None
        self._busy = False
        self._closed = False
        self._cond = threading.Condition()
        self._thread = threading.Thread(target=self._worker, name="missions-writer", daemon=True)
        self._thread.start()

    def submit(self, collection: Collection) -> None:
        """Queue a snapshot for writing; replaces any snapshot not yet written."""
        with self._cond:
            if self._closed:
                logger.warning("Snapshot submitted after writer closed; dropped")
                return
            self._pending = collection
            self._cond.notify_all()

    def _worker(self) -> None:
        while True:
            with self._cond:
                while self._pending is None and not self._closed:
                    self._cond.wait()
                if self._pending is None and self._closed:
                    return
                snapshot, self._pending = self._pending, None
                self._busy = True
            try:
                if not self.store.save(snapshot):
                    logger.warning(f"Background write to {self.store.slot} did not complete")
            except Exception as e:
                logger.error(f"Background writer error: {e}")
            finally:
                with self._cond:
                    self._busy = False
                    self._cond.notify_all()

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Block until nothing is pending or in flight. Returns False on timeout."""
        with self._cond:
            return self._cond.wait_for(
                lambda: self._pending is None and not self._busy, timeout=timeout
            )

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Write whatever is pending, then stop the worker thread."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()
        self._thread.join(timeout)
