"""
Mission session: the one object that owns the live board snapshot.

Every change is a two-step commit: the pure operation's result replaces the
in-memory snapshot, then the snapshot goes to the writer. The session never
waits on the write, so the in-memory value is correct even if persistence is
slow or fails.

Session lifecycle follows the gate: an identity arriving loads the snapshot,
the identity going away discards it (the stored copy is kept).
"""
import logging
from typing import Optional, Dict, Any, Callable, List, Union

from .auth import Identity, SessionGate
from .schema import Category, Collection, Direction, PRESET_COLORS
from .store import SnapshotStore
from .writer import InlineWriter
from . import categories as category_ops
from . import tasks as task_ops
from . import stats

logger = logging.getLogger(__name__)

ChangeListener = Callable[[Collection], None]


class MissionSession:
    """Session-scoped owner of the category collection."""

    def __init__(self, store: SnapshotStore, gate: Optional[SessionGate] = None, writer=None):
        self.store = store
        self.gate = gate
        self.writer = writer if writer is not None else InlineWriter(store)
        self._collection: Optional[Collection] = None
        self._identity: Optional[Identity] = None
        self._listeners: List[ChangeListener] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

        if gate is not None:
            self._unsubscribe = gate.on_session_change(self._on_session_change)
            current = gate.get_current_user()
            if current is not None:
                self._on_session_change(current)

    # ── lifecycle ──

    @property
    def active(self) -> bool:
        return self._collection is not None

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    def _on_session_change(self, identity: Optional[Identity]) -> None:
        if identity is None:
            self.end()
        else:
            self.start(identity)

    def start(self, identity: Optional[Identity] = None) -> Collection:
        """Load the stored snapshot into memory."""
        self._identity = identity
        self._collection = self.store.load()
        who = identity.email if identity else "anonymous"
        logger.info(f"Session started for {who} with {len(self._collection)} categories")
        self._notify()
        return self._collection

    def end(self) -> None:
        """Discard the in-memory snapshot. The stored copy is untouched."""
        if self._collection is not None:
            who = self._identity.email if self._identity else "anonymous"
            logger.info(f"Session ended for {who}")
        self._collection = None
        self._identity = None

    def close(self) -> None:
        """Detach from the gate and drain pending writes."""
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
        self.writer.close()

    # ── reads ──

    @property
    def categories(self) -> Collection:
        return self._collection if self._collection is not None else ()

    def get_category(self, category_id: str) -> Optional[Category]:
        return category_ops.find_category(self.categories, category_id)

    def stats(self) -> Dict[str, Any]:
        return stats.board_stats(self.categories)

    def subscribe(self, callback: ChangeListener) -> None:
        """Register a callback invoked with the new snapshot after each change."""
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            try:
                callback(self.categories)
            except Exception as e:
                logger.error(f"Error in change listener: {e}")

    # ── commit ──

    def _commit(self, new: Collection) -> bool:
        """Apply a new snapshot, then hand it to the writer. False if nothing changed."""
        if self._collection is None:
            logger.warning("Ignoring board change: no active session")
            return False
        if new == self._collection:
            return False
        self._collection = new
        if new:
            self.writer.submit(new)
        else:
            logger.debug("Board is empty; not persisting over stored snapshot")
        self._notify()
        return True

    def _apply_to_category(self, category_id: str, op: Callable[[Category], Category]) -> Optional[Category]:
        category = self.get_category(category_id)
        if category is None:
            return None
        updated = op(category)
        self._commit(category_ops.update_category(self.categories, updated))
        return updated

    # ── category operations ──

    def add_category(self, name: str, color: str = PRESET_COLORS[0]) -> Optional[Category]:
        """Add a category; returns it, or None if the name was rejected."""
        before = self.categories
        if not self._commit(category_ops.add_category(before, name, color)):
            return None
        return self.categories[-1]

    def update_category(self, category: Category) -> bool:
        return self._commit(category_ops.update_category(self.categories, category))

    def delete_category(self, category_id: str) -> bool:
        """Remove a category and its tasks. Callers confirm with the user first."""
        return self._commit(category_ops.delete_category(self.categories, category_id))

    # ── task operations ──

    def add_task(self, category_id: str, text: str) -> Optional[Category]:
        return self._apply_to_category(category_id, lambda c: task_ops.add_task(c, text))

    def toggle_task(self, category_id: str, task_id: str) -> Optional[Category]:
        return self._apply_to_category(category_id, lambda c: task_ops.toggle_task(c, task_id))

    def delete_task(self, category_id: str, task_id: str) -> Optional[Category]:
        return self._apply_to_category(category_id, lambda c: task_ops.delete_task(c, task_id))

    def move_task(self, category_id: str, task_id: str, direction: Union[Direction, str]) -> Optional[Category]:
        return self._apply_to_category(category_id, lambda c: task_ops.move_task(c, task_id, direction))
