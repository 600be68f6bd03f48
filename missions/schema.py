"""
Mission board schema: categories, tasks, and the persisted JSON shape.

A board is an ordered tuple of Category values; each Category owns an ordered
tuple of Task values. Every value is frozen: operations build new values and
never mutate the snapshot they were given.

Persisted shape (one JSON array, no version field):
  [{"id", "name", "color", "tasks": [{"id", "text", "completed", "createdAt"}]}]
"""
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Tuple, List, Dict, Any
import json
import math
import time
import uuid


# Colour picker palette offered when creating a category
PRESET_COLORS: Tuple[str, ...] = (
    "#FF6B9D", "#4ECDC4", "#95E1D3", "#FFA07A", "#9B59B6",
    "#3498DB", "#E74C3C", "#F39C12", "#2ECC71", "#1ABC9C",
    "#34495E", "#E67E22", "#16A085", "#8E44AD", "#C0392B",
)


class Direction(Enum):
    """Single-step move directions within a category."""
    UP = "up"        # toward index 0
    DOWN = "down"    # toward the end

    @classmethod
    def from_str(cls, value: str) -> Optional["Direction"]:
        try:
            return cls[value.strip().upper()]
        except (KeyError, AttributeError):
            return None


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def make_id(prefix: str = "") -> str:
    """Generate a unique id (ms-precision timestamp + 48 random bits)."""
    rand = uuid.uuid4().hex[:12]
    ident = f"{now_ms()}-{rand}"
    return f"{prefix}-{ident}" if prefix else ident


def is_valid_task_text(text: Any) -> bool:
    return isinstance(text, str) and bool(text.strip())


def is_valid_category_name(name: Any) -> bool:
    return isinstance(name, str) and bool(name.strip())


@dataclass(frozen=True)
class Task:
    """One completable item inside a category."""

    id: str                          # Opaque, assigned at creation
    text: str                        # Trimmed display text
    completed: bool = False
    created_at: int = field(default_factory=now_ms)  # Epoch ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Deserialize from the persisted shape. Raises ValueError if malformed."""
        if not isinstance(data, dict):
            raise ValueError(f"task entry must be an object, got {type(data).__name__}")
        task_id = data.get("id")
        text = data.get("text")
        if not isinstance(task_id, str) or not task_id:
            raise ValueError(f"task id missing or not a string: {task_id!r}")
        if not isinstance(text, str):
            raise ValueError(f"task {task_id} has no text")
        created_at = data.get("createdAt", 0)
        if isinstance(created_at, bool) or not isinstance(created_at, (int, float)) \
                or not math.isfinite(created_at):
            raise ValueError(f"task {task_id} has invalid createdAt: {created_at!r}")
        completed = data.get("completed", False)
        if not isinstance(completed, bool):
            raise ValueError(f"task {task_id} has non-boolean completed: {completed!r}")
        return cls(
            id=task_id,
            text=text,
            completed=completed,
            created_at=int(created_at),
        )


@dataclass(frozen=True)
class Category:
    """A named, coloured, ordered group of tasks."""

    id: str
    name: str
    color: str = PRESET_COLORS[0]
    tasks: Tuple[Task, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "tasks": [t.to_dict() for t in self.tasks],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        """Deserialize from the persisted shape. Raises ValueError if malformed."""
        if not isinstance(data, dict):
            raise ValueError(f"category entry must be an object, got {type(data).__name__}")
        cat_id = data.get("id")
        name = data.get("name")
        if not isinstance(cat_id, str) or not cat_id:
            raise ValueError(f"category id missing or not a string: {cat_id!r}")
        if not isinstance(name, str):
            raise ValueError(f"category {cat_id} has no name")
        raw_tasks = data.get("tasks", [])
        if not isinstance(raw_tasks, list):
            raise ValueError(f"category {cat_id} tasks must be a list")

        color = data.get("color") or PRESET_COLORS[0]
        if not isinstance(color, str):
            raise ValueError(f"category {cat_id} color must be a string: {color!r}")

        tasks = tuple(Task.from_dict(t) for t in raw_tasks)
        _check_unique([t.id for t in tasks], f"task id in category {cat_id}")
        return cls(
            id=cat_id,
            name=name,
            color=color,
            tasks=tasks,
        )


# Type alias for a board snapshot
Collection = Tuple[Category, ...]


def _check_unique(ids: List[str], label: str) -> None:
    seen = set()
    for ident in ids:
        if ident in seen:
            raise ValueError(f"duplicate {label}: {ident}")
        seen.add(ident)


def collection_to_list(collection: Collection) -> List[Dict[str, Any]]:
    return [c.to_dict() for c in collection]


def collection_from_list(data: Any) -> Collection:
    """Build a collection from decoded JSON. Raises ValueError if malformed."""
    if not isinstance(data, list):
        raise ValueError(f"snapshot must be a list, got {type(data).__name__}")
    categories = tuple(Category.from_dict(c) for c in data)
    _check_unique([c.id for c in categories], "category id")
    return categories


def collection_to_json(collection: Collection) -> str:
    return json.dumps(collection_to_list(collection))


def collection_from_json(payload: str) -> Collection:
    """Parse a persisted snapshot. Raises ValueError on bad JSON or shape."""
    return collection_from_list(json.loads(payload))
