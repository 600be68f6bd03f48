"""
Board statistics, derived from the current collection on every call.
"""
import math
from typing import Dict, Any, Tuple
from .schema import Category, Collection


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def total_tasks(collection: Collection) -> int:
    return sum(len(c.tasks) for c in collection)


def completed_tasks(collection: Collection) -> int:
    return sum(1 for c in collection for t in c.tasks if t.completed)


def percent_complete(collection: Collection) -> int:
    """Whole-number percentage of completed tasks (0 for an empty board)."""
    total = total_tasks(collection)
    if total == 0:
        return 0
    return _round_half_up(100 * completed_tasks(collection) / total)


def category_progress(category: Category) -> Tuple[int, int, float]:
    """(completed, total, fraction) for one category; fraction is 0.0 when empty."""
    total = len(category.tasks)
    done = sum(1 for t in category.tasks if t.completed)
    return done, total, (done / total if total else 0.0)


def board_stats(collection: Collection) -> Dict[str, Any]:
    """JSON-ready summary for the board header and per-category bars."""
    by_category = []
    for category in collection:
        done, total, fraction = category_progress(category)
        by_category.append({
            "id": category.id,
            "name": category.name,
            "completed": done,
            "total": total,
            "progress": fraction,
        })
    return {
        "total": total_tasks(collection),
        "completed": completed_tasks(collection),
        "percent": percent_complete(collection),
        "categories": len(collection),
        "by_category": by_category,
    }
