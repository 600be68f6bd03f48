"""
Task operations: pure functions (Category, args) -> Category.

Each function returns a new Category and leaves its input untouched. Invalid
text and unknown task ids are no-ops that hand back the same value.
"""
from dataclasses import replace
from typing import Optional, Union
from .schema import Category, Task, Direction, is_valid_task_text, make_id, now_ms


def _index_of(category: Category, task_id: str) -> Optional[int]:
    for i, task in enumerate(category.tasks):
        if task.id == task_id:
            return i
    return None


def add_task(category: Category, text: str) -> Category:
    """Append a new incomplete task at the end of the category."""
    if not is_valid_task_text(text):
        return category
    task = Task(id=make_id("task"), text=text.strip(), completed=False, created_at=now_ms())
    return replace(category, tasks=category.tasks + (task,))


def toggle_task(category: Category, task_id: str) -> Category:
    """Flip the completed flag of one task."""
    if _index_of(category, task_id) is None:
        return category
    return replace(category, tasks=tuple(
        replace(t, completed=not t.completed) if t.id == task_id else t
        for t in category.tasks
    ))


def delete_task(category: Category, task_id: str) -> Category:
    if _index_of(category, task_id) is None:
        return category
    return replace(category, tasks=tuple(t for t in category.tasks if t.id != task_id))


def move_task(category: Category, task_id: str, direction: Union[Direction, str]) -> Category:
    """
    Swap a task with its neighbour: UP toward index 0, DOWN toward the end.

    One adjacent swap per call. Tasks already at the matching boundary,
    unknown ids, and unknown directions are left in place.
    """
    if not isinstance(direction, Direction):
        direction = Direction.from_str(str(direction))
        if direction is None:
            return category

    index = _index_of(category, task_id)
    if index is None:
        return category
    if direction == Direction.UP and index == 0:
        return category
    if direction == Direction.DOWN and index == len(category.tasks) - 1:
        return category

    new_index = index - 1 if direction == Direction.UP else index + 1
    tasks = list(category.tasks)
    tasks[index], tasks[new_index] = tasks[new_index], tasks[index]
    return replace(category, tasks=tuple(tasks))
