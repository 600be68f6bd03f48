"""
Category operations: pure functions over the category collection.

Deleting a category is irreversible; callers collect the user's confirmation
before calling delete_category().
"""
from typing import Optional
from .schema import Category, Collection, PRESET_COLORS, is_valid_category_name, make_id


def find_category(collection: Collection, category_id: str) -> Optional[Category]:
    for category in collection:
        if category.id == category_id:
            return category
    return None


def add_category(collection: Collection, name: str, color: str = PRESET_COLORS[0]) -> Collection:
    """Append a new empty category. Blank names leave the collection unchanged."""
    if not is_valid_category_name(name):
        return collection
    category = Category(
        id=make_id("cat"),
        name=name.strip(),
        color=color or PRESET_COLORS[0],
        tasks=(),
    )
    return tuple(collection) + (category,)


def update_category(collection: Collection, updated: Category) -> Collection:
    """Replace the entry whose id matches updated.id; unknown ids are a no-op."""
    if find_category(collection, updated.id) is None:
        return collection
    return tuple(updated if c.id == updated.id else c for c in collection)


def delete_category(collection: Collection, category_id: str) -> Collection:
    if find_category(collection, category_id) is None:
        return collection
    return tuple(c for c in collection if c.id != category_id)
