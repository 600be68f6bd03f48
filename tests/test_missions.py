"""
Tests for the mission board core: schema, task and category operations, stats.
"""
import json
import pytest
from dataclasses import FrozenInstanceError

from missions.schema import (
    Category,
    Task,
    Direction,
    PRESET_COLORS,
    is_valid_task_text,
    is_valid_category_name,
    make_id,
    collection_to_json,
    collection_from_json,
)
from missions.tasks import add_task, toggle_task, delete_task, move_task
from missions.categories import add_category, update_category, delete_category, find_category
from missions.stats import (
    total_tasks,
    completed_tasks,
    percent_complete,
    category_progress,
    board_stats,
)


def _ids(category):
    return [t.id for t in category.tasks]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Schema Tests
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_validation_predicates():
    assert is_valid_task_text("Buy milk")
    assert is_valid_task_text("  padded  ")
    assert not is_valid_task_text("")
    assert not is_valid_task_text("   \t\n")
    assert not is_valid_task_text(None)
    assert is_valid_category_name("Client")
    assert not is_valid_category_name("  ")


def test_make_id_unique_under_rapid_calls():
    ids = {make_id() for _ in range(1000)}
    assert len(ids) == 1000


def test_direction_from_str():
    assert Direction.from_str("up") == Direction.UP
    assert Direction.from_str(" DOWN ") == Direction.DOWN
    assert Direction.from_str("sideways") is None


def test_task_defaults():
    task = Task(id="t1", text="Write report")
    assert task.completed is False
    assert isinstance(task.created_at, int)


def test_entities_are_frozen():
    task = Task(id="t1", text="x")
    with pytest.raises(FrozenInstanceError):
        task.completed = True


def test_json_shape_matches_persisted_format(abc_category):
    data = json.loads(collection_to_json((abc_category,)))
    assert data[0]["id"] == "cat-1"
    assert data[0]["color"] == "#4ECDC4"
    assert data[0]["tasks"][0] == {"id": "a", "text": "A", "completed": False, "createdAt": 1}


def test_collection_from_json_restores_equal_value(abc_category):
    restored = collection_from_json(collection_to_json((abc_category,)))
    assert restored == (abc_category,)


@pytest.mark.parametrize("payload", [
    "not json",
    "{}",
    '[{"name": "no id"}]',
    '[{"id": "1", "name": "x", "tasks": "nope"}]',
    '[{"id": "1", "name": "x", "tasks": [{"id": "t", "text": "a", "createdAt": "yesterday"}]}]',
    '[{"id": "1", "name": "a"}, {"id": "1", "name": "b"}]',
    '[{"id": "1", "name": "a", "tasks": [{"id": "t", "text": "x"}, {"id": "t", "text": "y"}]}]',
    '[{"id": "1", "name": "x", "tasks": [{"id": "t", "text": "a", "createdAt": 1e400}]}]',
    '[{"id": "1", "name": "x", "tasks": [{"id": "t", "text": "a", "completed": "false"}]}]',
    '[{"id": "1", "name": "x", "color": 123}]',
])
def test_collection_from_json_rejects_bad_payloads(payload):
    with pytest.raises(ValueError):
        collection_from_json(payload)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Task Operation Tests
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_task_lifecycle_scenario():
    """add → toggle → delete on an empty category"""
    cat = Category(id="c", name="Errands")

    cat = add_task(cat, "Buy milk")
    assert len(cat.tasks) == 1
    task = cat.tasks[0]
    assert task.text == "Buy milk"
    assert task.completed is False

    cat = toggle_task(cat, task.id)
    assert cat.tasks[0].completed is True

    cat = delete_task(cat, task.id)
    assert cat.tasks == ()


def test_add_task_trims_and_appends(abc_category):
    cat = add_task(abc_category, "  D  ")
    assert [t.text for t in cat.tasks] == ["A", "B", "C", "D"]
    assert cat.tasks[-1].id not in {"a", "b", "c"}


def test_add_task_rejects_blank_text(abc_category):
    assert add_task(abc_category, "   ") is abc_category
    assert add_task(abc_category, "") is abc_category


def test_add_task_does_not_mutate_input(abc_category):
    add_task(abc_category, "D")
    assert _ids(abc_category) == ["a", "b", "c"]


def test_add_task_ids_unique_under_rapid_calls():
    cat = Category(id="c", name="Bulk")
    for i in range(200):
        cat = add_task(cat, f"task {i}")
    assert len(set(_ids(cat))) == 200


def test_toggle_is_its_own_inverse(abc_category):
    assert toggle_task(toggle_task(abc_category, "b"), "b") == abc_category


def test_toggle_only_touches_target(abc_category):
    cat = toggle_task(abc_category, "b")
    assert [t.completed for t in cat.tasks] == [False, True, False]


def test_toggle_and_delete_unknown_id_are_noops(abc_category):
    assert toggle_task(abc_category, "zzz") == abc_category
    assert delete_task(abc_category, "zzz") == abc_category


def test_delete_task_preserves_order(abc_category):
    assert _ids(delete_task(abc_category, "b")) == ["a", "c"]


def test_move_up_at_top_is_noop(abc_category):
    assert move_task(abc_category, "a", "up") == abc_category


def test_move_down_at_bottom_is_noop(abc_category):
    assert move_task(abc_category, "c", Direction.DOWN) == abc_category


def test_move_swaps_with_neighbour():
    cat = Category(id="c", name="Two", tasks=(Task(id="1", text="A"), Task(id="2", text="B")))
    assert _ids(move_task(cat, "2", "up")) == ["2", "1"]


def test_move_is_single_step(abc_category):
    cat = move_task(abc_category, "c", Direction.UP)
    assert _ids(cat) == ["a", "c", "b"]
    cat = move_task(cat, "c", Direction.UP)
    assert _ids(cat) == ["c", "a", "b"]


def test_move_down(abc_category):
    assert _ids(move_task(abc_category, "a", "down")) == ["b", "a", "c"]


def test_move_unknown_task_or_direction_is_noop(abc_category):
    assert move_task(abc_category, "zzz", "up") == abc_category
    assert move_task(abc_category, "b", "sideways") == abc_category


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Category Operation Tests
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_add_category_appends_empty_category(abc_category):
    before = (abc_category,)
    after = add_category(before, "  Health ", "#2ECC71")
    assert len(after) == len(before) + 1
    new = after[-1]
    assert new.name == "Health"
    assert new.color == "#2ECC71"
    assert new.tasks == ()
    assert new.id not in {c.id for c in before}


@pytest.mark.parametrize("name", ["", "   ", "\t"])
def test_add_category_rejects_blank_name(abc_category, name):
    before = (abc_category,)
    assert add_category(before, name, "#2ECC71") == before


def test_add_category_default_color():
    assert add_category((), "Inbox")[0].color == PRESET_COLORS[0]


def test_add_category_ids_unique_under_rapid_calls():
    collection = ()
    for i in range(100):
        collection = add_category(collection, f"cat {i}")
    assert len({c.id for c in collection}) == 100


def test_update_category_replaces_in_place(abc_category):
    other = Category(id="cat-2", name="Home")
    collection = (abc_category, other)
    updated = add_task(abc_category, "D")
    result = update_category(collection, updated)
    assert result[0] == updated
    assert result[1] is other
    assert collection[0] is abc_category


def test_update_category_unknown_id_is_noop(abc_category):
    collection = (abc_category,)
    stray = Category(id="missing", name="Ghost")
    assert update_category(collection, stray) == collection


def test_delete_category(abc_category):
    other = Category(id="cat-2", name="Home")
    assert delete_category((abc_category, other), "cat-1") == (other,)
    assert delete_category((abc_category,), "nope") == (abc_category,)


def test_find_category(abc_category):
    assert find_category((abc_category,), "cat-1") is abc_category
    assert find_category((abc_category,), "nope") is None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Stats Tests
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _category(cat_id, done, total):
    tasks = tuple(Task(id=f"{cat_id}-{i}", text=str(i), completed=i < done) for i in range(total))
    return Category(id=cat_id, name=cat_id, tasks=tasks)


def test_aggregate_counts():
    collection = (_category("x", 2, 4), _category("y", 1, 1))
    assert total_tasks(collection) == 5
    assert completed_tasks(collection) == 3
    assert percent_complete(collection) == 60


def test_percent_of_empty_board_is_zero():
    assert percent_complete(()) == 0
    assert percent_complete((Category(id="e", name="Empty"),)) == 0


def test_percent_rounds_half_up():
    # 1 of 8 = 12.5%
    assert percent_complete((_category("x", 1, 8),)) == 13
    # 2 of 3 = 66.67%
    assert percent_complete((_category("x", 2, 3),)) == 67


def test_category_progress():
    assert category_progress(_category("x", 1, 4)) == (1, 4, 0.25)
    assert category_progress(Category(id="e", name="Empty")) == (0, 0, 0.0)


def test_board_stats_recomputed_from_current_value():
    cat = _category("x", 0, 2)
    assert board_stats((cat,))["completed"] == 0
    cat = toggle_task(cat, "x-0")
    stats = board_stats((cat,))
    assert stats["completed"] == 1
    assert stats["percent"] == 50
    assert stats["by_category"][0] == {
        "id": "x", "name": "x", "completed": 1, "total": 2, "progress": 0.5,
    }
