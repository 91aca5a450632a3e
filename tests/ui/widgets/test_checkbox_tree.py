import tkinter as tk

import pytest

from checktree.core.models import ForestStoreModel
from checktree.ui.widgets.checkbox_tree import GLYPHS, CheckboxTreeWidget


def _can_create_tk_root() -> bool:
    try:
        r = tk.Tk()
        r.destroy()
        return True
    except tk.TclError:
        return False


pytestmark = pytest.mark.skipif(
    not _can_create_tk_root(),
    reason="Tkinter root cannot be created in this environment (likely headless CI without display).",
)


@pytest.fixture
def tk_root():
    root = tk.Tk()
    # Avoid showing a window during tests
    root.withdraw()
    yield root
    root.destroy()


@pytest.fixture
def model(store):
    m = ForestStoreModel(store, root_label="All")
    yield m
    m.destroy()


def _texts(widget, item_ids):
    return [widget.get_row(i)["text"] for i in item_ids]


def _row_of(widget, identity):
    (item_id,) = widget.find_item_ids(identity)
    return item_id


def test_root_row_is_shown_and_expanded(tk_root, model):
    widget = CheckboxTreeWidget(tk_root, model)
    (root_id,) = widget.top_level_ids()
    row = widget.get_row(root_id)
    assert row["text"] == "All"
    assert row["open"] is True
    assert row["checkbox"] == GLYPHS["mixed"]
    assert _texts(widget, row["children"]) == ["Fruit", "Vegetables", "Bread"]
    widget.destroy()


def test_hidden_root_shows_top_level_items(tk_root, model):
    widget = CheckboxTreeWidget(tk_root, model, show_root=False)
    assert _texts(widget, widget.top_level_ids()) == ["Fruit", "Vegetables", "Bread"]
    assert widget.find_item_ids("$root$") == []
    widget.destroy()


def test_children_are_loaded_on_expand(tk_root, model):
    widget = CheckboxTreeWidget(tk_root, model, show_root=False)
    fruit_id = _row_of(widget, "fruit")
    assert widget.get_row(fruit_id)["children"] == []
    assert widget.find_item_ids("apple") == []

    widget.expand(fruit_id)
    assert _texts(widget, widget.get_row(fruit_id)["children"]) == ["Apple", "Pear", "Tomato"]
    assert widget.get_row(_row_of(widget, "apple"))["checkbox"] == GLYPHS[True]
    widget.destroy()


def test_duplicate_rows_converge_on_click(tk_root, model):
    widget = CheckboxTreeWidget(tk_root, model, show_root=False)
    widget.expand(_row_of(widget, "fruit"))
    widget.expand(_row_of(widget, "vegetables"))
    first, second = widget.find_item_ids("tomato")

    widget.node_for(first).click(True)
    assert widget.get_row(first)["checkbox"] == GLYPHS[True]
    assert widget.get_row(second)["checkbox"] == GLYPHS[True]
    assert widget.get_row(_row_of(widget, "vegetables"))["checkbox"] == GLYPHS["mixed"]
    widget.destroy()


def test_two_trees_share_one_model(tk_root, model):
    left = CheckboxTreeWidget(tk_root, model)
    right = CheckboxTreeWidget(tk_root, model, show_root=False)

    right.node_for(_row_of(right, "bread")).click(True)
    assert left.get_row(_row_of(left, "bread"))["checkbox"] == GLYPHS[False]
    assert right.get_row(_row_of(right, "bread"))["checkbox"] == GLYPHS[False]
    left.destroy()
    right.destroy()


def test_new_top_level_item_appears_in_both_views(tk_root, model):
    shown = CheckboxTreeWidget(tk_root, model)
    hidden = CheckboxTreeWidget(tk_root, model, show_root=False)

    model.new_item({"id": "cheese", "name": "Cheese"}, parent=model.root)
    (root_id,) = shown.top_level_ids()
    assert _texts(shown, shown.get_row(root_id)["children"])[-1] == "Cheese"
    assert _texts(hidden, hidden.top_level_ids())[-1] == "Cheese"
    shown.destroy()
    hidden.destroy()


def test_label_change_updates_row(tk_root, model, store, lookup):
    widget = CheckboxTreeWidget(tk_root, model, show_root=False)
    store.set_value(lookup(store, "bread"), "name", "Baked\ngoods")
    assert widget.get_row(_row_of(widget, "bread"))["text"] == "Baked goods"
    widget.destroy()


def test_deleted_item_row_is_removed(tk_root, model, store, lookup):
    deleted = []
    widget = CheckboxTreeWidget(tk_root, model, show_root=False, on_item_deleted=deleted.append)
    fruit_id = _row_of(widget, "fruit")
    widget.expand(fruit_id)
    pear = lookup(store, "pear")

    store.delete_item(pear)
    assert widget.find_item_ids("pear") == []
    assert _texts(widget, widget.get_row(fruit_id)["children"]) == ["Apple", "Tomato"]
    assert deleted == [pear]
    widget.destroy()


def test_row_lookups_follow_rebuilt_rows(tk_root, model):
    widget = CheckboxTreeWidget(tk_root, model, show_root=False)
    widget.expand(_row_of(widget, "fruit"))
    widget.expand(_row_of(widget, "vegetables"))
    old_rows = widget.find_item_ids("tomato")
    assert len(old_rows) == 2

    model.new_item({"id": "cheese", "name": "Cheese"}, parent=model.root)
    (fruit_id,) = widget.find_item_ids("fruit")
    assert all(row not in widget.find_item_ids("tomato") for row in old_rows)
    assert widget.find_item_ids("cheese") != []
    assert widget.find_item_ids("apple") == []

    widget.expand(fruit_id)
    (apple_id,) = widget.find_item_ids("apple")
    widget.node_for(apple_id).click(True)
    assert widget.get_row(apple_id)["checkbox"] == GLYPHS[False]
    assert widget.get_row(fruit_id)["checkbox"] == GLYPHS[False]

    widget.clear()
    assert widget.find_item_ids("fruit") == []
    assert widget.node_for(fruit_id) is None
    widget.destroy()


def test_clear_and_destroy(tk_root, model):
    widget = CheckboxTreeWidget(tk_root, model)
    controller = widget.controller
    widget.clear()
    assert widget.top_level_ids() == []
    assert len(controller.index) == 0
    widget.destroy()
    assert controller.destroyed
