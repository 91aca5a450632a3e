import pytest

from checktree.core.checkbox import MIXED
from checktree.core.models import ForestStoreModel
from checktree.ui.controllers.tree_controller import TreeController
from checktree.ui.widgets.tree_node import CHECKBOX_STATE, CHECKED, LABEL, READ_ONLY, TreeNode


@pytest.fixture
def controller(forest):
    ctrl = TreeController(forest)
    yield ctrl
    ctrl.destroy()


@pytest.fixture
def renders():
    calls = []

    def renderer(node, prop, value):
        calls.append((node.identity, prop, value))

    renderer.calls = calls
    return renderer


def test_node_reflects_item(controller, store, lookup):
    node = controller.create_node(lookup(store, "fruit"))
    assert isinstance(node, TreeNode)
    assert node.identity == "fruit"
    assert node.label == "Fruit"
    assert node.is_expandable
    assert node.checkbox_state == MIXED
    assert node.get(CHECKED) == MIXED
    assert node.get(LABEL) == "Fruit"
    assert "fruit" in repr(node)


def test_root_node_has_a_checkbox(controller, forest):
    node = controller.create_node(forest.root)
    assert node.identity == "$root$"
    assert node.has_checkbox
    assert node.checkbox_state == MIXED


def test_no_checkbox_when_model_gives_no_state(store, lookup):
    model = ForestStoreModel(store, checkbox_all=False)
    ctrl = TreeController(model)
    node = ctrl.create_node(lookup(store, "fruit"))
    assert not node.has_checkbox
    assert node.toggle_checkbox() is None
    assert node.get(CHECKED) is None
    assert node.set(CHECKED, True) is False
    ctrl.destroy()


def test_checked_property_goes_through_model(controller, forest, store, lookup, renders):
    pear = lookup(store, "pear")
    node = controller.create_node(pear)
    node.bind_renderer(renders)

    assert node.set(CHECKED, True) is True
    assert forest.get_checked(pear) is True
    assert ("pear", CHECKBOX_STATE, True) in renders.calls


def test_checkbox_state_property_does_not_write_model(controller, forest, store, lookup, renders):
    pear = lookup(store, "pear")
    node = controller.create_node(pear)
    node.bind_renderer(renders)

    node.set(CHECKBOX_STATE, True)
    assert node.checkbox_state is True
    assert forest.get_checked(pear) is False
    assert renders.calls == [("pear", CHECKBOX_STATE, True)]


def test_read_only_property(controller, store, lookup, renders):
    node = controller.create_node(lookup(store, "pear"))
    node.bind_renderer(renders)
    node.set(READ_ONLY, True)
    assert node.read_only
    assert node.get(READ_ONLY) is True
    assert node.toggle_checkbox() is None
    assert node.click(True) is None
    assert renders.calls == [("pear", READ_ONLY, True)]


def test_unknown_property_is_stored_and_rendered(controller, store, lookup, renders):
    node = controller.create_node(lookup(store, "pear"))
    node.bind_renderer(renders)
    node.set("badge", 3)
    assert node.get("badge") == 3
    assert renders.calls == [("pear", "badge", 3)]


def test_label_is_stringified(controller, store, lookup):
    node = controller.create_node(lookup(store, "pear"))
    node.set(LABEL, None)
    assert node.label == ""
    node.set(LABEL, 42)
    assert node.label == "42"


def test_destroy_unregisters_and_ignores_updates(controller, store, lookup, renders):
    pear = lookup(store, "pear")
    node = controller.create_node(pear)
    checkbox = node.checkbox
    node.bind_renderer(renders)
    node.destroy()
    node.destroy()

    assert checkbox.destroyed
    assert node.checkbox is None
    assert controller.nodes_for(pear) == []
    assert node.set(LABEL, "x") is None
    assert node.label == "Pear"
    assert renders.calls == []
