import json

import pytest

from checktree.core.exceptions import QueryError, StoreError
from checktree.core.store import ItemStore, StoreItem


def _ids(store, items):
    return [store.get_identity(i) for i in items]


def test_load_resolves_nested_items_and_references(store, lookup):
    fruit = lookup(store, "fruit")
    tomato = lookup(store, "tomato")
    assert _ids(store, store.get_values(fruit, "children")) == ["apple", "pear", "tomato"]
    assert store.get_values(fruit, "children")[2] is tomato
    assert store.parents_of(tomato, ["children"]) == [fruit, lookup(store, "vegetables")]
    assert store.get_label_attributes() == ["name"]
    assert store.get_identity_attributes() == ["id"]


def test_top_level_items_are_root_items(store, lookup):
    assert store.is_root_item(lookup(store, "fruit"))
    assert not store.is_root_item(lookup(store, "apple"))


def test_unknown_reference_raises():
    with pytest.raises(StoreError):
        ItemStore({"items": [{"id": "a", "children": [{"_reference": "missing"}]}]})


def test_duplicate_identity_raises():
    with pytest.raises(StoreError):
        ItemStore({"items": [{"id": "a"}, {"id": "a"}]})


def test_items_without_identity_get_one():
    store = ItemStore({"items": [{"name": "anonymous"}]})
    (item,) = store.all_items()
    assert store.get_identity(item) == "item-1"


def test_from_json(tmp_path, groceries):
    path = tmp_path / "data.json"
    path.write_text(json.dumps(groceries), encoding="utf-8")
    store = ItemStore.from_json(path)
    assert len(store.all_items()) == 8


def test_value_accessors(store, lookup):
    apple = lookup(store, "apple")
    assert store.get_value(apple, "name") == "Apple"
    assert store.get_value(apple, "missing", "dflt") == "dflt"
    assert store.get_values(apple, "name") == ["Apple"]
    assert store.get_values(apple, "missing") == []
    assert store.has_attribute(apple, "checked")
    assert not store.has_attribute("apple", "checked")
    assert set(store.get_attributes(apple)) == {"id", "name", "checked"}


def test_fetch_filters_top_level_items(store):
    results = []
    store.fetch({"type": "group"}, results.append)
    store.fetch({"id": "bread"}, results.append)
    store.fetch(None, results.append)
    assert _ids(store, results[0]) == ["fruit", "vegetables", "bread"]
    assert _ids(store, results[1]) == ["bread"]
    assert _ids(store, results[2]) == ["fruit", "vegetables", "bread"]


def test_fetch_is_delivered_through_scheduler(deferred_store, scheduler):
    results = []
    deferred_store.fetch(None, results.append)
    assert results == []
    assert scheduler.pending == 1
    scheduler.run_all()
    assert len(results[0]) == 3


def test_fetch_result_is_computed_when_issued(deferred_store, scheduler):
    results = []
    deferred_store.fetch(None, results.append)
    deferred_store.new_item({"id": "late", "type": "group"})
    scheduler.run_all()
    assert _ids(deferred_store, results[0]) == ["fruit", "vegetables", "bread"]


def test_invalid_query_goes_to_on_error(store):
    errors = []
    store.fetch("type=group", lambda items: pytest.fail("unexpected result"), errors.append)
    assert isinstance(errors[0], QueryError)
    assert errors[0].query == "type=group"


def test_fetch_item_by_identity_unknown_gives_none(store):
    found = []
    store.fetch_item_by_identity("nope", found.append)
    assert found == [None]


def test_set_value_notifies_only_on_change(store, lookup, recorder_factory):
    rec = recorder_factory(store)
    apple = lookup(store, "apple")
    assert store.set_value(apple, "checked", True) is False
    assert store.set_value(apple, "checked", False) is True
    assert rec.of("set") == [(apple, "checked", True, False)]


def test_set_value_distinguishes_types(store, lookup):
    apple = lookup(store, "apple")
    store.set_value(apple, "count", 1)
    assert store.set_value(apple, "count", True) is True


def test_new_top_level_item_emits_root_change(store, recorder_factory):
    rec = recorder_factory(store)
    item = store.new_item({"id": "cheese", "name": "Cheese"})
    assert isinstance(item, StoreItem)
    assert store.is_root_item(item)
    assert rec.of("root_change") == [(item, {"attach": True})]


def test_new_child_item_is_inserted_in_parent(store, lookup, recorder_factory):
    fruit = lookup(store, "fruit")
    rec = recorder_factory(store)
    kiwi = store.new_item({"id": "kiwi", "name": "Kiwi"}, parent=fruit, insert_index=0)
    assert _ids(store, store.get_values(fruit, "children")) == ["kiwi", "apple", "pear", "tomato"]
    assert not store.is_root_item(kiwi)
    ((item, attr, _old, new),) = rec.of("set")
    assert item is fruit and attr == "children" and new[0] is kiwi


def test_delete_item_removes_every_reference(store, lookup, recorder_factory):
    tomato = lookup(store, "tomato")
    fruit, vegetables = lookup(store, "fruit"), lookup(store, "vegetables")
    rec = recorder_factory(store)

    assert store.delete_item(tomato) is True
    assert not store.is_item(tomato)
    assert [c[0] for c in rec.of("set")] == [fruit, vegetables]
    assert rec.of("delete") == [(tomato,)]
    assert store.delete_item(tomato) is False


def test_attach_and_detach_root(store, lookup, recorder_factory):
    apple = lookup(store, "apple")
    rec = recorder_factory(store)
    store.attach_to_root(apple)
    store.attach_to_root(apple)
    store.detach_from_root(apple)
    store.detach_from_root(apple)
    assert rec.of("root_change") == [(apple, {"attach": True}), (apple, {"detach": True})]


def test_failing_subscriber_does_not_block_others(store, lookup, caplog):
    seen = []

    def broken(*args):
        raise RuntimeError("boom")

    store.subscribe("broken", set=broken)
    store.subscribe("ok", set=lambda *args: seen.append(args))
    store.set_value(lookup(store, "apple"), "checked", False)
    assert len(seen) == 1
    assert "Subscriber 'broken' failed" in caplog.text


def test_subscribe_rejects_unknown_event(store):
    with pytest.raises(ValueError):
        store.subscribe("x", nonsense=lambda: None)


def test_unsubscribe_stops_notifications(store, lookup, recorder_factory):
    rec = recorder_factory(store, "rec")
    store.unsubscribe("rec")
    store.set_value(lookup(store, "apple"), "checked", False)
    assert rec.calls == []
