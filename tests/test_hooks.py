"""Tests for list and mapping method overrides."""

from collections.abc import Callable
from functools import partial
from typing import Any
from unittest.mock import patch

import pytest

from observeproxy import (
    ActionManager,
    ObserveProxy,
    ScopeManager,
    UseAfterDisposeError,
    dispose,
    get_state,
    is_proxy,
    observe,
)

Doc = ObserveProxy[dict[str, Any]]


class TestListHooks:
    """Structural list mutations are logged as one diff each."""

    def test_append_and_undo(
        self, doc: Doc, raw: dict[str, Any], actions: ActionManager
    ) -> None:
        doc["items"].append({"x": 3})
        diff = actions.history[-1]

        assert raw["items"][-1] == {"x": 3}
        assert diff.type == "List.append"
        assert diff.path == ("items",)
        assert diff.target is raw

        actions.undo()
        assert raw["items"] == [{"x": 1}, {"x": 2}]

        actions.redo()
        assert raw["items"] == [{"x": 1}, {"x": 2}, {"x": 3}]

    def test_hooks_are_plain_callables(self, doc: Doc) -> None:
        append = doc["items"].append

        assert callable(append)
        assert not is_proxy(append)

    def test_pop_returns_raw_value(
        self, doc: Doc, raw: dict[str, Any], actions: ActionManager
    ) -> None:
        last = raw["items"][-1]

        popped = doc["items"].pop()

        assert popped is last
        assert not is_proxy(popped)
        assert actions.history[-1].type == "List.pop"

    def test_insert_evicts_shifted_children(self, doc: Doc) -> None:
        items = doc["items"]
        first = items[0]

        items.insert(0, {"x": 0})

        with pytest.raises(UseAfterDisposeError):
            first["x"]
        moved = items[1]
        assert moved == {"x": 1}
        assert get_state(moved).path == ("items", 1)

    def test_extend_unwraps_proxies(self, doc: Doc, raw: dict[str, Any]) -> None:
        doc["items"].extend([doc["a"], 5])

        assert raw["items"][-2] is raw["a"]
        assert raw["items"][-1] == 5

    def test_failed_remove_logs_nothing(self, doc: Doc, actions: ActionManager) -> None:
        items = doc["items"]

        with pytest.raises(ValueError):
            items.remove({"x": 99})

        assert len(actions) == 0

    def test_remove_matches_unwrapped_value(self, doc: Doc, raw: dict[str, Any]) -> None:
        items = doc["items"]

        items.remove(items[0])

        assert raw["items"] == [{"x": 2}]

    def test_sort_and_reverse(
        self, scope: ScopeManager, actions: ActionManager
    ) -> None:
        raw = [3, 1, 2]
        numbers = observe(raw, scope)

        numbers.sort()
        assert raw == [1, 2, 3]

        numbers.sort(key=lambda n: -n)
        assert raw == [3, 2, 1]

        numbers.reverse()
        assert raw == [1, 2, 3]

        actions.undo()
        actions.undo()
        actions.undo()
        assert raw == [3, 1, 2]

    def test_clear_and_undo(
        self, doc: Doc, raw: dict[str, Any], actions: ActionManager
    ) -> None:
        doc["items"].clear()
        assert raw["items"] == []

        actions.undo()
        assert raw["items"] == [{"x": 1}, {"x": 2}]

    def test_slice_assignment(
        self, doc: Doc, raw: dict[str, Any], actions: ActionManager
    ) -> None:
        doc["items"][0:2] = [doc["a"]]

        assert raw["items"] == [{"b": 1}]
        assert raw["items"][0] is raw["a"]
        assert actions.history[-1].type == "List.splice"

        actions.undo()
        assert raw["items"] == [{"x": 1}, {"x": 2}]

    def test_readers_do_not_log(
        self, scope: ScopeManager, actions: ActionManager
    ) -> None:
        raw = [1, 2, 2]
        numbers = observe(raw, scope)

        assert numbers.index(2) == 1
        assert numbers.count(2) == 2
        snapshot = numbers.copy()

        assert snapshot == raw
        assert snapshot is not raw
        assert len(actions) == 0

    def test_value_membership(self, scope: ScopeManager) -> None:
        raw = [1, {"a": 1}]
        values = observe(raw, scope)

        assert 1 in values
        assert {"a": 1} in values
        assert 5 not in values

    def test_unknown_attribute_raises(self, doc: Doc) -> None:
        with pytest.raises(AttributeError):
            doc["items"].not_a_method

    def test_hook_of_disposed_list_fails(self, doc: Doc) -> None:
        items = doc["items"]
        append = items.append

        dispose(items)

        with pytest.raises(UseAfterDisposeError):
            append(1)

    def test_undo_of_nested_list_change(
        self, scope: ScopeManager, actions: ActionManager
    ) -> None:
        raw = {"rows": [[1, 2], [3]]}
        doc = observe(raw, scope)

        doc["rows"][1].append(4)
        doc["rows"].insert(0, [])

        actions.undo()
        actions.undo()

        assert raw == {"rows": [[1, 2], [3]]}


class TestMappingHooks:
    """Mapping methods are expressed through key-level writes and deletes."""

    def test_get(self, doc: Doc) -> None:
        assert doc.get("a") is doc["a"]
        assert doc.get("missing") is None
        assert doc.get("missing", 0) == 0

    def test_data_key_named_like_a_hook(self, scope: ScopeManager) -> None:
        raw = {"keys": 1, "get": 2}
        doc = observe(raw, scope)

        assert doc["keys"] == 1
        assert doc["get"] == 2
        assert list(doc.keys()) == ["keys", "get"]

    def test_values_and_items_wrap_children(self, doc: Doc) -> None:
        values = doc.values()
        items = dict(doc.items())

        assert values[0] is doc["a"]
        assert items["items"] is doc["items"]
        assert items["title"] == "doc"

    def test_update_logs_one_diff_per_key(
        self, doc: Doc, raw: dict[str, Any], actions: ActionManager
    ) -> None:
        doc.update({"x": 1}, y=2)

        assert raw["x"] == 1
        assert raw["y"] == 2
        assert [diff.path for diff in actions.history] == [("x",), ("y",)]

    def test_update_from_pairs(self, doc: Doc, raw: dict[str, Any]) -> None:
        doc.update([("x", 1), ("y", 2)])

        assert raw["x"] == 1
        assert raw["y"] == 2

    def test_pop(
        self, doc: Doc, raw: dict[str, Any], actions: ActionManager
    ) -> None:
        inner = raw["a"]

        assert doc.pop("a") is inner
        assert "a" not in raw
        assert doc.pop("a", None) is None
        with pytest.raises(KeyError):
            doc.pop("a")

        actions.undo()
        assert raw["a"] is inner

    def test_popitem(self, doc: Doc, raw: dict[str, Any]) -> None:
        key, value = doc.popitem()

        assert key == "title"
        assert value == "doc"
        assert "title" not in raw

    def test_popitem_empty(self, scope: ScopeManager) -> None:
        empty = observe({}, scope)

        with pytest.raises(KeyError):
            empty.popitem()

    def test_setdefault(
        self, doc: Doc, raw: dict[str, Any], actions: ActionManager
    ) -> None:
        created = doc.setdefault("tags", [])
        assert is_proxy(created)
        assert raw["tags"] == []
        assert len(actions) == 1

        existing = doc.setdefault("tags", ["ignored"])
        assert existing is created
        assert len(actions) == 1

    def test_clear_and_undo_each_key(
        self, doc: Doc, raw: dict[str, Any], actions: ActionManager
    ) -> None:
        before = dict(raw)

        doc.clear()
        assert raw == {}
        assert len(actions) == 3

        while actions.can_undo:
            actions.undo()
        assert raw == before

    def test_copy_is_raw(self, doc: Doc, raw: dict[str, Any]) -> None:
        shallow = doc.copy()

        assert shallow == raw
        assert shallow is not raw
        assert shallow["a"] is raw["a"]


class TestHookLocking:
    """Readers hold the scope lock like the mutating hooks do."""

    @pytest.mark.parametrize(
        "call",
        [
            pytest.param(lambda d: partial(d["items"].index, {"x": 1}), id="list-index"),
            pytest.param(lambda d: partial(d["items"].count, {"x": 1}), id="list-count"),
            pytest.param(lambda d: d["items"].copy, id="list-copy"),
            pytest.param(lambda d: d.keys, id="mapping-keys"),
            pytest.param(lambda d: d.copy, id="mapping-copy"),
        ],
    )
    def test_readers_take_lock(
        self,
        doc: Doc,
        scope: ScopeManager,
        call: Callable[[Doc], Callable[[], Any]],
    ) -> None:
        reader = call(doc)

        with patch.object(scope, "lock") as lock:
            reader()

        assert lock.__enter__.called
