"""Property-based fuzzing of mutation, undo and redo using Hypothesis."""

import copy
from typing import Any

from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, precondition, rule

from observeproxy import ScopeManager, observe

keys = st.sampled_from(["a", "b", "c"])
values = st.one_of(
    st.integers(),
    st.text(max_size=5),
    st.lists(st.integers(), max_size=3),
    st.dictionaries(keys, st.integers(), max_size=2),
)


class UndoStateMachine(RuleBasedStateMachine):
    """Random edits followed by undo/redo always reproduce an earlier snapshot."""

    def __init__(self) -> None:
        super().__init__()
        self.raw: dict[str, Any] = {"nested": {}}
        self.scope = ScopeManager()
        self.doc = observe(self.raw, self.scope)
        self.snapshots = [copy.deepcopy(self.raw)]
        self.cursor = 0

    def _record(self) -> None:
        del self.snapshots[self.cursor + 1 :]
        self.snapshots.append(copy.deepcopy(self.raw))
        self.cursor += 1

    @rule(key=keys, value=values)
    def write_top(self, key: str, value: Any) -> None:
        self.doc[key] = value
        self._record()

    @rule(key=keys, value=values)
    def write_nested(self, key: str, value: Any) -> None:
        self.doc["nested"][key] = value
        self._record()

    @rule(key=keys)
    def delete_nested(self, key: str) -> None:
        if key not in self.raw["nested"]:
            return
        del self.doc["nested"][key]
        self._record()

    @rule(key=keys, item=st.integers())
    def append_nested(self, key: str, item: int) -> None:
        if not isinstance(self.raw["nested"].get(key), list):
            return
        self.doc["nested"][key].append(item)
        self._record()

    @precondition(lambda self: self.cursor > 0)
    @rule()
    def undo(self) -> None:
        self.scope.action_manager.undo()
        self.cursor -= 1

    @precondition(lambda self: self.cursor < len(self.snapshots) - 1)
    @rule()
    def redo(self) -> None:
        self.scope.action_manager.redo()
        self.cursor += 1

    @invariant()
    def matches_snapshot(self) -> None:
        assert self.raw == self.snapshots[self.cursor]
        assert self.scope.action_manager.cursor == self.cursor


TestUndoStateMachine = UndoStateMachine.TestCase
