"""Method overrides for list and mapping proxies.

Calling ``proxy.append(...)`` on an observed list must log a diff just like
``proxy[0] = ...`` does. The hook tables below shadow the target's own
methods for a fixed set of names; anything they return is a plain value or
a callable, never a further proxy.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from observeproxy.proxy.inspection import TargetKind
from observeproxy.proxy.paths import unwrap
from observeproxy.util import constants

if TYPE_CHECKING:
    from observeproxy.proxy.state import ProxyState

__all__ = ("Hooks", "ListHooks", "MappingHooks", "make_hooks")


class Hooks:
    """Name-addressable table of bound override methods."""

    names: frozenset[str] = frozenset()

    def __init__(self, state: ProxyState[Any]) -> None:
        self._state = state

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def __getitem__(self, name: str) -> Callable[..., Any]:
        if name not in self.names:
            raise KeyError(name)
        return getattr(self, name)  # type: ignore[no-any-return]


class ListHooks(Hooks):
    """Structural list mutations, each logged as one ``List.<method>`` diff."""

    names = constants.LIST_MUTATING_METHODS | constants.LIST_READING_METHODS

    def append(self, value: Any) -> None:
        value = unwrap(value)
        self._state.splice("append", lambda raw: raw.append(value))

    def extend(self, values: Iterable[Any]) -> None:
        items = [unwrap(value) for value in values]
        self._state.splice("extend", lambda raw: raw.extend(items))

    def insert(self, index: int, value: Any) -> None:
        value = unwrap(value)
        self._state.splice("insert", lambda raw: raw.insert(index, value))

    def pop(self, index: int = -1) -> Any:
        return self._state.splice("pop", lambda raw: raw.pop(index))

    def remove(self, value: Any) -> None:
        value = unwrap(value)
        self._state.splice("remove", lambda raw: raw.remove(value))

    def clear(self) -> None:
        self._state.splice("clear", lambda raw: raw.clear())

    def reverse(self) -> None:
        self._state.splice("reverse", lambda raw: raw.reverse())

    def sort(self, *, key: Callable[[Any], Any] | None = None, reverse: bool = False) -> None:
        self._state.splice("sort", lambda raw: raw.sort(key=key, reverse=reverse))

    def index(self, value: Any, *args: Any) -> int:
        state = self._state
        state.ensure_live()
        with state.scope_manager.lock:
            return state.target.index(unwrap(value), *args)  # type: ignore[no-any-return]

    def count(self, value: Any) -> int:
        state = self._state
        state.ensure_live()
        with state.scope_manager.lock:
            return state.target.count(unwrap(value))  # type: ignore[no-any-return]

    def copy(self) -> list[Any]:
        state = self._state
        state.ensure_live()
        with state.scope_manager.lock:
            return list(state.target)  # type: ignore[call-overload]


class MappingHooks(Hooks):
    """Mapping methods expressed through the node's own read/write/delete.

    Every key touched produces its own ``Object.set`` diff.
    """

    names = constants.MAPPING_METHODS

    def get(self, key: Any, default: Any = None) -> Any:
        state = self._state
        with state.scope_manager.lock:
            try:
                return state.read(key)
            except KeyError:
                return default

    def keys(self) -> Any:
        state = self._state
        state.ensure_live()
        with state.scope_manager.lock:
            return state.target.keys()  # type: ignore[attr-defined]

    def values(self) -> list[Any]:
        state = self._state
        with state.scope_manager.lock:
            return [state.read(key) for key in state.own_keys()]

    def items(self) -> list[tuple[Any, Any]]:
        state = self._state
        with state.scope_manager.lock:
            return [(key, state.read(key)) for key in state.own_keys()]

    def pop(self, key: Any, default: Any = constants.MISSING) -> Any:
        state = self._state
        with state.scope_manager.lock:
            if not state.contains_raw(key):
                if default is constants.MISSING:
                    raise KeyError(key)
                return default
            value = state.get_raw(key)
            state.delete(key)
            return value

    def popitem(self) -> tuple[Any, Any]:
        state = self._state
        with state.scope_manager.lock:
            keys = state.own_keys()
            if not keys:
                raise KeyError("popitem(): dictionary is empty")
            key = keys[-1]
            value = state.get_raw(key)
            state.delete(key)
            return key, value

    def setdefault(self, key: Any, default: Any = None) -> Any:
        state = self._state
        with state.scope_manager.lock:
            if not state.contains_raw(key):
                state.write(key, default)
            return state.read(key)

    def update(self, other: Any = (), /, **kwargs: Any) -> None:
        state = self._state
        if isinstance(other, Mapping):
            pairs: Iterable[tuple[Any, Any]] = [(key, other[key]) for key in other]
        elif hasattr(other, "keys"):
            pairs = [(key, other[key]) for key in other.keys()]
        else:
            pairs = list(other)
        with state.scope_manager.lock:
            for key, value in pairs:
                state.write(key, value)
            for key, value in kwargs.items():
                state.write(key, value)

    def clear(self) -> None:
        state = self._state
        with state.scope_manager.lock:
            for key in state.own_keys():
                state.delete(key)

    def copy(self) -> dict[Any, Any]:
        state = self._state
        state.ensure_live()
        with state.scope_manager.lock:
            return dict(state.target)  # type: ignore[call-overload]


def make_hooks(state: ProxyState[Any]) -> Hooks | None:
    """Build the hook table for a node, or None for attribute targets."""
    if state.kind is TargetKind.SEQUENCE:
        return ListHooks(state)
    if state.kind is TargetKind.MAPPING:
        return MappingHooks(state)
    return None
