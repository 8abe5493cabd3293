"""The observe proxy and the functions that operate on it."""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from observeproxy.exceptions import UnsupportedOperationError
from observeproxy.proxy.inspection import TargetKind
from observeproxy.proxy.paths import state_of, unwrap
from observeproxy.proxy.state import ProxyState

if TYPE_CHECKING:
    from observeproxy.scope.manager import ScopeManager

__all__ = (
    "STATE_KEY",
    "ObserveProxy",
    "define_property",
    "dispose",
    "get_prototype_of",
    "get_state",
    "has",
    "observe",
    "own_keys",
    "peek",
    "set_prototype_of",
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _StateKey:
    """Key that reads a proxy's own state instead of a data property."""

    def __repr__(self) -> str:
        return "<observeproxy state key>"


STATE_KEY: Any = _StateKey()


class ObserveProxy(Generic[T]):
    """Transparent proxy over a mapping, sequence or attribute object.

    Item access (mappings and sequences) and attribute access (dataclasses,
    Pydantic models, registered types) read through the node's state,
    recording dependencies and logging diffs. Only dunder names live on the
    class, so no data key can collide with the proxy's own members.

    Example:
        >>> scope = ScopeManager()
        >>> doc = observe({"a": {"b": 1}}, scope)
        >>> doc["a"]["b"] = 2
        >>> scope.action_manager.history[-1].path
        ('a', 'b')
    """

    __slots__ = ("__observe_state__", "__weakref__")
    __observe_proxy__ = True

    def __init__(self, state: ProxyState[T]) -> None:
        object.__setattr__(self, "__observe_state__", state)

    # -- item namespace ---------------------------------------------------

    def __getitem__(self, key: Any) -> Any:
        state = state_of(self)
        if key is STATE_KEY:
            state.ensure_live()
            return state
        return state.read(key)

    def __setitem__(self, key: Any, value: Any) -> None:
        if key is STATE_KEY:
            raise UnsupportedOperationError("assigning the state key")
        state_of(self).write(key, value)

    def __delitem__(self, key: Any) -> None:
        if key is STATE_KEY:
            raise UnsupportedOperationError("deleting the state key")
        state_of(self).delete(key)

    def __contains__(self, key: Any) -> bool:
        state = state_of(self)
        if state.kind is not TargetKind.SEQUENCE:
            return state.has(key)
        state.ensure_live()
        with state.scope_manager.lock:
            state.scope_manager.observer_manager.add_dependency(state.root, state.path)
            return unwrap(key) in state.target  # type: ignore[operator]

    # -- attribute namespace ----------------------------------------------

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") and name.endswith("__"):
            raise AttributeError(name)
        state = state_of(self)
        if state.kind is TargetKind.ATTRIBUTES:
            return state.read(name)
        return state.read_hook(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "__class__":
            raise UnsupportedOperationError("set_prototype_of")
        if name.startswith("__") and name.endswith("__"):
            raise AttributeError(name)
        state = state_of(self)
        if state.kind is not TargetKind.ATTRIBUTES:
            state.ensure_live()
            raise AttributeError(
                f"{type(state.target).__name__!r} proxy has no attribute {name!r}"
            )
        state.write(name, value)

    def __delattr__(self, name: str) -> None:
        if name == "__class__":
            raise UnsupportedOperationError("set_prototype_of")
        if name.startswith("__") and name.endswith("__"):
            raise AttributeError(name)
        state = state_of(self)
        if state.kind is not TargetKind.ATTRIBUTES:
            state.ensure_live()
            raise AttributeError(name)
        state.delete(name)

    @property  # type: ignore[misc]
    def __class__(self) -> type:
        state = state_of(self)
        state.ensure_live()
        return type(state.target)

    # -- untracked pass-through -------------------------------------------

    def __iter__(self) -> Iterator[Any]:
        state = state_of(self)
        state.ensure_live()
        if state.kind is TargetKind.SEQUENCE:
            return state.iter_values()
        if state.kind is TargetKind.MAPPING:
            return iter(state.own_keys())
        raise TypeError(f"{type(state.target).__name__!r} object is not iterable")

    def __len__(self) -> int:
        state = state_of(self)
        state.ensure_live()
        return len(state.target)  # type: ignore[arg-type]

    def __bool__(self) -> bool:
        state = state_of(self)
        state.ensure_live()
        return bool(state.target)

    def __dir__(self) -> list[str]:
        state = state_of(self)
        state.ensure_live()
        return dir(state.target)

    def __eq__(self, other: object) -> bool:
        state = state_of(self)
        state.ensure_live()
        return bool(state.target == unwrap(other))

    def __ne__(self, other: object) -> bool:
        return not self == other

    __hash__ = None  # type: ignore[assignment]

    def __copy__(self) -> T:
        state = state_of(self)
        state.ensure_live()
        return copy.copy(state.target)

    def __deepcopy__(self, memo: dict[int, Any]) -> T:
        state = state_of(self)
        state.ensure_live()
        return copy.deepcopy(state.target, memo)

    def __reduce_ex__(self, protocol: Any) -> Any:
        raise TypeError("observed proxies cannot be pickled; pickle the raw target")

    def __repr__(self) -> str:
        state = state_of(self)
        if state.disposed:
            return f"<ObserveProxy disposed at {list(state.path)!r}>"
        return f"ObserveProxy({state.target!r})"


def observe(target: T, scope_manager: ScopeManager) -> ObserveProxy[T]:
    """Wrap ``target`` as the root of a new proxy tree.

    Args:
        target: A mutable mapping, mutable sequence, dataclass instance,
            Pydantic model or instance of a registered type.
        scope_manager: Dependency tracker and action log for the tree.

    Returns:
        The root proxy. Its state's ``root_proxy`` is the proxy itself.

    Raises:
        TypeError: If ``target`` is not observable (including when it is
            already a proxy).
    """
    state: ProxyState[T] = ProxyState(target, scope_manager)
    proxy = ObserveProxy(state)
    state.root_proxy = proxy
    logger.debug("Observing %s root", type(target).__name__)
    return proxy


def get_state(proxy: ObserveProxy[T]) -> ProxyState[T]:
    """Read a proxy's state through its reserved key."""
    return proxy[STATE_KEY]  # type: ignore[no-any-return]


def dispose(proxy: ObserveProxy[Any]) -> None:
    """Invalidate ``proxy``; disposing twice is a no-op."""
    state_of(proxy).dispose()


def has(proxy: ObserveProxy[Any], key: Any) -> bool:
    """Tracked key containment, for every target kind.

    For sequences this tests the index, unlike ``in`` which tests values.
    Unlike ``hasattr`` on an attribute target, which performs a full read,
    no child proxy is created.
    """
    return state_of(proxy).has(key)


def own_keys(proxy: ObserveProxy[Any]) -> list[Any]:
    """Keys, indices or attribute names of the target, untracked."""
    state = state_of(proxy)
    state.ensure_live()
    return state.own_keys()


def peek(proxy: ObserveProxy[Any], key: Any, default: Any = None) -> Any:
    """Read the raw value at ``key`` without tracking or wrapping."""
    state = state_of(proxy)
    state.ensure_live()
    return state.get_raw(state.normalize_key(key), default)


def get_prototype_of(proxy: ObserveProxy[Any]) -> type:
    """The target's class, untracked."""
    return proxy.__class__


def set_prototype_of(proxy: ObserveProxy[Any], cls: type) -> None:
    """Always raises: a proxy's prototype cannot change."""
    state_of(proxy).ensure_live()
    raise UnsupportedOperationError("set_prototype_of")


def define_property(proxy: ObserveProxy[Any], key: Any, value: Any = None) -> None:
    """Always raises: properties cannot be redefined through a proxy."""
    state_of(proxy).ensure_live()
    raise UnsupportedOperationError("define_property")
