"""Per-node state and interception logic of observed proxies."""

from __future__ import annotations

import dataclasses
import logging
import operator
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from observeproxy.exceptions import UseAfterDisposeError
from observeproxy.proxy import hooks as hooks_module
from observeproxy.proxy import paths
from observeproxy.proxy.paths import state_of, unwrap
from observeproxy.proxy.inspection import (
    TargetKind,
    is_observable,
    is_pydantic,
    target_kind,
)
from observeproxy.scope.action import Diff
from observeproxy.util import constants

if TYPE_CHECKING:
    from observeproxy.proxy.object import ObserveProxy
    from observeproxy.scope.manager import ScopeManager

__all__ = ("ProxyState",)

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class ProxyState(Generic[T]):
    """State behind one proxy node.

    Every node of a tree shares ``root``, ``root_proxy`` and
    ``scope_manager``; ``path`` locates the node's target below ``root``.
    A node is live until ``dispose()`` runs, after which every operation
    raises ``UseAfterDisposeError``.

    Attributes:
        target: The raw object this node mutates.
        root: The raw object at the top of the tree.
        root_proxy: The proxy for ``root``, used to re-resolve paths when
            diffs are replayed.
        scope_manager: The dependency tracker and action log of the tree.
        path: Keys from ``root`` to ``target``; empty for the root node.
        children: Child proxies created so far, keyed by property.
        hooks: Method overrides for list and mapping targets, else None.
        kind: How the target's keys are addressed.
    """

    def __init__(self, target: T, scope_manager: ScopeManager) -> None:
        kind = target_kind(target)
        if kind is None:
            raise TypeError(f"Cannot observe value of type {type(target).__name__}")
        self.target = target
        self.root: Any = target
        self.root_proxy: ObserveProxy[Any] | None = None
        self.scope_manager = scope_manager
        self.path: tuple[Any, ...] = ()
        self.children: dict[Any, ObserveProxy[Any]] = {}
        self.kind = kind
        self.hooks = hooks_module.make_hooks(self)
        self.disposed = False

    # -- lifecycle --------------------------------------------------------

    def ensure_live(self) -> None:
        """Guard an operation against a disposed node.

        Raises:
            UseAfterDisposeError: If ``dispose()`` has already run.
        """
        if self.disposed:
            raise UseAfterDisposeError(self.path)

    def dispose(self) -> None:
        """Invalidate this node. Cached children are left live."""
        if self.disposed:
            return
        self.disposed = True
        logger.debug("Disposed proxy at %r", self.path)

    def adopt(self, parent: ProxyState[Any], key: Any) -> None:
        """Bind this node (and its cached descendants) under ``parent[key]``."""
        self._rebind(
            parent.root, parent.root_proxy, parent.scope_manager, parent.path + (key,)
        )
        logger.debug("Adopted proxy at %r", self.path)

    def _rebind(
        self,
        root: Any,
        root_proxy: ObserveProxy[Any] | None,
        scope_manager: ScopeManager,
        path: tuple[Any, ...],
    ) -> None:
        self.root = root
        self.root_proxy = root_proxy
        self.scope_manager = scope_manager
        self.path = path
        for key, child in self.children.items():
            state_of(child)._rebind(root, root_proxy, scope_manager, path + (key,))

    def evict(self, key: Any) -> None:
        """Dispose and forget the cached child at ``key``, if any."""
        child = self.children.pop(key, None)
        if child is not None:
            state_of(child).dispose()

    def clear_children(self) -> None:
        """Evict every cached child, e.g. after indices have shifted."""
        for key in list(self.children):
            self.evict(key)

    # -- raw access -------------------------------------------------------

    def normalize_key(self, key: Any) -> Any:
        """Turn negative sequence indices into their positive position."""
        if self.kind is not TargetKind.SEQUENCE or isinstance(key, slice):
            return key
        try:
            index = operator.index(key)
        except TypeError:
            return key
        size = len(self.target)  # type: ignore[arg-type]
        if -size <= index < 0:
            return index + size
        return index

    def contains_raw(self, key: Any) -> bool:
        target: Any = self.target
        if self.kind is TargetKind.ATTRIBUTES:
            return isinstance(key, str) and hasattr(target, key)
        if self.kind is TargetKind.SEQUENCE:
            return isinstance(key, int) and 0 <= key < len(target)
        return key in target

    def get_raw(self, key: Any, default: Any = constants.MISSING) -> Any:
        target: Any = self.target
        try:
            if self.kind is TargetKind.ATTRIBUTES:
                return getattr(target, key)
            return target[key]
        except (KeyError, IndexError, AttributeError):
            if default is constants.MISSING:
                raise
            return default

    def _set_raw(self, key: Any, value: Any) -> None:
        if self.kind is TargetKind.ATTRIBUTES:
            setattr(self.target, key, value)
        else:
            self.target[key] = value  # type: ignore[index]

    def _delete_raw(self, key: Any) -> None:
        if self.kind is TargetKind.ATTRIBUTES:
            delattr(self.target, key)
        else:
            del self.target[key]  # type: ignore[attr-defined]

    def own_keys(self) -> list[Any]:
        """List the target's keys without recording a dependency.

        Returns:
            Mapping keys, sequence indices, or attribute names. Attribute
            targets report dataclass fields or Pydantic model fields, so
            classes with ``__slots__`` are covered, followed by any extra
            instance attributes.
        """
        target: Any = self.target
        if self.kind is TargetKind.MAPPING:
            return list(target)
        if self.kind is TargetKind.SEQUENCE:
            return list(range(len(target)))
        if dataclasses.is_dataclass(target):
            names = [f.name for f in dataclasses.fields(target) if hasattr(target, f.name)]
        elif is_pydantic(target):
            names = list(type(target).model_fields)
        else:
            names = []
        extra = getattr(target, "__dict__", None)
        if extra is not None:
            names.extend(name for name in extra if name not in names)
        return names

    # -- interception -----------------------------------------------------

    def _track(self, key: Any) -> None:
        self.scope_manager.observer_manager.add_dependency(self.root, self.path + (key,))

    def read(self, key: Any) -> Any:
        """Read ``key``, wrapping observable values in cached child proxies."""
        self.ensure_live()
        with self.scope_manager.lock:
            key = self.normalize_key(key)
            if self.kind is TargetKind.SEQUENCE and isinstance(key, slice):
                self.scope_manager.observer_manager.add_dependency(self.root, self.path)
                return self.target[key]  # type: ignore[index]

            self._track(key)

            child = self.children.get(key)
            if child is not None:
                return child

            value = self.get_raw(key)
            if is_observable(value):
                return self._spawn(key, value)
            return value

    def read_hook(self, name: str) -> Any:
        """Look up a method override; raises AttributeError for other names."""
        self.ensure_live()
        if self.hooks is None or name not in self.hooks:
            raise AttributeError(
                f"{type(self.target).__name__!r} proxy has no attribute {name!r}"
            )
        with self.scope_manager.lock:
            self._track(name)
            return self.hooks[name]

    def _spawn(self, key: Any, value: Any) -> ObserveProxy[Any]:
        from observeproxy.proxy.object import observe

        child = observe(value, self.scope_manager)
        state_of(child).adopt(self, key)
        self.children[key] = child
        return child

    def has(self, key: Any) -> bool:
        """Record a dependency on ``key`` and report raw containment.

        No child proxy is created. For sequences ``key`` is an index.

        Args:
            key: Mapping key, sequence index or attribute name.

        Returns:
            True if the target currently holds ``key``.
        """
        self.ensure_live()
        with self.scope_manager.lock:
            key = self.normalize_key(key)
            self._track(key)
            return self.contains_raw(key)

    def write(self, key: Any, value: Any) -> None:
        """Write ``value`` at ``key`` and log an ``Object.set`` diff."""
        self.ensure_live()
        with self.scope_manager.lock:
            key = self.normalize_key(key)
            if self.kind is TargetKind.SEQUENCE:
                if isinstance(key, slice):
                    items = [unwrap(item) for item in value]
                    self.splice("splice", lambda raw: raw.__setitem__(key, items))
                    return
                if not self.contains_raw(key):
                    raise IndexError("list assignment index out of range")

            value = unwrap(value)
            had_old_value = self.contains_raw(key)
            old_value = self.get_raw(key, None)
            # a rejected write leaves cached children usable
            self._set_raw(key, value)
            self.evict(key)

            root_proxy, path = self.root_proxy, self.path

            def apply() -> None:
                paths.resolve_state(root_proxy, path).write(key, value)

            def undo() -> None:
                current = paths.resolve_state(root_proxy, path)
                if had_old_value:
                    current.write(key, old_value)
                else:
                    current.delete(key)

            self._add_diff(path + (key,), constants.DIFF_OBJECT_SET, apply, undo)

    def delete(self, key: Any) -> None:
        """Delete ``key`` and log an ``Object.set`` diff that restores it."""
        self.ensure_live()
        with self.scope_manager.lock:
            key = self.normalize_key(key)
            if self.kind is TargetKind.SEQUENCE:
                self.get_raw(key)
                self.splice("delete", lambda raw: raw.__delitem__(key))
                return

            if not self.contains_raw(key):
                if self.kind is TargetKind.ATTRIBUTES:
                    raise AttributeError(key)
                raise KeyError(key)

            old_value = self.get_raw(key)
            self._delete_raw(key)
            self.evict(key)

            root_proxy, path = self.root_proxy, self.path

            def apply() -> None:
                paths.resolve_state(root_proxy, path).delete(key)

            def undo() -> None:
                paths.resolve_state(root_proxy, path).write(key, old_value)

            self._add_diff(path + (key,), constants.DIFF_OBJECT_SET, apply, undo)

    def splice(self, method: str, mutate: Callable[[Any], R]) -> R:
        """Run a structural mutation of a sequence target and log it.

        The diff snapshots the contents before and after ``mutate`` and is
        recorded on the sequence's own path. Cached children are evicted
        since their indices may have shifted.
        """
        self.ensure_live()
        with self.scope_manager.lock:
            before = list(self.target)  # type: ignore[call-overload]
            result = mutate(self.target)
            after = list(self.target)  # type: ignore[call-overload]
            self.clear_children()

            root_proxy, path = self.root_proxy, self.path

            def apply() -> None:
                paths.resolve_state(root_proxy, path).replace_contents(after)

            def undo() -> None:
                paths.resolve_state(root_proxy, path).replace_contents(before)

            self._add_diff(path, constants.DIFF_LIST_PREFIX + method, apply, undo)
            return result

    def replace_contents(self, items: list[Any]) -> None:
        """Replace a sequence target's items without logging a diff."""
        self.ensure_live()
        with self.scope_manager.lock:
            self.clear_children()
            self.target[:] = items  # type: ignore[index]

    def iter_values(self) -> Iterator[Any]:
        for index in range(len(self.target)):  # type: ignore[arg-type]
            yield self.read(index)

    def _add_diff(
        self,
        path: tuple[Any, ...],
        diff_type: str,
        apply: Callable[[], None],
        undo: Callable[[], None],
    ) -> None:
        self.scope_manager.action_manager.add_diff(
            Diff(target=self.root, path=path, type=diff_type, apply=apply, undo=undo)
        )

    def __repr__(self) -> str:
        status = "disposed" if self.disposed else "live"
        return f"<ProxyState {self.kind.value} path={list(self.path)!r} {status}>"

