"""Path resolution through live proxies, used when diffs are replayed."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from observeproxy.exceptions import PathResolutionError
from observeproxy.proxy.inspection import is_proxy

if TYPE_CHECKING:
    from observeproxy.proxy.object import ObserveProxy
    from observeproxy.proxy.state import ProxyState

__all__ = ("resolve_path", "resolve_state", "state_of", "unwrap")


def state_of(proxy: ObserveProxy[Any]) -> ProxyState[Any]:
    """Return a proxy's state without the liveness check."""
    return object.__getattribute__(proxy, "__observe_state__")  # type: ignore[no-any-return]


def unwrap(value: Any) -> Any:
    """Return the raw target of a proxy, or ``value`` unchanged.

    Raises:
        UseAfterDisposeError: If ``value`` is a disposed proxy.
    """
    if not is_proxy(value):
        return value
    state = state_of(value)
    state.ensure_live()
    return state.target


def resolve_path(root_proxy: Any, path: Sequence[Any]) -> ObserveProxy[Any]:
    """Walk ``path`` from ``root_proxy`` and return the proxy found there.

    Each step is a regular proxy read, so stale children are never used:
    whatever currently lives at the path is returned.

    Raises:
        PathResolutionError: If a step is missing or does not lead to an
            observable value.
        UseAfterDisposeError: If the root proxy has been disposed.
    """
    if not is_proxy(root_proxy):
        raise PathResolutionError(path, None)
    current = root_proxy
    for key in path:
        try:
            current = state_of(current).read(key)
        except (KeyError, IndexError, AttributeError, TypeError) as e:
            raise PathResolutionError(path, key, e) from e
        if not is_proxy(current):
            raise PathResolutionError(path, key)
    return current


def resolve_state(root_proxy: Any, path: Sequence[Any]) -> ProxyState[Any]:
    """Like ``resolve_path`` but return the resolved node's state."""
    return state_of(resolve_path(root_proxy, path))
