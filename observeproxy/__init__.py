"""Transparent proxies that track reads as dependencies and log writes as
path-relative, replayable diffs."""

from observeproxy.exceptions import (
    ObserveProxyError,
    PathResolutionError,
    UnsupportedOperationError,
    UseAfterDisposeError,
)
from observeproxy.proxy import (
    STATE_KEY,
    ObserveProxy,
    ProxyState,
    TargetKind,
    define_property,
    dispose,
    get_prototype_of,
    get_state,
    has,
    is_observable,
    is_proxy,
    observe,
    own_keys,
    peek,
    register_observable_type,
    resolve_path,
    set_prototype_of,
    unwrap,
)
from observeproxy.scope import (
    ActionManager,
    Dependency,
    Diff,
    Observation,
    ObserverManager,
    ScopeManager,
)

__all__ = (
    "STATE_KEY",
    "ActionManager",
    "Dependency",
    "Diff",
    "ObserveProxy",
    "ObserveProxyError",
    "Observation",
    "ObserverManager",
    "PathResolutionError",
    "ProxyState",
    "ScopeManager",
    "TargetKind",
    "UnsupportedOperationError",
    "UseAfterDisposeError",
    "define_property",
    "dispose",
    "get_prototype_of",
    "get_state",
    "has",
    "is_observable",
    "is_proxy",
    "observe",
    "own_keys",
    "peek",
    "register_observable_type",
    "resolve_path",
    "set_prototype_of",
    "unwrap",
)

__version__ = "0.1.0"
