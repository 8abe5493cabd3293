from observeproxy.proxy.hooks import ListHooks, MappingHooks
from observeproxy.proxy.inspection import (
    TargetKind,
    is_observable,
    is_proxy,
    register_observable_type,
)
from observeproxy.proxy.object import (
    STATE_KEY,
    ObserveProxy,
    define_property,
    dispose,
    get_prototype_of,
    get_state,
    has,
    observe,
    own_keys,
    peek,
    set_prototype_of,
)
from observeproxy.proxy.paths import resolve_path, unwrap
from observeproxy.proxy.state import ProxyState

__all__ = (
    "STATE_KEY",
    "ListHooks",
    "MappingHooks",
    "ObserveProxy",
    "ProxyState",
    "TargetKind",
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
