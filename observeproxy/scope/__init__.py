from observeproxy.scope.action import ActionManager, Diff, DiffEvent, DiffListener
from observeproxy.scope.manager import ScopeManager
from observeproxy.scope.observer import Dependency, Observation, ObserverManager

__all__ = (
    "ActionManager",
    "Dependency",
    "Diff",
    "DiffEvent",
    "DiffListener",
    "Observation",
    "ObserverManager",
    "ScopeManager",
)
