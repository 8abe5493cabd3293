from typing import TYPE_CHECKING, TypeVar

from observeproxy.scope.action import ActionManager
from observeproxy.scope.observer import ObserverManager

if TYPE_CHECKING:
    from observeproxy.proxy.object import ObserveProxy

T = TypeVar("T")


class ScopeManager:
    """The dependency tracker and action log shared by a tree of proxies.

    Attributes:
        observer_manager: Receives a dependency for every tracked read.
        action_manager: Receives a diff for every write and delete.
        lock: The action log's re-entrant lock. It is held for the
            duration of each proxy operation on any tree bound to this
            scope, so replay and live writes never interleave.
    """

    def __init__(
        self,
        observer_manager: ObserverManager | None = None,
        action_manager: ActionManager | None = None,
    ) -> None:
        if observer_manager is None:
            observer_manager = ObserverManager()
        if action_manager is None:
            action_manager = ActionManager()
        self.observer_manager = observer_manager
        self.action_manager = action_manager
        self.lock = self.action_manager.lock

    def observe(self, target: T) -> "ObserveProxy[T]":
        """Wrap ``target`` as the root of a new tree bound to this scope."""
        from observeproxy.proxy.object import observe

        return observe(target, self)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(diffs={len(self.action_manager)}, "
            f"cursor={self.action_manager.cursor})"
        )
