"""Dependency tracking for reads made through observed proxies."""

from __future__ import annotations

import contextvars
import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, NamedTuple

if TYPE_CHECKING:
    from observeproxy.scope.action import Diff

__all__ = ("Dependency", "Observation", "ObserverManager")

logger = logging.getLogger(__name__)


class Dependency(NamedTuple):
    """A read of ``path`` inside the tree rooted at ``root``."""

    root: Any
    path: tuple[Any, ...]


def _is_prefix(prefix: tuple[Any, ...], path: tuple[Any, ...]) -> bool:
    return len(prefix) <= len(path) and path[: len(prefix)] == prefix


class Observation:
    """Dependencies collected while an observation scope is active.

    Every read is kept, in order, even when the same path is read twice.
    """

    def __init__(self) -> None:
        self.dependencies: list[Dependency] = []

    def add(self, root: Any, path: Sequence[Any]) -> None:
        self.dependencies.append(Dependency(root, tuple(path)))

    def depends_on(self, root: Any, path: Sequence[Any]) -> bool:
        path = tuple(path)
        return any(
            dep.root is root and dep.path == path for dep in self.dependencies
        )

    def paths(self, root: Any) -> list[tuple[Any, ...]]:
        """Paths read from ``root``, in read order."""
        return [dep.path for dep in self.dependencies if dep.root is root]

    def is_affected_by(self, diff: Diff) -> bool:
        """Check whether a recorded diff touches anything read here.

        A diff affects a dependency on the same root when either path is a
        prefix of the other: overwriting ``a`` changes what ``a.b`` reads,
        and writing ``a.b`` changes what a read of ``a`` observed.
        """
        for dep in self.dependencies:
            if dep.root is not diff.target:
                continue
            if _is_prefix(dep.path, diff.path) or _is_prefix(diff.path, dep.path):
                return True
        return False

    def __len__(self) -> int:
        return len(self.dependencies)

    def __iter__(self) -> Iterator[Dependency]:
        return iter(self.dependencies)


class ObserverManager:
    """Routes dependencies to the observation scope active in this context."""

    def __init__(self) -> None:
        self._current: contextvars.ContextVar[Observation | None] = (
            contextvars.ContextVar(f"observeproxy_observation_{id(self)}", default=None)
        )

    @property
    def current(self) -> Observation | None:
        return self._current.get()

    def add_dependency(self, root: Any, path: Sequence[Any]) -> None:
        """Record a read; a no-op when no observation is active."""
        observation = self._current.get()
        if observation is None:
            return
        observation.add(root, path)

    @contextmanager
    def observe(self) -> Iterator[Observation]:
        """Collect the dependencies of every read made inside the block.

        Nested blocks collect into their own observation and restore the
        outer one on exit.
        """
        observation = Observation()
        token = self._current.set(observation)
        try:
            yield observation
        finally:
            self._current.reset(token)
            logger.debug(
                "Observation closed with %d dependencies", len(observation)
            )
