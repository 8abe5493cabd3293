"""Append-only diff log with undo/redo replay."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Literal

from observeproxy.util import constants

__all__ = ("ActionManager", "Diff", "DiffEvent", "DiffListener")

logger = logging.getLogger(__name__)

DiffEvent = Literal["add", "apply", "undo"]
DiffListener = Callable[[DiffEvent, "Diff"], None]


@dataclass(frozen=True, eq=False)
class Diff:
    """A logged mutation.

    ``apply`` and ``undo`` resolve their target from the root proxy by
    ``path`` each time they run, so they stay valid after the nodes that
    recorded them are gone.

    Attributes:
        target: The raw root object of the tree the mutation happened in.
        path: Keys from the root to the mutated property.
        type: ``"Object.set"`` for key writes/deletes, ``"List.<method>"``
            for structural list changes.
    """

    target: Any
    path: tuple[Any, ...]
    type: str
    apply: Callable[[], None] = field(repr=False)
    undo: Callable[[], None] = field(repr=False)


class ActionManager:
    """Ordered diff history with a cursor separating undo from redo.

    Diffs added while the log is replaying (or paused) are dropped, so
    replay writes made through proxies do not re-enter the history.
    """

    def __init__(self, max_history: int | None = constants.DEFAULT_MAX_HISTORY) -> None:
        if max_history is not None and max_history < 1:
            raise ValueError(f"max_history must be positive, got {max_history!r}")
        self.max_history = max_history
        self._history: list[Diff] = []
        self._cursor = 0
        self._paused = 0
        self._listeners: list[DiffListener] = []
        self.lock = threading.RLock()

    @property
    def history(self) -> tuple[Diff, ...]:
        return tuple(self._history)

    @property
    def cursor(self) -> int:
        """Number of diffs currently applied."""
        return self._cursor

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._history)

    @property
    def is_paused(self) -> bool:
        return self._paused > 0

    def add_diff(self, diff: Diff) -> None:
        """Append ``diff`` at the cursor, discarding any redo tail."""
        with self.lock:
            if self._paused:
                logger.debug("Dropped %s diff at %r while paused", diff.type, diff.path)
                return
            del self._history[self._cursor :]
            self._history.append(diff)
            if self.max_history is not None and len(self._history) > self.max_history:
                overflow = len(self._history) - self.max_history
                del self._history[:overflow]
                logger.debug("Discarded %d oldest diffs from history", overflow)
            self._cursor = len(self._history)
            logger.debug("Recorded %s diff at %r", diff.type, diff.path)
        self._notify("add", diff)

    @contextmanager
    def paused(self) -> Iterator[None]:
        """Drop every diff added inside the block."""
        with self.lock:
            self._paused += 1
        try:
            yield
        finally:
            with self.lock:
                self._paused -= 1

    def undo(self) -> Diff | None:
        """Revert the most recent applied diff.

        Returns:
            The reverted diff, or None if there is nothing to undo.

        Raises:
            PathResolutionError: If the diff's path no longer resolves. The
                cursor is left unchanged.
        """
        with self.lock:
            if not self.can_undo:
                return None
            diff = self._history[self._cursor - 1]
            with self.paused():
                diff.undo()
            self._cursor -= 1
            logger.debug("Undid %s diff at %r", diff.type, diff.path)
        self._notify("undo", diff)
        return diff

    def redo(self) -> Diff | None:
        """Re-apply the next reverted diff.

        Returns:
            The re-applied diff, or None if there is nothing to redo.
        """
        with self.lock:
            if not self.can_redo:
                return None
            diff = self._history[self._cursor]
            with self.paused():
                diff.apply()
            self._cursor += 1
            logger.debug("Redid %s diff at %r", diff.type, diff.path)
        self._notify("apply", diff)
        return diff

    def clear(self) -> None:
        """Forget every recorded diff and reset the cursor.

        Listeners are not notified; the raw targets are left as they are.
        """
        with self.lock:
            self._history.clear()
            self._cursor = 0

    def subscribe(self, listener: DiffListener) -> Callable[[], None]:
        """Call ``listener(event, diff)`` on every add, apply and undo.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: DiffEvent, diff: Diff) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, diff)
            except Exception as e:
                logger.error(
                    "Diff listener %r failed on %s: %s",
                    listener,
                    event,
                    e,
                    exc_info=True,
                )

    def __len__(self) -> int:
        return len(self._history)
