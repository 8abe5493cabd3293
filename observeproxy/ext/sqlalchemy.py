"""Persist in-place changes made through proxies over ORM JSON attributes.

SQLAlchemy does not notice in-place mutation of a JSON column value. An
``AttributeTracker`` observes the value of one attribute of one mapped
instance and calls ``flag_modified`` whenever a diff of that tree is
recorded, undone or redone, so the next flush writes the new value.

The attribute has to stay loaded while it is tracked: sessions should use
``expire_on_commit=False``, and reassigning the attribute itself detaches
the tracker from the new value.
"""

from __future__ import annotations

import logging
import weakref
from types import TracebackType
from typing import Any

from sqlalchemy.exc import InvalidRequestError
from sqlalchemy.orm import attributes

from observeproxy.proxy.object import ObserveProxy, dispose, observe
from observeproxy.scope.action import Diff, DiffEvent
from observeproxy.scope.manager import ScopeManager

__all__ = ("AttributeTracker", "track")

logger = logging.getLogger(__name__)

flag_modified = attributes.flag_modified


class AttributeTracker:
    """Links a proxy over ``getattr(instance, key)`` to the ORM instance.

    Attributes:
        proxy: The root proxy to mutate the attribute value through.
        key: The mapped attribute name.
    """

    def __init__(self, instance: Any, key: str, scope_manager: ScopeManager) -> None:
        value = getattr(instance, key)
        self.key = key
        self.proxy: ObserveProxy[Any] = observe(value, scope_manager)
        self._root = value
        self._instance_ref = weakref.ref(instance)
        self._unsubscribe = scope_manager.action_manager.subscribe(self._on_diff)
        self._closed = False

    @property
    def instance(self) -> Any:
        return self._instance_ref()

    @property
    def closed(self) -> bool:
        return self._closed

    def _on_diff(self, event: DiffEvent, diff: Diff) -> None:
        if diff.target is not self._root:
            return
        instance = self._instance_ref()
        if instance is None:
            return
        try:
            flag_modified(instance, self.key)
        except InvalidRequestError as e:
            logger.error(
                "Error flagging %r modified on %s after %s: %s",
                self.key,
                type(instance).__name__,
                event,
                e,
            )

    def close(self) -> None:
        """Stop flagging the instance and dispose the proxy."""
        if self._closed:
            return
        self._closed = True
        self._unsubscribe()
        dispose(self.proxy)

    def __enter__(self) -> AttributeTracker:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def track(instance: Any, key: str, scope_manager: ScopeManager) -> AttributeTracker:
    """Observe ``instance.<key>`` and keep the ORM instance flagged on change."""
    return AttributeTracker(instance, key, scope_manager)
