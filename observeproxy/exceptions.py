"""Exception hierarchy for observeproxy."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

__all__ = (
    "ObserveProxyError",
    "UnsupportedOperationError",
    "UseAfterDisposeError",
    "PathResolutionError",
)


class ObserveProxyError(Exception):
    """Base class for every error raised by observeproxy."""


class UnsupportedOperationError(ObserveProxyError, TypeError):
    """Raised for structural operations a proxy never allows.

    Redefining a property or swapping the prototype (``__class__``) would
    bypass diff recording, so both are rejected unconditionally.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} is not supported on an observed proxy")


class UseAfterDisposeError(ObserveProxyError, ReferenceError):
    """Raised when a disposed proxy is used."""

    def __init__(self, path: Sequence[Any]) -> None:
        self.path = tuple(path)
        super().__init__(
            f"Cannot use proxy at path {list(self.path)!r}: it has been disposed"
        )


class PathResolutionError(ObserveProxyError, LookupError):
    """Raised while replaying a diff when its path no longer resolves.

    Attributes:
        path: The full path that was being resolved.
        key: The step at which resolution failed.
        original_error: The lookup error raised by that step, if any.
    """

    def __init__(
        self,
        path: Sequence[Any],
        key: Any,
        original_error: Exception | None = None,
    ) -> None:
        self.path = tuple(path)
        self.key = key
        self.original_error = original_error
        message = f"Failed to resolve {key!r} in path {list(self.path)!r}"
        if original_error is not None:
            message = f"{message}: {original_error!r}"
        super().__init__(message)
