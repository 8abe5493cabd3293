"""Classification of values that can be observed."""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import MutableMapping, MutableSequence
from typing import Any, TypeVar

from observeproxy.util import constants

__all__ = (
    "TargetKind",
    "is_observable",
    "is_proxy",
    "is_pydantic",
    "register_observable_type",
    "target_kind",
)

C = TypeVar("C", bound=type)

_REGISTERED_TYPES: set[type] = set()


class TargetKind(enum.Enum):
    """How keys of an observed target are addressed."""

    MAPPING = "mapping"
    SEQUENCE = "sequence"
    ATTRIBUTES = "attributes"


def register_observable_type(cls: C) -> C:
    """Mark instances of ``cls`` as observable through attribute access.

    Can be used as a class decorator.
    """
    _REGISTERED_TYPES.add(cls)
    return cls


def is_proxy(value: Any) -> bool:
    """Check whether ``value`` is an observe proxy.

    ``type()`` is used rather than ``isinstance`` since proxies report the
    class of their target through ``__class__``.
    """
    return getattr(type(value), "__observe_proxy__", False) is True


def is_pydantic(obj: Any) -> bool:
    """Check if an object is a Pydantic model instance."""
    cls = type(obj)
    return hasattr(cls, "model_fields") or hasattr(cls, "__fields__")


def target_kind(value: Any) -> TargetKind | None:
    """Classify ``value``, or return None if it is not observable."""
    if value is None or type(value) in constants._ATOMIC_TYPES:
        return None
    if is_proxy(value):
        return None
    if isinstance(value, (type, enum.Enum, *constants._IMMUTABLE_CONTAINERS)):
        return None
    if isinstance(value, MutableMapping):
        return TargetKind.MAPPING
    if isinstance(value, MutableSequence):
        return TargetKind.SEQUENCE
    if dataclasses.is_dataclass(value) or is_pydantic(value):
        return TargetKind.ATTRIBUTES
    if any(isinstance(value, cls) for cls in _REGISTERED_TYPES):
        return TargetKind.ATTRIBUTES
    return None


def is_observable(value: Any) -> bool:
    """Decide whether ``value`` should be wrapped in a child proxy."""
    return target_kind(value) is not None
