"""Shared constants and defaults."""

import datetime
import uuid
from decimal import Decimal
from typing import Any, Final


class _Missing:
    """Marker for an absent value (distinct from ``None``)."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final[Any] = _Missing()

DEFAULT_MAX_HISTORY: Final[int | None] = 1000

_ATOMIC_TYPES: Final[frozenset[type]] = frozenset(
    {
        str,
        bytes,
        bytearray,
        int,
        float,
        bool,
        complex,
        Decimal,
        datetime.datetime,
        datetime.date,
        datetime.time,
        datetime.timedelta,
        uuid.UUID,
        type(None),
    }
)

_IMMUTABLE_CONTAINERS: Final[tuple[type, ...]] = (tuple, frozenset, range)

LIST_MUTATING_METHODS: Final[frozenset[str]] = frozenset(
    {"append", "extend", "insert", "pop", "remove", "clear", "reverse", "sort"}
)
LIST_READING_METHODS: Final[frozenset[str]] = frozenset({"index", "count", "copy"})

MAPPING_METHODS: Final[frozenset[str]] = frozenset(
    {
        "get",
        "keys",
        "values",
        "items",
        "pop",
        "popitem",
        "setdefault",
        "update",
        "clear",
        "copy",
    }
)

DIFF_OBJECT_SET: Final[str] = "Object.set"
DIFF_LIST_PREFIX: Final[str] = "List."
