"""Temporary and permanent record identities.

Records created while offline get a client-minted *temporary* identity made of
a type prefix and a millisecond timestamp (``temp_1718000000000`` for products,
``cat_1718000000000`` for categories). The server assigns *permanent* numeric
identities; once a create is acknowledged the temporary identity is replaced.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from catalog_sync.utils.timeutils import epoch_millis

TEMP_PRODUCT_PREFIX = "temp_"
TEMP_CATEGORY_PREFIX = "cat_"

_TEMP_PREFIXES = (TEMP_PRODUCT_PREFIX, TEMP_CATEGORY_PREFIX)


def is_temporary_id(record_id: object) -> bool:
    """True if the identity was minted locally and is unknown to the server."""
    if record_id is None:
        return False
    return str(record_id).startswith(_TEMP_PREFIXES)


def is_permanent_id(record_id: object) -> bool:
    """True for a non-empty, server-assigned identity."""
    if record_id is None:
        return False
    value = str(record_id).strip()
    return bool(value) and not is_temporary_id(value)


def numeric_key(record_id: object) -> int:
    """Sortable integer for an identity.

    Temporary identities sort by their embedded timestamp, permanent ones by
    their numeric value. Anything unparseable sorts as 0.
    """
    raw = str(record_id or "")
    for prefix in _TEMP_PREFIXES:
        if raw.startswith(prefix):
            raw = raw[len(prefix) :]
            break
    try:
        return int(raw)
    except ValueError:
        try:
            return int(float(raw))
        except ValueError:
            return 0


class TemporaryIdFactory:
    """Mints unique temporary identities.

    Two records created within the same millisecond still get distinct ids:
    the counter never goes backwards and always advances by at least one.
    """

    def __init__(self, clock: Callable[[], int] = epoch_millis) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def _next_value(self) -> int:
        with self._lock:
            value = max(self._clock(), self._last + 1)
            self._last = value
            return value

    def product_id(self) -> str:
        return f"{TEMP_PRODUCT_PREFIX}{self._next_value()}"

    def category_id(self) -> str:
        return f"{TEMP_CATEGORY_PREFIX}{self._next_value()}"


_default_factory = TemporaryIdFactory()


def new_product_id() -> str:
    """Mint a temporary product identity."""
    return _default_factory.product_id()


def new_category_id() -> str:
    """Mint a temporary category identity."""
    return _default_factory.category_id()
