"""Knot storage for a single function node.

A :class:`KnotTable` maps real-valued keys to values, where a value is
either a ``float`` or a nested function (any other object the caller
chooses to store; in practice a :class:`~cpwlf.CPWLF`).  The ascending key
list and the key -> position index are derived data: they are dropped on
every mutation and rebuilt on the next lookup.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, Iterator, List, Sequence, Tuple

import numpy as np


def _is_scalar(value) -> bool:
    """Return True if *value* is a real numeric scalar (int, float, or numpy scalar)."""
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, (int, float, np.integer, np.floating))


def coerce_key(key) -> float:
    """Return *key* in canonical form (a finite ``float``).

    Raises
    ------
    TypeError
        If *key* cannot be converted to a float.
    ValueError
        If *key* is NaN or infinite.
    """
    if isinstance(key, (bool, np.bool_)):
        raise TypeError("knot keys must be real numbers, got bool")
    try:
        k = float(key)
    except (TypeError, ValueError) as exc:
        raise TypeError(
            f"knot keys must be real numbers, got {type(key).__name__} ({key!r})"
        ) from exc
    if not math.isfinite(k):
        raise ValueError(f"knot keys must be finite, got {k}")
    return k


def coerce_value(value, nested_type: type):
    """Return *value* as a ``float`` or, if it is a *nested_type*, unchanged."""
    if isinstance(value, nested_type):
        return value
    if _is_scalar(value):
        return float(value)
    raise TypeError(
        f"knot values must be real numbers or {nested_type.__name__} "
        f"instances, got {type(value).__name__}"
    )


class KnotTable:
    """Key -> value storage with a lazily built sorted key list and index."""

    def __init__(self) -> None:
        self._data: Dict[float, object] = {}
        self._keys: List[float] | None = None
        self._index: Dict[float, int] | None = None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(self, key, value) -> None:
        """Store *value* at *key*, replacing any previous value there."""
        self._data[coerce_key(key)] = value
        self._keys = None
        self._index = None

    def insert_path(
        self,
        keys: Sequence,
        value,
        make_child: Callable[[], object],
        child_table: Callable[[object], "KnotTable"],
    ) -> None:
        """Insert *value* at the end of *keys*, creating empty children on the way.

        A missing intermediate child, or a scalar sitting where a child is
        needed, is replaced by ``make_child()``.  ``child_table`` maps a
        child to its own table so the insertion can continue one level down.
        """
        if len(keys) == 0:
            raise TypeError("knot() needs at least one key before the value")
        if len(keys) == 1:
            self.insert(keys[0], value)
            return

        head = coerce_key(keys[0])
        child = self._data.get(head)
        if child is None or isinstance(child, float):
            child = make_child()
            self.insert(head, child)
        child_table(child).insert_path(keys[1:], value, make_child, child_table)

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def order_keys(self) -> List[float]:
        """Rebuild and return the strictly ascending key list."""
        self._keys = sorted(self._data)
        return self._keys

    def index_keys(self) -> Dict[float, int]:
        """Rebuild and return the key -> position map used for direct hits."""
        keys = self.keys
        self._index = {k: i for i, k in enumerate(keys)}
        return self._index

    @property
    def keys(self) -> List[float]:
        """Ascending keys, rebuilt if a mutation invalidated them."""
        if self._keys is None:
            self.order_keys()
        return self._keys

    @property
    def index(self) -> Dict[float, int]:
        """Key -> position map, rebuilt if a mutation invalidated it."""
        if self._index is None:
            self.index_keys()
        return self._index

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def value_at(self, position: int):
        """Value stored at the *position*-th smallest key."""
        return self._data[self.keys[position]]

    def items(self) -> Iterator[Tuple[float, object]]:
        """Iterate ``(key, value)`` pairs in ascending key order."""
        for k in self.keys:
            yield k, self._data[k]

    def __getitem__(self, key):
        return self._data[coerce_key(key)]

    def __contains__(self, key) -> bool:
        try:
            return coerce_key(key) in self._data
        except (TypeError, ValueError):
            return False

    def __len__(self) -> int:
        return len(self._data)

    def __getstate__(self) -> dict:
        # Sorted keys and index are rebuilt on the first lookup after load.
        return {"_data": self._data, "_keys": None, "_index": None}

    def __setstate__(self, state: dict) -> None:
        self.__dict__.update(state)
