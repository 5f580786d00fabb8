"""Neighbour search over an ascending key list."""

from __future__ import annotations

import math
from typing import Dict, Optional, Sequence, Tuple

from cpwlf._errors import EmptyFunctionError

LEFT = "left"
RIGHT = "right"


def coerce_query(x) -> float:
    """Convert an evaluation argument to ``float``, rejecting NaN."""
    try:
        q = float(x)
    except (TypeError, ValueError) as exc:
        raise TypeError(
            f"evaluation arguments must be real numbers, got "
            f"{type(x).__name__} ({x!r})"
        ) from exc
    if math.isnan(q):
        raise ValueError("cannot evaluate at NaN")
    return q


def locate(
    keys: Sequence[float], index: Dict[float, int], query: float
) -> Tuple[int, int, Optional[str]]:
    """Find the pair of adjacent key positions bracketing *query*.

    Parameters
    ----------
    keys : sequence of float
        Strictly ascending knot keys.
    index : dict
        Map from key to its position in *keys*.
    query : float
        Evaluation point.

    Returns
    -------
    low, high : int
        Positions into *keys*.  ``low == high`` on a direct hit and when
        *query* lies outside the key range.
    oob : str or None
        :data:`LEFT` below the smallest key, :data:`RIGHT` above the
        largest, otherwise ``None``.

    Raises
    ------
    EmptyFunctionError
        If *keys* is empty.
    """
    n = len(keys)
    if n == 0:
        raise EmptyFunctionError()

    hit = index.get(query)
    if hit is not None:
        return hit, hit, None

    if query < keys[0]:
        return 0, 0, LEFT
    if query > keys[-1]:
        return n - 1, n - 1, RIGHT

    # keys[lo] < query < keys[hi] holds on every pass. The upper half keeps
    # mid so a query between the two halves still ends up bracketed.
    lo, hi = 0, n - 1
    while hi - lo + 1 > 2:
        mid = lo + (hi - lo) // 2
        if query <= keys[mid]:
            hi = mid
        else:
            lo = mid
    return lo, hi, None
