"""Out-of-bounds policies.

When a query falls outside ``[min knot, max knot]`` the neighbour search
clamps both positions to the nearest boundary.  The policy in force then
decides what happens:

``die``
    raise :class:`~cpwlf.OutOfBoundsError`.
``extrapolate``
    widen the pair by one knot towards the interior so the boundary
    segment's slope is continued.
``level``
    keep the clamped pair, i.e. hold the boundary knot's value.
``undef``
    give up on the lookup; the whole evaluation yields ``NO_VALUE``.
"""

from __future__ import annotations

from typing import Optional, Tuple

from cpwlf._errors import ConfigurationError, OutOfBoundsError
from cpwlf._neighbors import LEFT, RIGHT

DEFAULT_OOB = "die"
OOB_POLICIES = ("die", "extrapolate", "level", "undef")


def resolve_policy(local: Optional[str], inherited: Optional[str] = None) -> str:
    """Return the first policy that is set: node-local, inherited, default."""
    if local is not None:
        return local
    if inherited is not None:
        return inherited
    return DEFAULT_OOB


def apply_policy(
    policy: str,
    low: int,
    high: int,
    oob: Optional[str],
    size: int,
    query: float,
) -> Optional[Tuple[int, int]]:
    """Adjust a neighbour pair according to *policy*.

    Returns the ``(low, high)`` positions to interpolate between, or
    ``None`` when the ``undef`` policy discards the lookup.  Pairs that are
    not out of bounds are returned untouched, whatever the policy.

    Raises
    ------
    OutOfBoundsError
        Under ``die``.
    ConfigurationError
        If *policy* is not one of :data:`OOB_POLICIES`.
    """
    if oob is None:
        return low, high

    if policy == "die":
        raise OutOfBoundsError(query)
    if policy == "level":
        return low, high
    if policy == "undef":
        return None
    if policy == "extrapolate":
        if oob == LEFT:
            return low, min(low + 1, size - 1)
        if oob == RIGHT:
            return max(high - 1, 0), high
        raise ValueError(f"unknown out-of-bounds side {oob!r}")

    raise ConfigurationError(policy)
