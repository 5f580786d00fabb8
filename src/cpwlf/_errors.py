"""Exceptions raised while building or evaluating piece-wise linear functions."""

from __future__ import annotations


class CPWLFError(Exception):
    """Base class for all cpwlf errors."""


class ConfigurationError(CPWLFError, ValueError):
    """Raised when an out-of-bounds policy is not recognised.

    The policy is only checked when a lookup actually falls outside the
    knot range, so a bad option can sit unnoticed on a function that is
    never queried out of bounds.
    """

    def __init__(self, value) -> None:
        self.value = value
        super().__init__(f"invalid oob option ({value})")


class EmptyFunctionError(CPWLFError, ValueError):
    """Raised when evaluation reaches a function with no knots."""

    def __init__(self, message: str = "cannot evaluate a function with no knots") -> None:
        super().__init__(message)


class OutOfBoundsError(CPWLFError, ValueError):
    """Raised by the ``die`` policy for a query outside ``[min, max]``."""

    def __init__(self, x: float) -> None:
        self.x = x
        super().__init__(
            f"given X ({x}) was out of bounds of function min or max"
        )
