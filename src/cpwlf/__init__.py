"""cpwlf: Multi-dimensional interpolation with continuous piece-wise linear functions.

Provides the :class:`CPWLF` class: a function defined by knots ``x -> y``
that interpolates linearly between neighbouring knots.  A knot value may be
another :class:`CPWLF`, giving one extra dimension per level of nesting.
Evaluation consumes one argument per dimension and returns a ``float``, a
:class:`Continuation` waiting for the next argument, or :data:`NO_VALUE`
when the ``undef`` out-of-bounds policy applies.

Example
-------
>>> from cpwlf import CPWLF
>>> f = CPWLF()
>>> f.knot(0, 10, 30).knot(0, 20, 50).knot(2, 10, 30).knot(2, 20, 70)
CPWLF(knots=2, depth=2, oob=None)
>>> f(1)(20)
60.0
"""

from cpwlf._engine import NO_VALUE, Continuation, NoValue
from cpwlf._errors import (
    ConfigurationError,
    CPWLFError,
    EmptyFunctionError,
    OutOfBoundsError,
)
from cpwlf._oob import DEFAULT_OOB, OOB_POLICIES
from cpwlf._version import __version__
from cpwlf.function import CPWLF, KnotPath

__all__ = [
    "CPWLF",
    "KnotPath",
    "Continuation",
    "NoValue",
    "NO_VALUE",
    "CPWLFError",
    "ConfigurationError",
    "EmptyFunctionError",
    "OutOfBoundsError",
    "DEFAULT_OOB",
    "OOB_POLICIES",
    "__version__",
]
