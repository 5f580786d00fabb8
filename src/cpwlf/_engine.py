"""Deferred multi-dimension evaluation.

Evaluating a nested function takes one argument per dimension.  The first
argument is looked up on the outermost function; when either neighbour value
is itself a function, the lookup is recorded as an :class:`EvaluationNode`
and a :class:`Continuation` is handed back.  Each further argument is looked
up inside every nested value of the most recent frontier, producing a new
frontier whose nodes point back at the parent slot they will fill.  Once no
nested values remain, the stack is reduced from the deepest frontier down to
the first, and the single node of the first frontier gives the result.

An evaluation chain ends in one of three ways:

* a ``float`` -- every dimension was resolved;
* :data:`NO_VALUE` -- an ``undef`` policy discarded a lookup;
* an exception -- empty function, ``die`` policy or a bad policy option.

Write-back handles are ``(frontier_index, node_index, slot)`` triples into
the same stack, so nodes never hold references to each other and a
continuation can be called any number of times: reduction works on a private
copy of the slot values and the stack itself is never modified.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Union

from cpwlf._neighbors import coerce_query, locate
from cpwlf._oob import apply_policy, resolve_policy

Y_DN = 0
Y_UP = 1


@dataclass(frozen=True)
class EvaluationNode:
    """One neighbour lookup: the query, its bracketing keys and their values.

    ``parent`` is ``None`` for the lookup on the outermost function, else the
    ``(frontier_index, node_index, slot)`` handle of the slot this lookup's
    result is written to during reduction.
    """

    x: float
    x_dn: float
    x_up: float
    y_dn: object
    y_up: object
    parent: Optional[Tuple[int, int, int]] = None

    def value(self, slot: int):
        return self.y_dn if slot == Y_DN else self.y_up


Frontier = Tuple[EvaluationNode, ...]
EvaluationStack = Tuple[Frontier, ...]


class NoValue:
    """The "no result" outcome of the ``undef`` policy.

    There is a single instance, :data:`NO_VALUE`.  It is falsy, and calling
    it with further dimension arguments returns it again, so a chain such as
    ``f(-1)(2)(3)`` stays ``NO_VALUE`` once any lookup came up empty.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __call__(self, *args) -> "NoValue":
        return self

    def evaluate(self, x) -> "NoValue":
        return self

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (NoValue, ())

    def __repr__(self) -> str:
        return "NO_VALUE"


NO_VALUE = NoValue()


def mx_plus_b(x: float, x_dn: float, x_up: float, y_dn: float, y_up: float) -> float:
    """Value at *x* of the line through ``(x_dn, y_dn)`` and ``(x_up, y_up)``.

    Equal end values short-circuit to that value, which also covers direct
    hits and clamped pairs where ``x_dn == x_up``.
    """
    if y_dn == y_up:
        return y_dn
    slope = (y_up - y_dn) / (x_up - x_dn)
    intercept = y_up - slope * x_up
    return slope * x + intercept


def _is_nested(value) -> bool:
    return not isinstance(value, float)


def _lookup(function, x: float, inherited: Optional[str],
            parent: Optional[Tuple[int, int, int]]) -> Optional[EvaluationNode]:
    """Resolve the neighbours of *x* in *function*; ``None`` means no value."""
    table = function.table
    keys = table.keys
    low, high, oob = locate(keys, table.index, x)
    pair = apply_policy(
        resolve_policy(function.oob, inherited), low, high, oob, len(keys), x
    )
    if pair is None:
        return None
    low, high = pair
    return EvaluationNode(
        x, keys[low], keys[high], table.value_at(low), table.value_at(high), parent
    )


def _pending(frontier: Frontier) -> bool:
    return any(_is_nested(node.y_dn) or _is_nested(node.y_up) for node in frontier)


def _reduce(stack: EvaluationStack) -> float:
    """Collapse a fully scalar stack, deepest frontier first."""
    slots = [[[node.y_dn, node.y_up] for node in frontier] for frontier in stack]
    result = None
    for f in range(len(stack) - 1, -1, -1):
        for i, node in enumerate(stack[f]):
            y_dn, y_up = slots[f][i]
            y = mx_plus_b(node.x, node.x_dn, node.x_up, y_dn, y_up)
            if node.parent is None:
                result = y
            else:
                pf, pi, slot = node.parent
                slots[pf][pi][slot] = y
    return float(result)


def _advance(stack: EvaluationStack, inherited: str) -> "Result":
    if _pending(stack[-1]):
        return Continuation(stack, inherited)
    return _reduce(stack)


def evaluate(function, x) -> "Result":
    """Look *x* up on the outermost *function* and start an evaluation chain."""
    x = coerce_query(x)
    node = _lookup(function, x, None, None)
    if node is None:
        return NO_VALUE
    return _advance(((node,),), resolve_policy(function.oob))


class Continuation:
    """A partly evaluated nested function awaiting its next argument.

    Obtained from :meth:`cpwlf.CPWLF.evaluate` when the looked-up values are
    themselves functions.  Calling it with the next dimension's argument
    returns a ``float``, another :class:`Continuation`, or
    :data:`NO_VALUE`.  The continuation reads the function it came from;
    mutating that function before the chain finishes gives undefined
    results.

    Parameters
    ----------
    stack : tuple of frontiers
        Lookups made so far, first dimension at index 0.
    inherited : str
        Out-of-bounds policy of the outermost function, used by nested
        functions that have none of their own.
    """

    __slots__ = ("_stack", "_inherited")

    def __init__(self, stack: EvaluationStack, inherited: str):
        self._stack = stack
        self._inherited = inherited

    def evaluate(self, x) -> "Result":
        """Resolve the next dimension at *x*."""
        x = coerce_query(x)
        top = len(self._stack) - 1
        frontier = []
        for i, node in enumerate(self._stack[-1]):
            for slot in (Y_DN, Y_UP):
                value = node.value(slot)
                if not _is_nested(value):
                    continue
                child = _lookup(value, x, self._inherited, (top, i, slot))
                if child is None:
                    return NO_VALUE
                frontier.append(child)
        return _advance(self._stack + (tuple(frontier),), self._inherited)

    def __call__(self, *xs) -> "Result":
        """Resolve one or more further dimensions, one argument per dimension."""
        if not xs:
            raise TypeError("a continuation needs at least one argument")
        return feed(self.evaluate(xs[0]), xs[1:])

    @property
    def dimensions_resolved(self) -> int:
        """Number of arguments consumed so far."""
        return len(self._stack)

    @property
    def stack(self) -> EvaluationStack:
        return self._stack

    def __repr__(self) -> str:
        return (
            f"Continuation(dimensions_resolved={self.dimensions_resolved}, "
            f"pending={len(self._stack[-1])})"
        )


Result = Union[float, Continuation, NoValue]


def feed(result: Result, xs: Iterable) -> Result:
    """Apply the remaining arguments *xs* to *result*, one dimension each."""
    for x in xs:
        if isinstance(result, Continuation):
            result = result.evaluate(x)
        elif isinstance(result, NoValue):
            return result
        else:
            raise TypeError(
                f"too many arguments: evaluation already resolved to {result}"
            )
    return result
