"""Continuous piece-wise linear functions over nested dimensions.

A :class:`CPWLF` is defined by knots ``x -> y``.  Between two adjacent knots
the function is the straight line joining them.  A knot's ``y`` may itself
be a :class:`CPWLF`; evaluating then takes one extra argument per level of
nesting, each argument interpolating inside the functions found by the
previous one.
"""

from __future__ import annotations

import os
import pickle
import warnings
from typing import Dict, List, Mapping, Sequence, Tuple

import numpy as np

from cpwlf._engine import Continuation, NoValue, Result, evaluate, feed
from cpwlf._errors import EmptyFunctionError
from cpwlf._knots import KnotTable, coerce_key, coerce_value


class CPWLF:
    """A continuous piece-wise linear function, possibly nested.

    Parameters
    ----------
    oob : str, optional
        Out-of-bounds policy: ``"die"``, ``"extrapolate"``, ``"level"`` or
        ``"undef"``.  ``None`` (the default) means "not set": the function
        then uses the policy of the outermost function being evaluated, or
        ``"die"`` when it is itself the outermost one.  The value is only
        checked when a lookup actually falls out of bounds.

    Examples
    --------
    >>> f = CPWLF()
    >>> f.knot(0, 0).knot(10, 100)
    CPWLF(knots=2, depth=1, oob=None)
    >>> f(2.5)
    25.0

    Nested functions take one argument per dimension:

    >>> g = CPWLF(oob="level")
    >>> g.knot(0, 10, 30).knot(0, 20, 50).knot(2, 10, 30).knot(2, 20, 70)
    CPWLF(knots=2, depth=2, oob='level')
    >>> g(1)(15)
    45.0
    >>> g(1, 15)
    45.0
    """

    def __init__(self, oob: str | None = None):
        self.oob = oob
        self._table = KnotTable()

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def knot(self, *args):
        """Insert a knot, or start a curried insertion.

        ``f.knot(x, y)`` stores ``y`` at ``x``.  ``f.knot(x1, ..., xn, y)``
        stores ``y`` at ``xn`` of the function found at ``x1, ..., x(n-1)``;
        missing intermediate functions (and scalars standing in their way)
        are replaced by new, empty :class:`CPWLF` objects with no ``oob``
        option of their own.

        With fewer than two arguments, returns a :class:`KnotPath` that
        collects further keys: ``f.knot(1)(2)(3, 30)`` is ``f.knot(1, 2, 3, 30)``.

        Returns
        -------
        CPWLF or KnotPath
            ``self`` after an insertion, so calls can be chained.

        Raises
        ------
        TypeError
            If a value is neither a real number nor a :class:`CPWLF`, or a
            key is not a real number.
        ValueError
            If a key is NaN or infinite.
        """
        if len(args) < 2:
            return KnotPath(self, args)
        self._insert(args[:-1], args[-1])
        return self

    def _insert(self, keys: Sequence, value) -> None:
        value = coerce_value(value, CPWLF)
        if isinstance(value, CPWLF) and any(
            _reaches(value, node) for node in self._path_nodes(keys[:-1])
        ):
            raise ValueError("a function cannot be nested inside itself")
        self._table.insert_path(keys, value, CPWLF, _table_of)

    def _path_nodes(self, keys: Sequence):
        """Yield ``self`` and every existing function along *keys*."""
        node = self
        yield node
        for key in keys:
            if key not in node.table:
                return
            child = node.table[key]
            if not isinstance(child, CPWLF):
                return
            yield child
            node = child

    @classmethod
    def from_dict(cls, mapping: Mapping, oob: str | None = None) -> "CPWLF":
        """Build a function from a (possibly nested) mapping.

        Parameters
        ----------
        mapping : mapping
            ``{x: y}`` where each ``y`` is a real number, a :class:`CPWLF`
            or another mapping of the same form.
        oob : str, optional
            Policy for the outermost function; nested functions built from
            mappings have none.

        Examples
        --------
        >>> f = CPWLF.from_dict({0: {10: 30, 20: 50}, 4: 100})
        >>> f(0)(15)
        40.0
        """
        f = cls(oob=oob)
        for key, value in mapping.items():
            if isinstance(value, Mapping):
                value = cls.from_dict(value)
            f.knot(key, value)
        return f

    @classmethod
    def from_grid(
        cls,
        axes: Sequence[Sequence[float]],
        values,
        oob: str | None = None,
    ) -> "CPWLF":
        """Build a nested function from knot values on a rectilinear grid.

        Parameters
        ----------
        axes : list of 1-D array-like
            Knot keys for each dimension, strictly increasing.
        values : array-like
            Knot values, shape ``tuple(len(a) for a in axes)``.
            ``values[i, j, ...]`` is the value at
            ``(axes[0][i], axes[1][j], ...)``.
        oob : str, optional
            Policy for the outermost function.

        Returns
        -------
        CPWLF
            A function of ``len(axes)`` dimensions.

        Raises
        ------
        ValueError
            If the axes are empty, unsorted or duplicated, the value shape
            does not match, or values contain NaN or Inf.

        Examples
        --------
        >>> f = CPWLF.from_grid([[0, 2], [10, 20]], [[30, 50], [30, 70]])
        >>> f(1, 20)
        60.0
        """
        if len(axes) == 0:
            raise ValueError("from_grid() needs at least one axis")
        axes = [np.asarray(a, dtype=float) for a in axes]
        for d, axis in enumerate(axes):
            if axis.ndim != 1 or axis.size == 0:
                raise ValueError(f"axes[{d}] must be a non-empty 1-D sequence")
            if np.any(np.diff(axis) <= 0):
                raise ValueError(
                    f"axes[{d}] must be strictly increasing (sorted, no duplicates)"
                )

        values = np.asarray(values, dtype=float)
        expected = tuple(a.size for a in axes)
        if values.shape != expected:
            raise ValueError(
                f"values has shape {values.shape}, expected {expected}"
            )
        if not np.all(np.isfinite(values)):
            raise ValueError("values contains NaN or Inf")

        f = cls(oob=oob)
        for multi_idx in np.ndindex(*expected):
            keys = [axes[d][i] for d, i in enumerate(multi_idx)]
            f._insert(keys, values[multi_idx])
        return f

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, x) -> Result:
        """Evaluate the outermost dimension at *x*.

        Returns
        -------
        float, Continuation or NoValue
            A ``float`` when the neighbouring knots hold numbers; a
            :class:`~cpwlf.Continuation` expecting the next dimension when
            either of them holds a function; :data:`~cpwlf.NO_VALUE` when
            the ``undef`` policy applied.

        Raises
        ------
        EmptyFunctionError
            If this function (or a nested one reached later) has no knots.
        OutOfBoundsError
            If *x* is out of bounds under the ``die`` policy.
        ConfigurationError
            If *x* is out of bounds and the policy is not recognised.
        """
        return evaluate(self, x)

    def __call__(self, *xs) -> Result:
        """Evaluate with one argument per dimension.

        ``f(x1, x2)`` is ``f(x1)(x2)``.  Passing fewer arguments than there
        are dimensions returns a :class:`~cpwlf.Continuation`; passing more
        raises ``TypeError`` (unless the chain already gave ``NO_VALUE``).
        """
        if not xs:
            raise TypeError("evaluation needs at least one argument")
        return feed(self.evaluate(xs[0]), xs[1:])

    def eval_batch(self, points) -> np.ndarray:
        """Evaluate at many points.

        Parameters
        ----------
        points : array-like of shape (N, ndim) or (N,)
            One row per point, one column per dimension.  A 1-D array is
            treated as ``N`` one-dimensional points.  Coordinates left over
            once a point resolves (a shallower branch, or ``NO_VALUE``) are
            ignored.

        Returns
        -------
        ndarray of shape (N,)
            Values at each point; ``NaN`` where the result is ``NO_VALUE``.

        Raises
        ------
        ValueError
            If a point has fewer coordinates than the function has
            dimensions along its path.
        """
        points = np.asarray(points, dtype=float)
        if points.ndim == 1:
            points = points[:, np.newaxis]
        if points.ndim != 2:
            raise ValueError(
                f"points must have shape (N, ndim), got {points.shape}"
            )
        results = np.empty(points.shape[0])
        for n, point in enumerate(points):
            value = self.evaluate(point[0])
            # Shallower branches resolve early; unused coordinates are ignored.
            for x in point[1:]:
                if not isinstance(value, Continuation):
                    break
                value = value.evaluate(x)
            if isinstance(value, NoValue):
                results[n] = np.nan
            elif isinstance(value, Continuation):
                raise ValueError(
                    f"point {n} {point.tolist()} has too few coordinates: "
                    f"evaluation is still waiting for dimension "
                    f"{value.dimensions_resolved + 1}"
                )
            else:
                results[n] = value
        return results

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def table(self) -> KnotTable:
        """Knot storage of this function (not of nested ones)."""
        return self._table

    def keys(self) -> List[float]:
        """Knot keys in ascending order."""
        return list(self._table.keys)

    def items(self) -> List[Tuple[float, "float | CPWLF"]]:
        """``(key, value)`` pairs in ascending key order."""
        return list(self._table.items())

    @property
    def domain(self) -> Tuple[float, float]:
        """``(min knot, max knot)`` of this dimension.

        Raises
        ------
        EmptyFunctionError
            If there are no knots.
        """
        keys = self._table.keys
        if not keys:
            raise EmptyFunctionError()
        return keys[0], keys[-1]

    @property
    def depth(self) -> int:
        """Greatest number of arguments any evaluation path can take."""
        nested = [v.depth for _, v in self._table.items() if isinstance(v, CPWLF)]
        return 1 + max(nested, default=0)

    def to_dict(self) -> Dict[float, object]:
        """Nested ``{x: y}`` dict of plain floats, the inverse of :meth:`from_dict`."""
        return {
            k: v.to_dict() if isinstance(v, CPWLF) else v
            for k, v in self._table.items()
        }

    def __getitem__(self, key):
        """Stored value at knot *key* (a float or a nested :class:`CPWLF`)."""
        return self._table[key]

    def __contains__(self, key) -> bool:
        return key in self._table

    def __len__(self) -> int:
        return len(self._table)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def __getstate__(self) -> dict:
        """Return picklable state tagged with the package version."""
        from cpwlf._version import __version__

        state = self.__dict__.copy()
        state["_cpwlf_version"] = __version__
        return state

    def __setstate__(self, state: dict) -> None:
        """Restore state from a pickled dict."""
        from cpwlf._version import __version__

        saved_version = state.pop("_cpwlf_version", None)
        if saved_version is not None and saved_version != __version__:
            warnings.warn(
                f"This object was saved with cpwlf {saved_version}, "
                f"but you are loading it with {__version__}. "
                f"Evaluation results may differ if internal data layout "
                f"changed.",
                UserWarning,
                stacklevel=2,
            )
        self.__dict__.update(state)

    def save(self, path: str | os.PathLike) -> None:
        """Save the function, nested functions included, to a file.

        Parameters
        ----------
        path : str or path-like
            Destination file path.

        Raises
        ------
        RuntimeError
            If the function has no knots.
        """
        if len(self._table) == 0:
            raise RuntimeError("Cannot save a function with no knots.")
        with open(os.fspath(path), "wb") as f:
            pickle.dump(self, f, protocol=pickle.HIGHEST_PROTOCOL)

    @classmethod
    def load(cls, path: str | os.PathLike) -> "CPWLF":
        """Load a function previously written by :meth:`save`.

        Warns
        -----
        UserWarning
            If the file was saved with a different cpwlf version.

        .. warning::

            This method uses :mod:`pickle` internally.  Pickle can execute
            arbitrary code during deserialization.  **Only load files you
            trust.**
        """
        with open(os.fspath(path), "rb") as f:
            obj = pickle.load(f)  # noqa: S301
        if not isinstance(obj, cls):
            raise TypeError(
                f"Expected a {cls.__name__} instance, "
                f"got {type(obj).__name__}"
            )
        return obj

    # ------------------------------------------------------------------
    # Printing
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"CPWLF(knots={len(self._table)}, depth={self.depth}, "
            f"oob={self.oob!r})"
        )

    def __str__(self) -> str:
        n = len(self._table)
        if n == 0:
            domain_str = "(empty)"
        else:
            lo, hi = self.domain
            domain_str = f"[{lo}, {hi}]"
        oob_str = self.oob if self.oob is not None else "inherited (die)"
        lines = [
            f"CPWLF ({self.depth}D, {n} knots)",
            f"  Domain:      {domain_str}",
            f"  OOB policy:  {oob_str}",
        ]
        nested = sum(1 for _, v in self._table.items() if isinstance(v, CPWLF))
        if nested:
            lines.append(f"  Nested:      {nested} of {n} knots hold functions")
        return "\n".join(lines)


def _table_of(function: CPWLF) -> KnotTable:
    return function.table


def _reaches(function: CPWLF, target: CPWLF) -> bool:
    """True if *target* is *function* or is nested anywhere below it."""
    todo = [function]
    while todo:
        f = todo.pop()
        if f is target:
            return True
        todo.extend(v for _, v in f.table.items() if isinstance(v, CPWLF))
    return False


class KnotPath:
    """Curried form of :meth:`CPWLF.knot`.

    Collects keys one call at a time.  A call with two or more arguments
    treats the last one as the value and performs the insertion; a call
    with one argument adds a key.  :meth:`set` inserts a value explicitly.

    Examples
    --------
    >>> f = CPWLF()
    >>> f.knot(1)(2)(3, 30)
    CPWLF(knots=1, depth=3, oob=None)
    >>> f.knot(1)(2)(4).set(40)
    CPWLF(knots=1, depth=3, oob=None)
    >>> f(1, 2, 3.5)
    35.0
    """

    __slots__ = ("_function", "_keys")

    def __init__(self, function: CPWLF, keys: Sequence = ()):
        self._function = function
        self._keys = tuple(coerce_key(k) for k in keys)

    def __call__(self, *args):
        if len(args) < 2:
            return KnotPath(self._function, self._keys + tuple(args))
        self._function._insert(self._keys + tuple(args[:-1]), args[-1])
        return self._function

    def set(self, value) -> CPWLF:
        """Insert *value* at the collected keys and return the function."""
        self._function._insert(self._keys, value)
        return self._function

    @property
    def keys(self) -> Tuple[float, ...]:
        return self._keys

    def __repr__(self) -> str:
        return f"KnotPath(keys={list(self._keys)})"

