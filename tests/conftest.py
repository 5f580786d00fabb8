"""Shared test fixtures for cpwlf tests."""

import pytest

from cpwlf import CPWLF


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def line_1d():
    """Three knots, slope 1 on [0, 10] and slope 3 on [10, 20]."""
    f = CPWLF()
    f.knot(0, 0).knot(10, 10).knot(20, 40)
    return f


@pytest.fixture
def nested_2d():
    """g at f(0), h at f(2), a plain 100 at f(4).

    g: 10 -> 30, 20 -> 50
    h: 10 -> 30, 20 -> 70
    """
    f = CPWLF()
    f.knot(0, 10, 30)
    f.knot(0, 20, 50)
    f.knot(2, 10, 30)
    f.knot(2, 20, 70)
    f.knot(4, 100)
    return f


def sum_5d(x):
    """x1 + 2*x2 + 3*x3 + 4*x4 + 5*x5 (multilinear interpolation is exact)."""
    return sum((i + 1) * v for i, v in enumerate(x))


@pytest.fixture
def deep_5d():
    """Five nested dimensions on the corners of [0, 1]^5; scalars only at the bottom."""
    f = CPWLF()
    for a in (0, 1):
        for b in (0, 1):
            for c in (0, 1):
                for d in (0, 1):
                    for e in (0, 1):
                        f.knot(a, b, c, d, e, sum_5d([a, b, c, d, e]))
    return f
