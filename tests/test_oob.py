"""Tests for out-of-bounds policies and their inheritance."""

import pytest

from cpwlf import (
    CPWLF,
    NO_VALUE,
    ConfigurationError,
    Continuation,
    OutOfBoundsError,
)
from cpwlf._neighbors import LEFT, RIGHT
from cpwlf._oob import DEFAULT_OOB, apply_policy, resolve_policy


# ---------------------------------------------------------------------------
# Policy resolution
# ---------------------------------------------------------------------------

class TestResolvePolicy:
    def test_local_wins(self):
        assert resolve_policy("level", "undef") == "level"

    def test_inherited_second(self):
        assert resolve_policy(None, "undef") == "undef"

    def test_default_last(self):
        assert resolve_policy(None, None) == DEFAULT_OOB == "die"


class TestApplyPolicy:
    def test_in_bounds_untouched(self):
        """Pairs that are in bounds pass through even with a bad policy."""
        assert apply_policy("bogus", 2, 3, None, 5, 2.5) == (2, 3)

    def test_die(self):
        with pytest.raises(OutOfBoundsError):
            apply_policy("die", 0, 0, LEFT, 5, -1.0)

    def test_level(self):
        assert apply_policy("level", 4, 4, RIGHT, 5, 9.0) == (4, 4)

    def test_undef(self):
        assert apply_policy("undef", 0, 0, LEFT, 5, -1.0) is None

    def test_extrapolate_left(self):
        assert apply_policy("extrapolate", 0, 0, LEFT, 5, -1.0) == (0, 1)

    def test_extrapolate_right(self):
        assert apply_policy("extrapolate", 4, 4, RIGHT, 5, 9.0) == (3, 4)

    def test_extrapolate_single_knot(self):
        assert apply_policy("extrapolate", 0, 0, LEFT, 1, -1.0) == (0, 0)
        assert apply_policy("extrapolate", 0, 0, RIGHT, 1, 9.0) == (0, 0)

    def test_unknown_policy(self):
        with pytest.raises(ConfigurationError, match=r"invalid oob option \(bogus\)"):
            apply_policy("bogus", 0, 0, LEFT, 5, -1.0)


# ---------------------------------------------------------------------------
# Policies on a 1D function
# ---------------------------------------------------------------------------

class TestPolicies1D:
    def test_default_is_die(self, line_1d):
        with pytest.raises(OutOfBoundsError):
            line_1d(-5)
        with pytest.raises(OutOfBoundsError):
            line_1d(25)

    def test_die_message_and_x(self, line_1d):
        with pytest.raises(
            OutOfBoundsError,
            match=r"given X \(-5\.0\) was out of bounds of function min or max",
        ) as excinfo:
            line_1d(-5)
        assert excinfo.value.x == -5.0

    def test_out_of_bounds_is_value_error(self, line_1d):
        with pytest.raises(ValueError):
            line_1d(100)

    def test_level(self, line_1d):
        line_1d.oob = "level"
        assert line_1d(-5) == 0.0
        assert line_1d(25) == 40.0

    def test_extrapolate(self, line_1d):
        """Below min continues slope 1, above max continues slope 3."""
        line_1d.oob = "extrapolate"
        assert line_1d(-5) == pytest.approx(-5.0)
        assert line_1d(25) == pytest.approx(55.0)

    def test_extrapolate_single_knot_is_flat(self):
        f = CPWLF(oob="extrapolate")
        f.knot(3, 7)
        assert f(-100) == 7.0
        assert f(100) == 7.0

    def test_undef(self, line_1d):
        line_1d.oob = "undef"
        assert line_1d(-5) is NO_VALUE
        assert line_1d(25) is NO_VALUE
        assert line_1d(5) == pytest.approx(5.0)

    def test_bad_policy_only_fails_out_of_bounds(self, line_1d):
        line_1d.oob = "sideways"
        assert line_1d(15) == pytest.approx(25.0)
        with pytest.raises(ConfigurationError, match=r"\(sideways\)") as excinfo:
            line_1d(30)
        assert excinfo.value.value == "sideways"


# ---------------------------------------------------------------------------
# Inheritance across dimensions
# ---------------------------------------------------------------------------

class TestInheritance:
    def test_autovivified_child_inherits(self):
        f = CPWLF(oob="level")
        f.knot(0, 10, 30).knot(0, 20, 50)
        assert f(0)(5) == 30.0
        assert f(0)(25) == 50.0

    def test_default_propagates_die(self, nested_2d):
        with pytest.raises(OutOfBoundsError, match=r"\(25\.0\)"):
            nested_2d(1)(25)

    def test_child_policy_overrides(self):
        g = CPWLF(oob="die")
        g.knot(10, 30).knot(20, 50)
        f = CPWLF(oob="level")
        f.knot(0, g)
        assert isinstance(f(-1), Continuation)
        assert f(-1)(15) == pytest.approx(40.0)
        with pytest.raises(OutOfBoundsError):
            f(0)(5)

    def test_child_policy_applies_under_die_root(self):
        g = CPWLF(oob="undef")
        g.knot(10, 30).knot(20, 50)
        f = CPWLF()
        f.knot(0, g).knot(1, 0)
        assert f(0.5)(5) is NO_VALUE
        assert f(0.5)(15) == pytest.approx(20.0)

    def test_inherited_from_outermost_not_parent(self):
        """A middle function's own policy does not become the default below it."""
        f = CPWLF(oob="level")
        f.knot(0, 0, 0, 1.0).knot(0, 0, 1, 2.0)
        f[0].oob = "undef"
        assert f(0)(0)(5) == 2.0
        assert f(0)(5) is NO_VALUE

    def test_nested_extrapolate(self):
        f = CPWLF(oob="extrapolate")
        f.knot(0, 10, 30).knot(0, 20, 50).knot(2, 10, 30).knot(2, 20, 70)
        assert f(4)(20) == pytest.approx(90.0)
        assert f(1)(30) == pytest.approx(90.0)

    def test_undef_absorbs_remaining_arguments(self):
        f = CPWLF(oob="undef")
        f.knot(0, 10, 30).knot(0, 20, 50)
        assert f(-1) is NO_VALUE
        assert f(-1, 15) is NO_VALUE
        assert f(0)(99)(1)(2) is NO_VALUE
