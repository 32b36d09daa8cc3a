"""
Tests for the Result type.
"""

import pytest

from linear_agent.core.result import Err, Ok, Result, ResultError


class TestOk:
    """Tests for Ok."""

    def test_accessors(self):
        """Ok exposes its value and no error."""
        result = Ok(5)
        assert result.is_ok()
        assert not result.is_err()
        assert result.ok() == 5
        assert result.err() is None
        assert result.unwrap() == 5
        assert result.unwrap_or(0) == 5
        assert bool(result)

    def test_unwrap_err_raises(self):
        """unwrap_err on Ok raises ResultError."""
        with pytest.raises(ResultError):
            Ok(1).unwrap_err()

    def test_map_and_then(self):
        """map and and_then transform the value."""
        assert Ok(2).map(lambda x: x * 3) == Ok(6)
        assert Ok(2).and_then(lambda x: Err(f"bad {x}")) == Err("bad 2")
        assert Ok(2).map_err(str.upper) == Ok(2)


class TestErr:
    """Tests for Err."""

    def test_accessors(self):
        """Err exposes its error and no value."""
        result = Err("boom")
        assert result.is_err()
        assert result.ok() is None
        assert result.err() == "boom"
        assert result.unwrap_err() == "boom"
        assert result.unwrap_or(7) == 7
        assert not bool(result)

    def test_unwrap_raises(self):
        """unwrap on Err raises ResultError."""
        with pytest.raises(ResultError, match="boom"):
            Err("boom").unwrap()

    def test_map_skips_value(self):
        """map does nothing on Err; map_err transforms the error."""
        assert Err("x").map(lambda v: v + 1) == Err("x")
        assert Err("x").map_err(str.upper) == Err("X")

    def test_inspect_err_calls_function(self):
        """inspect_err sees the error and returns the same result."""
        seen = []
        result = Err("e")
        assert result.inspect_err(seen.append) is result
        assert seen == ["e"]


class TestCombinators:
    """Tests for collect and from_optional."""

    def test_collect_all_ok(self):
        """collect gathers values when all results are Ok."""
        assert Result.collect([Ok(1), Ok(2)]) == Ok([1, 2])

    def test_collect_stops_at_first_err(self):
        """collect returns the first Err."""
        assert Result.collect([Ok(1), Err("a"), Err("b")]) == Err("a")

    def test_from_optional(self):
        """from_optional maps None to Err."""
        assert Result.from_optional(3, "missing") == Ok(3)
        assert Result.from_optional(None, "missing") == Err("missing")
