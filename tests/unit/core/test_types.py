"""Unit tests for caprouter.core.types module."""

import pytest

from caprouter.core.errors import ConfigError
from caprouter.core.types import Result


class TestResultConstruction:
    """Test creating Ok and Err results."""

    def test_ok(self) -> None:
        """Result.ok creates a success."""
        result: Result[int, str] = Result.ok(42)
        assert result.is_ok
        assert not result.is_err
        assert result.value == 42

    def test_err(self) -> None:
        """Result.err creates a failure."""
        result: Result[int, str] = Result.err("bad")
        assert result.is_err
        assert result.error == "bad"

    def test_repr(self) -> None:
        """repr names the variant."""
        assert repr(Result.ok(1)) == "Ok(1)"
        assert repr(Result.err("x")) == "Err('x')"

    def test_results_are_comparable(self) -> None:
        """Equal payloads make equal results."""
        assert Result.ok(1) == Result.ok(1)
        assert Result.ok(1) != Result.err(1)


class TestResultAccess:
    """Test value/error access."""

    def test_value_on_err_raises(self) -> None:
        """Accessing value on Err raises ValueError."""
        with pytest.raises(ValueError, match="Cannot access value"):
            _ = Result.err("bad").value

    def test_error_on_ok_raises(self) -> None:
        """Accessing error on Ok raises ValueError."""
        with pytest.raises(ValueError, match="Cannot access error"):
            _ = Result.ok(1).error

    def test_unwrap_err_carries_message(self) -> None:
        """unwrap on Err raises with the error text."""
        with pytest.raises(ValueError, match="unknown tier"):
            Result.err(ConfigError("unknown tier")).unwrap()

    def test_unwrap_or(self) -> None:
        """unwrap_or falls back on Err only."""
        assert Result.ok(1).unwrap_or(2) == 1
        assert Result.err("bad").unwrap_or(2) == 2


class TestResultCombinators:
    """Test map, map_err and and_then."""

    def test_map(self) -> None:
        """map transforms Ok values and passes Err through."""
        assert Result.ok(2).map(lambda v: v * 10).value == 20
        assert Result.err("bad").map(lambda v: v * 10).error == "bad"

    def test_map_err(self) -> None:
        """map_err transforms Err values and passes Ok through."""
        assert Result.err("bad").map_err(str.upper).error == "BAD"
        assert Result.ok(1).map_err(str.upper).value == 1

    def test_and_then(self) -> None:
        """and_then chains Result-producing steps."""

        def half(value: int) -> Result[int, str]:
            if value % 2:
                return Result.err("odd")
            return Result.ok(value // 2)

        assert Result.ok(8).and_then(half).and_then(half).value == 2
        assert Result.ok(6).and_then(half).and_then(half).error == "odd"
        assert Result.err("early").and_then(half).error == "early"
