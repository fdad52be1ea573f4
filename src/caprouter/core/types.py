"""Core types for caprouter - Result type and type aliases.

This module provides:
- Result[T, E]: success-or-failure container for expected failures
- Type aliases shared by the routing and dispatch layers
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast


@dataclass(frozen=True, slots=True)
class Result[T, E]:
    """Either an Ok value or an Err value.

    Expected failures (bad configuration, a backend that keeps failing) travel
    as ``Result.err``; exceptions are kept for bugs.

    Usage:
        result = RuleRegistry.load(config)
        if result.is_err:
            print(result.error)
        registry = result.value

        tier = result.map(lambda r: r.highest_tier_target())
        registry = result.unwrap_or(fallback_registry)
    """

    _value: T | None
    _error: E | None
    _is_ok: bool

    @classmethod
    def ok(cls, value: T) -> Result[T, E]:
        """Wrap a success value."""
        return cls(_value=value, _error=None, _is_ok=True)

    @classmethod
    def err(cls, error: E) -> Result[T, E]:
        """Wrap a failure value."""
        return cls(_value=None, _error=error, _is_ok=False)

    @property
    def is_ok(self) -> bool:
        """True for a success."""
        return self._is_ok

    @property
    def is_err(self) -> bool:
        """True for a failure."""
        return not self._is_ok

    def __repr__(self) -> str:
        if self._is_ok:
            return f"Ok({self._value!r})"
        return f"Err({self._error!r})"

    @property
    def value(self) -> T:
        """The success value.

        Raises:
            ValueError: If the Result is an Err.
        """
        if not self._is_ok:
            msg = "Cannot access value on Err result"
            raise ValueError(msg)
        return cast(T, self._value)

    @property
    def error(self) -> E:
        """The failure value.

        Raises:
            ValueError: If the Result is Ok.
        """
        if self._is_ok:
            msg = "Cannot access error on Ok result"
            raise ValueError(msg)
        return cast(E, self._error)

    def unwrap(self) -> T:
        """Return the success value or raise ValueError carrying the error text."""
        if self._is_ok:
            return cast(T, self._value)
        raise ValueError(str(self._error))

    def unwrap_or(self, default: T) -> T:
        """Return the success value, or ``default`` for an Err."""
        if self._is_ok:
            return cast(T, self._value)
        return default

    def map[U](self, fn: Callable[[T], U]) -> Result[U, E]:
        """Apply ``fn`` to an Ok value; pass an Err through untouched."""
        if self._is_ok:
            return Result.ok(fn(cast(T, self._value)))
        return Result.err(cast(E, self._error))

    def map_err[F](self, fn: Callable[[E], F]) -> Result[T, F]:
        """Apply ``fn`` to an Err value; pass an Ok through untouched."""
        if self._is_ok:
            return Result.ok(cast(T, self._value))
        return Result.err(fn(cast(E, self._error)))

    def and_then[U](self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain another Result-producing step onto an Ok value.

        Example:
            Result.ok(config).and_then(RuleRegistry.load)
        """
        if self._is_ok:
            return fn(cast(T, self._value))
        return Result.err(cast(E, self._error))


# Type aliases for routing domain values
TargetId = str
"""Identifier of a configured execution target."""

RuleId = str
"""Identifier of a routing rule, unique within its domain."""

Confidence = float
"""Confidence of a routing decision - float between 0.0 and 1.0."""

Payload = dict[str, Any]
"""JSON-serializable mapping used for Decision serialization."""
