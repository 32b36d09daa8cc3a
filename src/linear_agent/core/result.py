"""
Result Type - Explicit success/failure values.

Used where a failure is an expected outcome rather than an exceptional one:
per-field coercion of model output and per-item outcomes in batch mode.

Example:
    >>> def parse_priority(value: object) -> Result[int, str]:
    ...     if isinstance(value, int) and 0 <= value <= 4:
    ...         return Ok(value)
    ...     return Err(f"priority out of range: {value!r}")
    >>>
    >>> parse_priority(2).unwrap_or(0)
    2
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Generic, NoReturn, TypeVar


T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")
F = TypeVar("F")


class ResultError(Exception):
    """Raised when unwrapping the wrong variant of a Result."""


class Result(Generic[T, E]):
    """Base class for Ok and Err."""

    __slots__ = ()

    def is_ok(self) -> bool:
        raise NotImplementedError

    def is_err(self) -> bool:
        return not self.is_ok()

    def ok(self) -> T | None:
        raise NotImplementedError

    def err(self) -> E | None:
        raise NotImplementedError

    def unwrap(self) -> T:
        raise NotImplementedError

    def unwrap_err(self) -> E:
        raise NotImplementedError

    def unwrap_or(self, default: T) -> T:
        raise NotImplementedError

    def map(self, fn: Callable[[T], U]) -> Result[U, E]:
        raise NotImplementedError

    def map_err(self, fn: Callable[[E], F]) -> Result[T, F]:
        raise NotImplementedError

    def and_then(self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        raise NotImplementedError

    def inspect_err(self, fn: Callable[[E], Any]) -> Result[T, E]:
        raise NotImplementedError

    def __bool__(self) -> bool:
        return self.is_ok()

    @staticmethod
    def collect(results: Iterable[Result[T, E]]) -> Result[list[T], E]:
        """Combine results, stopping at the first Err."""
        values: list[T] = []
        for result in results:
            if result.is_err():
                return Err(result.unwrap_err())
            values.append(result.unwrap())
        return Ok(values)

    @staticmethod
    def from_optional(value: T | None, error: E) -> Result[T, E]:
        """Ok(value) unless value is None."""
        if value is None:
            return Err(error)
        return Ok(value)


class Ok(Result[T, E]):
    """Successful result holding a value."""

    __slots__ = ("_value",)

    def __init__(self, value: T):
        self._value = value

    def is_ok(self) -> bool:
        return True

    def ok(self) -> T | None:
        return self._value

    def err(self) -> E | None:
        return None

    def unwrap(self) -> T:
        return self._value

    def unwrap_err(self) -> NoReturn:
        raise ResultError(f"Called unwrap_err on Ok: {self._value!r}")

    def unwrap_or(self, default: T) -> T:
        return self._value

    def map(self, fn: Callable[[T], U]) -> Result[U, E]:
        return Ok(fn(self._value))

    def map_err(self, fn: Callable[[E], F]) -> Result[T, F]:
        return Ok(self._value)

    def and_then(self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        return fn(self._value)

    def inspect_err(self, fn: Callable[[E], Any]) -> Result[T, E]:
        return self

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Ok) and other._value == self._value

    def __hash__(self) -> int:
        return hash(("Ok", self._value))

    def __repr__(self) -> str:
        return f"Ok({self._value!r})"


class Err(Result[T, E]):
    """Failed result holding an error."""

    __slots__ = ("_error",)

    def __init__(self, error: E):
        self._error = error

    def is_ok(self) -> bool:
        return False

    def ok(self) -> T | None:
        return None

    def err(self) -> E | None:
        return self._error

    def unwrap(self) -> NoReturn:
        raise ResultError(f"Called unwrap on Err: {self._error!r}")

    def unwrap_err(self) -> E:
        return self._error

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, fn: Callable[[T], U]) -> Result[U, E]:
        return Err(self._error)

    def map_err(self, fn: Callable[[E], F]) -> Result[T, F]:
        return Err(fn(self._error))

    def and_then(self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        return Err(self._error)

    def inspect_err(self, fn: Callable[[E], Any]) -> Result[T, E]:
        fn(self._error)
        return self

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Err) and other._error == self._error

    def __hash__(self) -> int:
        return hash(("Err", self._error))

    def __repr__(self) -> str:
        return f"Err({self._error!r})"
