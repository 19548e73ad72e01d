"""
Minimal result types shared by the runtimes.

``Result`` is the value returned by ``run_safe()``: either ``Ok(value)`` when the
computation completed or ``Err(error)`` when it raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar, cast

from frozendict import frozendict

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Result(Generic[T_co]):
    """Sum type representing either a successful value or an error."""

    __slots__ = ()

    def is_ok(self) -> bool:
        """Return ``True`` when the result is successful."""

        return isinstance(self, Ok)

    def is_err(self) -> bool:
        """Return ``True`` when the result represents a failure."""

        return isinstance(self, Err)

    def ok(self) -> T_co | None:
        """Return the contained value, or ``None`` if this is an error."""

        if isinstance(self, Ok):
            return self.value
        return None

    def err(self) -> BaseException | None:
        """Return the contained error, or ``None`` if this is a success."""

        if isinstance(self, Err):
            return self.error
        return None

    def unwrap(self) -> T_co:
        """Return the value or raise the stored error."""

        if isinstance(self, Ok):
            return self.value
        raise cast(Err, self).error

    def unwrap_err(self) -> BaseException:
        """Return the error or raise ``RuntimeError`` if this is a success."""

        if isinstance(self, Err):
            return self.error
        raise RuntimeError("Called unwrap_err on Ok value")


@dataclass(frozen=True)
class Ok(Result[T], Generic[T]):
    """Success result."""
    value: T


@dataclass(frozen=True)
class Err(Result[NoReturn]):
    """Error result."""
    error: BaseException


FrozenDict = frozendict

__all__ = [
    "Err",
    "FrozenDict",
    "Ok",
    "Result",
]
