from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from ossadapter.core.errors import AdapterError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an adapter operation.

    Truthy on success so callers written against a plain boolean contract
    keep working; the failure cause stays available through ``error``.
    """

    value: Optional[T] = None
    error: Optional[AdapterError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: AdapterError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_type(self) -> str | None:
        if self.error is None:
            return None
        return self.error.error_type

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value

    def __bool__(self) -> bool:
        return self.ok
