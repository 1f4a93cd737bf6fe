from dataclasses import dataclass
from typing import Generic, TypeVar, cast

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an operation that either produced a value or failed."""

    _value: T | Exception

    def is_error(self) -> bool:
        return isinstance(self._value, Exception)

    def is_ok(self) -> bool:
        return not self.is_error()

    @property
    def value(self) -> T:
        if self.is_error():
            raise cast(Exception, self._value)
        return cast(T, self._value)

    @property
    def error(self) -> Exception:
        if self.is_ok():
            raise ValueError("Called error on Ok")
        return cast(Exception, self._value)

    def value_or(self, default: U) -> T | U:
        if self.is_error():
            return default
        return cast(T, self._value)
