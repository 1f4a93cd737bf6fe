"""
値の有無を表すコンテナ型のモジュール。

OptionalValue は Present(値あり) と Empty(値なし) のどちらか一方だけを取る。
値の取り出しは Present へのパターンマッチ (または isinstance による絞り込み)
でのみ行い、存在確認なしに値を取り出すアクセサは提供しない。

    match name:
        case Present(value):
            print(value)
        case Empty():
            print("Name is absent")
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterator, TypeVar

from .errors import InvalidConstructionError
from .result import Result

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class OptionalValue(ABC, Generic[T]):
    @staticmethod
    def from_value(value: "T | OptionalValue[T]") -> "OptionalValue[T]":
        """Wrap a value known to be present.

        Raises InvalidConstructionError when ``value`` is None or Empty.
        An already-present container is returned as is.
        """
        if isinstance(value, OptionalValue):
            if value.is_absent():
                logger.debug("from_value rejected an Empty container")
                raise InvalidConstructionError(value)
            return value
        if value is None:
            logger.debug("from_value rejected None")
            raise InvalidConstructionError(value)
        return Present(value)

    @staticmethod
    def from_nullable(value: "T | OptionalValue[T] | None") -> "OptionalValue[T]":
        """Wrap a value that may be None. Never fails."""
        if isinstance(value, OptionalValue):
            return value
        if value is None:
            return _EMPTY
        return Present(value)

    @staticmethod
    def empty() -> "OptionalValue[T]":
        return _EMPTY

    @staticmethod
    def try_from_value(value: "T | OptionalValue[T]") -> "Result[OptionalValue[T]]":
        """Like from_value, but the construction error is returned instead of raised."""
        try:
            return Result(OptionalValue.from_value(value))
        except InvalidConstructionError as e:
            return Result(e)

    @staticmethod
    def from_result(result: "Result[T]") -> "OptionalValue[T]":
        """Keep the value of a successful result, drop the error otherwise."""
        if result.is_error():
            return _EMPTY
        return OptionalValue.from_nullable(result.value)

    @abstractmethod
    def is_present(self) -> bool:
        raise NotImplementedError()

    def is_absent(self) -> bool:
        return not self.is_present()

    @abstractmethod
    def map(self, func: Callable[[T], "U | OptionalValue[U] | None"]) -> "OptionalValue[U]":
        """Transform the held value.

        A mapper returning None gives Empty, a mapper returning a container
        gives that container (never a nested one).
        """
        raise NotImplementedError()

    @abstractmethod
    def flat_map(self, func: Callable[[T], "OptionalValue[U]"]) -> "OptionalValue[U]":
        raise NotImplementedError()

    @abstractmethod
    def filter(self, predicate: Callable[[T], bool]) -> "OptionalValue[T]":
        raise NotImplementedError()

    @abstractmethod
    def or_else_value(self, default: U) -> T | U:
        """Return the held value or ``default``.

        ``default`` is evaluated by the caller before this call whether or
        not it is used. Use or_else_compute() for computed defaults.
        """
        raise NotImplementedError()

    @abstractmethod
    def or_else_compute(self, supplier: Callable[[], U]) -> T | U:
        """Return the held value, calling ``supplier`` only when absent."""
        raise NotImplementedError()

    @abstractmethod
    def or_else_raise(self, exception_factory: Callable[[], Exception]) -> T:
        raise NotImplementedError()

    @abstractmethod
    def if_present(self, action: Callable[[T], Any]) -> None:
        raise NotImplementedError()

    @abstractmethod
    def if_present_or_else(
        self, action: Callable[[T], Any], empty_action: Callable[[], Any]
    ) -> None:
        raise NotImplementedError()

    def __bool__(self) -> bool:
        raise TypeError(
            "OptionalValue has no truth value; use is_present() or is_absent()"
        )

    @abstractmethod
    def __iter__(self) -> Iterator[T]:
        raise NotImplementedError()


@dataclass(frozen=True)
class Present(OptionalValue[T]):
    value: T

    def __post_init__(self) -> None:
        value: Any = self.value
        if isinstance(value, OptionalValue):
            # Present(Present(x)) collapses to Present(x)
            match value:
                case Present(inner):
                    object.__setattr__(self, "value", inner)
                case _:
                    raise InvalidConstructionError(value)
        elif value is None:
            raise InvalidConstructionError(value)

    def __repr__(self) -> str:
        return f"Present({self.value!r})"

    def is_present(self) -> bool:
        return True

    def map(self, func: Callable[[T], "U | OptionalValue[U] | None"]) -> "OptionalValue[U]":
        return OptionalValue.from_nullable(func(self.value))

    def flat_map(self, func: Callable[[T], "OptionalValue[U]"]) -> "OptionalValue[U]":
        result = func(self.value)
        if not isinstance(result, OptionalValue):
            raise TypeError(
                f"flat_map mapper must return an OptionalValue, got {type(result).__name__}"
            )
        return result

    def filter(self, predicate: Callable[[T], bool]) -> "OptionalValue[T]":
        return self if predicate(self.value) else _EMPTY

    def or_else_value(self, default: U) -> T | U:
        return self.value

    def or_else_compute(self, supplier: Callable[[], U]) -> T | U:
        return self.value

    def or_else_raise(self, exception_factory: Callable[[], Exception]) -> T:
        return self.value

    def if_present(self, action: Callable[[T], Any]) -> None:
        action(self.value)

    def if_present_or_else(
        self, action: Callable[[T], Any], empty_action: Callable[[], Any]
    ) -> None:
        action(self.value)

    def __iter__(self) -> Iterator[T]:
        yield self.value


@dataclass(frozen=True)
class Empty(OptionalValue[T]):
    def __repr__(self) -> str:
        return "Empty()"

    def is_present(self) -> bool:
        return False

    def map(self, func: Callable[[T], "U | OptionalValue[U] | None"]) -> "OptionalValue[U]":
        return _EMPTY

    def flat_map(self, func: Callable[[T], "OptionalValue[U]"]) -> "OptionalValue[U]":
        return _EMPTY

    def filter(self, predicate: Callable[[T], bool]) -> "OptionalValue[T]":
        return self

    def or_else_value(self, default: U) -> T | U:
        return default

    def or_else_compute(self, supplier: Callable[[], U]) -> T | U:
        return supplier()

    def or_else_raise(self, exception_factory: Callable[[], Exception]) -> T:
        raise exception_factory()

    def if_present(self, action: Callable[[T], Any]) -> None:
        return None

    def if_present_or_else(
        self, action: Callable[[T], Any], empty_action: Callable[[], Any]
    ) -> None:
        empty_action()

    def __iter__(self) -> Iterator[T]:
        return iter(())


_EMPTY: Empty[Any] = Empty()

of = OptionalValue.from_value
of_nullable = OptionalValue.from_nullable
empty = OptionalValue.empty
