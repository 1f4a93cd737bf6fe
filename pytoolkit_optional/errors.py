from typing import Any, Sequence


class InvalidConstructionError(ValueError):
    """Raised when a present container is requested for an absent value."""

    def __init__(self, value: Any = None):
        super().__init__(
            f"Cannot build a present OptionalValue from {value!r}; "
            "use OptionalValue.from_nullable() for values that may be absent"
        )
        self.value = value


class ContractViolationError(AssertionError):
    def __init__(self, violations: Sequence[Any]):
        lines = "\n".join(f"  {v}" for v in violations)
        super().__init__(f"{len(violations)} OptionalValue misuse(s) found:\n{lines}")
        self.violations = tuple(violations)
