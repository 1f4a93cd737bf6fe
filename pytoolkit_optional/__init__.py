import logging

from .contract import (
    Violation,
    ViolationKind,
    assert_no_violations,
    find_optional_fields,
    find_optional_parameters,
    lint_source,
)
from .errors import ContractViolationError, InvalidConstructionError
from .metadata import get_version
from .optional import Empty, OptionalValue, Present, empty, of, of_nullable
from .result import Result

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = get_version()

__all__ = [
    "OptionalValue",
    "Present",
    "Empty",
    "of",
    "of_nullable",
    "empty",
    "Result",
    "InvalidConstructionError",
    "ContractViolationError",
    "Violation",
    "ViolationKind",
    "find_optional_fields",
    "find_optional_parameters",
    "lint_source",
    "assert_no_violations",
]
