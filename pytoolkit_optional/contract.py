"""
OptionalValue の誤用パターンを検出するモジュール。

クラスや関数の型ヒントを実行時に調べる検出器と、ソースコードを ast で
走査する検出器を提供する。どちらも Violation のリストを返し、空のリストは
違反なしを意味する。テストでは assert_no_violations() と組み合わせて使う。
"""

import ast
import enum
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, get_args, get_origin, get_type_hints

from .errors import ContractViolationError
from .optional import OptionalValue

logger = logging.getLogger(__name__)

_CONTAINER_NAMES = frozenset({"OptionalValue", "Present", "Empty"})
_PACKAGE = "pytoolkit_optional"
# factory name -> the OptionalValue constructor it stands for
_FUNCTION_FACTORIES = {
    "of": "from_value",
    "of_nullable": "from_nullable",
    "empty": "empty",
    "Present": "from_value",
}
_METHOD_FACTORIES = {
    "from_value": "from_value",
    "from_nullable": "from_nullable",
    "empty": "empty",
}
_GUARD_EXITS = (ast.Return, ast.Raise, ast.Continue, ast.Break)
_EXTRACTORS = frozenset({"value", "get", "unwrap"})


class ViolationKind(enum.Enum):
    OPTIONAL_FIELD = "optional-field"
    OPTIONAL_PARAMETER = "optional-parameter"
    UNCHECKED_EXTRACTION = "unchecked-extraction"
    ABSENT_CONSTRUCTION = "absent-construction"
    NESTED_OPTIONAL = "nested-optional"
    EAGER_DEFAULT = "eager-default"
    REDUNDANT_NARROWING = "redundant-narrowing"


@dataclass(frozen=True)
class Violation:
    kind: ViolationKind
    location: str
    message: str

    def __str__(self) -> str:
        return f"{self.location}: {self.kind.value}: {self.message}"


def _mentions_optional(annotation: Any) -> bool:
    if isinstance(annotation, (list, tuple)):
        return any(_mentions_optional(arg) for arg in annotation)
    origin = get_origin(annotation)
    if origin is None and isinstance(annotation, type):
        return issubclass(annotation, OptionalValue)
    if isinstance(origin, type) and issubclass(origin, OptionalValue):
        return True
    return any(_mentions_optional(arg) for arg in get_args(annotation))


def find_optional_fields(cls: type) -> list[Violation]:
    """Report attributes of ``cls`` annotated with an OptionalValue type.

    Store the plain value (None when absent) and build the container at the
    accessor instead.
    """
    violations = []
    for name, annotation in get_type_hints(cls).items():
        if _mentions_optional(annotation):
            violations.append(
                Violation(
                    ViolationKind.OPTIONAL_FIELD,
                    f"{cls.__module__}.{cls.__qualname__}.{name}",
                    f"field {name!r} stores an OptionalValue",
                )
            )
    for violation in violations:
        logger.debug("%s", violation)
    return violations


def find_optional_parameters(func: Callable[..., Any]) -> list[Violation]:
    """Report parameters of ``func`` annotated with an OptionalValue type.

    Returning an OptionalValue is fine; accepting one is not.
    """
    hints = get_type_hints(func)
    violations = []
    for name in inspect.signature(func).parameters:
        if name in hints and _mentions_optional(hints[name]):
            violations.append(
                Violation(
                    ViolationKind.OPTIONAL_PARAMETER,
                    f"{func.__module__}.{func.__qualname__}({name})",
                    f"parameter {name!r} accepts an OptionalValue",
                )
            )
    for violation in violations:
        logger.debug("%s", violation)
    return violations


def _call_name(node: ast.AST) -> str | None:
    if not isinstance(node, ast.Call):
        return None
    if isinstance(node.func, ast.Name):
        return node.func.id
    if isinstance(node.func, ast.Attribute):
        return node.func.attr
    return None


def _argument(node: ast.Call, keyword: str) -> ast.expr | None:
    """First positional argument, or the ``keyword`` argument when passed by name."""
    if node.args:
        return node.args[0]
    for kw in node.keywords:
        if kw.arg == keyword:
            return kw.value
    return None


def _annotation_mentions_optional(node: ast.AST | None) -> bool:
    if node is None:
        return False
    for sub in ast.walk(node):
        if isinstance(sub, ast.Name) and sub.id in _CONTAINER_NAMES:
            return True
        if isinstance(sub, ast.Attribute) and sub.attr in _CONTAINER_NAMES:
            return True
        if isinstance(sub, ast.Constant) and isinstance(sub.value, str):
            if any(name in sub.value for name in _CONTAINER_NAMES):
                return True
    return False


def _extracted_name(node: ast.AST) -> str | None:
    """Name of the variable read through ``x.value``, ``x.get`` or ``x.unwrap``."""
    if (
        isinstance(node, ast.Attribute)
        and node.attr in _EXTRACTORS
        and isinstance(node.value, ast.Name)
    ):
        return node.value.id
    return None


def _presence_check(test: ast.AST) -> str | None:
    """Name tested by ``x.is_present()`` or ``not x.is_absent()``."""
    if isinstance(test, ast.BoolOp) and isinstance(test.op, ast.And):
        for value in test.values:
            if name := _presence_check(value):
                return name
        return None
    method = "is_present"
    if isinstance(test, ast.UnaryOp) and isinstance(test.op, ast.Not):
        test, method = test.operand, "is_absent"
    if (
        isinstance(test, ast.Call)
        and not test.args
        and isinstance(test.func, ast.Attribute)
        and test.func.attr == method
        and isinstance(test.func.value, ast.Name)
    ):
        return test.func.value.id
    return None


def _is_present_class(node: ast.AST) -> bool:
    if isinstance(node, ast.Name):
        return node.id == "Present"
    return isinstance(node, ast.Attribute) and node.attr == "Present"


def _isinstance_present(test: ast.AST) -> str | None:
    """Name narrowed by ``isinstance(x, Present)``, alone or in an ``and`` chain."""
    if isinstance(test, ast.BoolOp) and isinstance(test.op, ast.And):
        for value in test.values:
            if name := _isinstance_present(value):
                return name
        return None
    if (
        isinstance(test, ast.Call)
        and _call_name(test) == "isinstance"
        and len(test.args) == 2
        and isinstance(test.args[0], ast.Name)
        and _is_present_class(test.args[1])
    ):
        return test.args[0].id
    return None


def _guard_narrowing(statement: ast.AST) -> str | None:
    """Name narrowed after ``if not isinstance(x, Present): return``."""
    if (
        isinstance(statement, ast.If)
        and not statement.orelse
        and isinstance(statement.body[-1], _GUARD_EXITS)
        and isinstance(statement.test, ast.UnaryOp)
        and isinstance(statement.test.op, ast.Not)
    ):
        return _isinstance_present(statement.test.operand)
    return None


class _Linter(ast.NodeVisitor):
    def __init__(self, filename: str):
        self.filename = filename
        self.violations: list[Violation] = []
        self._tracked: set[str] = set()
        self._narrowed: list[str] = []
        self._reported: set[int] = set()
        # local name -> name imported from the package
        self._imported: dict[str, str] = {}
        self._modules: set[str] = set()

    def _add(self, kind: ViolationKind, node: ast.AST, message: str) -> None:
        violation = Violation(kind, f"{self.filename}:{getattr(node, 'lineno', 0)}", message)
        logger.debug("%s", violation)
        self.violations.append(violation)

    def _is_optional_class(self, node: ast.AST) -> bool:
        if isinstance(node, ast.Name):
            return self._imported.get(node.id) == "OptionalValue"
        return (
            isinstance(node, ast.Attribute)
            and node.attr == "OptionalValue"
            and isinstance(node.value, ast.Name)
            and node.value.id in self._modules
        )

    def _factory(self, node: ast.AST) -> str | None:
        """OptionalValue constructor called by ``node``, if it is one."""
        if not isinstance(node, ast.Call):
            return None
        func = node.func
        if isinstance(func, ast.Name):
            return _FUNCTION_FACTORIES.get(self._imported.get(func.id, ""))
        if not isinstance(func, ast.Attribute):
            return None
        if isinstance(func.value, ast.Name) and func.value.id in self._modules:
            return _FUNCTION_FACTORIES.get(func.attr)
        if self._is_optional_class(func.value):
            return _METHOD_FACTORIES.get(func.attr)
        return None

    def _visit_block(self, statements: Iterable[ast.AST], narrowed: str | None) -> None:
        depth = len(self._narrowed)
        if narrowed:
            self._narrowed.append(narrowed)
        for statement in statements:
            self.visit(statement)
            if guarded := _guard_narrowing(statement):
                self._narrowed.append(guarded)
        del self._narrowed[depth:]

    def visit_Module(self, node: ast.Module) -> None:
        self._visit_block(node.body, None)

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            if alias.name == _PACKAGE:
                self._modules.add(alias.asname or alias.name)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        module = node.module or ""
        if module == _PACKAGE or module.startswith(f"{_PACKAGE}."):
            for alias in node.names:
                self._imported[alias.asname or alias.name] = alias.name

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        for statement in node.body:
            if (
                isinstance(statement, ast.AnnAssign)
                and isinstance(statement.target, ast.Name)
                and _annotation_mentions_optional(statement.annotation)
            ):
                self._add(
                    ViolationKind.OPTIONAL_FIELD,
                    statement,
                    f"field {statement.target.id!r} of {node.name} stores an OptionalValue",
                )
        self.generic_visit(node)

    def visit_FunctionDef(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        for decorator in node.decorator_list:
            self.visit(decorator)
        self.visit(node.args)
        if node.returns is not None:
            self.visit(node.returns)

        # names tracked in one function say nothing about another
        outer = self._tracked, self._narrowed
        self._tracked, self._narrowed = set(), []
        arguments = node.args
        for arg in [
            *arguments.posonlyargs,
            *arguments.args,
            *arguments.kwonlyargs,
            *filter(None, [arguments.vararg, arguments.kwarg]),
        ]:
            if _annotation_mentions_optional(arg.annotation):
                self._tracked.add(arg.arg)
                self._add(
                    ViolationKind.OPTIONAL_PARAMETER,
                    arg,
                    f"parameter {arg.arg!r} of {node.name}() accepts an OptionalValue",
                )
        self._visit_block(node.body, None)
        self._tracked, self._narrowed = outer

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_Assign(self, node: ast.Assign) -> None:
        if self._factory(node.value):
            for target in node.targets:
                if isinstance(target, ast.Name):
                    self._tracked.add(target.id)
                elif isinstance(target, ast.Attribute):
                    self._add(
                        ViolationKind.OPTIONAL_FIELD,
                        node,
                        f"attribute {target.attr!r} stores an OptionalValue",
                    )
        self.generic_visit(node)

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:
        mentions = _annotation_mentions_optional(node.annotation)
        if isinstance(node.target, ast.Name):
            if mentions or (node.value is not None and self._factory(node.value)):
                self._tracked.add(node.target.id)
        elif isinstance(node.target, ast.Attribute) and mentions:
            self._add(
                ViolationKind.OPTIONAL_FIELD,
                node,
                f"attribute {node.target.attr!r} stores an OptionalValue",
            )
        self.generic_visit(node)

    def visit_Call(self, node: ast.Call) -> None:
        name = _call_name(node)
        factory = self._factory(node)
        if factory in ("from_value", "from_nullable"):
            argument = _argument(node, "value")
            if factory == "from_value" and isinstance(argument, ast.Constant):
                if argument.value is None:
                    self._add(
                        ViolationKind.ABSENT_CONSTRUCTION,
                        node,
                        f"{name}(None) always fails; use from_nullable() or empty()",
                    )
            if argument is not None and self._factory(argument):
                self._add(
                    ViolationKind.NESTED_OPTIONAL,
                    node,
                    f"{name}() wraps another OptionalValue",
                )
        if name == "or_else_value" and isinstance(_argument(node, "default"), ast.Call):
            self._add(
                ViolationKind.EAGER_DEFAULT,
                node,
                "or_else_value() default is computed even when a value is present; "
                "use or_else_compute()",
            )
        self.generic_visit(node)

    def visit_If(self, node: ast.If) -> None:
        checked = _presence_check(node.test)
        if checked:
            for statement in node.body:
                for sub in ast.walk(statement):
                    if _extracted_name(sub) == checked:
                        self._reported.add(id(sub))
                        self._add(
                            ViolationKind.REDUNDANT_NARROWING,
                            sub,
                            f"{checked!r} is checked with is_present() and then read "
                            f"through .{sub.attr}; use map(), if_present() or match",
                        )
        self.visit(node.test)
        self._visit_block(node.body, _isinstance_present(node.test))
        self._visit_block(node.orelse, None)

    def visit_Match(self, node: ast.Match) -> None:
        self.visit(node.subject)
        subject = node.subject.id if isinstance(node.subject, ast.Name) else None
        for case in node.cases:
            pattern = case.pattern
            narrowed = None
            if isinstance(pattern, ast.MatchClass) and _is_present_class(pattern.cls):
                narrowed = subject
            if case.guard is not None:
                self.visit(case.guard)
            self._visit_block(case.body, narrowed)

    def visit_Attribute(self, node: ast.Attribute) -> None:
        name = _extracted_name(node)
        if (
            name in self._tracked
            and name not in self._narrowed
            and id(node) not in self._reported
        ):
            self._add(
                ViolationKind.UNCHECKED_EXTRACTION,
                node,
                f"{name!r} is read through .{node.attr} without narrowing to Present",
            )
        self.generic_visit(node)


def lint_source(source: str, filename: str = "<string>") -> list[Violation]:
    """Scan Python source for OptionalValue misuse.

    Only factories imported from pytoolkit_optional are recognised.
    Raises SyntaxError when ``source`` does not parse.
    """
    linter = _Linter(filename)
    linter.visit(ast.parse(source, filename=filename))
    logger.debug("%s: %d violation(s)", filename, len(linter.violations))
    return linter.violations


def assert_no_violations(violations: Iterable[Violation]) -> None:
    found = list(violations)
    if found:
        raise ContractViolationError(found)
