"""Sprig parser and typechecker — public API."""

from __future__ import annotations

from .ast import TFunction
from .check import (
    ArityMismatch as ArityMismatch,
    CheckError as CheckError,
    CheckResult as CheckResult,
    TypeMismatch as TypeMismatch,
    UndeclaredIdentifier as UndeclaredIdentifier,
    UnknownTypeName as UnknownTypeName,
    UnresolvedType as UnresolvedType,
    check_with_info,
)
from .parse import (
    ParseError as ParseError,
    Parser,
    UnsupportedConstruct as UnsupportedConstruct,
)


def parse(source: str) -> TFunction:
    """Parse Sprig source code into a TFunction AST."""
    parser = Parser(source)
    return parser.parse_function()


def check(source: str, allow_unresolved: bool = False) -> CheckResult:
    """Parse and type-check Sprig source. Raises on the first error."""
    function = parse(source)
    scope, checker = check_with_info(function, allow_unresolved)
    return CheckResult(function, scope, checker.arena)
