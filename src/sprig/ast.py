"""Sprig AST — parse-time node definitions."""

from __future__ import annotations

from dataclasses import dataclass


# ============================================================
# POSITION
# ============================================================


@dataclass
class Pos:
    """Source position, 1-indexed."""

    line: int
    col: int


# ============================================================
# TYPES (parse-time, unresolved)
# ============================================================


@dataclass
class TType:
    """A type annotation: a single identifier such as `int`."""

    pos: Pos
    name: str


# ============================================================
# DECLARATIONS
# ============================================================


@dataclass
class TDecl:
    """a, b: Type, one or more names sharing an optional annotation."""

    pos: Pos
    idents: list[str]
    typ: TType | None


@dataclass
class TFunction:
    """fn Name(params) -> Rets { body }."""

    pos: Pos
    name: str
    params: list[TDecl]
    rets: list[TType]
    body: list[TStmt]


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class TStmt:
    """Base for all statements."""

    pos: Pos


@dataclass
class TAssignStmt(TStmt):
    """a, b = expr."""

    idents: list[str]
    value: TExpr


@dataclass
class TDeclStmt(TStmt):
    """a: T, b: U = expr  or  a, b := expr."""

    decls: list[TDecl]
    value: TExpr | None


@dataclass
class TReturnStmt(TStmt):
    """return expr."""

    value: TExpr


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class TExpr:
    """Base for all expressions."""

    pos: Pos


@dataclass
class TIntLit(TExpr):
    text: str


@dataclass
class TVar(TExpr):
    name: str


@dataclass
class TTupleLit(TExpr):
    """a, b, ... with 2+ elements, only as the outermost expression."""

    elements: list[TExpr]
