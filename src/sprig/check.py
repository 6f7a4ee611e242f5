"""Sprig typechecker — scope resolution and type inference by unification."""

from __future__ import annotations

from dataclasses import dataclass

from .ast import (
    Pos,
    TAssignStmt,
    TDecl,
    TDeclStmt,
    TExpr,
    TFunction,
    TIntLit,
    TReturnStmt,
    TStmt,
    TTupleLit,
    TType,
    TVar,
)
from .parse import UnsupportedConstruct
from .scope import Scope


# ============================================================
# RESOLVED TYPE REPRESENTATION
# ============================================================

TY_INT: str = "int"
TY_UNKNOWN: str = "unknown"


@dataclass(frozen=True)
class Type:
    kind: str


INT_T: Type = Type(kind=TY_INT)
UNKNOWN_T: Type = Type(kind=TY_UNKNOWN)

_PRIMITIVE_MAP: dict[str, Type] = {
    "int": INT_T,
}


def is_concrete(t: Type) -> bool:
    return t.kind != TY_UNKNOWN


def type_name(t: Type) -> str:
    return t.kind


# ============================================================
# CHECK ERRORS
# ============================================================


class CheckError(Exception):
    def __init__(self, msg: str, line: int, col: int):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        super().__init__(msg + " at line " + str(line) + " col " + str(col))

    @property
    def column(self) -> int:
        return self.col


class ArityMismatch(CheckError):
    def __init__(
        self, expected_count: int, found_count: int, context: str, pos: Pos
    ) -> None:
        self.expected_count: int = expected_count
        self.found_count: int = found_count
        self.context: str = context
        super().__init__(
            context
            + " arity mismatch: expected "
            + str(expected_count)
            + " value(s), found "
            + str(found_count),
            pos.line,
            pos.col,
        )


class UndeclaredIdentifier(CheckError):
    def __init__(self, name: str, pos: Pos) -> None:
        self.name: str = name
        super().__init__("undeclared identifier '" + name + "'", pos.line, pos.col)


class TypeMismatch(CheckError):
    def __init__(self, expected: Type, found: Type, pos: Pos) -> None:
        self.expected: Type = expected
        self.found: Type = found
        super().__init__(
            "type mismatch: expected "
            + type_name(expected)
            + ", found "
            + type_name(found),
            pos.line,
            pos.col,
        )


class UnknownTypeName(CheckError):
    def __init__(self, name: str, pos: Pos) -> None:
        self.name: str = name
        super().__init__("unknown type '" + name + "'", pos.line, pos.col)


class UnresolvedType(CheckError):
    def __init__(self, name: str, pos: Pos) -> None:
        self.name: str = name
        super().__init__(
            "type of '" + name + "' could not be inferred", pos.line, pos.col
        )


# ============================================================
# TYPE SLOTS
# ============================================================


class TypeArena:
    """Type slots addressed by index, merged with union-find.

    A slot's type is the type stored at its representative. Unifying an
    unknown slot with a concrete one links the unknown representative under
    the concrete one, so every alias of either slot sees the concrete type.
    """

    def __init__(self) -> None:
        self.types: list[Type] = []
        self.parent: list[int] = []

    def __len__(self) -> int:
        return len(self.types)

    def new(self, typ: Type) -> int:
        slot = len(self.types)
        self.types.append(typ)
        self.parent.append(slot)
        return slot

    def find(self, slot: int) -> int:
        root = slot
        while self.parent[root] != root:
            root = self.parent[root]
        # Path compression
        while self.parent[slot] != root:
            nxt = self.parent[slot]
            self.parent[slot] = root
            slot = nxt
        return root

    def get(self, slot: int) -> Type:
        return self.types[self.find(slot)]

    def unify(self, a: int, b: int, pos: Pos | None = None) -> None:
        """Make slots `a` and `b` agree; `a` is reported as expected on failure."""
        ra = self.find(a)
        rb = self.find(b)
        if ra == rb:
            return
        ta = self.types[ra]
        tb = self.types[rb]
        if not is_concrete(ta) and not is_concrete(tb):
            return
        if not is_concrete(ta):
            self.parent[ra] = rb
            return
        if not is_concrete(tb):
            self.parent[rb] = ra
            return
        if ta != tb:
            raise TypeMismatch(ta, tb, pos if pos is not None else Pos(0, 0))


def convert_type(t: TType) -> Type:
    """Resolve a parse-time TType node into a checked Type."""
    result = _PRIMITIVE_MAP.get(t.name)
    if result is None:
        raise UnknownTypeName(t.name, t.pos)
    return result


# ============================================================
# CHECKER
# ============================================================


class Checker:
    def __init__(self) -> None:
        self.arena: TypeArena = TypeArena()
        self.scope: Scope = Scope()
        self.rets: list[Type] = []
        # Declaration site of every slot entered into scope
        self.decl_pos: dict[int, Pos] = {}

    def declare(self, name: str, typ: Type, pos: Pos) -> int:
        slot = self.arena.new(typ)
        self.scope = self.scope.insert(name, slot)
        self.decl_pos[slot] = pos
        return slot

    def lookup(self, name: str, pos: Pos) -> int:
        slot = self.scope.get(name)
        if slot is None:
            raise UndeclaredIdentifier(name, pos)
        return slot

    def declared_type(self, decl: TDecl) -> Type:
        if decl.typ is None:
            return UNKNOWN_T
        return convert_type(decl.typ)

    # ── Expressions ───────────────────────────────────────────

    def type_of(self, expr: TExpr) -> int:
        if isinstance(expr, TIntLit):
            return self.arena.new(INT_T)
        if isinstance(expr, TVar):
            return self.lookup(expr.name, expr.pos)
        if isinstance(expr, TTupleLit):
            raise UnsupportedConstruct(
                "nested tuples are not supported", expr.pos.line, expr.pos.col
            )
        raise UnsupportedConstruct(
            "unhandled expression " + type(expr).__name__, expr.pos.line, expr.pos.col
        )

    def types_of(self, expr: TExpr) -> list[int]:
        if isinstance(expr, TTupleLit):
            return [self.type_of(e) for e in expr.elements]
        return [self.type_of(expr)]

    # ── Function ──────────────────────────────────────────────

    def check_function(self, fn: TFunction) -> None:
        for param in fn.params:
            typ = self.declared_type(param)
            for name in param.idents:
                self.declare(name, typ, param.pos)
        self.rets = [convert_type(t) for t in fn.rets]
        self.check_stmts(fn.body)

    def check_unresolved(self) -> None:
        for name, slot in self.scope.visible().items():
            if not is_concrete(self.arena.get(slot)):
                raise UnresolvedType(name, self.decl_pos[slot])

    # ── Statement checking ────────────────────────────────────

    def check_stmts(self, stmts: list[TStmt]) -> None:
        for s in stmts:
            self.check_stmt(s)

    def check_stmt(self, stmt: TStmt) -> None:
        if isinstance(stmt, TDeclStmt):
            self.check_decl_stmt(stmt)
        elif isinstance(stmt, TAssignStmt):
            self.check_assign_stmt(stmt)
        elif isinstance(stmt, TReturnStmt):
            self.check_return_stmt(stmt)
        else:
            raise UnsupportedConstruct(
                "unhandled statement " + type(stmt).__name__,
                stmt.pos.line,
                stmt.pos.col,
            )

    def check_decl_stmt(self, stmt: TDeclStmt) -> None:
        # The initializer is typed before any of the new names are bound.
        values: list[int] | None = None
        if stmt.value is not None:
            count = 0
            for decl in stmt.decls:
                count += len(decl.idents)
            values = self.types_of(stmt.value)
            if len(values) != count:
                raise ArityMismatch(count, len(values), "declaration", stmt.pos)
        i = 0
        for decl in stmt.decls:
            typ = self.declared_type(decl)
            for name in decl.idents:
                slot = self.declare(name, typ, decl.pos)
                if values is not None:
                    self.arena.unify(slot, values[i], stmt.pos)
                i += 1

    def check_assign_stmt(self, stmt: TAssignStmt) -> None:
        targets = [self.lookup(name, stmt.pos) for name in stmt.idents]
        values = self.types_of(stmt.value)
        if len(values) != len(targets):
            raise ArityMismatch(len(targets), len(values), "assignment", stmt.pos)
        i = 0
        while i < len(targets):
            self.arena.unify(targets[i], values[i], stmt.pos)
            i += 1

    def check_return_stmt(self, stmt: TReturnStmt) -> None:
        values = self.types_of(stmt.value)
        if len(values) != len(self.rets):
            raise ArityMismatch(len(self.rets), len(values), "return", stmt.pos)
        i = 0
        while i < len(values):
            expected = self.arena.new(self.rets[i])
            self.arena.unify(expected, values[i], stmt.pos)
            i += 1


# ============================================================
# PUBLIC API
# ============================================================


@dataclass
class CheckResult:
    """A checked function together with its final scope and slot arena."""

    function: TFunction
    scope: Scope
    arena: TypeArena

    def type_of(self, name: str) -> Type | None:
        slot = self.scope.get(name)
        if slot is None:
            return None
        return self.arena.get(slot)

    def types(self) -> dict[str, Type]:
        """Visible bindings in declaration order, resolved."""
        return {
            name: self.arena.get(slot) for name, slot in self.scope.visible().items()
        }


def check(fn: TFunction, allow_unresolved: bool = False) -> Scope:
    """Type-check a parsed TFunction. Returns the final scope; raises CheckError."""
    scope, _ = check_with_info(fn, allow_unresolved)
    return scope


def check_with_info(
    fn: TFunction, allow_unresolved: bool = False
) -> tuple[Scope, Checker]:
    """Type-check and return both the scope and the Checker (for its arena)."""
    checker = Checker()
    checker.check_function(fn)
    if not allow_unresolved:
        checker.check_unresolved()
    return (checker.scope, checker)
