"""Serialization of AST nodes and check results to JSON-compatible dicts."""

from __future__ import annotations

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
from .check import CheckResult, type_name


def _serialize_pos(pos: Pos) -> list[int]:
    return [pos.line, pos.col]


def _serialize_type(obj: TType | None) -> dict[str, object] | None:
    if obj is None:
        return None
    return {"_type": "Type", "pos": _serialize_pos(obj.pos), "name": obj.name}


def _serialize_decl(obj: TDecl) -> dict[str, object]:
    return {
        "_type": "Decl",
        "pos": _serialize_pos(obj.pos),
        "idents": list(obj.idents),
        "typ": _serialize_type(obj.typ),
    }


def _serialize_expr(obj: TExpr | None) -> dict[str, object] | None:
    """Serialize TExpr subclasses."""
    if obj is None:
        return None
    d: dict[str, object] = {"pos": _serialize_pos(obj.pos)}
    if isinstance(obj, TIntLit):
        d["_type"] = "IntLit"
        d["text"] = obj.text
    elif isinstance(obj, TVar):
        d["_type"] = "Var"
        d["name"] = obj.name
    elif isinstance(obj, TTupleLit):
        d["_type"] = "Tuple"
        d["elements"] = [_serialize_expr(e) for e in obj.elements]
    else:
        d["_type"] = "Expr"
    return d


def _serialize_stmt(obj: TStmt) -> dict[str, object]:
    """Serialize TStmt subclasses."""
    d: dict[str, object] = {"pos": _serialize_pos(obj.pos)}
    if isinstance(obj, TAssignStmt):
        d["_type"] = "Assign"
        d["idents"] = list(obj.idents)
        d["value"] = _serialize_expr(obj.value)
    elif isinstance(obj, TDeclStmt):
        d["_type"] = "DeclStmt"
        d["decls"] = [_serialize_decl(x) for x in obj.decls]
        d["value"] = _serialize_expr(obj.value)
    elif isinstance(obj, TReturnStmt):
        d["_type"] = "Return"
        d["value"] = _serialize_expr(obj.value)
    else:
        d["_type"] = "Stmt"
    return d


def function_to_dict(fn: TFunction) -> dict[str, object]:
    return {
        "_type": "Function",
        "pos": _serialize_pos(fn.pos),
        "name": fn.name,
        "params": [_serialize_decl(p) for p in fn.params],
        "rets": [_serialize_type(t) for t in fn.rets],
        "body": [_serialize_stmt(s) for s in fn.body],
    }


def result_to_dict(result: CheckResult) -> dict[str, object]:
    bindings: dict[str, object] = {}
    for name, typ in result.types().items():
        bindings[name] = type_name(typ)
    return {"function": result.function.name, "bindings": bindings}
