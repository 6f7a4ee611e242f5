"""Sprig parser — recursive descent straight over characters, no token pass."""

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

# Expression precedence bands. A comma only builds a tuple at PREC_TUPLE.
PREC_EXPR: int = 0
PREC_TUPLE: int = 1


class ParseError(Exception):
    """Parse error with location info."""

    def __init__(self, msg: str, line: int, col: int, expected: str | None = None):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        self.expected: str | None = expected
        super().__init__(msg + " at line " + str(line) + " col " + str(col))

    @property
    def column(self) -> int:
        return self.col


class UnsupportedConstruct(ParseError):
    """Syntax that is recognized but not implemented."""


class Parser:
    """Recursive descent parser for one Sprig function.

    All cursor state lives on the instance: the full source, the offset of the
    next unread character, and the 1-indexed line and column of that character.
    """

    def __init__(self, source: str):
        self.source: str = source
        self.pos: int = 0
        self.line: int = 1
        self.col: int = 1

    # ── Characters ───────────────────────────────────────────

    def peek_char(self) -> str:
        if self.pos >= len(self.source):
            return ""
        return self.source[self.pos]

    def consume_char(self) -> str:
        c = self.source[self.pos]
        self.pos += 1
        if c == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return c

    def skip_whitespace(self) -> None:
        while self.peek_char().isspace():
            self.consume_char()

    def at_end(self) -> bool:
        self.skip_whitespace()
        return self.pos >= len(self.source)

    # ── Tokens ───────────────────────────────────────────────

    def peek_symbol(self, symbol: str) -> bool:
        self.skip_whitespace()
        if not self.source.startswith(symbol, self.pos):
            return False
        if symbol.isalpha():
            end = self.pos + len(symbol)
            if end < len(self.source) and self.source[end].isalnum():
                return False
        return True

    def try_symbol(self, symbol: str) -> bool:
        if not self.peek_symbol(symbol):
            return False
        for _ in symbol:
            self.consume_char()
        return True

    def expect_symbol(self, symbol: str) -> None:
        if not self.try_symbol(symbol):
            raise self.error("'" + symbol + "'")

    def try_ident(self) -> str | None:
        self.skip_whitespace()
        if not self.peek_char().isalpha():
            return None
        start = self.pos
        while self.peek_char().isalnum():
            self.consume_char()
        return self.source[start : self.pos]

    def expect_ident(self, what: str = "identifier") -> str:
        name = self.try_ident()
        if name is None:
            raise self.error(what)
        return name

    def try_int(self) -> str | None:
        self.skip_whitespace()
        start = self.pos
        while self.peek_char().isnumeric():
            self.consume_char()
        if self.pos == start:
            return None
        return self.source[start : self.pos]

    # ── Diagnostics ──────────────────────────────────────────

    def _describe_next(self) -> str:
        self.skip_whitespace()
        c = self.peek_char()
        if c == "":
            return "end of input"
        end = self.pos + 1
        if c.isalnum():
            while end < len(self.source) and self.source[end].isalnum():
                end += 1
        return "'" + self.source[self.pos : end] + "'"

    def error(self, expected: str) -> ParseError:
        got = self._describe_next()
        return ParseError(
            "expected " + expected + ", got " + got, self.line, self.col, expected
        )

    def _pos(self) -> Pos:
        self.skip_whitespace()
        return Pos(self.line, self.col)

    # ── Top Level ────────────────────────────────────────────

    def parse_function(self) -> TFunction:
        """Function = 'fn' Ident '(' Params? ')' ( '->' Types )? '{' Stmt* '}'"""
        pos = self._pos()
        self.expect_symbol("fn")
        name = self.expect_ident("function name")
        self.expect_symbol("(")
        params: list[TDecl] = []
        if not self.peek_symbol(")"):
            params = self.parse_decls(self.parse_decl())
        self.expect_symbol(")")
        rets: list[TType] = []
        if self.try_symbol("->"):
            rets.append(self.parse_type())
            while self.try_symbol(","):
                rets.append(self.parse_type())
        self.expect_symbol("{")
        body: list[TStmt] = []
        while not self.try_symbol("}"):
            if self.at_end():
                raise self.error("'}'")
            body.append(self.parse_stmt())
        if not self.at_end():
            raise self.error("end of input")
        return TFunction(pos, name, params, rets, body)

    def parse_decl(self) -> TDecl:
        """Decl = Ident ( ',' Ident )* ':' Type"""
        pos = self._pos()
        first = self.expect_ident()
        idents = self.parse_idents(first)
        self.expect_symbol(":")
        typ = self.parse_type()
        return TDecl(pos, idents, typ)

    def parse_decls(self, first: TDecl) -> list[TDecl]:
        decls: list[TDecl] = [first]
        while self.try_symbol(","):
            decls.append(self.parse_decl())
        return decls

    def parse_idents(self, first: str) -> list[str]:
        idents: list[str] = [first]
        while self.try_symbol(","):
            idents.append(self.expect_ident())
        return idents

    def parse_type(self) -> TType:
        pos = self._pos()
        name = self.expect_ident("type")
        return TType(pos, name)

    # ── Statements ───────────────────────────────────────────

    def parse_stmt(self) -> TStmt:
        pos = self._pos()
        first = self.expect_ident("statement")
        if first == "return" and not self.peek_symbol("("):
            return TReturnStmt(pos, self.parse_expr(PREC_TUPLE))
        idents = self.parse_idents(first)
        if self.peek_symbol("("):
            raise UnsupportedConstruct(
                "call statements are not supported", pos.line, pos.col
            )
        if self.try_symbol("="):
            return TAssignStmt(pos, idents, self.parse_expr(PREC_TUPLE))
        if self.try_symbol(":"):
            return self.parse_decl_stmt(pos, idents)
        raise self.error("'=' or ':'")

    def parse_decl_stmt(self, pos: Pos, idents: list[str]) -> TDeclStmt:
        """DeclStmt = Idents ':' ( Type ( ',' Decl )* )? ( '=' Expr )?

        With no type the initializer is required: `a, b := 1, 2` declares
        each name on its own.
        """
        decls: list[TDecl]
        if self.peek_symbol("="):
            decls = [TDecl(pos, [name], None) for name in idents]
        else:
            decls = self.parse_decls(TDecl(pos, idents, self.parse_type()))
        value: TExpr | None = None
        if self.try_symbol("="):
            value = self.parse_expr(PREC_TUPLE)
        return TDeclStmt(pos, decls, value)

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self, prec: int) -> TExpr:
        """Expr = Atom ( ',' Atom )*, the comma only at tuple precedence."""
        left = self.parse_atom()
        if prec < PREC_TUPLE or not self.peek_symbol(","):
            return left
        elements: list[TExpr] = [left]
        while self.try_symbol(","):
            elements.append(self.parse_expr(PREC_EXPR))
        return TTupleLit(left.pos, elements)

    def parse_atom(self) -> TExpr:
        pos = self._pos()
        text = self.try_int()
        if text is not None:
            return TIntLit(pos, text)
        name = self.try_ident()
        if name is not None:
            return TVar(pos, name)
        raise self.error("expression")
