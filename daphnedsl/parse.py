"""DaphneDSL parser — recursive descent for statements, precedence climbing
for binary operators."""

from __future__ import annotations

import dataclasses
from typing import Callable, Iterable, Iterator

from .ast import (
    Assign,
    BinaryOp,
    Block,
    BoolLiteral,
    Call,
    Cast,
    DataTypeTag,
    Expr,
    ExprStmt,
    FloatLiteral,
    FloatSpecial,
    For,
    Identifier,
    If,
    IndexExtract,
    IndexFilter,
    IntLiteral,
    Script,
    Span,
    Stmt,
    StringLiteral,
    ValueTypeTag,
    While,
)
from .diagnostics import Diagnostics, ParseError
from .grammar import (
    BINARY_OPERATORS,
    DATA_TYPE_TAGS,
    PREC_COMPARE,
    STATEMENT_RULES,
    VALUE_TYPE_TAGS,
    describe,
)
from .tokens import Token, TokenKind

FLOAT_SPECIALS: dict[str, FloatSpecial] = {
    "nan": FloatSpecial.NAN,
    "inf": FloatSpecial.INF,
    "-inf": FloatSpecial.NEG_INF,
}

# Deeper nesting of statements or expressions is a ParseError, not a
# RecursionError.
MAX_NESTING: int = 100


class TokenCursor:
    """Pulls tokens on demand, buffering only as far as lookahead requires."""

    def __init__(self, tokens: Iterable[Token]):
        self._source: Iterator[Token] = iter(tokens)
        self._buffer: list[Token] = []
        self._eof: Token | None = None
        self._last_end: int = 0

    def peek(self, offset: int = 0) -> Token:
        while len(self._buffer) <= offset:
            self._buffer.append(self._pull())
        return self._buffer[offset]

    def advance(self) -> Token:
        tok = self.peek()
        if tok.kind != TokenKind.EOF:
            self._buffer.pop(0)
        return tok

    def _pull(self) -> Token:
        if self._eof is not None:
            return self._eof
        tok = next(self._source, None)
        if tok is None:
            # Stream ended without an EOF token; synthesize one
            tok = Token(TokenKind.EOF, "", Span(self._last_end, self._last_end, 0, 0))
        if tok.kind == TokenKind.EOF:
            self._eof = tok
        self._last_end = tok.span.end
        return tok


class Parser:
    """Recursive descent parser for DaphneDSL."""

    def __init__(self, tokens: Iterable[Token]):
        self.cursor: TokenCursor = TokenCursor(tokens)
        self._open: list[TokenKind] = []
        self._nesting: int = 0
        self._rules: dict[str, Callable[[], Stmt]] = {
            "block": self.parse_block_stmt,
            "if": self.parse_if_stmt,
            "while": self.parse_while_stmt,
            "do_while": self.parse_do_while_stmt,
            "for": self.parse_for_stmt,
        }

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.cursor.peek()

    def peek(self, offset: int) -> Token:
        return self.cursor.peek(offset)

    def advance(self) -> Token:
        return self.cursor.advance()

    def at(self, kind: TokenKind) -> bool:
        return self.current().kind == kind

    def expect(self, *kinds: TokenKind) -> Token:
        tok = self.current()
        if tok.kind not in kinds:
            raise self.error(self._expected(kinds))
        return self.advance()

    def error(self, msg: str) -> ParseError:
        tok = self.current()
        return ParseError(msg, tok.span.line, tok.span.col, tok.span.start)

    def _expected(self, kinds: Iterable[TokenKind]) -> str:
        names = [describe(k) for k in kinds]
        return "expected " + " or ".join(names) + ", found " + self._found()

    def _found(self) -> str:
        tok = self.current()
        if tok.kind in (
            TokenKind.IDENT,
            TokenKind.INT,
            TokenKind.FLOAT,
            TokenKind.STRING,
        ):
            return describe(tok.kind) + " '" + tok.lexeme + "'"
        return describe(tok.kind)

    def _enter(self) -> None:
        self._nesting += 1
        if self._nesting > MAX_NESTING:
            raise self.error("nesting too deep")

    # ── Top Level ────────────────────────────────────────────

    def parse_program(self) -> Script:
        stmts: list[Stmt] = []
        while not self.at(TokenKind.EOF):
            stmts.append(self.parse_stmt())
        return self._script(stmts)

    def parse_program_recovering(self, diagnostics: Diagnostics) -> Script | None:
        """Like parse_program, but records syntax errors and resumes at the
        next statement boundary. Returns None if any error was recorded."""
        stmts: list[Stmt] = []
        while not self.at(TokenKind.EOF):
            try:
                stmts.append(self.parse_stmt())
            except ParseError as e:
                diagnostics.add(e)
                self._synchronize()
        if not diagnostics.ok():
            return None
        return self._script(stmts)

    def _script(self, stmts: list[Stmt]) -> Script:
        eof = self.current()
        return Script(Span(0, eof.span.end, 1, 1), tuple(stmts))

    def _synchronize(self) -> None:
        """Skip past the rest of a broken statement.

        Stops at the next ';' outside braces, or after the '}' closing the
        outermost open block. The `else` or `while (...)` tails of any if
        and do statements left open outside that block are skipped too.
        """
        open_kinds = self._open
        self._open = []
        depth = open_kinds.count(TokenKind.LBRACE)
        while not self.at(TokenKind.EOF):
            kind = self.advance().kind
            if kind == TokenKind.LBRACE:
                depth += 1
            elif kind == TokenKind.RBRACE:
                if depth > 1:
                    depth -= 1
                    continue
                depth = 0
                if self.at(TokenKind.ELSE):
                    continue
                if self.at(TokenKind.SEMI):
                    self.advance()
                break
            elif kind == TokenKind.SEMI and depth == 0:
                break
        if TokenKind.LBRACE in open_kinds:
            open_kinds = open_kinds[: open_kinds.index(TokenKind.LBRACE)]
        for kind in reversed(open_kinds):
            if kind == TokenKind.IF and self.at(TokenKind.ELSE):
                self.advance()
                self._skip_stmt()
            elif kind == TokenKind.DO and self.at(TokenKind.WHILE):
                self.advance()
                self._skip_group(TokenKind.LPAREN, TokenKind.RPAREN)
                if self.at(TokenKind.SEMI):
                    self.advance()

    def _skip_stmt(self) -> None:
        """Skip one statement by its shape, without building nodes."""
        kind = self.current().kind
        if kind == TokenKind.LBRACE:
            self._skip_group(TokenKind.LBRACE, TokenKind.RBRACE)
            if self.at(TokenKind.SEMI):
                self.advance()
        elif kind in (TokenKind.IF, TokenKind.WHILE, TokenKind.FOR):
            self.advance()
            self._skip_group(TokenKind.LPAREN, TokenKind.RPAREN)
            self._skip_stmt()
            if kind == TokenKind.IF and self.at(TokenKind.ELSE):
                self.advance()
                self._skip_stmt()
        elif kind == TokenKind.DO:
            self.advance()
            self._skip_stmt()
            if self.at(TokenKind.WHILE):
                self.advance()
                self._skip_group(TokenKind.LPAREN, TokenKind.RPAREN)
                if self.at(TokenKind.SEMI):
                    self.advance()
        else:
            while not self.at(TokenKind.EOF) and not self.at(TokenKind.RBRACE):
                if self.advance().kind == TokenKind.SEMI:
                    return

    def _skip_group(self, open_kind: TokenKind, close_kind: TokenKind) -> None:
        if not self.at(open_kind):
            return
        depth = 0
        while not self.at(TokenKind.EOF):
            kind = self.advance().kind
            if kind == open_kind:
                depth += 1
            elif kind == close_kind:
                depth -= 1
                if depth == 0:
                    return

    # ── Statements ───────────────────────────────────────────

    def parse_stmt(self) -> Stmt:
        try:
            self._enter()
            tok = self.current()
            rule = STATEMENT_RULES.get(tok.kind)
            if rule is not None:
                return self._rules[rule]()
            if tok.kind == TokenKind.IDENT and self.peek(1).kind in (
                TokenKind.COMMA,
                TokenKind.ASSIGN,
            ):
                return self.parse_assign_stmt()
            return self.parse_expr_stmt()
        finally:
            self._nesting -= 1

    def parse_block_stmt(self) -> Block:
        """Block = '{' Stmt* '}' ';'?"""
        start = self.expect(TokenKind.LBRACE)
        self._open.append(TokenKind.LBRACE)
        stmts: list[Stmt] = []
        while not self.at(TokenKind.RBRACE) and not self.at(TokenKind.EOF):
            stmts.append(self.parse_stmt())
        end = self.expect(TokenKind.RBRACE)
        self._open.pop()
        if self.at(TokenKind.SEMI):
            end = self.advance()
        return Block(start.span.to(end.span), tuple(stmts))

    def parse_if_stmt(self) -> If:
        """If = 'if' '(' Expr ')' Stmt ( 'else' Stmt )?"""
        start = self.expect(TokenKind.IF)
        self._open.append(TokenKind.IF)
        cond = self._parse_condition()
        then_stmt = self.parse_stmt()
        self._open.pop()
        else_stmt: Stmt | None = None
        if self.at(TokenKind.ELSE):
            self.advance()
            else_stmt = self.parse_stmt()
        last = else_stmt if else_stmt is not None else then_stmt
        return If(start.span.to(last.span), cond, then_stmt, else_stmt)

    def parse_while_stmt(self) -> While:
        start = self.expect(TokenKind.WHILE)
        cond = self._parse_condition()
        body = self.parse_stmt()
        return While(start.span.to(body.span), cond, body, False)

    def parse_do_while_stmt(self) -> While:
        """DoWhile = 'do' Stmt 'while' '(' Expr ')' ';'?"""
        start = self.expect(TokenKind.DO)
        self._open.append(TokenKind.DO)
        body = self.parse_stmt()
        self._open.pop()
        self.expect(TokenKind.WHILE)
        self.expect(TokenKind.LPAREN)
        cond = self.parse_expr()
        end = self.expect(TokenKind.RPAREN)
        if self.at(TokenKind.SEMI):
            end = self.advance()
        return While(start.span.to(end.span), cond, body, True)

    def parse_for_stmt(self) -> For:
        """For = 'for' '(' IDENT 'in' Expr ':' Expr ( ':' Expr )? ')' Stmt"""
        start = self.expect(TokenKind.FOR)
        self.expect(TokenKind.LPAREN)
        var = self.expect(TokenKind.IDENT)
        self.expect(TokenKind.IN)
        from_expr = self.parse_expr()
        self.expect(TokenKind.COLON)
        to_expr = self.parse_expr()
        step: Expr | None = None
        if self.at(TokenKind.COLON):
            self.advance()
            step = self.parse_expr()
        self.expect(TokenKind.RPAREN)
        body = self.parse_stmt()
        return For(start.span.to(body.span), var.lexeme, from_expr, to_expr, step, body)

    def parse_assign_stmt(self) -> Assign:
        """Assign = IDENT ( ',' IDENT )* '=' Expr ';'"""
        first = self.expect(TokenKind.IDENT)
        targets: list[str] = [first.lexeme]
        while self.at(TokenKind.COMMA):
            self.advance()
            targets.append(self.expect(TokenKind.IDENT).lexeme)
        self.expect(TokenKind.ASSIGN)
        rhs = self.parse_expr()
        end = self.expect(TokenKind.SEMI)
        return Assign(first.span.to(end.span), tuple(targets), rhs)

    def parse_expr_stmt(self) -> ExprStmt:
        expr = self.parse_expr()
        end = self.expect(TokenKind.SEMI)
        return ExprStmt(expr.span.to(end.span), expr)

    def _parse_condition(self) -> Expr:
        self.expect(TokenKind.LPAREN)
        cond = self.parse_expr()
        self.expect(TokenKind.RPAREN)
        return cond

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self, min_prec: int = PREC_COMPARE) -> Expr:
        """Binary = Postfix ( BinOp Postfix )*, climbing by precedence."""
        try:
            self._enter()
            lhs = self.parse_postfix()
            while True:
                entry = BINARY_OPERATORS.get(self.current().kind)
                if entry is None or entry[1] < min_prec:
                    return lhs
                op, prec = entry
                self.advance()
                rhs = self.parse_expr(prec + 1)
                lhs = BinaryOp(lhs.span.to(rhs.span), op, lhs, rhs)
        finally:
            self._nesting -= 1

    def parse_postfix(self) -> Expr:
        """Postfix = Primary ( '[[' Index ']]' | '[' Index ']' )*"""
        expr = self.parse_primary()
        while True:
            if self.at(TokenKind.LDBRACKET):
                self.advance()
                rows, cols, end = self._parse_index(TokenKind.RDBRACKET)
                expr = IndexFilter(expr.span.to(end.span), expr, rows, cols)
            elif self.at(TokenKind.LBRACKET):
                self.advance()
                rows, cols, end = self._parse_index(TokenKind.RBRACKET)
                expr = IndexExtract(expr.span.to(end.span), expr, rows, cols)
            else:
                return expr

    def _parse_index(self, close: TokenKind) -> tuple[Expr | None, Expr | None, Token]:
        """Index = Expr? ',' Expr?"""
        rows: Expr | None = None
        if not self.at(TokenKind.COMMA):
            rows = self.parse_expr()
        self.expect(TokenKind.COMMA)
        cols: Expr | None = None
        if not self.at(close):
            cols = self.parse_expr()
        end = self.expect(close)
        return rows, cols, end

    def parse_primary(self) -> Expr:
        tok = self.current()
        kind = tok.kind

        # Literals
        if kind == TokenKind.INT:
            self.advance()
            return IntLiteral(tok.span, int(tok.lexeme))
        if kind == TokenKind.FLOAT:
            self.advance()
            special = FLOAT_SPECIALS.get(tok.lexeme, FloatSpecial.NORMAL)
            return FloatLiteral(tok.span, float(tok.lexeme), special)
        if kind == TokenKind.STRING:
            self.advance()
            return StringLiteral(tok.span, str(tok.value))
        if kind == TokenKind.TRUE or kind == TokenKind.FALSE:
            self.advance()
            return BoolLiteral(tok.span, kind == TokenKind.TRUE)

        if kind == TokenKind.IDENT:
            if self.peek(1).kind == TokenKind.LPAREN:
                return self.parse_call()
            self.advance()
            return Identifier(tok.span, tok.lexeme)

        if kind == TokenKind.AS:
            return self.parse_cast()

        if kind == TokenKind.LPAREN:
            self.advance()
            inner = self.parse_expr()
            end = self.expect(TokenKind.RPAREN)
            # Collapsed, but the span keeps the parentheses
            return dataclasses.replace(inner, span=tok.span.to(end.span))

        raise self.error("expected expression, found " + self._found())

    def parse_call(self) -> Call:
        """Call = IDENT '(' Expr ( ',' Expr )* ')'"""
        name = self.expect(TokenKind.IDENT)
        self.expect(TokenKind.LPAREN)
        if self.at(TokenKind.RPAREN):
            raise self.error(
                "expected expression, found "
                + self._found()
                + " (function calls take at least one argument)"
            )
        args: list[Expr] = [self.parse_expr()]
        while self.at(TokenKind.COMMA):
            self.advance()
            args.append(self.parse_expr())
        end = self.expect(TokenKind.RPAREN)
        return Call(name.span.to(end.span), name.lexeme, tuple(args))

    def parse_cast(self) -> Cast:
        """Cast = 'as' ( '.' DataType )? ( '.' ValueType )? '(' Expr ')'"""
        start = self.expect(TokenKind.AS)
        data_type: DataTypeTag | None = None
        value_type: ValueTypeTag | None = None
        if self.at(TokenKind.DOT) and self.peek(1).kind in DATA_TYPE_TAGS:
            self.advance()
            data_type = DATA_TYPE_TAGS[self.advance().kind]
        if self.at(TokenKind.DOT):
            self.advance()
            if data_type is None:
                expected = list(DATA_TYPE_TAGS) + list(VALUE_TYPE_TAGS)
            else:
                expected = list(VALUE_TYPE_TAGS)
            value_type = VALUE_TYPE_TAGS[self.expect(*expected).kind]
        self.expect(TokenKind.LPAREN)
        arg = self.parse_expr()
        end = self.expect(TokenKind.RPAREN)
        return Cast(start.span.to(end.span), data_type, value_type, arg)
