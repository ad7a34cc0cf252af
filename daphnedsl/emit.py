"""DaphneDSL emitter — converts an AST back into script text.

Total over the node types in `daphnedsl/ast.py`: a new node type needs a
case here too.
"""

from __future__ import annotations

import math
from decimal import Decimal

from .ast import (
    Assign,
    BinaryOp,
    Block,
    BoolLiteral,
    Call,
    Cast,
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
    Stmt,
    StringLiteral,
    While,
)
from .grammar import OPERATOR_PRECEDENCE, OPERATOR_SYMBOLS

_PREC_POSTFIX: int = 100

_STRING_ESCAPES: dict[str, str] = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def to_source(script: Script) -> str:
    """Render a `Script` back into DaphneDSL source text."""
    return _Emitter().emit_script(script)


class _Emitter:
    _INDENT: str = "    "

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._indent_level: int = 0

    # ── Public ──────────────────────────────────────────────

    def emit_script(self, script: Script) -> str:
        self._lines = []
        self._indent_level = 0
        for stmt in script.stmts:
            self._emit_stmt(stmt)
        if len(self._lines) == 0:
            return ""
        return "\n".join(self._lines) + "\n"

    # ── Statements ──────────────────────────────────────────

    def _emit_line(self, line: str) -> None:
        self._lines.append(self._INDENT * self._indent_level + line)

    def _emit_body(self, header: str, body: Stmt, trailer: str = "") -> None:
        """Emit `header` followed by a nested statement."""
        if isinstance(body, Block):
            self._emit_line(header + " {")
            self._emit_block_contents(body)
            self._emit_line("}" + trailer)
            return
        self._emit_line(header)
        self._indent_level += 1
        self._emit_stmt(body)
        self._indent_level -= 1
        if trailer:
            self._emit_line(trailer.lstrip())

    def _emit_block_contents(self, block: Block) -> None:
        self._indent_level += 1
        for stmt in block.stmts:
            self._emit_stmt(stmt)
        self._indent_level -= 1

    def _emit_stmt(self, stmt: Stmt) -> None:
        match stmt:
            case Block():
                self._emit_line("{")
                self._emit_block_contents(stmt)
                self._emit_line("}")
            case ExprStmt():
                self._emit_line(self._render_expr(stmt.expr) + ";")
            case Assign():
                targets = ", ".join(stmt.targets)
                self._emit_line(targets + " = " + self._render_expr(stmt.rhs) + ";")
            case If():
                self._emit_if(stmt)
            case While(is_post_condition=False):
                cond = self._render_expr(stmt.cond)
                self._emit_body("while (" + cond + ")", stmt.body)
            case While(is_post_condition=True):
                cond = self._render_expr(stmt.cond)
                self._emit_body("do", stmt.body, " while (" + cond + ");")
            case For():
                header = "for (" + stmt.var + " in " + self._render_expr(stmt.start)
                header += ":" + self._render_expr(stmt.stop)
                if stmt.step is not None:
                    header += ":" + self._render_expr(stmt.step)
                self._emit_body(header + ")", stmt.body)
            case _:
                raise TypeError("unhandled stmt type: " + type(stmt).__name__)

    def _emit_if(self, stmt: If) -> None:
        header = "if (" + self._render_expr(stmt.cond) + ")"
        then_stmt = stmt.then_stmt
        if stmt.else_stmt is not None and _ends_in_open_if(then_stmt):
            # Without braces the else would attach to the inner if
            then_stmt = Block(then_stmt.span, (then_stmt,))
        self._emit_body(header, then_stmt)
        if stmt.else_stmt is None:
            return
        if isinstance(then_stmt, Block):
            prefix = self._lines.pop().lstrip() + " else"
        else:
            prefix = "else"
        if isinstance(stmt.else_stmt, If):
            before = len(self._lines)
            self._emit_if(stmt.else_stmt)
            first = self._lines[before].lstrip()
            self._lines[before] = (
                self._INDENT * self._indent_level + prefix + " " + first
            )
            return
        self._emit_body(prefix, stmt.else_stmt)

    # ── Expressions ─────────────────────────────────────────

    def _render_expr(self, expr: Expr) -> str:
        match expr:
            case IntLiteral():
                return str(expr.value)
            case FloatLiteral():
                return _render_float(expr)
            case BoolLiteral():
                return "true" if expr.value else "false"
            case StringLiteral():
                return _render_string(expr.value)
            case Identifier():
                return expr.name
            case Call():
                args = ", ".join(self._render_expr(a) for a in expr.args)
                return expr.func + "(" + args + ")"
            case Cast():
                prefix = "as"
                if expr.data_type is not None:
                    prefix += "." + expr.data_type.value
                if expr.value_type is not None:
                    prefix += "." + expr.value_type.value
                return prefix + "(" + self._render_expr(expr.arg) + ")"
            case IndexFilter():
                return self._render_index(expr.obj, expr.rows, expr.cols, "[[", "]]")
            case IndexExtract():
                return self._render_index(expr.obj, expr.rows, expr.cols, "[", "]")
            case BinaryOp():
                prec = OPERATOR_PRECEDENCE[expr.op]
                lhs = self._render_operand(expr.lhs, prec)
                # Every level is left-associative, so an equal-precedence
                # right operand must keep its parentheses.
                rhs = self._render_operand(expr.rhs, prec + 1)
                return lhs + " " + OPERATOR_SYMBOLS[expr.op] + " " + rhs
            case _:
                raise TypeError("unhandled expr type: " + type(expr).__name__)

    def _render_operand(self, expr: Expr, min_prec: int) -> str:
        text = self._render_expr(expr)
        if _precedence(expr) < min_prec:
            return "(" + text + ")"
        return text

    def _render_index(
        self,
        obj: Expr,
        rows: Expr | None,
        cols: Expr | None,
        open_: str,
        close: str,
    ) -> str:
        text = self._render_operand(obj, _PREC_POSTFIX)
        rows_text = "" if rows is None else self._render_expr(rows)
        cols_text = "" if cols is None else self._render_expr(cols)
        if cols_text.endswith("]"):
            # Adjacent closing brackets would lex as ']]'
            cols_text = "(" + cols_text + ")"
        return text + open_ + rows_text + ", " + cols_text + close


def _ends_in_open_if(stmt: Stmt) -> bool:
    """True if stmt ends with an if that has no else."""
    if isinstance(stmt, If):
        if stmt.else_stmt is None:
            return True
        return _ends_in_open_if(stmt.else_stmt)
    if isinstance(stmt, For):
        return _ends_in_open_if(stmt.body)
    if isinstance(stmt, While) and not stmt.is_post_condition:
        return _ends_in_open_if(stmt.body)
    return False


def _precedence(expr: Expr) -> int:
    if isinstance(expr, BinaryOp):
        return OPERATOR_PRECEDENCE[expr.op]
    return _PREC_POSTFIX


def _render_float(lit: FloatLiteral) -> str:
    if lit.special == FloatSpecial.NAN or math.isnan(lit.value):
        return "nan"
    if lit.special == FloatSpecial.INF or lit.value == math.inf:
        return "inf"
    if lit.special == FloatSpecial.NEG_INF or lit.value == -math.inf:
        return "-inf"
    text = repr(lit.value)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    if "." not in text:
        text += ".0"
    return text


def _render_string(value: str) -> str:
    out = '"'
    for ch in value:
        out += _STRING_ESCAPES.get(ch, ch)
    return out + '"'
