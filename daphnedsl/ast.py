"""DaphneDSL AST — parse-time node definitions.

Statements and expressions are closed unions of frozen dataclasses. Every
node carries the `Span` of the source text it was parsed from.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# ============================================================
# POSITION
# ============================================================


@dataclass(frozen=True)
class Span:
    """Source range. Offsets are 0-indexed (end exclusive), line/col 1-indexed."""

    start: int
    end: int
    line: int
    col: int

    def to(self, other: Span) -> Span:
        """Span covering self through the end of other."""
        return Span(self.start, other.end, self.line, self.col)


# ============================================================
# TAGS
# ============================================================


class OperatorTag(Enum):
    MATMUL = "matmul"
    POW = "pow"
    MUL = "mul"
    DIV = "div"
    ADD = "add"
    SUB = "sub"
    EQ = "eq"
    NE = "ne"
    LT = "lt"
    LE = "le"
    GT = "gt"
    GE = "ge"


class DataTypeTag(Enum):
    MATRIX = "matrix"


class ValueTypeTag(Enum):
    F64 = "f64"
    F32 = "f32"
    SI64 = "si64"
    SI32 = "si32"
    SI8 = "si8"
    UI64 = "ui64"
    UI32 = "ui32"
    UI8 = "ui8"


class FloatSpecial(Enum):
    NORMAL = "normal"
    NAN = "nan"
    INF = "inf"
    NEG_INF = "-inf"


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass(frozen=True)
class IntLiteral:
    """0, 42, -7."""

    span: Span
    value: int


@dataclass(frozen=True)
class FloatLiteral:
    """1.5, -0.25, nan, inf, -inf."""

    span: Span
    value: float
    special: FloatSpecial = FloatSpecial.NORMAL


@dataclass(frozen=True)
class BoolLiteral:
    span: Span
    value: bool


@dataclass(frozen=True)
class StringLiteral:
    """Escape sequences already decoded."""

    span: Span
    value: str


@dataclass(frozen=True)
class Identifier:
    span: Span
    name: str


@dataclass(frozen=True)
class Call:
    """func(arg, ...) — at least one argument."""

    span: Span
    func: str
    args: tuple[Expr, ...]

    @property
    def arity(self) -> int:
        return len(self.args)


@dataclass(frozen=True)
class Cast:
    """as(arg), as.matrix(arg), as.f64(arg), as.matrix.f64(arg)."""

    span: Span
    data_type: DataTypeTag | None
    value_type: ValueTypeTag | None
    arg: Expr


@dataclass(frozen=True)
class IndexFilter:
    """obj[[rows, cols]] — either side may be omitted."""

    span: Span
    obj: Expr
    rows: Expr | None
    cols: Expr | None


@dataclass(frozen=True)
class IndexExtract:
    """obj[rows, cols] — either side may be omitted."""

    span: Span
    obj: Expr
    rows: Expr | None
    cols: Expr | None


@dataclass(frozen=True)
class BinaryOp:
    span: Span
    op: OperatorTag
    lhs: Expr
    rhs: Expr


Expr = (
    IntLiteral
    | FloatLiteral
    | BoolLiteral
    | StringLiteral
    | Identifier
    | Call
    | Cast
    | IndexFilter
    | IndexExtract
    | BinaryOp
)


# ============================================================
# STATEMENTS
# ============================================================


@dataclass(frozen=True)
class Block:
    """{ stmts }."""

    span: Span
    stmts: tuple[Stmt, ...]


@dataclass(frozen=True)
class ExprStmt:
    """expr;"""

    span: Span
    expr: Expr


@dataclass(frozen=True)
class Assign:
    """a = expr; or a, b = expr; targets is never empty."""

    span: Span
    targets: tuple[str, ...]
    rhs: Expr


@dataclass(frozen=True)
class If:
    span: Span
    cond: Expr
    then_stmt: Stmt
    else_stmt: Stmt | None


@dataclass(frozen=True)
class While:
    """while (cond) body, or do body while (cond) when is_post_condition."""

    span: Span
    cond: Expr
    body: Stmt
    is_post_condition: bool


@dataclass(frozen=True)
class For:
    """for (var in start:stop:step) body. step is None when omitted."""

    span: Span
    var: str
    start: Expr
    stop: Expr
    step: Expr | None
    body: Stmt


Stmt = Block | ExprStmt | Assign | If | While | For


@dataclass(frozen=True)
class Script:
    """Top-level script — ordered statements."""

    span: Span
    stmts: tuple[Stmt, ...]


Node = Script | Stmt | Expr
