"""Grammar tables shared by the parser and emitter."""

from __future__ import annotations

from .ast import DataTypeTag, OperatorTag, ValueTypeTag
from .tokens import DATA_TYPES, KEYWORDS, PUNCTUATION, VALUE_TYPES, TokenKind

# Binding strength, higher binds tighter. Every level is left-associative.
PREC_COMPARE: int = 1
PREC_SUM: int = 2
PREC_PRODUCT: int = 3
PREC_POW: int = 4
PREC_MATMUL: int = 5

BINARY_OPERATORS: dict[TokenKind, tuple[OperatorTag, int]] = {
    TokenKind.AT: (OperatorTag.MATMUL, PREC_MATMUL),
    TokenKind.CARET: (OperatorTag.POW, PREC_POW),
    TokenKind.STAR: (OperatorTag.MUL, PREC_PRODUCT),
    TokenKind.SLASH: (OperatorTag.DIV, PREC_PRODUCT),
    TokenKind.PLUS: (OperatorTag.ADD, PREC_SUM),
    TokenKind.MINUS: (OperatorTag.SUB, PREC_SUM),
    TokenKind.EQ: (OperatorTag.EQ, PREC_COMPARE),
    TokenKind.NE: (OperatorTag.NE, PREC_COMPARE),
    TokenKind.LT: (OperatorTag.LT, PREC_COMPARE),
    TokenKind.LE: (OperatorTag.LE, PREC_COMPARE),
    TokenKind.GT: (OperatorTag.GT, PREC_COMPARE),
    TokenKind.GE: (OperatorTag.GE, PREC_COMPARE),
}

OPERATOR_SYMBOLS: dict[OperatorTag, str] = {
    tag: kind.value for kind, (tag, _) in BINARY_OPERATORS.items()
}

OPERATOR_PRECEDENCE: dict[OperatorTag, int] = {
    tag: prec for tag, prec in BINARY_OPERATORS.values()
}

DATA_TYPE_TAGS: dict[TokenKind, DataTypeTag] = {
    kind: DataTypeTag(text) for text, kind in DATA_TYPES.items()
}

VALUE_TYPE_TAGS: dict[TokenKind, ValueTypeTag] = {
    kind: ValueTypeTag(text) for text, kind in VALUE_TYPES.items()
}

# Statements recognized by their leading token. Anything else is an
# assignment (identifier followed by ',' or '=') or an expression statement.
STATEMENT_RULES: dict[TokenKind, str] = {
    TokenKind.LBRACE: "block",
    TokenKind.IF: "if",
    TokenKind.WHILE: "while",
    TokenKind.DO: "do_while",
    TokenKind.FOR: "for",
}

_LITERAL_NAMES: dict[TokenKind, str] = {
    TokenKind.INT: "integer literal",
    TokenKind.FLOAT: "float literal",
    TokenKind.STRING: "string literal",
    TokenKind.IDENT: "identifier",
    TokenKind.EOF: "end of input",
}

_QUOTED: set[TokenKind] = (
    set(KEYWORDS.values())
    | set(DATA_TYPES.values())
    | set(VALUE_TYPES.values())
    | {kind for _, kind in PUNCTUATION}
)


def describe(kind: TokenKind) -> str:
    """Human-readable name of a token kind for error messages."""
    if kind in _QUOTED:
        return "'" + kind.value + "'"
    return _LITERAL_NAMES[kind]
