"""DaphneDSL tokenizer — lexes source into a lazy token stream."""

from __future__ import annotations

from enum import Enum
from typing import Iterator

from .ast import Span
from .diagnostics import LexError


class TokenKind(Enum):
    # Keywords
    IF = "if"
    ELSE = "else"
    WHILE = "while"
    DO = "do"
    FOR = "for"
    IN = "in"
    TRUE = "true"
    FALSE = "false"
    AS = "as"
    # Data type
    MATRIX = "matrix"
    # Value types
    F64 = "f64"
    F32 = "f32"
    SI64 = "si64"
    SI32 = "si32"
    SI8 = "si8"
    UI64 = "ui64"
    UI32 = "ui32"
    UI8 = "ui8"
    # Literals and names
    INT = "INT"
    FLOAT = "FLOAT"
    STRING = "STRING"
    IDENT = "IDENT"
    # Punctuation
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    LDBRACKET = "[["
    RDBRACKET = "]]"
    COMMA = ","
    SEMI = ";"
    COLON = ":"
    DOT = "."
    ASSIGN = "="
    AT = "@"
    CARET = "^"
    STAR = "*"
    SLASH = "/"
    PLUS = "+"
    MINUS = "-"
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    EOF = "EOF"


KEYWORDS: dict[str, TokenKind] = {
    "if": TokenKind.IF,
    "else": TokenKind.ELSE,
    "while": TokenKind.WHILE,
    "do": TokenKind.DO,
    "for": TokenKind.FOR,
    "in": TokenKind.IN,
    "true": TokenKind.TRUE,
    "false": TokenKind.FALSE,
    "as": TokenKind.AS,
}

DATA_TYPES: dict[str, TokenKind] = {
    "matrix": TokenKind.MATRIX,
}

VALUE_TYPES: dict[str, TokenKind] = {
    "f64": TokenKind.F64,
    "f32": TokenKind.F32,
    "si64": TokenKind.SI64,
    "si32": TokenKind.SI32,
    "si8": TokenKind.SI8,
    "ui64": TokenKind.UI64,
    "ui32": TokenKind.UI32,
    "ui8": TokenKind.UI8,
}

# Sorted by length descending for greedy matching
PUNCTUATION: list[tuple[str, TokenKind]] = [
    ("[[", TokenKind.LDBRACKET),
    ("]]", TokenKind.RDBRACKET),
    ("==", TokenKind.EQ),
    ("!=", TokenKind.NE),
    ("<=", TokenKind.LE),
    (">=", TokenKind.GE),
    ("(", TokenKind.LPAREN),
    (")", TokenKind.RPAREN),
    ("{", TokenKind.LBRACE),
    ("}", TokenKind.RBRACE),
    ("[", TokenKind.LBRACKET),
    ("]", TokenKind.RBRACKET),
    (",", TokenKind.COMMA),
    (";", TokenKind.SEMI),
    (":", TokenKind.COLON),
    (".", TokenKind.DOT),
    ("=", TokenKind.ASSIGN),
    ("@", TokenKind.AT),
    ("^", TokenKind.CARET),
    ("*", TokenKind.STAR),
    ("/", TokenKind.SLASH),
    ("+", TokenKind.PLUS),
    ("-", TokenKind.MINUS),
    ("<", TokenKind.LT),
    (">", TokenKind.GT),
]

ESCAPE_MAP: dict[str, str] = {
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    '"': '"',
    "\\": "\\",
}

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Tie-break ranks for equal-length matches (lower wins)
_RANK_KEYWORD = 0
_RANK_TYPE = 1
_RANK_LITERAL = 2
_RANK_PUNCT = 3
_RANK_IDENT = 4


class Token:
    """A token with kind, source text, span and decoded literal value."""

    def __init__(
        self,
        kind: TokenKind,
        lexeme: str,
        span: Span,
        value: int | float | str | None = None,
    ):
        self.kind: TokenKind = kind
        self.lexeme: str = lexeme
        self.span: Span = span
        self.value: int | float | str | None = value

    def __repr__(self) -> str:
        return (
            "Token("
            + self.kind.name
            + ", "
            + repr(self.lexeme)
            + ", "
            + str(self.span.line)
            + ", "
            + str(self.span.col)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


def _advance(source: str, start: int, end: int, line: int, col: int) -> tuple[int, int]:
    """Line and column reached after consuming source[start:end]."""
    newlines = source.count("\n", start, end)
    if newlines == 0:
        return line, col + (end - start)
    return line + newlines, end - source.rfind("\n", start, end)


def _match_word(source: str, pos: int) -> int:
    """End of the identifier-shaped word at pos, or pos if there is none."""
    length = len(source)
    if pos >= length or not _is_alpha(source[pos]):
        return pos
    end = pos + 1
    while end < length and _is_alnum(source[end]):
        end += 1
    return end


def _match_number(source: str, pos: int) -> tuple[TokenKind, int] | None:
    """Longest INT or FLOAT literal at pos, including nan and signed inf."""
    length = len(source)
    p = pos
    signed = p < length and source[p] == "-"
    if signed:
        p += 1
    if source.startswith("inf", p):
        return TokenKind.FLOAT, p + 3
    if not signed and source.startswith("nan", p):
        return TokenKind.FLOAT, p + 3
    if p >= length or not _is_digit(source[p]):
        return None
    if source[p] == "0":
        digits_end = p + 1
        # '-0' is not an integer literal, only the prefix of a float
        int_ok = not signed
    else:
        digits_end = p + 1
        while digits_end < length and _is_digit(source[digits_end]):
            digits_end += 1
        int_ok = True
    if (
        digits_end + 1 < length
        and source[digits_end] == "."
        and _is_digit(source[digits_end + 1])
    ):
        end = digits_end + 1
        while end < length and _is_digit(source[end]):
            end += 1
        return TokenKind.FLOAT, end
    if int_ok:
        return TokenKind.INT, digits_end
    return None


def _match_punct(source: str, pos: int) -> tuple[TokenKind, int] | None:
    for text, kind in PUNCTUATION:
        if source.startswith(text, pos):
            return kind, pos + len(text)
    return None


def _float_value(lexeme: str) -> float:
    if lexeme == "nan":
        return float("nan")
    if lexeme == "inf":
        return float("inf")
    if lexeme == "-inf":
        return float("-inf")
    return float(lexeme)


def _scan_string(source: str, pos: int, line: int, col: int) -> tuple[str, int]:
    """Decode the string literal opening at pos. Returns (value, end)."""
    length = len(source)
    chars: list[str] = []
    i = pos + 1
    while i < length:
        c = source[i]
        if c == '"':
            return "".join(chars), i + 1
        if c == "\\":
            if i + 1 >= length:
                break
            esc = source[i + 1]
            if esc not in ESCAPE_MAP:
                esc_line, esc_col = _advance(source, pos, i, line, col)
                raise LexError("invalid escape: \\" + esc, esc_line, esc_col, i)
            chars.append(ESCAPE_MAP[esc])
            i += 2
            continue
        chars.append(c)
        i += 1
    raise LexError("unterminated string literal", line, col, pos)


def tokenize(source: str) -> Iterator[Token]:
    """Lazily tokenize DaphneDSL source. The last token is always EOF.

    At each position the longest match wins. Equal-length matches resolve as
    keyword > type keyword > literal > punctuation > identifier.
    """
    pos = 0
    line = 1
    col = 1
    length = len(source)

    while pos < length:
        c = source[pos]

        # Whitespace
        if c == " " or c == "\t" or c == "\r" or c == "\n":
            line, col = _advance(source, pos, pos + 1, line, col)
            pos += 1
            continue

        # Line comments: # and //
        if c == "#" or source.startswith("//", pos):
            end = source.find("\n", pos)
            if end == -1:
                end = length
            line, col = _advance(source, pos, end, line, col)
            pos = end
            continue

        # Block comment: /* ... */
        if source.startswith("/*", pos):
            close = source.find("*/", pos + 2)
            if close == -1:
                raise LexError("unterminated block comment", line, col, pos)
            line, col = _advance(source, pos, close + 2, line, col)
            pos = close + 2
            continue

        # String literal
        if c == '"':
            value, end = _scan_string(source, pos, line, col)
            lexeme = source[pos:end]
            yield Token(TokenKind.STRING, lexeme, Span(pos, end, line, col), value)
            line, col = _advance(source, pos, end, line, col)
            pos = end
            continue

        candidates: list[tuple[int, int, TokenKind]] = []
        word_end = _match_word(source, pos)
        if word_end > pos:
            word = source[pos:word_end]
            if word in KEYWORDS:
                candidates.append((word_end, _RANK_KEYWORD, KEYWORDS[word]))
            elif word in DATA_TYPES:
                candidates.append((word_end, _RANK_TYPE, DATA_TYPES[word]))
            elif word in VALUE_TYPES:
                candidates.append((word_end, _RANK_TYPE, VALUE_TYPES[word]))
            else:
                candidates.append((word_end, _RANK_IDENT, TokenKind.IDENT))
        number = _match_number(source, pos)
        if number is not None:
            candidates.append((number[1], _RANK_LITERAL, number[0]))
        punct = _match_punct(source, pos)
        if punct is not None:
            candidates.append((punct[1], _RANK_PUNCT, punct[0]))

        if len(candidates) == 0:
            raise LexError("unexpected character: " + repr(c), line, col, pos)

        best = candidates[0]
        for cand in candidates[1:]:
            if cand[0] > best[0] or (cand[0] == best[0] and cand[1] < best[1]):
                best = cand
        end, _, kind = best
        lexeme = source[pos:end]
        value: int | float | str | None = None
        if kind == TokenKind.INT:
            value = int(lexeme)
            if value < INT64_MIN or value > INT64_MAX:
                raise LexError(
                    "integer literal out of range: " + lexeme, line, col, pos
                )
        elif kind == TokenKind.FLOAT:
            value = _float_value(lexeme)
        yield Token(kind, lexeme, Span(pos, end, line, col), value)
        line, col = _advance(source, pos, end, line, col)
        pos = end

    yield Token(TokenKind.EOF, "", Span(pos, pos, line, col))
