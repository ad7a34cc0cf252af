"""DaphneDSL front end — public API."""

from __future__ import annotations

from .ast import Script
from .diagnostics import (
    Diagnostic as Diagnostic,
    Diagnostics,
    FrontendError as FrontendError,
    LexError as LexError,
    ParseError as ParseError,
    ParseResult as ParseResult,
)
from .emit import to_source as to_source
from .parse import Parser
from .serialize import to_dict as to_dict
from .tokens import Token as Token, TokenKind as TokenKind, tokenize as tokenize


def parse(source: str) -> Script:
    """Parse DaphneDSL source into a `Script` AST.

    Raises LexError or ParseError at the first problem found.
    """
    parser = Parser(tokenize(source))
    return parser.parse_program()


def parse_result(source: str, recover: bool = False) -> ParseResult:
    """Parse without raising for errors in the source.

    With recover=True, syntax errors are collected and parsing resumes at
    the next statement. Lexical errors always end the parse.
    """
    diagnostics = Diagnostics()
    parser = Parser(tokenize(source))
    script: Script | None
    try:
        if recover:
            script = parser.parse_program_recovering(diagnostics)
        else:
            script = parser.parse_program()
    except FrontendError as e:
        diagnostics.add(e)
        script = None
    return ParseResult(script, diagnostics)
