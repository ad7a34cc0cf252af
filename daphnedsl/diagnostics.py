"""Source-located errors for the lexer and parser."""

from __future__ import annotations

from dataclasses import dataclass, field

from .ast import Script

PHASE_LEXICAL = "lexical"
PHASE_SYNTACTIC = "syntactic"


@dataclass(frozen=True)
class Diagnostic:
    """Structured error value handed to the caller."""

    phase: str
    message: str
    line: int
    column: int
    offset: int

    def __str__(self) -> str:
        return (
            "error:"
            + str(self.line)
            + ":"
            + str(self.column)
            + ": ["
            + self.phase
            + "] "
            + self.message
        )


class FrontendError(Exception):
    """Base for errors raised while lexing or parsing a script."""

    phase: str = ""

    def __init__(self, msg: str, line: int, col: int, offset: int):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        self.offset: int = offset
        super().__init__(msg + " at line " + str(line) + " col " + str(col))

    @property
    def diagnostic(self) -> Diagnostic:
        return Diagnostic(self.phase, self.msg, self.line, self.col, self.offset)


class LexError(FrontendError):
    """Unrecognized character, unterminated literal/comment, or bad number."""

    phase = PHASE_LEXICAL


class ParseError(FrontendError):
    """Unexpected or missing token."""

    phase = PHASE_SYNTACTIC


class Diagnostics:
    """Collects errors reported during a single parse."""

    def __init__(self) -> None:
        self._errors: list[Diagnostic] = []

    def add(self, error: FrontendError) -> None:
        self._errors.append(error.diagnostic)

    def errors(self) -> list[Diagnostic]:
        return self._errors

    def ok(self) -> bool:
        return len(self._errors) == 0


@dataclass
class ParseResult:
    """Outcome of `parse_result`. script is None whenever an error was found."""

    script: Script | None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    def errors(self) -> list[Diagnostic]:
        return self.diagnostics.errors()

    def ok(self) -> bool:
        return self.script is not None and self.diagnostics.ok()
