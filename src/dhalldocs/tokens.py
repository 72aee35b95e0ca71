from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .spans import Span


class TokenKind(str, Enum):
    # Labels and literals
    IDENT = "IDENT"
    NATURAL = "NATURAL"
    INTEGER = "INTEGER"
    DOUBLE = "DOUBLE"
    IMPORT = "IMPORT"
    HASH = "HASH"

    # Text literals: `"` chunk `${` expr `}` chunk `"`
    TEXT_OPEN = "TEXT_OPEN"
    TEXT_CHUNK = "TEXT_CHUNK"
    INTERP = "${"
    TEXT_CLOSE = "TEXT_CLOSE"

    # Punctuation
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    LPAREN = "("
    RPAREN = ")"
    LANGLE = "<"
    RANGLE = ">"
    COMMA = ","
    DOT = "."
    EQ = "="
    COLON = ":"
    BAR = "|"
    AT = "@"
    ARROW = "->"
    LAMBDA = "\\"

    # Operators, lowest precedence first
    ALT = "?"
    OR = "||"
    PLUS = "+"
    TEXT_APPEND = "++"
    LIST_APPEND = "#"
    AND = "&&"
    COMBINE = "/\\"
    PREFER = "//"
    COMBINE_TYPES = "//\\\\"
    TIMES = "*"
    EQUAL = "=="
    NOT_EQUAL = "!="
    EQUIVALENT = "==="

    # Keywords
    LET = "let"
    IN = "in"
    IF = "if"
    THEN = "then"
    ELSE = "else"
    FORALL = "forall"
    ASSERT = "assert"
    AS = "as"

    EOF = "EOF"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    lexeme: str
    span: Span

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.lexeme!r}, {self.span.format()})"
