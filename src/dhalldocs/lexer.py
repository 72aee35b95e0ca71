from __future__ import annotations

import re
from dataclasses import dataclass

from .dhall import KEYWORDS
from .errors import ParseError
from .spans import Position, Span
from .tokens import Token, TokenKind


_DIGITS = "0123456789"
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_/\-]*")
_DOUBLE_RE = re.compile(r"[+-]?[0-9]+(?:\.[0-9]+(?:[eE][+-]?[0-9]+)?|[eE][+-]?[0-9]+)")
_INTEGER_RE = re.compile(r"[+-][0-9]+")
_NATURAL_RE = re.compile(r"[0-9]+")
_HASH_RE = re.compile(r"sha256:[0-9a-fA-F]{64}")
_URL_RE = re.compile(r"https?://[^\s(){}\[\]<>,\"]+")
_ENV_RE = re.compile(r"env:[A-Za-z_][A-Za-z0-9_]*")
_PATH_CHARS = "A-Za-z0-9_.\\-+~!$&'*;=:@%"
_PATH_RE = re.compile(rf"(?:\.\.|\.|~)?(?:/[{_PATH_CHARS}]+)+")
_PATH_CHAR_RE = re.compile(rf"[{_PATH_CHARS}]")

# Longest spelling first.
_PUNCTUATION: tuple[tuple[str, TokenKind], ...] = (
    ("//\\\\", TokenKind.COMBINE_TYPES),
    ("===", TokenKind.EQUIVALENT),
    ("->", TokenKind.ARROW),
    ("//", TokenKind.PREFER),
    ("/\\", TokenKind.COMBINE),
    ("||", TokenKind.OR),
    ("++", TokenKind.TEXT_APPEND),
    ("&&", TokenKind.AND),
    ("==", TokenKind.EQUAL),
    ("!=", TokenKind.NOT_EQUAL),
    ("[", TokenKind.LBRACKET),
    ("]", TokenKind.RBRACKET),
    ("(", TokenKind.LPAREN),
    (")", TokenKind.RPAREN),
    ("<", TokenKind.LANGLE),
    (">", TokenKind.RANGLE),
    (",", TokenKind.COMMA),
    (".", TokenKind.DOT),
    ("=", TokenKind.EQ),
    (":", TokenKind.COLON),
    ("|", TokenKind.BAR),
    ("@", TokenKind.AT),
    ("\\", TokenKind.LAMBDA),
    ("?", TokenKind.ALT),
    ("+", TokenKind.PLUS),
    ("#", TokenKind.LIST_APPEND),
    ("*", TokenKind.TIMES),
    ("λ", TokenKind.LAMBDA),
    ("→", TokenKind.ARROW),
    ("∀", TokenKind.FORALL),
    ("∧", TokenKind.COMBINE),
    ("⫽", TokenKind.PREFER),
    ("⩓", TokenKind.COMBINE_TYPES),
    ("≡", TokenKind.EQUIVALENT),
)


@dataclass(slots=True)
class _Cursor:
    file: str
    src: str
    i: int = 0
    line: int = 1
    col: int = 1

    def eof(self) -> bool:
        return self.i >= len(self.src)

    def peek(self, n: int = 0) -> str:
        j = self.i + n
        if j >= len(self.src):
            return ""
        return self.src[j]

    def startswith(self, text: str) -> bool:
        return self.src.startswith(text, self.i)

    def advance(self, n: int = 1) -> None:
        for _ in range(n):
            if self.eof():
                return
            ch = self.src[self.i]
            self.i += 1
            if ch == "\n":
                self.line += 1
                self.col = 1
            else:
                self.col += 1

    def pos(self) -> Position:
        return Position(line=self.line, column=self.col, offset=self.i)


def tokenize(src: str, *, file: str = "<memory>") -> list[Token]:
    cur = _Cursor(file=file, src=src)
    tokens: list[Token] = []
    # One entry per open `${`: the number of `{` opened inside it.
    interpolations: list[int] = []

    def make_span(start: Position, end: Position) -> Span:
        return Span(file=file, start=start, end=end)

    def error_at(start: Position, msg: str, hint: str | None = None) -> ParseError:
        end = cur.pos()
        if end.offset < start.offset:
            end = start
        return ParseError(span=make_span(start, end), message=msg, hint=hint)

    def emit(kind: TokenKind, start: Position, lexeme: str) -> None:
        tokens.append(Token(kind, lexeme, make_span(start, cur.pos())))

    def take(kind: TokenKind, lexeme: str) -> None:
        start = cur.pos()
        cur.advance(len(lexeme))
        emit(kind, start, lexeme)

    def lex_text() -> None:
        # Consumes text content up to the closing quote or the next `${`.
        start = cur.pos()
        buf: list[str] = []

        def flush() -> None:
            if buf:
                emit(TokenKind.TEXT_CHUNK, start, "".join(buf))

        while True:
            c = cur.peek()
            if c in ("", "\n"):
                raise error_at(start, "unterminated text literal", hint='close the literal with "')
            if c == '"':
                flush()
                take(TokenKind.TEXT_CLOSE, '"')
                return
            if c == "$" and cur.peek(1) == "{":
                flush()
                take(TokenKind.INTERP, "${")
                interpolations.append(0)
                return
            if c == "\\":
                esc = cur.peek(1)
                if esc in ("", "\n"):
                    raise error_at(start, "unterminated text escape")
                # Escapes are kept as written; the AST holds raw chunk text.
                buf.append(c + esc)
                cur.advance(2)
                continue
            buf.append(c)
            cur.advance()

    while not cur.eof():
        ch = cur.peek()

        # whitespace
        if ch in " \t\r\n":
            cur.advance()
            continue

        # line comment --
        if cur.startswith("--"):
            while not cur.eof() and cur.peek() != "\n":
                cur.advance()
            continue

        # block comment {- ... -}, nesting allowed
        if cur.startswith("{-"):
            start = cur.pos()
            depth = 0
            while not cur.eof():
                if cur.startswith("{-"):
                    depth += 1
                    cur.advance(2)
                elif cur.startswith("-}"):
                    depth -= 1
                    cur.advance(2)
                    if depth == 0:
                        break
                else:
                    cur.advance()
            if depth:
                raise error_at(start, "unterminated block comment", hint="add closing -}")
            continue

        start = cur.pos()

        if ch == '"':
            take(TokenKind.TEXT_OPEN, '"')
            lex_text()
            continue

        # quoted label: the lexeme is the bare name, the span covers the backticks
        if ch == "`":
            cur.advance()
            buf: list[str] = []
            while cur.peek() not in ("`", "", "\n"):
                buf.append(cur.peek())
                cur.advance()
            if cur.peek() != "`":
                raise error_at(start, "unterminated quoted label", hint="close the label with `")
            if not buf:
                raise error_at(start, "empty quoted label")
            cur.advance()
            emit(TokenKind.IDENT, start, "".join(buf))
            continue

        if ch == "{":
            if interpolations:
                interpolations[-1] += 1
            take(TokenKind.LBRACE, "{")
            continue

        if ch == "}":
            take(TokenKind.RBRACE, "}")
            if interpolations:
                if interpolations[-1] == 0:
                    interpolations.pop()
                    lex_text()
                else:
                    interpolations[-1] -= 1
            continue

        # numbers (double before integer before natural)
        if ch in _DIGITS or (ch in "+-" and cur.peek(1) != "" and cur.peek(1) in _DIGITS):
            for kind, rx in (
                (TokenKind.DOUBLE, _DOUBLE_RE),
                (TokenKind.INTEGER, _INTEGER_RE),
                (TokenKind.NATURAL, _NATURAL_RE),
            ):
                m = rx.match(src, cur.i)
                if m:
                    take(kind, m.group(0))
                    break
            continue

        # imports and integrity hashes
        if cur.startswith("sha256:"):
            m = _HASH_RE.match(src, cur.i)
            if not m:
                raise error_at(start, "malformed integrity check", hint="expected sha256: followed by 64 hex digits")
            take(TokenKind.HASH, m.group(0))
            continue

        if cur.startswith("http://") or cur.startswith("https://"):
            m = _URL_RE.match(src, cur.i)
            if m:
                take(TokenKind.IMPORT, m.group(0))
                continue

        if cur.startswith("env:"):
            m = _ENV_RE.match(src, cur.i)
            if m:
                take(TokenKind.IMPORT, m.group(0))
                continue

        if (
            cur.startswith("./")
            or cur.startswith("../")
            or cur.startswith("~/")
            or (ch == "/" and _PATH_CHAR_RE.fullmatch(cur.peek(1)) is not None)
        ):
            m = _PATH_RE.match(src, cur.i)
            if not m:
                raise error_at(start, "malformed import path")
            take(TokenKind.IMPORT, m.group(0))
            continue

        # labels / keywords
        m = _IDENT_RE.match(src, cur.i)
        if m:
            lex = m.group(0)
            if lex == "missing":
                take(TokenKind.IMPORT, lex)
            else:
                take(KEYWORDS.get(lex, TokenKind.IDENT), lex)
            continue

        for text, kind in _PUNCTUATION:
            if cur.startswith(text):
                take(kind, text)
                break
        else:
            raise error_at(
                start,
                f"unexpected character {ch!r}",
                hint="remove the character or replace it with valid syntax",
            )

    if interpolations:
        raise error_at(cur.pos(), "unterminated interpolation", hint="close the interpolation with }")

    eof_pos = cur.pos()
    tokens.append(Token(TokenKind.EOF, "", Span(file=file, start=eof_pos, end=eof_pos)))
    return tokens
