from __future__ import annotations

from dataclasses import dataclass, field

from .errors import ParseError
from .grammar import Grammar
from .lalr import ParseTable, build_lalr_table, expected_terminals
from .spans import Span
from .tokens import Token, TokenKind


def _span_of(v: object) -> Span:
    # Token and AST nodes both carry .span.
    sp = getattr(v, "span", None)
    if sp is None:
        raise TypeError(f"semantic value has no span: {type(v)!r}")
    return sp


def join_span(*vals: object) -> Span:
    """Span from the first to the last of `vals`; `None` entries (empty optionals) are skipped."""
    present = [v for v in vals if v is not None]
    if not present:
        raise ValueError("join_span() requires at least one value")
    first, last = _span_of(present[0]), _span_of(present[-1])
    return Span(file=first.file, start=first.start, end=last.end)


def gap_between(before: Token, after: Token) -> Span:
    """The whitespace/comments between two adjacent tokens."""
    return Span(file=before.span.file, start=before.span.end, end=after.span.start)


_TOKEN_NAMES: dict[TokenKind, str] = {
    TokenKind.IDENT: "label",
    TokenKind.NATURAL: "natural literal",
    TokenKind.INTEGER: "integer literal",
    TokenKind.DOUBLE: "double literal",
    TokenKind.IMPORT: "import",
    TokenKind.HASH: "integrity check",
    TokenKind.TEXT_OPEN: '"',
    TokenKind.TEXT_CHUNK: "text",
    TokenKind.TEXT_CLOSE: '"',
    TokenKind.EOF: "end of input",
}
_MAX_EXPECTED = 12


def _describe(kind: TokenKind) -> str:
    return _TOKEN_NAMES.get(kind, kind.value)


@dataclass(slots=True)
class _Stacks:
    # states[0] is the start state; values[i] belongs to states[i + 1]
    states: list[int] = field(default_factory=lambda: [0])
    values: list[object] = field(default_factory=list)

    def push(self, state: int, value: object) -> None:
        self.states.append(state)
        self.values.append(value)

    def pop(self, n: int) -> list[object]:
        if n > len(self.values):
            raise RuntimeError(f"reduce of {n} symbols with only {len(self.values)} on the stack")
        if n == 0:
            return []
        popped = self.values[-n:]
        del self.values[-n:]
        del self.states[-n:]
        return popped


@dataclass(slots=True)
class Parser:
    """Table-driven LALR(1) driver; semantic values come from production actions."""

    grammar: Grammar
    table: ParseTable

    @classmethod
    def for_grammar(cls, grammar: Grammar) -> Parser:
        return cls(grammar=grammar, table=build_lalr_table(grammar))

    def parse(self, tokens: list[Token]) -> object:
        stacks = _Stacks()
        pos = 0
        while True:
            tok = tokens[pos]
            state = stacks.states[-1]
            act = self.table.action.get(state, {}).get(tok.kind)
            if act is None:
                raise self._syntax_error(state, tok)

            kind, arg = act
            if kind == "shift":
                stacks.push(arg, tok)
                pos += 1
            elif kind == "reduce":
                self._reduce(stacks, arg)
            elif kind == "accept":
                if not stacks.values:
                    raise RuntimeError("accept with empty value stack")
                return stacks.values[-1]
            else:
                raise RuntimeError(f"unknown action: {act}")

    def _reduce(self, stacks: _Stacks, index: int) -> None:
        prod = self.grammar.productions[index]
        value = prod.action(stacks.pop(len(prod.body)))
        target = self.table.goto.get(stacks.states[-1], {}).get(prod.head)
        if target is None:
            raise RuntimeError(f"no goto from state {stacks.states[-1]} on {prod.head.name} ({prod})")
        stacks.push(target, value)

    def _syntax_error(self, state: int, tok: Token) -> ParseError:
        expected = sorted(_describe(k) for k in expected_terminals(self.table, state))
        hint = f"expected one of: {', '.join(expected[:_MAX_EXPECTED])}" if expected else None
        return ParseError(span=tok.span, message=f"unexpected {_describe(tok.kind)}", hint=hint)
