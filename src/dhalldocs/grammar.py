from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from .tokens import TokenKind


@dataclass(frozen=True, slots=True)
class Terminal:
    kind: TokenKind

    def __str__(self) -> str:
        return f"T({self.kind.value})"


@dataclass(frozen=True, slots=True)
class NonTerminal:
    name: str

    def __str__(self) -> str:
        return f"N({self.name})"


Symbol = Terminal | NonTerminal


ActionFn = Callable[[list[object]], object]


@dataclass(frozen=True, slots=True)
class Production:
    head: NonTerminal
    body: tuple[Symbol, ...]
    action: ActionFn

    def __str__(self) -> str:
        rhs = " ".join(str(s) for s in self.body) if self.body else "ε"
        return f"{self.head.name} -> {rhs}"


@dataclass(frozen=True, slots=True)
class Grammar:
    start: NonTerminal
    productions: tuple[Production, ...]


# ---------------------------------------------------------------------------
# Production DSL
#
#   Rule |= A & B & C @ action
#   Rule |= (A | B) @ action
#   Rule |= eps() @ action
#
# `@` binds tighter than `&` and `|`, so the action arrives attached to the
# last operand; it is carried outward as the operands combine.
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Rhs:
    alts: tuple[tuple[Symbol, ...], ...]
    action: ActionFn | None = None

    def __and__(self, other: Rhs | Rule) -> Rhs:
        rhs = _as_rhs(other)
        if self.action is not None:
            raise TypeError("cannot use & after @ action; put @ action at the end")
        if len(self.alts) != 1 or len(rhs.alts) != 1:
            raise TypeError("cannot concatenate alternations; write one production per sequence")
        return Rhs(alts=(self.alts[0] + rhs.alts[0],), action=rhs.action)

    def __or__(self, other: Rhs | Rule) -> Rhs:
        rhs = _as_rhs(other)
        if self.action is not None:
            raise TypeError("cannot use | after @ action; put @ action at the end")
        return Rhs(alts=self.alts + rhs.alts, action=rhs.action)

    def __matmul__(self, action: ActionFn) -> Rhs:
        if self.action is not None:
            raise TypeError("production already has an action")
        return Rhs(alts=self.alts, action=action)


@dataclass(slots=True)
class Rule:
    """A nonterminal usable on the right-hand side and, with `|=`, as a head."""

    head: NonTerminal
    sink: list[Production] = field(repr=False)

    @property
    def rhs(self) -> Rhs:
        return Rhs(alts=((self.head,),))

    def __and__(self, other: Rhs | Rule) -> Rhs:
        return self.rhs & other

    def __or__(self, other: Rhs | Rule) -> Rhs:
        return self.rhs | other

    def __matmul__(self, action: ActionFn) -> Rhs:
        return self.rhs @ action

    def __ior__(self, other: Rhs | Rule) -> Rule:
        rhs = _as_rhs(other)
        if rhs.action is None:
            raise TypeError("production missing action: use `rhs @ action`")
        for body in rhs.alts:
            self.sink.append(Production(head=self.head, body=body, action=rhs.action))
        return self


def _as_rhs(v: Rhs | Rule) -> Rhs:
    if isinstance(v, Rule):
        return v.rhs
    if isinstance(v, Rhs):
        return v
    raise TypeError(f"expected a grammar symbol, got {type(v)!r}")


def t(kind: TokenKind) -> Rhs:
    return Rhs(alts=((Terminal(kind),),))


def eps() -> Rhs:
    return Rhs(alts=((),))
