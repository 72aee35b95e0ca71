from __future__ import annotations

from dataclasses import dataclass

from .grammar import Grammar, NonTerminal, Production, Symbol, Terminal
from .tokens import TokenKind


# (production index, dot position) in the augmented grammar.
Core = tuple[int, int]
ItemSet = dict[Core, set[TokenKind]]


@dataclass(frozen=True, slots=True)
class ParseTable:
    """ACTION / GOTO tables for an LALR parser.

    ACTION[state][terminal] = ("shift", next_state) | ("reduce", prod_index) | ("accept", 0)
    GOTO[state][nonterminal] = next_state

    Reduce indexes refer to the grammar's own productions (not augmented).
    """

    action: dict[int, dict[TokenKind, tuple[str, int]]]
    goto: dict[int, dict[NonTerminal, int]]


class GrammarAnalysisError(Exception):
    pass


class TableBuilder:
    """Builds LALR(1) tables.

    LR(1) item sets are keyed by their LR(0) cores and merged as soon as a
    goto reaches an existing core; a state whose lookaheads grow is
    re-queued so the new lookaheads propagate to its successors.
    """

    def __init__(self, grammar: Grammar) -> None:
        start_prime = NonTerminal(grammar.start.name + "'")
        augmented = Production(head=start_prime, body=(grammar.start,), action=lambda xs: xs[0])
        self.productions: tuple[Production, ...] = (augmented,) + grammar.productions

        self._by_head: dict[NonTerminal, list[int]] = {}
        for i, p in enumerate(self.productions):
            self._by_head.setdefault(p.head, []).append(i)
        for p in self.productions:
            for sym in p.body:
                if isinstance(sym, NonTerminal) and sym not in self._by_head:
                    raise GrammarAnalysisError(f"no productions for {sym.name} (used in '{p}')")

        self._first: dict[NonTerminal, set[TokenKind]] = {head: set() for head in self._by_head}
        self._nullable: set[NonTerminal] = set()
        self._compute_first()

    def _compute_first(self) -> None:
        changed = True
        while changed:
            changed = False
            for p in self.productions:
                first = self._first[p.head]
                before = (len(first), p.head in self._nullable)
                for sym in p.body:
                    if isinstance(sym, Terminal):
                        first.add(sym.kind)
                        break
                    first |= self._first[sym]
                    if sym not in self._nullable:
                        break
                else:
                    self._nullable.add(p.head)
                if (len(first), p.head in self._nullable) != before:
                    changed = True

    def _first_of(self, seq: tuple[Symbol, ...], follow: set[TokenKind]) -> set[TokenKind]:
        out: set[TokenKind] = set()
        for sym in seq:
            if isinstance(sym, Terminal):
                out.add(sym.kind)
                return out
            out |= self._first[sym]
            if sym not in self._nullable:
                return out
        return out | follow

    def _closure(self, kernel: ItemSet) -> ItemSet:
        items: ItemSet = {core: set(las) for core, las in kernel.items()}
        work = list(items)
        while work:
            pidx, dot = work.pop()
            body = self.productions[pidx].body
            if dot >= len(body):
                continue
            sym = body[dot]
            if not isinstance(sym, NonTerminal):
                continue
            lookaheads = self._first_of(body[dot + 1 :], items[(pidx, dot)])
            for j in self._by_head[sym]:
                target = items.setdefault((j, 0), set())
                if not lookaheads <= target:
                    target |= lookaheads
                    work.append((j, 0))
        return items

    def _collect(self) -> tuple[list[ItemSet], dict[int, dict[Symbol, int]]]:
        kernels: list[ItemSet] = [{(0, 0): {TokenKind.EOF}}]
        index: dict[frozenset[Core], int] = {frozenset(kernels[0]): 0}
        transitions: dict[int, dict[Symbol, int]] = {}

        work = [0]
        while work:
            i = work.pop()
            moved: dict[Symbol, ItemSet] = {}
            for (pidx, dot), las in self._closure(kernels[i]).items():
                body = self.productions[pidx].body
                if dot < len(body):
                    moved.setdefault(body[dot], {}).setdefault((pidx, dot + 1), set()).update(las)

            for sym, kernel in moved.items():
                key = frozenset(kernel)
                j = index.get(key)
                if j is None:
                    j = len(kernels)
                    kernels.append(kernel)
                    index[key] = j
                    work.append(j)
                else:
                    grew = False
                    for core, las in kernel.items():
                        target = kernels[j][core]
                        if not las <= target:
                            target |= las
                            grew = True
                    if grew and j not in work:
                        work.append(j)
                transitions.setdefault(i, {})[sym] = j

        return kernels, transitions

    def build(self) -> ParseTable:
        kernels, transitions = self._collect()
        action: dict[int, dict[TokenKind, tuple[str, int]]] = {}
        goto: dict[int, dict[NonTerminal, int]] = {}

        def add_action(st: int, term: TokenKind, act: tuple[str, int]) -> None:
            row = action.setdefault(st, {})
            if term in row and row[term] != act:
                raise GrammarAnalysisError(
                    f"conflict in state {st} on {term.value}: "
                    f"{self._describe(row[term])} vs {self._describe(act)}"
                )
            row[term] = act

        for i, kernel in enumerate(kernels):
            out = transitions.get(i, {})
            for (pidx, dot), las in self._closure(kernel).items():
                prod = self.productions[pidx]
                if dot < len(prod.body):
                    sym = prod.body[dot]
                    if isinstance(sym, Terminal):
                        add_action(i, sym.kind, ("shift", out[sym]))
                elif pidx == 0:
                    add_action(i, TokenKind.EOF, ("accept", 0))
                else:
                    for la in las:
                        add_action(i, la, ("reduce", pidx - 1))
            for sym, j in out.items():
                if isinstance(sym, NonTerminal):
                    goto.setdefault(i, {})[sym] = j

        return ParseTable(action=action, goto=goto)

    def _describe(self, act: tuple[str, int]) -> str:
        kind, arg = act
        if kind == "reduce":
            return f"reduce '{self.productions[arg + 1]}'"
        return f"{kind} {arg}"


def build_lalr_table(grammar: Grammar) -> ParseTable:
    return TableBuilder(grammar).build()


def expected_terminals(table: ParseTable, state: int) -> set[TokenKind]:
    return set(table.action.get(state, {}).keys())
