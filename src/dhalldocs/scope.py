from __future__ import annotations

from dataclasses import dataclass, field

from .spans import Span
from .synthesis import anchor_id


@dataclass(frozen=True, slots=True)
class BindingSite:
    """Where a `let`-bound name is declared."""

    span: Span
    name: str

    @property
    def anchor_id(self) -> str:
        return anchor_id(self.span.start)


@dataclass(frozen=True, slots=True, eq=False)
class Scope:
    """Persistent map from a name to its binders, innermost first.

    `insert` returns a new scope and leaves the receiver untouched, so sibling
    subtrees can each extend the same parent scope. A `None` entry is a binder
    that has no declaration to link to (lambda and forall parameters, or a
    `let` whose source positions were erased); it still counts when skipping
    shadowed names.
    """

    _stacks: dict[str, tuple[BindingSite | None, ...]] = field(default_factory=dict)

    def insert(self, name: str, site: BindingSite | None) -> Scope:
        stacks = dict(self._stacks)
        stacks[name] = (site,) + self._stacks.get(name, ())
        return Scope(stacks)

    def lookup(self, name: str, index: int = 0) -> BindingSite | None:
        stack = self._stacks.get(name, ())
        if 0 <= index < len(stack):
            return stack[index]
        return None
