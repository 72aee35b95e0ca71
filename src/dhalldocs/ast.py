from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, fields, replace
from enum import Enum

from .imports import ImportTarget
from .spans import Span


class Operator(str, Enum):
    """Binary operators, lowest precedence first. Values are ASCII spellings."""

    IMPORT_ALT = "?"
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

    @property
    def precedence(self) -> int:
        return list(Operator).index(self) + 1

    @property
    def unicode(self) -> str:
        return _UNICODE_OPERATORS.get(self, self.value)


_UNICODE_OPERATORS: dict[Operator, str] = {
    Operator.COMBINE: "∧",
    Operator.PREFER: "⫽",
    Operator.COMBINE_TYPES: "⩓",
    Operator.EQUIVALENT: "≡",
}


class ImportMode(str, Enum):
    CODE = "Code"
    RAW_TEXT = "Text"
    LOCATION = "Location"


@dataclass(frozen=True, slots=True)
class Expr:
    span: Span | None = field(default=None, kw_only=True)

    def subexpressions(self) -> Iterator[Expr]:
        """Immediate child expressions, in source order."""
        for f in fields(self):
            if f.name != "span":
                yield from _exprs_in(getattr(self, f.name))


@dataclass(frozen=True, slots=True)
class Binding:
    """One `let name [: annotation] = value`.

    The name's own span is not recorded. `src0` is the gap between `let` and
    the name, `src1` the gap between the name and the following `:` or `=`;
    both may hold whitespace and comments.
    """

    name: str
    value: Expr
    annotation: Expr | None = None
    src0: Span | None = None
    src1: Span | None = None


@dataclass(frozen=True, slots=True)
class Var(Expr):
    name: str
    index: int = 0  # how many enclosing same-named binders to skip


@dataclass(frozen=True, slots=True)
class Lambda(Expr):
    name: str
    annotation: Expr
    body: Expr


@dataclass(frozen=True, slots=True)
class Pi(Expr):
    """`forall (name : annotation) -> body`; `A -> B` is `Pi("_", A, B)`."""

    name: str
    annotation: Expr
    body: Expr


@dataclass(frozen=True, slots=True)
class Let(Expr):
    binding: Binding
    body: Expr


@dataclass(frozen=True, slots=True)
class If(Expr):
    predicate: Expr
    if_true: Expr
    if_false: Expr


@dataclass(frozen=True, slots=True)
class Assert(Expr):
    annotation: Expr


@dataclass(frozen=True, slots=True)
class Annot(Expr):
    expr: Expr
    annotation: Expr


@dataclass(frozen=True, slots=True)
class BinOp(Expr):
    op: Operator
    left: Expr
    right: Expr


@dataclass(frozen=True, slots=True)
class App(Expr):
    function: Expr
    argument: Expr


@dataclass(frozen=True, slots=True)
class FieldAccess(Expr):
    record: Expr
    label: str


@dataclass(frozen=True, slots=True)
class NaturalLit(Expr):
    value: int


@dataclass(frozen=True, slots=True)
class IntegerLit(Expr):
    value: int


@dataclass(frozen=True, slots=True)
class DoubleLit(Expr):
    value: float


@dataclass(frozen=True, slots=True)
class TextLit(Expr):
    # raw chunk text (escapes kept as written) interleaved with interpolations
    parts: tuple[str | Expr, ...] = ()


@dataclass(frozen=True, slots=True)
class RecordType(Expr):
    fields: tuple[tuple[str, Expr], ...] = ()


@dataclass(frozen=True, slots=True)
class RecordLit(Expr):
    fields: tuple[tuple[str, Expr], ...] = ()


@dataclass(frozen=True, slots=True)
class Union(Expr):
    alternatives: tuple[tuple[str, Expr | None], ...] = ()


@dataclass(frozen=True, slots=True)
class ListLit(Expr):
    items: tuple[Expr, ...] = ()


@dataclass(frozen=True, slots=True)
class Import(Expr):
    target: ImportTarget
    hash: str | None = None  # "sha256:<hex>"
    mode: ImportMode = ImportMode.CODE


def _exprs_in(value: object) -> Iterator[Expr]:
    if isinstance(value, Expr):
        yield value
    elif isinstance(value, Binding):
        if value.annotation is not None:
            yield value.annotation
        yield value.value
    elif isinstance(value, tuple):
        for item in value:
            yield from _exprs_in(item)


_SPAN_FIELDS = frozenset({"span", "src0", "src1"})


def denote(expr: Expr) -> Expr:
    """Return a copy of `expr` with every source annotation erased."""
    out = _denote(expr)
    assert isinstance(out, Expr)
    return out


def _denote(value: object) -> object:
    if isinstance(value, (Expr, Binding)):
        changes = {
            f.name: None if f.name in _SPAN_FIELDS else _denote(getattr(value, f.name))
            for f in fields(value)
        }
        return replace(value, **changes)
    if isinstance(value, tuple):
        return tuple(_denote(v) for v in value)
    return value
