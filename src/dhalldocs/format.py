from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from . import ast as A
from .dhall import RESERVED_LABELS
from .imports import EnvImport, LocalImport, MissingImport, RemoteImport


logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 80


class CharacterSet(str, Enum):
    ASCII = "ascii"
    UNICODE = "unicode"


# Binding strength of a node's printed form. Operators sit between EXPR and APP
# at their own precedence (1 for `?` up to 13 for `===`).
_EXPR = 0
_APP = 14
_SELECTOR = 15
_PRIM = 16

_LABEL_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_/\-]*")


@dataclass(frozen=True, slots=True)
class _Style:
    charset: CharacterSet

    @property
    def unicode(self) -> bool:
        return self.charset is CharacterSet.UNICODE

    @property
    def arrow(self) -> str:
        return "→" if self.unicode else "->"

    @property
    def lam(self) -> str:
        return "λ" if self.unicode else "\\"

    @property
    def forall(self) -> str:
        return "∀" if self.unicode else "forall "

    def op(self, op: A.Operator) -> str:
        return op.unicode if self.unicode else op.value


def format_expr(
    expr: A.Expr,
    *,
    width: int | None = DEFAULT_WIDTH,
    charset: CharacterSet = CharacterSet.ASCII,
) -> str:
    """Canonical source text for `expr`.

    Spans are ignored. With `width=None` the result is always a single line;
    otherwise constructs that do not fit in `width` columns are broken across
    lines. The output has no trailing whitespace or newline, and parsing it
    back yields the same tree.
    """
    style = _Style(charset=charset)
    if width is None:
        return _flat(expr, style)
    logger.debug("formatting %s at width %d", type(expr).__name__, width)
    return "\n".join(_lines(expr, style, width, _EXPR))


def format_label(name: str) -> str:
    if _LABEL_RE.fullmatch(name) and name not in RESERVED_LABELS:
        return name
    return f"`{name}`"


def _level(e: A.Expr) -> int:
    if isinstance(e, (A.Let, A.Lambda, A.Pi, A.If, A.Assert, A.Annot)):
        return _EXPR
    if isinstance(e, A.BinOp):
        return e.op.precedence
    if isinstance(e, A.App):
        return _APP
    if isinstance(e, A.FieldAccess):
        return _SELECTOR
    return _PRIM


# ---------------------------------------------------------------------------
# Single-line form
# ---------------------------------------------------------------------------


def _flat(e: A.Expr, s: _Style, level: int = _EXPR) -> str:
    out = _flat_bare(e, s)
    if _level(e) < level:
        return f"({out})"
    return out


def _flat_bare(e: A.Expr, s: _Style) -> str:
    if isinstance(e, A.Var):
        name = format_label(e.name)
        return f"{name}@{e.index}" if e.index else name
    if isinstance(e, A.Let):
        bindings, body = _let_chain(e)
        head = " ".join(_flat_binding(b, s) for b in bindings)
        return f"{head} in {_flat(body, s)}"
    if isinstance(e, A.Lambda):
        return f"{s.lam}({format_label(e.name)} : {_flat(e.annotation, s)}) {s.arrow} {_flat(e.body, s)}"
    if isinstance(e, A.Pi):
        if e.name == "_":
            return f"{_flat(e.annotation, s, 1)} {s.arrow} {_flat(e.body, s)}"
        return f"{s.forall}({format_label(e.name)} : {_flat(e.annotation, s)}) {s.arrow} {_flat(e.body, s)}"
    if isinstance(e, A.If):
        return f"if {_flat(e.predicate, s)} then {_flat(e.if_true, s)} else {_flat(e.if_false, s)}"
    if isinstance(e, A.Assert):
        return f"assert : {_flat(e.annotation, s)}"
    if isinstance(e, A.Annot):
        return f"{_flat(e.expr, s, 1)} : {_flat(e.annotation, s)}"
    if isinstance(e, A.BinOp):
        p = e.op.precedence
        return f"{_flat(e.left, s, p)} {s.op(e.op)} {_flat(e.right, s, p + 1)}"
    if isinstance(e, A.App):
        return f"{_flat(e.function, s, _APP)} {_flat(e.argument, s, _SELECTOR)}"
    if isinstance(e, A.FieldAccess):
        record = _flat(e.record, s, _SELECTOR)
        if isinstance(e.record, A.Import):
            # a bare import path would absorb the `.label`
            record = f"({record})"
        return f"{record}.{format_label(e.label)}"
    if isinstance(e, A.NaturalLit):
        return str(e.value)
    if isinstance(e, A.IntegerLit):
        return f"{e.value:+d}"
    if isinstance(e, A.DoubleLit):
        return repr(e.value)
    if isinstance(e, A.TextLit):
        return _format_text(e, s)
    if isinstance(e, A.RecordType):
        if not e.fields:
            return "{}"
        return "{ " + ", ".join(f"{format_label(k)} : {_flat(v, s)}" for k, v in e.fields) + " }"
    if isinstance(e, A.RecordLit):
        if not e.fields:
            return "{=}"
        return "{ " + ", ".join(f"{format_label(k)} = {_flat(v, s)}" for k, v in e.fields) + " }"
    if isinstance(e, A.Union):
        if not e.alternatives:
            return "<>"
        return "< " + " | ".join(_flat_alternative(k, v, s) for k, v in e.alternatives) + " >"
    if isinstance(e, A.ListLit):
        if not e.items:
            return "[]"
        return "[ " + ", ".join(_flat(item, s) for item in e.items) + " ]"
    if isinstance(e, A.Import):
        return _format_import(e)
    raise TypeError(f"cannot format {type(e).__name__}")


def _flat_binding(b: A.Binding, s: _Style) -> str:
    out = f"let {format_label(b.name)}"
    if b.annotation is not None:
        out += f" : {_flat(b.annotation, s)}"
    return out + f" = {_flat(b.value, s)}"


def _flat_alternative(label: str, typ: A.Expr | None, s: _Style) -> str:
    if typ is None:
        return format_label(label)
    return f"{format_label(label)} : {_flat(typ, s)}"


def _format_text(e: A.TextLit, s: _Style) -> str:
    # Text literals never span lines; interpolations are always flat.
    out: list[str] = ['"']
    for part in e.parts:
        if isinstance(part, str):
            out.append(part)
        else:
            out.append("${" + _flat(part, s) + "}")
    out.append('"')
    return "".join(out)


def _format_import(e: A.Import) -> str:
    target = e.target
    if isinstance(target, RemoteImport):
        out = target.url()
    elif isinstance(target, (LocalImport, EnvImport, MissingImport)):
        out = str(target)
    else:
        raise TypeError(f"cannot format import target {type(target).__name__}")
    if e.hash is not None:
        out += " " + e.hash
    if e.mode is not A.ImportMode.CODE:
        out += f" as {e.mode.value}"
    return out


def _let_chain(e: A.Let) -> tuple[list[A.Binding], A.Expr]:
    bindings: list[A.Binding] = []
    body: A.Expr = e
    while isinstance(body, A.Let):
        bindings.append(body.binding)
        body = body.body
    return bindings, body


# ---------------------------------------------------------------------------
# Multi-line form
# ---------------------------------------------------------------------------


def _lines(e: A.Expr, s: _Style, width: int, level: int) -> list[str]:
    flat = _flat(e, s, level)
    if len(flat) <= width:
        return [flat]
    if _level(e) < level:
        inner = _block(e, s, width - 2)
        out = _prefixed("(", inner)
        out[-1] += ")"
        return out
    return _block(e, s, width)


def _block(e: A.Expr, s: _Style, width: int) -> list[str]:
    if isinstance(e, A.Let):
        return _block_let(e, s, width)
    if isinstance(e, A.Lambda):
        return _block_binder(s.lam, e.name, e.annotation, e.body, s, width)
    if isinstance(e, A.Pi):
        if e.name != "_":
            return _block_binder(s.forall, e.name, e.annotation, e.body, s, width)
        return _block_arrows(e, s, width)
    if isinstance(e, A.If):
        out = _prefixed("if ", _lines(e.predicate, s, width - 3, _EXPR))
        out += _prefixed("then ", _lines(e.if_true, s, width - 5, _EXPR))
        out += _prefixed("else ", _lines(e.if_false, s, width - 5, _EXPR))
        return out
    if isinstance(e, A.Assert):
        return ["assert"] + [_indent(line, 2) for line in _prefixed(": ", _lines(e.annotation, s, width - 4, _EXPR))]
    if isinstance(e, A.Annot):
        return _lines(e.expr, s, width, 1) + _prefixed(": ", _lines(e.annotation, s, width - 2, _EXPR))
    if isinstance(e, A.BinOp):
        return _block_operator(e, s, width)
    if isinstance(e, A.App):
        return _block_application(e, s, width)
    if isinstance(e, A.RecordType):
        entries = [_block_entry(format_label(k), ":", v, s, width - 2) for k, v in e.fields]
        return _block_sequence("{ ", ", ", "}", entries) if entries else ["{}"]
    if isinstance(e, A.RecordLit):
        entries = [_block_entry(format_label(k), "=", v, s, width - 2) for k, v in e.fields]
        return _block_sequence("{ ", ", ", "}", entries) if entries else ["{=}"]
    if isinstance(e, A.Union):
        entries = [
            [format_label(k)] if v is None else _block_entry(format_label(k), ":", v, s, width - 2)
            for k, v in e.alternatives
        ]
        return _block_sequence("< ", "| ", ">", entries) if entries else ["<>"]
    if isinstance(e, A.ListLit):
        entries = [_lines(item, s, width - 2, _EXPR) for item in e.items]
        return _block_sequence("[ ", ", ", "]", entries) if entries else ["[]"]
    return [_flat_bare(e, s)]


def _block_let(e: A.Let, s: _Style, width: int) -> list[str]:
    bindings, body = _let_chain(e)
    out: list[str] = []
    for b in bindings:
        flat = _flat_binding(b, s)
        if len(flat) <= width:
            out.append(flat)
            continue
        out.append(f"let {format_label(b.name)}")
        if b.annotation is not None:
            out += [_indent(line, 4) for line in _prefixed(": ", _lines(b.annotation, s, width - 6, _EXPR))]
        out += [_indent(line, 4) for line in _prefixed("= ", _lines(b.value, s, width - 6, _EXPR))]
    out += _prefixed("in  ", _lines(body, s, width - 4, _EXPR))
    return out


def _block_binder(
    keyword: str, name: str, annotation: A.Expr, body: A.Expr, s: _Style, width: int
) -> list[str]:
    head = f"{keyword}({format_label(name)} : {_flat(annotation, s)}) {s.arrow}"
    if len(head) <= width:
        out = [head]
    else:
        out = [f"{keyword}({format_label(name)} :"]
        out += [_indent(line, 4) for line in _lines(annotation, s, width - 4, _EXPR)]
        out.append(f") {s.arrow}")
    out += [_indent(line, 2) for line in _lines(body, s, width - 2, _EXPR)]
    return out


def _block_arrows(e: A.Pi, s: _Style, width: int) -> list[str]:
    inputs: list[A.Expr] = []
    result: A.Expr = e
    while isinstance(result, A.Pi) and result.name == "_":
        inputs.append(result.annotation)
        result = result.body
    prefix = s.arrow + " "
    out = _lines(inputs[0], s, width, 1)
    for typ in inputs[1:]:
        out += _prefixed(prefix, _lines(typ, s, width - len(prefix), 1))
    out += _prefixed(prefix, _lines(result, s, width - len(prefix), _EXPR))
    return out


def _block_operator(e: A.BinOp, s: _Style, width: int) -> list[str]:
    # a + b + c is ((a + b) + c); print one operand per line.
    operands: list[A.Expr] = []
    left: A.Expr = e
    while isinstance(left, A.BinOp) and left.op is e.op:
        operands.append(left.right)
        left = left.left
    operands.reverse()
    p = e.op.precedence
    prefix = s.op(e.op) + " "
    out = _lines(left, s, width, p)
    for operand in operands:
        out += _prefixed(prefix, _lines(operand, s, width - len(prefix), p + 1))
    return out


def _block_application(e: A.App, s: _Style, width: int) -> list[str]:
    args: list[A.Expr] = []
    fn: A.Expr = e
    while isinstance(fn, A.App):
        args.append(fn.argument)
        fn = fn.function
    args.reverse()
    out = _lines(fn, s, width, _APP)
    for arg in args:
        out += [_indent(line, 2) for line in _lines(arg, s, width - 2, _SELECTOR)]
    return out


def _block_entry(label: str, sep: str, value: A.Expr, s: _Style, width: int) -> list[str]:
    flat = f"{label} {sep} {_flat(value, s)}"
    if len(flat) <= width:
        return [flat]
    return [f"{label} {sep}"] + [_indent(line, 4) for line in _lines(value, s, width - 4, _EXPR)]


def _block_sequence(first: str, sep: str, close: str, entries: list[list[str]]) -> list[str]:
    out: list[str] = []
    for i, entry in enumerate(entries):
        out += _prefixed(first if i == 0 else sep, entry)
    out.append(close)
    return out


def _prefixed(prefix: str, lines: list[str]) -> list[str]:
    pad = " " * len(prefix)
    return [prefix + lines[0]] + [pad + line for line in lines[1:]]


def _indent(s: str, n: int) -> str:
    return (" " * n) + s
