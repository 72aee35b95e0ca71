from __future__ import annotations

from .errors import InternalError
from .spans import Position, Span


def anchor_id(pos: Position) -> str:
    """Stable HTML id for a binding declared at `pos`.

    Declaration and use sites compute it independently from the same
    position, so shadowed names never collide.
    """
    return f"var{pos.line}-{pos.column}"


def binding_name_span(src0: Span, src1: Span, name: str) -> Span:
    """The span of a `let`-bound name, which the parser does not record.

    The name sits exactly between the gap after `let` (`src0`) and the gap
    before the following `:` or `=` (`src1`). A name written in backticks is
    two columns wider than the name itself; the returned span then covers
    the backticks too.
    """
    span = Span(file=src0.file, start=src0.end, end=src1.start)
    if not span.is_well_formed() or not span.single_line:
        raise InternalError(f"cannot place binding name {name!r} between its neighbours", span=span)
    width = span.start.column_delta(span.end)
    if width not in (len(name), len(name) + 2):
        raise InternalError(
            f"binding name {name!r} is {len(name)} characters but its slot is {width} columns wide",
            span=span,
        )
    return span
