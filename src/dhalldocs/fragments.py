from __future__ import annotations

import logging
from dataclasses import dataclass

from . import ast as A
from .errors import InternalError
from .imports import ImportTarget
from .scope import BindingSite, Scope
from .spans import Span
from .synthesis import binding_name_span


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImportReference:
    target: ImportTarget


@dataclass(frozen=True, slots=True)
class BindingDeclaration:
    site: BindingSite


@dataclass(frozen=True, slots=True)
class VariableUse:
    site: BindingSite


FragmentKind = ImportReference | BindingDeclaration | VariableUse


@dataclass(frozen=True, slots=True)
class Fragment:
    span: Span
    kind: FragmentKind


def extract_fragments(expr: A.Expr) -> list[Fragment]:
    """Annotated regions of `expr`, ordered by position and non-overlapping.

    Nodes without a span contribute nothing, so a tree whose positions were
    erased yields an empty list.
    """
    out: list[Fragment] = []
    _walk(expr, Scope(), out)
    _check_order(out)
    logger.debug("extracted %d fragments", len(out))
    return out


def _walk(e: A.Expr, scope: Scope, out: list[Fragment]) -> None:
    if isinstance(e, A.Import):
        if e.span is not None:
            out.append(Fragment(span=e.span, kind=ImportReference(target=e.target)))
        return

    if isinstance(e, A.Let):
        b = e.binding
        site: BindingSite | None = None
        if b.src0 is not None and b.src1 is not None:
            site = BindingSite(span=binding_name_span(b.src0, b.src1, b.name), name=b.name)
            out.append(Fragment(span=site.span, kind=BindingDeclaration(site=site)))
        # the annotation and value cannot see the name they define
        if b.annotation is not None:
            _walk(b.annotation, scope, out)
        _walk(b.value, scope, out)
        _walk(e.body, scope.insert(b.name, site), out)
        return

    if isinstance(e, (A.Lambda, A.Pi)):
        _walk(e.annotation, scope, out)
        _walk(e.body, scope.insert(e.name, None), out)
        return

    if isinstance(e, A.Var):
        site = scope.lookup(e.name, e.index)
        if site is None:
            logger.debug("no declaration to link for %s@%d", e.name, e.index)
        elif e.span is not None:
            out.append(Fragment(span=e.span, kind=VariableUse(site=site)))
        return

    for child in e.subexpressions():
        _walk(child, scope, out)


def _check_order(fragments: list[Fragment]) -> None:
    prev: Fragment | None = None
    for frag in fragments:
        if not frag.span.is_well_formed():
            raise InternalError("fragment ends before it starts", span=frag.span)
        if prev is not None and frag.span.start < prev.span.end:
            raise InternalError(
                f"fragment overlaps or precedes the fragment at {prev.span.format()}",
                span=frag.span,
            )
        prev = frag
