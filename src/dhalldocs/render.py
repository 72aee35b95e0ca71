from __future__ import annotations

import logging

import markupsafe

from .ast import Expr
from .errors import InternalError
from .fragments import BindingDeclaration, Fragment, ImportReference, VariableUse, extract_fragments
from .imports import RemoteImport, import_href
from .spans import Position, Span


logger = logging.getLogger(__name__)


def render_annotated(text: str, expr: Expr) -> markupsafe.Markup:
    """Render `text` as HTML, linking the imports and variables of `expr`.

    `expr` must be the tree parsed from `text`. Everything outside a fragment
    is copied verbatim (escaped), so stripping the markup gives back `text`
    exactly. The result is a `<pre>` element, not a full document.
    """
    lines = text.split("\n")
    fragments = extract_fragments(expr)
    out: list[markupsafe.Markup] = []

    # cursor: 1-based line, 1-based column of the next character to copy
    line, col = 1, 1
    for frag in fragments:
        _check_span(frag.span, lines)
        start, end = frag.span.start, frag.span.end
        if (start.line, start.column) < (line, col):
            raise InternalError("fragment starts behind the render cursor", span=frag.span)

        while line < start.line:
            out.append(markupsafe.escape(lines[line - 1][col - 1 :]))
            out.append(markupsafe.Markup("\n"))
            line, col = line + 1, 1

        out.append(markupsafe.escape(lines[line - 1][col - 1 : start.column - 1]))
        out.append(_render_fragment(frag, _slice(lines, start, end)))
        line, col = end.line, end.column

    out.append(markupsafe.escape(lines[line - 1][col - 1 :]))
    for rest in lines[line:]:
        out.append(markupsafe.Markup("\n"))
        out.append(markupsafe.escape(rest))

    logger.debug("rendered %d lines with %d fragments", len(lines), len(fragments))
    return markupsafe.Markup("<pre>") + markupsafe.Markup("").join(out) + markupsafe.Markup("</pre>")


def _check_span(span: Span, lines: list[str]) -> None:
    if not span.is_well_formed():
        raise InternalError("span ends before it starts", span=span)
    start, end = span.start, span.end
    if start.line < 1 or start.column < 1 or end.line > len(lines):
        raise InternalError(f"span lies outside the {len(lines)}-line text", span=span)
    if start.column - 1 > len(lines[start.line - 1]) or end.column - 1 > len(lines[end.line - 1]):
        raise InternalError("span runs past the end of its line", span=span)


def _slice(lines: list[str], start: Position, end: Position) -> str:
    if start.line == end.line:
        return lines[start.line - 1][start.column - 1 : end.column - 1]
    parts = [lines[start.line - 1][start.column - 1 :]]
    parts.extend(lines[start.line : end.line - 1])
    parts.append(lines[end.line - 1][: end.column - 1])
    return "\n".join(parts)


def _render_fragment(frag: Fragment, text: str) -> markupsafe.Markup:
    kind = frag.kind
    if isinstance(kind, ImportReference):
        href = import_href(kind.target)
        if href is None:
            logger.debug("leaving import %s unlinked", kind.target)
            return markupsafe.escape(text)
        if isinstance(kind.target, RemoteImport):
            return markupsafe.Markup('<a href="{}" target="_blank">{}</a>').format(href, text)
        return markupsafe.Markup('<a href="{}">{}</a>').format(href, text)
    if isinstance(kind, BindingDeclaration):
        return markupsafe.Markup('<span id="{0}" class="variable-decl" data-variable="{0}">{1}</span>').format(
            kind.site.anchor_id, text
        )
    if isinstance(kind, VariableUse):
        return markupsafe.Markup('<a href="#{0}" class="variable-use" data-variable="{0}">{1}</a>').format(
            kind.site.anchor_id, text
        )
    raise InternalError(f"unknown fragment kind: {type(kind).__name__}", span=frag.span)
