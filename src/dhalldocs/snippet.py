from __future__ import annotations

import logging
from enum import Enum

import markupsafe

from .api import parse_source
from .ast import Expr, denote
from .errors import InternalError, ParseError
from .format import DEFAULT_WIDTH, CharacterSet, format_expr
from .render import render_annotated


logger = logging.getLogger(__name__)


class ExprType(str, Enum):
    TYPE_ANNOTATION = "type"
    ASSERTION_EXAMPLE = "example"


def render_snippet(
    expr: Expr,
    kind: ExprType,
    *,
    charset: CharacterSet = CharacterSet.ASCII,
) -> markupsafe.Markup:
    """Render an expression that has no source text of its own.

    The tree is formatted afresh (types on a single line, examples wrapped at
    `DEFAULT_WIDTH`), parsed back to recover positions, and rendered like any
    other source.
    """
    width = None if kind is ExprType.TYPE_ANNOTATION else DEFAULT_WIDTH
    text = format_expr(denote(expr), width=width, charset=charset)
    try:
        reparsed = parse_source(text, file=f"<{kind.value} snippet>")
    except ParseError as e:
        raise InternalError(f"formatted {kind.value} snippet does not parse back: {e.message}", span=e.span) from e
    logger.debug("regenerated %s snippet: %d characters", kind.value, len(text))
    return render_annotated(text, reparsed)
