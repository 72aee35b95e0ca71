from __future__ import annotations

from .api import parse_file, parse_source
from .errors import InternalError, ParseError
from .format import DEFAULT_WIDTH, CharacterSet, format_expr
from .fragments import extract_fragments
from .render import render_annotated
from .snippet import ExprType, render_snippet

__all__ = [
    "CharacterSet",
    "DEFAULT_WIDTH",
    "ExprType",
    "InternalError",
    "ParseError",
    "extract_fragments",
    "format_expr",
    "parse_file",
    "parse_source",
    "render_annotated",
    "render_snippet",
]
