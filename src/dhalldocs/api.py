from __future__ import annotations

from functools import cache
from pathlib import Path

from .ast import Expr
from .dhall import build_dhall_grammar
from .lexer import tokenize
from .parser import Parser


@cache
def _dhall_parser() -> Parser:
    # Table construction dominates; every parse in the process shares one table.
    return Parser.for_grammar(build_dhall_grammar())


def parse_source(src: str, *, file: str = "<memory>") -> Expr:
    """Parse one complete expression; `file` only labels spans and errors."""
    result = _dhall_parser().parse(tokenize(src, file=file))
    if not isinstance(result, Expr):
        raise RuntimeError(f"grammar produced {type(result)!r} instead of an expression")
    return result


def parse_file(path: str | Path) -> Expr:
    resolved = Path(path).expanduser().resolve()
    return parse_source(resolved.read_text(encoding="utf-8"), file=str(resolved))
