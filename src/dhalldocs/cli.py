from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .api import parse_source
from .errors import ParseError
from .format import CharacterSet
from .render import render_annotated
from .snippet import ExprType, render_snippet


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="dhalldocs", description="Render a configuration file as linked HTML source")
    ap.add_argument("file", help="Source file to render")
    ap.add_argument(
        "--snippet",
        choices=[k.value for k in ExprType],
        help="Ignore the file's layout and render its expression regenerated as a snippet",
    )
    ap.add_argument("--unicode", action="store_true", help="Use Unicode spellings in regenerated snippets")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    path = Path(args.file).expanduser().resolve()
    src = path.read_text(encoding="utf-8")
    try:
        expr = parse_source(src, file=str(path))
    except ParseError as e:
        print(e, file=sys.stderr)
        return 1

    if args.snippet:
        charset = CharacterSet.UNICODE if args.unicode else CharacterSet.ASCII
        html = render_snippet(expr, ExprType(args.snippet), charset=charset)
    else:
        html = render_annotated(src, expr)
    print(html)
    return 0
