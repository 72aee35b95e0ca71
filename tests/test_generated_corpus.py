from __future__ import annotations

import html
import os
import re
from pathlib import Path

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from dhalldocs import extract_fragments, format_expr, parse_file, parse_source, render_annotated
from dhalldocs.fragments import VariableUse
from dhalldocs.testing import generate_sources


_TAG_RE = re.compile(r"<[^>]*>")
_USE_RE = re.compile(r'href="#(var\d+-\d+)"')
_DECL_RE = re.compile(r'<span id="(var\d+-\d+)"')


def _strip(out: str) -> str:
    return html.unescape(_TAG_RE.sub("", out[len("<pre>") : -len("</pre>")]))


def test_generated_sources_are_deterministic() -> None:
    assert generate_sources(seed=3, count=20) == generate_sources(seed=3, count=20)
    assert generate_sources(seed=3, count=20) != generate_sources(seed=4, count=20)


def test_corpus_render_is_complete_and_linked() -> None:
    seed = int(os.environ.get("DHALLDOCS_CORPUS_SEED", "1"))
    count = int(os.environ.get("DHALLDOCS_CORPUS_CASES", "300"))

    linked = 0
    for i, src in enumerate(generate_sources(seed=seed, count=count)):
        e = parse_source(src, file=f"corpus:{seed}:{i}.dhall")
        out = str(render_annotated(src, e))
        assert _strip(out) == src, f"case {i} does not round-trip"

        decls = set(_DECL_RE.findall(out))
        uses = set(_USE_RE.findall(out))
        assert uses <= decls, f"case {i} links to a missing declaration"
        linked += len(uses)

        frags = extract_fragments(e)
        assert all(a.span.end <= b.span.start for a, b in zip(frags, frags[1:]))
        for frag in frags:
            if isinstance(frag.kind, VariableUse):
                assert frag.kind.site.span.start < frag.span.start

    # The corpus is built to exercise linking, not just parsing.
    assert linked > count // 10


def test_corpus_format_is_a_fixed_point() -> None:
    for i, src in enumerate(generate_sources(seed=2, count=200)):
        out1 = format_expr(parse_source(src, file=f"corpus:2:{i}.dhall"))
        out2 = format_expr(parse_source(out1, file=f"corpus:2:{i}.dhall"))
        assert out2 == out1, f"case {i} is not stable"


def test_corpus_on_disk(tmp_path: Path) -> None:
    for i, src in enumerate(generate_sources(seed=5, count=30)):
        p = tmp_path / f"case_{i:06d}.dhall"
        p.write_text(src, encoding="utf-8")
        e = parse_file(p)
        assert _strip(str(render_annotated(p.read_text(encoding="utf-8"), e))) == src


@given(st.integers(min_value=0, max_value=2**32))
@settings(max_examples=100, suppress_health_check=[HealthCheck.too_slow])
def test_fuzz_any_seed_round_trips(seed: int) -> None:
    (src,) = generate_sources(seed=seed, count=1)
    out = str(render_annotated(src, parse_source(src, file="fuzz.dhall")))
    assert _strip(out) == src
