from __future__ import annotations

import html
import re

import pytest

from dhalldocs import InternalError, extract_fragments, parse_source, render_annotated
from dhalldocs import ast as A
from dhalldocs.ast import denote
from dhalldocs.fragments import BindingDeclaration, ImportReference, VariableUse
from dhalldocs.imports import FilePrefix, LocalImport
from dhalldocs.spans import Position, Span


_TAG_RE = re.compile(r"<[^>]*>")


def _render(src: str) -> str:
    return str(render_annotated(src, parse_source(src, file="t.dhall")))


def _decl(anchor: str, text: str) -> str:
    return f'<span id="{anchor}" class="variable-decl" data-variable="{anchor}">{text}</span>'


def _use(anchor: str, text: str) -> str:
    return f'<a href="#{anchor}" class="variable-use" data-variable="{anchor}">{text}</a>'


def strip_markup(out: str) -> str:
    assert out.startswith("<pre>") and out.endswith("</pre>")
    return html.unescape(_TAG_RE.sub("", out[len("<pre>") : -len("</pre>")]))


def test_inner_binding_shadows_outer() -> None:
    out = _render("let x = 1 in let x = 2 in x")
    assert out == (
        "<pre>let " + _decl("var1-5", "x") + " = 1 in let " + _decl("var1-18", "x") + " = 2 in "
        + _use("var1-18", "x") + "</pre>"
    )


def test_sibling_scope_does_not_leak() -> None:
    out = _render("let x = 1 in (let x = 2 in x) + x")
    assert _use("var1-19", "x") + ") + " + _use("var1-5", "x") + "</pre>" in out


def test_value_cannot_see_its_own_name() -> None:
    out = _render("let x = x in x")
    assert out == "<pre>let " + _decl("var1-5", "x") + " = x in " + _use("var1-5", "x") + "</pre>"


def test_indexed_reference_skips_shadowing_binders() -> None:
    out = _render("let x = 1 in \\(x : Natural) -> x + x@1")
    # the lambda parameter has no declaration to link to
    assert "-&gt; x + " + _use("var1-5", "x@1") + "</pre>" in out


def test_free_variables_render_as_text() -> None:
    assert _render("let x = 1 in y") == "<pre>let " + _decl("var1-5", "x") + " = 1 in y</pre>"


def test_quoted_binding_name_keeps_its_backticks() -> None:
    out = _render("let `my name` = 1 in `my name`")
    assert out == (
        "<pre>let " + _decl("var1-5", "`my name`") + " = 1 in " + _use("var1-5", "`my name`") + "</pre>"
    )
    decl = extract_fragments(parse_source("let `my name` = 1 in `my name`"))[0]
    assert isinstance(decl.kind, BindingDeclaration)
    assert decl.span.start.column_delta(decl.span.end) == len("my name") + 2


def test_declarations_across_lines_and_comments() -> None:
    src = "let {- the port -} port\n      : Natural\n      = 80\nin  port"
    out = _render(src)
    assert out == (
        "<pre>let {- the port -} " + _decl("var1-20", "port") + "\n      : Natural\n      = 80\nin  "
        + _use("var1-20", "port") + "</pre>"
    )


@pytest.mark.parametrize(
    "src,expected",
    [
        ("https://example.com", '<a href="https://example.com" target="_blank">https://example.com</a>'),
        (
            "https://example.com/a/b.dhall?x=1&y=2",
            '<a href="https://example.com/a/b.dhall?x=1&amp;y=2" target="_blank">'
            "https://example.com/a/b.dhall?x=1&amp;y=2</a>",
        ),
        ("./Foo", '<a href="./Foo.html">./Foo</a>'),
        ("../Foo", '<a href="../Foo.html">../Foo</a>'),
        ("./types/Bar.dhall", '<a href="./types/Bar.dhall.html">./types/Bar.dhall</a>'),
        ("./Foo as Text", '<a href="./Foo.html">./Foo as Text</a>'),
        ("env:HOME", "env:HOME"),
        ("missing", "missing"),
        ("/etc/x.dhall", "/etc/x.dhall"),
        ("~/x.dhall", "~/x.dhall"),
    ],
)
def test_import_links(src: str, expected: str) -> None:
    assert _render(src) == f"<pre>{expected}</pre>"


def test_multi_line_import_is_one_link() -> None:
    hash_ = "sha256:" + "ab" * 32
    src = f"let p = ./Prelude.dhall\n  {hash_}\nin  p"
    out = _render(src)
    assert f'<a href="./Prelude.dhall.html">./Prelude.dhall\n  {hash_}</a>\nin  ' in out
    assert strip_markup(out) == src


def test_text_is_escaped() -> None:
    src = 'let a = "<b>&" in a ++ "\'"'
    out = _render(src)
    assert "&lt;b&gt;&amp;" in out
    assert strip_markup(out) == src


def test_no_fragments_renders_verbatim() -> None:
    src = "-- a comment\n1 + 2\n\n"
    assert _render(src) == "<pre>-- a comment\n1 + 2\n\n</pre>"


def test_erased_tree_has_no_fragments() -> None:
    e = parse_source("let x = ./a in x")
    assert len(extract_fragments(e)) == 3
    assert extract_fragments(denote(e)) == []
    assert str(render_annotated("let x = ./a in x", denote(e))) == "<pre>let x = ./a in x</pre>"


def test_fragments_are_ordered_and_classified() -> None:
    e = parse_source("let f = \\(a : Natural) -> ./g a in { x = f 1, y = ../h }")
    frags = extract_fragments(e)
    assert [type(f.kind) for f in frags] == [BindingDeclaration, ImportReference, VariableUse, ImportReference]
    starts = [f.span.start for f in frags]
    assert starts == sorted(starts)
    assert all(a.span.end <= b.span.start for a, b in zip(frags, frags[1:]))


def test_span_past_the_text_is_an_internal_error() -> None:
    e = parse_source("let x = 1 in x")
    with pytest.raises(InternalError) as err:
        render_annotated("let x = 1 in", e)
    assert "past the end" in str(err.value)


def test_overlapping_fragments_are_an_internal_error() -> None:
    sp = Span(file="t.dhall", start=Position(line=1, column=3), end=Position(line=1, column=6))
    target = LocalImport(prefix=FilePrefix.HERE, components=("a",))
    e = A.ListLit(items=(A.Import(span=sp, target=target), A.Import(span=sp, target=target)))
    with pytest.raises(InternalError) as err:
        extract_fragments(e)
    assert "overlaps" in str(err.value)


def test_span_ending_before_it_starts_is_an_internal_error() -> None:
    sp = Span(file="t.dhall", start=Position(line=1, column=5), end=Position(line=1, column=2))
    e = A.Import(span=sp, target=LocalImport(prefix=FilePrefix.HERE, components=("a",)))
    with pytest.raises(InternalError):
        render_annotated("./a and more", e)
