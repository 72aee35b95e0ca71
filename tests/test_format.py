from __future__ import annotations

import pytest

from dhalldocs import CharacterSet, format_expr, parse_source
from dhalldocs import ast as A
from dhalldocs.ast import denote


def _roundtrip(src: str, **kw) -> str:
    out = format_expr(parse_source(src), **kw)
    assert format_expr(parse_source(out), **kw) == out
    return out


@pytest.mark.parametrize(
    "src,expected",
    [
        ("let  a=1   in a", "let a = 1 in a"),
        ("let a = 1 in let b = 2 in a", "let a = 1 let b = 2 in a"),
        ("(a + b) * c", "(a + b) * c"),
        ("(a + b) + c", "a + b + c"),
        ("a + (b + c)", "a + (b + c)"),
        ("(f g) x", "f g x"),
        ("f (g x)", "f (g x)"),
        ("(x : T) -> y", "(x : T) -> y"),
        ("(a -> b) -> c", "(a -> b) -> c"),
        ("a -> (b -> c)", "a -> b -> c"),
        ("(./a.dhall).b", "(./a.dhall).b"),
        ("(\\(x : T) -> x) y", "(\\(x : T) -> x) y"),
        ("{ a = +1, b = -2, c = 3 }", "{ a = +1, b = -2, c = 3 }"),
        ("{=}", "{=}"),
        ("{}", "{}"),
        ("<>", "<>"),
        ("[]", "[]"),
        ("<A|B:Natural>", "< A | B : Natural >"),
        ('"hi ${ name }!"', '"hi ${name}!"'),
        ("x@0", "x"),
        ("x@2", "x@2"),
        ("assert:a===b", "assert : a === b"),
        ("if a then b else c", "if a then b else c"),
        ("forall(a : Type) -> a", "forall (a : Type) -> a"),
        ("https://example.com/a?b=c  sha256:" + "f" * 64 + "  as  Location", "https://example.com/a?b=c sha256:" + "f" * 64 + " as Location"),
    ],
)
def test_canonical_text(src: str, expected: str) -> None:
    assert _roundtrip(src) == expected


def test_labels_are_quoted_when_needed() -> None:
    e = A.Let(
        binding=A.Binding(name="let", value=A.NaturalLit(value=1)),
        body=A.RecordLit(fields=(("my field", A.Var(name="missing")), ("ok", A.Var(name="let")))),
    )
    out = format_expr(e)
    assert out == "let `let` = 1 in { `my field` = `missing`, ok = `let` }"
    assert denote(parse_source(out)) == e


def test_unicode_character_set() -> None:
    out = _roundtrip("\\(x : T) -> forall (y : U) -> a /\\ b // c //\\\\ d === e", charset=CharacterSet.UNICODE)
    assert out == "λ(x : T) → ∀(y : U) → a ∧ b ⫽ c ⩓ d ≡ e"


def test_forall_keeps_its_space_when_broken() -> None:
    out = _roundtrip("forall(a:Type)->a->a", width=20)
    assert out == "forall (a : Type) ->\n  a -> a"


def test_narrow_width_breaks_let_chain() -> None:
    out = _roundtrip("let a = 1 in let b = 2 in a + b", width=10)
    assert out == "let a = 1\nlet b = 2\nin  a + b"


def test_narrow_width_layouts() -> None:
    src = (
        "let config : { name : Text, port : Natural } = { name = \"server\", port = 8080 } "
        "in \\(override : Natural) -> if override == 0 then config else config // { port = override }"
    )
    out = _roundtrip(src, width=40)
    assert out == "\n".join(
        [
            "let config",
            "    : { name : Text, port : Natural }",
            "    = { name = \"server\", port = 8080 }",
            "in  \\(override : Natural) ->",
            "      if override == 0",
            "      then config",
            "      else config // { port = override }",
        ]
    )
    assert denote(parse_source(out)) == denote(parse_source(src))


def test_unbounded_width_stays_on_one_line() -> None:
    src = "forall (a : Type) -> (a -> a -> Bool) -> List a -> List { index : Natural, value : a }"
    out = format_expr(parse_source(src), width=None)
    assert "\n" not in out
    assert len(out) > 80


def test_output_has_no_trailing_whitespace() -> None:
    out = _roundtrip("[ { a = 1, b = [ 1, 2, 3 ] }, { a = 2, b = [] : List Natural } ]", width=8)
    assert not out.endswith("\n")
    assert all(line == line.rstrip() for line in out.split("\n"))
