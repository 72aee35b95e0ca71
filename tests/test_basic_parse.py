from __future__ import annotations

from pathlib import Path

import pytest

from dhalldocs import ParseError, parse_file, parse_source
from dhalldocs import ast as A
from dhalldocs.ast import denote
from dhalldocs.imports import EnvImport, FilePrefix, LocalImport, MissingImport, RemoteImport
from dhalldocs.lexer import tokenize
from dhalldocs.tokens import TokenKind


def test_tokenize_skips_comments_and_tracks_positions() -> None:
    toks = tokenize("let {- a {- nested -} one -} x -- trailing\n  = 1 in x", file="t.dhall")
    kinds = [t.kind for t in toks]
    assert kinds == [
        TokenKind.LET,
        TokenKind.IDENT,
        TokenKind.EQ,
        TokenKind.NATURAL,
        TokenKind.IN,
        TokenKind.IDENT,
        TokenKind.EOF,
    ]
    x = toks[1]
    assert (x.span.start.line, x.span.start.column) == (1, 30)
    eq = toks[2]
    assert (eq.span.start.line, eq.span.start.column) == (2, 3)


def test_tokenize_quoted_label_span_covers_backticks() -> None:
    toks = tokenize("`my name`")
    assert toks[0].kind is TokenKind.IDENT
    assert toks[0].lexeme == "my name"
    assert toks[0].span.start.column == 1
    assert toks[0].span.end.column == 10


def test_tokenize_unicode_spellings() -> None:
    toks = tokenize("λ(x : T) → ∀(y : U) → a ∧ b ⫽ c ⩓ d ≡ e")
    kinds = {t.kind for t in toks}
    assert {
        TokenKind.LAMBDA,
        TokenKind.ARROW,
        TokenKind.FORALL,
        TokenKind.COMBINE,
        TokenKind.PREFER,
        TokenKind.COMBINE_TYPES,
        TokenKind.EQUIVALENT,
    } <= kinds


def test_tokenize_text_interpolation_with_record() -> None:
    toks = tokenize('"a ${ { b = 1 }.b } c"')
    kinds = [t.kind for t in toks]
    assert kinds == [
        TokenKind.TEXT_OPEN,
        TokenKind.TEXT_CHUNK,
        TokenKind.INTERP,
        TokenKind.LBRACE,
        TokenKind.IDENT,
        TokenKind.EQ,
        TokenKind.NATURAL,
        TokenKind.RBRACE,
        TokenKind.DOT,
        TokenKind.IDENT,
        TokenKind.RBRACE,
        TokenKind.TEXT_CHUNK,
        TokenKind.TEXT_CLOSE,
        TokenKind.EOF,
    ]


@pytest.mark.parametrize(
    "src,message",
    [
        ('"abc', "unterminated text literal"),
        ("{- open", "unterminated block comment"),
        ('"${ x', "unterminated interpolation"),
        ("./a sha256:00", "malformed integrity check"),
        ("`open", "unterminated quoted label"),
        ("x ^ y", "unexpected character"),
    ],
)
def test_lexer_errors(src: str, message: str) -> None:
    with pytest.raises(ParseError) as e:
        tokenize(src, file="bad.dhall")
    assert message in str(e.value)
    assert "bad.dhall" in str(e.value)


def test_syntax_error_reports_expected_tokens() -> None:
    with pytest.raises(ParseError) as e:
        parse_source("let x = in x", file="x.dhall")
    assert "unexpected in" in str(e.value)
    assert "x.dhall:1:9" in str(e.value)
    assert e.value.hint is not None and "expected one of" in e.value.hint


def test_unsupported_import_mode() -> None:
    with pytest.raises(ParseError) as e:
        parse_source("./a.dhall as Json")
    assert "unsupported import mode" in str(e.value)


def test_let_chain_shares_one_in() -> None:
    chained = denote(parse_source("let a = 1 let b = 2 in a"))
    nested = denote(parse_source("let a = 1 in let b = 2 in a"))
    assert chained == nested
    assert isinstance(chained, A.Let)
    assert chained.binding.name == "a"
    assert isinstance(chained.body, A.Let)
    assert chained.body.binding.name == "b"


def test_binding_gaps_surround_the_name() -> None:
    e = parse_source("let  `a b` : Natural = 1 in 2")
    assert isinstance(e, A.Let)
    b = e.binding
    assert b.name == "a b"
    assert b.src0 is not None and b.src1 is not None
    assert (b.src0.start.column, b.src0.end.column) == (4, 6)
    assert (b.src1.start.column, b.src1.end.column) == (11, 12)
    assert isinstance(b.annotation, A.Var)


def test_operator_precedence_and_associativity() -> None:
    e = denote(parse_source("a + b * c + d"))
    assert e == A.BinOp(
        op=A.Operator.PLUS,
        left=A.BinOp(
            op=A.Operator.PLUS,
            left=A.Var(name="a"),
            right=A.BinOp(op=A.Operator.TIMES, left=A.Var(name="b"), right=A.Var(name="c")),
        ),
        right=A.Var(name="d"),
    )


def test_application_binds_tighter_than_operators_and_looser_than_selection() -> None:
    e = denote(parse_source("f x.y ++ g"))
    assert e == A.BinOp(
        op=A.Operator.TEXT_APPEND,
        left=A.App(function=A.Var(name="f"), argument=A.FieldAccess(record=A.Var(name="x"), label="y")),
        right=A.Var(name="g"),
    )


def test_arrows_annotations_and_binders() -> None:
    e = denote(parse_source("\\(x : Natural) -> forall (y : Type) -> y -> x : T"))
    assert e == A.Lambda(
        name="x",
        annotation=A.Var(name="Natural"),
        body=A.Pi(
            name="y",
            annotation=A.Var(name="Type"),
            body=A.Pi(
                name="_",
                annotation=A.Var(name="y"),
                body=A.Annot(expr=A.Var(name="x"), annotation=A.Var(name="T")),
            ),
        ),
    )


def test_literals() -> None:
    e = denote(parse_source('[ 1, +2, -3, 4.5, -6e2, "t ${x} \\" u" ]'))
    assert isinstance(e, A.ListLit)
    assert e.items == (
        A.NaturalLit(value=1),
        A.IntegerLit(value=2),
        A.IntegerLit(value=-3),
        A.DoubleLit(value=4.5),
        A.DoubleLit(value=-600.0),
        A.TextLit(parts=("t ", A.Var(name="x"), ' \\" u')),
    )


def test_records_unions_and_variable_indices() -> None:
    e = denote(parse_source("{ a = x@1, b = {=} } : { a : < A | B : {} >, b : {} }"))
    assert isinstance(e, A.Annot)
    assert e.expr == A.RecordLit(
        fields=(("a", A.Var(name="x", index=1)), ("b", A.RecordLit())),
    )
    assert e.annotation == A.RecordType(
        fields=(
            ("a", A.Union(alternatives=(("A", None), ("B", A.RecordType())))),
            ("b", A.RecordType()),
        ),
    )


def test_imports_are_classified() -> None:
    hash_ = "sha256:" + "ab" * 32
    e = denote(
        parse_source(
            f"[ ./a/b.dhall, ../c, /abs, ~/home, https://example.com/x?y=1, env:HOME, missing, ./d {hash_} as Text ]"
        )
    )
    assert isinstance(e, A.ListLit)
    targets = [item.target for item in e.items]  # type: ignore[attr-defined]
    assert targets == [
        LocalImport(prefix=FilePrefix.HERE, components=("a", "b.dhall")),
        LocalImport(prefix=FilePrefix.PARENT, components=("c",)),
        LocalImport(prefix=FilePrefix.ABSOLUTE, components=("abs",)),
        LocalImport(prefix=FilePrefix.HOME, components=("home",)),
        RemoteImport(scheme="https", authority="example.com", path=("x",), query="y=1"),
        EnvImport(name="HOME"),
        MissingImport(),
        LocalImport(prefix=FilePrefix.HERE, components=("d",)),
    ]
    last = e.items[-1]
    assert isinstance(last, A.Import)
    assert last.hash == hash_
    assert last.mode is A.ImportMode.RAW_TEXT


def test_import_span_covers_hash_on_a_later_line() -> None:
    e = parse_source("./a.dhall\n  sha256:" + "0" * 64)
    assert isinstance(e, A.Import)
    assert e.span is not None
    assert (e.span.start.line, e.span.start.column) == (1, 1)
    assert (e.span.end.line, e.span.end.column) == (2, 74)


def test_denote_erases_every_span() -> None:
    e = denote(parse_source("let x = ./a in { f = x }"))
    assert isinstance(e, A.Let)
    assert e.span is None
    assert e.binding.src0 is None and e.binding.src1 is None
    assert e.binding.value.span is None
    assert all(child.span is None for child in e.body.subexpressions())


def test_parse_file(tmp_path: Path) -> None:
    p = tmp_path / "package.dhall"
    p.write_text("let x = 1 in x\n", encoding="utf-8")
    e = parse_file(p)
    assert e.span is not None
    assert e.span.file == str(p.resolve())
