"""
The configuration language in one place:

- **Token policy**: keyword mapping and the labels that must be quoted
- **Grammar**: `build_dhall_grammar()` producing the LALR(1) grammar used by the parser

This module is meant to be *human scannable*.
"""

from __future__ import annotations

from . import ast as A
from .errors import ParseError
from .grammar import Grammar, NonTerminal, Production, Rhs, Rule, eps, t
from .imports import classify_import
from .parser import gap_between, join_span
from .tokens import Token, TokenKind


# ---------------------------------------------------------------------------
# Tokens / keyword policy
# ---------------------------------------------------------------------------

KEYWORDS: dict[str, TokenKind] = {
    "let": TokenKind.LET,
    "in": TokenKind.IN,
    "if": TokenKind.IF,
    "then": TokenKind.THEN,
    "else": TokenKind.ELSE,
    "forall": TokenKind.FORALL,
    "assert": TokenKind.ASSERT,
    "as": TokenKind.AS,
}

# Spelled as keywords or imports; a label with one of these names needs backticks.
RESERVED_LABELS: frozenset[str] = frozenset(KEYWORDS) | {"missing"}

# Binary operators, lowest precedence first.
OPERATOR_TOKENS: tuple[tuple[TokenKind, A.Operator], ...] = (
    (TokenKind.ALT, A.Operator.IMPORT_ALT),
    (TokenKind.OR, A.Operator.OR),
    (TokenKind.PLUS, A.Operator.PLUS),
    (TokenKind.TEXT_APPEND, A.Operator.TEXT_APPEND),
    (TokenKind.LIST_APPEND, A.Operator.LIST_APPEND),
    (TokenKind.AND, A.Operator.AND),
    (TokenKind.COMBINE, A.Operator.COMBINE),
    (TokenKind.PREFER, A.Operator.PREFER),
    (TokenKind.COMBINE_TYPES, A.Operator.COMBINE_TYPES),
    (TokenKind.TIMES, A.Operator.TIMES),
    (TokenKind.EQUAL, A.Operator.EQUAL),
    (TokenKind.NOT_EQUAL, A.Operator.NOT_EQUAL),
    (TokenKind.EQUIVALENT, A.Operator.EQUIVALENT),
)

IMPORT_MODES: dict[str, A.ImportMode] = {
    "Text": A.ImportMode.RAW_TEXT,
    "Location": A.ImportMode.LOCATION,
}

# ---------------------------------------------------------------------------
# Grammar (semantic, symbolic)
# ---------------------------------------------------------------------------


def _tok(v: object) -> Token:
    if not isinstance(v, Token):
        raise TypeError(f"expected Token, got {type(v)!r}")
    return v


def _expr(v: object) -> A.Expr:
    if not isinstance(v, A.Expr):
        raise TypeError(f"expected expression, got {type(v)!r}")
    return v


def _as_list(v: object) -> list[object]:
    if v is None:
        return []
    if isinstance(v, list):
        return v
    raise TypeError(f"expected list, got {type(v)!r}")


def build_dhall_grammar() -> Grammar:
    productions: list[Production] = []

    def NT(name: str) -> Rule:
        return Rule(head=NonTerminal(name), sink=productions)

    def T(kind: TokenKind) -> Rhs:
        return t(kind)

    # Terminals
    IDENT = T(TokenKind.IDENT)
    NATURAL = T(TokenKind.NATURAL)
    INTEGER = T(TokenKind.INTEGER)
    DOUBLE = T(TokenKind.DOUBLE)
    IMPORT = T(TokenKind.IMPORT)
    HASH = T(TokenKind.HASH)
    TEXT_OPEN = T(TokenKind.TEXT_OPEN)
    TEXT_CHUNK = T(TokenKind.TEXT_CHUNK)
    INTERP = T(TokenKind.INTERP)
    TEXT_CLOSE = T(TokenKind.TEXT_CLOSE)
    LBRACE = T(TokenKind.LBRACE)
    RBRACE = T(TokenKind.RBRACE)
    LBRACKET = T(TokenKind.LBRACKET)
    RBRACKET = T(TokenKind.RBRACKET)
    LPAREN = T(TokenKind.LPAREN)
    RPAREN = T(TokenKind.RPAREN)
    LANGLE = T(TokenKind.LANGLE)
    RANGLE = T(TokenKind.RANGLE)
    COMMA = T(TokenKind.COMMA)
    DOT = T(TokenKind.DOT)
    EQ = T(TokenKind.EQ)
    COLON = T(TokenKind.COLON)
    BAR = T(TokenKind.BAR)
    AT = T(TokenKind.AT)
    ARROW = T(TokenKind.ARROW)
    LAMBDA = T(TokenKind.LAMBDA)

    # Keywords
    LET = T(TokenKind.LET)
    IN = T(TokenKind.IN)
    IF = T(TokenKind.IF)
    THEN = T(TokenKind.THEN)
    ELSE = T(TokenKind.ELSE)
    FORALL = T(TokenKind.FORALL)
    ASSERT = T(TokenKind.ASSERT)
    AS = T(TokenKind.AS)

    # Nonterminals
    File = NT("File")
    Expr = NT("Expr")
    Let = NT("Let")
    Binding = NT("Binding")
    OpLevels = [NT(f"Op{i}_{op.name}") for i, (_, op) in enumerate(OPERATOR_TOKENS)]
    App = NT("App")
    Selector = NT("Selector")
    Primitive = NT("Primitive")
    Var = NT("Var")
    TextLit = NT("TextLit")
    Chunks = NT("Chunks")
    Chunk = NT("Chunk")
    ImportExpr = NT("ImportExpr")
    HashOpt = NT("HashOpt")
    AsOpt = NT("AsOpt")
    Record = NT("Record")
    LitField = NT("LitField")
    LitFieldsTail = NT("LitFieldsTail")
    TypeField = NT("TypeField")
    TypeFieldsTail = NT("TypeFieldsTail")
    Union = NT("Union")
    Alt = NT("Alt")
    AltsTail = NT("AltsTail")
    ListLit = NT("ListLit")
    ItemsTail = NT("ItemsTail")

    # -----------------------------------------------------------------------
    # Semantic actions
    # -----------------------------------------------------------------------
    def act_passthrough(xs: list[object]) -> object:
        return xs[0]

    def act_none(xs: list[object]) -> object:
        return None

    def act_empty_list(xs: list[object]) -> object:
        return []

    def act_list_cons(xs: list[object]) -> object:
        # [head] + tail
        return [xs[0]] + _as_list(xs[1])

    def act_tail_cons(xs: list[object]) -> object:
        # separator, head, tail
        return [xs[1]] + _as_list(xs[2])

    def act_parens(xs: list[object]) -> object:
        return _expr(xs[1])

    def act_lambda(xs: list[object]) -> object:
        return A.Lambda(
            span=join_span(xs[0], xs[7]),
            name=_tok(xs[2]).lexeme,
            annotation=_expr(xs[4]),
            body=_expr(xs[7]),
        )

    def act_forall(xs: list[object]) -> object:
        return A.Pi(
            span=join_span(xs[0], xs[7]),
            name=_tok(xs[2]).lexeme,
            annotation=_expr(xs[4]),
            body=_expr(xs[7]),
        )

    def act_arrow(xs: list[object]) -> object:
        return A.Pi(span=join_span(xs[0], xs[2]), name="_", annotation=_expr(xs[0]), body=_expr(xs[2]))

    def act_annot(xs: list[object]) -> object:
        return A.Annot(span=join_span(xs[0], xs[2]), expr=_expr(xs[0]), annotation=_expr(xs[2]))

    def act_if(xs: list[object]) -> object:
        return A.If(
            span=join_span(xs[0], xs[5]),
            predicate=_expr(xs[1]),
            if_true=_expr(xs[3]),
            if_false=_expr(xs[5]),
        )

    def act_assert(xs: list[object]) -> object:
        return A.Assert(span=join_span(xs[0], xs[2]), annotation=_expr(xs[2]))

    # Bindings reduce to (let token, Binding); the `let` token starts the Let's span.
    def act_binding(xs: list[object]) -> object:
        let_tok, name_tok, eq_tok = _tok(xs[0]), _tok(xs[1]), _tok(xs[2])
        binding = A.Binding(
            name=name_tok.lexeme,
            value=_expr(xs[3]),
            src0=gap_between(let_tok, name_tok),
            src1=gap_between(name_tok, eq_tok),
        )
        return (let_tok, binding)

    def act_binding_annot(xs: list[object]) -> object:
        let_tok, name_tok, colon_tok = _tok(xs[0]), _tok(xs[1]), _tok(xs[2])
        binding = A.Binding(
            name=name_tok.lexeme,
            value=_expr(xs[5]),
            annotation=_expr(xs[3]),
            src0=gap_between(let_tok, name_tok),
            src1=gap_between(name_tok, colon_tok),
        )
        return (let_tok, binding)

    def act_let_in(xs: list[object]) -> object:
        let_tok, binding = xs[0]  # type: ignore[misc]
        return A.Let(span=join_span(let_tok, xs[2]), binding=binding, body=_expr(xs[2]))

    def act_let_chain(xs: list[object]) -> object:
        let_tok, binding = xs[0]  # type: ignore[misc]
        return A.Let(span=join_span(let_tok, xs[1]), binding=binding, body=_expr(xs[1]))

    def binop(op: A.Operator):
        def act(xs: list[object]) -> object:
            return A.BinOp(span=join_span(xs[0], xs[2]), op=op, left=_expr(xs[0]), right=_expr(xs[2]))

        return act

    def act_app(xs: list[object]) -> object:
        return A.App(span=join_span(xs[0], xs[1]), function=_expr(xs[0]), argument=_expr(xs[1]))

    def act_field(xs: list[object]) -> object:
        return A.FieldAccess(span=join_span(xs[0], xs[2]), record=_expr(xs[0]), label=_tok(xs[2]).lexeme)

    def act_natural(xs: list[object]) -> object:
        return A.NaturalLit(span=join_span(xs[0]), value=int(_tok(xs[0]).lexeme))

    def act_integer(xs: list[object]) -> object:
        return A.IntegerLit(span=join_span(xs[0]), value=int(_tok(xs[0]).lexeme))

    def act_double(xs: list[object]) -> object:
        return A.DoubleLit(span=join_span(xs[0]), value=float(_tok(xs[0]).lexeme))

    def act_var(xs: list[object]) -> object:
        return A.Var(span=join_span(xs[0]), name=_tok(xs[0]).lexeme)

    def act_var_index(xs: list[object]) -> object:
        return A.Var(span=join_span(xs[0], xs[2]), name=_tok(xs[0]).lexeme, index=int(_tok(xs[2]).lexeme))

    def act_text(xs: list[object]) -> object:
        return A.TextLit(span=join_span(xs[0], xs[2]), parts=tuple(_as_list(xs[1])))

    def act_chunk_text(xs: list[object]) -> object:
        return _tok(xs[0]).lexeme

    def act_chunk_interp(xs: list[object]) -> object:
        return _expr(xs[1])

    def act_import(xs: list[object]) -> object:
        tok = _tok(xs[0])
        hash_tok = xs[1]
        mode_tok = xs[2]
        try:
            target = classify_import(tok.lexeme)
        except ValueError as e:
            raise ParseError(span=tok.span, message=str(e)) from e
        return A.Import(
            span=join_span(tok, hash_tok, mode_tok),
            target=target,
            hash=_tok(hash_tok).lexeme if hash_tok is not None else None,
            mode=IMPORT_MODES[_tok(mode_tok).lexeme] if mode_tok is not None else A.ImportMode.CODE,
        )

    def act_as(xs: list[object]) -> object:
        mode = _tok(xs[1])
        if mode.lexeme not in IMPORT_MODES:
            raise ParseError(
                span=mode.span,
                message=f"unsupported import mode: {mode.lexeme}",
                hint="use: as Text, or: as Location",
            )
        return mode

    def act_record_type_empty(xs: list[object]) -> object:
        return A.RecordType(span=join_span(xs[0], xs[1]))

    def act_record_lit_empty(xs: list[object]) -> object:
        return A.RecordLit(span=join_span(xs[0], xs[2]))

    def act_record_lit(xs: list[object]) -> object:
        return A.RecordLit(span=join_span(xs[0], xs[3]), fields=tuple([xs[1]] + _as_list(xs[2])))

    def act_record_type(xs: list[object]) -> object:
        return A.RecordType(span=join_span(xs[0], xs[3]), fields=tuple([xs[1]] + _as_list(xs[2])))

    def act_field_pair(xs: list[object]) -> object:
        return (_tok(xs[0]).lexeme, _expr(xs[2]))

    def act_union_empty(xs: list[object]) -> object:
        return A.Union(span=join_span(xs[0], xs[1]))

    def act_union(xs: list[object]) -> object:
        return A.Union(span=join_span(xs[0], xs[3]), alternatives=tuple([xs[1]] + _as_list(xs[2])))

    def act_alt_bare(xs: list[object]) -> object:
        return (_tok(xs[0]).lexeme, None)

    def act_list_empty(xs: list[object]) -> object:
        return A.ListLit(span=join_span(xs[0], xs[1]))

    def act_list(xs: list[object]) -> object:
        return A.ListLit(span=join_span(xs[0], xs[3]), items=tuple([_expr(xs[1])] + _as_list(xs[2])))

    # -----------------------------------------------------------------------
    # Productions (single explicit block; "semantic grammar" style)
    # -----------------------------------------------------------------------

    File |= Expr @ act_passthrough

    # Expressions that extend as far to the right as possible
    Expr |= Let @ act_passthrough
    Expr |= LAMBDA & LPAREN & IDENT & COLON & Expr & RPAREN & ARROW & Expr @ act_lambda
    Expr |= FORALL & LPAREN & IDENT & COLON & Expr & RPAREN & ARROW & Expr @ act_forall
    Expr |= IF & Expr & THEN & Expr & ELSE & Expr @ act_if
    Expr |= ASSERT & COLON & Expr @ act_assert
    Expr |= OpLevels[0] & ARROW & Expr @ act_arrow
    Expr |= OpLevels[0] & COLON & Expr @ act_annot
    Expr |= OpLevels[0] @ act_passthrough

    # let chains: `let a = 1 let b = 2 in c` nests like `let a = 1 in let b = 2 in c`
    Binding |= LET & IDENT & EQ & Expr @ act_binding
    Binding |= LET & IDENT & COLON & Expr & EQ & Expr @ act_binding_annot
    Let |= Binding & IN & Expr @ act_let_in
    Let |= Binding & Let @ act_let_chain

    # Operators: one left-associative level per operator, lowest first
    operands = OpLevels[1:] + [App]
    for (kind, op), level, operand in zip(OPERATOR_TOKENS, OpLevels, operands):
        level |= level & T(kind) & operand @ binop(op)
        level |= operand @ act_passthrough

    App |= App & Selector @ act_app
    App |= Selector @ act_passthrough
    Selector |= Selector & DOT & IDENT @ act_field
    Selector |= Primitive @ act_passthrough

    Primitive |= NATURAL @ act_natural
    Primitive |= INTEGER @ act_integer
    Primitive |= DOUBLE @ act_double
    Primitive |= Var | TextLit | ImportExpr | Record | Union | ListLit @ act_passthrough
    Primitive |= LPAREN & Expr & RPAREN @ act_parens

    Var |= IDENT @ act_var
    Var |= IDENT & AT & NATURAL @ act_var_index

    # Text
    TextLit |= TEXT_OPEN & Chunks & TEXT_CLOSE @ act_text
    Chunks |= Chunk & Chunks @ act_list_cons
    Chunks |= eps() @ act_empty_list
    Chunk |= TEXT_CHUNK @ act_chunk_text
    Chunk |= INTERP & Expr & RBRACE @ act_chunk_interp

    # Imports
    ImportExpr |= IMPORT & HashOpt & AsOpt @ act_import
    HashOpt |= HASH @ act_passthrough
    HashOpt |= eps() @ act_none
    AsOpt |= AS & IDENT @ act_as
    AsOpt |= eps() @ act_none

    # Records
    Record |= LBRACE & RBRACE @ act_record_type_empty
    Record |= LBRACE & EQ & RBRACE @ act_record_lit_empty
    Record |= LBRACE & LitField & LitFieldsTail & RBRACE @ act_record_lit
    Record |= LBRACE & TypeField & TypeFieldsTail & RBRACE @ act_record_type
    LitField |= IDENT & EQ & Expr @ act_field_pair
    LitFieldsTail |= COMMA & LitField & LitFieldsTail @ act_tail_cons
    LitFieldsTail |= eps() @ act_empty_list
    TypeField |= IDENT & COLON & Expr @ act_field_pair
    TypeFieldsTail |= COMMA & TypeField & TypeFieldsTail @ act_tail_cons
    TypeFieldsTail |= eps() @ act_empty_list

    # Unions
    Union |= LANGLE & RANGLE @ act_union_empty
    Union |= LANGLE & Alt & AltsTail & RANGLE @ act_union
    Alt |= IDENT @ act_alt_bare
    Alt |= IDENT & COLON & Expr @ act_field_pair
    AltsTail |= BAR & Alt & AltsTail @ act_tail_cons
    AltsTail |= eps() @ act_empty_list

    # Lists
    ListLit |= LBRACKET & RBRACKET @ act_list_empty
    ListLit |= LBRACKET & Expr & ItemsTail & RBRACKET @ act_list
    ItemsTail |= COMMA & Expr & ItemsTail @ act_tail_cons
    ItemsTail |= eps() @ act_empty_list

    return Grammar(start=File.head, productions=tuple(productions))
