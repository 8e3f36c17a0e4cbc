# elmcheck/grammar.py
"""
Parsimonious PEG grammar for Elm 0.19 source.

The grammar runs on *laid-out* text (see :mod:`elmcheck.layout`): the
implicit blocks of ``case ... of`` and ``let ... in`` and the sequence of
top-level declarations are delimited by the OPEN (``\\x0e``), SEP
(``\\x1e``) and CLOSE (``\\x0f``) marker characters, so the rules below
never need to look at columns.  Whitespace (``_`` and ``__``) does not
include the markers.

Binary operators are parsed as a flat chain; the AST builder groups the
chain to the left without applying precedence.

Depends on:
    - parsimonious (PEG parser)
"""

from __future__ import annotations

import logging

from parsimonious.grammar import Grammar

logger = logging.getLogger(__name__)


KEYWORDS = frozenset({
    "case", "of", "let", "in", "if", "then", "else", "type", "alias",
    "module", "import", "exposing", "as", "port",
})


# ═══════════════════════════════════════════════════════════════════
#  ELM GRAMMAR (Parsimonious PEG)
# ═══════════════════════════════════════════════════════════════════

ELM_GRAMMAR = Grammar(r'''
    # ─────────────────────────────────────────────────────────────
    # Module Structure
    # ─────────────────────────────────────────────────────────────

    module              = _ (top_item (_ SEP _ top_item)*)? _
    top_item            = module_header / import_decl / port_decl
                        / type_alias_decl / custom_type_decl
                        / signature / value_decl

    module_header       = module_kind? MODULE __ module_name effect_where? _ EXPOSING _ exposing
    module_kind         = (PORT / EFFECT) __
    effect_where        = __ WHERE _ "{" ~r"[^}]*" "}"
    module_name         = ~r"[A-Z][A-Za-z0-9_]*(\.[A-Z][A-Za-z0-9_]*)*"

    exposing            = "(" _ exposing_body _ ")"
    exposing_body       = exposing_all / exposed_list
    exposing_all        = ".."
    exposed_list        = exposed_item (_ "," _ exposed_item)*
    exposed_item        = infix_item / open_type_item / upper_name / lower_name
    infix_item          = "(" _ operator _ ")"
    open_type_item      = upper_name _ "(" _ ".." _ ")"

    import_decl         = IMPORT __ module_name import_alias? import_exposing?
    import_alias        = __ AS __ upper_name
    import_exposing     = _ EXPOSING _ exposing

    # ─────────────────────────────────────────────────────────────
    # Type Declarations
    # ─────────────────────────────────────────────────────────────

    custom_type_decl    = TYPE __ upper_name type_vars _ "=" _ value_constructor constructor_rest
    constructor_rest    = (_ "|" _ value_constructor)*
    type_vars           = (__ lower_name)*
    value_constructor   = upper_name (_ type_atom)*
    type_alias_decl     = TYPE __ ALIAS __ upper_name type_vars _ "=" _ type_expr

    # ─────────────────────────────────────────────────────────────
    # Type Annotations
    # ─────────────────────────────────────────────────────────────

    type_expr           = type_app (_ "->" _ type_expr)?
    type_app            = type_ctor_app / type_atom
    type_ctor_app       = qualified_upper (_ type_atom)+
    type_atom           = unit / tuple_type / paren_type / record_type
                        / qualified_upper / lower_name
    tuple_type          = "(" _ type_expr (_ "," _ type_expr)+ _ ")"
    paren_type          = "(" _ type_expr _ ")"
    record_type         = "{" _ record_extends? record_type_fields? _ "}"
    record_extends      = lower_name _ "|" _
    record_type_fields  = record_field_type (_ "," _ record_field_type)*
    record_field_type   = lower_name _ ":" _ type_expr

    # ─────────────────────────────────────────────────────────────
    # Value Declarations
    # ─────────────────────────────────────────────────────────────

    signature           = lower_name _ ":" _ type_expr
    port_decl           = PORT __ lower_name _ ":" _ type_expr
    value_decl          = lower_name function_args _ "=" _ expr
    function_args       = (_ pattern_atom)*

    # ─────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────

    expr                = operand (_ operator _ operand)*
    operand             = lambda_expr / if_expr / case_expr / let_expr
                        / negation / application
    negation            = "-" postfix_atom
    application         = postfix_atom (_ postfix_atom)*
    postfix_atom        = atom record_access*
    record_access       = ~r"\.[a-z][A-Za-z0-9_]*"
    atom                = literal / unit / tuple_expr / prefix_operator
                        / paren_expr / list_expr / record_update / record_expr
                        / accessor_function / qualified_ref

    tuple_expr          = "(" _ expr (_ "," _ expr)+ _ ")"
    prefix_operator     = "(" _ operator _ ")"
    paren_expr          = "(" _ expr _ ")"
    list_expr           = "[" _ expr_list? _ "]"
    expr_list           = expr (_ "," _ expr)*
    record_update       = "{" _ lower_name _ "|" _ record_setters _ "}"
    record_expr         = "{" _ record_setters? _ "}"
    record_setters      = record_setter (_ "," _ record_setter)*
    record_setter       = lower_name _ "=" _ expr
    accessor_function   = ~r"\.[a-z][A-Za-z0-9_]*"
    qualified_ref       = !keyword ~r"([A-Z][A-Za-z0-9_]*\.)*[A-Za-z][A-Za-z0-9_]*"

    if_expr             = IF _ expr _ THEN _ expr _ ELSE _ expr
    case_expr           = CASE _ expr _ OF _ OPEN _ case_arm (_ SEP _ case_arm)* _ CLOSE
    case_arm            = pattern _ "->" _ expr
    let_expr            = LET _ OPEN _ let_item (_ SEP _ let_item)* _ CLOSE _ IN _ expr
    let_item            = signature / value_decl / let_destructuring
    let_destructuring   = pattern _ "=" _ expr
    lambda_expr         = "\\" _ pattern_atom (_ pattern_atom)* _ "->" _ expr

    # ─────────────────────────────────────────────────────────────
    # Patterns
    # ─────────────────────────────────────────────────────────────

    pattern             = cons_pattern as_alias*
    as_alias            = __ AS __ lower_name
    cons_pattern        = app_pattern (_ "::" _ cons_pattern)?
    app_pattern         = ctor_with_args / pattern_atom
    ctor_with_args      = qualified_upper (_ pattern_atom)+
    pattern_atom        = wildcard / unit / literal / tuple_pattern / paren_pattern
                        / list_pattern / record_pattern / qualified_upper / lower_name
    wildcard            = ~r"_(?![A-Za-z0-9_])"
    tuple_pattern       = "(" _ pattern (_ "," _ pattern)+ _ ")"
    paren_pattern       = "(" _ pattern _ ")"
    list_pattern        = "[" _ pattern_list? _ "]"
    pattern_list        = pattern (_ "," _ pattern)*
    record_pattern      = "{" _ record_pattern_fields? _ "}"
    record_pattern_fields = lower_name (_ "," _ lower_name)*

    # ─────────────────────────────────────────────────────────────
    # Literals & Names
    # ─────────────────────────────────────────────────────────────

    literal             = float_lit / int_lit / string_lit / char_lit
    float_lit           = ~r"\d+(\.\d+([eE][+-]?\d+)?|[eE][+-]?\d+)"
    int_lit             = ~r"0x[0-9A-Fa-f]+|\d+"
    string_lit          = ~r'"""(?:\\.|[^\\])*?"""'s / ~r'"(?:\\.|[^"\\\n])*"'
    char_lit            = ~r"'(?:\\.|[^'\\\n])+'"
    unit                = "(" _ ")"

    operator            = ~r"\|>|<\||>>|<<|==|/=|<=|>=|&&|\|\||\+\+|::|<\?>|\|\.|\|=|</>|//|\^|\+|-(?![>\-])|\*|/|<|>|%"

    lower_name          = !keyword ~r"[a-z][A-Za-z0-9_]*"
    upper_name          = ~r"[A-Z][A-Za-z0-9_]*"
    qualified_upper     = ~r"([A-Z][A-Za-z0-9_]*\.)*[A-Z][A-Za-z0-9_]*"
    keyword             = ~r"(case|of|let|in|if|then|else|type|alias|module|import|exposing|as|port)(?![A-Za-z0-9_])"

    # ─────────────────────────────────────────────────────────────
    # Keywords
    # ─────────────────────────────────────────────────────────────

    MODULE              = ~r"module(?![A-Za-z0-9_])"
    PORT                = ~r"port(?![A-Za-z0-9_])"
    EFFECT              = ~r"effect(?![A-Za-z0-9_])"
    WHERE               = ~r"where(?![A-Za-z0-9_])"
    EXPOSING            = ~r"exposing(?![A-Za-z0-9_])"
    IMPORT              = ~r"import(?![A-Za-z0-9_])"
    AS                  = ~r"as(?![A-Za-z0-9_])"
    TYPE                = ~r"type(?![A-Za-z0-9_])"
    ALIAS               = ~r"alias(?![A-Za-z0-9_])"
    CASE                = ~r"case(?![A-Za-z0-9_])"
    OF                  = ~r"of(?![A-Za-z0-9_])"
    LET                 = ~r"let(?![A-Za-z0-9_])"
    IN                  = ~r"in(?![A-Za-z0-9_])"
    IF                  = ~r"if(?![A-Za-z0-9_])"
    THEN                = ~r"then(?![A-Za-z0-9_])"
    ELSE                = ~r"else(?![A-Za-z0-9_])"

    # ─────────────────────────────────────────────────────────────
    # Layout Markers & Whitespace
    # ─────────────────────────────────────────────────────────────

    OPEN                = ~r"\x0e"
    SEP                 = ~r"\x1e"
    CLOSE               = ~r"\x0f"
    __                  = ~r"[ \t\r\n]+"
    _                   = ~r"[ \t\r\n]*"
''')


__all__ = ["ELM_GRAMMAR", "KEYWORDS"]
