# tests/test_grammar.py
"""
Tests that the Elm PEG grammar is well-formed and accepts the fundamental
constructs at the grammar level (before visitor transformation).
"""

import pytest
from parsimonious.exceptions import IncompleteParseError, ParseError

from elmcheck.grammar import ELM_GRAMMAR, KEYWORDS
from elmcheck.layout import CLOSE, OPEN, SEP


@pytest.fixture(scope="module")
def grammar():
    return ELM_GRAMMAR


class TestGrammarWellFormed:

    def test_default_rule_is_module(self, grammar):
        assert grammar.default_rule.name == "module"

    def test_key_rules_present(self, grammar):
        for rule in ("module", "module_header", "import_decl", "custom_type_decl",
                     "type_alias_decl", "value_decl", "expr", "case_expr",
                     "let_expr", "pattern", "type_expr"):
            assert rule in grammar, f"Rule {rule!r} missing"

    def test_empty_module(self, grammar):
        assert grammar.parse("") is not None


class TestGrammarNames:

    @pytest.mark.parametrize("name", ["x", "model", "inner", "often", "letter", "type_"])
    def test_lower_name(self, grammar, name):
        assert grammar["lower_name"].parse(name).text == name

    @pytest.mark.parametrize("keyword", sorted(KEYWORDS))
    def test_lower_name_rejects_keywords(self, grammar, keyword):
        with pytest.raises((ParseError, IncompleteParseError)):
            grammar["lower_name"].parse(keyword)

    @pytest.mark.parametrize("name", ["Err", "Result.Err", "Json.Decode.Value"])
    def test_qualified_upper(self, grammar, name):
        assert grammar["qualified_upper"].parse(name).text == name


class TestGrammarLiterals:

    @pytest.mark.parametrize("text", ["0", "42", "0x1F"])
    def test_int(self, grammar, text):
        grammar["int_lit"].parse(text)

    @pytest.mark.parametrize("text", ["3.14", "1.5e3", "2e10"])
    def test_float(self, grammar, text):
        grammar["float_lit"].parse(text)

    @pytest.mark.parametrize("text", ['"hello"', r'"a\"b"', '"""multi\nline"""'])
    def test_string(self, grammar, text):
        grammar["string_lit"].parse(text)

    @pytest.mark.parametrize("text", ["'a'", r"'\n'", r"'\u{1F600}'"])
    def test_char(self, grammar, text):
        grammar["char_lit"].parse(text)

    def test_arrow_is_not_an_operator(self, grammar):
        with pytest.raises((ParseError, IncompleteParseError)):
            grammar["operator"].parse("->")


class TestGrammarPatterns:

    @pytest.mark.parametrize("text", [
        "_",
        "x",
        "Err _",
        "Result.Err _",
        "Err ()",
        "Just (Err _)",
        "Err _ :: list",
        "[ Err _ ]",
        "( _, Err _ )",
        "((Err _) as error)",
        "{ a, b }",
        "\"literal\"",
        "x :: y :: rest",
    ])
    def test_pattern(self, grammar, text):
        assert grammar["pattern"].parse(text).text == text


class TestGrammarTypes:

    @pytest.mark.parametrize("text", [
        "Int",
        "Maybe a",
        "Int -> Result String Int",
        "( Int, String )",
        "()",
        "{ count : Int }",
        "{ model | count : Int }",
        "(a -> b) -> List a -> List b",
        "Dict.Dict String (List Int)",
    ])
    def test_type_expr(self, grammar, text):
        grammar["type_expr"].parse(text)


class TestGrammarExpressions:

    @pytest.mark.parametrize("text", [
        "a |> b |> c",
        "model.count",
        ".count",
        "{ model | count = 1 }",
        "{ a = 1, b = \"x\" }",
        "\\x -> x + 1",
        "if a then b else c",
        "(+)",
        "-x",
        "[ 1, 2, 3 ]",
        "( 1, 2 )",
        "Result.Err \"x\"",
        "f (g x) y",
    ])
    def test_expr(self, grammar, text):
        grammar["expr"].parse(text)

    def test_case_requires_block_markers(self, grammar):
        with pytest.raises((ParseError, IncompleteParseError)):
            grammar["case_expr"].parse("case x of Ok a -> a")

    def test_case_with_markers(self, grammar):
        text = f"case x of {OPEN}Ok a -> a{SEP}Err _ -> 0{CLOSE}"
        grammar["case_expr"].parse(text)

    def test_let_with_markers(self, grammar):
        text = f"let {OPEN}y = 1{SEP}( a, b ) = pair {CLOSE}in y"
        grammar["let_expr"].parse(text)


class TestGrammarDeclarations:

    def test_module_header(self, grammar):
        grammar["module_header"].parse("module Main exposing (main, Model, Msg(..), (|>))")

    def test_port_module_header(self, grammar):
        grammar["module_header"].parse("port module Ports exposing (..)")

    def test_effect_module_header(self, grammar):
        grammar["module_header"].parse(
            "effect module Task where { command = MyCmd } exposing (Task, perform)"
        )

    def test_import(self, grammar):
        grammar["import_decl"].parse("import Json.Decode as D exposing (Decoder, field)")

    def test_custom_type(self, grammar):
        grammar["custom_type_decl"].parse("type Msg a = Click | Load (Result String a)")

    def test_type_alias(self, grammar):
        grammar["type_alias_decl"].parse("type alias Model = { count : Int }")

    def test_separated_top_items(self, grammar):
        grammar.parse(f"module Main exposing (..)\n\n{SEP}x : Int\n{SEP}x = 1\n")
