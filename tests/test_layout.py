# tests/test_layout.py
"""
Tests for the scanner and the off-side rule pass that inserts block
markers before the grammar runs.
"""

import pytest

from elmcheck.ast_nodes import Position, SourceRange
from elmcheck.errors import ElmSyntaxError
from elmcheck.layout import (
    CLOSE,
    OPEN,
    SEP,
    render_markers,
    resolve_layout,
    scan,
)


CASE_SOURCE = (
    "f x =\n"
    "    case x of\n"
    "        Ok a ->\n"
    "            a\n"
    "\n"
    "        Err _ ->\n"
    "            0\n"
)


def laid_out(source):
    return render_markers(resolve_layout(source).text)


class TestScan:

    def test_tokens_skip_whitespace(self):
        result = scan("a = 1\n")
        assert [t.text for t in result.tokens] == ["a", "=", "1"]
        assert [t.kind for t in result.tokens] == ["name", "op", "number"]

    def test_token_positions(self):
        result = scan("a =\n    b\n")
        b = result.tokens[-1]
        assert (b.line, b.column) == (2, 5)

    def test_line_comment_is_blanked(self):
        result = scan("a = 1 -- note\n")
        assert result.text == "a = 1 " + " " * len("-- note") + "\n"
        assert [t.text for t in result.tokens] == ["a", "=", "1"]

    def test_line_comment_range(self):
        result = scan("a = 1 -- note\n")
        assert len(result.comments) == 1
        comment = result.comments[0]
        assert comment.text == "-- note"
        assert comment.range == SourceRange.of(1, 7, 1, 14)

    def test_nested_block_comment(self):
        result = scan("{- a {- b -} c -}\nx = 1")
        assert len(result.comments) == 1
        assert result.comments[0].text == "{- a {- b -} c -}"
        assert result.tokens[0].text == "x"
        assert result.tokens[0].line == 2

    def test_block_comment_keeps_newlines(self):
        source = "{- one\ntwo -}\nx = 1"
        result = scan(source)
        assert len(result.text) == len(source)
        assert result.text.count("\n") == source.count("\n")

    def test_unterminated_block_comment(self):
        with pytest.raises(ElmSyntaxError) as exc_info:
            scan("{- oops\nx = 1", file="Bad.elm")
        assert exc_info.value.span.file == "Bad.elm"
        assert exc_info.value.span.line == 1

    def test_string_is_single_token(self):
        result = scan('x = "case y of"\n')
        assert [t.kind for t in result.tokens] == ["name", "op", "string"]

    def test_triple_quoted_string(self):
        result = scan('x = """one\nof\ntwo"""\n')
        assert result.tokens[-1].kind == "string"
        assert result.tokens[-1].end_line == 3


class TestResolveLayout:

    def test_case_block(self):
        assert laid_out(CASE_SOURCE) == (
            "f x =\n"
            "    case x of\n"
            "        {Ok a ->\n"
            "            a\n"
            "\n"
            "        ;Err _ ->\n"
            "            0}\n"
        )

    def test_top_level_separators(self):
        assert laid_out("a = 1\nb = 2\n") == "a = 1\n;b = 2\n"

    def test_first_declaration_has_no_separator(self):
        assert not resolve_layout("a = 1\n").markers

    def test_continuation_lines_are_not_separated(self):
        assert laid_out("a =\n    1\n") == "a =\n    1\n"

    def test_inline_let(self):
        assert laid_out("x = let y = 1 in y") == "x = let {y = 1 }in y"

    def test_let_closed_by_indentation(self):
        source = "v =\n    let\n        y = 1\n    in\n    y\n"
        assert laid_out(source) == "v =\n    let\n        {y = 1\n    }in\n    y\n"

    def test_let_items_separated(self):
        source = "v =\n    let\n        a = 1\n        b = 2\n    in\n    a\n"
        assert laid_out(source) == (
            "v =\n    let\n        {a = 1\n        ;b = 2\n    }in\n    a\n"
        )

    def test_case_closed_by_comma(self):
        assert laid_out("v = ( case x of A -> 1, 2 )") == "v = ( case x of {A -> 1}, 2 )"

    def test_case_closed_by_bracket(self):
        assert laid_out("v = ( case x of A -> 1 )") == "v = ( case x of {A -> 1 })"

    def test_nested_case_closes_before_outer_separator(self):
        source = (
            "v =\n"
            "    case a of\n"
            "        Ok b ->\n"
            "            case b of\n"
            "                Just c ->\n"
            "                    c\n"
            "\n"
            "                Nothing ->\n"
            "                    0\n"
            "\n"
            "        Err _ ->\n"
            "            1\n"
        )
        text = resolve_layout(source).text
        assert text.count(OPEN) == 2
        assert text.count(CLOSE) == 2
        assert text.count(SEP) == 2
        assert CLOSE + SEP + "Err" in text

    def test_keywords_inside_strings_ignored(self):
        assert not resolve_layout('x = "of let in"\n').markers

    def test_markers_are_ascending_offsets(self):
        result = resolve_layout(CASE_SOURCE)
        assert result.markers == sorted(result.markers)
        for offset in result.markers:
            assert result.text[offset] in (OPEN, SEP, CLOSE)


@pytest.fixture(scope="module")
def layout():
    return resolve_layout(CASE_SOURCE)


class TestPositionMapping:

    def test_original_offset_skips_markers(self, layout):
        offset = layout.text.index("Err")
        assert layout.source[layout.original_offset(offset):].startswith("Err")

    def test_position(self, layout):
        assert layout.position(layout.text.index("Err")) == Position(6, 9)

    def test_range_end_is_exclusive(self, layout):
        start = layout.text.index("Err")
        assert layout.range(start, start + len("Err _")) == SourceRange.of(6, 9, 6, 14)

    def test_range_trims_markers_and_whitespace(self, layout):
        start = layout.text.index("Err")
        assert layout.range(start - 2, start + len("Err _ ")) == SourceRange.of(6, 9, 6, 14)

    def test_span(self, layout):
        span = layout.span(layout.text.index("Ok"))
        assert (span.line, span.column) == (3, 9)
