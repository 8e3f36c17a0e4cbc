# elmcheck/layout.py
"""
Source scanning and off-side rule resolution for Elm.

Elm is indentation sensitive: the arms of a ``case ... of`` and the
bindings of a ``let`` are grouped by column rather than by delimiters.
A PEG grammar cannot see columns, so the source goes through two passes
before it reaches :mod:`elmcheck.grammar`:

1. :func:`scan` splits the text into tokens and comments.  Comment bodies
   are blanked out (newlines kept) so every offset of the original text
   stays valid.
2. :func:`resolve_layout` walks the tokens and inserts three invisible
   marker characters wherever an implicit block opens, separates two
   items, or closes:

   ========  ============  ==============================================
   marker    character     inserted
   ========  ============  ==============================================
   OPEN      ``\\x0e``      before the first token after ``of``/``let``
   SEP       ``\\x1e``      before a line starting at the block's column
   CLOSE     ``\\x0f``      where the block ends
   ========  ============  ==============================================

Top-level declarations form an implicit block at column 1 that is never
opened or closed, only separated.

The :class:`LaidOutSource` returned by :func:`resolve_layout` remembers
where the markers went and maps every offset of the laid-out text back
to a row and column of the original source.
"""

from __future__ import annotations

import logging
import re
from bisect import bisect_left, bisect_right
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .ast_nodes import Comment, Position, SourceRange
from .errors import ElmSyntaxError, SourceSpan

logger = logging.getLogger(__name__)


OPEN = "\x0e"
SEP = "\x1e"
CLOSE = "\x0f"
MARKERS = OPEN + SEP + CLOSE

_SKIPPED = " \t\r\n" + MARKERS

_OPENING_BRACKETS = "([{"

_TOKEN_RE = re.compile(r'''
      (?P<string>"""(?:\\.|[^\\])*?"""|"(?:\\.|[^"\\\n])*")
    | (?P<char>'(?:\\.|[^'\\\n])+')
    | (?P<number>0x[0-9A-Fa-f]+|\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)
    | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<bracket>[()\[\]{}])
    | (?P<comma>,)
    | (?P<op>[+\-*/<>=!&|^%.:?\\~#@$]+)
    | (?P<space>[ \t\r\n]+)
    | (?P<other>.)
''', re.VERBOSE | re.DOTALL)


# ── Tokens ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    start: int
    end: int
    line: int
    column: int
    end_line: int


@dataclass
class ScanResult:
    """Blanked text, layout-relevant tokens and comments of one source."""
    text: str
    tokens: List[Token] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)


def line_starts(text: str) -> List[int]:
    starts = [0]
    starts.extend(m.end() for m in re.finditer("\n", text))
    return starts


def _position(starts: List[int], offset: int) -> Position:
    row = bisect_right(starts, offset)
    return Position(row, offset - starts[row - 1] + 1)


def _block_comment_end(source: str, start: int, file: str,
                       starts: List[int]) -> int:
    """Offset just past the ``-}`` matching the ``{-`` at *start*."""
    depth = 0
    pos = start
    while pos < len(source):
        if source.startswith("{-", pos):
            depth += 1
            pos += 2
        elif source.startswith("-}", pos):
            depth -= 1
            pos += 2
            if depth == 0:
                return pos
        else:
            pos += 1
    where = _position(starts, start)
    raise ElmSyntaxError(
        "unterminated block comment",
        span=SourceSpan(file, where.row, where.column),
        hint="Block comments '{-' must be closed with '-}'",
    )


def scan(source: str, file: str = "<string>") -> ScanResult:
    """
    Tokenize *source* for layout purposes.

    String and char literals are single tokens, so their contents never
    affect layout.  Whitespace is dropped.  Comments are collected with
    their original ranges and replaced by spaces in ``ScanResult.text``.
    """
    starts = line_starts(source)
    pieces: List[str] = []
    result = ScanResult(text="")
    pos = 0
    copied = 0

    while pos < len(source):
        if source.startswith("{-", pos):
            end = _block_comment_end(source, pos, file, starts)
        elif source.startswith("--", pos):
            newline = source.find("\n", pos)
            end = len(source) if newline < 0 else newline
        else:
            match = _TOKEN_RE.match(source, pos)
            kind = match.lastgroup
            end = match.end()
            if kind != "space":
                result.tokens.append(Token(
                    kind=kind,
                    text=match.group(),
                    start=pos,
                    end=end,
                    line=bisect_right(starts, pos),
                    column=pos - starts[bisect_right(starts, pos) - 1] + 1,
                    end_line=bisect_right(starts, end - 1),
                ))
            pos = end
            continue

        text = source[pos:end]
        last = _position(starts, end - 1)
        result.comments.append(Comment(
            text=text,
            range=SourceRange(_position(starts, pos),
                              Position(last.row, last.column + 1)),
        ))
        pieces.append(source[copied:pos])
        pieces.append(re.sub(r"[^\n]", " ", text))
        copied = pos = end

    pieces.append(source[copied:])
    result.text = "".join(pieces)
    logger.debug("scanned %s: %d tokens, %d comments",
                 file, len(result.tokens), len(result.comments))
    return result


# ── Layout ───────────────────────────────────────────────────────

@dataclass
class _Block:
    kind: str      # "top", "of" or "let"
    column: int
    depth: int     # bracket nesting at the block's first token


@dataclass
class LaidOutSource:
    """
    Source text with layout markers inserted.

    ``markers`` holds the offsets of the inserted characters in ``text``,
    in ascending order.
    """
    text: str
    source: str
    markers: List[int]
    starts: List[int]
    comments: List[Comment]
    file: str = "<string>"

    def original_offset(self, offset: int) -> int:
        return offset - bisect_left(self.markers, offset)

    def position(self, offset: int) -> Position:
        """Row and column in the original source of a laid-out offset."""
        return _position(self.starts, min(self.original_offset(offset),
                                          max(len(self.source) - 1, 0)))

    def range(self, start: int, end: int) -> SourceRange:
        """
        Original-source range of the laid-out slice ``[start, end)``.

        Surrounding whitespace and markers are not part of the range.
        """
        text = self.text
        while start < end and text[start] in _SKIPPED:
            start += 1
        while end > start and text[end - 1] in _SKIPPED:
            end -= 1
        if start == end:
            point = self.position(start)
            return SourceRange(point, point)
        last = self.position(end - 1)
        return SourceRange(self.position(start),
                           Position(last.row, last.column + 1))

    def span(self, offset: int) -> SourceSpan:
        point = self.position(offset)
        return SourceSpan(self.file, point.row, point.column)


def _close_to_depth(stack: List[_Block], depth: int, offset: int,
                    insertions: List[Tuple[int, str]]) -> None:
    while len(stack) > 1 and stack[-1].depth >= depth:
        stack.pop()
        insertions.append((offset, CLOSE))


def _close_let(stack: List[_Block], depth: int, offset: int,
               insertions: List[Tuple[int, str]]) -> None:
    """Close the innermost ``let`` opened at *depth* and everything above it."""
    for index in range(len(stack) - 1, 0, -1):
        block = stack[index]
        if block.depth != depth:
            return
        if block.kind == "let":
            for _ in range(len(stack) - index):
                stack.pop()
                insertions.append((offset, CLOSE))
            return


def resolve_layout(source: str, file: str = "<string>") -> LaidOutSource:
    """Scan *source* and insert OPEN / SEP / CLOSE markers."""
    scanned = scan(source, file)
    insertions: List[Tuple[int, str]] = []
    stack = [_Block("top", 1, 0)]
    # lets closed by indentation whose ``in`` is still to come
    awaiting_in: List[_Block] = []
    depth = 0
    pending: Optional[str] = None
    prev_line = 0

    for index, tok in enumerate(scanned.tokens):
        at_line_start = tok.line != prev_line
        prev_line = tok.end_line

        if pending is not None:
            insertions.append((tok.start, OPEN))
            stack.append(_Block(pending, tok.column, depth))
            pending = None
        elif at_line_start and index > 0:
            while len(stack) > 1 and tok.column < stack[-1].column:
                block = stack.pop()
                insertions.append((tok.start, CLOSE))
                if block.kind == "let":
                    awaiting_in.append(block)
            current = stack[-1]
            if (tok.column == current.column and depth == current.depth
                    and tok.text != "in"):
                insertions.append((tok.start, SEP))

        if tok.kind == "bracket":
            if tok.text in _OPENING_BRACKETS:
                depth += 1
            else:
                _close_to_depth(stack, depth, tok.start, insertions)
                depth = max(depth - 1, 0)
        elif tok.kind == "comma":
            if depth > 0:
                _close_to_depth(stack, depth, tok.start, insertions)
        elif tok.kind == "name":
            if tok.text in ("of", "let"):
                pending = tok.text
            elif tok.text == "in":
                if awaiting_in:
                    awaiting_in.pop()
                else:
                    _close_let(stack, depth, tok.start, insertions)

    if scanned.tokens:
        end = scanned.tokens[-1].end
        for _ in range(len(stack) - 1):
            insertions.append((end, CLOSE))

    insertions.sort(key=lambda item: item[0])
    pieces: List[str] = []
    markers: List[int] = []
    copied = 0
    for count, (offset, marker) in enumerate(insertions):
        pieces.append(scanned.text[copied:offset])
        pieces.append(marker)
        markers.append(offset + count)
        copied = offset
    pieces.append(scanned.text[copied:])

    logger.debug("layout of %s: %d markers", file, len(markers))
    return LaidOutSource(
        text="".join(pieces),
        source=source,
        markers=markers,
        starts=line_starts(source),
        comments=scanned.comments,
        file=file,
    )


def render_markers(text: str) -> str:
    """Make the markers of a laid-out text visible, for debugging."""
    return text.replace(OPEN, "{").replace(SEP, ";").replace(CLOSE, "}")


__all__ = [
    "OPEN",
    "SEP",
    "CLOSE",
    "MARKERS",
    "Token",
    "ScanResult",
    "LaidOutSource",
    "scan",
    "resolve_layout",
    "render_markers",
    "line_starts",
]
