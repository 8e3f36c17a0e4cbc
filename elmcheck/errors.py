# elmcheck/errors.py
"""
elmcheck Error Types

Exception hierarchy for everything that can go wrong *around* the
checkers: reading sources, parsing them, loading configuration and
dependency manifests.  The checkers themselves never raise; they only
produce diagnostics.

Error Hierarchy:
────────────────
┌──────────────────────────────────────────────────────────────┐
│  ElmCheckError (base)                                        │
│  ├── ElmSyntaxError   - source text rejected by the grammar  │
│  ├── ConfigError      - malformed elmcheck.json / options    │
│  └── ManifestError    - malformed dependency manifest        │
└──────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Each error carries a code ``ELMC-NNNN``:
  - 1000-1999: Syntax errors
  - 2000-2999: Configuration errors
  - 3000-3999: Manifest errors
  - 9000-9999: Internal errors
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence


class ErrorCode:
    """Structured ``ELMC-NNNN`` error code."""

    __slots__ = ("prefix", "number", "title")

    def __init__(self, number: int, title: str, prefix: str = "ELMC") -> None:
        self.prefix = prefix
        self.number = number
        self.title = title

    @property
    def code(self) -> str:
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.title!r})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class ErrorCodes:
    """Predefined error codes."""

    INVALID_SYNTAX = ErrorCode(1001, "invalid syntax")
    INCOMPLETE_PARSE = ErrorCode(1002, "unparsed trailing input")
    UNREADABLE_SOURCE = ErrorCode(1003, "source file cannot be read")

    INVALID_CONFIG = ErrorCode(2001, "invalid configuration")
    UNKNOWN_OPTION = ErrorCode(2002, "unknown configuration option")

    INVALID_MANIFEST = ErrorCode(3001, "invalid dependency manifest")

    INTERNAL_ERROR = ErrorCode(9001, "internal error")


@dataclass(frozen=True)
class SourceSpan:
    """A file position used to anchor error messages."""

    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if not self.file and self.line == 0:
            return "<unknown location>"
        parts = []
        if self.file:
            parts.append(self.file)
        if self.line > 0:
            parts.append(str(self.line))
            if self.column > 0:
                parts.append(str(self.column))
        return ":".join(parts)


class ElmCheckError(Exception):
    """
    Base exception for all elmcheck errors.

    Carries an :class:`ErrorCode`, an optional :class:`SourceSpan` and an
    optional hint for the user.
    """

    default_code: ErrorCode = ErrorCodes.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.span = span or SourceSpan()
        self.hint = hint

    def to_gcc_format(self) -> str:
        """Format as ``file:line:col: error: message [ELMC-NNNN]``."""
        text = f"{self.span}: error: {self.message} [{self.code}]"
        if self.hint:
            text += f"\n  hint: {self.hint}"
        return text

    def __str__(self) -> str:
        return self.to_gcc_format()


class ElmSyntaxError(ElmCheckError):
    """Source text the Elm grammar does not accept."""

    default_code = ErrorCodes.INVALID_SYNTAX

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        expected: Optional[Sequence[str]] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message, code=code, span=span, hint=hint)
        self.expected = list(expected) if expected else []
        if self.expected and not self.hint:
            if len(self.expected) <= 3:
                self.hint = f"Expected one of: {', '.join(self.expected)}"
            else:
                self.hint = f"Expected one of: {', '.join(self.expected[:3])}, ..."


class ConfigError(ElmCheckError):
    """Malformed configuration file or option value."""

    default_code = ErrorCodes.INVALID_CONFIG


class ManifestError(ElmCheckError):
    """Malformed dependency manifest."""

    default_code = ErrorCodes.INVALID_MANIFEST


__all__ = [
    "ErrorCode",
    "ErrorCodes",
    "SourceSpan",
    "ElmCheckError",
    "ElmSyntaxError",
    "ConfigError",
    "ManifestError",
]
