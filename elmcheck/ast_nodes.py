# elmcheck/ast_nodes.py
"""
Elm Abstract Syntax Tree node definitions.

Every node is an immutable dataclass carrying the :class:`SourceRange` it
was parsed from.  Rows and columns are 1-based; the end position is
exclusive (it points just past the last character of the node).

The pattern and expression kinds are closed unions (``Pattern`` and
``Expression`` below).  Code that dispatches over them does so through
tables keyed by node class, see :mod:`elmcheck.visitor`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple, Union


# ── Source Positions ─────────────────────────────────────────────

@dataclass(frozen=True, order=True)
class Position:
    """A point in the source: 1-based row and column."""
    row: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"{self.row}:{self.column}"


@dataclass(frozen=True)
class SourceRange:
    """Start (inclusive) and end (exclusive) of a node."""
    start: Position = field(default_factory=Position)
    end: Position = field(default_factory=Position)

    @classmethod
    def of(cls, start_row: int, start_column: int,
           end_row: int, end_column: int) -> "SourceRange":
        return cls(Position(start_row, start_column), Position(end_row, end_column))

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


EMPTY_RANGE = SourceRange()

ModuleName = Tuple[str, ...]


# ── Comments ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class Comment:
    text: str
    range: SourceRange


# ── Patterns ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class WildcardPattern:
    """``_``"""
    range: SourceRange


@dataclass(frozen=True)
class LiteralPattern:
    """Int, float, string, char or unit ``()`` literal."""
    kind: str
    value: Any
    range: SourceRange


@dataclass(frozen=True)
class VarPattern:
    name: str
    range: SourceRange


@dataclass(frozen=True)
class NamedPattern:
    """Constructor pattern, possibly qualified: ``Result.Err e``."""
    module_name: ModuleName
    name: str
    arguments: Tuple["Pattern", ...]
    range: SourceRange

    @property
    def qualified_name(self) -> str:
        return ".".join(self.module_name + (self.name,))


@dataclass(frozen=True)
class ParenthesizedPattern:
    pattern: "Pattern"
    range: SourceRange


@dataclass(frozen=True)
class UnConsPattern:
    """``head :: tail``"""
    head: "Pattern"
    tail: "Pattern"
    range: SourceRange


@dataclass(frozen=True)
class ListPattern:
    elements: Tuple["Pattern", ...]
    range: SourceRange


@dataclass(frozen=True)
class TuplePattern:
    elements: Tuple["Pattern", ...]
    range: SourceRange


@dataclass(frozen=True)
class AsPattern:
    """``pattern as alias``"""
    pattern: "Pattern"
    alias: str
    range: SourceRange


@dataclass(frozen=True)
class RecordPattern:
    """``{ a, b }``"""
    fields: Tuple[str, ...]
    range: SourceRange


Pattern = Union[
    WildcardPattern, LiteralPattern, VarPattern, NamedPattern,
    ParenthesizedPattern, UnConsPattern, ListPattern, TuplePattern,
    AsPattern, RecordPattern,
]

PATTERN_TYPES = (
    WildcardPattern, LiteralPattern, VarPattern, NamedPattern,
    ParenthesizedPattern, UnConsPattern, ListPattern, TuplePattern,
    AsPattern, RecordPattern,
)


# ── Type Annotations ─────────────────────────────────────────────

@dataclass(frozen=True)
class GenericType:
    """Type variable: ``a``, ``msg``."""
    name: str
    range: SourceRange


@dataclass(frozen=True)
class TypeReference:
    """``Maybe Int``, ``Dict.Dict String a``"""
    module_name: ModuleName
    name: str
    arguments: Tuple["TypeAnnotation", ...]
    range: SourceRange


@dataclass(frozen=True)
class UnitType:
    range: SourceRange


@dataclass(frozen=True)
class TupleType:
    elements: Tuple["TypeAnnotation", ...]
    range: SourceRange


@dataclass(frozen=True)
class RecordField:
    name: str
    type_annotation: "TypeAnnotation"
    range: SourceRange


@dataclass(frozen=True)
class RecordType:
    """``{ a : Int }`` or the extensible ``{ r | a : Int }``."""
    fields: Tuple[RecordField, ...]
    range: SourceRange
    extends: Optional[str] = None


@dataclass(frozen=True)
class FunctionType:
    argument: "TypeAnnotation"
    result: "TypeAnnotation"
    range: SourceRange


TypeAnnotation = Union[GenericType, TypeReference, UnitType, TupleType,
                       RecordType, FunctionType]


# ── Expressions ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Literal:
    """Int, float, string, char or unit ``()`` literal."""
    kind: str
    value: Any
    range: SourceRange


@dataclass(frozen=True)
class FunctionOrValue:
    """Reference to a value or constructor, possibly qualified."""
    module_name: ModuleName
    name: str
    range: SourceRange

    @property
    def is_constructor(self) -> bool:
        return self.name[:1].isupper()


@dataclass(frozen=True)
class Application:
    """``f a b``: the function is ``expressions[0]``."""
    expressions: Tuple["Expression", ...]
    range: SourceRange


@dataclass(frozen=True)
class OperatorApplication:
    """Binary operator.  Chains are grouped to the left, without precedence."""
    operator: str
    left: "Expression"
    right: "Expression"
    range: SourceRange


@dataclass(frozen=True)
class PrefixOperator:
    """``(+)``"""
    operator: str
    range: SourceRange


@dataclass(frozen=True)
class Negation:
    expression: "Expression"
    range: SourceRange


@dataclass(frozen=True)
class ParenthesizedExpression:
    expression: "Expression"
    range: SourceRange


@dataclass(frozen=True)
class TupledExpression:
    elements: Tuple["Expression", ...]
    range: SourceRange


@dataclass(frozen=True)
class ListExpression:
    elements: Tuple["Expression", ...]
    range: SourceRange


@dataclass(frozen=True)
class RecordSetter:
    name: str
    expression: "Expression"
    range: SourceRange


@dataclass(frozen=True)
class RecordExpression:
    setters: Tuple[RecordSetter, ...]
    range: SourceRange


@dataclass(frozen=True)
class RecordUpdate:
    """``{ model | count = 1 }``"""
    name: str
    setters: Tuple[RecordSetter, ...]
    range: SourceRange


@dataclass(frozen=True)
class RecordAccess:
    """``model.count``"""
    expression: "Expression"
    field: str
    range: SourceRange


@dataclass(frozen=True)
class RecordAccessFunction:
    """``.count``"""
    field: str
    range: SourceRange


@dataclass(frozen=True)
class IfBlock:
    condition: "Expression"
    then_branch: "Expression"
    else_branch: "Expression"
    range: SourceRange


@dataclass(frozen=True)
class CaseArm:
    pattern: Pattern
    expression: "Expression"


@dataclass(frozen=True)
class CaseExpression:
    subject: "Expression"
    arms: Tuple[CaseArm, ...]
    range: SourceRange


@dataclass(frozen=True)
class LetDestructuring:
    """``( a, b ) = pair`` inside a ``let``."""
    pattern: Pattern
    expression: "Expression"
    range: SourceRange


@dataclass(frozen=True)
class LetExpression:
    declarations: Tuple[Union["FunctionDeclaration", LetDestructuring], ...]
    expression: "Expression"
    range: SourceRange


@dataclass(frozen=True)
class Lambda:
    arguments: Tuple[Pattern, ...]
    expression: "Expression"
    range: SourceRange


Expression = Union[
    Literal, FunctionOrValue, Application, OperatorApplication,
    PrefixOperator, Negation, ParenthesizedExpression, TupledExpression,
    ListExpression, RecordExpression, RecordUpdate, RecordAccess,
    RecordAccessFunction, IfBlock, CaseExpression, LetExpression, Lambda,
]

EXPRESSION_TYPES = (
    Literal, FunctionOrValue, Application, OperatorApplication,
    PrefixOperator, Negation, ParenthesizedExpression, TupledExpression,
    ListExpression, RecordExpression, RecordUpdate, RecordAccess,
    RecordAccessFunction, IfBlock, CaseExpression, LetExpression, Lambda,
)


# ── Declarations ─────────────────────────────────────────────────

@dataclass(frozen=True)
class Signature:
    name: str
    type_annotation: TypeAnnotation
    range: SourceRange


@dataclass(frozen=True)
class FunctionDeclaration:
    name: str
    arguments: Tuple[Pattern, ...]
    expression: Expression
    range: SourceRange
    signature: Optional[Signature] = None


@dataclass(frozen=True)
class ValueConstructor:
    name: str
    arguments: Tuple[TypeAnnotation, ...]
    range: SourceRange


@dataclass(frozen=True)
class CustomTypeDeclaration:
    name: str
    type_variables: Tuple[str, ...]
    constructors: Tuple[ValueConstructor, ...]
    range: SourceRange


@dataclass(frozen=True)
class TypeAliasDeclaration:
    name: str
    type_variables: Tuple[str, ...]
    type_annotation: TypeAnnotation
    range: SourceRange


@dataclass(frozen=True)
class PortDeclaration:
    name: str
    type_annotation: TypeAnnotation
    range: SourceRange


Declaration = Union[FunctionDeclaration, CustomTypeDeclaration,
                    TypeAliasDeclaration, PortDeclaration, Signature]


# ── Module Header & Imports ──────────────────────────────────────

@dataclass(frozen=True)
class ExposedItem:
    """One entry of an exposing list.

    ``kind`` is one of ``"value"``, ``"type"``, ``"open_type"`` (``T(..)``)
    or ``"infix"`` (``(::)``).
    """
    name: str
    kind: str
    range: SourceRange


@dataclass(frozen=True)
class Exposing:
    expose_all: bool
    items: Tuple[ExposedItem, ...]
    range: SourceRange

    def exposes_value(self, name: str) -> bool:
        return self.expose_all or any(
            item.name == name and item.kind == "value" for item in self.items
        )

    def open_types(self) -> Tuple[str, ...]:
        return tuple(item.name for item in self.items if item.kind == "open_type")


@dataclass(frozen=True)
class ModuleHeader:
    module_name: ModuleName
    exposing: Exposing
    range: SourceRange
    is_port_module: bool = False
    is_effect_module: bool = False


@dataclass(frozen=True)
class Import:
    module_name: ModuleName
    range: SourceRange
    alias: Optional[str] = None
    exposing: Optional[Exposing] = None


@dataclass(frozen=True)
class Module:
    """Root node of a parsed ``.elm`` file."""
    header: Optional[ModuleHeader]
    imports: Tuple[Import, ...]
    declarations: Tuple[Declaration, ...]
    comments: Tuple[Comment, ...] = ()
    file: str = "<string>"

    @property
    def name(self) -> ModuleName:
        if self.header is None:
            return ("Main",)
        return self.header.module_name

    def custom_types(self) -> Tuple[CustomTypeDeclaration, ...]:
        return tuple(d for d in self.declarations
                     if isinstance(d, CustomTypeDeclaration))

    def functions(self) -> Tuple[FunctionDeclaration, ...]:
        return tuple(d for d in self.declarations
                     if isinstance(d, FunctionDeclaration))
