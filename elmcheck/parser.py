# elmcheck/parser.py
"""
Elm source → AST.

:func:`parse_module` runs the layout pass, matches the laid-out text
against :data:`~elmcheck.grammar.ELM_GRAMMAR` and turns the parse tree
into the frozen nodes of :mod:`elmcheck.ast_nodes` with
:class:`ElmASTBuilder`.  Every node range is expressed in coordinates of
the original source.

Usage::

    from elmcheck.parser import parse_module

    module = parse_module('''
    module Main exposing (main)

    main =
        case load () of
            Ok value ->
                value

            Err _ ->
                0
    ''')
"""

from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Optional, Tuple, Union

from parsimonious.exceptions import IncompleteParseError, ParseError
from parsimonious.nodes import Node, NodeVisitor

from .ast_nodes import (
    EXPRESSION_TYPES,
    PATTERN_TYPES,
    Application,
    AsPattern,
    CaseArm,
    CaseExpression,
    CustomTypeDeclaration,
    ExposedItem,
    Exposing,
    FunctionDeclaration,
    FunctionOrValue,
    FunctionType,
    GenericType,
    IfBlock,
    Import,
    Lambda,
    LetDestructuring,
    LetExpression,
    ListExpression,
    ListPattern,
    Literal,
    LiteralPattern,
    Module,
    ModuleHeader,
    NamedPattern,
    Negation,
    OperatorApplication,
    ParenthesizedExpression,
    ParenthesizedPattern,
    PortDeclaration,
    PrefixOperator,
    RecordAccess,
    RecordAccessFunction,
    RecordExpression,
    RecordField,
    RecordPattern,
    RecordSetter,
    RecordType,
    RecordUpdate,
    Signature,
    SourceRange,
    TupledExpression,
    TuplePattern,
    TupleType,
    TypeAliasDeclaration,
    TypeReference,
    UnConsPattern,
    UnitType,
    ValueConstructor,
    VarPattern,
    WildcardPattern,
)
from .errors import ElmCheckError, ElmSyntaxError, ErrorCodes, SourceSpan
from .grammar import ELM_GRAMMAR
from .layout import LaidOutSource, resolve_layout

logger = logging.getLogger(__name__)


TYPE_ANNOTATION_TYPES = (
    GenericType, TypeReference, UnitType, TupleType, RecordType, FunctionType,
)

_TOP_LEVEL_TYPES = (
    ModuleHeader, Import, FunctionDeclaration, CustomTypeDeclaration,
    TypeAliasDeclaration, PortDeclaration, Signature,
)


# ─────────────────────────────────────────────────────────────
# Intermediate values
# ─────────────────────────────────────────────────────────────

class LowerName(str):
    """A lowercase identifier as matched by ``lower_name``."""


class UpperName(str):
    """An unqualified uppercase identifier as matched by ``upper_name``."""


@dataclass(frozen=True)
class _QualifiedUpper:
    module_name: Tuple[str, ...]
    name: str


@dataclass(frozen=True)
class _FieldAccess:
    field: str
    range: SourceRange


@dataclass(frozen=True)
class _Alias:
    name: str
    range: SourceRange


_EXPOSE_ALL = object()

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "'": "'", "\\": "\\"}
_ESCAPE_RE = re.compile(r"\\(u\{[0-9A-Fa-f]+\}|.)", re.DOTALL)


def _unescape(body: str) -> str:
    def replace(match):
        code = match.group(1)
        if code.startswith("u{"):
            return chr(int(code[2:-1], 16))
        return _ESCAPES.get(code, code)
    return _ESCAPE_RE.sub(replace, body)


def _flatten(items: Any, types: Union[type, Tuple[type, ...]]) -> List[Any]:
    """Collect the values of *types* from arbitrarily nested child lists."""
    found: List[Any] = []
    stack = [items]
    while stack:
        item = stack.pop()
        if isinstance(item, list):
            stack.extend(reversed(item))
        elif isinstance(item, types):
            found.append(item)
    return found


def _first(items: Any, types: Union[type, Tuple[type, ...]]) -> Any:
    found = _flatten(items, types)
    return found[0] if found else None


def _attach_signatures(declarations: Iterable[Any]) -> List[Any]:
    """Fold each ``name : type`` into the declaration of ``name`` that follows it."""
    result: List[Any] = []
    pending: Optional[Signature] = None
    for decl in declarations:
        if pending is not None:
            if isinstance(decl, FunctionDeclaration) and decl.name == pending.name:
                decl = dataclasses.replace(decl, signature=pending)
            else:
                result.append(pending)
            pending = None
        if isinstance(decl, Signature):
            pending = decl
        else:
            result.append(decl)
    if pending is not None:
        result.append(pending)
    return result


# ═══════════════════════════════════════════════════════════════════
#  PARSE TREE → AST
# ═══════════════════════════════════════════════════════════════════

class ElmASTBuilder(NodeVisitor):
    """Transforms a Parsimonious parse tree of laid-out Elm into the AST."""

    unwrapped_exceptions = (ElmCheckError,)

    def __init__(self, source: LaidOutSource):
        self.source = source

    def _range(self, node: Node) -> SourceRange:
        return self.source.range(node.start, node.end)

    def generic_visit(self, node, visited_children):
        return visited_children or node

    # ─────────────────────────────────────────────────────────────
    # Module
    # ─────────────────────────────────────────────────────────────

    def visit_module(self, node, visited_children):
        header = None
        imports: List[Import] = []
        declarations: List[Any] = []
        for item in _flatten(visited_children, _TOP_LEVEL_TYPES):
            if isinstance(item, ModuleHeader):
                header = item
            elif isinstance(item, Import):
                imports.append(item)
            else:
                declarations.append(item)
        return Module(
            header=header,
            imports=tuple(imports),
            declarations=tuple(_attach_signatures(declarations)),
            comments=tuple(self.source.comments),
            file=self.source.file,
        )

    def visit_top_item(self, node, visited_children):
        return visited_children[0]

    def visit_module_header(self, node, visited_children):
        _, _, _, name, _, _, _, _, exposing = visited_children
        kind = node.children[0].text.strip()
        return ModuleHeader(
            module_name=name,
            exposing=exposing,
            range=self._range(node),
            is_port_module=kind == "port",
            is_effect_module=kind == "effect",
        )

    def visit_module_name(self, node, visited_children):
        return tuple(node.text.split("."))

    def visit_exposing(self, node, visited_children):
        _, _, body, _, _ = visited_children
        if body is _EXPOSE_ALL:
            return Exposing(True, (), self._range(node))
        return Exposing(False, tuple(_flatten(body, ExposedItem)), self._range(node))

    def visit_exposing_body(self, node, visited_children):
        return visited_children[0]

    def visit_exposing_all(self, node, visited_children):
        return _EXPOSE_ALL

    def visit_exposed_item(self, node, visited_children):
        item = visited_children[0]
        if isinstance(item, ExposedItem):
            return item
        kind = "type" if isinstance(item, UpperName) else "value"
        return ExposedItem(str(item), kind, self._range(node))

    def visit_infix_item(self, node, visited_children):
        _, _, operator, _, _ = visited_children
        return ExposedItem(operator, "infix", self._range(node))

    def visit_open_type_item(self, node, visited_children):
        name = visited_children[0]
        return ExposedItem(str(name), "open_type", self._range(node))

    # ─────────────────────────────────────────────────────────────
    # Imports
    # ─────────────────────────────────────────────────────────────

    def visit_import_decl(self, node, visited_children):
        _, _, name, alias, exposing = visited_children
        alias_name = _first(alias, UpperName)
        return Import(
            module_name=name,
            range=self._range(node),
            alias=str(alias_name) if alias_name is not None else None,
            exposing=_first(exposing, Exposing),
        )

    def visit_import_alias(self, node, visited_children):
        return visited_children[-1]

    def visit_import_exposing(self, node, visited_children):
        return visited_children[-1]

    # ─────────────────────────────────────────────────────────────
    # Type Declarations
    # ─────────────────────────────────────────────────────────────

    def visit_custom_type_decl(self, node, visited_children):
        _, _, name, type_vars, _, _, _, first, rest = visited_children
        return CustomTypeDeclaration(
            name=str(name),
            type_variables=type_vars,
            constructors=(first,) + tuple(_flatten(rest, ValueConstructor)),
            range=self._range(node),
        )

    def visit_type_vars(self, node, visited_children):
        return tuple(str(name) for name in _flatten(visited_children, LowerName))

    def visit_value_constructor(self, node, visited_children):
        name, arguments = visited_children
        return ValueConstructor(
            name=str(name),
            arguments=tuple(_flatten(arguments, TYPE_ANNOTATION_TYPES)),
            range=self._range(node),
        )

    def visit_type_alias_decl(self, node, visited_children):
        _, _, _, _, name, type_vars, _, _, _, annotation = visited_children
        return TypeAliasDeclaration(str(name), type_vars, annotation, self._range(node))

    # ─────────────────────────────────────────────────────────────
    # Type Annotations
    # ─────────────────────────────────────────────────────────────

    def visit_type_expr(self, node, visited_children):
        argument, rest = visited_children
        result = _first(rest, TYPE_ANNOTATION_TYPES)
        if result is None:
            return argument
        return FunctionType(argument, result, self._range(node))

    def visit_type_app(self, node, visited_children):
        return visited_children[0]

    def visit_type_ctor_app(self, node, visited_children):
        ctor, arguments = visited_children
        return TypeReference(
            module_name=ctor.module_name,
            name=ctor.name,
            arguments=tuple(_flatten(arguments, TYPE_ANNOTATION_TYPES)),
            range=self._range(node),
        )

    def visit_type_atom(self, node, visited_children):
        child = visited_children[0]
        if isinstance(child, _QualifiedUpper):
            return TypeReference(child.module_name, child.name, (), self._range(node))
        if isinstance(child, LowerName):
            return GenericType(str(child), self._range(node))
        if isinstance(child, Literal):
            return UnitType(self._range(node))
        return child

    def visit_tuple_type(self, node, visited_children):
        return TupleType(tuple(_flatten(visited_children, TYPE_ANNOTATION_TYPES)),
                         self._range(node))

    def visit_paren_type(self, node, visited_children):
        _, _, inner, _, _ = visited_children
        return inner

    def visit_record_type(self, node, visited_children):
        _, _, extends, fields, _, _ = visited_children
        base = _first(extends, LowerName)
        return RecordType(
            fields=tuple(_flatten(fields, RecordField)),
            range=self._range(node),
            extends=str(base) if base is not None else None,
        )

    def visit_record_extends(self, node, visited_children):
        return visited_children[0]

    def visit_record_field_type(self, node, visited_children):
        name, _, _, _, annotation = visited_children
        return RecordField(str(name), annotation, self._range(node))

    # ─────────────────────────────────────────────────────────────
    # Value Declarations
    # ─────────────────────────────────────────────────────────────

    def visit_signature(self, node, visited_children):
        name, _, _, _, annotation = visited_children
        return Signature(str(name), annotation, self._range(node))

    def visit_port_decl(self, node, visited_children):
        _, _, name, _, _, _, annotation = visited_children
        return PortDeclaration(str(name), annotation, self._range(node))

    def visit_value_decl(self, node, visited_children):
        name, arguments, _, _, _, expression = visited_children
        return FunctionDeclaration(str(name), arguments, expression, self._range(node))

    def visit_function_args(self, node, visited_children):
        return tuple(_flatten(visited_children, PATTERN_TYPES))

    # ─────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────

    def visit_expr(self, node, visited_children):
        result, rest = visited_children
        if not isinstance(rest, list):
            return result
        for _, operator, _, operand in rest:
            result = OperatorApplication(
                operator, result, operand,
                SourceRange(result.range.start, operand.range.end),
            )
        return result

    def visit_operand(self, node, visited_children):
        return visited_children[0]

    def visit_operator(self, node, visited_children):
        return node.text

    def visit_negation(self, node, visited_children):
        _, inner = visited_children
        return Negation(inner, self._range(node))

    def visit_application(self, node, visited_children):
        function, rest = visited_children
        arguments = _flatten(rest, EXPRESSION_TYPES)
        if not arguments:
            return function
        return Application((function,) + tuple(arguments), self._range(node))

    def visit_postfix_atom(self, node, visited_children):
        result, accesses = visited_children
        for access in _flatten(accesses, _FieldAccess):
            result = RecordAccess(
                result, access.field,
                SourceRange(result.range.start, access.range.end),
            )
        return result

    def visit_record_access(self, node, visited_children):
        return _FieldAccess(node.text[1:], self._range(node))

    def visit_atom(self, node, visited_children):
        return visited_children[0]

    def visit_tuple_expr(self, node, visited_children):
        return TupledExpression(tuple(_flatten(visited_children, EXPRESSION_TYPES)),
                                self._range(node))

    def visit_prefix_operator(self, node, visited_children):
        _, _, operator, _, _ = visited_children
        return PrefixOperator(operator, self._range(node))

    def visit_paren_expr(self, node, visited_children):
        _, _, inner, _, _ = visited_children
        return ParenthesizedExpression(inner, self._range(node))

    def visit_list_expr(self, node, visited_children):
        return ListExpression(tuple(_flatten(visited_children, EXPRESSION_TYPES)),
                              self._range(node))

    def visit_record_update(self, node, visited_children):
        _, _, name, _, _, _, setters, _, _ = visited_children
        return RecordUpdate(str(name), tuple(_flatten(setters, RecordSetter)),
                            self._range(node))

    def visit_record_expr(self, node, visited_children):
        return RecordExpression(tuple(_flatten(visited_children, RecordSetter)),
                                self._range(node))

    def visit_record_setter(self, node, visited_children):
        name, _, _, _, expression = visited_children
        return RecordSetter(str(name), expression, self._range(node))

    def visit_accessor_function(self, node, visited_children):
        return RecordAccessFunction(node.text[1:], self._range(node))

    def visit_qualified_ref(self, node, visited_children):
        *module_name, name = node.text.split(".")
        return FunctionOrValue(tuple(module_name), name, self._range(node))

    def visit_if_expr(self, node, visited_children):
        _, _, condition, _, _, _, then_branch, _, _, _, else_branch = visited_children
        return IfBlock(condition, then_branch, else_branch, self._range(node))

    def visit_case_expr(self, node, visited_children):
        _, _, subject, _, _, _, _, _, first, rest, _, _ = visited_children
        return CaseExpression(
            subject=subject,
            arms=(first,) + tuple(_flatten(rest, CaseArm)),
            range=self._range(node),
        )

    def visit_case_arm(self, node, visited_children):
        pattern, _, _, _, expression = visited_children
        return CaseArm(pattern, expression)

    def visit_let_expr(self, node, visited_children):
        _, _, _, _, first, rest, _, _, _, _, _, body = visited_children
        items = [first] + _flatten(rest, (FunctionDeclaration, Signature, LetDestructuring))
        declarations = tuple(
            decl for decl in _attach_signatures(items)
            if not isinstance(decl, Signature)
        )
        return LetExpression(declarations, body, self._range(node))

    def visit_let_item(self, node, visited_children):
        return visited_children[0]

    def visit_let_destructuring(self, node, visited_children):
        pattern, _, _, _, expression = visited_children
        return LetDestructuring(pattern, expression, self._range(node))

    def visit_lambda_expr(self, node, visited_children):
        _, _, first, rest, _, _, _, body = visited_children
        arguments = (first,) + tuple(_flatten(rest, PATTERN_TYPES))
        return Lambda(arguments, body, self._range(node))

    # ─────────────────────────────────────────────────────────────
    # Patterns
    # ─────────────────────────────────────────────────────────────

    def visit_pattern(self, node, visited_children):
        result, aliases = visited_children
        for alias in _flatten(aliases, _Alias):
            result = AsPattern(result, alias.name,
                               SourceRange(result.range.start, alias.range.end))
        return result

    def visit_as_alias(self, node, visited_children):
        name = visited_children[-1]
        return _Alias(str(name), self._range(node))

    def visit_cons_pattern(self, node, visited_children):
        head, rest = visited_children
        tail = _first(rest, PATTERN_TYPES)
        if tail is None:
            return head
        return UnConsPattern(head, tail, self._range(node))

    def visit_app_pattern(self, node, visited_children):
        return visited_children[0]

    def visit_ctor_with_args(self, node, visited_children):
        ctor, arguments = visited_children
        return NamedPattern(
            module_name=ctor.module_name,
            name=ctor.name,
            arguments=tuple(_flatten(arguments, PATTERN_TYPES)),
            range=self._range(node),
        )

    def visit_pattern_atom(self, node, visited_children):
        child = visited_children[0]
        if isinstance(child, _QualifiedUpper):
            return NamedPattern(child.module_name, child.name, (), self._range(node))
        if isinstance(child, LowerName):
            return VarPattern(str(child), self._range(node))
        if isinstance(child, Literal):
            return LiteralPattern(child.kind, child.value, child.range)
        return child

    def visit_wildcard(self, node, visited_children):
        return WildcardPattern(self._range(node))

    def visit_tuple_pattern(self, node, visited_children):
        return TuplePattern(tuple(_flatten(visited_children, PATTERN_TYPES)),
                            self._range(node))

    def visit_paren_pattern(self, node, visited_children):
        _, _, inner, _, _ = visited_children
        return ParenthesizedPattern(inner, self._range(node))

    def visit_list_pattern(self, node, visited_children):
        return ListPattern(tuple(_flatten(visited_children, PATTERN_TYPES)),
                           self._range(node))

    def visit_record_pattern(self, node, visited_children):
        names = _flatten(visited_children, LowerName)
        return RecordPattern(tuple(str(name) for name in names), self._range(node))

    # ─────────────────────────────────────────────────────────────
    # Literals & Names
    # ─────────────────────────────────────────────────────────────

    def visit_literal(self, node, visited_children):
        return visited_children[0]

    def visit_float_lit(self, node, visited_children):
        return Literal("float", float(node.text), self._range(node))

    def visit_int_lit(self, node, visited_children):
        text = node.text
        value = int(text[2:], 16) if text.startswith("0x") else int(text)
        return Literal("int", value, self._range(node))

    def visit_string_lit(self, node, visited_children):
        text = node.text
        quote = 3 if text.startswith('"""') else 1
        return Literal("string", _unescape(text[quote:-quote]), self._range(node))

    def visit_char_lit(self, node, visited_children):
        return Literal("char", _unescape(node.text[1:-1]), self._range(node))

    def visit_unit(self, node, visited_children):
        return Literal("unit", None, self._range(node))

    def visit_lower_name(self, node, visited_children):
        return LowerName(node.text)

    def visit_upper_name(self, node, visited_children):
        return UpperName(node.text)

    def visit_qualified_upper(self, node, visited_children):
        *module_name, name = node.text.split(".")
        return _QualifiedUpper(tuple(module_name), name)


# ═══════════════════════════════════════════════════════════════════
#  PUBLIC API
# ═══════════════════════════════════════════════════════════════════

def parse_module(text: str, file: str = "<string>") -> Module:
    """
    Parse Elm source text into a :class:`~elmcheck.ast_nodes.Module`.

    Raises
    ------
    ElmSyntaxError
        If the text is not a well-formed module.
    """
    laid_out = resolve_layout(text, file)
    try:
        tree = ELM_GRAMMAR.parse(laid_out.text)
    except IncompleteParseError as exc:
        raise ElmSyntaxError(
            "could not parse the declaration starting here",
            code=ErrorCodes.INCOMPLETE_PARSE,
            span=laid_out.span(exc.pos),
        ) from exc
    except ParseError as exc:
        rule = getattr(exc.expr, "name", "")
        raise ElmSyntaxError(
            "invalid syntax",
            span=laid_out.span(exc.pos),
            expected=[rule] if rule else None,
        ) from exc

    module = ElmASTBuilder(laid_out).visit(tree)
    logger.debug("parsed %s: module %s, %d imports, %d declarations",
                 file, ".".join(module.name), len(module.imports),
                 len(module.declarations))
    return module


def parse_file(path: Union[str, Path]) -> Module:
    """Read and parse an ``.elm`` file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ElmCheckError(
            f"cannot read {path}: {exc}",
            code=ErrorCodes.UNREADABLE_SOURCE,
            span=SourceSpan(str(path)),
        ) from exc
    return parse_module(text, file=str(path))


__all__ = [
    "ElmASTBuilder",
    "parse_module",
    "parse_file",
    "TYPE_ANNOTATION_TYPES",
]
