# elmcheck/visitor.py
"""
elmcheck/visitor.py
===================

Traversal infrastructure for the Elm AST.

Provides:
- ``pattern_children`` / ``expression_children`` — one-level child
  access through dispatch tables keyed by node class
- ``iter_pattern_tree`` / ``iter_module_expressions`` /
  ``iter_module_patterns`` — depth-first walks
- ``ExpressionVisitor`` — base class calling ``visit_expression`` once per
  expression of a module, in source order

The dispatch tables are checked at import time against the closed unions
of :mod:`elmcheck.ast_nodes`, so a new node kind cannot be added without
teaching the walkers about it.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, Tuple, Type

from . import ast_nodes as A

__all__ = [
    "pattern_children",
    "expression_children",
    "iter_pattern_tree",
    "iter_declaration_expressions",
    "iter_module_expressions",
    "iter_module_patterns",
    "ExpressionVisitor",
]


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_PATTERN_CHILDREN: Dict[Type[Any], Callable[[Any], Tuple[A.Pattern, ...]]] = {
    A.WildcardPattern: lambda p: (),
    A.LiteralPattern: lambda p: (),
    A.VarPattern: lambda p: (),
    A.RecordPattern: lambda p: (),
    A.NamedPattern: lambda p: p.arguments,
    A.ParenthesizedPattern: lambda p: (p.pattern,),
    A.UnConsPattern: lambda p: (p.head, p.tail),
    A.ListPattern: lambda p: p.elements,
    A.TuplePattern: lambda p: p.elements,
    A.AsPattern: lambda p: (p.pattern,),
}


def pattern_children(pattern: A.Pattern) -> Tuple[A.Pattern, ...]:
    """Direct sub-patterns of *pattern*, left to right."""
    return _PATTERN_CHILDREN[type(pattern)](pattern)


def iter_pattern_tree(pattern: A.Pattern) -> Iterator[A.Pattern]:
    """*pattern* and all its sub-patterns, depth-first, pre-order."""
    yield pattern
    for child in pattern_children(pattern):
        yield from iter_pattern_tree(child)


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

def _let_children(node: A.LetExpression) -> Tuple[A.Expression, ...]:
    return tuple(decl.expression for decl in node.declarations) + (node.expression,)


_EXPRESSION_CHILDREN: Dict[Type[Any], Callable[[Any], Tuple[A.Expression, ...]]] = {
    A.Literal: lambda e: (),
    A.FunctionOrValue: lambda e: (),
    A.PrefixOperator: lambda e: (),
    A.RecordAccessFunction: lambda e: (),
    A.Application: lambda e: e.expressions,
    A.OperatorApplication: lambda e: (e.left, e.right),
    A.Negation: lambda e: (e.expression,),
    A.ParenthesizedExpression: lambda e: (e.expression,),
    A.TupledExpression: lambda e: e.elements,
    A.ListExpression: lambda e: e.elements,
    A.RecordExpression: lambda e: tuple(s.expression for s in e.setters),
    A.RecordUpdate: lambda e: tuple(s.expression for s in e.setters),
    A.RecordAccess: lambda e: (e.expression,),
    A.IfBlock: lambda e: (e.condition, e.then_branch, e.else_branch),
    A.CaseExpression: lambda e: (e.subject,) + tuple(arm.expression for arm in e.arms),
    A.LetExpression: _let_children,
    A.Lambda: lambda e: (e.expression,),
}


def expression_children(expression: A.Expression) -> Tuple[A.Expression, ...]:
    """Direct sub-expressions of *expression*, in source order."""
    return _EXPRESSION_CHILDREN[type(expression)](expression)


def _expression_patterns(expression: A.Expression) -> Tuple[A.Pattern, ...]:
    """Patterns bound directly by *expression* (not by its sub-expressions)."""
    if isinstance(expression, A.CaseExpression):
        return tuple(arm.pattern for arm in expression.arms)
    if isinstance(expression, A.Lambda):
        return expression.arguments
    if isinstance(expression, A.LetExpression):
        patterns: Tuple[A.Pattern, ...] = ()
        for decl in expression.declarations:
            if isinstance(decl, A.LetDestructuring):
                patterns += (decl.pattern,)
            else:
                patterns += decl.arguments
        return patterns
    return ()


def _iter_expression_tree(expression: A.Expression) -> Iterator[A.Expression]:
    yield expression
    for child in expression_children(expression):
        yield from _iter_expression_tree(child)


def iter_declaration_expressions(declaration: A.Declaration) -> Iterator[A.Expression]:
    if isinstance(declaration, A.FunctionDeclaration):
        yield from _iter_expression_tree(declaration.expression)


def iter_module_expressions(module: A.Module) -> Iterator[A.Expression]:
    """Every expression of *module*, depth-first, in source order."""
    for declaration in module.declarations:
        yield from iter_declaration_expressions(declaration)


def iter_module_patterns(module: A.Module) -> Iterator[A.Pattern]:
    """Every pattern of *module*, including nested ones."""
    for declaration in module.declarations:
        if not isinstance(declaration, A.FunctionDeclaration):
            continue
        roots = list(declaration.arguments)
        for expression in _iter_expression_tree(declaration.expression):
            roots.extend(_expression_patterns(expression))
        for root in roots:
            yield from iter_pattern_tree(root)


# ---------------------------------------------------------------------------
# Visitor
# ---------------------------------------------------------------------------

class ExpressionVisitor:
    """Calls :meth:`visit_expression` for every expression of a module.

    The context object is threaded through unchanged.
    """

    def visit_module(self, module: A.Module, ctx: Any) -> None:
        for declaration in module.declarations:
            self.visit_declaration(declaration, ctx)

    def visit_declaration(self, declaration: A.Declaration, ctx: Any) -> None:
        for expression in iter_declaration_expressions(declaration):
            self.visit_expression(expression, ctx)

    def visit_expression(self, expression: A.Expression, ctx: Any) -> None:
        """Override in subclasses.  Default: do nothing."""
        return None


def _check_exhaustive(table: Dict[Type[Any], Any], kinds: Tuple[type, ...],
                      what: str) -> None:
    missing = [kind.__name__ for kind in kinds if kind not in table]
    if missing:
        raise TypeError(f"no {what} dispatch for: {', '.join(missing)}")


_check_exhaustive(_PATTERN_CHILDREN, A.PATTERN_TYPES, "pattern")
_check_exhaustive(_EXPRESSION_CHILDREN, A.EXPRESSION_TYPES, "expression")
