# elmcheck/ignored_error.py
"""
No ignored errors
═════════════════

Reports case patterns that match the failure case of Elm's ``Result``
while discarding its payload::

    case Http.toTask request of
        Ok body ->
            ...

        Err _ ->          -- reported
            ...

A user module may declare its own ``Err`` constructor.  Whether a
pattern refers to ``Result.Err`` is therefore decided by an
:class:`OriginCheck`:

  ``ExactModule(("Result",))``  the constructor must resolve to the
                                ``Result`` module (default)
  ``AnyOrigin()``               any constructor named ``Err`` counts

The classifier itself is a pure function of the pattern tree and the
resolver's answers.  It never raises.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, FrozenSet, List, Optional, Protocol, Sequence, Tuple

from .ast_nodes import CaseExpression, Module, NamedPattern, Pattern, SourceRange, WildcardPattern
from .checkers import Checker, CheckerContext, DiagnosticSeverity, Confidence
from .errors import ConfigError, ErrorCodes
from .lookup import RESULT_MODULE, ModuleNameLookupTable, QualifiedName
from .visitor import ExpressionVisitor, pattern_children

logger = logging.getLogger(__name__)


ERROR_CONSTRUCTOR = "Err"

MESSAGE = "The error is being ignored."

DETAILS: Tuple[str, ...] = (
    "Please check whether the error can't be used to improve the situation "
    "for the user. You can for instance display the error message to the "
    "user or re-attempt the operation.",
)


@dataclass(frozen=True)
class Finding:
    range: SourceRange
    message: str = MESSAGE
    details: Tuple[str, ...] = DETAILS


# ─────────────────────────────────────────────────────────────────────────
#  Name resolution adapter
# ─────────────────────────────────────────────────────────────────────────

class Resolver(Protocol):
    def resolve(self, pattern: NamedPattern) -> Optional[QualifiedName]: ...


class NameResolver:
    """Answers "which module does this constructor come from" for one module."""

    def __init__(self, table: ModuleNameLookupTable) -> None:
        self.table = table

    def resolve(self, pattern: NamedPattern) -> Optional[QualifiedName]:
        return self.table.module_name_for(pattern)


# ─────────────────────────────────────────────────────────────────────────
#  Origin checks
# ─────────────────────────────────────────────────────────────────────────

class OriginCheck(ABC):
    """Decides whether an ``Err`` pattern is the one from ``Result``."""

    name: ClassVar[str] = ""

    @abstractmethod
    def confirms(self, resolver: Optional[Resolver], pattern: NamedPattern) -> bool:
        ...


class AnyOrigin(OriginCheck):
    """Name only: the resolver is never consulted."""

    name = "any"

    def confirms(self, resolver: Optional[Resolver], pattern: NamedPattern) -> bool:
        return True

    def __repr__(self) -> str:
        return "AnyOrigin()"


class ExactModule(OriginCheck):
    """The constructor must resolve to *module*.  Unresolved means no."""

    name = "exact"

    def __init__(self, module: Sequence[str] = RESULT_MODULE) -> None:
        self.module: QualifiedName = tuple(module)

    def confirms(self, resolver: Optional[Resolver], pattern: NamedPattern) -> bool:
        if resolver is None:
            return False
        return resolver.resolve(pattern) == self.module

    def __repr__(self) -> str:
        return f"ExactModule({self.module!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ExactModule) and other.module == self.module

    def __hash__(self) -> int:
        return hash(self.module)


def origin_check_from_options(kind: str = "exact",
                              module: Sequence[str] = RESULT_MODULE) -> OriginCheck:
    if kind == AnyOrigin.name:
        return AnyOrigin()
    if kind == ExactModule.name:
        if not module or not all(module):
            raise ConfigError(f"invalid result module {'.'.join(module)!r}",
                              hint="Give a module path such as 'Result'")
        return ExactModule(module)
    raise ConfigError(f"unknown origin check {kind!r}; expected 'exact' or 'any'",
                      code=ErrorCodes.UNKNOWN_OPTION)


# ─────────────────────────────────────────────────────────────────────────
#  Classifier
# ─────────────────────────────────────────────────────────────────────────

def _is_ignored_error_shape(pattern: Pattern) -> bool:
    return (
        isinstance(pattern, NamedPattern)
        and pattern.name == ERROR_CONSTRUCTOR
        and len(pattern.arguments) == 1
        and isinstance(pattern.arguments[0], WildcardPattern)
    )


def classify(resolver: Optional[Resolver], patterns: Sequence[Pattern],
             origin_check: Optional[OriginCheck] = None) -> List[Finding]:
    """
    Findings for the ``Err _`` patterns in *patterns*.

    Patterns are searched depth-first, left to right.  A confirmed
    ``Err _`` is reported once and not searched further; an ``Err _`` from
    some other module is searched like any other constructor.
    """
    check = origin_check if origin_check is not None else ExactModule()
    findings: List[Finding] = []
    stack = list(reversed(patterns))
    while stack:
        pattern = stack.pop()
        if _is_ignored_error_shape(pattern) and check.confirms(resolver, pattern):
            findings.append(Finding(pattern.range))
            continue
        stack.extend(reversed(pattern_children(pattern)))
    return findings


# ─────────────────────────────────────────────────────────────────────────
#  Case-arm visitor
# ─────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RuleContext:
    """Per-module state: created at module entry, read-only afterwards."""
    resolver: Optional[Resolver]
    origin_check: OriginCheck


class CaseArmVisitor(ExpressionVisitor):
    """Collects findings from the arm patterns of every case expression."""

    def __init__(self) -> None:
        self.findings: List[Finding] = []

    def visit_expression(self, expression: Any, ctx: RuleContext) -> None:
        self.findings.extend(case_arm_findings(expression, ctx))


def case_arm_findings(expression: Any, ctx: RuleContext) -> List[Finding]:
    if not isinstance(expression, CaseExpression):
        return []
    return classify(ctx.resolver, [arm.pattern for arm in expression.arms],
                    ctx.origin_check)


def find_ignored_errors(module: Module, table: Optional[ModuleNameLookupTable] = None,
                        origin_check: Optional[OriginCheck] = None) -> List[Finding]:
    """Run the rule over a whole module."""
    check = origin_check if origin_check is not None else ExactModule()
    if table is None and not isinstance(check, AnyOrigin):
        table = ModuleNameLookupTable.build(module)
    ctx = RuleContext(NameResolver(table) if table is not None else None, check)
    visitor = CaseArmVisitor()
    visitor.visit_module(module, ctx)
    return visitor.findings


# ─────────────────────────────────────────────────────────────────────────
#  Checker
# ─────────────────────────────────────────────────────────────────────────

class NoIgnoredErrorChecker(Checker):
    """
    Reports ``Err _`` case patterns on ``Result`` values.

    Options (``CheckerContext.options``):
      origin_check   "exact" (default) or "any"
      result_module  module path the constructor must resolve to,
                     default ``["Result"]``
    """

    name: ClassVar[str] = "no-ignored-error"
    description: ClassVar[str] = "Result errors discarded with 'Err _'"
    error_ids: ClassVar[FrozenSet[str]] = frozenset({"ignoredError"})
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.WARNING

    def __init__(self) -> None:
        super().__init__()
        self._origin_check: OriginCheck = ExactModule()
        self._findings: List[Finding] = []

    def configure(self, ctx: CheckerContext) -> None:
        self._origin_check = origin_check_from_options(
            ctx.get_option("origin_check", "exact"),
            ctx.get_option("result_module", RESULT_MODULE),
        )

    def collect_evidence(self, ctx: CheckerContext) -> None:
        rule_ctx = RuleContext(NameResolver(ctx.lookup), self._origin_check)
        visitor = CaseArmVisitor()
        visitor.visit_module(ctx.module, rule_ctx)
        self._findings = visitor.findings
        logger.debug("%s: %d ignored errors in %s", self.name,
                     len(self._findings), ctx.module.file)

    def diagnose(self, ctx: CheckerContext) -> None:
        confidence = (Confidence.HIGH if isinstance(self._origin_check, ExactModule)
                      else Confidence.MEDIUM)
        for finding in self._findings:
            self._emit(
                "ignoredError",
                finding.message,
                file=ctx.module.file,
                range=finding.range,
                details=finding.details,
                confidence=confidence,
                evidence={"originCheck": repr(self._origin_check)},
            )


__all__ = [
    "MESSAGE",
    "DETAILS",
    "Finding",
    "NameResolver",
    "OriginCheck",
    "AnyOrigin",
    "ExactModule",
    "origin_check_from_options",
    "classify",
    "RuleContext",
    "CaseArmVisitor",
    "case_arm_findings",
    "find_ignored_errors",
    "NoIgnoredErrorChecker",
]
