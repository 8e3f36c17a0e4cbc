"""
elmcheck/checkers.py
════════════════════

Checker framework: turns rule findings on parsed Elm modules into
reportable, suppressible diagnostics.

Architecture
────────────

  ┌─────────────────────────────────────────────────────────┐
  │                   CheckerRunner                         │
  │  ┌──────────────────────────────────────────────────┐   │
  │  │  parse_file ─► Module ─► ModuleNameLookupTable    │   │
  │  │              (manifest: core + project modules)   │   │
  │  └──────────────────────────┬───────────────────────┘   │
  │                             │  one CheckerContext       │
  │                             │  per module               │
  │  ┌──────────────────────────▼───────────────────────┐   │
  │  │  NoIgnoredErrorChecker │ ... registered checkers  │   │
  │  └──────────────────────────┬───────────────────────┘   │
  │                             │                           │
  │  ┌──────────────────────────▼───────────────────────┐   │
  │  │           SuppressionManager                      │   │
  │  │  -- elmcheck-suppress │  file-level  │  global     │   │
  │  └──────────────────────────┬───────────────────────┘   │
  │                             │                           │
  │  ┌──────────────────────────▼───────────────────────┐   │
  │  │        Diagnostic Formatter (JSON / text)         │   │
  │  └──────────────────────────────────────────────────┘   │
  └─────────────────────────────────────────────────────────┘

Each Checker follows a four-phase lifecycle:

  1. **configure()**        — read options
  2. **collect_evidence()** — walk the module, gather suspicious sites
  3. **diagnose()**         — turn evidence into diagnostics
  4. **report()**           — emit Diagnostics (filtered by suppressions)
"""

from __future__ import annotations

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum, auto
from fnmatch import fnmatch
from pathlib import Path
from typing import (
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
    Type,
    Union,
)

from .ast_nodes import Module, SourceRange
from .errors import ElmCheckError
from .lookup import DependencyManifest, ModuleInterface, ModuleNameLookupTable
from .parser import parse_file

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — DIAGNOSTIC MODEL
# ═════════════════════════════════════════════════════════════════════════

class DiagnosticSeverity(Enum):
    ERROR = "error"
    WARNING = "warning"
    STYLE = "style"
    INFORMATION = "information"


class Confidence(Enum):
    """
    How certain we are that the diagnostic is a true positive.

    HIGH   — the reference was resolved to its defining module
    MEDIUM — matched by name only
    """
    HIGH = auto()
    MEDIUM = auto()


@dataclass(frozen=True)
class SourceLocation:
    """A specific point in source code."""
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single diagnostic finding.

    Attributes
    ----------
    error_id     : Unique identifier (e.g., "ignoredError")
    message      : One-line description
    severity     : DiagnosticSeverity
    file         : Source file the diagnostic is about
    range        : Exact source range (1-based, end exclusive)
    details      : Longer explanation, one paragraph per entry
    confidence   : Confidence level
    checker_name : Name of the checker that produced this
    evidence     : Machine-readable evidence dict for downstream tooling
    """
    error_id: str
    message: str
    severity: DiagnosticSeverity
    file: str = ""
    range: SourceRange = field(default_factory=SourceRange)
    details: Tuple[str, ...] = ()
    confidence: Confidence = Confidence.MEDIUM
    checker_name: str = ""
    addon: str = "elmcheck"
    evidence: Dict[str, Any] = field(default_factory=dict)

    @property
    def location(self) -> SourceLocation:
        return SourceLocation(self.file, self.range.start.row, self.range.start.column)

    def to_json(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "line": self.range.start.row,
            "column": self.range.start.column,
            "endLine": self.range.end.row,
            "endColumn": self.range.end.column,
            "severity": self.severity.value,
            "message": self.message,
            "details": list(self.details),
            "errorId": self.error_id,
            "checker": self.checker_name,
            "addon": self.addon,
        }

    def to_json_str(self) -> str:
        """Single-line JSON string."""
        return json.dumps(self.to_json())

    def to_gcc_format(self) -> str:
        """GCC-style diagnostic string: file:line:col: severity: message."""
        text = f"{self.location}: {self.severity.value}: {self.message} [{self.error_id}]"
        for paragraph in self.details:
            text += f"\n    {paragraph}"
        return text


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — SUPPRESSION MANAGER
# ═════════════════════════════════════════════════════════════════════════

SUPPRESS_DIRECTIVE = "elmcheck-suppress"

_INLINE_RE = re.compile(
    r"^--\s*" + re.escape(SUPPRESS_DIRECTIVE)
    + r"(?![\w-])(?:\s+([\w*]+(?:\s*,\s*[\w*]+)*))?"
)


class SuppressionManager:
    """
    Manages diagnostic suppressions from multiple sources.

    Sources:
      1. Inline comments:  ``-- elmcheck-suppress errorId`` on the line of
         the diagnostic or the line before it
      2. File-level suppressions (config ``file_suppressions``)
      3. Global suppressions (``--suppress`` or config ``suppressions``)

    Inline syntax is ``-- elmcheck-suppress id1,id2 reason text``: the
    comma-separated ids come first and any words after them are a free-text
    reason.  A comment without ids, or with ``*``, suppresses everything;
    ``-- elmcheck-suppress because legacy`` therefore suppresses only an
    error id named ``because``.

    Usage
    -----
    >>> sm = SuppressionManager()
    >>> sm.load_inline_suppressions(module)
    >>> sm.add_file_suppression("ignoredError", "src/Legacy/*.elm")
    >>> sm.add_global_suppression("ignoredError")
    >>> if not sm.is_suppressed(diagnostic):
    ...     emit(diagnostic)
    """

    def __init__(self) -> None:
        # {(file, line)} → set of error_ids suppressed at that location
        self._inline: Dict[Tuple[str, int], Set[str]] = defaultdict(set)
        # file pattern → set of error_ids
        self._file_level: Dict[str, Set[str]] = defaultdict(set)
        self._global: Set[str] = set()

    def load_inline_suppressions(self, module: Module) -> None:
        """Scan the module's line comments for suppression directives."""
        for comment in module.comments:
            match = _INLINE_RE.match(comment.text)
            if match is None:
                continue
            ids = re.split(r"\s*,\s*", match.group(1)) if match.group(1) else []
            key = (module.file, comment.range.start.row)
            self._inline[key].update(ids or ["*"])

    def add_file_suppression(self, error_id: str, file_pattern: str) -> None:
        """Suppress ``error_id`` in files matching ``file_pattern``."""
        self._file_level[file_pattern].add(error_id)

    def add_global_suppression(self, error_id: str) -> None:
        """Globally suppress ``error_id``."""
        self._global.add(error_id)

    def is_suppressed(self, diag: Diagnostic) -> bool:
        """Check whether a diagnostic should be suppressed."""
        eid = diag.error_id

        if eid in self._global or "*" in self._global:
            return True

        loc = diag.location

        # same line, or a directive on the preceding line
        for line_offset in (0, 1):
            suppressed_ids = self._inline.get((loc.file, loc.line - line_offset), set())
            if eid in suppressed_ids or "*" in suppressed_ids:
                return True

        for pattern, ids in self._file_level.items():
            if eid in ids or "*" in ids:
                if pattern == loc.file or loc.file.endswith(pattern) or fnmatch(loc.file, pattern):
                    return True

        return False

    def filter_diagnostics(
        self, diagnostics: Iterable[Diagnostic]
    ) -> List[Diagnostic]:
        """Return only non-suppressed diagnostics."""
        return [d for d in diagnostics if not self.is_suppressed(d)]


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — CHECKER BASE CLASS
# ═════════════════════════════════════════════════════════════════════════

class Checker(ABC):
    """
    Abstract base class for all checkers.

    Lifecycle
    ─────────
      1. ``configure(ctx)``        — receive context, read options
      2. ``collect_evidence(ctx)`` — walk the module
      3. ``diagnose(ctx)``         — correlate evidence into diagnostics
      4. ``report(ctx)``           — yield final diagnostics

    Subclass Contract
    ─────────────────
      - Override ``name``, ``description``, ``error_ids``
      - Implement ``collect_evidence()`` and ``diagnose()``
      - Optionally override ``configure()`` for custom setup
    """

    name: ClassVar[str] = "base-checker"
    description: ClassVar[str] = ""
    error_ids: ClassVar[FrozenSet[str]] = frozenset()
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.WARNING

    def __init__(self) -> None:
        self._diagnostics: List[Diagnostic] = []

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    def configure(self, ctx: CheckerContext) -> None:
        """
        Called before evidence collection.

        Override to read options.  Default implementation does nothing.
        """
        pass

    @abstractmethod
    def collect_evidence(self, ctx: CheckerContext) -> None:
        ...

    @abstractmethod
    def diagnose(self, ctx: CheckerContext) -> None:
        """
        Correlate evidence into Diagnostic objects.

        Append diagnostics to ``self._diagnostics``.
        """
        ...

    def report(self, ctx: CheckerContext) -> List[Diagnostic]:
        """Return final diagnostics, filtered by suppressions."""
        return ctx.suppressions.filter_diagnostics(self._diagnostics)

    def _emit(
        self,
        error_id: str,
        message: str,
        file: str,
        range: SourceRange,
        details: Sequence[str] = (),
        severity: Optional[DiagnosticSeverity] = None,
        confidence: Confidence = Confidence.MEDIUM,
        evidence: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Helper to create and store a diagnostic."""
        self._diagnostics.append(Diagnostic(
            error_id=error_id,
            message=message,
            severity=severity or self.default_severity,
            file=file,
            range=range,
            details=tuple(details),
            confidence=confidence,
            checker_name=self.name,
            evidence=evidence or {},
        ))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.name}'>"


@dataclass
class CheckerContext:
    """
    Per-module context passed to every checker.

    Attributes
    ----------
    module       : the parsed module under analysis
    lookup       : constructor origins for ``module``
    suppressions : SuppressionManager
    options      : user-provided options dict
    """
    module: Module
    lookup: ModuleNameLookupTable
    suppressions: SuppressionManager = field(default_factory=SuppressionManager)
    options: Dict[str, Any] = field(default_factory=dict)

    def get_option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — CHECKER REGISTRY
# ═════════════════════════════════════════════════════════════════════════

class CheckerRegistry:
    """
    Registry of available checkers with discovery and filtering.

    Usage
    -----
    >>> registry = CheckerRegistry()
    >>> registry.register(NoIgnoredErrorChecker)
    >>> checkers = registry.get_enabled()
    >>> checkers = registry.filter_by_error_id("ignoredError")
    """

    def __init__(self) -> None:
        self._checkers: Dict[str, Type[Checker]] = {}
        self._disabled: Set[str] = set()

    def register(self, checker_cls: Type[Checker]) -> None:
        self._checkers[checker_cls.name] = checker_cls

    def unregister(self, name: str) -> None:
        self._checkers.pop(name, None)

    def disable(self, name: str) -> None:
        self._disabled.add(name)

    def enable(self, name: str) -> None:
        self._disabled.discard(name)

    def get_all(self) -> List[Type[Checker]]:
        return list(self._checkers.values())

    def get_enabled(self) -> List[Type[Checker]]:
        return [
            cls for name, cls in self._checkers.items()
            if name not in self._disabled
        ]

    def get_by_name(self, name: str) -> Optional[Type[Checker]]:
        return self._checkers.get(name)

    def filter_by_error_id(self, error_id: str) -> List[Type[Checker]]:
        """Return checkers that can produce the given error_id."""
        return [
            cls for cls in self._checkers.values()
            if error_id in cls.error_ids
        ]

    @property
    def names(self) -> List[str]:
        return sorted(self._checkers.keys())


_DEFAULT_REGISTRY: Optional[CheckerRegistry] = None


def default_registry() -> CheckerRegistry:
    """Registry with all built-in checkers."""
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        # checker modules import this one
        from .ignored_error import NoIgnoredErrorChecker

        _DEFAULT_REGISTRY = CheckerRegistry()
        _DEFAULT_REGISTRY.register(NoIgnoredErrorChecker)
    return _DEFAULT_REGISTRY


# ═════════════════════════════════════════════════════════════════════════
#  PART 5 — CHECKER RUNNER
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class CheckerRunResults:
    """
    Aggregate results from running a suite of checkers.

    Attributes
    ----------
    diagnostics            : All diagnostics from all checkers
    diagnostics_by_checker : Diagnostics grouped by checker name
    errors                 : Files that could not be read or parsed
    stats                  : Timing and counting statistics
    checker_names          : Names of checkers that were run
    files                  : Files that were analysed
    """
    diagnostics: List[Diagnostic] = field(default_factory=list)
    diagnostics_by_checker: Dict[str, List[Diagnostic]] = field(
        default_factory=lambda: defaultdict(list)
    )
    errors: List[ElmCheckError] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)
    checker_names: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(
            1 for d in self.diagnostics
            if d.severity == DiagnosticSeverity.ERROR
        )

    @property
    def warning_count(self) -> int:
        return sum(
            1 for d in self.diagnostics
            if d.severity == DiagnosticSeverity.WARNING
        )

    @property
    def total_count(self) -> int:
        return len(self.diagnostics)

    def by_severity(self, severity: DiagnosticSeverity) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == severity]

    def by_file(self, file: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.file == file]

    def by_error_id(self, error_id: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.error_id == error_id]

    def extend(self, other: "CheckerRunResults") -> None:
        """Fold the results of another run into this one."""
        self.diagnostics.extend(other.diagnostics)
        for name, diags in other.diagnostics_by_checker.items():
            self.diagnostics_by_checker[name].extend(diags)
        self.errors.extend(other.errors)
        for key, val in other.stats.items():
            self.stats[key] = self.stats.get(key, 0) + val
        for name in other.checker_names:
            if name not in self.checker_names:
                self.checker_names.append(name)
        self.files.extend(other.files)

    def to_json_lines(self) -> str:
        return "\n".join(d.to_json_str() for d in self.diagnostics)

    def to_gcc_format(self) -> str:
        return "\n".join(d.to_gcc_format() for d in self.diagnostics)

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            f"Checked {len(self.files)} files: {self.total_count} diagnostics "
            f"({self.error_count} errors, {self.warning_count} warnings), "
            f"{len(self.errors)} files failed",
        ]
        for name in self.checker_names:
            count = len(self.diagnostics_by_checker.get(name, []))
            elapsed = self.stats.get(f"{name}_elapsed_ms", 0)
            lines.append(f"  {name}: {count} findings ({elapsed:.1f}ms)")
        return "\n".join(lines)


class CheckerRunner:
    """
    Runs a suite of checkers against parsed Elm modules.

    Usage
    -----
    >>> runner = CheckerRunner(options={"origin_check": "exact"})
    >>> results = runner.run_files(["src/Main.elm", "src/Api.elm"])
    >>> print(results.summary())

    Parameters for constructor
    ─────────────────────────
    registry    : CheckerRegistry — source of checker classes
    suppressions: SuppressionManager — pre-loaded suppression rules
    options     : dict — per-checker configuration
    manifest    : DependencyManifest — interfaces of modules outside the
                  project (defaults to the Elm core library)
    """

    def __init__(
        self,
        registry: Optional[CheckerRegistry] = None,
        suppressions: Optional[SuppressionManager] = None,
        options: Optional[Dict[str, Any]] = None,
        manifest: Optional[DependencyManifest] = None,
    ) -> None:
        self.registry = registry or default_registry()
        self.suppressions = suppressions or SuppressionManager()
        self.options = options or {}
        self.manifest = manifest or DependencyManifest.core()

    def _checker_classes(self, checkers: Optional[Sequence[str]]) -> List[Type[Checker]]:
        if checkers is None:
            return self.registry.get_enabled()
        classes: List[Type[Checker]] = []
        for name in checkers:
            cls = self.registry.get_by_name(name)
            if cls is None:
                logger.warning("unknown checker %r skipped", name)
            else:
                classes.append(cls)
        return classes

    def run(
        self,
        module: Module,
        checkers: Optional[Sequence[str]] = None,
        manifest: Optional[DependencyManifest] = None,
    ) -> CheckerRunResults:
        """
        Run checkers against a single module.

        Parameters
        ----------
        module   : parsed module
        checkers : list of checker names to run (None = all enabled)
        manifest : interfaces used for name resolution (None = runner's)
        """
        results = CheckerRunResults(files=[module.file])

        self.suppressions.load_inline_suppressions(module)

        ctx = CheckerContext(
            module=module,
            lookup=ModuleNameLookupTable.build(module, manifest or self.manifest),
            suppressions=self.suppressions,
            options=self.options,
        )

        for cls in self._checker_classes(checkers):
            checker = cls()
            checker_name = cls.name
            results.checker_names.append(checker_name)

            t0 = time.monotonic()
            try:
                checker.configure(ctx)
                checker.collect_evidence(ctx)
                checker.diagnose(ctx)
                diags = checker.report(ctx)
            except ElmCheckError:
                raise
            except Exception as exc:
                # Graceful degradation: report the failure, don't crash
                logger.warning("checker %s failed on %s: %s", checker_name, module.file, exc)
                diags = [Diagnostic(
                    error_id="checkerInternalError",
                    message=f"Checker '{checker_name}' failed: {exc}",
                    severity=DiagnosticSeverity.INFORMATION,
                    file=module.file,
                    checker_name=checker_name,
                )]
            elapsed_ms = (time.monotonic() - t0) * 1000.0

            results.diagnostics.extend(diags)
            results.diagnostics_by_checker[checker_name].extend(diags)
            results.stats[f"{checker_name}_elapsed_ms"] = elapsed_ms

        return results

    def project_manifest(self, modules: Iterable[Module]) -> DependencyManifest:
        """The runner's manifest extended with the interfaces of *modules*."""
        return self.manifest.merge(
            DependencyManifest(ModuleInterface.from_module(m) for m in modules)
        )

    def run_modules(
        self,
        modules: Sequence[Module],
        checkers: Optional[Sequence[str]] = None,
    ) -> CheckerRunResults:
        """Run checkers over several modules of one project."""
        manifest = self.project_manifest(modules)
        combined = CheckerRunResults()
        for module in modules:
            combined.extend(self.run(module, checkers=checkers, manifest=manifest))
        return combined

    def run_files(
        self,
        paths: Iterable[Union[str, Path]],
        checkers: Optional[Sequence[str]] = None,
    ) -> CheckerRunResults:
        """
        Parse and check ``.elm`` files.

        Files that cannot be read or parsed are logged and recorded in
        ``CheckerRunResults.errors``; the others are still checked.
        """
        modules: List[Module] = []
        failed: List[ElmCheckError] = []
        for path in paths:
            try:
                modules.append(parse_file(path))
            except ElmCheckError as exc:
                logger.warning("skipping %s: %s", path, exc.message)
                failed.append(exc)
        results = self.run_modules(modules, checkers=checkers)
        results.errors.extend(failed)
        return results


__all__ = [
    # Diagnostic model
    "Diagnostic",
    "DiagnosticSeverity",
    "Confidence",
    "SourceLocation",
    # Suppression
    "SUPPRESS_DIRECTIVE",
    "SuppressionManager",
    # Checker framework
    "Checker",
    "CheckerContext",
    "CheckerRegistry",
    "default_registry",
    # Runner
    "CheckerRunner",
    "CheckerRunResults",
]
