"""elmcheck — static checks for Elm source code.

Parses Elm modules and runs checkers over them.  The built-in checker
reports case patterns that discard the error of a ``Result``
(``Err _ -> ...``).

Submodules
----------
errors
    Exception hierarchy with ``ELMC-NNNN`` error codes and
    ``SourceSpan`` locations.

layout
    Token scanner and the layout pass that turns Elm's indentation
    into explicit block markers.

grammar, parser
    parsimonious PEG grammar over laid-out source, and the
    ``NodeVisitor`` that builds the ``ast_nodes`` tree.

visitor
    Traversal of patterns, expressions and declarations.

lookup
    Dependency manifests, import scopes and the
    ``ModuleNameLookupTable`` that resolves constructor origins.

ignored_error
    The ``no-ignored-error`` rule and its checker.

checkers, config
    Checker framework (diagnostics, suppressions, registry, runner)
    and ``elmcheck.json`` handling.

Usage
-----
Command-line::

    python -m elmcheck check src/
    python -m elmcheck check src/Main.elm --permissive --format json
    python -m elmcheck --help

Programmatic::

    from elmcheck.parser import parse_module
    from elmcheck.ignored_error import find_ignored_errors

    module = parse_module(source, file="src/Main.elm")
    for finding in find_ignored_errors(module):
        print(finding.range, finding.message)

"""

from __future__ import annotations

__version__: str = "0.1.0"
__all__: list[str] = [
    "__version__",
    "errors",
    "layout",
    "grammar",
    "parser",
    "visitor",
    "lookup",
    "ignored_error",
    "checkers",
    "config",
    "__main__",
]
