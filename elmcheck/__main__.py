#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
elmcheck/__main__.py
====================

Command-line entry point.

Usage
-----
    python -m elmcheck <command> [options] <files>

Commands
--------
    check           Run the checkers over Elm source files
    parse           Parse a file and print a summary of its declarations
    list-checkers   List the registered checkers

Exit status
-----------
    0   no diagnostics
    1   diagnostics were reported
    2   a file, the configuration or a manifest could not be used
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import textwrap
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from . import __version__

logger = logging.getLogger("elmcheck")

EXIT_CLEAN = 0
EXIT_FINDINGS = 1
EXIT_ERROR = 2


# ═══════════════════════════════════════════════════════════════════════════
# LAZY IMPORTS (avoid heavy imports for --help)
# ═══════════════════════════════════════════════════════════════════════════

def _import_checkers():
    from .checkers import CheckerRunner, default_registry
    return CheckerRunner, default_registry


def _import_config():
    from .config import CheckConfig
    return CheckConfig


def _import_parser():
    from .parser import parse_file
    return parse_file


def _import_errors():
    from .errors import ElmCheckError
    return ElmCheckError


# ═══════════════════════════════════════════════════════════════════════════
# TERMINAL COLORS
# ═══════════════════════════════════════════════════════════════════════════

class _Colors:
    """ANSI color codes, disabled when not writing to a TTY."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def _code(self, code: str) -> str:
        return code if self.enabled else ""

    @property
    def RESET(self) -> str:
        return self._code("\033[0m")

    @property
    def BOLD(self) -> str:
        return self._code("\033[1m")

    @property
    def RED(self) -> str:
        return self._code("\033[31m")

    @property
    def GREEN(self) -> str:
        return self._code("\033[32m")

    @property
    def YELLOW(self) -> str:
        return self._code("\033[33m")


def _get_colors(stream: TextIO = sys.stderr) -> _Colors:
    """Get color codes appropriate for the given stream."""
    is_tty = hasattr(stream, "isatty") and stream.isatty()
    return _Colors(enabled=is_tty and os.environ.get("NO_COLOR") is None)


def _configure_logging(verbose: bool, quiet: bool) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


# ═══════════════════════════════════════════════════════════════════════════
# COMMAND HANDLERS
# ═══════════════════════════════════════════════════════════════════════════

def _load_config(args: argparse.Namespace):
    CheckConfig = _import_config()
    if args.config:
        config = CheckConfig.from_json_file(args.config)
    else:
        config = CheckConfig.discover() or CheckConfig()

    if args.permissive:
        config.origin_check = "any"
    if args.result_module:
        config.result_module = args.result_module.split(".")
    if args.format:
        config.output_format = args.format
    config.disabled_checkers.extend(args.disable or [])
    config.suppressions.extend(args.suppress or [])
    config.manifest_paths.extend(args.manifest or [])
    return config


def _expand_paths(inputs: Sequence[str]) -> List[Path]:
    """Files as given; directories are searched for ``*.elm``."""
    paths: List[Path] = []
    for item in inputs:
        path = Path(item)
        if path.is_dir():
            found = sorted(p for p in path.rglob("*.elm") if "elm-stuff" not in p.parts)
            if not found:
                logger.warning("no .elm files under %s", path)
            paths.extend(found)
        else:
            paths.append(path)
    return paths


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the 'check' command."""
    CheckerRunner, default_registry = _import_checkers()
    ElmCheckError = _import_errors()
    colors = _get_colors()

    try:
        config = _load_config(args)
        manifest = config.load_manifest()
    except ElmCheckError as exc:
        sys.stderr.write(f"{colors.RED}{exc.to_gcc_format()}{colors.RESET}\n")
        return EXIT_ERROR

    for warning in config.validate():
        logger.warning("configuration: %s", warning)

    registry = default_registry()
    enabled = [name for name in registry.names if name not in config.disabled_checkers]
    runner = CheckerRunner(
        registry=registry,
        suppressions=config.suppression_manager(),
        options=config.checker_options(),
        manifest=manifest,
    )
    try:
        results = runner.run_files(_expand_paths(args.files), checkers=enabled)
    except ElmCheckError as exc:
        sys.stderr.write(f"{colors.RED}{exc.to_gcc_format()}{colors.RESET}\n")
        return EXIT_ERROR

    for error in results.errors:
        sys.stderr.write(f"{colors.RED}{error.to_gcc_format()}{colors.RESET}\n")

    if config.output_format == "json":
        if results.diagnostics:
            sys.stdout.write(results.to_json_lines() + "\n")
    else:
        for diag in results.diagnostics:
            sys.stdout.write(diag.to_gcc_format() + "\n")
        if not args.quiet:
            sys.stderr.write(results.summary() + "\n")

    if results.errors:
        return EXIT_ERROR
    return EXIT_FINDINGS if results.diagnostics else EXIT_CLEAN


def cmd_parse(args: argparse.Namespace) -> int:
    """Handle the 'parse' command: print what the parser saw."""
    parse_file = _import_parser()
    ElmCheckError = _import_errors()
    colors = _get_colors()

    try:
        module = parse_file(args.file)
    except ElmCheckError as exc:
        sys.stderr.write(f"{colors.RED}{exc.to_gcc_format()}{colors.RESET}\n")
        return EXIT_ERROR

    out = sys.stdout
    kind = "module"
    if module.header is not None and module.header.is_port_module:
        kind = "port module"
    elif module.header is not None and module.header.is_effect_module:
        kind = "effect module"
    out.write(f"{kind} {'.'.join(module.name)}\n")
    for imp in module.imports:
        alias = f" as {imp.alias}" if imp.alias else ""
        out.write(f"  import {'.'.join(imp.module_name)}{alias}\n")
    for decl in module.declarations:
        out.write(f"  {type(decl).__name__} {decl.name} @ {decl.range}\n")
    return EXIT_CLEAN


def cmd_list_checkers(args: argparse.Namespace) -> int:
    """Handle the 'list-checkers' command."""
    _, default_registry = _import_checkers()
    registry = default_registry()
    for name in registry.names:
        cls = registry.get_by_name(name)
        ids = ", ".join(sorted(cls.error_ids))
        sys.stdout.write(f"  {name:25s} {cls.description}\n")
        sys.stdout.write(f"  {'':25s} IDs: {ids}\n")
    return EXIT_CLEAN


# ═══════════════════════════════════════════════════════════════════════════
# ARGUMENT PARSER
# ═══════════════════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the elmcheck CLI."""
    parser = argparse.ArgumentParser(
        prog="elmcheck",
        description="Static checks for Elm source code",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              %(prog)s check src/
              %(prog)s check src/Main.elm --format json
              %(prog)s check src/ --permissive --suppress ignoredError
              %(prog)s parse src/Main.elm
              %(prog)s list-checkers
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log debug output")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Only log errors, no summary")

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # ── check ────────────────────────────────────────────────────────────

    p_check = subparsers.add_parser(
        "check",
        help="Run the checkers over Elm files",
        description="Run the checkers over Elm files and directories.",
    )
    p_check.add_argument("files", nargs="+", metavar="FILE",
                         help=".elm files or directories to search")
    p_check.add_argument("--config", metavar="PATH",
                         help="Configuration file (default: ./elmcheck.json if present)")
    p_check.add_argument("--permissive", action="store_true",
                         help="Report every 'Err _', without resolving where Err comes from")
    p_check.add_argument("--result-module", metavar="MODULE",
                         help="Module the Err constructor must come from (default: Result)")
    p_check.add_argument("--manifest", action="append", metavar="PATH",
                         help="JSON manifest of dependency modules (repeatable)")
    p_check.add_argument("--format", choices=["text", "json"],
                         help="Output format (default: text)")
    p_check.add_argument("--disable", action="append", metavar="NAME",
                         help="Disable a checker by name (repeatable)")
    p_check.add_argument("--suppress", action="append", metavar="ID",
                         help="Suppress an error id (repeatable)")
    p_check.set_defaults(func=cmd_check)

    # ── parse ────────────────────────────────────────────────────────────

    p_parse = subparsers.add_parser(
        "parse",
        help="Parse a file and summarise its declarations",
    )
    p_parse.add_argument("file", metavar="FILE")
    p_parse.set_defaults(func=cmd_parse)

    # ── list-checkers ────────────────────────────────────────────────────

    p_list = subparsers.add_parser(
        "list-checkers",
        help="List the registered checkers",
    )
    p_list.set_defaults(func=cmd_list_checkers)

    return parser


# ═══════════════════════════════════════════════════════════════════════════
# MAIN
# ═══════════════════════════════════════════════════════════════════════════

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the elmcheck CLI.

    Returns
    -------
    int
        Exit code (0 = clean, 1 = diagnostics, 2 = errors).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_CLEAN

    _configure_logging(args.verbose, args.quiet)

    try:
        return args.func(args)
    except KeyboardInterrupt:
        sys.stderr.write("\nInterrupted.\n")
        return 130


if __name__ == "__main__":
    sys.exit(main())
