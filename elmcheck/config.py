# elmcheck/config.py
"""
Configuration for an elmcheck run.

Settings come from an optional ``elmcheck.json`` file and are overridden
by command-line flags::

    {
      "origin_check": "exact",
      "result_module": ["Result"],
      "disabled_checkers": [],
      "suppressions": [],
      "file_suppressions": {"src/Legacy/*.elm": ["ignoredError"]},
      "manifest_paths": ["elm-manifest.json"],
      "output_format": "text"
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .checkers import SuppressionManager
from .errors import ConfigError, ErrorCodes, SourceSpan
from .lookup import DependencyManifest

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "elmcheck.json"

ORIGIN_CHECKS = ("exact", "any")
OUTPUT_FORMATS = ("text", "json")


@dataclass
class CheckConfig:
    """Options of one run of the checkers."""
    origin_check: str = "exact"
    result_module: List[str] = field(default_factory=lambda: ["Result"])
    disabled_checkers: List[str] = field(default_factory=list)
    suppressions: List[str] = field(default_factory=list)
    file_suppressions: Dict[str, List[str]] = field(default_factory=dict)
    manifest_paths: List[str] = field(default_factory=list)
    output_format: str = "text"

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid).

        Loading never logs these; the caller decides how to report them.
        """
        warnings: List[str] = []
        if self.origin_check not in ORIGIN_CHECKS:
            warnings.append(
                f"origin_check must be one of {', '.join(ORIGIN_CHECKS)}, "
                f"got {self.origin_check!r}"
            )
        if not self.result_module:
            warnings.append("result_module must not be empty")
        elif self.origin_check == "any" and self.result_module != ["Result"]:
            warnings.append("result_module has no effect with origin_check 'any'")
        if self.output_format not in OUTPUT_FORMATS:
            warnings.append(
                f"output_format must be one of {', '.join(OUTPUT_FORMATS)}, "
                f"got {self.output_format!r}"
            )
        return warnings

    def checker_options(self) -> Dict[str, Any]:
        """Options dict handed to checkers through ``CheckerContext``."""
        return {
            "origin_check": self.origin_check,
            "result_module": tuple(self.result_module),
        }

    def suppression_manager(self) -> SuppressionManager:
        manager = SuppressionManager()
        for error_id in self.suppressions:
            manager.add_global_suppression(error_id)
        for pattern, ids in self.file_suppressions.items():
            for error_id in ids:
                manager.add_file_suppression(error_id, pattern)
        return manager

    def load_manifest(self) -> DependencyManifest:
        """Core manifest merged with every file in ``manifest_paths``."""
        manifest = DependencyManifest.core()
        for path in self.manifest_paths:
            manifest = manifest.merge(DependencyManifest.from_json_file(path))
        return manifest

    @classmethod
    def from_dict(cls, data: Any, source: str = "") -> "CheckConfig":
        span = SourceSpan(source)
        if not isinstance(data, dict):
            raise ConfigError("configuration must be a JSON object", span=span)

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(
                f"unknown option(s): {', '.join(unknown)}",
                code=ErrorCodes.UNKNOWN_OPTION,
                span=span,
                hint=f"Known options: {', '.join(sorted(known))}",
            )

        for key in ("origin_check", "output_format"):
            if key in data and not isinstance(data[key], str):
                raise ConfigError(f"{key} must be a string", span=span)
        for key in ("result_module", "disabled_checkers", "suppressions", "manifest_paths"):
            if key in data and not _is_str_list(data[key]):
                raise ConfigError(f"{key} must be a list of strings", span=span)
        file_suppressions = data.get("file_suppressions", {})
        if not isinstance(file_suppressions, dict) or not all(
            _is_str_list(ids) for ids in file_suppressions.values()
        ):
            raise ConfigError(
                "file_suppressions must map file patterns to lists of error ids",
                span=span,
            )

        config = cls(**{key: data[key] for key in known if key in data})
        if not config.result_module or not all(config.result_module):
            raise ConfigError(
                "result_module must be a non-empty module path",
                span=span,
                hint='For example ["Result"]',
            )
        if config.origin_check not in ORIGIN_CHECKS:
            raise ConfigError(
                f"unknown origin_check {config.origin_check!r}",
                code=ErrorCodes.UNKNOWN_OPTION,
                span=span,
                hint="Use 'exact' or 'any'",
            )
        return config

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "CheckConfig":
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"cannot read configuration: {exc}",
                              span=SourceSpan(str(path))) from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(f"invalid JSON: {exc.msg}",
                              span=SourceSpan(str(path), exc.lineno, exc.colno)) from exc
        return cls.from_dict(data, source=str(path))

    @classmethod
    def discover(cls, directory: Union[str, Path] = ".") -> Optional["CheckConfig"]:
        """Load ``elmcheck.json`` from *directory* if there is one."""
        candidate = Path(directory) / CONFIG_FILE_NAME
        if candidate.is_file():
            logger.debug("using configuration %s", candidate)
            return cls.from_json_file(candidate)
        return None


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


__all__ = [
    "CONFIG_FILE_NAME",
    "ORIGIN_CHECKS",
    "OUTPUT_FORMATS",
    "CheckConfig",
]
