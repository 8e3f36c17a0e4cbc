# elmcheck/lookup.py
"""
Module name resolution for constructor references.

Elm lets a constructor be referenced unqualified (``Err``), qualified by
its module (``Result.Err``) or through an import alias (``R.Err``), and a
module may declare its own constructor with a name that shadows an
imported one.  :class:`ModuleNameLookupTable` settles all of that once
per module: it records, for every constructor in a pattern or an
expression, the module the constructor really comes from.

Resolution order for unqualified names:

  1. constructors declared in the module itself
  2. constructors exposed by the module's own imports
  3. constructors exposed by Elm's default imports

Which constructors a module exposes is described by a
:class:`DependencyManifest`.  :meth:`DependencyManifest.core` knows the
Elm core library; package or project modules are added from JSON files
or from parsed modules.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .ast_nodes import FunctionOrValue, Import, Module, NamedPattern, SourceRange
from .errors import ManifestError, SourceSpan
from .parser import parse_module
from .visitor import iter_module_expressions, iter_module_patterns

logger = logging.getLogger(__name__)

QualifiedName = Tuple[str, ...]

RESULT_MODULE: QualifiedName = ("Result",)

ConstructorReference = Union[NamedPattern, FunctionOrValue]


# ═══════════════════════════════════════════════════════════════════
#  MODULE INTERFACES
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ModuleInterface:
    """The custom types a module exposes with their constructors."""
    name: QualifiedName
    types: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    def constructors(self) -> Tuple[str, ...]:
        return tuple(ctor for ctors in self.types.values() for ctor in ctors)

    def constructors_of(self, type_name: str) -> Tuple[str, ...]:
        return tuple(self.types.get(type_name, ()))

    def exposes_constructor(self, name: str) -> bool:
        return any(name in ctors for ctors in self.types.values())

    @classmethod
    def from_module(cls, module: Module) -> "ModuleInterface":
        """Interface of a parsed project module, honouring its exposing list."""
        exposing = module.header.exposing if module.header is not None else None
        open_types = set(exposing.open_types()) if exposing is not None else set()
        expose_all = exposing is None or exposing.expose_all
        types = {
            decl.name: tuple(ctor.name for ctor in decl.constructors)
            for decl in module.custom_types()
            if expose_all or decl.name in open_types
        }
        return cls(module.name, types)


_CORE_INTERFACES: Dict[str, Dict[str, Tuple[str, ...]]] = {
    "Basics": {"Bool": ("True", "False"), "Order": ("LT", "EQ", "GT")},
    "List": {"List": ()},
    "Maybe": {"Maybe": ("Just", "Nothing")},
    "Result": {"Result": ("Ok", "Err")},
    "String": {"String": ()},
    "Char": {"Char": ()},
    "Tuple": {},
    "Debug": {},
    "Platform": {"Program": (), "Task": (), "ProcessId": ()},
    "Platform.Cmd": {"Cmd": ()},
    "Platform.Sub": {"Sub": ()},
    "Array": {"Array": ()},
    "Dict": {"Dict": ()},
    "Set": {"Set": ()},
    "Task": {"Task": ()},
    "Process": {"Id": ()},
}


class DependencyManifest:
    """
    Mapping of module name → :class:`ModuleInterface`.

    JSON form (``--manifest`` files)::

        {
          "modules": {
            "Http": {"Error": ["BadUrl", "Timeout", "NetworkError",
                               "BadStatus", "BadBody"]}
          }
        }
    """

    def __init__(self, interfaces: Iterable[ModuleInterface] = ()) -> None:
        self._interfaces: Dict[QualifiedName, ModuleInterface] = {}
        for interface in interfaces:
            self.add(interface)

    def add(self, interface: ModuleInterface) -> None:
        self._interfaces[tuple(interface.name)] = interface

    def get(self, name: QualifiedName) -> Optional[ModuleInterface]:
        return self._interfaces.get(tuple(name))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, tuple) and name in self._interfaces

    def __iter__(self) -> Iterator[ModuleInterface]:
        return iter(self._interfaces.values())

    def __len__(self) -> int:
        return len(self._interfaces)

    def merge(self, other: "DependencyManifest") -> "DependencyManifest":
        """New manifest with the interfaces of both; *other* wins on conflicts."""
        return DependencyManifest(list(self) + list(other))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "modules": {
                ".".join(interface.name): {
                    type_name: list(ctors) for type_name, ctors in interface.types.items()
                }
                for interface in self
            }
        }

    @classmethod
    def core(cls) -> "DependencyManifest":
        """Interfaces of the Elm core modules."""
        return cls(
            ModuleInterface(tuple(name.split(".")), dict(types))
            for name, types in _CORE_INTERFACES.items()
        )

    @classmethod
    def from_dict(cls, data: Any, source: str = "") -> "DependencyManifest":
        span = SourceSpan(source)
        if not isinstance(data, dict) or not isinstance(data.get("modules"), dict):
            raise ManifestError(
                "manifest must be an object with a 'modules' object",
                span=span,
            )
        manifest = cls()
        for module_name, types in data["modules"].items():
            if not isinstance(types, dict):
                raise ManifestError(
                    f"module {module_name!r}: expected an object of types",
                    span=span,
                )
            interface_types: Dict[str, Tuple[str, ...]] = {}
            for type_name, ctors in types.items():
                if not isinstance(ctors, list) or not all(isinstance(c, str) for c in ctors):
                    raise ManifestError(
                        f"module {module_name!r}, type {type_name!r}: "
                        "expected a list of constructor names",
                        span=span,
                    )
                interface_types[type_name] = tuple(ctors)
            manifest.add(ModuleInterface(tuple(module_name.split(".")), interface_types))
        return manifest

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "DependencyManifest":
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ManifestError(f"cannot read manifest: {exc}",
                                span=SourceSpan(str(path))) from exc
        except json.JSONDecodeError as exc:
            raise ManifestError(f"invalid JSON: {exc.msg}",
                                span=SourceSpan(str(path), exc.lineno, exc.colno)) from exc
        manifest = cls.from_dict(data, source=str(path))
        logger.debug("loaded manifest %s: %d modules", path, len(manifest))
        return manifest


# ═══════════════════════════════════════════════════════════════════
#  IMPORT SCOPE
# ═══════════════════════════════════════════════════════════════════

DEFAULT_IMPORTS_SOURCE = """\
import Basics exposing (..)
import List exposing (List, (::))
import Maybe exposing (Maybe(..))
import Result exposing (Result(..))
import String exposing (String)
import Char exposing (Char)
import Tuple
import Debug
import Platform exposing (Program)
import Platform.Cmd as Cmd exposing (Cmd)
import Platform.Sub as Sub exposing (Sub)
"""


@lru_cache(maxsize=None)
def default_imports() -> Tuple[Import, ...]:
    """The imports every Elm module gets implicitly."""
    return parse_module(DEFAULT_IMPORTS_SOURCE, file="<default imports>").imports


class ImportScope:
    """Constructor names visible in one module, and where they come from."""

    def __init__(self, manifest: DependencyManifest) -> None:
        self.manifest = manifest
        self.unqualified: Dict[str, QualifiedName] = {}
        self.qualifiers: Dict[str, List[QualifiedName]] = {}

    @classmethod
    def for_module(cls, module: Module, manifest: DependencyManifest) -> "ImportScope":
        scope = cls(manifest)
        for imp in default_imports() + module.imports:
            scope.add_import(imp)
        for decl in module.custom_types():
            for ctor in decl.constructors:
                scope.unqualified[ctor.name] = module.name
        return scope

    def add_import(self, imp: Import) -> None:
        qualifier = imp.alias or ".".join(imp.module_name)
        modules = self.qualifiers.setdefault(qualifier, [])
        if imp.module_name not in modules:
            modules.append(imp.module_name)

        if imp.exposing is None:
            return
        interface = self.manifest.get(imp.module_name)
        if interface is None:
            logger.debug("no interface for %s, exposed constructors unknown",
                         ".".join(imp.module_name))
            return
        if imp.exposing.expose_all:
            names = interface.constructors()
        else:
            names = tuple(
                ctor for type_name in imp.exposing.open_types()
                for ctor in interface.constructors_of(type_name)
            )
        for name in names:
            self.unqualified[name] = imp.module_name

    def resolve(self, module_name: QualifiedName, name: str) -> Optional[QualifiedName]:
        """Origin of constructor *name* written with qualifier *module_name*."""
        if not module_name:
            return self.unqualified.get(name)
        candidates = self.qualifiers.get(".".join(module_name), [])
        for candidate in candidates:
            interface = self.manifest.get(candidate)
            if interface is not None and interface.exposes_constructor(name):
                return candidate
        if len(candidates) == 1:
            return candidates[0]
        return None


# ═══════════════════════════════════════════════════════════════════
#  LOOKUP TABLE
# ═══════════════════════════════════════════════════════════════════

def iter_constructor_references(module: Module) -> Iterator[ConstructorReference]:
    """Constructor patterns and constructor values of *module*."""
    for pattern in iter_module_patterns(module):
        if isinstance(pattern, NamedPattern):
            yield pattern
    for expression in iter_module_expressions(module):
        if isinstance(expression, FunctionOrValue) and expression.is_constructor:
            yield expression


class ModuleNameLookupTable:
    """
    Resolved origin of every constructor reference in one module.

    Entries are keyed by the source range of the referencing node, so the
    table can be queried with any node taken from the same parse.
    """

    def __init__(self, module_name: QualifiedName,
                 entries: Optional[Dict[SourceRange, Optional[QualifiedName]]] = None) -> None:
        self.module_name = module_name
        self._entries: Dict[SourceRange, Optional[QualifiedName]] = dict(entries or {})

    @classmethod
    def build(cls, module: Module,
              manifest: Optional[DependencyManifest] = None) -> "ModuleNameLookupTable":
        scope = ImportScope.for_module(module, manifest or DependencyManifest.core())
        entries = {
            node.range: scope.resolve(node.module_name, node.name)
            for node in iter_constructor_references(module)
        }
        unresolved = sum(1 for origin in entries.values() if origin is None)
        logger.debug("lookup table for %s: %d references, %d unresolved",
                     ".".join(module.name), len(entries), unresolved)
        return cls(module.name, entries)

    def module_name_for(self, node: ConstructorReference) -> Optional[QualifiedName]:
        """Origin module of *node*, or ``None`` when it cannot be resolved."""
        return self._entries.get(node.range)

    def __len__(self) -> int:
        return len(self._entries)


__all__ = [
    "QualifiedName",
    "RESULT_MODULE",
    "ModuleInterface",
    "DependencyManifest",
    "DEFAULT_IMPORTS_SOURCE",
    "default_imports",
    "ImportScope",
    "iter_constructor_references",
    "ModuleNameLookupTable",
]
