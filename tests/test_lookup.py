# tests/test_lookup.py
"""
Tests for dependency manifests, import scopes and the module name
lookup table.
"""

import json

import pytest

from elmcheck.ast_nodes import FunctionOrValue, NamedPattern
from elmcheck.errors import ManifestError
from elmcheck.lookup import (
    RESULT_MODULE,
    DependencyManifest,
    ImportScope,
    ModuleInterface,
    ModuleNameLookupTable,
    default_imports,
    iter_constructor_references,
)
from elmcheck.parser import parse_module
from elmcheck.visitor import iter_module_patterns


API_ELM = """\
module Api exposing (Error(..), Status)

type Error
    = Err String
    | Timeout


type Status
    = Ready
"""


def named_patterns(module, name):
    return [p for p in iter_module_patterns(module)
            if isinstance(p, NamedPattern) and p.name == name]


def origin_of(source, name="Err", manifest=None):
    module = parse_module(source)
    table = ModuleNameLookupTable.build(module, manifest)
    (pattern,) = named_patterns(module, name)
    return table.module_name_for(pattern)


def case_on(pattern, prelude=""):
    return (
        f"module Main exposing (..)\n{prelude}\n"
        f"v =\n    case x of\n        {pattern} ->\n            1\n"
    )


@pytest.fixture(scope="module")
def api_manifest():
    api = ModuleInterface.from_module(parse_module(API_ELM))
    return DependencyManifest.core().merge(DependencyManifest([api]))


class TestModuleInterface:

    def test_core_result(self):
        result = DependencyManifest.core().get(RESULT_MODULE)
        assert result.constructors_of("Result") == ("Ok", "Err")
        assert result.exposes_constructor("Err")

    def test_core_maybe(self):
        maybe = DependencyManifest.core().get(("Maybe",))
        assert maybe.constructors() == ("Just", "Nothing")

    def test_from_module_honours_exposing(self):
        api = ModuleInterface.from_module(parse_module(API_ELM))
        assert api.name == ("Api",)
        assert dict(api.types) == {"Error": ("Err", "Timeout")}

    def test_from_module_expose_all(self):
        module = parse_module("module Local exposing (..)\n\ntype Thing = Err ()\n")
        assert ModuleInterface.from_module(module).constructors() == ("Err",)


class TestDependencyManifest:

    def test_contains(self):
        manifest = DependencyManifest.core()
        assert ("Result",) in manifest
        assert ("Platform", "Cmd") in manifest
        assert "Result" not in manifest

    def test_from_dict(self):
        manifest = DependencyManifest.from_dict(
            {"modules": {"Http": {"Error": ["BadUrl", "Timeout"]}}}
        )
        assert len(manifest) == 1
        assert manifest.get(("Http",)).constructors_of("Error") == ("BadUrl", "Timeout")

    def test_to_dict_round_trip(self):
        data = {"modules": {"Json.Decode": {"Error": ["Field", "Failure"]}}}
        assert DependencyManifest.from_dict(data).to_dict() == data

    @pytest.mark.parametrize("data", [
        [],
        {},
        {"modules": []},
        {"modules": {"Http": ["Error"]}},
        {"modules": {"Http": {"Error": "BadUrl"}}},
        {"modules": {"Http": {"Error": [1, 2]}}},
    ])
    def test_from_dict_rejects(self, data):
        with pytest.raises(ManifestError):
            DependencyManifest.from_dict(data, source="deps.json")

    def test_merge_other_wins(self):
        base = DependencyManifest.core()
        override = DependencyManifest([ModuleInterface(("Result",), {"Result": ("Ok",)})])
        merged = base.merge(override)
        assert merged.get(RESULT_MODULE).constructors() == ("Ok",)
        assert base.get(RESULT_MODULE).constructors() == ("Ok", "Err")

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "deps.json"
        path.write_text(json.dumps({"modules": {"Http": {"Error": ["Timeout"]}}}))
        assert ("Http",) in DependencyManifest.from_json_file(path)

    def test_from_json_file_invalid(self, tmp_path):
        path = tmp_path / "deps.json"
        path.write_text("{ not json")
        with pytest.raises(ManifestError) as exc_info:
            DependencyManifest.from_json_file(path)
        assert exc_info.value.span.file == str(path)

    def test_from_json_file_missing(self, tmp_path):
        with pytest.raises(ManifestError):
            DependencyManifest.from_json_file(tmp_path / "missing.json")


class TestDefaultImports:

    def test_modules(self):
        names = [imp.module_name for imp in default_imports()]
        assert ("Basics",) in names
        assert ("Result",) in names
        assert ("Platform", "Cmd") in names

    def test_aliases(self):
        aliases = {imp.alias for imp in default_imports() if imp.alias}
        assert aliases == {"Cmd", "Sub"}

    def test_result_constructors_exposed(self):
        scope = ImportScope.for_module(parse_module("x = 1\n"), DependencyManifest.core())
        assert scope.resolve((), "Err") == RESULT_MODULE
        assert scope.resolve((), "Just") == ("Maybe",)
        assert scope.resolve((), "True") == ("Basics",)


class TestImportScope:

    def test_qualified_through_module_name(self):
        scope = ImportScope.for_module(parse_module("x = 1\n"), DependencyManifest.core())
        assert scope.resolve(("Result",), "Err") == RESULT_MODULE

    def test_unknown_qualifier(self):
        scope = ImportScope.for_module(parse_module("x = 1\n"), DependencyManifest.core())
        assert scope.resolve(("Nope",), "Err") is None

    def test_unknown_unqualified(self):
        scope = ImportScope.for_module(parse_module("x = 1\n"), DependencyManifest.core())
        assert scope.resolve((), "Whatever") is None

    def test_shared_alias_disambiguated_by_manifest(self, api_manifest):
        module = parse_module("import Api as X\nimport Maybe as X\n\nx = 1\n")
        scope = ImportScope.for_module(module, api_manifest)
        assert scope.resolve(("X",), "Timeout") == ("Api",)
        assert scope.resolve(("X",), "Just") == ("Maybe",)
        assert scope.resolve(("X",), "Unknown") is None


class TestLookupTable:

    def test_unqualified_err(self):
        assert origin_of(case_on("Err _")) == RESULT_MODULE

    def test_qualified_err(self):
        assert origin_of(case_on("Result.Err _")) == RESULT_MODULE

    def test_aliased_err(self):
        assert origin_of(case_on("R.Err _", prelude="import Result as R\n")) == RESULT_MODULE

    def test_local_constructor_shadows_default(self):
        source = case_on("Err _", prelude="type Thing = Err ()\n")
        assert origin_of(source) == ("Main",)

    def test_other_namespace_without_import(self):
        assert origin_of(case_on("Thing.Err _")) is None

    def test_other_namespace_with_import(self):
        assert origin_of(case_on("Thing.Err _", prelude="import Thing\n")) == ("Thing",)

    def test_explicit_import_overrides_default(self, api_manifest):
        source = case_on("Err _", prelude="import Api exposing (Error(..))\n")
        assert origin_of(source, manifest=api_manifest) == ("Api",)

    def test_closed_type_import_exposes_no_constructors(self, api_manifest):
        source = case_on("Err _", prelude="import Api exposing (Error)\n")
        assert origin_of(source, manifest=api_manifest) == RESULT_MODULE

    def test_function_argument_patterns(self):
        assert origin_of("f (Just a) = a\n", name="Just") == ("Maybe",)

    def test_constructor_values(self):
        module = parse_module('v = Err "boom"\n')
        table = ModuleNameLookupTable.build(module)
        (ref,) = [node for node in iter_constructor_references(module)
                  if isinstance(node, FunctionOrValue)]
        assert table.module_name_for(ref) == RESULT_MODULE

    def test_lowercase_values_are_not_recorded(self):
        module = parse_module("v = identity x\n")
        assert len(ModuleNameLookupTable.build(module)) == 0

    def test_table_module_name(self):
        module = parse_module(API_ELM)
        assert ModuleNameLookupTable.build(module).module_name == ("Api",)
