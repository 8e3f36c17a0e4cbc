# tests/test_ignored_error.py
"""
Tests for the no-ignored-error rule: the pattern classifier, the origin
checks and the case-arm visitor over parsed modules.
"""

import pytest

from elmcheck.ast_nodes import (
    AsPattern,
    ListPattern,
    LiteralPattern,
    NamedPattern,
    ParenthesizedPattern,
    SourceRange,
    TuplePattern,
    UnConsPattern,
    VarPattern,
    WildcardPattern,
)
from elmcheck.errors import ConfigError, ErrorCodes
from elmcheck.ignored_error import (
    DETAILS,
    MESSAGE,
    AnyOrigin,
    CaseArmVisitor,
    ExactModule,
    Finding,
    NameResolver,
    RuleContext,
    case_arm_findings,
    classify,
    find_ignored_errors,
    origin_check_from_options,
)
from elmcheck.lookup import RESULT_MODULE, ModuleNameLookupTable
from elmcheck.parser import parse_module


# ─────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────

def rng(row, start, end):
    return SourceRange.of(row, start, row, end)


def wildcard(col=5):
    return WildcardPattern(rng(1, col, col + 1))


def err(argument=None, module_name=(), col=1):
    argument = argument if argument is not None else wildcard(col + 4)
    return NamedPattern(module_name, "Err", (argument,), rng(1, col, col + 5))


class StubResolver:
    """Resolves every constructor to one fixed origin and counts calls."""

    def __init__(self, origin=RESULT_MODULE):
        self.origin = origin
        self.calls = 0

    def resolve(self, pattern):
        self.calls += 1
        return self.origin


def text_at(source, range_):
    assert range_.start.row == range_.end.row
    line = source.splitlines()[range_.start.row - 1]
    return line[range_.start.column - 1:range_.end.column - 1]


def module_source(arms, prelude=""):
    """A module with one case expression whose arms are ``<pattern> -> 1``."""
    body = "\n\n".join(f"        {pattern} ->\n            1" for pattern in arms)
    return (
        f"module A exposing (..)\n{prelude}\n"
        f"a =\n    case foo of\n{body}\n"
    )


def findings_for(arms, prelude="", origin_check=None):
    source = module_source(arms, prelude)
    module = parse_module(source)
    return source, find_ignored_errors(module, origin_check=origin_check)


# ─────────────────────────────────────────────────────────────
# Classifier
# ─────────────────────────────────────────────────────────────

class TestClassify:

    def test_err_wildcard(self):
        pattern = err()
        assert classify(StubResolver(), [pattern]) == [Finding(pattern.range)]

    def test_message_and_details(self):
        (finding,) = classify(StubResolver(), [err()])
        assert finding.message == "The error is being ignored."
        assert finding.details == (
            "Please check whether the error can't be used to improve the "
            "situation for the user. You can for instance display the error "
            "message to the user or re-attempt the operation.",
        )
        assert (finding.message, finding.details) == (MESSAGE, DETAILS)

    def test_empty(self):
        assert classify(StubResolver(), []) == []

    @pytest.mark.parametrize("argument", [
        VarPattern("e", rng(1, 5, 6)),
        LiteralPattern("unit", None, rng(1, 5, 7)),
        ParenthesizedPattern(WildcardPattern(rng(1, 6, 7)), rng(1, 5, 8)),
    ])
    def test_non_wildcard_argument(self, argument):
        assert classify(StubResolver(), [err(argument)]) == []

    def test_wrong_arity(self):
        pattern = NamedPattern((), "Err", (wildcard(), wildcard(7)), rng(1, 1, 8))
        assert classify(StubResolver(), [pattern]) == []

    def test_other_constructor_name(self):
        pattern = NamedPattern((), "Error", (wildcard(),), rng(1, 1, 8))
        assert classify(StubResolver(), [pattern]) == []

    @pytest.mark.parametrize("wrap", [
        lambda p: NamedPattern((), "Just", (p,), rng(1, 1, 20)),
        lambda p: ParenthesizedPattern(p, rng(1, 1, 20)),
        lambda p: UnConsPattern(p, VarPattern("rest", rng(1, 10, 14)), rng(1, 1, 20)),
        lambda p: ListPattern((p,), rng(1, 1, 20)),
        lambda p: TuplePattern((wildcard(), p), rng(1, 1, 20)),
        lambda p: AsPattern(p, "error", rng(1, 1, 20)),
    ])
    def test_found_at_any_depth(self, wrap):
        inner = err()
        assert classify(StubResolver(), [wrap(wrap(inner))]) == [Finding(inner.range)]

    def test_depth_first_left_to_right(self):
        first, second, third = err(col=1), err(col=10), err(col=20)
        tuple_ = TuplePattern(
            (NamedPattern((), "Just", (first,), rng(1, 1, 9)), second),
            rng(1, 1, 16),
        )
        findings = classify(StubResolver(), [tuple_, third])
        assert [f.range for f in findings] == [first.range, second.range, third.range]

    def test_confirmed_match_is_not_searched(self):
        resolver = StubResolver()
        classify(resolver, [err()])
        assert resolver.calls == 1

    def test_other_origin_is_not_reported(self):
        assert classify(StubResolver(("A",)), [err()]) == []

    def test_unresolved_is_not_reported(self):
        assert classify(StubResolver(None), [err()]) == []

    def test_no_resolver_strict(self):
        assert classify(None, [err()]) == []

    def test_no_resolver_permissive(self):
        assert len(classify(None, [err()], AnyOrigin())) == 1

    def test_err_payload_is_searched(self):
        inner = err(col=6)
        outer = NamedPattern((), "Err", (inner,), rng(1, 1, 12))
        assert classify(StubResolver(), [outer]) == [Finding(inner.range)]

    def test_shadowed_err_consults_resolver_once(self):
        resolver = StubResolver(("Local",))
        assert classify(resolver, [err()]) == []
        assert resolver.calls == 1


class TestOriginChecks:

    def test_any_origin_ignores_resolver(self):
        resolver = StubResolver(("Other",))
        assert AnyOrigin().confirms(resolver, err())
        assert resolver.calls == 0

    def test_exact_module_default(self):
        assert ExactModule() == ExactModule(("Result",))
        assert ExactModule().confirms(StubResolver(), err())

    def test_exact_module_custom(self):
        check = ExactModule(["Api", "Result"])
        assert check.module == ("Api", "Result")
        assert check.confirms(StubResolver(("Api", "Result")), err())
        assert not check.confirms(StubResolver(), err())

    def test_hashable(self):
        assert len({ExactModule(), ExactModule(["Result"])}) == 1

    @pytest.mark.parametrize("kind,expected", [
        ("exact", ExactModule()),
        ("any", AnyOrigin),
    ])
    def test_from_options(self, kind, expected):
        check = origin_check_from_options(kind)
        if isinstance(expected, type):
            assert isinstance(check, expected)
        else:
            assert check == expected

    def test_from_options_module(self):
        assert origin_check_from_options("exact", ("Api",)) == ExactModule(("Api",))

    @pytest.mark.parametrize("module", [(), ("Api", "")])
    def test_from_options_invalid_module(self, module):
        with pytest.raises(ConfigError) as exc_info:
            origin_check_from_options("exact", module)
        assert exc_info.value.code == ErrorCodes.INVALID_CONFIG

    def test_from_options_module_unused_when_permissive(self):
        assert isinstance(origin_check_from_options("any", ()), AnyOrigin)

    def test_from_options_unknown(self):
        with pytest.raises(ConfigError) as exc_info:
            origin_check_from_options("loose")
        assert exc_info.value.code == ErrorCodes.UNKNOWN_OPTION


# ─────────────────────────────────────────────────────────────
# Whole modules
# ─────────────────────────────────────────────────────────────

class TestScenarios:

    def test_ok_and_err_arms(self):
        source, findings = findings_for(["Ok ()", "Err _"])
        assert len(findings) == 1
        assert text_at(source, findings[0].range) == "Err _"

    def test_local_type_shadows_result(self):
        _, findings = findings_for(["Err _"], prelude="type Thing = Err ()\n")
        assert findings == []

    @pytest.mark.parametrize("prelude", ["", "import Thing\n"])
    def test_other_namespace(self, prelude):
        _, findings = findings_for(["Thing.Err _"], prelude=prelude)
        assert findings == []

    def test_err_with_unit(self):
        _, findings = findings_for(["Err ()"])
        assert findings == []

    def test_err_with_binding(self):
        _, findings = findings_for(["Err error"])
        assert findings == []

    def test_nested_in_constructor(self):
        source, findings = findings_for(["Just (Err _)"])
        assert len(findings) == 1
        assert findings[0].range.start.column == 15
        assert text_at(source, findings[0].range) == "Err _"

    @pytest.mark.parametrize("pattern", [
        "Err _ :: list",
        "[ Err _ ]",
        "( _, Err _ )",
        "((Err _) as error)",
    ])
    def test_nested_shapes(self, pattern):
        source, findings = findings_for([pattern])
        assert len(findings) == 1
        assert text_at(source, findings[0].range) == "Err _"

    def test_arm_order_then_depth(self):
        source, findings = findings_for(["( Err _, Just (Err _) )", "Err _"])
        assert [(f.range.start.row, f.range.start.column) for f in findings] == [
            (5, 11), (5, 24), (8, 9),
        ]
        assert all(text_at(source, f.range) == "Err _" for f in findings)

    def test_qualified(self):
        source, findings = findings_for(["Result.Err _"])
        assert len(findings) == 1
        assert text_at(source, findings[0].range) == "Result.Err _"

    def test_aliased(self):
        source, findings = findings_for(["R.Err _"], prelude="import Result as R\n")
        assert len(findings) == 1
        assert text_at(source, findings[0].range) == "R.Err _"

    def test_permissive_reports_shadowed(self):
        _, findings = findings_for(
            ["Err _"], prelude="type Thing = Err ()\n", origin_check=AnyOrigin(),
        )
        assert len(findings) == 1

    def test_explicit_table(self):
        module = parse_module(module_source(["Err _"]))
        table = ModuleNameLookupTable.build(module)
        assert len(find_ignored_errors(module, table=table)) == 1


class TestCaseArmVisitor:

    def test_ignores_non_case_expressions(self):
        module = parse_module("v = Err 1\n")
        ctx = RuleContext(NameResolver(ModuleNameLookupTable.build(module)), ExactModule())
        expression = module.functions()[0].expression
        assert case_arm_findings(expression, ctx) == []

    def test_function_arguments_not_checked(self):
        module = parse_module("f (Err _) = 1\n")
        assert find_ignored_errors(module) == []

    def test_case_in_let_and_lambda(self):
        source = (
            "v =\n"
            "    let\n"
            "        g =\n"
            "            \\r ->\n"
            "                case r of\n"
            "                    Err _ ->\n"
            "                        0\n"
            "\n"
            "                    Ok n ->\n"
            "                        n\n"
            "    in\n"
            "    g\n"
        )
        findings = find_ignored_errors(parse_module(source))
        assert [f.range for f in findings] == [SourceRange.of(6, 21, 6, 26)]

    def test_case_in_arm_body(self):
        source = (
            "v =\n"
            "    case a of\n"
            "        Ok b ->\n"
            "            case b of\n"
            "                Err _ ->\n"
            "                    0\n"
            "\n"
            "                Ok c ->\n"
            "                    c\n"
            "\n"
            "        Err _ ->\n"
            "            1\n"
        )
        findings = find_ignored_errors(parse_module(source))
        assert [f.range.start.row for f in findings] == [11, 5]

    def test_visitor_accumulates(self):
        module = parse_module(module_source(["Err _"]))
        ctx = RuleContext(NameResolver(ModuleNameLookupTable.build(module)), ExactModule())
        visitor = CaseArmVisitor()
        visitor.visit_module(module, ctx)
        visitor.visit_module(module, ctx)
        assert len(visitor.findings) == 2
