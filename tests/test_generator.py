"""Test synthesis tests.

The fixtures mirror small Kotlin programs; see conftest.py for their shape.
"""

from dataclasses import replace
from pathlib import Path

import pytest
from builders import INT_A, INT_B, function, if_branch, when_branch

from stge.config import Config
from stge.constants import MOCK_SYMBOL
from stge.diagnostics import WarningKind
from stge.model.models import ClassDecl, Parameter, ProgramModel, SourceFile, class_scope
from stge.synthesis import AssertionKind, TestKind, TestSynthesizer


@pytest.fixture
def settings():
    """Default synthesis settings."""
    return Config(Path(".")).synthesis


def by_name(result):
    return {test_case.name: test_case for test_case in result.test_cases}


def bound(test_case):
    return {binding.name: binding.value for binding in test_case.bindings}


def assertion_kinds(test_case):
    return [assertion.kind for assertion in test_case.assertions]


# =============================================================================
# If Branches
# =============================================================================


def test_do_work_generates_basic_and_branch_tests(do_work_model):
    """One basic test plus two tests per single-atom if branch."""
    result = TestSynthesizer().synthesize(do_work_model)

    assert [t.name for t in result.test_cases] == [
        "testDoWork",
        "testDoWorkWhenNotA19",
        "testDoWorkWhenA19",
        "testDoWorkWhenNotB0",
        "testDoWorkWhenB0",
    ]
    assert result.basic_count == 1
    assert result.branch_count == 4
    assert result.warnings == []


def test_greater_than_branch_values_and_oracles(do_work_model):
    """a > 19 is driven by a = 20 and a = 18 with matching bounds."""
    tests = by_name(TestSynthesizer().synthesize(do_work_model))

    taken = tests["testDoWorkWhenA19"]
    assert bound(taken)["a"] == "20"
    assert assertion_kinds(taken) == [AssertionKind.NOT_NULL, AssertionKind.GREATER_THAN]
    assert taken.notes == ("Testing branch coverage for condition: 'a > 19' is TRUE",)

    skipped = tests["testDoWorkWhenNotA19"]
    assert bound(skipped)["a"] == "18"
    assert assertion_kinds(skipped) == [AssertionKind.NOT_NULL, AssertionKind.AT_MOST]


def test_equality_branch_values(do_work_model):
    """b == 0 is driven by b = 0 and b = 1; other parameters stay neutral."""
    tests = by_name(TestSynthesizer().synthesize(do_work_model))

    assert bound(tests["testDoWorkWhenB0"]) == {"a": "0", "b": "0"}
    assert bound(tests["testDoWorkWhenNotB0"]) == {"a": "0", "b": "1"}
    assert tests["testDoWorkWhenNotB0"].assertions[1].kind == AssertionKind.NOT_EQUALS


def test_exact_oracle_simulates_bodies(do_work_model, settings):
    """Exact mode asserts simulated values for TRUE outcomes."""
    synthesizer = TestSynthesizer(replace(settings, oracle_mode="exact"))
    tests = by_name(synthesizer.synthesize(do_work_model))

    assert tests["testDoWorkWhenA19"].assertions[1].expected == "20"
    assert tests["testDoWorkWhenB0"].assertions[1].expected == "0"
    assert tests["testDoWorkWhenNotA19"].assertions[1].kind == AssertionKind.AT_MOST


def test_invocation_and_symbols_for_top_level_function(do_work_model):
    """Top-level functions are called directly and imported by package."""
    test_case = TestSynthesizer().synthesize(do_work_model).test_cases[1]

    assert test_case.invocation.function == "doWork"
    assert test_case.invocation.arguments == ("a", "b")
    assert test_case.invocation.receiver is None
    assert test_case.target_declaration == "com.demo.doWork"
    assert test_case.required_symbols == ("com.demo.doWork",)


def test_synthesis_is_repeatable(do_work_model, sum_model):
    """The same model and seed give identical test cases."""
    synthesizer = TestSynthesizer()

    assert synthesizer.synthesize(do_work_model) == synthesizer.synthesize(do_work_model)
    assert synthesizer.synthesize(sum_model) == synthesizer.synthesize(sum_model)


def test_compound_condition_enumerates_assignments(do_work):
    """A two-atom condition yields four tests named after each atom."""
    model = ProgramModel(functions=[do_work], branches=[if_branch(0, "a > 0 && b < 5", do_work)])

    tests = TestSynthesizer().synthesize(model).test_cases[1:]

    assert [t.name for t in tests] == [
        "testDoWorkWhenNotA0AndNotB5",
        "testDoWorkWhenA0AndNotB5",
        "testDoWorkWhenNotA0AndB5",
        "testDoWorkWhenA0AndB5",
    ]
    assert bound(tests[3]) == {"a": "1", "b": "4"}


def test_shared_subject_atoms_are_named_by_their_actual_truth(do_work):
    """Atoms on one parameter share a value; names and labels follow its real truth."""
    model = ProgramModel(
        functions=[do_work], branches=[if_branch(0, "a > 0 && a < 10", do_work)]
    )

    tests = TestSynthesizer().synthesize(model).test_cases[1:]

    assert [(t.name, bound(t)["a"]) for t in tests] == [
        ("testDoWorkWhenA0AndNotA10", "11"),
        ("testDoWorkWhenNotA0AndA10", "-1"),
        ("testDoWorkWhenA0AndA10", "1"),
    ]
    assert [t.notes[0].endswith("is TRUE") for t in tests] == [False, False, True]


def test_exhausted_search_warns(do_work, settings):
    """A targeted search that cannot reach both outcomes is reported."""
    model = ProgramModel(functions=[do_work], branches=[if_branch(0, "a > 0 && b > 0", do_work)])
    synthesizer = TestSynthesizer(
        replace(settings, combination_policy="targeted", attempt_budget=1)
    )

    result = synthesizer.synthesize(model)

    assert [w.kind for w in result.warnings] == [WarningKind.COVERAGE_SEARCH_EXHAUSTED]
    assert len(result.test_cases) == 2


def test_empty_condition_warns(do_work):
    """A branch without condition text is an analysis inconsistency."""
    model = ProgramModel(functions=[do_work], branches=[if_branch(0, "", do_work)])

    result = TestSynthesizer().synthesize(model)

    assert [w.kind for w in result.warnings] == [WarningKind.ANALYSIS_INCONSISTENCY]
    assert len(result.test_cases) == 1


# =============================================================================
# When Branches
# =============================================================================


def calculate_model():
    calculate = function(
        "calculate", (Parameter("op", "String"), INT_A, INT_B), package="com.demo"
    )
    return ProgramModel(
        functions=[calculate],
        branches=when_branch(0, "op", [('"add"', "a + b"), ('"divide"', "a / b")], calculate),
    )


def test_when_entries_and_synthesized_else():
    """Each entry gets a test and a missing else gets one too."""
    tests = TestSynthesizer().synthesize(calculate_model()).test_cases

    assert [t.name for t in tests] == [
        "testCalculate",
        "testCalculateWhenAdd",
        "testCalculateWhenDivide",
        "testCalculateWhenElseBranch",
    ]
    assert [t.kind for t in tests[1:]] == [
        TestKind.WHEN_ENTRY,
        TestKind.WHEN_ENTRY,
        TestKind.WHEN_ELSE,
    ]


def test_when_subject_values():
    """The subject parameter takes each entry literal; else avoids them all."""
    tests = by_name(TestSynthesizer().synthesize(calculate_model()))

    assert bound(tests["testCalculateWhenAdd"])["op"] == '"add"'
    else_value = bound(tests["testCalculateWhenElseBranch"])["op"]
    assert else_value not in ('"add"', '"divide"')
    assert else_value.startswith('"else_case_')


def test_arithmetic_entry_oracle():
    """The add entry expects a + b."""
    tests = by_name(TestSynthesizer().synthesize(calculate_model()))

    assertion = tests["testCalculateWhenAdd"].assertions[1]
    assert assertion.kind == AssertionKind.EQUALS
    assert assertion.expected == "a + b"


def test_integer_when_else_avoids_entries():
    """A when over 1, 2 and 3 gets an else value outside all three."""
    pick = function("pick", (Parameter("x", "Int"),), return_type="String")
    model = ProgramModel(
        functions=[pick],
        branches=when_branch(0, "x", [("1", '"one"'), ("2", '"two"'), ("3", '"three"')], pick),
    )

    tests = by_name(TestSynthesizer().synthesize(model))

    assert bound(tests["testPickWhen1"]) == {"x": "1"}
    assert bound(tests["testPickWhenElseBranch"])["x"] not in ("1", "2", "3")


def test_explicit_else_is_named_after_entry():
    """An explicit else entry keeps its place and name."""
    pick = function("pick", (Parameter("x", "Int"),), return_type="String")
    model = ProgramModel(
        functions=[pick],
        branches=when_branch(0, "x", [("1", '"one"'), ("else", '"other"')], pick),
    )

    names = [t.name for t in TestSynthesizer().synthesize(model).test_cases]

    assert names == ["testPick", "testPickWhen1", "testPickWhenElse"]


def test_boolean_when_without_free_value_warns():
    """A Boolean when covering true and false has no unique else value."""
    flag = function("flag", (Parameter("on", "Boolean"),), return_type="String")
    model = ProgramModel(
        functions=[flag],
        branches=when_branch(0, "on", [("true", '"y"'), ("false", '"n"')], flag),
    )

    result = TestSynthesizer().synthesize(model)

    assert [w.kind for w in result.warnings] == [WarningKind.UNIQUENESS_RETRY_EXHAUSTED]


def test_subjectless_when_drives_conditions():
    """Entries of a subjectless when are made true in turn; else makes all false."""
    grade = function("grade", (Parameter("score", "Int"),), return_type="String")
    model = ProgramModel(
        functions=[grade],
        branches=when_branch(
            0,
            None,
            [("score >= 90", '"A"'), ("score >= 80", '"B"'), ("else", '"C"')],
            grade,
        ),
    )

    tests = by_name(TestSynthesizer().synthesize(model))

    assert bound(tests["testGradeWhenScore90"]) == {"score": "90"}
    assert bound(tests["testGradeWhenScore80"]) == {"score": "80"}
    assert bound(tests["testGradeWhenElse"]) == {"score": "79"}


# =============================================================================
# Classes, Mocks and Varargs
# =============================================================================


def test_private_methods_are_skipped(shop_model):
    """Only the public checkout method is tested."""
    tests = TestSynthesizer().synthesize(shop_model).test_cases

    assert {t.target_function for t in tests} == {"checkout"}
    assert len(tests) == 3


def test_method_tests_share_instance_setup(shop_model):
    """Methods are called on a shared instance built with neutral arguments."""
    test_case = TestSynthesizer().synthesize(shop_model).test_cases[0]

    assert test_case.setup.class_name == "Shop"
    assert test_case.setup.constructor_arguments == ('""',)
    assert test_case.invocation.receiver == "testInstance"
    assert test_case.target_declaration == "com.demo.Shop"


def test_complex_parameters_are_mocked_and_imported(shop_model):
    """Unknown types are mocked and their imports carried along."""
    test_case = TestSynthesizer().synthesize(shop_model).test_cases[0]

    assert bound(test_case)["repository"] == "mock()"
    assert test_case.required_symbols == (
        "com.data.Repository",
        "com.demo.Shop",
        MOCK_SYMBOL,
    )


def test_emptiness_branch_on_method(shop_model):
    """items.isEmpty() is driven by an empty and a one-element list."""
    tests = by_name(TestSynthesizer().synthesize(shop_model))

    assert bound(tests["testCheckoutWhenItemsIsEmpty"])["items"] == "listOf()"
    assert bound(tests["testCheckoutWhenNotItemsIsEmpty"])["items"] == 'listOf("")'


def test_abstract_owner_is_skipped():
    """Methods of abstract classes and interfaces are not tested."""
    shape = ClassDecl(
        name="Shape",
        qualified_name="Shape",
        file="/src/Shape.kt",
        line=1,
        end_line=3,
        scope_id=class_scope("Shape"),
        is_abstract=True,
    )
    area = function("area", return_type="Double", containing_class="Shape")
    model = ProgramModel(files=[SourceFile("/src/Shape.kt")], classes=[shape], functions=[area])

    assert TestSynthesizer().synthesize(model).test_cases == []


def test_enum_owner_is_skipped():
    """Enum methods are not tested; enum constants cannot be constructed."""
    color = ClassDecl(
        name="Color",
        qualified_name="Color",
        file="/src/Color.kt",
        line=1,
        end_line=5,
        scope_id=class_scope("Color"),
        constructor_parameters=(Parameter("rgb", "Int"),),
        is_enum=True,
    )
    hex_code = function("hex", return_type="String", containing_class="Color")
    model = ProgramModel(
        files=[SourceFile("/src/Color.kt")], classes=[color], functions=[hex_code]
    )

    assert TestSynthesizer().synthesize(model).test_cases == []


def test_object_setup_has_no_constructor():
    """Objects are referenced, not constructed."""
    registry = ClassDecl(
        name="Registry",
        qualified_name="Registry",
        file="/src/Registry.kt",
        line=1,
        end_line=3,
        scope_id=class_scope("Registry"),
        is_object=True,
    )
    size = function("size", containing_class="Registry", file="/src/Registry.kt")
    model = ProgramModel(classes=[registry], functions=[size])

    setup = TestSynthesizer().synthesize(model).test_cases[0].setup

    assert setup.is_object
    assert setup.constructor_arguments == ()


def test_local_functions_are_skipped():
    """Functions declared inside another function are not tested."""
    inner = replace(function("inner"), scope_id="function:outer.inner")

    assert TestSynthesizer().synthesize(ProgramModel(functions=[inner])).test_cases == []


def test_vararg_reuses_observed_call(sum_model):
    """sum(vararg) is invoked with the arguments main passes to it."""
    tests = by_name(TestSynthesizer().synthesize(sum_model))

    test_case = tests["testSum"]
    assert test_case.invocation.arguments == ("1", "2", "3", "4", "5")
    assert test_case.bindings[0].is_variadic


def test_unit_function_does_not_capture_result(sum_model):
    """Calls to Unit functions are not assigned to a result."""
    tests = by_name(TestSynthesizer().synthesize(sum_model))

    assert not tests["testMain"].invocation.captures_result
    assert assertion_kinds(tests["testMain"]) == [AssertionKind.COMPLETES]
