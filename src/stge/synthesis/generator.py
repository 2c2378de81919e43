"""Branch-coverage test case synthesis.

For every testable function one basic test is produced, followed by tests
for each if branch (one per planned truth assignment) and each when branch
(one per entry plus a catch-all test).
"""

import logging
import random
import re
from dataclasses import dataclass, field
from pathlib import Path

from stge.config import Config, SynthesisConfig
from stge.constants import MOCK_SYMBOL
from stge.diagnostics import AnalysisWarning, WarningKind, record_warning
from stge.model.models import (
    BranchKind,
    ClassDecl,
    ConditionalBranch,
    FunctionDecl,
    Parameter,
    ProgramModel,
    scope_path,
)
from stge.synthesis.assertions import Assertion, AssertionSynthesizer
from stge.synthesis.call_sites import CallSiteIndex, split_arguments
from stge.synthesis.combinations import CombinationGenerator
from stge.synthesis.conditions import Condition, atom_shape, decompose, evaluate, to_method_name
from stge.synthesis.models import (
    Invocation,
    ParameterBinding,
    SharedSetup,
    SynthesisResult,
    TestCase,
    TestKind,
)
from stge.synthesis.types import TypeFamily, base_type, type_family
from stge.synthesis.values import MOCK_VALUE, ValueSynthesizer, atom_holds

logger = logging.getLogger(__name__)

IDENTIFIER = re.compile(r"\b[A-Za-z_]\w*\b")
RECEIVER = "testInstance"


def _capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


@dataclass
class _Run:
    """Per-run collaborators; a fresh set is built for every synthesize()."""

    model: ProgramModel
    values: ValueSynthesizer
    combinations: CombinationGenerator
    assertions: AssertionSynthesizer
    warnings: list[AnalysisWarning] = field(default_factory=list)


@dataclass
class _Target:
    """A function under test with everything shared by its tests."""

    function: FunctionDecl
    owner: ClassDecl | None
    setup: SharedSetup | None
    variadic: dict[int, tuple[str, ...]]
    base_symbols: tuple[str, ...]


class TestSynthesizer:
    """Turns a Program Model into test cases.

    The same model and seed always give the same test cases; the random
    generator is re-seeded at the start of every run.
    """

    __test__ = False

    def __init__(self, settings: SynthesisConfig | None = None):
        self.settings = settings if settings is not None else Config(Path(".")).synthesis

    def synthesize(self, model: ProgramModel) -> SynthesisResult:
        """Synthesize tests for every testable function in the model.

        Args:
            model: Fully built (and optionally analyzed) Program Model.

        Returns:
            SynthesisResult with test cases in generation order.
        """
        rng = random.Random(self.settings.seed)
        run = _Run(
            model=model,
            values=ValueSynthesizer(rng, CallSiteIndex.from_model(model)),
            combinations=CombinationGenerator(
                policy=self.settings.combination_policy,
                budget=self.settings.attempt_budget,
                max_exhaustive_atoms=self.settings.max_exhaustive_atoms,
                rng=rng,
            ),
            assertions=AssertionSynthesizer(self.settings.oracle_mode),
        )

        test_cases: list[TestCase] = []
        for function in model.functions:
            owner = model.class_named(function.containing_class) if function.is_method else None
            if not self._is_testable(function, owner):
                logger.debug(f"Skipping {function.qualified_name}")
                continue

            target = self._target(run, function, owner)
            test_cases.append(self._basic_test(run, target))
            for branch in model.branches_for(function):
                if branch.kind == BranchKind.IF:
                    test_cases.extend(self._if_tests(run, target, branch))
                elif branch.kind == BranchKind.WHEN:
                    test_cases.extend(self._when_tests(run, target, branch))

        result = SynthesisResult(test_cases=test_cases, warnings=run.warnings)
        logger.info(
            f"Synthesized {len(test_cases)} test cases "
            f"({result.basic_count} basic, {result.branch_count} branch)"
        )
        return result

    @staticmethod
    def _is_testable(function: FunctionDecl, owner: ClassDecl | None) -> bool:
        if function.is_private or function.name == "<anonymous>":
            return False
        if function.is_method:
            # Enum constants cannot be constructed by a test
            return owner is not None and not (owner.is_abstract or owner.is_enum)
        # Local functions cannot be called from outside their enclosing body
        return "." not in scope_path(function.scope_id)

    # -------------------------------------------------------------------------
    # Shared per-function state
    # -------------------------------------------------------------------------

    def _target(self, run: _Run, function: FunctionDecl, owner: ClassDecl | None) -> _Target:
        setup = None
        symbols: set[str] = set()
        types = [parameter.type_name for parameter in function.parameters]

        if owner is not None:
            arguments = tuple(
                run.values.neutral_value(parameter.type_name)
                for parameter in owner.constructor_parameters
                if not parameter.is_variadic
            )
            setup = SharedSetup(
                class_name=owner.local_name,
                qualified_name=owner.qualified_name,
                constructor_arguments=() if owner.is_object else arguments,
                is_object=owner.is_object,
            )
            types.extend(parameter.type_name for parameter in owner.constructor_parameters)
            if owner.package:
                symbols.add(owner.qualified_name)
        elif function.package:
            symbols.add(f"{function.package}.{function.name}")

        source_file = run.model.source_file(function.file)
        if source_file is not None:
            for type_name in types:
                name = base_type(type_name)
                symbols.update(
                    imported for imported in source_file.imports if imported.endswith(f".{name}")
                )

        variadic = {
            index: run.values.variadic_values(function, index)
            for index, parameter in enumerate(function.parameters)
            if parameter.is_variadic
        }
        return _Target(function, owner, setup, variadic, tuple(sorted(symbols)))

    def _neutral_values(self, run: _Run, target: _Target) -> dict[str, str]:
        return {
            parameter.name: run.values.neutral_value(parameter.type_name)
            for parameter in target.function.parameters
            if not parameter.is_variadic
        }

    def _drive(
        self,
        run: _Run,
        function: FunctionDecl,
        conditions: list[Condition],
        assignment: tuple[bool, ...],
        values: dict[str, str],
    ) -> tuple[bool, ...]:
        """Overwrite subject parameter values so each atom takes its assigned truth.

        When several atoms test the same parameter, the first candidate value
        that satisfies all of them is kept; if none does the last one wins.

        Returns:
            The truth assignment the bound values actually produce. Atoms
            whose truth cannot be judged keep their assigned truth.
        """
        parameters = {p.name: p for p in function.parameters if not p.is_variadic}
        shapes = [atom_shape(condition.text) for condition in conditions]
        driven = [
            (shape, truth)
            for shape, truth in zip(shapes, assignment)
            if shape is not None and shape.subject in parameters
        ]

        for subject in dict.fromkeys(shape.subject for shape, _ in driven):
            atoms = [(shape, truth) for shape, truth in driven if shape.subject == subject]
            candidates = [
                run.values.value_for_atom(parameters[subject], shape, truth, values)
                for shape, truth in atoms
            ]
            values[subject] = next(
                (
                    candidate
                    for candidate in candidates
                    if all(
                        atom_holds(shape, candidate, values) in (truth, None)
                        for shape, truth in atoms
                    )
                ),
                candidates[-1],
            )

        actual = []
        for shape, truth in zip(shapes, assignment):
            holds = None
            if shape is not None and shape.subject in parameters:
                holds = atom_holds(shape, values[shape.subject], values)
            actual.append(truth if holds is None else holds)
        return tuple(actual)

    # -------------------------------------------------------------------------
    # Test case assembly
    # -------------------------------------------------------------------------

    def _test_case(
        self,
        target: _Target,
        name: str,
        kind: TestKind,
        values: dict[str, str],
        assertions: tuple[Assertion, ...],
        notes: tuple[str, ...],
    ) -> TestCase:
        function = target.function
        bindings: list[ParameterBinding] = []
        arguments: list[str] = []
        after_vararg = False

        for index, parameter in enumerate(function.parameters):
            if parameter.is_variadic:
                variadic_values = target.variadic.get(index, ())
                bindings.append(
                    ParameterBinding(parameter.name, parameter.type_name, variadic_values, True)
                )
                arguments.extend(variadic_values)
                after_vararg = True
                continue
            value = values[parameter.name]
            bindings.append(ParameterBinding(parameter.name, parameter.type_name, (value,)))
            arguments.append(
                f"{parameter.name} = {parameter.name}" if after_vararg else parameter.name
            )

        symbols = set(target.base_symbols)
        setup_arguments = target.setup.constructor_arguments if target.setup else ()
        if any(MOCK_VALUE in value for b in bindings for value in b.values) or any(
            MOCK_VALUE in argument for argument in setup_arguments
        ):
            symbols.add(MOCK_SYMBOL)

        if target.owner is not None:
            declaration = target.owner.qualified_name
        elif function.package:
            declaration = f"{function.package}.{function.name}"
        else:
            declaration = function.name

        return TestCase(
            name=name,
            kind=kind,
            target_declaration=declaration,
            target_function=function.name,
            file=function.file,
            package=function.package,
            bindings=tuple(bindings),
            invocation=Invocation(
                function=function.name,
                arguments=tuple(arguments),
                receiver=RECEIVER if target.owner is not None else None,
                captures_result=type_family(function.return_type) != TypeFamily.VOID,
            ),
            assertions=assertions,
            setup=target.setup,
            required_symbols=tuple(sorted(symbols)),
            notes=notes,
        )

    def _basic_test(self, run: _Run, target: _Target) -> TestCase:
        function = target.function
        values = {
            parameter.name: run.values.pool_value(parameter.type_name)
            for parameter in function.parameters
            if not parameter.is_variadic
        }
        return self._test_case(
            target,
            f"test{_capitalize(function.name)}",
            TestKind.BASIC,
            values,
            run.assertions.for_basic(function),
            (f"Basic invocation of {function.name}",),
        )

    # -------------------------------------------------------------------------
    # If branches
    # -------------------------------------------------------------------------

    def _if_tests(self, run: _Run, target: _Target, branch: ConditionalBranch) -> list[TestCase]:
        function = target.function
        conditions = decompose(branch.condition or "")
        if not conditions:
            record_warning(
                run.warnings,
                WarningKind.ANALYSIS_INCONSISTENCY,
                f"Branch in {function.name} has no condition",
                branch.file,
                branch.line,
            )
            return []

        plan = run.combinations.plan(conditions)
        if plan.exhausted:
            record_warning(
                run.warnings,
                WarningKind.COVERAGE_SEARCH_EXHAUSTED,
                f"Only reached {len(plan.combinations)} of 2 outcomes for "
                f"'{branch.condition}' in {function.name}",
                branch.file,
                branch.line,
            )

        tests = []
        seen: set[tuple[bool, ...]] = set()
        for combination in plan.combinations:
            values = self._neutral_values(run, target)
            assignment = self._drive(run, function, conditions, combination.assignment, values)
            if assignment in seen:
                logger.debug(
                    f"Dropping {combination.assignment} for '{branch.condition}': "
                    f"its values give {assignment}, which is already tested"
                )
                continue
            seen.add(assignment)
            outcome = evaluate(conditions, assignment)

            atoms = "And".join(
                ("" if truth else "Not") + to_method_name(condition.text)
                for condition, truth in zip(conditions, assignment)
            )
            label = "TRUE" if outcome else "FALSE"
            tests.append(
                self._test_case(
                    target,
                    f"test{_capitalize(function.name)}When{atoms}",
                    TestKind.BRANCH,
                    values,
                    run.assertions.for_branch(
                        function,
                        conditions,
                        branch.condition or "",
                        outcome,
                        values,
                        branch.body,
                    ),
                    (f"Testing branch coverage for condition: '{branch.condition}' is {label}",),
                )
            )
        return tests

    # -------------------------------------------------------------------------
    # When branches
    # -------------------------------------------------------------------------

    def _when_tests(self, run: _Run, target: _Target, when: ConditionalBranch) -> list[TestCase]:
        entries = run.model.entries_for(when)
        if not entries:
            return []
        if when.condition:
            return self._subject_when_tests(run, target, when, entries)
        return self._subjectless_when_tests(run, target, entries)

    @staticmethod
    def _subject_parameter(function: FunctionDecl, subject: str) -> Parameter | None:
        candidates = [p for p in function.parameters if not p.is_variadic]
        for parameter in candidates:
            if parameter.name == subject.strip():
                return parameter
        mentioned = set(IDENTIFIER.findall(subject))
        for parameter in candidates:
            if parameter.name in mentioned:
                return parameter
        return None

    def _subject_when_tests(
        self,
        run: _Run,
        target: _Target,
        when: ConditionalBranch,
        entries: list[ConditionalBranch],
    ) -> list[TestCase]:
        function = target.function
        parameter = self._subject_parameter(function, when.condition or "")
        plan = run.combinations.plan_when(
            entries,
            parameter.type_name if parameter else None,
            self.settings.else_retry_limit,
        )
        if plan.exhausted:
            record_warning(
                run.warnings,
                WarningKind.UNIQUENESS_RETRY_EXHAUSTED,
                f"No else value for when({when.condition}) in {function.name} "
                f"avoids every entry",
                when.file,
                when.line,
            )

        by_id = {entry.id: entry for entry in entries}
        tests = []
        for entry_value in plan.values:
            values = self._neutral_values(run, target)
            if parameter is not None and entry_value.value is not None:
                values[parameter.name] = entry_value.value

            entry = by_id.get(entry_value.entry_id) if entry_value.entry_id is not None else None
            if entry_value.is_else and entry is None:
                name = f"test{_capitalize(function.name)}WhenElseBranch"
                notes = (f"Testing when else branch of when({when.condition})",)
            else:
                name = f"test{_capitalize(function.name)}When{to_method_name(entry_value.label)}"
                notes = (f"Testing when branch: {entry_value.label}",)

            tests.append(
                self._test_case(
                    target,
                    name,
                    TestKind.WHEN_ELSE if entry_value.is_else else TestKind.WHEN_ENTRY,
                    values,
                    run.assertions.for_when_entry(
                        function,
                        entry_value.label,
                        values,
                        entry.body if entry else None,
                        parameter.name if parameter else None,
                    ),
                    notes,
                )
            )
        return tests

    def _subjectless_when_tests(
        self, run: _Run, target: _Target, entries: list[ConditionalBranch]
    ) -> list[TestCase]:
        function = target.function
        tests = []
        catch_all = None
        first_atoms: list[Condition] = []

        for entry in entries:
            if entry.is_catch_all:
                catch_all = entry
                continue
            cases = split_arguments(entry.condition or "")
            conditions = decompose(cases[0]) if cases else []
            values = self._neutral_values(run, target)

            if conditions:
                first_atoms.append(conditions[0])
                plan = run.combinations.plan(conditions)
                chosen = next((c for c in plan.combinations if c.outcome), None)
                if chosen is None:
                    record_warning(
                        run.warnings,
                        WarningKind.COVERAGE_SEARCH_EXHAUSTED,
                        f"Could not make '{entry.condition}' true in {function.name}",
                        entry.file,
                        entry.line,
                    )
                else:
                    self._drive(run, function, conditions, chosen.assignment, values)

            tests.append(
                self._test_case(
                    target,
                    f"test{_capitalize(function.name)}When{to_method_name(entry.condition or '')}",
                    TestKind.WHEN_ENTRY,
                    values,
                    run.assertions.for_when_entry(
                        function, entry.condition or "", values, entry.body
                    ),
                    (f"Testing when branch: {entry.condition}",),
                )
            )

        values = self._neutral_values(run, target)
        for atom in first_atoms:
            # Effective value false: assigned truth equals the negation flag
            self._drive(run, function, [atom], (atom.negated,), values)
        name_suffix = "Else" if catch_all is not None else "ElseBranch"
        tests.append(
            self._test_case(
                target,
                f"test{_capitalize(function.name)}When{name_suffix}",
                TestKind.WHEN_ELSE,
                values,
                run.assertions.for_when_entry(
                    function, "else", values, catch_all.body if catch_all else None
                ),
                ("Testing when else branch",),
            )
        )
        return tests
