"""Test case records produced by synthesis and consumed by emission."""

from dataclasses import dataclass, field
from enum import Enum

from stge.diagnostics import AnalysisWarning
from stge.synthesis.assertions import Assertion


class TestKind(Enum):
    """What a test case exercises."""

    __test__ = False

    BASIC = "basic"
    BRANCH = "branch"
    WHEN_ENTRY = "when_entry"
    WHEN_ELSE = "when_else"


@dataclass(frozen=True)
class ParameterBinding:
    """Value(s) bound to one parameter; varargs carry several."""

    name: str
    type_name: str
    values: tuple[str, ...]
    is_variadic: bool = False

    @property
    def value(self) -> str:
        return ", ".join(self.values)


@dataclass(frozen=True)
class Invocation:
    """The call under test.

    arguments are Kotlin expressions: parameter names for bound values and
    the literal values themselves for varargs.
    """

    function: str
    arguments: tuple[str, ...] = ()
    receiver: str | None = None
    captures_result: bool = True


@dataclass(frozen=True)
class SharedSetup:
    """Instance construction shared by every test of a class suite."""

    class_name: str
    qualified_name: str
    constructor_arguments: tuple[str, ...] = ()
    is_object: bool = False


@dataclass(frozen=True)
class TestCase:
    """One generated test."""

    __test__ = False

    name: str
    kind: TestKind
    target_declaration: str
    target_function: str
    file: str
    package: str = ""
    bindings: tuple[ParameterBinding, ...] = ()
    invocation: Invocation | None = None
    assertions: tuple[Assertion, ...] = ()
    setup: SharedSetup | None = None
    required_symbols: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()

    @property
    def is_branch_test(self) -> bool:
        return self.kind != TestKind.BASIC


@dataclass
class SynthesisResult:
    """Test cases in generation order plus the warnings raised producing them."""

    test_cases: list[TestCase] = field(default_factory=list)
    warnings: list[AnalysisWarning] = field(default_factory=list)

    @property
    def basic_count(self) -> int:
        return sum(1 for test_case in self.test_cases if not test_case.is_branch_test)

    @property
    def branch_count(self) -> int:
        return sum(1 for test_case in self.test_cases if test_case.is_branch_test)
