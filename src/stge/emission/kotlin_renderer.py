"""Render test suites as Kotlin JUnit 5 source."""

from dataclasses import dataclass
from pathlib import Path

from stge.emission.suites import TestSuite
from stge.synthesis.assertions import Assertion, AssertionKind
from stge.synthesis.models import TestCase
from stge.synthesis.values import kotlin_string

INDENT = "    "

JUNIT_IMPORTS = ["org.junit.jupiter.api.Assertions.*", "org.junit.jupiter.api.Test"]
BEFORE_EACH_IMPORT = "org.junit.jupiter.api.BeforeEach"


@dataclass(frozen=True)
class RenderedSuite:
    """Kotlin source for one suite and where it belongs under the output root."""

    package: str
    class_name: str
    relative_path: Path
    source: str


def _message(text: str) -> str:
    return kotlin_string(text)


def render_assertion(assertion: Assertion) -> list[str]:
    """Kotlin statements for one assertion."""
    subject = assertion.subject
    expected = assertion.expected
    message = _message(assertion.message) if assertion.message else None
    tail = f", {message})" if message else ")"

    kind = assertion.kind
    if kind == AssertionKind.NOT_NULL:
        if assertion.message:
            return [f"assertNotNull(result) // {assertion.message}"]
        return ["assertNotNull(result)"]
    if kind == AssertionKind.COMPLETES:
        return [f"// {assertion.message or 'Verifies the call completes without error'}"]
    if kind == AssertionKind.EQUALS:
        return [f"assertEquals({expected}, {subject}{tail}"]
    if kind == AssertionKind.NOT_EQUALS:
        return [f"assertNotEquals({expected}, {subject}{tail}"]
    if kind == AssertionKind.GREATER_THAN:
        return [f"assertTrue({subject} > {expected}{tail}"]
    if kind == AssertionKind.AT_MOST:
        return [f"assertTrue({subject} <= {expected}{tail}"]
    if kind == AssertionKind.LESS_THAN:
        return [f"assertTrue({subject} < {expected}{tail}"]
    if kind == AssertionKind.AT_LEAST:
        return [f"assertTrue({subject} >= {expected}{tail}"]
    if kind == AssertionKind.IS_TRUE:
        return [f"assertTrue({subject}{tail}"]
    if kind == AssertionKind.IS_FALSE:
        return [f"assertFalse({subject}{tail}"]
    if kind == AssertionKind.NOT_EMPTY:
        return [f"assertTrue({subject}.isNotEmpty(){tail}"]
    if kind == AssertionKind.EMPTY_OR_CONTAINS:
        return [f"assertTrue({subject}.contains({expected}) || {subject}.isEmpty(){tail}"]
    if kind == AssertionKind.CONTAINS:
        return [f"assertTrue({subject}.contains({expected}){tail}"]
    if kind == AssertionKind.NOT_CONTAINS:
        return [f"assertFalse({subject}.contains({expected}){tail}"]
    raise ValueError(f"Unknown assertion kind: {kind}")


class KotlinTestRenderer:
    """Turns TestSuites into Kotlin source files."""

    def render(self, suite: TestSuite) -> RenderedSuite:
        lines: list[str] = []
        if suite.package:
            lines.extend([f"package {suite.package}", ""])

        imports = set(JUNIT_IMPORTS) | set(suite.imports)
        if suite.setup is not None and not suite.setup.is_object:
            imports.add(BEFORE_EACH_IMPORT)
        lines.extend(f"import {symbol}" for symbol in sorted(imports))
        lines.extend(["", f"class {suite.class_name} {{"])

        if suite.setup is not None:
            lines.append("")
            lines.extend(self._setup_lines(suite))

        for test_case in suite.test_cases:
            lines.append("")
            lines.extend(INDENT + line if line else "" for line in self._test_lines(test_case))

        lines.extend(["}", ""])

        package_path = Path(*suite.package.split(".")) if suite.package else Path()
        return RenderedSuite(
            package=suite.package,
            class_name=suite.class_name,
            relative_path=package_path / f"{suite.class_name}.kt",
            source="\n".join(lines),
        )

    @staticmethod
    def _setup_lines(suite: TestSuite) -> list[str]:
        setup = suite.setup
        if setup.is_object:
            return [f"{INDENT}private val testInstance = {setup.class_name}"]
        arguments = ", ".join(setup.constructor_arguments)
        return [
            f"{INDENT}private lateinit var testInstance: {setup.class_name}",
            "",
            f"{INDENT}@BeforeEach",
            f"{INDENT}fun setUp() {{",
            f"{INDENT * 2}testInstance = {setup.class_name}({arguments})",
            f"{INDENT}}}",
        ]

    @staticmethod
    def _test_lines(test_case: TestCase) -> list[str]:
        lines = ["@Test", f"fun {test_case.name}() {{"]

        bindings = [binding for binding in test_case.bindings if not binding.is_variadic]
        for binding in bindings:
            lines.append(f"{INDENT}val {binding.name}: {binding.type_name} = {binding.value}")
        if bindings:
            lines.append("")

        for note in test_case.notes:
            lines.append(f"{INDENT}// {note}")

        invocation = test_case.invocation
        if invocation is not None:
            call = f"{invocation.function}({', '.join(invocation.arguments)})"
            if invocation.receiver:
                call = f"{invocation.receiver}.{call}"
            if invocation.captures_result:
                lines.append(f"{INDENT}val result = {call}")
            else:
                lines.append(INDENT + call)

        for assertion in test_case.assertions:
            lines.extend(INDENT + line for line in render_assertion(assertion))

        lines.append("}")
        return lines
