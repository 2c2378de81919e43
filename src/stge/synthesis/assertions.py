"""Oracle synthesis for generated tests.

The heuristic oracle guesses a bound on the result from the shape of the
branch condition and the function's return type. The exact oracle simulates
a narrow class of single-expression branch bodies on integer bindings.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from stge.constants import (
    ARITHMETIC_OPERATION_NAMES,
    DEFAULT_ORACLE_MODE,
    LARGE_RESULT_THRESHOLD,
    POSITIVE_RESULT_THRESHOLD,
)
from stge.model.models import FunctionDecl
from stge.synthesis.conditions import AtomShape, Condition, ShapeKind, atom_shape
from stge.synthesis.types import TypeFamily, base_type, is_nullable, type_family
from stge.synthesis.values import kotlin_string

logger = logging.getLogger(__name__)


class AssertionKind(Enum):
    NOT_NULL = "not_null"
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    AT_MOST = "at_most"
    LESS_THAN = "less_than"
    AT_LEAST = "at_least"
    IS_TRUE = "is_true"
    IS_FALSE = "is_false"
    NOT_EMPTY = "not_empty"
    EMPTY_OR_CONTAINS = "empty_or_contains"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    COMPLETES = "completes"


@dataclass(frozen=True)
class Assertion:
    """One check on the call's result.

    expected is Kotlin expression text (a literal, a parameter name or an
    arithmetic expression over parameters). subject is what the check reads,
    "result!!" when the return type is nullable.
    """

    kind: AssertionKind
    expected: str | None = None
    message: str = ""
    subject: str = "result"


# =============================================================================
# Exact-Value Simulation
# =============================================================================

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1
LONG_MIN = -(2**63)
LONG_MAX = 2**63 - 1

OPERAND = r"([A-Za-z_]\w*|-?\d+L?)"
BINARY_EXPRESSION = re.compile(rf"^{OPERAND}\s*([-+*/%])\s*{OPERAND}$")
SINGLE_OPERAND = re.compile(rf"^{OPERAND}$")
INTEGER = re.compile(r"^-?\d+L?$")


def _strip_body(body: str) -> str | None:
    text = body.strip()
    if text.startswith("="):
        text = text[1:].strip()
    if text.startswith("{") and text.endswith("}"):
        text = text[1:-1].strip()
    statements = [line.strip() for line in re.split(r"[;\n]", text) if line.strip()]
    if len(statements) != 1:
        return None
    statement = statements[0]
    if statement.startswith("return "):
        statement = statement[len("return ") :].strip()
    return statement


def _resolve(operand: str, bindings: dict[str, str]) -> int | None:
    if INTEGER.match(operand):
        return int(operand.rstrip("L"))
    value = bindings.get(operand)
    if value is not None and INTEGER.match(value.strip()):
        return int(value.strip().rstrip("L"))
    return None


def _truncating_divide(left: int, right: int) -> int:
    quotient = abs(left) // abs(right)
    return quotient if (left >= 0) == (right >= 0) else -quotient


def simulate(body: str | None, bindings: dict[str, str], return_type: str = "Int") -> str | None:
    """Evaluate a single-expression body with integer semantics.

    Recognizes an integer literal, a parameter, or `p OP q` with OP in
    + - * / %. Division follows Kotlin: quotients truncate toward zero and
    remainders take the dividend's sign.

    Returns:
        The result as literal text, or None when the body is outside the
        recognized subset, an operand is unbound, the divisor is zero, or the
        result overflows the return type.
    """
    if not body:
        return None
    expression = _strip_body(body)
    if expression is None:
        return None

    kind = base_type(return_type)
    if kind not in ("Int", "Long", "Short", "Byte"):
        return None

    match = SINGLE_OPERAND.match(expression)
    if match:
        result = _resolve(match.group(1), bindings)
    else:
        match = BINARY_EXPRESSION.match(expression)
        if not match:
            return None
        left = _resolve(match.group(1), bindings)
        right = _resolve(match.group(3), bindings)
        if left is None or right is None:
            return None
        operator = match.group(2)
        if operator in "/%" and right == 0:
            return None
        if operator == "+":
            result = left + right
        elif operator == "-":
            result = left - right
        elif operator == "*":
            result = left * right
        elif operator == "/":
            result = _truncating_divide(left, right)
        else:
            result = left - right * _truncating_divide(left, right)

    if result is None:
        return None
    if kind == "Long":
        return f"{result}L" if LONG_MIN <= result <= LONG_MAX else None
    return str(result) if INT_MIN <= result <= INT_MAX else None


# =============================================================================
# Synthesizer
# =============================================================================

ARITHMETIC_EXPRESSIONS = {
    "add": "{0} + {1}",
    "sum": "{0} + {1}",
    "subtract": "{0} - {1}",
    "multiply": "{0} * {1}",
    "max": "maxOf({0}, {1})",
    "min": "minOf({0}, {1})",
}


class AssertionSynthesizer:
    """Builds assertions from condition shapes, outcomes and return types."""

    def __init__(self, oracle_mode: str = DEFAULT_ORACLE_MODE):
        self.oracle_mode = oracle_mode

    def for_branch(
        self,
        function: FunctionDecl,
        conditions: Sequence[Condition],
        condition_text: str,
        outcome: bool,
        bindings: dict[str, str],
        body: str | None = None,
    ) -> tuple[Assertion, ...]:
        """Assertions for one if-branch test.

        Single-atom conditions use the atom table, compound ones the
        return-type table. In exact mode a TRUE outcome whose body simulates
        gets an equality check instead.
        """
        if outcome and self.oracle_mode == "exact":
            exact = self._exact(function, body, bindings)
            if exact:
                return exact

        if len(conditions) == 1:
            return self.for_atom(function, condition_text, atom_shape(conditions[0].text), outcome)
        return self.for_combination(function, condition_text, outcome)

    def for_atom(
        self,
        function: FunctionDecl,
        condition_text: str,
        shape: AtomShape | None,
        outcome: bool,
    ) -> tuple[Assertion, ...]:
        family = type_family(function.return_type)
        if family == TypeFamily.VOID:
            return (self._completes(condition_text, outcome),)

        subject = self._subject(function)
        assertions = [Assertion(AssertionKind.NOT_NULL, message="Basic verification")]
        parameters = {parameter.name: parameter for parameter in function.parameters}
        operator = shape.operator if shape and shape.kind == ShapeKind.COMPARISON else None
        about = f"for condition '{condition_text}'"

        if family == TypeFamily.NUMERIC:
            if operator in (">", ">="):
                kind = AssertionKind.GREATER_THAN if outcome else AssertionKind.AT_MOST
                description = "positive" if outcome else "non-positive"
                assertions.append(
                    Assertion(
                        kind,
                        str(POSITIVE_RESULT_THRESHOLD),
                        f"Expected {description} result {about}",
                        subject,
                    )
                )
            elif operator in ("<", "<="):
                kind = AssertionKind.LESS_THAN if outcome else AssertionKind.AT_LEAST
                description = "small" if outcome else "large"
                assertions.append(
                    Assertion(
                        kind,
                        str(LARGE_RESULT_THRESHOLD),
                        f"Expected {description} result {about}",
                        subject,
                    )
                )
            elif operator in ("==", "!=") and shape.subject in parameters:
                matches = outcome if operator == "==" else not outcome
                if matches:
                    message = f"Result should match parameter {about}"
                else:
                    message = f"Result should not match parameter {about}"
                assertions.append(
                    Assertion(
                        AssertionKind.EQUALS if matches else AssertionKind.NOT_EQUALS,
                        shape.subject,
                        message,
                        subject,
                    )
                )
            else:
                assertions.append(
                    Assertion(
                        AssertionKind.AT_LEAST,
                        "0",
                        f"Expected non-negative result {about}",
                        subject,
                    )
                )

        elif family == TypeFamily.TEXTUAL:
            if shape and shape.kind == ShapeKind.EMPTINESS:
                if outcome:
                    assertions.append(
                        Assertion(
                            AssertionKind.NOT_EMPTY,
                            message=f"Expected non-empty result {about}",
                            subject=subject,
                        )
                    )
                else:
                    assertions.append(
                        Assertion(
                            AssertionKind.EMPTY_OR_CONTAINS,
                            '"empty"',
                            "Result should indicate emptiness for FALSE branch",
                            subject,
                        )
                    )
            elif operator == "==" and shape.subject in parameters:
                parameter = parameters[shape.subject]
                expected = shape.subject
                if type_family(parameter.type_name) != TypeFamily.TEXTUAL:
                    expected = f"{shape.subject}.toString()"
                elif is_nullable(parameter.type_name):
                    expected = f"{shape.subject}.toString()"
                assertions.append(self._contains(expected, outcome, "parameter value", subject))
            elif operator == "==" and shape.operand and shape.operand.startswith('"'):
                assertions.append(self._contains(shape.operand, outcome, "literal", subject))
            else:
                assertions.append(
                    Assertion(
                        AssertionKind.NOT_NULL,
                        message=f"Result should be valid for branch: {condition_text} = {outcome}",
                    )
                )

        elif family == TypeFamily.BOOLEAN:
            if operator is not None:
                kind = AssertionKind.IS_TRUE if outcome else AssertionKind.IS_FALSE
                label = "TRUE" if outcome else "FALSE"
                assertions.append(
                    Assertion(
                        kind,
                        message=f"Expected {label} result for {label} branch condition",
                        subject=subject,
                    )
                )
            else:
                assertions.append(
                    Assertion(
                        AssertionKind.EQUALS,
                        "true" if outcome else "false",
                        "Result should match condition state",
                        subject,
                    )
                )

        return tuple(assertions)

    def for_combination(
        self, function: FunctionDecl, condition_text: str, outcome: bool
    ) -> tuple[Assertion, ...]:
        family = type_family(function.return_type)
        if family == TypeFamily.VOID:
            return (self._completes(condition_text, outcome),)

        subject = self._subject(function)
        assertions = [Assertion(AssertionKind.NOT_NULL, message="Basic verification")]
        label = "TRUE" if outcome else "FALSE"

        if family == TypeFamily.NUMERIC:
            assertions.append(
                Assertion(
                    AssertionKind.AT_LEAST if outcome else AssertionKind.AT_MOST,
                    "0",
                    f"Expected {'non-negative' if outcome else 'non-positive'} result "
                    f"when '{condition_text}' is {label}",
                    subject,
                )
            )
        elif family == TypeFamily.BOOLEAN:
            assertions.append(
                Assertion(
                    AssertionKind.EQUALS,
                    "true" if outcome else "false",
                    "Result should match condition state",
                    subject,
                )
            )
        return tuple(assertions)

    def for_when_entry(
        self,
        function: FunctionDecl,
        entry_literal: str,
        bindings: dict[str, str] | None = None,
        body: str | None = None,
        subject_name: str | None = None,
    ) -> tuple[Assertion, ...]:
        """Assertions for the test that selects one when entry.

        Args:
            function: Function under test.
            entry_literal: The entry's condition text ("else" for the catch-all).
            bindings: Parameter values of the test, for exact simulation.
            body: The entry's body, for exact simulation.
            subject_name: Parameter the when subject matches, excluded from
                arithmetic hints.
        """
        family = type_family(function.return_type)
        if family == TypeFamily.VOID:
            return (
                Assertion(
                    AssertionKind.COMPLETES,
                    message=f"Verifies the '{entry_literal}' branch completes without error",
                ),
            )

        if self.oracle_mode == "exact" and entry_literal != "else":
            exact = self._exact(function, body, bindings or {})
            if exact:
                return exact

        subject = self._subject(function)
        assertions = [Assertion(AssertionKind.NOT_NULL, message="Basic verification")]
        operation = entry_literal.strip().strip('"')

        if family == TypeFamily.NUMERIC and operation in ARITHMETIC_OPERATION_NAMES:
            operands = [
                parameter.name
                for parameter in function.parameters
                if parameter.name != subject_name
                and type_family(parameter.type_name) == TypeFamily.NUMERIC
                and not parameter.is_variadic
            ]
            template = ARITHMETIC_EXPRESSIONS.get(operation)
            if template and len(operands) >= 2:
                assertions.append(
                    Assertion(
                        AssertionKind.EQUALS,
                        template.format(operands[0], operands[1]),
                        f"Result should reflect the '{operation}' operation",
                        subject,
                    )
                )
        elif family == TypeFamily.TEXTUAL and entry_literal != "else":
            assertions.append(
                Assertion(
                    AssertionKind.CONTAINS,
                    kotlin_string(operation),
                    "Result should reflect the when branch condition",
                    subject,
                )
            )

        return tuple(assertions)

    def for_basic(self, function: FunctionDecl) -> tuple[Assertion, ...]:
        if type_family(function.return_type) == TypeFamily.VOID:
            return (
                Assertion(
                    AssertionKind.COMPLETES,
                    message="Verifies the method executes without exceptions",
                ),
            )
        return (Assertion(AssertionKind.NOT_NULL, message="Result should not be null"),)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _exact(
        self, function: FunctionDecl, body: str | None, bindings: dict[str, str]
    ) -> tuple[Assertion, ...] | None:
        value = simulate(body, bindings, function.return_type)
        if value is None:
            return None
        logger.debug(f"Exact oracle for {function.name}: {value}")
        return (
            Assertion(AssertionKind.NOT_NULL, message="Basic verification"),
            Assertion(
                AssertionKind.EQUALS,
                value,
                "Result should equal the simulated branch value",
                self._subject(function),
            ),
        )

    @staticmethod
    def _subject(function: FunctionDecl) -> str:
        return "result!!" if is_nullable(function.return_type) else "result"

    @staticmethod
    def _completes(condition_text: str, outcome: bool) -> Assertion:
        label = "TRUE" if outcome else "FALSE"
        return Assertion(
            AssertionKind.COMPLETES,
            message=f"Verifies the {label} branch of '{condition_text}' completes without error",
        )

    @staticmethod
    def _contains(expected: str, outcome: bool, what: str, subject: str) -> Assertion:
        if outcome:
            return Assertion(
                AssertionKind.CONTAINS,
                expected,
                f"Result should contain {what} for TRUE condition",
                subject,
            )
        return Assertion(
            AssertionKind.NOT_CONTAINS,
            expected,
            f"Result should not contain {what} for FALSE condition",
            subject,
        )
