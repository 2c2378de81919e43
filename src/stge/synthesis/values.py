"""Parameter value synthesis.

Every value is returned as Kotlin source text ready to be bound with
`val name: Type = <value>`.
"""

import logging
import random
import re
import string
from operator import eq, ge, gt, le, lt, ne

from stge.constants import (
    ARRAY_FACTORIES,
    COLLECTION_FACTORIES,
    FLOATING_TYPES,
    INTEGER_TYPES,
    INTEGRAL_BOUNDS,
    LONG_STRING_LENGTH,
    LONG_TYPES,
    MAX_VALUE_DEPTH,
    MAX_VARIADIC_VALUES,
    NUMERIC_TYPES,
    RANDOM_INT_BOUND,
    TEXTUAL_TYPES,
)
from stge.model.models import FunctionDecl, Parameter
from stge.synthesis.call_sites import CallSiteIndex
from stge.synthesis.conditions import AtomShape, ShapeKind
from stge.synthesis.types import (
    base_type,
    function_type_parts,
    is_function_type,
    is_nullable,
    type_arguments,
)

logger = logging.getLogger(__name__)

MOCK_VALUE = "mock()"

NUMBER_LITERAL = re.compile(r"^(-?\d[\d_]*)(\.\d+)?([LlFfDd]?)$")
STRING_LITERAL = re.compile(r'^"((?:\\.|[^"\\])*)"$')


def kotlin_string(text: str) -> str:
    """Quote text as a Kotlin string literal."""
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\r", "\\r")
        .replace("\0", "\\u0000")
        .replace("$", "\\$")
    )
    return f'"{escaped}"'


def parse_number(literal: str | None) -> int | float | None:
    """Numeric value of a Kotlin number literal, or None."""
    if literal is None:
        return None
    match = NUMBER_LITERAL.match(literal.strip())
    if not match:
        return None
    whole = match.group(1).replace("_", "")
    if match.group(2) or match.group(3) in ("F", "f", "D", "d"):
        return float(whole + (match.group(2) or ""))
    return int(whole)


def format_number(value: int | float, type_name: str) -> str:
    """Render a number as a literal of the given numeric type."""
    kind = base_type(type_name)
    if kind in FLOATING_TYPES:
        text = repr(float(value))
        return f"{text}f" if kind == "Float" else text
    number = int(value)
    if kind in LONG_TYPES:
        return f"{number}L"
    return str(number)


def numeric_value(text: str | None) -> int | float | None:
    """Numeric value of a number literal or an integral MIN_VALUE/MAX_VALUE constant."""
    number = parse_number(text)
    if number is not None or text is None:
        return number
    kind, _, constant = text.strip().partition(".")
    bounds = INTEGRAL_BOUNDS.get(kind)
    if bounds is None or constant not in ("MIN_VALUE", "MAX_VALUE"):
        return None
    return bounds[0] if constant == "MIN_VALUE" else bounds[1]


COMPARATORS = {">": gt, ">=": ge, "<": lt, "<=": le, "==": eq, "!=": ne}


def atom_holds(
    shape: AtomShape, value: str | None, known: dict[str, str] | None = None
) -> bool | None:
    """Truth of an atom when its subject is bound to `value`.

    Only literal values are judged; None means the truth cannot be told
    from the text alone.
    """
    if value is None:
        return None
    value = value.strip()

    if shape.kind == ShapeKind.BOOLEAN:
        return {"true": True, "false": False}.get(value)
    if shape.kind != ShapeKind.COMPARISON or shape.operator not in COMPARATORS:
        return None

    operand = (shape.operand or "").strip()
    if known and operand in known:
        operand = known[operand].strip()

    left, right = numeric_value(value), numeric_value(operand)
    if left is not None and right is not None:
        return COMPARATORS[shape.operator](left, right)

    literals = ("true", "false", "null")
    if shape.operator in ("==", "!=") and all(
        text in literals or STRING_LITERAL.match(text) for text in (value, operand)
    ):
        return COMPARATORS[shape.operator](value, operand)
    return None


class ValueSynthesizer:
    """Produces parameter values from atom shapes, type defaults and pools.

    All randomness comes from the injected generator so a fixed seed gives
    a fixed sequence of values.
    """

    def __init__(self, rng: random.Random, call_sites: CallSiteIndex | None = None):
        self.rng = rng
        self.call_sites = call_sites if call_sites is not None else CallSiteIndex()

    # -------------------------------------------------------------------------
    # Shape-driven values
    # -------------------------------------------------------------------------

    def value_for_atom(
        self,
        parameter: Parameter,
        shape: AtomShape | None,
        desired: bool,
        known: dict[str, str] | None = None,
    ) -> str:
        """Value for `parameter` that makes the atom evaluate to `desired`.

        Args:
            parameter: The atom's subject parameter.
            shape: Recognized atom shape; None falls back to the type default.
            desired: Required truth of the atom text.
            known: Values already bound to other parameters, used when the
                comparison operand is another parameter's name.

        Returns:
            Kotlin literal text.
        """
        if shape is None:
            return self.neutral_value(parameter.type_name)

        kind = base_type(parameter.type_name)

        if shape.kind == ShapeKind.BOOLEAN:
            if kind == "Boolean":
                return "true" if desired else "false"
            return self.neutral_value(parameter.type_name)

        if shape.kind == ShapeKind.EMPTINESS:
            return self._emptiness_value(parameter.type_name, shape.operator or "", desired)

        return self._comparison_value(parameter, shape, desired, known or {})

    def _emptiness_value(self, type_name: str, predicate: str, desired: bool) -> str:
        if predicate.startswith("isNot"):
            predicate = "is" + predicate[len("isNot") :]
            desired = not desired
        kind = base_type(type_name)

        factory = COLLECTION_FACTORIES.get(kind) or ARRAY_FACTORIES.get(kind)
        if factory is not None:
            if desired:
                return f"{factory}()"
            arguments = type_arguments(type_name)
            element = self.neutral_value(arguments[0]) if arguments else "0"
            if kind in ("Map", "MutableMap") and len(arguments) == 2:
                key, value = (self.neutral_value(argument) for argument in arguments)
                element = f"{key} to {value}"
            elif kind in ARRAY_FACTORIES:
                element = self.neutral_value(kind.removesuffix("Array"))
            return f"{factory}({element})"

        if predicate in ("isBlank", "isNullOrBlank"):
            return '"   "' if desired else '"non-blank"'
        return '""' if desired else '"non-empty"'

    def _comparison_value(
        self, parameter: Parameter, shape: AtomShape, desired: bool, known: dict[str, str]
    ) -> str:
        operator = shape.operator or ""
        operand = (shape.operand or "").strip()
        if operand in known:
            operand = known[operand]
        kind = base_type(parameter.type_name)

        if operator == "!=":
            operator, desired = "==", not desired

        if operand == "null":
            if operator == "==" and desired:
                return "null"
            return self.neutral_value(parameter.type_name.rstrip("?"))

        if operator == "==" and kind == "Boolean" and operand in ("true", "false"):
            return operand if desired else ("false" if operand == "true" else "true")

        if operator == "==" and STRING_LITERAL.match(operand):
            if desired:
                return operand
            return f'"{STRING_LITERAL.match(operand).group(1)}Different"'

        number = parse_number(operand)
        if number is None or kind not in NUMERIC_TYPES:
            logger.debug(f"No value rule for {shape.subject} {operator} {operand}")
            return self.neutral_value(parameter.type_name)

        if operator == ">":
            value = number + 1 if desired else number - 1
        elif operator == ">=":
            value = number if desired else number - 1
        elif operator == "<":
            value = number - 1 if desired else number + 1
        elif operator == "<=":
            value = number if desired else number + 1
        else:
            value = number if desired else number + 1
        bounds = INTEGRAL_BOUNDS.get(kind)
        if bounds is not None and not bounds[0] <= value <= bounds[1]:
            logger.debug(f"{shape.subject} {operator} {operand} is out of {kind} range")
            return f"{kind}.MIN_VALUE" if value < bounds[0] else f"{kind}.MAX_VALUE"
        return format_number(value, parameter.type_name)

    # -------------------------------------------------------------------------
    # Defaults
    # -------------------------------------------------------------------------

    def neutral_value(self, type_name: str | None) -> str:
        """Plain default for a type; never random."""
        if not type_name:
            return MOCK_VALUE
        kind = base_type(type_name)

        if is_function_type(type_name):
            return self._lambda(type_name)
        if kind in INTEGER_TYPES:
            return "0"
        if kind in LONG_TYPES:
            return "0L"
        if kind == "Double":
            return "0.0"
        if kind == "Float":
            return "0.0f"
        if kind == "Boolean":
            return "false"
        if kind in TEXTUAL_TYPES:
            return '""'
        if kind == "Char":
            return "'a'"
        if is_nullable(type_name):
            return "null"
        if kind in ("List", "Collection", "Iterable"):
            return "emptyList()"
        if kind == "Set":
            return "emptySet()"
        if kind == "Map":
            return "emptyMap()"
        if kind in COLLECTION_FACTORIES:
            return f"{COLLECTION_FACTORIES[kind]}()"
        if kind in ARRAY_FACTORIES:
            return f"{ARRAY_FACTORIES[kind]}()"
        if kind == "Array":
            return "emptyArray()"
        if kind == "Any":
            return "Any()"
        return MOCK_VALUE

    def _lambda(self, type_name: str) -> str:
        params, result = function_type_parts(type_name)
        body = "" if base_type(result) in ("Unit", "") else f" {self.neutral_value(result)}"
        if not params:
            return f"{{{body} }}" if body else "{ }"
        names = ", ".join("_" for _ in params)
        return f"{{ {names} ->{body} }}"

    # -------------------------------------------------------------------------
    # Boundary pools
    # -------------------------------------------------------------------------

    def pool_value(self, type_name: str | None, depth: int = 0) -> str:
        """Seeded sample from a boundary-value pool for the type."""
        if not type_name:
            return MOCK_VALUE
        if is_nullable(type_name):
            if self.rng.random() < 0.25:
                return "null"
            return self.pool_value(type_name.strip()[:-1], depth)
        if is_function_type(type_name):
            return self._lambda(type_name)

        kind = base_type(type_name)
        if kind in INTEGER_TYPES:
            return self.rng.choice(self._int_pool(kind))
        if kind in LONG_TYPES:
            return self.rng.choice(self._long_pool())
        if kind in FLOATING_TYPES:
            return self.rng.choice(self._floating_pool(kind))
        if kind in TEXTUAL_TYPES:
            return self.rng.choice(self._string_pool())
        if kind == "Boolean":
            return self.rng.choice(["true", "false"])
        if kind == "Char":
            return self.rng.choice(["'a'", "'Z'", "'0'", "' '", "'\\n'"])
        if kind in COLLECTION_FACTORIES or kind in ("Collection", "Iterable"):
            return self._collection_value(type_name, kind, depth)
        if kind in ARRAY_FACTORIES:
            elements = self._elements(kind.removesuffix("Array"), depth)
            return f"{ARRAY_FACTORIES[kind]}({', '.join(elements)})"
        if kind == "Array":
            arguments = type_arguments(type_name)
            if not arguments or depth >= MAX_VALUE_DEPTH:
                return "emptyArray()"
            return f"arrayOf({', '.join(self._elements(arguments[0], depth))})"
        return self.neutral_value(type_name)

    def _int_pool(self, kind: str) -> list[str]:
        if kind != "Int":
            return ["0", "1", "-1", f"{kind}.MAX_VALUE", f"{kind}.MIN_VALUE"]
        return [
            "0",
            "1",
            "-1",
            "Int.MAX_VALUE",
            "Int.MIN_VALUE",
            "Int.MAX_VALUE - 1",
            "Int.MIN_VALUE + 1",
            str(self.rng.randint(-RANDOM_INT_BOUND, RANDOM_INT_BOUND)),
        ]

    def _long_pool(self) -> list[str]:
        return [
            "0L",
            "1L",
            "-1L",
            "Long.MAX_VALUE",
            "Long.MIN_VALUE",
            "Long.MAX_VALUE - 1",
            "Long.MIN_VALUE + 1",
            f"{self.rng.randint(-RANDOM_INT_BOUND, RANDOM_INT_BOUND)}L",
        ]

    def _floating_pool(self, kind: str) -> list[str]:
        suffix = "f" if kind == "Float" else ""
        random_value = round(self.rng.uniform(-RANDOM_INT_BOUND, RANDOM_INT_BOUND), 2)
        return [
            f"0.0{suffix}",
            f"1.0{suffix}",
            f"-1.0{suffix}",
            f"{kind}.MAX_VALUE",
            f"{kind}.MIN_VALUE",
            f"{kind}.NaN",
            f"{kind}.POSITIVE_INFINITY",
            f"{kind}.NEGATIVE_INFINITY",
            f"{random_value!r}{suffix}",
        ]

    def _string_pool(self) -> list[str]:
        length = self.rng.randint(1, 10)
        random_text = "".join(self.rng.choice(string.ascii_letters) for _ in range(length))
        return [
            '""',
            '" "',
            kotlin_string(random_text),
            '"a"',
            '"\\n"',
            '"\\t"',
            '"\\""',
            '"\\u0000"',
            f'"a".repeat({LONG_STRING_LENGTH})',
        ]

    def _elements(self, element_type: str, depth: int) -> list[str]:
        if depth >= MAX_VALUE_DEPTH:
            return []
        count = self.rng.randint(0, 2)
        return [self.pool_value(element_type, depth + 1) for _ in range(count)]

    def _collection_value(self, type_name: str, kind: str, depth: int) -> str:
        arguments = type_arguments(type_name)
        factory = COLLECTION_FACTORIES.get(kind, "listOf")
        if kind in ("Map", "MutableMap"):
            if len(arguments) != 2 or depth >= MAX_VALUE_DEPTH:
                return self.neutral_value(type_name)
            key = self.pool_value(arguments[0], depth + 1)
            value = self.pool_value(arguments[1], depth + 1)
            return f"{factory}({key} to {value})"
        if not arguments:
            return self.neutral_value(type_name)
        elements = self._elements(arguments[0], depth)
        if not elements and factory in ("listOf", "setOf"):
            return self.neutral_value(type_name)
        return f"{factory}({', '.join(elements)})"

    # -------------------------------------------------------------------------
    # Varargs
    # -------------------------------------------------------------------------

    def variadic_values(self, function: FunctionDecl, parameter_index: int) -> tuple[str, ...]:
        """Values for a vararg parameter.

        Reuses the tail of the first observed call to the function that
        passes vararg arguments, otherwise samples one to three pool values.
        """
        parameter = function.parameters[parameter_index]
        fixed_after = len(function.parameters) - parameter_index - 1
        observed = self.call_sites.variadic_tail(function.name, parameter_index, fixed_after)
        if observed:
            logger.debug(f"Reusing observed vararg values for {function.name}: {observed}")
            return observed

        count = self.rng.randint(1, MAX_VARIADIC_VALUES)
        return tuple(self.pool_value(parameter.type_name) for _ in range(count))
