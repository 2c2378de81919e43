"""Branch condition decomposition.

A condition is split into atoms at un-nested `&&` and `||`. Each atom keeps
the operator that joins it to the previous atom and whether a leading `!`
negated it. A `!` seen before any atom text negates the entire remainder of
the expression as one atom; `a && !(b || c)` therefore yields two atoms, and
`!a && b` yields a single negated atom `a && b`.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Sequence


class Operator(Enum):
    """Operator joining an atom to the one before it."""

    NONE = "none"
    AND = "&&"
    OR = "||"


@dataclass(frozen=True)
class Condition:
    """One atom of a decomposed condition."""

    text: str
    operator: Operator = Operator.NONE
    negated: bool = False


def decompose(expression: str) -> list[Condition]:
    """Split a boolean expression into atoms.

    Operators inside string or character literals do not split.

    Args:
        expression: Raw condition text, e.g. "a > 0 && !b.isEmpty()".

    Returns:
        Atoms in source order.
    """
    conditions: list[Condition] = []
    current: list[str] = []
    depth = 0
    operator = Operator.NONE
    position = 0
    quote: str | None = None
    escaped = False

    while position < len(expression):
        char = expression[position]
        if quote:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
        elif char in "\"'":
            quote = char
            current.append(char)
        elif char == "(":
            depth += 1
            current.append(char)
        elif char == ")":
            depth -= 1
            current.append(char)
        elif (
            char in "&|"
            and depth == 0
            and position + 1 < len(expression)
            and expression[position + 1] == char
        ):
            text = "".join(current).strip()
            if text:
                conditions.append(Condition(text, operator))
            current = []
            operator = Operator.AND if char == "&" else Operator.OR
            position += 1
        elif char == "!" and depth == 0 and not "".join(current).strip():
            conditions.append(Condition(expression[position + 1 :].strip(), operator, True))
            current = []
            break
        else:
            current.append(char)
        position += 1

    text = "".join(current).strip()
    if text:
        conditions.append(Condition(text, operator))

    return conditions


def evaluate(conditions: Sequence[Condition], assignment: Sequence[bool]) -> bool:
    """Evaluate decomposed atoms under a truth assignment.

    assignment[i] is the truth of atom i's text; the atom contributes
    assignment[i] XOR negated. Atoms fold left to right with their operators.

    Raises:
        ValueError: If there are no atoms or the assignment length differs.
    """
    if not conditions:
        raise ValueError("Cannot evaluate an empty condition")
    if len(assignment) != len(conditions):
        raise ValueError(f"Expected {len(conditions)} truth values, got {len(assignment)}")

    result = assignment[0] != conditions[0].negated
    for condition, value in zip(conditions[1:], assignment[1:]):
        effective = value != condition.negated
        if condition.operator == Operator.AND:
            result = result and effective
        elif condition.operator == Operator.OR:
            result = result or effective
        else:
            result = effective
    return result


# =============================================================================
# Atom Shapes
# =============================================================================


class ShapeKind(Enum):
    COMPARISON = "comparison"
    EMPTINESS = "emptiness"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class AtomShape:
    """A recognized atom form.

    For COMPARISON the operator is one of > >= < <= == != and operand is the
    other side's text, normalized so the subject is on the left. For
    EMPTINESS the operator is the predicate name (isEmpty, isBlank, ...).
    """

    kind: ShapeKind
    subject: str
    operator: str | None = None
    operand: str | None = None


IDENTIFIER = r"[A-Za-z_]\w*"
COMPARISON_OPERATORS = r"(>=|<=|==|!=|>|<)"

SUBJECT_FIRST = re.compile(rf"^({IDENTIFIER})\s*{COMPARISON_OPERATORS}\s*(.+?)$")
SUBJECT_LAST = re.compile(rf"^(.+?)\s*{COMPARISON_OPERATORS}\s*({IDENTIFIER})$")
EMPTINESS = re.compile(
    rf"^({IDENTIFIER})\??\.(isEmpty|isBlank|isNotEmpty|isNotBlank|isNullOrEmpty|isNullOrBlank)\(\)$"
)
BARE_NAME = re.compile(rf"^{IDENTIFIER}$")
LITERAL = re.compile(r"""^(-?\d[\d_]*(\.\d+)?[LlFfDd]?|".*"|'.'|true|false|null)$""")

FLIPPED = {">": "<", "<": ">", ">=": "<=", "<=": ">=", "==": "==", "!=": "!="}


def strip_parentheses(text: str) -> str:
    """Remove parentheses that wrap the whole text."""
    text = text.strip()
    while text.startswith("(") and text.endswith(")"):
        depth = 0
        for index, char in enumerate(text):
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
            if depth == 0 and index < len(text) - 1:
                return text
        text = text[1:-1].strip()
    return text


def atom_shape(text: str) -> AtomShape | None:
    """Recognize the shape of an atom, or None if it has no known form."""
    text = strip_parentheses(text)

    match = EMPTINESS.match(text)
    if match:
        return AtomShape(ShapeKind.EMPTINESS, match.group(1), match.group(2))

    match = SUBJECT_FIRST.match(text)
    if match and not match.group(3).startswith("="):
        return AtomShape(ShapeKind.COMPARISON, match.group(1), match.group(2), match.group(3))

    match = SUBJECT_LAST.match(text)
    if match and LITERAL.match(match.group(1).strip()):
        return AtomShape(
            ShapeKind.COMPARISON,
            match.group(3),
            FLIPPED[match.group(2)],
            match.group(1).strip(),
        )

    if BARE_NAME.match(text) and text not in ("true", "false"):
        return AtomShape(ShapeKind.BOOLEAN, text)

    return None


def to_method_name(text: str) -> str:
    """Turn arbitrary text into a PascalCase identifier fragment.

    Non-alphanumerics become word breaks and each word is capitalized:
    "a > 19" becomes "A19", "name.isEmpty()" becomes "NameIsEmpty".
    """
    words = re.sub(r"[^a-zA-Z0-9]", " ", text).split()
    return "".join(word[0].upper() + word[1:] for word in words)
