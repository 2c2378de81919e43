"""Truth-assignment planning for decomposed conditions and when entries."""

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass, field
from typing import Sequence

from stge.constants import (
    COVERAGE_ATTEMPT_BUDGET,
    DEFAULT_COMBINATION_POLICY,
    ELSE_INT_MAX,
    ELSE_INT_MIN,
    ELSE_RETRY_LIMIT,
    ELSE_STRING_PREFIX,
    ELSE_STRING_RANGE,
    FLOATING_TYPES,
    INTEGER_TYPES,
    LONG_TYPES,
    MAX_EXHAUSTIVE_ATOMS,
    TARGETED_BIAS,
    TEXTUAL_TYPES,
)
from stge.model.models import ConditionalBranch
from stge.synthesis.call_sites import split_arguments
from stge.synthesis.conditions import Condition, evaluate
from stge.synthesis.types import base_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Combination:
    """One truth assignment and the outcome it produces."""

    assignment: tuple[bool, ...]
    outcome: bool


@dataclass(frozen=True)
class CombinationPlan:
    """Assignments chosen for one condition.

    exhausted is set when the targeted search ran out of attempts before
    reaching both outcomes.
    """

    combinations: tuple[Combination, ...]
    policy: str
    exhausted: bool = False

    @property
    def outcomes(self) -> set[bool]:
        return {combination.outcome for combination in self.combinations}


def exhaustive_assignments(count: int) -> list[tuple[bool, ...]]:
    """All 2^count assignments in bitmask order; bit j of i drives atom j."""
    return [tuple(bool((i >> j) & 1) for j in range(count)) for i in range(2**count)]


def targeted_assignments(
    conditions: Sequence[Condition], budget: int, rng: random.Random
) -> tuple[list[Combination], bool]:
    """Search for one assignment per outcome.

    Tries all-true, then all-false, then random assignments biased toward
    whichever outcome is still missing.

    Returns:
        (combinations found in discovery order, exhausted flag)
    """
    count = len(conditions)
    found: dict[bool, Combination] = {}

    for attempt in range(budget):
        if attempt == 0:
            assignment = (True,) * count
        elif attempt == 1:
            assignment = (False,) * count
        else:
            target = True not in found
            assignment = tuple(
                (rng.random() < TARGETED_BIAS) == target
                if not condition.negated
                else (rng.random() < TARGETED_BIAS) != target
                for condition in conditions
            )
        outcome = evaluate(conditions, assignment)
        if outcome not in found:
            found[outcome] = Combination(assignment, outcome)
        if len(found) == 2:
            break

    return list(found.values()), len(found) < 2


class CombinationGenerator:
    """Chooses truth assignments for compound conditions."""

    def __init__(
        self,
        policy: str = DEFAULT_COMBINATION_POLICY,
        budget: int = COVERAGE_ATTEMPT_BUDGET,
        max_exhaustive_atoms: int = MAX_EXHAUSTIVE_ATOMS,
        rng: random.Random | None = None,
    ):
        self.policy = policy
        self.budget = budget
        self.max_exhaustive_atoms = max_exhaustive_atoms
        self.rng = rng if rng is not None else random.Random()

    def plan(self, conditions: Sequence[Condition]) -> CombinationPlan:
        """Plan assignments for a decomposed condition.

        Args:
            conditions: Atoms from decompose(); must not be empty.

        Returns:
            CombinationPlan whose combinations are in generation order.
        """
        if self.policy == "exhaustive" and len(conditions) <= self.max_exhaustive_atoms:
            combinations = tuple(
                Combination(assignment, evaluate(conditions, assignment))
                for assignment in exhaustive_assignments(len(conditions))
            )
            return CombinationPlan(combinations, "exhaustive")

        if self.policy == "exhaustive":
            logger.debug(
                f"{len(conditions)} atoms exceed {self.max_exhaustive_atoms}, "
                f"falling back to targeted search"
            )
        combinations, exhausted = targeted_assignments(conditions, self.budget, self.rng)
        return CombinationPlan(tuple(combinations), "targeted", exhausted)

    def plan_when(
        self,
        entries: Sequence[ConditionalBranch],
        subject_type: str | None,
        retry_limit: int = ELSE_RETRY_LIMIT,
    ) -> WhenPlan:
        """Plan one subject value per when entry plus a catch-all value.

        Args:
            entries: WHEN_ENTRY branches in source order.
            subject_type: Type of the parameter the subject matches, if any.
            retry_limit: Attempts at finding an else value outside every entry.

        Returns:
            WhenPlan with one EntryValue per entry and, when no entry is a
            catch-all, a trailing else value.
        """
        values: list[EntryValue] = []
        used: list[str] = []

        for entry in entries:
            if entry.is_catch_all:
                continue
            cases = split_arguments(entry.condition or "")
            used.extend(cases)
            values.append(EntryValue(entry.id, entry.condition or "", entry_value(cases)))

        has_catch_all = any(entry.is_catch_all for entry in entries)
        else_value, exhausted = unique_else_value(used, subject_type, self.rng, retry_limit)

        if has_catch_all:
            catch_all = next(entry for entry in entries if entry.is_catch_all)
            index = list(entries).index(catch_all)
            values.insert(
                min(index, len(values)),
                EntryValue(catch_all.id, "else", else_value, is_else=True),
            )
        else:
            values.append(EntryValue(None, "else", else_value, is_else=True))

        return WhenPlan(tuple(values), has_catch_all, exhausted)


# =============================================================================
# When Entries
# =============================================================================


@dataclass(frozen=True)
class EntryValue:
    """The subject value that selects one when entry.

    value is None when no literal could be derived (type checks, membership
    in a collection); the caller then falls back to the type default.
    """

    entry_id: int | None
    label: str
    value: str | None
    is_else: bool = False


@dataclass(frozen=True)
class WhenPlan:
    values: tuple[EntryValue, ...] = field(default_factory=tuple)
    has_catch_all: bool = False
    exhausted: bool = False


NUMBER_LITERAL = re.compile(r"^-?\d[\d_]*(\.\d+)?[LlFfDd]?$")
STRING_LITERAL = re.compile(r'^"(?:\\.|[^"\\])*"$')
RANGE = re.compile(r"^(?:in\s+)?(-?\d+)\s*(?:\.\.|\s+until\s+|\.\.<)\s*(-?\d+)$")


def entry_value(cases: Sequence[str]) -> str | None:
    """Subject literal that matches the first case of an entry."""
    if not cases:
        return None
    case = cases[0].strip()

    if case.startswith(("is ", "!is ", "!in ")):
        return None
    match = RANGE.match(case)
    if match:
        return match.group(1)
    if case.startswith("in "):
        return None
    return case


def _number_value(literal: str) -> int | float | None:
    literal = literal.strip()
    match = NUMBER_LITERAL.match(literal)
    if not match:
        return None
    digits = literal.rstrip("LlFfDd").replace("_", "")
    if match.group(1) or literal[-1] in "FfDd":
        return float(digits)
    return int(digits)


def _used_numbers(used: Sequence[str]) -> set[int | float]:
    numbers: set[int | float] = set()
    for case in used:
        case = case.strip()
        match = RANGE.match(case)
        if match:
            low, high = int(match.group(1)), int(match.group(2))
            inclusive = ".." in case and "..<" not in case
            numbers.update(range(low, high + 1 if inclusive else high))
            continue
        value = _number_value(case)
        if value is not None:
            numbers.add(value)
    return numbers


def unique_else_value(
    used: Sequence[str],
    subject_type: str | None,
    rng: random.Random,
    retry_limit: int = ELSE_RETRY_LIMIT,
) -> tuple[str | None, bool]:
    """Pick a subject value matching no entry case.

    Returns:
        (value, exhausted). value is None for subject types with no literal
        form; exhausted is True when every retry collided and the last
        candidate was kept anyway.
    """
    kind = base_type(subject_type) if subject_type else None

    if kind in INTEGER_TYPES | LONG_TYPES | FLOATING_TYPES:
        taken = _used_numbers(used)
        candidate = 0
        for _ in range(retry_limit):
            candidate = rng.randrange(ELSE_INT_MIN, ELSE_INT_MAX)
            if candidate not in taken:
                return _format_number(candidate, kind), False
        return _format_number(candidate, kind), True

    if kind in TEXTUAL_TYPES:
        taken_text = {case.strip() for case in used}
        literal = ""
        for _ in range(retry_limit):
            literal = f'"{ELSE_STRING_PREFIX}{rng.randrange(ELSE_STRING_RANGE)}"'
            if literal not in taken_text:
                return literal, False
        return literal, True

    if kind == "Char":
        taken_text = {case.strip() for case in used}
        literal = "'a'"
        for _ in range(retry_limit):
            literal = f"'{rng.choice('abcdefghijklmnopqrstuvwxyz')}'"
            if literal not in taken_text:
                return literal, False
        return literal, True

    if kind == "Boolean":
        taken_text = {case.strip() for case in used}
        for literal in ("true", "false"):
            if literal not in taken_text:
                return literal, False
        return "false", True

    return None, False


def _format_number(value: int, kind: str) -> str:
    if kind in LONG_TYPES:
        return f"{value}L"
    if kind == "Float":
        return f"{value}.0f"
    if kind == "Double":
        return f"{value}.0"
    return str(value)
