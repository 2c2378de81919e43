"""Data-flow records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stge.dataflow.call_graph import CallGraph


class DefinitionKind(Enum):
    DECLARATION = "declaration"
    ASSIGNMENT = "assignment"
    PARAMETER = "parameter"
    LOOP_VARIABLE = "loop_variable"


class UseKind(Enum):
    COMPUTATION = "computation"
    CONDITION = "condition"
    RETURN = "return"
    FUNCTION_ARG = "function_arg"
    ARRAY_INDEX = "array_index"


class AnomalyKind(Enum):
    UNDEFINED_USE = "undefined_use"
    UNUSED_DEFINITION = "unused_definition"
    REDUNDANT_DEFINITION = "redundant_definition"
    UNINITIALIZED_USE = "uninitialized_use"


@dataclass(frozen=True)
class Definition:
    """A point where a variable receives a value.

    variable_index points into ProgramModel.variables when the definition
    came from a Variable record.
    """

    variable: str
    file: str
    line: int
    scope_id: str
    kind: DefinitionKind
    variable_index: int | None = None


@dataclass(frozen=True)
class Use:
    """A point where a variable's value is read."""

    variable: str
    file: str
    line: int
    scope_id: str
    kind: UseKind


@dataclass(frozen=True)
class DefUsePair:
    """The definition selected as reaching a use."""

    definition: Definition
    use: Use
    variable: str


@dataclass(frozen=True)
class DataFlowAnomaly:
    """A flagged irregularity with its location."""

    kind: AnomalyKind
    variable: str
    file: str
    line: int
    description: str


@dataclass
class DataFlowResult:
    """Everything the analyzer derives from a Program Model."""

    definitions: list[Definition] = field(default_factory=list)
    uses: list[Use] = field(default_factory=list)
    pairs: list[DefUsePair] = field(default_factory=list)
    anomalies: list[DataFlowAnomaly] = field(default_factory=list)
    call_graph: CallGraph | None = None

    def definitions_of(self, variable: str) -> list[Definition]:
        return [d for d in self.definitions if d.variable == variable]

    def uses_of(self, variable: str) -> list[Use]:
        return [u for u in self.uses if u.variable == variable]

    def pairs_for(self, variable: str) -> list[DefUsePair]:
        return [p for p in self.pairs if p.variable == variable]

    def anomalies_of(self, kind: AnomalyKind) -> list[DataFlowAnomaly]:
        return [a for a in self.anomalies if a.kind == kind]
