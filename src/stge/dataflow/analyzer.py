"""Heuristic reaching-definitions analysis over a Program Model.

There is no symbol table. A reference counts as a variable use only when its
name matches some declared variable, parameter or loop variable anywhere in
the model (see is_likely_variable_reference). Anomaly counts are defined
relative to that filter, so it must stay a name match.
"""

import logging
import re
from collections import Counter

from stge.constants import KOTLIN_KEYWORDS
from stge.dataflow.call_graph import build_call_graph
from stge.dataflow.models import (
    AnomalyKind,
    DataFlowAnomaly,
    DataFlowResult,
    DefUsePair,
    Definition,
    DefinitionKind,
    Use,
    UseKind,
)
from stge.model.models import (
    LineContext,
    LoopKind,
    ProgramModel,
    Reference,
    scope_encloses,
)

logger = logging.getLogger(__name__)


IDENTIFIER_PATTERN = re.compile(r"\b[A-Za-z_]\w*\b")
BARE_IDENTIFIER = re.compile(r"^[A-Za-z_]\w*$")
STRING_LITERAL = re.compile(r'"(?:\\.|[^"\\])*"')


def _mentions(text: str, name: str) -> bool:
    return re.search(rf"(?<![\w.]){re.escape(name)}\b", text) is not None


def is_likely_variable_reference(name: str, known_names: set[str]) -> bool:
    """The heuristic filter: a name is a variable use iff some variable has that name."""
    return name in known_names


class DataFlowAnalyzer:
    """Computes definitions, uses, def-use pairs, anomalies and the call graph."""

    def __init__(self, dedupe_uses: bool = True):
        """Initialize the analyzer.

        Args:
            dedupe_uses: Collapse uses recorded twice at the same variable,
                file, line and scope before pairing. When False, such doubles
                each get a pair and surface as RedundantDefinition anomalies.
        """
        self.dedupe_uses = dedupe_uses

    def analyze(self, model: ProgramModel) -> DataFlowResult:
        """Analyze a fully built model and attach the result to it.

        Args:
            model: Merged Program Model for the whole run.

        Returns:
            DataFlowResult, also stored as model.dataflow.
        """
        definitions = self._collect_definitions(model)
        known_names = {d.variable for d in definitions}
        uses = self._collect_uses(model, known_names)
        indexed_pairs, undefined = self._pair(definitions, uses)
        anomalies = self._detect_anomalies(model, definitions, indexed_pairs, undefined)
        pairs = [pair for _, pair in indexed_pairs]

        result = DataFlowResult(
            definitions=definitions,
            uses=uses,
            pairs=pairs,
            anomalies=anomalies,
            call_graph=build_call_graph(model),
        )
        model.dataflow = result

        logger.info(
            f"Data-flow: {len(definitions)} definitions, {len(uses)} uses, "
            f"{len(pairs)} pairs, {len(anomalies)} anomalies"
        )
        return result

    # -------------------------------------------------------------------------
    # Definitions
    # -------------------------------------------------------------------------

    def _collect_definitions(self, model: ProgramModel) -> list[Definition]:
        definitions: list[Definition] = []

        for index, variable in enumerate(model.variables):
            definitions.append(
                Definition(
                    variable=variable.name,
                    file=variable.file,
                    line=variable.line,
                    scope_id=variable.scope_id,
                    kind=(
                        DefinitionKind.PARAMETER
                        if variable.is_parameter
                        else DefinitionKind.DECLARATION
                    ),
                    variable_index=index,
                )
            )

        for function in model.functions:
            for parameter in function.parameters:
                definitions.append(
                    Definition(
                        variable=parameter.name,
                        file=function.file,
                        line=function.line,
                        scope_id=function.scope_id,
                        kind=DefinitionKind.PARAMETER,
                    )
                )

        for loop in model.loops:
            if loop.kind != LoopKind.FOR or not loop.variable:
                continue
            context = model.line_context(loop.file, loop.line)
            definitions.append(
                Definition(
                    variable=loop.variable,
                    file=loop.file,
                    line=loop.line,
                    scope_id=context.scope_id if context else loop.scope_id,
                    kind=DefinitionKind.LOOP_VARIABLE,
                )
            )

        return definitions

    # -------------------------------------------------------------------------
    # Uses
    # -------------------------------------------------------------------------

    def _collect_uses(self, model: ProgramModel, known_names: set[str]) -> list[Use]:
        uses: list[Use] = []

        for reference in model.references:
            if not is_likely_variable_reference(reference.name, known_names):
                continue
            context = model.line_context(reference.file, reference.line)
            uses.append(
                Use(
                    variable=reference.name,
                    file=reference.file,
                    line=reference.line,
                    scope_id=context.scope_id if context else reference.scope_id,
                    kind=self._classify_use(reference, context),
                )
            )

        for call in model.calls:
            for argument in call.arguments:
                argument = argument.strip()
                if BARE_IDENTIFIER.match(argument) and argument in known_names:
                    uses.append(
                        Use(
                            variable=argument,
                            file=call.file,
                            line=call.line,
                            scope_id=self._scope_at(model, call.file, call.line, call.scope_id),
                            kind=UseKind.FUNCTION_ARG,
                        )
                    )

        for branch in model.branches:
            if not branch.condition or branch.is_catch_all:
                continue
            scope_id = self._scope_at(model, branch.file, branch.line, branch.scope_id)
            for name in self._condition_identifiers(branch.condition):
                if name in known_names:
                    uses.append(
                        Use(
                            variable=name,
                            file=branch.file,
                            line=branch.line,
                            scope_id=scope_id,
                            kind=UseKind.CONDITION,
                        )
                    )

        if self.dedupe_uses:
            uses = self._dedupe(uses)
        return uses

    def _classify_use(self, reference: Reference, context: LineContext | None) -> UseKind:
        """Kind of a referenced use, from the line it sits on."""
        if context is None:
            return UseKind.COMPUTATION
        name = reference.name
        for call in context.calls:
            if any(_mentions(argument, name) for argument in call.arguments):
                return UseKind.FUNCTION_ARG
        if re.search(rf"\[\s*{re.escape(name)}\s*\]", context.code):
            return UseKind.ARRAY_INDEX
        if context.control_flow and _mentions(context.control_flow, name):
            return UseKind.CONDITION
        if re.match(r"return\b", context.code):
            return UseKind.RETURN
        return UseKind.COMPUTATION

    @staticmethod
    def _condition_identifiers(condition: str) -> list[str]:
        # Member names after a dot and words inside string literals are not identifiers
        stripped = STRING_LITERAL.sub('""', condition)
        names = []
        for match in IDENTIFIER_PATTERN.finditer(stripped):
            if match.start() > 0 and stripped[match.start() - 1] == ".":
                continue
            name = match.group()
            if name not in KOTLIN_KEYWORDS and name not in names:
                names.append(name)
        return names

    @staticmethod
    def _scope_at(model: ProgramModel, file: str, line: int, fallback: str) -> str:
        context = model.line_context(file, line)
        return context.scope_id if context else fallback

    @staticmethod
    def _dedupe(uses: list[Use]) -> list[Use]:
        seen: set[tuple[str, str, int, str]] = set()
        unique = []
        for use in uses:
            key = (use.variable, use.file, use.line, use.scope_id)
            if key in seen:
                continue
            seen.add(key)
            unique.append(use)
        return unique

    # -------------------------------------------------------------------------
    # Pairing
    # -------------------------------------------------------------------------

    def _pair(
        self, definitions: list[Definition], uses: list[Use]
    ) -> tuple[list[tuple[int, DefUsePair]], list[Use]]:
        """Select the most recent enclosing definition for every use.

        Returns:
            (definition index, pair) for each paired use, and the uses with no
            candidate definition.
        """
        by_name: dict[str, list[int]] = {}
        for index, definition in enumerate(definitions):
            by_name.setdefault(definition.variable, []).append(index)

        pairs: list[tuple[int, DefUsePair]] = []
        undefined: list[Use] = []

        for use in uses:
            best_index = None
            best_rank = None
            for index in by_name.get(use.variable, []):
                definition = definitions[index]
                if not scope_encloses(definition.scope_id, use.scope_id):
                    continue
                if definition.file == use.file:
                    if definition.line >= use.line:
                        continue
                    rank = definition.line
                else:
                    rank = -1
                if best_rank is None or rank > best_rank:
                    best_index, best_rank = index, rank

            if best_index is None:
                undefined.append(use)
            else:
                pairs.append(
                    (
                        best_index,
                        DefUsePair(
                            definition=definitions[best_index], use=use, variable=use.variable
                        ),
                    )
                )

        return pairs, undefined

    # -------------------------------------------------------------------------
    # Anomalies
    # -------------------------------------------------------------------------

    def _detect_anomalies(
        self,
        model: ProgramModel,
        definitions: list[Definition],
        indexed_pairs: list[tuple[int, DefUsePair]],
        undefined: list[Use],
    ) -> list[DataFlowAnomaly]:
        anomalies: list[DataFlowAnomaly] = []

        for use in undefined:
            anomalies.append(
                DataFlowAnomaly(
                    kind=AnomalyKind.UNDEFINED_USE,
                    variable=use.variable,
                    file=use.file,
                    line=use.line,
                    description=f"Variable '{use.variable}' is used before definition",
                )
            )

        selected = {index for index, _ in indexed_pairs}
        for index, definition in enumerate(definitions):
            if index not in selected:
                anomalies.append(
                    DataFlowAnomaly(
                        kind=AnomalyKind.UNUSED_DEFINITION,
                        variable=definition.variable,
                        file=definition.file,
                        line=definition.line,
                        description=f"Variable '{definition.variable}' is defined but never used",
                    )
                )

        pair_counts = Counter(pair.use for _, pair in indexed_pairs)
        for use, count in pair_counts.items():
            if count > 1:
                anomalies.append(
                    DataFlowAnomaly(
                        kind=AnomalyKind.REDUNDANT_DEFINITION,
                        variable=use.variable,
                        file=use.file,
                        line=use.line,
                        description=(
                            f"Variable '{use.variable}' has {count} definitions before this use"
                        ),
                    )
                )

        for _, pair in indexed_pairs:
            definition = pair.definition
            if definition.kind != DefinitionKind.DECLARATION:
                continue
            if definition.line == pair.use.line or definition.variable_index is None:
                continue
            variable = model.variables[definition.variable_index]
            if variable.initializer is None and not variable.is_parameter:
                anomalies.append(
                    DataFlowAnomaly(
                        kind=AnomalyKind.UNINITIALIZED_USE,
                        variable=pair.variable,
                        file=pair.use.file,
                        line=pair.use.line,
                        description=f"Variable '{pair.variable}' might be used uninitialized",
                    )
                )

        return anomalies

