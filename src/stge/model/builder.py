"""Build a Program Model from a parsed file.

The builder walks the neutral syntax tree once, computing 1-based line numbers
from byte offsets and lexical scope ids from nesting. Malformed regions are
skipped with a warning; the builder never raises for bad input.
"""

import logging
from bisect import bisect_left
from dataclasses import dataclass, field

from stge.diagnostics import AnalysisWarning, WarningKind, record_warning
from stge.model.models import (
    GLOBAL_SCOPE,
    BranchKind,
    ClassDecl,
    ConditionalBranch,
    FunctionCall,
    FunctionDecl,
    LineContext,
    Loop,
    LoopKind,
    Parameter,
    ProgramModel,
    Property,
    Reference,
    SourceFile,
    Variable,
    class_scope,
    function_scope,
    method_scope,
    scope_path,
)
from stge.parsing.models import NodeKind, ParsedFile, SyntaxNode

logger = logging.getLogger(__name__)


ABSTRACT_MODIFIERS = frozenset({"abstract", "interface", "sealed"})

LOOP_KINDS = {
    NodeKind.FOR: LoopKind.FOR,
    NodeKind.WHILE: LoopKind.WHILE,
    NodeKind.DO_WHILE: LoopKind.DO_WHILE,
}


@dataclass
class BuildResult:
    """A per-file model plus the warnings raised while building it."""

    model: ProgramModel
    warnings: list[AnalysisWarning] = field(default_factory=list)


@dataclass(frozen=True)
class _Scope:
    """Lexical position while walking the tree."""

    scope_id: str = GLOBAL_SCOPE
    class_chain: tuple[str, ...] = ()
    class_name: str | None = None
    function: FunctionDecl | None = None


class _FileState:
    """Mutable state for building one file."""

    def __init__(self, parsed_file: ParsedFile):
        self.path = parsed_file.path
        self.package = parsed_file.package
        self.model = ProgramModel()
        self.warnings: list[AnalysisWarning] = []
        self.next_branch_id = 0

        source = parsed_file.content.encode("utf-8")
        self.newline_offsets = [i for i, byte in enumerate(source) if byte == 0x0A]

        for number, code in enumerate(parsed_file.content.split("\n"), start=1):
            self.model.line_contexts[(self.path, number)] = LineContext(
                file=self.path, line=number, code=code.strip()
            )

    def line_of(self, offset: int) -> int:
        """1-based line of a byte offset: one plus the newlines before it."""
        return bisect_left(self.newline_offsets, offset) + 1

    def span(self, node: SyntaxNode) -> tuple[int, int]:
        start = self.line_of(node.start_byte)
        end = self.line_of(max(node.end_byte - 1, node.start_byte))
        return start, end

    def context(self, line: int) -> LineContext | None:
        return self.model.line_contexts.get((self.path, line))

    def add_control_flow(self, line: int, header: str) -> None:
        context = self.context(line)
        if context is None:
            return
        if context.control_flow:
            context.control_flow = f"{context.control_flow}; {header}"
        else:
            context.control_flow = header

    def new_branch_id(self) -> int:
        branch_id = self.next_branch_id
        self.next_branch_id += 1
        return branch_id


class ProgramModelBuilder:
    """Turns parsed files into Program Model fragments."""

    def build(self, parsed_file: ParsedFile) -> BuildResult:
        """Build the model for a single parsed file.

        Args:
            parsed_file: File with its neutral syntax tree and content.

        Returns:
            BuildResult holding the per-file model and any warnings.
        """
        state = _FileState(parsed_file)
        state.model.files.append(
            SourceFile(
                path=parsed_file.path,
                package=parsed_file.package,
                imports=tuple(parsed_file.imports),
            )
        )

        for node in parsed_file.nodes:
            self._visit(node, state, _Scope())

        logger.debug(
            f"Built {parsed_file.path}: {len(state.model.classes)} classes, "
            f"{len(state.model.functions)} functions, {len(state.model.branches)} branches"
        )
        return BuildResult(model=state.model, warnings=state.warnings)

    def _visit(
        self,
        node: SyntaxNode,
        state: _FileState,
        scope: _Scope,
        when_id: int | None = None,
    ) -> None:
        kind = node.kind

        if kind == NodeKind.ERROR:
            record_warning(
                state.warnings,
                WarningKind.PARSE_ERROR,
                "Skipped malformed syntax",
                state.path,
                state.line_of(node.start_byte),
            )
            return
        if kind == NodeKind.CLASS:
            self._visit_class(node, state, scope)
            return
        if kind == NodeKind.FUNCTION:
            self._visit_function(node, state, scope)
            return
        if kind == NodeKind.PROPERTY:
            self._visit_property(node, state, scope)
        elif kind == NodeKind.IF:
            self._visit_if(node, state, scope)
        elif kind == NodeKind.WHEN:
            self._visit_when(node, state, scope)
            return
        elif kind == NodeKind.WHEN_ENTRY:
            self._visit_when_entry(node, state, scope, when_id)
        elif kind in LOOP_KINDS:
            self._visit_loop(node, state, scope)
        elif kind == NodeKind.CALL:
            self._visit_call(node, state, scope)
        elif kind == NodeKind.REFERENCE:
            self._visit_reference(node, state, scope)

        for child in node.children:
            self._visit(child, state, scope)

    # -------------------------------------------------------------------------
    # Declarations
    # -------------------------------------------------------------------------

    def _visit_class(self, node: SyntaxNode, state: _FileState, scope: _Scope) -> None:
        name = node.name or "<anonymous>"
        class_chain = scope.class_chain + (name,)
        qualified_name = ".".join(part for part in (state.package, *class_chain) if part)
        scope_id = class_scope(qualified_name)
        start, end = state.span(node)

        for line in range(start, end + 1):
            context = state.context(line)
            if context is not None:
                context.scope_id = scope_id
                context.current_class = qualified_name

        class_scope_info = _Scope(
            scope_id=scope_id,
            class_chain=class_chain,
            class_name=qualified_name,
            function=None,
        )

        constructor_parameters: list[Parameter] = []
        properties: list[Property] = []
        for child in node.children:
            if child.kind == NodeKind.PARAMETER:
                parameter = self._parameter(child)
                constructor_parameters.append(parameter)
                if any(m in ("val", "var") for m in child.modifiers):
                    properties.append(
                        Property(
                            name=parameter.name,
                            type_name=parameter.type_name,
                            is_mutable="var" in child.modifiers,
                            initializer=parameter.name,
                        )
                    )
                variable = Variable(
                    name=parameter.name,
                    type_name=parameter.type_name,
                    line=state.line_of(child.start_byte),
                    file=state.path,
                    scope_id=scope_id,
                    initializer=parameter.default,
                    is_parameter=True,
                )
                state.model.variables.append(variable)
                context = state.context(variable.line)
                if context is not None:
                    context.variables.append(variable)
            elif child.kind == NodeKind.PROPERTY and child.name:
                properties.append(
                    Property(
                        name=child.name,
                        type_name=child.type_name,
                        is_mutable=child.is_mutable,
                        initializer=child.initializer,
                    )
                )
                self._visit(child, state, class_scope_info)
            else:
                self._visit(child, state, class_scope_info)

        modifiers = set(node.modifiers)
        state.model.classes.append(
            ClassDecl(
                name=name,
                qualified_name=qualified_name,
                file=state.path,
                line=start,
                end_line=end,
                scope_id=scope_id,
                package=state.package,
                properties=tuple(properties),
                constructor_parameters=tuple(constructor_parameters),
                is_object="object" in modifiers,
                is_abstract=bool(modifiers & ABSTRACT_MODIFIERS),
                is_enum="enum" in modifiers,
            )
        )

    def _visit_function(self, node: SyntaxNode, state: _FileState, scope: _Scope) -> None:
        name = node.name or "<anonymous>"
        start, end = state.span(node)

        if scope.function is not None:
            scope_id = function_scope(f"{scope_path(scope.function.scope_id)}.{name}")
            containing_class = None
        elif scope.class_name is not None:
            scope_id = method_scope(scope.class_name, name)
            containing_class = scope.class_name
        else:
            scope_id = function_scope(name)
            containing_class = None

        parameters = tuple(
            self._parameter(child) for child in node.children if child.kind == NodeKind.PARAMETER
        )
        function = FunctionDecl(
            name=name,
            qualified_name=f"{containing_class}.{name}" if containing_class else name,
            file=state.path,
            line=start,
            end_line=end,
            scope_id=scope_id,
            return_type=(node.type_name or "Unit").strip(),
            parameters=parameters,
            containing_class=containing_class,
            package=state.package,
            is_private="private" in node.modifiers,
            body=node.body,
        )
        state.model.functions.append(function)

        for line in range(start, end + 1):
            context = state.context(line)
            if context is not None:
                context.scope_id = scope_id
                context.current_function = name
                context.current_class = scope.class_name

        first_line = state.context(start)
        if first_line is not None:
            for parameter in parameters:
                first_line.variables.append(
                    Variable(
                        name=parameter.name,
                        type_name=parameter.type_name,
                        line=start,
                        file=state.path,
                        scope_id=scope_id,
                        initializer=parameter.default,
                        is_parameter=True,
                    )
                )

        function_scope_info = _Scope(
            scope_id=scope_id,
            class_chain=scope.class_chain,
            class_name=scope.class_name,
            function=function,
        )
        for child in node.children:
            if child.kind != NodeKind.PARAMETER:
                self._visit(child, state, function_scope_info)

    def _visit_property(self, node: SyntaxNode, state: _FileState, scope: _Scope) -> None:
        if not node.name:
            return
        line = state.line_of(node.start_byte)
        variable = Variable(
            name=node.name,
            type_name=node.type_name,
            line=line,
            file=state.path,
            scope_id=scope.scope_id,
            initializer=node.initializer,
            is_parameter=False,
        )
        state.model.variables.append(variable)
        context = state.context(line)
        if context is not None:
            context.variables.append(variable)

    @staticmethod
    def _parameter(node: SyntaxNode) -> Parameter:
        return Parameter(
            name=node.name or "_",
            type_name=(node.type_name or "Any").strip(),
            default=node.initializer,
            is_variadic=node.is_variadic,
        )

    # -------------------------------------------------------------------------
    # Control Flow
    # -------------------------------------------------------------------------

    def _visit_if(self, node: SyntaxNode, state: _FileState, scope: _Scope) -> None:
        line = state.line_of(node.start_byte)
        condition = (node.condition or "").strip()
        state.model.branches.append(
            ConditionalBranch(
                id=state.new_branch_id(),
                kind=BranchKind.IF,
                condition=condition,
                function=scope.function.name if scope.function else None,
                file=state.path,
                line=line,
                scope_id=scope.scope_id,
                body=node.body,
                else_body=node.else_body,
            )
        )
        state.add_control_flow(line, f"if ({condition})")

    def _visit_when(self, node: SyntaxNode, state: _FileState, scope: _Scope) -> None:
        line = state.line_of(node.start_byte)
        subject = node.condition.strip() if node.condition else None
        when_id = state.new_branch_id()
        state.model.branches.append(
            ConditionalBranch(
                id=when_id,
                kind=BranchKind.WHEN,
                condition=subject,
                function=scope.function.name if scope.function else None,
                file=state.path,
                line=line,
                scope_id=scope.scope_id,
            )
        )
        state.add_control_flow(line, f"when ({subject})" if subject else "when")

        for child in node.children:
            self._visit(child, state, scope, when_id=when_id)

    def _visit_when_entry(
        self,
        node: SyntaxNode,
        state: _FileState,
        scope: _Scope,
        when_id: int | None,
    ) -> None:
        line = state.line_of(node.start_byte)
        if when_id is None:
            record_warning(
                state.warnings,
                WarningKind.ANALYSIS_INCONSISTENCY,
                "When entry without an enclosing when; entry dropped",
                state.path,
                line,
            )
            return
        state.model.branches.append(
            ConditionalBranch(
                id=state.new_branch_id(),
                kind=BranchKind.WHEN_ENTRY,
                condition=(node.condition or "").strip(),
                function=scope.function.name if scope.function else None,
                file=state.path,
                line=line,
                scope_id=scope.scope_id,
                parent_id=when_id,
                body=node.body,
            )
        )

    def _visit_loop(self, node: SyntaxNode, state: _FileState, scope: _Scope) -> None:
        line = state.line_of(node.start_byte)
        loop_kind = LOOP_KINDS[node.kind]
        condition = (node.condition or "").strip()

        if loop_kind == LoopKind.FOR:
            loop = Loop(
                kind=loop_kind,
                file=state.path,
                line=line,
                scope_id=scope.scope_id,
                variable=node.name,
                iterable=condition,
            )
            header = f"for ({node.name} in {condition})"
        else:
            loop = Loop(
                kind=loop_kind,
                file=state.path,
                line=line,
                scope_id=scope.scope_id,
                condition=condition,
            )
            prefix = "do-while" if loop_kind == LoopKind.DO_WHILE else "while"
            header = f"{prefix} ({condition})"

        state.model.loops.append(loop)
        state.add_control_flow(line, header)

    # -------------------------------------------------------------------------
    # References and Calls
    # -------------------------------------------------------------------------

    def _visit_call(self, node: SyntaxNode, state: _FileState, scope: _Scope) -> None:
        line = state.line_of(node.start_byte)
        call = FunctionCall(
            name=node.name or "",
            file=state.path,
            line=line,
            scope_id=scope.scope_id,
            caller=scope.function.name if scope.function else None,
            caller_qualified_name=scope.function.qualified_name if scope.function else None,
            arguments=tuple(node.arguments),
        )
        state.model.calls.append(call)
        context = state.context(line)
        if context is not None:
            context.calls.append(call)

    def _visit_reference(self, node: SyntaxNode, state: _FileState, scope: _Scope) -> None:
        if not node.name:
            return
        line = state.line_of(node.start_byte)
        reference = Reference(name=node.name, file=state.path, line=line, scope_id=scope.scope_id)
        state.model.references.append(reference)
        context = state.context(line)
        if context is not None:
            context.references.append(reference)
