"""Program Model records.

The model is a set of flat record lists owned by one analysis run. Records
refer to each other through ids and names (branch parent ids, scope ids),
never through object references.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stge.dataflow.models import DataFlowResult


GLOBAL_SCOPE = "global"


class BranchKind(Enum):
    """Kinds of conditional branches."""

    IF = "if"
    WHEN = "when"
    WHEN_ENTRY = "when_entry"


class LoopKind(Enum):
    """Kinds of loops."""

    FOR = "for"
    WHILE = "while"
    DO_WHILE = "do_while"


# =============================================================================
# Scope Ids
# =============================================================================
# Scope ids look like "global", "class:com.demo.Shop",
# "method:com.demo.Shop.checkout" or "function:main". The text after the kind
# prefix is a dotted path; a scope encloses every scope whose path extends it.


def class_scope(qualified_name: str) -> str:
    return f"class:{qualified_name}"


def method_scope(class_name: str, function_name: str) -> str:
    return f"method:{class_name}.{function_name}"


def function_scope(path: str) -> str:
    return f"function:{path}"


def scope_path(scope_id: str) -> str:
    """Dotted path of a scope id ("" for the global scope)."""
    if scope_id == GLOBAL_SCOPE or ":" not in scope_id:
        return ""
    return scope_id.split(":", 1)[1]


def scope_encloses(outer: str, inner: str) -> bool:
    """Check whether scope `outer` is equal to or lexically encloses `inner`."""
    if outer == inner or outer == GLOBAL_SCOPE:
        return True
    outer_path = scope_path(outer)
    if not outer_path:
        return False
    return scope_path(inner).startswith(outer_path + ".")


# =============================================================================
# Declarations
# =============================================================================


@dataclass(frozen=True)
class SourceFile:
    """An analyzed source file."""

    path: str
    package: str = ""
    imports: tuple[str, ...] = ()


@dataclass(frozen=True)
class Parameter:
    """A function or constructor parameter."""

    name: str
    type_name: str
    default: str | None = None
    is_variadic: bool = False


@dataclass(frozen=True)
class Property:
    """A class property."""

    name: str
    type_name: str | None
    is_mutable: bool = False
    initializer: str | None = None


@dataclass(frozen=True)
class ClassDecl:
    """A class, interface, enum or object declaration."""

    name: str
    qualified_name: str
    file: str
    line: int
    end_line: int
    scope_id: str
    package: str = ""
    properties: tuple[Property, ...] = ()
    constructor_parameters: tuple[Parameter, ...] = ()
    is_object: bool = False
    is_abstract: bool = False
    is_enum: bool = False

    @property
    def local_name(self) -> str:
        """Name relative to the package (e.g. "Outer.Inner")."""
        if self.package and self.qualified_name.startswith(self.package + "."):
            return self.qualified_name[len(self.package) + 1 :]
        return self.qualified_name


@dataclass(frozen=True)
class FunctionDecl:
    """A function or method declaration."""

    name: str
    qualified_name: str
    file: str
    line: int
    end_line: int
    scope_id: str
    return_type: str = "Unit"
    parameters: tuple[Parameter, ...] = ()
    containing_class: str | None = None
    package: str = ""
    is_private: bool = False
    body: str | None = None

    @property
    def is_method(self) -> bool:
        return self.containing_class is not None


@dataclass(frozen=True)
class Variable:
    """A declared variable, property or parameter in a particular scope."""

    name: str
    type_name: str | None
    line: int
    file: str
    scope_id: str
    initializer: str | None = None
    is_parameter: bool = False


# =============================================================================
# Control Flow, References and Calls
# =============================================================================


@dataclass(frozen=True)
class ConditionalBranch:
    """An if, when or when-entry branch.

    A WHEN branch's condition is its subject (None for a subjectless when).
    A WHEN_ENTRY's condition is its comma-joined cases, or "else".
    """

    id: int
    kind: BranchKind
    condition: str | None
    function: str | None
    file: str
    line: int
    scope_id: str
    parent_id: int | None = None
    body: str | None = None
    else_body: str | None = None

    @property
    def is_catch_all(self) -> bool:
        return self.kind == BranchKind.WHEN_ENTRY and self.condition == "else"


@dataclass(frozen=True)
class Loop:
    """A for, while or do-while loop."""

    kind: LoopKind
    file: str
    line: int
    scope_id: str
    variable: str | None = None
    iterable: str | None = None
    condition: str | None = None


@dataclass(frozen=True)
class Reference:
    """An identifier in expression position."""

    name: str
    file: str
    line: int
    scope_id: str


@dataclass(frozen=True)
class FunctionCall:
    """A call site with its raw argument texts."""

    name: str
    file: str
    line: int
    scope_id: str
    caller: str | None = None
    caller_qualified_name: str | None = None
    arguments: tuple[str, ...] = ()


@dataclass
class LineContext:
    """Everything known about one physical source line."""

    file: str
    line: int
    code: str
    scope_id: str = GLOBAL_SCOPE
    variables: list[Variable] = field(default_factory=list)
    references: list[Reference] = field(default_factory=list)
    calls: list[FunctionCall] = field(default_factory=list)
    control_flow: str | None = None
    current_class: str | None = None
    current_function: str | None = None


# =============================================================================
# Program Model
# =============================================================================


@dataclass(frozen=True)
class ModelStatistics:
    """Counts reported after analysis."""

    files: int
    classes: int
    functions: int
    branches: int
    loops: int
    variables: int
    calls: int
    anomalies: int


@dataclass
class ProgramModel:
    """All records extracted from one or more source files."""

    files: list[SourceFile] = field(default_factory=list)
    classes: list[ClassDecl] = field(default_factory=list)
    functions: list[FunctionDecl] = field(default_factory=list)
    variables: list[Variable] = field(default_factory=list)
    branches: list[ConditionalBranch] = field(default_factory=list)
    loops: list[Loop] = field(default_factory=list)
    references: list[Reference] = field(default_factory=list)
    calls: list[FunctionCall] = field(default_factory=list)
    line_contexts: dict[tuple[str, int], LineContext] = field(default_factory=dict)
    dataflow: DataFlowResult | None = None

    def line_context(self, file: str, line: int) -> LineContext | None:
        return self.line_contexts.get((file, line))

    def branch(self, branch_id: int) -> ConditionalBranch | None:
        for branch in self.branches:
            if branch.id == branch_id:
                return branch
        return None

    def branches_for(self, function: FunctionDecl) -> list[ConditionalBranch]:
        """Top-level branches (IF and WHEN) lexically inside a function."""
        return [
            branch
            for branch in self.branches
            if branch.scope_id == function.scope_id
            and branch.file == function.file
            and branch.kind != BranchKind.WHEN_ENTRY
        ]

    def entries_for(self, when: ConditionalBranch) -> list[ConditionalBranch]:
        """Entries of a WHEN branch in source order."""
        return [
            branch
            for branch in self.branches
            if branch.kind == BranchKind.WHEN_ENTRY and branch.parent_id == when.id
        ]

    def class_named(self, qualified_name: str) -> ClassDecl | None:
        for class_decl in self.classes:
            if class_decl.qualified_name == qualified_name:
                return class_decl
        return None

    def source_file(self, path: str) -> SourceFile | None:
        for source_file in self.files:
            if source_file.path == path:
                return source_file
        return None

    def statistics(self) -> ModelStatistics:
        anomalies = len(self.dataflow.anomalies) if self.dataflow is not None else 0
        return ModelStatistics(
            files=len(self.files),
            classes=len(self.classes),
            functions=len(self.functions),
            branches=len(self.branches),
            loops=len(self.loops),
            variables=len(self.variables),
            calls=len(self.calls),
            anomalies=anomalies,
        )

    @classmethod
    def merge(cls, models: list[ProgramModel]) -> ProgramModel:
        """Combine per-file models into one, renumbering branch ids.

        Args:
            models: Models in the order their files should appear.

        Returns:
            A new model whose branch ids are unique across all inputs.
        """
        merged = cls()
        for model in models:
            offset = len(merged.branches)
            merged.files.extend(model.files)
            merged.classes.extend(model.classes)
            merged.functions.extend(model.functions)
            merged.variables.extend(model.variables)
            merged.loops.extend(model.loops)
            merged.references.extend(model.references)
            merged.calls.extend(model.calls)
            merged.line_contexts.update(model.line_contexts)
            for branch in model.branches:
                merged.branches.append(
                    replace(
                        branch,
                        id=branch.id + offset,
                        parent_id=None if branch.parent_id is None else branch.parent_id + offset,
                    )
                )
        return merged
