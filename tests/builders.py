"""Builders for Program Model records and neutral syntax trees used across tests."""

from stge.model.models import (
    BranchKind,
    ConditionalBranch,
    FunctionDecl,
    Parameter,
    function_scope,
    method_scope,
)
from stge.parsing.models import NodeKind, ParsedFile, SyntaxNode


def node(content: str, snippet: str, kind: NodeKind, occurrence: int = 0, **fields) -> SyntaxNode:
    """Build a SyntaxNode spanning the given occurrence of snippet in content."""
    start = -1
    for _ in range(occurrence + 1):
        start = content.index(snippet, start + 1)
    return SyntaxNode(kind, start, start + len(snippet), **fields)


def parsed(
    content: str, nodes: list[SyntaxNode], path: str = "/src/Demo.kt", package: str = ""
) -> ParsedFile:
    return ParsedFile(
        path=path,
        language="kotlin",
        content=content,
        nodes=nodes,
        package=package,
        line_count=content.count("\n") + 1,
    )


def function(
    name: str,
    parameters: tuple[Parameter, ...] = (),
    return_type: str = "Int",
    containing_class: str | None = None,
    package: str = "",
    file: str = "/src/Demo.kt",
    is_private: bool = False,
    body: str | None = None,
) -> FunctionDecl:
    if containing_class:
        scope_id = method_scope(containing_class, name)
        qualified_name = f"{containing_class}.{name}"
    else:
        scope_id = function_scope(name)
        qualified_name = name
    return FunctionDecl(
        name=name,
        qualified_name=qualified_name,
        file=file,
        line=1,
        end_line=10,
        scope_id=scope_id,
        return_type=return_type,
        parameters=parameters,
        containing_class=containing_class,
        package=package,
        is_private=is_private,
        body=body,
    )


def if_branch(
    branch_id: int, condition: str, owner: FunctionDecl, line: int = 2, body: str | None = None
) -> ConditionalBranch:
    return ConditionalBranch(
        id=branch_id,
        kind=BranchKind.IF,
        condition=condition,
        function=owner.name,
        file=owner.file,
        line=line,
        scope_id=owner.scope_id,
        body=body,
    )


def when_branch(
    branch_id: int,
    subject: str | None,
    entries: list[tuple[str, str | None]],
    owner: FunctionDecl,
    line: int = 2,
) -> list[ConditionalBranch]:
    """A WHEN branch followed by its entries (condition, body)."""
    branches = [
        ConditionalBranch(
            id=branch_id,
            kind=BranchKind.WHEN,
            condition=subject,
            function=owner.name,
            file=owner.file,
            line=line,
            scope_id=owner.scope_id,
        )
    ]
    for offset, (condition, body) in enumerate(entries, start=1):
        branches.append(
            ConditionalBranch(
                id=branch_id + offset,
                kind=BranchKind.WHEN_ENTRY,
                condition=condition,
                function=owner.name,
                file=owner.file,
                line=line + offset,
                scope_id=owner.scope_id,
                parent_id=branch_id,
                body=body,
            )
        )
    return branches


INT_A = Parameter("a", "Int")
INT_B = Parameter("b", "Int")
