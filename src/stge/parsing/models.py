"""Data models for source parsing.

Parsers translate their concrete syntax trees into SyntaxNode trees so the
model builder never depends on a particular grammar.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class NodeKind(Enum):
    """Kinds of syntax nodes the model builder understands."""

    CLASS = "class"
    FUNCTION = "function"
    PARAMETER = "parameter"
    PROPERTY = "property"
    IF = "if"
    WHEN = "when"
    WHEN_ENTRY = "when_entry"
    FOR = "for"
    WHILE = "while"
    DO_WHILE = "do_while"
    CALL = "call"
    REFERENCE = "reference"
    ERROR = "error"  # Region the grammar could not make sense of


@dataclass
class SyntaxNode:
    """A grammar-neutral syntax node.

    Which optional fields are filled depends on the kind:

    - CLASS: name, modifiers ("object", "interface", "abstract", "enum", ...)
    - FUNCTION: name, type_name (return type), body, modifiers
    - PARAMETER: name, type_name, initializer (default), is_variadic,
      modifiers ("val"/"var" for constructor properties)
    - PROPERTY: name, type_name, initializer, is_mutable
    - IF: condition, body (then branch), else_body
    - WHEN: condition (subject, None when absent)
    - WHEN_ENTRY: condition (comma-joined cases, "else" for the catch-all), body
    - FOR: name (loop variable), condition (iterable)
    - WHILE / DO_WHILE: condition
    - CALL: name (callee), arguments
    - REFERENCE: name
    """

    kind: NodeKind
    start_byte: int
    end_byte: int
    name: str | None = None
    type_name: str | None = None
    condition: str | None = None
    initializer: str | None = None
    body: str | None = None
    else_body: str | None = None
    modifiers: list[str] = field(default_factory=list)
    is_mutable: bool = False
    is_variadic: bool = False
    arguments: list[str] = field(default_factory=list)
    children: list[SyntaxNode] = field(default_factory=list)

    def walk(self):
        """Yield this node and all descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass
class ParsedFile:
    """Result of parsing a single file."""

    path: str
    language: str
    content: str
    nodes: list[SyntaxNode] = field(default_factory=list)
    package: str = ""
    imports: list[str] = field(default_factory=list)
    line_count: int = 0


@dataclass
class ParseResult:
    """Result of a parse operation (success or failure)."""

    ok: bool
    file: ParsedFile | None
    error: str | None
    path: str | None = None

    @classmethod
    def success(cls, parsed_file: ParsedFile) -> ParseResult:
        """Create a successful parse result."""
        return cls(ok=True, file=parsed_file, error=None, path=parsed_file.path)

    @classmethod
    def failure(cls, path: str, error: str) -> ParseResult:
        """Create a failed parse result."""
        return cls(ok=False, file=None, error=error, path=path)
