"""Kotlin parser using tree-sitter.

Targets the tree-sitter-grammars Kotlin grammar: names are plain
``identifier`` nodes, package and import paths are ``qualified_identifier``
nodes, call arguments sit in ``value_arguments`` directly under the
``call_expression``, and when-entry conditions are bare expressions that
precede the ``->`` token.
"""

from __future__ import annotations

import logging
from pathlib import Path

import tree_sitter_kotlin as ts_kotlin
from tree_sitter import Language, Parser

from stge.parsing.base import BaseParser
from stge.parsing.models import NodeKind, ParsedFile, ParseResult, SyntaxNode

logger = logging.getLogger(__name__)


IDENTIFIER_TYPES = frozenset({"identifier"})

CLASS_TYPES = frozenset({"class_declaration", "object_declaration", "companion_object"})

# Keyword tokens that show up as anonymous children of a class declaration.
CLASS_KEYWORDS = frozenset({"interface", "enum", "object", "companion", "data", "sealed"})

COMMENT_TYPES = frozenset({"line_comment", "block_comment"})

# Subtrees that only hold declaration names, types or metadata. Recursing into
# them would turn declared names and type names into references.
SKIPPED_TYPES = COMMENT_TYPES | frozenset(
    {
        "package_header",
        "import",
        "modifiers",
        "annotation",
        "variable_declaration",
        "multi_variable_declaration",
        "lambda_parameters",
        "function_value_parameters",
        "parameter",
        "class_parameter",
        "class_parameters",
        "primary_constructor",
        "type_parameters",
        "type_constraints",
        "type_arguments",
        "user_type",
        "nullable_type",
        "non_nullable_type",
        "parenthesized_type",
        "function_type",
        "delegation_specifier",
        "delegation_specifiers",
        "label",
    }
)


class KotlinParser(BaseParser):
    """Parser for Kotlin source files using tree-sitter."""

    def __init__(self):
        """Initialize the Kotlin parser."""
        self._language = Language(ts_kotlin.language())
        self._parser = Parser(self._language)

    @property
    def supported_extensions(self) -> list[str]:
        """File extensions this parser handles."""
        return [".kt", ".kts"]

    @property
    def language_name(self) -> str:
        """Human-readable language name."""
        return "Kotlin"

    def parse(self, file_path: Path, content: str) -> ParseResult:
        """Parse Kotlin file content into a neutral syntax tree.

        Grammar errors do not fail the parse: the affected regions become
        ERROR nodes and the rest of the file is still converted.

        Args:
            file_path: Path to the file (for error messages).
            content: File content as string.

        Returns:
            ParseResult with the parsed file or error.
        """
        try:
            source = content.encode("utf-8")
            tree = self._parser.parse(source)

            package = ""
            imports: list[str] = []
            nodes: list[SyntaxNode] = []

            for child in tree.root_node.children:
                if child.type == "package_header":
                    package = self._extract_package(child, source)
                elif child.type == "import":
                    imports.append(self._extract_import(child, source))
                else:
                    nodes.extend(self._convert(child, source))

            if tree.root_node.has_error:
                logger.debug(f"Grammar errors in {file_path}, continuing with partial tree")

            parsed_file = ParsedFile(
                path=str(file_path),
                language="kotlin",
                content=content,
                nodes=nodes,
                package=package,
                imports=imports,
                line_count=content.count("\n") + 1,
            )

            return ParseResult.success(parsed_file)

        except Exception as e:
            return ParseResult.failure(str(file_path), f"Parse error: {e}")

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def _convert(self, node, source: bytes) -> list[SyntaxNode]:
        """Convert a tree-sitter node into zero or more neutral nodes.

        Unrecognized constructs are transparent: their converted children are
        returned in their place.
        """
        node_type = node.type

        if node.is_error or node_type == "ERROR":
            return [SyntaxNode(NodeKind.ERROR, node.start_byte, node.end_byte)]
        if node_type in SKIPPED_TYPES:
            return []
        if node_type in CLASS_TYPES:
            return [self._convert_class(node, source)]
        if node_type == "function_declaration":
            return [self._convert_function(node, source)]
        if node_type == "property_declaration":
            return self._convert_property(node, source)
        if node_type == "if_expression":
            return [self._convert_if(node, source)]
        if node_type == "when_expression":
            return [self._convert_when(node, source)]
        if node_type == "for_statement":
            return [self._convert_for(node, source)]
        if node_type in ("while_statement", "do_while_statement"):
            return [self._convert_while(node, source)]
        if node_type == "call_expression":
            return [self._convert_call(node, source)]
        if node_type == "value_argument":
            return self._convert_value_argument(node, source)
        if node_type == "navigation_expression":
            # The selected member name is not a variable reference
            return self._convert_children(self._receiver_children(node), source)
        if node_type in IDENTIFIER_TYPES:
            name = self._get_node_text(node, source)
            return [SyntaxNode(NodeKind.REFERENCE, node.start_byte, node.end_byte, name=name)]

        return self._convert_children(node.children, source)

    def _convert_children(self, children, source: bytes) -> list[SyntaxNode]:
        converted: list[SyntaxNode] = []
        for child in children:
            converted.extend(self._convert(child, source))
        return converted

    def _convert_class(self, node, source: bytes) -> SyntaxNode:
        """Convert a class, interface, object or companion object."""
        name = None
        name_node = node.child_by_field_name("name")
        if name_node is not None:
            name = self._get_node_text(name_node, source)
        modifiers: list[str] = []
        children: list[SyntaxNode] = []

        for child in node.children:
            if child.type == "modifiers":
                modifiers.extend(self._modifier_words(child, source))
            elif not child.is_named and child.type in CLASS_KEYWORDS:
                modifiers.append(child.type)
            elif child.type in IDENTIFIER_TYPES and name is None:
                name = self._get_node_text(child, source)
            elif child.type == "primary_constructor":
                children.extend(self._extract_class_parameters(child, source))
            elif child.type == "class_parameters":
                children.extend(self._extract_class_parameters(child, source))
            elif child.type in ("class_body", "enum_class_body"):
                children.extend(self._convert_children(child.children, source))

        if node.type == "companion_object":
            name = name or "Companion"
        if node.type in ("object_declaration", "companion_object") and "object" not in modifiers:
            modifiers.append("object")

        return SyntaxNode(
            NodeKind.CLASS,
            node.start_byte,
            node.end_byte,
            name=name or "<anonymous>",
            modifiers=modifiers,
            children=children,
        )

    def _extract_class_parameters(self, node, source: bytes) -> list[SyntaxNode]:
        """Extract primary constructor parameters as PARAMETER nodes."""
        parameters: list[SyntaxNode] = []
        for child in node.named_children:
            if child.type == "class_parameters":
                parameters.extend(self._extract_class_parameters(child, source))
            elif child.type == "class_parameter":
                param = SyntaxNode(NodeKind.PARAMETER, child.start_byte, child.end_byte)
                after_colon = False
                after_equals = False
                for part in child.children:
                    if part.type == "modifiers":
                        words = self._modifier_words(part, source)
                        param.is_variadic = "vararg" in words
                    elif part.type in ("val", "var"):
                        param.modifiers.append(part.type)
                        param.is_mutable = part.type == "var"
                    elif part.type == ":":
                        after_colon = True
                    elif part.type == "=":
                        after_equals = True
                    elif part.type in IDENTIFIER_TYPES and param.name is None:
                        param.name = self._get_node_text(part, source)
                    elif part.is_named and after_equals and param.initializer is None:
                        param.initializer = self._get_node_text(part, source)
                    elif part.is_named and after_colon and param.type_name is None:
                        param.type_name = self._get_node_text(part, source)
                if param.name:
                    parameters.append(param)
        return parameters

    def _convert_function(self, node, source: bytes) -> SyntaxNode:
        """Convert a function declaration with its parameters and body."""
        function = SyntaxNode(NodeKind.FUNCTION, node.start_byte, node.end_byte)
        name_node = node.child_by_field_name("name")
        if name_node is not None:
            function.name = self._get_node_text(name_node, source)
        seen_parameters = False
        expect_return_type = False

        for child in node.children:
            if child.type == "modifiers":
                function.modifiers.extend(self._modifier_words(child, source))
            elif child.type in IDENTIFIER_TYPES and not seen_parameters and name_node is None:
                # A receiver type precedes the name, so the last identifier wins
                function.name = self._get_node_text(child, source)
            elif child.type == "function_value_parameters":
                seen_parameters = True
                function.children.extend(self._extract_parameters(child, source))
            elif child.type == ":" and seen_parameters:
                expect_return_type = True
            elif child.type == "function_body":
                function.body = self._get_node_text(child, source)
                function.children.extend(self._convert_children(child.children, source))
            elif expect_return_type and child.is_named:
                function.type_name = self._get_node_text(child, source)
                expect_return_type = False

        function.name = function.name or "<anonymous>"
        return function

    def _extract_parameters(self, node, source: bytes) -> list[SyntaxNode]:
        """Extract function value parameters, tracking vararg and defaults."""
        parameters: list[SyntaxNode] = []
        pending_vararg = False
        expect_default = False

        for child in node.children:
            if child.type in ("parameter_modifiers", "modifiers"):
                pending_vararg = "vararg" in self._modifier_words(child, source)
            elif child.type == "parameter":
                param = SyntaxNode(
                    NodeKind.PARAMETER,
                    child.start_byte,
                    child.end_byte,
                    is_variadic=pending_vararg,
                )
                after_colon = False
                after_equals = False
                for part in child.children:
                    if part.type in ("parameter_modifiers", "modifiers"):
                        if "vararg" in self._modifier_words(part, source):
                            param.is_variadic = True
                    elif part.type in IDENTIFIER_TYPES and param.name is None:
                        param.name = self._get_node_text(part, source)
                    elif part.type == ":":
                        after_colon = True
                    elif part.type == "=":
                        after_equals = True
                    elif part.is_named and after_equals and param.initializer is None:
                        param.initializer = self._get_node_text(part, source)
                    elif part.is_named and after_colon and param.type_name is None:
                        param.type_name = self._get_node_text(part, source)
                parameters.append(param)
                pending_vararg = False
            elif child.type == "=":
                expect_default = True
            elif expect_default and child.is_named:
                if parameters:
                    parameters[-1].initializer = self._get_node_text(child, source)
                expect_default = False

        return [p for p in parameters if p.name]

    def _convert_property(self, node, source: bytes) -> list[SyntaxNode]:
        """Convert a property declaration, one node per declared name."""
        is_mutable = False
        modifiers: list[str] = []
        declarations = []
        initializer = None
        initializer_nodes: list[SyntaxNode] = []
        after_equals = False

        for child in node.children:
            if child.type == "modifiers":
                modifiers.extend(self._modifier_words(child, source))
            elif child.type in ("val", "var"):
                is_mutable = child.type == "var"
            elif child.type == "variable_declaration":
                declarations.append(child)
            elif child.type == "multi_variable_declaration":
                declarations.extend(
                    c for c in child.named_children if c.type == "variable_declaration"
                )
            elif child.type == "=":
                after_equals = True
            elif child.type == "property_delegate":
                initializer = self._get_node_text(child, source)
                initializer_nodes.extend(self._convert_children(child.children, source))
            elif child.type in ("getter", "setter"):
                initializer_nodes.extend(self._convert_children(child.children, source))
            elif after_equals and child.is_named and initializer is None:
                initializer = self._get_node_text(child, source)
                initializer_nodes.extend(self._convert(child, source))

        properties: list[SyntaxNode] = []
        for declaration in declarations:
            name, type_name = self._variable_name_and_type(declaration, source)
            if not name:
                continue
            properties.append(
                SyntaxNode(
                    NodeKind.PROPERTY,
                    node.start_byte,
                    node.end_byte,
                    name=name,
                    type_name=type_name,
                    initializer=initializer,
                    is_mutable=is_mutable,
                    modifiers=list(modifiers),
                )
            )

        # Initializer expressions belong to the first declared name so their
        # references and calls are emitted once.
        if properties:
            properties[0].children = initializer_nodes
            return properties
        return initializer_nodes

    def _convert_if(self, node, source: bytes) -> SyntaxNode:
        """Convert an if expression with its condition and both branches."""
        branch = SyntaxNode(NodeKind.IF, node.start_byte, node.end_byte)
        condition_node = self._condition(node)
        if condition_node is not None:
            branch.condition = self._get_node_text(condition_node, source)

        state = "header"
        for child in node.children:
            if child.type == ")" and state == "header":
                state = "then"
            elif child.type == "else":
                state = "else"
            elif child.is_named and child.type not in COMMENT_TYPES:
                text = self._get_node_text(child, source)
                if state == "then" and branch.body is None:
                    branch.body = text
                elif state == "else" and branch.else_body is None:
                    branch.else_body = text

        branch.children = self._convert_children(node.children, source)
        return branch

    def _convert_when(self, node, source: bytes) -> SyntaxNode:
        """Convert a when expression and its entries."""
        branch = SyntaxNode(NodeKind.WHEN, node.start_byte, node.end_byte)
        children: list[SyntaxNode] = []

        for child in node.children:
            if child.type == "when_subject":
                subject = self._parenthesized(child)
                if subject is not None:
                    branch.condition = self._get_node_text(subject, source)
                    children.extend(self._convert(subject, source))
            elif child.type == "when_entry":
                children.append(self._convert_when_entry(child, source))
            elif child.is_error or child.type == "ERROR":
                children.append(SyntaxNode(NodeKind.ERROR, child.start_byte, child.end_byte))

        branch.children = children
        return branch

    def _convert_when_entry(self, node, source: bytes) -> SyntaxNode:
        conditions: list[str] = []
        is_else = False
        after_arrow = False
        entry = SyntaxNode(NodeKind.WHEN_ENTRY, node.start_byte, node.end_byte)

        for child in node.children:
            if child.type == "->":
                after_arrow = True
            elif child.type == "else" and not after_arrow:
                is_else = True
            elif not child.is_named or child.type in COMMENT_TYPES:
                continue
            elif after_arrow:
                if entry.body is None:
                    entry.body = self._get_node_text(child, source)
                entry.children.extend(self._convert(child, source))
            else:
                conditions.append(self._get_node_text(child, source))
                entry.children.extend(self._convert(child, source))

        entry.condition = "else" if is_else else ", ".join(conditions)
        return entry

    def _convert_for(self, node, source: bytes) -> SyntaxNode:
        """Convert a for loop, recording its induction variable and iterable."""
        loop = SyntaxNode(NodeKind.FOR, node.start_byte, node.end_byte)
        seen_variable = False

        for child in node.children:
            if not child.is_named or child.type in COMMENT_TYPES or child.type == "annotation":
                continue
            if not seen_variable and child.type == "variable_declaration":
                seen_variable = True
                loop.name, loop.type_name = self._variable_name_and_type(child, source)
            elif not seen_variable and child.type == "multi_variable_declaration":
                seen_variable = True
                names = [
                    self._variable_name_and_type(c, source)[0]
                    for c in child.named_children
                    if c.type == "variable_declaration"
                ]
                loop.name = next((n for n in names if n), None)
            elif seen_variable and loop.condition is None:
                loop.condition = self._get_node_text(child, source)
                loop.children.extend(self._convert(child, source))
            elif loop.condition is not None:
                loop.children.extend(self._convert(child, source))

        return loop

    def _convert_while(self, node, source: bytes) -> SyntaxNode:
        kind = NodeKind.DO_WHILE if node.type == "do_while_statement" else NodeKind.WHILE
        loop = SyntaxNode(kind, node.start_byte, node.end_byte)
        condition_node = self._condition(node)
        if condition_node is not None:
            loop.condition = self._get_node_text(condition_node, source)
        loop.children = self._convert_children(node.children, source)
        return loop

    def _convert_call(self, node, source: bytes) -> SyntaxNode:
        """Convert a call expression, keeping the callee name and argument texts."""
        call = SyntaxNode(NodeKind.CALL, node.start_byte, node.end_byte)
        if node.children:
            call.name = self._callee_name(node.children[0], source)

        for child in node.children:
            if child.type == "value_arguments":
                call.arguments.extend(
                    self._get_node_text(arg, source).strip()
                    for arg in child.named_children
                    if arg.type == "value_argument"
                )
            elif child.type in ("annotated_lambda", "lambda_literal"):
                call.arguments.append(self._get_node_text(child, source).strip())

        call.children = self._convert_children(node.children, source)
        return call

    def _convert_value_argument(self, node, source: bytes) -> list[SyntaxNode]:
        # Named arguments carry a parameter label that is not a reference
        children = list(node.children)
        if any(child.type == "=" for child in children):
            index = next(i for i, child in enumerate(children) if child.type == "=")
            children = children[index + 1 :]
        return self._convert_children(children, source)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _callee_name(self, node, source: bytes) -> str:
        """Textual callee name: the last identifier of a navigation chain."""
        if node.type in IDENTIFIER_TYPES:
            return self._get_node_text(node, source)
        if node.type == "navigation_expression":
            for child in reversed(node.children):
                if child.type in IDENTIFIER_TYPES:
                    return self._get_node_text(child, source)
        return self._get_node_text(node, source)

    @staticmethod
    def _receiver_children(node) -> list:
        """Children of a navigation expression without the selected member."""
        children = list(node.children)
        if len(children) > 1 and children[-1].type in IDENTIFIER_TYPES:
            return children[:-1]
        return children

    def _condition(self, node):
        """The condition field of an if or loop, else the parenthesized child."""
        return node.child_by_field_name("condition") or self._parenthesized(node)

    def _parenthesized(self, node):
        """Return the first named child following a "(" token."""
        after_paren = False
        for child in node.children:
            if child.type == "(":
                after_paren = True
            elif (
                after_paren
                and child.is_named
                and child.type not in COMMENT_TYPES
                and child.type not in ("annotation", "variable_declaration")
            ):
                return child
        return None

    def _variable_name_and_type(self, node, source: bytes) -> tuple[str | None, str | None]:
        name = None
        type_name = None
        after_colon = False
        for child in node.children:
            if child.type in IDENTIFIER_TYPES and name is None:
                name = self._get_node_text(child, source)
            elif child.type == ":":
                after_colon = True
            elif after_colon and child.is_named and type_name is None:
                type_name = self._get_node_text(child, source)
        return name, type_name

    def _modifier_words(self, node, source: bytes) -> list[str]:
        """Modifier keywords of a modifiers node, annotations excluded."""
        words = []
        for child in node.children:
            if child.type == "annotation":
                continue
            words.extend(self._get_node_text(child, source).split())
        return words

    def _extract_package(self, node, source: bytes) -> str:
        for child in node.named_children:
            if child.type == "qualified_identifier" or child.type in IDENTIFIER_TYPES:
                return self._get_node_text(child, source)
        return self._get_node_text(node, source).removeprefix("package").strip()

    def _extract_import(self, node, source: bytes) -> str:
        text = self._get_node_text(node, source).strip()
        text = text.removeprefix("import").strip().rstrip(";").strip()
        if " as " in text:
            text = text.split(" as ", 1)[0].strip()
        return text

    def _get_node_text(self, node, source: bytes) -> str:
        """Get the text content of a node."""
        return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")
