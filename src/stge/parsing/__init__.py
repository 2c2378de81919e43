"""Source parsing into grammar-neutral syntax trees."""

from stge.parsing.models import (
    NodeKind,
    ParsedFile,
    ParseResult,
    SyntaxNode,
)
from stge.parsing.base import BaseParser
from stge.parsing.kotlin_parser import KotlinParser
from stge.parsing.registry import ParserRegistry

__all__ = [
    "NodeKind",
    "ParsedFile",
    "ParseResult",
    "SyntaxNode",
    "BaseParser",
    "KotlinParser",
    "ParserRegistry",
]
