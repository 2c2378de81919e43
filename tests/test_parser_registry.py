# tests/test_parser_registry.py
"""Parser registry tests."""

from pathlib import Path

import pytest

from stge.parsing.registry import ParserRegistry


@pytest.fixture
def registry():
    """Create parser registry with all parsers."""
    return ParserRegistry()


def test_gets_kotlin_parser(registry):
    """Returns Kotlin parser for .kt files."""
    parser = registry.get_parser(Path("Demo.kt"))

    assert parser is not None
    assert parser.language_name == "Kotlin"


def test_gets_kotlin_parser_for_scripts(registry):
    """Returns Kotlin parser for .kts files."""
    assert registry.get_parser(Path("build.kts")) is not None


def test_returns_none_for_unknown_extension(registry):
    """Returns None for files no parser understands."""
    assert registry.get_parser(Path("Main.java")) is None


def test_parse_file_fails_for_unknown_extension(registry):
    """Parsing an unsupported file is a failed result, not an exception."""
    result = registry.parse_file(Path("notes.txt"), "hello")

    assert not result.ok
    assert result.file is None
    assert ".txt" in result.error


def test_parse_file_uses_matching_parser(registry):
    """Parsing a Kotlin file delegates to the Kotlin parser."""
    result = registry.parse_file(Path("Demo.kt"), "fun f(): Int = 1\n")

    assert result.ok
    assert result.file.language == "kotlin"


def test_lists_supported_languages(registry):
    """Reports registered languages and extensions."""
    assert registry.supported_languages == ["Kotlin"]
    assert ".kt" in registry.supported_extensions


def test_empty_registry_parses_nothing():
    """A registry without parsers fails every file."""
    assert not ParserRegistry(parsers=[]).parse_file(Path("Demo.kt"), "").ok
