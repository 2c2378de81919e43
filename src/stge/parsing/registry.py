"""Parser registry for selecting the appropriate parser."""

from pathlib import Path

from stge.parsing.base import BaseParser
from stge.parsing.kotlin_parser import KotlinParser
from stge.parsing.models import ParseResult


class ParserRegistry:
    """Registry that selects the appropriate parser for a file.

    Files no registered parser understands are reported as failed parses so
    the pipeline can skip them and continue.
    """

    def __init__(self, parsers: list[BaseParser] | None = None):
        """Initialize registry with all available parsers."""
        self._parsers: list[BaseParser] = parsers if parsers is not None else [KotlinParser()]

    def get_parser(self, file_path: Path) -> BaseParser | None:
        """Get the appropriate parser for a file.

        Args:
            file_path: Path to file.

        Returns:
            Parser instance that can handle the file, or None.
        """
        for parser in self._parsers:
            if parser.can_parse(file_path):
                return parser
        return None

    def parse_file(self, file_path: Path, content: str) -> ParseResult:
        """Parse a file using the appropriate parser.

        Args:
            file_path: Path to file.
            content: File content.

        Returns:
            ParseResult from the selected parser.
        """
        parser = self.get_parser(file_path)
        if parser is None:
            return ParseResult.failure(str(file_path), f"No parser for {file_path.suffix} files")
        return parser.parse(file_path, content)

    @property
    def supported_languages(self) -> list[str]:
        """Get list of supported languages."""
        return [p.language_name for p in self._parsers]

    @property
    def supported_extensions(self) -> list[str]:
        """Get every extension some parser handles."""
        return [ext for p in self._parsers for ext in p.supported_extensions]
