"""Write rendered suites to the output directory."""

import logging
from pathlib import Path
from typing import Iterable

from stge.emission.kotlin_renderer import RenderedSuite

logger = logging.getLogger(__name__)


class EmissionError(Exception):
    """Raised when a generated suite cannot be written."""

    pass


class SuiteWriter:
    """Writes suites to `<output_dir>/<package path>/<Class>.kt`."""

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir

    def write(self, rendered: RenderedSuite) -> Path:
        """Write one suite, creating parent directories.

        Raises:
            EmissionError: If the file or its directories cannot be written.
        """
        path = self.output_dir / rendered.relative_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(rendered.source, encoding="utf-8")
        except OSError as e:
            raise EmissionError(f"Failed to write {path}: {e}") from e
        logger.info(f"Wrote {path}")
        return path

    def write_all(self, suites: Iterable[RenderedSuite]) -> list[Path]:
        return [self.write(rendered) for rendered in suites]
