"""Warnings accumulated alongside analysis and synthesis results.

Stages never raise for recoverable problems. They record an AnalysisWarning,
log it, and continue with whatever partial result they have.
"""

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class WarningKind(Enum):
    """Recoverable problems reported by the pipeline stages."""

    PARSE_ERROR = "parse_error"
    ANALYSIS_INCONSISTENCY = "analysis_inconsistency"
    COVERAGE_SEARCH_EXHAUSTED = "coverage_search_exhausted"
    UNIQUENESS_RETRY_EXHAUSTED = "uniqueness_retry_exhausted"


@dataclass(frozen=True)
class AnalysisWarning:
    """A recoverable problem with an optional source location."""

    kind: WarningKind
    message: str
    file: str | None = None
    line: int | None = None

    def __str__(self) -> str:
        if self.file and self.line:
            return f"{self.kind.value}: {self.message} ({self.file}:{self.line})"
        if self.file:
            return f"{self.kind.value}: {self.message} ({self.file})"
        return f"{self.kind.value}: {self.message}"


def record_warning(
    warnings: list[AnalysisWarning],
    kind: WarningKind,
    message: str,
    file: str | None = None,
    line: int | None = None,
) -> AnalysisWarning:
    """Append a warning to the list and log it.

    Args:
        warnings: Accumulator the warning is appended to.
        kind: Warning category.
        message: Human-readable description.
        file: Source file the warning refers to, if any.
        line: 1-based line the warning refers to, if any.

    Returns:
        The recorded warning.
    """
    warning = AnalysisWarning(kind=kind, message=message, file=file, line=line)
    warnings.append(warning)
    logger.warning(str(warning))
    return warning
