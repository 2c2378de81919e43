"""End-to-end generation: discover, parse, model, analyze, synthesize, emit."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from itertools import islice
from pathlib import Path
from typing import Callable, Iterator

from stge.config import Config
from stge.dataflow import DataFlowAnalyzer
from stge.diagnostics import AnalysisWarning, WarningKind, record_warning
from stge.emission import KotlinTestRenderer, SuiteWriter, TestSuite, build_suites
from stge.model import BuildResult, ModelStatistics, ProgramModel, ProgramModelBuilder
from stge.parsing import ParserRegistry
from stge.repo import FileFilter
from stge.synthesis import TestCase, TestSynthesizer

logger = logging.getLogger(__name__)


def batched(iterable, n: int) -> Iterator[list]:
    """Batch an iterable into chunks of size n.

    Args:
        iterable: Items to batch.
        n: Batch size.

    Yields:
        Lists of up to n items.
    """
    it = iter(iterable)
    while batch := list(islice(it, n)):
        yield batch


@dataclass
class PipelineResult:
    """Everything one generation run produced."""

    files: list[str] = field(default_factory=list)
    model: ProgramModel = field(default_factory=ProgramModel)
    test_cases: list[TestCase] = field(default_factory=list)
    suites: list[TestSuite] = field(default_factory=list)
    written: list[Path] = field(default_factory=list)
    warnings: list[AnalysisWarning] = field(default_factory=list)

    @property
    def statistics(self) -> ModelStatistics:
        return self.model.statistics()

    @property
    def basic_test_count(self) -> int:
        return sum(1 for test_case in self.test_cases if not test_case.is_branch_test)

    @property
    def branch_test_count(self) -> int:
        return sum(1 for test_case in self.test_cases if test_case.is_branch_test)


class GenerationPipeline:
    """Runs the whole analysis and generation for one project.

    Files are parsed and modeled in parallel batches; everything after the
    merge runs on one thread. Each worker thread gets its own parser
    registry because tree-sitter parsers are not shared across threads.
    """

    def __init__(
        self,
        config: Config,
        registry_factory: Callable[[], ParserRegistry] = ParserRegistry,
    ):
        self.config = config
        self.registry_factory = registry_factory
        self._local = threading.local()

    def _registry(self) -> ParserRegistry:
        registry = getattr(self._local, "registry", None)
        if registry is None:
            registry = self.registry_factory()
            self._local.registry = registry
        return registry

    def discover(self) -> list[str]:
        """Relative paths of the project's analyzable sources."""
        file_filter = FileFilter(
            self.config.project_path,
            max_file_size_kb=self.config.files.max_file_size_kb,
            ignore_path=self.config.ignore_path,
        )
        files = file_filter.get_files()
        logger.info(f"Discovered {len(files)} source files in {self.config.project_path}")
        return files

    def _build_file(self, relative_path: str) -> BuildResult:
        path = (self.config.project_path / relative_path).resolve()
        warnings: list[AnalysisWarning] = []

        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            record_warning(
                warnings, WarningKind.PARSE_ERROR, f"Could not read file: {e}", str(path)
            )
            return BuildResult(model=ProgramModel(), warnings=warnings)

        result = self._registry().parse_file(path, content)
        if not result.ok or result.file is None:
            record_warning(
                warnings, WarningKind.PARSE_ERROR, result.error or "Parse failed", str(path)
            )
            return BuildResult(model=ProgramModel(), warnings=warnings)

        return ProgramModelBuilder().build(result.file)

    def build_model(self, files: list[str]) -> tuple[ProgramModel, list[AnalysisWarning]]:
        """Parse and model files in parallel batches, then merge in file order."""
        limit = self.config.files.parallel_limit
        results: list[BuildResult] = []

        with ThreadPoolExecutor(max_workers=limit) as executor:
            for batch in batched(files, limit):
                results.extend(executor.map(self._build_file, batch))

        warnings = [warning for result in results for warning in result.warnings]
        model = ProgramModel.merge([result.model for result in results])
        return model, warnings

    def analyze(self) -> PipelineResult:
        """Discover, model and run data-flow analysis without generating tests."""
        files = self.discover()
        model, warnings = self.build_model(files)
        DataFlowAnalyzer(dedupe_uses=self.config.synthesis.dedupe_uses).analyze(model)
        return PipelineResult(files=files, model=model, warnings=warnings)

    def run(self, write: bool = True) -> PipelineResult:
        """Run the full pipeline.

        Args:
            write: Write the rendered suites to the output directory. With
                False the suites are built and rendered but nothing is written.

        Returns:
            PipelineResult with counts, written paths and all warnings.

        Raises:
            EmissionError: If a suite cannot be written.
        """
        result = self.analyze()

        synthesis = TestSynthesizer(self.config.synthesis).synthesize(result.model)
        result.test_cases = synthesis.test_cases
        result.warnings.extend(synthesis.warnings)

        result.suites = build_suites(result.test_cases, self.config.emission.default_package)
        renderer = KotlinTestRenderer()
        rendered = [renderer.render(suite) for suite in result.suites]

        if write:
            result.written = SuiteWriter(self.config.output_path).write_all(rendered)
        else:
            logger.info(f"Dry run: {len(rendered)} suites rendered, nothing written")

        return result
