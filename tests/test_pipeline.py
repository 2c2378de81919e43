"""End-to-end pipeline tests over small Kotlin projects on disk."""

import tempfile
from pathlib import Path

import pytest

from stge.config import load_config
from stge.diagnostics import WarningKind
from stge.parsing import ParserRegistry
from stge.pipeline import GenerationPipeline, batched

DO_WORK = """package com.demo

fun doWork(a: Int, b: Int): Int {
    if (a > 19) {
        return a + b
    }
    if (b == 0) {
        return 0
    }
    return a - b
}
"""

GREETER = """package com.demo

class Greeter(val name: String) {
    fun greet(): String {
        return "Hello " + name
    }
}
"""


@pytest.fixture
def temp_project():
    """Create a project with two sources and a test directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        project = Path(tmpdir) / "project"
        sources = project / "src" / "main" / "kotlin" / "com" / "demo"
        sources.mkdir(parents=True)
        (sources / "DoWork.kt").write_text(DO_WORK)
        (sources / "Greeter.kt").write_text(GREETER)
        existing = project / "src" / "test" / "kotlin"
        existing.mkdir(parents=True)
        (existing / "OldTest.kt").write_text("class OldTest")
        yield project


@pytest.fixture
def pipeline(temp_project):
    """Pipeline over the temporary project with default settings."""
    return GenerationPipeline(load_config(temp_project))


def test_batched_splits_evenly():
    """batched yields full chunks and a trailing remainder."""
    assert list(batched(range(5), 2)) == [[0, 1], [2, 3], [4]]
    assert list(batched([], 3)) == []


def test_discover_skips_test_directories(pipeline):
    """Existing test sources are not analyzed."""
    assert pipeline.discover() == [
        "src/main/kotlin/com/demo/DoWork.kt",
        "src/main/kotlin/com/demo/Greeter.kt",
    ]


def test_build_model_merges_files_in_order(pipeline):
    """Functions from every file end up in one model, ordered by file."""
    model, warnings = pipeline.build_model(pipeline.discover())

    assert warnings == []
    assert [f.name for f in model.functions] == ["doWork", "greet"]


def test_analyze_attaches_dataflow(pipeline):
    """analyze runs data-flow analysis but synthesizes nothing."""
    result = pipeline.analyze()

    assert result.model.dataflow is not None
    assert result.test_cases == []
    assert result.statistics.files == 2


def test_run_writes_suites(pipeline, temp_project):
    """A full run writes one suite per tested function or class."""
    result = pipeline.run()

    output = temp_project / "src" / "test" / "kotlin" / "com" / "demo"
    assert sorted(p.name for p in result.written) == ["DoWorkTest.kt", "GreeterTest.kt"]
    assert (output / "DoWorkTest.kt").exists()
    assert result.basic_test_count == 2
    assert result.branch_test_count == 4
    assert "fun testDoWorkWhenA19()" in (output / "DoWorkTest.kt").read_text()


def test_dry_run_writes_nothing(pipeline, temp_project):
    """With write=False suites are built but no file is created."""
    result = pipeline.run(write=False)

    assert result.written == []
    assert len(result.suites) == 2
    assert not (temp_project / "src" / "test" / "kotlin" / "com").exists()


def test_generated_suites_are_not_rediscovered(pipeline):
    """A second run does not pick up the suites the first one wrote."""
    first = pipeline.run()

    second = pipeline.run()

    assert second.files == first.files


def test_unreadable_file_is_a_parse_error(pipeline, temp_project):
    """Undecodable files are skipped with a PARSE_ERROR warning."""
    broken = temp_project / "src" / "main" / "kotlin" / "Broken.kt"
    broken.write_bytes(b"fun broken() = \xff\xfe")

    result = pipeline.analyze()

    errors = [w for w in result.warnings if w.kind == WarningKind.PARSE_ERROR]
    assert len(errors) == 1
    assert errors[0].file.endswith("Broken.kt")
    assert [f.name for f in result.model.functions] == ["doWork", "greet"]


def test_files_without_parser_are_parse_errors(temp_project):
    """A registry with no parsers turns every file into a warning."""
    pipeline = GenerationPipeline(
        load_config(temp_project), registry_factory=lambda: ParserRegistry(parsers=[])
    )

    result = pipeline.run(write=False)

    assert len(result.warnings) == 2
    assert all("No parser" in w.message for w in result.warnings)
    assert result.test_cases == []


def test_runs_are_reproducible(temp_project):
    """Two runs with the same configuration produce identical tests."""
    first = GenerationPipeline(load_config(temp_project)).run(write=False)
    second = GenerationPipeline(load_config(temp_project)).run(write=False)

    assert [t.name for t in first.test_cases] == [t.name for t in second.test_cases]
    assert first.test_cases == second.test_cases
