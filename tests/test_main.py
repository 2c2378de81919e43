"""Command-line interface tests."""

import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from stge.main import EXIT_BAD_ROOT, EXIT_CONFIG_ERROR, EXIT_WRITE_ERROR, app

runner = CliRunner()

SOURCE = """package com.demo

fun sign(x: Int): Int {
    if (x > 0) {
        return 1
    }
    return 0
}

fun main() {
    var unused = 3
    println(sign(2))
}
"""


@pytest.fixture
def temp_project():
    """Create a project with one Kotlin source."""
    with tempfile.TemporaryDirectory() as tmpdir:
        project = Path(tmpdir) / "project"
        (project / "src").mkdir(parents=True)
        (project / "src" / "Sign.kt").write_text(SOURCE)
        yield project


# =============================================================================
# generate
# =============================================================================


def test_generate_writes_suites(temp_project: Path):
    """generate exits 0 and writes into the default output directory."""
    result = runner.invoke(app, ["generate", str(temp_project)])

    assert result.exit_code == 0, result.output
    assert "Files analyzed: 1" in result.output
    assert (temp_project / "src" / "test" / "kotlin" / "com" / "demo" / "SignTest.kt").exists()
    assert "Wrote 2 files to" in result.output


def test_generate_custom_output(temp_project: Path):
    """--output redirects the suites."""
    output = temp_project / "generated-tests"

    result = runner.invoke(app, ["generate", str(temp_project), "--output", str(output)])

    assert result.exit_code == 0, result.output
    assert (output / "com" / "demo" / "SignTest.kt").exists()


def test_generate_dry_run(temp_project: Path):
    """--dry-run reports counts without writing anything."""
    result = runner.invoke(app, ["generate", str(temp_project), "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "Dry run: no files written" in result.output
    assert "Test cases: 4 (2 basic, 2 branch)" in result.output
    assert not (temp_project / "src" / "test").exists()


def test_generate_missing_root():
    """A missing project root exits with the bad-root code."""
    with tempfile.TemporaryDirectory() as tmpdir:
        result = runner.invoke(app, ["generate", str(Path(tmpdir) / "missing")])

    assert result.exit_code == EXIT_BAD_ROOT


def test_generate_invalid_policy(temp_project: Path):
    """An unknown combination policy is a configuration error."""
    result = runner.invoke(app, ["generate", str(temp_project), "--policy", "random"])

    assert result.exit_code == EXIT_CONFIG_ERROR


def test_generate_invalid_config_file(temp_project: Path):
    """Invalid values in stge.ini are configuration errors."""
    (temp_project / "stge.ini").write_text("[synthesis]\noracle_mode = psychic\n")

    result = runner.invoke(app, ["generate", str(temp_project)])

    assert result.exit_code == EXIT_CONFIG_ERROR


def test_generate_unwritable_output(temp_project: Path):
    """A file in place of the output directory exits with the write-error code."""
    blocker = temp_project / "blocked"
    blocker.write_text("not a directory")

    result = runner.invoke(app, ["generate", str(temp_project), "--output", str(blocker)])

    assert result.exit_code == EXIT_WRITE_ERROR


# =============================================================================
# analyze
# =============================================================================


def test_analyze_prints_statistics_and_anomalies(temp_project: Path):
    """analyze reports counts and the unused variable."""
    result = runner.invoke(app, ["analyze", str(temp_project)])

    assert result.exit_code == 0, result.output
    assert "Functions: 2" in result.output
    assert "Branches: 1" in result.output
    assert "Variable 'unused' is defined but never used" in result.output
