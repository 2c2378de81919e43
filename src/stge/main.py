"""Command-line entry point."""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer

# Logging constants defined here (not in constants/) because logging.basicConfig()
# must run before any module imports that might create loggers.
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    format=LOG_FORMAT,
    datefmt=DATE_FORMAT,
    level=logging.INFO,
)

from stge.config import CONFIG_CHOICES, Config, ConfigError, load_config  # noqa: E402
from stge.emission import EmissionError  # noqa: E402
from stge.pipeline import GenerationPipeline, PipelineResult  # noqa: E402

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_BAD_ROOT = 1
EXIT_CONFIG_ERROR = 2
EXIT_WRITE_ERROR = 3

app = typer.Typer(
    add_completion=False,
    help="Generate JUnit 5 branch-coverage tests for a Kotlin code base.",
)


def _set_verbosity(verbose: bool) -> None:
    logging.getLogger().setLevel(logging.DEBUG if verbose else logging.INFO)


def _check_root(project_root: Path) -> Path:
    if not project_root.exists() or not project_root.is_dir():
        typer.echo(f"Error: {project_root} is not a directory", err=True)
        raise typer.Exit(code=EXIT_BAD_ROOT)
    return project_root.resolve()


def _choice(section: str, key: str, value: str) -> str:
    choices = CONFIG_CHOICES[(section, key)]
    if value not in choices:
        raise ConfigError(f"Invalid {key} {value!r}, expected one of {', '.join(choices)}")
    return value


def _load(
    project_root: Path,
    config_path: Optional[Path],
    output: Optional[Path] = None,
    seed: Optional[int] = None,
    policy: Optional[str] = None,
    oracle: Optional[str] = None,
) -> Config:
    """Load the project config and apply command-line overrides.

    Raises:
        typer.Exit: With EXIT_CONFIG_ERROR if the config or an override is invalid.
    """
    try:
        config = load_config(project_root, config_path)
        synthesis = config.synthesis
        if seed is not None:
            synthesis = replace(synthesis, seed=seed)
        if policy is not None:
            synthesis = replace(
                synthesis,
                combination_policy=_choice("synthesis", "combination_policy", policy),
            )
        if oracle is not None:
            synthesis = replace(synthesis, oracle_mode=_choice("synthesis", "oracle_mode", oracle))
        config = replace(config, synthesis=synthesis)
        if output is not None:
            config = replace(config, emission=replace(config.emission, output_dir=str(output)))
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG_ERROR)
    return config


def _print_statistics(result: PipelineResult) -> None:
    stats = result.statistics
    typer.echo(f"Files analyzed: {len(result.files)}")
    typer.echo(f"Classes: {stats.classes}")
    typer.echo(f"Functions: {stats.functions}")
    typer.echo(f"Branches: {stats.branches}")
    typer.echo(f"Variables: {stats.variables}")
    typer.echo(f"Anomalies: {stats.anomalies}")


@app.command()
def generate(
    project_root: Path = typer.Argument(..., help="Root of the Kotlin project."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Test output directory."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for every random choice."),
    policy: Optional[str] = typer.Option(None, "--policy", help="exhaustive or targeted."),
    oracle: Optional[str] = typer.Option(None, "--oracle", help="heuristic or exact."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to an stge.ini file."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Render suites without writing."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Analyze PROJECT_ROOT and write branch-coverage test suites."""
    _set_verbosity(verbose)
    root = _check_root(project_root)
    settings = _load(root, config, output, seed, policy, oracle)

    try:
        result = GenerationPipeline(settings).run(write=not dry_run)
    except EmissionError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=EXIT_WRITE_ERROR)

    _print_statistics(result)
    typer.echo(
        f"Test cases: {len(result.test_cases)} "
        f"({result.basic_test_count} basic, {result.branch_test_count} branch)"
    )
    typer.echo(f"Suites: {len(result.suites)}")
    if dry_run:
        typer.echo("Dry run: no files written")
    else:
        typer.echo(f"Wrote {len(result.written)} files to {settings.output_path}")
    if result.warnings:
        typer.echo(f"Warnings: {len(result.warnings)}")


@app.command()
def analyze(
    project_root: Path = typer.Argument(..., help="Root of the Kotlin project."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to an stge.ini file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Print model statistics and data-flow anomalies for PROJECT_ROOT."""
    _set_verbosity(verbose)
    root = _check_root(project_root)
    settings = _load(root, config)

    result = GenerationPipeline(settings).analyze()
    _print_statistics(result)

    dataflow = result.model.dataflow
    if dataflow is not None:
        for anomaly in dataflow.anomalies:
            typer.echo(
                f"{anomaly.file}:{anomaly.line}: {anomaly.kind.value}: {anomaly.description}"
            )
    for warning in result.warnings:
        typer.echo(f"warning: {warning}")


if __name__ == "__main__":
    app()
