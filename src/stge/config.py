"""Configuration system for stge.

This module handles loading settings from environment variables and INI files,
providing sensible defaults, and computing derived paths inside the analyzed
project.
"""

from __future__ import annotations

from configparser import ConfigParser
from dataclasses import dataclass, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional
import os

from stge.constants import (
    COMBINATION_POLICIES,
    COVERAGE_ATTEMPT_BUDGET,
    DEFAULT_COMBINATION_POLICY,
    DEFAULT_ORACLE_MODE,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PACKAGE,
    DEFAULT_SEED,
    ELSE_RETRY_LIMIT,
    MAX_EXHAUSTIVE_ATOMS,
    MAX_FILE_SIZE_KB,
    ORACLE_MODES,
    PARALLEL_LIMIT,
)


CONFIG_FILE_NAME = "stge.ini"


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# =============================================================================
# Schema
# =============================================================================

# Schema: section -> key -> (type, default, min, max, description)
CONFIG_SCHEMA: dict[str, dict[str, tuple[type, Any, Any, Any, str]]] = {
    "synthesis": {
        "seed": (int, DEFAULT_SEED, 0, None, "Seed for every random choice"),
        "combination_policy": (
            str,
            DEFAULT_COMBINATION_POLICY,
            None,
            None,
            "Truth-assignment policy for compound conditions",
        ),
        "attempt_budget": (
            int,
            COVERAGE_ATTEMPT_BUDGET,
            1,
            10000,
            "Attempts the targeted policy makes to reach both outcomes",
        ),
        "max_exhaustive_atoms": (
            int,
            MAX_EXHAUSTIVE_ATOMS,
            1,
            16,
            "Atom count above which the targeted policy replaces enumeration",
        ),
        "else_retry_limit": (
            int,
            ELSE_RETRY_LIMIT,
            1,
            100000,
            "Retries when picking a value outside every when entry",
        ),
        "oracle_mode": (str, DEFAULT_ORACLE_MODE, None, None, "heuristic or exact oracles"),
        "dedupe_uses": (bool, True, None, None, "Collapse duplicate uses before pairing"),
    },
    "emission": {
        "default_package": (str, DEFAULT_PACKAGE, None, None, "Package for unnamespaced suites"),
        "output_dir": (str, DEFAULT_OUTPUT_DIR, None, None, "Test output directory"),
    },
    "files": {
        "max_file_size_kb": (int, MAX_FILE_SIZE_KB, 1, 10000, "File size limit in KB"),
        "parallel_limit": (int, PARALLEL_LIMIT, 1, 64, "Files parsed concurrently"),
    },
    "paths": {
        "ignore_file": (str, ".stgeignore", None, None, "Ignore file name"),
    },
}

# Allowed values for enumerated string settings.
CONFIG_CHOICES: dict[tuple[str, str], tuple[str, ...]] = {
    ("synthesis", "combination_policy"): COMBINATION_POLICIES,
    ("synthesis", "oracle_mode"): ORACLE_MODES,
}


# =============================================================================
# Section Dataclasses
# =============================================================================


@dataclass(frozen=True)
class SynthesisConfig:
    """Test synthesis configuration."""

    seed: int
    combination_policy: str
    attempt_budget: int
    max_exhaustive_atoms: int
    else_retry_limit: int
    oracle_mode: str
    dedupe_uses: bool


@dataclass(frozen=True)
class EmissionConfig:
    """Suite emission configuration."""

    default_package: str
    output_dir: str


@dataclass(frozen=True)
class FilesConfig:
    """Source discovery configuration."""

    max_file_size_kb: int
    parallel_limit: int


@dataclass(frozen=True)
class PathsConfig:
    """Path names configuration."""

    ignore_file: str


# =============================================================================
# Loader
# =============================================================================


def _load_section(
    parser: ConfigParser, section: str, schema: dict[str, tuple[type, Any, Any, Any, str]]
) -> dict[str, Any]:
    """Load and validate a configuration section.

    Args:
        parser: ConfigParser instance with loaded config
        section: Section name to load
        schema: Schema definition for the section

    Returns:
        Dictionary of validated configuration values

    Raises:
        ConfigError: If validation fails
    """
    result = {}

    for key, (typ, default, min_val, max_val, _) in schema.items():
        if parser.has_option(section, key):
            raw_value = parser.get(section, key)
            value: bool | int | float | str
            try:
                if typ is bool:
                    value = raw_value.lower() in ("true", "1", "yes", "on")
                elif typ is int:
                    value = int(raw_value)
                elif typ is float:
                    value = float(raw_value)
                else:
                    value = raw_value.strip()
            except ValueError as e:
                raise ConfigError(
                    f"Invalid value for [{section}].{key}: {raw_value!r} (expected {typ.__name__})"
                ) from e
        else:
            value = default

        if typ in (int, float) and value is not None:
            if min_val is not None and value < min_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but minimum is {min_val}"
                )
            if max_val is not None and value > max_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but maximum is {max_val}"
                )

        choices = CONFIG_CHOICES.get((section, key))
        if choices is not None and value not in choices:
            raise ConfigError(
                f"Value for [{section}].{key} is {value!r}, expected one of {', '.join(choices)}"
            )

        result[key] = value

    return result


def _default_section(section: str) -> dict[str, Any]:
    return {key: default for key, (_, default, _, _, _) in CONFIG_SCHEMA[section].items()}


def _load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from an INI file (internal use only).

    Args:
        config_path: Path to config file. If None, uses defaults from schema.

    Returns:
        Config object with all sections populated (project_path is a placeholder)

    Raises:
        ConfigError: If validation fails
    """
    parser = ConfigParser()

    if config_path and config_path.exists():
        parser.read(config_path)

    return Config(
        project_path=Path("."),
        synthesis=SynthesisConfig(
            **_load_section(parser, "synthesis", CONFIG_SCHEMA["synthesis"])
        ),
        emission=EmissionConfig(**_load_section(parser, "emission", CONFIG_SCHEMA["emission"])),
        files=FilesConfig(**_load_section(parser, "files", CONFIG_SCHEMA["files"])),
        paths=PathsConfig(**_load_section(parser, "paths", CONFIG_SCHEMA["paths"])),
    )


# =============================================================================
# Config Dataclass
# =============================================================================


@dataclass(frozen=True)
class Config:
    """Complete application configuration."""

    project_path: Path
    synthesis: SynthesisConfig = None  # type: ignore[assignment]
    emission: EmissionConfig = None  # type: ignore[assignment]
    files: FilesConfig = None  # type: ignore[assignment]
    paths: PathsConfig = None  # type: ignore[assignment]

    def __post_init__(self):
        """Initialize section configs with defaults if not provided."""
        # Since frozen=True, we need to use object.__setattr__
        if self.synthesis is None:
            object.__setattr__(self, "synthesis", SynthesisConfig(**_default_section("synthesis")))
        if self.emission is None:
            object.__setattr__(self, "emission", EmissionConfig(**_default_section("emission")))
        if self.files is None:
            object.__setattr__(self, "files", FilesConfig(**_default_section("files")))
        if self.paths is None:
            object.__setattr__(self, "paths", PathsConfig(**_default_section("paths")))

    @property
    def output_path(self) -> Path:
        """Directory generated suites are written to."""
        output = Path(self.emission.output_dir)
        if output.is_absolute():
            return output
        return self.project_path / output

    @property
    def ignore_path(self) -> Path:
        """Path to .stgeignore file."""
        return self.project_path / self.paths.ignore_file


def load_config(project_path: Path, config_path: Optional[Path] = None) -> Config:
    """Load configuration for a project.

    Args:
        project_path: Root of the analyzed project.
        config_path: Explicit config file. If None, uses stge.ini in the
            project root when it exists.

    Returns:
        Config bound to the project path.

    Raises:
        ConfigError: If validation fails or an explicit config file is missing.
    """
    if config_path is not None and not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    if config_path is None:
        candidate = project_path / CONFIG_FILE_NAME
        try:
            config_path = candidate if candidate.exists() else None
        except PermissionError:
            config_path = None

    return replace(_load_config(config_path), project_path=project_path)


@lru_cache(maxsize=1)
def load_settings() -> Config:
    """Load settings from environment variables and config file.

    Settings are cached for the lifetime of the application.
    Use load_settings.cache_clear() to reload settings.

    Returns:
        Config object populated from environment variables and config file.

    Raises:
        ValueError: If STGE_PROJECT_PATH is not set.
        ConfigError: If STGE_SEED is not an integer or the config is invalid.
    """
    project_path_str = os.getenv("STGE_PROJECT_PATH")
    if not project_path_str:
        raise ValueError("STGE_PROJECT_PATH environment variable must be set")

    config = load_config(Path(project_path_str))

    seed_override = os.getenv("STGE_SEED")
    if seed_override:
        try:
            seed = int(seed_override)
        except ValueError as e:
            raise ConfigError(f"Invalid STGE_SEED: {seed_override!r}") from e
        config = replace(config, synthesis=replace(config.synthesis, seed=seed))

    return config
