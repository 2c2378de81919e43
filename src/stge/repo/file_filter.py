"""Kotlin source discovery with default excludes and .stgeignore support."""

import fnmatch
from pathlib import Path
from typing import Optional

from stge.constants import (
    BINARY_CHECK_BYTES,
    MAX_FILE_SIZE_KB,
    SOURCE_EXTENSIONS,
    TEST_DIRECTORY_NAMES,
)

DEFAULT_EXCLUDES = [
    # Hidden files and directories (dotfiles/dotdirs)
    # This catches .git, .gradle, .idea, .kotlin, etc.
    ".*",
    # Build outputs
    "build",
    "bin",
    "out",
    "target",
    "node_modules",
    # Generated suites must never be analyzed again
    *TEST_DIRECTORY_NAMES,
    # Gradle scripts are Kotlin but not application code
    "*.gradle.kts",
]


class FileFilter:
    """Filter source files based on patterns, extensions and size limits."""

    def __init__(
        self,
        project_path: Path,
        max_file_size_kb: Optional[int] = None,
        extra_excludes: list[str] | None = None,
        ignore_path: Optional[Path] = None,
        extensions: list[str] | None = None,
    ):
        """Initialize file filter.

        Args:
            project_path: Path to the analyzed project root.
            max_file_size_kb: Maximum file size in KB. If None, uses the default (500).
            extra_excludes: Additional exclude patterns.
            ignore_path: Path to ignore file. If None, uses project_path/.stgeignore.
            extensions: Source extensions to keep. If None, only Kotlin sources.
        """
        self.project_path = project_path
        self.max_file_size_bytes = (max_file_size_kb or MAX_FILE_SIZE_KB) * 1024
        self.extensions = extensions or list(SOURCE_EXTENSIONS)

        self.exclude_patterns = list(DEFAULT_EXCLUDES)
        if extra_excludes:
            self.exclude_patterns.extend(extra_excludes)

        if ignore_path is None:
            ignore_path = project_path / ".stgeignore"

        if ignore_path.exists():
            for line in ignore_path.read_text().splitlines():
                line = line.strip()
                if line and not line.startswith("#"):
                    self.exclude_patterns.append(line)

    def _is_excluded(self, path: str) -> bool:
        """Check if path matches any exclude pattern.

        Args:
            path: Relative file path with forward slashes.

        Returns:
            True if path should be excluded.
        """
        parts = path.split("/")

        for pattern in self.exclude_patterns:
            # Trailing slash: match any directory component
            if pattern.endswith("/"):
                dir_pattern = pattern.rstrip("/")
                if any(fnmatch.fnmatch(part, dir_pattern) for part in parts[:-1]):
                    return True
            # Path patterns match as prefixes or globs over the full path
            elif "/" in pattern:
                if path.startswith(pattern + "/") or path == pattern:
                    return True
                if fnmatch.fnmatch(path, pattern) or fnmatch.fnmatch(path, pattern + "/*"):
                    return True
            else:
                if any(fnmatch.fnmatch(part, pattern) for part in parts):
                    return True

        return False

    def _is_binary(self, file_path: Path) -> bool:
        """Check if file appears to be binary.

        Args:
            file_path: Path to file.

        Returns:
            True if file appears to be binary or cannot be read.
        """
        try:
            with open(file_path, "rb") as f:
                return b"\x00" in f.read(BINARY_CHECK_BYTES)
        except OSError:
            return True

    def get_files(self) -> list[str]:
        """Get list of source files to analyze.

        Returns:
            Sorted list of relative file paths.
        """
        files = []

        for file_path in self.project_path.rglob("*"):
            if not file_path.is_file() or file_path.suffix not in self.extensions:
                continue

            relative = file_path.relative_to(self.project_path).as_posix()

            if self._is_excluded(relative):
                continue

            try:
                if file_path.stat().st_size > self.max_file_size_bytes:
                    continue
            except OSError:
                continue

            if self._is_binary(file_path):
                continue

            files.append(relative)

        return sorted(files)
