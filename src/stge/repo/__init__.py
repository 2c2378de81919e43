"""Source discovery inside the analyzed project."""

from stge.repo.file_filter import DEFAULT_EXCLUDES, FileFilter

__all__ = ["DEFAULT_EXCLUDES", "FileFilter"]
