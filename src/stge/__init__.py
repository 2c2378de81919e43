"""Static test generation engine for Kotlin code bases."""

__version__ = "0.1.0"
