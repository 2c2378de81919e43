"""Suite grouping, Kotlin rendering and writing."""

from stge.emission.kotlin_renderer import KotlinTestRenderer, RenderedSuite, render_assertion
from stge.emission.suites import TestSuite, build_suites, resolve_namespace, suite_class_name
from stge.emission.writer import EmissionError, SuiteWriter

__all__ = [
    "EmissionError",
    "KotlinTestRenderer",
    "RenderedSuite",
    "SuiteWriter",
    "TestSuite",
    "build_suites",
    "render_assertion",
    "resolve_namespace",
    "suite_class_name",
]
