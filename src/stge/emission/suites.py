"""Grouping of test cases into per-target suites."""

import logging
from dataclasses import dataclass, field, replace
from typing import Sequence

from stge.constants import DEFAULT_PACKAGE, MOCK_SYMBOL
from stge.synthesis.models import SharedSetup, TestCase

logger = logging.getLogger(__name__)


@dataclass
class TestSuite:
    """One generated test class."""

    __test__ = False

    package: str
    class_name: str
    test_cases: list[TestCase] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    setup: SharedSetup | None = None


def suite_class_name(test_case: TestCase) -> str:
    """`<Class>Test` for methods, `<Function>Test` for top-level functions."""
    if test_case.setup is not None:
        return f"{test_case.setup.class_name.replace('.', '')}Test"
    name = test_case.target_function
    return f"{name[:1].upper()}{name[1:]}Test"


def _namespace_of(symbol: str) -> str:
    return symbol.rsplit(".", 1)[0] if "." in symbol else ""


def resolve_namespace(test_case: TestCase, default_package: str = DEFAULT_PACKAGE) -> str:
    """Package a suite for this test case lives in.

    The target's own package wins, then the namespace of any required
    symbol other than framework helpers, then the configured default.
    """
    if test_case.package:
        return test_case.package
    for symbol in test_case.required_symbols:
        if symbol != MOCK_SYMBOL and "." in symbol:
            return _namespace_of(symbol)
    return default_package


def build_suites(
    test_cases: Sequence[TestCase], default_package: str = DEFAULT_PACKAGE
) -> list[TestSuite]:
    """Group test cases into suites in first-appearance order.

    Args:
        test_cases: Cases in generation order.
        default_package: Package for cases with no namespace of their own.

    Returns:
        Suites with self-namespace imports dropped and test names unique
        within each suite.
    """
    suites: dict[tuple[str, str], TestSuite] = {}
    used_names: dict[tuple[str, str], set[str]] = {}
    symbols: dict[tuple[str, str], set[str]] = {}

    for test_case in test_cases:
        package = resolve_namespace(test_case, default_package)
        key = (package, suite_class_name(test_case))
        if key not in suites:
            suites[key] = TestSuite(package=package, class_name=key[1], setup=test_case.setup)
            used_names[key] = set()
            symbols[key] = set()

        suite = suites[key]
        if suite.setup is None and test_case.setup is not None:
            suite.setup = test_case.setup

        name = test_case.name
        counter = 2
        while name in used_names[key]:
            name = f"{test_case.name}{counter}"
            counter += 1
        used_names[key].add(name)
        if name != test_case.name:
            logger.debug(f"Renamed duplicate test {test_case.name} to {name} in {key[1]}")
            test_case = replace(test_case, name=name)
        suite.test_cases.append(test_case)

        symbols[key].update(
            symbol for symbol in test_case.required_symbols if _namespace_of(symbol) != package
        )

    for key, suite in suites.items():
        suite.imports = sorted(symbols[key])

    logger.info(f"Grouped {len(test_cases)} test cases into {len(suites)} suites")
    return list(suites.values())
