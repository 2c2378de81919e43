"""Configuration constants.

Re-exports all constants for convenient importing:
    from stge.constants import KOTLIN_KEYWORDS, COVERAGE_ATTEMPT_BUDGET
"""

from stge.constants.kotlin import *  # noqa: F403
from stge.constants.synthesis import *  # noqa: F403
from stge.constants.files import *  # noqa: F403
