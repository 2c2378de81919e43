"""Test synthesis tuning.

Defaults for the combination search, value synthesis and oracle tables.
Most of these can be overridden through the [synthesis] config section.
"""

# =============================================================================
# Reproducibility
# =============================================================================
# Every random choice flows through one seeded generator so that running the
# tool twice over the same sources yields identical suites.

DEFAULT_SEED = 42

# =============================================================================
# Combination Search
# =============================================================================
# The exhaustive policy enumerates 2^n assignments. Past MAX_EXHAUSTIVE_ATOMS
# atoms the targeted policy takes over, which tries at most
# COVERAGE_ATTEMPT_BUDGET assignments to reach both outcomes.

COMBINATION_POLICIES = ("exhaustive", "targeted")
DEFAULT_COMBINATION_POLICY = "exhaustive"
COVERAGE_ATTEMPT_BUDGET = 100
MAX_EXHAUSTIVE_ATOMS = 8

# Probability that a targeted attempt sets an atom toward the missing outcome.
TARGETED_BIAS = 0.75

# =============================================================================
# Else-Branch Values
# =============================================================================
# A `when` without a catch-all gets an extra test whose subject value differs
# from every entry literal. Integers are drawn from [ELSE_INT_MIN, ELSE_INT_MAX)
# and strings are ELSE_STRING_PREFIX plus a number below ELSE_STRING_RANGE.

ELSE_INT_MIN = -100
ELSE_INT_MAX = 100
ELSE_STRING_PREFIX = "else_case_"
ELSE_STRING_RANGE = 100
ELSE_RETRY_LIMIT = 1000

# =============================================================================
# Oracles
# =============================================================================
# Heuristic bounds used by the assertion table. "Small" results are below
# LARGE_RESULT_THRESHOLD; "positive" results exceed POSITIVE_RESULT_THRESHOLD.

ORACLE_MODES = ("heuristic", "exact")
DEFAULT_ORACLE_MODE = "heuristic"
POSITIVE_RESULT_THRESHOLD = 0
LARGE_RESULT_THRESHOLD = 100

ARITHMETIC_OPERATION_NAMES = frozenset(
    {"add", "sum", "subtract", "multiply", "divide", "max", "min", "average"}
)

# =============================================================================
# Value Pools
# =============================================================================
# Basic tests sample parameter values from boundary pools. Random pool members
# are drawn from [-RANDOM_INT_BOUND, RANDOM_INT_BOUND].

RANDOM_INT_BOUND = 1000
LONG_STRING_LENGTH = 1000
MAX_VARIADIC_VALUES = 3
MAX_VALUE_DEPTH = 2

# =============================================================================
# Emission
# =============================================================================

DEFAULT_PACKAGE = "generated"
DEFAULT_OUTPUT_DIR = "src/test/kotlin"
MOCK_SYMBOL = "org.mockito.Mockito.mock"
