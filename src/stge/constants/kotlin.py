"""Kotlin language facts used by the heuristic analysis.

The analysis matches types textually, so these tables are the whole of its
type knowledge.
"""

# =============================================================================
# Keywords
# =============================================================================
# Identifiers scanned out of condition text are dropped when they are hard
# keywords; they can never name a variable.

KOTLIN_KEYWORDS = frozenset(
    {
        "as",
        "break",
        "class",
        "continue",
        "do",
        "else",
        "false",
        "for",
        "fun",
        "if",
        "in",
        "interface",
        "is",
        "null",
        "object",
        "package",
        "return",
        "super",
        "this",
        "throw",
        "true",
        "try",
        "typealias",
        "val",
        "var",
        "when",
        "while",
    }
)

# =============================================================================
# Type Families
# =============================================================================
# Return and parameter types are bucketed by name. Generic arguments and
# nullability markers are stripped before lookup.

INTEGER_TYPES = frozenset({"Int", "Short", "Byte"})
LONG_TYPES = frozenset({"Long"})
FLOATING_TYPES = frozenset({"Double", "Float"})
NUMERIC_TYPES = INTEGER_TYPES | LONG_TYPES | FLOATING_TYPES
TEXTUAL_TYPES = frozenset({"String", "CharSequence"})
BOOLEAN_TYPES = frozenset({"Boolean"})
VOID_TYPES = frozenset({"Unit", "Nothing"})

# Inclusive value ranges of the integral types. Comparison-driven values past
# either end are written as the type's MIN_VALUE or MAX_VALUE constant.
INTEGRAL_BOUNDS = {
    "Byte": (-(2**7), 2**7 - 1),
    "Short": (-(2**15), 2**15 - 1),
    "Int": (-(2**31), 2**31 - 1),
    "Long": (-(2**63), 2**63 - 1),
}

COLLECTION_FACTORIES = {
    "List": "listOf",
    "MutableList": "mutableListOf",
    "Set": "setOf",
    "MutableSet": "mutableSetOf",
    "Map": "mapOf",
    "MutableMap": "mutableMapOf",
}

ARRAY_FACTORIES = {
    "IntArray": "intArrayOf",
    "LongArray": "longArrayOf",
    "DoubleArray": "doubleArrayOf",
    "FloatArray": "floatArrayOf",
    "BooleanArray": "booleanArrayOf",
    "CharArray": "charArrayOf",
}
