"""Call-site index tests."""

from stge.model.models import FunctionCall, ProgramModel
from stge.synthesis.call_sites import CallSiteIndex, split_arguments


def test_split_arguments_respects_nesting():
    """Commas inside calls, collections and strings do not split."""
    assert split_arguments('1, listOf(2, 3), "a,b", mapOf(1 to 2)') == [
        "1",
        "listOf(2, 3)",
        '"a,b"',
        "mapOf(1 to 2)",
    ]


def test_split_arguments_keeps_comparisons_whole():
    """Angle brackets in comparisons are not treated as nesting."""
    assert split_arguments("a < b, c > d") == ["a < b", "c > d"]


def test_split_arguments_handles_escaped_quotes():
    """An escaped quote does not end a string literal."""
    assert split_arguments('"say \\"x, y\\"", 2') == ['"say \\"x, y\\""', "2"]


def test_split_arguments_empty():
    """Blank text has no arguments."""
    assert split_arguments("  ") == []


def test_index_from_model():
    """Call sites are grouped by callee in model order."""
    model = ProgramModel(
        calls=[
            FunctionCall("sum", "/a.kt", 1, "function:main", arguments=("1", "2")),
            FunctionCall("sum", "/a.kt", 2, "function:main", arguments=("3",)),
            FunctionCall("log", "/a.kt", 3, "function:main"),
        ]
    )

    index = CallSiteIndex.from_model(model)

    assert index.examples("sum") == [("1", "2"), ("3",)]
    assert index.examples("missing") == []
    assert len(index) == 3


def test_variadic_tail_picks_first_call_with_extra_arguments():
    """The first call passing more than the fixed parameters wins."""
    index = CallSiteIndex({"format": [("\"x\"",), ("\"%d %d\"", "1", "2"), ("\"y\"", "3")]})

    assert index.variadic_tail("format", fixed_before=1) == ("1", "2")
    assert index.variadic_tail("format", fixed_before=3) is None
    assert index.variadic_tail("unknown", fixed_before=0) is None
