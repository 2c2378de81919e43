"""Call graph tests."""

from stge.dataflow import CallGraph, build_call_graph
from stge.model.models import FunctionCall, ProgramModel

FILE = "/src/Shop.kt"


def call(name, caller, qualified=None, line=1):
    return FunctionCall(
        name=name,
        file=FILE,
        line=line,
        scope_id=f"function:{caller}",
        caller=caller,
        caller_qualified_name=qualified,
    )


def test_edges_use_qualified_caller():
    """Methods are keyed by their class-qualified name."""
    model = ProgramModel(calls=[call("save", "checkout", "com.demo.Shop.checkout")])

    graph = build_call_graph(model)

    assert graph.as_mapping() == {"com.demo.Shop.checkout": {"save"}}
    assert "com.demo.Shop.checkout" in graph


def test_calls_without_caller_are_ignored():
    """Top-level initializer calls have no caller and add no edge."""
    model = ProgramModel(
        calls=[
            FunctionCall(name="listOf", file=FILE, line=1, scope_id="global"),
            call("sum", "main", "main"),
        ]
    )

    graph = build_call_graph(model)

    assert len(graph) == 1
    assert graph.callers("listOf") == set()


def test_repeated_calls_merge_into_one_edge():
    """Calling the same callee twice keeps one edge with a count."""
    model = ProgramModel(calls=[call("sum", "main", "main", 2), call("sum", "main", "main", 5)])

    graph = build_call_graph(model)

    assert graph.callees("main") == {"sum"}
    assert graph.graph["main"]["sum"]["count"] == 2


def test_entry_points_are_uncalled_callers():
    """Callers nobody calls by name are entry points."""
    model = ProgramModel(
        calls=[call("run", "main", "main"), call("sum", "run", "com.demo.App.run")]
    )

    assert build_call_graph(model).entry_points() == ["main"]


def test_empty_graph():
    """An empty graph answers queries with empty results."""
    graph = CallGraph()

    assert graph.callees("main") == set()
    assert graph.as_mapping() == {}
    assert "main" not in graph
