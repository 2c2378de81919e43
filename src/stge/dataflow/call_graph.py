"""Build a NetworkX call graph from recorded call sites."""

import networkx as nx

from stge.model.models import ProgramModel


class CallGraph:
    """Caller to callee edges keyed by qualified caller name.

    Callers are `Class.method` (class qualified) or bare function names;
    callees are the textual names seen at the call site, unresolved.
    """

    def __init__(self, graph: nx.DiGraph | None = None):
        self.graph = graph if graph is not None else nx.DiGraph()

    def add_call(self, caller: str, callee: str, line: int | None = None) -> None:
        if self.graph.has_edge(caller, callee):
            self.graph[caller][callee]["count"] += 1
        else:
            self.graph.add_edge(caller, callee, count=1, line=line)
        self.graph.nodes[caller]["is_caller"] = True

    def callees(self, caller: str) -> set[str]:
        if not self.graph.has_node(caller):
            return set()
        return set(self.graph.successors(caller))

    def callers(self, callee: str) -> set[str]:
        if not self.graph.has_node(callee):
            return set()
        return set(self.graph.predecessors(callee))

    def as_mapping(self) -> dict[str, set[str]]:
        """Caller name to the set of callee names it invokes."""
        return {
            node: set(self.graph.successors(node))
            for node, attrs in self.graph.nodes(data=True)
            if attrs.get("is_caller")
        }

    def entry_points(self) -> list[str]:
        """Callers that nothing in the code base calls by name."""
        names_called = {target.rsplit(".", 1)[-1] for _, target in self.graph.edges()}
        return sorted(
            node
            for node, attrs in self.graph.nodes(data=True)
            if attrs.get("is_caller") and node.rsplit(".", 1)[-1] not in names_called
        )

    def __contains__(self, caller: str) -> bool:
        return bool(self.graph.has_node(caller) and self.graph.nodes[caller].get("is_caller"))

    def __len__(self) -> int:
        return sum(1 for _, attrs in self.graph.nodes(data=True) if attrs.get("is_caller"))


def build_call_graph(model: ProgramModel) -> CallGraph:
    """Build the call graph for every call with a known caller.

    Args:
        model: Program Model with recorded calls.

    Returns:
        CallGraph whose repeated caller edges are merged.
    """
    call_graph = CallGraph()
    for call in model.calls:
        if not call.caller or not call.name:
            continue
        caller = call.caller_qualified_name or call.caller
        call_graph.add_call(caller, call.name, call.line)
    return call_graph
