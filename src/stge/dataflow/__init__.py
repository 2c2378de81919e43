"""Data-flow analysis: definitions, uses, def-use pairs, anomalies, call graph."""

from stge.dataflow.analyzer import DataFlowAnalyzer, is_likely_variable_reference
from stge.dataflow.call_graph import CallGraph, build_call_graph
from stge.dataflow.models import (
    AnomalyKind,
    DataFlowAnomaly,
    DataFlowResult,
    DefUsePair,
    Definition,
    DefinitionKind,
    Use,
    UseKind,
)

__all__ = [
    "AnomalyKind",
    "CallGraph",
    "DataFlowAnalyzer",
    "DataFlowAnomaly",
    "DataFlowResult",
    "DefUsePair",
    "Definition",
    "DefinitionKind",
    "Use",
    "UseKind",
    "build_call_graph",
    "is_likely_variable_reference",
]
