"""Branch-coverage test synthesis."""

from stge.synthesis.assertions import (
    Assertion,
    AssertionKind,
    AssertionSynthesizer,
    simulate,
)
from stge.synthesis.call_sites import CallSiteIndex, split_arguments
from stge.synthesis.combinations import (
    Combination,
    CombinationGenerator,
    CombinationPlan,
    EntryValue,
    WhenPlan,
    exhaustive_assignments,
    targeted_assignments,
)
from stge.synthesis.conditions import (
    AtomShape,
    Condition,
    Operator,
    ShapeKind,
    atom_shape,
    decompose,
    evaluate,
    to_method_name,
)
from stge.synthesis.generator import TestSynthesizer
from stge.synthesis.models import (
    Invocation,
    ParameterBinding,
    SharedSetup,
    SynthesisResult,
    TestCase,
    TestKind,
)
from stge.synthesis.values import ValueSynthesizer

__all__ = [
    "Assertion",
    "AssertionKind",
    "AssertionSynthesizer",
    "AtomShape",
    "CallSiteIndex",
    "Combination",
    "CombinationGenerator",
    "CombinationPlan",
    "Condition",
    "EntryValue",
    "Invocation",
    "Operator",
    "ParameterBinding",
    "ShapeKind",
    "SharedSetup",
    "SynthesisResult",
    "TestCase",
    "TestKind",
    "TestSynthesizer",
    "ValueSynthesizer",
    "WhenPlan",
    "atom_shape",
    "decompose",
    "evaluate",
    "exhaustive_assignments",
    "simulate",
    "split_arguments",
    "targeted_assignments",
    "to_method_name",
]
