"""Program Model: declarations, variables, branches and line contexts."""

from stge.model.builder import BuildResult, ProgramModelBuilder
from stge.model.models import (
    GLOBAL_SCOPE,
    BranchKind,
    ClassDecl,
    ConditionalBranch,
    FunctionCall,
    FunctionDecl,
    LineContext,
    Loop,
    LoopKind,
    ModelStatistics,
    Parameter,
    ProgramModel,
    Property,
    Reference,
    SourceFile,
    Variable,
    scope_encloses,
)

__all__ = [
    "GLOBAL_SCOPE",
    "BranchKind",
    "BuildResult",
    "ClassDecl",
    "ConditionalBranch",
    "FunctionCall",
    "FunctionDecl",
    "LineContext",
    "Loop",
    "LoopKind",
    "ModelStatistics",
    "Parameter",
    "ProgramModel",
    "ProgramModelBuilder",
    "Property",
    "Reference",
    "SourceFile",
    "Variable",
    "scope_encloses",
]
