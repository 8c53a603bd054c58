"""Shared contracts for the pipeline graph model.

This package is a LEAF MODULE with no outbound dependencies to core.
Settings classes are NOT re-exported here - import them from
stagecraft.core.config.

Import patterns:
    from stagecraft.contracts import Stage, BranchType, ValidationResult
    from stagecraft.core.config import LayoutSettings
"""

from stagecraft.contracts.enums import (
    AgentRole,
    AgentStatus,
    BranchType,
    ConditionType,
    EdgeKind,
    IssueSeverity,
    LayoutDirection,
)
from stagecraft.contracts.errors import PipelineLoadError, StagecraftError, StageEditError
from stagecraft.contracts.graph import (
    ON_FAILURE_LABEL,
    ON_SUCCESS_LABEL,
    EdgeEndpoints,
    GraphEdge,
    GraphNode,
    LayoutEdge,
    PipelineGraph,
)
from stagecraft.contracts.pipeline import (
    ORIGIN,
    Agent,
    CanvasState,
    ConditionBranches,
    PipelineConfiguration,
    Position,
    Stage,
    StageCondition,
)
from stagecraft.contracts.results import BoundingBox, ValidationIssue, ValidationResult
from stagecraft.contracts.types import AgentID, StageID

__all__ = [
    "ON_FAILURE_LABEL",
    "ON_SUCCESS_LABEL",
    "ORIGIN",
    "Agent",
    "AgentID",
    "AgentRole",
    "AgentStatus",
    "BoundingBox",
    "BranchType",
    "CanvasState",
    "ConditionBranches",
    "ConditionType",
    "EdgeEndpoints",
    "EdgeKind",
    "GraphEdge",
    "GraphNode",
    "IssueSeverity",
    "LayoutDirection",
    "LayoutEdge",
    "PipelineConfiguration",
    "PipelineGraph",
    "PipelineLoadError",
    "Position",
    "Stage",
    "StageCondition",
    "StageEditError",
    "StageID",
    "StagecraftError",
    "ValidationIssue",
    "ValidationResult",
]
