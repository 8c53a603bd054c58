"""Pipeline configuration records.

These are the durable shapes the editor reads and writes. Field names are
snake_case in Python; the camelCase names the editor uses are accepted on
input and produced by ``model_dump(by_alias=True)``.

Construction checks types only. A stage that points at a stage that does
not exist, or a conditional stage without a condition, is still a valid
*record*: structural defects are the validator's concern.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from stagecraft.contracts.enums import AgentRole, AgentStatus, BranchType, ConditionType
from stagecraft.contracts.types import AgentID, StageID


class Position(BaseModel):
    """Canvas coordinates of a stage's top-left corner."""

    model_config = {"frozen": True, "extra": "forbid"}

    x: float = 0.0
    y: float = 0.0


ORIGIN = Position(x=0.0, y=0.0)


class ConditionBranches(BaseModel):
    """Targets of a conditional stage, split by outcome."""

    model_config = {"frozen": True, "extra": "forbid", "populate_by_name": True}

    on_success: tuple[StageID, ...] = Field(default=(), alias="onSuccess")
    on_failure: tuple[StageID, ...] = Field(default=(), alias="onFailure")

    @property
    def all_targets(self) -> tuple[StageID, ...]:
        """Success targets followed by failure targets (duplicates kept)."""
        return self.on_success + self.on_failure


class StageCondition(BaseModel):
    """Branching rule of a conditional stage."""

    model_config = {"frozen": True, "extra": "forbid", "populate_by_name": True}

    type: ConditionType = ConditionType.TEST_PASSED
    branches: ConditionBranches = Field(default_factory=ConditionBranches)


class Stage(BaseModel):
    """One step of a pipeline.

    ``next_stage_ids`` is the single source of truth for graph edges. For
    conditional stages ``condition.branches`` repeats the same targets with
    outcome labels; the validator cross-checks the two.

    ``order`` exists only for consumers that predate the graph model and
    carries no meaning for the graph itself.
    """

    model_config = {"frozen": True, "extra": "forbid", "populate_by_name": True}

    id: StageID
    name: str
    description: str | None = None
    assigned_agent_ids: tuple[AgentID, ...] = Field(default=(), alias="assignedAgentIds")
    order: int = 0
    next_stage_ids: tuple[StageID, ...] = Field(default=(), alias="nextStageIds")
    position: Position | None = None
    branch_type: BranchType = Field(default=BranchType.SEQUENTIAL, alias="branchType")
    condition: StageCondition | None = None
    color: str | None = None
    required_for_completion: bool = Field(default=True, alias="requiredForCompletion")
    estimated_duration: str | None = Field(default=None, alias="estimatedDuration")

    @property
    def is_conditional(self) -> bool:
        return self.branch_type == BranchType.CONDITIONAL


class Agent(BaseModel):
    """Agent record from the external registry.

    Only ``id`` is used for matching; the rest is carried through to graph
    nodes for display. Unknown registry keys are ignored.
    """

    model_config = {"frozen": True, "extra": "ignore", "populate_by_name": True}

    id: AgentID
    name: str
    role: AgentRole = AgentRole.IMPLEMENTER
    status: AgentStatus = AgentStatus.IDLE
    current_task: str | None = Field(default=None, alias="currentTask")
    emoji: str = ""
    color: str = ""
    team_id: str | None = Field(default=None, alias="teamId")


class CanvasState(BaseModel):
    """Viewport of the visual editor."""

    model_config = {"frozen": True, "extra": "forbid", "populate_by_name": True}

    zoom: float = 1.0
    center_x: float = Field(default=0.0, alias="centerX")
    center_y: float = Field(default=0.0, alias="centerY")


class PipelineConfiguration(BaseModel):
    """A team's pipeline: its stages plus cached graph metadata.

    ``entry_stage_ids``, ``is_valid`` and ``validation_errors`` are caches
    refreshed by ``sync_pipeline``; they are never authoritative.
    """

    model_config = {"frozen": True, "extra": "forbid", "populate_by_name": True}

    id: str
    name: str
    description: str | None = None
    stages: tuple[Stage, ...] = ()
    entry_stage_ids: tuple[StageID, ...] | None = Field(default=None, alias="entryStageIds")
    canvas_state: CanvasState | None = Field(default=None, alias="canvasState")
    is_valid: bool | None = Field(default=None, alias="isValid")
    validation_errors: tuple[str, ...] | None = Field(default=None, alias="validationErrors")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
