"""Test infrastructure for stagecraft pipelines.

Factories for constructing production types with sensible defaults.
When a record's constructor changes, update the factory here; tests that
use factories need no changes.

Usage:
    from stagecraft.testing import make_stage, make_agent, make_pipeline
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import Any

from stagecraft.contracts import (
    Agent,
    BranchType,
    ConditionBranches,
    ConditionType,
    PipelineConfiguration,
    Stage,
    StageCondition,
    StageID,
)


def make_stage(
    stage_id: str,
    *next_ids: str,
    name: str | None = None,
    agents: Iterable[str] = ("agent-1",),
    **fields: Any,
) -> Stage:
    """Stage with one assigned agent, named after its id unless ``name`` is given."""
    return Stage(
        id=StageID(stage_id),
        name=name if name is not None else stage_id.upper(),
        assigned_agent_ids=tuple(agents),
        next_stage_ids=tuple(StageID(target) for target in next_ids),
        **fields,
    )


def make_conditional_stage(
    stage_id: str,
    *,
    on_success: Sequence[str] = (),
    on_failure: Sequence[str] = (),
    next_ids: Sequence[str] | None = None,
    condition_type: ConditionType = ConditionType.TEST_PASSED,
    **fields: Any,
) -> Stage:
    """Conditional stage; connections default to success targets then failure targets."""
    connections = tuple(next_ids) if next_ids is not None else (*on_success, *on_failure)
    return make_stage(
        stage_id,
        *connections,
        branch_type=BranchType.CONDITIONAL,
        condition=StageCondition(
            type=condition_type,
            branches=ConditionBranches(on_success=tuple(on_success), on_failure=tuple(on_failure)),
        ),
        **fields,
    )


def make_linear_stages(*stage_ids: str) -> list[Stage]:
    """Chain ``a -> b -> c ...``."""
    return [
        make_stage(stage_id, *stage_ids[index + 1 : index + 2])
        for index, stage_id in enumerate(stage_ids)
    ]


def make_agent(agent_id: str, name: str | None = None, **fields: Any) -> Agent:
    return Agent(id=agent_id, name=name or agent_id, **fields)


def make_pipeline(
    stages: Sequence[Stage] = (),
    *,
    pipeline_id: str = "pipeline-1",
    name: str = "Test Pipeline",
    created_at: datetime | None = None,
    **fields: Any,
) -> PipelineConfiguration:
    return PipelineConfiguration(
        id=pipeline_id,
        name=name,
        stages=tuple(stages),
        created_at=created_at or datetime(2024, 1, 1, tzinfo=UTC),
        **fields,
    )


__all__ = [
    "make_agent",
    "make_conditional_stage",
    "make_linear_stages",
    "make_pipeline",
    "make_stage",
]
