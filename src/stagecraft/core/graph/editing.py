# src/stagecraft/core/graph/editing.py
"""Editor operations over a stage list.

Each operation returns a new list and leaves its input untouched. Misuse
(unknown stage ids, duplicate ids) raises StageEditError; structural
defects an operation may leave behind, such as a cycle created by a new
connection, are left for the validator to report.

Deleting a stage is the only operation that purges references: the
converter and validator never repair dangling ids.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any

import structlog

from stagecraft.contracts import (
    BranchType,
    ConditionBranches,
    ConditionType,
    Position,
    Stage,
    StageCondition,
    StageEditError,
    StageID,
)

logger = structlog.get_logger(__name__)

NEW_STAGE_NAME = "New Stage"
NEW_STAGE_COLOR = "#388bfd"
NEW_STAGE_X = 400.0
NEW_STAGE_ROW_HEIGHT = 150.0


def _index_of(stages: Sequence[Stage], stage_id: str) -> int:
    for index, stage in enumerate(stages):
        if stage.id == stage_id:
            return index
    raise StageEditError(f"Stage not found: {stage_id}")


def _replace_at(stages: Sequence[Stage], index: int, stage: Stage) -> list[Stage]:
    updated = list(stages)
    updated[index] = stage
    return updated


def _without(ids: tuple[StageID, ...], target: str) -> tuple[StageID, ...]:
    return tuple(stage_id for stage_id in ids if stage_id != target)


def _drop_target(stage: Stage, target: str) -> Stage:
    """Remove ``target`` from a stage's connections and branch lists."""
    update: dict[str, Any] = {"next_stage_ids": _without(stage.next_stage_ids, target)}
    if stage.condition is not None:
        branches = stage.condition.branches
        update["condition"] = stage.condition.model_copy(
            update={
                "branches": ConditionBranches(
                    on_success=_without(branches.on_success, target),
                    on_failure=_without(branches.on_failure, target),
                )
            }
        )
    return stage.model_copy(update=update)


def create_stage(
    stages: Sequence[Stage],
    *,
    stage_id: str | None = None,
    name: str = NEW_STAGE_NAME,
    position: Position | None = None,
) -> list[Stage]:
    """Append a new, unconnected sequential stage.

    The stage is placed below the existing ones unless ``position`` is given.

    Raises:
        StageEditError: If ``stage_id`` is already used
    """
    new_id = StageID(stage_id or f"stage-{uuid.uuid4().hex[:12]}")
    if any(stage.id == new_id for stage in stages):
        raise StageEditError(f"Stage ID already exists: {new_id}")

    stage = Stage(
        id=new_id,
        name=name,
        description="",
        assigned_agent_ids=(),
        order=len(stages),
        next_stage_ids=(),
        position=position or Position(x=NEW_STAGE_X, y=NEW_STAGE_ROW_HEIGHT * len(stages)),
        branch_type=BranchType.SEQUENTIAL,
        color=NEW_STAGE_COLOR,
        required_for_completion=True,
    )
    logger.debug("stage_created", stage_id=new_id)
    return [*stages, stage]


def delete_stage(stages: Sequence[Stage], stage_id: str) -> list[Stage]:
    """Remove a stage and every reference to it.

    Raises:
        StageEditError: If the stage does not exist
    """
    _index_of(stages, stage_id)
    remaining = [_drop_target(stage, stage_id) for stage in stages if stage.id != stage_id]
    logger.debug("stage_deleted", stage_id=stage_id)
    return remaining


def connect_stages(stages: Sequence[Stage], source_id: str, target_id: str) -> list[Stage]:
    """Add a connection ``source -> target`` unless it already exists.

    Connecting a conditional stage does not touch its branches; the
    validator warns until the new target is assigned to an outcome.

    Raises:
        StageEditError: If either stage does not exist, or source equals target
    """
    if source_id == target_id:
        raise StageEditError(f"Cannot connect stage to itself: {source_id}")
    source_index = _index_of(stages, source_id)
    _index_of(stages, target_id)

    source = stages[source_index]
    if target_id in source.next_stage_ids:
        return list(stages)

    updated = source.model_copy(update={"next_stage_ids": (*source.next_stage_ids, StageID(target_id))})
    logger.debug("stages_connected", source=source_id, target=target_id)
    return _replace_at(stages, source_index, updated)


def disconnect_stages(stages: Sequence[Stage], source_id: str, target_id: str) -> list[Stage]:
    """Remove the connection ``source -> target`` and the target from the source's branches.

    Raises:
        StageEditError: If the source stage does not exist
    """
    source_index = _index_of(stages, source_id)
    logger.debug("stages_disconnected", source=source_id, target=target_id)
    return _replace_at(stages, source_index, _drop_target(stages[source_index], target_id))


def update_stage(stages: Sequence[Stage], stage_id: str, **changes: Any) -> list[Stage]:
    """Replace fields of one stage (rename, recolour, reassign agents, ...).

    Field names and the editor's camelCase keys are both accepted. Changes
    are re-validated as a whole Stage, so type errors surface as pydantic
    ValidationError. The id itself cannot change.

    Raises:
        StageEditError: If the stage does not exist or ``changes`` includes ``id``
    """
    if "id" in changes:
        raise StageEditError("Stage ID cannot be changed; delete and recreate the stage instead")
    index = _index_of(stages, stage_id)
    merged = stages[index].model_dump(by_alias=True)
    for key, value in changes.items():
        field = Stage.model_fields.get(key)
        merged[field.alias or key if field else key] = value
    return _replace_at(stages, index, Stage.model_validate(merged))


def set_branch_type(
    stages: Sequence[Stage],
    stage_id: str,
    branch_type: BranchType | str,
    *,
    condition_type: ConditionType = ConditionType.TEST_PASSED,
) -> list[Stage]:
    """Change how a stage hands off to its successors.

    Switching to conditional seeds a condition whose success branch holds
    every current connection, which keeps the stage consistent. Switching
    away drops the condition.

    Raises:
        StageEditError: If the stage does not exist
    """
    branch_type = BranchType(branch_type)
    index = _index_of(stages, stage_id)
    stage = stages[index]

    if branch_type == stage.branch_type:
        return list(stages)

    condition: StageCondition | None = None
    if branch_type == BranchType.CONDITIONAL:
        condition = StageCondition(
            type=condition_type,
            branches=ConditionBranches(on_success=stage.next_stage_ids, on_failure=()),
        )

    updated = stage.model_copy(update={"branch_type": branch_type, "condition": condition})
    return _replace_at(stages, index, updated)
