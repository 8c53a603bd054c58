# src/stagecraft/core/graph/validation.py
"""Structural validation of a pipeline's stage list.

Validates:
1. The pipeline has at least one stage (the only short-circuit)
2. No cycles
3. At least one entry point (warns above the configured maximum)
4. At least one exit point
5. Every stage is reachable from an entry point (isolated stages in a
   multi-stage pipeline count as orphans)
6. Every stage has agents assigned (warning)
7. Conditional stages agree with their connections
8. Every connection targets an existing stage

All checks after the first always run and accumulate into one result, so
an operator sees every problem at once. Nothing here raises for
well-typed input and the input is never mutated.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator, Mapping, Sequence

import structlog

from stagecraft.contracts import IssueSeverity, Stage, StageID, ValidationIssue, ValidationResult
from stagecraft.core.config import ValidationSettings

logger = structlog.get_logger(__name__)

_DEFAULT_VALIDATION = ValidationSettings()


def _error(code: str, message: str, stage_ids: Iterable[StageID] = ()) -> ValidationIssue:
    return ValidationIssue(code=code, severity=IssueSeverity.ERROR, message=message, stage_ids=tuple(stage_ids))


def _warning(code: str, message: str, stage_ids: Iterable[StageID] = ()) -> ValidationIssue:
    return ValidationIssue(code=code, severity=IssueSeverity.WARNING, message=message, stage_ids=tuple(stage_ids))


def build_adjacency(stages: Sequence[Stage]) -> dict[StageID, tuple[StageID, ...]]:
    """Map each stage id to its connections, in stage order."""
    return {stage.id: stage.next_stage_ids for stage in stages}


def find_cycle(adjacency: Mapping[StageID, Sequence[StageID]]) -> list[StageID] | None:
    """Return the first cycle found by depth-first search, or None.

    The cycle is returned as a closed path (first id repeated at the end).
    Iterates every stage as a potential root so disconnected components are
    covered. Uses an explicit stack, so depth is bounded by memory rather
    than the interpreter's recursion limit. Targets missing from
    ``adjacency`` are treated as leaves.
    """
    visited: set[StageID] = set()

    for root in adjacency:
        if root in visited:
            continue

        visited.add(root)
        path: list[StageID] = [root]
        on_path: set[StageID] = {root}
        stack: list[Iterator[StageID]] = [iter(adjacency[root])]

        while stack:
            for neighbor in stack[-1]:
                if neighbor in on_path:
                    return [*path[path.index(neighbor) :], neighbor]
                if neighbor not in visited:
                    visited.add(neighbor)
                    path.append(neighbor)
                    on_path.add(neighbor)
                    stack.append(iter(adjacency.get(neighbor, ())))
                    break
            else:
                stack.pop()
                on_path.discard(path.pop())

    return None


def find_reachable(adjacency: Mapping[StageID, Sequence[StageID]], start_ids: Iterable[StageID]) -> set[StageID]:
    """All ids reachable from ``start_ids`` (inclusive) by breadth-first search."""
    reachable: set[StageID] = set()
    queue: deque[StageID] = deque(start_ids)

    while queue:
        node = queue.popleft()
        if node in reachable:
            continue
        reachable.add(node)
        queue.extend(adjacency.get(node, ()))

    return reachable


def _check_conditional(stage: Stage) -> list[ValidationIssue]:
    """Cross-check a conditional stage's branches against its connections."""
    if stage.condition is None:
        return [
            _error(
                "missing_condition",
                f'Stage "{stage.name}" is marked as conditional but has no condition defined',
                [stage.id],
            )
        ]

    issues: list[ValidationIssue] = []
    branches = stage.condition.branches
    next_ids = stage.next_stage_ids
    all_branches = branches.all_targets

    missing_in_next = [target for target in all_branches if target not in next_ids]
    extra_in_next = [target for target in next_ids if target not in all_branches]

    if missing_in_next:
        issues.append(
            _error(
                "branch_not_connected",
                f'Stage "{stage.name}" has condition branches not in its connections: {", ".join(missing_in_next)}',
                [stage.id],
            )
        )
    if extra_in_next:
        issues.append(
            _warning(
                "connection_not_in_branch",
                f'Stage "{stage.name}" has connections not in any condition branch: {", ".join(extra_in_next)}',
                [stage.id],
            )
        )
    if not branches.on_success and not branches.on_failure:
        issues.append(
            _error(
                "empty_branches",
                f'Stage "{stage.name}" conditional has no branches defined',
                [stage.id],
            )
        )

    overlap = [target for target in branches.on_success if target in branches.on_failure]
    if overlap:
        issues.append(
            _error(
                "overlapping_branches",
                f'Stage "{stage.name}" lists the same stage under both success and failure: {", ".join(overlap)}',
                [stage.id],
            )
        )

    return issues


def collect_issues(stages: Sequence[Stage], settings: ValidationSettings | None = None) -> list[ValidationIssue]:
    """Run every check and return findings in emission order."""
    settings = settings or _DEFAULT_VALIDATION

    if not stages:
        return [_error("empty_pipeline", "Pipeline has no stages")]

    issues: list[ValidationIssue] = []
    adjacency = build_adjacency(stages)

    cycle = find_cycle(adjacency)
    if cycle is not None:
        issues.append(
            _error(
                "cycle",
                f"Pipeline has circular dependencies - stages form a cycle: {' -> '.join(cycle)}",
                dict.fromkeys(cycle),
            )
        )

    has_incoming: set[StageID] = set()
    for targets in adjacency.values():
        has_incoming.update(targets)

    entry_ids = [stage.id for stage in stages if stage.id not in has_incoming]
    if not entry_ids:
        issues.append(_error("no_entry_point", "Pipeline has no entry point - all stages have incoming connections"))
    elif len(entry_ids) > settings.max_entry_points:
        issues.append(
            _warning(
                "too_many_entry_points",
                f"Pipeline has {len(entry_ids)} entry points - consider reducing complexity",
                entry_ids,
            )
        )

    if not any(not stage.next_stage_ids for stage in stages):
        issues.append(_error("no_exit_point", "Pipeline has no exit point - all stages have outgoing connections"))

    # An isolated stage is its own entry point but belongs to no flow; only
    # fall back to isolated roots when no entry point has connections.
    roots = [stage_id for stage_id in entry_ids if adjacency[stage_id]] or entry_ids
    reachable = find_reachable(adjacency, roots)
    orphaned = [stage for stage in stages if stage.id not in reachable]
    if orphaned:
        names = ", ".join(f'"{stage.name}"' for stage in orphaned)
        issues.append(
            _error(
                "orphaned_stages",
                f"{len(orphaned)} orphaned stage(s): {names}",
                [stage.id for stage in orphaned],
            )
        )

    for stage in stages:
        if not stage.assigned_agent_ids:
            issues.append(_warning("unassigned_agents", f'Stage "{stage.name}" has no agents assigned', [stage.id]))

    for stage in stages:
        if stage.is_conditional:
            issues.extend(_check_conditional(stage))

    for stage in stages:
        for target in stage.next_stage_ids:
            if target not in adjacency:
                issues.append(
                    _error(
                        "dangling_reference",
                        f'Stage "{stage.name}" references non-existent stage ID: {target}',
                        [stage.id],
                    )
                )

    return issues


def validate_pipeline_graph(
    stages: Sequence[Stage],
    *,
    settings: ValidationSettings | None = None,
) -> ValidationResult:
    """Validate pipeline graph structure.

    Args:
        stages: Stage list to diagnose
        settings: Warning thresholds (defaults when omitted)

    Returns:
        ValidationResult; ``is_valid`` is False iff any error was found
    """
    result = ValidationResult.from_issues(collect_issues(stages, settings))
    logger.debug(
        "pipeline_validated",
        stage_count=len(stages),
        error_count=len(result.errors),
        warning_count=len(result.warnings),
    )
    return result
