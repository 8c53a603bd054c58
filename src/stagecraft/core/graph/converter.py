# src/stagecraft/core/graph/converter.py
"""Conversion between stage lists and node/edge graphs.

This module performs no validation and never raises for well-typed input.
Dangling references and inconsistent conditional branches pass through
unchanged: every ``next_stage_ids`` entry becomes exactly one edge, and
every stage becomes exactly one node.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from stagecraft.contracts import (
    ON_FAILURE_LABEL,
    ON_SUCCESS_LABEL,
    ORIGIN,
    Agent,
    BranchType,
    EdgeKind,
    GraphEdge,
    GraphNode,
    PipelineGraph,
    Stage,
    StageID,
    ValidationResult,
)


def _incoming_ids(stages: Iterable[Stage]) -> set[StageID]:
    """IDs referenced by any stage's ``next_stage_ids``."""
    incoming: set[StageID] = set()
    for stage in stages:
        incoming.update(stage.next_stage_ids)
    return incoming


def _edge_label(stage: Stage, target_id: StageID) -> str | None:
    """Outcome label for a conditional edge.

    Failure is checked last, so a target listed under both outcomes is
    labelled "On Failure". A target listed under neither gets no label.
    """
    if stage.condition is None:
        return None
    label: str | None = None
    if target_id in stage.condition.branches.on_success:
        label = ON_SUCCESS_LABEL
    if target_id in stage.condition.branches.on_failure:
        label = ON_FAILURE_LABEL
    return label


def _edges_for(stage: Stage) -> list[GraphEdge]:
    kind = EdgeKind(stage.branch_type.value)
    edges = []
    for target_id in stage.next_stage_ids:
        label = _edge_label(stage, target_id) if stage.branch_type == BranchType.CONDITIONAL else None
        edges.append(
            GraphEdge(
                id=f"{stage.id}-{target_id}",
                source=stage.id,
                target=target_id,
                kind=kind,
                label=label,
            )
        )
    return edges


def stages_to_graph(
    stages: Sequence[Stage],
    agents: Sequence[Agent] = (),
    *,
    validation: ValidationResult | None = None,
) -> PipelineGraph:
    """Convert a stage list to renderable nodes and edges.

    Args:
        stages: Pipeline stages, in display order
        agents: Agent registry; each node receives the agents whose id appears
            in its stage's ``assigned_agent_ids`` (registry order, unknown ids dropped)
        validation: Optional validation result; when given, each node's
            ``validation_error`` is the first error that names its stage

    Returns:
        PipelineGraph with one node per stage and one edge per connection
    """
    incoming = _incoming_ids(stages)

    nodes = []
    for stage in stages:
        assigned = set(stage.assigned_agent_ids)
        nodes.append(
            GraphNode(
                id=stage.id,
                stage=stage,
                agents=tuple(agent for agent in agents if agent.id in assigned),
                position=stage.position if stage.position is not None else ORIGIN,
                is_entry_point=stage.id not in incoming,
                is_exit_point=not stage.next_stage_ids,
                validation_error=validation.first_error_for(stage.id) if validation is not None else None,
            )
        )

    edges = [edge for stage in stages for edge in _edges_for(stage)]

    return PipelineGraph(nodes=tuple(nodes), edges=tuple(edges))


def graph_to_stages(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> list[Stage]:
    """Convert nodes and edges back into a stage list.

    Each stage's ``next_stage_ids`` is rebuilt from the edges whose source is
    that node, in edge order. ``position`` comes from the node and ``order``
    is renumbered from the node's index. Every other stage field is carried
    through unchanged.
    """
    targets: dict[str, list[StageID]] = {}
    for edge in edges:
        targets.setdefault(edge.source, []).append(edge.target)

    return [
        node.stage.model_copy(
            update={
                "position": node.position,
                "next_stage_ids": tuple(targets.get(node.id, ())),
                "order": index,
            }
        )
        for index, node in enumerate(nodes)
    ]


def find_entry_stages(stages: Sequence[Stage]) -> list[StageID]:
    """IDs of stages no other stage connects to, in input order."""
    incoming = _incoming_ids(stages)
    return [stage.id for stage in stages if stage.id not in incoming]


def find_exit_stages(stages: Sequence[Stage]) -> list[StageID]:
    """IDs of stages with no outgoing connections, in input order."""
    return [stage.id for stage in stages if not stage.next_stage_ids]
