# src/stagecraft/core/graph/sync.py
"""Round trips between a stored pipeline and its editable graph.

``sync_pipeline`` is what the editor runs after every graph edit;
``arrange_pipeline`` is the auto-arrange action. Both return a new
PipelineConfiguration with refreshed caches.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from stagecraft.contracts import Agent, GraphEdge, GraphNode, LayoutDirection, PipelineConfiguration, Stage
from stagecraft.core.config import DEFAULT_SETTINGS, StagecraftSettings
from stagecraft.core.graph.converter import find_entry_stages, graph_to_stages, stages_to_graph
from stagecraft.core.graph.layout import auto_layout_graph
from stagecraft.core.graph.validation import validate_pipeline_graph


def refresh_pipeline(
    pipeline: PipelineConfiguration,
    stages: Sequence[Stage],
    *,
    settings: StagecraftSettings | None = None,
    now: datetime | None = None,
) -> PipelineConfiguration:
    """Store ``stages`` on ``pipeline`` and recompute the cached graph metadata."""
    settings = settings or DEFAULT_SETTINGS
    validation = validate_pipeline_graph(stages, settings=settings.validation)
    return pipeline.model_copy(
        update={
            "stages": tuple(stages),
            "entry_stage_ids": tuple(find_entry_stages(stages)),
            "is_valid": validation.is_valid,
            "validation_errors": validation.errors,
            "updated_at": now or datetime.now(UTC),
        }
    )


def sync_pipeline(
    pipeline: PipelineConfiguration,
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    *,
    settings: StagecraftSettings | None = None,
    now: datetime | None = None,
) -> PipelineConfiguration:
    """Fold an edited graph back into ``pipeline``."""
    return refresh_pipeline(pipeline, graph_to_stages(nodes, edges), settings=settings, now=now)


def arrange_pipeline(
    pipeline: PipelineConfiguration,
    agents: Sequence[Agent] = (),
    *,
    direction: LayoutDirection | str | None = None,
    settings: StagecraftSettings | None = None,
    now: datetime | None = None,
) -> PipelineConfiguration:
    """Auto-arrange: lay out the pipeline's graph and persist the new positions."""
    settings = settings or DEFAULT_SETTINGS
    nodes, edges = stages_to_graph(pipeline.stages, agents)
    laid_out = auto_layout_graph(nodes, edges, direction, settings=settings.layout)
    return sync_pipeline(pipeline, laid_out, edges, settings=settings, now=now)
