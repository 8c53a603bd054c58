"""Rendering-oriented projections of a stage list.

Nodes and edges are derived from stages on every conversion and are never
the source of truth. The only field that flows back into stages is a
node's position.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import NamedTuple, Protocol

from stagecraft.contracts.enums import EdgeKind
from stagecraft.contracts.pipeline import ORIGIN, Agent, Position, Stage
from stagecraft.contracts.types import StageID

ON_SUCCESS_LABEL = "On Success"
ON_FAILURE_LABEL = "On Failure"


@dataclass(frozen=True, slots=True)
class GraphNode:
    """A stage plus the annotations a renderer needs.

    Attributes:
        id: Same as stage.id
        stage: The stage payload, carried unchanged
        agents: Registry records for the stage's assigned agents, in registry order
        position: Top-left corner on the canvas
        is_entry_point: No other stage connects to this one
        is_exit_point: This stage connects to nothing
        validation_error: First validation error naming this stage, for inline display
    """

    id: StageID
    stage: Stage
    agents: tuple[Agent, ...] = ()
    position: Position = ORIGIN
    is_entry_point: bool = False
    is_exit_point: bool = False
    validation_error: str | None = None

    def with_position(self, position: Position) -> GraphNode:
        """Return a copy of this node moved to ``position``."""
        return replace(self, position=position)


@dataclass(frozen=True, slots=True)
class GraphEdge:
    """One connection ``source -> target`` taken from ``source.next_stage_ids``."""

    id: str
    source: StageID
    target: StageID
    kind: EdgeKind = EdgeKind.SEQUENTIAL
    label: str | None = None


@dataclass(frozen=True, slots=True)
class LayoutEdge:
    """Bare connection used by the layout engine."""

    source: str
    target: str


class EdgeEndpoints(Protocol):
    """Anything with a source and a target id (GraphEdge, LayoutEdge)."""

    @property
    def source(self) -> str: ...

    @property
    def target(self) -> str: ...


class PipelineGraph(NamedTuple):
    """Nodes and edges produced from one stage list."""

    nodes: tuple[GraphNode, ...]
    edges: tuple[GraphEdge, ...]

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)
