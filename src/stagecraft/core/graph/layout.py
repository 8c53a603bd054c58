# src/stagecraft/core/graph/layout.py
"""Layered (Sugiyama-style) auto-layout for pipeline graphs.

Phases:
  1. Cycle breaking (greedy feedback-arc-set ordering)
  2. Rank assignment (longest path, sources pulled towards their successors)
  3. Dummy nodes for edges spanning more than one rank
  4. Crossing minimisation (barycenter sweeps, best ordering kept)
  5. In-rank coordinates (average of left- and right-justified barycenter placements)
  6. Translation to the margin, then centre anchor -> top-left corner

Every node is a fixed-size box taken from LayoutSettings. Only node
positions change; node count, order and payloads are preserved. Ties are
broken by input order everywhere, so identical input gives identical
output. Cyclic input is laid out with its back-edges reversed.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import TypeAlias

import networkx as nx
import structlog

from stagecraft.contracts import BoundingBox, EdgeEndpoints, GraphNode, LayoutDirection, Position
from stagecraft.core.config import LayoutSettings

logger = structlog.get_logger(__name__)

_DEFAULT_LAYOUT = LayoutSettings()

# Ordering sweeps stop after this many rounds, or earlier once crossings stop improving.
_MAX_ORDER_ROUNDS = 24
_MAX_STALE_ROUNDS = 4
_COORDINATE_ROUNDS = 4


@dataclass(frozen=True, slots=True)
class _Dummy:
    """Placeholder occupying one intermediate rank of a long edge."""

    edge_index: int
    step: int


_LayoutKey: TypeAlias = str | _Dummy


@dataclass
class _Layering:
    """Cycle-free graph where every edge joins adjacent ranks."""

    graph: nx.DiGraph
    ranks: dict[_LayoutKey, int]
    reversed_edges: set[tuple[str, str]] = field(default_factory=set)

    @property
    def rank_count(self) -> int:
        return (max(self.ranks.values()) + 1) if self.ranks else 0


def build_layout_graph(node_ids: Iterable[str], edges: Iterable[EdgeEndpoints]) -> nx.DiGraph:
    """Directed graph of the given nodes, in input order.

    Edges whose endpoints are not among ``node_ids`` are ignored. Self-loops
    are dropped because they carry no ranking information.
    """
    graph: nx.DiGraph = nx.DiGraph()
    graph.add_nodes_from(node_ids)
    for edge in edges:
        if edge.source == edge.target:
            continue
        if edge.source in graph and edge.target in graph:
            graph.add_edge(edge.source, edge.target)
    return graph


def feedback_ordering(graph: nx.DiGraph) -> list[str]:
    """Node ordering that keeps most edges pointing forward (Eades-Lin-Smyth).

    Repeatedly moves sinks to the tail and sources to the head; when only
    cycles remain, the node with the largest out-in degree surplus goes to
    the head. For an acyclic graph the result is a topological order.
    """
    active: dict[str, None] = dict.fromkeys(graph.nodes)
    out_deg = {node: graph.out_degree(node) for node in graph.nodes}
    in_deg = {node: graph.in_degree(node) for node in graph.nodes}
    head: list[str] = []
    tail: list[str] = []

    def remove(node: str) -> None:
        del active[node]
        for pred in graph.predecessors(node):
            if pred in active:
                out_deg[pred] -= 1
        for succ in graph.successors(node):
            if succ in active:
                in_deg[succ] -= 1

    while active:
        progress = True
        while progress:
            progress = False
            for node in [n for n in active if out_deg[n] == 0]:
                remove(node)
                tail.append(node)
                progress = True
            for node in [n for n in active if in_deg[n] == 0]:
                remove(node)
                head.append(node)
                progress = True

        if active:
            # max() keeps the first maximal node, i.e. input order breaks ties
            best = max(active, key=lambda n: out_deg[n] - in_deg[n])
            remove(best)
            head.append(best)

    tail.reverse()
    return head + tail


def break_cycles(graph: nx.DiGraph) -> tuple[nx.DiGraph, set[tuple[str, str]]]:
    """Copy of ``graph`` with back-edges reversed, plus the reversed (source, target) pairs."""
    position = {node: index for index, node in enumerate(feedback_ordering(graph))}
    reversed_edges = {(src, tgt) for src, tgt in graph.edges if position[src] > position[tgt]}

    dag: nx.DiGraph = nx.DiGraph()
    dag.add_nodes_from(graph.nodes)
    for src, tgt in graph.edges:
        if (src, tgt) in reversed_edges:
            dag.add_edge(tgt, src)
        else:
            dag.add_edge(src, tgt)
    return dag, reversed_edges


def rank_nodes(dag: nx.DiGraph) -> dict[str, int]:
    """Longest-path ranking of an acyclic graph.

    Every edge goes from a lower rank to a strictly higher one. Sources are
    then moved down to sit one rank above their nearest successor, so a
    side input does not hang far above the stage it feeds. Isolated nodes
    stay on rank 0.
    """
    ranks: dict[str, int] = {}
    for node in nx.topological_sort(dag):
        preds = list(dag.predecessors(node))
        ranks[node] = max(ranks[pred] + 1 for pred in preds) if preds else 0

    for node in dag.nodes:
        succs = list(dag.successors(node))
        if succs and dag.in_degree(node) == 0:
            ranks[node] = min(ranks[succ] for succ in succs) - 1

    return ranks


def assign_ranks(node_ids: Sequence[str], edges: Iterable[EdgeEndpoints]) -> dict[str, int]:
    """Rank of every node id; acyclic edges always go to a higher rank."""
    dag, _ = break_cycles(build_layout_graph(node_ids, edges))
    return rank_nodes(dag)


def _layer(graph: nx.DiGraph) -> _Layering:
    dag, reversed_edges = break_cycles(graph)
    base_ranks = rank_nodes(dag)

    layered: nx.DiGraph = nx.DiGraph()
    layered.add_nodes_from(dag.nodes)
    ranks: dict[_LayoutKey, int] = dict(base_ranks)

    for edge_index, (src, tgt) in enumerate(list(dag.edges)):
        span = ranks[tgt] - ranks[src]
        if span <= 1:
            layered.add_edge(src, tgt)
            continue
        previous: _LayoutKey = src
        for step in range(span - 1):
            dummy = _Dummy(edge_index=edge_index, step=step)
            ranks[dummy] = ranks[src] + step + 1
            layered.add_edge(previous, dummy)
            previous = dummy
        layered.add_edge(previous, tgt)

    return _Layering(graph=layered, ranks=ranks, reversed_edges=reversed_edges)


def count_crossings(ordering: Sequence[Sequence[_LayoutKey]], graph: nx.DiGraph) -> int:
    """Edge crossings between consecutive ranks (pairwise inversion count)."""
    total = 0
    for upper, lower in zip(ordering, ordering[1:], strict=False):
        lower_pos = {key: index for index, key in enumerate(lower)}
        segments = [
            (upper_index, lower_pos[succ])
            for upper_index, key in enumerate(upper)
            for succ in graph.successors(key)
            if succ in lower_pos
        ]
        for i, (a_up, a_low) in enumerate(segments):
            for b_up, b_low in segments[i + 1 :]:
                if (a_up - b_up) * (a_low - b_low) < 0:
                    total += 1
    return total


def _sort_by_barycenter(
    layer: list[_LayoutKey],
    neighbors_of: Callable[[_LayoutKey], Iterable[_LayoutKey]],
    neighbor_pos: dict[_LayoutKey, int],
) -> None:
    """Stable in-place sort; nodes without neighbours keep their slot's weight."""

    def weight(item: tuple[int, _LayoutKey]) -> tuple[float, int]:
        index, key = item
        positions = [neighbor_pos[n] for n in neighbors_of(key) if n in neighbor_pos]
        if not positions:
            return (float(index), index)
        return (sum(positions) / len(positions), index)

    layer[:] = [key for _, key in sorted(enumerate(layer), key=weight)]


def order_layers(layering: _Layering) -> list[list[_LayoutKey]]:
    """Order nodes within each rank to reduce edge crossings."""
    graph = layering.graph
    ordering: list[list[_LayoutKey]] = [[] for _ in range(layering.rank_count)]
    for key in graph.nodes:
        ordering[layering.ranks[key]].append(key)

    best = [list(layer) for layer in ordering]
    best_crossings = count_crossings(best, graph)
    stale = 0

    for round_index in range(_MAX_ORDER_ROUNDS):
        if best_crossings == 0 or stale >= _MAX_STALE_ROUNDS:
            break
        if round_index % 2 == 0:
            for rank in range(1, len(ordering)):
                upper = {key: index for index, key in enumerate(ordering[rank - 1])}
                _sort_by_barycenter(ordering[rank], graph.predecessors, upper)
        else:
            for rank in range(len(ordering) - 2, -1, -1):
                lower = {key: index for index, key in enumerate(ordering[rank + 1])}
                _sort_by_barycenter(ordering[rank], graph.successors, lower)

        crossings = count_crossings(ordering, graph)
        if crossings < best_crossings:
            best = [list(layer) for layer in ordering]
            best_crossings = crossings
            stale = 0
        else:
            stale += 1

    return best


def _justify(desired: list[float], gaps: list[float]) -> list[float]:
    """Closest placement to ``desired`` keeping ``gaps[i]`` between slots i and i+1.

    Averages a left-to-right pass (push right on overlap) with a
    right-to-left pass (push left on overlap); both satisfy the gaps, so
    their average does too.
    """
    if not desired:
        return []
    left = [desired[0]]
    for index in range(1, len(desired)):
        left.append(max(desired[index], left[-1] + gaps[index - 1]))
    right = [desired[-1]]
    for index in range(len(desired) - 2, -1, -1):
        right.append(min(desired[index], right[-1] - gaps[index]))
    right.reverse()
    return [(a + b) / 2 for a, b in zip(left, right, strict=True)]


def _cross_coordinates(
    layering: _Layering,
    ordering: list[list[_LayoutKey]],
    node_size: float,
    settings: LayoutSettings,
) -> dict[_LayoutKey, float]:
    """Centre coordinate of every node along the in-rank axis."""
    graph = layering.graph

    def half_extent(key: _LayoutKey) -> float:
        if isinstance(key, _Dummy):
            return settings.edge_spacing / 2
        return node_size / 2 + settings.node_spacing / 2

    gaps_by_rank = [[half_extent(a) + half_extent(b) for a, b in zip(layer, layer[1:], strict=False)] for layer in ordering]

    coords: dict[_LayoutKey, float] = {}
    for layer, gaps in zip(ordering, gaps_by_rank, strict=True):
        packed = [0.0]
        for gap in gaps:
            packed.append(packed[-1] + gap)
        offset = packed[-1] / 2 if packed else 0.0
        for key, value in zip(layer, packed, strict=False):
            coords[key] = value - offset

    for round_index in range(_COORDINATE_ROUNDS):
        downward = round_index % 2 == 0
        ranks = range(1, len(ordering)) if downward else range(len(ordering) - 2, -1, -1)
        for rank in ranks:
            layer = ordering[rank]
            neighbors_of = graph.predecessors if downward else graph.successors
            desired = []
            for key in layer:
                neighbor_coords = [coords[n] for n in neighbors_of(key)]
                desired.append(sum(neighbor_coords) / len(neighbor_coords) if neighbor_coords else coords[key])
            for key, value in zip(layer, _justify(desired, gaps_by_rank[rank]), strict=True):
                coords[key] = value

    return coords


def auto_layout_graph(
    nodes: Sequence[GraphNode],
    edges: Iterable[EdgeEndpoints],
    direction: LayoutDirection | str | None = None,
    *,
    settings: LayoutSettings | None = None,
) -> list[GraphNode]:
    """Compute new positions for ``nodes`` with a layered layout.

    Args:
        nodes: Nodes to place (returned in the same order, input untouched)
        edges: Connections; anything with ``source`` and ``target``
        direction: TB or LR; defaults to ``settings.direction``
        settings: Node footprint, spacing and margins

    Returns:
        Copies of ``nodes`` whose positions are top-left corners
    """
    settings = settings or _DEFAULT_LAYOUT
    direction = LayoutDirection(direction) if direction is not None else settings.direction

    if not nodes:
        return []

    graph = build_layout_graph((node.id for node in nodes), edges)
    layering = _layer(graph)
    ordering = order_layers(layering)

    if direction == LayoutDirection.TB:
        cross_size, rank_size = settings.node_width, settings.node_height
    else:
        cross_size, rank_size = settings.node_height, settings.node_width

    cross = _cross_coordinates(layering, ordering, cross_size, settings)
    rank_step = rank_size + settings.rank_spacing

    centers: dict[str, tuple[float, float]] = {}
    for key in graph.nodes:
        along = layering.ranks[key] * rank_step + rank_size / 2
        if direction == LayoutDirection.TB:
            centers[key] = (cross[key], along)
        else:
            centers[key] = (along, cross[key])

    half_w = settings.node_width / 2
    half_h = settings.node_height / 2
    shift_x = settings.margin_x - min(x - half_w for x, _ in centers.values())
    shift_y = settings.margin_y - min(y - half_h for _, y in centers.values())

    logger.debug(
        "graph_laid_out",
        node_count=len(nodes),
        rank_count=layering.rank_count,
        reversed_edge_count=len(layering.reversed_edges),
        direction=direction.value,
    )

    laid_out = []
    for node in nodes:
        x, y = centers[node.id]
        laid_out.append(node.with_position(Position(x=x + shift_x - half_w, y=y + shift_y - half_h)))
    return laid_out


def calculate_bounding_box(nodes: Sequence[GraphNode], *, settings: LayoutSettings | None = None) -> BoundingBox:
    """Smallest rectangle enclosing every node footprint at its current position.

    Returns a zero-sized box at the origin when ``nodes`` is empty.
    """
    if not nodes:
        return BoundingBox.empty()

    settings = settings or _DEFAULT_LAYOUT
    min_x = min(node.position.x for node in nodes)
    min_y = min(node.position.y for node in nodes)
    max_x = max(node.position.x + settings.node_width for node in nodes)
    max_y = max(node.position.y + settings.node_height for node in nodes)

    return BoundingBox(
        min_x=min_x,
        min_y=min_y,
        max_x=max_x,
        max_y=max_y,
        width=max_x - min_x,
        height=max_y - min_y,
    )
