# src/stagecraft/core/graph/__init__.py
"""Pipeline graph model: conversion, validation, layout and editing.

Package re-exports - the stable public API of the graph core.
"""

from stagecraft.core.graph.converter import (
    find_entry_stages,
    find_exit_stages,
    graph_to_stages,
    stages_to_graph,
)
from stagecraft.core.graph.editing import (
    connect_stages,
    create_stage,
    delete_stage,
    disconnect_stages,
    set_branch_type,
    update_stage,
)
from stagecraft.core.graph.layout import assign_ranks, auto_layout_graph, calculate_bounding_box
from stagecraft.core.graph.sync import arrange_pipeline, refresh_pipeline, sync_pipeline
from stagecraft.core.graph.validation import find_cycle, find_reachable, validate_pipeline_graph

__all__ = [
    "arrange_pipeline",
    "assign_ranks",
    "auto_layout_graph",
    "calculate_bounding_box",
    "connect_stages",
    "create_stage",
    "delete_stage",
    "disconnect_stages",
    "find_cycle",
    "find_entry_stages",
    "find_exit_stages",
    "find_reachable",
    "graph_to_stages",
    "refresh_pipeline",
    "set_branch_type",
    "stages_to_graph",
    "sync_pipeline",
    "update_stage",
    "validate_pipeline_graph",
]
