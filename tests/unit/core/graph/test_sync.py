"""Tests for pipeline sync and auto-arrange round trips."""

from __future__ import annotations

from datetime import UTC, datetime

from stagecraft.contracts import LayoutDirection, Position
from stagecraft.core.graph import arrange_pipeline, connect_stages, stages_to_graph, sync_pipeline
from stagecraft.testing import make_linear_stages, make_pipeline, make_stage

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


class TestSyncPipeline:
    def test_refreshes_cached_metadata(self) -> None:
        pipeline = make_pipeline(make_linear_stages("a", "b"))
        nodes, edges = stages_to_graph(connect_stages(pipeline.stages, "b", "a"))

        synced = sync_pipeline(pipeline, nodes, edges, now=NOW)

        assert synced.is_valid is False
        assert synced.validation_errors is not None
        assert any("circular" in error for error in synced.validation_errors)
        assert synced.entry_stage_ids == ()
        assert synced.updated_at == NOW
        assert synced.created_at == pipeline.created_at

    def test_valid_pipeline(self) -> None:
        pipeline = make_pipeline([make_stage("x", "c"), make_stage("a", "c"), make_stage("c")])

        synced = sync_pipeline(pipeline, *stages_to_graph(pipeline.stages), now=NOW)

        assert synced.is_valid is True
        assert synced.validation_errors == ()
        assert synced.entry_stage_ids == ("x", "a")

    def test_original_pipeline_unchanged(self) -> None:
        pipeline = make_pipeline(make_linear_stages("a", "b"))

        sync_pipeline(pipeline, *stages_to_graph(pipeline.stages), now=NOW)

        assert pipeline.is_valid is None
        assert pipeline.updated_at is None


class TestArrangePipeline:
    def test_positions_persisted_to_stages(self) -> None:
        pipeline = make_pipeline(make_linear_stages("a", "b"))

        arranged = arrange_pipeline(pipeline, now=NOW)

        assert [stage.position for stage in arranged.stages] == [Position(x=50, y=50), Position(x=50, y=290)]
        assert arranged.is_valid is True

    def test_direction_override(self) -> None:
        pipeline = make_pipeline(make_linear_stages("a", "b"))

        arranged = arrange_pipeline(pipeline, direction=LayoutDirection.LR, now=NOW)

        assert arranged.stages[1].position == Position(x=390, y=50)

    def test_connections_survive(self) -> None:
        stages = [make_stage("a", "b", "c"), make_stage("b"), make_stage("c")]

        arranged = arrange_pipeline(make_pipeline(stages), now=NOW)

        assert [stage.next_stage_ids for stage in arranged.stages] == [("b", "c"), (), ()]
