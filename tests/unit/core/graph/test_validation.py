"""Tests for pipeline graph validation."""

from __future__ import annotations

import pytest

from stagecraft.contracts import BranchType, IssueSeverity
from stagecraft.core.config import ValidationSettings
from stagecraft.core.graph import find_cycle, find_reachable, validate_pipeline_graph
from stagecraft.core.graph.validation import collect_issues
from stagecraft.testing import make_conditional_stage, make_linear_stages, make_stage


def _codes(stages, **kwargs) -> list[str]:
    return [issue.code for issue in collect_issues(stages, **kwargs)]


class TestBasicShapes:
    def test_empty_pipeline_short_circuits(self) -> None:
        result = validate_pipeline_graph([])

        assert not result.is_valid
        assert result.errors == ("Pipeline has no stages",)
        assert result.warnings == ()

    def test_single_stage_is_valid(self) -> None:
        result = validate_pipeline_graph([make_stage("solo")])

        assert result.is_valid
        assert result.errors == ()

    def test_linear_pipeline_is_valid(self) -> None:
        result = validate_pipeline_graph(make_linear_stages("a", "b", "c"))

        assert result.is_valid
        assert result.errors == ()
        assert result.warnings == ()

    def test_diamond_is_valid(self) -> None:
        stages = [
            make_stage("plan", "backend", "frontend", branch_type=BranchType.PARALLEL),
            make_stage("backend", "integrate"),
            make_stage("frontend", "integrate"),
            make_stage("integrate"),
        ]

        assert validate_pipeline_graph(stages).is_valid


class TestCycles:
    def test_two_stage_cycle(self) -> None:
        stages = [make_stage("a", "b"), make_stage("b", "a")]

        result = validate_pipeline_graph(stages)

        assert not result.is_valid
        assert any("circular dependencies" in error for error in result.errors)

    def test_cycle_after_entry_point(self) -> None:
        stages = [make_stage("start", "a"), make_stage("a", "b"), make_stage("b", "a", "end"), make_stage("end")]

        assert "cycle" in _codes(stages)

    def test_cycle_in_disconnected_component(self) -> None:
        stages = [*make_linear_stages("a", "b"), make_stage("x", "y"), make_stage("y", "x")]

        assert "cycle" in _codes(stages)

    def test_self_loop_is_a_cycle(self) -> None:
        assert "cycle" in _codes([make_stage("a", "a")])

    def test_cycle_message_names_path(self) -> None:
        stages = [make_stage("a", "b"), make_stage("b", "c"), make_stage("c", "a")]

        (issue,) = [issue for issue in collect_issues(stages) if issue.code == "cycle"]

        assert issue.message.endswith("a -> b -> c -> a")
        assert issue.stage_ids == ("a", "b", "c")

    def test_find_cycle_none_for_dag(self) -> None:
        assert find_cycle({"a": ("b", "c"), "b": ("c",), "c": ()}) is None

    def test_find_cycle_handles_deep_chains(self) -> None:
        depth = 5000
        adjacency = {f"s{i}": (f"s{i + 1}",) for i in range(depth)}
        adjacency[f"s{depth}"] = ("s0",)

        cycle = find_cycle(adjacency)

        assert cycle is not None
        assert len(cycle) == depth + 2

    def test_find_cycle_treats_unknown_targets_as_leaves(self) -> None:
        assert find_cycle({"a": ("ghost",)}) is None


class TestEntryAndExitPoints:
    def test_no_entry_point(self) -> None:
        stages = [make_stage("a", "b"), make_stage("b", "a")]

        assert "no_entry_point" in _codes(stages)

    def test_too_many_entry_points_is_a_warning(self) -> None:
        stages = [make_stage(name, "sink") for name in ("a", "b", "c", "d")] + [make_stage("sink")]

        result = validate_pipeline_graph(stages)

        assert result.is_valid
        assert result.warnings == ("Pipeline has 4 entry points - consider reducing complexity",)

    def test_three_entry_points_is_fine(self) -> None:
        stages = [make_stage(name, "sink") for name in ("a", "b", "c")] + [make_stage("sink")]

        assert validate_pipeline_graph(stages).warnings == ()

    def test_entry_point_threshold_is_configurable(self) -> None:
        stages = [make_stage(name, "sink") for name in ("a", "b")] + [make_stage("sink")]

        codes = _codes(stages, settings=ValidationSettings(max_entry_points=1))

        assert codes == ["too_many_entry_points"]

    def test_no_exit_point(self) -> None:
        stages = [make_stage("start", "a"), make_stage("a", "b"), make_stage("b", "a")]

        assert "no_exit_point" in _codes(stages)


class TestOrphans:
    def test_unconnected_stage_is_orphaned(self) -> None:
        stages = [make_stage("a", "b", "c"), make_stage("b"), make_stage("c"), make_stage("d", name="Docs")]

        result = validate_pipeline_graph(stages)

        assert not result.is_valid
        assert result.errors == ('1 orphaned stage(s): "Docs"',)

    def test_isolated_stages_without_any_flow_are_not_orphans(self) -> None:
        result = validate_pipeline_graph([make_stage("a"), make_stage("b")])

        assert result.is_valid

    def test_stage_only_reachable_from_cycle_is_orphaned(self) -> None:
        stages = [
            make_stage("a", "b"),
            make_stage("b"),
            make_stage("x", "y", name="Loop X"),
            make_stage("y", "x", "z", name="Loop Y"),
            make_stage("z", name="Tail"),
        ]

        (issue,) = [issue for issue in collect_issues(stages) if issue.code == "orphaned_stages"]

        assert issue.message == '3 orphaned stage(s): "Loop X", "Loop Y", "Tail"'
        assert issue.stage_ids == ("x", "y", "z")


class TestAgentAssignment:
    def test_unassigned_stage_warns_per_stage(self) -> None:
        stages = [make_stage("a", "b", agents=()), make_stage("b", agents=())]

        result = validate_pipeline_graph(stages)

        assert result.is_valid
        assert result.warnings == (
            'Stage "A" has no agents assigned',
            'Stage "B" has no agents assigned',
        )


class TestConditionalBranches:
    def test_consistent_conditional_has_no_findings(self) -> None:
        stages = [make_conditional_stage("eval", on_success=["x"], on_failure=["y"]), make_stage("x"), make_stage("y")]

        result = validate_pipeline_graph(stages)

        assert result.is_valid
        assert result.warnings == ()

    def test_missing_condition_is_an_error(self) -> None:
        stages = [make_stage("eval", "x", branch_type=BranchType.CONDITIONAL), make_stage("x")]

        assert _codes(stages) == ["missing_condition"]

    def test_connection_outside_branches_is_a_warning(self) -> None:
        stages = [make_conditional_stage("eval", on_success=["x"], next_ids=["x", "y"]), make_stage("x"), make_stage("y")]

        result = validate_pipeline_graph(stages)

        assert result.is_valid
        assert [issue.code for issue in result.issues] == ["connection_not_in_branch"]
        assert "y" in result.warnings[0]

    def test_branch_not_in_connections_is_an_error(self) -> None:
        stages = [make_conditional_stage("eval", on_success=["x"], on_failure=["y"], next_ids=["x"]), make_stage("x"), make_stage("y")]

        codes = _codes(stages)

        assert "branch_not_connected" in codes

    def test_empty_branches_is_an_error(self) -> None:
        stages = [make_conditional_stage("eval", next_ids=["x"]), make_stage("x")]

        codes = _codes(stages)

        assert "empty_branches" in codes
        assert "connection_not_in_branch" in codes

    def test_overlapping_branches_is_an_error(self) -> None:
        stages = [make_conditional_stage("eval", on_success=["x"], on_failure=["x"], next_ids=["x"]), make_stage("x")]

        result = validate_pipeline_graph(stages)

        assert not result.is_valid
        assert [issue.code for issue in result.issues] == ["overlapping_branches"]

    def test_non_conditional_stage_ignores_stale_condition(self) -> None:
        stage = make_conditional_stage("a", on_success=["ghost"], next_ids=[]).model_copy(
            update={"branch_type": BranchType.SEQUENTIAL}
        )

        assert validate_pipeline_graph([stage]).is_valid


class TestDanglingReferences:
    def test_reference_to_missing_stage(self) -> None:
        stages = [make_stage("a", "b", "ghost", name="Build"), make_stage("b")]

        result = validate_pipeline_graph(stages)

        assert not result.is_valid
        assert result.errors == ('Stage "Build" references non-existent stage ID: ghost',)

    def test_each_missing_target_reported(self) -> None:
        stages = [make_stage("a", "g1", "g2"), make_stage("b", "g1")]

        assert _codes(stages).count("dangling_reference") == 3


class TestResultSemantics:
    def test_all_checks_accumulate(self) -> None:
        stages = [
            make_stage("a", "b", agents=()),
            make_stage("b", "a"),
            make_stage("c", "ghost", branch_type=BranchType.CONDITIONAL),
        ]

        codes = _codes(stages)

        assert codes == [
            "cycle",
            "no_exit_point",
            "orphaned_stages",
            "unassigned_agents",
            "missing_condition",
            "dangling_reference",
        ]

    def test_warnings_do_not_affect_validity(self) -> None:
        result = validate_pipeline_graph([make_stage("a", agents=())])

        assert result.is_valid
        assert len(result.warnings) == 1

    def test_deterministic(self) -> None:
        stages = [make_stage("a", "b", agents=()), make_stage("b", "a"), make_stage("c", "ghost")]

        assert validate_pipeline_graph(stages) == validate_pipeline_graph(stages)

    def test_input_not_mutated(self) -> None:
        stages = [make_conditional_stage("eval", on_success=["x"]), make_stage("x")]
        snapshot = list(stages)

        validate_pipeline_graph(stages)

        assert stages == snapshot

    def test_issue_severities_split_errors_and_warnings(self) -> None:
        stages = [make_stage("a", "ghost", agents=())]

        result = validate_pipeline_graph(stages)

        assert {issue.severity for issue in result.issues} == {IssueSeverity.ERROR, IssueSeverity.WARNING}
        assert len(result.errors) + len(result.warnings) == len(result.issues)

    @pytest.mark.parametrize(
        ("start", "expected"),
        [
            (["a"], {"a", "b", "c"}),
            (["c"], {"c"}),
            ([], set()),
        ],
    )
    def test_find_reachable(self, start: list[str], expected: set[str]) -> None:
        adjacency = {"a": ("b",), "b": ("c",), "c": ()}

        assert find_reachable(adjacency, start) == expected
