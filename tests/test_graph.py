"""Tests for the dependency graph and build staging."""

import pytest

from unibuild.assets import Asset
from unibuild.graph import BuildStages, DependencyCycleError, DependencyGraph, compute_stages


def make_asset(name, inputs=None):
    return Asset(name, inputs=inputs or [], outfile=f"{name}.out")


@pytest.fixture
def diamond():
    """baseA/baseB -> midA/midB -> top, plus an unrelated asset."""
    base_a = make_asset("baseA")
    base_b = make_asset("baseB")
    mid_a = make_asset("midA", [base_a])
    mid_b = make_asset("midB", [base_b])
    top = make_asset("top", [mid_a, mid_b])
    independent = make_asset("independent")
    return [base_a, base_b, mid_a, mid_b, top, independent]


class TestDependencyGraph:
    """Tests for DependencyGraph construction."""

    def test_nodes_and_roots(self, diamond):
        """Every asset gets a node; assets without asset inputs are roots."""
        graph = DependencyGraph(diamond)

        assert set(graph.nodes) == {"baseA", "baseB", "midA", "midB", "top", "independent"}
        assert set(graph.roots) == {"baseA", "baseB", "independent"}

    def test_dependents(self, diamond):
        """Input nodes should list the assets that depend on them."""
        graph = DependencyGraph(diamond)

        assert graph.nodes["baseA"].dependents == ["midA"]
        assert graph.nodes["midA"].dependents == ["top"]
        assert graph.nodes["midB"].dependents == ["top"]
        assert graph.nodes["top"].dependents == []

    def test_node_back_reference(self, diamond):
        """Nodes should refer back to their asset."""
        graph = DependencyGraph(diamond)
        assert graph.nodes["top"].asset is diamond[4]
        assert graph.nodes["top"].name == "top"

    def test_idempotent(self, diamond):
        """Building the graph twice yields the same structure."""
        first = DependencyGraph(diamond)
        second = DependencyGraph(diamond)

        assert {n: node.dependents for n, node in first.nodes.items()} == {
            n: node.dependents for n, node in second.nodes.items()
        }
        assert set(first.roots) == set(second.roots)

    def test_follows_unlisted_inputs(self):
        """Asset inputs outside the given set still get nodes."""
        base = make_asset("base")
        top = make_asset("top", [base])

        graph = DependencyGraph([top])

        assert "base" in graph
        assert graph.nodes["base"].dependents == ["top"]
        assert len(graph) == 2

    def test_duplicate_input_listed_once(self):
        """An input declared twice should list its dependent once."""
        base = make_asset("base")
        top = make_asset("top", [base, base])

        graph = DependencyGraph([base, top])
        assert graph.nodes["base"].dependents == ["top"]

    def test_no_cycle(self, diamond):
        """An acyclic graph has no cycle."""
        assert DependencyGraph(diamond).find_cycle() is None

    def test_find_cycle(self):
        """Should report the assets along a cycle."""
        a = make_asset("a")
        b = make_asset("b", [a])
        c = make_asset("c", [b])
        a.inputs.append(c)

        cycle = DependencyGraph([a, b, c]).find_cycle()

        assert cycle is not None
        assert cycle[0] == cycle[-1]
        assert set(cycle) == {"a", "b", "c"}

    def test_find_self_cycle(self):
        """An asset listing itself as input is a cycle."""
        a = make_asset("a")
        a.inputs.append(a)

        assert DependencyGraph([a]).find_cycle() == ["a", "a"]


class TestBuildStages:
    """Tests for BuildStages leveling."""

    def test_groups_by_dependency_level(self, diamond):
        """Should group assets into dependency levels."""
        stages = BuildStages(diamond)

        assert stages.grouping == [
            ["baseA", "baseB", "independent"],
            ["midA", "midB"],
            ["top"],
        ]

    def test_dependencies_precede_dependents(self, diamond):
        """Every asset dependency sits in a strictly earlier stage."""
        stages = BuildStages(diamond)

        for asset in diamond:
            for dependency in asset.asset_inputs():
                assert stages.stage_of(dependency.name) < stages.stage_of(asset.name)

    def test_minimal(self, diamond):
        """No asset could be moved to an earlier stage."""
        stages = BuildStages(diamond)

        for asset in diamond:
            index = stages.stage_of(asset.name)
            if index == 0:
                continue
            assert any(
                stages.stage_of(dependency.name) == index - 1
                for dependency in asset.asset_inputs()
            )

    def test_each_asset_once(self, diamond):
        """Each asset appears in exactly one stage."""
        names = [name for stage in BuildStages(diamond) for name in stage]
        assert sorted(names) == sorted(a.name for a in diamond)

    def test_order_independent_grouping(self, diamond):
        """Grouping should not depend on the order assets are listed in."""
        stages = BuildStages(list(reversed(diamond)))

        assert [set(stage) for stage in stages] == [
            {"baseA", "baseB", "independent"},
            {"midA", "midB"},
            {"top"},
        ]

    def test_unrequested_dependencies_ignored(self, diamond):
        """Dependencies outside the requested set are treated as satisfied."""
        _, _, mid_a, mid_b, top, _ = diamond

        assert compute_stages([top, mid_a]) == [["midA"], ["top"]]
        assert compute_stages([top]) == [["top"]]
        assert compute_stages([mid_b, mid_a]) == [["midB", "midA"]]

    def test_duplicates_removed(self, diamond):
        """Assets listed twice are staged once."""
        base_a, _, mid_a, *_ = diamond
        assert compute_stages([base_a, mid_a, base_a]) == [["baseA"], ["midA"]]

    def test_empty(self):
        """No assets means no stages."""
        assert compute_stages([]) == []
        assert len(BuildStages([])) == 0

    def test_cycle_raises(self):
        """A cycle should fail fast instead of looping forever."""
        a = make_asset("a")
        b = make_asset("b", [a])
        a.inputs.append(b)
        independent = make_asset("independent")

        with pytest.raises(DependencyCycleError) as exc_info:
            compute_stages([independent, a, b])

        assert set(exc_info.value.names) == {"a", "b"}
        assert exc_info.value.code == "dependency_cycle"

    def test_stage_of_unknown(self, diamond):
        """stage_of should raise KeyError for unstaged assets."""
        with pytest.raises(KeyError):
            BuildStages(diamond).stage_of("nope")
