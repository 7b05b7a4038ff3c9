"""
Tests: dependency graph traversal (depth bounds, cycles, template recursion).

Run with:
    pytest policy_impact/tests/test_graph.py -v
"""

import pytest

from policy_impact.exceptions import InvalidArgumentError, NotFoundError
from policy_impact.models.enums import DependentType, DependencyStrength, ImpactRiskLevel
from policy_impact.models.schemas import Policy
from policy_impact.persistence.dependency_repository import DependencyRepository
from policy_impact.persistence.policy_repository import PolicyRepository
from policy_impact.services.dependency_service import DependencyService


def _service(*policy_ids: str) -> DependencyService:
    policies = PolicyRepository()
    for pid in policy_ids:
        policies.save(Policy(id=pid, title=f"Policy {pid}", category="medication", version="3.1"))
    return DependencyService(policies, DependencyRepository())


def _edge_pairs(graph) -> list[tuple[str, str]]:
    return [(e.source, e.target) for e in graph.edges]


class TestGraphShape:
    def test_root_node(self):
        svc = _service("P")
        graph = svc.build_dependency_graph("P")

        assert graph.root_policy.id == "P"
        assert graph.root_policy.type == "policy"
        assert graph.root_policy.depth == 0
        assert graph.root_policy.label == "Policy P"
        assert graph.root_policy.metadata["version"] == "3.1"
        assert graph.nodes == [graph.root_policy]
        assert graph.edges == []
        assert graph.total_dependencies == 0
        assert graph.max_depth == 0

    def test_flat_dependencies(self):
        svc = _service("P")
        svc.create_dependency("P", "workflow", "wf-0001-abcdef", "strong")
        svc.create_dependency("P", "module", "M1", "medium")
        svc.create_dependency("P", "training", "T1", "weak")

        graph = svc.build_dependency_graph("P")

        assert len(graph.nodes) == 4
        assert graph.total_dependencies == 3
        assert graph.max_depth == 1
        assert graph.strength_breakdown == {
            DependencyStrength.STRONG: 1,
            DependencyStrength.MEDIUM: 1,
            DependencyStrength.WEAK: 1,
        }
        assert graph.type_breakdown[DependentType.WORKFLOW] == 1
        assert graph.type_breakdown[DependentType.ASSESSMENT] == 0

        workflow_node = next(n for n in graph.nodes if n.id == "wf-0001-abcdef")
        assert workflow_node.label == "Workflow wf-0001-"
        assert workflow_node.depth == 1

    def test_edge_risk_levels_follow_strength(self):
        svc = _service("P")
        svc.create_dependency("P", "workflow", "W1", "strong")
        svc.create_dependency("P", "module", "M1", "medium")
        svc.create_dependency("P", "document", "D1", "weak")

        risks = {e.target: e.risk_level for e in svc.build_dependency_graph("P").edges}

        assert risks == {
            "W1": ImpactRiskLevel.CRITICAL,
            "M1": ImpactRiskLevel.HIGH,
            "D1": ImpactRiskLevel.MEDIUM,
        }

    def test_inactive_edges_excluded(self):
        svc = _service("P")
        dep = svc.create_dependency("P", "workflow", "W1", "strong")
        svc.delete_dependency(dep.id)
        assert svc.build_dependency_graph("P").total_dependencies == 0

    def test_edges_not_deduplicated_nodes_are(self):
        svc = _service("P")
        svc.create_dependency("P", "workflow", "X1", "strong")
        svc.create_dependency("P", "module", "X1", "medium")

        graph = svc.build_dependency_graph("P")

        assert _edge_pairs(graph) == [("P", "X1"), ("P", "X1")]
        assert [n.id for n in graph.nodes] == ["P", "X1"]

    def test_camel_case_wire_shape(self):
        svc = _service("P")
        svc.create_dependency("P", "workflow", "W1", "strong")

        wire = svc.build_dependency_graph("P").model_dump(by_alias=True, mode="json")

        assert wire["rootPolicy"]["id"] == "P"
        assert wire["totalDependencies"] == 1
        assert wire["edges"][0]["from"] == "P"
        assert wire["edges"][0]["to"] == "W1"
        assert wire["edges"][0]["riskLevel"] == "critical"
        assert wire["strengthBreakdown"]["strong"] == 1


class TestTraversal:
    def test_only_templates_are_traversed(self):
        svc = _service("P", "W1", "T1")
        svc.create_dependency("P", "workflow", "W1", "strong")
        svc.create_dependency("P", "template", "T1", "medium")
        # W1 also has records of its own, but workflows are leaves
        svc.create_dependency("W1", "module", "M-under-workflow", "medium")
        svc.create_dependency("T1", "document", "D-under-template", "weak")

        graph = svc.build_dependency_graph("P")
        node_ids = {n.id for n in graph.nodes}

        assert "D-under-template" in node_ids
        assert "M-under-workflow" not in node_ids
        assert graph.max_depth == 2
        assert next(n for n in graph.nodes if n.id == "D-under-template").depth == 2

    def test_max_depth_bounds_traversal(self):
        svc = _service("P", "T1", "T2", "T3")
        svc.create_dependency("P", "template", "T1", "medium")
        svc.create_dependency("T1", "template", "T2", "medium")
        svc.create_dependency("T2", "template", "T3", "medium")
        svc.create_dependency("T3", "document", "D1", "weak")

        shallow = svc.build_dependency_graph("P", max_depth=2)
        assert [n.id for n in shallow.nodes] == ["P", "T1", "T2"]
        assert shallow.total_dependencies == 2
        assert shallow.max_depth == 2

        full = svc.build_dependency_graph("P")
        assert [n.id for n in full.nodes] == ["P", "T1", "T2", "T3", "D1"]
        assert full.max_depth == 4

    def test_zero_depth_returns_root_only(self):
        svc = _service("P")
        svc.create_dependency("P", "workflow", "W1", "strong")
        graph = svc.build_dependency_graph("P", max_depth=0)
        assert [n.id for n in graph.nodes] == ["P"]
        assert graph.edges == []

    def test_template_cycle_terminates(self):
        svc = _service("P", "T1", "T2")
        svc.create_dependency("P", "template", "T1", "medium")
        svc.create_dependency("T1", "template", "T2", "medium")
        svc.create_dependency("T2", "template", "T1", "medium")
        svc.create_dependency("T2", "template", "P", "weak")

        graph = svc.build_dependency_graph("P", max_depth=50)

        assert [n.id for n in graph.nodes] == ["P", "T1", "T2"]
        assert _edge_pairs(graph) == [("P", "T1"), ("T1", "T2"), ("T2", "T1"), ("T2", "P")]
        assert graph.max_depth == 3

    def test_self_referencing_template_terminates(self):
        svc = _service("P", "T1")
        svc.create_dependency("P", "template", "T1", "medium")
        svc.create_dependency("T1", "template", "T1", "medium")

        graph = svc.build_dependency_graph("P")

        assert len(graph.nodes) == 2
        assert graph.total_dependencies == 2


class TestGraphErrors:
    def test_unknown_root(self):
        svc = _service()
        with pytest.raises(NotFoundError):
            svc.build_dependency_graph("missing")

    @pytest.mark.parametrize("depth", [-1, 2.5, "3", True])
    def test_invalid_max_depth(self, depth):
        svc = _service("P")
        with pytest.raises(InvalidArgumentError):
            svc.build_dependency_graph("P", max_depth=depth)
