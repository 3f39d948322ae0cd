"""Tests for the compatibility engine."""

from __future__ import annotations

import pytest

from license_kg.core.compatibility import (
    HEURISTIC_NOTE,
    RULE_EQUAL_STRENGTH,
    RULE_STRONGER_INTO_WEAKER,
    RULE_WEAKER_INTO_STRONGER,
    check_compatibility,
    check_compatibility_matrix,
    find_compatibility_path,
)
from license_kg.core.graph.graph import KnowledgeGraph
from license_kg.core.graph.model import (
    CompatibilityDirection,
    CompatibilityEdge,
    CompatibilityLevel,
    CopyleftStrength,
    LicenseCategory,
    LicenseNode,
)
from license_kg.core.graph.seed import build_seed_graph


@pytest.fixture(scope="module")
def graph() -> KnowledgeGraph:
    return build_seed_graph()


def _license(spdx_id: str, strength: CopyleftStrength = CopyleftStrength.NONE) -> LicenseNode:
    return LicenseNode(
        id=spdx_id,
        spdx_id=spdx_id,
        name=spdx_id,
        category=LicenseCategory.PERMISSIVE,
        copyleft_strength=strength,
    )


# ---------------------------------------------------------------------------
# check_compatibility
# ---------------------------------------------------------------------------


class TestCuratedEdges:
    def test_bidirectional_symmetry(self, graph: KnowledgeGraph) -> None:
        ab = check_compatibility(graph, "MIT", "Apache-2.0")
        ba = check_compatibility(graph, "apache-2.0", "mit")
        assert ab.level is ba.level is CompatibilityLevel.FULL
        assert ab.compatible and ba.compatible
        assert ab.conditions == ba.conditions
        assert ab.inferred is False

    def test_edge_overrides_heuristic_incompatible(self, graph: KnowledgeGraph) -> None:
        result = check_compatibility(graph, "GPL-2.0-only", "GPL-3.0-only")
        assert result.level is CompatibilityLevel.INCOMPATIBLE
        assert result.compatible is False
        assert result.inferred is False
        assert result.sources

    def test_edge_overrides_heuristic_conditional(self, graph: KnowledgeGraph) -> None:
        result = check_compatibility(graph, "GPL-2.0-or-later", "GPL-3.0-only")
        assert result.level is CompatibilityLevel.CONDITIONAL
        assert result.compatible is True
        assert result.conditions == ["Combined work must be GPL-3.0"]
        assert result.dominant_license == "GPL-3.0-ONLY"

    def test_forward_edge_is_not_reversed(self, graph: KnowledgeGraph) -> None:
        forward = check_compatibility(graph, "Apache-2.0", "GPL-3.0-only")
        assert forward.level is CompatibilityLevel.ONE_WAY
        assert forward.inferred is False

        reverse = check_compatibility(graph, "GPL-3.0-only", "Apache-2.0")
        assert reverse.inferred is True
        assert reverse.level is CompatibilityLevel.INCOMPATIBLE


class TestUnknownLicenses:
    @pytest.mark.parametrize(
        ("a", "b"),
        [("NOT-A-LICENSE", "MIT"), ("MIT", "NOT-A-LICENSE"), ("FOO", "BAR")],
    )
    def test_unknown_is_not_compatible(self, graph: KnowledgeGraph, a: str, b: str) -> None:
        result = check_compatibility(graph, a, b)
        assert result.level is CompatibilityLevel.UNKNOWN
        assert result.compatible is False
        assert "license not found" in result.reason

    def test_same_license_is_full(self, graph: KnowledgeGraph) -> None:
        result = check_compatibility(graph, "GPL-3.0-only", "gpl-3.0-ONLY")
        assert result.level is CompatibilityLevel.FULL
        assert result.compatible is True


class TestHeuristic:
    def test_two_non_copyleft_without_edge_are_full(self, graph: KnowledgeGraph) -> None:
        assert graph.get_compatibility_edge("X11", "ARTISTIC-2.0") is None
        result = check_compatibility(graph, "X11", "Artistic-2.0")
        assert result.level is CompatibilityLevel.FULL
        assert result.inferred is True
        assert result.inferred_rule == RULE_EQUAL_STRENGTH
        assert HEURISTIC_NOTE in result.notes

    def test_weaker_into_stronger_is_one_way(self, graph: KnowledgeGraph) -> None:
        result = check_compatibility(graph, "MIT", "GPL-3.0-only")
        assert result.level is CompatibilityLevel.ONE_WAY
        assert result.compatible is True
        assert result.inferred_rule == RULE_WEAKER_INTO_STRONGER
        assert result.dominant_license == "GPL-3.0-ONLY"
        assert result.conditions

    def test_stronger_into_weaker_is_incompatible(self, graph: KnowledgeGraph) -> None:
        result = check_compatibility(graph, "AGPL-3.0-only", "MIT")
        assert result.level is CompatibilityLevel.INCOMPATIBLE
        assert result.compatible is False
        assert result.inferred_rule == RULE_STRONGER_INTO_WEAKER


class TestUseCase:
    def test_network_adds_disclosure_condition(self, graph: KnowledgeGraph) -> None:
        saas = graph.get_use_case("saas")
        result = check_compatibility(graph, "Apache-2.0", "AGPL-3.0-only", saas)
        assert result.use_case == "saas"
        assert any("network-disclosure" in c for c in result.conditions)

    def test_network_without_network_copyleft_is_unchanged(self, graph: KnowledgeGraph) -> None:
        saas = graph.get_use_case("saas")
        plain = check_compatibility(graph, "MIT", "ISC")
        with_saas = check_compatibility(graph, "MIT", "ISC", saas)
        assert with_saas.conditions == plain.conditions

    def test_internal_use_downgrades_incompatible(self, graph: KnowledgeGraph) -> None:
        internal = graph.get_use_case("internal")
        result = check_compatibility(graph, "Apache-2.0", "GPL-2.0-only", internal)
        assert result.level is CompatibilityLevel.CONDITIONAL
        assert result.compatible is True
        assert any(note.startswith("Warning:") for note in result.notes)

    def test_use_case_does_not_mutate_edge(self, graph: KnowledgeGraph) -> None:
        saas = graph.get_use_case("saas")
        check_compatibility(graph, "Apache-2.0", "AGPL-3.0-only", saas)
        edge = graph.get_compatibility_edge("APACHE-2.0", "AGPL-3.0-ONLY")
        assert not any("network-disclosure" in c for c in edge.conditions)


# ---------------------------------------------------------------------------
# Matrix
# ---------------------------------------------------------------------------


class TestMatrix:
    def test_three_licenses_give_three_pairs(self, graph: KnowledgeGraph) -> None:
        results = check_compatibility_matrix(graph, ["MIT", "Apache-2.0", "GPL-3.0-only"])
        assert len(results) == 3
        assert [(r.license_a, r.license_b) for r in results] == [
            ("MIT", "APACHE-2.0"),
            ("MIT", "GPL-3.0-ONLY"),
            ("APACHE-2.0", "GPL-3.0-ONLY"),
        ]

    @pytest.mark.parametrize("n", [0, 1, 2, 5])
    def test_pair_count(self, graph: KnowledgeGraph, n: int) -> None:
        ids = ["MIT", "ISC", "ZLIB", "MPL-2.0", "GPL-3.0-ONLY"][:n]
        assert len(check_compatibility_matrix(graph, ids)) == n * (n - 1) // 2

    def test_order_does_not_change_count(self, graph: KnowledgeGraph) -> None:
        ids = ["GPL-3.0-only", "MIT", "Apache-2.0"]
        assert len(check_compatibility_matrix(graph, ids)) == len(
            check_compatibility_matrix(graph, list(reversed(ids)))
        )


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


class TestPath:
    def test_depth_one_has_no_path(self, graph: KnowledgeGraph) -> None:
        assert find_compatibility_path(graph, "MIT", "GPL-3.0-only", max_depth=1) is None

    def test_depth_two_goes_through_apache(self, graph: KnowledgeGraph) -> None:
        path = find_compatibility_path(graph, "MIT", "GPL-3.0-only", max_depth=2)
        assert path is not None
        assert path.licenses == ["MIT", "APACHE-2.0", "GPL-3.0-ONLY"]
        assert path.hops == 2
        assert path.level is CompatibilityLevel.ONE_WAY
        assert "Combined work must be distributed under GPL-3.0" in path.conditions

    def test_forward_edges_are_not_walked_backwards(self, graph: KnowledgeGraph) -> None:
        assert find_compatibility_path(graph, "GPL-3.0-only", "MIT", max_depth=5) is None

    def test_incompatible_edges_are_not_traversed(self, graph: KnowledgeGraph) -> None:
        assert find_compatibility_path(graph, "GPL-2.0-only", "GPL-3.0-only", max_depth=5) is None

    def test_same_or_unknown_license(self, graph: KnowledgeGraph) -> None:
        assert find_compatibility_path(graph, "MIT", "mit") is None
        assert find_compatibility_path(graph, "MIT", "NOPE") is None
        assert find_compatibility_path(graph, "MIT", "ISC", max_depth=0) is None

    def test_direct_edge_is_one_hop(self, graph: KnowledgeGraph) -> None:
        path = find_compatibility_path(graph, "ISC", "MIT")
        assert path.licenses == ["ISC", "MIT"]
        assert path.level is CompatibilityLevel.FULL

    def test_ties_go_to_earliest_edge(self) -> None:
        graph = KnowledgeGraph()
        for spdx in ("A", "B", "C", "D"):
            graph.add_node(_license(spdx))
        graph.add_edge(CompatibilityEdge(source="A", target="C", level=CompatibilityLevel.CONDITIONAL))
        graph.add_edge(CompatibilityEdge(source="A", target="B", level=CompatibilityLevel.FULL))
        graph.add_edge(CompatibilityEdge(source="B", target="D", level=CompatibilityLevel.FULL))
        graph.add_edge(CompatibilityEdge(source="C", target="D", level=CompatibilityLevel.FULL))

        path = find_compatibility_path(graph, "A", "D")
        assert path.licenses == ["A", "C", "D"]
        assert path.level is CompatibilityLevel.CONDITIONAL

    def test_bidirectional_edge_walked_in_reverse(self) -> None:
        graph = KnowledgeGraph()
        for spdx in ("A", "B", "C"):
            graph.add_node(_license(spdx))
        graph.add_edge(CompatibilityEdge(source="B", target="A", level=CompatibilityLevel.FULL))
        graph.add_edge(
            CompatibilityEdge(
                source="B",
                target="C",
                level=CompatibilityLevel.ONE_WAY,
                direction=CompatibilityDirection.FORWARD,
            )
        )
        path = find_compatibility_path(graph, "A", "C")
        assert path.licenses == ["A", "B", "C"]
        assert path.steps[0].from_license == "A"
        assert path.steps[0].edge.source == "B"
