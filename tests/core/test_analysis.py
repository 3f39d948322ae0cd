"""Tests for dependency tree analysis."""

from __future__ import annotations

import pytest

from license_kg.core.analysis import analyze_dependency_tree, find_conflicts
from license_kg.core.graph.graph import KnowledgeGraph
from license_kg.core.graph.model import (
    CompatibilityDirection,
    CompatibilityEdge,
    CompatibilityLevel,
    LicenseCategory,
    LicenseNode,
)
from license_kg.core.graph.seed import build_seed_graph
from license_kg.core.results import (
    ComplianceStatus,
    ConflictSeverity,
    DependencyLicense,
    RecommendationPriority,
    RecommendationType,
)


@pytest.fixture(scope="module")
def graph() -> KnowledgeGraph:
    return build_seed_graph()


def _make_dep(name: str, license_id: str | None, version: str = "1.0.0") -> DependencyLicense:
    return DependencyLicense(
        dependency_id=f"pkg:{name}@{version}",
        name=name,
        version=version,
        license=license_id,
    )


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


class TestComplianceStatus:
    def test_permissive_tree_is_compliant(self, graph: KnowledgeGraph) -> None:
        deps = [
            _make_dep("left-pad", "MIT"),
            _make_dep("commons", "Apache-2.0"),
            _make_dep("bsdlib", "BSD-3-Clause"),
        ]
        analysis = analyze_dependency_tree(graph, deps)
        assert analysis.compliance_status is ComplianceStatus.COMPLIANT
        assert analysis.conflicts == []
        assert analysis.recommendations == []
        assert analysis.risk_score == 0.0

    def test_incompatible_pair_blocks(self, graph: KnowledgeGraph) -> None:
        deps = [_make_dep("commons", "Apache-2.0"), _make_dep("readline", "GPL-2.0-only")]
        analysis = analyze_dependency_tree(graph, deps)

        assert analysis.compliance_status is ComplianceStatus.BLOCKED
        assert len(analysis.blocking_conflicts) == 1
        conflict = analysis.conflicts[0]
        assert conflict.level is CompatibilityLevel.INCOMPATIBLE
        assert conflict.dependencies_a == ["pkg:commons@1.0.0"]
        assert conflict.dependencies_b == ["pkg:readline@1.0.0"]
        assert analysis.risk_score == pytest.approx(0.58)

    def test_one_way_pair_warns(self, graph: KnowledgeGraph) -> None:
        deps = [_make_dep("app", "GPL-3.0-only"), _make_dep("commons", "Apache-2.0")]
        analysis = analyze_dependency_tree(graph, deps)
        assert analysis.compliance_status is ComplianceStatus.WARNINGS
        assert [c.severity for c in analysis.conflicts] == [ConflictSeverity.WARNING]

    def test_high_effort_requires_review(self, graph: KnowledgeGraph) -> None:
        analysis = analyze_dependency_tree(graph, [_make_dep("app", "GPL-3.0-only")])
        assert analysis.conflicts == []
        assert analysis.compliance_status is ComplianceStatus.REQUIRES_REVIEW

    def test_unresolved_requires_review(self, graph: KnowledgeGraph) -> None:
        deps = [
            _make_dep("left-pad", "MIT"),
            _make_dep("mystery", None),
            _make_dep("vendor", "NOASSERTION"),
            _make_dep("custom", "LicenseRef-Acme"),
        ]
        analysis = analyze_dependency_tree(graph, deps)
        assert analysis.compliance_status is ComplianceStatus.REQUIRES_REVIEW
        assert analysis.total_dependencies == 4
        assert len(analysis.unresolved) == 3
        assert analysis.unique_licenses == ["MIT"]
        curate = [r for r in analysis.recommendations if r.type is RecommendationType.CURATE_LICENSE]
        assert len(curate) == 1
        assert "pkg:custom@1.0.0" in curate[0].affected_dependencies


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------


class TestConflicts:
    def test_input_order_does_not_matter(self, graph: KnowledgeGraph) -> None:
        forward = [_make_dep("commons", "Apache-2.0"), _make_dep("app", "GPL-3.0-only")]
        backward = list(reversed(forward))
        a = find_conflicts(graph, forward)
        b = find_conflicts(graph, backward)
        assert [(c.license_a, c.license_b, c.level) for c in a] == [
            (c.license_a, c.license_b, c.level) for c in b
        ]
        assert a[0].level is CompatibilityLevel.ONE_WAY
        assert a[0].license_a == "APACHE-2.0"

    @pytest.mark.parametrize(
        "licenses",
        [["GPL-2.0-or-later", "GPL-3.0-only"], ["GPL-3.0-only", "GPL-2.0-or-later"]],
    )
    def test_curated_edge_found_for_equal_strength(
        self, graph: KnowledgeGraph, licenses: list[str]
    ) -> None:
        deps = [_make_dep(f"lib{i}", lid) for i, lid in enumerate(licenses)]
        analysis = analyze_dependency_tree(graph, deps)
        assert [(c.license_a, c.license_b, c.level, c.severity) for c in analysis.conflicts] == [
            (
                "GPL-2.0-OR-LATER",
                "GPL-3.0-ONLY",
                CompatibilityLevel.CONDITIONAL,
                ConflictSeverity.WARNING,
            )
        ]
        assert analysis.compliance_status is ComplianceStatus.WARNINGS

    def test_reverse_forward_edge_beats_heuristic(self) -> None:
        # Same copyleft strength, and the id tie-break puts the edge target first.
        small = KnowledgeGraph()
        small.add_license(LicenseNode(id="B-LIC", spdx_id="B-LIC", name="B"))
        small.add_license(LicenseNode(id="A-LIC", spdx_id="A-LIC", name="A"))
        small.add_edge(
            CompatibilityEdge(
                source="B-LIC",
                target="A-LIC",
                level=CompatibilityLevel.ONE_WAY,
                direction=CompatibilityDirection.FORWARD,
            )
        )
        for order in (["A-LIC", "B-LIC"], ["B-LIC", "A-LIC"]):
            conflicts = find_conflicts(small, [_make_dep(lid.lower(), lid) for lid in order])
            assert [(c.license_a, c.license_b, c.level) for c in conflicts] == [
                ("B-LIC", "A-LIC", CompatibilityLevel.ONE_WAY)
            ]

    def test_find_conflicts_matches_analysis(self, graph: KnowledgeGraph) -> None:
        deps = [
            _make_dep("commons", "Apache-2.0"),
            _make_dep("readline", "GPL-2.0-only"),
            _make_dep("mongo", "AGPL-3.0-only"),
        ]
        analysis = analyze_dependency_tree(graph, deps)
        conflicts = find_conflicts(graph, deps)
        assert [(c.license_a, c.license_b, c.severity) for c in conflicts] == [
            (c.license_a, c.license_b, c.severity) for c in analysis.conflicts
        ]

    def test_internal_use_downgrades_block(self, graph: KnowledgeGraph) -> None:
        deps = [_make_dep("commons", "Apache-2.0"), _make_dep("readline", "GPL-2.0-only")]
        analysis = analyze_dependency_tree(graph, deps, graph.get_use_case("internal"))
        assert analysis.use_case == "internal"
        assert analysis.compliance_status is ComplianceStatus.WARNINGS
        assert analysis.conflicts[0].severity is ConflictSeverity.WARNING

    def test_blocking_recommendation_is_critical(self, graph: KnowledgeGraph) -> None:
        deps = [_make_dep("commons", "Apache-2.0"), _make_dep("readline", "GPL-2.0-only")]
        analysis = analyze_dependency_tree(graph, deps)
        resolve = [r for r in analysis.recommendations if r.type is RecommendationType.RESOLVE_CONFLICT]
        assert resolve[0].priority is RecommendationPriority.CRITICAL
        assert set(resolve[0].affected_dependencies) == {"pkg:commons@1.0.0", "pkg:readline@1.0.0"}


# ---------------------------------------------------------------------------
# Summary figures
# ---------------------------------------------------------------------------


class TestSummary:
    def test_distributions_count_dependencies(self, graph: KnowledgeGraph) -> None:
        deps = [
            _make_dep("a", "MIT"),
            _make_dep("b", "mit"),
            _make_dep("c", "LGPL-2.1-only"),
        ]
        analysis = analyze_dependency_tree(graph, deps)
        assert analysis.license_distribution == {"MIT": 2, "LGPL-2.1-ONLY": 1}
        assert analysis.category_distribution == {
            LicenseCategory.PERMISSIVE: 2,
            LicenseCategory.WEAK_COPYLEFT: 1,
        }

    def test_dominant_license_is_most_restrictive(self, graph: KnowledgeGraph) -> None:
        deps = [
            _make_dep("a", "AGPL-3.0-only"),
            _make_dep("b", "MIT"),
            _make_dep("c", "LGPL-3.0-only"),
            _make_dep("d", "GPL-3.0-only"),
        ]
        assert analyze_dependency_tree(graph, deps).dominant_license == "AGPL-3.0-ONLY"

    def test_empty_tree(self, graph: KnowledgeGraph) -> None:
        analysis = analyze_dependency_tree(graph, [])
        assert analysis.dominant_license is None
        assert analysis.compliance_status is ComplianceStatus.COMPLIANT
        assert analysis.risk_score == 0.0

    def test_risk_score_is_clamped(self, graph: KnowledgeGraph) -> None:
        deps = [
            _make_dep("a", "Apache-2.0"),
            _make_dep("b", "GPL-2.0-only"),
            _make_dep("c", "AGPL-3.0-only"),
            _make_dep("d", "AGPL-3.0-or-later"),
            _make_dep("e", "GPL-3.0-or-later"),
        ]
        score = analyze_dependency_tree(graph, deps).risk_score
        assert 0.0 <= score <= 1.0
        assert score == 1.0
