"""Dependency tree analysis.

Resolves the license of every dependency against the graph, checks every
pair of distinct licenses for compatibility, aggregates their obligations
and derives a compliance status, risk score and recommendations.
:func:`find_conflicts` is the same computation trimmed to its conflicts.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field

from license_kg.config import is_unresolved_marker
from license_kg.core.compatibility import check_compatibility
from license_kg.core.graph.graph import KnowledgeGraph
from license_kg.core.graph.model import (
    CompatibilityLevel,
    CopyleftStrength,
    EffortLevel,
    LicenseCategory,
    LicenseNode,
    UseCaseNode,
    normalize_license_id,
)
from license_kg.core.obligations import aggregate_obligations
from license_kg.core.results import (
    AggregatedObligations,
    CompatibilityResult,
    ComplianceStatus,
    ConflictSeverity,
    DependencyLicense,
    DependencyTreeAnalysis,
    LicenseConflict,
    Recommendation,
    RecommendationPriority,
    RecommendationType,
    UnresolvedLicense,
)

logger = logging.getLogger(__name__)

_BLOCKING_WEIGHT = 0.3
_WARNING_WEIGHT = 0.1
_VERY_HIGH_EFFORT_WEIGHT = 0.15
_HIGH_EFFORT_WEIGHT = 0.08
_STRONG_COPYLEFT_WEIGHT = 0.05

@dataclass
class _ResolvedTree:
    """Licenses of a dependency tree resolved against the graph."""

    # license id -> dependency ids, in first-seen order
    by_license: dict[str, list[str]] = field(default_factory=dict)
    licenses: dict[str, LicenseNode] = field(default_factory=dict)
    unresolved: list[UnresolvedLicense] = field(default_factory=list)

    def ladder_order(self) -> list[str]:
        """License ids ordered by copyleft strength, weakest first, then by id."""
        return sorted(
            self.by_license,
            key=lambda lid: (self.licenses[lid].copyleft_strength.propagation_level, lid),
        )

def _resolve(graph: KnowledgeGraph, dependencies: Sequence[DependencyLicense]) -> _ResolvedTree:
    tree = _ResolvedTree()
    for dep in dependencies:
        if is_unresolved_marker(dep.license):
            tree.unresolved.append(
                UnresolvedLicense(dep.dependency_id, dep.license, "no license declared")
            )
            continue
        lid = normalize_license_id(dep.license or "")
        node = graph.get_license(lid)
        if node is None:
            logger.warning("Unresolved license %r on %s", dep.license, dep.dependency_id)
            tree.unresolved.append(
                UnresolvedLicense(dep.dependency_id, dep.license, f"license not in graph: {lid}")
            )
            continue
        tree.licenses[lid] = node
        tree.by_license.setdefault(lid, []).append(dep.dependency_id)
    return tree

def _check_pair(
    graph: KnowledgeGraph,
    a: str,
    b: str,
    use_case: UseCaseNode | None,
) -> CompatibilityResult:
    """Check an unordered pair, preferring a curated edge in either direction."""
    result = check_compatibility(graph, a, b, use_case)
    if result.inferred:
        reverse = check_compatibility(graph, b, a, use_case)
        if not reverse.inferred:
            return reverse
    return result

def _compute_conflicts(
    graph: KnowledgeGraph,
    tree: _ResolvedTree,
    use_case: UseCaseNode | None,
) -> list[LicenseConflict]:
    conflicts: list[LicenseConflict] = []
    order = tree.ladder_order()
    pairs = [(a, b) for i, a in enumerate(order) for b in order[i + 1 :]]
    for a, b in pairs:
        result = _check_pair(graph, a, b, use_case)
        if result.level == CompatibilityLevel.FULL:
            continue
        if result.level == CompatibilityLevel.INCOMPATIBLE:
            severity = ConflictSeverity.BLOCKING
        else:
            severity = ConflictSeverity.WARNING
        conflicts.append(
            LicenseConflict(
                license_a=result.license_a,
                license_b=result.license_b,
                severity=severity,
                level=result.level,
                reason=result.reason,
                conditions=list(result.conditions),
                dependencies_a=list(tree.by_license.get(result.license_a, [])),
                dependencies_b=list(tree.by_license.get(result.license_b, [])),
            )
        )
    return conflicts

def find_conflicts(
    graph: KnowledgeGraph,
    dependencies: Sequence[DependencyLicense],
    use_case: UseCaseNode | None = None,
) -> list[LicenseConflict]:
    """Return only the license conflicts of *dependencies*.

    Shares the resolution and pairing logic of :func:`analyze_dependency_tree`.
    """
    return _compute_conflicts(graph, _resolve(graph, dependencies), use_case)

def analyze_dependency_tree(
    graph: KnowledgeGraph,
    dependencies: Sequence[DependencyLicense],
    use_case: UseCaseNode | None = None,
) -> DependencyTreeAnalysis:
    """Analyse the licenses of a whole dependency tree.

    Licenses are resolved by exact canonical match; anything that does not
    resolve becomes an :class:`UnresolvedLicense` note rather than an error.
    Distinct licenses are paired weakest-into-strongest on the copyleft
    ladder. When no curated edge covers a pair in that direction the reverse
    direction is tried before falling back to the copyleft heuristic, so a
    forward rule such as ``GPL-2.0-OR-LATER -> GPL-3.0-ONLY`` is found
    regardless of input order.

    Args:
        graph: The knowledge graph to consult.
        dependencies: The dependency tree, flattened.
        use_case: Optional deployment scenario.

    Returns:
        A :class:`DependencyTreeAnalysis`.
    """
    tree = _resolve(graph, dependencies)
    conflicts = _compute_conflicts(graph, tree, use_case)
    obligations = aggregate_obligations(graph, list(tree.by_license), use_case)

    license_distribution = {lid: len(deps) for lid, deps in tree.by_license.items()}
    category_distribution: Counter[LicenseCategory] = Counter()
    for lid, deps in tree.by_license.items():
        category_distribution[tree.licenses[lid].category] += len(deps)

    analysis = DependencyTreeAnalysis(
        total_dependencies=len(dependencies),
        unique_licenses=list(tree.by_license),
        license_distribution=license_distribution,
        category_distribution=dict(category_distribution),
        conflicts=conflicts,
        unresolved=tree.unresolved,
        aggregated_obligations=obligations,
        compliance_status=_compliance_status(conflicts, obligations, tree.unresolved),
        dominant_license=_dominant_license(tree),
        recommendations=_recommendations(conflicts, obligations, tree.unresolved),
        risk_score=_risk_score(conflicts, obligations, tree),
        use_case=use_case.id if use_case else None,
    )
    logger.info(
        "Analysed %d dependencies: %d licenses, %d conflicts, status %s",
        analysis.total_dependencies,
        len(analysis.unique_licenses),
        len(conflicts),
        analysis.compliance_status.value,
    )
    return analysis

def _dominant_license(tree: _ResolvedTree) -> str | None:
    """Return the most restrictive license: strongest copyleft, then highest risk."""
    if not tree.licenses:
        return None
    return max(
        tree.by_license,
        key=lambda lid: (
            tree.licenses[lid].copyleft_strength.propagation_level * 10
            + tree.licenses[lid].category.risk_level
        ),
    )

def _compliance_status(
    conflicts: list[LicenseConflict],
    obligations: AggregatedObligations,
    unresolved: list[UnresolvedLicense],
) -> ComplianceStatus:
    if any(c.severity == ConflictSeverity.BLOCKING for c in conflicts):
        return ComplianceStatus.BLOCKED
    if conflicts:
        return ComplianceStatus.WARNINGS
    high_effort = any(ob.effort.level >= EffortLevel.HIGH.level for ob in obligations.obligations)
    if high_effort or unresolved:
        return ComplianceStatus.REQUIRES_REVIEW
    return ComplianceStatus.COMPLIANT

def _risk_score(
    conflicts: list[LicenseConflict],
    obligations: AggregatedObligations,
    tree: _ResolvedTree,
) -> float:
    score = 0.0
    for conflict in conflicts:
        if conflict.severity == ConflictSeverity.BLOCKING:
            score += _BLOCKING_WEIGHT
        elif conflict.severity == ConflictSeverity.WARNING:
            score += _WARNING_WEIGHT
    for ob in obligations.obligations:
        if ob.effort == EffortLevel.VERY_HIGH:
            score += _VERY_HIGH_EFFORT_WEIGHT
        elif ob.effort == EffortLevel.HIGH:
            score += _HIGH_EFFORT_WEIGHT
    for node in tree.licenses.values():
        if node.copyleft_strength in (CopyleftStrength.STRONG, CopyleftStrength.NETWORK):
            score += _STRONG_COPYLEFT_WEIGHT
    return round(min(max(score, 0.0), 1.0), 4)

def _recommendations(
    conflicts: list[LicenseConflict],
    obligations: AggregatedObligations,
    unresolved: list[UnresolvedLicense],
) -> list[Recommendation]:
    recs: list[Recommendation] = []
    for conflict in conflicts:
        blocking = conflict.severity == ConflictSeverity.BLOCKING
        recs.append(
            Recommendation(
                type=RecommendationType.RESOLVE_CONFLICT,
                priority=RecommendationPriority.CRITICAL if blocking else RecommendationPriority.HIGH,
                title=f"Resolve {conflict.license_a} / {conflict.license_b} conflict",
                description=conflict.reason,
                affected_dependencies=conflict.dependencies_a + conflict.dependencies_b,
            )
        )
    for ob in obligations.obligations:
        if ob.effort.level < EffortLevel.HIGH.level:
            continue
        recs.append(
            Recommendation(
                type=RecommendationType.FULFILL_OBLIGATION,
                priority=RecommendationPriority.MEDIUM,
                title=f"Fulfil obligation: {ob.name}",
                description=f"{ob.description} (required by {', '.join(ob.licenses)})",
            )
        )
    if unresolved:
        recs.append(
            Recommendation(
                type=RecommendationType.CURATE_LICENSE,
                priority=RecommendationPriority.MEDIUM,
                title=f"Curate {len(unresolved)} unresolved license(s)",
                description="Dependencies without a recognised license were left out of the analysis",
                affected_dependencies=[u.dependency_id for u in unresolved],
            )
        )
    return recs
