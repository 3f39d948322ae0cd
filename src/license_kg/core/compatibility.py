"""Compatibility engine: pairwise checks, matrices and multi-hop paths.

A check consults the curated edge for the pair first and falls back to a
copyleft-strength heuristic only when no edge exists.  Path search walks
curated edges only, breadth first, so the first path found has the fewest
hops.
"""

from __future__ import annotations

import logging
from collections import deque

from license_kg.config import DEFAULT_MAX_PATH_DEPTH
from license_kg.core.graph.graph import KnowledgeGraph
from license_kg.core.graph.model import (
    CompatibilityDirection,
    CompatibilityEdge,
    CompatibilityLevel,
    CopyleftStrength,
    DistributionType,
    LicenseCategory,
    LicenseNode,
    UseCaseNode,
    normalize_license_id,
)
from license_kg.core.graph.seed import NETWORK_DISCLOSURE
from license_kg.core.results import CompatibilityPath, CompatibilityResult, CompatibilityStep

logger = logging.getLogger(__name__)

HEURISTIC_NOTE = "Inferred from copyleft strength; no curated rule"

RULE_EQUAL_STRENGTH = "equal-copyleft-strength"
RULE_WEAKER_INTO_STRONGER = "weaker-into-stronger-copyleft"
RULE_STRONGER_INTO_WEAKER = "stronger-into-weaker-copyleft"

def is_network_copyleft(license_node: LicenseNode) -> bool:
    return (
        license_node.category == LicenseCategory.NETWORK_COPYLEFT
        or license_node.copyleft_strength == CopyleftStrength.NETWORK
    )

def check_compatibility(
    graph: KnowledgeGraph,
    license_a: str,
    license_b: str,
    use_case: UseCaseNode | None = None,
) -> CompatibilityResult:
    """Decide whether code under *license_a* can be combined with *license_b*.

    The pair is read as "*license_a* code incorporated into a work under
    *license_b*", which is what a ``FORWARD`` edge from *a* to *b* encodes.

    Args:
        graph: The knowledge graph to consult.
        license_a: License of the incoming code (any casing).
        license_b: License of the receiving work (any casing).
        use_case: Optional deployment scenario; adjusts conditions for
            network distribution and relaxes conflicts for internal use.

    Returns:
        A :class:`CompatibilityResult`.  Unknown ids yield level ``UNKNOWN``
        with ``compatible=False`` instead of raising.
    """
    a = normalize_license_id(license_a)
    b = normalize_license_id(license_b)
    node_a = graph.get_license(a)
    node_b = graph.get_license(b)

    missing = [lid for lid, node in ((a, node_a), (b, node_b)) if node is None]
    if missing:
        logger.debug("Compatibility check with unknown license(s): %s", ", ".join(missing))
        return CompatibilityResult(
            license_a=a,
            license_b=b,
            compatible=False,
            level=CompatibilityLevel.UNKNOWN,
            reason=f"license not found: {', '.join(missing)}",
            use_case=use_case.id if use_case else None,
        )

    if a == b:
        result = CompatibilityResult(
            license_a=a,
            license_b=b,
            compatible=True,
            level=CompatibilityLevel.FULL,
            reason="same license",
        )
    else:
        edge = graph.get_compatibility_edge(a, b)
        if edge is not None:
            result = _result_from_edge(a, b, edge)
        else:
            result = _infer_from_copyleft(node_a, node_b)

    if use_case is not None:
        _apply_use_case(result, (node_a, node_b), use_case)
    return result

def _result_from_edge(a: str, b: str, edge: CompatibilityEdge) -> CompatibilityResult:
    level = edge.level
    if level == CompatibilityLevel.FULL:
        reason = f"{a} and {b} are fully compatible"
    elif level == CompatibilityLevel.INCOMPATIBLE:
        reason = f"{a} and {b} are incompatible"
    else:
        reason = f"{a} can be used with {b} under conditions ({level.value})"

    dominant = None
    if edge.direction == CompatibilityDirection.FORWARD and level.is_compatible:
        dominant = edge.target

    return CompatibilityResult(
        license_a=a,
        license_b=b,
        compatible=level.is_compatible,
        level=level,
        reason=reason,
        conditions=list(edge.conditions),
        notes=[edge.notes] if edge.notes else [],
        sources=list(edge.sources),
        dominant_license=dominant,
    )

def _infer_from_copyleft(node_a: LicenseNode, node_b: LicenseNode) -> CompatibilityResult:
    rank_a = node_a.copyleft_strength.propagation_level
    rank_b = node_b.copyleft_strength.propagation_level

    if rank_a == rank_b:
        level = CompatibilityLevel.FULL
        rule = RULE_EQUAL_STRENGTH
        reason = (
            f"{node_a.id} and {node_b.id} share copyleft strength "
            f"{node_a.copyleft_strength.value}"
        )
        conditions: list[str] = []
        dominant = None
    elif rank_a < rank_b:
        level = CompatibilityLevel.ONE_WAY
        rule = RULE_WEAKER_INTO_STRONGER
        reason = f"{node_a.id} code can be included in a {node_b.id} work"
        conditions = [f"Derivative work must use the terms of {node_b.id}"]
        dominant = node_b.id
    else:
        level = CompatibilityLevel.INCOMPATIBLE
        rule = RULE_STRONGER_INTO_WEAKER
        reason = (
            f"{node_a.id} copyleft terms cannot be satisfied by a {node_b.id} work"
        )
        conditions = []
        dominant = None

    return CompatibilityResult(
        license_a=node_a.id,
        license_b=node_b.id,
        compatible=level.is_compatible,
        level=level,
        reason=reason,
        conditions=conditions,
        notes=[HEURISTIC_NOTE],
        inferred=True,
        inferred_rule=rule,
        dominant_license=dominant,
    )

def _apply_use_case(
    result: CompatibilityResult,
    participants: tuple[LicenseNode, LicenseNode],
    use_case: UseCaseNode,
) -> None:
    result.use_case = use_case.id
    distribution = use_case.distribution_type

    if distribution == DistributionType.NETWORK:
        network = [node.id for node in participants if is_network_copyleft(node)]
        if network:
            result.conditions.append(
                f"{NETWORK_DISCLOSURE}: provide source to network users "
                f"({', '.join(dict.fromkeys(network))})"
            )
    elif distribution == DistributionType.NONE and result.level == CompatibilityLevel.INCOMPATIBLE:
        result.level = CompatibilityLevel.CONDITIONAL
        result.compatible = True
        result.notes.append(
            f"Warning: {result.license_a} and {result.license_b} conflict, but copyleft "
            f"terms are not triggered by {use_case.name.lower()} without distribution"
        )

def check_compatibility_matrix(
    graph: KnowledgeGraph,
    licenses: list[str],
    use_case: UseCaseNode | None = None,
) -> list[CompatibilityResult]:
    """Check every unordered pair ``(i, j)``, ``i < j``, in input order.

    Returns ``n * (n - 1) / 2`` results for *n* input licenses; a license is
    never paired with itself.
    """
    results: list[CompatibilityResult] = []
    for i, license_a in enumerate(licenses):
        for license_b in licenses[i + 1 :]:
            results.append(check_compatibility(graph, license_a, license_b, use_case))
    return results

def find_compatibility_path(
    graph: KnowledgeGraph,
    source: str,
    target: str,
    max_depth: int = DEFAULT_MAX_PATH_DEPTH,
) -> CompatibilityPath | None:
    """Find the shortest chain of curated edges from *source* to *target*.

    Bidirectional edges are walked both ways, forward edges only from their
    source, and incompatible edges never.  Ties between equally short paths
    go to the earliest inserted edge.

    Args:
        graph: The knowledge graph to search.
        source: Starting license id.
        target: Destination license id.
        max_depth: Maximum number of hops.

    Returns:
        The path, whose ``level`` is the weakest level traversed, or ``None``
        if the ids are unknown or equal, or no path exists within
        *max_depth* hops.
    """
    start = normalize_license_id(source)
    goal = normalize_license_id(target)
    if start == goal or max_depth < 1:
        return None
    if graph.get_license(start) is None or graph.get_license(goal) is None:
        return None

    parents: dict[str, tuple[str, CompatibilityEdge]] = {}
    visited: set[str] = {start}
    queue: deque[tuple[str, int]] = deque([(start, 0)])

    while queue:
        current, depth = queue.popleft()
        if depth >= max_depth:
            continue
        for neighbor, edge in graph.compatibility_neighbors(current):
            if edge.level == CompatibilityLevel.INCOMPATIBLE or neighbor in visited:
                continue
            visited.add(neighbor)
            parents[neighbor] = (current, edge)
            if neighbor == goal:
                return _build_path(start, goal, parents)
            queue.append((neighbor, depth + 1))

    logger.debug("No compatibility path from %s to %s within %d hops", start, goal, max_depth)
    return None

def _build_path(
    start: str,
    goal: str,
    parents: dict[str, tuple[str, CompatibilityEdge]],
) -> CompatibilityPath:
    steps: list[CompatibilityStep] = []
    node = goal
    while node != start:
        previous, edge = parents[node]
        steps.append(CompatibilityStep(from_license=previous, to_license=node, edge=edge))
        node = previous
    steps.reverse()

    level = min((step.level for step in steps), key=lambda lvl: lvl.strength)
    conditions: list[str] = []
    for step in steps:
        for condition in step.edge.conditions:
            if condition not in conditions:
                conditions.append(condition)

    return CompatibilityPath(
        source=start,
        target=goal,
        licenses=[start] + [step.to_license for step in steps],
        steps=steps,
        level=level,
        conditions=conditions,
    )
