"""Obligation and right aggregation across a set of licenses."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from license_kg.core.compatibility import is_network_copyleft
from license_kg.core.graph.graph import KnowledgeGraph
from license_kg.core.graph.model import (
    CopyleftStrength,
    DistributionType,
    EffortLevel,
    LicenseNode,
    LinkingType,
    ObligationScope,
    RightNode,
    TriggerCondition,
    UseCaseNode,
    normalize_license_id,
)
from license_kg.core.results import (
    AggregatedObligation,
    AggregatedObligations,
    ObligationForUseCase,
    ObligationSource,
    ObligationWithScope,
)

logger = logging.getLogger(__name__)

_LINKING_TRIGGERS: dict[TriggerCondition, LinkingType] = {
    TriggerCondition.ON_STATIC_LINKING: LinkingType.STATIC,
    TriggerCondition.ON_DYNAMIC_LINKING: LinkingType.DYNAMIC,
}

_NETWORK_TRIGGERS = frozenset(
    {
        TriggerCondition.ALWAYS,
        TriggerCondition.ON_NETWORK_USE,
        TriggerCondition.ON_MODIFICATION,
        TriggerCondition.CONDITIONAL,
    }
)

def trigger_applies(
    trigger: TriggerCondition,
    use_case: UseCaseNode | None,
    license_node: LicenseNode | None = None,
) -> bool:
    """Return ``True`` if an obligation with *trigger* is live under *use_case*.

    Without a use case every trigger applies.  Internal use keeps only
    ``ALWAYS`` and ``CONDITIONAL``.  Network deployment adds network use and
    modification, except that a network-copyleft *license_node* keeps every
    obligation there.  Every other distribution keeps everything except
    network use, and the linking triggers only when the linking type matches.
    """
    if use_case is None:
        return True
    distribution = use_case.distribution_type
    if distribution == DistributionType.NONE:
        return trigger in (TriggerCondition.ALWAYS, TriggerCondition.CONDITIONAL)
    if distribution == DistributionType.NETWORK:
        if license_node is not None and is_network_copyleft(license_node):
            return True
        return trigger in _NETWORK_TRIGGERS
    if trigger == TriggerCondition.ON_NETWORK_USE:
        return False
    required_linking = _LINKING_TRIGGERS.get(trigger)
    if required_linking is not None and use_case.linking_type is not None:
        return use_case.linking_type == required_linking
    return True

def get_obligations_for_license(
    graph: KnowledgeGraph, license_id: str
) -> list[ObligationWithScope]:
    """Return the obligations *license_id* imposes, ordered by obligation id.

    Unknown licenses and edges to unknown obligations yield nothing.
    """
    lid = normalize_license_id(license_id)
    if graph.get_license(lid) is None:
        return []
    found = [
        ObligationWithScope(
            obligation=obligation,
            trigger=edge.trigger,
            scope=edge.scope,
            license_id=lid,
        )
        for edge, obligation in graph.get_obligation_edges(lid)
    ]
    return sorted(found, key=lambda item: item.obligation.id)

def get_rights_for_license(graph: KnowledgeGraph, license_id: str) -> list[RightNode]:
    """Return the rights *license_id* grants, ordered by right id."""
    if graph.get_license(license_id) is None:
        return []
    rights = [right for _, right in graph.get_right_edges(license_id)]
    return sorted(rights, key=lambda right: right.id)

_INTERNAL_EFFORT = {
    EffortLevel.HIGH: EffortLevel.MEDIUM,
    EffortLevel.VERY_HIGH: EffortLevel.HIGH,
}

_EMBEDDED_EFFORT = {
    EffortLevel.MEDIUM: EffortLevel.HIGH,
    EffortLevel.HIGH: EffortLevel.VERY_HIGH,
}

def adjust_effort(
    effort: EffortLevel, use_case: UseCaseNode, license_node: LicenseNode
) -> EffortLevel:
    """Rescale *effort* for the deployment scenario of *use_case*.

    Internal use lowers high efforts by one step, a network service under a
    network-copyleft license is always ``VERY_HIGH``, and embedding any
    copyleft license raises medium and high efforts by one step.
    """
    distribution = use_case.distribution_type
    if distribution == DistributionType.NONE:
        return _INTERNAL_EFFORT.get(effort, effort)
    if distribution == DistributionType.NETWORK and is_network_copyleft(license_node):
        return EffortLevel.VERY_HIGH
    if (
        distribution == DistributionType.EMBEDDED
        and license_node.copyleft_strength != CopyleftStrength.NONE
    ):
        return _EMBEDDED_EFFORT.get(effort, effort)
    return effort

def _applicability_reason(
    trigger: TriggerCondition, use_case: UseCaseNode, license_node: LicenseNode
) -> str:
    distribution = use_case.distribution_type
    if distribution == DistributionType.NONE:
        return "Applies to internal use (no distribution)"
    if distribution == DistributionType.NETWORK and is_network_copyleft(license_node):
        return "Network copyleft: users of the service must be able to obtain the source"
    if (
        distribution == DistributionType.EMBEDDED
        and license_node.copyleft_strength == CopyleftStrength.STRONG
    ):
        return "Copyleft applies to embedded devices: provide source or a written offer"
    if trigger == TriggerCondition.ON_DISTRIBUTION:
        return f"Triggered by {use_case.name.lower()}"
    return "Standard license obligation"

def get_obligations_for_use_case(
    graph: KnowledgeGraph, license_id: str, use_case: UseCaseNode
) -> list[ObligationForUseCase]:
    """Return the obligations of *license_id* that are live under *use_case*.

    Filtering follows :func:`trigger_applies`; each item carries the effort
    rescaled by :func:`adjust_effort` and a short applicability reason.
    """
    license_node = graph.get_license(license_id)
    if license_node is None:
        return []
    return [
        ObligationForUseCase(
            obligation=item.obligation,
            trigger=item.trigger,
            scope=item.scope,
            license_id=item.license_id,
            use_case=use_case.id,
            adjusted_effort=adjust_effort(item.obligation.effort, use_case, license_node),
            reason=_applicability_reason(item.trigger, use_case, license_node),
        )
        for item in get_obligations_for_license(graph, license_node.id)
        if trigger_applies(item.trigger, use_case, license_node)
    ]

def aggregate_obligations(
    graph: KnowledgeGraph,
    license_ids: Iterable[str],
    use_case: UseCaseNode | None = None,
) -> AggregatedObligations:
    """Merge the obligations of every license in *license_ids*.

    Obligations are grouped by id.  For each group the triggers collapse to
    ``(ALWAYS,)`` when any contributor always applies, the scope widens to
    the broadest contributor scope, and every contributing license is
    recorded.  Adding a license can only add obligations or widen them.

    Parameters
    ----------
    graph:
        The knowledge graph to consult.
    license_ids:
        License ids in any casing; unknown ids and duplicates are ignored.
    use_case:
        Optional scenario; obligations whose trigger does not apply to it
        (see :func:`trigger_applies`) are left out.

    Returns
    -------
    AggregatedObligations
        Obligations sorted by effort (highest first), then by id.
    """
    distinct: list[str] = []
    for license_id in license_ids:
        lid = normalize_license_id(license_id)
        if graph.get_license(lid) is not None and lid not in distinct:
            distinct.append(lid)

    merged: dict[str, AggregatedObligation] = {}
    for lid in distinct:
        license_node = graph.get_license(lid)
        for item in get_obligations_for_license(graph, lid):
            if not trigger_applies(item.trigger, use_case, license_node):
                continue
            obligation = item.obligation
            source = ObligationSource(
                license_id=lid,
                license_name=license_node.name if license_node else lid,
                trigger=item.trigger,
                scope=item.scope,
            )
            existing = merged.get(obligation.id)
            if existing is None:
                merged[obligation.id] = AggregatedObligation(
                    obligation_id=obligation.id,
                    name=obligation.name,
                    description=obligation.description,
                    effort=obligation.effort,
                    triggers=_merge_triggers((), item.trigger),
                    scope=item.scope,
                    licenses=[lid],
                    sources=[source],
                    examples=list(obligation.examples),
                )
                continue
            existing.triggers = _merge_triggers(existing.triggers, item.trigger)
            existing.scope = _broadest_scope(existing.scope, item.scope)
            if lid not in existing.licenses:
                existing.licenses.append(lid)
            existing.sources.append(source)

    obligations = sorted(
        merged.values(), key=lambda ob: (-ob.effort.level, ob.obligation_id)
    )
    highest = obligations[0].effort if obligations else None
    logger.debug(
        "Aggregated %d obligations across %d licenses", len(obligations), len(distinct)
    )
    return AggregatedObligations(
        obligations=obligations,
        total_licenses=len(distinct),
        highest_effort=highest,
    )

def _merge_triggers(
    current: tuple[TriggerCondition, ...], trigger: TriggerCondition
) -> tuple[TriggerCondition, ...]:
    if TriggerCondition.ALWAYS in current or trigger == TriggerCondition.ALWAYS:
        return (TriggerCondition.ALWAYS,)
    if trigger in current:
        return current
    return current + (trigger,)

def _broadest_scope(a: ObligationScope, b: ObligationScope) -> ObligationScope:
    return a if a.breadth >= b.breadth else b
