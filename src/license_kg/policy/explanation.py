"""Knowledge-graph explanations for policy findings."""

from __future__ import annotations

import logging

from license_kg.core.graph.model import EffortLevel
from license_kg.core.service import LicenseGraphService
from license_kg.policy.models import ExplanationType, FindingExplanation, PolicyFinding, RuleAction

logger = logging.getLogger(__name__)

_RISKY_LEVEL = 3
_PROPAGATING_LEVEL = 2
_LINKED_SCOPES = frozenset({"compile", "runtime", "implementation", "api"})

class ExplanationGenerator:
    """Annotate findings with what the graph knows about their license.

    Explains why a denied license is a problem, which obligations it
    carries, and whether its copyleft terms reach the rest of the build.
    """

    def __init__(self, service: LicenseGraphService) -> None:
        self.service = service

    def explain(self, finding: PolicyFinding) -> FindingExplanation:
        if finding.license is None:
            return FindingExplanation(
                license_id="unresolved",
                summary=f"No license could be determined for {finding.dependency_name}",
                kinds=[ExplanationType.DATA_QUALITY],
                notes=["Curate the license or accept an AI suggestion to evaluate it"],
            )

        details = self.service.get_license_details(finding.license)
        if details is None:
            logger.debug("No graph entry for %s", finding.license)
            return FindingExplanation(
                license_id=finding.license,
                summary=f"{finding.license} is not in the license knowledge graph",
                kinds=[ExplanationType.DATA_QUALITY],
            )

        lic = details.license
        kinds: list[ExplanationType] = []
        notes: list[str] = []

        if finding.action == RuleAction.DENY:
            kinds.append(ExplanationType.WHY_PROHIBITED)
            notes.append(
                f"Policy rule '{finding.rule_name}' denies {finding.license} ({finding.category})"
            )
        if lic.is_copyleft:
            kinds.append(ExplanationType.COPYLEFT_RISK)
            notes.append(
                f"{lic.spdx_id} is {lic.category.display_name.lower()} "
                f"({lic.copyleft_strength.value} copyleft)"
            )
        if lic.category.risk_level >= _RISKY_LEVEL:
            kinds.append(ExplanationType.RISK_LEVEL)
            notes.append(f"Risk level {lic.category.risk_level} of 6")
        if (
            lic.copyleft_strength.propagation_level >= _PROPAGATING_LEVEL
            and finding.scope.lower() in _LINKED_SCOPES
        ):
            kinds.append(ExplanationType.PROPAGATION_RISK)
            notes.append(f"Copyleft terms may extend to code linked in {finding.scope} scope")
        if details.incompatible_with:
            notes.append(f"Incompatible with: {', '.join(details.incompatible_with)}")

        obligations = [
            f"{item.obligation.name} ({item.trigger.value}, {item.scope.value})"
            for item in details.obligations
        ]
        if any(item.obligation.effort.level >= EffortLevel.HIGH.level for item in details.obligations):
            kinds.append(ExplanationType.OBLIGATION_CONCERN)

        return FindingExplanation(
            license_id=lic.id,
            summary=f"{lic.name} ({lic.category.display_name})",
            kinds=kinds,
            obligations=obligations,
            notes=notes,
        )
