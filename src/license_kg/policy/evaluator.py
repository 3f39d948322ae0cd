"""Policy rule evaluation over a list of dependencies."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timezone
from fnmatch import fnmatchcase
from typing import Protocol

from license_kg.config import is_unresolved_marker
from license_kg.policy.classifier import LicenseClassifier
from license_kg.policy.loader import validate_policy
from license_kg.policy.models import (
    ExemptedDependency,
    Exemption,
    FindingExplanation,
    PolicyConfig,
    PolicyDependency,
    PolicyFinding,
    PolicyReport,
    PolicyRule,
    PolicySettings,
    PolicySummary,
    RuleAction,
    Severity,
)

logger = logging.getLogger(__name__)

class FindingExplainer(Protocol):
    def explain(self, finding: PolicyFinding) -> FindingExplanation | None: ...

def effective_license(dependency: PolicyDependency, settings: PolicySettings) -> str | None:
    """Return the license the policy should judge *dependency* by.

    The concluded (curated) license wins; otherwise an AI suggestion is used
    when suggestions are accepted and its confidence reaches the configured
    minimum.  ``None`` means the license is unresolved.
    """
    if not is_unresolved_marker(dependency.concluded_license):
        return dependency.concluded_license.strip()

    suggestion = dependency.ai_suggestion
    ai = settings.ai_suggestions
    if (
        suggestion is not None
        and ai.accept
        and suggestion.confidence.rank >= ai.min_confidence.rank
        and not is_unresolved_marker(suggestion.license)
    ):
        return suggestion.license.strip()
    return None

def find_exemption(dependency_id: str, exemptions: Sequence[Exemption]) -> Exemption | None:
    """Return the first exemption whose pattern matches *dependency_id*."""
    for exemption in exemptions:
        if fnmatchcase(dependency_id, exemption.dependency):
            return exemption
    return None

def render_message(rule: PolicyRule, dependency: PolicyDependency, license_id: str | None) -> str:
    template = rule.message or f"{rule.name}: {{{{dependency}}}} ({{{{license}}}})"
    return (
        template.replace("{{dependency}}", dependency.label)
        .replace("{{dependencyId}}", dependency.id)
        .replace("{{license}}", license_id or "unresolved")
    )

def _listed(license_id: str | None, licenses: Sequence[str]) -> bool:
    if license_id is None:
        return False
    key = license_id.strip().upper()
    return any(key == item.strip().upper() for item in licenses)

def rule_matches(
    rule: PolicyRule,
    classifier: LicenseClassifier,
    dependency: PolicyDependency,
    license_id: str | None,
) -> bool:
    """Return ``True`` if *rule* targets *dependency* judged by *license_id*.

    Dependencies outside the rule's scopes never match.  Otherwise the
    category is checked first, then the denylist, then the allowlist.  An
    unresolved license is on no list, so it matches every allowlist.
    """
    if rule.scopes and dependency.scope not in rule.scopes:
        return False
    if rule.category is not None:
        return classifier.matches(rule.category, license_id)
    if rule.denylist is not None:
        return _listed(license_id, rule.denylist)
    if rule.allowlist is not None:
        return not _listed(license_id, rule.allowlist)
    return False

class PolicyEvaluator:
    """Evaluate dependencies against a :class:`PolicyConfig`.

    The policy is validated on every evaluation, before any finding is
    produced.  An optional *explainer* annotates findings with knowledge
    graph context; it never changes whether the report passes.
    """

    def __init__(self, policy: PolicyConfig, explainer: FindingExplainer | None = None) -> None:
        self.policy = policy
        self.explainer = explainer

    def evaluate(self, dependencies: Sequence[PolicyDependency]) -> PolicyReport:
        policy = self.policy
        validate_policy(policy)

        classifier = LicenseClassifier(policy)
        rules = policy.enabled_rules
        findings: list[PolicyFinding] = []
        exempted: list[ExemptedDependency] = []
        categories: Counter[str] = Counter()

        for dep in dependencies:
            exemption = find_exemption(dep.id, policy.settings.exemptions)
            if exemption is not None:
                logger.debug("Dependency %s exempted by %r", dep.id, exemption.dependency)
                exempted.append(
                    ExemptedDependency(
                        dependency_id=dep.id,
                        pattern=exemption.dependency,
                        reason=exemption.reason,
                        approved_by=exemption.approved_by,
                    )
                )
                continue

            license_id = effective_license(dep, policy.settings)
            primary = classifier.primary_category(license_id)
            categories[primary] += 1

            for rule in rules:
                if rule.action == RuleAction.ALLOW:
                    continue
                if not rule_matches(rule, classifier, dep, license_id):
                    continue
                finding = PolicyFinding(
                    rule_id=rule.id,
                    rule_name=rule.name,
                    severity=rule.severity,
                    action=rule.action,
                    dependency_id=dep.id,
                    dependency_name=dep.name,
                    dependency_version=dep.version,
                    license=license_id,
                    category=rule.category or primary,
                    message=render_message(rule, dep, license_id),
                    scope=dep.scope,
                )
                if self.explainer is not None:
                    finding.explanation = self.explainer.explain(finding)
                findings.append(finding)

        summary = PolicySummary(
            total_dependencies=len(dependencies),
            evaluated=len(dependencies) - len(exempted),
            exempted=len(exempted),
            error_count=sum(1 for f in findings if f.severity == Severity.ERROR),
            warning_count=sum(1 for f in findings if f.severity == Severity.WARNING),
            info_count=sum(1 for f in findings if f.severity == Severity.INFO),
            category_distribution=dict(categories),
        )
        fail_on = policy.settings.fail_on
        passed = not (
            (fail_on.errors and summary.error_count > 0)
            or (fail_on.warnings and summary.warning_count > 0)
        )
        logger.info(
            "Policy %r: %d evaluated, %d errors, %d warnings, passed=%s",
            policy.name,
            summary.evaluated,
            summary.error_count,
            summary.warning_count,
            passed,
        )
        return PolicyReport(
            policy_name=policy.name,
            policy_version=policy.version,
            evaluated_at=datetime.now(tz=timezone.utc).isoformat(),
            passed=passed,
            summary=summary,
            findings=findings,
            exempted=exempted,
        )

def evaluate(
    policy: PolicyConfig,
    dependencies: Sequence[PolicyDependency],
    explainer: FindingExplainer | None = None,
) -> PolicyReport:
    """Evaluate *dependencies* against *policy*; see :class:`PolicyEvaluator`."""
    return PolicyEvaluator(policy, explainer).evaluate(dependencies)
