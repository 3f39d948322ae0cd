"""Result types returned by the compatibility, obligation and analysis engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from license_kg.core.graph.model import (
    CompatibilityEdge,
    CompatibilityLevel,
    EffortLevel,
    LicenseCategory,
    LicenseNode,
    ObligationNode,
    ObligationScope,
    RightNode,
    TriggerCondition,
)

# ---------------------------------------------------------------------------
# Compatibility
# ---------------------------------------------------------------------------

@dataclass
class CompatibilityResult:
    """Answer to "can code under *license_a* be combined with *license_b*?".

    ``inferred`` is ``True`` when no curated edge exists and the answer comes
    from the copyleft-strength heuristic; ``inferred_rule`` then names the
    heuristic branch taken.
    """

    license_a: str
    license_b: str
    compatible: bool
    level: CompatibilityLevel
    reason: str
    conditions: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    inferred: bool = False
    inferred_rule: str | None = None
    dominant_license: str | None = None
    use_case: str | None = None

@dataclass
class CompatibilityStep:
    """One hop of a compatibility path, in traversal order."""

    from_license: str
    to_license: str
    edge: CompatibilityEdge

    @property
    def level(self) -> CompatibilityLevel:
        return self.edge.level

@dataclass
class CompatibilityPath:
    source: str
    target: str
    licenses: list[str]
    steps: list[CompatibilityStep]
    level: CompatibilityLevel
    conditions: list[str] = field(default_factory=list)

    @property
    def edges(self) -> list[CompatibilityEdge]:
        return [step.edge for step in self.steps]

    @property
    def hops(self) -> int:
        return len(self.steps)

# ---------------------------------------------------------------------------
# Obligations
# ---------------------------------------------------------------------------

@dataclass
class ObligationWithScope:
    """An obligation as imposed by one license, with that license's trigger and scope."""

    obligation: ObligationNode
    trigger: TriggerCondition
    scope: ObligationScope
    license_id: str

@dataclass
class ObligationForUseCase:
    """An obligation that applies to a license under a given use case.

    ``adjusted_effort`` is the obligation's base effort rescaled for the
    deployment scenario; ``reason`` says why the obligation is live.
    """

    obligation: ObligationNode
    trigger: TriggerCondition
    scope: ObligationScope
    license_id: str
    use_case: str
    adjusted_effort: EffortLevel
    reason: str

@dataclass
class ObligationSource:
    license_id: str
    license_name: str
    trigger: TriggerCondition
    scope: ObligationScope

@dataclass
class AggregatedObligation:
    """One obligation merged across every license that imposes it.

    ``triggers`` is ``(ALWAYS,)`` whenever any contributor triggers always,
    otherwise the distinct contributor triggers in first-seen order.
    ``scope`` is the broadest contributor scope.
    """

    obligation_id: str
    name: str
    description: str
    effort: EffortLevel
    triggers: tuple[TriggerCondition, ...]
    scope: ObligationScope
    licenses: list[str] = field(default_factory=list)
    sources: list[ObligationSource] = field(default_factory=list)
    examples: list[str] = field(default_factory=list)

@dataclass
class AggregatedObligations:
    obligations: list[AggregatedObligation] = field(default_factory=list)
    total_licenses: int = 0
    highest_effort: EffortLevel | None = None

    @property
    def unique_obligation_count(self) -> int:
        return len(self.obligations)

    @property
    def obligation_ids(self) -> set[str]:
        return {ob.obligation_id for ob in self.obligations}

# ---------------------------------------------------------------------------
# Dependency analysis
# ---------------------------------------------------------------------------

@dataclass
class DependencyLicense:
    """A dependency of the analysed build together with its declared license."""

    dependency_id: str
    name: str
    version: str
    license: str | None
    is_transitive: bool = False
    scope: str = "compile"

@dataclass
class UnresolvedLicense:
    """Data-quality note for a dependency whose license is not in the graph."""

    dependency_id: str
    license: str | None
    reason: str

class ConflictSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    BLOCKING = "blocking"

@dataclass
class LicenseConflict:
    license_a: str
    license_b: str
    severity: ConflictSeverity
    level: CompatibilityLevel
    reason: str
    conditions: list[str] = field(default_factory=list)
    dependencies_a: list[str] = field(default_factory=list)
    dependencies_b: list[str] = field(default_factory=list)

class ComplianceStatus(Enum):
    COMPLIANT = "compliant"
    WARNINGS = "warnings"
    REQUIRES_REVIEW = "requires_review"
    BLOCKED = "blocked"

class RecommendationType(Enum):
    RESOLVE_CONFLICT = "resolve_conflict"
    FULFILL_OBLIGATION = "fulfill_obligation"
    CURATE_LICENSE = "curate_license"

class RecommendationPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

@dataclass
class Recommendation:
    type: RecommendationType
    priority: RecommendationPriority
    title: str
    description: str
    affected_dependencies: list[str] = field(default_factory=list)

@dataclass
class DependencyTreeAnalysis:
    """Aggregate license picture of a dependency tree."""

    total_dependencies: int
    unique_licenses: list[str]
    license_distribution: dict[str, int]
    category_distribution: dict[LicenseCategory, int]
    conflicts: list[LicenseConflict]
    unresolved: list[UnresolvedLicense]
    aggregated_obligations: AggregatedObligations
    compliance_status: ComplianceStatus
    dominant_license: str | None = None
    recommendations: list[Recommendation] = field(default_factory=list)
    risk_score: float = 0.0
    use_case: str | None = None

    @property
    def blocking_conflicts(self) -> list[LicenseConflict]:
        return [c for c in self.conflicts if c.severity == ConflictSeverity.BLOCKING]

# ---------------------------------------------------------------------------
# Graph-level views
# ---------------------------------------------------------------------------

@dataclass
class LicenseDetails:
    """Everything the graph knows about a single license."""

    license: LicenseNode
    obligations: list[ObligationWithScope]
    rights: list[RightNode]
    compatible_with: list[str]
    incompatible_with: list[str]

@dataclass
class GraphStatistics:
    total_licenses: int
    total_obligations: int
    total_rights: int
    total_conditions: int
    total_limitations: int
    total_use_cases: int
    total_edges: int
    total_compatibility_edges: int
    total_obligation_edges: int
    total_right_edges: int
    licenses_by_category: dict[LicenseCategory, int]
    license_families: list[str]
    last_loaded: str | None = None
