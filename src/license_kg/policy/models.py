"""Policy document and evaluation result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from license_kg.config import UNKNOWN_CATEGORY

class PolicyConfigError(ValueError):
    """Raised when a policy document is malformed or internally inconsistent."""

class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

class RuleAction(Enum):
    DENY = "deny"
    FLAG = "flag"
    ALLOW = "allow"

class ExplanationType(Enum):
    WHY_PROHIBITED = "why_prohibited"
    COPYLEFT_RISK = "copyleft_risk"
    OBLIGATION_CONCERN = "obligation_concern"
    RISK_LEVEL = "risk_level"
    PROPAGATION_RISK = "propagation_risk"
    DATA_QUALITY = "data_quality"

class Confidence(Enum):
    """Confidence of an AI license suggestion, lowest first."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return list(Confidence).index(self)

# ---------------------------------------------------------------------------
# Policy document
# ---------------------------------------------------------------------------

@dataclass
class LicenseCategoryDefinition:
    """A named set of license ids that rules can refer to."""

    name: str
    licenses: list[str] = field(default_factory=list)
    description: str = ""

@dataclass
class PolicyRule:
    """A policy rule.

    A rule targets licenses by ``category``, by ``denylist`` (license listed)
    or by ``allowlist`` (license not listed), checked in that order.  A
    non-empty ``scopes`` restricts the rule to dependencies in those scopes.
    """

    id: str
    name: str
    severity: Severity
    category: str | None = None
    action: RuleAction = RuleAction.DENY
    enabled: bool = True
    message: str = ""
    description: str = ""
    denylist: list[str] | None = None
    allowlist: list[str] | None = None
    scopes: list[str] = field(default_factory=list)

    @property
    def has_target(self) -> bool:
        return self.category is not None or self.denylist is not None or self.allowlist is not None

@dataclass
class AiSuggestionSettings:
    accept: bool = True
    min_confidence: Confidence = Confidence.HIGH

@dataclass
class FailOnSettings:
    errors: bool = True
    warnings: bool = False

@dataclass
class Exemption:
    """A dependency (or fnmatch pattern of dependency ids) excluded from evaluation."""

    dependency: str
    reason: str = ""
    approved_by: str | None = None

@dataclass
class PolicySettings:
    ai_suggestions: AiSuggestionSettings = field(default_factory=AiSuggestionSettings)
    fail_on: FailOnSettings = field(default_factory=FailOnSettings)
    exemptions: list[Exemption] = field(default_factory=list)

@dataclass
class PolicyConfig:
    name: str
    version: str = "1.0"
    description: str = ""
    categories: dict[str, LicenseCategoryDefinition] = field(default_factory=dict)
    rules: list[PolicyRule] = field(default_factory=list)
    settings: PolicySettings = field(default_factory=PolicySettings)

    def has_category(self, name: str) -> bool:
        return name in self.categories or name == UNKNOWN_CATEGORY

    @property
    def enabled_rules(self) -> list[PolicyRule]:
        return [rule for rule in self.rules if rule.enabled]

# ---------------------------------------------------------------------------
# Evaluation input and output
# ---------------------------------------------------------------------------

@dataclass
class AiSuggestion:
    license: str
    confidence: Confidence

@dataclass
class PolicyDependency:
    """A dependency as seen by the policy evaluator."""

    id: str
    name: str
    version: str = ""
    concluded_license: str | None = None
    ai_suggestion: AiSuggestion | None = None
    scope: str = "compile"

    @property
    def label(self) -> str:
        return f"{self.name}:{self.version}" if self.version else self.name

@dataclass
class FindingExplanation:
    """Knowledge-graph context attached to a finding."""

    license_id: str
    summary: str
    kinds: list[ExplanationType] = field(default_factory=list)
    obligations: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

@dataclass
class PolicyFinding:
    rule_id: str
    rule_name: str
    severity: Severity
    action: RuleAction
    dependency_id: str
    dependency_name: str
    dependency_version: str
    license: str | None
    category: str
    message: str
    scope: str = "compile"
    explanation: FindingExplanation | None = None

@dataclass
class ExemptedDependency:
    dependency_id: str
    pattern: str
    reason: str
    approved_by: str | None = None

@dataclass
class PolicySummary:
    total_dependencies: int = 0
    evaluated: int = 0
    exempted: int = 0
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    category_distribution: dict[str, int] = field(default_factory=dict)

    @property
    def total_violations(self) -> int:
        return self.error_count + self.warning_count + self.info_count

@dataclass
class PolicyReport:
    policy_name: str
    policy_version: str
    evaluated_at: str
    passed: bool
    summary: PolicySummary
    findings: list[PolicyFinding] = field(default_factory=list)
    exempted: list[ExemptedDependency] = field(default_factory=list)

    @property
    def errors(self) -> list[PolicyFinding]:
        return [f for f in self.findings if f.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[PolicyFinding]:
        return [f for f in self.findings if f.severity == Severity.WARNING]
