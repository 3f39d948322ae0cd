"""License policy evaluation: YAML policies, rule evaluation and reports."""

from license_kg.policy.evaluator import PolicyEvaluator, evaluate
from license_kg.policy.loader import default_policy, load_policy, parse_policy, validate_policy
from license_kg.policy.models import PolicyConfig, PolicyConfigError, PolicyDependency, PolicyReport

__all__ = [
    "PolicyConfig",
    "PolicyConfigError",
    "PolicyDependency",
    "PolicyEvaluator",
    "PolicyReport",
    "default_policy",
    "evaluate",
    "load_policy",
    "parse_policy",
    "validate_policy",
]
