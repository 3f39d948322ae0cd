"""Policy document loading and validation.

Policies are YAML documents::

    name: Default License Policy
    version: "1.0"
    categories:
      permissive:
        licenses: [MIT, Apache-2.0]
    rules:
      - id: no-unknown
        name: No unknown licenses
        severity: error
        category: unknown
        action: deny
      - id: no-gpl-in-runtime
        severity: error
        denylist: [GPL-3.0-only]
        scopes: [compile, runtime]
    settings:
      failOn: {errors: true, warnings: false}
      exemptions:
        - dependency: "Maven:com.example:*"
          reason: Internal artifact

Keys are accepted in camelCase or snake_case.  Every structural problem is
reported as a :class:`PolicyConfigError`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from license_kg.policy.models import (
    AiSuggestionSettings,
    Confidence,
    Exemption,
    FailOnSettings,
    LicenseCategoryDefinition,
    PolicyConfig,
    PolicyConfigError,
    PolicyRule,
    PolicySettings,
    RuleAction,
    Severity,
)

logger = logging.getLogger(__name__)

def _get(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default

def _require_mapping(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise PolicyConfigError(f"{where} must be a mapping, got {type(value).__name__}")
    return value

def _parse_enum(enum_cls: type, value: Any, where: str) -> Any:
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise PolicyConfigError(f"{where}: invalid value {value!r} (expected one of {allowed})") from exc

def _parse_categories(raw: Any) -> dict[str, LicenseCategoryDefinition]:
    categories: dict[str, LicenseCategoryDefinition] = {}
    for name, body in _require_mapping(raw, "categories").items():
        if isinstance(body, list):
            body = {"licenses": body}
        body = _require_mapping(body, f"categories.{name}")
        licenses = body.get("licenses") or []
        if not isinstance(licenses, list):
            raise PolicyConfigError(f"categories.{name}.licenses must be a list")
        categories[str(name)] = LicenseCategoryDefinition(
            name=str(name),
            licenses=[str(lic) for lic in licenses],
            description=str(body.get("description", "")),
        )
    return categories

def _string_list(value: Any, where: str) -> list[str] | None:
    if value is None:
        return None
    if not isinstance(value, list):
        raise PolicyConfigError(f"{where} must be a list")
    return [str(item) for item in value]

def _parse_rule(raw: Any, index: int) -> PolicyRule:
    where = f"rules[{index}]"
    body = _require_mapping(raw, where)
    missing = [key for key in ("id", "severity") if key not in body]
    if missing:
        raise PolicyConfigError(f"{where}: missing required field(s): {', '.join(missing)}")
    rule_id = str(body["id"])
    category = body.get("category")
    return PolicyRule(
        id=rule_id,
        name=str(body.get("name", rule_id)),
        severity=_parse_enum(Severity, body["severity"], f"{where}.severity"),
        category=None if category is None else str(category),
        action=_parse_enum(RuleAction, body.get("action", "deny"), f"{where}.action"),
        enabled=bool(body.get("enabled", True)),
        message=str(body.get("message", "")),
        description=str(body.get("description", "")),
        denylist=_string_list(body.get("denylist"), f"{where}.denylist"),
        allowlist=_string_list(body.get("allowlist"), f"{where}.allowlist"),
        scopes=_string_list(body.get("scopes"), f"{where}.scopes") or [],
    )

def _parse_settings(raw: Any) -> PolicySettings:
    body = _require_mapping(raw, "settings")

    ai_raw = _require_mapping(_get(body, "aiSuggestions", "ai_suggestions"), "settings.aiSuggestions")
    ai = AiSuggestionSettings(
        accept=bool(_get(ai_raw, "accept", "acceptHighConfidence", "accept_high_confidence", default=True)),
        min_confidence=_parse_enum(
            Confidence,
            _get(ai_raw, "minConfidence", "min_confidence", default="high"),
            "settings.aiSuggestions.minConfidence",
        ),
    )

    fail_raw = _require_mapping(_get(body, "failOn", "fail_on"), "settings.failOn")
    fail_on = FailOnSettings(
        errors=bool(fail_raw.get("errors", True)),
        warnings=bool(fail_raw.get("warnings", False)),
    )

    exemptions: list[Exemption] = []
    raw_exemptions = body.get("exemptions") or []
    if not isinstance(raw_exemptions, list):
        raise PolicyConfigError("settings.exemptions must be a list")
    for index, item in enumerate(raw_exemptions):
        if isinstance(item, str):
            exemptions.append(Exemption(dependency=item))
            continue
        item = _require_mapping(item, f"settings.exemptions[{index}]")
        if "dependency" not in item:
            raise PolicyConfigError(f"settings.exemptions[{index}]: missing 'dependency'")
        exemptions.append(
            Exemption(
                dependency=str(item["dependency"]),
                reason=str(item.get("reason", "")),
                approved_by=_get(item, "approvedBy", "approved_by"),
            )
        )

    return PolicySettings(ai_suggestions=ai, fail_on=fail_on, exemptions=exemptions)

def policy_from_dict(data: Any) -> PolicyConfig:
    """Build a :class:`PolicyConfig` from an already-parsed document."""
    body = _require_mapping(data, "policy document")
    if "name" not in body:
        raise PolicyConfigError("policy document: missing required field 'name'")
    raw_rules = body.get("rules") or []
    if not isinstance(raw_rules, list):
        raise PolicyConfigError("rules must be a list")
    return PolicyConfig(
        name=str(body["name"]),
        version=str(body.get("version", "1.0")),
        description=str(body.get("description", "")),
        categories=_parse_categories(body.get("categories")),
        rules=[_parse_rule(raw, i) for i, raw in enumerate(raw_rules)],
        settings=_parse_settings(body.get("settings")),
    )

def parse_policy(text: str) -> PolicyConfig:
    """Parse a YAML policy document."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise PolicyConfigError(f"invalid policy YAML: {exc}") from exc
    return policy_from_dict(data)

def load_policy(path: str | Path) -> PolicyConfig:
    """Load and parse the YAML policy at *path*."""
    policy_path = Path(path)
    if not policy_path.is_file():
        raise PolicyConfigError(f"policy file not found: {policy_path}")
    policy = parse_policy(policy_path.read_text(encoding="utf-8"))
    logger.info("Loaded policy %r (%d rules) from %s", policy.name, len(policy.rules), policy_path)
    return policy

def validate_policy(policy: PolicyConfig) -> None:
    """Check the policy for internal consistency.

    Raises:
        PolicyConfigError: listing every rule that targets nothing or
            references an undefined category, and every duplicated rule id.
    """
    problems: list[str] = []
    seen: set[str] = set()
    for rule in policy.rules:
        if rule.id in seen:
            problems.append(f"duplicate rule id {rule.id!r}")
        seen.add(rule.id)
        if not rule.has_target:
            problems.append(f"rule {rule.id!r} needs a category, denylist or allowlist")
        elif rule.category is not None and not policy.has_category(rule.category):
            problems.append(f"rule {rule.id!r} references undefined category {rule.category!r}")
    if problems:
        raise PolicyConfigError("invalid policy: " + "; ".join(problems))

def default_policy() -> PolicyConfig:
    """Return the built-in policy used when no policy file is given."""
    return PolicyConfig(
        name="Default License Policy",
        version="1.0",
        description="Flags copyleft licenses and blocks dependencies without a known license",
        categories={
            "permissive": LicenseCategoryDefinition(
                name="permissive",
                description="Permissive licenses with minimal obligations",
                licenses=[
                    "MIT", "Apache-2.0", "BSD-2-Clause", "BSD-3-Clause", "ISC",
                    "0BSD", "Unlicense", "CC0-1.0", "Zlib", "BSL-1.0",
                ],
            ),
            "copyleft-limited": LicenseCategoryDefinition(
                name="copyleft-limited",
                description="Weak copyleft licenses",
                licenses=[
                    "LGPL-2.1-only", "LGPL-2.1-or-later", "LGPL-3.0-only",
                    "LGPL-3.0-or-later", "MPL-2.0", "EPL-2.0",
                ],
            ),
            "copyleft": LicenseCategoryDefinition(
                name="copyleft",
                description="Strong and network copyleft licenses",
                licenses=[
                    "GPL-2.0-only", "GPL-2.0-or-later", "GPL-3.0-only",
                    "GPL-3.0-or-later", "AGPL-3.0-only", "AGPL-3.0-or-later",
                ],
            ),
            "unknown": LicenseCategoryDefinition(
                name="unknown",
                description="License could not be determined",
                licenses=["NOASSERTION"],
            ),
        },
        rules=[
            PolicyRule(
                id="no-unknown",
                name="No unknown licenses",
                severity=Severity.ERROR,
                category="unknown",
                action=RuleAction.DENY,
                message="License of {{dependency}} could not be determined",
            ),
            PolicyRule(
                id="copyleft-review",
                name="Copyleft needs review",
                severity=Severity.WARNING,
                category="copyleft",
                action=RuleAction.FLAG,
                message="{{dependency}} is licensed under copyleft license {{license}}",
            ),
        ],
    )
