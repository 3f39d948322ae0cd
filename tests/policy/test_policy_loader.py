"""Tests for policy document loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from license_kg.policy.loader import (
    default_policy,
    load_policy,
    parse_policy,
    policy_from_dict,
    validate_policy,
)
from license_kg.policy.models import (
    Confidence,
    PolicyConfigError,
    PolicyRule,
    RuleAction,
    Severity,
)

POLICY_YAML = """\
name: Acme Policy
version: "2.1"
description: Production dependencies
categories:
  permissive:
    description: Low risk
    licenses: [MIT, Apache-2.0]
  copyleft:
    - GPL-3.0-only
    - AGPL-3.0-only
rules:
  - id: no-copyleft
    name: No copyleft
    severity: error
    category: copyleft
    action: deny
    message: "{{dependency}} uses {{license}}"
  - id: flag-unknown
    severity: WARNING
    category: unknown
    action: flag
    enabled: false
settings:
  aiSuggestions:
    accept: true
    minConfidence: medium
  failOn:
    errors: true
    warnings: true
  exemptions:
    - dependency: "Maven:com.acme:*"
      reason: First-party
      approvedBy: legal
    - "npm:left-pad:*"
"""


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParsePolicy:
    def test_full_document(self) -> None:
        policy = parse_policy(POLICY_YAML)
        assert policy.name == "Acme Policy"
        assert policy.version == "2.1"
        assert policy.categories["permissive"].licenses == ["MIT", "Apache-2.0"]
        assert policy.categories["copyleft"].licenses == ["GPL-3.0-only", "AGPL-3.0-only"]

    def test_rules(self) -> None:
        policy = parse_policy(POLICY_YAML)
        first, second = policy.rules
        assert first.severity is Severity.ERROR
        assert first.action is RuleAction.DENY
        assert first.message == "{{dependency}} uses {{license}}"
        assert second.name == "flag-unknown"
        assert second.severity is Severity.WARNING
        assert second.enabled is False
        assert [r.id for r in policy.enabled_rules] == ["no-copyleft"]

    def test_list_rules_and_scopes(self) -> None:
        policy = parse_policy(
            "name: p\n"
            "rules:\n"
            "  - id: deny-gpl\n"
            "    severity: error\n"
            "    denylist: [GPL-3.0-only]\n"
            "    scopes: [compile, runtime]\n"
            "  - id: only-approved\n"
            "    severity: warning\n"
            "    allowlist: [MIT, ISC]\n"
            "    action: allow\n"
        )
        deny, allow = policy.rules
        assert deny.category is None
        assert deny.denylist == ["GPL-3.0-only"]
        assert deny.allowlist is None
        assert deny.scopes == ["compile", "runtime"]
        assert allow.allowlist == ["MIT", "ISC"]
        assert allow.action is RuleAction.ALLOW
        assert allow.scopes == []

    def test_settings_camel_case(self) -> None:
        settings = parse_policy(POLICY_YAML).settings
        assert settings.ai_suggestions.min_confidence is Confidence.MEDIUM
        assert settings.fail_on.warnings is True
        assert settings.exemptions[0].approved_by == "legal"
        assert settings.exemptions[1].dependency == "npm:left-pad:*"

    def test_settings_snake_case(self) -> None:
        policy = policy_from_dict(
            {
                "name": "p",
                "settings": {
                    "ai_suggestions": {"accept": False, "min_confidence": "low"},
                    "fail_on": {"errors": False},
                },
            }
        )
        assert policy.settings.ai_suggestions.accept is False
        assert policy.settings.ai_suggestions.min_confidence is Confidence.LOW
        assert policy.settings.fail_on.errors is False

    def test_defaults(self) -> None:
        policy = parse_policy("name: minimal\n")
        assert policy.version == "1.0"
        assert policy.rules == []
        assert policy.settings.fail_on.errors is True
        assert policy.settings.fail_on.warnings is False
        assert policy.settings.ai_suggestions.min_confidence is Confidence.HIGH


class TestMalformed:
    @pytest.mark.parametrize(
        ("text", "fragment"),
        [
            ("- just\n- a list\n", "must be a mapping"),
            ("version: 1\n", "missing required field 'name'"),
            ("name: p\nrules:\n  - id: r\n    category: x\n", "severity"),
            ("name: p\nrules:\n  - id: r\n    severity: error\n    denylist: MIT\n", "denylist must be a list"),
            ("name: p\nrules:\n  - id: r\n    severity: error\n    scopes: test\n", "scopes must be a list"),
            ("name: p\nrules:\n  - id: r\n    severity: fatal\n    category: x\n", "invalid value"),
            ("name: p\nrules: nope\n", "rules must be a list"),
            ("name: p\ncategories:\n  c:\n    licenses: MIT\n", "must be a list"),
            ("name: p\nsettings:\n  exemptions:\n    - reason: x\n", "missing 'dependency'"),
            ("name: [unclosed\n", "invalid policy YAML"),
        ],
    )
    def test_errors(self, text: str, fragment: str) -> None:
        with pytest.raises(PolicyConfigError, match=fragment):
            parse_policy(text)

    def test_config_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_policy("version: 1\n")


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class TestLoadPolicy:
    def test_load_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "policy.yaml"
        path.write_text(POLICY_YAML, encoding="utf-8")
        assert load_policy(path).name == "Acme Policy"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(PolicyConfigError, match="not found"):
            load_policy(tmp_path / "absent.yaml")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidatePolicy:
    def test_valid_policy(self) -> None:
        validate_policy(parse_policy(POLICY_YAML))

    def test_unknown_category_is_implicit(self) -> None:
        policy = parse_policy(
            "name: p\nrules:\n  - id: r\n    severity: error\n    category: unknown\n"
        )
        validate_policy(policy)

    def test_undefined_category(self) -> None:
        policy = parse_policy(POLICY_YAML)
        policy.rules.append(
            PolicyRule(id="bad", name="bad", severity=Severity.INFO, category="proprietary")
        )
        with pytest.raises(PolicyConfigError, match="undefined category 'proprietary'"):
            validate_policy(policy)

    def test_rule_without_target(self) -> None:
        policy = parse_policy("name: p\nrules:\n  - id: r\n    severity: error\n    scopes: [test]\n")
        with pytest.raises(PolicyConfigError, match="'r' needs a category, denylist or allowlist"):
            validate_policy(policy)

    def test_list_rule_needs_no_category(self) -> None:
        policy = parse_policy("name: p\nrules:\n  - id: r\n    severity: error\n    allowlist: []\n")
        validate_policy(policy)

    def test_duplicate_rule_ids(self) -> None:
        policy = parse_policy(POLICY_YAML)
        policy.rules.append(policy.rules[0])
        with pytest.raises(PolicyConfigError, match="duplicate rule id"):
            validate_policy(policy)

    def test_default_policy_is_valid(self) -> None:
        policy = default_policy()
        validate_policy(policy)
        assert {r.id for r in policy.rules} == {"no-unknown", "copyleft-review"}
