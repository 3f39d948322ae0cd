"""Tests for policy report rendering."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from license_kg.policy.evaluator import evaluate
from license_kg.policy.loader import default_policy
from license_kg.policy.models import (
    Exemption,
    ExplanationType,
    FindingExplanation,
    PolicyDependency,
    PolicyReport,
)
from license_kg.policy.report import format_report, report_to_dict, to_jsonable, write_json_report


@pytest.fixture()
def report() -> PolicyReport:
    policy = default_policy()
    policy.settings.exemptions.append(Exemption("pkg:vendored@*", reason="Vendored copy"))
    deps = [
        PolicyDependency(id="pkg:gpl@1", name="gpl", version="1", concluded_license="GPL-3.0-only"),
        PolicyDependency(id="pkg:mystery@2", name="mystery", version="2"),
        PolicyDependency(id="pkg:mit@1", name="mit", version="1", concluded_license="MIT"),
        PolicyDependency(id="pkg:vendored@3", name="vendored", version="3", concluded_license="GPL-2.0-only"),
    ]
    return evaluate(policy, deps)


class TestJson:
    def test_enums_become_values(self) -> None:
        explanation = FindingExplanation(
            license_id="MIT", summary="s", kinds=[ExplanationType.RISK_LEVEL]
        )
        assert to_jsonable(explanation)["kinds"] == ["risk_level"]

    def test_report_dict(self, report: PolicyReport) -> None:
        data = report_to_dict(report)
        assert data["passed"] is False
        assert data["summary"]["total_violations"] == 2
        assert data["summary"]["exempted"] == 1
        assert {f["severity"] for f in data["findings"]} == {"error", "warning"}
        json.dumps(data)

    def test_write_json_report(self, report: PolicyReport, tmp_path: Path) -> None:
        out = write_json_report(report, tmp_path / "reports" / "policy.json")
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["policy_name"] == "Default License Policy"
        assert data["exempted"][0]["dependency_id"] == "pkg:vendored@3"


class TestText:
    def test_format_report(self, report: PolicyReport) -> None:
        text = format_report(report)
        assert "Policy: Default License Policy (v1.0)" in text
        assert "Status: FAILED" in text
        assert "Dependencies: 4 (evaluated 3, exempted 1)" in text
        assert "[ERROR] no-unknown: License of mystery:2 could not be determined" in text
        assert "[WARNING] copyleft-review:" in text
        assert "  permissive: 1" in text
        assert "pkg:vendored@3 (Vendored copy)" in text

    def test_passing_report(self) -> None:
        text = format_report(evaluate(default_policy(), []))
        assert "Status: PASSED" in text
        assert "Findings:" not in text
