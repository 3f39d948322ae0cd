"""Render policy reports as JSON or console text."""

from __future__ import annotations

import dataclasses
import json
from enum import Enum
from pathlib import Path
from typing import Any

from license_kg.policy.models import PolicyReport

def to_jsonable(value: Any) -> Any:
    """Convert dataclasses, enums and containers into JSON-serialisable values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {
            (k.value if isinstance(k, Enum) else str(k)): to_jsonable(v) for k, v in value.items()
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return value

def report_to_dict(report: PolicyReport) -> dict[str, Any]:
    data = to_jsonable(report)
    data["summary"]["total_violations"] = report.summary.total_violations
    return data

def write_json_report(report: PolicyReport, path: str | Path) -> Path:
    """Write *report* as indented JSON to *path*, creating parent directories."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(report_to_dict(report), indent=2) + "\n", encoding="utf-8")
    return out

def format_report(report: PolicyReport) -> str:
    """Return a plain-text summary of *report* for terminals and logs."""
    summary = report.summary
    status = "PASSED" if report.passed else "FAILED"
    lines = [
        f"Policy: {report.policy_name} (v{report.policy_version})",
        f"Status: {status}",
        f"Dependencies: {summary.total_dependencies} "
        f"(evaluated {summary.evaluated}, exempted {summary.exempted})",
        f"Violations: {summary.total_violations} "
        f"({summary.error_count} errors, {summary.warning_count} warnings, "
        f"{summary.info_count} info)",
    ]
    if summary.category_distribution:
        lines.append("Categories:")
        for name, count in sorted(summary.category_distribution.items()):
            lines.append(f"  {name}: {count}")
    if report.findings:
        lines.append("Findings:")
        for finding in report.findings:
            lines.append(
                f"  [{finding.severity.value.upper()}] {finding.rule_id}: {finding.message}"
            )
            explanation = finding.explanation
            if explanation is not None:
                lines.append(f"      {explanation.summary}")
                for note in explanation.notes:
                    lines.append(f"      - {note}")
    if report.exempted:
        lines.append("Exempted:")
        for item in report.exempted:
            reason = f" ({item.reason})" if item.reason else ""
            lines.append(f"  {item.dependency_id}{reason}")
    return "\n".join(lines)
