"""License KG CLI — license compatibility, obligations and policy checks."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from license_kg import __version__
from license_kg.config import DEFAULT_MAX_PATH_DEPTH, DEFAULT_SEARCH_LIMIT
from license_kg.core.service import LicenseGraphService

if TYPE_CHECKING:
    from license_kg.core.results import DependencyLicense
    from license_kg.policy.models import PolicyDependency

console = Console()

_service: LicenseGraphService | None = None

def get_service() -> LicenseGraphService:
    """Return the process-wide graph service, creating it on first use."""
    global _service
    if _service is None:
        _service = LicenseGraphService()
    return _service

app = typer.Typer(
    name="license-kg",
    help="License KG — license compatibility, obligations and policy evaluation.",
    no_args_is_help=True,
)

def _version_callback(value: bool) -> None:
    """Print the version and exit."""
    if value:
        console.print(f"License KG v{__version__}")
        raise typer.Exit()

@app.callback()
def main(
    version: Optional[bool] = typer.Option(  # noqa: N803
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    """License KG — license compatibility, obligations and policy evaluation."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

# ---------------------------------------------------------------------------
# Dependency files
# ---------------------------------------------------------------------------

def _read_dependency_entries(path: Path) -> list[dict[str, Any]]:
    """Read a JSON dependency file: a list, or an object with ``dependencies``."""
    if not path.is_file():
        raise ValueError(f"dependency file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path} is not valid JSON: {exc}") from exc
    if isinstance(data, dict):
        data = data.get("dependencies", [])
    if not isinstance(data, list) or not all(isinstance(e, dict) for e in data):
        raise ValueError(f"{path} must contain a list of dependency objects")
    for index, entry in enumerate(data):
        if "id" not in entry:
            raise ValueError(f"dependency #{index} in {path} has no 'id'")
    return data

def _entry_license(entry: dict[str, Any]) -> str | None:
    for key in ("license", "concluded_license", "concludedLicense"):
        if entry.get(key):
            return str(entry[key])
    declared = entry.get("declared_licenses") or entry.get("declaredLicenses") or []
    return str(declared[0]) if declared else None

def _to_dependency_license(entry: dict[str, Any]) -> DependencyLicense:
    from license_kg.core.results import DependencyLicense

    return DependencyLicense(
        dependency_id=str(entry["id"]),
        name=str(entry.get("name", entry["id"])),
        version=str(entry.get("version", "")),
        license=_entry_license(entry),
        is_transitive=bool(entry.get("transitive", entry.get("is_transitive", False))),
        scope=str(entry.get("scope", "compile")),
    )

def _to_policy_dependency(entry: dict[str, Any]) -> PolicyDependency:
    from license_kg.policy.models import AiSuggestion, Confidence, PolicyDependency

    suggestion = None
    raw = entry.get("ai_suggestion") or entry.get("aiSuggestion")
    if isinstance(raw, dict) and raw.get("license"):
        try:
            confidence = Confidence(str(raw.get("confidence", "low")).lower())
        except ValueError as exc:
            raise ValueError(f"dependency {entry['id']}: invalid confidence {raw.get('confidence')!r}") from exc
        suggestion = AiSuggestion(license=str(raw["license"]), confidence=confidence)

    concluded = entry.get("concluded_license") or entry.get("concludedLicense") or entry.get("license")
    return PolicyDependency(
        id=str(entry["id"]),
        name=str(entry.get("name", entry["id"])),
        version=str(entry.get("version", "")),
        concluded_license=str(concluded) if concluded else None,
        ai_suggestion=suggestion,
        scope=str(entry.get("scope", "compile")),
    )

# ---------------------------------------------------------------------------
# Graph queries
# ---------------------------------------------------------------------------

@app.command()
def licenses(
    query: Optional[str] = typer.Argument(None, help="Substring to search for."),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Filter by category."),
    family: Optional[str] = typer.Option(None, "--family", "-f", help="Filter by license family."),
    limit: int = typer.Option(DEFAULT_SEARCH_LIMIT, "--limit", "-n", help="Maximum number of results."),
) -> None:
    """List or search licenses in the knowledge graph."""
    from license_kg.core.graph.model import LicenseCategory

    service = get_service()
    if query:
        found = service.search_licenses(query, limit=limit)
    elif category:
        found = service.get_licenses_by_category(LicenseCategory.parse(category))[:limit]
    elif family:
        found = service.get_licenses_by_family(family)[:limit]
    else:
        found = service.get_all_licenses()[:limit]

    if not found:
        console.print("No licenses found.")
        return

    table = Table("ID", "Name", "Category", "Copyleft", "OSI")
    for lic in found:
        table.add_row(
            lic.spdx_id,
            lic.name,
            lic.category.display_name,
            lic.copyleft_strength.value,
            "yes" if lic.is_osi_approved else "no",
        )
    console.print(table)

@app.command()
def show(
    license_id: str = typer.Argument(..., help="License id, e.g. MIT or GPL-3.0-only."),
    use_case: Optional[str] = typer.Option(
        None, "--use-case", "-u", help="Only list obligations live in this use case."
    ),
) -> None:
    """Show everything the graph knows about a license."""
    service = get_service()
    details = service.get_license_details(license_id)
    if details is None:
        console.print(f"[red]Error:[/red] Unknown license: {license_id}")
        raise typer.Exit(code=1)
    try:
        scoped = service.get_obligations_for_use_case(license_id, use_case) if use_case else None
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    lic = details.license
    console.print(f"[bold]{lic.name}[/bold] ({lic.spdx_id})")
    console.print(f"  Category:       {lic.category.display_name}")
    console.print(f"  Copyleft:       {lic.copyleft_strength.value}")
    console.print(f"  OSI approved:   {'yes' if lic.is_osi_approved else 'no'}")
    console.print(f"  FSF free:       {'yes' if lic.is_fsf_free else 'no'}")
    if lic.family:
        console.print(f"  Family:         {lic.family}")
    if scoped is not None:
        console.print(f"[bold]Obligations ({use_case}):[/bold]")
        for entry in scoped:
            console.print(
                f"  - {entry.obligation.name} "
                f"[dim]({entry.trigger.value}, {entry.adjusted_effort.value})[/dim] {entry.reason}"
            )
    elif details.obligations:
        console.print("[bold]Obligations:[/bold]")
        for item in details.obligations:
            console.print(
                f"  - {item.obligation.name} "
                f"[dim]({item.trigger.value}, {item.scope.value}, {item.obligation.effort.value})[/dim]"
            )
    if details.rights:
        console.print("[bold]Rights:[/bold] " + ", ".join(r.name for r in details.rights))
    if details.compatible_with:
        console.print("[bold]Compatible with:[/bold] " + ", ".join(details.compatible_with))
    if details.incompatible_with:
        console.print("[bold]Incompatible with:[/bold] " + ", ".join(details.incompatible_with))

def _level_style(level: str) -> str:
    return {
        "full": "green",
        "conditional": "yellow",
        "one_way": "yellow",
        "incompatible": "red",
    }.get(level, "dim")

@app.command()
def check(
    license_a: str = typer.Argument(..., help="License of the incoming code."),
    license_b: str = typer.Argument(..., help="License of the receiving work."),
    use_case: Optional[str] = typer.Option(None, "--use-case", "-u", help="Use case id, e.g. saas."),
) -> None:
    """Check whether two licenses are compatible."""
    try:
        result = get_service().check_compatibility(license_a, license_b, use_case)
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    style = _level_style(result.level.value)
    console.print(
        f"{result.license_a} -> {result.license_b}: [{style}]{result.level.value}[/{style}]"
        f" (compatible: {'yes' if result.compatible else 'no'})"
    )
    console.print(f"  {result.reason}")
    for condition in result.conditions:
        console.print(f"  Condition: {condition}")
    for note in result.notes:
        console.print(f"  [dim]Note: {note}[/dim]")
    for source in result.sources:
        console.print(f"  [dim]Source: {source}[/dim]")

@app.command()
def matrix(
    license_ids: list[str] = typer.Argument(..., help="Two or more license ids."),
    use_case: Optional[str] = typer.Option(None, "--use-case", "-u", help="Use case id."),
) -> None:
    """Check every pair of the given licenses."""
    try:
        results = get_service().check_compatibility_matrix(license_ids, use_case)
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    table = Table("License A", "License B", "Level", "Compatible", "Inferred")
    for result in results:
        style = _level_style(result.level.value)
        table.add_row(
            result.license_a,
            result.license_b,
            f"[{style}]{result.level.value}[/{style}]",
            "yes" if result.compatible else "no",
            "yes" if result.inferred else "no",
        )
    console.print(table)

@app.command()
def path(
    source: str = typer.Argument(..., help="Starting license."),
    target: str = typer.Argument(..., help="Destination license."),
    depth: int = typer.Option(DEFAULT_MAX_PATH_DEPTH, "--depth", "-d", help="Maximum hops."),
) -> None:
    """Find a chain of curated compatibility rules between two licenses."""
    found = get_service().find_compatibility_path(source, target, max_depth=depth)
    if found is None:
        console.print(f"No compatibility path from {source} to {target} within {depth} hops.")
        raise typer.Exit(code=1)

    console.print(" -> ".join(found.licenses) + f"  [bold]({found.level.value})[/bold]")
    for step in found.steps:
        console.print(f"  {step.from_license} -> {step.to_license}: {step.level.value}")
    for condition in found.conditions:
        console.print(f"  Condition: {condition}")

@app.command()
def obligations(
    license_ids: list[str] = typer.Argument(..., help="License ids to aggregate."),
    use_case: Optional[str] = typer.Option(None, "--use-case", "-u", help="Use case id."),
) -> None:
    """Show the combined obligations of a set of licenses."""
    try:
        aggregated = get_service().aggregate_obligations(license_ids, use_case)
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if not aggregated.obligations:
        console.print("No obligations.")
        return
    console.print(
        f"[bold]{aggregated.unique_obligation_count} obligations[/bold] across "
        f"{aggregated.total_licenses} licenses"
    )
    for ob in aggregated.obligations:
        triggers = ", ".join(t.value for t in ob.triggers)
        console.print(
            f"  - {ob.name} [dim]({ob.effort.value}; {triggers}; {ob.scope.value})[/dim]"
            f" from {', '.join(ob.licenses)}"
        )

@app.command(name="use-cases")
def use_cases() -> None:
    """List the known use cases."""
    for uc in get_service().get_all_use_cases():
        linking = f", {uc.linking_type.value} linking" if uc.linking_type else ""
        console.print(f"  {uc.id:<14} {uc.name} [dim]({uc.distribution_type.value}{linking})[/dim]")

@app.command()
def stats() -> None:
    """Show knowledge graph statistics."""
    statistics = get_service().get_statistics()
    console.print("[bold]License knowledge graph[/bold]")
    console.print(f"  Licenses:       {statistics.total_licenses}")
    console.print(f"  Obligations:    {statistics.total_obligations}")
    console.print(f"  Rights:         {statistics.total_rights}")
    console.print(f"  Use cases:      {statistics.total_use_cases}")
    console.print(f"  Edges:          {statistics.total_edges}")
    console.print(f"    compatibility {statistics.total_compatibility_edges}")
    console.print(f"    obligation    {statistics.total_obligation_edges}")
    console.print(f"    right         {statistics.total_right_edges}")
    for category, count in statistics.licenses_by_category.items():
        console.print(f"  {category.display_name + ':':<16}{count}")
    console.print(f"  Loaded at:      {statistics.last_loaded}")

# ---------------------------------------------------------------------------
# Dependency analysis and policy evaluation
# ---------------------------------------------------------------------------

@app.command()
def analyze(
    dependencies: Path = typer.Argument(..., help="JSON file listing dependencies."),
    use_case: Optional[str] = typer.Option(None, "--use-case", "-u", help="Use case id."),
    conflicts_only: bool = typer.Option(False, "--conflicts-only", help="Only list conflicts."),
    as_json: bool = typer.Option(False, "--json", help="Print the analysis as JSON."),
) -> None:
    """Analyse the licenses of a dependency tree."""
    from license_kg.policy.report import to_jsonable

    service = get_service()
    try:
        deps = [_to_dependency_license(e) for e in _read_dependency_entries(dependencies)]
        if conflicts_only:
            conflicts = service.find_conflicts(deps, use_case)
        else:
            result = service.analyze_dependency_tree(deps, use_case)
            conflicts = result.conflicts
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if as_json:
        payload = to_jsonable(conflicts if conflicts_only else result)
        console.print_json(json.dumps(payload))
        return

    if not conflicts_only:
        console.print(f"[bold]Dependencies:[/bold] {result.total_dependencies}")
        console.print(f"  Licenses:       {', '.join(result.unique_licenses) or '-'}")
        console.print(f"  Dominant:       {result.dominant_license or '-'}")
        console.print(f"  Status:         {result.compliance_status.value}")
        console.print(f"  Risk score:     {result.risk_score:.2f}")
        for note in result.unresolved:
            console.print(f"  [yellow]Unresolved:[/yellow] {note.dependency_id} ({note.reason})")

    if not conflicts:
        console.print("[green]No license conflicts.[/green]")
        return
    console.print(f"[bold]Conflicts ({len(conflicts)}):[/bold]")
    for conflict in conflicts:
        colour = "red" if conflict.severity.value == "blocking" else "yellow"
        console.print(
            f"  [{colour}]{conflict.severity.value.upper()}[/{colour}] "
            f"{conflict.license_a} / {conflict.license_b}: {conflict.reason}"
        )

@app.command()
def evaluate(
    dependencies: Path = typer.Argument(..., help="JSON file listing dependencies."),
    policy: Optional[Path] = typer.Option(None, "--policy", "-p", help="YAML policy file."),
    explain: bool = typer.Option(False, "--explain", help="Attach knowledge-graph explanations."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the JSON report here."),
) -> None:
    """Evaluate dependencies against a license policy."""
    from license_kg.policy.evaluator import evaluate as evaluate_policy
    from license_kg.policy.explanation import ExplanationGenerator
    from license_kg.policy.loader import default_policy, load_policy
    from license_kg.policy.report import format_report, write_json_report

    try:
        config = load_policy(policy) if policy else default_policy()
        deps = [_to_policy_dependency(e) for e in _read_dependency_entries(dependencies)]
        explainer = ExplanationGenerator(get_service()) if explain else None
        report = evaluate_policy(config, deps, explainer)
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(format_report(report), markup=False, highlight=False)
    if output is not None:
        written = write_json_report(report, output)
        console.print(f"Report written to {written}")
    if not report.passed:
        raise typer.Exit(code=1)
