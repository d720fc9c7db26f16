"""Gate run report builders.

Console text is rendered from the same dict that is written as JSON.
"""

from __future__ import annotations

from typing import Any

from rich.markup import escape

from plugincheck.gates.orchestrator import GateRunReport
from plugincheck.gates.types import GateStatus
from plugincheck.schemas import validate_data

REPORT_SCHEMA_VERSION = "1.0"

_STATUS_MARKUP = {
    GateStatus.PASSED.value: "[green]PASS[/green]",
    GateStatus.FAILED.value: "[red]FAIL[/red]",
    GateStatus.SKIPPED.value: "[yellow]SKIP[/yellow]",
}


def build_gate_report(report: GateRunReport) -> dict[str, Any]:
    """Convert a run report into its validated JSON payload.

    The API key is not part of the payload.

    Raises:
        ValueError: If the payload does not match the ``gate_report`` schema
    """
    results = [r.to_dict() for r in report.results]
    data = {
        "schemaVersion": REPORT_SCHEMA_VERSION,
        "success": report.success,
        "cancelled": report.cancelled,
        "errorCode": report.error_code.value if report.error_code else None,
        "selector": report.request.selector.value,
        "apiUrl": report.request.api_url,
        "plugins": list(report.request.plugins),
        "results": results,
        "pending": [{"pluginName": plugin, "gate": gate.value} for plugin, gate in report.pending],
        "summary": {
            "passed": sum(1 for r in report.results if r.status is GateStatus.PASSED),
            "failed": sum(1 for r in report.results if r.status is GateStatus.FAILED),
            "skipped": sum(1 for r in report.results if r.status is GateStatus.SKIPPED),
        },
        "diagnostics": report.diagnostics.to_dict() if report.diagnostics else None,
    }
    validate_data(data, "gate_report", strict=True)
    return data


def render_gate_text(data: dict[str, Any]) -> list[str]:
    """Render the report payload as rich-markup console lines."""
    lines = [f"[bold]Gate verification[/bold] against {escape(data['apiUrl'])} (gates: {data['selector']})", ""]

    for plugin in data["plugins"]:
        lines.append(f"[bold]{escape(plugin)}[/bold]")
        for result in (r for r in data["results"] if r["pluginName"] == plugin):
            line = f"  {_STATUS_MARKUP[result['status']]} {result['gate']}"
            if result["skipReason"]:
                line += f" ({escape(result['skipReason'])})"
            if result["errorCode"]:
                line += f" \\[{escape(result['errorCode'])}]"
            lines.append(line)
            for error in result["errors"]:
                lines.append(f"      - {escape(error)}")
        for pending in (p for p in data["pending"] if p["pluginName"] == plugin):
            lines.append(f"  [dim]NOT RUN[/dim] {pending['gate']} (cancelled)")
        lines.append("")

    summary = data["summary"]
    lines.append(f"Passed: {summary['passed']}  Failed: {summary['failed']}  Skipped: {summary['skipped']}")
    if data["cancelled"]:
        lines.append(
            f"[yellow]Run cancelled before all gates were evaluated[/yellow] \\[{escape(data['errorCode'])}]"
        )

    diagnostics = data.get("diagnostics")
    if diagnostics:
        if diagnostics["bundlePath"]:
            lines.append(f"Diagnostics bundle: {escape(diagnostics['bundlePath'])}")
        if diagnostics["error"]:
            lines.append(f"[red]Diagnostics collection failed:[/red] {escape(diagnostics['error'])}")

    lines.append("[green]OVERALL: PASSED[/green]" if data["success"] else "[red]OVERALL: FAILED[/red]")
    return lines


def exit_code_for(report: GateRunReport) -> int:
    return 0 if report.success else 1
