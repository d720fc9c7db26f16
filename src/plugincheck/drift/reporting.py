"""Drift report builders.

The JSON report and the console text are both rendered from the dict that
``build_provider_report`` returns, so the two never diverge in content.
"""

from __future__ import annotations

from typing import Any

from rich.markup import escape

from plugincheck.drift.policy import render_recommendation, window_mode
from plugincheck.drift.types import ProviderAnalysis
from plugincheck.schemas import validate_data

REPORT_SCHEMA_VERSION = "1.0"
DEFAULT_RECENT_LIMIT = 10


def _format_percent(value: float) -> str:
    return f"{value:.1f}%"


def build_provider_report(
    analysis: ProviderAnalysis,
    recent_limit: int = DEFAULT_RECENT_LIMIT,
) -> dict[str, Any]:
    """Convert one provider analysis into its report payload.

    Args:
        analysis: Result of ``analyze_provider`` for one provider
        recent_limit: Maximum number of recent runs to list, newest first

    Returns:
        JSON-serializable dict matching one entry of the ``drift_report`` schema
    """
    recent_runs = [
        {
            "date": result.timestamp.strftime("%Y-%m-%d %H:%M"),
            "clean": result.is_clean,
            "drift": result.has_drift,
            "inconclusivePercent": _format_percent(result.inconclusive_percent),
        }
        for result in analysis.results[: max(recent_limit, 0)]
    ]

    return {
        "provider": analysis.policy.provider,
        "threshold": analysis.policy.threshold,
        "windowSize": analysis.window_size,
        "windowMode": window_mode(analysis.policy),
        "passStreak": analysis.pass_streak,
        "inconclusiveRate": analysis.inconclusive_rate,
        "maxInconclusiveAllowed": analysis.max_inconclusive_percent,
        "ready": analysis.decision.ready,
        "blockers": list(analysis.decision.reasons),
        "recentRuns": recent_runs,
        "recommendation": render_recommendation(analysis.decision),
    }


def build_drift_report(provider_reports: list[dict[str, Any]], artifact_count: int) -> dict[str, Any]:
    """Wrap provider reports and validate against the packaged schema.

    Raises:
        ValueError: If the assembled report does not match ``drift_report``
    """
    report = {
        "schemaVersion": REPORT_SCHEMA_VERSION,
        "artifactCount": artifact_count,
        "providers": provider_reports,
    }
    validate_data(report, "drift_report", strict=True)
    return report


def render_drift_text(report: dict[str, Any]) -> list[str]:
    """Render the report as rich-markup console lines.

    Report values are escaped, so provider names and reasons print verbatim.
    """
    lines = [f"[bold]Drift promotion readiness[/bold] ({report['artifactCount']} artifact(s))", ""]

    for provider in report["providers"]:
        status = "[green]READY[/green]" if provider["ready"] else "[red]NOT READY[/red]"
        lines.append(f"[bold]{escape(provider['provider'])}[/bold]: {status}")
        lines.append(f"  Pass streak: {provider['passStreak']} (threshold {provider['threshold']})")
        lines.append(
            f"  Inconclusive rate: {_format_percent(provider['inconclusiveRate'])} "
            f"over last {provider['windowSize']} run(s), {provider['windowMode']} window "
            f"(max {_format_percent(provider['maxInconclusiveAllowed'])})"
        )

        if provider["blockers"]:
            lines.append("  Blockers:")
            for blocker in provider["blockers"]:
                lines.append(f"    - {escape(blocker)}")

        if provider["recentRuns"]:
            lines.append("  Recent runs:")
            for run in provider["recentRuns"]:
                if run["clean"]:
                    mark = "[green]clean[/green]"
                elif run["drift"]:
                    mark = "[red]DRIFT[/red]"
                else:
                    mark = "[yellow]ERROR[/yellow]"
                lines.append(f"    {escape(run['date'])}  {mark}  inconclusive {escape(run['inconclusivePercent'])}")
        else:
            lines.append("  Recent runs: none recorded for this provider")

        lines.append(f"  Recommendation: {escape(provider['recommendation'])}")
        lines.append("")

    return lines
