"""Drift streak analysis and promotion readiness."""

from plugincheck.drift.analyzer import (
    analyze_provider,
    compute_average_inconclusive_rate,
    compute_pass_streak,
    evaluate_promotion_readiness,
    project_provider_results,
    round_percent,
)
from plugincheck.drift.loader import ArtifactLoadError, DirectoryArtifactRepository, parse_artifact
from plugincheck.drift.policy import render_recommendation, resolve_window_size, select_providers
from plugincheck.drift.reporting import build_drift_report, build_provider_report, render_drift_text

__all__ = [
    "ArtifactLoadError",
    "DirectoryArtifactRepository",
    "analyze_provider",
    "build_drift_report",
    "build_provider_report",
    "compute_average_inconclusive_rate",
    "compute_pass_streak",
    "evaluate_promotion_readiness",
    "parse_artifact",
    "project_provider_results",
    "render_drift_text",
    "render_recommendation",
    "resolve_window_size",
    "round_percent",
    "select_providers",
]
