"""Live-instance gate verification."""

from plugincheck.gates.client import GateProbe, LidarrGateClient, classify_exception
from plugincheck.gates.diagnostics import BundleDiagnosticsCollector, DiagnosticsCollector, summarize_failures
from plugincheck.gates.orchestrator import (
    CancellationToken,
    GateOrchestrator,
    GateRunReport,
    GateRunRequest,
)
from plugincheck.gates.profiles import DEFAULT_PROFILE, KNOWN_PLUGIN_PROFILES, parse_plugin_list, resolve_profile
from plugincheck.gates.reporting import build_gate_report, exit_code_for, render_gate_text
from plugincheck.gates.resolvers import IndexerResolver, RegistryIndexerResolver, SubstringIndexerResolver
from plugincheck.gates.types import (
    ConfigurationError,
    E2EErrorCode,
    Gate,
    GateResult,
    GateSelector,
    GateStatus,
    Indexer,
    PluginExpectationProfile,
)

__all__ = [
    "DEFAULT_PROFILE",
    "KNOWN_PLUGIN_PROFILES",
    "BundleDiagnosticsCollector",
    "CancellationToken",
    "ConfigurationError",
    "DiagnosticsCollector",
    "E2EErrorCode",
    "Gate",
    "GateOrchestrator",
    "GateProbe",
    "GateResult",
    "GateRunReport",
    "GateRunRequest",
    "GateSelector",
    "GateStatus",
    "Indexer",
    "IndexerResolver",
    "LidarrGateClient",
    "PluginExpectationProfile",
    "RegistryIndexerResolver",
    "SubstringIndexerResolver",
    "build_gate_report",
    "classify_exception",
    "exit_code_for",
    "parse_plugin_list",
    "render_gate_text",
    "resolve_profile",
    "summarize_failures",
]
