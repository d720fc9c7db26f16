"""Gate orchestration against a live instance.

Every requested (plugin, gate) pair is evaluated, even after failures, so
the final report is complete. Exceptions raised while evaluating a pair are
converted into a Failed result at that pair's boundary. Only a missing
credential for a credential-requiring selection aborts the run, and it does
so before any network call.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from plugincheck.gates.client import GateProbe, classify_exception, indexer_names
from plugincheck.gates.diagnostics import DiagnosticsCollector
from plugincheck.gates.profiles import KNOWN_PLUGIN_PROFILES, resolve_profile
from plugincheck.gates.resolvers import IndexerResolver, SubstringIndexerResolver
from plugincheck.gates.types import (
    ConfigurationError,
    E2EErrorCode,
    Gate,
    GateResult,
    GateSelector,
    GateStatus,
    PluginExpectationProfile,
)

logger = logging.getLogger(__name__)

SKIP_NO_INDEXER_EXPECTED = "no indexer expected"
SKIP_NO_INDEXER_CONFIGURED = "no configured indexer found"
SKIP_NO_DOWNLOAD_CLIENT_EXPECTED = "no download client expected"
SKIP_GRAB_MANUAL = "manual verification required"
SCHEMA_UNAUTHENTICATED = "API key required even for schema gate"

DEFAULT_DIAGNOSTICS_PATH = Path("diagnostics")

PairKey = tuple[str, Gate]


class CancellationToken:
    """Cooperative cancellation signal checked between (plugin, gate) pairs."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class GateRunRequest:
    plugins: tuple[str, ...]
    selector: GateSelector
    api_url: str
    api_key: str | None = None
    container_id: str | None = None
    diagnostics_path: Path = DEFAULT_DIAGNOSTICS_PATH
    suppress_diagnostics: bool = False


@dataclass
class DiagnosticsOutcome:
    bundle_path: str | None = None
    summary: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {"bundlePath": self.bundle_path, "summary": self.summary, "error": self.error}


@dataclass
class GateRunReport:
    """Aggregate of one orchestrator invocation."""

    request: GateRunRequest
    results: list[GateResult] = field(default_factory=list)
    states: dict[PairKey, GateStatus] = field(default_factory=dict)
    pending: list[PairKey] = field(default_factory=list)
    cancelled: bool = False
    diagnostics: DiagnosticsOutcome | None = None

    @property
    def failures(self) -> list[GateResult]:
        return [r for r in self.results if r.failed]

    @property
    def success(self) -> bool:
        return not self.cancelled and not self.failures

    @property
    def error_code(self) -> E2EErrorCode | None:
        """Run-level classification; per-pair codes live on the results."""
        return E2EErrorCode.CANCELLED if self.cancelled else None


class GateOrchestrator:
    """Drives schema/search/grab gates per plugin and aggregates results."""

    def __init__(
        self,
        probe: GateProbe,
        diagnostics: DiagnosticsCollector | None = None,
        profiles: Mapping[str, PluginExpectationProfile] = KNOWN_PLUGIN_PROFILES,
        resolver: IndexerResolver | None = None,
    ) -> None:
        self.probe = probe
        self.diagnostics = diagnostics
        self.profiles = profiles
        self.resolver = resolver or SubstringIndexerResolver()

    def preflight(self, request: GateRunRequest) -> tuple[Gate, ...]:
        """Validate the request without touching the network.

        Raises:
            ConfigurationError: If no plugins are given or a credential is missing
        """
        if not request.plugins:
            raise ConfigurationError("No plugins requested", E2EErrorCode.CONFIG_INVALID)

        gates = request.selector.gates()
        needs_key = [g.value for g in gates if g.requires_credentials]
        if needs_key and not request.api_key:
            raise ConfigurationError(
                f"API key required for gate(s): {', '.join(needs_key)}",
                E2EErrorCode.AUTH_MISSING,
            )
        return gates

    def run(
        self,
        request: GateRunRequest,
        cancel_token: CancellationToken | None = None,
    ) -> GateRunReport:
        """Evaluate every requested (plugin, gate) pair.

        Args:
            request: Plugins, gate selector, connection details and diagnostics options
            cancel_token: Checked before each pair; once set, remaining pairs
                are reported as pending

        Returns:
            GateRunReport with one result per evaluated pair, in request order

        Raises:
            ConfigurationError: From ``preflight``, before any network call
        """
        gates = self.preflight(request)
        self.probe.initialize(request.api_url, request.api_key)

        status_open = False
        if Gate.SCHEMA in gates and not request.api_key:
            status_open = self._status_open_without_key()

        profiles = {plugin: resolve_profile(plugin, self.profiles) for plugin in request.plugins}
        pairs: list[PairKey] = [(plugin, gate) for plugin in request.plugins for gate in gates]
        report = GateRunReport(request=request, states={pair: GateStatus.NOT_RUN for pair in pairs})

        for index, pair in enumerate(pairs):
            if cancel_token is not None and cancel_token.cancelled:
                report.cancelled = True
                report.pending = pairs[index:]
                logger.warning("Gate run cancelled; %d pair(s) not started", len(report.pending))
                break

            plugin, gate = pair
            self._transition(report, pair, GateStatus.RUNNING)
            try:
                result = self._run_gate(gate, plugin, profiles[plugin], request, status_open)
            except Exception as e:
                logger.error("%s gate for %s raised: %s", gate.value, plugin, e)
                result = GateResult.failure(
                    gate,
                    plugin,
                    [f"{type(e).__name__}: {e}"],
                    error_code=classify_exception(e),
                )

            report.results.append(result)
            self._transition(report, pair, result.status)
            logger.info("%s/%s -> %s", plugin, gate.value, result.status.value)

        if self.diagnostics is not None and self._should_collect_diagnostics(report):
            report.diagnostics = self._collect_diagnostics(self.diagnostics, report)

        return report

    def _status_open_without_key(self) -> bool:
        """True when the status endpoint answers a request that carries no key."""
        try:
            self.probe.check_status()
        except Exception as e:
            logger.debug("Unauthenticated status probe rejected: %s", e)
            return False
        logger.warning("Status endpoint answered without an API key")
        return True

    def _transition(self, report: GateRunReport, pair: PairKey, new_status: GateStatus) -> None:
        current = report.states[pair]
        if current.terminal or (new_status is GateStatus.RUNNING and current is not GateStatus.NOT_RUN):
            raise RuntimeError(f"Illegal gate transition for {pair}: {current.value} -> {new_status.value}")
        report.states[pair] = new_status

    def _run_gate(
        self,
        gate: Gate,
        plugin: str,
        profile: PluginExpectationProfile,
        request: GateRunRequest,
        status_open: bool = False,
    ) -> GateResult:
        if gate is Gate.SCHEMA:
            return self._run_schema(plugin, profile, request, status_open)
        if gate is Gate.SEARCH:
            return self._run_search(plugin, profile)
        return self._run_grab(plugin, profile)

    def _run_schema(
        self,
        plugin: str,
        profile: PluginExpectationProfile,
        request: GateRunRequest,
        status_open: bool = False,
    ) -> GateResult:
        if status_open:
            # The host answered an unauthenticated status request: contract violation.
            return GateResult.failure(
                Gate.SCHEMA,
                plugin,
                [SCHEMA_UNAUTHENTICATED],
                metrics={"unauthenticatedAccess": True, "statusProbe": "unauthenticated"},
                error_code=E2EErrorCode.AUTH_MISSING,
            )

        result = self.probe.run_schema_gate(
            plugin,
            profile.expect_indexer,
            profile.expect_download_client,
            profile.expect_import_list,
        )
        result = dataclasses.replace(result, gate=Gate.SCHEMA, plugin_name=plugin)

        if not request.api_key and result.success:
            return GateResult.failure(
                Gate.SCHEMA,
                plugin,
                [SCHEMA_UNAUTHENTICATED],
                metrics={**result.metrics, "unauthenticatedAccess": True},
                error_code=E2EErrorCode.AUTH_MISSING,
            )
        return result

    def _run_search(self, plugin: str, profile: PluginExpectationProfile) -> GateResult:
        if not profile.expect_indexer:
            return GateResult.skip(Gate.SEARCH, plugin, SKIP_NO_INDEXER_EXPECTED)

        try:
            indexers = self.probe.list_indexers()
        except Exception as e:
            return GateResult.failure(
                Gate.SEARCH,
                plugin,
                [f"Indexer lookup failed: {e}"],
                error_code=classify_exception(e),
            )

        matches = self.resolver.resolve(plugin, indexers)
        if not matches:
            return GateResult.skip(
                Gate.SEARCH,
                plugin,
                SKIP_NO_INDEXER_CONFIGURED,
                metrics={"configuredIndexers": len(indexers)},
            )

        if len(matches) > 1:
            logger.warning(
                "%d indexers match plugin '%s' (%s); using the first",
                len(matches),
                plugin,
                ", ".join(indexer_names(matches)),
            )

        selected = matches[0]
        result = self.probe.run_search_gate(selected.id, plugin)
        metrics = {
            **result.metrics,
            "indexerFound": True,
            "indexerId": selected.id,
            "matchCount": len(matches),
            "ambiguous": len(matches) > 1,
        }
        error_code = result.error_code
        if error_code is None and len(matches) > 1:
            error_code = E2EErrorCode.COMPONENT_AMBIGUOUS
        return dataclasses.replace(
            result,
            gate=Gate.SEARCH,
            plugin_name=plugin,
            metrics=metrics,
            error_code=error_code,
        )

    def _run_grab(self, plugin: str, profile: PluginExpectationProfile) -> GateResult:
        if not profile.expect_download_client:
            return GateResult.skip(Gate.GRAB, plugin, SKIP_NO_DOWNLOAD_CLIENT_EXPECTED)
        # A grab needs a release identifier that cannot be derived automatically.
        return GateResult.skip(
            Gate.GRAB,
            plugin,
            SKIP_GRAB_MANUAL,
            metrics={"requires": "releaseId"},
        )

    def _should_collect_diagnostics(self, report: GateRunReport) -> bool:
        request = report.request
        return (
            not report.success
            and not report.cancelled
            and bool(request.api_key)
            and not request.suppress_diagnostics
        )

    def _collect_diagnostics(
        self,
        collector: DiagnosticsCollector,
        report: GateRunReport,
    ) -> DiagnosticsOutcome:
        request = report.request
        outcome = DiagnosticsOutcome()
        try:
            outcome.summary = collector.summarize_failures(report.results)
            outcome.bundle_path = collector.create_diagnostics_bundle(
                request.diagnostics_path,
                request.container_id,
                request.api_url,
                request.api_key,
                list(report.results),
            )
        except Exception as e:
            logger.error("Diagnostics collection failed: %s", e)
            outcome.error = f"{type(e).__name__}: {e}"
        return outcome
