"""Fakes for the gate orchestrator collaborators."""

from __future__ import annotations

from pathlib import Path

import pytest
import requests

from plugincheck.gates.types import Gate, GateResult, Indexer


class FakeProbe:
    """In-memory GateProbe; values may be results or exceptions to raise."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.initialized_with: tuple[str, str | None] | None = None
        self.schema_outcomes: dict[str, GateResult | Exception] = {}
        self.indexers: list[Indexer] | Exception = []
        self.search_outcomes: dict[int, GateResult | Exception] = {}
        self.status_outcome: dict | Exception = requests.HTTPError("401 Client Error: Unauthorized")

    def initialize(self, api_url: str, api_key: str | None) -> None:
        self.calls.append(("initialize", api_url))
        self.initialized_with = (api_url, api_key)

    def check_status(self):
        self.calls.append(("status",))
        if isinstance(self.status_outcome, Exception):
            raise self.status_outcome
        return self.status_outcome

    def run_schema_gate(self, plugin_name, expect_indexer, expect_download_client, expect_import_list=False):
        self.calls.append(("schema", plugin_name, expect_indexer, expect_download_client, expect_import_list))
        outcome = self.schema_outcomes.get(plugin_name, GateResult.passed(Gate.SCHEMA, plugin_name))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def list_indexers(self):
        self.calls.append(("list_indexers",))
        if isinstance(self.indexers, Exception):
            raise self.indexers
        return list(self.indexers)

    def run_search_gate(self, indexer_id, plugin_name=""):
        self.calls.append(("search", indexer_id, plugin_name))
        outcome = self.search_outcomes.get(indexer_id, GateResult.passed(Gate.SEARCH, plugin_name))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeDiagnostics:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.bundle_calls: list[dict] = []

    def summarize_failures(self, results):
        return f"{sum(1 for r in results if r.failed)} failure(s)"

    def create_diagnostics_bundle(self, output_path: Path, container_id, api_url, api_key, results):
        self.bundle_calls.append(
            {
                "output_path": output_path,
                "container_id": container_id,
                "api_url": api_url,
                "api_key": api_key,
                "results": list(results),
            }
        )
        if self.fail:
            raise OSError("disk full")
        return str(output_path / "bundle.zip")


@pytest.fixture
def probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture
def diagnostics() -> FakeDiagnostics:
    return FakeDiagnostics()


@pytest.fixture
def failing_diagnostics() -> FakeDiagnostics:
    return FakeDiagnostics(fail=True)
