"""Live Lidarr instance collaborator.

``GateProbe`` is the contract the orchestrator drives. ``LidarrGateClient``
implements it over the Lidarr v1 REST API with one blocking request at a
time, a per-request timeout and no retries.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol

import requests

from plugincheck.gates.types import E2EErrorCode, Gate, GateResult, Indexer

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0
API_PREFIX = "/api/v1"

_SCHEMA_ENDPOINTS: dict[str, str] = {
    "indexer": "indexer/schema",
    "downloadClient": "downloadclient/schema",
    "importList": "importlist/schema",
}

_COMPONENT_LABELS: dict[str, str] = {
    "indexer": "Indexer",
    "downloadClient": "Download client",
    "importList": "Import list",
}


class GateProbe(Protocol):
    def initialize(self, api_url: str, api_key: str | None) -> None: ...

    def check_status(self) -> dict[str, Any]: ...

    def run_schema_gate(
        self,
        plugin_name: str,
        expect_indexer: bool,
        expect_download_client: bool,
        expect_import_list: bool = False,
    ) -> GateResult: ...

    def run_search_gate(self, indexer_id: int, plugin_name: str = "") -> GateResult: ...

    def list_indexers(self) -> list[Indexer]: ...


def classify_exception(exc: BaseException) -> E2EErrorCode | None:
    """Map a transport or HTTP exception onto an E2E error code."""
    if isinstance(exc, requests.Timeout):
        return E2EErrorCode.API_TIMEOUT
    if isinstance(exc, requests.ConnectionError):
        return E2EErrorCode.PROVIDER_UNAVAILABLE
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        status = exc.response.status_code
        if status in (401, 403):
            return E2EErrorCode.AUTH_MISSING
        if status == 429:
            return E2EErrorCode.RATE_LIMITED
        if status >= 500:
            return E2EErrorCode.PROVIDER_UNAVAILABLE
    return None


def _matches_plugin(entry: dict[str, Any], plugin_name: str) -> bool:
    needle = plugin_name.casefold()
    for key in ("implementation", "implementationName", "name"):
        value = entry.get(key)
        if isinstance(value, str) and needle in value.casefold():
            return True
    return False


def _validation_messages(payload: Any) -> list[str]:
    """Extract Lidarr validation failure messages from a 400 response body."""
    if not isinstance(payload, list):
        return []
    messages = []
    for item in payload:
        if isinstance(item, dict) and item.get("errorMessage"):
            prop = item.get("propertyName")
            message = str(item["errorMessage"])
            messages.append(f"{prop}: {message}" if prop else message)
    return messages


class LidarrGateClient:
    """``GateProbe`` backed by ``requests``."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_S,
        session: requests.Session | None = None,
    ) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()
        self.api_url = ""
        self.authenticated = False

    def initialize(self, api_url: str, api_key: str | None) -> None:
        """Store connection context. No request is sent."""
        self.api_url = api_url.rstrip("/")
        self.session.headers.pop("X-Api-Key", None)
        if api_key:
            self.session.headers["X-Api-Key"] = api_key
        self.authenticated = bool(api_key)

    def _url(self, path: str) -> str:
        if not self.api_url:
            raise RuntimeError("Client not initialized; call initialize(api_url, api_key) first")
        return f"{self.api_url}{API_PREFIX}/{path.lstrip('/')}"

    def _get(self, path: str) -> Any:
        logger.debug("GET %s", path)
        resp = self.session.get(self._url(path), timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def check_status(self) -> dict[str, Any]:
        """Fetch ``system/status``."""
        data = self._get("system/status")
        return data if isinstance(data, dict) else {}

    def list_indexers(self) -> list[Indexer]:
        data = self._get("indexer")
        if not isinstance(data, list):
            raise RuntimeError(f"Unexpected indexer list payload: {type(data).__name__}")
        return [
            Indexer(
                id=int(item["id"]),
                name=str(item.get("name") or ""),
                implementation=str(item.get("implementation") or ""),
            )
            for item in data
            if isinstance(item, dict) and "id" in item
        ]

    def run_schema_gate(
        self,
        plugin_name: str,
        expect_indexer: bool,
        expect_download_client: bool,
        expect_import_list: bool = False,
    ) -> GateResult:
        """Check that the plugin registered every expected component schema.

        Only the schema endpoints for expected components are queried.

        Returns:
            Passed result, or a Failed result (``E2E_LOAD_FAILURE``) listing
            each missing component

        Raises:
            requests.RequestException: On transport errors or non-2xx replies
        """
        expectations = {
            "indexer": expect_indexer,
            "downloadClient": expect_download_client,
            "importList": expect_import_list,
        }

        metrics: dict[str, Any] = {}
        errors: list[str] = []
        for component, expected in expectations.items():
            if not expected:
                continue
            entries = self._get(_SCHEMA_ENDPOINTS[component])
            found = isinstance(entries, list) and any(
                isinstance(entry, dict) and _matches_plugin(entry, plugin_name) for entry in entries
            )
            metrics[f"{component}Found"] = found
            if not found:
                errors.append(
                    f"{_COMPONENT_LABELS[component]} schema for '{plugin_name}' not found"
                )

        if errors:
            return GateResult.failure(
                Gate.SCHEMA,
                plugin_name,
                errors,
                metrics=metrics,
                error_code=E2EErrorCode.LOAD_FAILURE,
            )
        return GateResult.passed(Gate.SCHEMA, plugin_name, metrics)

    def run_search_gate(self, indexer_id: int, plugin_name: str = "") -> GateResult:
        """Ask the instance to exercise the indexer via ``indexer/test``.

        Args:
            indexer_id: Configured indexer to test
            plugin_name: Plugin the result is attributed to

        Returns:
            Passed result, or a Failed result (``E2E_CONFIG_INVALID``) with the
            host validation messages when the test is rejected with HTTP 400

        Raises:
            requests.RequestException: On transport errors or other non-2xx replies
        """
        indexer = self._get(f"indexer/{indexer_id}")
        metrics: dict[str, Any] = {
            "indexerId": indexer_id,
            "indexerName": indexer.get("name") if isinstance(indexer, dict) else None,
        }

        logger.debug("POST indexer/test (id=%s)", indexer_id)
        resp = self.session.post(self._url("indexer/test"), json=indexer, timeout=self.timeout)
        if resp.status_code == 400:
            try:
                messages = _validation_messages(resp.json())
            except ValueError:
                messages = []
            return GateResult.failure(
                Gate.SEARCH,
                plugin_name,
                messages or [f"Indexer test rejected (HTTP 400): {resp.text[:200]}"],
                metrics=metrics,
                error_code=E2EErrorCode.CONFIG_INVALID,
            )
        resp.raise_for_status()
        return GateResult.passed(Gate.SEARCH, plugin_name, metrics)

    def close(self) -> None:
        self.session.close()


def indexer_names(indexers: Sequence[Indexer]) -> list[str]:
    return [f"{i.name} ({i.implementation})" for i in indexers]
