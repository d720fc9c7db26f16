"""Diagnostics capture for failed gate runs."""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
import subprocess
import uuid
import zipfile
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

import requests

from plugincheck.gates.client import API_PREFIX
from plugincheck.gates.types import GateResult

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"
CONTAINER_LOG_TAIL = 500
STATUS_TIMEOUT_S = 5.0


class DiagnosticsCollector(Protocol):
    def create_diagnostics_bundle(
        self,
        output_path: Path,
        container_id: str | None,
        api_url: str,
        api_key: str | None,
        results: Sequence[GateResult],
    ) -> str: ...

    def summarize_failures(self, results: Sequence[GateResult]) -> str: ...


def summarize_failures(results: Sequence[GateResult]) -> str:
    """One line per failed result."""
    lines = [
        f"{r.plugin_name}/{r.gate.value}: {'; '.join(r.errors) or 'failed without detail'}"
        for r in results
        if r.failed
    ]
    return "\n".join(lines) if lines else "No gate failures"


def redact(text: str, secret: str | None) -> str:
    if not secret:
        return text
    return text.replace(secret, REDACTED)


class BundleDiagnosticsCollector:
    """Writes a zip bundle with gate results, API status and container logs.

    Status and log capture are best effort: a failure is noted inside the
    bundle instead of aborting it. The API key is never written.
    """

    def __init__(
        self,
        docker_executable: str = "docker",
        log_tail: int = CONTAINER_LOG_TAIL,
        status_timeout: float = STATUS_TIMEOUT_S,
    ) -> None:
        self.docker_executable = docker_executable
        self.log_tail = log_tail
        self.status_timeout = status_timeout

    def summarize_failures(self, results: Sequence[GateResult]) -> str:
        return summarize_failures(results)

    def _system_status(self, api_url: str, api_key: str | None) -> dict[str, Any]:
        headers = {"X-Api-Key": api_key} if api_key else {}
        try:
            resp = requests.get(
                f"{api_url.rstrip('/')}{API_PREFIX}/system/status",
                headers=headers,
                timeout=self.status_timeout,
            )
            resp.raise_for_status()
            return {"captured": True, "status": resp.json()}
        except (requests.RequestException, ValueError) as e:
            return {"captured": False, "error": redact(str(e), api_key)}

    def _container_logs(self, container_id: str | None) -> str:
        if not container_id:
            return "No container identifier supplied; logs not captured.\n"
        if shutil.which(self.docker_executable) is None:
            return f"'{self.docker_executable}' not found on PATH; logs not captured.\n"
        try:
            proc = subprocess.run(
                [self.docker_executable, "logs", "--tail", str(self.log_tail), container_id],
                capture_output=True,
                text=True,
                timeout=30,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            return f"docker logs failed: {e}\n"
        if proc.returncode != 0:
            return f"docker logs exited {proc.returncode}: {proc.stderr.strip()}\n"
        return proc.stdout + proc.stderr

    def create_diagnostics_bundle(
        self,
        output_path: Path,
        container_id: str | None,
        api_url: str,
        api_key: str | None,
        results: Sequence[GateResult],
    ) -> str:
        """Write a diagnostics zip under ``output_path``.

        Args:
            output_path: Directory for the bundle; created if missing
            container_id: Container whose log tail is captured, if any
            api_url: Instance base URL for the status capture
            api_key: Used for the status request and redacted from every entry
            results: Gate results of the failed run

        Returns:
            Path of the written zip as a string

        Raises:
            OSError: If the bundle cannot be written
        """
        created_at = datetime.now(UTC)
        output_path.mkdir(parents=True, exist_ok=True)
        stamp = created_at.strftime("%Y%m%dT%H%M%S%fZ")
        bundle_path = output_path / f"diagnostics_{stamp}_{uuid.uuid4().hex[:8]}.zip"

        entries: dict[str, str] = {
            "gate-results.json": json.dumps(
                [r.to_dict() for r in results], indent=2, sort_keys=True, default=str
            ),
            "summary.txt": summarize_failures(results) + "\n",
            "system-status.json": json.dumps(
                self._system_status(api_url, api_key), indent=2, sort_keys=True, default=str
            ),
            "container.log": self._container_logs(container_id),
        }
        entries = {name: redact(text, api_key) for name, text in entries.items()}

        manifest = {
            "schema_version": "1.0",
            "created_at": created_at.isoformat(),
            "api_url": api_url,
            "container_id": container_id,
            "files": {
                name: hashlib.sha256(text.encode("utf-8")).hexdigest()
                for name, text in sorted(entries.items())
            },
        }

        with zipfile.ZipFile(bundle_path, "w", zipfile.ZIP_DEFLATED) as zf:
            for name, text in sorted(entries.items()):
                zf.writestr(name, text)
            zf.writestr("MANIFEST.json", json.dumps(manifest, indent=2, sort_keys=True))

        logger.info("Diagnostics bundle written to %s", bundle_path)
        return str(bundle_path)
