"""Pytest configuration and fixtures for plugincheck tests."""

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from plugincheck.drift.types import Artifact, Probe

BASE_TIME = datetime(2026, 1, 1, 3, 0, tzinfo=UTC)


def pytest_sessionfinish(session, exitstatus):
    """Fail the session if --cov was requested but no data was collected."""
    cov_enabled = any("--cov" in str(arg) for arg in session.config.args)
    if not cov_enabled:
        return

    if not list(Path.cwd().glob(".coverage*")):
        pytest.exit(
            "Coverage was enabled but no data was collected. "
            "Check that tests import from 'plugincheck' (the package) not 'src/plugincheck'.",
            returncode=1,
        )


@pytest.fixture
def make_artifact():
    """Build an Artifact ``days_ago`` days before BASE_TIME."""

    def _make(
        days_ago: int,
        provider: str = "qobuz",
        *,
        drift: bool = False,
        error: bool = False,
        probes: int = 1,
        inconclusive: int = 0,
        version: str = "v1",
    ) -> Artifact:
        items = tuple(
            Probe(
                provider=provider,
                drift_detected=drift and i == 0,
                has_error=error and i == 0,
                is_inconclusive=i < inconclusive,
            )
            for i in range(probes)
        )
        return Artifact(
            timestamp=BASE_TIME - timedelta(days=days_ago),
            expectations_version=version,
            probes=items,
        )

    return _make


@pytest.fixture
def write_artifact(tmp_path):
    """Write a raw artifact document into ``tmp_path/artifacts``."""
    artifacts_dir = tmp_path / "artifacts"
    artifacts_dir.mkdir()

    def _write(name: str, days_ago: int, probes: list[dict], version: str = "v1") -> Path:
        doc = {
            "timestamp": (BASE_TIME - timedelta(days=days_ago)).isoformat().replace("+00:00", "Z"),
            "expectationsVersion": version,
            "probes": probes,
        }
        path = artifacts_dir / name
        path.write_text(json.dumps(doc), encoding="utf-8")
        return path

    _write.dir = artifacts_dir  # type: ignore[attr-defined]
    return _write
