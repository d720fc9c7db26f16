"""Read-only access to nightly drift artifacts."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from plugincheck.drift.types import Artifact, Probe
from plugincheck.schemas import validate_data

logger = logging.getLogger(__name__)

ARTIFACT_SCHEMA = "drift_artifact"


class ArtifactLoadError(RuntimeError):
    """No usable artifacts could be loaded."""


class ArtifactRepository(Protocol):
    def load(self) -> list[Artifact]: ...


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def parse_artifact(data: dict[str, Any], source: str | None = None) -> Artifact:
    """Convert one artifact document into an ``Artifact``.

    Raises:
        ValueError: If the document does not match the artifact schema or
            the timestamp is not ISO-8601
    """
    validate_data(data, ARTIFACT_SCHEMA, strict=True)

    probes = tuple(
        Probe(
            provider=str(raw["provider"]),
            drift_detected=bool(raw.get("driftDetected", False)),
            has_error=bool(raw.get("hasError", False)),
            is_inconclusive=bool(raw.get("isInconclusive", False)),
        )
        for raw in data.get("probes", [])
    )

    return Artifact(
        timestamp=_parse_timestamp(data["timestamp"]),
        expectations_version=str(data.get("expectationsVersion", "")),
        probes=probes,
        source=source,
    )


class DirectoryArtifactRepository:
    """Artifacts from a single JSON file or a directory tree of ``*.json`` files."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def candidate_files(self) -> list[Path]:
        if not self.path.exists():
            raise ArtifactLoadError(f"Artifact path not found: {self.path}")
        if self.path.is_file():
            return [self.path]
        return sorted(p for p in self.path.rglob("*.json") if p.is_file())

    def load(self) -> list[Artifact]:
        """Load every parseable artifact.

        Files that fail to parse are logged and skipped.

        Raises:
            ArtifactLoadError: If no files are found or none parse
        """
        files = self.candidate_files()
        if not files:
            raise ArtifactLoadError(f"No drift artifacts (*.json) found under {self.path}")

        artifacts: list[Artifact] = []
        for file_path in files:
            try:
                with open(file_path, encoding="utf-8") as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("artifact is not a JSON object")
                artifacts.append(parse_artifact(data, source=str(file_path)))
            except (OSError, ValueError) as e:
                logger.warning("Skipping unreadable artifact %s: %s", file_path, e)

        if not artifacts:
            raise ArtifactLoadError(
                f"Found {len(files)} artifact file(s) under {self.path} but none could be parsed"
            )

        logger.info("Loaded %d of %d artifact file(s) from %s", len(artifacts), len(files), self.path)
        return artifacts
