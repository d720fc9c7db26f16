"""Gate verification domain types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Gate(str, Enum):
    """One verification check against a live instance."""

    SCHEMA = "schema"
    SEARCH = "search"
    GRAB = "grab"

    @property
    def requires_credentials(self) -> bool:
        return self is not Gate.SCHEMA


class GateSelector(str, Enum):
    SCHEMA = "schema"
    SEARCH = "search"
    GRAB = "grab"
    ALL = "all"

    def gates(self) -> tuple[Gate, ...]:
        if self is GateSelector.ALL:
            return (Gate.SCHEMA, Gate.SEARCH, Gate.GRAB)
        return (Gate(self.value),)


class GateStatus(str, Enum):
    NOT_RUN = "not_run"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def terminal(self) -> bool:
        return self in (GateStatus.PASSED, GateStatus.FAILED, GateStatus.SKIPPED)


class E2EErrorCode(str, Enum):
    """Machine-readable failure classification carried on gate results."""

    AUTH_MISSING = "E2E_AUTH_MISSING"
    CONFIG_INVALID = "E2E_CONFIG_INVALID"
    API_TIMEOUT = "E2E_API_TIMEOUT"
    DOCKER_UNAVAILABLE = "E2E_DOCKER_UNAVAILABLE"
    NO_RELEASES_ATTRIBUTED = "E2E_NO_RELEASES_ATTRIBUTED"
    QUEUE_NOT_FOUND = "E2E_QUEUE_NOT_FOUND"
    ZERO_AUDIO_FILES = "E2E_ZERO_AUDIO_FILES"
    METADATA_MISSING = "E2E_METADATA_MISSING"
    IMPORT_FAILED = "E2E_IMPORT_FAILED"
    COMPONENT_AMBIGUOUS = "E2E_COMPONENT_AMBIGUOUS"
    LOAD_FAILURE = "E2E_LOAD_FAILURE"
    RATE_LIMITED = "E2E_RATE_LIMITED"
    PROVIDER_UNAVAILABLE = "E2E_PROVIDER_UNAVAILABLE"
    CANCELLED = "E2E_CANCELLED"


class ConfigurationError(ValueError):
    """Pre-flight failure: the requested gates cannot run with the given inputs."""

    error_code: E2EErrorCode

    def __init__(self, message: str, error_code: E2EErrorCode = E2EErrorCode.AUTH_MISSING) -> None:
        super().__init__(message)
        self.error_code = error_code


@dataclass(frozen=True)
class PluginExpectationProfile:
    """Which component kinds a plugin is expected to register."""

    expect_indexer: bool = True
    expect_download_client: bool = True
    expect_import_list: bool = False


@dataclass(frozen=True)
class Indexer:
    """Configured indexer as reported by the live instance."""

    id: int
    name: str
    implementation: str


@dataclass(frozen=True)
class GateResult:
    """Outcome of one (plugin, gate) evaluation."""

    gate: Gate
    plugin_name: str
    status: GateStatus
    errors: tuple[str, ...] = ()
    metrics: dict[str, Any] = field(default_factory=dict)
    skip_reason: str | None = None
    error_code: E2EErrorCode | None = None

    @property
    def success(self) -> bool:
        return self.status is GateStatus.PASSED

    @property
    def failed(self) -> bool:
        return self.status is GateStatus.FAILED

    @property
    def skipped(self) -> bool:
        return self.status is GateStatus.SKIPPED

    @classmethod
    def passed(cls, gate: Gate, plugin_name: str, metrics: dict[str, Any] | None = None) -> GateResult:
        return cls(gate=gate, plugin_name=plugin_name, status=GateStatus.PASSED, metrics=metrics or {})

    @classmethod
    def failure(
        cls,
        gate: Gate,
        plugin_name: str,
        errors: list[str] | tuple[str, ...],
        *,
        metrics: dict[str, Any] | None = None,
        error_code: E2EErrorCode | None = None,
    ) -> GateResult:
        return cls(
            gate=gate,
            plugin_name=plugin_name,
            status=GateStatus.FAILED,
            errors=tuple(errors),
            metrics=metrics or {},
            error_code=error_code,
        )

    @classmethod
    def skip(
        cls,
        gate: Gate,
        plugin_name: str,
        reason: str,
        metrics: dict[str, Any] | None = None,
    ) -> GateResult:
        return cls(
            gate=gate,
            plugin_name=plugin_name,
            status=GateStatus.SKIPPED,
            metrics=metrics or {},
            skip_reason=reason,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "gate": self.gate.value,
            "pluginName": self.plugin_name,
            "status": self.status.value,
            "success": self.success,
            "errors": list(self.errors),
            "metrics": dict(self.metrics),
            "skipReason": self.skip_reason,
            "errorCode": self.error_code.value if self.error_code else None,
        }
