"""Drift analysis domain types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Probe:
    """One provider observation within a single nightly run."""

    provider: str
    drift_detected: bool = False
    has_error: bool = False
    is_inconclusive: bool = False


@dataclass(frozen=True)
class Artifact:
    """Timestamped snapshot of probe observations."""

    timestamp: datetime
    expectations_version: str
    probes: tuple[Probe, ...]
    source: str | None = field(default=None, compare=False)


@dataclass(frozen=True)
class ProviderRunResult:
    """Per-provider projection of one artifact. Never persisted."""

    timestamp: datetime
    version: str
    provider: str
    has_drift: bool
    has_error: bool
    inconclusive_count: int
    total_probes: int
    inconclusive_percent: float

    @property
    def is_clean(self) -> bool:
        return not self.has_drift and not self.has_error


@dataclass(frozen=True)
class PromotionDecision:
    """Readiness verdict with every violated condition listed."""

    ready: bool
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProviderPolicy:
    """Promotion knobs for one provider.

    ``window_size`` of None selects the coupled compatibility mode where the
    inconclusive-rate window equals the threshold.
    """

    provider: str
    threshold: int
    window_size: int | None = None


@dataclass(frozen=True)
class ProviderAnalysis:
    """Full analysis output for one provider."""

    policy: ProviderPolicy
    window_size: int
    max_inconclusive_percent: float
    results: tuple[ProviderRunResult, ...]
    pass_streak: int
    inconclusive_rate: float
    decision: PromotionDecision
