"""Drift streak analysis.

Everything in this module is pure: no I/O, no shared state between calls.
Each function can be invoked per provider in any order or concurrently.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from plugincheck.drift.policy import resolve_window_size
from plugincheck.drift.types import (
    Artifact,
    PromotionDecision,
    ProviderAnalysis,
    ProviderPolicy,
    ProviderRunResult,
)

_ONE_DECIMAL = Decimal("0.1")


def round_percent(numerator: int, denominator: int) -> float:
    """Return ``100 * numerator / denominator`` rounded half away from zero to one decimal.

    Uses exact decimal arithmetic so 1/16 (6.25%) rounds to 6.3 rather than
    the 6.2 that binary round-half-to-even would give. A zero denominator
    yields 0.0.
    """
    if denominator <= 0:
        return 0.0
    value = Decimal(numerator) * 100 / Decimal(denominator)
    return float(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def project_provider_results(
    artifacts: Iterable[Artifact],
    provider_name: str,
) -> list[ProviderRunResult]:
    """Project artifacts onto one provider, newest first.

    Artifacts without a probe for ``provider_name`` are dropped rather than
    counted as failures. Provider names compare case-insensitively.

    Args:
        artifacts: Loaded drift artifacts in any order
        provider_name: Provider to project onto

    Returns:
        One ProviderRunResult per artifact that probed the provider, sorted
        by timestamp descending
    """
    wanted = provider_name.casefold()
    results: list[ProviderRunResult] = []

    for artifact in artifacts:
        probes = [p for p in artifact.probes if p.provider.casefold() == wanted]
        if not probes:
            continue

        inconclusive = sum(1 for p in probes if p.is_inconclusive)
        results.append(
            ProviderRunResult(
                timestamp=artifact.timestamp,
                version=artifact.expectations_version,
                provider=provider_name,
                has_drift=any(p.drift_detected for p in probes),
                has_error=any(p.has_error for p in probes),
                inconclusive_count=inconclusive,
                total_probes=len(probes),
                inconclusive_percent=round_percent(inconclusive, len(probes)),
            )
        )

    results.sort(key=lambda r: r.timestamp, reverse=True)
    return results


def compute_pass_streak(results: Sequence[ProviderRunResult]) -> int:
    """Count consecutive clean runs starting at the most recent entry."""
    streak = 0
    for result in results:
        if not result.is_clean:
            break
        streak += 1
    return streak


def compute_average_inconclusive_rate(
    results: Sequence[ProviderRunResult],
    window_size: int,
) -> float:
    """Pooled inconclusive percentage over the ``window_size`` most recent runs.

    Probes are summed across the window before dividing, so a run with many
    probes weighs more than a run with few.

    Args:
        results: Per-provider runs, newest first
        window_size: Number of runs to pool; 0 or less yields 0.0

    Returns:
        Percentage in [0, 100], rounded half-up to one decimal
    """
    if window_size <= 0:
        return 0.0

    window = results[:window_size]
    total_probes = sum(r.total_probes for r in window)
    total_inconclusive = sum(r.inconclusive_count for r in window)
    return round_percent(total_inconclusive, total_probes)


def evaluate_promotion_readiness(
    pass_streak: int,
    inconclusive_rate: float,
    threshold: int,
    max_inconclusive_percent: float,
) -> PromotionDecision:
    """Decide readiness, reporting every violated condition.

    Both bounds are inclusive: a streak equal to ``threshold`` and a rate
    equal to ``max_inconclusive_percent`` pass.

    Returns:
        PromotionDecision whose reasons list the streak blocker first, then
        the inconclusive-rate blocker
    """
    reasons: list[str] = []

    if pass_streak < threshold:
        reasons.append(f"Pass streak ({pass_streak}) < threshold ({threshold})")

    if inconclusive_rate > max_inconclusive_percent:
        reasons.append(
            f"Inconclusive rate ({inconclusive_rate:.1f}%) > "
            f"max allowed ({max_inconclusive_percent:.1f}%)"
        )

    return PromotionDecision(ready=not reasons, reasons=tuple(reasons))


def analyze_provider(
    artifacts: Sequence[Artifact],
    policy: ProviderPolicy,
    max_inconclusive_percent: float,
) -> ProviderAnalysis:
    """Run projection, streak, rate and readiness for one provider.

    Args:
        artifacts: All loaded artifacts
        policy: Threshold and optional window for the provider
        max_inconclusive_percent: Upper bound on the pooled inconclusive rate

    Returns:
        ProviderAnalysis carrying the projected runs and the decision
    """
    results = project_provider_results(artifacts, policy.provider)
    window_size = resolve_window_size(policy)
    pass_streak = compute_pass_streak(results)
    rate = compute_average_inconclusive_rate(results, window_size)
    decision = evaluate_promotion_readiness(
        pass_streak=pass_streak,
        inconclusive_rate=rate,
        threshold=policy.threshold,
        max_inconclusive_percent=max_inconclusive_percent,
    )

    return ProviderAnalysis(
        policy=policy,
        window_size=window_size,
        max_inconclusive_percent=max_inconclusive_percent,
        results=tuple(results),
        pass_streak=pass_streak,
        inconclusive_rate=rate,
        decision=decision,
    )
