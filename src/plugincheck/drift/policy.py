"""Promotion policy defaults and recommendation rendering."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from plugincheck.drift.types import PromotionDecision, ProviderPolicy

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_THRESHOLDS: dict[str, int] = {
    "qobuz": 5,
    "tidal": 7,
}
DEFAULT_THRESHOLD = 5
DEFAULT_MAX_INCONCLUSIVE_PERCENT = 10.0

# Inconclusive-rate window follows the threshold when no explicit window is set.
COUPLED_WINDOW = "coupled"
EXPLICIT_WINDOW = "explicit"

PROVIDER_FILTER_ALL = "all"

READY_RECOMMENDATION = "READY: Promote to strict mode"
NOT_READY_PREFIX = "NOT READY: "


def default_provider_policies() -> dict[str, ProviderPolicy]:
    """Return a fresh policy mapping for the built-in providers."""
    return {
        name: ProviderPolicy(provider=name, threshold=threshold)
        for name, threshold in DEFAULT_PROVIDER_THRESHOLDS.items()
    }


def resolve_window_size(policy: ProviderPolicy) -> int:
    """Explicit window when configured, otherwise the coupled threshold."""
    if policy.window_size is not None:
        return policy.window_size
    return policy.threshold


def window_mode(policy: ProviderPolicy) -> str:
    """Name the window mode reported alongside ``windowSize``."""
    return COUPLED_WINDOW if policy.window_size is None else EXPLICIT_WINDOW


def select_providers(
    provider_filter: str,
    policies: Mapping[str, ProviderPolicy],
    *,
    threshold_override: int | None = None,
    window_override: int | None = None,
) -> list[ProviderPolicy]:
    """Resolve a provider filter into the policies to analyze.

    ``all`` expands to every configured provider in sorted order. A name
    without a configured policy gets ``DEFAULT_THRESHOLD`` and a warning.

    Args:
        provider_filter: Provider name or ``all``, case-insensitive
        policies: Configured policies keyed by lowercase provider name
        threshold_override: Replaces every selected threshold when given
        window_override: Replaces every selected window when given

    Returns:
        Policies to analyze, in report order
    """
    normalized = provider_filter.strip().lower()
    if normalized == PROVIDER_FILTER_ALL:
        selected = [policies[name] for name in sorted(policies)]
    elif normalized in policies:
        selected = [policies[normalized]]
    else:
        logger.warning(
            "No policy configured for provider '%s'; using default threshold %d",
            provider_filter,
            DEFAULT_THRESHOLD,
        )
        selected = [ProviderPolicy(provider=normalized, threshold=DEFAULT_THRESHOLD)]

    if threshold_override is None and window_override is None:
        return selected

    return [
        ProviderPolicy(
            provider=policy.provider,
            threshold=threshold_override if threshold_override is not None else policy.threshold,
            window_size=window_override if window_override is not None else policy.window_size,
        )
        for policy in selected
    ]


def render_recommendation(decision: PromotionDecision) -> str:
    """Human-readable recommendation; every reason is kept."""
    if decision.ready:
        return READY_RECOMMENDATION
    return NOT_READY_PREFIX + "; ".join(decision.reasons)
