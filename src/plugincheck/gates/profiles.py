"""Plugin expectation profiles."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from plugincheck.gates.types import PluginExpectationProfile

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = PluginExpectationProfile(expect_indexer=True, expect_download_client=True)

KNOWN_PLUGIN_PROFILES: Mapping[str, PluginExpectationProfile] = {
    "AppleMusicarr": PluginExpectationProfile(expect_indexer=True, expect_download_client=True),
    "Brainarr": PluginExpectationProfile(
        expect_indexer=False,
        expect_download_client=False,
        expect_import_list=True,
    ),
    "Qobuzarr": PluginExpectationProfile(expect_indexer=True, expect_download_client=True),
    "Tidalarr": PluginExpectationProfile(expect_indexer=True, expect_download_client=True),
}


def resolve_profile(
    plugin_name: str,
    profiles: Mapping[str, PluginExpectationProfile] = KNOWN_PLUGIN_PROFILES,
) -> PluginExpectationProfile:
    """Look up a plugin profile case-insensitively.

    Unknown plugins fall back to ``DEFAULT_PROFILE`` with a warning.
    """
    wanted = plugin_name.casefold()
    for name, profile in profiles.items():
        if name.casefold() == wanted:
            return profile

    logger.warning(
        "Unknown plugin '%s'; assuming default profile (indexer + download client)",
        plugin_name,
    )
    return DEFAULT_PROFILE


def parse_plugin_list(raw: str) -> list[str]:
    """Split a comma-separated plugin list, dropping blanks and duplicates."""
    seen: set[str] = set()
    plugins: list[str] = []
    for part in raw.split(","):
        name = part.strip()
        if name and name.casefold() not in seen:
            seen.add(name.casefold())
            plugins.append(name)
    return plugins
