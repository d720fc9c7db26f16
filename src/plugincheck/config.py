"""Load and validate plugincheck configuration.

Configuration is an explicit value handed to each operation; nothing here
is process-wide mutable state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from plugincheck.drift.policy import DEFAULT_MAX_INCONCLUSIVE_PERCENT, DEFAULT_PROVIDER_THRESHOLDS
from plugincheck.drift.reporting import DEFAULT_RECENT_LIMIT
from plugincheck.drift.types import ProviderPolicy
from plugincheck.gates.client import DEFAULT_TIMEOUT_S
from plugincheck.gates.profiles import KNOWN_PLUGIN_PROFILES
from plugincheck.gates.types import PluginExpectationProfile

DEFAULT_CONFIG_RELATIVE_PATH = Path(".plugincheck/config.yaml")

# Keep this literal deterministic and sorted in write path.
CONFIG_TEMPLATE: dict[str, Any] = {
    "drift": {
        "max_inconclusive_percent": DEFAULT_MAX_INCONCLUSIVE_PERCENT,
        "recent_runs": DEFAULT_RECENT_LIMIT,
        "providers": {
            name: {"threshold": threshold} for name, threshold in DEFAULT_PROVIDER_THRESHOLDS.items()
        },
    },
    "gates": {
        "timeout_seconds": DEFAULT_TIMEOUT_S,
        "plugins": {
            name: {
                "indexer": profile.expect_indexer,
                "download_client": profile.expect_download_client,
                "import_list": profile.expect_import_list,
            }
            for name, profile in KNOWN_PLUGIN_PROFILES.items()
        },
        "indexer_registry": {},
    },
}

CONFIG_REASON_MISSING = "CONFIG_MISSING"
CONFIG_REASON_PARSE_ERROR = "CONFIG_PARSE_ERROR"
CONFIG_REASON_SCHEMA_INVALID = "CONFIG_SCHEMA_INVALID"


class ConfigError(ValueError):
    """Configuration file validation error."""

    reason_code: str

    def __init__(self, message: str, reason_code: str = CONFIG_REASON_SCHEMA_INVALID) -> None:
        super().__init__(message)
        self.reason_code = reason_code


@dataclass(frozen=True)
class CheckConfig:
    """Normalized configuration for drift checks and gate runs."""

    providers: dict[str, ProviderPolicy] = field(default_factory=dict)
    max_inconclusive_percent: float = DEFAULT_MAX_INCONCLUSIVE_PERCENT
    recent_runs: int = DEFAULT_RECENT_LIMIT
    plugin_profiles: dict[str, PluginExpectationProfile] = field(default_factory=dict)
    indexer_registry: dict[str, str] = field(default_factory=dict)
    timeout_seconds: float = DEFAULT_TIMEOUT_S
    path: Path | None = None


def config_path_for(root: Path) -> Path:
    return root.resolve() / DEFAULT_CONFIG_RELATIVE_PATH


def ensure_default_config(root: Path, *, force: bool = False) -> Path:
    """Write the default config YAML deterministically."""
    output_path = config_path_for(root)
    if output_path.exists() and not force:
        raise FileExistsError(f"Config file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(yaml.safe_dump(CONFIG_TEMPLATE, sort_keys=True), encoding="utf-8")
    return output_path


def default_config() -> CheckConfig:
    return parse_config(CONFIG_TEMPLATE)


def load_config(path: Path | None = None, *, cwd: Path | None = None) -> CheckConfig:
    """Load config from ``path`` or the default location.

    An explicit path must exist. A missing default file yields the built-in
    defaults.

    Args:
        path: Explicit config file, or None for the default location
        cwd: Directory the default location is resolved against

    Returns:
        Normalized CheckConfig

    Raises:
        ConfigError: CONFIG_MISSING, CONFIG_PARSE_ERROR or CONFIG_SCHEMA_INVALID
    """
    explicit = path is not None
    config_path = path if path is not None else config_path_for(cwd or Path.cwd())

    if not config_path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {config_path}", CONFIG_REASON_MISSING)
        return default_config()

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"{config_path} parse error: {exc}", CONFIG_REASON_PARSE_ERROR) from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(
            f"{config_path} parse error: expected mapping at top level",
            CONFIG_REASON_PARSE_ERROR,
        )

    return parse_config(raw, path=config_path)


def parse_config(raw: dict[str, Any], path: Path | None = None) -> CheckConfig:
    """Normalize a raw config mapping; absent sections fall back to defaults."""
    drift_raw = _section(raw, "drift")
    gates_raw = _section(raw, "gates")

    providers_raw = drift_raw.get("providers", CONFIG_TEMPLATE["drift"]["providers"])
    if not isinstance(providers_raw, dict):
        raise ConfigError("drift.providers must be a mapping")

    providers: dict[str, ProviderPolicy] = {}
    for name in sorted(providers_raw):
        entry = providers_raw[name] or {}
        if not isinstance(entry, dict):
            raise ConfigError(f"drift.providers.{name} must be a mapping")
        threshold = _int(entry.get("threshold"), f"drift.providers.{name}.threshold", minimum=1)
        window = entry.get("window")
        providers[str(name).lower()] = ProviderPolicy(
            provider=str(name).lower(),
            threshold=threshold,
            window_size=None if window is None else _int(window, f"drift.providers.{name}.window", minimum=1),
        )

    max_inconclusive = _float(
        drift_raw.get("max_inconclusive_percent", DEFAULT_MAX_INCONCLUSIVE_PERCENT),
        "drift.max_inconclusive_percent",
    )
    if not 0 <= max_inconclusive <= 100:
        raise ConfigError("drift.max_inconclusive_percent must be within [0, 100]")

    recent_runs = _int(drift_raw.get("recent_runs", DEFAULT_RECENT_LIMIT), "drift.recent_runs", minimum=0)

    plugins_raw = gates_raw.get("plugins", CONFIG_TEMPLATE["gates"]["plugins"])
    if not isinstance(plugins_raw, dict):
        raise ConfigError("gates.plugins must be a mapping")

    profiles: dict[str, PluginExpectationProfile] = {}
    for name in sorted(plugins_raw):
        entry = plugins_raw[name] or {}
        if not isinstance(entry, dict):
            raise ConfigError(f"gates.plugins.{name} must be a mapping")
        profiles[str(name)] = PluginExpectationProfile(
            expect_indexer=bool(entry.get("indexer", True)),
            expect_download_client=bool(entry.get("download_client", True)),
            expect_import_list=bool(entry.get("import_list", False)),
        )

    registry_raw = gates_raw.get("indexer_registry") or {}
    if not isinstance(registry_raw, dict):
        raise ConfigError("gates.indexer_registry must be a mapping of plugin -> implementation")

    timeout = _float(gates_raw.get("timeout_seconds", DEFAULT_TIMEOUT_S), "gates.timeout_seconds")
    if timeout <= 0:
        raise ConfigError("gates.timeout_seconds must be > 0")

    return CheckConfig(
        providers=providers,
        max_inconclusive_percent=max_inconclusive,
        recent_runs=recent_runs,
        plugin_profiles=profiles,
        indexer_registry={str(k): str(v) for k, v in registry_raw.items()},
        timeout_seconds=timeout,
        path=path,
    )


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"`{name}` must be a mapping")
    return value


def _int(value: Any, field_name: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{field_name} must be an integer")
    if value < minimum:
        raise ConfigError(f"{field_name} must be >= {minimum}")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{field_name} must be a number")
    return float(value)
