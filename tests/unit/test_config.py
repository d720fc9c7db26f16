"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from plugincheck.config import (
    CONFIG_REASON_MISSING,
    CONFIG_REASON_PARSE_ERROR,
    CONFIG_REASON_SCHEMA_INVALID,
    ConfigError,
    config_path_for,
    default_config,
    ensure_default_config,
    load_config,
    parse_config,
)
from plugincheck.drift.types import ProviderPolicy


def test_defaults() -> None:
    config = default_config()

    assert config.providers == {
        "qobuz": ProviderPolicy("qobuz", threshold=5),
        "tidal": ProviderPolicy("tidal", threshold=7),
    }
    assert config.max_inconclusive_percent == 10.0
    assert config.recent_runs == 10
    assert config.plugin_profiles["Brainarr"].expect_import_list is True
    assert config.indexer_registry == {}
    assert config.timeout_seconds == 10.0


def test_missing_default_file_yields_defaults(tmp_path: Path) -> None:
    assert load_config(cwd=tmp_path) == default_config()


def test_missing_explicit_file_is_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError) as excinfo:
        load_config(tmp_path / "nope.yaml")
    assert excinfo.value.reason_code == CONFIG_REASON_MISSING


def test_init_then_load_round_trip(tmp_path: Path) -> None:
    path = ensure_default_config(tmp_path)

    assert path == config_path_for(tmp_path)
    loaded = load_config(cwd=tmp_path)
    assert loaded.providers == default_config().providers
    assert loaded.path == path


def test_init_refuses_overwrite_without_force(tmp_path: Path) -> None:
    ensure_default_config(tmp_path)
    with pytest.raises(FileExistsError):
        ensure_default_config(tmp_path)
    ensure_default_config(tmp_path, force=True)


def test_custom_values(tmp_path: Path) -> None:
    path = tmp_path / "custom.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "drift": {
                    "max_inconclusive_percent": 5,
                    "recent_runs": 3,
                    "providers": {"Qobuz": {"threshold": 2, "window": 4}},
                },
                "gates": {
                    "timeout_seconds": 2.5,
                    "plugins": {"Deezarr": {"download_client": False}},
                    "indexer_registry": {"Deezarr": "DeezerIndexer"},
                },
            }
        ),
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.providers == {"qobuz": ProviderPolicy("qobuz", threshold=2, window_size=4)}
    assert config.max_inconclusive_percent == 5.0
    assert config.recent_runs == 3
    assert config.plugin_profiles["Deezarr"].expect_download_client is False
    assert config.plugin_profiles["Deezarr"].expect_indexer is True
    assert config.indexer_registry == {"Deezarr": "DeezerIndexer"}
    assert config.timeout_seconds == 2.5


def test_parse_error(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("drift: [unclosed", encoding="utf-8")

    with pytest.raises(ConfigError) as excinfo:
        load_config(path)
    assert excinfo.value.reason_code == CONFIG_REASON_PARSE_ERROR


def test_top_level_must_be_mapping(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError) as excinfo:
        load_config(path)
    assert excinfo.value.reason_code == CONFIG_REASON_PARSE_ERROR


@pytest.mark.parametrize(
    "raw",
    [
        {"drift": {"providers": {"qobuz": {"threshold": 0}}}},
        {"drift": {"providers": {"qobuz": {"threshold": True}}}},
        {"drift": {"max_inconclusive_percent": 150}},
        {"drift": "nope"},
        {"gates": {"timeout_seconds": 0}},
        {"gates": {"indexer_registry": ["Qobuzarr"]}},
    ],
)
def test_invalid_values(raw) -> None:
    with pytest.raises(ConfigError) as excinfo:
        parse_config(raw)
    assert excinfo.value.reason_code == CONFIG_REASON_SCHEMA_INVALID
