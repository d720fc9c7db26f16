"""Tests for the drift-check command."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from plugincheck.cli import cli

runner = CliRunner()

CLEAN = {"provider": "qobuz", "driftDetected": False, "hasError": False, "isInconclusive": False}
DRIFT = {"provider": "qobuz", "driftDetected": True, "hasError": False, "isInconclusive": False}
TIDAL = {"provider": "tidal", "driftDetected": False, "hasError": False, "isInconclusive": False}


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def test_ready_provider(write_artifact) -> None:
    for day in range(5):
        write_artifact(f"run{day}.json", day, [CLEAN])

    result = runner.invoke(cli, ["drift-check", "--artifacts", str(write_artifact.dir), "--provider", "qobuz"])

    assert result.exit_code == 0, result.output
    assert "READY: Promote to strict mode" in result.output


def test_not_ready_still_exits_zero(write_artifact) -> None:
    write_artifact("new.json", 0, [CLEAN])
    write_artifact("old.json", 1, [DRIFT])

    result = runner.invoke(cli, ["drift-check", "-a", str(write_artifact.dir), "-p", "qobuz"])

    assert result.exit_code == 0, result.output
    assert "NOT READY" in result.output
    assert "Pass streak (1) < threshold (5)" in result.output


def test_json_report_written(write_artifact, tmp_path) -> None:
    for day in range(3):
        write_artifact(f"run{day}.json", day, [CLEAN, TIDAL])
    out = tmp_path / "reports" / "drift.json"

    result = runner.invoke(
        cli,
        [
            "drift-check",
            "-a",
            str(write_artifact.dir),
            "--threshold",
            "3",
            "--format",
            "json",
            "--output",
            str(out),
        ],
    )

    assert result.exit_code == 0, result.output
    report = json.loads(out.read_text(encoding="utf-8"))
    assert report["artifactCount"] == 3
    assert [p["provider"] for p in report["providers"]] == ["qobuz", "tidal"]
    assert all(p["ready"] for p in report["providers"])
    assert all(p["threshold"] == 3 for p in report["providers"])


def test_window_and_max_inconclusive_flags(write_artifact, tmp_path) -> None:
    inconclusive = {**CLEAN, "isInconclusive": True}
    write_artifact("a.json", 0, [inconclusive, CLEAN])
    write_artifact("b.json", 1, [CLEAN, CLEAN])
    out = tmp_path / "drift.json"

    result = runner.invoke(
        cli,
        [
            "drift-check",
            "-a",
            str(write_artifact.dir),
            "-p",
            "qobuz",
            "--threshold",
            "1",
            "--window",
            "1",
            "--max-inconclusive",
            "60",
            "-f",
            "json",
            "-o",
            str(out),
        ],
    )

    assert result.exit_code == 0, result.output
    (provider,) = json.loads(out.read_text(encoding="utf-8"))["providers"]
    assert provider["windowSize"] == 1
    assert provider["inconclusiveRate"] == 50.0
    assert provider["ready"] is True


def test_missing_artifacts_exit_one(tmp_path) -> None:
    result = runner.invoke(cli, ["drift-check", "-a", str(tmp_path / "missing")])
    assert result.exit_code == 1


def test_missing_explicit_config_exit_two(write_artifact, tmp_path) -> None:
    write_artifact("a.json", 0, [CLEAN])

    result = runner.invoke(
        cli,
        ["drift-check", "-a", str(write_artifact.dir), "--config", str(tmp_path / "absent.yaml")],
    )

    assert result.exit_code == 2


def test_config_thresholds_apply(write_artifact, tmp_path) -> None:
    write_artifact("a.json", 0, [CLEAN])
    write_artifact("b.json", 1, [CLEAN])
    config = tmp_path / "config.yaml"
    config.write_text("drift:\n  providers:\n    qobuz:\n      threshold: 2\n", encoding="utf-8")

    result = runner.invoke(
        cli,
        ["drift-check", "-a", str(write_artifact.dir), "--config", str(config)],
    )

    assert result.exit_code == 0, result.output
    assert "READY: Promote to strict mode" in result.output


def test_config_init_and_show(tmp_path) -> None:
    first = runner.invoke(cli, ["config", "init", "--root", str(tmp_path)])
    again = runner.invoke(cli, ["config", "init", "--root", str(tmp_path)])
    shown = runner.invoke(cli, ["config", "show"])

    assert first.exit_code == 0, first.output
    assert again.exit_code == 2
    assert shown.exit_code == 0, shown.output
    assert '"qobuz"' in shown.output
    assert "config.yaml" in shown.output


def test_version() -> None:
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_markup_like_provider_name_exits_zero(write_artifact) -> None:
    bracketed = {**CLEAN, "provider": "x[/y]"}
    write_artifact("a.json", 0, [bracketed])

    result = runner.invoke(cli, ["drift-check", "-a", str(write_artifact.dir), "-p", "x[/y]"])

    assert result.exit_code == 0, result.output
    assert "x[/y]" in result.output
