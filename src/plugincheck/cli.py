"""plugincheck CLI - drift promotion readiness and live gate verification."""

from __future__ import annotations

import json
import logging
import signal
from enum import Enum
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from plugincheck import __version__
from plugincheck.config import CheckConfig, ConfigError, ensure_default_config, load_config
from plugincheck.drift import (
    ArtifactLoadError,
    DirectoryArtifactRepository,
    analyze_provider,
    build_drift_report,
    build_provider_report,
    render_drift_text,
    select_providers,
)
from plugincheck.gates import (
    BundleDiagnosticsCollector,
    CancellationToken,
    ConfigurationError,
    GateOrchestrator,
    GateRunRequest,
    GateSelector,
    LidarrGateClient,
    RegistryIndexerResolver,
    SubstringIndexerResolver,
    build_gate_report,
    exit_code_for,
    parse_plugin_list,
    render_gate_text,
)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2

DEFAULT_LIDARR_URL = "http://localhost:8686"

cli = typer.Typer(
    name="plugincheck",
    help="Drift promotion readiness and live gate verification for Lidarr plugins.",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Manage plugincheck configuration.")
cli.add_typer(config_app, name="config")

console = Console()
err_console = Console(stderr=True)


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _version_option_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@cli.callback()
def _cli_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show plugincheck version and exit.",
        is_eager=True,
        callback=_version_option_callback,
    ),
) -> None:
    """Drift promotion readiness and live gate verification."""
    _configure_logging(verbose)


def _load_config_or_exit(config_path: Path | None) -> CheckConfig:
    try:
        return load_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Config error ({e.reason_code}):[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_CONFIG) from e


def _emit_json(data: dict[str, Any], output: Path | None) -> None:
    text = json.dumps(data, indent=2, sort_keys=False)
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text + "\n", encoding="utf-8")
    typer.echo(text)


@cli.command(name="drift-check")
def drift_check(
    artifacts: Path = typer.Option(
        ...,
        "--artifacts",
        "-a",
        help="Drift artifact JSON file or directory of artifacts.",
    ),
    provider: str = typer.Option("all", "--provider", "-p", help="Provider to analyze (qobuz|tidal|all)."),
    threshold: int | None = typer.Option(
        None,
        "--threshold",
        min=1,
        help="Override the per-provider pass-streak threshold.",
    ),
    window: int | None = typer.Option(
        None,
        "--window",
        min=1,
        help="Inconclusive-rate window size (default: equal to the threshold).",
    ),
    max_inconclusive: float | None = typer.Option(
        None,
        "--max-inconclusive",
        min=0.0,
        max=100.0,
        help="Maximum allowed inconclusive percentage (default 10).",
    ),
    output_format: OutputFormat = typer.Option(OutputFormat.TEXT, "--format", "-f", help="Output format."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Also write the JSON report here."),
    config_path: Path | None = typer.Option(None, "--config", help="Config file path."),
) -> None:
    """Decide whether providers are ready for strict mode.

    Exits 0 whenever analysis completes, regardless of readiness.
    """
    config = _load_config_or_exit(config_path)

    try:
        loaded = DirectoryArtifactRepository(artifacts).load()
    except ArtifactLoadError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_FAILED) from e

    policies = select_providers(
        provider,
        config.providers,
        threshold_override=threshold,
        window_override=window,
    )
    max_allowed = max_inconclusive if max_inconclusive is not None else config.max_inconclusive_percent

    provider_reports = [
        build_provider_report(analyze_provider(loaded, policy, max_allowed), config.recent_runs)
        for policy in policies
    ]
    report = build_drift_report(provider_reports, artifact_count=len(loaded))

    if output_format is OutputFormat.JSON:
        _emit_json(report, output)
        return

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(report, indent=2) + "\n", encoding="utf-8")
    for line in render_drift_text(report):
        console.print(line)


@cli.command(name="gates")
def gates(
    plugins: str = typer.Option(..., "--plugins", help="Comma-separated plugin names."),
    gate: GateSelector = typer.Option(GateSelector.SCHEMA, "--gate", "-g", help="Gate(s) to run."),
    url: str = typer.Option(DEFAULT_LIDARR_URL, "--url", envvar="LIDARR_URL", help="Lidarr base URL."),
    api_key: str | None = typer.Option(
        None,
        "--api-key",
        envvar="LIDARR_API_KEY",
        help="Lidarr API key (required for search/grab).",
        show_default=False,
    ),
    container: str | None = typer.Option(
        None,
        "--container",
        envvar="LIDARR_CONTAINER",
        help="Container name or ID for log capture.",
    ),
    diagnostics_path: Path = typer.Option(
        Path("diagnostics"),
        "--diagnostics-path",
        help="Directory for the diagnostics bundle.",
    ),
    no_diagnostics: bool = typer.Option(False, "--no-diagnostics", help="Do not collect diagnostics on failure."),
    output_format: OutputFormat = typer.Option(OutputFormat.TEXT, "--format", "-f", help="Output format."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Also write the JSON report here."),
    timeout: float | None = typer.Option(None, "--timeout", min=0.1, help="Per-request timeout in seconds."),
    config_path: Path | None = typer.Option(None, "--config", help="Config file path."),
) -> None:
    """Verify a running instance. Exits 0 iff every attempted gate passed."""
    config = _load_config_or_exit(config_path)

    request = GateRunRequest(
        plugins=tuple(parse_plugin_list(plugins)),
        selector=gate,
        api_url=url,
        api_key=api_key or None,
        container_id=container,
        diagnostics_path=diagnostics_path,
        suppress_diagnostics=no_diagnostics,
    )

    client = LidarrGateClient(timeout=timeout if timeout is not None else config.timeout_seconds)
    resolver = (
        RegistryIndexerResolver(config.indexer_registry)
        if config.indexer_registry
        else SubstringIndexerResolver()
    )
    orchestrator = GateOrchestrator(
        probe=client,
        diagnostics=BundleDiagnosticsCollector(),
        profiles=config.plugin_profiles,
        resolver=resolver,
    )

    token = CancellationToken()
    previous_handler = signal.signal(signal.SIGINT, lambda *_: token.cancel())
    try:
        report = orchestrator.run(request, cancel_token=token)
    except ConfigurationError as e:
        err_console.print(f"[red]Configuration error ({e.error_code.value}):[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_CONFIG) from e
    finally:
        signal.signal(signal.SIGINT, previous_handler)
        client.close()

    data = build_gate_report(report)
    if output_format is OutputFormat.JSON:
        _emit_json(data, output)
    else:
        if output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        for line in render_gate_text(data):
            console.print(line)

    raise typer.Exit(exit_code_for(report))


@config_app.command(name="init")
def config_init(
    root: Path = typer.Option(Path("."), "--root", help="Directory to create .plugincheck/config.yaml in."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config."),
) -> None:
    """Write the default configuration file."""
    try:
        path = ensure_default_config(root, force=force)
    except FileExistsError as e:
        err_console.print(f"[yellow]{escape(str(e))}[/yellow] (use --force to overwrite)")
        raise typer.Exit(EXIT_CONFIG) from e
    console.print(f"[green]Created {escape(str(path))}[/green]")


@config_app.command(name="show")
def config_show(
    config_path: Path | None = typer.Option(None, "--config", help="Config file path."),
) -> None:
    """Print the effective configuration as JSON."""
    config = _load_config_or_exit(config_path)
    payload = {
        "path": str(config.path) if config.path else None,
        "drift": {
            "max_inconclusive_percent": config.max_inconclusive_percent,
            "recent_runs": config.recent_runs,
            "providers": {
                name: {"threshold": p.threshold, "window": p.window_size}
                for name, p in config.providers.items()
            },
        },
        "gates": {
            "timeout_seconds": config.timeout_seconds,
            "plugins": {
                name: {
                    "indexer": p.expect_indexer,
                    "download_client": p.expect_download_client,
                    "import_list": p.expect_import_list,
                }
                for name, p in config.plugin_profiles.items()
            },
            "indexer_registry": config.indexer_registry,
        },
    }
    typer.echo(json.dumps(payload, indent=2))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
