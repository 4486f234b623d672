# src/spanhive/cli.py
"""spanhive Command Line Interface.

Entry point for the spanhive CLI tool.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from spanhive import __version__
from spanhive.contracts.errors import SpanFormatError, TransportError
from spanhive.contracts.spans import FinishedSpan
from spanhive.core.config import SpanhiveSettings, load_settings

if TYPE_CHECKING:
    from collections.abc import Iterator

__all__ = ["app"]

app = typer.Typer(
    name="spanhive",
    help="spanhive: forward finished tracing spans to event ingestion.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"spanhive version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from a .env file.

    Raises:
        typer.Exit: If an explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging (overrides settings).",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (overrides settings).",
    ),
) -> None:
    """spanhive: forward finished tracing spans to event ingestion."""
    from spanhive.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")
    ctx.obj = {"log_override": verbose or json_logs}

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _load_settings_or_exit(settings: Path) -> SpanhiveSettings:
    settings_path = settings.expanduser()
    try:
        return load_settings(settings_path)
    except (YamlParserError, YamlScannerError) as e:
        typer.echo(f"YAML syntax error in {settings_path}: {getattr(e, 'problem', e)}", err=True)
        raise typer.Exit(1) from None
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings_path}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


def _apply_logging_settings(ctx: typer.Context, settings: SpanhiveSettings) -> None:
    from spanhive.core.logging import configure_logging

    if ctx.obj and ctx.obj.get("log_override"):
        return
    configure_logging(json_output=settings.logging.json_output, level=settings.logging.level)


def _read_spans(spans_file: Path) -> Iterator[tuple[int, FinishedSpan]]:
    """Yield (line number, span) for each non-blank JSON line.

    Raises:
        SpanFormatError: On the first line that is not a valid span
    """
    with spans_file.open(encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                raise SpanFormatError(f"line {line_number}: invalid JSON: {e.msg}") from e
            if not isinstance(data, dict):
                raise SpanFormatError(f"line {line_number}: expected a JSON object, got {type(data).__name__}")
            try:
                yield line_number, FinishedSpan.from_dict(data)
            except SpanFormatError as e:
                raise SpanFormatError(f"line {line_number}: {e}") from e


@app.command()
def send(
    ctx: typer.Context,
    spans_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="JSON-lines file with one finished span per line.",
    ),
    settings: Path = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    sample_rate: int | None = typer.Option(
        None,
        "--sample-rate",
        min=1,
        help="Keep one trace in N (by trace ID) and declare rate N on kept spans.",
    ),
) -> None:
    """Record every span in SPANS_FILE and wait for delivery."""
    from spanhive.recorder import create_span_recorder, trace_id_sampler

    config = _load_settings_or_exit(settings)
    _apply_logging_settings(ctx, config)

    sampler = trace_id_sampler(sample_rate) if sample_rate is not None else None
    try:
        recorder = create_span_recorder(config, sampler=sampler)
    except TransportError as e:
        typer.echo(f"Error configuring transports: {e}", err=True)
        raise typer.Exit(1) from None

    recorded = 0
    try:
        with recorder:
            for _, span in _read_spans(spans_file):
                recorder.record_span(span)
                recorded += 1
    except SpanFormatError as e:
        typer.echo(f"Invalid span data in {spans_file}: {e}", err=True)
        raise typer.Exit(1) from None

    metrics = recorder.transmission.health_metrics
    typer.echo(f"Spans read: {recorded}")
    typer.echo(f"Events queued: {metrics['events_enqueued']}")
    typer.echo(f"Events dispatched: {metrics['events_dispatched']}")
    typer.echo(f"Events dropped: {metrics['events_dropped']}")
    typer.echo(f"Events rejected: {metrics['events_rejected']}")
    if metrics["events_rejected"]:
        raise typer.Exit(1)


@app.command()
def validate(
    ctx: typer.Context,
    settings: Path = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """Validate settings and transports without sending anything."""
    from spanhive.transmission import discover_transports

    config = _load_settings_or_exit(settings)
    _apply_logging_settings(ctx, config)

    try:
        registry = discover_transports()
    except TransportError as e:
        typer.echo(f"Error discovering transports: {e}", err=True)
        raise typer.Exit(1) from None

    problems: list[str] = []
    for transport_settings in config.delivery.transports:
        transport_class = registry.get(transport_settings.name)
        if transport_class is None:
            problems.append(f"unknown transport '{transport_settings.name}' (available: {', '.join(sorted(registry))})")
            continue
        transport = transport_class()
        try:
            transport.configure(dict(transport_settings.options))
        except TransportError as e:
            problems.append(str(e))
        finally:
            transport.close()

    if problems:
        typer.echo("Configuration errors:", err=True)
        for problem in problems:
            typer.echo(f"  - {problem}", err=True)
        raise typer.Exit(1)

    typer.echo("Configuration valid.")
    typer.echo(f"  Dataset: {config.honeycomb.dataset or '(not set)'}")
    typer.echo(f"  Write key: {'set' if config.honeycomb.write_key else '(not set)'}")
    typer.echo(f"  API host: {config.honeycomb.api_host}")
    typer.echo(f"  Backpressure: {config.delivery.backpressure_mode}")
    typer.echo(f"  Transports: {', '.join(t.name for t in config.delivery.transports) or '(none)'}")
