"""Main CLI entry point for telemetry-flattener.

This module provides a command-line interface using Typer:

1.  ``flatten``: read a JSON document (file or stdin), decode it into JSON
    tokens and print the flattened key/value map.
2.  ``emit``: send a single telemetry event (optionally with JSON properties
    that are flattened first) through the configured OTLP exporter.
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer

# Load .env file if present (before any config access)
try:
    from dotenv import find_dotenv, load_dotenv

    env_file = find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(env_file)
except ImportError:  # pragma: no cover - optional at runtime
    pass

from .config import get_settings, resolve_log_level
from .flattening import StringCasing, decode_json, flatten
from .models.telemetry import LogLevel
from .telemetry_logger import create_telemetry_logger

app = typer.Typer(help="Flatten objects into telemetry properties and emit telemetry events")


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


@app.callback()
def main() -> None:  # pragma: no cover - simple callback
    """telemetry-flattener CLI.

    Use a subcommand like 'flatten' or 'emit'.
    """
    pass


@app.command(name="flatten", help="Flatten a JSON document into delimited key paths.")
def flatten_cmd(
    path: str = typer.Argument("-", help="JSON file to read ('-' for stdin)"),
    delimiter: str = typer.Option(":", help="Delimiter between key path segments"),
    casing: str = typer.Option("unchanged", help="Key casing: unchanged, upper or lower"),
    prefix: str = typer.Option("", help="Scope every key under this prefix"),
    redact: bool = typer.Option(
        False, "--redact/--no-redact", help="Mask values of fields marked as sensitive"
    ),
    as_json: bool = typer.Option(
        False, "--json/--no-json", help="Print a JSON object instead of key=value lines"
    ),
) -> None:
    """Decode the JSON document and print its flat key/value map."""
    try:
        casing_policy = StringCasing.parse(casing)
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=2)
    try:
        token = decode_json(_read_source(path))
    except (OSError, json.JSONDecodeError) as e:
        typer.echo(f"Could not read JSON from {path}: {e}", err=True)
        raise typer.Exit(code=1)
    try:
        flat = flatten(
            token, casing=casing_policy, redact=redact, delimiter=delimiter, key_prefix=prefix
        )
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=2)
    if as_json:
        typer.echo(json.dumps(flat, ensure_ascii=False, indent=2))
        return
    for key, value in flat.items():
        typer.echo(f"{key}={value}")


@app.command(help="Send a single telemetry event to the configured backend.")
def emit(
    message: str = typer.Argument(..., help="Event message"),
    level: str = typer.Option("Information", help="Telemetry level name (e.g. Warning)"),
    properties_json: Optional[str] = typer.Option(
        None, "--properties-json", help="JSON object attached (flattened) as event properties"
    ),
    instrumentation_key: Optional[str] = typer.Option(
        None, help="Instrumentation key (overrides INSTRUMENTATION_KEY)"
    ),
    dry_run: Optional[bool] = typer.Option(
        None,
        "--dry-run/--no-dry-run",
        help="Assemble the event but do not export it. If not specified, uses DRY_RUN from config/env.",
    ),
) -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)

    if dry_run is not None:
        settings = settings.model_copy(update={"DRY_RUN": dry_run})

    event_level = resolve_log_level(None, level)
    if event_level is LogLevel.NONE:
        typer.echo(f"Unknown telemetry level: {level}", err=True)
        raise typer.Exit(code=2)

    properties = None
    if properties_json:
        try:
            properties = decode_json(properties_json)
        except json.JSONDecodeError as e:
            typer.echo(f"Invalid --properties-json: {e}", err=True)
            raise typer.Exit(code=1)

    try:
        telemetry = create_telemetry_logger(settings, instrumentation_key)
    except RuntimeError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)

    if not telemetry.is_enabled(event_level):
        typer.echo(
            f"Level {event_level.label} is below configured level {telemetry.level.label}; nothing emitted"
        )
        return
    telemetry.log(event_level, message, event_name="cli:emit", properties=properties)
    telemetry.flush()
    telemetry.shutdown()
    typer.echo(f"Emitted event level={event_level.label} dry_run={settings.DRY_RUN}")


if __name__ == "__main__":  # pragma: no cover
    app()
