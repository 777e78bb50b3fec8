"""Command line interface for the Datafinder client."""

from __future__ import annotations

import csv
import json
import logging
import os
from importlib import metadata
from pathlib import Path

import typer
from rich.markup import escape

from datafinder.api import AppendResult, ConfigurationError, DatafinderClient, DatafinderSettings
from datafinder.core.config import CONFIG_FILENAME, ConfigManager
from datafinder.core.logs import LogEntry

from .branding import mask_secret, match_panel, themed_console

logger = logging.getLogger(__name__)

CSV_COLUMNS: tuple[str, ...] = ("d_first", "d_last", "d_fulladdr", "d_city", "d_state", "d_zip")

app = typer.Typer(help="Datafinder data append client", no_args_is_help=True)
config_app = typer.Typer(help="Inspect or update the persisted configuration", no_args_is_help=True)
app.add_typer(config_app, name="config")

CLI_CONSOLE = themed_console(soft_wrap=True)


def styled_echo(message: str = "", *, nl: bool = True) -> None:
    """Print using the Datafinder themed console."""
    CLI_CONSOLE.print(message, end="" if not nl else "\n")


def _configure_logging(verbose: bool) -> None:
    root_logger = logging.getLogger()
    if verbose:
        if not root_logger.handlers:
            logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        root_logger.setLevel(logging.DEBUG)
    else:
        if root_logger.handlers:
            root_logger.setLevel(logging.WARNING)
        else:
            logging.basicConfig(level=logging.WARNING, format="%(message)s")


def _config_manager(config_file: Path | None) -> ConfigManager:
    home = os.environ.get("DATAFINDER_HOME")
    config_dir = Path(home).expanduser() if home else None
    return ConfigManager(config_dir=config_dir, override_config_path=config_file)


def _make_client(settings: DatafinderSettings) -> DatafinderClient:
    return DatafinderClient(settings)


def _echo_diagnostic(entry: LogEntry) -> None:
    styled_echo(f"[datafinder.dim]{escape(f'[{entry.category}] {entry.message}')}[/]")


def _prepare_client(
    *,
    config_file: Path | None,
    api_key: str | None,
    retries: int | None,
    verbose: bool,
) -> DatafinderClient:
    manager = _config_manager(config_file)
    try:
        config = manager.load()
        debug = verbose or config.debug
        _configure_logging(debug)
        settings = manager.settings(config, api_key=api_key, retries=retries, debug=debug)
    except ConfigurationError as exc:
        styled_echo(f"[datafinder.error]❌ {escape(str(exc))}[/]")
        raise typer.Exit(code=2) from exc
    client = _make_client(settings)
    if debug:
        client.diagnostics.subscribe(_echo_diagnostic)
    return client


def _release_client(client: DatafinderClient) -> None:
    client.diagnostics.unsubscribe(_echo_diagnostic)
    client.close()


def _parse_fields(pairs: list[str]) -> dict[str, str]:
    fields: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            styled_echo(f"[datafinder.error]❌ Invalid --field '{escape(pair)}'; expected KEY=VALUE.[/]")
            raise typer.Exit(code=2)
        fields[key.strip()] = value
    return fields


def _print_failure(result: AppendResult) -> None:
    styled_echo(f"[datafinder.error]❌ Something went wrong: {escape(result.error)}[/]")


@app.command("append-email")
def append_email(
    first: str | None = typer.Option(None, "--first", help="First name (d_first)"),  # noqa: B008
    last: str | None = typer.Option(None, "--last", help="Last name (d_last)"),  # noqa: B008
    address: str | None = typer.Option(None, "--address", help="Full street address (d_fulladdr)"),  # noqa: B008
    city: str | None = typer.Option(None, "--city", help="City (d_city)"),  # noqa: B008
    state: str | None = typer.Option(None, "--state", help="State (d_state)"),  # noqa: B008
    zip_code: str | None = typer.Option(None, "--zip", help="ZIP code (d_zip)"),  # noqa: B008
    phone: str | None = typer.Option(None, "--phone", help="Phone number (d_phone)"),  # noqa: B008
    field: list[str] | None = typer.Option(None, "--field", "-f", help="Extra request field as KEY=VALUE"),  # noqa: B008
    api_key: str | None = typer.Option(None, "--api-key", help="API key for this run (not persisted)"),  # noqa: B008
    retries: int | None = typer.Option(None, "--retries", min=1, help="Attempts per request"),  # noqa: B008
    config: Path | None = typer.Option(None, "--config", help="Read settings from an alternate config file"),  # noqa: B008
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),  # noqa: B008
) -> None:
    """Append an email address to one customer record."""
    data = {
        "d_first": first,
        "d_last": last,
        "d_fulladdr": address,
        "d_city": city,
        "d_state": state,
        "d_zip": zip_code,
        "d_phone": phone,
    }
    fields = {key: value for key, value in data.items() if value is not None}
    fields.update(_parse_fields(field or []))
    if not fields:
        styled_echo("[datafinder.error]❌ Provide at least one record field.[/]")
        raise typer.Exit(code=2)

    client = _prepare_client(config_file=config, api_key=api_key, retries=retries, verbose=verbose)
    try:
        result = client.append_email(fields)
    finally:
        _release_client(client)

    if not result:
        _print_failure(result)
        raise typer.Exit(code=1)
    CLI_CONSOLE.print_json(json.dumps(result.data, default=str))


@app.command("append-csv")
def append_csv(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="CSV file: first,last,address,city,state,zip"),  # noqa: B008
    header: bool = typer.Option(False, "--header", help="Skip the first row"),  # noqa: B008
    api_key: str | None = typer.Option(None, "--api-key", help="API key for this run (not persisted)"),  # noqa: B008
    retries: int | None = typer.Option(None, "--retries", min=1, help="Attempts per request"),  # noqa: B008
    config: Path | None = typer.Option(None, "--config", help="Read settings from an alternate config file"),  # noqa: B008
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),  # noqa: B008
) -> None:
    """Append email addresses to every customer row of a CSV file, one request per row."""
    client = _prepare_client(config_file=config, api_key=api_key, retries=retries, verbose=verbose)
    rows = matches = failures = 0
    try:
        with path.open(newline="", encoding="utf-8") as handle:
            reader = csv.reader(handle)
            for line_no, row in enumerate(reader, start=1):
                if header and line_no == 1:
                    continue
                if not any(cell.strip() for cell in row):
                    continue
                if len(row) != len(CSV_COLUMNS):
                    styled_echo(
                        f"[datafinder.warning]⚠️  Line {line_no}: expected {len(CSV_COLUMNS)} columns, got {len(row)}; skipping.[/]"
                    )
                    continue
                rows += 1
                record = dict(zip(CSV_COLUMNS, (cell.strip() for cell in row)))
                result = client.append_email(record)
                if not result:
                    failures += 1
                    styled_echo(f"[datafinder.error]❌ Line {line_no}: {escape(result.error)}[/]")
                    continue
                if result.num_results:
                    matches += 1
                    name = f"{record['d_first']} {record['d_last']}".strip()
                    styled_echo(f"[datafinder.success]✅ Got a match for {escape(name)}[/]")
                    CLI_CONSOLE.print(match_panel(f"Line {line_no}", result.results))
    finally:
        _release_client(client)

    styled_echo(f"Processed {rows} rows: {matches} matches, {failures} failures")


@config_app.command("show")
def config_show(
    config: Path | None = typer.Option(None, "--config", help="Read settings from an alternate config file"),  # noqa: B008
) -> None:
    """Show the effective configuration."""
    manager = _config_manager(config)
    try:
        current = manager.load()
    except ConfigurationError as exc:
        styled_echo(f"[datafinder.error]❌ {escape(str(exc))}[/]")
        raise typer.Exit(code=1) from exc
    styled_echo(f"[datafinder.dim]{escape(str(manager.config_path))}[/]")
    styled_echo(f"api_key = {mask_secret(current.api_key)}")
    styled_echo(f"retries = {current.retries}")
    styled_echo(f"base_url = {escape(current.base_url)}")
    styled_echo(f"timeout_seconds = {current.timeout_seconds}")
    styled_echo(f"debug = {str(current.debug).lower()}")
    styled_echo(f"stop_on_success = {str(current.stop_on_success).lower()}")


@config_app.command("set")
def config_set(
    api_key: str | None = typer.Option(None, "--api-key", help="Persist the API key"),  # noqa: B008
    retries: int | None = typer.Option(None, "--retries", min=1, help="Attempts per request"),  # noqa: B008
    base_url: str | None = typer.Option(None, "--base-url", help="Datafinder endpoint"),  # noqa: B008
    timeout: float | None = typer.Option(None, "--timeout", help="Per-attempt timeout in seconds"),  # noqa: B008
    debug: bool | None = typer.Option(None, "--debug/--no-debug", help="Log raw requests and responses"),  # noqa: B008
) -> None:
    """Update the persisted configuration file."""
    manager = _config_manager(None)
    try:
        manager.update(
            api_key=api_key,
            retries=retries,
            base_url=base_url,
            timeout_seconds=timeout,
            debug=debug,
        )
    except ConfigurationError as exc:
        styled_echo(f"[datafinder.error]❌ {escape(str(exc))}[/]")
        raise typer.Exit(code=1) from exc
    styled_echo(f"[datafinder.success]✅ Configuration saved to {escape(str(manager.config_dir / CONFIG_FILENAME))}[/]")


@app.command()
def version() -> None:
    """Show CLI version."""
    try:
        pkg_version = metadata.version("datafinder")
    except metadata.PackageNotFoundError:
        pkg_version = "0.0.0"
    styled_echo(f"Datafinder client version {pkg_version}")


def main() -> None:
    """Console script entrypoint."""
    app()


__all__ = ["app", "main"]
