"""Command-line interface for the Aerospike binding."""

import logging
from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .adapter import StoreAdapter
from .config import Config
from .keys import KeyFormatError, compact_key, format_compact_key, parse_key_number
from .models import OpResult
from .store import StoreConnectionError

# Exit codes
EXIT_OK = 0
EXIT_OPERATION_ERROR = 1
EXIT_BAD_USAGE = 2
EXIT_CONNECTION_ERROR = 3

DEFAULT_TABLE = "usertable"

app = typer.Typer(help="YCSB-style Aerospike binding tools")
console = Console()

ConfigOption = typer.Option(None, "--config", help="Path to ycsb-aerospike.toml")
HostOption = typer.Option(None, "--host", help="Seed host")
PortOption = typer.Option(None, "--port", help="Seed port")
NamespaceOption = typer.Option(None, "--namespace", help="Aerospike namespace")
DriverOption = typer.Option(None, "--driver", help="Store driver: aerospike or memory")
LogLevelOption = typer.Option(None, "--log-level", help="Logging level")
TableOption = typer.Option(DEFAULT_TABLE, "--table", "-t", help="Set name")


def load_config(
    config_path: Path | None,
    host: str | None = None,
    port: int | None = None,
    namespace: str | None = None,
    driver: str | None = None,
    log_level: str | None = None,
) -> Config:
    """Load configuration and apply command-line overrides."""
    try:
        config = Config(config_path)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(EXIT_BAD_USAGE)

    overrides = {
        "aerospike.host": host,
        "aerospike.port": port,
        "aerospike.namespace": namespace,
        "binding.driver": driver,
        "logging.level": log_level,
    }
    for key, value in overrides.items():
        if value is not None:
            config.set(key, value)

    # getLevelName maps known names to their numeric level
    level = logging.getLevelName(config.log_level)
    if not isinstance(level, int):
        console.print(f"[red]Invalid log level: {escape(config.log_level)}[/red]")
        raise typer.Exit(EXIT_BAD_USAGE)

    logging.basicConfig(level=level, format=config.log_format)
    return config


def open_adapter(config: Config) -> StoreAdapter:
    """Build a StoreAdapter, mapping start-up failures to exit codes."""
    try:
        return StoreAdapter.from_config(config)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(EXIT_BAD_USAGE)
    except ImportError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(EXIT_BAD_USAGE)
    except StoreConnectionError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(EXIT_CONNECTION_ERROR)


def parse_fields(assignments: list[str]) -> dict[str, bytes]:
    """Parse ``name=value`` arguments into a record."""
    values: dict[str, bytes] = {}
    for item in assignments:
        name, sep, value = item.partition("=")
        if not sep or not name:
            console.print(f"[red]Invalid field '{escape(item)}', expected name=value[/red]")
            raise typer.Exit(EXIT_BAD_USAGE)
        values[name] = value.encode("utf-8")
    return values


def report(result: OpResult, operation: str, key: str) -> None:
    """Print the outcome and exit with the matching code."""
    if result.ok:
        console.print(f"[green]{operation} {key}: OK[/green]")
        raise typer.Exit(EXIT_OK)

    console.print(f"[red]{operation} {key}: ERROR {escape(str(result.error))}[/red]")
    raise typer.Exit(EXIT_OPERATION_ERROR)


@app.command()
def key(
    key: str = typer.Argument(..., help="Harness key, e.g. user3232235777"),
) -> None:
    """Show the compact key a read would use."""
    try:
        number = parse_key_number(key)
        compact = compact_key(key)
    except KeyFormatError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(EXIT_BAD_USAGE)

    table = Table(title=f"Compact key for {key}")
    table.add_column("Number", style="cyan")
    table.add_column("Hex", style="magenta")
    table.add_column("Address", style="green")
    table.add_row(str(number), compact.hex(), format_compact_key(compact))
    console.print(table)


@app.command()
def ping(
    config_path: Path | None = ConfigOption,
    host: str | None = HostOption,
    port: int | None = PortOption,
    driver: str | None = DriverOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Connect to the store and disconnect again."""
    config = load_config(config_path, host, port, None, driver, log_level)
    adapter = open_adapter(config)
    adapter.cleanup()
    console.print(f"[green]Connected to {config.host}:{config.port}[/green]")


@app.command()
def insert(
    key: str = typer.Argument(..., help="Record key"),
    fields: List[str] = typer.Argument(..., help="Fields as name=value"),
    table: str = TableOption,
    config_path: Path | None = ConfigOption,
    host: str | None = HostOption,
    port: int | None = PortOption,
    namespace: str | None = NamespaceOption,
    driver: str | None = DriverOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Create a record; fails if it already exists."""
    values = parse_fields(fields)
    config = load_config(config_path, host, port, namespace, driver, log_level)
    with open_adapter(config) as adapter:
        result = adapter.insert(table, key, values)
    report(result, "insert", key)


@app.command()
def update(
    key: str = typer.Argument(..., help="Record key"),
    fields: List[str] = typer.Argument(..., help="Fields as name=value"),
    table: str = TableOption,
    config_path: Path | None = ConfigOption,
    host: str | None = HostOption,
    port: int | None = PortOption,
    namespace: str | None = NamespaceOption,
    driver: str | None = DriverOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Replace an existing record; fails if it does not exist."""
    values = parse_fields(fields)
    config = load_config(config_path, host, port, namespace, driver, log_level)
    with open_adapter(config) as adapter:
        result = adapter.update(table, key, values)
    report(result, "update", key)


@app.command()
def read(
    key: str = typer.Argument(..., help="Record key"),
    fields: List[str] | None = typer.Option(
        None, "--field", "-f", help="Field to fetch (repeatable, default all)"
    ),
    table: str = TableOption,
    show_hex: bool = typer.Option(False, "--hex", help="Show values as hex"),
    config_path: Path | None = ConfigOption,
    host: str | None = HostOption,
    port: int | None = PortOption,
    namespace: str | None = NamespaceOption,
    driver: str | None = DriverOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Fetch a record and print its fields."""
    config = load_config(config_path, host, port, namespace, driver, log_level)
    with open_adapter(config) as adapter:
        result = adapter.read(table, key, fields)

    if result.ok:
        output = Table(title=f"{table}/{key}")
        output.add_column("Field", style="cyan")
        output.add_column("Value", style="green")
        for name in sorted(result.record):
            value = result.record[name]
            rendered = value.hex() if show_hex else value.decode("utf-8", "replace")
            output.add_row(name, rendered)
        console.print(output)

    report(result, "read", key)


@app.command()
def delete(
    key: str = typer.Argument(..., help="Record key"),
    table: str = TableOption,
    config_path: Path | None = ConfigOption,
    host: str | None = HostOption,
    port: int | None = PortOption,
    namespace: str | None = NamespaceOption,
    driver: str | None = DriverOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Remove a record; fails if nothing is stored under the key."""
    config = load_config(config_path, host, port, namespace, driver, log_level)
    with open_adapter(config) as adapter:
        result = adapter.delete(table, key)
    report(result, "delete", key)


if __name__ == "__main__":
    app()
