"""Configuration management commands."""

import json

import typer
import yaml
from pydantic import ValidationError

from smarttodo_cli.services.config_service import get_config_service
from smarttodo_cli.utils import exit_codes
from smarttodo_cli.utils.typer_helpers import SuggestingGroup
from smarttodo_cli.utils.ui.console import get_console
from smarttodo_cli.utils.ui.formatters import (
    format_error,
    format_info,
    format_single_item,
    format_success,
)

app = typer.Typer(cls=SuggestingGroup, help="Configuration management commands")
console = get_console()


def _flatten(data: dict, prefix: str = "") -> dict:
    items = {}
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            items.update(_flatten(value, f"{name}."))
        else:
            items[name] = value
    return items


@app.command("view")
def view_config(
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """View current configuration."""
    try:
        config_dict = get_config_service().config.model_dump(mode="json")
    except RuntimeError as e:
        format_error(f"Failed to view config: {str(e)}")
        raise typer.Exit(1) from e

    if output == "json":
        print(json.dumps(config_dict, indent=2))
    elif output == "yaml":
        print(yaml.dump(config_dict, default_flow_style=False, sort_keys=False))
    else:
        # Keep dotted keys as shown, they are what `config set` expects
        table = _flatten(config_dict)
        if table.get("backend.anon_key"):
            table["backend.anon_key"] = "****" + table["backend.anon_key"][-4:]
        for key, value in table.items():
            console.print(f"[cyan]{key}[/cyan] = {value}")


@app.command("get")
def get_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., backend.url)"),
) -> None:
    """Get a configuration value."""
    value = get_config_service().get(key)
    if value is None:
        format_error(f"Configuration key '{key}' not found")
        raise typer.Exit(exit_codes.ERROR_NOT_FOUND)

    if hasattr(value, "model_dump"):
        format_single_item(value.model_dump(mode="json"))
    else:
        console.print(value)


@app.command("set")
def set_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., backend.url)"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value."""
    # Try to convert value to appropriate type
    parsed_value: str | int | bool = value
    if value.lower() in ("true", "false"):
        parsed_value = value.lower() == "true"
    elif value.isdigit():
        parsed_value = int(value)

    try:
        get_config_service().set(key, parsed_value)
    except KeyError as e:
        format_error(f"Configuration key '{key}' not found")
        raise typer.Exit(exit_codes.ERROR_NOT_FOUND) from e
    except ValidationError as e:
        format_error(f"Invalid value for '{key}': {e.errors()[0]['msg']}")
        raise typer.Exit(exit_codes.ERROR_INVALID_ARGS) from e

    format_success(f"Configuration '{key}' set to '{parsed_value}'")


@app.command("reset")
def reset_config(
    key: str | None = typer.Argument(None, help="Configuration key to reset"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults."""
    if not yes:
        msg = "entire configuration" if not key else f"'{key}'"
        confirm = typer.confirm(f"Are you sure you want to reset {msg}?")
        if not confirm:
            format_info("Cancelled")
            raise typer.Exit(0)

    try:
        get_config_service().reset(key)
    except KeyError as e:
        format_error(f"Configuration key '{key}' not found")
        raise typer.Exit(exit_codes.ERROR_NOT_FOUND) from e

    if key:
        format_success(f"Configuration '{key}' reset to default")
    else:
        format_success("Configuration reset to defaults")
