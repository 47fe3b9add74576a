"""Config command for viewing and managing oroGen configuration."""

import os

import typer

from ..app import app, console
from ... import config as config_module
from ...config import GenerationConfig


VALID_KEYS = {
    "extended_states",
    "transports",
    "automatic_area",
    "output_dir",
    "pkg_config_path",
}

BOOL_FIELDS = {"extended_states"}
LIST_FIELDS = {"transports", "pkg_config_path"}


@app.command("config")
def config_command(
    action: str = typer.Argument(
        ...,
        help="Action: show, set, reset",
    ),
    key: str | None = typer.Argument(
        None,
        help="Config key (e.g. transports, extended_states)",
    ),
    value: str | None = typer.Argument(
        None,
        help="Value to set (comma-separated for lists)",
    ),
):
    """View or modify oroGen configuration.

    Examples:
        orogen config show
        orogen config set transports corba,mqueue
        orogen config set extended_states true
        orogen config reset
    """
    if action == "show":
        _show_config()
    elif action == "set":
        if not key or value is None:
            console.print("[red]Usage:[/red] orogen config set <key> <value>")
            console.print()
            console.print("Available keys:")
            for k in sorted(VALID_KEYS):
                console.print(f"  {k}")
            raise typer.Exit(1)
        _set_config(key, value)
    elif action == "reset":
        _reset_config()
    else:
        console.print(f"[red]Unknown action:[/red] {action}")
        console.print("Valid actions: show, set, reset")
        raise typer.Exit(1)


def _show_config():
    """Display current resolved configuration."""
    config = GenerationConfig.load()
    config_file = config_module.CONFIG_FILE

    console.print()
    console.print("[bold]oroGen Configuration[/bold]")
    console.print("─" * 40)

    console.print()
    console.print("[bold cyan]Generation[/bold cyan]")
    console.print(f"  extended_states = {config.extended_states}")
    transports = ", ".join(config.transports) or "[dim](none)[/dim]"
    console.print(f"  transports      = {transports}")
    console.print(f"  automatic_area  = {config.automatic_area}")
    output_dir = config.output_dir or "[dim](specification directory)[/dim]"
    console.print(f"  output_dir      = {output_dir}")

    console.print()
    console.print("[bold cyan]Package search[/bold cyan]")
    if config.pkg_config_path:
        for path in config.pkg_config_path:
            console.print(f"  {path}")
    else:
        console.print("  [dim](PKG_CONFIG_PATH only)[/dim]")

    console.print()
    console.print("[bold cyan]Target[/bold cyan] (from env vars)")
    target = os.environ.get(config_module.TARGET_ENV_VAR)
    if target:
        console.print(f"  {config_module.TARGET_ENV_VAR}: [green]{target}[/green]")
    else:
        console.print(
            f"  {config_module.TARGET_ENV_VAR}: [dim]not set ({config_module.DEFAULT_TARGET})[/dim]"
        )

    console.print()
    if config_file.exists():
        console.print(f"Config file: {config_file}")
    else:
        console.print(f"Config file: [dim]not created yet[/dim] ({config_file})")
    console.print()


def _set_config(key: str, value: str):
    """Set a config value and save."""
    if key not in VALID_KEYS:
        console.print(f"[red]Unknown key:[/red] {key}")
        console.print()
        console.print("Available keys:")
        for k in sorted(VALID_KEYS):
            console.print(f"  {k}")
        raise typer.Exit(1)

    config = GenerationConfig.load()

    if key in BOOL_FIELDS:
        try:
            setattr(config, key, config_module._parse_bool(value))
        except ValueError:
            console.print(f"[red]Invalid boolean value:[/red] {value}")
            raise typer.Exit(1)
    elif key in LIST_FIELDS:
        setattr(config, key, [item.strip() for item in value.split(",") if item.strip()])
    else:
        setattr(config, key, value)

    config.save()

    console.print(f"[green]✓[/green] Set {key} = {value}")
    console.print(f"  Saved to {config_module.CONFIG_FILE}")


def _reset_config():
    """Reset config to defaults."""
    config_file = config_module.CONFIG_FILE
    if config_file.exists():
        config_file.unlink()
        console.print("[green]✓[/green] Config reset to defaults")
        console.print(f"  Removed {config_file}")
    else:
        console.print("Config already at defaults (no config file exists)")
