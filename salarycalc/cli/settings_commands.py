"""Settings CLI commands for Salary Calc.

Manages settings.json - data directory, export directory, output format.
"""

import click

from salarycalc.sdk import (
    get_data_path,
    get_export_path,
    get_rules_path,
    get_settings_path,
    load_settings,
    set_setting,
    unset_setting,
)
from salarycalc.sdk.config import KNOWN_SETTINGS, PATH_SETTINGS


def _parse_value(value: str):
    """Interpret true/false and numbers; keep anything else as text."""
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


@click.group()
def settings():
    """Manage settings (settings.json).

    Available settings:
    - data_dir: custom data directory path
    - export_dir: where 'export' writes PDFs (default: <data_dir>/exports)
    - default_output_format: text or json
    """
    pass


@settings.command("show")
def settings_show():
    """Show current settings and their values."""
    settings_path = get_settings_path()
    current = load_settings()

    click.echo(f"Settings file: {settings_path}")
    click.echo(f"File exists: {settings_path.exists()}")
    click.echo()

    if not current:
        click.echo("No settings configured (using defaults).")
    else:
        click.echo("Current settings:")
        for key, value in current.items():
            click.echo(f"  {key}: {value}")

    rules_path = get_rules_path()
    click.echo()
    click.echo("Effective paths:")
    click.echo(f"  data_dir: {get_data_path()}")
    click.echo(f"  export_dir: {get_export_path()}")
    click.echo(f"  rules: {rules_path} ({'found' if rules_path.exists() else 'defaults'})")


@settings.command("set")
@click.argument("key")
@click.argument("value")
def settings_set(key, value):
    """Set a setting value.

    \b
    Examples:
      salary-calc settings set data_dir ~/payroll
      salary-calc settings set default_output_format json
    """
    if key not in KNOWN_SETTINGS:
        raise click.ClickException(
            f"Unknown setting '{key}'. Known settings: {', '.join(KNOWN_SETTINGS)}"
        )

    parsed_value = value if key in PATH_SETTINGS else _parse_value(value)
    if key == "default_output_format" and parsed_value not in ("text", "json"):
        raise click.ClickException("default_output_format must be 'text' or 'json'")

    settings_file = set_setting(key, parsed_value)
    click.echo(f"Set {key} = {parsed_value}")
    click.echo(f"Saved to: {settings_file}")


@settings.command("unset")
@click.argument("key")
def settings_unset(key):
    """Remove a setting, reverting to its default."""
    if unset_setting(key):
        click.echo(f"Cleared {key} setting.")
    else:
        click.echo(f"{key} was not set.")
