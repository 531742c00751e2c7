"""Salary Calc CLI - Command-line interface for payroll calculation."""

import click

from salarycalc import __version__

from .calculate_commands import calculate, export, hours
from .settings_commands import settings as settings_group


@click.group()
@click.version_option(version=__version__, prog_name="salary-calc")
def cli():
    """Salary Calc - Payroll calculation across multiple employers.

    Commands read a session file (YAML or JSON) holding the worker
    snapshot, attendance entries and operator inputs.

    Configuration is loaded from (in order):

    \b
    1. SALARY_CALC_CONFIG_PATH environment variable
    2. ~/.config/salary-calc/ (XDG default)

    Payroll constants can be overridden in rules.yaml in the config
    directory. Run 'salary-calc settings show' to see effective paths.
    """
    pass


cli.add_command(settings_group)
cli.add_command(calculate)
cli.add_command(hours)
cli.add_command(export)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
