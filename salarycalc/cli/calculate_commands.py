"""Calculation CLI commands for Salary Calc.

Thin wrappers over the SDK: load the session file, replay it into a
PayrollSession, and print or export the outcome.
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from salarycalc.sdk import (
    ConfigNotFoundError,
    PayrollSession,
    RulesValidationError,
    SessionFileError,
    SessionOutcome,
    get_export_path,
    get_setting,
    load_rules,
    load_session_file,
    session_from_file,
)

from .renderers.payroll_renderer import render_hours, render_payroll


FORMAT_OPTION = click.option(
    "--format", "output_format", type=click.Choice(["text", "json"]), default=None,
    help="Output format (default: default_output_format setting, else text).",
)


def _load_session(session_path: str) -> PayrollSession:
    try:
        rules = load_rules()
        session_file = load_session_file(session_path)
    except (SessionFileError, RulesValidationError, ConfigNotFoundError) as e:
        raise click.ClickException(str(e))
    return session_from_file(session_file, rules=rules)


def _output_format(output_format: Optional[str]) -> str:
    return output_format or get_setting("default_output_format", "text")


def outcome_payload(session: PayrollSession, outcome: SessionOutcome) -> dict:
    """JSON-serializable view of a session outcome."""
    result = outcome.result
    return {
        "worker": {"id": session.worker.id, "name": session.worker.name},
        "period": session.period,
        "result": result.model_dump(),
        "names": {
            entry.company_key: entry.name or entry.company_key
            for entry in result.company_breakdown
        },
        "groups": [
            {
                "id": summary.group.id,
                "name": summary.group.name,
                "color": summary.group.color,
                "payment_method": summary.group.payment_method,
                "hours": summary.hours,
                "amount": summary.amount,
                "members": [member.model_dump() for member in summary.members],
            }
            for summary in outcome.grouped.groups
        ],
        "remaining": [entry.model_dump() for entry in outcome.grouped.remaining],
        "other_payments": [asdict(detail) for detail in session.other_payments.details()],
        "splits": {key: asdict(summary) for key, summary in outcome.splits.items()},
        "advisories": outcome.advisories,
    }


@click.command("calculate")
@click.argument("session_path", metavar="SESSION", type=click.Path(dir_okay=False))
@FORMAT_OPTION
def calculate(session_path: str, output_format: Optional[str]):
    """Calculate payroll and the per-employer breakdown for a session file.

    \b
    Examples:
      salary-calc calculate june.yaml
      salary-calc calculate june.yaml --format json
    """
    session = _load_session(session_path)
    payload = outcome_payload(session, session.calculate())

    if _output_format(output_format) == "json":
        click.echo(json.dumps(payload, indent=2))
        return

    render_payroll(Console(width=120), payload)


@click.command("hours")
@click.argument("session_path", metavar="SESSION", type=click.Path(dir_okay=False))
@FORMAT_OPTION
def hours(session_path: str, output_format: Optional[str]):
    """Show attendance hours per day and per employer for a session file."""
    session = _load_session(session_path)
    payload = {
        "days": {day: summary.model_dump() for day, summary in session.days.items()},
        "totals": [company.model_dump() for company in session.calendar_totals],
        "total_hours": sum(company.hours for company in session.calendar_totals),
    }

    if _output_format(output_format) == "json":
        click.echo(json.dumps(payload, indent=2))
        return

    render_hours(Console(width=120), payload)


@click.command("export")
@click.argument("session_path", metavar="SESSION", type=click.Path(dir_okay=False))
@click.option("--output", "-o", type=click.Path(), default=None,
              help="Output PDF file or directory (default: export_dir setting).")
def export(session_path: str, output: Optional[str]):
    """Export the payroll summary of a session file as a PDF."""
    session = _load_session(session_path)
    outcome = session.calculate()
    document = session.export(outcome)

    if output:
        target = Path(output).expanduser()
        if target.is_dir():
            target = target / document.filename
    else:
        target = get_export_path() / document.filename

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(document.content)

    for advisory in outcome.advisories:
        click.echo(click.style(f"Advisory: {advisory}", fg="yellow"))
    click.echo(f"Wrote {target}")
