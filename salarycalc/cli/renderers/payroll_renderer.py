"""Rich renderer for payroll results.

Transforms the JSON payload built by the calculate/hours commands into
formatted Rich tables.
"""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table


def render_payroll(console: Console, data: dict) -> None:
    """Render a calculation payload as Rich tables.

    Args:
        console: Rich Console instance
        data: Output of calculate_commands.outcome_payload()
    """
    for advisory in data.get("advisories", []):
        console.print(Panel(
            f"[yellow]{advisory}[/yellow]",
            title="Advisory",
            border_style="yellow"
        ))

    _render_totals(console, data)
    if data.get("groups"):
        _render_groups(console, data)
    else:
        _render_breakdown(console, data["result"]["company_breakdown"], "Breakdown by Employer")
    if data.get("other_payments"):
        _render_other_payments(console, data["other_payments"])
    for source_key, split in data.get("splits", {}).items():
        _render_split(console, data.get("names", {}), source_key, split)


def _render_totals(console: Console, data: dict) -> None:
    result = data["result"]
    worker = data.get("worker", {})

    table = Table(
        title=f"Payroll: {worker.get('name', '?')} - {data.get('period') or 'current period'} ({result['mode']})",
        box=box.ROUNDED,
    )
    table.add_column("", style="bold", min_width=22)
    table.add_column("Value", justify="right", min_width=14)

    table.add_row("Regular hours", _fmt_hours(result["regular_hours"]))
    table.add_row("Overtime hours", _fmt_hours(result["overtime_hours"]))
    table.add_row("  [dim]Total hours[/dim]", f"[dim]{_fmt_hours(result['total_hours'])}[/dim]")
    table.add_row("", "")
    table.add_row("Overtime pay", _fmt(result["overtime_pay"]))
    table.add_row("Gross salary", _fmt(result["gross_salary"]))
    table.add_row("Taxes", _fmt(result["taxes"]))
    table.add_row("Social security", _fmt(result["social_security"]))
    table.add_row("[bold green]NET SALARY[/bold green]", f"[bold green]{_fmt(result['net_salary'])}[/bold green]")
    table.add_row("", "")
    table.add_row("[bold]TOTAL TO ALLOCATE[/bold]", f"[bold]{_fmt(result['total_amount'])}[/bold]")

    console.print(table)


def _render_breakdown(console: Console, rows: list, title: str) -> None:
    if not rows:
        console.print("[dim]No per-employer breakdown (no hours recorded).[/dim]")
        return

    table = Table(title=title, box=box.SIMPLE)
    table.add_column("Employer", min_width=24)
    table.add_column("Key", style="dim")
    table.add_column("Hours", justify="right")
    table.add_column("Amount", justify="right", min_width=12)
    for row in rows:
        table.add_row(row.get("name") or "?", row["company_key"], _fmt_hours(row["hours"]), _fmt(row["amount"]))
    console.print(table)


def _render_groups(console: Console, data: dict) -> None:
    names = data.get("names", {})
    table = Table(title="Breakdown by Group", box=box.SIMPLE)
    table.add_column("Group / Employer", min_width=28)
    table.add_column("Method")
    table.add_column("Hours", justify="right")
    table.add_column("Amount", justify="right", min_width=12)

    for group in data["groups"]:
        table.add_row(
            f"[bold]{group['name']}[/bold]",
            group["payment_method"],
            _fmt_hours(group["hours"]),
            f"[bold]{_fmt(group['amount'])}[/bold]",
        )
        for member in group["members"]:
            table.add_row(
                f"  {names.get(member['company_key'], member['company_key'])}",
                "",
                _fmt_hours(member["hours"]),
                _fmt(member["amount"]),
            )
    for row in data.get("remaining", []):
        table.add_row(row.get("name") or row["company_key"], "", _fmt_hours(row["hours"]), _fmt(row["amount"]))
    console.print(table)


def _render_other_payments(console: Console, items: list) -> None:
    table = Table(title="Other Payments", box=box.SIMPLE)
    table.add_column("Item", min_width=24)
    table.add_column("Category")
    table.add_column("Method")
    table.add_column("Amount", justify="right", min_width=12)
    for item in items:
        style = "green" if item["amount"] >= 0 else "red"
        table.add_row(
            item["label"], item["category"], item["payment_method"],
            f"[{style}]{item['amount']:+,.2f}[/{style}]",
        )
    console.print(table)


def _render_split(console: Console, names: dict, source_key: str, split: dict) -> None:
    source_name = names.get(source_key, source_key)
    table = Table(
        title=f"Split: {source_name} ({_fmt(split['source_amount'])})",
        box=box.SIMPLE,
    )
    table.add_column("Destination", min_width=24)
    table.add_column("Method")
    table.add_column("Rule", justify="right")
    table.add_column("Amount", justify="right", min_width=12)

    for leg in split["legs"]:
        rule = f"{leg['value']:.2f}%" if leg["mode"] == "percentage" else "fixed"
        table.add_row(names.get(leg["target_key"], leg["target_key"]), leg["method"], rule, _fmt(leg["amount"]))

    if split["over_allocated"]:
        table.add_row("[red]Over-allocated[/red]", "", "", f"[red]{_fmt(-split['remaining'])}[/red]")
    else:
        table.add_row(f"[dim]Remaining with {source_name}[/dim]", "", "", f"[dim]{_fmt(split['remaining'])}[/dim]")
    console.print(table)


def render_hours(console: Console, data: dict) -> None:
    """Render aggregated attendance: one row per day, then employer totals."""
    days = data.get("days", {})
    if not days:
        console.print("[dim]No attendance entries for this period.[/dim]")
        return

    table = Table(title="Attendance by Day", box=box.ROUNDED)
    table.add_column("Day")
    table.add_column("Hours", justify="right")
    table.add_column("Employers")
    table.add_column("Notes", style="dim")
    for day, summary in days.items():
        employers = ", ".join(
            f"{c['name']} {c['hours']:.2f}h" for c in summary["companies"]
        )
        table.add_row(day, _fmt_hours(summary["total_hours"]), employers, "; ".join(summary["notes"]))
    console.print(table)

    totals = Table(title="Month Totals by Employer", box=box.SIMPLE)
    totals.add_column("Employer", min_width=24)
    totals.add_column("Id", style="dim")
    totals.add_column("Hours", justify="right")
    for company in data.get("totals", []):
        totals.add_row(company["name"] or "?", company["company_id"] or "-", _fmt_hours(company["hours"]))
    totals.add_row("[bold]Total[/bold]", "", f"[bold]{_fmt_hours(data.get('total_hours', 0))}[/bold]")
    console.print(totals)


def _fmt(amount: float | None) -> str:
    """Format currency amount."""
    if amount is None:
        return "-"
    return f"{amount:,.2f}"


def _fmt_hours(hours: float | None) -> str:
    if hours is None:
        return "-"
    return f"{hours:.2f}"
