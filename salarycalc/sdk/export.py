"""Payroll summary export.

Two steps: build_summary_lines produces the ordered text content;
render_summary_pdf turns those lines into a small fixed-font PDF (reportlab, A4, Courier
10pt, top-down). The PDF is a convenience wrapper around the lines, not a
certified payslip format.
"""

import io
import logging
import re
import textwrap
from dataclasses import dataclass
from typing import Dict, List, Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from .amounts import normalize_company_label
from .grouping import GroupingConfig, group_breakdown
from .other_payments import CATEGORY_LABELS, OtherPaymentsLedger
from .schemas import CalculationResult
from .splits import SplitSettings, compute_split

logger = logging.getLogger(__name__)

FONT_NAME = "Courier"
FONT_SIZE = 10
LINE_HEIGHT = 12
MARGIN = 15 * mm
MAX_LINE_CHARS = 92


def _money(amount: float) -> str:
    return f"{amount:,.2f}"


def _hours(hours: float) -> str:
    return f"{hours:.2f} h"


def _display_names(result: CalculationResult) -> Dict[str, str]:
    return {
        entry.company_key: entry.name or entry.company_id or entry.company_key
        for entry in result.company_breakdown
    }


def build_summary_lines(
    worker_name: str,
    period_label: str,
    result: CalculationResult,
    grouping: Optional[GroupingConfig] = None,
    splits: Optional[SplitSettings] = None,
    other_payments: Optional[OtherPaymentsLedger] = None,
) -> List[str]:
    """Ordered text content of the payroll summary.

    Sections: header, totals, breakdown (grouped when groups exist, flat
    otherwise), other payments, split payments.
    """
    names = _display_names(result)
    lines = [
        "PAYROLL SUMMARY",
        f"Worker: {worker_name}",
        f"Period: {period_label}",
        "",
        f"Total hours:      {_hours(result.total_hours)}",
        f"Gross salary:     {_money(result.gross_salary)}",
        f"Taxes:            {_money(result.taxes)}",
        f"Social security:  {_money(result.social_security)}",
        f"Net salary:       {_money(result.net_salary)}",
        f"Total amount:     {_money(result.total_amount)}",
    ]

    if grouping is not None and grouping.groups:
        grouped = group_breakdown(result, grouping)
        lines += ["", "Breakdown by group:"]
        for summary in grouped.groups:
            lines.append(
                f"{summary.group.name} [{summary.group.payment_method}]: "
                f"{_hours(summary.hours)} - {_money(summary.amount)}"
            )
            for member in summary.members:
                lines.append(
                    f"  - {names[member.company_key]}: {_hours(member.hours)} - {_money(member.amount)}"
                )
        if grouped.remaining:
            lines.append("Ungrouped:")
            for entry in grouped.remaining:
                lines.append(
                    f"  {names[entry.company_key]}: {_hours(entry.hours)} - {_money(entry.amount)}"
                )
    elif result.company_breakdown:
        lines += ["", "Breakdown by employer:"]
        for entry in result.company_breakdown:
            lines.append(
                f"  {names[entry.company_key]}: {_hours(entry.hours)} - {_money(entry.amount)}"
            )

    details = other_payments.details() if other_payments is not None else []
    if details:
        lines += ["", "Other payments:"]
        for detail in details:
            employer = f" ({names.get(detail.company_key, detail.company_key)})" if detail.company_key else ""
            lines.append(
                f"  {detail.label} [{CATEGORY_LABELS[detail.category]}, {detail.payment_method}]"
                f"{employer}: {detail.amount:+,.2f}"
            )

    active = set(splits.active_sources()) if splits is not None else set()
    split_sources = [e for e in result.company_breakdown if e.company_key in active]
    if split_sources:
        lines += ["", "Split payments:"]
        for entry in split_sources:
            summary = compute_split(entry.amount, splits.config_for(entry.company_key))
            source_name = names[entry.company_key]
            lines.append(f"{source_name} ({_money(entry.amount)}):")
            for leg in summary.legs:
                base = f"{leg.value:.2f}%" if leg.mode == "percentage" else f"fixed {_money(leg.value)}"
                lines.append(
                    f"  -> {names.get(leg.target_key, leg.target_key)} [{leg.method}]: "
                    f"{_money(leg.amount)} ({base})"
                )
            if summary.over_allocated:
                lines.append(f"  Over-allocated by {_money(-summary.remaining)}")
            else:
                lines.append(f"  Remaining with {source_name}: {_money(summary.remaining)}")

    return lines


def render_summary_pdf(lines: List[str], title: str = "Payroll summary") -> bytes:
    """Lay the lines out top-down in Courier; overflow continues on a new page."""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(title)
    _width, height = A4

    y = height - MARGIN
    pdf.setFont(FONT_NAME, FONT_SIZE)
    pages = 1
    for line in lines:
        for chunk in textwrap.wrap(line, MAX_LINE_CHARS) or [""]:
            if y < MARGIN:
                pdf.showPage()
                pdf.setFont(FONT_NAME, FONT_SIZE)
                y = height - MARGIN
                pages += 1
            pdf.drawString(MARGIN, y, chunk)
            y -= LINE_HEIGHT

    pdf.save()
    logger.debug(f"Rendered {len(lines)} summary lines on {pages} page(s)")
    return buffer.getvalue()


def _slug(text: str) -> str:
    normalized = normalize_company_label(text) or ""
    return re.sub(r"[^a-z0-9]+", "-", normalized).strip("-") or "unnamed"


@dataclass(frozen=True)
class ExportDocument:
    filename: str
    content: bytes
    lines: List[str]


def export_summary(
    worker_name: str,
    period_label: str,
    result: CalculationResult,
    grouping: Optional[GroupingConfig] = None,
    splits: Optional[SplitSettings] = None,
    other_payments: Optional[OtherPaymentsLedger] = None,
) -> ExportDocument:
    """Build the summary lines and render them into a downloadable PDF."""
    lines = build_summary_lines(
        worker_name, period_label, result,
        grouping=grouping, splits=splits, other_payments=other_payments,
    )
    filename = f"payroll-{_slug(worker_name)}-{_slug(period_label)}.pdf"
    content = render_summary_pdf(lines, title=f"Payroll summary - {worker_name} - {period_label}")
    return ExportDocument(filename=filename, content=content, lines=lines)
