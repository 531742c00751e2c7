"""Payroll calculator.

Computes hours, totals, gross/net components and the per-employer
breakdown for one worker. Two mutually exclusive modes:

manual:
    The contract ledger has at least one non-zero entry. Base pay is the sum
    of per-contract base amounts; overtime is paid at the average hourly
    rate; extras (overtime plus net adjustments) are allocated by each
    employer's share of base pay (or of hours, or equally).

calendar:
    No ledger entries. Base pay is the flat base salary; overtime uses
    base_salary / standard_monthly_hours. The total is allocated in
    proportion to attendance hours per employer, when there are any.

In both modes the breakdown is forced to sum to the total by adding any
difference beyond the tolerance to the last row.
"""

import logging
from typing import Iterable, List, Mapping, Optional

from .amounts import company_key_for, is_valid_company_name, parse_amount
from .contracts import ContractStructure, aggregate_ledger
from .other_payments import OtherPaymentsLedger, OtherPaymentsTotals
from .schemas import (
    BreakdownEntry,
    CalculationInput,
    CalculationResult,
    CompanyHours,
    ContractInputState,
    PayrollRules,
)

logger = logging.getLogger(__name__)


def apply_rounding_adjustment(
    breakdown: List[BreakdownEntry],
    total_amount: float,
    tolerance: float = 0.01,
) -> List[BreakdownEntry]:
    """Push any difference between the total and the row sum onto the last row.

    The whole adjustment goes to the last entry in breakdown order. Existing
    callers depend on that placement, so it is not spread across rows.
    """
    if not breakdown:
        return breakdown

    adjustment = total_amount - sum(entry.amount for entry in breakdown)
    if abs(adjustment) <= tolerance:
        return breakdown

    logger.debug(f"rounding adjustment {adjustment:+.6f} applied to {breakdown[-1].company_key}")
    last = breakdown[-1]
    return breakdown[:-1] + [last.model_copy(update={"amount": last.amount + adjustment})]


def gross_net_components(
    regular_pay: float,
    overtime_pay: float,
    bonuses: float,
    deductions: float,
    rules: PayrollRules,
) -> dict:
    """Gross pay, flat-rate withholdings and net pay.

    Rates are fixed constants from PayrollRules; deductions come off net,
    not gross.
    """
    gross = regular_pay + overtime_pay + bonuses
    taxes = gross * rules.tax_rate
    social_security = gross * rules.social_security_rate
    return {
        "gross_salary": gross,
        "taxes": taxes,
        "social_security": social_security,
        "net_salary": gross - taxes - social_security - deductions,
    }


def _calculate_manual(
    aggregates,
    overtime_hours: float,
    bonuses: float,
    deductions: float,
    rules: PayrollRules,
) -> CalculationResult:
    companies = [c for c in aggregates.companies if is_valid_company_name(c.company_name)]

    regular_hours = sum(c.hours for c in companies)
    base_total = sum(c.base_amount for c in companies)

    average_rate = base_total / regular_hours if regular_hours > 0 and base_total > 0 else 0.0
    overtime_pay = overtime_hours * average_rate * rules.overtime_multiplier

    total_amount = base_total + overtime_pay + bonuses - deductions
    extras = total_amount - base_total

    breakdown = []
    for company in companies:
        if base_total > 0:
            weight = company.base_amount / base_total
        elif regular_hours > 0:
            weight = company.hours / regular_hours
        else:
            weight = 1 / len(companies)
        breakdown.append(BreakdownEntry(
            company_key=company.company_key,
            company_id=company.company_id,
            name=company.company_name,
            hours=company.hours,
            amount=company.base_amount + extras * weight,
        ))

    return CalculationResult(
        mode="manual",
        total_amount=total_amount,
        total_hours=regular_hours + overtime_hours,
        regular_hours=regular_hours,
        overtime_hours=overtime_hours,
        overtime_pay=overtime_pay,
        company_breakdown=apply_rounding_adjustment(
            breakdown, total_amount, rules.rounding_tolerance
        ),
        uses_calendar_hours=regular_hours > 0,
        **gross_net_components(base_total, overtime_pay, bonuses, deductions, rules),
    )


def _calculate_calendar(
    form: CalculationInput,
    calendar_totals: Iterable[CompanyHours],
    overtime_hours: float,
    bonuses: float,
    deductions: float,
    rules: PayrollRules,
) -> CalculationResult:
    companies = [
        c for c in calendar_totals
        if c.hours > 0 and is_valid_company_name(c.name)
    ]
    calendar_hours = sum(c.hours for c in companies)
    regular_hours = calendar_hours if calendar_hours > 0 else parse_amount(form.hours_worked)

    base_salary = parse_amount(form.base_salary)
    overtime_pay = overtime_hours * (base_salary / rules.standard_monthly_hours) * rules.overtime_multiplier
    total_amount = base_salary + overtime_pay + bonuses - deductions

    breakdown = []
    if calendar_hours > 0:
        for company in companies:
            breakdown.append(BreakdownEntry(
                company_key=company_key_for(company.company_id, company.name),
                company_id=company.company_id,
                name=company.name,
                hours=company.hours,
                amount=(company.hours / regular_hours) * total_amount,
            ))

    return CalculationResult(
        mode="calendar",
        total_amount=total_amount,
        total_hours=regular_hours + overtime_hours,
        regular_hours=regular_hours,
        overtime_hours=overtime_hours,
        overtime_pay=overtime_pay,
        company_breakdown=apply_rounding_adjustment(
            breakdown, total_amount, rules.rounding_tolerance
        ),
        uses_calendar_hours=calendar_hours > 0,
        **gross_net_components(base_salary, overtime_pay, bonuses, deductions, rules),
    )


def calculate_payroll(
    form: CalculationInput,
    structure: Optional[ContractStructure] = None,
    ledger_inputs: Optional[Mapping[str, ContractInputState]] = None,
    calendar_totals: Optional[Iterable[CompanyHours]] = None,
    other_payments: Optional[OtherPaymentsLedger] = None,
    rules: Optional[PayrollRules] = None,
) -> CalculationResult:
    """Compute the payroll result for one worker.

    Args:
        form: Top-level form fields (base salary, hours, overtime, bonuses,
            deductions), as typed.
        structure: Contract layout of the worker; required for manual mode.
        ledger_inputs: Contract key -> ContractInputState.
        calendar_totals: Month attendance hours per employer
            (hours.company_hours_totals).
        other_payments: Adjustment ledger, added on top of form bonuses and
            deductions.
        rules: Payroll constants (defaults when omitted).

    Returns:
        CalculationResult. Manual mode is used whenever the ledger has a
        non-zero entry; calendar mode otherwise.
    """
    rules = rules or PayrollRules()
    totals = other_payments.totals() if other_payments is not None else OtherPaymentsTotals()

    overtime_hours = parse_amount(form.overtime_hours)
    bonuses = parse_amount(form.bonuses) + totals.additions
    deductions = parse_amount(form.deductions) + totals.subtractions

    if structure is not None and ledger_inputs:
        aggregates = aggregate_ledger(structure, ledger_inputs)
        if aggregates.has_entries:
            return _calculate_manual(aggregates, overtime_hours, bonuses, deductions, rules)

    return _calculate_calendar(
        form, list(calendar_totals or []), overtime_hours, bonuses, deductions, rules
    )
