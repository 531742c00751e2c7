"""Auto-fill of contract hours from attendance.

Pure functions over LedgerState: each takes the current state and returns
a new one. Nothing is written to contracts in the manual-override set, and
an employer's auto-filled set always records exactly the contracts the
last fill wrote, so disabling auto-fill can undo it without touching
manual edits.

Usage:
    state = enable_autofill(state, group, totals)
    state = set_contract_input(state, key, "hours", "12")  # manual edit
    state = refresh_autofill(state, structure, new_totals)  # keeps "12"
"""

import logging
from typing import Iterable

from .contracts import CompanyContractGroup, ContractStructure, LedgerState
from .hours import calendar_hours_for_company
from .schemas import CompanyHours, ContractInputState

logger = logging.getLogger(__name__)


def _format_hours(hours: float) -> str:
    """Render auto-filled hours the way an operator would type them."""
    rounded = round(hours, 2)
    if rounded <= 0:
        return ""
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded}"


def clear_autofill(state: LedgerState, company_key: str) -> LedgerState:
    """Blank the hours auto-fill previously wrote for one employer."""
    filled = state.autofilled.get(company_key)
    autofilled = {k: v for k, v in state.autofilled.items() if k != company_key}
    if not filled:
        return state.model_copy(update={"autofilled": autofilled})

    inputs = dict(state.inputs)
    for contract_key in filled:
        existing = inputs.get(contract_key)
        if existing is not None and existing.hours != "":
            inputs[contract_key] = existing.model_copy(update={"hours": ""})

    return state.model_copy(update={"inputs": inputs, "autofilled": autofilled})


def apply_autofill(
    state: LedgerState,
    group: CompanyContractGroup,
    totals: Iterable[CompanyHours],
) -> LedgerState:
    """Spread an employer's calendar hours evenly over its contracts.

    With no calendar hours, or no contracts, the employer's previous
    auto-fill is cleared instead.
    """
    calendar_hours = calendar_hours_for_company(totals, group.company_id, group.company_name)
    if calendar_hours <= 0 or not group.entries:
        return clear_autofill(state, group.company_key)

    hours_text = _format_hours(calendar_hours / len(group.entries))
    inputs = dict(state.inputs)
    filled = set()

    for entry in group.entries:
        if entry.contract_key in state.manual_overrides:
            continue
        existing = inputs.get(entry.contract_key)
        if existing is not None:
            if existing.hours != hours_text:
                inputs[entry.contract_key] = existing.model_copy(update={"hours": hours_text})
        elif hours_text:
            inputs[entry.contract_key] = ContractInputState(hours=hours_text)
        filled.add(entry.contract_key)

    logger.debug(
        f"autofill {group.company_key}: {calendar_hours:.2f}h over "
        f"{len(group.entries)} contract(s), {len(filled)} written"
    )

    autofilled = {**state.autofilled, group.company_key: frozenset(filled)}
    return state.model_copy(update={"inputs": inputs, "autofilled": autofilled})


def enable_autofill(
    state: LedgerState,
    group: CompanyContractGroup,
    totals: Iterable[CompanyHours],
) -> LedgerState:
    """Switch auto-fill on for an employer and fill it.

    An employer without calendar hours cannot be enabled; any previous
    auto-fill for it is cleared.
    """
    totals = list(totals)
    calendar_hours = calendar_hours_for_company(totals, group.company_id, group.company_name)
    if calendar_hours <= 0:
        state = clear_autofill(state, group.company_key)
        return state.model_copy(update={
            "autofill_enabled": state.autofill_enabled - {group.company_key},
        })

    state = state.model_copy(update={
        "autofill_enabled": state.autofill_enabled | {group.company_key},
    })
    return apply_autofill(state, group, totals)


def disable_autofill(state: LedgerState, company_key: str) -> LedgerState:
    """Switch auto-fill off for an employer and undo what it wrote."""
    state = clear_autofill(state, company_key)
    return state.model_copy(update={
        "autofill_enabled": state.autofill_enabled - {company_key},
    })


def set_autofill_all(
    state: LedgerState,
    structure: ContractStructure,
    totals: Iterable[CompanyHours],
    enable: bool,
) -> LedgerState:
    """Enable or disable auto-fill for every employer at once."""
    totals = list(totals)
    for group in structure.groups:
        if enable:
            state = enable_autofill(state, group, totals)
        else:
            state = disable_autofill(state, group.company_key)
    return state


def refresh_autofill(
    state: LedgerState,
    structure: ContractStructure,
    totals: Iterable[CompanyHours],
) -> LedgerState:
    """Re-apply auto-fill for enabled employers after a calendar change.

    Employers whose calendar hours dropped to zero are cleared and switched
    off. Running it twice with the same totals yields the same state.
    """
    totals = list(totals)
    for group in structure.groups:
        if group.company_key not in state.autofill_enabled:
            continue
        if calendar_hours_for_company(totals, group.company_id, group.company_name) > 0:
            state = apply_autofill(state, group, totals)
        else:
            state = disable_autofill(state, group.company_key)
    return state
