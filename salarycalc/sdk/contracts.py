"""Contract input ledger.

Holds the operator-entered hours / base salary / hourly rate per contract,
plus the override-tracking sets the auto-fill engine consults. A worker may
hold several contracts with the same employer; each gets its own ledger key.

Scope:
- Contract structure derived from the worker snapshot (build_contract_structure)
- Immutable ledger state and direct edits (LedgerState, set_contract_input)
- Per-employer aggregation for the calculator (aggregate_ledger)

The auto-fill engine lives in autofill.py and only ever writes through
LedgerState copies returned from here.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .amounts import (
    company_key_for,
    is_valid_company_name,
    parse_amount,
    sort_key_for_name,
    trim_to_none,
)
from .schemas import ContractInputState, Worker


ContractField = Literal["hours", "base_salary", "hourly_rate"]


@dataclass(frozen=True)
class ContractEntry:
    """One contract row of an employer group."""

    contract_key: str
    label: str
    has_contract: bool
    company_key: str
    company_id: Optional[str]
    company_name: str
    description: Optional[str] = None
    hourly_rate: Optional[float] = None


@dataclass(frozen=True)
class CompanyContractGroup:
    """An employer and the contracts the worker holds with it."""

    company_key: str
    company_id: Optional[str]
    company_name: str
    entries: List[ContractEntry] = field(default_factory=list)


@dataclass(frozen=True)
class ContractStructure:
    """Employer groups in display order, plus a flat key -> entry map."""

    groups: List[CompanyContractGroup]
    contracts: Dict[str, ContractEntry]

    def group_for(self, company_key: str) -> Optional[CompanyContractGroup]:
        for group in self.groups:
            if group.company_key == company_key:
                return group
        return None


def build_contract_structure(worker: Worker) -> ContractStructure:
    """Derive the ledger layout from a worker snapshot.

    Only formal contracts (has_contract=True) get ledger rows. Employers
    with a blank or placeholder name, or with no formal contract, are
    left out.
    """
    groups: List[CompanyContractGroup] = []
    contracts: Dict[str, ContractEntry] = {}

    names = sorted(
        (name for name in worker.company_contracts if trim_to_none(name)),
        key=sort_key_for_name,
    )

    for index, company_name in enumerate(names):
        formal = [c for c in worker.company_contracts[company_name] if c.has_contract]
        resolved_name = company_name.strip()
        if not formal or not is_valid_company_name(resolved_name):
            continue

        company_id = next(
            (trim_to_none(c.company_id) for c in formal if trim_to_none(c.company_id)),
            None,
        )
        company_key = company_key_for(company_id, resolved_name)
        key_base = company_id or resolved_name

        entries = []
        for contract_index, contract in enumerate(formal):
            contract_id = trim_to_none(contract.id) or f"contract-{index}-{contract_index}"
            label = (
                trim_to_none(contract.label)
                or trim_to_none(contract.position)
                or trim_to_none(contract.description)
                or f"Contract {contract_index + 1}"
            )
            description = trim_to_none(contract.description) or trim_to_none(contract.position)
            entry = ContractEntry(
                contract_key=f"{key_base}-{contract_id}",
                label=label,
                has_contract=contract.has_contract,
                company_key=company_key,
                company_id=trim_to_none(contract.company_id) or company_id,
                company_name=resolved_name,
                description=description if description != label else None,
                hourly_rate=contract.hourly_rate,
            )
            entries.append(entry)
            contracts[entry.contract_key] = entry

        groups.append(CompanyContractGroup(
            company_key=company_key,
            company_id=company_id,
            company_name=resolved_name,
            entries=entries,
        ))

    return ContractStructure(groups=groups, contracts=contracts)


class LedgerState(BaseModel):
    """Contract inputs plus the override-tracking sets.

    manual_overrides: contract keys the operator typed hours into; auto-fill
        never writes to these.
    autofilled: employer key -> contract keys auto-fill last wrote.
    autofill_enabled: employer keys with auto-fill switched on.

    Scoped to one worker: start a fresh LedgerState when the worker changes.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    inputs: Dict[str, ContractInputState] = Field(default_factory=dict)
    manual_overrides: FrozenSet[str] = Field(default_factory=frozenset)
    autofilled: Dict[str, FrozenSet[str]] = Field(default_factory=dict)
    autofill_enabled: FrozenSet[str] = Field(default_factory=frozenset)

    def hours_for(self, contract_key: str) -> str:
        entry = self.inputs.get(contract_key)
        return entry.hours if entry else ""


def set_contract_input(
    state: LedgerState,
    contract_key: str,
    field_name: ContractField,
    value,
) -> LedgerState:
    """Apply an operator edit to one contract field.

    Typing hours marks the contract as manually overridden and takes it
    out of every auto-filled set; clearing the hours lifts the override.
    """
    current = state.inputs.get(contract_key, ContractInputState())
    updated = ContractInputState(**{**current.model_dump(), field_name: value})
    inputs = {**state.inputs, contract_key: updated}

    if field_name != "hours":
        return state.model_copy(update={"inputs": inputs})

    if trim_to_none(updated.hours):
        overrides = state.manual_overrides | {contract_key}
        autofilled = {
            company: keys - {contract_key} for company, keys in state.autofilled.items()
        }
    else:
        overrides = state.manual_overrides - {contract_key}
        autofilled = dict(state.autofilled)

    return state.model_copy(update={
        "inputs": inputs,
        "manual_overrides": frozenset(overrides),
        "autofilled": autofilled,
    })


@dataclass(frozen=True)
class CompanyAggregate:
    """Ledger totals for one employer."""

    company_key: str
    company_id: Optional[str]
    company_name: str
    hours: float
    base_amount: float


@dataclass(frozen=True)
class ManualAggregates:
    """Ledger totals across all contracts."""

    has_entries: bool
    total_hours: float
    total_base_amount: float
    companies: List[CompanyAggregate]


def resolve_contract_amounts(
    entry: ContractEntry,
    input_state: Optional[ContractInputState],
) -> tuple:
    """Resolve (hours, hourly_rate, base_amount) for one contract.

    The entered rate wins over the stored contract rate. The entered base
    salary wins when positive; otherwise base is hours x rate.
    """
    hours = parse_amount(input_state.hours) if input_state else 0.0
    explicit_base = parse_amount(input_state.base_salary) if input_state else 0.0

    rate = 0.0
    if input_state is not None and trim_to_none(input_state.hourly_rate):
        rate = parse_amount(input_state.hourly_rate)
    elif entry.hourly_rate is not None:
        rate = parse_amount(entry.hourly_rate)

    if explicit_base > 0:
        base_amount = explicit_base
    elif hours > 0 and rate > 0:
        base_amount = hours * rate
    else:
        base_amount = 0.0
    return hours, rate, base_amount


def aggregate_ledger(
    structure: ContractStructure,
    inputs: Mapping[str, ContractInputState],
) -> ManualAggregates:
    """Sum resolved ledger values per employer, ordered by employer name."""
    per_company: Dict[str, Dict] = {}
    total_hours = 0.0
    total_base = 0.0
    has_entries = False

    for contract_key, entry in structure.contracts.items():
        hours, _rate, base_amount = resolve_contract_amounts(entry, inputs.get(contract_key))
        if hours != 0 or base_amount != 0:
            has_entries = True
        total_hours += hours
        total_base += base_amount

        bucket = per_company.setdefault(entry.company_key, {
            "company_key": entry.company_key,
            "company_id": entry.company_id,
            "company_name": entry.company_name,
            "hours": 0.0,
            "base_amount": 0.0,
        })
        bucket["hours"] += hours
        bucket["base_amount"] += base_amount

    companies = [CompanyAggregate(**bucket) for bucket in per_company.values()]
    companies.sort(key=lambda c: sort_key_for_name(c.company_name))

    return ManualAggregates(
        has_entries=has_entries,
        total_hours=total_hours,
        total_base_amount=total_base,
        companies=companies,
    )
