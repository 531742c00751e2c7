"""Calculation session driver.

A PayrollSession holds everything the operator builds up for one worker
(ledger, override sets, other payments, groups, splits) and recomputes the
result on demand. Selecting another worker or resetting the form discards
all of it.

Session files are the adapter boundary to the surrounding application: a
YAML or JSON document carrying the worker snapshot, raw attendance and the
operator's inputs. session_from_file replays a file through the same
commands an operator would issue, so rejected edits surface as advisories
instead of being silently applied.

Usage:
    session_file = load_session_file("june.yaml")
    session = session_from_file(session_file, rules=load_rules())
    outcome = session.calculate()
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from . import autofill
from .amounts import normalize_company_label, parse_amount
from .calculator import calculate_payroll
from .contracts import ContractField, LedgerState, build_contract_structure, set_contract_input
from .export import ExportDocument, export_summary
from .grouping import (
    AssignToGroup,
    CreateGroup,
    GroupedBreakdown,
    GroupingCommand,
    GroupingConfig,
    apply_grouping_command,
    group_breakdown,
)
from .hours import aggregate_attendance, company_hours_totals
from .other_payments import OtherPaymentCategory, OtherPaymentsLedger
from .schemas import (
    CalculationInput,
    CalculationResult,
    CompanyHours,
    ContractInputState,
    DayHoursSummary,
    PaymentMethod,
    PayrollRules,
    Worker,
)
from .splits import (
    AddSplitRule,
    SetSplitMode,
    SplitCommand,
    SplitSettings,
    SplitSummary,
    apply_split_command,
    compute_split,
    prune_split_settings,
)

# Configure logging based on LOG_LEVEL environment variable
_log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, _log_level, logging.INFO),
    format="%(asctime)s.%(msecs)03d %(levelname)s: %(message)s",
    datefmt="%H:%M:%S"
)
logger = logging.getLogger(__name__)

_MONTH_PERIOD = re.compile(r"^\d{4}-\d{2}$")


class SessionFileError(Exception):
    """Raised when a session file is missing, unreadable or invalid."""
    pass


# =============================================================================
# Session file schema
# =============================================================================


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class AttendanceSection(_Section):
    hours: List[Dict[str, Any]] = Field(default_factory=list, description="Raw time entries")
    notes: List[Dict[str, Any]] = Field(default_factory=list, description="Note-only entries")
    companies: Dict[str, str] = Field(
        default_factory=dict, description="Employer id -> display name"
    )


class AutofillSection(_Section):
    all: bool = False
    companies: List[str] = Field(default_factory=list, description="Employer keys or names")


class OtherPaymentEntry(_Section):
    id: Optional[str] = None
    label: str = ""
    amount: Union[str, float, int] = ""
    company: Optional[str] = Field(default=None, description="Employer key or name")
    payment_method: PaymentMethod = "bank"


class GroupEntry(_Section):
    id: Optional[str] = None
    name: str
    color: str = "#3b82f6"
    payment_method: PaymentMethod = "bank"
    companies: List[str] = Field(default_factory=list, description="Employer keys or names")


class SplitRuleEntry(_Section):
    id: Optional[str] = None
    target: str = Field(..., description="Employer key or name")
    mode: Literal["percentage", "amount"] = "percentage"
    value: Union[str, float, int] = 0
    method: PaymentMethod = "bank"


class SplitEntry(_Section):
    mode: Literal["keep", "split"] = "split"
    rules: List[SplitRuleEntry] = Field(default_factory=list)


class SessionFile(_Section):
    """On-disk description of one calculation session."""

    worker: Worker
    period: str = Field(default="", description="Period label, e.g. 2025-06")
    form: CalculationInput = Field(default_factory=CalculationInput)
    attendance: AttendanceSection = Field(default_factory=AttendanceSection)
    contract_inputs: Dict[str, ContractInputState] = Field(default_factory=dict)
    autofill: AutofillSection = Field(default_factory=AutofillSection)
    other_payments: Dict[OtherPaymentCategory, List[OtherPaymentEntry]] = Field(default_factory=dict)
    groups: List[GroupEntry] = Field(default_factory=list)
    splits: Dict[str, SplitEntry] = Field(default_factory=dict, description="Source employer -> split")


def load_session_file(path: Union[str, Path]) -> SessionFile:
    """Read and validate a YAML or JSON session file.

    Raises:
        SessionFileError: If the file is missing, unparseable or invalid
    """
    path = Path(path)
    if not path.exists():
        raise SessionFileError(f"Session file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SessionFileError(f"Cannot parse {path}: {e}") from e

    if not isinstance(data, dict):
        raise SessionFileError(f"{path}: expected a mapping at the top level")

    try:
        return SessionFile.model_validate(data)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise SessionFileError(f"{path}: {errors}") from e


# =============================================================================
# Session
# =============================================================================


@dataclass
class SessionOutcome:
    """Everything a recompute produces."""

    result: CalculationResult
    grouped: GroupedBreakdown
    splits: Dict[str, SplitSummary] = field(default_factory=dict)
    advisories: List[str] = field(default_factory=list)


class PayrollSession:
    """Mutable holder of one worker's calculation state.

    All computation is delegated to the pure sdk functions; this class only
    keeps their latest outputs and clears them on worker change or reset.
    """

    def __init__(self, rules: Optional[PayrollRules] = None):
        self.rules = rules or PayrollRules()
        self.worker: Optional[Worker] = None
        self.structure = build_contract_structure(Worker(id="", name=""))
        self.period = ""
        self.days: Dict[str, DayHoursSummary] = {}
        self.calendar_totals: List[CompanyHours] = []
        self.reset_form()

    # -- lifecycle ------------------------------------------------------------

    def select_worker(self, worker: Worker, period: str = "") -> None:
        """Make a worker active, discarding everything built for the previous one."""
        self.worker = worker
        self.structure = build_contract_structure(worker)
        self.period = period
        self.days = {}
        self.calendar_totals = []
        self.reset_form()
        logger.debug(
            f"Selected worker {worker.id}: {len(self.structure.groups)} employer(s), "
            f"{len(self.structure.contracts)} contract(s)"
        )

    def reset_form(self) -> None:
        """Clear form fields, ledger, override sets, other payments, groups and splits."""
        base_salary = ""
        if self.worker is not None and self.worker.base_salary:
            base_salary = self.worker.base_salary
        self.form = CalculationInput(base_salary=base_salary)
        self.ledger = LedgerState()
        self.other_payments = OtherPaymentsLedger()
        self.grouping = GroupingConfig()
        self.splits = SplitSettings()
        self.advisories: List[str] = []

    # -- inputs ---------------------------------------------------------------

    def set_form(self, **fields) -> None:
        self.form = CalculationInput(**{**self.form.model_dump(), **fields})

    def set_attendance(
        self,
        hour_entries,
        note_entries=(),
        company_lookup: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Load a month of attendance and refresh auto-filled contracts."""
        days = aggregate_attendance(
            hour_entries,
            note_entries,
            company_lookup=company_lookup,
            utc_offset_hours=self.rules.attendance_utc_offset_hours,
        )
        if _MONTH_PERIOD.match(self.period):
            days = {key: day for key, day in days.items() if key.startswith(self.period)}
        self.days = days
        self.calendar_totals = company_hours_totals(days)
        self.ledger = autofill.refresh_autofill(self.ledger, self.structure, self.calendar_totals)

    def set_contract_input(self, contract_key: str, field_name: ContractField, value) -> None:
        if contract_key not in self.structure.contracts:
            self._advise(f"Unknown contract {contract_key}")
            return
        self.ledger = set_contract_input(self.ledger, contract_key, field_name, value)

    def set_autofill(self, company_key: str, enabled: bool) -> None:
        group = self.structure.group_for(company_key)
        if group is None:
            self._advise(f"Unknown employer {company_key}")
            return
        if enabled:
            self.ledger = autofill.enable_autofill(self.ledger, group, self.calendar_totals)
            if company_key not in self.ledger.autofill_enabled:
                self._advise(f"No calendar hours for {group.company_name}; auto-fill left off")
        else:
            self.ledger = autofill.disable_autofill(self.ledger, company_key)

    def set_autofill_all(self, enabled: bool) -> None:
        self.ledger = autofill.set_autofill_all(
            self.ledger, self.structure, self.calendar_totals, enabled
        )

    def add_other_payment(self, category: OtherPaymentCategory, **item) -> str:
        """Append an other-payments item and return its id."""
        self.other_payments = self.other_payments.add_item(category, **item)
        return self.other_payments.items(category)[-1].id

    def remove_other_payment(self, category: OtherPaymentCategory, item_id: str) -> None:
        self.other_payments = self.other_payments.remove_item(category, item_id)

    def apply_grouping(self, command: GroupingCommand) -> Optional[str]:
        outcome = apply_grouping_command(self.grouping, command)
        self.grouping = outcome.config
        if outcome.advisory:
            self.advisories.append(outcome.advisory)
        return outcome.advisory

    def apply_split(self, command: SplitCommand) -> Optional[str]:
        available = [entry.company_key for entry in self.compute_result().company_breakdown]
        outcome = apply_split_command(self.splits, command, available)
        self.splits = outcome.settings
        if outcome.advisory:
            self.advisories.append(outcome.advisory)
        return outcome.advisory

    def dismiss_advisories(self) -> None:
        self.advisories = []

    def _advise(self, message: str) -> None:
        logger.warning(message)
        self.advisories.append(message)

    # -- employer references ---------------------------------------------------

    def known_company_keys(self) -> List[str]:
        keys = [group.company_key for group in self.structure.groups]
        for entry in self.compute_result().company_breakdown:
            if entry.company_key not in keys:
                keys.append(entry.company_key)
        return keys

    def resolve_company_ref(self, ref: str) -> str:
        """Map an employer key, id or display name to its CompanyKey.

        Unknown references are returned unchanged so the command that
        receives them can reject them with an advisory.
        """
        keys = self.known_company_keys()
        if ref in keys:
            return ref
        if f"id:{ref}" in keys:
            return f"id:{ref}"

        wanted = normalize_company_label(ref)
        for group in self.structure.groups:
            if normalize_company_label(group.company_name) == wanted:
                return group.company_key
        for entry in self.compute_result().company_breakdown:
            if normalize_company_label(entry.name) == wanted:
                return entry.company_key
        return ref

    # -- computation ------------------------------------------------------------

    def compute_result(self) -> CalculationResult:
        return calculate_payroll(
            self.form,
            structure=self.structure,
            ledger_inputs=self.ledger.inputs,
            calendar_totals=self.calendar_totals,
            other_payments=self.other_payments,
            rules=self.rules,
        )

    def calculate(self) -> SessionOutcome:
        """Recompute from current state.

        Split rules pointing at employers that left the breakdown are
        pruned. Calling this repeatedly without new input gives the same
        outcome.
        """
        result = self.compute_result()
        valid_keys = [entry.company_key for entry in result.company_breakdown]
        self.splits = prune_split_settings(self.splits, valid_keys)

        advisories = list(self.advisories)
        summaries = {}
        for source_key in self.splits.active_sources():
            entry = result.entry_for(source_key)
            summary = compute_split(entry.amount, self.splits.config_for(source_key))
            summaries[source_key] = summary
            if summary.over_allocated:
                advisories.append(
                    f"Split of {entry.name or source_key} exceeds its amount by {-summary.remaining:.2f}"
                )

        return SessionOutcome(
            result=result,
            grouped=group_breakdown(result, self.grouping),
            splits=summaries,
            advisories=advisories,
        )

    def export(self, outcome: Optional[SessionOutcome] = None) -> ExportDocument:
        """Build the PDF summary, reusing an already computed outcome when given."""
        if outcome is None:
            outcome = self.calculate()
        return export_summary(
            self.worker.name if self.worker else "",
            self.period,
            outcome.result,
            grouping=self.grouping,
            splits=self.splits,
            other_payments=self.other_payments,
        )


def session_from_file(session_file: SessionFile, rules: Optional[PayrollRules] = None) -> PayrollSession:
    """Build a PayrollSession by replaying a session file's inputs.

    Order matters: typed contract inputs go in before auto-fill so they are
    already manual overrides; split rules go last because they validate
    against the breakdown.
    """
    session = PayrollSession(rules=rules)
    session.select_worker(session_file.worker, period=session_file.period)
    session.form = session_file.form.model_copy(update={
        "base_salary": session_file.form.base_salary or session.form.base_salary,
    })

    attendance = session_file.attendance
    session.set_attendance(attendance.hours, attendance.notes, attendance.companies)

    for contract_key, state in session_file.contract_inputs.items():
        for field_name, value in state.model_dump().items():
            if value is None or value == "":
                continue
            session.set_contract_input(contract_key, field_name, value)

    if session_file.autofill.all:
        session.set_autofill_all(True)
    for ref in session_file.autofill.companies:
        session.set_autofill(session.resolve_company_ref(ref), True)

    for category, entries in session_file.other_payments.items():
        for entry in entries:
            session.add_other_payment(
                category,
                label=entry.label,
                amount=entry.amount,
                company_key=session.resolve_company_ref(entry.company) if entry.company else None,
                payment_method=entry.payment_method,
                item_id=entry.id,
            )

    for group in session_file.groups:
        group_id = group.id or f"group-{len(session.grouping.groups) + 1}"
        advisory = session.apply_grouping(CreateGroup(
            group_id=group_id,
            name=group.name,
            color=group.color,
            payment_method=group.payment_method,
        ))
        if advisory:
            continue
        for ref in group.companies:
            session.apply_grouping(AssignToGroup(
                group_id=group_id, company_key=session.resolve_company_ref(ref)
            ))

    for source_ref, split in session_file.splits.items():
        source_key = session.resolve_company_ref(source_ref)
        for rule in split.rules:
            session.apply_split(AddSplitRule(
                source_key=source_key,
                target_key=session.resolve_company_ref(rule.target),
                mode=rule.mode,
                value=parse_amount(rule.value),
                method=rule.method,
                rule_id=rule.id,
            ))
        session.apply_split(SetSplitMode(source_key=source_key, mode=split.mode))

    return session
