"""Pydantic schemas for salary-calc data.

Worker and contract records come from the directory service and accept
either camelCase (API) or snake_case (session files) field names, ignoring
unknown fields. Everything created inside a calculation session is frozen:
operations return new instances instead of mutating.
"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


PaymentMethod = Literal["bank", "cash"]
CalculationMode = Literal["manual", "calendar"]
ContractType = Literal["full_time", "part_time", "freelance"]


def _as_entered(value):
    """Keep numeric form fields as the text the operator typed."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        return f"{value}"
    return str(value)


# =============================================================================
# Directory snapshot - read-only to the engine
# =============================================================================


class CompanyContract(BaseModel):
    """One formal contract or bare assignment under an employer."""

    model_config = ConfigDict(
        extra="ignore", alias_generator=to_camel, populate_by_name=True
    )

    id: str = Field(..., description="Contract identity, unique within a worker")
    company_id: Optional[str] = Field(default=None)
    company_name: Optional[str] = Field(default=None)
    has_contract: bool = Field(
        default=False, description="True for a formal contract, False for an assignment"
    )
    label: Optional[str] = None
    position: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    hourly_rate: Optional[float] = Field(default=None, ge=0)

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v):
        return "" if v is None else str(v)


class Worker(BaseModel):
    """Worker snapshot from the directory service."""

    model_config = ConfigDict(
        extra="ignore", alias_generator=to_camel, populate_by_name=True
    )

    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    base_salary: Optional[float] = None
    hourly_rate: Optional[float] = None
    contract_type: Optional[ContractType] = None
    company_contracts: Dict[str, List[CompanyContract]] = Field(
        default_factory=dict,
        description="Employer name -> ordered contracts with that employer",
    )


# =============================================================================
# Attendance
# =============================================================================


class CompanyHours(BaseModel):
    """Hours attributed to one employer (per day or per month)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    company_id: Optional[str] = None
    name: Optional[str] = None
    hours: float = 0.0


class DayHoursSummary(BaseModel):
    """Aggregated attendance for one calendar day."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    total_hours: float = 0.0
    notes: List[str] = Field(default_factory=list)
    companies: List[CompanyHours] = Field(default_factory=list)


# =============================================================================
# Operator inputs
# =============================================================================


class ContractInputState(BaseModel):
    """Ledger entry for one contract, as typed by the operator."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    hours: str = ""
    base_salary: str = ""
    hourly_rate: Optional[str] = None

    @field_validator("hours", "base_salary", mode="before")
    @classmethod
    def fields_as_entered(cls, v):
        return _as_entered(v)

    @field_validator("hourly_rate", mode="before")
    @classmethod
    def rate_as_entered(cls, v):
        if v is None:
            return None
        return _as_entered(v)


class CalculationInput(BaseModel):
    """Top-level calculator form fields."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    base_salary: str = ""
    hours_worked: str = ""
    overtime_hours: str = "0"
    bonuses: str = "0"
    deductions: str = "0"
    period: Literal["monthly", "weekly", "daily"] = "monthly"
    notes: str = ""

    @field_validator(
        "base_salary", "hours_worked", "overtime_hours", "bonuses", "deductions",
        mode="before",
    )
    @classmethod
    def fields_as_entered(cls, v):
        return _as_entered(v)


class OtherPaymentItem(BaseModel):
    """A free-form adjustment line in the other-payments ledger."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    label: str = ""
    amount: str = ""
    company_key: Optional[str] = None
    payment_method: PaymentMethod = "bank"

    @field_validator("amount", mode="before")
    @classmethod
    def amount_as_entered(cls, v):
        return _as_entered(v)


# =============================================================================
# Results
# =============================================================================


class BreakdownEntry(BaseModel):
    """One employer's share of the payroll total."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    company_key: str
    company_id: Optional[str] = None
    name: Optional[str] = None
    hours: float = 0.0
    amount: float = 0.0


class CalculationResult(BaseModel):
    """Output of the payroll calculator.

    Invariant: sum(company_breakdown.amount) == total_amount within the
    rounding tolerance whenever a breakdown exists.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    mode: CalculationMode
    total_amount: float
    total_hours: float
    regular_hours: float
    overtime_hours: float
    overtime_pay: float = 0.0
    company_breakdown: List[BreakdownEntry] = Field(default_factory=list)
    uses_calendar_hours: bool = False
    gross_salary: float = 0.0
    taxes: float = 0.0
    social_security: float = 0.0
    net_salary: float = 0.0

    @property
    def breakdown_total(self) -> float:
        return sum(entry.amount for entry in self.company_breakdown)

    def entry_for(self, company_key: str) -> Optional[BreakdownEntry]:
        for entry in self.company_breakdown:
            if entry.company_key == company_key:
                return entry
        return None


# =============================================================================
# Allocation overrides
# =============================================================================


class CompanyGroup(BaseModel):
    """Operator-defined bundle of employers paid with one method."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    name: str
    color: str = "#3b82f6"
    companies: List[str] = Field(default_factory=list, description="CompanyKeys")
    payment_method: PaymentMethod = "bank"


class SplitPaymentRule(BaseModel):
    """One destination leg of a split payment."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    target_key: str
    mode: Literal["percentage", "amount"] = "percentage"
    value: float = 0.0
    method: PaymentMethod = "bank"

    @field_validator("value", mode="before")
    @classmethod
    def value_from_text(cls, v):
        from .amounts import parse_amount
        return parse_amount(v)


class SplitConfig(BaseModel):
    """Split configuration for one source employer."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    mode: Literal["keep", "split"] = "keep"
    rules: List[SplitPaymentRule] = Field(default_factory=list)


# =============================================================================
# Rules
# =============================================================================


class PayrollRules(BaseModel):
    """Fixed payroll constants. Overridable through rules.yaml."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    tax_rate: float = Field(default=0.21, ge=0, le=1)
    social_security_rate: float = Field(default=0.063, ge=0, le=1)
    overtime_multiplier: float = Field(default=1.5, ge=1)
    standard_monthly_hours: float = Field(
        default=160, gt=0, description="Divisor for the calendar-mode hourly rate"
    )
    attendance_utc_offset_hours: float = Field(
        default=2, ge=-12, le=14, description="Shift applied to attendance timestamps"
    )
    rounding_tolerance: float = Field(default=0.01, gt=0)
