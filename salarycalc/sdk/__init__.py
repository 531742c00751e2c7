"""Salary Calc SDK - payroll computation and multi-employer allocation."""

from .config import (
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    unset_setting,
    get_data_path,
    get_export_path,
    get_rules_path,
    load_rules,
    ConfigNotFoundError,
    RulesValidationError,
)

from .amounts import (
    parse_amount,
    is_valid_company_name,
    company_key_for,
    normalize_company_label,
)

from .schemas import (
    Worker,
    CompanyContract,
    CompanyHours,
    DayHoursSummary,
    ContractInputState,
    CalculationInput,
    CalculationResult,
    BreakdownEntry,
    CompanyGroup,
    SplitConfig,
    SplitPaymentRule,
    PayrollRules,
)

from .hours import (
    aggregate_attendance,
    company_hours_totals,
    calendar_hours_for_company,
)

from .contracts import (
    LedgerState,
    ContractStructure,
    build_contract_structure,
    set_contract_input,
    aggregate_ledger,
)

from .autofill import (
    enable_autofill,
    disable_autofill,
    set_autofill_all,
    refresh_autofill,
)

from .other_payments import (
    OtherPaymentsLedger,
    OtherPaymentsTotals,
)

from .calculator import (
    calculate_payroll,
    apply_rounding_adjustment,
)

from .grouping import (
    GroupingConfig,
    CreateGroup,
    DeleteGroup,
    RenameGroup,
    SetGroupPaymentMethod,
    AssignToGroup,
    RemoveFromGroup,
    apply_grouping_command,
    group_breakdown,
)

from .splits import (
    SplitSettings,
    SetSplitMode,
    AddSplitRule,
    UpdateSplitRule,
    RemoveSplitRule,
    apply_split_command,
    compute_split,
    prune_split_settings,
)

from .export import (
    ExportDocument,
    build_summary_lines,
    render_summary_pdf,
    export_summary,
)

from .session import (
    SessionFile,
    SessionFileError,
    SessionOutcome,
    PayrollSession,
    load_session_file,
    session_from_file,
)

__all__ = [
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "unset_setting",
    "get_data_path",
    "get_export_path",
    "get_rules_path",
    "load_rules",
    "ConfigNotFoundError",
    "RulesValidationError",
    # Parsing
    "parse_amount",
    "is_valid_company_name",
    "company_key_for",
    "normalize_company_label",
    # Schemas
    "Worker",
    "CompanyContract",
    "CompanyHours",
    "DayHoursSummary",
    "ContractInputState",
    "CalculationInput",
    "CalculationResult",
    "BreakdownEntry",
    "CompanyGroup",
    "SplitConfig",
    "SplitPaymentRule",
    "PayrollRules",
    # Hours
    "aggregate_attendance",
    "company_hours_totals",
    "calendar_hours_for_company",
    # Ledger
    "LedgerState",
    "ContractStructure",
    "build_contract_structure",
    "set_contract_input",
    "aggregate_ledger",
    # Auto-fill
    "enable_autofill",
    "disable_autofill",
    "set_autofill_all",
    "refresh_autofill",
    # Other payments
    "OtherPaymentsLedger",
    "OtherPaymentsTotals",
    # Calculator
    "calculate_payroll",
    "apply_rounding_adjustment",
    # Grouping
    "GroupingConfig",
    "CreateGroup",
    "DeleteGroup",
    "RenameGroup",
    "SetGroupPaymentMethod",
    "AssignToGroup",
    "RemoveFromGroup",
    "apply_grouping_command",
    "group_breakdown",
    # Splits
    "SplitSettings",
    "SetSplitMode",
    "AddSplitRule",
    "UpdateSplitRule",
    "RemoveSplitRule",
    "apply_split_command",
    "compute_split",
    "prune_split_settings",
    # Export
    "ExportDocument",
    "build_summary_lines",
    "render_summary_pdf",
    "export_summary",
    # Session
    "SessionFile",
    "SessionFileError",
    "SessionOutcome",
    "PayrollSession",
    "load_session_file",
    "session_from_file",
]
