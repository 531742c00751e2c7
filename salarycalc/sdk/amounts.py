"""Operator input normalization.

Every free-text number in the calculator (hours, salaries, rates, other
payment amounts, split values) goes through parse_amount so all call sites
share the same locale rules. Invalid input degrades to zero, never raises.

Also holds the employer name/key helpers shared by the hours aggregator,
the contract ledger and the calculator.
"""

import math
import re
import unicodedata
from typing import Any, Optional


UNASSIGNED_COMPANY_KEY = "unassigned"
NO_COMPANY_NAME = "Sin empresa"

# Placeholder names produced upstream for entries without an employer
PLACEHOLDER_COMPANY_NAMES = {
    "sin empresa",
    "empresa sin nombre",
    "unassigned",
    "no company",
}

_WHITESPACE = re.compile(r"\s+")
_NUMBER = re.compile(r"^[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?$")
_TIME = re.compile(r"^([0-1]?\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$")


def parse_amount(value: Any) -> float:
    """Parse operator-entered numeric text into a float.

    Whitespace is removed and comma decimal separators become periods.
    Empty, invalid or non-finite input returns 0.0.

    Examples:
        parse_amount("1 234,5")  # -> 1234.5
        parse_amount("abc")      # -> 0.0
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        normalized = _WHITESPACE.sub("", str(value)).replace(",", ".")
        if not _NUMBER.match(normalized):
            return 0.0
        try:
            number = float(normalized)
        except ValueError:
            return 0.0

    if not math.isfinite(number):
        return 0.0
    return number


def trim_to_none(value: Any) -> Optional[str]:
    """Strip a value to a non-empty string, or None."""
    if value is None:
        return None
    trimmed = str(value).strip()
    return trimmed or None


def normalize_company_label(value: Any) -> Optional[str]:
    """Normalize an employer name for matching.

    Lowercases, strips diacritics and collapses internal whitespace, so
    "  Limpiezas  Álvarez " and "limpiezas alvarez" compare equal.
    """
    trimmed = trim_to_none(value)
    if trimmed is None:
        return None
    decomposed = unicodedata.normalize("NFD", trimmed.casefold())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE.sub(" ", stripped)


def is_valid_company_name(name: Any) -> bool:
    """True unless the name is blank or a synthesized placeholder."""
    normalized = normalize_company_label(name)
    if not normalized:
        return False
    return normalized not in PLACEHOLDER_COMPANY_NAMES


def company_key_for(company_id: Optional[str] = None, name: Optional[str] = None) -> str:
    """Build the CompanyKey used by breakdown rows, groups and split rules."""
    company_id = trim_to_none(company_id)
    if company_id:
        return f"id:{company_id}"
    name = trim_to_none(name)
    if name:
        return f"name:{name}"
    return UNASSIGNED_COMPANY_KEY


def parse_time_to_minutes(value: Any) -> Optional[int]:
    """Parse "HH:MM" or "HH:MM:SS" into minutes after midnight.

    Seconds are accepted but ignored. Returns None for anything else.
    """
    trimmed = trim_to_none(value)
    if trimmed is None:
        return None
    match = _TIME.match(trimmed)
    if not match:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def sort_key_for_name(name: Optional[str]) -> str:
    """Case and accent insensitive sort key for employer names."""
    return normalize_company_label(name) or ""
